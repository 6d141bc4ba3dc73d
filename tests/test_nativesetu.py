import pytest
from PIL import Image

from botplugins.nativesetu import SUMMARY_TITLE, SetuStore, difference_hash, is_image_name


def _gradient(increasing: bool) -> Image.Image:
    image = Image.new("L", (90, 80))
    for x in range(90):
        value = x * 2 if increasing else 255 - x * 2
        for y in range(80):
            image.putpixel((x, y), value)
    return image


def test_is_image_name():
    assert is_image_name("a.JPG")
    assert is_image_name("b.webp")
    assert not is_image_name("c.txt")


def test_uniform_image_hashes_to_zero():
    assert difference_hash(Image.new("RGB", (40, 40), (10, 20, 30))) == 0


def test_increasing_gradient_sets_every_bit():
    assert difference_hash(_gradient(True)) == -1
    assert difference_hash(_gradient(False)) == 0


@pytest.fixture
def library(tmp_path):
    root = tmp_path / "pics"
    cats = root / "cats"
    cats.mkdir(parents=True)
    _gradient(True).save(cats / "a.png")
    Image.new("RGB", (20, 20), (1, 2, 3)).save(cats / "b.png")
    (cats / "notes.txt").write_text("x")
    inner = root / "outer" / "inner"
    inner.mkdir(parents=True)
    Image.new("RGB", (20, 20)).save(inner / "x.png")
    return root


def test_scan_all_indexes_folders(tmp_path, library):
    with SetuStore(tmp_path / "data.db") as store:
        store.scan_all(library)
        assert store.classes() == ["cats", "inner", "outer"]
        assert store.count("cats") == 2
        assert store.count("inner") == 1
        assert store.count("outer") == 0
        name, path = store.pick("cats")
        assert name in {"a.png", "b.png"}
        assert path == f"cats/{name}"
        _, inner_path = store.pick("inner")
        assert inner_path == "outer/inner/x.png"


def test_summary_lists_counts(tmp_path, library):
    with SetuStore(tmp_path / "data.db") as store:
        store.scan_all(library)
        lines = store.summary().split("\n")
        assert lines[0] == SUMMARY_TITLE
        assert lines[1] == "00. cats(2)"
        assert len(lines) == 4


def test_pick_missing_or_empty_raises(tmp_path, library):
    with SetuStore(tmp_path / "data.db") as store:
        store.scan_all(library)
        with pytest.raises(LookupError):
            store.pick("dogs")
        with pytest.raises(LookupError):
            store.pick("outer")


def test_scan_class_refreshes(tmp_path, library):
    with SetuStore(tmp_path / "data.db") as store:
        store.scan_all(library)
        (library / "cats" / "b.png").unlink()
        assert store.scan_class(library, "cats", "cats") == 1
        assert store.count("cats") == 1


def test_broken_picture_raises(tmp_path):
    root = tmp_path / "pics"
    (root / "bad").mkdir(parents=True)
    (root / "bad" / "junk.png").write_bytes(b"not an image")
    with SetuStore(tmp_path / "data.db") as store:
        with pytest.raises(OSError):
            store.scan_all(root)