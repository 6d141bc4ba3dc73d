"""Plain-text melodies to MIDI and back, plus the ear-training helpers.

A melody is a run of notes such as ``CCGGAAGR FFEEDDCR``. Each note is a
letter ``A``-``G`` optionally followed by ``b`` or ``#``, an octave number
(default 5) and ``<n`` to scale its length by 2**n quarters. ``R`` is a
rest that delays the next note.
"""

from __future__ import annotations

import io
import math
import random
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

import mido

TICKS_PER_QUARTER = 960
TEMPO_BPM = 72
INSTRUMENT = "Violin"
DEFAULT_TIMBRE = 40
NOTE_VELOCITY = 120
QUESTION_LOW = 55
QUESTION_SPAN = 34

NOTE_MAP = {
    "C": 60,
    "Db": 61,
    "D": 62,
    "Eb": 63,
    "E": 64,
    "F": 65,
    "Gb": 66,
    "G": 67,
    "Ab": 68,
    "A": 69,
    "Bb": 70,
    "B": 71,
}

_INT64_MAX = (1 << 63) - 1
_INT64_MIN = -(1 << 63)
_ATOI = re.compile(rb"[+-]?[0-9]+")


class MidiSyntaxError(ValueError):
    """The melody text cannot be parsed."""


def _u8(value: int) -> int:
    return value & 0xFF


def octave(base: int, oct: int) -> int:
    """The MIDI note for pitch class ``base`` in octave ``oct`` (capped at 10)."""
    base = _u8(base)
    oct = min(_u8(oct), 10)
    if oct == 0:
        return base
    result = _u8(base + 12 * oct)
    if result > 127:
        result -= 12
    return result


def note_name(n: int) -> str:
    """The note letter (with flat) of MIDI note ``n``'s pitch class."""
    for name, value in NOTE_MAP.items():
        if value % 12 == _u8(n) % 12:
            return name
    return ""


def _is_letter(c: int) -> bool:
    return ord("A") <= c <= ord("G")


def _is_digit(c: int) -> bool:
    return ord("0") <= c <= ord("9")


def parse_note(note: str) -> int:
    """The MIDI note written as e.g. ``C#6``; unknown characters are skipped."""
    base = 0
    level = 0
    for c in note.replace(" ", "").encode("utf-8"):
        if _is_letter(c):
            base = NOTE_MAP[chr(c)] % 12
        elif c == ord("b"):
            base = _u8(base - 1)
        elif c == ord("#"):
            base = _u8(base + 1)
        elif _is_digit(c):
            level = _u8(level * 10 + c - ord("0"))
    if level == 0:
        level = 5
    return octave(base, level)


@dataclass
class _Token:
    rest: bool
    base: int
    level: int
    length: int


def _atoi(raw: bytes) -> int:
    if not _ATOI.fullmatch(raw):
        return 0
    return max(_INT64_MIN, min(_INT64_MAX, int(raw)))


def _tokens(text: str) -> Iterator[_Token]:
    data = text.replace(" ", "").encode("utf-8")
    size = len(data)
    i = 0
    while i < size:
        base = 0
        level = 0
        rest = False
        length_bytes = bytearray()
        while True:
            c = data[i]
            if c == ord("R"):
                rest = True
                i += 1
            elif _is_letter(c):
                base = NOTE_MAP[chr(c)] % 12
                i += 1
            elif c == ord("b"):
                base = _u8(base - 1)
                i += 1
            elif c == ord("#"):
                base = _u8(base + 1)
                i += 1
            elif _is_digit(c):
                level = _u8(level * 10 + c - ord("0"))
                i += 1
            elif c == ord("<"):
                i += 1
                while i < size and (data[i] == ord("-") or _is_digit(data[i])):
                    length_bytes.append(data[i])
                    i += 1
            else:
                raise MidiSyntaxError(f"无法解析第{i}个位置的{chr(c)}字符")
            if i >= size or _is_letter(data[i]) or data[i] == ord("R"):
                break
        yield _Token(rest, base, level, _atoi(bytes(length_bytes)))


def _duration(length: int) -> int:
    """Ticks for a note scaled by 2**length quarters."""
    if length >= 0:
        factor = 1 << length if length < 32 else 0
        return (TICKS_PER_QUARTER * factor) & 0xFFFFFFFF
    if -length >= 32:
        raise MidiSyntaxError(f"音符长度过短: {length}")
    return TICKS_PER_QUARTER // (1 << -length)


def validate_timbre(timbre: int) -> int:
    """Return the General MIDI program number, which must lie in 0-127."""
    value = int(timbre)
    if value < 0 or value > 127:
        raise ValueError("音色应该在0~127之间")
    return value


def compose(text: str, timbre: int = DEFAULT_TIMBRE) -> mido.MidiFile:
    """Build a single-track MIDI file from melody text."""
    program = validate_timbre(timbre)
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("time_signature", numerator=4, denominator=4, time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(TEMPO_BPM), time=0))
    track.append(mido.MetaMessage("instrument_name", name=INSTRUMENT, time=0))
    track.append(mido.Message("program_change", channel=0, program=program, time=0))

    delay = 0
    for token in _tokens(text):
        if token.rest:
            delay = _duration(token.length)
            continue
        note = octave(token.base, token.level or 5) & 0x7F
        track.append(
            mido.Message("note_on", channel=0, note=note, velocity=NOTE_VELOCITY, time=delay)
        )
        track.append(
            mido.Message(
                "note_off", channel=0, note=note, velocity=0, time=_duration(token.length)
            )
        )
        delay = 0
    track.append(mido.MetaMessage("end_of_track", time=0))

    midi = mido.MidiFile(type=1, ticks_per_beat=TICKS_PER_QUARTER)
    midi.tracks.append(track)
    return midi


def write_midi(
    path: Union[str, Path], text: str, timbre: int = DEFAULT_TIMBRE
) -> Path:
    """Write the melody to ``path`` unless a file is already there."""
    target = Path(path)
    if target.exists():
        return target
    midi = compose(text, timbre)
    midi.save(str(target))
    return target


def _round_half_away(value: float) -> int:
    if value >= 0:
        return math.floor(value + 0.5)
    return -math.floor(-value + 0.5)


def _power(length: float):
    """Rounded log2 of a length in quarters, or None for a non-positive one."""
    if length <= 0:
        return None
    return _round_half_away(math.log2(length))


def midi_to_text(data: bytes, track_no: int) -> str:
    """Melody text for one track of a MIDI file; empty if there is no such track."""
    midi = mido.MidiFile(file=io.BytesIO(data))
    if not 0 <= track_no < len(midi.tracks):
        return ""

    parts: list[str] = []
    abs_ticks = 0
    start_ticks = 0.0
    end_ticks = 0.0
    start_note = 0
    end_note = 0
    for msg in midi.tracks[track_no]:
        abs_ticks += msg.time
        if msg.is_meta:
            continue
        sounding = msg.type == "note_on" and msg.velocity > 0
        if sounding:
            start_ticks = float(abs_ticks)
            start_note = msg.note
        if msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0):
            end_ticks = float(abs_ticks)
            end_note = msg.note
            if start_note == end_note:
                parts.append(note_name(msg.note))
                level = msg.note // 12
                if level != 5:
                    parts.append(str(level))
                power = _power((end_ticks - start_ticks) / TICKS_PER_QUARTER)
                if power is not None and power >= -4 and power != 0:
                    parts.append(f"<{power}")
                start_note = 0
                end_note = 0
        if sounding and start_ticks > end_ticks:
            power = _power((start_ticks - end_ticks) / TICKS_PER_QUARTER)
            if power == 0:
                parts.append("R")
            elif power is not None and power >= -4:
                parts.append(f"R<{power}")
    return "".join(parts)


def render_wav(midi_path: Union[str, Path], wav_path: Union[str, Path]) -> Path:
    """Render a MIDI file to WAV with timidity."""
    source = Path(midi_path).resolve()
    target = Path(wav_path).resolve()
    subprocess.run(
        ["timidity", str(source), "-Ow", "-o", str(target)],
        check=True,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    return target


def random_question(rng: random.Random) -> tuple[int, str]:
    """A random target note for ear training and its written answer."""
    target = QUESTION_LOW + rng.randrange(QUESTION_SPAN)
    return target, note_name(target) + str(target // 12)