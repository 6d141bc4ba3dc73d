"""Speech synthesis URLs for Japanese, Korean and Chinese voice models."""

from __future__ import annotations

import re
import unicodedata
from typing import Callable, Optional
from urllib.parse import quote_plus

JP_API = "https://moegoe.azurewebsites.net/api/speak?text={}&id={}"
KR_API = "https://moegoe.azurewebsites.net/api/speakkr?text={}&id={}"
CN_API = "http://233366.proxy.nscc-gz.cn:8888?speaker={}&text={}"

JP_SPEAKERS = {"宁宁": 0, "爱瑠": 1, "芳乃": 2, "茉子": 3, "丛雨": 4, "小春": 5, "七海": 6}
KR_SPEAKERS = {"Sua": 0, "Mimiru": 1, "Arin": 2, "Yeonhwa": 3, "Yuhwa": 4, "Seonbae": 5}
CN_SPEAKERS = (
    "派蒙 凯亚 安柏 丽莎 琴 香菱 枫原万叶 迪卢克 温迪 可莉 早柚 托马 芭芭拉 优菈 云堇 钟离 魈 "
    "凝光 雷电将军 北斗 甘雨 七七 刻晴 神里绫华 雷泽 神里绫人 罗莎莉亚 阿贝多 八重神子 宵宫 "
    "荒泷一斗 九条裟罗 夜兰 珊瑚宫心海 五郎 达达利亚 莫娜 班尼特 申鹤 行秋 烟绯 久岐忍 辛焱 "
    "砂糖 胡桃 重云 菲谢尔 诺艾尔 迪奥娜 鹿野院平藏"
).split()

_SPACE = "\t\n\f\r "


def _in(char: str, *ranges: tuple[str, str]) -> bool:
    return any(low <= char <= high for low, high in ranges)


def _common(char: str) -> bool:
    return char in _SPACE or unicodedata.category(char).startswith("P")


def _latin(char: str) -> bool:
    return _in(char, ("A", "Z"), ("a", "z"), ("0", "9"))


def _jp_char(char: str) -> bool:
    return (
        _common(char)
        or _latin(char)
        or _in(
            char,
            ("\u3005", "\u3005"),
            ("\u3040", "\u30ff"),
            ("\u4e00", "\u9fff"),
            ("\uff11", "\uff19"),
            ("\uff21", "\uff3a"),
            ("\uff41", "\uff5a"),
            ("\uff66", "\uff9d"),
        )
    )


def _kr_char(char: str) -> bool:
    return _common(char) or _latin(char) or _in(char, ("\u3131", "\u3163"), ("\uac00", "\ud7ff"))


def _cn_char(char: str) -> bool:
    return _common(char) or _in(char, ("\u4e00", "\u9fa5"))


def _pattern(names) -> re.Pattern:
    return re.compile("^让(" + "|".join(map(re.escape, names)) + ")说(.+)$", re.DOTALL)


_COMMANDS: tuple[tuple[re.Pattern, Callable[[str], bool]], ...] = (
    (_pattern(JP_SPEAKERS), _jp_char),
    (_pattern(KR_SPEAKERS), _kr_char),
    (_pattern(CN_SPEAKERS), _cn_char),
)


def match_command(text: str) -> Optional[tuple[str, str]]:
    """The (speaker, words) of a "让<speaker>说<words>" command, or None.

    The words must be in the script the speaker's model understands.
    """
    for pattern, allowed in _COMMANDS:
        match = pattern.match(text)
        if match and all(allowed(c) for c in match.group(2)):
            return match.group(1), match.group(2)
    return None


def speech_url(speaker: str, text: str) -> str:
    """The audio URL for ``speaker`` saying ``text``."""
    if speaker in JP_SPEAKERS:
        return JP_API.format(quote_plus(text), JP_SPEAKERS[speaker])
    if speaker in KR_SPEAKERS:
        return KR_API.format(quote_plus(text), KR_SPEAKERS[speaker])
    if speaker in CN_SPEAKERS:
        return CN_API.format(quote_plus(speaker), quote_plus(text))
    raise KeyError(f"unknown speaker {speaker!r}")