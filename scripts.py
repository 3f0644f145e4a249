"""Japanese script classification and conversion (hiragana / katakana / romaji / kanji)."""
import re as _re
from typing import Optional

import jaconv
import pykakasi

from log import get_logger
from models import ScriptKind
from segmenter import Segmenter, get_default_segmenter

logger = get_logger("yomikata.scripts")

_kakasi = pykakasi.kakasi()

# Prolonged sound mark, used in both syllabaries
_CHOONPU = "\u30fc"

# One Hepburn syllable, a syllabic n, or the first half of a doubled consonant
_ROMAJI_WORD = _re.compile(
    r"(?:[aiueoāīūēō]"
    r"|(?:ch|sh|ts|[kgsztdnhbpmrjfwvy])y?[aiueoāīūēō]"
    r"|n'?"
    r"|([kgsztdbpcfjmh])(?=\1|ch))+",
    _re.IGNORECASE,
)
_WORD_SPLIT = _re.compile(r"[\s\-']+")


def is_hiragana(c: str) -> bool:
    return "\u3041" <= c <= "\u3096" or "\u309d" <= c <= "\u309f" or c == _CHOONPU


def is_katakana(c: str) -> bool:
    return "\u30a1" <= c <= "\u30fa" or "\u30fc" <= c <= "\u30ff" or "\u31f0" <= c <= "\u31ff"


def is_kanji(c: str) -> bool:
    return ("\u4e00" <= c <= "\u9fff" or "\u3400" <= c <= "\u4dbf"
            or "\uf900" <= c <= "\ufaff" or c in "\u3005\u3006")


def _is_romaji(text: str) -> bool:
    words = [w for w in _WORD_SPLIT.split(text.strip()) if w]
    return bool(words) and all(_ROMAJI_WORD.fullmatch(w) for w in words)


def classify(text: str) -> ScriptKind:
    """Classify the whole string; a single stray character changes the result."""
    if not text:
        return ScriptKind.UNKNOWN
    if all(is_hiragana(c) for c in text):
        return ScriptKind.HIRAGANA
    if all(is_katakana(c) for c in text):
        return ScriptKind.KATAKANA
    if any(is_kanji(c) or is_hiragana(c) or is_katakana(c) for c in text):
        return ScriptKind.KANJI_MIXED
    if _is_romaji(text):
        return ScriptKind.ROMAJI
    return ScriptKind.UNKNOWN


def hiragana_to_katakana(text: str) -> str:
    return jaconv.hira2kata(text)


def katakana_to_hiragana(text: str) -> str:
    return jaconv.kata2hira(text)


def to_romaji(hiragana: str) -> str:
    """Hepburn romaji for a kana string, e.g. はは -> haha."""
    return "".join(item["hepburn"] for item in _kakasi.convert(hiragana))


def kanji_to_hiragana_reading(text: str, segmenter: Optional[Segmenter] = None) -> str:
    """Replace every token the segmenter can read with its hiragana reading.

    Tokens without a reading (punctuation, unknown loanwords) pass through
    as written, so the result is not guaranteed to be pure hiragana.
    """
    if segmenter is None:
        segmenter = get_default_segmenter()
    parts = []
    for token in segmenter.segment(text):
        if token.reading:
            parts.append(katakana_to_hiragana(token.reading))
        else:
            parts.append(token.surface)
    reading = "".join(parts)
    logger.debug("Reduced to reading", extra={"component": "scripts", "detail": f"{text} -> {reading}"})
    return reading
