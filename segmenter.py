"""Morphological segmentation (MeCab) behind a small capability interface."""
import os
from functools import lru_cache
from typing import NamedTuple, Optional, List, Protocol

from log import get_logger

logger = get_logger("yomikata.segmenter")

# --- Config ---
# Column of the MeCab feature string holding the katakana spelling.
# 20 is the kana column in UniDic. Column 9 (pron) is the spoken form: it writes
# long vowels with the prolonged sound mark and the topic particle as "wa".
# IPAdic keeps its reading at 7.
MECAB_READING_FIELD = int(os.environ.get("YOMIKATA_MECAB_READING_FIELD", "20"))


class Token(NamedTuple):
    surface: str
    reading: Optional[str] = None


class Segmenter(Protocol):
    def segment(self, text: str) -> List[Token]:
        ...


class MecabSegmenter:
    """Tokenizes with MeCab; reading is None for tokens the dictionary can't read."""

    def __init__(self, reading_field: int = MECAB_READING_FIELD, tagger_args: str = ""):
        import MeCab
        self._tagger = MeCab.Tagger(tagger_args)
        self.reading_field = reading_field

    def segment(self, text: str) -> List[Token]:
        node = self._tagger.parseToNode(text)
        tokens = []
        while node:
            surface = node.surface
            if not surface:
                node = node.next
                continue

            features = node.feature.split(",")
            reading = None
            if len(features) > self.reading_field and features[self.reading_field] != "*":
                reading = features[self.reading_field]
            tokens.append(Token(surface, reading))
            node = node.next
        return tokens


@lru_cache(maxsize=1)
def get_default_segmenter() -> MecabSegmenter:
    logger.info("Loading MeCab tagger", extra={"component": "segmenter", "detail": MECAB_READING_FIELD})
    return MecabSegmenter()
