"""Pydantic schemas, constants, and static data for Yomikata."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- Constants ---
START_MARKER = "##start response##"
END_MARKER = "##end response##"

# Target languages with a Helsinki-NLP opus-mt en-xx model
SUPPORTED_LANGUAGES = {
    "ar": "Arabic",
    "de": "German",
    "es": "Spanish",
    "fr": "French",
    "it": "Italian",
    "jap": "Japanese",
    "nl": "Dutch",
    "ru": "Russian",
    "sv": "Swedish",
    "zh": "Chinese",
}

MAX_INPUT_LEN = 500


class ScriptKind(str, Enum):
    HIRAGANA = "hiragana"
    KATAKANA = "katakana"
    KANJI_MIXED = "kanji_mixed"
    ROMAJI = "romaji"
    UNKNOWN = "unknown"


# --- Pipeline Models ---

class TranslationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_text: str


class OtherTranslationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_text: str
    target_lang: str


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranslationResult(_CamelModel):
    name_english: Optional[str] = None
    name_hiragana: Optional[str] = None
    name_katakana: Optional[str] = None
    name_romaji: Optional[str] = None
    original_ai_translation: Optional[str] = None
    explanation: Optional[str] = None
    emoji: Optional[str] = None
    error: Optional[str] = None


class OtherTranslationResult(_CamelModel):
    name_english: Optional[str] = None
    original_ai_translation: Optional[str] = None
    explanation: Optional[str] = None
    emoji: Optional[str] = None
    error: Optional[str] = None


# --- API Models ---

class PromptRequest(BaseModel):
    prompt: str


class OtherPromptRequest(BaseModel):
    prompt: str
    target_lang: str = Field(alias="targetLang")
