"""Translation pipelines.

TranslationPipeline turns an English phrase into a Japanese bundle:

    translating -> normalizing_script -> explaining -> annotating -> validating -> done

OtherTranslationPipeline does the same for an arbitrary target language but
skips script normalization. Both build their result through a ResultBuilder,
so a failure at any stage surfaces the fields completed so far.
"""
import time
from enum import Enum
from typing import NamedTuple, Optional, Union

from log import get_logger
from errors import (
    ExtractionError, PipelineError, ConversionExhausted, ValidationError, UnsupportedLanguage,
)
from extractor import extract_answer
from llm import ModelGateway
from models import (
    START_MARKER, END_MARKER, SUPPORTED_LANGUAGES, ScriptKind,
    TranslationRequest, OtherTranslationRequest, TranslationResult, OtherTranslationResult,
)
from retry import retry_until
from scripts import (
    classify, kanji_to_hiragana_reading, katakana_to_hiragana, hiragana_to_katakana, to_romaji,
)
from segmenter import Segmenter

logger = get_logger("yomikata.pipeline")

# Total attempts per step
NORMALIZE_ATTEMPTS = 4
EXPLAIN_ATTEMPTS = 2
EMOJI_ATTEMPTS = 2

EXPLANATION_PROMPT = f"""You will receive a {{language}} text and must explain the definition of the word.
You must reply in the English language.
You must explain whether this is a traditional translation or more current.
You must explain whether the word is bastardized from other languages.
In case there are more popular variants of the word, also mention it.

Format the response in the following way:

{START_MARKER}
[your explanation]
{END_MARKER}

Now explain this text in detail, give the definition of the word or words:
"{{text}}"
"""

EMOJI_PROMPT = f"""You will receive a text and must return exactly one corresponding emoji.

Format the response in the following way:

{START_MARKER}
[your emoji]
{END_MARKER}

Now return the emoji relating to this text:
"{{text}}"
"""


class Stage(str, Enum):
    TRANSLATING = "translating"
    NORMALIZING_SCRIPT = "normalizing_script"
    EXPLAINING = "explaining"
    ANNOTATING = "annotating"
    VALIDATING = "validating"
    DONE = "done"
    FAILED = "failed"


def is_valid_reply(value: Optional[str]) -> bool:
    """Reject echoed placeholders ("[your emoji]") and blank answers."""
    return value is not None and "[" not in value and "]" not in value and value.strip() != ""


class ResultBuilder:
    """Holds the partially built result and the stage the run is in."""

    def __init__(self, result: Union[TranslationResult, OtherTranslationResult]):
        self.result = result
        self.stage = Stage.TRANSLATING
        self._started = time.monotonic()

    def enter(self, stage: Stage):
        self.stage = stage
        logger.debug(f"Entering {stage.value}", extra={"component": "pipeline", "stage": stage.value})

    def set(self, **fields):
        self.result = self.result.model_copy(update=fields)

    def fail(self, error: PipelineError) -> PipelineError:
        failed_in = self.stage
        self.stage = Stage.FAILED
        error.attach(self.result)
        logger.error(f"Pipeline failed: {error.message}", extra={
            "component": "pipeline", "stage": failed_in.value, "duration_ms": self._elapsed_ms(),
        })
        return error

    def finish(self):
        self.enter(Stage.VALIDATING)
        missing = [name for name, value in self.result if value is None and name != "error"]
        if missing:
            raise ValidationError(f"Incomplete result, missing: {', '.join(missing)}")
        self.stage = Stage.DONE
        logger.info("Successfully translated!", extra={"component": "pipeline", "duration_ms": self._elapsed_ms()})
        return self.result

    def _elapsed_ms(self) -> int:
        return round((time.monotonic() - self._started) * 1000)


class Reply(NamedTuple):
    """Extracted answer plus the raw generation it came from."""

    answer: str
    raw: str


class _GenerationStages:
    """Explain and annotate stages shared by both pipelines."""

    gateway: ModelGateway
    model_id: Optional[str]

    async def _generate_answer(self, prompt: str) -> Reply:
        raw = await self.gateway.generate(prompt, self.model_id)
        try:
            return Reply(extract_answer(raw), raw)
        except ExtractionError:
            # counts as a blank answer for validation
            return Reply("", raw)

    async def _explain(self, builder: ResultBuilder, text: str, language: str):
        builder.enter(Stage.EXPLAINING)
        prompt = EXPLANATION_PROMPT.format(language=language, text=text)
        outcome = await retry_until(lambda: self._generate_answer(prompt), lambda r: is_valid_reply(r.answer),
                                    EXPLAIN_ATTEMPTS, label=Stage.EXPLAINING.value)
        if not outcome.accepted:
            raise ValidationError("Explanation generation failed",
                                  rejected=outcome.value.answer, raw=outcome.value.raw)
        builder.set(explanation=outcome.value.answer)

    async def _annotate(self, builder: ResultBuilder, text: str):
        builder.enter(Stage.ANNOTATING)
        prompt = EMOJI_PROMPT.format(text=text)
        outcome = await retry_until(lambda: self._generate_answer(prompt), lambda r: is_valid_reply(r.answer),
                                    EMOJI_ATTEMPTS, label=Stage.ANNOTATING.value)
        if not outcome.accepted:
            logger.warning(f"Settling on emoji: {outcome.value.answer!r}",
                           extra={"component": "pipeline", "stage": Stage.ANNOTATING.value})
        builder.set(emoji=outcome.value.answer)


class TranslationPipeline(_GenerationStages):
    """English phrase -> hiragana / katakana / romaji, explanation and emoji."""

    def __init__(self, gateway: ModelGateway, segmenter: Optional[Segmenter] = None,
                 model_id: Optional[str] = None):
        self.gateway = gateway
        self.segmenter = segmenter
        self.model_id = model_id

    async def execute(self, input_text: str) -> TranslationResult:
        request = TranslationRequest(input_text=input_text)
        logger.debug(f"Translation requested for: {request.input_text}", extra={"component": "pipeline"})
        builder = ResultBuilder(TranslationResult(name_english=request.input_text))
        try:
            builder.enter(Stage.TRANSLATING)
            translation = await self.gateway.translate(request.input_text)
            builder.set(original_ai_translation=translation)

            hiragana = await self._normalize(builder, translation)
            builder.set(
                name_hiragana=hiragana,
                name_katakana=hiragana_to_katakana(hiragana),
                name_romaji=to_romaji(hiragana),
            )

            await self._explain(builder, translation, "Japanese")
            await self._annotate(builder, translation)
            return builder.finish()
        except PipelineError as e:
            raise builder.fail(e)

    async def _normalize(self, builder: ResultBuilder, translation: str) -> str:
        """Reduce the translation to hiragana, always starting again from the original text."""
        builder.enter(Stage.NORMALIZING_SCRIPT)

        def reduce():
            reduction = kanji_to_hiragana_reading(translation, self.segmenter)
            return reduction, classify(reduction)

        outcome = await retry_until(
            reduce,
            lambda attempt: attempt[1] in (ScriptKind.HIRAGANA, ScriptKind.KATAKANA),
            NORMALIZE_ATTEMPTS,
            label=Stage.NORMALIZING_SCRIPT.value,
        )
        reduction, kind = outcome.value
        if not outcome.accepted:
            raise ConversionExhausted(
                f"Could not convert '{translation}' to hiragana after {outcome.attempts} attempts",
                attempts=outcome.attempts,
                last_reduction=reduction,
            )
        if kind is ScriptKind.KATAKANA:
            return katakana_to_hiragana(reduction)
        return reduction


class OtherTranslationPipeline(_GenerationStages):
    """English phrase -> any supported language, explanation and emoji."""

    def __init__(self, gateway: ModelGateway, model_id: Optional[str] = None,
                 source_lang: str = "en"):
        self.gateway = gateway
        self.model_id = model_id
        self.source_lang = source_lang

    async def execute(self, input_text: str, target_lang: str) -> OtherTranslationResult:
        request = OtherTranslationRequest(input_text=input_text, target_lang=target_lang)
        logger.debug(f"Translation requested for: {request.input_text} ({request.target_lang})",
                     extra={"component": "pipeline"})
        builder = ResultBuilder(OtherTranslationResult(name_english=request.input_text))
        try:
            if request.target_lang not in SUPPORTED_LANGUAGES:
                raise UnsupportedLanguage(f"Unsupported language: {request.target_lang}")

            builder.enter(Stage.TRANSLATING)
            translation = await self.gateway.translate_to(request.input_text, self.source_lang, request.target_lang)
            builder.set(original_ai_translation=translation)

            await self._explain(builder, translation, SUPPORTED_LANGUAGES[request.target_lang])
            await self._annotate(builder, translation)
            return builder.finish()
        except PipelineError as e:
            raise builder.fail(e)
