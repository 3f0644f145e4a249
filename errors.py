"""Error taxonomy for the translation pipeline.

Every fatal pipeline error carries the partial result built so far, with its
``error`` field set, so callers always get diagnostic context.
"""
from typing import Optional, Union

from models import TranslationResult, OtherTranslationResult

PartialResult = Union[TranslationResult, OtherTranslationResult]


class ExtractionError(ValueError):
    """No delimited answer block found in a generative response."""

    def __init__(self, raw: str, message: str = "Could not find the last response block"):
        super().__init__(message)
        self.raw = raw


class PipelineError(Exception):
    """Base class for errors that abort a pipeline run."""

    def __init__(self, message: str, partial: Optional[PartialResult] = None):
        super().__init__(message)
        self.message = message
        self.partial = None
        if partial is not None:
            self.attach(partial)

    def attach(self, partial: PartialResult):
        self.partial = partial.model_copy(update={"error": self.message})
        return self

    def to_payload(self) -> dict:
        payload = self.partial.model_dump(by_alias=True) if self.partial is not None else {}
        payload["error"] = self.message
        return payload


class UpstreamError(PipelineError):
    """A model gateway call failed (bad status, malformed payload, missing credentials)."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 partial: Optional[PartialResult] = None):
        super().__init__(message, partial)
        self.status_code = status_code


class ConversionExhausted(PipelineError):
    """Script normalization never reached hiragana or katakana."""

    def __init__(self, message: str, attempts: int, last_reduction: Optional[str] = None,
                 partial: Optional[PartialResult] = None):
        super().__init__(message, partial)
        self.attempts = attempts
        self.last_reduction = last_reduction


class ValidationError(PipelineError):
    """Generated text stayed invalid after the permitted retry."""

    def __init__(self, message: str, rejected: Optional[str] = None, raw: Optional[str] = None,
                 partial: Optional[PartialResult] = None):
        super().__init__(message, partial)
        self.rejected = rejected
        self.raw = raw

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["rejected"] = self.rejected
        payload["raw"] = self.raw
        return payload


class UnsupportedLanguage(PipelineError):
    pass
