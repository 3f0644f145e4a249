"""API route handlers for Yomikata."""
from functools import lru_cache

from log import get_logger

logger = get_logger("yomikata.routes")

from fastapi import APIRouter, Depends, HTTPException

from models import (
    SUPPORTED_LANGUAGES, MAX_INPUT_LEN,
    PromptRequest, OtherPromptRequest,
)
from errors import PipelineError, UpstreamError, UnsupportedLanguage
from llm import ModelGateway, build_gateway
from pipeline import TranslationPipeline, OtherTranslationPipeline

router = APIRouter()


@lru_cache(maxsize=1)
def get_gateway() -> ModelGateway:
    return build_gateway()


def get_pipeline(gateway: ModelGateway = Depends(get_gateway)) -> TranslationPipeline:
    return TranslationPipeline(gateway)


def get_other_pipeline(gateway: ModelGateway = Depends(get_gateway)) -> OtherTranslationPipeline:
    return OtherTranslationPipeline(gateway)


def _check_prompt(prompt: str):
    if not prompt or not prompt.strip():
        raise HTTPException(400, "Prompt cannot be empty")
    if len(prompt) > MAX_INPUT_LEN:
        raise HTTPException(400, f"Input too long (max {MAX_INPUT_LEN} characters)")


def _error_response(e: PipelineError) -> HTTPException:
    if isinstance(e, UpstreamError):
        status = 502
    elif isinstance(e, UnsupportedLanguage):
        status = 400
    else:
        status = 500
    return HTTPException(status, e.to_payload())


@router.post("/api/translate", tags=["Translation"], summary="Translate a phrase into Japanese",
             description="Returns hiragana, katakana and romaji for the phrase, with an explanation and an emoji.")
async def translate(req: PromptRequest, pipeline: TranslationPipeline = Depends(get_pipeline)):
    _check_prompt(req.prompt)
    try:
        result = await pipeline.execute(req.prompt)
    except PipelineError as e:
        raise _error_response(e)
    return result.model_dump(by_alias=True)


@router.post("/api/translate/other", tags=["Translation"], summary="Translate a phrase into another language")
async def translate_other(req: OtherPromptRequest, pipeline: OtherTranslationPipeline = Depends(get_other_pipeline)):
    _check_prompt(req.prompt)
    try:
        result = await pipeline.execute(req.prompt, req.target_lang)
    except PipelineError as e:
        raise _error_response(e)
    return result.model_dump(by_alias=True)


@router.get("/api/languages", tags=["Translation"], summary="Target languages for /api/translate/other")
async def get_languages():
    return SUPPORTED_LANGUAGES


@router.get("/api/health", tags=["System"])
async def health(gateway: ModelGateway = Depends(get_gateway)):
    reachable = await gateway.check()
    if not reachable:
        logger.warning("Model gateway not reachable", extra={"component": gateway.name, "endpoint": "/api/health"})
    return {"status": "ok", "gateway": {"provider": gateway.name, "reachable": reachable}}
