"""Model gateway: translation and text-generation providers (Hugging Face, Ollama)."""
import os
import random
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from log import get_logger
from errors import UpstreamError
from models import SUPPORTED_LANGUAGES

logger = get_logger("yomikata.llm")

# --- Config ---
PROVIDER = os.environ.get("YOMIKATA_PROVIDER", "huggingface")
HUGGINGFACE_API_URL = os.environ.get("HUGGINGFACE_API_URL", "https://api-inference.huggingface.co/models")
HUGGINGFACE_API_KEY = os.environ.get("HUGGINGFACE_API_KEY", "")
HUGGINGFACE_WHOAMI_URL = os.environ.get("HUGGINGFACE_WHOAMI_URL", "https://huggingface.co/api/whoami-v2")
HUGGINGFACE_TRANSLATION_MODEL = os.environ.get("HUGGINGFACE_TRANSLATION_MODEL", "Helsinki-NLP/opus-mt-en-jap")
HUGGINGFACE_TEXTGEN_MODEL = os.environ.get("HUGGINGFACE_TEXTGEN_MODEL", "mistralai/Mistral-Nemo-Instruct-2407")
OLLAMA_URL = os.environ.get("OLLAMA_URL", "http://localhost:11434")
OLLAMA_MODEL = os.environ.get("OLLAMA_MODEL", "qwen2.5:14b-instruct-q3_K_M")
LLM_TIMEOUT = float(os.environ.get("YOMIKATA_LLM_TIMEOUT", "60"))

# Zero-width characters; never visible in the prompt or the answer
_INVISIBLE_CHARS = "\u200b\u200c\u200d\u2060\ufeff"


def cache_bust_token() -> str:
    """Short random run of zero-width characters.

    Prepended to generation prompts so the provider never serves a cached
    completion for a prompt we are retrying.
    """
    return "".join(random.choices(_INVISIBLE_CHARS, k=random.randint(3, 8)))


def _pick_text(data: Any, key: str) -> Optional[str]:
    if isinstance(data, list) and data and isinstance(data[0], dict):
        data = data[0]
    if isinstance(data, dict):
        value = data.get(key)
        if isinstance(value, str):
            return value
    return None


class ModelGateway(ABC):
    """Uniform async contract over the external model services."""

    name = "base"

    @abstractmethod
    async def translate(self, text: str) -> str:
        """English -> Japanese."""

    @abstractmethod
    async def translate_to(self, text: str, source_lang: str, target_lang: str) -> str:
        ...

    @abstractmethod
    async def generate(self, prompt: str, model_id: Optional[str] = None) -> str:
        ...

    async def check(self) -> bool:
        return True


class HuggingFaceGateway(ModelGateway):
    """Hugging Face Inference API over plain HTTP."""

    name = "huggingface"

    def __init__(self, api_key: str = HUGGINGFACE_API_KEY, api_url: str = HUGGINGFACE_API_URL,
                 translation_model: str = HUGGINGFACE_TRANSLATION_MODEL,
                 textgen_model: str = HUGGINGFACE_TEXTGEN_MODEL,
                 timeout: float = LLM_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None,
                 whoami_url: str = HUGGINGFACE_WHOAMI_URL):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.whoami_url = whoami_url
        self.translation_model = translation_model
        self.textgen_model = textgen_model
        self.timeout = timeout
        self.transport = transport

    async def _post(self, model: str, payload: dict) -> Any:
        if not self.api_key:
            logger.error("HUGGINGFACE_API_KEY is missing", extra={"component": "huggingface", "model": model})
            raise UpstreamError("HUGGINGFACE_API_KEY not set")

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    f"{self.api_url}/{model}",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as e:
            logger.error("Hugging Face request failed", extra={"component": "huggingface", "model": model})
            raise UpstreamError(f"Request to [{model}] failed: {e}") from e

        duration_ms = round((time.monotonic() - start) * 1000)
        if resp.status_code == 402:
            raise UpstreamError("API requires payment", status_code=402)
        if resp.status_code != 200:
            logger.warning("Hugging Face returned an error status", extra={
                "component": "huggingface", "model": model,
                "status_code": resp.status_code, "detail": resp.text[:300],
            })
            raise UpstreamError(f"[{model}] returned status: {resp.status_code}", status_code=resp.status_code)

        logger.info("Hugging Face response received", extra={
            "component": "huggingface", "model": model, "duration_ms": duration_ms,
        })
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(f"[{model}] returned a non-JSON payload", status_code=resp.status_code) from e

    async def _translate_with(self, model: str, text: str) -> str:
        logger.debug(f'Translating text with [{model}]: "{text}"', extra={"component": "huggingface"})
        data = await self._post(model, {"inputs": text})
        answer = _pick_text(data, "translation_text")
        if answer is None:
            logger.error("Could not extract translation", extra={"component": "huggingface", "detail": str(data)[:300]})
            raise UpstreamError("Could not extract translation")
        return answer

    async def translate(self, text: str) -> str:
        return await self._translate_with(self.translation_model, text)

    async def translate_to(self, text: str, source_lang: str, target_lang: str) -> str:
        return await self._translate_with(f"Helsinki-NLP/opus-mt-{source_lang}-{target_lang}", text)

    async def generate(self, prompt: str, model_id: Optional[str] = None) -> str:
        model = model_id or self.textgen_model
        data = await self._post(model, {
            "inputs": cache_bust_token() + prompt,
            "parameters": {"max_new_tokens": 250},
        })
        generated = _pick_text(data, "generated_text")
        if generated is None:
            raise UpstreamError(f"[{model}] returned no generated_text")
        return generated

    async def check(self) -> bool:
        """Token is set and accepted by the Hub."""
        if not self.api_key:
            return False
        try:
            async with httpx.AsyncClient(timeout=5, transport=self.transport) as client:
                resp = await client.get(self.whoami_url, headers={"Authorization": f"Bearer {self.api_key}"})
            return resp.status_code == 200
        except httpx.HTTPError:
            logger.warning("Hugging Face unreachable", extra={"component": "huggingface", "endpoint": self.whoami_url})
            return False


class OllamaGateway(ModelGateway):
    """Local Ollama chat API; translation is done by the chat model itself."""

    name = "ollama"

    def __init__(self, base_url: str = OLLAMA_URL, model: str = OLLAMA_MODEL,
                 timeout: float = LLM_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def _chat(self, messages: list, model: Optional[str] = None, temperature: float = 0.3,
                    num_predict: int = 512) -> str:
        """Call Ollama chat API and return the content string."""
        model = model or self.model
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    f"{self.base_url}/api/chat",
                    json={
                        "model": model,
                        "messages": messages,
                        "stream": False,
                        "options": {"temperature": temperature, "num_predict": num_predict},
                    },
                )
        except httpx.HTTPError as e:
            logger.error("Ollama request failed", extra={"component": "ollama", "model": model})
            raise UpstreamError(f"Error calling Ollama API: {e}") from e

        if resp.status_code != 200:
            logger.warning("Ollama returned an error status",
                           extra={"component": "ollama", "model": model, "status_code": resp.status_code})
            raise UpstreamError(f"Ollama API returned status: {resp.status_code}", status_code=resp.status_code)
        try:
            content = resp.json().get("message", {}).get("content")
        except (ValueError, AttributeError) as e:
            raise UpstreamError("Ollama API returned a malformed payload") from e
        if not isinstance(content, str):
            raise UpstreamError("Ollama API returned no message content")
        return content

    async def translate(self, text: str) -> str:
        return await self.translate_to(text, "en", "jap")

    async def translate_to(self, text: str, source_lang: str, target_lang: str) -> str:
        source = SUPPORTED_LANGUAGES.get(source_lang, "English" if source_lang == "en" else source_lang)
        target = SUPPORTED_LANGUAGES.get(target_lang, target_lang)
        content = await self._chat([
            {"role": "system", "content": f"Translate {source} into {target}. Reply with the translation only."},
            {"role": "user", "content": text},
        ], temperature=0.1, num_predict=128)
        return content.strip().strip("\"'「」")

    async def generate(self, prompt: str, model_id: Optional[str] = None) -> str:
        return await self._chat([{"role": "user", "content": cache_bust_token() + prompt}], model=model_id)

    async def check(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=10, transport=self.transport) as client:
                resp = await client.get(f"{self.base_url}/api/tags")
                return resp.status_code == 200
        except httpx.HTTPError:
            logger.warning("Ollama not reachable", extra={"component": "ollama"})
            return False


def build_gateway(provider: str = PROVIDER, transport: Optional[httpx.AsyncBaseTransport] = None) -> ModelGateway:
    if provider == "ollama":
        return OllamaGateway(transport=transport)
    if provider == "huggingface":
        return HuggingFaceGateway(transport=transport)
    raise ValueError(f"Unknown model provider: {provider}")
