"""Tests for the model gateway providers, using httpx.MockTransport."""
import json

import httpx
import pytest

from errors import UpstreamError
from llm import (
    HuggingFaceGateway, OllamaGateway, build_gateway, cache_bust_token, _INVISIBLE_CHARS,
)


def hf_gateway(handler, api_key="hf-test"):
    return HuggingFaceGateway(
        api_key=api_key,
        api_url="https://hf.test/models",
        translation_model="Helsinki-NLP/opus-mt-en-jap",
        textgen_model="mistralai/Mistral-Nemo-Instruct-2407",
        transport=httpx.MockTransport(handler),
        whoami_url="https://hub.test/api/whoami-v2",
    )


def test_cache_bust_token_is_invisible():
    for _ in range(20):
        token = cache_bust_token()
        assert 3 <= len(token) <= 8
        assert all(c in _INVISIBLE_CHARS for c in token)


@pytest.mark.asyncio
async def test_hf_translate_list_payload():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"translation_text": "母"}])

    result = await hf_gateway(handler).translate("mother")
    assert result == "母"
    assert seen["url"] == "https://hf.test/models/Helsinki-NLP/opus-mt-en-jap"
    assert seen["auth"] == "Bearer hf-test"
    assert seen["body"] == {"inputs": "mother"}


@pytest.mark.asyncio
async def test_hf_translate_dict_payload():
    def handler(request):
        return httpx.Response(200, json={"translation_text": "母"})

    assert await hf_gateway(handler).translate("mother") == "母"


@pytest.mark.asyncio
async def test_hf_translate_to_uses_language_pair_model():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        return httpx.Response(200, json=[{"translation_text": "mère"}])

    assert await hf_gateway(handler).translate_to("mother", "en", "fr") == "mère"
    assert seen["path"] == "/models/Helsinki-NLP/opus-mt-en-fr"


@pytest.mark.asyncio
async def test_hf_error_status():
    def handler(request):
        return httpx.Response(503, text="loading")

    with pytest.raises(UpstreamError) as exc_info:
        await hf_gateway(handler).translate("mother")
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_hf_payment_required():
    def handler(request):
        return httpx.Response(402, json={"error": "quota"})

    with pytest.raises(UpstreamError, match="API requires payment"):
        await hf_gateway(handler).generate("hi")


@pytest.mark.asyncio
async def test_hf_malformed_payload():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(UpstreamError, match="Could not extract translation"):
        await hf_gateway(handler).translate("mother")


@pytest.mark.asyncio
async def test_hf_missing_api_key_never_calls_out():
    def handler(request):
        raise AssertionError("should not be called")

    with pytest.raises(UpstreamError, match="HUGGINGFACE_API_KEY"):
        await hf_gateway(handler, api_key="").translate("mother")


@pytest.mark.asyncio
async def test_hf_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamError):
        await hf_gateway(handler).translate("mother")


@pytest.mark.asyncio
async def test_hf_generate_prepends_cache_bust_token():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["path"] = request.url.path
        return httpx.Response(200, json=[{"generated_text": "##start response## ok ##end response##"}])

    result = await hf_gateway(handler).generate("Explain this", "some/model")
    assert result == "##start response## ok ##end response##"
    assert seen["path"] == "/models/some/model"

    inputs = seen["body"]["inputs"]
    assert inputs.endswith("Explain this")
    prefix = inputs[: -len("Explain this")]
    assert prefix and all(c in _INVISIBLE_CHARS for c in prefix)


@pytest.mark.asyncio
async def test_hf_generate_default_model():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        return httpx.Response(200, json={"generated_text": "x"})

    await hf_gateway(handler).generate("hi")
    assert seen["path"] == "/models/mistralai/Mistral-Nemo-Instruct-2407"


def ollama_gateway(handler):
    return OllamaGateway(base_url="http://ollama.test", model="qwen", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_ollama_generate():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": {"role": "assistant", "content": "answer"}})

    assert await ollama_gateway(handler).generate("prompt") == "answer"
    assert seen["body"]["model"] == "qwen"
    assert seen["body"]["stream"] is False
    assert seen["body"]["messages"][0]["content"].endswith("prompt")


@pytest.mark.asyncio
async def test_ollama_translate_strips_quotes():
    def handler(request):
        return httpx.Response(200, json={"message": {"content": " 「母」\n"}})

    assert await ollama_gateway(handler).translate("mother") == "母"


@pytest.mark.asyncio
async def test_ollama_error_status():
    def handler(request):
        return httpx.Response(500)

    with pytest.raises(UpstreamError) as exc_info:
        await ollama_gateway(handler).generate("prompt")
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_ollama_missing_content():
    def handler(request):
        return httpx.Response(200, json={"done": True})

    with pytest.raises(UpstreamError):
        await ollama_gateway(handler).generate("prompt")


@pytest.mark.asyncio
async def test_ollama_check():
    def up(request):
        return httpx.Response(200, json={"models": []})

    def down(request):
        raise httpx.ConnectError("refused", request=request)

    assert await ollama_gateway(up).check() is True
    assert await ollama_gateway(down).check() is False


@pytest.mark.asyncio
async def test_hf_check_asks_the_hub():
    seen = []

    def valid(request):
        seen.append((str(request.url), request.headers.get("authorization")))
        return httpx.Response(200, json={"name": "someone"})

    def rejected(request):
        return httpx.Response(401, json={"error": "Invalid credentials"})

    def down(request):
        raise httpx.ConnectError("refused", request=request)

    assert await hf_gateway(valid).check() is True
    assert seen == [("https://hub.test/api/whoami-v2", "Bearer hf-test")]
    assert await hf_gateway(rejected).check() is False
    assert await hf_gateway(down).check() is False


@pytest.mark.asyncio
async def test_hf_check_without_api_key():
    def handler(request):
        raise AssertionError("should not be called")

    assert await hf_gateway(handler, api_key="").check() is False


def test_build_gateway():
    assert isinstance(build_gateway("huggingface"), HuggingFaceGateway)
    assert isinstance(build_gateway("ollama"), OllamaGateway)
    with pytest.raises(ValueError):
        build_gateway("nope")
