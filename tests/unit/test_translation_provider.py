"""
Unit tests for translation provider response handling
"""
import json

import httpx
import pytest

from heritage_console.config.settings import TranslationProviderSettings
from heritage_console.core.exceptions import TranslationError
from heritage_console.services.translation_provider import (
    HttpTranslationProvider,
    MockTranslationProvider,
    build_translation_provider,
    from_database_language_code,
    normalize_response,
    to_database_language_code,
)


def test_normalize_single_target():
    assert normalize_response({"target": "JA", "translations": ["時計塔"]}) == {"ja": ["時計塔"]}
    assert normalize_response({"target": "hi", "translations": "घंटाघर"}) == {"hi": ["घंटाघर"]}


def test_normalize_multi_target():
    data = {"results": {"es": ["Torre del Reloj"], "fr": ["Tour de l'Horloge"]}}
    assert normalize_response(data) == {"es": ["Torre del Reloj"], "fr": ["Tour de l'Horloge"]}


def test_error_body_raises():
    with pytest.raises(TranslationError) as exc_info:
        normalize_response({"error": "quota exceeded"})
    assert exc_info.value.message == "quota exceeded"


@pytest.mark.parametrize("data", [None, [], {"translations": ["x"]}, {"results": ["x"]}])
def test_unrecognized_shapes_raise(data):
    with pytest.raises(TranslationError):
        normalize_response(data)


def test_language_codes_are_upper_case_in_database():
    assert to_database_language_code("gu") == "GU"
    assert from_database_language_code("GU") == "gu"


def _provider(handler):
    settings = TranslationProviderSettings(url="https://edge.test/translate", api_key="secret")
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTranslationProvider(settings, client=client)


@pytest.mark.asyncio
async def test_http_provider_posts_payload_with_api_key():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["apikey"] = request.headers.get("apikey")
        seen["authorization"] = request.headers.get("authorization")
        return httpx.Response(200, json={"target": "ja", "translations": ["時計塔"]})

    provider = _provider(handler)
    result = await provider.translate("Clock Tower", "ja", "en")
    await provider.aclose()

    assert result == {"ja": ["時計塔"]}
    assert seen["body"] == {"text": "Clock Tower", "target": "ja", "source": "en"}
    assert seen["apikey"] == "secret"
    assert seen["authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_http_provider_multi_target():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json={
            "results": {lang: [f"{lang}:{t}" for t in body["text"]] for lang in body["target"]}
        })

    provider = _provider(handler)
    result = await provider.translate_to_all_languages(["a", "b"], ["en", "es", "fr"], "en")

    assert result == {"en": ["a", "b"], "es": ["es:a", "es:b"], "fr": ["fr:a", "fr:b"]}


@pytest.mark.asyncio
async def test_http_error_status_raises_translation_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "upstream unavailable"})

    provider = _provider(handler)
    with pytest.raises(TranslationError) as exc_info:
        await provider.translate("Clock Tower", "ja")
    assert exc_info.value.message == "upstream unavailable"
    assert exc_info.value.details["status_code"] == 500


@pytest.mark.asyncio
async def test_transport_error_raises_translation_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = _provider(handler)
    with pytest.raises(TranslationError):
        await provider.translate("Clock Tower", "ja")


@pytest.mark.asyncio
async def test_health_check_reports_failures():
    assert await MockTranslationProvider().health_check() is True
    assert await MockTranslationProvider(failing_languages=["es"]).health_check() is False


def test_build_translation_provider():
    assert isinstance(build_translation_provider(TranslationProviderSettings(use_mock=True)), MockTranslationProvider)
