"""
Translation providers for the content engine.

The remote provider is an edge function wrapping a cloud translation API.
It accepts one or many texts and one or many target languages and answers
either ``{"target": "ja", "translations": [...]}`` (single target) or
``{"results": {"ja": [...], "fr": [...]}}`` (multiple targets); failures
come back as ``{"error": "..."}``. Every response is normalized to
``{language: [translated texts]}``.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Union

import httpx

from heritage_console.config.settings import TranslationProviderSettings
from heritage_console.core.exceptions import TranslationError

logger = logging.getLogger(__name__)

TextInput = Union[str, Sequence[str]]
TargetInput = Union[str, Sequence[str]]


def to_database_language_code(code: str) -> str:
    """Translation tables store upper case language codes"""
    return code.upper()


def from_database_language_code(code: str) -> str:
    return code.lower()


def normalize_response(data) -> Dict[str, List[str]]:
    """
    Normalize single- and multi-target provider responses.

    Raises:
        TranslationError: On an error body or an unrecognized shape
    """
    if not isinstance(data, dict):
        raise TranslationError("Invalid response format from translation service")
    if data.get("error"):
        raise TranslationError(str(data["error"]), details={"response": data})
    if "target" in data and "translations" in data:
        translations = data["translations"]
        if isinstance(translations, str):
            translations = [translations]
        return {str(data["target"]).lower(): [str(t) for t in translations]}
    if "results" in data and isinstance(data["results"], dict):
        normalized: Dict[str, List[str]] = {}
        for lang, translations in data["results"].items():
            if isinstance(translations, str):
                translations = [translations]
            normalized[str(lang).lower()] = [str(t) for t in translations]
        return normalized
    raise TranslationError("Invalid response format from translation service", details={"response": data})


class BaseTranslationProvider(ABC):
    """Abstract base class for translation providers"""

    @abstractmethod
    async def translate(
        self,
        text: TextInput,
        target: TargetInput,
        source: Optional[str] = None
    ) -> Dict[str, List[str]]:
        """Translate text(s) to target language(s); returns language -> texts"""

    async def translate_to_all_languages(
        self,
        texts: Sequence[str],
        languages: Sequence[str],
        source: str
    ) -> Dict[str, List[str]]:
        """
        Translate several texts to every language except ``source`` in one call.

        The source language is echoed back in the result.
        """
        targets = [lang for lang in languages if lang != source]
        if not targets:
            return {source: list(texts)}
        result = await self.translate(list(texts), targets, source)
        result[source] = list(texts)
        return result

    async def health_check(self) -> bool:
        """Check the provider with a probe translation"""
        try:
            result = await self.translate("test", "es", "en")
        except TranslationError as e:
            logger.warning(f"Translation provider health check failed: {e.message}")
            return False
        return bool(result.get("es"))

    async def aclose(self) -> None:
        """Release network resources"""


class HttpTranslationProvider(BaseTranslationProvider):
    """Calls the translate edge function over HTTP"""

    def __init__(
        self,
        settings: TranslationProviderSettings,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.url = settings.url
        self.api_key = settings.api_key
        self.timeout = settings.timeout_seconds
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        if not self.api_key:
            logger.warning("Translation provider API key not configured. Set TRANSLATOR_API_KEY.")

    def _get_headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def translate(
        self,
        text: TextInput,
        target: TargetInput,
        source: Optional[str] = None
    ) -> Dict[str, List[str]]:
        payload = {
            "text": text if isinstance(text, str) else list(text),
            "target": target if isinstance(target, str) else list(target),
        }
        if source:
            payload["source"] = source

        try:
            response = await self._client.post(self.url, json=payload, headers=self._get_headers())
        except httpx.HTTPError as e:
            raise TranslationError(f"Translation request failed: {e}", details={"target": payload["target"]})

        if response.status_code != 200:
            try:
                error_body = response.json()
            except ValueError:
                error_body = {}
            message = error_body.get("error") if isinstance(error_body, dict) else None
            raise TranslationError(
                message or f"HTTP {response.status_code}: {response.reason_phrase}",
                details={"status_code": response.status_code, "target": payload["target"]},
            )

        try:
            data = response.json()
        except ValueError:
            raise TranslationError("Translation service returned a non-JSON body")
        return normalize_response(data)

    async def aclose(self) -> None:
        await self._client.aclose()


class MockTranslationProvider(BaseTranslationProvider):
    """
    Deterministic offline provider for development and tests.

    Known phrases come from a small dictionary, everything else is tagged
    with the target language (``"[JA] text"``). Languages listed in
    ``failing_languages`` raise ``TranslationError``.
    """

    def __init__(self, latency_seconds: float = 0.0, failing_languages: Optional[Sequence[str]] = None):
        self.latency_seconds = latency_seconds
        self.failing_languages = set(failing_languages or [])
        self.calls: List[dict] = []
        self.active_calls = 0
        self.peak_active_calls = 0

        self._phrases = {
            "clock tower": {
                "hi": "घंटाघर", "gu": "ઘડિયાળ ટાવર", "ja": "時計塔",
                "es": "Torre del Reloj", "fr": "Tour de l'Horloge",
            },
            "heritage walk": {
                "hi": "विरासत यात्रा", "gu": "હેરિટેજ વોક", "ja": "ヘリテージウォーク",
                "es": "Paseo patrimonial", "fr": "Promenade patrimoniale",
            },
            "day 1": {
                "hi": "दिन 1", "gu": "દિવસ 1", "ja": "1日目", "es": "Día 1", "fr": "Jour 1",
            },
        }

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def _translate_one(self, text: str, target: str) -> str:
        known = self._phrases.get(text.strip().lower(), {}).get(target)
        if known:
            return known
        return f"[{target.upper()}] {text}"

    async def translate(
        self,
        text: TextInput,
        target: TargetInput,
        source: Optional[str] = None
    ) -> Dict[str, List[str]]:
        self.calls.append({"text": text, "target": target, "source": source})
        self.active_calls += 1
        self.peak_active_calls = max(self.peak_active_calls, self.active_calls)
        try:
            if self.latency_seconds:
                await asyncio.sleep(self.latency_seconds)
            targets = [target] if isinstance(target, str) else list(target)
            texts = [text] if isinstance(text, str) else list(text)
            failed = [lang for lang in targets if lang in self.failing_languages]
            if failed:
                raise TranslationError(f"Simulated failure for {', '.join(failed)}", details={"target": failed})
            if isinstance(target, str):
                data = {"target": target, "translations": [self._translate_one(t, target) for t in texts]}
            else:
                data = {"results": {lang: [self._translate_one(t, lang) for t in texts] for lang in targets}}
            return normalize_response(data)
        finally:
            self.active_calls -= 1


def build_translation_provider(settings: TranslationProviderSettings) -> BaseTranslationProvider:
    if settings.use_mock:
        logger.info("Using mock translation provider")
        return MockTranslationProvider()
    return HttpTranslationProvider(settings)
