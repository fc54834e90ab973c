"""
Cascade Translator - debounced fan-out of one edit to every other language.

Per cell key ``(owner, field, item_id)`` the lifecycle is
Idle -> Pending (debounce armed) -> InFlight (provider calls running) -> Idle.

- An edit while Idle or Pending re-arms the debounce timer, so a burst of
  keystrokes produces one cascade.
- On expiry one provider call per target language is issued concurrently,
  bounded by the shared ConcurrencyLimiter.
- Each completion is posted to the overlay store on its own. A failed
  language is logged and recorded; its cell keeps the previous value and
  sibling languages are unaffected.
- An edit while InFlight does not cancel the running calls; it arms a new
  cycle whose results land last.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, Hashable, List, Optional, Sequence, Set, Tuple

from heritage_console.core.concurrency import ConcurrencyLimiter
from heritage_console.core.debounce import DebounceScheduler
from heritage_console.core.exceptions import TranslationError, TranslationFailure
from heritage_console.models.internal_models import CascadeState, Owner, TranslationCompleted
from heritage_console.services.overlay_store import OverlayStore
from heritage_console.services.translation_provider import BaseTranslationProvider

logger = logging.getLogger(__name__)

CellKey = Tuple[Owner, str, Optional[str]]


class CascadeTranslator:
    """Debounced, failure-isolated auto-translation for one edit session"""

    def __init__(
        self,
        store: OverlayStore,
        provider: BaseTranslationProvider,
        languages: Sequence[str],
        limiter: ConcurrencyLimiter,
        debounce_seconds: float = 1.0,
        session_token: Optional[str] = None,
    ):
        self.store = store
        self.provider = provider
        self.languages = list(languages)
        self.limiter = limiter
        self.session_token = session_token
        self.failures: List[TranslationFailure] = []
        self.cascades_started = 0
        self._scheduler = DebounceScheduler(debounce_seconds)
        self._in_flight: Dict[CellKey, int] = defaultdict(int)

    # -- state -------------------------------------------------------------

    def state(self, owner: Owner, field: str, item_id: Optional[str] = None) -> CascadeState:
        key = (owner, field, item_id)
        if self._scheduler.is_armed(key):
            return CascadeState.PENDING
        if self._in_flight.get(key):
            return CascadeState.IN_FLIGHT
        return CascadeState.IDLE

    def _busy_keys(self) -> Set[Hashable]:
        return set(self._scheduler.armed_keys()) | {k for k, n in self._in_flight.items() if n}

    def is_busy(self, owner: Owner, field: str) -> bool:
        """True while any cell of the field (array items included) is Pending or InFlight"""
        return any(k[0] == owner and k[1] == field for k in self._busy_keys())

    def busy_fields(self, owner: Owner) -> Set[str]:
        return {k[1] for k in self._busy_keys() if k[0] == owner}

    # -- events ------------------------------------------------------------

    def on_edit(
        self,
        owner: Owner,
        field: str,
        source_lang: str,
        text: str,
        item_id: Optional[str] = None,
    ) -> CascadeState:
        """Arm (or re-arm) the cascade for one edited cell"""
        key = (owner, field, item_id)
        if not text or not text.strip():
            self._scheduler.cancel(key)
            return self.state(owner, field, item_id)

        async def fire():
            await self._cascade(key, source_lang, text)

        self._scheduler.arm(key, fire)
        return self.state(owner, field, item_id)

    async def _cascade(self, key: CellKey, source_lang: str, text: str) -> None:
        owner, field, item_id = key
        targets = [lang for lang in self.languages if lang != source_lang]
        self.cascades_started += 1
        self._in_flight[key] += 1
        logger.info(
            f"Cascading '{field}' from {source_lang} to {len(targets)} languages",
            extra={"owner": owner, "field": field, "source_language": source_lang, "targets": targets},
        )
        try:
            await asyncio.gather(
                *(self._translate_target(key, source_lang, text, target) for target in targets)
            )
        finally:
            self._in_flight[key] -= 1
            if not self._in_flight[key]:
                del self._in_flight[key]

    async def _translate_target(self, key: CellKey, source_lang: str, text: str, target: str) -> None:
        owner, field, item_id = key
        try:
            result = await self.limiter.run(
                f"translate:{field}:{target}", self.provider.translate, text, target, source_lang
            )
            translations = result.get(target)
            if not translations:
                raise TranslationError(f"No translation returned for '{target}'")
        except Exception as e:
            reason = e.message if isinstance(e, TranslationError) else (str(e) or type(e).__name__)
            self._record_failure(owner, field, target, reason)
            return

        self.store.post(TranslationCompleted(
            owner=owner,
            field=field,
            language=target,
            text=translations[0],
            item_id=item_id,
            session_token=self.session_token,
        ))

    def _record_failure(self, owner: Owner, field: str, language: str, reason: str) -> None:
        failure = TranslationFailure(owner, field, language, reason)
        self.failures.append(failure)
        logger.warning(
            failure.message,
            extra={"error_code": failure.error_code.value, "details": failure.details},
        )

    # -- bulk translation --------------------------------------------------

    async def translate_all(self, owner: Owner, source_lang: str, fields: Sequence[str]) -> int:
        """
        Translate every non-empty field of ``owner`` to all other languages
        in a single multi-text request. Returns the number of cells written.
        """
        present = [
            (field, self.store.get(owner, field, source_lang))
            for field in fields
        ]
        present = [(field, text) for field, text in present if text.strip()]
        if not present:
            return 0

        keys = [(owner, field, None) for field, _ in present]
        for key in keys:
            self._in_flight[key] += 1
        try:
            result = await self.limiter.run(
                f"translate_all:{owner[0]}",
                self.provider.translate_to_all_languages,
                [text for _, text in present],
                self.languages,
                source_lang,
            )
        except Exception as e:
            reason = e.message if isinstance(e, TranslationError) else (str(e) or type(e).__name__)
            for lang in self.languages:
                if lang != source_lang:
                    self._record_failure(owner, "*", lang, reason)
            return 0
        finally:
            for key in keys:
                self._in_flight[key] -= 1
                if not self._in_flight[key]:
                    del self._in_flight[key]

        written = 0
        for lang, texts in result.items():
            if lang == source_lang:
                continue
            if len(texts) != len(present):
                self._record_failure(
                    owner, "*", lang, f"Expected {len(present)} translations, got {len(texts)}"
                )
                continue
            for (field, _), translated in zip(present, texts):
                self.store.post(TranslationCompleted(
                    owner=owner,
                    field=field,
                    language=lang,
                    text=translated,
                    session_token=self.session_token,
                ))
                written += 1
        await self.store.flush()
        return written

    # -- lifecycle ---------------------------------------------------------

    async def wait_idle(self) -> None:
        """Wait for armed timers and running cascades, then for the store inbox"""
        await self._scheduler.wait_idle()
        await self.store.flush()

    async def close(self) -> None:
        """Cancel every armed timer; running calls finish and their results are dropped as stale"""
        await self._scheduler.close()
