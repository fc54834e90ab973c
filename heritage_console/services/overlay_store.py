"""
Translation Overlay Store - per-session multilingual field state.

Holds, for every owner (the edited entity, or a child collection item keyed
by its client id):

- the base record values (source language + untranslated scalars)
- per-language overlay cells for translatable scalar fields
- stable-id array items for translatable array fields

Synchronous operations run on the event loop thread and never suspend, so a
reader never sees a half-applied update. Asynchronous translation results
arrive as ``TranslationCompleted`` messages through a single inbox drained by
the store's own consumer task.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from heritage_console.models.internal_models import ArrayItem, Owner, TranslationCompleted

logger = logging.getLogger(__name__)


class OverlayStore:
    """Owner -> field -> language -> text, with write-through to the base record"""

    def __init__(self, source_language: str = "en", session_token: Optional[str] = None):
        self.source_language = source_language
        self.session_token = session_token
        self.closed = False
        self._base: Dict[Owner, Dict[str, Any]] = {}
        self._cells: Dict[Owner, Dict[str, Dict[str, str]]] = {}
        self._arrays: Dict[Owner, Dict[str, List[ArrayItem]]] = {}
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self.dropped_messages = 0

    # -- base record -------------------------------------------------------

    def load_base(self, owner: Owner, values: Dict[str, Any]) -> None:
        self._base[owner] = dict(values)

    def base(self, owner: Owner) -> Dict[str, Any]:
        return dict(self._base.get(owner, {}))

    def set_base_value(self, owner: Owner, field: str, value: Any) -> None:
        """Write an untranslated scalar"""
        self._base.setdefault(owner, {})[field] = value

    # -- scalar cells ------------------------------------------------------

    def get(self, owner: Owner, field: str, lang: str) -> str:
        """
        Overlay value for a cell; for the source language, falls back to
        the base scalar when no overlay cell exists.
        """
        cell = self._cells.get(owner, {}).get(field, {}).get(lang)
        if cell is not None:
            return cell
        if lang == self.source_language:
            value = self._base.get(owner, {}).get(field)
            return "" if value is None else str(value)
        return ""

    def set(self, owner: Owner, field: str, lang: str, value: str) -> None:
        """Merge a single cell; source-language writes also update the base scalar"""
        self._cells.setdefault(owner, {}).setdefault(field, {})[lang] = value
        if lang == self.source_language:
            self._base.setdefault(owner, {})[field] = value

    def cells(self, owner: Owner, field: str) -> Dict[str, str]:
        """Every language value of one field, base scalar included"""
        view = dict(self._cells.get(owner, {}).get(field, {}))
        if self.source_language not in view:
            view[self.source_language] = self.get(owner, field, self.source_language)
        return view

    def languages_with_values(self, owner: Owner) -> Dict[str, Dict[str, str]]:
        """language -> field -> text for every non-empty scalar cell"""
        result: Dict[str, Dict[str, str]] = {}
        for field, by_lang in self._cells.get(owner, {}).items():
            for lang, text in by_lang.items():
                if text and text.strip():
                    result.setdefault(lang, {})[field] = text
        return result

    # -- array fields ------------------------------------------------------

    def load_array(self, owner: Owner, field: str, items: List[ArrayItem]) -> None:
        self._arrays.setdefault(owner, {})[field] = list(items)

    def array_items(self, owner: Owner, field: str) -> List[ArrayItem]:
        return list(self._arrays.get(owner, {}).get(field, []))

    def add_array_item(self, owner: Owner, field: str, lang: str, text: str) -> ArrayItem:
        item = ArrayItem.new({lang: text})
        self._arrays.setdefault(owner, {}).setdefault(field, []).append(item)
        return item

    def set_array_item(self, owner: Owner, field: str, item_id: str, lang: str, text: str) -> bool:
        """Write one language of one array item; False when the item no longer exists"""
        for item in self._arrays.get(owner, {}).get(field, []):
            if item.item_id == item_id:
                item.texts[lang] = text
                return True
        return False

    def remove_array_item(self, owner: Owner, field: str, item_id: str) -> bool:
        items = self._arrays.get(owner, {}).get(field, [])
        remaining = [item for item in items if item.item_id != item_id]
        if len(remaining) == len(items):
            return False
        self._arrays[owner][field] = remaining
        return True

    def array_values(self, owner: Owner, field: str, lang: str) -> List[str]:
        """Ordered non-empty texts of an array field in one language"""
        return [
            item.texts[lang]
            for item in self._arrays.get(owner, {}).get(field, [])
            if item.texts.get(lang, "").strip()
        ]

    # -- ownership ---------------------------------------------------------

    def owners(self) -> List[Owner]:
        return sorted(set(self._base) | set(self._cells) | set(self._arrays))

    def rekey(self, old_owner: Owner, new_owner: Owner) -> None:
        """Move every entry of ``old_owner`` to ``new_owner``"""
        for table in (self._base, self._cells, self._arrays):
            if old_owner in table:
                table[new_owner] = table.pop(old_owner)

    def drop_owner(self, owner: Owner) -> None:
        for table in (self._base, self._cells, self._arrays):
            table.pop(owner, None)

    def reset(self) -> None:
        """Forget all state before rehydrating from a fresh read"""
        self._base.clear()
        self._cells.clear()
        self._arrays.clear()

    # -- message passing ---------------------------------------------------

    def apply(self, message: TranslationCompleted) -> bool:
        """Apply one completed translation; stale messages are dropped"""
        if self.closed or (
            message.session_token is not None and message.session_token != self.session_token
        ):
            self.dropped_messages += 1
            logger.debug(
                "Dropping stale translation result",
                extra={"owner": message.owner, "field": message.field, "language": message.language},
            )
            return False
        if message.item_id is not None:
            return self.set_array_item(
                message.owner, message.field, message.item_id, message.language, message.text
            )
        self.set(message.owner, message.field, message.language, message.text)
        return True

    def post(self, message: TranslationCompleted) -> None:
        """Queue a message for the store's consumer task"""
        if self.closed:
            self.dropped_messages += 1
            return
        if self._consumer is None or self._consumer.done():
            self._consumer = asyncio.get_running_loop().create_task(self._consume())
        self._inbox.put_nowait(message)

    async def _consume(self) -> None:
        while True:
            message = await self._inbox.get()
            try:
                self.apply(message)
            finally:
                self._inbox.task_done()

    async def flush(self) -> None:
        """Wait until every posted message has been applied"""
        if self._consumer is not None:
            await self._inbox.join()

    async def close(self) -> None:
        self.closed = True
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
