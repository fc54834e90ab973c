"""
Decoding of stored field values written by older console versions.

Array fields have been stored as JSON arrays, as PostgreSQL ``text[]``
literals (``{"a","b"}``) and as comma-joined strings. Values that look like
structured data but do not parse decode to an empty value; the failure is
logged, never raised.
"""
import json
import logging
from typing import Any, List

from heritage_console.core.exceptions import LegacyDecodeFailure

logger = logging.getLogger(__name__)


def _log_failure(raw: str, reason: str) -> None:
    failure = LegacyDecodeFailure(raw, reason)
    logger.warning(
        f"Legacy value decode failed: {reason}",
        extra={"error_code": failure.error_code.value, "details": failure.details},
    )


def _parse_pg_array(raw: str) -> List[str]:
    inner = raw[1:-1].strip()
    if not inner:
        return []
    items: List[str] = []
    current: List[str] = []
    quoted = False
    escaped = False
    for ch in inner:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == '"':
            quoted = not quoted
        elif ch == "," and not quoted:
            items.append("".join(current))
            current = []
        else:
            current.append(ch)
    if quoted:
        raise ValueError("unterminated quoted element")
    items.append("".join(current))
    return [item.strip() for item in items if item.strip() and item.strip() != "NULL"]


def decode_array_value(raw: Any) -> List[str]:
    """Decode a stored array field into a list of strings"""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(v).strip() for v in raw if v is not None and str(v).strip()]
    if not isinstance(raw, str):
        return [str(raw)]

    text = raw.strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except ValueError as e:
            _log_failure(text, f"invalid JSON array: {e}")
            return []
        if not isinstance(parsed, list):
            _log_failure(text, "JSON value is not an array")
            return []
        return decode_array_value(parsed)
    if text.startswith("{"):
        if not text.endswith("}"):
            _log_failure(text, "unterminated array literal")
            return []
        try:
            return _parse_pg_array(text)
        except ValueError as e:
            _log_failure(text, str(e))
            return []
    return [part.strip() for part in text.split(",") if part.strip()]
