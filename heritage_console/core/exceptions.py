"""
Custom exceptions for the Heritage Console content engine.

Translation failures are non-fatal and recorded on the edit session; base
update and collection failures surface to the caller and leave the session
open for retry.
"""

from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for the application."""

    # Translation errors
    TRANSLATION_FAILED = "TRANSLATION_FAILED"
    TRANSLATION_PROVIDER_ERROR = "TRANSLATION_PROVIDER_ERROR"
    UNSUPPORTED_LANGUAGE = "UNSUPPORTED_LANGUAGE"

    # Save pipeline errors
    BASE_UPDATE_FAILED = "BASE_UPDATE_FAILED"
    COLLECTION_RECONCILE_FAILED = "COLLECTION_RECONCILE_FAILED"
    SAVE_IN_PROGRESS = "SAVE_IN_PROGRESS"

    # Stored data errors
    LEGACY_DECODE_FAILED = "LEGACY_DECODE_FAILED"

    # Session / schema errors
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_CLOSED = "SESSION_CLOSED"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    UNKNOWN_VARIANT = "UNKNOWN_VARIANT"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"

    # Generic errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ConsoleError(Exception):
    """Base exception for the content engine."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class TranslationError(ConsoleError):
    """Raised by a translation provider when a call fails or returns an error body."""

    def __init__(self, message: str = "Translation provider error", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.TRANSLATION_PROVIDER_ERROR,
            details=details,
            status_code=502
        )


class TranslationFailure(ConsoleError):
    """
    One target language of a cascade failed.

    Never raised out of the cascade; it is recorded on the session and the
    overlay cell for that language keeps its previous value.
    """

    def __init__(self, owner: tuple, field: str, language: str, reason: str):
        super().__init__(
            message=f"Translation of '{field}' to '{language}' failed: {reason}",
            error_code=ErrorCode.TRANSLATION_FAILED,
            details={
                "owner": list(owner),
                "field": field,
                "language": language,
                "reason": reason,
            },
            status_code=502
        )
        self.owner = owner
        self.field = field
        self.language = language


class UnsupportedLanguageError(ConsoleError):
    """Raised when a language code is not one of the supported languages."""

    def __init__(self, language: str, supported_languages: Optional[List[str]] = None):
        details: Dict[str, Any] = {"requested_language": language}
        if supported_languages:
            details["supported_languages"] = supported_languages

        super().__init__(
            message=f"Language '{language}' is not supported",
            error_code=ErrorCode.UNSUPPORTED_LANGUAGE,
            details=details,
            status_code=400
        )


class BaseUpdateFailure(ConsoleError):
    """Writing the entity's scalar fields or translation rows failed; the save is aborted."""

    def __init__(self, variant: str, entity_id: int, reason: str):
        super().__init__(
            message=f"Failed to update {variant} {entity_id}: {reason}",
            error_code=ErrorCode.BASE_UPDATE_FAILED,
            details={"variant": variant, "entity_id": entity_id, "reason": reason},
            status_code=500
        )


class CollectionReconcileFailure(ConsoleError):
    """One collection kind failed to reconcile. Kinds committed earlier stay committed."""

    def __init__(self, kind: str, parent_id: int, stage: str, reason: str):
        super().__init__(
            message=f"Failed to {stage} {kind} rows for parent {parent_id}: {reason}",
            error_code=ErrorCode.COLLECTION_RECONCILE_FAILED,
            details={"kind": kind, "parent_id": parent_id, "stage": stage, "reason": reason},
            status_code=500
        )
        self.kind = kind
        self.stage = stage


class LegacyDecodeFailure(ConsoleError):
    """A stored value looks like serialized data but does not parse."""

    def __init__(self, raw: str, reason: str):
        super().__init__(
            message="Stored value could not be decoded",
            error_code=ErrorCode.LEGACY_DECODE_FAILED,
            details={"raw": raw[:200], "reason": reason},
            status_code=422
        )


class SaveInProgressError(ConsoleError):
    """Raised when a second save is requested for an entity while one is outstanding."""

    def __init__(self, variant: str, entity_id: int):
        super().__init__(
            message=f"A save for {variant} {entity_id} is already in progress",
            error_code=ErrorCode.SAVE_IN_PROGRESS,
            details={"variant": variant, "entity_id": entity_id},
            status_code=409
        )


class SessionClosedError(ConsoleError):
    """Raised when an operation targets a cancelled or closed edit session."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Edit session '{session_id}' is closed",
            error_code=ErrorCode.SESSION_CLOSED,
            details={"session_id": session_id},
            status_code=409
        )


class SessionNotFoundError(ConsoleError):
    def __init__(self, session_id: str):
        super().__init__(
            message=f"Edit session '{session_id}' not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
            details={"session_id": session_id},
            status_code=404
        )


class EntityNotFoundError(ConsoleError):
    def __init__(self, variant: str, entity_id: int):
        super().__init__(
            message=f"{variant} {entity_id} not found",
            error_code=ErrorCode.ENTITY_NOT_FOUND,
            details={"variant": variant, "entity_id": entity_id},
            status_code=404
        )


class UnknownVariantError(ConsoleError):
    def __init__(self, variant: str):
        super().__init__(
            message=f"Unknown business variant '{variant}'",
            error_code=ErrorCode.UNKNOWN_VARIANT,
            details={"variant": variant},
            status_code=400
        )


class UnknownFieldError(ConsoleError):
    """Raised when a field is not declared for the variant or collection kind."""

    def __init__(self, scope: str, field: str):
        super().__init__(
            message=f"Field '{field}' is not editable on {scope}",
            error_code=ErrorCode.UNKNOWN_FIELD,
            details={"scope": scope, "field": field},
            status_code=400
        )
