"""
Unit tests for exception payloads and the JSON error response
"""
import json
import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from heritage_console.core.error_handlers import setup_error_handlers
from heritage_console.core.exceptions import (
    BaseUpdateFailure,
    CollectionReconcileFailure,
    ErrorCode,
    SaveInProgressError,
    TranslationFailure,
)
from heritage_console.core.logging import JsonFormatter


def test_translation_failure_details():
    failure = TranslationFailure(("event", 1), "event_name", "ja", "quota exceeded")
    assert failure.error_code is ErrorCode.TRANSLATION_FAILED
    assert failure.to_dict()["details"] == {
        "owner": ["event", 1],
        "field": "event_name",
        "language": "ja",
        "reason": "quota exceeded",
    }


def test_status_codes():
    assert SaveInProgressError("tour", 3).status_code == 409
    assert BaseUpdateFailure("tour", 3, "db down").status_code == 500
    failure = CollectionReconcileFailure("media", 3, "insert", "db down")
    assert (failure.kind, failure.stage) == ("media", "insert")


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("engine", logging.INFO, __file__, 1, "Saved tour 3", (), None)
    record.entity_id = 3
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "Saved tour 3"
    assert payload["entity_id"] == 3
    assert payload["level"] == "INFO"


@pytest.mark.asyncio
async def test_console_error_becomes_error_response():
    app = FastAPI()
    setup_error_handlers(app)

    @app.get("/busy")
    async def busy():
        raise SaveInProgressError("tour", 3)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.get("/busy")

    assert r.status_code == 409
    body = r.json()
    assert body["error_code"] == "SAVE_IN_PROGRESS"
    assert body["details"] == {"variant": "tour", "entity_id": 3}
    assert body["request_id"]
