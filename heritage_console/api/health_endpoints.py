"""
Health check and system status API endpoints.

- GET /health: Provider reachability and open session count
- GET /status: Translator call metrics and error statistics
"""

from fastapi import APIRouter, Depends
from typing import Any, Dict
import logging
import time
from datetime import datetime, timezone

from heritage_console.core.dependencies import ServiceContainer, get_service_container
from heritage_console.core.error_handlers import error_handler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Application start time for uptime calculation
_app_start_time = time.time()


@router.get("/health", summary="Basic health check")
async def health_check(
    container: ServiceContainer = Depends(get_service_container),
) -> Dict[str, Any]:
    """
    Basic health check.

    The service is ``degraded`` when the translation provider fails its
    probe; editing and saving still work, cascades record failures.
    """
    provider_healthy = await container.get_provider().health_check()
    manager = container.get_session_manager()
    return {
        "status": "healthy" if provider_healthy else "degraded",
        "version": container.settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": round(time.time() - _app_start_time, 1),
        "details": {
            "translation_provider": {"status": "healthy" if provider_healthy else "unhealthy"},
            "open_sessions": len(manager.list_sessions()),
        },
    }


@router.get("/status", summary="Detailed engine status")
async def system_status(
    container: ServiceContainer = Depends(get_service_container),
) -> Dict[str, Any]:
    manager = container.get_session_manager()
    return {
        "app_name": container.settings.app_name,
        "environment": container.settings.environment.value,
        "languages": manager.settings.cascade.supported_languages,
        "translator_calls": manager.limiter.get_metrics_summary(),
        "open_sessions": [
            {
                "session_id": s.session_id,
                "variant": s.variant.value,
                "entity_id": s.entity_id,
                "busy_fields": sorted(s.busy_fields),
            }
            for s in manager.list_sessions()
        ],
        "error_statistics": error_handler.get_error_statistics(),
    }
