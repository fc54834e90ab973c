"""
Dependency injection setup for FastAPI.
Provides dependency providers for the engine's shared services with
lifecycle management.
"""

from fastapi import Request
from typing import Optional
import logging
import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from heritage_console.config.settings import Settings, get_settings
from heritage_console.core.db import build_engine, build_session_factory
from heritage_console.core.exceptions import ConsoleError, ErrorCode
from heritage_console.services.edit_session import SessionManager
from heritage_console.services.persistence_gateway import (
    BasePersistenceGateway,
    SqlAlchemyPersistenceGateway,
)
from heritage_console.services.translation_provider import (
    BaseTranslationProvider,
    build_translation_provider,
)


logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for the engine's process-wide services.

    Owns the database engine, the persistence gateway, the translation
    provider and the session manager. Components can be injected (tests do)
    instead of being built from settings.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        gateway: Optional[BasePersistenceGateway] = None,
        provider: Optional[BaseTranslationProvider] = None,
    ):
        self.settings = settings or get_settings()
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None
        self._gateway = gateway
        self._provider = provider
        self._session_manager: Optional[SessionManager] = None
        self._initialized = False
        self._initialization_lock = asyncio.Lock()

    async def initialize_services(self) -> None:
        """Initialize services in dependency order"""
        async with self._initialization_lock:
            if self._initialized:
                return

            logger.info("Initializing service container")

            if self._gateway is None:
                self._engine = build_engine(self.settings.database.url, self.settings.database.echo)
                self._session_factory = build_session_factory(self._engine)
                self._gateway = SqlAlchemyPersistenceGateway(self._session_factory)

            if self._provider is None:
                self._provider = build_translation_provider(self.settings.translator)

            self._session_manager = SessionManager(self._gateway, self._provider, self.settings)
            self._initialized = True

            logger.info(
                "Service container initialized",
                extra={
                    "languages": self.settings.cascade.supported_languages,
                    "max_concurrent_calls": self.settings.cascade.max_concurrent_calls,
                },
            )

    async def cleanup_services(self) -> None:
        """Close sessions, then release provider and database resources"""
        if not self._initialized:
            return

        logger.info("Cleaning up service container")
        if self._session_manager is not None:
            await self._session_manager.close_all()
        if self._provider is not None:
            await self._provider.aclose()
        if self._engine is not None:
            await self._engine.dispose()
        self._initialized = False

    def _require(self, service, name: str):
        if not self._initialized or service is None:
            raise ConsoleError(
                f"{name} not initialized",
                ErrorCode.INTERNAL_SERVER_ERROR,
                status_code=503,
            )
        return service

    def get_session_manager(self) -> SessionManager:
        return self._require(self._session_manager, "Session manager")

    def get_gateway(self) -> BasePersistenceGateway:
        return self._require(self._gateway, "Persistence gateway")

    def get_provider(self) -> BaseTranslationProvider:
        return self._require(self._provider, "Translation provider")


def get_service_container(request: Request) -> ServiceContainer:
    return request.app.state.service_container


def get_session_manager(request: Request) -> SessionManager:
    """Dependency provider for the session manager"""
    return get_service_container(request).get_session_manager()


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")
