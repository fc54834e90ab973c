"""
Shared fixtures: in-memory database, mock translator, engine services and
an HTTP client bound to the app.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

import heritage_console.models  # noqa: F401  registers tables
from heritage_console.config.settings import (
    CascadeSettings,
    PersistenceSettings,
    Settings,
    TranslationProviderSettings,
)
from heritage_console.core.db import Base, build_session_factory
from heritage_console.core.dependencies import ServiceContainer
from heritage_console.main import create_app
from heritage_console.services.edit_session import SessionManager
from heritage_console.services.persistence_gateway import SqlAlchemyPersistenceGateway
from heritage_console.services.translation_provider import MockTranslationProvider

LANGUAGES = ["en", "hi", "gu", "ja", "es", "fr"]


@pytest.fixture
def test_settings():
    return Settings(
        log_format="text",
        translator=TranslationProviderSettings(use_mock=True, api_key="test-key"),
        cascade=CascadeSettings(
            debounce_ms=20,
            max_concurrent_calls=8,
            supported_languages=LANGUAGES,
            source_language="en",
        ),
        database=PersistenceSettings(url="sqlite+aiosqlite:///:memory:"),
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway(session_factory):
    return SqlAlchemyPersistenceGateway(session_factory)


@pytest.fixture
def mock_provider():
    return MockTranslationProvider(latency_seconds=0.01)


@pytest_asyncio.fixture
async def session_manager(gateway, mock_provider, test_settings):
    manager = SessionManager(gateway, mock_provider, test_settings)
    yield manager
    await manager.close_all()


@pytest_asyncio.fixture
async def tour_id(gateway):
    return await gateway.create_entity("tour", {
        "tour_name": "Heritage Walk",
        "city": "Ahmedabad",
        "highlights": ["Clock Tower"],
        "duration_days": 2,
    })


@pytest_asyncio.fixture
async def service_container(gateway, mock_provider, test_settings):
    container = ServiceContainer(test_settings, gateway=gateway, provider=mock_provider)
    await container.initialize_services()
    yield container
    await container.cleanup_services()


@pytest_asyncio.fixture
async def async_client(service_container, test_settings):
    app = create_app(test_settings, container=service_container)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
