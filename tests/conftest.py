"""
Shared fixtures: in-memory SQLite metadata store, in-memory blob store and
ledger, a registry wired to them, and an HTTP client against the app.
"""

import os

# Settings are cached on first use; point them at throwaway backends first.
os.environ.setdefault("DOCLEDGER_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DOCLEDGER_BLOB_BACKEND", "memory")
os.environ.setdefault("DOCLEDGER_LEDGER_BACKEND", "memory")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.database import Base, get_db
from app.core.errors import LedgerUnavailable
from app.main import app
from app.models import models  # noqa: F401
from app.services.document_registry import DocumentRegistry, configure_backends
from app.services.ledger import InMemoryLedger
from app.services.metadata_store import DescriptiveMetadata, MetadataStore
from app.services.storage import InMemoryBlobStore


class FlakyLedger(InMemoryLedger):
    """In-memory ledger with switchable faults."""

    def __init__(self, confirmation_delay: float = 0.0):
        super().__init__(confirmation_delay=confirmation_delay)
        self.fail_attest = False
        self.fail_status = False

    async def attest(self, fingerprint: str, locator: str, owner_id: str) -> str:
        if self.fail_attest:
            raise LedgerUnavailable("simulated ledger outage")
        return await super().attest(fingerprint, locator, owner_id)

    async def status_of(self, fingerprint: str):
        if self.fail_status:
            raise LedgerUnavailable("simulated ledger outage")
        return await super().status_of(fingerprint)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
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
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def metadata_store(session):
    return MetadataStore(session)


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def ledger():
    return FlakyLedger()


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        blob_backend="memory",
        ledger_backend="memory",
    )


@pytest.fixture
def registry(blob_store, ledger, metadata_store, settings):
    return DocumentRegistry(
        blob_store=blob_store,
        ledger=ledger,
        metadata_store=metadata_store,
        settings=settings,
    )


@pytest.fixture
def diploma():
    """Descriptive metadata for a typical registration."""
    return DescriptiveMetadata(
        name="Bachelor Diploma",
        category="Diploma",
        issuer="State University",
        issue_date="2024-06-01",
        external_ref="DIP-2024-0042",
    )


@pytest.fixture
async def client(session_factory, blob_store, ledger):
    """HTTP client against the app, wired to the test backends."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    configure_backends(blob_store=blob_store, ledger=ledger)
    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    configure_backends()
