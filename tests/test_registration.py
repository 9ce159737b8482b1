"""
Tests for the registration flow: hash -> store -> attest -> persist.
"""

from unittest.mock import AsyncMock

import pytest

from app.core.errors import (
    ErrorKind,
    InputInvalid,
    MetadataPersistFailure,
    MetadataStoreError,
    StorageFailure,
)
from app.services.hasher import fingerprint
from app.services.ledger.base import Ledger
from app.services.metadata_store import DescriptiveMetadata, MetadataStore
from app.services.registration import RegistrationCoordinator
from app.services.storage.base import BlobStore

PDF = "application/pdf"


class TestRegister:

    @pytest.mark.anyio
    async def test_happy_path(self, registry, blob_store, ledger, metadata_store, diploma):
        record = await registry.register("u1", b"hello", diploma, file_name="diploma.pdf", content_type=PDF)

        assert record.fingerprint == fingerprint(b"hello")
        assert record.owner_id == "u1"
        assert record.attestation_id is not None
        assert record.attested_at is not None
        assert record.size_bytes == 5
        assert record.metadata.issuer == "State University"

        assert await blob_store.read(record.locator) == b"hello"
        status = await ledger.status_of(record.fingerprint)
        assert status.attestation_id == record.attestation_id
        assert await metadata_store.get_by_id(record.id) == record

    @pytest.mark.anyio
    async def test_blob_carries_descriptive_metadata(self, registry, blob_store, diploma):
        record = await registry.register("u1", b"hello", diploma, file_name="diploma.pdf", content_type=PDF)
        blob = await blob_store.stat(record.locator)
        assert blob.content_metadata["name"] == "Bachelor Diploma"
        assert blob.content_metadata["owner_id"] == "u1"
        assert blob.content_metadata["fingerprint"] == record.fingerprint

    @pytest.mark.anyio
    async def test_ledger_outage_still_registers(self, registry, ledger, metadata_store, diploma):
        ledger.fail_attest = True
        record = await registry.register("u1", b"hello", diploma, content_type=PDF)

        assert record.attestation_id is None
        assert record.attested_at is None
        assert await metadata_store.get_by_id(record.id) is not None
        ledger.fail_attest = False
        assert await ledger.status_of(record.fingerprint) is None

    @pytest.mark.anyio
    async def test_storage_failure_creates_nothing(self, ledger, metadata_store, diploma):
        blob_store = AsyncMock(spec=BlobStore)
        blob_store.put.side_effect = StorageFailure("disk full")
        coordinator = RegistrationCoordinator(blob_store, ledger, metadata_store)

        with pytest.raises(StorageFailure) as exc_info:
            await coordinator.register("u1", b"hello", diploma, content_type=PDF)

        assert exc_info.value.kind is ErrorKind.STORAGE_FAILURE
        assert await metadata_store.list_by_owner("u1") == []
        assert await ledger.status_of(fingerprint(b"hello")) is None

    @pytest.mark.anyio
    async def test_persist_failure_reports_orphans(self, blob_store, ledger, diploma):
        metadata_store = AsyncMock(spec=MetadataStore)
        metadata_store.create.side_effect = MetadataStoreError("database is locked")
        coordinator = RegistrationCoordinator(blob_store, ledger, metadata_store)

        with pytest.raises(MetadataPersistFailure) as exc_info:
            await coordinator.register("u1", b"hello", diploma, content_type=PDF)

        failure = exc_info.value
        assert failure.kind is ErrorKind.METADATA_PERSIST_FAILURE
        assert await blob_store.read(failure.locator) == b"hello"
        status = await ledger.status_of(fingerprint(b"hello"))
        assert status.attestation_id == failure.attestation_id

    @pytest.mark.anyio
    async def test_same_content_two_owners(self, registry, metadata_store, diploma):
        first = await registry.register("alice", b"shared", diploma, content_type=PDF)
        second = await registry.register("bob", b"shared", diploma, content_type=PDF)

        assert first.fingerprint == second.fingerprint
        assert first.id != second.id
        assert first.locator != second.locator
        matches = await metadata_store.find_by_fingerprint(first.fingerprint)
        assert [m.owner_id for m in matches] == ["alice", "bob"]

    @pytest.mark.anyio
    async def test_text_fields_are_cleaned(self, registry):
        metadata = DescriptiveMetadata(name="  Lease\x00  Agreement ", category="   ")
        record = await registry.register("u1", b"lease", metadata, file_name="../../lease.pdf", content_type=PDF)
        assert record.metadata.name == "Lease Agreement"
        assert record.metadata.category is None
        assert "/" not in record.file_name


class TestRegisterRejectsInput:
    """Invalid input is rejected before any backend is touched."""

    @pytest.fixture
    def mocks(self):
        return AsyncMock(spec=BlobStore), AsyncMock(spec=Ledger), AsyncMock(spec=MetadataStore)

    @pytest.fixture
    def coordinator(self, mocks):
        return RegistrationCoordinator(*mocks, max_size_bytes=1024)

    @pytest.mark.anyio
    @pytest.mark.parametrize("owner_id, content, name, content_type", [
        ("", b"hello", "Doc", PDF),
        ("u1", b"", "Doc", PDF),
        ("u1", b"x" * 2048, "Doc", PDF),
        ("u1", b"hello", "", PDF),
        ("u1", b"hello", "Doc", "text/html"),
        ("has space", b"hello", "Doc", PDF),
        ("u1", b"hello", "Doc", None),
    ])
    async def test_rejected_without_side_effects(self, coordinator, mocks, owner_id, content, name, content_type):
        with pytest.raises(InputInvalid):
            await coordinator.register(owner_id, content, DescriptiveMetadata(name=name), content_type=content_type)

        blob_store, ledger, metadata_store = mocks
        blob_store.put.assert_not_called()
        ledger.attest.assert_not_called()
        metadata_store.create.assert_not_called()

