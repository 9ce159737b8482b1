"""
DocLedger - API Endpoint Tests
Registration, listing, lookup and verification over HTTP.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.services.hasher import fingerprint

OWNER = {"X-Owner-Id": "user-1"}


async def _register(client: AsyncClient, content: bytes = b"hello", owner: dict = OWNER, **form) -> dict:
    form.setdefault("name", "Bachelor Diploma")
    response = await client.post(
        "/api/documents",
        files={"file": ("diploma.pdf", content, "application/pdf")},
        data=form,
        headers=owner,
    )
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# Registration
# =============================================================================

class TestRegisterDocument:

    @pytest.mark.anyio
    async def test_register(self, client: AsyncClient):
        data = await _register(client, category="Diploma", issuer="State University")

        assert data["fingerprint"] == fingerprint(b"hello")
        assert data["owner_id"] == "user-1"
        assert data["name"] == "Bachelor Diploma"
        assert data["issuer"] == "State University"
        assert data["file_name"] == "diploma.pdf"
        assert data["size_bytes"] == 5
        assert data["attestation_id"].startswith("0x")

    @pytest.mark.anyio
    async def test_register_with_ledger_down(self, client: AsyncClient, ledger):
        ledger.fail_attest = True
        data = await _register(client)
        assert data["attestation_id"] is None

    @pytest.mark.anyio
    async def test_requires_owner_header(self, client: AsyncClient):
        response = await client.post(
            "/api/documents",
            files={"file": ("a.pdf", b"hello", "application/pdf")},
            data={"name": "Doc"},
        )
        assert response.status_code == 401
        assert response.json()["error"] == "authentication_required"

    @pytest.mark.anyio
    async def test_rejects_unsupported_type(self, client: AsyncClient):
        response = await client.post(
            "/api/documents",
            files={"file": ("page.html", b"<html></html>", "text/html")},
            data={"name": "Page"},
            headers=OWNER,
        )
        assert response.status_code == 422
        assert response.json()["error"] == "input_invalid"

    @pytest.mark.anyio
    async def test_rejects_empty_file(self, client: AsyncClient):
        response = await client.post(
            "/api/documents",
            files={"file": ("empty.pdf", b"", "application/pdf")},
            data={"name": "Empty"},
            headers=OWNER,
        )
        assert response.status_code == 422
        assert response.json()["error"] == "input_invalid"

    @pytest.mark.anyio
    async def test_name_is_required(self, client: AsyncClient):
        response = await client.post(
            "/api/documents",
            files={"file": ("a.pdf", b"hello", "application/pdf")},
            headers=OWNER,
        )
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.anyio
    async def test_response_carries_request_id(self, client: AsyncClient):
        response = await client.post(
            "/api/documents",
            files={"file": ("a.pdf", b"hello", "application/pdf")},
            data={"name": "Doc"},
            headers={**OWNER, "X-Request-Id": "req-123"},
        )
        assert response.headers["X-Request-Id"] == "req-123"

    @pytest.mark.anyio
    async def test_error_body_carries_generated_request_id(self, client: AsyncClient):
        response = await client.post(
            "/api/documents",
            files={"file": ("page.html", b"<html></html>", "text/html")},
            data={"name": "Page"},
            headers=OWNER,
        )
        assert response.status_code == 422
        request_id = response.headers["X-Request-Id"]
        assert request_id
        assert response.json()["request_id"] == request_id


# =============================================================================
# Listing and lookup
# =============================================================================

class TestListDocuments:

    @pytest.mark.anyio
    async def test_lists_own_documents_newest_first(self, client: AsyncClient):
        first = await _register(client, b"one", name="One")
        second = await _register(client, b"two", name="Two")
        await _register(client, b"three", owner={"X-Owner-Id": "user-2"}, name="Three")

        response = await client.get("/api/documents", headers=OWNER)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [d["id"] for d in data["documents"]] == [second["id"], first["id"]]

    @pytest.mark.anyio
    async def test_empty_listing(self, client: AsyncClient):
        response = await client.get("/api/documents", headers={"X-Owner-Id": "nobody"})
        assert response.json() == {"documents": [], "total": 0}

    @pytest.mark.anyio
    async def test_list_requires_owner(self, client: AsyncClient):
        response = await client.get("/api/documents")
        assert response.status_code == 401


class TestGetDocument:

    @pytest.mark.anyio
    async def test_detail(self, client: AsyncClient):
        registered = await _register(client)
        response = await client.get(f"/api/documents/{registered['id']}")
        assert response.status_code == 200
        data = response.json()
        assert data["document"]["id"] == registered["id"]
        assert data["retrieval_url"]

    @pytest.mark.anyio
    async def test_unknown_id(self, client: AsyncClient):
        response = await client.get(f"/api/documents/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.anyio
    async def test_malformed_id(self, client: AsyncClient):
        response = await client.get("/api/documents/not-a-uuid")
        assert response.status_code == 422


# =============================================================================
# Verification
# =============================================================================

class TestVerify:

    @pytest.mark.anyio
    async def test_verify_content(self, client: AsyncClient):
        registered = await _register(client)
        response = await client.post(
            "/api/verify/content",
            files={"file": ("copy.pdf", b"hello", "application/pdf")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == "verified"
        assert data["found"] is True
        assert data["document"]["id"] == registered["id"]
        assert data["attestation"]["present"] is True
        assert data["attestation"]["attesting_owner"] == "user-1"

    @pytest.mark.anyio
    async def test_verify_unknown_content(self, client: AsyncClient):
        response = await client.post(
            "/api/verify/content",
            files={"file": ("x.pdf", b"never seen", "application/pdf")},
        )
        data = response.json()
        assert data["kind"] == "not_found"
        assert data["found"] is False
        assert data["attestation"]["present"] is False

    @pytest.mark.anyio
    async def test_verify_by_id(self, client: AsyncClient):
        registered = await _register(client)
        response = await client.get(f"/api/verify/{registered['id']}")
        assert response.status_code == 200
        assert response.json()["kind"] == "verified"

    @pytest.mark.anyio
    async def test_verify_unknown_id(self, client: AsyncClient):
        response = await client.get(f"/api/verify/{uuid4()}")
        assert response.status_code == 200
        assert response.json()["kind"] == "not_found"

    @pytest.mark.anyio
    async def test_verify_partially(self, client: AsyncClient, ledger):
        ledger.fail_attest = True
        registered = await _register(client)
        ledger.fail_attest = False

        response = await client.get(f"/api/verify/{registered['id']}")
        assert response.json()["kind"] == "partially_verified"

    @pytest.mark.anyio
    async def test_verify_fingerprint(self, client: AsyncClient):
        await _register(client)
        response = await client.get(f"/api/verify/fingerprint/0x{fingerprint(b'hello')}")
        assert response.status_code == 200
        assert response.json()["kind"] == "verified"

    @pytest.mark.anyio
    async def test_verify_malformed_fingerprint(self, client: AsyncClient):
        response = await client.get("/api/verify/fingerprint/abc")
        assert response.status_code == 422
        assert response.json()["error"] == "input_invalid"

    @pytest.mark.anyio
    async def test_ledger_outage_is_verification_failure(self, client: AsyncClient, ledger):
        await _register(client)
        ledger.fail_status = True

        response = await client.post(
            "/api/verify/content",
            files={"file": ("copy.pdf", b"hello", "application/pdf")},
        )
        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "verification_failure"
        assert data["details"] == [{"source": "ledger"}]
