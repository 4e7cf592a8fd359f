"""
Unit Tests for the in-memory repository and demo seeding

Run with: pytest tests/test_repository.py -v
"""

import pytest

from services.demo_data import seed_demo_data, DEMO_CLIENTS
from services.auth import DEMO_USER_EMAIL
from services.repository import InMemoryRepository, UserRecord
from whatsapp_integration.models import DocumentDirection


async def _repo_with_client(make_client, make_document, make_template):
    repo = InMemoryRepository()
    await repo.create_client(make_client())
    await repo.create_document(make_document("r1", DocumentDirection.receive))
    await repo.create_document(make_document("s1", DocumentDirection.send))
    await repo.create_template(make_template("global", "g", is_default=True))
    await repo.create_template(make_template("attached", "a", client_id="client-1"))
    await repo.create_template(make_template("other", "o", client_id="client-2"))
    return repo


class TestInMemoryUsers:
    """User records."""

    @pytest.mark.asyncio
    async def test_email_lookup_is_case_insensitive(self):
        repo = InMemoryRepository()
        await repo.create_user(UserRecord(id="u1", email="Ana@Example.com", name="Ana", password_hash="x"))
        user = await repo.get_user_by_email("ana@example.COM")
        assert user is not None
        assert user.id == "u1"

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self):
        repo = InMemoryRepository()
        await repo.create_user(UserRecord(id="u1", email="a@example.com", name="", password_hash="x"))
        with pytest.raises(ValueError):
            await repo.create_user(UserRecord(id="u2", email="A@example.com", name="", password_hash="y"))


class TestInMemoryClientsAndDocuments:
    """Clients, documents and cascade delete."""

    @pytest.mark.asyncio
    async def test_client_comes_with_documents(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        client = await repo.get_client("client-1")
        assert [d.id for d in client.documents] == ["r1", "s1"]

    @pytest.mark.asyncio
    async def test_list_clients_scoped_to_user(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        await repo.create_client(make_client(id="client-2", user_id="user-2"))
        assert [c.id for c in await repo.list_clients("user-1")] == ["client-1"]
        assert [c.id for c in await repo.list_clients("user-2")] == ["client-2"]

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        client = await repo.get_client("client-1")
        client.company_name = "Mutated"
        assert (await repo.get_client("client-1")).company_name == "ABC Ltda"

    @pytest.mark.asyncio
    async def test_update_client(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        updated = await repo.update_client("client-1", {"contact_name": "Joana"})
        assert updated.contact_name == "Joana"
        assert await repo.update_client("missing", {"contact_name": "x"}) is None

    @pytest.mark.asyncio
    async def test_list_documents_by_direction(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        sent = await repo.list_documents("client-1", DocumentDirection.send)
        assert [d.id for d in sent] == ["s1"]

    @pytest.mark.asyncio
    async def test_document_for_unknown_client_rejected(self, make_document):
        repo = InMemoryRepository()
        with pytest.raises(ValueError):
            await repo.create_document(make_document("x", client_id="nope"))

    @pytest.mark.asyncio
    async def test_delete_client_cascades(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        assert await repo.delete_client("client-1") is True
        assert await repo.get_document("r1") is None
        assert await repo.get_template("attached") is None
        assert await repo.get_template("global") is not None
        assert await repo.delete_client("client-1") is False

    @pytest.mark.asyncio
    async def test_update_and_delete_document(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        updated = await repo.update_document("r1", {"received": True})
        assert updated.received is True
        assert await repo.delete_document("r1") is True
        assert await repo.delete_document("r1") is False


class TestInMemoryTemplates:
    """Template visibility filters."""

    @pytest.mark.asyncio
    async def test_global_plus_attached(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        ids = [t.id for t in await repo.list_templates(client_id="client-1")]
        assert ids == ["global", "attached"]

    @pytest.mark.asyncio
    async def test_globals_only_without_client(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        assert [t.id for t in await repo.list_templates()] == ["global"]

    @pytest.mark.asyncio
    async def test_exclude_globals(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        ids = [t.id for t in await repo.list_templates(client_id="client-1", include_global=False)]
        assert ids == ["attached"]

    @pytest.mark.asyncio
    async def test_direction_filter(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        assert await repo.list_templates(direction=DocumentDirection.send) == []

    @pytest.mark.asyncio
    async def test_close_clears_store(self, make_client, make_document, make_template):
        repo = await _repo_with_client(make_client, make_document, make_template)
        await repo.close()
        assert await repo.get_client("client-1") is None
        assert await repo.list_templates() == []


class TestDemoSeeding:
    """DEMO_MODE seeding."""

    @pytest.mark.asyncio
    async def test_seeds_demo_user_and_clients(self):
        repo = InMemoryRepository()
        summary = await seed_demo_data(repo)

        user = await repo.get_user_by_email(DEMO_USER_EMAIL)
        assert user is not None
        clients = await repo.list_clients(user.id)
        assert [c.company_name for c in clients] == [c["company_name"] for c in DEMO_CLIENTS]
        assert summary["clients"] == len(DEMO_CLIENTS)
        assert summary["documents"] == sum(len(c["documents"]) for c in DEMO_CLIENTS)

    @pytest.mark.asyncio
    async def test_seeding_twice_adds_nothing(self):
        repo = InMemoryRepository()
        await seed_demo_data(repo)
        summary = await seed_demo_data(repo)
        assert summary["clients"] == 0
        user = await repo.get_user_by_email(DEMO_USER_EMAIL)
        assert len(await repo.list_clients(user.id)) == len(DEMO_CLIENTS)
