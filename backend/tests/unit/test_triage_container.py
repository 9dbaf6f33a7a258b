from __future__ import annotations

import logging

import httpx
import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from abuse_triage.domain import container
from abuse_triage.domain.identity import ResourceIdentity, ResourceKind
from abuse_triage.settings import settings

WORK_7 = ResourceIdentity(ResourceKind.WORK, "7")


class _Conn:
    """Work 7 whose only approved creatorship is a pseud of the orphan account."""

    def __init__(self, originals, users=None) -> None:
        self.originals = originals
        self.users = users or {}
        self.queries: list[str] = []

    async def fetchrow(self, query: str, *args):
        return {"id": 7, "anonymous": False, "unrevealed": False}

    async def fetch(self, query: str, *args):
        if "original_creators" in query:
            return self.originals
        return [{"pseud_id": 99, "user_id": 1, "approved": True}]

    async def fetchval(self, query: str, *args):
        self.queries.append(query)
        return self.users.get(args[0])


class _Acquire:
    def __init__(self, conn: _Conn) -> None:
        self.conn = conn

    async def __aenter__(self) -> _Conn:
        return self.conn

    async def __aexit__(self, *exc) -> None:
        return None


class _Pool:
    def __init__(self, conn: _Conn) -> None:
        self.conn = conn

    def acquire(self) -> _Acquire:
        return _Acquire(self.conn)


@pytest_asyncio.fixture
async def http():
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="false"))) as client:
        yield client


def _wire(conn: _Conn, http: httpx.AsyncClient) -> None:
    # Same call the app lifespan makes.
    container.configure_postgres(_Pool(conn), FakeRedis(decode_responses=True), http, orphan_account_id=settings.orphan_account_id)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_long_ago_orphaned_work_found_by_orphan_login(
    http: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "orphan_account_id", None)
    conn = _Conn(originals=[], users={"orphan_account": 1})
    _wire(conn, http)
    assert await container.get_engine().creators.resolve(WORK_7) == "orphanedwork"


@pytest.mark.asyncio
async def test_recently_orphaned_work_keeps_original_creator(
    http: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "orphan_account_id", None)
    conn = _Conn(originals=[{"user_id": 20}], users={"orphan_account": 1})
    _wire(conn, http)
    assert await container.get_engine().creators.resolve(WORK_7) == "orphanedwork, 20"
    # second lookup reuses the resolved account id
    await container.get_engine().creators.resolve(WORK_7)
    assert len(conn.queries) == 1


@pytest.mark.asyncio
async def test_orphan_account_id_from_settings_skips_login_lookup(
    http: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "orphan_account_id", 1)
    conn = _Conn(originals=[{"user_id": 20}])
    _wire(conn, http)
    assert await container.get_engine().creators.resolve(WORK_7) == "orphanedwork, 20"
    assert conn.queries == []


@pytest.mark.asyncio
async def test_production_requires_akismet_key(http: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "environment", "production")
    monkeypatch.setattr(settings, "akismet_key", None)
    with pytest.raises(RuntimeError, match="AKISMET_KEY"):
        _wire(_Conn(originals=[]), http)


@pytest.mark.asyncio
async def test_missing_akismet_key_warns_outside_production(
    http: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(settings, "akismet_key", None)
    with caplog.at_level(logging.WARNING, logger="abuse_triage.domain.container"):
        _wire(_Conn(originals=[]), http)
    assert "spam classification disabled" in caplog.text


def test_configure_resets_orphan_account_to_none() -> None:
    container.configure(orphan_account_id=1)
    assert container.get_engine().creators.orphan_account_id == 1
    container.configure()
    assert container.get_engine().creators.orphan_account_id == 1
    container.configure(orphan_account_id=None)
    assert container.get_engine().creators.orphan_account_id is None
