# tests/conftest.py
import asyncio
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

# --- make 'sql_identity' importable from the repo root ---
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _prepare_test_env() -> None:
    tmp = (ROOT / ".pytest_tmp").absolute()
    tmp.mkdir(exist_ok=True)
    os.environ["IDENTITY_DB_URL"] = f"sqlite+aiosqlite:///{(tmp / 'test.sqlite3').as_posix()}"
    os.environ["IDENTITY_RESPONSE_HEADER"] = "X-Auth-Token"
    os.environ["LOG_LEVEL"] = "WARNING"


_prepare_test_env()

from sql_identity.core.errors import IdentityConflict, IdentityNotFound, StoreUnavailable
from sql_identity.core.policy import SqlIdentityInner, SqlIdentityPolicy
from sql_identity.db.actor import SqlActor
from sql_identity.db.models import IdentityRecord


@pytest.fixture
def anyio_backend():
    return "asyncio"


class RecordingActor:
    """
    In-memory stand-in for SqlActor. Records every call, can be told to
    fail an operation, and can hold writes until `gate` is set.
    """

    def __init__(self, rows=(), fail=()):
        self.rows: dict[str, IdentityRecord] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail = set(fail)
        self.gate: asyncio.Event | None = None
        self._next_id = 1
        for row in rows:
            self._put(row)

    def _put(self, record: IdentityRecord) -> IdentityRecord:
        if record.id is None:
            record = record.model_copy(update={"id": self._next_id})
        self._next_id = max(self._next_id, record.id) + 1
        self.rows[record.token] = record
        return record

    async def _enter(self, op: str, token: str) -> None:
        self.calls.append((op, token))
        if op != "find" and self.gate is not None:
            await self.gate.wait()
        if op in self.fail:
            raise StoreUnavailable(f"{op} failed: OperationalError")

    def count(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)

    async def find(self, token):
        await self._enter("find", token)
        return self.rows.get(token)

    async def create(self, record):
        await self._enter("create", record.token)
        if record.token in self.rows:
            raise IdentityConflict()
        return self._put(record)

    async def update(self, record):
        await self._enter("update", record.token)
        old = next((r for r in self.rows.values() if r.id == record.id), None)
        if old is None:
            raise IdentityNotFound()
        del self.rows[old.token]
        self.rows[record.token] = record

    async def delete(self, token):
        await self._enter("delete", token)
        self.rows.pop(token, None)

    async def create_tables(self):
        pass

    async def close(self):
        pass


@pytest.fixture
def recording_actor():
    return RecordingActor


@pytest.fixture
def make_policy():
    def _make(actor, header="X-Auth-Token"):
        return SqlIdentityPolicy(SqlIdentityInner(actor, header))

    return _make


@pytest.fixture
def make_request():
    def _make(headers=None, client=("10.0.0.7", 51234)):
        raw = [
            (k.lower().encode("latin-1"), v.encode("latin-1"))
            for k, v in (headers or {}).items()
        ]
        scope = {
            "type": "http",
            "method": "GET",
            "path": "/",
            "query_string": b"",
            "headers": raw,
            "client": client,
        }
        return Request(scope)

    return _make


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{(tmp_path / 'identities.sqlite3').as_posix()}"


@pytest.fixture
async def actor(db_url, anyio_backend):
    a = SqlActor.sqlite(2, db_url)
    await a.create_tables()
    yield a
    await a.close()


@pytest.fixture
def client(tmp_path, monkeypatch):
    """
    App client on a fresh SQLite file per test. Entering the client runs the
    lifespan, which builds the policy and creates the table.
    """
    from sql_identity.core.config import settings
    from sql_identity.main import app

    db_path = tmp_path / "app.sqlite3"
    monkeypatch.setattr(settings, "db_url", f"sqlite+aiosqlite:///{db_path.as_posix()}")
    monkeypatch.setattr(settings, "response_header", "X-Auth-Token")
    with TestClient(app) as c:
        c.db_path = db_path
        yield c
