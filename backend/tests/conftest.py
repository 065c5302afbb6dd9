"""Shared fixtures for the FocusFlow backend tests.

MongoDB is replaced by a small in-memory fake of the Motor collection API
(find / find_one / insert_one / update_one / delete_one / distinct) so the
real stores, monitor and routes run unchanged against it.
"""

import copy
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Motor fake
# ─────────────────────────────────────────────────────────────────────────────


class _InsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class _UpdateResult:
    def __init__(self, matched_count: int, modified_count: int):
        self.matched_count = matched_count
        self.modified_count = modified_count


class _DeleteResult:
    def __init__(self, deleted_count: int):
        self.deleted_count = deleted_count


def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, cond in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in cond):
                return False
            continue

        value = doc.get(key)
        if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
            for op, arg in cond.items():
                if op == "$ne" and value == arg:
                    return False
                if op == "$in" and value not in arg:
                    return False
                if op == "$exists" and (key in doc) != arg:
                    return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    def sort(self, key: str, direction: int = 1):
        self._docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def limit(self, n: int):
        self._docs = self._docs[:n]
        return self

    async def to_list(self, length: Optional[int] = None):
        return self._docs if length is None else self._docs[:length]

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    def __init__(self):
        self.docs: List[Dict[str, Any]] = []
        self.fail_reads = False
        self.fail_update_ids: set = set()
        self.update_calls: List[Dict[str, Any]] = []

    async def insert_one(self, doc):
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return _InsertResult(doc["_id"])

    async def find_one(self, query, sort=None):
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query):
        if self.fail_reads:
            raise OperationFailure("simulated read failure")
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query)])

    async def update_one(self, query, update):
        self.update_calls.append({"query": query, "update": update})
        if query.get("_id") in self.fail_update_ids:
            raise OperationFailure("simulated write failure")

        for doc in self.docs:
            if _matches(doc, query):
                before = copy.deepcopy(doc)
                doc.update(copy.deepcopy(update.get("$set", {})))
                for key in update.get("$unset", {}):
                    doc.pop(key, None)
                return _UpdateResult(1, int(doc != before))
        return _UpdateResult(0, 0)

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return _DeleteResult(1)
        return _DeleteResult(0)

    async def distinct(self, key, query=None):
        if self.fail_reads:
            raise OperationFailure("simulated read failure")
        values = []
        for doc in self.docs:
            if _matches(doc, query or {}) and doc.get(key) not in values:
                values.append(doc.get(key))
        return values

    async def create_index(self, *args, **kwargs):
        return "index"


class FakeDatabase:
    def __init__(self):
        self.collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())

    async def command(self, name: str):
        return {"ok": 1}


class RecordingDispatcher:
    """Collects notify() calls. Task ids listed in `fail_on` raise."""

    def __init__(self, fail_on: Optional[set] = None):
        self.sent: List[Dict[str, Any]] = []
        self.fail_on = fail_on or set()

    async def notify(self, user_id, event, payload):
        if payload.task_id in self.fail_on:
            raise RuntimeError("push service unavailable")
        self.sent.append({"user_id": user_id, "event": event, "payload": payload})
        return f"n-{len(self.sent)}"


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_user_id() -> str:
    return "user-1"


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def task_store(fake_db):
    from app.crud.tasks import TaskStore

    return TaskStore(fake_db)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def monitor(task_store, dispatcher):
    from app.services.overdue_monitor import OverdueMonitor

    return OverdueMonitor(task_store, dispatcher, debounce_interval=timedelta(minutes=30))


@pytest.fixture
def make_task(fake_db, mock_user_id, now):
    """Insert a raw task document and return its id as a string."""

    def _make(description="Pay rent", user_id=None, **fields):
        doc = {
            "_id": ObjectId(),
            "user_id": user_id or mock_user_id,
            "description": description,
            "status": "active",
            "created_at": now - timedelta(days=1),
        }
        doc.update(fields)
        fake_db["tasks"].docs.append(doc)
        return str(doc["_id"])

    return _make


@pytest.fixture
def raw_task(fake_db):
    """Look up the stored document for a task id."""

    def _get(task_id: str) -> Optional[Dict[str, Any]]:
        for doc in fake_db["tasks"].docs:
            if str(doc["_id"]) == task_id:
                return doc
        return None

    return _get


@pytest.fixture
def dispatcher_factory():
    """Build a RecordingDispatcher that fails for the given task ids."""

    def _make(fail_on=None) -> RecordingDispatcher:
        return RecordingDispatcher(fail_on=fail_on)

    return _make


# ─────────────────────────────────────────────────────────────────────────────
# Gemini fake + API client
# ─────────────────────────────────────────────────────────────────────────────


class FakeGenaiModels:
    def __init__(self):
        self.parsed = None
        self.error: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []

    async def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(parsed=self.parsed)


class FakeGenaiClient:
    """Mimics google.genai.Client's `client.aio.models.generate_content`."""

    def __init__(self):
        self.models = FakeGenaiModels()
        self.aio = SimpleNamespace(models=self.models)


@pytest.fixture
def genai_client() -> FakeGenaiClient:
    return FakeGenaiClient()


@pytest.fixture
def prioritizer(genai_client):
    from app.services.prioritization import TaskPrioritizer

    return TaskPrioritizer(client=genai_client, model="gemini-test")


@pytest.fixture
def test_client(fake_db, prioritizer):
    """FastAPI TestClient wired to the in-memory database.

    The lifespan is not entered, so no real MongoDB or scheduler is started.
    """
    from fastapi.testclient import TestClient

    from app.api.deps import get_prioritizer
    from app.db.mongo import get_db
    from app.main import app

    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_prioritizer] = lambda: prioritizer

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(mock_user_id) -> Dict[str, str]:
    from app.core.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token(mock_user_id)}"}
