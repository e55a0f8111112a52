"""
Centralized test configuration.

MongoDB is replaced by an in-memory double implementing the part of the Motor
collection API the application uses, unique indexes included.
"""
import copy
import uuid
from datetime import datetime, timezone

import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo.errors import DuplicateKeyError

import database
from core.limiter import limiter
from core.security import create_access_token, hash_password
from models.common import Actor, ParcelStatus, UserRole
from models.parcel import Parcel, StatusLogEntry
from services.parcel_store import ParcelStore

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


# ── Mock Motor ────────────────────────────────────────────────────────────────
class MockUpdateResult:
    def __init__(self, matched_count: int):
        self.matched_count = matched_count
        self.modified_count = matched_count


class MockCollection:
    def __init__(self, name: str):
        self.name = name
        self.docs: list[dict] = []
        self.unique_keys: set[str] = set()

    @staticmethod
    def _matches(doc: dict, query: dict) -> bool:
        return all(doc.get(k) == v for k, v in query.items())

    @staticmethod
    def _project(doc: dict, projection) -> dict:
        out = copy.deepcopy(doc)
        for key, flag in (projection or {}).items():
            if not flag:
                out.pop(key, None)
        return out

    async def create_indexes(self, index_models):
        for model in index_models:
            index = model.document
            if index.get("unique"):
                self.unique_keys.update(index["key"].keys())
        return [m.document["name"] for m in index_models]

    async def find_one(self, query: dict, projection=None):
        for doc in self.docs:
            if self._matches(doc, query):
                return self._project(doc, projection)
        return None

    async def insert_one(self, doc: dict):
        for key in self.unique_keys:
            if any(d.get(key) == doc.get(key) for d in self.docs):
                raise DuplicateKeyError(
                    f"E11000 duplicate key error collection: {self.name} index: {key}_1",
                    11000,
                    {"keyPattern": {key: 1}, "keyValue": {key: doc.get(key)}},
                )
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))

    async def update_one(self, query: dict, update: dict):
        for doc in self.docs:
            if not self._matches(doc, query):
                continue
            for key, value in update.get("$set", {}).items():
                doc[key] = copy.deepcopy(value)
            for key, value in update.get("$inc", {}).items():
                doc[key] = doc.get(key, 0) + value
            for key, value in update.get("$push", {}).items():
                doc.setdefault(key, []).append(copy.deepcopy(value))
            return MockUpdateResult(1)
        return MockUpdateResult(0)


class MockDatabase:
    def __init__(self):
        self._collections: dict[str, MockCollection] = {}

    def __getitem__(self, name: str) -> MockCollection:
        if name not in self._collections:
            self._collections[name] = MockCollection(name)
        return self._collections[name]

    def __getattr__(self, name: str) -> MockCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


# ── Fixtures ──────────────────────────────────────────────────────────────────
@pytest.fixture
async def mock_db():
    mock = MockDatabase()
    database.use_database(mock)
    await database.create_indexes()
    yield mock
    database.use_database(None)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def store(mock_db, users) -> ParcelStore:
    # create_parcel looks up the receiver account
    return ParcelStore(mock_db.parcels)


@pytest.fixture
def sender() -> Actor:
    return Actor(user_id="usr_sender", role=UserRole.SENDER)


@pytest.fixture
def other_sender() -> Actor:
    return Actor(user_id="usr_sender2", role=UserRole.SENDER)


@pytest.fixture
def receiver() -> Actor:
    return Actor(user_id="usr_receiver", role=UserRole.RECEIVER)


@pytest.fixture
def other_receiver() -> Actor:
    return Actor(user_id="usr_receiver2", role=UserRole.RECEIVER)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="usr_admin", role=UserRole.ADMIN)


@pytest.fixture
def parcel_factory():
    """Builds in-memory parcels whose log ends on the requested status."""
    def _make(status: ParcelStatus = ParcelStatus.REQUESTED, **overrides) -> Parcel:
        now = datetime.now(timezone.utc)
        logs = [StatusLogEntry(status=ParcelStatus.REQUESTED, timestamp=now, updated_by="usr_sender")]
        if status != ParcelStatus.REQUESTED:
            logs.append(StatusLogEntry(status=status, timestamp=now, updated_by="usr_admin"))
        fields = {
            "parcel_id":      f"prc_{uuid.uuid4().hex[:12]}",
            "tracking_id":    "TRK-20250101-123456",
            "sender_id":      "usr_sender",
            "receiver_id":    "usr_receiver",
            "parcel_type":    "document",
            "weight":         2.5,
            "fee":            10.0,
            "from_address":   "Dhaka",
            "to_address":     "Chattogram",
            "current_status": status,
            "status_logs":    logs,
            "created_at":     now,
            "updated_at":     now,
        }
        fields.update(overrides)
        return Parcel(**fields)
    return _make


@pytest.fixture
async def users(mock_db):
    """Seeds one account per role plus a banned sender."""
    now = datetime.now(timezone.utc)
    accounts = {
        "sender":        ("usr_sender",    "sender@parcel.test",    "sender",   "active"),
        "other_sender":  ("usr_sender2",   "sender2@parcel.test",   "sender",   "active"),
        "receiver":      ("usr_receiver",  "receiver@parcel.test",  "receiver", "active"),
        "other_receiver": ("usr_receiver2", "receiver2@parcel.test", "receiver", "active"),
        "admin":         ("usr_admin",     "admin@parcel.test",     "admin",    "active"),
        "banned":        ("usr_banned",    "banned@parcel.test",    "sender",   "banned"),
    }
    docs = {}
    for key, (user_id, email, role, status) in accounts.items():
        doc = {
            "user_id":    user_id,
            "full_name":  key.replace("_", " ").title(),
            "email":      email,
            "phone":      "+8801700000000",
            "password":   PASSWORD_HASH,
            "role":       role,
            "status":     status,
            "created_at": now,
            "updated_at": now,
        }
        await mock_db.users.insert_one(doc)
        docs[key] = doc
    return docs


@pytest.fixture
def auth_headers(users):
    def _headers(key: str) -> dict:
        user = users[key]
        token = create_access_token({"sub": user["user_id"], "role": user["role"]})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
async def client(mock_db):
    from main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
