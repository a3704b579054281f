# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - An in-memory stand-in for the Supabase client (tables + storage)
# - JWT minting for authenticated API calls
# - Seed helpers for users, listings and bookings
# =============================================================================

import copy
import os
import time
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock, patch
from uuid import uuid4

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("MOCK_PAYMENT_LATENCY_SECONDS", "0")
os.environ.setdefault("MOCK_EMAIL_LATENCY_SECONDS", "0")
os.environ.setdefault("ADMIN_EMAILS", "admin@foodtruckhub.test")

import pytest
from jose import jwt

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]
PUBLIC_URL_BASE = "https://test-project.supabase.co/storage/v1/object/public"


# =============================================================================
# Fake Supabase
# =============================================================================

def _key(value: Any) -> Any:
    """Comparable form of a column value: numbers stay numbers, the rest is text."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return str(value)


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """
    Mimics the postgrest builder chain used by the services:
    select/insert/update/upsert/delete, eq/neq/gt/gte/lt/lte/in_,
    order/range/limit/single, execute.
    """

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.on_conflict = "id"
        self.filters: list = []
        self.orders: list[tuple[str, bool]] = []
        self._range: tuple[int, int] | None = None
        self._limit: int | None = None
        self._single = False

    # Operations
    def select(self, *columns, **kwargs):
        self.op = "select"
        return self

    def insert(self, data, **kwargs):
        self.op, self.payload = "insert", data
        return self

    def update(self, data, **kwargs):
        self.op, self.payload = "update", data
        return self

    def upsert(self, data, on_conflict: str = "id", **kwargs):
        self.op, self.payload, self.on_conflict = "upsert", data, on_conflict
        return self

    def delete(self, **kwargs):
        self.op = "delete"
        return self

    # Filters
    def _where(self, column, predicate):
        def check(row):
            value = row.get(column)
            if value is None:
                return False
            try:
                return predicate(_key(value))
            except TypeError:
                return False
        self.filters.append(check)
        return self

    def eq(self, column, value):
        return self._where(column, lambda v: v == _key(value))

    def neq(self, column, value):
        return self._where(column, lambda v: v != _key(value))

    def gt(self, column, value):
        return self._where(column, lambda v: v > _key(value))

    def gte(self, column, value):
        return self._where(column, lambda v: v >= _key(value))

    def lt(self, column, value):
        return self._where(column, lambda v: v < _key(value))

    def lte(self, column, value):
        return self._where(column, lambda v: v <= _key(value))

    def in_(self, column, values):
        wanted = {_key(v) for v in values}
        return self._where(column, lambda v: v in wanted)

    # Modifiers
    def order(self, column, desc: bool = False, **kwargs):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def single(self):
        self._single = True
        return self

    def _matches(self, row) -> bool:
        return all(check(row) for check in self.filters)

    def execute(self):
        self.db.calls.append((self.table_name, self.op))
        if self.table_name in self.db.fail_tables:
            raise Exception(f"simulated failure on {self.table_name}")

        rows = self.db.tables.setdefault(self.table_name, [])

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResponse([copy.deepcopy(self.db.add_row(self.table_name, item)) for item in items])

        if self.op == "upsert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            keys = [k.strip() for k in self.on_conflict.split(",")]
            out = []
            for item in items:
                existing = next(
                    (r for r in rows if all(_key(r.get(k)) == _key(item.get(k)) for k in keys)),
                    None,
                )
                if existing is not None:
                    existing.update(copy.deepcopy(item))
                    out.append(copy.deepcopy(existing))
                else:
                    out.append(copy.deepcopy(self.db.add_row(self.table_name, item)))
            return FakeResponse(out)

        matched = [r for r in rows if self._matches(r)]

        if self.op == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matched))

        if self.op == "delete":
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(matched))

        result = list(matched)
        for column, desc in reversed(self.orders):
            result.sort(key=lambda r: (r.get(column) is None, _key(r.get(column))), reverse=desc)
        if self._range:
            result = result[self._range[0]:self._range[1] + 1]
        if self._limit is not None:
            result = result[:self._limit]

        if self._single:
            if len(result) != 1:
                raise Exception(
                    "{'code': 'PGRST116', 'message': 'JSON object requested, multiple (or no) rows returned'}"
                )
            return FakeResponse(copy.deepcopy(result[0]))

        return FakeResponse(copy.deepcopy(result))


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path, file, file_options=None):
        self.storage.files[(self.name, path)] = file
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"{PUBLIC_URL_BASE}/{self.name}/{path}"

    def remove(self, paths):
        for path in paths:
            self.storage.files.pop((self.name, path), None)
            self.storage.removed.append((self.name, path))
        return []


class FakeStorage:
    def __init__(self):
        self.files: dict[tuple[str, str], bytes] = {}
        self.removed: list[tuple[str, str]] = []

    def from_(self, bucket):
        return FakeBucket(self, bucket)

    def list_buckets(self):
        return [SimpleNamespace(name="listing-images"), SimpleNamespace(name="profile-photos")]


class FakeSupabase:
    """In-memory Supabase client: tables are lists of dicts."""

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.storage = FakeStorage()
        self.auth = MagicMock()
        self.calls: list[tuple[str, str]] = []
        self.fail_tables: set[str] = set()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def table(self, name):
        return FakeQuery(self, name)

    def _tick(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def add_row(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        row = copy.deepcopy(data)
        row.setdefault("id", str(uuid4()))
        now = self._tick()
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        self.tables.setdefault(table, []).append(row)
        return row

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.get(table, [])

    def get(self, table: str, **where) -> dict[str, Any] | None:
        for row in self.rows(table):
            if all(str(row.get(k)) == str(v) for k, v in where.items()):
                return row
        return None


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_db():
    """Install a fresh FakeSupabase as the service-role client."""
    from lib.supabase_client import SupabaseClient

    db = FakeSupabase()
    previous = SupabaseClient._instance
    SupabaseClient._instance = db
    with patch.object(SupabaseClient, "new_auth_client", return_value=db):
        yield db
    SupabaseClient._instance = previous


@pytest.fixture(autouse=True)
def redis_publish():
    """Capture realtime publishes instead of talking to Redis."""
    client = MagicMock()
    with patch("app.websocket.broadcast.get_redis_client", return_value=client):
        yield client


@pytest.fixture
def outbox():
    """The mock e-mail outbox, emptied before and after each test."""
    from core.services.notification_service import notification_service

    notification_service.clear_sent_emails()
    yield notification_service
    notification_service.clear_sent_emails()


def published_events(redis_client) -> list[dict[str, Any]]:
    """Decode every message captured by the redis_publish fixture."""
    import json
    return [json.loads(call.args[1]) for call in redis_client.publish.call_args_list]


# =============================================================================
# Seed Helpers
# =============================================================================

def seed_user(db: FakeSupabase, role: str = "vendor", **overrides) -> dict[str, Any]:
    user_id = overrides.pop("id", str(uuid4()))
    return db.add_row("users", {
        "id": user_id,
        "email": overrides.pop("email", f"{role}-{user_id[:8]}@example.com"),
        "role": role,
        "first_name": overrides.pop("first_name", "Sam"),
        "last_name": overrides.pop("last_name", "Taylor"),
        "phone": None,
        "stripe_connect_id": None,
        **overrides,
    })


def seed_listing(db: FakeSupabase, owner_id: str, amenities: dict | None = None, **overrides) -> dict[str, Any]:
    listing = db.add_row("listings", {
        "owner_id": owner_id,
        "title": overrides.pop("title", "Riverside Yard"),
        "description": "Gravel yard by the river",
        "address": "1 Quay Street",
        "city": overrides.pop("city", "Manchester"),
        "state": "",
        "postal_code": "M3 3JE",
        "country": "UK",
        "latitude": overrides.pop("latitude", 53.4808),
        "longitude": overrides.pop("longitude", -2.2426),
        "hourly_rate": overrides.pop("hourly_rate", 25.0),
        "daily_rate": overrides.pop("daily_rate", 150.0),
        "weekly_rate": None,
        "min_booking_hours": overrides.pop("min_booking_hours", 1),
        "max_booking_hours": overrides.pop("max_booking_hours", None),
        "space_size_sqm": 40,
        "max_trucks": 1,
        "images": overrides.pop("images", []),
        "status": overrides.pop("status", "active"),
        **overrides,
    })
    if amenities is not None:
        db.add_row("amenities", {"listing_id": listing["id"], **amenities})
    return listing


def seed_booking(db: FakeSupabase, listing_id: str, vendor_id: str, **overrides) -> dict[str, Any]:
    return db.add_row("bookings", {
        "listing_id": listing_id,
        "vendor_id": vendor_id,
        "booking_date": overrides.pop("booking_date", "2030-07-06"),
        "start_time": overrides.pop("start_time", "11:00"),
        "end_time": overrides.pop("end_time", "15:00"),
        "total_hours": overrides.pop("total_hours", 4),
        "total_cost": overrides.pop("total_cost", 100.0),
        "status": overrides.pop("status", "pending"),
        "payment_status": overrides.pop("payment_status", "pending"),
        "stripe_payment_intent_id": None,
        "cancellation_reason": None,
        "special_requests": None,
        "venue_owner_notes": None,
        **overrides,
    })


# =============================================================================
# Auth Helpers
# =============================================================================

def make_token(
    user_id: str,
    email: str = "user@example.com",
    role: str | None = "vendor",
    expires_in: int = 3600,
    secret: str = JWT_SECRET,
) -> str:
    """Mint an HS256 access token shaped like Supabase's."""
    now = int(time.time())
    metadata = {"role": role} if role else {}
    return jwt.encode(
        {
            "sub": user_id,
            "email": email,
            "aud": "authenticated",
            "role": "authenticated",
            "iat": now,
            "exp": now + expires_in,
            "user_metadata": metadata,
        },
        secret,
        algorithm="HS256",
    )


def auth_headers(user: dict[str, Any]) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user['id'], user['email'], user['role'])}"}


@pytest.fixture
def client(fake_db):
    """TestClient with the fake backend installed; lifespan is not run."""
    from fastapi.testclient import TestClient
    from app.main import app

    return TestClient(app)
