import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from apps.backend import db
from apps.backend.services.auth.passwords import hash_password
from apps.backend.services.auth.tokens import encode_token
from apps.backend.utils.settings import settings

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


# -------------------------------------------------------------------
# In-memory stand-in for the supabase-py client
# -------------------------------------------------------------------

def _same(a: Any, b: Any) -> bool:
    if a == b:
        return True
    if a is None or b is None or isinstance(a, bool) or isinstance(b, bool):
        return False
    return str(a) == str(b)


class FakeQuery:
    def __init__(self, sb: "FakeSupabase", table: str) -> None:
        self.sb = sb
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List = []
        self.order_by: List = []
        self.limit_n = None
        self.window = None

    # -- operations --
    def select(self, *_cols, **_kw):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def upsert(self, payload, **_kw):
        self.op, self.payload = "upsert", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    # -- filters --
    def eq(self, col, val):
        self.filters.append(lambda r: _same(r.get(col), val))
        return self

    def neq(self, col, val):
        self.filters.append(lambda r: not _same(r.get(col), val))
        return self

    def in_(self, col, vals):
        vals = list(vals)
        self.sb.in_sizes.append(len(vals))
        wanted = {str(v) for v in vals}
        self.filters.append(lambda r: r.get(col) is not None and str(r.get(col)) in wanted)
        return self

    def is_(self, col, val):
        if val in (None, "null"):
            self.filters.append(lambda r: r.get(col) is None)
        else:
            self.filters.append(lambda r: r.get(col) is val)
        return self

    def gt(self, col, val):
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) > val)
        return self

    def gte(self, col, val):
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) >= val)
        return self

    def lt(self, col, val):
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) < val)
        return self

    def order(self, col, desc=False):
        self.order_by.append((col, desc))
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def range(self, start, end):
        self.window = (start, end)
        return self

    # -- execution --
    def _matching(self) -> List[Dict[str, Any]]:
        rows = self.sb.rows(self.table_name)
        return [r for r in rows if all(f(r) for f in self.filters)]

    def execute(self):
        if self.table_name in self.sb.fail_tables:
            raise RuntimeError(f"table {self.table_name} unavailable")

        if self.op == "select":
            rows = [dict(r) for r in self._matching()]
            for col, desc in reversed(self.order_by):
                rows.sort(key=lambda r: (r.get(col) is None, r.get(col) or ""), reverse=desc)
            if self.window is not None:
                rows = rows[self.window[0]: self.window[1] + 1]
            if self.limit_n is not None:
                rows = rows[: self.limit_n]
            if self.sb.max_rows is not None:
                rows = rows[: self.sb.max_rows]
            return SimpleNamespace(data=rows)

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            return SimpleNamespace(data=[dict(self.sb.add(self.table_name, item)) for item in items])

        if self.op == "update":
            out = []
            for row in self._matching():
                row.update(self.payload)
                out.append(dict(row))
            return SimpleNamespace(data=out)

        if self.op == "upsert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            out = []
            for item in items:
                existing = next((r for r in self.sb.rows(self.table_name) if _same(r.get("id"), item.get("id"))), None)
                if existing and item.get("id") is not None:
                    existing.update(item)
                    out.append(dict(existing))
                else:
                    out.append(dict(self.sb.add(self.table_name, item)))
            return SimpleNamespace(data=out)

        if self.op == "delete":
            doomed = self._matching()
            self.sb.tables[self.table_name] = [r for r in self.sb.rows(self.table_name) if r not in doomed]
            return SimpleNamespace(data=[dict(r) for r in doomed])

        raise AssertionError(f"unsupported op {self.op}")


class FakeBucket:
    def __init__(self, sb: "FakeSupabase", name: str) -> None:
        self.sb = sb
        self.name = name

    def create_signed_upload_url(self, path):
        if self.sb.storage_fails:
            raise RuntimeError("storage down")
        self.sb.signed_paths.append((self.name, path))
        return {"signed_url": f"https://storage.test/upload/{self.name}/{path}?token=t", "path": path}

    def get_public_url(self, path):
        return f"https://storage.test/public/{self.name}/{path}"


class FakeRpc:
    def __init__(self, sb: "FakeSupabase", name: str, params: Dict[str, Any]) -> None:
        self.sb = sb
        self.name = name
        self.params = params

    def execute(self):
        if self.name in self.sb.failing_rpcs:
            raise RuntimeError(f"rpc {self.name} failed")
        self.sb.rpc_calls.append(self.name)
        return SimpleNamespace(data=None)


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_tables: set = set()
        self.failing_rpcs: set = set()
        self.rpc_calls: List[str] = []
        self.signed_paths: List = []
        self.storage_fails = False
        # like PostgREST max-rows: a select never returns more than this
        self.max_rows = None
        self.in_sizes: List[int] = []
        self.storage = SimpleNamespace(from_=lambda bucket: FakeBucket(self, bucket))
        self._tick = 0

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def add(self, table: str, item: Dict[str, Any]) -> Dict[str, Any]:
        # strictly increasing created_at keeps "newest first" deterministic
        self._tick += 1
        row = {"id": str(uuid.uuid4()), "created_at": (_EPOCH + timedelta(seconds=self._tick)).isoformat()}
        row.update({k: v for k, v in item.items() if v is not None or k not in row})
        self.rows(table).append(row)
        return row

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params=None) -> FakeRpc:
        return FakeRpc(self, name, params or {})


# -------------------------------------------------------------------
# Fixtures
# -------------------------------------------------------------------

@pytest.fixture
def fake_sb(monkeypatch):
    fake = FakeSupabase()
    monkeypatch.setattr(db, "_client", fake)
    return fake


@pytest.fixture
def client(fake_sb):
    from apps.backend.main import app

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def run():
    return asyncio.run


def seed_merchant(fake: FakeSupabase, slug: str = "coffee-corner", **extra) -> Dict[str, Any]:
    values = {"name": "Coffee Corner", "slug": slug, "address": "1 Main St", "logo_url": None}
    values.update(extra)
    return fake.add("merchant", values)


def seed_merchant_user(fake: FakeSupabase, merchant_id: str, login: str = "boss", role: str = "admin",
                       password: str = "secret") -> Dict[str, Any]:
    return fake.add("merchant_user", {
        "merchant_id": merchant_id,
        "login": login,
        "password_hash": hash_password(password, iterations=1000),
        "role": role,
        "is_active": True,
    })


def seed_program(fake: FakeSupabase, merchant_id: str, required_punches: int = 3, **extra) -> Dict[str, Any]:
    values = {
        "merchant_id": merchant_id,
        "name": "Coffee Card",
        "description": None,
        "required_punches": required_punches,
        "reward_description": "Free coffee",
        "is_active": True,
        "is_deleted": False,
    }
    values.update(extra)
    return fake.add("loyalty_program", values)


def admin_headers() -> Dict[str, str]:
    token = encode_token({"type": "admin", "superAdmin": True, "login": "admin"}, settings.JWT_SECRET, 3600)
    return {"Authorization": f"Bearer {token}"}


def merchant_headers(user: Dict[str, Any]) -> Dict[str, str]:
    token = encode_token(
        {"type": "merchant", "userId": user["id"], "merchantId": user["merchant_id"], "role": user["role"]},
        settings.JWT_SECRET,
        3600,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def merchant(fake_sb):
    return seed_merchant(fake_sb)


@pytest.fixture
def merchant_admin(fake_sb, merchant):
    return seed_merchant_user(fake_sb, merchant["id"])


@pytest.fixture
def merchant_staff(fake_sb, merchant):
    return seed_merchant_user(fake_sb, merchant["id"], login="barista", role="staff")
