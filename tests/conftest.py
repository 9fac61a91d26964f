from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable

import pytest

from whats_cooking.config import get_settings

TEST_ENV = {
    "SUPABASE_URL": "https://example.supabase.co",
    "SUPABASE_SERVICE_KEY": "service-key",
    "JWT_SECRET": "test-jwt-secret",
    "LLM_PROVIDER": "gemini",
    "GEMINI_API_KEY": "test-gemini-key",
    "RESEND_API_KEY": "test-resend-key",
    "LLM_TIMEOUT_SECONDS": "5",
}


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch):
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class _Query:
    def __init__(
        self,
        db: "FakeSupabase",
        table: str,
        op: str,
        *,
        payload: Any = None,
        fields: str = "*",
        count: str | None = None,
        on_conflict: str | None = None,
    ):
        self.db = db
        self.table = table
        self.op = op
        self.payload = payload
        self.fields = fields
        self.count = count
        self.on_conflict = on_conflict
        self.filters: list[Callable[[dict[str, Any]], bool]] = []
        self.order_field: str | None = None
        self.order_desc = False
        self.limit_count: int | None = None
        self.range_bounds: tuple[int, int] | None = None

    def eq(self, key: str, value: Any):
        self.filters.append(lambda row: row.get(key) == value)
        return self

    def in_(self, key: str, values: list[Any]):
        allowed = set(values)
        self.filters.append(lambda row: row.get(key) in allowed)
        return self

    def order(self, field: str, desc: bool = False):
        self.order_field = field
        self.order_desc = desc
        return self

    def limit(self, value: int):
        self.limit_count = value
        return self

    def range(self, start: int, end: int):
        self.range_bounds = (start, end)
        return self

    def _store(self, item: dict[str, Any]) -> dict[str, Any]:
        row = dict(item)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self.db.rows(self.table).append(row)
        return dict(row)

    def execute(self):
        self.db.calls.append((self.table, self.op))
        self.db.maybe_fail(self.table, self.op)
        rows = self.db.rows(self.table)

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            return SimpleNamespace(data=[self._store(item) for item in items], count=None)

        if self.op == "upsert":
            keys = [key.strip() for key in (self.on_conflict or "id").split(",")]
            for row in rows:
                if all(row.get(key) == self.payload.get(key) for key in keys):
                    row.update(self.payload)
                    return SimpleNamespace(data=[dict(row)], count=None)
            return SimpleNamespace(data=[self._store(self.payload)], count=None)

        matched = [row for row in rows if all(check(row) for check in self.filters)]

        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(row) for row in matched], count=None)

        if self.op == "delete":
            for row in matched:
                rows.remove(row)
            return SimpleNamespace(data=[dict(row) for row in matched], count=None)

        total = len(matched)
        if self.order_field:
            matched = sorted(matched, key=lambda row: row.get(self.order_field) or "", reverse=self.order_desc)
        if self.range_bounds is not None:
            start, end = self.range_bounds
            matched = matched[start : end + 1]
        if self.limit_count is not None:
            matched = matched[: self.limit_count]

        data = [dict(row) for row in matched]
        if "recipe:recipes" in self.fields:
            recipes = {row["id"]: row for row in self.db.rows("recipes")}
            for row in data:
                recipe = recipes.get(row.get("recipe_id"))
                row["recipe"] = dict(recipe) if recipe else None
        return SimpleNamespace(data=data, count=total if self.count == "exact" else None)


class _Table:
    def __init__(self, db: "FakeSupabase", name: str):
        self.db = db
        self.name = name

    def select(self, fields: str = "*", count: str | None = None):
        return _Query(self.db, self.name, "select", fields=fields, count=count)

    def insert(self, payload: Any):
        return _Query(self.db, self.name, "insert", payload=payload)

    def upsert(self, payload: dict[str, Any], on_conflict: str | None = None):
        return _Query(self.db, self.name, "upsert", payload=payload, on_conflict=on_conflict)

    def update(self, payload: dict[str, Any]):
        return _Query(self.db, self.name, "update", payload=payload)

    def delete(self):
        return _Query(self.db, self.name, "delete")


class FakeSupabase:
    """In-memory stand-in for the subset of the Supabase client we use."""

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, str], int] = {}

    def table(self, name: str) -> _Table:
        return _Table(self, name)

    def rows(self, name: str) -> list[dict[str, Any]]:
        return self.tables.setdefault(name, [])

    def fail_after(self, table: str, op: str, successes: int = 0) -> None:
        """Let ``successes`` calls through, then raise on every later one."""
        self._failures[(table, op)] = successes

    def maybe_fail(self, table: str, op: str) -> None:
        remaining = self._failures.get((table, op))
        if remaining is None:
            return
        if remaining <= 0:
            raise RuntimeError(f"{table} {op} failed")
        self._failures[(table, op)] = remaining - 1

    def touched(self, table: str) -> bool:
        return any(name == table for name, _ in self.calls)


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()
