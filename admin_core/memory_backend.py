"""In-process stand-in for the hosted backend.

Used for local runs (``ADMIN_BACKEND=memory``), the smoke run and the test
suite.  It honours the same query contract as the REST client, including the
``options(*)`` / ``profiles(name,email)`` embeds the dashboard relies on.
Foreign keys are not enforced, just as the hosted tables don't enforce them.
"""
from __future__ import annotations

import copy
import re
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .backend import BackendClient, BackendErrorInfo, BackendResponse, TableQuery

TABLES: Tuple[str, ...] = ("questions", "options", "profiles", "results")

_EMBED = re.compile(r"(\w+)\(([^()]*)\)")


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _same(a: Any, b: Any) -> bool:
    return a == b or str(a) == str(b)


def _at_least(a: Any, b: Any) -> bool:
    if a is None:
        return False
    try:
        return a >= b
    except TypeError:
        return str(a) >= str(b)


def _singular(table: str) -> str:
    return table[:-1] if table.endswith("s") else table


def _split_columns(columns: str) -> Tuple[List[str], Dict[str, List[str]]]:
    embeds = {name: [c for c in inner.split(",") if c] for name, inner in _EMBED.findall(columns)}
    rest = _EMBED.sub("", columns)
    plain = [c for c in rest.split(",") if c]
    return plain or ["*"], embeds


def _project(row: Dict[str, Any], cols: List[str]) -> Dict[str, Any]:
    if "*" in cols:
        return dict(row)
    return {c: row.get(c) for c in cols}


class MemoryBackendClient(BackendClient):
    kind = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in TABLES}
        self._next_id: Dict[str, int] = {name: 1 for name in TABLES}
        self._failures: List[Tuple[str, str, str]] = []
        self.calls: List[Tuple[str, str]] = []

    # ---- test / seeding helpers ----
    def seed(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        with self._lock:
            return [self._store(table, r) for r in rows]

    def rows(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._tables.get(table, []))

    def inject_failure(self, table: str, action: str, message: str = "injected failure") -> None:
        """Make the next ``action`` on ``table`` fail with ``message``."""
        with self._lock:
            self._failures.append((table, action, message))

    # ---- internals ----
    def _store(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._tables.setdefault(table, [])
        self._next_id.setdefault(table, 1)
        stored = dict(row)
        if stored.get("id") is None:
            stored["id"] = self._next_id[table]
        if isinstance(stored["id"], int):
            self._next_id[table] = max(self._next_id[table], stored["id"] + 1)
        stored.setdefault("created_at", utcnow_iso())
        rows.append(stored)
        return stored

    def _take_failure(self, table: str, action: str) -> Optional[str]:
        for idx, (t, a, msg) in enumerate(self._failures):
            if t == table and a == action:
                self._failures.pop(idx)
                return msg
        return None

    def _matches(self, row: Dict[str, Any], filters: List[Tuple[str, str, Any]]) -> bool:
        for op, col, val in filters:
            if op == "eq" and not _same(row.get(col), val):
                return False
            if op == "gte" and not _at_least(row.get(col), val):
                return False
        return True

    def _embed(self, table: str, row: Dict[str, Any], rel: str, cols: List[str]) -> Any:
        parent_key = f"{_singular(rel)}_id"
        if parent_key in row:
            for other in self._tables.get(rel, []):
                if _same(other.get("id"), row.get(parent_key)):
                    return _project(other, cols)
            return None
        child_key = f"{_singular(table)}_id"
        return [
            _project(other, cols)
            for other in self._tables.get(rel, [])
            if _same(other.get(child_key), row.get("id"))
        ]

    def _shape(self, table: str, rows: List[Dict[str, Any]], columns: str) -> List[Dict[str, Any]]:
        plain, embeds = _split_columns(columns)
        out = []
        for row in rows:
            shaped = _project(row, plain)
            for rel, cols in embeds.items():
                shaped[rel] = self._embed(table, row, rel, cols or ["*"])
            out.append(shaped)
        return copy.deepcopy(out)

    def _execute(self, query: TableQuery) -> BackendResponse:
        with self._lock:
            self.calls.append((query.table, query.action))
            failure = self._take_failure(query.table, query.action)
            if failure:
                return BackendResponse(error=BackendErrorInfo(message=failure))
            if query.table not in self._tables:
                return BackendResponse(
                    error=BackendErrorInfo(message=f'relation "{query.table}" does not exist', code="42P01")
                )
            if query.action == "insert":
                payload = query.payload if isinstance(query.payload, list) else [query.payload]
                stored = [self._store(query.table, dict(r)) for r in payload]
                data = self._shape(query.table, stored, query.columns) if query.returning else None
            elif query.action == "delete":
                keep, removed = [], []
                for row in self._tables[query.table]:
                    (removed if self._matches(row, query.filters) else keep).append(row)
                self._tables[query.table] = keep
                data = self._shape(query.table, removed, query.columns) if query.returning else None
            else:
                found = [r for r in self._tables[query.table] if self._matches(r, query.filters)]
                for col, asc in reversed(query.orders):
                    found.sort(key=lambda r: (r.get(col) is None, r.get(col)), reverse=not asc)
                count = len(found) if query.count else None
                if query.head:
                    return BackendResponse(data=None, count=count)
                return self._finish(query, self._shape(query.table, found, query.columns), count)
        return self._finish(query, data, None)

    @staticmethod
    def _finish(query: TableQuery, data: Any, count: Optional[int]) -> BackendResponse:
        if not query.single_row:
            return BackendResponse(data=data, count=count)
        rows = data or []
        if len(rows) != 1:
            return BackendResponse(
                error=BackendErrorInfo(
                    message="JSON object requested, multiple (or no) rows returned", code="PGRST116"
                )
            )
        return BackendResponse(data=rows[0], count=count)


__all__ = ["MemoryBackendClient", "TABLES", "utcnow_iso"]
