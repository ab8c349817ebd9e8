"""Table-scoped client for the hosted backend.

The dashboard only ever needs a handful of query-builder calls (select with
equality / lower-bound filters and ordering, insert, delete).  Every call ends
in ``execute()`` which returns a :class:`BackendResponse`; errors come back as
values and never as exceptions, so callers must check ``response.error``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from . import config

log = logging.getLogger(__name__)


@dataclass
class BackendErrorInfo:
    message: str
    code: Optional[str] = None
    kind: str = "backend"


@dataclass
class BackendResponse:
    data: Any = None
    error: Optional[BackendErrorInfo] = None
    count: Optional[int] = None


@dataclass
class TableQuery:
    """Accumulates one request against a table; nothing is sent until execute()."""

    client: "BackendClient"
    table: str
    action: str = "select"
    columns: str = "*"
    filters: List[Tuple[str, str, Any]] = field(default_factory=list)
    orders: List[Tuple[str, bool]] = field(default_factory=list)
    payload: Any = None
    count: Optional[str] = None
    head: bool = False
    returning: bool = False
    single_row: bool = False

    def select(self, columns: str = "*", count: Optional[str] = None, head: bool = False) -> "TableQuery":
        if self.action == "insert":
            # insert(...).select() asks for the inserted rows back
            self.returning = True
        else:
            self.action = "select"
        self.columns = re.sub(r"\s+", "", columns or "*")
        self.count = count
        self.head = head
        return self

    def insert(self, rows: Any, returning: bool = False) -> "TableQuery":
        self.action = "insert"
        self.payload = rows
        self.returning = returning
        return self

    def delete(self) -> "TableQuery":
        self.action = "delete"
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        self.filters.append(("eq", column, value))
        return self

    def gte(self, column: str, value: Any) -> "TableQuery":
        self.filters.append(("gte", column, value))
        return self

    def order(self, column: str, ascending: bool = True) -> "TableQuery":
        self.orders.append((column, ascending))
        return self

    def single(self) -> "TableQuery":
        self.single_row = True
        return self

    def execute(self) -> BackendResponse:
        log.debug("%s %s filters=%s", self.action, self.table, self.filters)
        return self.client._execute(self)


class BackendClient:
    kind = "base"
    is_configured = True

    def table(self, name: str) -> TableQuery:
        return TableQuery(client=self, table=name)

    def _execute(self, query: TableQuery) -> BackendResponse:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self) -> None:
        pass


class UnconfiguredBackendClient(BackendClient):
    """Stands in when the endpoint URL or key is missing.

    Every call fails with an ``unconfigured`` error so the page can say so
    instead of showing empty tables.
    """

    kind = "unconfigured"
    is_configured = False

    def _execute(self, query: TableQuery) -> BackendResponse:
        return BackendResponse(
            error=BackendErrorInfo(
                message="Backend is not configured: set SUPABASE_URL and SUPABASE_ANON_KEY",
                kind="unconfigured",
            )
        )


_CONTENT_RANGE = re.compile(r"(?:\d+-\d+|\*)/(\d+|\*)")


def _parse_count(header: Optional[str]) -> Optional[int]:
    if not header:
        return None
    m = _CONTENT_RANGE.search(header)
    if not m or m.group(1) == "*":
        return None
    return int(m.group(1))


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RestBackendClient(BackendClient):
    """PostgREST-style REST endpoint (``<url>/rest/v1/<table>``) reached over httpx."""

    kind = "rest"

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = config.BACKEND_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._http = httpx.Client(
            base_url=f"{self.url}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def _params(self, query: TableQuery) -> List[Tuple[str, str]]:
        params: List[Tuple[str, str]] = []
        if query.action == "select" or query.returning:
            params.append(("select", query.columns or "*"))
        for op, col, val in query.filters:
            params.append((col, f"{op}.{_format_value(val)}"))
        if query.orders:
            params.append(
                ("order", ",".join(f"{col}.{'asc' if asc else 'desc'}" for col, asc in query.orders))
            )
        return params

    def _headers(self, query: TableQuery) -> Dict[str, str]:
        prefer: List[str] = []
        if query.action in ("insert", "delete"):
            prefer.append("return=representation" if query.returning else "return=minimal")
        if query.count:
            prefer.append(f"count={query.count}")
        headers: Dict[str, str] = {}
        if prefer:
            headers["Prefer"] = ",".join(prefer)
        if query.single_row:
            headers["Accept"] = "application/vnd.pgrst.object+json"
        return headers

    def _execute(self, query: TableQuery) -> BackendResponse:
        if query.action == "select":
            method = "HEAD" if query.head else "GET"
        elif query.action == "insert":
            method = "POST"
        else:
            method = "DELETE"
        try:
            resp = self._http.request(
                method,
                f"/{query.table}",
                params=self._params(query),
                headers=self._headers(query),
                json=query.payload if query.action == "insert" else None,
            )
        except httpx.HTTPError as exc:
            log.warning("%s %s failed: %s", method, query.table, exc)
            return BackendResponse(error=BackendErrorInfo(message=str(exc) or type(exc).__name__, kind="transport"))

        if config.DEBUG_REQUESTS:
            log.info("%s %s -> %s", method, resp.request.url, resp.status_code)

        count = _parse_count(resp.headers.get("content-range"))
        if resp.status_code >= 400:
            return BackendResponse(error=self._error_from(resp), count=count)
        if query.head or not resp.content:
            return BackendResponse(data=None, count=count)
        try:
            data = resp.json()
        except ValueError:
            return BackendResponse(
                error=BackendErrorInfo(message="Backend returned a non-JSON body", kind="decode"),
                count=count,
            )
        return BackendResponse(data=data, count=count)

    @staticmethod
    def _error_from(resp: httpx.Response) -> BackendErrorInfo:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or body.get("error") or resp.reason_phrase or f"HTTP {resp.status_code}"
        return BackendErrorInfo(message=str(message), code=body.get("code") or str(resp.status_code))

    def close(self) -> None:
        self._http.close()


def create_client(cfg: Optional[dict] = None) -> BackendClient:
    """Build the client described by ``cfg`` (defaults to :func:`config.load_config`)."""
    cfg = cfg if cfg is not None else config.load_config()
    backend = (cfg.get("ADMIN_BACKEND") or "rest").lower()
    if backend == "memory":
        from .memory_backend import MemoryBackendClient

        log.info("using in-memory backend")
        return MemoryBackendClient()
    if not config.is_configured(cfg):
        log.warning("backend URL/key missing; running unconfigured")
        return UnconfiguredBackendClient()
    return RestBackendClient(
        cfg["SUPABASE_URL"],
        cfg["SUPABASE_ANON_KEY"],
        timeout=float(cfg.get("BACKEND_TIMEOUT") or config.BACKEND_TIMEOUT),
    )


__all__ = [
    "BackendClient",
    "BackendErrorInfo",
    "BackendResponse",
    "RestBackendClient",
    "TableQuery",
    "UnconfiguredBackendClient",
    "create_client",
]
