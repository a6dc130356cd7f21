"""Database-backed sources. Rows are ``(id, type, content, title, metadata)``."""

import asyncio
import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from time import monotonic
from typing import Any

import apsw
from psycopg import sql
from psycopg_pool import ConnectionPool

from knowledge_kit.documents.types import Document, DocumentType
from knowledge_kit.observability import names

from .base import BaseSource, SourceContext, SourceNotConnectedError, SourceResult

logger = logging.getLogger(__name__)

DEFAULT_QUERY = "SELECT id, type, content, title, metadata FROM documents"


class _RowSource(BaseSource):
    def _row_to_document(self, row: Sequence[Any]) -> Document:
        document_id, document_type, content, title, metadata = row
        if isinstance(metadata, (str, bytes)):
            metadata = json.loads(metadata)
        document_type = DocumentType(document_type or DocumentType.TEXT.value)
        return Document(
            id=str(document_id),
            type=document_type,
            content=content or "",
            title=title,
            metadata=self.create_metadata(
                **{**(metadata or {}), "type": document_type.value}
            ),
        )

    def _record_fetch(self, start: float, count: int) -> None:
        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.SOURCE_FETCH_DURATION, elapsed_ms, labels={"source": self.name}
        )
        self.metrics_hook.increment(
            names.SOURCE_DOCUMENTS_FETCHED, count, labels={"source": self.name}
        )


class PostgresSource(_RowSource):
    """Documents selected from PostgreSQL through a psycopg connection pool.

    ``query`` must return the ``(id, type, content, title, metadata)``
    columns; it is wrapped as a subquery for counting and id lookups.
    """

    def __init__(
        self,
        name: str,
        dsn: str,
        query: str = DEFAULT_QUERY,
        description: str = "",
        pool_min_size: int | None = None,
        pool_max_size: int | None = None,
        **kwargs,
    ) -> None:
        super().__init__(name, description or "PostgreSQL documents", **kwargs)
        self._dsn = dsn
        self._query = sql.SQL(query)  # type: ignore[arg-type]
        self._pool_min_size = self._get_param_value(
            pool_min_size, "KNOWLEDGE_KIT_PG_POOL_MIN_SIZE", 1
        )
        self._pool_max_size = self._get_param_value(
            pool_max_size, "KNOWLEDGE_KIT_PG_POOL_MAX_SIZE", 4
        )
        self._pool: ConnectionPool | None = None

    async def connect(self, context: SourceContext) -> None:
        start = monotonic()
        self._pool = await asyncio.to_thread(
            ConnectionPool,
            self._dsn,
            min_size=self._pool_min_size,
            max_size=self._pool_max_size,
            open=True,
        )
        self._connected = True
        self.metrics_hook.record_latency(
            names.SOURCE_CONNECT_DURATION,
            1000 * (monotonic() - start),
            labels={"source": self.name},
        )

    async def disconnect(self) -> None:
        if self._pool is not None:
            await asyncio.to_thread(self._pool.close)
            self._pool = None
        self._connected = False

    async def fetch_documents(self, context: SourceContext) -> SourceResult:
        start = monotonic()
        rows = await asyncio.to_thread(self._fetchall, self._query, ())
        documents = [self._row_to_document(row) for row in rows]
        self._record_fetch(start, len(documents))
        return SourceResult(documents=documents)

    async def fetch_document(
        self, document_id: str, context: SourceContext
    ) -> Document | None:
        query = sql.SQL("SELECT * FROM ({query}) AS docs WHERE docs.id = %s").format(
            query=self._query
        )
        rows = await asyncio.to_thread(self._fetchall, query, (document_id,))
        return self._row_to_document(rows[0]) if rows else None

    async def get_document_count(self) -> int:
        query = sql.SQL("SELECT COUNT(*) FROM ({query}) AS docs").format(
            query=self._query
        )
        rows = await asyncio.to_thread(self._fetchall, query, ())
        count: int = rows[0][0]
        return count

    def _fetchall(self, query: sql.Composable, params: tuple) -> list[tuple]:
        if self._pool is None:
            raise SourceNotConnectedError(f"Source '{self.name}' is not connected")
        with self._pool.connection() as conn, conn.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()

    @staticmethod
    def _get_param_value(passed_value: int | None, env_var: str, default: int) -> int:
        if passed_value is not None:
            return passed_value
        env_value = os.environ.get(env_var)
        if env_value is not None:
            return int(env_value)
        return default


class SQLiteSource(_RowSource):
    """Documents read from a SQLite table via apsw.

    The table needs ``id, type, content, title, metadata`` columns, with
    ``metadata`` holding a JSON object.
    """

    def __init__(
        self,
        name: str,
        db_path: str | Path,
        table: str = "documents",
        description: str = "",
        **kwargs,
    ) -> None:
        super().__init__(name, description or f"SQLite documents in {db_path}", **kwargs)
        if not table.isidentifier():
            raise ValueError(f"Invalid table name: {table}")
        self._db_path = str(db_path)
        self._table = table
        self._conn: apsw.Connection | None = None

    async def connect(self, context: SourceContext) -> None:
        self._conn = await asyncio.to_thread(
            apsw.Connection, self._db_path, flags=apsw.SQLITE_OPEN_READONLY
        )
        self._connected = True

    async def disconnect(self) -> None:
        if self._conn is not None:
            await asyncio.to_thread(self._conn.close)
            self._conn = None
        self._connected = False

    async def fetch_documents(self, context: SourceContext) -> SourceResult:
        start = monotonic()
        rows = await asyncio.to_thread(
            self._fetchall,
            f"SELECT id, type, content, title, metadata FROM {self._table} ORDER BY id",
            (),
        )
        documents = [self._row_to_document(row) for row in rows]
        self._record_fetch(start, len(documents))
        return SourceResult(documents=documents, metadata={"table": self._table})

    async def fetch_document(
        self, document_id: str, context: SourceContext
    ) -> Document | None:
        rows = await asyncio.to_thread(
            self._fetchall,
            f"SELECT id, type, content, title, metadata FROM {self._table} WHERE id = ?",
            (document_id,),
        )
        return self._row_to_document(rows[0]) if rows else None

    async def get_document_count(self) -> int:
        rows = await asyncio.to_thread(
            self._fetchall, f"SELECT COUNT(*) FROM {self._table}", ()
        )
        count: int = rows[0][0]
        return count

    def _fetchall(self, query: str, params: tuple) -> list[tuple]:
        if self._conn is None:
            raise SourceNotConnectedError(f"Source '{self.name}' is not connected")
        return list(self._conn.execute(query, params))
