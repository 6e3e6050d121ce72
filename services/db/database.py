"""
Directory Helper Module

Provides the member directory used by the bot: a small document store on top
of aiosqlite. Collections hold JSON documents that are queried by equality on
named fields, optionally ordered and limited, and updated one document at a
time.
"""

import asyncio
import json
import re
import sqlite3
import uuid
from collections.abc import Callable, Mapping
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from utils.errors import DirectoryError
from utils.logging import get_logger

from .schema import init_schema

logger = get_logger(__name__)

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _json_path(field: str) -> str:
    if not _FIELD_NAME.match(field):
        raise DirectoryError(f"Invalid field name: {field!r}")
    return f"json_extract(data, '$.{field}')"


def _sql_value(value: Any) -> Any:
    # json_extract yields 1/0 for JSON booleans
    if isinstance(value, bool):
        return int(value)
    return value


def _to_document(doc_id: str, raw: str) -> dict[str, Any]:
    document = json.loads(raw)
    document["id"] = doc_id
    return document


class Database:
    _db_path: str = "data/directory.db"
    _lock = asyncio.Lock()  # Ensures that only one initialization happens
    _initialized = False

    @classmethod
    async def initialize(cls, db_path: str | None = None) -> None:
        async with cls._lock:
            if cls._initialized:
                return
            if db_path:
                cls._db_path = db_path
            parent = Path(cls._db_path).parent
            parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(cls._db_path) as db:
                await init_schema(db)
            cls._initialized = True
            logger.info("Directory initialized at %s.", cls._db_path)

    @classmethod
    @asynccontextmanager
    async def get_connection(cls):
        """
        Get a connection to the directory with optimized settings.

        Usage:
            async with Database.get_connection() as db:
                await db.execute("SELECT ...")
        """
        if not cls._initialized:
            await cls.initialize()
        async with aiosqlite.connect(cls._db_path) as db:
            await db.execute("PRAGMA busy_timeout=5000")
            try:
                await db.execute("PRAGMA journal_mode=WAL")
            except sqlite3.OperationalError as exc:
                # WAL transition can fail briefly if another writer holds a lock; retry once
                if "database is locked" in str(exc).lower():
                    await asyncio.sleep(0.05)
                    await db.execute("PRAGMA journal_mode=WAL")
                else:
                    raise
            await db.execute("PRAGMA synchronous=NORMAL")
            db.row_factory = aiosqlite.Row
            yield db

    @classmethod
    async def query(
        cls,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Return documents whose named fields equal the given values.

        A filter value of None matches documents where the field is absent or null.
        Nothing matching is an empty list, not an error.
        """
        clauses = ["collection = ?"]
        params: list[Any] = [collection]
        for field, value in (filters or {}).items():
            if value is None:
                clauses.append(f"{_json_path(field)} IS NULL")
            else:
                clauses.append(f"{_json_path(field)} = ?")
                params.append(_sql_value(value))

        sql = f"SELECT doc_id, data FROM documents WHERE {' AND '.join(clauses)}"
        if order_by:
            direction = "DESC" if descending else "ASC"
            sql += f" ORDER BY {_json_path(order_by)} {direction}, created_at ASC"
        else:
            sql += " ORDER BY created_at ASC, rowid ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        async with cls.get_connection() as db:
            cursor = await db.execute(sql, tuple(params))
            rows = await cursor.fetchall()
        return [_to_document(row["doc_id"], row["data"]) for row in rows]

    @classmethod
    async def get(cls, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch one document by id."""
        async with cls.get_connection() as db:
            cursor = await db.execute(
                "SELECT doc_id, data FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            )
            row = await cursor.fetchone()
        return _to_document(row["doc_id"], row["data"]) if row else None

    @classmethod
    async def count(
        cls, collection: str, filters: Mapping[str, Any] | None = None
    ) -> int:
        clauses = ["collection = ?"]
        params: list[Any] = [collection]
        for field, value in (filters or {}).items():
            if value is None:
                clauses.append(f"{_json_path(field)} IS NULL")
            else:
                clauses.append(f"{_json_path(field)} = ?")
                params.append(_sql_value(value))
        async with cls.get_connection() as db:
            cursor = await db.execute(
                f"SELECT COUNT(1) FROM documents WHERE {' AND '.join(clauses)}",
                tuple(params),
            )
            row = await cursor.fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    @classmethod
    async def add(
        cls,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
    ) -> str:
        """Append a new document and return its id."""
        doc_id = doc_id or uuid.uuid4().hex
        payload = {k: v for k, v in data.items() if k != "id"}
        async with cls.get_connection() as db:
            await db.execute(
                "INSERT INTO documents (collection, doc_id, data) VALUES (?, ?, ?)",
                (collection, doc_id, json.dumps(payload)),
            )
            await db.commit()
        logger.debug(
            "Added document %s", doc_id, extra={"collection": collection}
        )
        return doc_id

    @classmethod
    async def update(
        cls, collection: str, doc_id: str, fields: Mapping[str, Any]
    ) -> bool:
        """
        Update named fields of a single document.

        Returns:
            False if the document does not exist.
        """
        applied, _ = await cls.update_if(collection, doc_id, fields, lambda _doc: True)
        return applied

    @classmethod
    async def update_if(
        cls,
        collection: str,
        doc_id: str,
        fields: Mapping[str, Any],
        condition: Callable[[dict[str, Any]], bool],
    ) -> tuple[bool, dict[str, Any] | None]:
        """
        Atomically update a document only if ``condition`` holds for its current state.

        The read and the write happen inside one BEGIN IMMEDIATE transaction, so
        a concurrent writer cannot slip in between the check and the update.

        Returns:
            (applied, document) where document is the state after the call
            (None when the document does not exist).
        """
        async with cls.get_connection() as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                cursor = await db.execute(
                    "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection, doc_id),
                )
                row = await cursor.fetchone()
                if row is None:
                    await db.rollback()
                    return False, None

                current = _to_document(doc_id, row["data"])
                if not condition(current):
                    await db.rollback()
                    return False, current

                updated = {**current, **fields}
                payload = {k: v for k, v in updated.items() if k != "id"}
                await db.execute(
                    """
                    UPDATE documents
                    SET data = ?, updated_at = strftime('%s','now')
                    WHERE collection = ? AND doc_id = ?
                    """,
                    (json.dumps(payload), collection, doc_id),
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.debug(
            "Updated document %s fields=%s",
            doc_id,
            sorted(fields),
            extra={"collection": collection},
        )
        return True, updated

    @classmethod
    async def close(cls) -> None:
        """Forget the initialized state; connections are per-call."""
        async with cls._lock:
            cls._initialized = False
