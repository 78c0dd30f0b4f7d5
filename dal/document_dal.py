"""Async Data Access Layer for the DOCUMENTS table.

Documents are addressed by slash-separated paths whose last segment is the
document id and whose prefix is the collection, e.g.
`artifacts/app/users/u1/generated_data/data_1700000000000`.
"""

from __future__ import annotations

import json
import sqlite3
import time
from typing import Any, Dict, List, Optional, Tuple

import aiosqlite

from utils.database_init import AsyncDatabaseInitializer
from utils.errors import StorageError


def split_path(path: str) -> Tuple[str, str]:
    """Split a document path into `(collection, document_id)`.

    Raises:
        ValueError: If the path has no collection or an empty segment.
    """
    segments = path.strip("/").split("/")
    if len(segments) < 2 or any(not s for s in segments):
        raise ValueError(f"Invalid document path: {path!r}")
    return "/".join(segments[:-1]), segments[-1]


class DocumentDAL:
    """Data access layer for append-only JSON documents.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def write(self, path: str, record: Dict[str, Any]) -> None:
        """Insert a new document at `path`.

        Raises:
            StorageError: If the path is already taken or the write fails.
        """
        collection, document_id = split_path(path)
        data = json.dumps(record, ensure_ascii=False)
        try:
            async with self._db.connection() as conn:
                await conn.execute(
                    "INSERT INTO DOCUMENTS (path, collection, document_id, data, created_at) VALUES (?, ?, ?, ?, ?)",
                    (path.strip("/"), collection, document_id, data, int(time.time())),
                )
                await conn.commit()
        except sqlite3.IntegrityError as exc:
            raise StorageError(f"Document already exists at {path}") from exc
        except (aiosqlite.Error, OSError) as exc:
            raise StorageError(f"Failed to write document at {path}") from exc

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the document stored at `path`, or None if absent."""
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT data FROM DOCUMENTS WHERE path = ?", (path.strip("/"),))
            row = await cur.fetchone()
            return json.loads(row[0]) if row else None

    async def list_collection(self, collection: str) -> List[Tuple[str, Dict[str, Any]]]:
        """List `(document_id, data)` pairs in a collection, oldest id first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT document_id, data FROM DOCUMENTS WHERE collection = ? ORDER BY document_id",
                (collection.strip("/"),),
            )
            rows = await cur.fetchall()
            return [(row[0], json.loads(row[1])) for row in rows]
