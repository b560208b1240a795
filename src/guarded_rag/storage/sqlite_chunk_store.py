"""SQLite-backed store of indexed chunks and their source offsets."""

from __future__ import annotations

import json
from collections.abc import Iterable

import aiosqlite

from guarded_rag.models.domain import RetrievedChunk

CREATE_CHUNKS_TABLE = """
CREATE TABLE IF NOT EXISTS chunks (
    chunk_id TEXT PRIMARY KEY,
    source_id TEXT,
    text TEXT NOT NULL,
    start_char INTEGER,
    end_char INTEGER,
    metadata TEXT NOT NULL DEFAULT '{}'
)
"""


class SQLiteChunkStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(CREATE_CHUNKS_TABLE)
            await db.commit()

    async def add_chunks(self, chunks: Iterable[RetrievedChunk]) -> None:
        rows = [
            (
                c.id,
                c.source_id,
                c.text,
                c.start_char,
                c.end_char,
                json.dumps(c.metadata),
            )
            for c in chunks
        ]
        if not rows:
            return
        async with aiosqlite.connect(self._db_path) as db:
            await db.executemany(
                "INSERT OR REPLACE INTO chunks "
                "(chunk_id, source_id, text, start_char, end_char, metadata) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                rows,
            )
            await db.commit()

    async def get_chunks_by_ids(self, chunk_ids: list[str]) -> dict[str, RetrievedChunk]:
        if not chunk_ids:
            return {}
        placeholders = ",".join("?" for _ in chunk_ids)
        result: dict[str, RetrievedChunk] = {}
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                f"SELECT * FROM chunks WHERE chunk_id IN ({placeholders})", chunk_ids
            ) as cursor:
                async for row in cursor:
                    result[row["chunk_id"]] = RetrievedChunk(
                        id=row["chunk_id"],
                        text=row["text"],
                        source_id=row["source_id"],
                        start_char=row["start_char"],
                        end_char=row["end_char"],
                        metadata=json.loads(row["metadata"]),
                    )
        return result

    async def count_chunks(self) -> int:
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute("SELECT COUNT(*) FROM chunks") as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0
