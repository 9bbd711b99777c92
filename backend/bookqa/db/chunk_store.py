"""SQLite-backed chunk store."""

from __future__ import annotations

import logging
import sqlite3
from array import array
from typing import Sequence

from bookqa.core.errors import InputEmptyError
from bookqa.db.sqlite import SQLiteDatabase
from bookqa.models.entities import Chunk, ChunkMetadata, DocumentSummary
from bookqa.utils.time import from_ms

logger = logging.getLogger(__name__)

_CHUNK_COLUMNS = (
    "id, document_id, chunk_index, text, title, author, "
    "character_start, character_end, chunk_size, created_at"
)


class ChunkStore:
    """Stores chunks with their vectors and reads them back per document."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def insert_chunks(self, chunks: Sequence[Chunk], vectors: Sequence[Sequence[float]]) -> None:
        if not chunks:
            raise InputEmptyError("No chunks to insert")
        if len(chunks) != len(vectors):
            raise ValueError(f"Got {len(chunks)} chunks but {len(vectors)} vectors")
        rows = [
            (
                chunk.id,
                chunk.document_id,
                chunk.chunk_index,
                chunk.text,
                chunk.metadata.title,
                chunk.metadata.author,
                chunk.metadata.character_start,
                chunk.metadata.character_end,
                chunk.metadata.chunk_size,
                int(chunk.created_at.timestamp() * 1000),
                array("f", vector).tobytes(),
                len(vector),
            )
            for chunk, vector in zip(chunks, vectors)
        ]
        with self.db.transaction() as cursor:
            cursor.executemany(
                f"""
                INSERT INTO chunks ({_CHUNK_COLUMNS}, embedding, dim)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        logger.info("Inserted %d chunks for document %s", len(rows), chunks[0].document_id)

    def fetch_candidates(self, document_id: str | None = None) -> list[tuple[Chunk, list[float]]]:
        """Return (chunk, vector) pairs, restricted to one document when given."""
        sql = f"SELECT {_CHUNK_COLUMNS}, embedding FROM chunks"
        params: list[str] = []
        if document_id:
            sql += " WHERE document_id = ?"
            params.append(document_id)
        rows = self.db.query(sql, params)
        return [(_row_to_chunk(row), _unpack(row["embedding"])) for row in rows]

    def get_chunks(self, document_id: str) -> list[Chunk]:
        rows = self.db.query(
            f"SELECT {_CHUNK_COLUMNS} FROM chunks WHERE document_id = ? ORDER BY chunk_index ASC",
            [document_id],
        )
        return [_row_to_chunk(row) for row in rows]

    def delete_document(self, document_id: str) -> int:
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM chunks WHERE document_id = ?", [document_id])
            deleted = cursor.rowcount
        logger.info("Deleted %d chunks for document %s", deleted, document_id)
        return deleted

    def list_documents(self) -> list[DocumentSummary]:
        rows = self.db.query(
            """
            SELECT
              document_id,
              MIN(title) AS title,
              MIN(author) AS author,
              COUNT(*) AS total_chunks,
              MIN(created_at) AS uploaded_at
            FROM chunks
            GROUP BY document_id
            ORDER BY uploaded_at ASC
            """,
            [],
        )
        return [
            DocumentSummary(
                id=row["document_id"],
                title=row["title"],
                author=row["author"],
                total_chunks=int(row["total_chunks"]),
                uploaded_at=from_ms(row["uploaded_at"]),
            )
            for row in rows
        ]

    def count_chunks(self) -> int:
        rows = self.db.query("SELECT COUNT(*) AS count FROM chunks")
        return int(rows[0]["count"]) if rows else 0


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        text=row["text"],
        metadata=ChunkMetadata(
            title=row["title"],
            author=row["author"],
            character_start=row["character_start"],
            character_end=row["character_end"],
            chunk_size=row["chunk_size"],
        ),
        created_at=from_ms(row["created_at"]),
    )


def _unpack(blob: bytes) -> list[float]:
    floats = array("f")
    floats.frombytes(blob)
    return list(floats)


__all__ = ["ChunkStore"]
