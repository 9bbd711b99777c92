from __future__ import annotations

import sqlite3
import threading
import time
from pathlib import Path

import pytest

from bookqa.core.errors import InputEmptyError
from bookqa.db.chunk_store import ChunkStore
from bookqa.db.sqlite import SQLiteDatabase
from bookqa.models.entities import Chunk, ChunkMetadata
from bookqa.utils.time import utc_now


def _chunk(document_id: str, index: int, title: str = "Atlas") -> Chunk:
    text = f"{document_id} passage {index}"
    return Chunk(
        id=f"chk_{document_id}_{index}",
        document_id=document_id,
        chunk_index=index,
        text=text,
        metadata=ChunkMetadata(
            title=title,
            author="Anon",
            character_start=index * 20,
            character_end=index * 20 + len(text),
            chunk_size=len(text),
        ),
        created_at=utc_now(),
    )


@pytest.fixture
def store(tmp_path: Path) -> ChunkStore:
    db = SQLiteDatabase(tmp_path / "nested" / "store.db")
    db.ensure_schema()
    yield ChunkStore(db)
    db.close()


def test_insert_and_fetch_round_trip(store: ChunkStore) -> None:
    chunks = [_chunk("doc_a", i) for i in range(3)]
    store.insert_chunks(chunks, [[0.5, 0.25], [1.0, 0.0], [0.0, -2.0]])

    fetched = store.get_chunks("doc_a")
    assert [chunk.chunk_index for chunk in fetched] == [0, 1, 2]
    assert fetched[1].text == "doc_a passage 1"
    assert fetched[1].metadata == chunks[1].metadata

    candidates = dict((chunk.id, vector) for chunk, vector in store.fetch_candidates("doc_a"))
    assert candidates["chk_doc_a_0"] == [0.5, 0.25]
    assert candidates["chk_doc_a_2"] == [0.0, -2.0]


def test_fetch_candidates_filters_by_document(store: ChunkStore) -> None:
    store.insert_chunks([_chunk("doc_a", 0)], [[1.0]])
    store.insert_chunks([_chunk("doc_b", 0), _chunk("doc_b", 1)], [[1.0], [2.0]])
    assert {chunk.document_id for chunk, _ in store.fetch_candidates("doc_b")} == {"doc_b"}
    assert len(store.fetch_candidates()) == 3
    assert store.fetch_candidates("doc_missing") == []
    assert store.count_chunks() == 3


def test_list_and_delete_documents(store: ChunkStore) -> None:
    store.insert_chunks([_chunk("doc_a", i, title="First") for i in range(2)], [[1.0], [1.0]])
    store.insert_chunks([_chunk("doc_b", 0, title="Second")], [[1.0]])

    summaries = {summary.id: summary for summary in store.list_documents()}
    assert summaries["doc_a"].title == "First"
    assert summaries["doc_a"].total_chunks == 2
    assert summaries["doc_b"].author == "Anon"

    assert store.delete_document("doc_a") == 2
    assert store.delete_document("doc_a") == 0
    assert [summary.id for summary in store.list_documents()] == ["doc_b"]


def test_insert_rejects_empty_and_mismatched_batches(store: ChunkStore) -> None:
    with pytest.raises(InputEmptyError):
        store.insert_chunks([], [])
    with pytest.raises(ValueError):
        store.insert_chunks([_chunk("doc_a", 0)], [])
    assert store.count_chunks() == 0


def test_concurrent_rollback_does_not_discard_other_transaction(store: ChunkStore) -> None:
    db = store.db
    insert_sql = (
        "INSERT INTO chunks (id, document_id, chunk_index, text, title, author, character_start, "
        "character_end, chunk_size, embedding, dim, created_at) "
        "VALUES (?, ?, 0, 'text', 'Atlas', 'Anon', 0, 4, 4, x'00000000', 1, 0)"
    )
    a_inserted = threading.Event()
    b_started = threading.Event()
    outcome: dict[str, str] = {}

    def writer_a() -> None:
        with db.transaction() as cursor:
            cursor.execute(insert_sql, ["chk_shared", "doc_a"])
            a_inserted.set()
            b_started.wait(timeout=5)
            time.sleep(0.1)
        outcome["a"] = "committed"

    def writer_b() -> None:
        a_inserted.wait(timeout=5)
        b_started.set()
        try:
            with db.transaction() as cursor:
                cursor.execute(insert_sql, ["chk_shared", "doc_b"])
        except sqlite3.IntegrityError:
            outcome["b"] = "rolled back"
        else:
            outcome["b"] = "committed"

    threads = [threading.Thread(target=writer_a), threading.Thread(target=writer_b)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert outcome == {"a": "committed", "b": "rolled back"}
    assert [row["document_id"] for row in db.query("SELECT document_id FROM chunks")] == ["doc_a"]
