from __future__ import annotations

import logging
from pathlib import Path

import orjson
import pytest

from bookqa.core.config import Settings
from bookqa.core.logging import JsonFormatter, configure_logging, with_context
from bookqa.db.chunk_store import ChunkStore
from bookqa.db.sqlite import SQLiteDatabase
from bookqa.ingest.embeddings import HashedEmbeddingProvider
from bookqa.ingest.pipeline import IngestPipeline


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    urllib3_level = logging.getLogger("urllib3").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("urllib3").setLevel(urllib3_level)


def test_bound_context_is_rendered_as_ctx_fields(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("bookqa.tests.context")
    with caplog.at_level(logging.INFO, logger="bookqa.tests.context"):
        with_context(logger, document_id="doc_1", path=Path("/books/atlas.txt")).info(
            "Indexed %d chunks", 3, extra={"ctx_stage": "store"}
        )

    payload = orjson.loads(JsonFormatter().format(caplog.records[-1]))
    assert payload["message"] == "Indexed 3 chunks"
    assert payload["level"] == "INFO"
    assert payload["ctx_document_id"] == "doc_1"
    assert payload["ctx_path"] == "/books/atlas.txt"
    assert payload["ctx_stage"] == "store"


def test_configure_logging_reads_level_and_quiets_http_clients(
    restore_logging, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("BOOKQA_LOG_LEVEL", "warning")
    configure_logging()
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_ingest_logs_carry_document_id(tmp_path: Path, caplog: pytest.LogCaptureFixture, sample_text: str) -> None:
    db = SQLiteDatabase(tmp_path / "logging.db")
    db.ensure_schema()
    pipeline = IngestPipeline(ChunkStore(db), HashedEmbeddingProvider(), Settings(chunk_size=80, chunk_overlap=10))
    with caplog.at_level(logging.INFO, logger="bookqa.ingest.pipeline"):
        result = pipeline.ingest_text(sample_text, title="Atlas", author="Anon")
    db.close()

    tagged = [record for record in caplog.records if getattr(record, "ctx_document_id", None) == result.document_id]
    assert tagged
    assert all(record.ctx_title == "Atlas" for record in tagged)
