from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from bookqa.core.config import Settings, get_settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.chunk_size == 500
    assert settings.chunk_overlap == 50
    assert settings.top_k == 5
    assert settings.uses_simple_embeddings
    assert settings.embedding_base_url == settings.generation_base_url == "http://localhost:11434"
    assert settings.generation_timeout > settings.embedding_timeout


def test_yaml_file_with_env_overlay(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "chunking:\n"
        "  size: 300\n"
        "  overlap: 30\n"
        "embeddings:\n"
        "  model: nomic-embed-text\n"
        "  url: http://embed:11434/\n"
        "generation:\n"
        "  model: mistral\n"
        "  timeout: 240\n"
        "retrieval:\n"
        "  top_k: 8\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("BOOKQA_CONFIG", str(config))
    monkeypatch.setenv("BOOKQA_TOP_K", "3")

    settings = get_settings()

    assert settings.chunk_size == 300
    assert settings.chunk_overlap == 30
    assert settings.embedding_model == "nomic-embed-text"
    assert not settings.uses_simple_embeddings
    assert settings.embedding_base_url == "http://embed:11434"
    assert settings.generation_base_url == "http://localhost:11434"
    assert settings.llm_model == "mistral"
    assert settings.generation_timeout == 240
    assert settings.top_k == 3
    assert settings.db_path == tmp_path / "bookqa.db"


def test_generation_timeout_must_exceed_embedding_timeout() -> None:
    with pytest.raises(ValidationError):
        Settings(embedding_timeout=120, generation_timeout=60)


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(chunk_size=0)
    with pytest.raises(ValidationError):
        Settings(top_k=0)
