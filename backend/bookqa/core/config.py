"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

ENV_PREFIX = "BOOKQA_"
DEFAULT_CONFIG_PATH = Path("~/.config/bookqa/config.yaml")
SIMPLE_EMBEDDING_MODEL = "simple"

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("chunking", "size"): "chunk_size",
    ("chunking", "overlap"): "chunk_overlap",
    ("retrieval", "top_k"): "top_k",
    ("ollama", "url"): "ollama_url",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "url"): "embedding_url",
    ("embeddings", "timeout"): "embedding_timeout",
    ("embeddings", "batch_delay"): "embed_batch_delay",
    ("embeddings", "batch_size"): "embed_batch_size",
    ("embeddings", "workers"): "embed_workers",
    ("generation", "model"): "llm_model",
    ("generation", "url"): "generation_url",
    ("generation", "timeout"): "generation_timeout",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".bookqa" / "bookqa.db")
    chunk_size: int = Field(default=500, ge=1)
    chunk_overlap: int = Field(default=50, ge=0)
    top_k: int = Field(default=5, ge=1)
    embedding_model: str = SIMPLE_EMBEDDING_MODEL
    llm_model: str = "llama3.2:3b"
    ollama_url: str = "http://localhost:11434"
    embedding_url: str | None = None
    generation_url: str | None = None
    embedding_timeout: float = Field(default=60.0, gt=0)
    generation_timeout: float = Field(default=120.0, gt=0)
    embed_batch_delay: float = Field(default=1.0, ge=0)
    embed_batch_size: int = Field(default=1, ge=1)
    embed_workers: int | None = None
    probe_on_startup: bool = True

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @field_validator("ollama_url", "embedding_url", "generation_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        return value.rstrip("/") if value else value

    @model_validator(mode="after")
    def _check_timeouts(self) -> "Settings":
        if self.generation_timeout <= self.embedding_timeout:
            raise ValueError("generation_timeout must be longer than embedding_timeout")
        return self

    @property
    def embedding_base_url(self) -> str:
        return self.embedding_url or self.ollama_url

    @property
    def generation_base_url(self) -> str:
        return self.generation_url or self.ollama_url

    @property
    def uses_simple_embeddings(self) -> bool:
        return self.embedding_model == SIMPLE_EMBEDDING_MODEL

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with BOOKQA_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings", "SIMPLE_EMBEDDING_MODEL"]
