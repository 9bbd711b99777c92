"""Embedding providers."""

from __future__ import annotations

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from array import array
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from bookqa.clients.ollama import OllamaClient
from bookqa.core.config import SIMPLE_EMBEDDING_MODEL, Settings
from bookqa.core.errors import BookQAError, EmbeddingError, EmptyResponseError, InputEmptyError

logger = logging.getLogger(__name__)

HASHED_DIM = 128
_STRIP_CHARS = ".,!?;:\"'()[]{}"
_HASH_BASE = 31
_UINT64_MASK = 0xFFFFFFFFFFFFFFFF
_BUCKET_MASK = 0x7FFFFFFF
_PROGRESS_EVERY = 10


class EmbeddingProvider(ABC):
    """Turns text into fixed-length float vectors."""

    model_name: str
    backend: str

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Embed a single text."""

    @abstractmethod
    def embed_many(self, texts: Sequence[str], batch_size: int = 1) -> list[list[float]]:
        """Embed texts in order, one vector per input; fails as a whole."""

    @abstractmethod
    def test_connection(self) -> bool:
        """Cheap reachability check. Logs instead of raising on failure."""

    @abstractmethod
    def embedding_dimension(self) -> int:
        """Length of the vectors this provider produces."""

    def as_bytes(self, vector: Sequence[float]) -> bytes:
        return array("f", vector).tobytes()


class HashedEmbeddingProvider(EmbeddingProvider):
    """Deterministic bag-of-words embedding; no external calls."""

    def __init__(self, dim: int = HASHED_DIM, max_workers: int | None = None) -> None:
        self.model_name = SIMPLE_EMBEDDING_MODEL
        self.backend = "hashed"
        self._dim = dim
        self._max_workers = max_workers

    def embed(self, text: str) -> list[float]:
        words = text.lower().split()
        vector = [0.0] * self._dim
        if not words:
            return vector
        counts = Counter(token for token in (word.strip(_STRIP_CHARS) for word in words) if token)
        total = len(words)
        for token, count in counts.items():
            vector[_hash_token(token, self._dim)] += count / total
        _normalize(vector)
        return vector

    def embed_many(self, texts: Sequence[str], batch_size: int = 1) -> list[list[float]]:
        # Pure computation, so fan out every text at once; batch_size does not apply.
        total = len(texts)
        if total == 0:
            return []
        started = time.perf_counter()
        vectors: list[list[float] | None] = [None] * total
        lock = threading.Lock()
        completed = 0

        def _work(idx: int) -> None:
            nonlocal completed
            vectors[idx] = self.embed(texts[idx])
            with lock:
                completed += 1
                if completed % _PROGRESS_EVERY == 0 or completed == total:
                    logger.debug("Progress: %d/%d embeddings completed", completed, total)

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [executor.submit(_work, idx) for idx in range(total)]
            for future in futures:
                future.result()

        logger.info(
            "Generated %d hashed embeddings in %.1fms",
            total,
            (time.perf_counter() - started) * 1000,
        )
        return [vector for vector in vectors if vector is not None]

    def test_connection(self) -> bool:
        return True

    def embedding_dimension(self) -> int:
        return self._dim


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embeddings from an Ollama ``/api/embeddings`` endpoint, one text per call."""

    endpoint = "/api/embeddings"

    def __init__(self, client: OllamaClient, model_name: str, batch_delay: float = 1.0) -> None:
        self.client = client
        self.model_name = model_name
        self.backend = "ollama"
        self.batch_delay = batch_delay

    def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise InputEmptyError("Cannot embed empty text")
        data = self.client.post_json(self.endpoint, {"model": self.model_name, "prompt": text})
        embedding = data.get("embedding") or []
        if not embedding:
            raise EmptyResponseError("Received empty embedding from ollama", self.client.service)
        return [float(value) for value in embedding]

    def embed_many(self, texts: Sequence[str], batch_size: int = 1) -> list[list[float]]:
        # Sequential regardless of batch_size; the pause keeps the service from being flooded.
        total = len(texts)
        logger.info("Embedding %d texts one at a time with %s", total, self.model_name)
        started = time.perf_counter()
        vectors: list[list[float]] = []
        for idx, text in enumerate(texts):
            try:
                vectors.append(self.embed(text))
            except BookQAError as exc:
                logger.error("Failed to generate embedding for chunk %d: %s", idx, exc)
                raise EmbeddingError(
                    f"Failed to generate embedding for chunk {idx}: {exc.message}",
                    {"index": idx, "kind": exc.kind},
                ) from exc
            if idx % 5 == 0 and idx > 0:
                logger.info("Progress: %d/%d embeddings generated", idx, total)
            if idx < total - 1 and self.batch_delay > 0:
                time.sleep(self.batch_delay)
        logger.info("All %d embeddings generated in %.1fs", total, time.perf_counter() - started)
        return vectors

    def test_connection(self) -> bool:
        return self.client.probe()

    def embedding_dimension(self) -> int:
        return len(self.embed("test"))


def build_embedding_provider(settings: Settings, client: OllamaClient | None = None) -> EmbeddingProvider:
    """Pick the provider named by ``settings.embedding_model``."""
    if settings.uses_simple_embeddings:
        return HashedEmbeddingProvider(max_workers=settings.embed_workers)
    client = client or OllamaClient(
        settings.embedding_base_url,
        timeout=settings.embedding_timeout,
        service="ollama-embeddings",
    )
    return OllamaEmbeddingProvider(client, settings.embedding_model, batch_delay=settings.embed_batch_delay)


def _hash_token(token: str, dim: int) -> int:
    value = 0
    for char in token:
        value = (value * _HASH_BASE + ord(char)) & _UINT64_MASK
    return (value & _BUCKET_MASK) % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "EmbeddingProvider",
    "HashedEmbeddingProvider",
    "OllamaEmbeddingProvider",
    "build_embedding_provider",
    "HASHED_DIM",
]
