"""Test fixtures for Book QA."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import orjson
import pytest
import requests

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("BOOKQA_DB_PATH", str(tmp_path / "bookqa.db"))
    monkeypatch.setenv("BOOKQA_PROBE_ON_STARTUP", "false")
    monkeypatch.delenv("BOOKQA_CONFIG", raising=False)
    monkeypatch.delenv("BOOKQA_EMBEDDING_MODEL", raising=False)

    from bookqa.api import dependencies as deps

    deps.reset_dependencies()
    yield
    deps.reset_dependencies()


def make_response(status_code: int = 200, payload: Any = None, text: str | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if text is not None:
        response._content = text.encode("utf-8")
    else:
        response._content = orjson.dumps(payload if payload is not None else {})
    return response


Handler = Callable[[str, str, dict[str, Any]], requests.Response]


class FakeSession:
    """Stands in for ``requests.Session``; records calls and delegates to a handler."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.calls: list[dict[str, Any]] = []

    def request(self, method: str, url: str, timeout: float | None = None, **kwargs: Any) -> requests.Response:
        self.calls.append({"method": method, "url": url, "timeout": timeout, **kwargs})
        return self.handler(method, url, kwargs)

    def close(self) -> None:
        pass


@pytest.fixture
def fake_session() -> Callable[[Handler], FakeSession]:
    return FakeSession


@pytest.fixture
def http_response() -> Callable[..., requests.Response]:
    return make_response


@pytest.fixture(scope="session")
def sample_text() -> str:
    return (
        "Chapter One\n\n"
        "The capital of France is Paris.   It sits on the Seine.\n"
        "\tParis is known for the Eiffel Tower!\n\n"
        "Chapter Two\n"
        "Berlin is the capital of Germany. Rome is the capital of Italy?  Yes it is."
    )
