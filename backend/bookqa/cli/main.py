"""CLI entrypoint for Book QA."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

app = typer.Typer(name="bookqa", help="Book QA command-line interface")
books_app = typer.Typer(name="books", help="Manage ingested books")
app.add_typer(books_app, name="books")

DEFAULT_HOST = "http://127.0.0.1:8080"
# Uploads wait for every chunk embedding and queries wait for generation.
REQUEST_TIMEOUT = 600


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip("/")
    env_host = os.environ.get("BOOKQA_HOST")
    if env_host:
        return env_host.rstrip("/")
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    try:
        resp = requests.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
    except requests.RequestException as exc:
        typer.echo(f"Request to {url} failed: {exc}", err=True)
        raise typer.Exit(code=1)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _read_book(path: Path) -> str:
    raw = path.expanduser().read_bytes()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        typer.echo(
            f"Warning: {path} is not valid UTF-8 ({exc.reason} at byte {exc.start}); "
            "undecodable bytes were replaced with U+FFFD",
            err=True,
        )
        return raw.decode("utf-8", errors="replace")


@app.command()
def ingest(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Plain-text file to upload"),
    title: str = typer.Option(..., "--title", help="Book title"),
    author: str = typer.Option(..., "--author", help="Book author"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Upload a text file as a new book."""
    text = _read_book(path)
    resp = _request("POST", "/api/books", host=host, json={"title": title, "author": author, "text": text})
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def query(
    question: str = typer.Argument(..., help="Question text"),
    book_id: str = typer.Option(..., "--book-id", help="Book to search"),
    k: Optional[int] = typer.Option(None, "--k", help="Number of passages to retrieve"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask a question about one book."""
    payload: dict[str, object] = {"question": question, "book_id": book_id}
    if k is not None:
        payload["top_k"] = k
    resp = _request("POST", "/api/query", host=host, json=payload)
    typer.echo(json.dumps(resp.json(), indent=2))


@books_app.command("list")
def list_books(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List ingested books."""
    resp = _request("GET", "/api/books", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@books_app.command("remove")
def remove_book(
    book_id: str = typer.Argument(..., help="Book identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Delete every chunk of a book."""
    resp = _request("DELETE", f"/api/books/{book_id}", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def evaluate(
    dataset: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of questions"),
    book_id: str = typer.Option(..., "--book-id", help="Book the questions are about"),
    output: Path = typer.Option(Path("evaluation_report.json"), "--output", help="Report destination"),
) -> None:
    """Run the keyword evaluation in-process against the local store."""
    from bookqa.api.dependencies import get_app_settings, get_generator, get_retriever
    from bookqa.evaluation.keywords import Evaluator, format_summary, load_dataset, save_report

    questions = load_dataset(dataset)
    evaluator = Evaluator(get_retriever(), get_generator(), get_app_settings())
    report = evaluator.evaluate(questions, book_id)
    save_report(report, output)
    typer.echo(format_summary(report))
    typer.echo(f"Report written to {output}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8080, "--port", help="Bind port"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("bookqa.app:app", host=host, port=port)


if __name__ == "__main__":
    app()
