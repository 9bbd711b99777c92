from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from bookqa.core.config import Settings
from bookqa.core.errors import ServiceTimeoutError
from bookqa.evaluation.keywords import (
    Evaluator,
    Question,
    calculate_f_score,
    find_keywords,
    format_summary,
    load_dataset,
    save_report,
)
from bookqa.models.entities import Chunk, ChunkMetadata, SearchResult
from bookqa.utils.time import utc_now


def _result(text: str, score: float = 0.5) -> SearchResult:
    chunk = Chunk(
        id="chk_1",
        document_id="doc_a",
        chunk_index=0,
        text=text,
        metadata=ChunkMetadata("Atlas", "Anon", 0, len(text), len(text)),
        created_at=utc_now(),
    )
    return SearchResult(chunk=chunk, score=score)


class StubRetriever:
    def __init__(self, texts: list[str]) -> None:
        self.texts = texts
        self.calls: list[tuple[str, int, str]] = []

    def retrieve(self, query_text: str, k: int, document_id: str | None = None) -> list[SearchResult]:
        self.calls.append((query_text, k, document_id))
        return [_result(text) for text in self.texts]


class StubGenerator:
    def __init__(self, answers: dict[str, str]) -> None:
        self.answers = answers

    def generate(self, question: str, contexts: list[str]) -> str:
        if question not in self.answers:
            raise ServiceTimeoutError("generation timed out", "ollama-generate")
        return self.answers[question]


def test_f_score_counts_keywords_in_both_texts() -> None:
    keywords = ["paris", "seine", "france"]
    assert calculate_f_score("Paris on the Seine", "paris, on the seine", keywords) == pytest.approx(1.0)
    # tp=1 (paris), fp=1 (france), fn=1 (seine)
    assert calculate_f_score("Paris, France", "Paris by the Seine", keywords) == pytest.approx(0.5)
    assert calculate_f_score("No idea", "Paris", keywords) == 0.0
    assert calculate_f_score("anything", "anything", []) == 0.0


def test_find_keywords_is_case_insensitive() -> None:
    results = [_result("The capital of France is PARIS."), _result("Rivers and bridges.")]
    assert find_keywords(["paris", "Bridges", "berlin"], results) == ["paris", "Bridges"]
    assert find_keywords(["paris"], []) == []


def test_evaluator_scores_and_skips_failed_questions() -> None:
    settings = Settings(top_k=3, chunk_size=400, chunk_overlap=40)
    retriever = StubRetriever(["The capital of France is Paris."])
    generator = StubGenerator({"Capital of France?": "Paris"})
    questions = [
        Question(id=1, question="Capital of France?", ground_truth_answer="Paris", relevant_keywords=["paris"]),
        Question(id=2, question="Capital of Peru?", ground_truth_answer="Lima", relevant_keywords=["lima"]),
    ]

    report = Evaluator(retriever, generator, settings).evaluate(questions, "doc_a")

    assert [result.question_id for result in report.results] == [1]
    result = report.results[0]
    assert result.success is True
    assert result.keywords_found == ["paris"]
    assert result.f_score == pytest.approx(1.0)
    assert report.metrics.total_questions == 1
    assert report.metrics.retrieval_accuracy == pytest.approx(1.0)
    assert report.metrics.configuration["top_k"] == 3
    assert retriever.calls[0] == ("Capital of France?", 3, "doc_a")
    assert "EVALUATION SUMMARY" in format_summary(report)


def test_empty_evaluation_has_zeroed_metrics() -> None:
    report = Evaluator(StubRetriever([]), StubGenerator({}), Settings()).evaluate([], "doc_a")
    assert report.results == []
    assert report.metrics.total_questions == 0
    assert report.metrics.avg_f_score == 0.0


def test_dataset_and_report_files(tmp_path: Path) -> None:
    dataset = tmp_path / "questions.json"
    dataset.write_bytes(
        orjson.dumps([{"id": 7, "question": "Who wrote it?", "relevant_keywords": ["anon"]}])
    )
    questions = load_dataset(dataset)
    assert questions[0].id == 7
    assert questions[0].ground_truth_answer == ""

    report = Evaluator(StubRetriever(["by anon"]), StubGenerator({"Who wrote it?": "Anon"}), Settings()).evaluate(
        questions, "doc_a"
    )
    output = tmp_path / "report.json"
    save_report(report, output)
    saved = orjson.loads(output.read_bytes())
    assert saved["metrics"]["total_questions"] == 1
    assert saved["results"][0]["keywords_found"] == ["anon"]
