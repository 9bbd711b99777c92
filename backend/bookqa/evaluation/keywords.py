"""Keyword-based evaluation of retrieval and generated answers."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Sequence

import orjson
from pydantic import BaseModel, Field

from bookqa.core.config import Settings
from bookqa.core.errors import BookQAError
from bookqa.core.logging import get_logger
from bookqa.generation.generator import Generator
from bookqa.models.entities import SearchResult
from bookqa.retrieval.retriever import Retriever
from bookqa.utils.time import elapsed_ms, utc_now

logger = get_logger(__name__)


class Question(BaseModel):
    id: int
    question: str
    ground_truth_answer: str = ""
    relevant_keywords: list[str] = Field(default_factory=list)
    book_section: str = ""
    notes: str = ""


class EvaluationResult(BaseModel):
    question_id: int
    question: str
    answer: str
    retrieved_chunks: int
    relevant_retrieved: int
    response_time_ms: int
    keywords_found: list[str]
    success: bool
    f_score: float


class EvaluationMetrics(BaseModel):
    total_questions: int = 0
    successful_queries: int = 0
    retrieval_accuracy: float = 0.0
    avg_response_time_ms: float = 0.0
    avg_chunks_retrieved: float = 0.0
    avg_relevant_chunks: float = 0.0
    avg_f_score: float = 0.0
    timestamp: str = ""
    configuration: dict[str, Any] = Field(default_factory=dict)


class EvaluationReport(BaseModel):
    metrics: EvaluationMetrics
    results: list[EvaluationResult]


def load_dataset(path: Path) -> list[Question]:
    raw = orjson.loads(path.read_bytes())
    return [Question.model_validate(item) for item in raw]


def save_report(report: EvaluationReport, path: Path) -> None:
    path.write_bytes(orjson.dumps(report.model_dump(), option=orjson.OPT_INDENT_2))


def find_keywords(keywords: Sequence[str], results: Sequence[SearchResult]) -> list[str]:
    """Keywords that appear (case-insensitively) in at least one retrieved chunk."""
    texts = [result.chunk.text.lower() for result in results]
    return [keyword for keyword in keywords if any(keyword.lower() in text for text in texts)]


def calculate_f_score(predicted: str, ground_truth: str, keywords: Sequence[str]) -> float:
    """Keyword-level F1 between a predicted answer and the ground truth.

    A keyword is a true positive when it appears in both texts, a false
    positive when only in the prediction, a false negative when only in the
    ground truth. Keywords in neither text are ignored.
    """
    predicted_lower = predicted.lower()
    truth_lower = ground_truth.lower()
    true_pos = false_pos = false_neg = 0
    for keyword in keywords:
        needle = keyword.lower()
        in_predicted = needle in predicted_lower
        in_truth = needle in truth_lower
        if in_predicted and in_truth:
            true_pos += 1
        elif in_predicted:
            false_pos += 1
        elif in_truth:
            false_neg += 1

    precision = true_pos / (true_pos + false_pos) if true_pos + false_pos else 0.0
    recall = true_pos / (true_pos + false_neg) if true_pos + false_neg else 0.0
    if precision + recall == 0:
        return 0.0
    return 2 * precision * recall / (precision + recall)


class Evaluator:
    """Runs every question through retrieval and generation and scores it."""

    def __init__(self, retriever: Retriever, generator: Generator, settings: Settings) -> None:
        self.retriever = retriever
        self.generator = generator
        self.settings = settings

    def evaluate(self, questions: Sequence[Question], document_id: str) -> EvaluationReport:
        logger.info("Starting evaluation of %d questions", len(questions))
        results: list[EvaluationResult] = []
        for position, question in enumerate(questions, start=1):
            logger.info("[%d/%d] Evaluating: %s", position, len(questions), question.question)
            result = self._evaluate_one(question, document_id)
            if result is not None:
                results.append(result)
        return EvaluationReport(metrics=self._aggregate(results), results=results)

    def _evaluate_one(self, question: Question, document_id: str) -> EvaluationResult | None:
        started = time.perf_counter()
        try:
            hits = self.retriever.retrieve(question.question, self.settings.top_k, document_id)
            answer = self.generator.generate(question.question, [hit.chunk.text for hit in hits])
        except BookQAError as exc:
            logger.warning("Question %d failed: %s", question.id, exc)
            return None
        took = elapsed_ms(started)

        found = find_keywords(question.relevant_keywords, hits)
        f_score = calculate_f_score(answer, question.ground_truth_answer, question.relevant_keywords)
        logger.info(
            "Completed in %dms (relevant: %d/%d, F-Score: %.2f)",
            took,
            len(found),
            len(hits),
            f_score,
        )
        return EvaluationResult(
            question_id=question.id,
            question=question.question,
            answer=answer,
            retrieved_chunks=len(hits),
            relevant_retrieved=len(found),
            response_time_ms=took,
            keywords_found=found,
            success=bool(found),
            f_score=f_score,
        )

    def _aggregate(self, results: Sequence[EvaluationResult]) -> EvaluationMetrics:
        metrics = EvaluationMetrics(
            timestamp=utc_now().isoformat(),
            configuration={
                "chunk_size": self.settings.chunk_size,
                "chunk_overlap": self.settings.chunk_overlap,
                "top_k": self.settings.top_k,
                "embed_model": self.settings.embedding_model,
                "llm_model": self.settings.llm_model,
            },
        )
        total = len(results)
        if not total:
            return metrics
        metrics.total_questions = total
        metrics.successful_queries = sum(1 for item in results if item.success)
        metrics.retrieval_accuracy = metrics.successful_queries / total
        metrics.avg_response_time_ms = sum(item.response_time_ms for item in results) / total
        metrics.avg_chunks_retrieved = sum(item.retrieved_chunks for item in results) / total
        metrics.avg_relevant_chunks = sum(item.relevant_retrieved for item in results) / total
        metrics.avg_f_score = sum(item.f_score for item in results) / total
        return metrics


def format_summary(report: EvaluationReport) -> str:
    """Human-readable summary block for the CLI."""
    metrics = report.metrics
    rule = "=" * 60
    lines = [
        rule,
        "EVALUATION SUMMARY",
        rule,
        f"Total Questions:      {metrics.total_questions}",
        f"Successful Queries:   {metrics.successful_queries}",
        f"Retrieval Accuracy:   {metrics.retrieval_accuracy * 100:.2f}%",
        f"Avg F-Score:          {metrics.avg_f_score:.3f}",
        f"Avg Response Time:    {metrics.avg_response_time_ms:.0f} ms",
        f"Avg Chunks Retrieved: {metrics.avg_chunks_retrieved:.1f}",
        f"Avg Relevant Chunks:  {metrics.avg_relevant_chunks:.1f}",
        rule,
        "Configuration:",
    ]
    lines.extend(f"  {key}: {value}" for key, value in metrics.configuration.items())
    lines.append(rule)
    return "\n".join(lines)


__all__ = [
    "Question",
    "EvaluationResult",
    "EvaluationMetrics",
    "EvaluationReport",
    "Evaluator",
    "load_dataset",
    "save_report",
    "find_keywords",
    "calculate_f_score",
    "format_summary",
]
