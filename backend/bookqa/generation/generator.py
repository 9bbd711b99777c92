"""Grounded answer generation through an Ollama ``/api/generate`` endpoint."""

from __future__ import annotations

import logging
from typing import Sequence

from bookqa.clients.ollama import OllamaClient
from bookqa.core.config import Settings
from bookqa.core.errors import EmptyResponseError

logger = logging.getLogger(__name__)

REFUSAL_PHRASE = "I cannot find this information in the provided text."

SYSTEM_INSTRUCTIONS = (
    "You are a helpful assistant answering questions about a book.\n"
    "Use ONLY the following context passages to answer the question.\n"
    f'If the answer cannot be found in the context, say "{REFUSAL_PHRASE}"\n'
    "Be concise and accurate. Cite specific details from the context when possible.\n\n"
)


class Generator:
    """Builds the prompt and calls the generation service with streaming off."""

    endpoint = "/api/generate"

    def __init__(self, client: OllamaClient, model: str) -> None:
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "Generator":
        client = OllamaClient(
            settings.generation_base_url,
            timeout=settings.generation_timeout,
            service="ollama-generate",
        )
        return cls(client, settings.llm_model)

    def build_prompt(self, question: str, contexts: Sequence[str]) -> str:
        parts = [SYSTEM_INSTRUCTIONS, "Context:\n", "---\n"]
        for idx, context in enumerate(contexts, start=1):
            parts.append(f"[{idx}] {context}\n\n")
        parts.append("---\n\n")
        parts.append(f"Question: {question}\n\n")
        parts.append("Answer:")
        return "".join(parts)

    def generate(self, question: str, contexts: Sequence[str]) -> str:
        logger.info("Generating answer from %d context passages with %s", len(contexts), self.model)
        return self.generate_raw(self.build_prompt(question, contexts))

    def generate_raw(self, prompt: str) -> str:
        """Send an already complete prompt."""
        data = self.client.post_json(
            self.endpoint,
            {"model": self.model, "prompt": prompt, "stream": False},
        )
        answer = (data.get("response") or "").strip()
        if not answer:
            raise EmptyResponseError("Received empty response from ollama", self.client.service)
        if not data.get("done", True):
            logger.warning("Generation for %s reported done=false", self.model)
        return answer

    def test_connection(self) -> bool:
        return self.client.probe()


__all__ = ["Generator", "REFUSAL_PHRASE", "SYSTEM_INSTRUCTIONS"]
