"""Threat discovery and advisory generation backed by Gemini."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from .exceptions import AnalysisError
from .llm import GeminiClient, candidate_text
from .models import AnalysisResult, GroundingSource
from .prompts import NOT_FOUND_PHRASE, SYSTEM_INSTRUCTION, USER_PROMPT

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_TEXT = "No response generated."
UNEXPECTED_ERROR_TEXT = "An unexpected error occurred during analysis."


class ThreatAnalyzer:
    """Run one search-grounded analysis and shape it into an AnalysisResult."""

    def __init__(
        self,
        model_name: str,
        system_instruction: str = SYSTEM_INSTRUCTION,
        user_prompt: str = USER_PROMPT,
        thinking_budget: int | None = 2048,
        llm_client: GeminiClient | None = None,
    ):
        self.model_name = model_name
        self.system_instruction = system_instruction
        self.user_prompt = user_prompt
        self.thinking_budget = thinking_budget
        self.llm_client = llm_client or GeminiClient()

    async def analyze(self) -> AnalysisResult:
        if not self.llm_client.enabled:
            raise AnalysisError("API Key not found in environment variables.")

        prompt = self.user_prompt.format(timestamp=datetime.now(timezone.utc).isoformat())
        try:
            candidate = await asyncio.to_thread(
                self.llm_client.generate_grounded,
                model=self.model_name,
                system_instruction=self.system_instruction,
                user_prompt=prompt,
                thinking_budget=self.thinking_budget,
            )
        except Exception as exc:
            logger.error("Gemini API error: %s", exc)
            raise AnalysisError(str(exc) or UNEXPECTED_ERROR_TEXT) from exc

        return build_result(candidate)


def build_result(candidate: dict) -> AnalysisResult:
    """Turn a raw response candidate into an AnalysisResult."""

    text = candidate_text(candidate) or EMPTY_RESPONSE_TEXT
    return AnalysisResult(
        advisory_content=text,
        found_critical=is_critical(text),
        sources=deduplicate_sources(extract_sources(candidate)),
    )


def is_critical(text: str) -> bool:
    return NOT_FOUND_PHRASE not in text


def extract_sources(candidate: dict) -> list[GroundingSource]:
    """Collect web grounding chunks whose uri and title are both strings."""

    metadata = candidate.get("groundingMetadata") or {}
    sources: list[GroundingSource] = []
    for chunk in metadata.get("groundingChunks") or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not web:
            continue
        uri, title = web.get("uri"), web.get("title")
        if isinstance(uri, str) and isinstance(title, str):
            sources.append(GroundingSource(uri=uri, title=title))
    return sources


def deduplicate_sources(sources: list[GroundingSource]) -> list[GroundingSource]:
    """Keep one source per uri, in first-seen order."""

    unique: list[GroundingSource] = []
    seen: set[str] = set()
    for source in sources:
        if source.uri in seen:
            continue
        seen.add(source.uri)
        unique.append(source)
    return unique
