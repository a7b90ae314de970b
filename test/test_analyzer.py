import pytest

from threat_watch.analyzer import (
    EMPTY_RESPONSE_TEXT,
    ThreatAnalyzer,
    build_result,
    deduplicate_sources,
    extract_sources,
)
from threat_watch.exceptions import AnalysisError
from threat_watch.models import GroundingSource
from threat_watch.prompts import NOT_FOUND_PHRASE


class FakeGeminiClient:
    def __init__(self, candidate=None, error=None, enabled=True):
        self.candidate = candidate or {}
        self.error = error
        self.enabled = enabled
        self.requests = []

    def generate_grounded(self, model, system_instruction, user_prompt, thinking_budget=None):
        self.requests.append(
            {
                "model": model,
                "system_instruction": system_instruction,
                "user_prompt": user_prompt,
                "thinking_budget": thinking_budget,
            }
        )
        if self.error is not None:
            raise self.error
        return self.candidate


def make_candidate(text, chunks=()):
    return {
        "content": {"parts": [{"text": text}]},
        "groundingMetadata": {"groundingChunks": list(chunks)},
    }


def test_build_result_flags_critical_and_dedupes_sources() -> None:
    candidate = make_candidate(
        "# CISA CYBERSECURITY ADVISORY\nCVE-2026-1234",
        chunks=[
            {"web": {"uri": "https://nvd.nist.gov/a", "title": "NVD"}},
            {"web": {"uri": "https://nvd.nist.gov/a", "title": "NVD again"}},
            {"web": {"uri": "https://cisa.gov/kev", "title": "KEV"}},
            {"retrievedContext": {"uri": "internal"}},
            {"web": {"uri": 42, "title": "bad"}},
        ],
    )

    result = build_result(candidate)

    assert result.found_critical is True
    assert result.sources == [
        GroundingSource(uri="https://nvd.nist.gov/a", title="NVD"),
        GroundingSource(uri="https://cisa.gov/kev", title="KEV"),
    ]


def test_build_result_detects_not_found_phrase() -> None:
    result = build_result(make_candidate(f"{NOT_FOUND_PHRASE}."))

    assert result.found_critical is False


def test_build_result_handles_empty_candidate() -> None:
    result = build_result({})

    assert result.advisory_content == EMPTY_RESPONSE_TEXT
    assert result.found_critical is True
    assert result.sources == []


def test_extract_sources_tolerates_missing_metadata() -> None:
    assert extract_sources({"groundingMetadata": None}) == []


def test_deduplicate_sources_keeps_first_seen_order() -> None:
    sources = [
        GroundingSource("u2", "b"),
        GroundingSource("u1", "a"),
        GroundingSource("u2", "c"),
    ]

    assert [item.uri for item in deduplicate_sources(sources)] == ["u2", "u1"]


@pytest.mark.asyncio
async def test_analyze_sends_prompt_with_timestamp() -> None:
    client = FakeGeminiClient(candidate=make_candidate("advisory"))
    analyzer = ThreatAnalyzer(model_name="gemini-test", llm_client=client, thinking_budget=512)

    result = await analyzer.analyze()

    assert result.advisory_content == "advisory"
    request = client.requests[0]
    assert request["model"] == "gemini-test"
    assert request["thinking_budget"] == 512
    assert "Current Date and Time: 20" in request["user_prompt"]
    assert "{timestamp}" not in request["user_prompt"]


@pytest.mark.asyncio
async def test_analyze_without_api_key_raises_analysis_error() -> None:
    analyzer = ThreatAnalyzer(model_name="m", llm_client=FakeGeminiClient(enabled=False))

    with pytest.raises(AnalysisError, match="API Key not found"):
        await analyzer.analyze()


@pytest.mark.asyncio
async def test_analyze_wraps_client_errors() -> None:
    client = FakeGeminiClient(error=RuntimeError("quota exceeded"))
    analyzer = ThreatAnalyzer(model_name="m", llm_client=client)

    with pytest.raises(AnalysisError, match="quota exceeded"):
        await analyzer.analyze()


@pytest.mark.asyncio
async def test_analyze_uses_fallback_message_for_blank_errors() -> None:
    analyzer = ThreatAnalyzer(model_name="m", llm_client=FakeGeminiClient(error=RuntimeError()))

    with pytest.raises(AnalysisError, match="An unexpected error occurred during analysis."):
        await analyzer.analyze()
