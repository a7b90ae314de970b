"""Minimal Gemini API client with Google Search grounding."""

from __future__ import annotations

import json
import os
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiClient:
    """HTTP client for Gemini ``generateContent``."""

    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        timeout_seconds: float = 120,
    ):
        self.api_key = api_key or os.getenv("GEMINI_API_KEY", "") or os.getenv("API_KEY", "")
        self.endpoint = (endpoint or DEFAULT_ENDPOINT).rstrip("/")
        self.timeout_seconds = timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def generate_grounded(
        self,
        model: str,
        system_instruction: str,
        user_prompt: str,
        thinking_budget: int | None = None,
    ) -> dict:
        """Send one search-grounded generation request.

        Returns:
            The first candidate of the response, as a dict.
        """

        if not self.enabled:
            raise RuntimeError("API Key not found in environment variables.")

        payload: dict = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "tools": [{"google_search": {}}],
        }
        if thinking_budget is not None:
            payload["generationConfig"] = {"thinkingConfig": {"thinkingBudget": thinking_budget}}

        request = Request(
            f"{self.endpoint}/{model}:generateContent",
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "x-goog-api-key": self.api_key,
                "Content-Type": "application/json",
            },
            method="POST",
        )

        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                body = json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            raise RuntimeError(_http_error_message(exc)) from exc
        except URLError as exc:
            raise RuntimeError(f"Gemini request failed: {exc.reason}") from exc

        candidates = body.get("candidates") or []
        return candidates[0] if candidates else {}


def candidate_text(candidate: dict) -> str:
    """Concatenate the text parts of a response candidate."""

    parts = (candidate.get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def _http_error_message(exc: HTTPError) -> str:
    try:
        body = json.loads(exc.read().decode("utf-8"))
        message = body.get("error", {}).get("message")
    except (ValueError, AttributeError):
        message = None
    return message or f"Gemini request failed with HTTP {exc.code}"
