"""Protocol interfaces for orchestrator dependency typing."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import AnalysisResult, EmailDraft


class ClockInterface(Protocol):
    """Wall-clock and suspension source."""

    def now(self) -> datetime: ...

    async def sleep(self, seconds: float) -> None: ...


class AnalyzerInterface(Protocol):
    """Discovery + analysis collaborator."""

    async def analyze(self) -> AnalysisResult: ...


class DispatcherInterface(Protocol):
    """Notification collaborator for critical findings."""

    async def dispatch(self, result: AnalysisResult, destination: str) -> EmailDraft | None: ...


class WriterInterface(Protocol):
    """Writer interface for advisory output."""

    def write(self, run_at: datetime, text: str) -> str: ...
