"""Core data models for the threat-scan workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class WorkflowStatus(str, Enum):
    """Lifecycle of one scan run."""

    IDLE = "IDLE"
    SCANNING = "SCANNING"
    ANALYZING = "ANALYZING"
    GENERATING = "GENERATING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"

    @property
    def is_running(self) -> bool:
        return self in ACTIVE_STATUSES


ACTIVE_STATUSES = frozenset(
    {WorkflowStatus.SCANNING, WorkflowStatus.ANALYZING, WorkflowStatus.GENERATING}
)


class LogType(str, Enum):
    """Severity/category of an event log entry."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One timestamped line of the run narrative."""

    timestamp: str
    message: str
    type: LogType = LogType.INFO


@dataclass(frozen=True, slots=True)
class GroundingSource:
    """A web reference the analysis was grounded on."""

    uri: str
    title: str


@dataclass(slots=True)
class AnalysisResult:
    """Outcome of one discovery + analysis call."""

    advisory_content: str
    found_critical: bool
    sources: list[GroundingSource] = field(default_factory=list)


@dataclass(slots=True)
class AutomationConfig:
    """Recipient and auto-run state owned by the orchestrator."""

    recipient: str = ""
    auto_run_enabled: bool = False
    next_run_time: datetime | None = None


@dataclass(frozen=True, slots=True)
class EmailDraft:
    """Plain-text notification composed from an advisory."""

    recipient: str
    subject: str
    body: str
    mailto_url: str


@dataclass(frozen=True, slots=True)
class WorkflowSnapshot:
    """Read-only observer view of the orchestrator."""

    status: WorkflowStatus
    logs: tuple[LogEntry, ...]
    result: AnalysisResult | None
    recipient: str
    auto_run_enabled: bool
    next_run_time: datetime | None
    time_until_next_run: str
