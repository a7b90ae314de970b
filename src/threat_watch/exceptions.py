"""Exception types raised by threat-watch components."""

from __future__ import annotations


class ThreatWatchError(Exception):
    """Base class for all threat-watch errors."""


class AnalysisError(ThreatWatchError):
    """The analysis collaborator could not produce a result."""


class DispatchError(ThreatWatchError):
    """A notification could not be delivered."""


class ConfigError(ThreatWatchError, ValueError):
    """Configuration file is present but malformed."""
