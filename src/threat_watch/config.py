"""Configuration loading for threat-watch."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ConfigError
from .prompts import SYSTEM_INSTRUCTION, USER_PROMPT


@dataclass(slots=True)
class AutomationSettings:
    """Recipient and scheduling behavior."""

    recipient: str = ""
    auto_run: bool = False
    run_interval_seconds: float = 3600
    countdown_tick_seconds: float = 1
    discovery_step_seconds: float = 0.8
    dispatch_delay_scale: float = 1.0
    log_capacity: int | None = None


@dataclass(slots=True)
class AnalysisSettings:
    """Model and endpoint settings for the analysis call."""

    model_name: str = "gemini-3-pro-preview"
    endpoint: str | None = None
    thinking_budget: int | None = 2048
    timeout_seconds: float = 120


@dataclass(slots=True)
class OutputSettings:
    """Where generated advisories are written."""

    markdown_output_dir: str = "advisories/markdown"
    pdf_output_dir: str = "advisories/pdf"
    output_pdf: bool = False


@dataclass(slots=True)
class PromptConfig:
    """Prompt templates for the analyst model."""

    system_instruction: str = SYSTEM_INSTRUCTION
    user_prompt: str = USER_PROMPT


@dataclass(slots=True)
class AppConfig:
    """Application configuration object."""

    automation: AutomationSettings = field(default_factory=AutomationSettings)
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    prompts: PromptConfig = field(default_factory=PromptConfig)


DEFAULT_CONFIG_PATH = Path("config/default_config.json")


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from JSON file.

    Args:
        path: Custom config path. If omitted, uses default config.

    Returns:
        Parsed AppConfig object.

    Raises:
        FileNotFoundError: If config file does not exist.
        ConfigError: If the file is not a JSON object or a value has the wrong type.
    """

    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a JSON object")

    try:
        automation_data = data.get("automation", {})
        log_capacity = automation_data.get("log_capacity")
        automation = AutomationSettings(
            recipient=str(automation_data.get("recipient", "")),
            auto_run=_as_bool(automation_data.get("auto_run", False)),
            run_interval_seconds=float(automation_data.get("run_interval_seconds", 3600)),
            countdown_tick_seconds=float(automation_data.get("countdown_tick_seconds", 1)),
            discovery_step_seconds=float(automation_data.get("discovery_step_seconds", 0.8)),
            dispatch_delay_scale=float(automation_data.get("dispatch_delay_scale", 1.0)),
            log_capacity=int(log_capacity) if log_capacity is not None else None,
        )

        analysis_data = data.get("analysis", {})
        thinking_budget = analysis_data.get("thinking_budget", 2048)
        analysis = AnalysisSettings(
            model_name=analysis_data.get("model_name", "gemini-3-pro-preview"),
            endpoint=analysis_data.get("endpoint"),
            thinking_budget=int(thinking_budget) if thinking_budget is not None else None,
            timeout_seconds=float(analysis_data.get("timeout_seconds", 120)),
        )

        output_data = data.get("output", {})
        output = OutputSettings(
            markdown_output_dir=output_data.get("markdown_output_dir", "advisories/markdown"),
            pdf_output_dir=output_data.get("pdf_output_dir", "advisories/pdf"),
            output_pdf=_as_bool(output_data.get("output_pdf", False)),
        )
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid config value in {config_path}: {exc}") from exc

    prompt_data = data.get("prompts", {})
    prompts = PromptConfig(
        system_instruction=prompt_data.get("system_instruction", SYSTEM_INSTRUCTION),
        user_prompt=prompt_data.get("user_prompt", USER_PROMPT),
    )

    if automation.run_interval_seconds <= 0 or automation.countdown_tick_seconds <= 0:
        raise ConfigError("Timer intervals must be positive")

    return AppConfig(automation=automation, analysis=analysis, output=output, prompts=prompts)


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
