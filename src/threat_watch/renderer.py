"""Markdown rendering for generated advisories."""

from __future__ import annotations

from datetime import datetime

from .models import AnalysisResult


def render_advisory_markdown(run_at: datetime, result: AnalysisResult) -> str:
    """Render an advisory page, or the no-findings page."""

    header = f"# Threat Scan Report - {run_at.strftime('%Y-%m-%d %H:%M:%S')}"
    blocks = [header, ""]

    if not result.found_critical:
        blocks.extend(["## No Critical Threats Found", "", result.advisory_content.strip(), ""])
        return "\n".join(blocks).strip() + "\n"

    blocks.extend(
        [
            "### Generated Advisory",
            "",
            "- **Severity**: CRITICAL",
            "- **TLP**: CLEAR",
            "",
            result.advisory_content.strip(),
            "",
        ]
    )

    if result.sources:
        blocks.extend(["## Verified Sources", ""])
        blocks.extend(f"- [{source.title}]({source.uri})" for source in result.sources)
        blocks.append("")

    return "\n".join(blocks).strip() + "\n"


class MarkdownRenderer:
    """Object adapter for orchestrator output injection."""

    def render(self, run_at: datetime, result: AnalysisResult) -> str:
        return render_advisory_markdown(run_at=run_at, result=result)
