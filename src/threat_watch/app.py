"""Application entry point for the threat-scan workflow."""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from .analyzer import ThreatAnalyzer
from .clock import SystemClock
from .config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from .dispatch import SimulatedMailDispatcher
from .event_log import EventLog
from .interfaces import WriterInterface
from .llm import GeminiClient
from .models import LogEntry, WorkflowStatus
from .orchestrator import WorkflowOrchestrator
from .output_writer import AdvisoryWriter
from .renderer import MarkdownRenderer

logger = logging.getLogger(__name__)


def _build_runtime_log_lines(config) -> list[str]:
    automation = config.automation
    analysis = config.analysis
    output = config.output
    return [
        f"  recipient={automation.recipient or 'N/A'}",
        f"  auto_run={automation.auto_run}",
        f"  run_interval_seconds={automation.run_interval_seconds}",
        f"  discovery_step_seconds={automation.discovery_step_seconds}",
        f"  model_name={analysis.model_name}",
        f"  markdown_output_dir={getattr(output, 'markdown_output_dir', 'N/A')}",
        f"  output_pdf={getattr(output, 'output_pdf', False)}",
        f"  pdf_output_dir={getattr(output, 'pdf_output_dir', 'N/A')}",
    ]


def format_log_entry(entry: LogEntry) -> str:
    return f"[{entry.timestamp}] [{entry.type.value.upper():<7}] {entry.message}"


def build_orchestrator(config: AppConfig) -> WorkflowOrchestrator:
    """Wire collaborators from config into an orchestrator."""

    clock = SystemClock()
    automation = config.automation
    event_log = EventLog(clock=clock, capacity=automation.log_capacity)
    analyzer = ThreatAnalyzer(
        model_name=config.analysis.model_name,
        system_instruction=config.prompts.system_instruction,
        user_prompt=config.prompts.user_prompt,
        thinking_budget=config.analysis.thinking_budget,
        llm_client=GeminiClient(
            endpoint=config.analysis.endpoint,
            timeout_seconds=config.analysis.timeout_seconds,
        ),
    )
    dispatcher = SimulatedMailDispatcher(
        event_log=event_log,
        clock=clock,
        delay_scale=automation.dispatch_delay_scale,
    )
    return WorkflowOrchestrator(
        analyzer=analyzer,
        dispatcher=dispatcher,
        event_log=event_log,
        clock=clock,
        recipient=automation.recipient,
        discovery_step_seconds=automation.discovery_step_seconds,
        run_interval_seconds=automation.run_interval_seconds,
        countdown_tick_seconds=automation.countdown_tick_seconds,
    )


class AdvisoryOutput:
    """Write the stored advisory each time a run reaches COMPLETE.

    Rendering happens in the status callback; the file and PDF writes run in a
    worker thread so the timers keep ticking. ``drain()`` waits for pending
    writes; a failed write is logged and never changes the run status.
    """

    def __init__(self, writer: WriterInterface, renderer: MarkdownRenderer | None = None):
        self.writer = writer
        self.renderer = renderer if renderer is not None else MarkdownRenderer()
        self._pending: set[asyncio.Task] = set()

    def attach(self, orchestrator: WorkflowOrchestrator) -> Callable[[], None]:
        def on_status(status: WorkflowStatus) -> None:
            result = orchestrator.result
            if status is not WorkflowStatus.COMPLETE or result is None:
                return
            run_at = orchestrator.clock.now()
            text = self.renderer.render(run_at, result)
            task = asyncio.get_running_loop().create_task(self._write(run_at, text))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        return orchestrator.subscribe(on_status)

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending)

    async def _write(self, run_at: datetime, text: str) -> str | None:
        try:
            output_path = await asyncio.to_thread(self.writer.write, run_at=run_at, text=text)
        except Exception:
            logger.exception("Advisory write failed")
            return None
        print(f"[STEP] Advisory written to {output_path}")
        return output_path


async def run_workflow(
    config: AppConfig,
    auto_run: bool = False,
    skip_initial_run: bool = False,
) -> WorkflowStatus:
    """Run one manual scan, or keep scanning on the auto-run cadence."""

    orchestrator = build_orchestrator(config)
    orchestrator.event_log.subscribe(lambda entry: print(format_log_entry(entry)))
    writer = AdvisoryWriter(
        markdown_dir=config.output.markdown_output_dir,
        pdf_dir=config.output.pdf_output_dir,
        output_pdf=config.output.output_pdf,
    )
    output = AdvisoryOutput(writer)
    output.attach(orchestrator)

    try:
        if not skip_initial_run:
            await orchestrator.start_run(is_auto_triggered=False)
        if auto_run:
            orchestrator.set_auto_run(True)
            print("[STEP] Auto-run active, press Ctrl+C to stop")
            await asyncio.Event().wait()
    finally:
        await orchestrator.close()
        await output.drain()

    return orchestrator.status


def main() -> None:
    """CLI main function."""

    parser = argparse.ArgumentParser(description="Scan for critical threats and generate advisories")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config json. Default: config/default_config.json",
    )
    parser.add_argument("--recipient", type=str, default=None, help="Override advisory recipient")
    parser.add_argument("--auto", action="store_true", help="Keep running with hourly auto-scan")
    parser.add_argument(
        "--skip-initial-run",
        action="store_true",
        help="With --auto, wait for the first scheduled scan instead of scanning now",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable diagnostic logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    effective_config_path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH
    config = load_config(effective_config_path)
    if args.recipient is not None:
        config.automation.recipient = args.recipient
    auto_run = args.auto or config.automation.auto_run

    print(f"[STEP] Loading configuration from {effective_config_path.resolve()}")
    for line in _build_runtime_log_lines(config):
        print(line)

    try:
        status = asyncio.run(
            run_workflow(config, auto_run=auto_run, skip_initial_run=args.skip_initial_run and auto_run)
        )
    except KeyboardInterrupt:
        print("[STEP] Stopped")
        return

    print(f"Workflow finished with status {status.value}")
    if status is WorkflowStatus.ERROR:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
