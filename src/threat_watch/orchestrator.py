"""Workflow orchestration for the recurring threat scan."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .clock import SystemClock, format_clock_time
from .event_log import EventLog
from .interfaces import AnalyzerInterface, ClockInterface, DispatcherInterface
from .models import (
    AnalysisResult,
    AutomationConfig,
    LogType,
    WorkflowSnapshot,
    WorkflowStatus,
)
from .scheduler import COUNTDOWN_TICK_SECONDS, RUN_INTERVAL_SECONDS, AutoRunScheduler

logger = logging.getLogger(__name__)

DISCOVERY_STEPS = (
    "Initializing discovery protocols...",
    "Connecting to CISA Known Exploited Vulnerabilities (KEV) Catalog...",
    "Querying NIST National Vulnerability Database (NVD)...",
    "Scanning vendor bulletins: Microsoft, Cisco, Fortinet, Adobe...",
    "Filtering timeframe: LAST 7 DAYS...",
    "Filtering severity: CVSS >= 8.0...",
    "Analyzing vectors for Active Exploitation...",
)

MANUAL_RUN_MESSAGE = "WORKFLOW INITIATED: CRITICAL THREAT DETECTION"
AUTO_RUN_MESSAGE = "AUTO-CRON TRIGGERED: INITIATING SCHEDULED SCAN"
DISCOVERY_COMPLETE_MESSAGE = "Discovery complete. Processing intelligence..."
GENERATING_MESSAGE = "Generating formal advisory..."
CRITICAL_MESSAGE = "CRITICAL THREAT IDENTIFIED. ADVISORY GENERATED."
NO_CRITICAL_MESSAGE = "No critical threats found in 7-day window."

StatusListener = Callable[[WorkflowStatus], None]


class WorkflowOrchestrator:
    """Drive discovery, analysis and advisory generation through one state machine.

    The orchestrator is the only writer of status, result and automation
    state. At most one run is in flight; triggers arriving meanwhile are
    ignored. Runs are asyncio tasks on the loop that called ``trigger``.
    """

    def __init__(
        self,
        analyzer: AnalyzerInterface,
        dispatcher: DispatcherInterface,
        event_log: EventLog | None = None,
        clock: ClockInterface | None = None,
        recipient: str = "",
        discovery_step_seconds: float = 0.8,
        run_interval_seconds: float = RUN_INTERVAL_SECONDS,
        countdown_tick_seconds: float = COUNTDOWN_TICK_SECONDS,
    ):
        self.analyzer = analyzer
        self.dispatcher = dispatcher
        self.clock = clock or SystemClock()
        self.event_log = event_log if event_log is not None else EventLog(clock=self.clock)
        self.discovery_step_seconds = discovery_step_seconds
        self.scheduler = AutoRunScheduler(
            trigger=self._on_scheduled_trigger,
            clock=self.clock,
            event_log=self.event_log,
            run_interval_seconds=run_interval_seconds,
            countdown_tick_seconds=countdown_tick_seconds,
        )
        self._status = WorkflowStatus.IDLE
        self._result: AnalysisResult | None = None
        self._recipient = recipient
        self._listeners: list[StatusListener] = []
        self._runs: set[asyncio.Task] = set()
        self._closed = False

    # -- observer view ---------------------------------------------------

    @property
    def status(self) -> WorkflowStatus:
        return self._status

    @property
    def result(self) -> AnalysisResult | None:
        return self._result

    @property
    def automation(self) -> AutomationConfig:
        return AutomationConfig(
            recipient=self._recipient,
            auto_run_enabled=self.scheduler.enabled,
            next_run_time=self.scheduler.next_run_time,
        )

    def snapshot(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            status=self._status,
            logs=self.event_log.entries(),
            result=self._result,
            recipient=self._recipient,
            auto_run_enabled=self.scheduler.enabled,
            next_run_time=self.scheduler.next_run_time,
            time_until_next_run=self.scheduler.time_until_next_run,
        )

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener called on every status transition."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- configuration inputs --------------------------------------------

    def set_recipient(self, recipient: str) -> None:
        self._recipient = recipient

    def set_auto_run(self, enabled: bool) -> None:
        if enabled:
            self.scheduler.enable()
        else:
            self.scheduler.disable()

    # -- triggers --------------------------------------------------------

    def trigger(self, is_auto_triggered: bool = False) -> asyncio.Task | None:
        """Schedule ``start_run`` as a task; returns None when rejected."""

        if self._closed or self._status.is_running:
            return None
        task = asyncio.get_running_loop().create_task(self.start_run(is_auto_triggered))
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
        return task

    async def start_run(self, is_auto_triggered: bool = False) -> bool:
        """Run the pipeline once. Returns False if a run is active or the orchestrator is closed."""

        if self._closed or self._status.is_running:
            logger.debug("Trigger ignored while %s", self._status.value)
            return False

        if not is_auto_triggered:
            self.event_log.clear()
            self._result = None

        self._set_status(WorkflowStatus.SCANNING)
        self.event_log.append(
            AUTO_RUN_MESSAGE if is_auto_triggered else MANUAL_RUN_MESSAGE,
            LogType.INFO,
        )

        loop = asyncio.get_running_loop()
        discovery = loop.create_task(self._simulate_discovery())
        analysis = loop.create_task(self.analyzer.analyze())

        try:
            await discovery
            self._set_status(WorkflowStatus.ANALYZING)
            self.event_log.append(DISCOVERY_COMPLETE_MESSAGE, LogType.WARNING)

            result = await analysis
        except Exception as exc:
            if not analysis.done():
                analysis.cancel()
            self._set_status(WorkflowStatus.ERROR)
            self.event_log.append(f"Analysis failed: {exc}", LogType.ERROR)
            logger.warning("Threat scan failed: %s", exc)
            return True

        self._set_status(WorkflowStatus.GENERATING)
        self.event_log.append(GENERATING_MESSAGE, LogType.SYSTEM)
        self._result = result
        self._set_status(WorkflowStatus.COMPLETE)

        if result.found_critical:
            self.event_log.append(CRITICAL_MESSAGE, LogType.ERROR)
            if self.scheduler.enabled or self._recipient:
                await self._dispatch(result, self._recipient)
        else:
            self.event_log.append(NO_CRITICAL_MESSAGE, LogType.SUCCESS)

        if self.scheduler.enabled:
            scheduled = self.scheduler.rearm()
            self.event_log.append(
                f"Scan complete. Next auto-run scheduled for {format_clock_time(scheduled)}.",
                LogType.SYSTEM,
            )
        return True

    async def close(self) -> None:
        """Stop the timers and wait for in-flight runs to settle."""

        self._closed = True
        self.scheduler.disable()
        if self._runs:
            await asyncio.gather(*self._runs, return_exceptions=True)

    # -- internals -------------------------------------------------------

    async def _simulate_discovery(self) -> None:
        for step in DISCOVERY_STEPS:
            await self.clock.sleep(self.discovery_step_seconds)
            self.event_log.append(step, LogType.SYSTEM)
        await self.clock.sleep(self.discovery_step_seconds)

    async def _dispatch(self, result: AnalysisResult, destination: str) -> None:
        try:
            await self.dispatcher.dispatch(result, destination)
        except Exception as exc:
            self.event_log.append(f"Advisory dispatch failed: {exc}", LogType.WARNING)
            logger.warning("Dispatch to %r failed: %s", destination, exc)

    def _on_scheduled_trigger(self) -> None:
        self.trigger(is_auto_triggered=True)

    def _set_status(self, status: WorkflowStatus) -> None:
        self._status = status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("Status listener failed")
