"""Simulated advisory dispatch and email draft composition."""

from __future__ import annotations

import re
from datetime import date
from urllib.parse import quote

from .clock import SystemClock
from .event_log import EventLog
from .interfaces import ClockInterface
from .models import AnalysisResult, EmailDraft, LogType

MAX_BODY_LENGTH = 1500
TRUNCATION_NOTICE = (
    "\n\n...[Content Truncated due to email link limits. See dashboard for full report]..."
)
MARKDOWN_NOISE_PATTERN = re.compile(r"[#*`]")


def compose_email_draft(result: AnalysisResult, recipient: str, today: date) -> EmailDraft:
    """Build a plain-text advisory email and its ``mailto:`` link.

    Markdown markers are stripped and the body is truncated so the link
    stays within mail-client URL limits.
    """

    subject = f"CISA Cybersecurity Advisory - {today.month}/{today.day}/{today.year}"
    clean_body = MARKDOWN_NOISE_PATTERN.sub("", result.advisory_content)
    if len(clean_body) > MAX_BODY_LENGTH:
        clean_body = clean_body[:MAX_BODY_LENGTH] + TRUNCATION_NOTICE

    body = f"Please find the attached Critical Security Advisory.\n\n{clean_body}"
    mailto_url = f"mailto:{recipient}?subject={quote(subject, safe='')}&body={quote(body, safe='')}"
    return EmailDraft(recipient=recipient, subject=subject, body=body, mailto_url=mailto_url)


class SimulatedMailDispatcher:
    """Narrate an SMTP hand-off into the event log without sending anything."""

    def __init__(
        self,
        event_log: EventLog,
        clock: ClockInterface | None = None,
        delay_scale: float = 1.0,
    ):
        self.event_log = event_log
        self.clock = clock or SystemClock()
        self.delay_scale = delay_scale
        self.sent: list[EmailDraft] = []

    async def dispatch(self, result: AnalysisResult, destination: str) -> EmailDraft:
        draft = compose_email_draft(result, destination, self.clock.now().date())

        self.event_log.append(
            "[SIMULATION] Initiating SMTP handshake with secure relay...", LogType.SYSTEM
        )
        await self._pause(0.8)
        self.event_log.append("[SIMULATION] Authenticating... Success.", LogType.SYSTEM)
        self.event_log.append(
            "[SIMULATION] Encrypting advisory payload (TLS 1.3)...", LogType.SYSTEM
        )
        await self._pause(0.6)
        self.event_log.append(
            f"[SIMULATION] Dispatching advisory to {destination}...", LogType.WARNING
        )
        await self._pause(1.0)
        self.event_log.append(
            "[SIMULATION] Email successfully queued for delivery. (Demo Only)", LogType.SUCCESS
        )

        self.sent.append(draft)
        return draft

    async def _pause(self, seconds: float) -> None:
        await self.clock.sleep(seconds * self.delay_scale)
