import asyncio
from datetime import date
from urllib.parse import parse_qs, urlparse

import pytest

from threat_watch.dispatch import (
    MAX_BODY_LENGTH,
    TRUNCATION_NOTICE,
    SimulatedMailDispatcher,
    compose_email_draft,
)
from threat_watch.event_log import EventLog
from threat_watch.models import AnalysisResult, LogType

ADVISORY = AnalysisResult(
    advisory_content="# CISA CYBERSECURITY ADVISORY\n**CVE ID:** `CVE-2026-0001`",
    found_critical=True,
)


def test_compose_email_draft_strips_markdown_and_builds_mailto() -> None:
    draft = compose_email_draft(ADVISORY, "soc@agency.gov", date(2026, 2, 6))

    assert draft.subject == "CISA Cybersecurity Advisory - 2/6/2026"
    assert draft.body == (
        "Please find the attached Critical Security Advisory.\n\n"
        " CISA CYBERSECURITY ADVISORY\nCVE ID: CVE-2026-0001"
    )

    parsed = urlparse(draft.mailto_url)
    query = parse_qs(parsed.query)
    assert parsed.scheme == "mailto"
    assert parsed.path == "soc@agency.gov"
    assert query["subject"] == [draft.subject]
    assert query["body"] == [draft.body]


def test_compose_email_draft_truncates_long_advisories() -> None:
    long_result = AnalysisResult(advisory_content="x" * (MAX_BODY_LENGTH + 200), found_critical=True)

    draft = compose_email_draft(long_result, "soc@agency.gov", date(2026, 2, 6))

    assert draft.body.endswith("x" * 10 + TRUNCATION_NOTICE)
    assert draft.body.count("x") == MAX_BODY_LENGTH


@pytest.mark.asyncio
async def test_simulated_dispatch_narrates_handoff(clock) -> None:
    event_log = EventLog(clock=clock)
    dispatcher = SimulatedMailDispatcher(event_log=event_log, clock=clock, delay_scale=0)

    draft = await dispatcher.dispatch(ADVISORY, "soc@agency.gov")

    entries = event_log.entries()
    assert [entry.type for entry in entries] == [
        LogType.SYSTEM,
        LogType.SYSTEM,
        LogType.SYSTEM,
        LogType.WARNING,
        LogType.SUCCESS,
    ]
    assert entries[3].message == "[SIMULATION] Dispatching advisory to soc@agency.gov..."
    assert dispatcher.sent == [draft]
    assert draft.recipient == "soc@agency.gov"


@pytest.mark.asyncio
async def test_simulated_dispatch_waits_between_steps(clock) -> None:
    event_log = EventLog(clock=clock)
    dispatcher = SimulatedMailDispatcher(event_log=event_log, clock=clock)

    task = asyncio.create_task(dispatcher.dispatch(ADVISORY, "soc@agency.gov"))
    await clock.advance(0.5)
    assert len(event_log) == 1

    await clock.advance(0.3)
    assert len(event_log) == 3

    await clock.advance(0.6)
    await clock.advance(1.0)
    await task
    assert len(event_log) == 5
