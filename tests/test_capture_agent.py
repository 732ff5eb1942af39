from __future__ import annotations

import pytest

from jobtrack.agents.capture_agent import CaptureAgent
from jobtrack.core.context import AppContext
from jobtrack.core.db import MemoryStore, SqliteStore, StorageError
from jobtrack.core.schema import JobDraft

pytestmark = pytest.mark.unit

JOB_URL = "https://www.linkedin.com/jobs/view/1"


@pytest.fixture
def agent(ctx) -> CaptureAgent:
    ctx.tracker.save_settings(autoCapture=True)
    return CaptureAgent(ctx)


def test_capture_for_review_returns_form_fields(ctx, linkedin_title_only):
    fields = CaptureAgent(ctx).capture_for_review(linkedin_title_only, JOB_URL)
    assert fields == {
        "company": "Acme Corp",
        "position": "Senior Engineer",
        "url": JOB_URL,
        "skills": [],
    }


def test_capture_for_review_flags_tracked_jobs(ctx, linkedin_title_only):
    agent = CaptureAgent(ctx)
    agent.add_manual(agent.capture_for_review(linkedin_title_only, JOB_URL))
    assert agent.capture_for_review(linkedin_title_only, JOB_URL) is None


def test_add_manual_refuses_duplicates(ctx):
    agent = CaptureAgent(ctx)
    assert agent.add_manual({"company": "Acme", "position": "Eng"}) is not None
    assert agent.add_manual({"company": "Acme", "position": "Eng"}) is None
    assert len(ctx.tracker.records()) == 1


def test_auto_capture_off_does_nothing(ctx, notifier, linkedin_title_only):
    assert CaptureAgent(ctx).check_auto_capture(linkedin_title_only, JOB_URL) is None
    assert notifier.shown == []


def test_auto_capture_needs_company_and_position(agent, notifier):
    assert agent.check_auto_capture("<title>Jobs | LinkedIn</title>", JOB_URL) is None
    assert notifier.shown == []


def test_two_phase_tracking(ctx, agent, notifier, linkedin_topcard):
    nid = agent.check_auto_capture(linkedin_topcard, JOB_URL)
    assert notifier.shown[0]["title"] == "New Job Detected!"
    assert notifier.shown[0]["message"] == "Platform Engineer at Initrode"
    assert notifier.shown[0]["buttons"] == ["Track This Job"]

    key = f"notification_{nid}"
    pending = ctx.session_store.get([key])[key]
    assert pending["state"] == "pending"
    assert pending["jobData"]["company"] == "Initrode"
    assert ctx.tracker.records() == []

    record = agent.on_button_clicked(nid, 0)
    assert record.company == "Initrode"
    assert record.skills == ["Python", "AWS", "Kubernetes", "Terraform"]
    assert record.url == JOB_URL
    assert notifier.titles == ["New Job Detected!", "Job Tracked!"]
    assert nid in notifier.cleared
    assert ctx.session_store.get([key]) == {}
    assert ctx.badge_text == "1"

    # already tracked: no second notification
    assert agent.check_auto_capture(linkedin_topcard, JOB_URL) is None
    assert len(notifier.shown) == 2


def test_repeated_click_does_not_track_twice(ctx, agent, linkedin_topcard):
    nid = agent.check_auto_capture(linkedin_topcard, JOB_URL)
    agent.on_button_clicked(nid, 0)
    assert agent.on_button_clicked(nid, 0) is None
    assert len(ctx.tracker.records()) == 1


def test_other_button_or_body_click_discards(ctx, agent, notifier, linkedin_topcard):
    nid = agent.check_auto_capture(linkedin_topcard, JOB_URL)
    assert agent.on_button_clicked(nid, 1) is None
    assert ctx.session_store.get([f"notification_{nid}"]) == {}
    assert ctx.tracker.records() == []

    nid2 = agent.handle_job_detected(JobDraft(company="Acme", position="Eng"))
    agent.on_clicked(nid2)
    assert ctx.session_store.get([f"notification_{nid2}"]) == {}
    assert nid in notifier.cleared and nid2 in notifier.cleared


def test_notifications_setting_mutes_detection(ctx, agent, notifier):
    ctx.tracker.save_settings(notifications=False)
    assert agent.handle_job_detected(JobDraft(company="Acme", position="Eng")) is None
    assert notifier.shown == []


def test_correlation_falls_back_to_persistent_store(cfg, notifier):
    ctx = AppContext(cfg=cfg, store=SqliteStore(":memory:"), notifier=notifier)
    ctx.hydrate()
    agent = CaptureAgent(ctx)
    nid = agent.handle_job_detected(JobDraft(company="Acme", position="Eng", url="https://x/1"))
    key = f"session:notification_{nid}"
    assert ctx.store.get([key])[key]["state"] == "pending"

    record = agent.on_button_clicked(nid, 0)
    assert (record.company, record.position) == ("Acme", "Eng")
    assert ctx.store.get([key]) == {}
    ctx.close()


def test_failed_create_keeps_correlation_pending(cfg, notifier, flaky_store):
    ctx = AppContext(cfg=cfg, store=flaky_store, notifier=notifier, session_store=MemoryStore())
    ctx.hydrate()
    agent = CaptureAgent(ctx)
    nid = agent.handle_job_detected(JobDraft(company="Acme", position="Eng"))
    flaky_store.fail = True
    with pytest.raises(StorageError):
        agent.on_button_clicked(nid, 0)
    key = f"notification_{nid}"
    assert ctx.session_store.get([key])[key]["state"] == "pending"
    assert nid in notifier.cleared
    assert "Job Tracked!" not in notifier.titles

    flaky_store.fail = False
    assert agent.on_button_clicked(nid, 0).company == "Acme"


def test_remind_stale(ctx, notifier):
    agent = CaptureAgent(ctx)
    assert agent.remind_stale() is None
    ctx.tracker.create({"company": "Acme", "position": "Eng", "dateApplied": "2020-01-01"})
    assert agent.remind_stale() is not None
    assert notifier.shown[-1]["title"] == "Application Reminder"
    assert "1 application(s)" in notifier.shown[-1]["message"]


def test_remind_message_follows_configured_period(cfg, notifier):
    cfg["reminders"]["stale_after_days"] = 3
    ctx = AppContext.in_memory(cfg, notifier=notifier)
    ctx.tracker.create({"company": "Acme", "position": "Eng", "dateApplied": "2020-01-01"})
    CaptureAgent(ctx).remind_stale()
    assert "over 3 day(s)" in notifier.shown[-1]["message"]
    assert "week" not in notifier.shown[-1]["message"]
    ctx.close()
