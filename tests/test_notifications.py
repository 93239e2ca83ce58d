import asyncio
import threading
from datetime import date

import pytest

from reportflow.core.config import settings
from reportflow.core.enums import NotificationCategory, ReportStatus
from reportflow.core.errors import NotFound
from reportflow.db import models
from reportflow.services.notifications import (
    NotificationDispatcher, NotificationInbox, NotificationMetadata, build_submission_message,
    build_verification_message,
)

META = NotificationMetadata(title="Report verified", category=NotificationCategory.VERIFIED, report_id=None)


class ExplodingSender:
    async def send(self, phone, body):
        raise RuntimeError("socket closed")


@pytest.fixture
def owner(make):
    return make.employee("owner@example.com", phone="081234567890")


def dispatcher(session_factory, sender, runner, **kwargs):
    return NotificationDispatcher(session_factory, sender, runner, **kwargs)


def logs(db):
    db.expire_all()
    return db.query(models.DeliveryLog).all()


def notifications(db, employee_id):
    db.expire_all()
    return db.query(models.Notification).filter_by(employee_id=employee_id).all()


def test_dispatch_only_schedules(db, session_factory, sender, runner, owner):
    dispatcher(session_factory, sender, runner).dispatch(owner.id, "6281234567890", "hi", META)

    assert len(runner.tasks) == 1
    assert sender.sent == []
    assert logs(db) == []


def test_successful_delivery_logs_and_records(db, session_factory, sender, runner, owner):
    unit = dispatcher(session_factory, sender, runner)
    asyncio.run(unit.deliver(owner.id, "6281234567890", "Your report was verified", META))

    assert sender.sent == [("6281234567890", "Your report was verified")]
    [entry] = logs(db)
    assert entry.outcome == "sent"
    assert entry.error_message is None
    [record] = notifications(db, owner.id)
    assert record.title == "Report verified"
    assert record.category == "Verified"
    assert record.is_read is False


def test_failed_delivery_is_logged_without_in_app_record(db, session_factory, sender, runner, owner):
    sender.succeed = False
    asyncio.run(dispatcher(session_factory, sender, runner).deliver(owner.id, "62812", "hi", META))

    [entry] = logs(db)
    assert entry.outcome == "failed"
    assert entry.error_message == "Messaging API error: 503"
    assert notifications(db, owner.id) == []


def test_failed_delivery_can_still_record_in_app(db, session_factory, sender, runner, owner):
    sender.succeed = False
    unit = dispatcher(session_factory, sender, runner, in_app_on_delivery_failure=True)
    asyncio.run(unit.deliver(owner.id, "62812", "hi", META))

    assert logs(db)[0].outcome == "failed"
    assert len(notifications(db, owner.id)) == 1


def test_sender_crash_is_contained(db, session_factory, runner, owner):
    unit = dispatcher(session_factory, ExplodingSender(), runner)
    asyncio.run(unit.deliver(owner.id, "62812", "hi", META))

    [entry] = logs(db)
    assert entry.outcome == "failed"
    assert entry.error_message == "socket closed"
    assert notifications(db, owner.id) == []


def test_no_metadata_means_log_only(db, session_factory, sender, runner, owner):
    asyncio.run(dispatcher(session_factory, sender, runner).deliver(owner.id, "62812", "hi"))
    assert len(logs(db)) == 1
    assert notifications(db, owner.id) == []


def test_log_keeps_first_500_characters(db, session_factory, sender, runner, owner):
    message = "x" * 800
    asyncio.run(dispatcher(session_factory, sender, runner).deliver(owner.id, "62812", message, META))

    assert len(logs(db)[0].message) == 500
    assert notifications(db, owner.id)[0].message == message


def test_inbox_mark_read(db, make, owner):
    other = make.employee("other@example.com")
    for title in ("a", "b", "c"):
        db.add(models.Notification(employee_id=owner.id, title=title, message=title))
    db.add(models.Notification(employee_id=other.id, title="z", message="z"))
    db.commit()

    inbox = NotificationInbox(db)
    first = inbox.list_for(owner.id)[0]
    read = inbox.mark_read(owner.id, first.id)
    assert read.is_read is True
    assert read.read_at is not None

    foreign = inbox.list_for(other.id)[0]
    with pytest.raises(NotFound):
        inbox.mark_read(owner.id, foreign.id)

    assert inbox.mark_all_read(owner.id) == 2
    assert inbox.mark_all_read(owner.id) == 0
    assert inbox.list_for(other.id)[0].is_read is False


def test_verification_message_summarizes_decision(make, owner):
    boss = make.employee("boss@example.com", full_name="Budi Santoso")
    report = make.report(owner, day=date(2024, 5, 1))

    body = build_verification_message(report, boss, ReportStatus.NEEDS_REVISION, "Add the output", 3.5, alias="ACME")

    assert "REPORT NEEDS REVISION" in body
    assert "Write API docs" in body
    assert "2024-05-01" in body
    assert "Budi Santoso" in body
    assert "3.5/5" in body
    assert "Add the output" in body
    assert f"#{report.id}" in body
    assert "ACME" in body


def test_submission_message_trims_long_descriptions(make, owner):
    report = make.report(owner)
    report.description = "d" * 300
    body = build_submission_message(report, owner, alias="ACME")
    assert "d" * 150 + "..." in body
    assert "d" * 151 not in body
    assert "09:00 - 10:30" in body


class ThreadRecordingDispatcher(NotificationDispatcher):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.threads = []

    def _log_delivery(self, *args):
        self.threads.append(threading.current_thread())
        super()._log_delivery(*args)

    def _record_notification(self, *args):
        self.threads.append(threading.current_thread())
        super()._record_notification(*args)


def test_delivery_writes_run_off_the_event_loop_thread(db, session_factory, sender, runner, owner):
    unit = ThreadRecordingDispatcher(session_factory, sender, runner)
    asyncio.run(unit.deliver(owner.id, "62812", "hi", META))

    assert len(unit.threads) == 2
    assert all(thread is not threading.main_thread() for thread in unit.threads)
    assert len(logs(db)) == 1
    assert len(notifications(db, owner.id)) == 1


def test_in_app_fallback_reads_current_settings(session_factory, sender, runner, monkeypatch):
    monkeypatch.setattr(settings, "NOTIFY_IN_APP_ON_DELIVERY_FAILURE", True)
    assert dispatcher(session_factory, sender, runner).in_app_on_delivery_failure is True

    monkeypatch.setattr(settings, "NOTIFY_IN_APP_ON_DELIVERY_FAILURE", False)
    assert dispatcher(session_factory, sender, runner).in_app_on_delivery_failure is False
    assert dispatcher(session_factory, sender, runner, in_app_on_delivery_failure=True).in_app_on_delivery_failure is True


def test_message_alias_reads_current_settings(make, owner, monkeypatch):
    report = make.report(owner, status="Submitted")
    monkeypatch.setattr(settings, "APP_ALIAS", "Daybook")

    assert "_Automated message from Daybook_" in build_submission_message(report, owner)
