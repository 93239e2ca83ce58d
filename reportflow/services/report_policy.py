"""Submission rules for activity reports.

The working-hours window, the allowed duration range and the submission
deadline are carried by an explicit :class:`ReportPolicy` value so that the
checks never read ambient settings themselves.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time

from reportflow.core.config import Settings
from reportflow.core.errors import InvalidInput


def parse_hhmm(value: str) -> time:
    """Parse a strict ``HH:MM`` string."""
    parts = value.strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() and len(p) == 2 for p in parts):
        raise InvalidInput(f"Time must be formatted as HH:MM, got {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise InvalidInput(f"Time out of range: {value!r}")
    return time(hours, minutes)


def minutes_of(value: time) -> int:
    return value.hour * 60 + value.minute


def duration_minutes(start: time, end: time) -> int:
    """Minutes between ``start`` and ``end``; fails unless start < end."""
    if minutes_of(end) <= minutes_of(start):
        raise InvalidInput("End time must be later than start time")
    return minutes_of(end) - minutes_of(start)


@dataclass(frozen=True)
class ReportPolicy:
    work_start: time
    work_end: time
    min_duration_minutes: int
    max_duration_minutes: int
    submission_deadline_days: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReportPolicy":
        return cls(
            work_start=parse_hhmm(settings.WORK_START),
            work_end=parse_hhmm(settings.WORK_END),
            min_duration_minutes=settings.MIN_DURATION_MINUTES,
            max_duration_minutes=settings.MAX_DURATION_MINUTES,
            submission_deadline_days=settings.SUBMISSION_DEADLINE_DAYS,
        )

    def _label(self, value: time) -> str:
        return value.strftime("%H:%M")

    def validate_submission(self, activity_date: date, start: time, end: time, today: date) -> int:
        """Check a report may move to Submitted; returns its duration in minutes."""
        minutes = duration_minutes(start, end)

        window = f"{self._label(self.work_start)} and {self._label(self.work_end)}"
        if not self.work_start <= start <= self.work_end:
            raise InvalidInput(f"Start time must be between {window}")
        if not self.work_start <= end <= self.work_end:
            raise InvalidInput(f"End time must be between {window}")

        if minutes < self.min_duration_minutes:
            raise InvalidInput(f"Activity must last at least {self.min_duration_minutes} minutes")
        if minutes > self.max_duration_minutes:
            raise InvalidInput(f"Activity may last at most {self.max_duration_minutes} minutes")

        age_days = (today - activity_date).days
        if age_days < 0:
            raise InvalidInput("Activity date cannot be in the future")
        if age_days > self.submission_deadline_days:
            raise InvalidInput(
                f"Reports must be submitted within {self.submission_deadline_days} days of the activity"
            )
        return minutes
