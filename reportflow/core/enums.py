from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role. Supervision is a relation, never a role."""

    EMPLOYEE = "employee"
    ADMIN = "admin"


class ReportStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    VERIFIED = "Verified"
    REJECTED = "Rejected"
    NEEDS_REVISION = "NeedsRevision"


EDITABLE_STATUSES = frozenset(
    {ReportStatus.DRAFT, ReportStatus.SUBMITTED, ReportStatus.NEEDS_REVISION}
)
VERIFICATION_STATUSES = frozenset(
    {ReportStatus.VERIFIED, ReportStatus.REJECTED, ReportStatus.NEEDS_REVISION}
)
OWNER_STATUSES = frozenset({ReportStatus.DRAFT, ReportStatus.SUBMITTED})

# Every status maps to the statuses reachable from it. Drafts must be
# submitted before a supervisor can act on them.
ALLOWED_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.DRAFT: OWNER_STATUSES,
    ReportStatus.SUBMITTED: OWNER_STATUSES | VERIFICATION_STATUSES,
    ReportStatus.NEEDS_REVISION: OWNER_STATUSES | VERIFICATION_STATUSES,
    ReportStatus.VERIFIED: frozenset(),
    ReportStatus.REJECTED: frozenset(),
}


def can_transition(current: ReportStatus, target: ReportStatus) -> bool:
    # KeyError here means a status was added without a transition row.
    return target in ALLOWED_TRANSITIONS[current]


class NotificationCategory(str, Enum):
    VERIFIED = "Verified"
    REJECTED = "Rejected"
    COMMENT = "Comment"
    INFO = "Info"


class DeliveryOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"


class RelationKind(str, Enum):
    DIRECT = "Direct"
    INDIRECT = "Indirect"


class AuditAction(str, Enum):
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
