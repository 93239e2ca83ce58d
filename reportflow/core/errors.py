class ReportflowError(Exception):
    """Base exception for business rule violations."""


class NotFound(ReportflowError):
    """Raised when a referenced entity does not exist."""


class NotAuthorized(ReportflowError):
    """Raised when the actor lacks the relation or role for an action."""


class SelfVerificationForbidden(NotAuthorized):
    """Raised when an employee tries to verify their own report."""


class InvalidInput(ReportflowError):
    """Raised when a status, rating, time window or date is out of range."""


class EditForbidden(ReportflowError):
    """Raised when a report is mutated outside its editable statuses."""


class DependencyFailure(ReportflowError):
    """Raised when a post-mutation step fails after the mutation was kept."""
