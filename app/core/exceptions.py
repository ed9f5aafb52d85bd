from dataclasses import dataclass
from typing import Any, Dict, Optional


class LeadScoringError(Exception):
    """Base class for all lead-scoring domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except LeadScoringError`` clause can catch any domain
    error.  ``context`` carries the offending field name or id so the
    API layer can surface it to the caller.
    """

    def __init__(
        self,
        detail: str = "An error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.detail = detail
        self.context = context or {}
        super().__init__(detail)


class ValidationError(LeadScoringError):
    """Raised when input is malformed (empty name, bad rule, unknown stage)."""

    def __init__(
        self,
        detail: str = "Invalid input",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail, context)


class NotFoundError(LeadScoringError):
    """Raised when an operation references an unknown stage or lead."""

    def __init__(
        self,
        detail: str = "Resource not found",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail, context)


class ConflictError(LeadScoringError):
    """Raised when a write would duplicate an existing identifier."""

    def __init__(
        self,
        detail: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail, context)


class InvalidScoringConfigError(ValidationError):
    """Raised when a scoring configuration fails validation."""

    def __init__(
        self,
        detail: str = "Invalid scoring configuration",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail, context)


class LeadNotFoundError(NotFoundError):
    """Raised when a requested lead does not exist."""

    def __init__(self, lead_id: Any = None, detail: str = "Lead not found"):
        context = {"lead_id": str(lead_id)} if lead_id is not None else None
        super().__init__(detail, context)


class StageNotFoundError(NotFoundError):
    """Raised when a requested pipeline stage does not exist."""

    def __init__(self, stage_id: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(
            detail or f"Pipeline stage '{stage_id}' not found",
            {"stage_id": stage_id} if stage_id is not None else None,
        )


class DuplicateStageError(ConflictError):
    """Raised when a derived stage id already exists for the tenant."""

    def __init__(self, stage_id: str):
        super().__init__(
            f"Stage with ID {stage_id} already exists", {"stage_id": stage_id}
        )


@dataclass(frozen=True)
class ComputationWarning:
    """Non-fatal problem recorded during a batch rescore.

    Never raised: collected into rescan summaries and logged, while the
    surrounding structural operation still commits.
    """

    lead_id: str
    message: str
