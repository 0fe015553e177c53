"""Run-level failures raised by the checklist orchestrator."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ChecklistError(Exception):
    """
    Base exception for analysis run failures.

    Attributes:
        message: Human-readable error description.
        agreement_id: The agreement the run was for.
        details: Additional error details.
    """
    message: str
    agreement_id: Optional[str] = None
    details: Optional[dict] = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.agreement_id:
            return f"{self.message} | Agreement: {self.agreement_id}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging and audit payloads."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "agreement_id": self.agreement_id,
            "details": self.details,
        }


@dataclass
class AgreementNotFound(ChecklistError):
    """The requested agreement does not exist."""


@dataclass
class NoActiveRules(ChecklistError):
    """The checklist has no active rules, so there is nothing to evaluate."""


@dataclass
class PersistenceError(ChecklistError):
    """A repository operation failed; the enclosing transaction was rolled back."""
