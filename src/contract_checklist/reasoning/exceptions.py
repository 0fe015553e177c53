"""Typed failures of the reasoning client adapter."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ReasoningError(Exception):
    """
    Base exception for reasoning service failures.

    Attributes:
        message: Human-readable error description.
        task: Name of the task whose call failed.
        details: Additional error details.
    """
    message: str
    task: Optional[str] = None
    details: Optional[dict] = field(default_factory=dict)

    retryable = False

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.task:
            return f"{self.message} | Task: {self.task}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging and audit payloads."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "task": self.task,
            "retryable": self.retryable,
            "details": self.details,
        }


@dataclass
class ServiceUnavailable(ReasoningError):
    """
    The reasoning service could not be reached or timed out.

    Retrying is the caller's decision; the adapter never retries beyond
    what the configured backend does on its own.
    """

    retryable = True


@dataclass
class MalformedResponse(ReasoningError):
    """
    The service replied with data that did not parse or did not match the
    expected shape. Not retryable without changing the prompt.
    """
    raw: Optional[str] = None


@dataclass
class EmptyResult(ReasoningError):
    """The service returned zero items where at least one was required."""
