"""Reasoning backend interface for the contract checklist system."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ReasoningRequest:
    """A single request to the external text-reasoning service."""
    task: str
    prompt: str
    system: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class ReasoningReply:
    """
    Raw reply of a reasoning backend.

    ``content`` is text for free-text calls and a mapping for
    schema-constrained calls. Nothing in it has been validated yet.
    """
    content: Any
    model: Optional[str] = None
    stop_reason: Optional[str] = None
    usage: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.usage is None:
            self.usage = {}


class IReasoningBackend(ABC):
    """
    Abstract interface for a text-reasoning service.

    Implementations translate transport failures into
    ``ServiceUnavailable`` and never validate reply content; validation is
    the adapter's job.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Identifier of the model serving requests."""
        pass

    @abstractmethod
    def complete_text(self, request: ReasoningRequest) -> ReasoningReply:
        """
        Run a free-text generation.

        Args:
            request: The request to send.

        Returns:
            Reply whose content is the generated text.

        Raises:
            ServiceUnavailable: On network, timeout or service errors.
        """
        pass

    @abstractmethod
    def complete_structured(
        self,
        request: ReasoningRequest,
        schema_name: str,
        schema: Dict[str, Any],
    ) -> ReasoningReply:
        """
        Run a generation constrained to a JSON schema.

        Args:
            request: The request to send.
            schema_name: Name of the expected output shape.
            schema: JSON schema the output should conform to.

        Returns:
            Reply whose content is the generated mapping.

        Raises:
            ServiceUnavailable: On network, timeout or service errors.
            MalformedResponse: If no structured output was produced.
        """
        pass
