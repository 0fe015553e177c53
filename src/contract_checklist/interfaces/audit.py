"""Audit trail interface for the contract checklist system."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.enums import AuditStep


@dataclass
class AuditTrailEntry:
    """
    One recorded step of an analysis run.

    Represents a single auditable step (extraction, rule evaluation,
    validation or decision) with its structured input, output and
    reasoning. ``step_order`` is strictly increasing within one run.
    ``rule`` is filled in on read with the referenced rule's ``rule_id``,
    ``name`` and ``severity``.
    """
    agreement_id: str
    step: AuditStep
    step_order: int
    action: str
    rule_id: Optional[str] = None
    input: Optional[Any] = None
    output: Optional[Any] = None
    extracted_data: Optional[Any] = None
    metadata: Optional[Any] = None
    reasoning: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None
    rule: Optional[Dict[str, str]] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "agreement_id": self.agreement_id,
            "step": self.step.value,
            "step_order": self.step_order,
            "rule_id": self.rule_id,
            "rule": self.rule,
            "action": self.action,
            "input": self.input,
            "output": self.output,
            "extracted_data": self.extracted_data,
            "metadata": self.metadata,
            "reasoning": self.reasoning,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class IAuditTrailStore(ABC):
    """
    Abstract interface for audit trail persistence.

    Implementations of this interface store and retrieve the entries
    buffered by an audit trail recorder.
    """

    @abstractmethod
    def save_audit_entries(self, entries: List[AuditTrailEntry]) -> None:
        """
        Persist entries in one transaction, in step order.

        Args:
            entries: Entries of a single run.
        """
        pass

    @abstractmethod
    def get_audit_entries(self, agreement_id: str) -> List[AuditTrailEntry]:
        """
        Retrieve the audit trail of an agreement ordered by step order.

        Args:
            agreement_id: The agreement whose trail to return.

        Returns:
            Entries with structured payloads restored.
        """
        pass
