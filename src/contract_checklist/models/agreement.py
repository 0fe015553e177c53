"""Agreement, policy rule and clause models for the contract checklist system."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import AgreementStatus, RuleSeverity


@dataclass
class Agreement:
    """
    A document under review.

    The orchestrator is the only writer of status, overall risk score and
    analyzed timestamp; title and text belong to the CRUD layer.
    """
    id: str
    title: str
    text: str
    status: AgreementStatus = AgreementStatus.DRAFT
    overall_risk_score: Optional[str] = None
    analyzed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_analyzed(self) -> bool:
        return self.status is AgreementStatus.ANALYZED


@dataclass
class PolicyRule:
    """
    A checklist item.

    ``id`` is the storage key while ``rule_id`` is the stable string
    identifier (for example ``MUTUALITY-001``) used in prompts and replies.
    """
    id: str
    rule_id: str
    name: str
    description: str
    acceptance_criteria: str
    severity: RuleSeverity
    is_active: bool = True


@dataclass
class Clause:
    """
    A contiguous, named segment of an agreement's text.

    When both offsets are set, ``content`` equals
    ``source_text[start_offset:end_offset]``.
    """
    content: str
    clause_number: Optional[str] = None
    title: Optional[str] = None
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None
    id: Optional[str] = None
    agreement_id: Optional[str] = None
    position: int = 0

    @property
    def has_offsets(self) -> bool:
        return self.start_offset is not None and self.end_offset is not None

    @property
    def label(self) -> str:
        """Human readable label used in log lines and progress messages."""
        if self.clause_number and self.title:
            return f"{self.clause_number} {self.title}"
        return self.clause_number or self.title or f"clause #{self.position + 1}"
