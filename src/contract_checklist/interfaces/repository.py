"""Persistence collaborator interface for the contract checklist system."""

from abc import abstractmethod
from datetime import datetime
from typing import List, Optional

from ..models.agreement import Agreement, Clause, PolicyRule
from ..models.assessment import RiskAssessment
from ..models.enums import RiskLevel
from .audit import IAuditTrailStore


class IAnalysisRepository(IAuditTrailStore):
    """
    Abstract interface for the persisted state the pipeline touches.

    The orchestrator receives an implementation as a constructor argument;
    it owns the agreement's assessment and audit rows for the duration of
    a run. Concurrent runs on one agreement must be serialised by the caller.
    """

    # ---- Agreements and rules -------------------------------------------

    @abstractmethod
    def create_agreement(self, title: str, text: str) -> Agreement:
        """Create a draft agreement."""
        pass

    @abstractmethod
    def get_agreement(self, agreement_id: str) -> Optional[Agreement]:
        """Get an agreement by ID, or None if it does not exist."""
        pass

    @abstractmethod
    def delete_agreement(self, agreement_id: str) -> bool:
        """Delete an agreement with its clauses, assessments and audit trail."""
        pass

    @abstractmethod
    def upsert_policy_rule(self, rule: PolicyRule) -> PolicyRule:
        """Create or update a rule, matched on its string ``rule_id``."""
        pass

    @abstractmethod
    def seed_policy_rules(self, rules: List[PolicyRule]) -> List[PolicyRule]:
        """Upsert a whole checklist in one transaction; rules not listed are left as they are."""
        pass

    @abstractmethod
    def list_active_rules(self) -> List[PolicyRule]:
        """Snapshot of all currently active rules."""
        pass

    # ---- Clauses --------------------------------------------------------

    @abstractmethod
    def get_clauses(self, agreement_id: str) -> List[Clause]:
        """Stored clauses of an agreement in document order."""
        pass

    @abstractmethod
    def save_clauses(self, agreement_id: str, clauses: List[Clause]) -> List[Clause]:
        """Bulk insert extracted clauses and return them with IDs assigned."""
        pass

    # ---- Analysis runs --------------------------------------------------

    @abstractmethod
    def begin_run(self, agreement_id: str) -> None:
        """
        Start a run: in one transaction delete all previous assessments and
        audit entries and mark the agreement as analyzing.
        """
        pass

    @abstractmethod
    def complete_run(
        self,
        agreement_id: str,
        assessments: List[RiskAssessment],
        overall_risk_score: RiskLevel,
        analyzed_at: datetime,
    ) -> List[RiskAssessment]:
        """
        Finish a run: in one transaction insert the run's assessments and
        mark the agreement as analyzed with its overall score.
        """
        pass

    @abstractmethod
    def abort_run(self, agreement_id: str) -> None:
        """
        Abandon a run: remove any assessments and return the agreement to
        draft with no score and no analyzed timestamp.
        """
        pass

    @abstractmethod
    def get_assessments(self, agreement_id: str) -> List[RiskAssessment]:
        """Assessments of the most recent completed run."""
        pass
