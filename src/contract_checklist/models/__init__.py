"""Data models and enums for the contract checklist system."""

from .enums import (
    AgreementStatus,
    AuditStep,
    EvaluationMode,
    EventType,
    ProgressStatus,
    RiskLevel,
    RuleSeverity,
)
from .agreement import Agreement, Clause, PolicyRule
from .assessment import Evidence, RiskAssessment, RuleResult, RunSummary, Verdict
from .events import ProgressEvent

__all__ = [
    # Enums
    "AgreementStatus",
    "AuditStep",
    "EvaluationMode",
    "EventType",
    "ProgressStatus",
    "RiskLevel",
    "RuleSeverity",
    # Agreement models
    "Agreement",
    "Clause",
    "PolicyRule",
    # Assessment models
    "Evidence",
    "RiskAssessment",
    "RuleResult",
    "RunSummary",
    "Verdict",
    # Events
    "ProgressEvent",
]
