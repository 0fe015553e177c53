"""Verdict, evidence and risk assessment models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .agreement import Clause, PolicyRule
from .enums import EvaluationMode, RiskLevel


@dataclass
class Evidence:
    """
    Verbatim quote cited in support of a verdict.

    Offsets index into the text that was given to the reasoning service
    (a clause's content or the whole agreement).
    """
    text: str
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None
    context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
            "context": self.context,
        }


@dataclass
class Verdict:
    """
    Outcome of evaluating one piece of text against one rule.

    ``matched`` records whether the service signalled that the rule's
    concern is present. ``is_fallback`` marks the safe default produced
    when no real evaluation was possible.
    """
    risk_level: RiskLevel
    explanation: str
    evidence: List[Evidence] = field(default_factory=list)
    confidence: Optional[float] = None
    matched: bool = False
    is_fallback: bool = False

    def __post_init__(self):
        if self.evidence is None:
            self.evidence = []

    @property
    def is_finding(self) -> bool:
        """True when the verdict is worth persisting in per-clause mode."""
        return self.matched or self.risk_level is not RiskLevel.GREEN

    @classmethod
    def safe_default(cls, reason: str) -> "Verdict":
        """Non-asserting verdict used when evaluation failed."""
        return cls(
            risk_level=RiskLevel.GREEN,
            explanation=f"Analysis could not be performed: {reason}",
            evidence=[],
            confidence=0.0,
            matched=False,
            is_fallback=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_level": self.risk_level.value,
            "explanation": self.explanation,
            "evidence": [e.to_dict() for e in self.evidence],
            "confidence": self.confidence,
            "matched": self.matched,
            "is_fallback": self.is_fallback,
        }


@dataclass
class RiskAssessment:
    """Persisted verdict for one (clause-or-agreement, rule) pair."""
    agreement_id: str
    rule_id: str
    risk_level: RiskLevel
    explanation: str
    evidence: List[Evidence] = field(default_factory=list)
    confidence: Optional[float] = None
    clause_id: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.evidence is None:
            self.evidence = []


@dataclass
class RuleResult:
    """A verdict together with the rule (and clause) it was produced for."""
    rule: PolicyRule
    verdict: Verdict
    clause: Optional[Clause] = None


@dataclass
class RunSummary:
    """Result of a completed analysis run."""
    agreement_id: str
    mode: EvaluationMode
    overall_risk_score: RiskLevel
    per_rule_results: List[RuleResult] = field(default_factory=list)
    assessments: List[RiskAssessment] = field(default_factory=list)
    analyzed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agreement_id": self.agreement_id,
            "mode": self.mode.value,
            "overall_risk_score": self.overall_risk_score.value,
            "results_count": len(self.per_rule_results),
            "assessments_count": len(self.assessments),
            "analyzed_at": self.analyzed_at.isoformat() if self.analyzed_at else None,
            "results": [
                {
                    "rule_id": r.rule.rule_id,
                    "clause_id": r.clause.id if r.clause else None,
                    **r.verdict.to_dict(),
                }
                for r in self.per_rule_results
            ],
        }
