"""Enumerations for the contract checklist system."""

from enum import Enum
from typing import Iterable


class RiskLevel(Enum):
    """Flag colour assigned to a rule verdict or to an agreement overall."""
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def from_value(cls, value: object) -> "RiskLevel":
        """Parse a risk level regardless of the casing it arrived in.

        Raises:
            ValueError: If the value is not one of the three flag colours.
        """
        if isinstance(value, RiskLevel):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid risk level: {value!r}")
        return cls(value.strip().upper())

    @classmethod
    def most_severe(cls, levels: Iterable["RiskLevel"]) -> "RiskLevel":
        """Return the most severe level, GREEN for an empty input."""
        result = cls.GREEN
        for level in levels:
            if level.severity > result.severity:
                result = level
        return result


_SEVERITY = {RiskLevel.GREEN: 0, RiskLevel.YELLOW: 1, RiskLevel.RED: 2}


class RuleSeverity(Enum):
    """Severity classification of a policy rule."""
    SHOW_STOPPER = "SHOW_STOPPER"
    NEGOTIABLE = "NEGOTIABLE"
    COMPLIANT = "COMPLIANT"


class AgreementStatus(Enum):
    """Lifecycle status of an agreement."""
    DRAFT = "draft"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"


class AuditStep(Enum):
    """Kinds of steps recorded in the audit trail."""
    EXTRACTION = "extraction"
    RULE_EVALUATION = "rule_evaluation"
    VALIDATION = "validation"
    DECISION = "decision"


class EvaluationMode(Enum):
    """Evaluation strategies supported by the orchestrator."""
    HOLISTIC = "holistic"
    PER_CLAUSE = "per_clause"


class EventType(Enum):
    """Types of events emitted during an analysis run."""
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"


class ProgressStatus(Enum):
    """Status carried by progress events."""
    EXTRACTING = "extracting"
    ANALYZING = "analyzing"
