"""Response shapes expected from the reasoning service.

Every reply is validated against one of these pydantic models before any
downstream code sees it. Enumerated fields are upper-cased on the way in;
the service's casing is not stable.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _upper(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


def _clamp(value):
    if value is None:
        return None
    return min(1.0, max(0.0, value))


class ExtractedClausePayload(BaseModel):
    """One clause as segmented by the service."""
    clause_number: Optional[str] = Field(
        default=None,
        description='Section number or identifier such as "3.2" or "Section A"',
    )
    title: Optional[str] = Field(default=None, description="Clause heading or title")
    content: str = Field(description="The full text of the clause, quoted verbatim")

    @field_validator("clause_number", mode="before")
    @classmethod
    def stringify_number(cls, value):
        if isinstance(value, (int, float)):
            return str(value)
        return value


class ClauseSegmentation(BaseModel):
    """Reply to a clause extraction request."""
    clauses: List[ExtractedClausePayload] = Field(default_factory=list)


class EvidencePayload(BaseModel):
    """A quote claimed by the service together with its offsets."""
    text: str = Field(description="Exact text quoted from the input")
    # Claimed offsets are only hints; the evaluator re-anchors the quote.
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None
    context: Optional[str] = None


class RuleVerdictPayload(BaseModel):
    """
    Reply to a single (text, rule) evaluation.

    ``risk_level`` is kept as an optional string so that a missing value or
    one outside the three-way taxonomy reaches the evaluator, which decides
    the default.
    """
    risk_level: Optional[str] = Field(default=None, description="GREEN, YELLOW or RED")
    matched: bool = Field(
        default=False,
        description="True if the text raises the concern described by the rule",
    )
    explanation: str = ""
    evidence: List[EvidencePayload] = Field(default_factory=list)
    confidence: Optional[float] = None

    @field_validator("risk_level", mode="before")
    @classmethod
    def normalize_risk_level(cls, value):
        return _upper(value)

    @field_validator("evidence", mode="before")
    @classmethod
    def null_evidence_is_empty(cls, value):
        return [] if value is None else value

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, value):
        return _clamp(value)


class PolicyCheckResultPayload(BaseModel):
    """One per-rule result of a holistic checklist evaluation."""
    rule_id: str = Field(min_length=1)
    flag_color: Optional[str] = Field(default=None, description="GREEN, YELLOW or RED")
    explanation: str = ""
    evidence_text: Optional[str] = Field(
        default=None,
        description="Exact text from the agreement that supports the assessment",
    )
    line_number: Optional[int] = Field(
        default=None,
        description="Line number in the agreement where the issue was found",
    )
    confidence: Optional[float] = None

    @field_validator("flag_color", mode="before")
    @classmethod
    def normalize_flag_color(cls, value):
        return _upper(value)

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, value):
        return _clamp(value)


class PolicyChecklistAnalysis(BaseModel):
    """Reply to a holistic checklist evaluation."""
    results: List[PolicyCheckResultPayload] = Field(default_factory=list)
    overall_risk_score: Optional[str] = None

    @field_validator("overall_risk_score", mode="before")
    @classmethod
    def normalize_overall(cls, value):
        return _upper(value)
