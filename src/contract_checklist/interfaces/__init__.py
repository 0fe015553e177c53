"""Abstract interfaces for the contract checklist system."""

from .reasoning import IReasoningBackend, ReasoningReply, ReasoningRequest
from .extractor import IClauseExtractor
from .evaluator import IChecklistEvaluator, IRuleEvaluator
from .audit import AuditTrailEntry, IAuditTrailStore
from .repository import IAnalysisRepository

__all__ = [
    "IReasoningBackend",
    "ReasoningReply",
    "ReasoningRequest",
    "IClauseExtractor",
    "IChecklistEvaluator",
    "IRuleEvaluator",
    "AuditTrailEntry",
    "IAuditTrailStore",
    "IAnalysisRepository",
]
