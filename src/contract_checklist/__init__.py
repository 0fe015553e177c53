"""
Contract Checklist

Reviews agreements against a checklist of policy rules with a
text-reasoning service and keeps a replayable audit trail of every run.
"""

__version__ = "0.1.0"

# Export main components
from .models.enums import (
    AgreementStatus,
    AuditStep,
    EvaluationMode,
    EventType,
    ProgressStatus,
    RiskLevel,
    RuleSeverity,
)
from .models.agreement import Agreement, Clause, PolicyRule
from .models.assessment import Evidence, RiskAssessment, RuleResult, RunSummary, Verdict
from .models.events import ProgressEvent
from .evidence import Span, locate, repair_evidence
from .reasoning import (
    AnthropicBackend,
    EmptyResult,
    MalformedResponse,
    PromptSpec,
    ReasoningClient,
    ReasoningError,
    ResponseMode,
    ServiceUnavailable,
    create_backend,
)
from .extractors import ClauseExtractor
from .evaluators import ChecklistEvaluator, RuleEvaluator
from .audit import AuditTrailRecorder, export_audit_trail
from .interfaces.audit import AuditTrailEntry, IAuditTrailStore
from .interfaces.repository import IAnalysisRepository
from .storage import DatabaseManager, SQLAlchemyRepository
from .ingest import load_agreement_text
from .exceptions import AgreementNotFound, ChecklistError, NoActiveRules, PersistenceError
from .config import (
    ConfigurationManager,
    ConfigurationError,
    PipelineConfig,
    ReasoningSettings,
    ValidationResult,
)
from .pipeline import ChecklistOrchestrator, to_ndjson

__all__ = [
    "AgreementStatus",
    "AuditStep",
    "EvaluationMode",
    "EventType",
    "ProgressStatus",
    "RiskLevel",
    "RuleSeverity",
    "Agreement",
    "Clause",
    "PolicyRule",
    "Evidence",
    "RiskAssessment",
    "RuleResult",
    "RunSummary",
    "Verdict",
    "ProgressEvent",
    "Span",
    "locate",
    "repair_evidence",
    "AnthropicBackend",
    "EmptyResult",
    "MalformedResponse",
    "PromptSpec",
    "ReasoningClient",
    "ReasoningError",
    "ResponseMode",
    "ServiceUnavailable",
    "create_backend",
    "ClauseExtractor",
    "ChecklistEvaluator",
    "RuleEvaluator",
    "AuditTrailRecorder",
    "export_audit_trail",
    "AuditTrailEntry",
    "IAuditTrailStore",
    "IAnalysisRepository",
    "DatabaseManager",
    "SQLAlchemyRepository",
    "load_agreement_text",
    "AgreementNotFound",
    "ChecklistError",
    "NoActiveRules",
    "PersistenceError",
    "ConfigurationManager",
    "ConfigurationError",
    "PipelineConfig",
    "ReasoningSettings",
    "ValidationResult",
    "ChecklistOrchestrator",
    "to_ndjson",
]
