"""Reasoning client adapter for the contract checklist system."""

from .backends import AnthropicBackend, create_backend
from .client import PromptSpec, ReasoningClient, ResponseMode
from .exceptions import (
    EmptyResult,
    MalformedResponse,
    ReasoningError,
    ServiceUnavailable,
)
from .parsing import parse_json_reply, recover_json_objects, strip_code_fences
from .schemas import (
    ClauseSegmentation,
    EvidencePayload,
    ExtractedClausePayload,
    PolicyCheckResultPayload,
    PolicyChecklistAnalysis,
    RuleVerdictPayload,
)

__all__ = [
    "AnthropicBackend",
    "create_backend",
    "PromptSpec",
    "ReasoningClient",
    "ResponseMode",
    "EmptyResult",
    "MalformedResponse",
    "ReasoningError",
    "ServiceUnavailable",
    "parse_json_reply",
    "recover_json_objects",
    "strip_code_fences",
    "ClauseSegmentation",
    "EvidencePayload",
    "ExtractedClausePayload",
    "PolicyCheckResultPayload",
    "PolicyChecklistAnalysis",
    "RuleVerdictPayload",
]
