"""Data models for configuration management."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models.enums import EvaluationMode


@dataclass
class ReasoningSettings:
    """
    Settings for the text-reasoning backend.

    Nothing in the pipeline depends on the concrete values; they are
    passed through to the backend as opaque strings and numbers.
    """
    backend: str = "anthropic"
    model: str = "claude-sonnet-4-5"
    api_key: Optional[str] = None  # Falls back to ANTHROPIC_API_KEY
    extraction_temperature: float = 0.1
    evaluation_temperature: float = 0.2
    timeout: float = 60.0  # seconds
    max_retries: int = 2
    max_tokens: int = 8192

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "model": self.model,
            "extraction_temperature": self.extraction_temperature,
            "evaluation_temperature": self.evaluation_temperature,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "max_tokens": self.max_tokens,
        }


@dataclass
class PipelineConfig:
    """Configuration for the checklist pipeline."""

    # Database configuration
    database_url: Optional[str] = None

    # Evaluation strategy used when the caller does not pick one
    default_mode: EvaluationMode = EvaluationMode.HOLISTIC

    # Feature flags
    enable_audit_logging: bool = True

    # Number of leading characters used to anchor extracted clauses
    extraction_prefix_length: int = 100

    reasoning: ReasoningSettings = field(default_factory=ReasoningSettings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "database_url": self.database_url,
            "default_mode": self.default_mode.value,
            "enable_audit_logging": self.enable_audit_logging,
            "extraction_prefix_length": self.extraction_prefix_length,
            "reasoning": self.reasoning.to_dict(),
        }


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another validation result into this one."""
        return ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings
        )


class ConfigurationError(Exception):
    """Exception raised for configuration errors."""

    def __init__(self, message: str, validation_result: Optional[ValidationResult] = None):
        super().__init__(message)
        self.message = message
        self.validation_result = validation_result
