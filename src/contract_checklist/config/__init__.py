"""Configuration management for the contract checklist system."""

from .config_manager import ConfigurationManager
from .defaults import DEFAULT_NDA_CHECKLIST
from .models import (
    ConfigurationError,
    PipelineConfig,
    ReasoningSettings,
    ValidationResult,
)

__all__ = [
    "ConfigurationManager",
    "DEFAULT_NDA_CHECKLIST",
    "ConfigurationError",
    "PipelineConfig",
    "ReasoningSettings",
    "ValidationResult",
]
