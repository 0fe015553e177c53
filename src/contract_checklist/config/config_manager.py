"""Configuration Manager implementation for the contract checklist system.

This module provides functionality to load, validate, and manage pipeline
settings and policy-rule checklists.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..interfaces.repository import IAnalysisRepository
from ..models.agreement import PolicyRule
from ..models.enums import EvaluationMode, RuleSeverity
from .defaults import DEFAULT_NDA_CHECKLIST
from .models import (
    ConfigurationError,
    PipelineConfig,
    ReasoningSettings,
    ValidationResult,
)


# Accepted spellings of policy rule keys, mapped to their canonical name
_RULE_KEY_ALIASES = {
    "ruleId": "rule_id",
    "acceptanceCriteria": "acceptance_criteria",
    "isActive": "is_active",
}

_TRUE_VALUES = ("1", "true", "yes", "on")


class ConfigurationManager:
    """
    Manager for system configuration.

    Handles loading, validation, and access to pipeline settings and
    policy-rule checklists.
    """

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_dir: Optional directory path for configuration files.
        """
        self._config_dir = Path(config_dir) if config_dir else None
        self._configuration = PipelineConfig()
        self._policy_rules: List[PolicyRule] = []
        self._is_loaded = False

    @property
    def configuration(self) -> PipelineConfig:
        """Get the current pipeline configuration."""
        return self._configuration

    @property
    def policy_rules(self) -> List[PolicyRule]:
        """Get the loaded checklist."""
        return list(self._policy_rules)

    @property
    def is_loaded(self) -> bool:
        """Check if configuration has been loaded."""
        return self._is_loaded

    # =========================================================================
    # Pipeline settings
    # =========================================================================

    def load_settings(
        self,
        source: Union[str, Path, Dict[str, Any]]
    ) -> ValidationResult:
        """
        Load and validate pipeline settings.

        Args:
            source: JSON file path or dictionary.

        Returns:
            ValidationResult indicating success or failure with details.

        Raises:
            ConfigurationError: If validation fails.
        """
        data = self._parse_source(source)
        if not isinstance(data, dict):
            raise ConfigurationError("Settings must be a JSON object")

        result = ValidationResult(is_valid=True)
        config = PipelineConfig()

        if "database_url" in data:
            if data["database_url"] is not None and not isinstance(data["database_url"], str):
                result.add_error("'database_url' must be a string")
            else:
                config.database_url = data["database_url"]

        if "default_mode" in data:
            try:
                config.default_mode = EvaluationMode(data["default_mode"])
            except ValueError:
                result.add_error(
                    f"'default_mode' must be one of {[m.value for m in EvaluationMode]}"
                )

        if "enable_audit_logging" in data:
            if not isinstance(data["enable_audit_logging"], bool):
                result.add_error("'enable_audit_logging' must be a boolean")
            else:
                config.enable_audit_logging = data["enable_audit_logging"]

        if "extraction_prefix_length" in data:
            value = data["extraction_prefix_length"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                result.add_error("'extraction_prefix_length' must be a positive integer")
            else:
                config.extraction_prefix_length = value

        reasoning_data = data.get("reasoning", {})
        if not isinstance(reasoning_data, dict):
            result.add_error("'reasoning' must be an object")
        else:
            reasoning_result, reasoning = self._validate_reasoning_settings(reasoning_data)
            result = result.merge(reasoning_result)
            if reasoning:
                config.reasoning = reasoning

        unknown = set(data) - {
            "database_url", "default_mode", "enable_audit_logging",
            "extraction_prefix_length", "reasoning",
        }
        for key in sorted(unknown):
            result.add_warning(f"Unknown setting ignored: '{key}'")

        if not result.is_valid:
            raise ConfigurationError(
                "Settings validation failed",
                validation_result=result
            )

        self._configuration = config
        self._is_loaded = True
        return result

    def _validate_reasoning_settings(
        self,
        data: Dict[str, Any],
    ) -> Tuple[ValidationResult, Optional[ReasoningSettings]]:
        """Validate the reasoning section of the settings."""
        result = ValidationResult(is_valid=True)
        settings = ReasoningSettings()
        prefix = "reasoning"

        for key in ("backend", "model", "api_key"):
            if key in data:
                if not isinstance(data[key], str) or not data[key].strip():
                    result.add_error(f"{prefix}: '{key}' must be a non-empty string")
                else:
                    setattr(settings, key, data[key].strip())

        for key in ("extraction_temperature", "evaluation_temperature"):
            if key in data:
                value = data[key]
                if not isinstance(value, (int, float)) or isinstance(value, bool) or not 0.0 <= value <= 1.0:
                    result.add_error(f"{prefix}: '{key}' must be between 0.0 and 1.0")
                else:
                    setattr(settings, key, float(value))

        if "timeout" in data:
            value = data["timeout"]
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                result.add_error(f"{prefix}: 'timeout' must be a positive number")
            else:
                settings.timeout = float(value)

        for key in ("max_retries", "max_tokens"):
            if key in data:
                value = data[key]
                minimum = 0 if key == "max_retries" else 1
                if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
                    result.add_error(f"{prefix}: '{key}' must be an integer >= {minimum}")
                else:
                    setattr(settings, key, value)

        if not result.is_valid:
            return result, None
        return result, settings

    def apply_environment(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """
        Override settings from environment variables.

        Recognised variables: CHECKLIST_DATABASE_URL (or DATABASE_URL),
        CHECKLIST_MODE, CHECKLIST_AUDIT_LOGGING, CHECKLIST_MODEL,
        CHECKLIST_TIMEOUT, ANTHROPIC_API_KEY.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        config = self._configuration

        database_url = env.get("CHECKLIST_DATABASE_URL") or env.get("DATABASE_URL")
        if database_url:
            config.database_url = database_url

        if env.get("CHECKLIST_MODE"):
            try:
                config.default_mode = EvaluationMode(env["CHECKLIST_MODE"].strip().lower())
            except ValueError:
                raise ConfigurationError(f"Invalid CHECKLIST_MODE: {env['CHECKLIST_MODE']}")

        if env.get("CHECKLIST_AUDIT_LOGGING"):
            config.enable_audit_logging = env["CHECKLIST_AUDIT_LOGGING"].strip().lower() in _TRUE_VALUES

        if env.get("CHECKLIST_MODEL"):
            config.reasoning.model = env["CHECKLIST_MODEL"].strip()

        if env.get("CHECKLIST_TIMEOUT"):
            try:
                config.reasoning.timeout = float(env["CHECKLIST_TIMEOUT"])
            except ValueError:
                raise ConfigurationError(f"Invalid CHECKLIST_TIMEOUT: {env['CHECKLIST_TIMEOUT']}")

        if env.get("ANTHROPIC_API_KEY") and not config.reasoning.api_key:
            config.reasoning.api_key = env["ANTHROPIC_API_KEY"]

    # =========================================================================
    # Policy rule checklists
    # =========================================================================

    def load_policy_rules(
        self,
        source: Union[str, Path, Dict[str, Any], List[Dict[str, Any]]]
    ) -> ValidationResult:
        """
        Load and validate a policy-rule checklist.

        Supports loading from:
        - JSON file path
        - Dictionary with a "rules" list
        - List of rule dictionaries

        Both snake_case and camelCase keys are accepted.

        Args:
            source: File path, dictionary, or list of dictionaries.

        Returns:
            ValidationResult indicating success or failure with details.

        Raises:
            ConfigurationError: If validation fails and the checklist cannot be applied.
        """
        raw_data = self._parse_source(source)

        if isinstance(raw_data, dict):
            if "rules" in raw_data:
                rules_data = raw_data["rules"]
            else:
                rules_data = [raw_data]
        else:
            rules_data = raw_data

        result = ValidationResult(is_valid=True)
        rules: List[PolicyRule] = []

        for i, rule_dict in enumerate(rules_data):
            rule_result, rule = self._validate_policy_rule(rule_dict, index=i)
            result = result.merge(rule_result)
            if rule:
                rules.append(rule)

        ids = [r.rule_id for r in rules]
        duplicates = [rule_id for rule_id in ids if ids.count(rule_id) > 1]
        if duplicates:
            result.add_error(f"Duplicate policy rule IDs found: {set(duplicates)}")

        if rules and not any(r.is_active for r in rules):
            result.add_warning("Checklist contains no active rules")

        if not result.is_valid:
            raise ConfigurationError(
                "Policy rule validation failed",
                validation_result=result
            )

        self._policy_rules = rules
        self._is_loaded = True
        return result

    def load_default_checklist(self) -> ValidationResult:
        """Load the built-in NDA review checklist."""
        return self.load_policy_rules(DEFAULT_NDA_CHECKLIST)

    def _validate_policy_rule(
        self,
        data: Dict[str, Any],
        index: int = 0
    ) -> Tuple[ValidationResult, Optional[PolicyRule]]:
        """Validate a single policy rule dictionary."""
        result = ValidationResult(is_valid=True)
        prefix = f"Policy rule [{index}]"

        if not isinstance(data, dict):
            result.add_error(f"{prefix}: must be an object")
            return result, None

        data = {_RULE_KEY_ALIASES.get(k, k): v for k, v in data.items()}

        required_fields = ["rule_id", "name", "description", "acceptance_criteria", "severity"]
        for field in required_fields:
            if field not in data:
                result.add_error(f"{prefix}: Missing required field '{field}'")

        if not result.is_valid:
            return result, None

        for field in ["rule_id", "name", "description", "acceptance_criteria"]:
            if not isinstance(data[field], str) or not data[field].strip():
                result.add_error(f"{prefix}: '{field}' must be a non-empty string")

        valid_severities = [s.value for s in RuleSeverity]
        severity = data["severity"]
        if not isinstance(severity, str) or severity.strip().upper() not in valid_severities:
            result.add_error(f"{prefix}: 'severity' must be one of {valid_severities}")

        is_active = data.get("is_active", True)
        if not isinstance(is_active, bool):
            result.add_error(f"{prefix}: 'is_active' must be a boolean")

        if not result.is_valid:
            return result, None

        rule_id = data["rule_id"].strip()
        rule = PolicyRule(
            id=data.get("id") or rule_id,
            rule_id=rule_id,
            name=data["name"].strip(),
            description=data["description"].strip(),
            acceptance_criteria=data["acceptance_criteria"].strip(),
            severity=RuleSeverity(severity.strip().upper()),
            is_active=is_active,
        )
        return result, rule

    def apply_rules(self, repository: IAnalysisRepository) -> List[PolicyRule]:
        """
        Write the loaded checklist to a repository.

        Args:
            repository: Repository that receives the rules.

        Returns:
            The rules as stored, with their storage keys.

        Raises:
            ConfigurationError: If no checklist has been loaded.
        """
        if not self._policy_rules:
            raise ConfigurationError("No policy rules loaded; load a checklist first")
        return repository.seed_policy_rules(self._policy_rules)

    def get_policy_rule(self, rule_id: str) -> Optional[PolicyRule]:
        """Get a loaded policy rule by its string identifier."""
        for rule in self._policy_rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _parse_source(
        self,
        source: Union[str, Path, Dict[str, Any], List[Dict[str, Any]]]
    ) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        """Parse configuration source to raw data."""
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")

            try:
                with open(path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {path}: {e}")

        return source

    def load_from_directory(self, config_dir: Union[str, Path]) -> ValidationResult:
        """
        Load all configuration files from a directory.

        Expects files named:
        - settings.json
        - rules.json

        Args:
            config_dir: Directory containing configuration files.

        Returns:
            Combined ValidationResult for all loaded configurations.
        """
        config_dir = Path(config_dir)
        result = ValidationResult(is_valid=True)

        settings_file = config_dir / "settings.json"
        if settings_file.exists():
            try:
                result = result.merge(self.load_settings(settings_file))
            except ConfigurationError as e:
                result.add_error(f"Settings loading failed: {e.message}")
                if e.validation_result:
                    result = result.merge(e.validation_result)

        rules_file = config_dir / "rules.json"
        if rules_file.exists():
            try:
                result = result.merge(self.load_policy_rules(rules_file))
            except ConfigurationError as e:
                result.add_error(f"Rules loading failed: {e.message}")
                if e.validation_result:
                    result = result.merge(e.validation_result)

        self._config_dir = config_dir
        return result

    def reset(self) -> None:
        """Reset configuration to defaults."""
        self._configuration = PipelineConfig()
        self._policy_rules = []
        self._is_loaded = False

    def to_dict(self) -> Dict[str, Any]:
        """Export the current configuration as a dictionary."""
        return {
            "settings": self._configuration.to_dict(),
            "rules": [
                {
                    "rule_id": r.rule_id,
                    "name": r.name,
                    "description": r.description,
                    "acceptance_criteria": r.acceptance_criteria,
                    "severity": r.severity.value,
                    "is_active": r.is_active,
                }
                for r in self._policy_rules
            ],
        }
