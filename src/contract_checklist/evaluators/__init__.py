"""Rule evaluators for the contract checklist system."""

from .checklist_evaluator import ChecklistEvaluator, format_checklist
from .rule_evaluator import RuleEvaluator, format_rule, resolve_risk_level

__all__ = [
    "ChecklistEvaluator",
    "RuleEvaluator",
    "format_checklist",
    "format_rule",
    "resolve_risk_level",
]
