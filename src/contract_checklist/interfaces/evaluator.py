"""Rule evaluator interfaces for the contract checklist system."""

from abc import ABC, abstractmethod
from typing import Dict, List

from ..models.agreement import PolicyRule
from ..models.assessment import Verdict


class IRuleEvaluator(ABC):
    """Evaluates one piece of text against one policy rule."""

    @abstractmethod
    def evaluate(self, text: str, rule: PolicyRule) -> Verdict:
        """
        Evaluate text against a rule.

        Args:
            text: Clause content or whole agreement text.
            rule: The rule to check.

        Returns:
            A verdict. Reasoning failures yield a safe default verdict
            rather than an exception.
        """
        pass


class IChecklistEvaluator(ABC):
    """Evaluates a whole document against a whole checklist at once."""

    @abstractmethod
    def evaluate(self, text: str, rules: List[PolicyRule]) -> Dict[str, Verdict]:
        """
        Evaluate text against every rule in a single pass.

        Args:
            text: The whole agreement text.
            rules: The active checklist.

        Returns:
            One verdict per rule, keyed by the rule's string ``rule_id``.

        Raises:
            ServiceUnavailable: If the reasoning service cannot be reached.
        """
        pass
