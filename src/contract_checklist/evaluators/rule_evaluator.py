"""Evaluation of one piece of text against one policy rule."""

import logging
from typing import List, Optional, Tuple

from ..evidence.locator import repair_evidence
from ..interfaces.evaluator import IRuleEvaluator
from ..models.agreement import PolicyRule
from ..models.assessment import Evidence, Verdict
from ..models.enums import RiskLevel
from ..reasoning.client import PromptSpec, ReasoningClient, ResponseMode
from ..reasoning.exceptions import ReasoningError
from ..reasoning.schemas import EvidencePayload, RuleVerdictPayload


logger = logging.getLogger(__name__)


RISK_TAXONOMY = """Flag Color Guidelines:
- GREEN: Rule is fully compliant, no issues
- YELLOW: Potential concerns, review recommended, but may be acceptable
- RED: Clear violation or high risk, show-stopper, requires escalation"""

EVALUATION_INSTRUCTIONS = """You are a legal compliance analyst reviewing part of an agreement against one internal policy rule.

Determine whether the text raises the concern described by the rule and assign exactly one risk level.

{taxonomy}

Set "matched" to true if the text contains language the rule is concerned with.
Quote the exact text that supports your assessment as evidence, with the character offsets of each quote within the text below.
Give a confidence between 0 and 1."""


def format_rule(rule: PolicyRule) -> str:
    """Render a rule for inclusion in a prompt."""
    return (
        f"{rule.name} ({rule.rule_id})\n"
        f"Description: {rule.description}\n"
        f"Acceptance Criteria: {rule.acceptance_criteria}\n"
        f"Severity: {rule.severity.value}"
    )


def resolve_risk_level(value: Optional[str], matched: bool) -> RiskLevel:
    """
    Map a reported risk level onto the canonical taxonomy.

    Unknown values fall back to YELLOW when a match was signalled and GREEN
    otherwise, never to RED.
    """
    try:
        return RiskLevel.from_value(value)
    except ValueError:
        fallback = RiskLevel.YELLOW if matched else RiskLevel.GREEN
        logger.warning(f"Non-canonical risk level {value!r}, defaulting to {fallback.value}")
        return fallback


def valid_offsets(
    text: str,
    start: Optional[int],
    end: Optional[int],
) -> Tuple[Optional[int], Optional[int]]:
    """Drop claimed offsets that fall outside ``text`` or run backwards."""
    if start is not None and not 0 <= start <= len(text):
        start = None
    if end is not None and (not 0 <= end <= len(text) or (start is not None and end < start)):
        end = None
    return start, end


class RuleEvaluator(IRuleEvaluator):
    """
    Evaluates text against a single policy rule.

    Evidence offsets are re-anchored against the exact text given to the
    service. A reasoning failure never escapes: it becomes a safe default
    verdict so one bad pair cannot abort a batch.
    """

    def __init__(self, client: ReasoningClient, temperature: Optional[float] = None):
        self._client = client
        self._temperature = (
            temperature if temperature is not None
            else client.settings.evaluation_temperature
        )
        self.last_error: Optional[ReasoningError] = None
        self.repaired_evidence_count = 0

    def evaluate(self, text: str, rule: PolicyRule) -> Verdict:
        self.last_error = None
        self.repaired_evidence_count = 0
        spec = PromptSpec(
            task="rule_evaluation",
            instructions=EVALUATION_INSTRUCTIONS.format(taxonomy=RISK_TAXONOMY),
            inputs={"Policy rule": format_rule(rule), "Text": text},
            response_model=RuleVerdictPayload,
            mode=ResponseMode.STRUCTURED,
            temperature=self._temperature,
        )

        try:
            payload = self._client.invoke(spec)
        except ReasoningError as e:
            logger.warning(f"Evaluation of rule {rule.rule_id} failed: {e}")
            self.last_error = e
            return Verdict.safe_default(e.message)

        return Verdict(
            risk_level=resolve_risk_level(payload.risk_level, payload.matched),
            explanation=payload.explanation,
            evidence=self._repair(text, payload.evidence),
            confidence=payload.confidence,
            matched=payload.matched,
        )

    def _repair(self, text: str, items: List[EvidencePayload]) -> List[Evidence]:
        repaired = []
        for item in items:
            if not item.text:
                continue
            start, end = valid_offsets(text, item.start_offset, item.end_offset)
            claimed = Evidence(
                text=item.text,
                start_offset=start,
                end_offset=end,
                context=item.context,
            )
            fixed = repair_evidence(text, claimed)
            if (fixed.start_offset, fixed.end_offset) != (claimed.start_offset, claimed.end_offset):
                self.repaired_evidence_count += 1
            repaired.append(fixed)
        return repaired
