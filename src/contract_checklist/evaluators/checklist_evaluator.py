"""
Holistic evaluation of a whole agreement against a whole checklist.

One reasoning call covers every rule. Results are matched back to the
checklist by the rule's string identifier; anything the reply leaves out
gets the safe default verdict.
"""

import logging
from typing import Dict, List, Optional

from ..evidence.locator import repair_evidence
from ..interfaces.evaluator import IChecklistEvaluator
from ..models.agreement import PolicyRule
from ..models.assessment import Evidence, Verdict
from ..models.enums import RiskLevel
from ..reasoning.client import PromptSpec, ReasoningClient, ResponseMode
from ..reasoning.exceptions import EmptyResult, MalformedResponse, ReasoningError
from ..reasoning.schemas import PolicyCheckResultPayload, PolicyChecklistAnalysis
from .rule_evaluator import RISK_TAXONOMY, resolve_risk_level


logger = logging.getLogger(__name__)


CHECKLIST_INSTRUCTIONS = """You are a legal compliance analyst reviewing a Non-Disclosure Agreement (NDA) against an internal policy checklist.

Analyze the NDA against each policy rule. For each rule:
1. Determine if it's GREEN (compliant), YELLOW (needs review), or RED (show-stopper)
2. Provide a clear explanation of your assessment
3. Quote the exact text from the NDA that supports your assessment (if applicable)
4. Note the approximate line number where the issue was found (if applicable)

Report each result under the rule identifier shown in parentheses.

{taxonomy}"""


def format_checklist(rules: List[PolicyRule]) -> str:
    """Render the checklist as a numbered list."""
    blocks = []
    for idx, rule in enumerate(rules, 1):
        blocks.append(
            f"{idx}. {rule.name} ({rule.rule_id})\n"
            f"   Description: {rule.description}\n"
            f"   Acceptance Criteria: {rule.acceptance_criteria}\n"
            f"   Severity: {rule.severity.value}"
        )
    return "\n\n".join(blocks)


class ChecklistEvaluator(IChecklistEvaluator):
    """
    Evaluates agreement text against every active rule in a single call.

    After each call ``reported_results`` holds the number of results the
    service returned, ``unknown_rule_ids`` the identifiers it reported that
    are not on the checklist, and ``last_error`` any recovered failure.
    """

    def __init__(self, client: ReasoningClient, temperature: Optional[float] = None):
        self._client = client
        self._temperature = (
            temperature if temperature is not None
            else client.settings.evaluation_temperature
        )
        self.last_error: Optional[ReasoningError] = None
        self.reported_results = 0
        self.reported_overall: Optional[str] = None
        self.unknown_rule_ids: List[str] = []

    def evaluate(self, text: str, rules: List[PolicyRule]) -> Dict[str, Verdict]:
        self.last_error = None
        self.reported_results = 0
        self.reported_overall = None
        self.unknown_rule_ids = []

        spec = PromptSpec(
            task="checklist_evaluation",
            instructions=CHECKLIST_INSTRUCTIONS.format(taxonomy=RISK_TAXONOMY),
            inputs={
                "NDA Text": text,
                "Policy Checklist": format_checklist(rules),
            },
            response_model=PolicyChecklistAnalysis,
            mode=ResponseMode.STRUCTURED,
            temperature=self._temperature,
            required_items="results",
        )

        try:
            analysis = self._client.invoke(spec)
        except (MalformedResponse, EmptyResult) as e:
            # ServiceUnavailable is not recoverable for the run and propagates.
            logger.warning(f"Checklist evaluation failed, defaulting all rules: {e}")
            self.last_error = e
            return {rule.rule_id: Verdict.safe_default(e.message) for rule in rules}

        self.reported_results = len(analysis.results)
        self.reported_overall = analysis.overall_risk_score

        by_rule_id: Dict[str, PolicyCheckResultPayload] = {}
        known = {rule.rule_id for rule in rules}
        for result in analysis.results:
            if result.rule_id not in known:
                self.unknown_rule_ids.append(result.rule_id)
                continue
            if result.rule_id in by_rule_id:
                logger.warning(f"Duplicate result for rule {result.rule_id}, keeping the first")
                continue
            by_rule_id[result.rule_id] = result

        if self.unknown_rule_ids:
            logger.warning(f"Ignoring results for unknown rules: {', '.join(self.unknown_rule_ids)}")

        verdicts: Dict[str, Verdict] = {}
        for rule in rules:
            result = by_rule_id.get(rule.rule_id)
            if result is None:
                logger.warning(f"No result returned for rule {rule.rule_id}")
                verdicts[rule.rule_id] = Verdict.safe_default(
                    f"no result returned for rule {rule.rule_id}"
                )
            else:
                verdicts[rule.rule_id] = self._to_verdict(text, result)

        return verdicts

    def _to_verdict(self, text: str, result: PolicyCheckResultPayload) -> Verdict:
        level = resolve_risk_level(result.flag_color, matched=False)
        evidence = []
        if result.evidence_text:
            context = f"line {result.line_number}" if result.line_number is not None else None
            evidence.append(repair_evidence(text, Evidence(text=result.evidence_text, context=context)))
        return Verdict(
            risk_level=level,
            explanation=result.explanation,
            evidence=evidence,
            confidence=result.confidence,
            matched=level is not RiskLevel.GREEN,
        )
