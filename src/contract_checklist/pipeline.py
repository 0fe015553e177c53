"""Checklist analysis pipeline for the contract checklist system.

This module wires the clause extractor, the rule evaluators, the audit
trail recorder and the repository into a single analysis run for one
agreement. A run is exposed two ways: ``run`` drives it to completion and
returns the summary, ``stream`` yields progress events ending in exactly
one terminal event.
"""

import logging
import time
from datetime import datetime
from typing import Dict, Generator, Iterable, Iterator, List, Optional, Tuple, Union

from .audit.audit_trail import AuditTrailRecorder
from .config.models import PipelineConfig
from .evaluators.checklist_evaluator import ChecklistEvaluator
from .evaluators.rule_evaluator import RuleEvaluator
from .exceptions import AgreementNotFound, ChecklistError, NoActiveRules
from .extractors.clause_extractor import ClauseExtractor
from .interfaces.evaluator import IChecklistEvaluator, IRuleEvaluator
from .interfaces.extractor import IClauseExtractor
from .interfaces.repository import IAnalysisRepository
from .models.agreement import Agreement, Clause, PolicyRule
from .models.assessment import RiskAssessment, RuleResult, RunSummary, Verdict
from .models.enums import AuditStep, EvaluationMode, ProgressStatus, RiskLevel
from .models.events import ProgressEvent
from .reasoning.backends import create_backend
from .reasoning.client import ReasoningClient
from .reasoning.exceptions import ReasoningError
from .storage.repository import SQLAlchemyRepository


logger = logging.getLogger(__name__)


RunSteps = Generator[ProgressEvent, None, RunSummary]


def to_ndjson(events: Iterable[ProgressEvent]) -> Iterator[str]:
    """Adapt a progress event stream to newline-delimited JSON lines."""
    for event in events:
        yield event.to_json() + "\n"


class ChecklistOrchestrator:
    """
    Runs an agreement through the policy checklist.

    A run checks its preconditions, resets the agreement's previous
    results, evaluates in the requested mode, flushes the audit trail and
    stores the new assessments together with the overall risk score. A run
    that fails or is cancelled after the reset returns the agreement to
    draft with no assessments.

    Concurrent runs against the same agreement are not serialised here;
    callers must do that (the ``analyzing`` status makes a run visible).
    """

    def __init__(
        self,
        repository: IAnalysisRepository,
        client: ReasoningClient,
        config: Optional[PipelineConfig] = None,
        extractor: Optional[IClauseExtractor] = None,
        rule_evaluator: Optional[IRuleEvaluator] = None,
        checklist_evaluator: Optional[IChecklistEvaluator] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            repository: Persistence collaborator.
            client: Reasoning client shared by the default components.
            config: Pipeline configuration.
            extractor: Optional clause extractor (created if not provided).
            rule_evaluator: Optional per-rule evaluator (created if not provided).
            checklist_evaluator: Optional holistic evaluator (created if not provided).
        """
        self.config = config or PipelineConfig()
        self._repository = repository
        self._client = client
        self._extractor = extractor or ClauseExtractor(
            client, prefix_length=self.config.extraction_prefix_length,
        )
        self._rule_evaluator = rule_evaluator or RuleEvaluator(client)
        self._checklist_evaluator = checklist_evaluator or ChecklistEvaluator(client)
        self._owns_repository = False

        logger.info("Checklist orchestrator initialized")

    @classmethod
    def from_config(cls, config: Optional[PipelineConfig] = None) -> "ChecklistOrchestrator":
        """
        Build an orchestrator with the database and reasoning backend named
        in the configuration. The orchestrator owns the repository it
        creates and releases it on ``close``.
        """
        config = config or PipelineConfig()
        repository = SQLAlchemyRepository(database_url=config.database_url)
        client = ReasoningClient(create_backend(config.reasoning), config.reasoning)
        orchestrator = cls(repository, client, config=config)
        orchestrator._owns_repository = True
        return orchestrator

    @property
    def repository(self) -> IAnalysisRepository:
        return self._repository

    @property
    def client(self) -> ReasoningClient:
        return self._client

    def close(self) -> None:
        """Release the repository if this orchestrator created it."""
        if self._owns_repository and isinstance(self._repository, SQLAlchemyRepository):
            self._repository.close()
        logger.info("Checklist orchestrator closed")

    # ---- Public entry points --------------------------------------------

    def run_analysis(
        self,
        agreement_id: str,
        mode: Optional[EvaluationMode] = None,
    ) -> Union[RunSummary, Iterator[ProgressEvent]]:
        """
        Inbound trigger.

        Holistic mode returns the run summary; per-clause mode returns the
        progress event stream, which does nothing until iterated.
        """
        mode = self._resolve_mode(mode)
        if mode is EvaluationMode.PER_CLAUSE:
            return self.stream(agreement_id, mode)
        return self.run(agreement_id, mode)

    def run(self, agreement_id: str, mode: Optional[EvaluationMode] = None) -> RunSummary:
        """
        Run an analysis to completion.

        Raises:
            AgreementNotFound: If the agreement does not exist.
            ValueError: If ``mode`` is not a known evaluation mode.
            NoActiveRules: If no policy rule is active.
            ServiceUnavailable: If the reasoning service failed in holistic mode.
            PersistenceError: If the repository failed.
        """
        steps = self._execute(agreement_id, self._resolve_mode(mode))
        while True:
            try:
                next(steps)
            except StopIteration as stop:
                return stop.value

    def stream(
        self,
        agreement_id: str,
        mode: Optional[EvaluationMode] = None,
    ) -> Iterator[ProgressEvent]:
        """
        Run an analysis as a lazy sequence of progress events.

        The sequence ends with exactly one ``complete`` or ``error`` event.
        Closing the iterator early cancels the run: no further clauses are
        started and the agreement is not marked analyzed.
        """
        try:
            resolved = self._resolve_mode(mode)
        except ValueError as e:
            yield ProgressEvent.error(str(e))
            return

        try:
            summary = yield from self._execute(agreement_id, resolved)
        except (ChecklistError, ReasoningError) as e:
            yield ProgressEvent.error(e.message)
            return
        except Exception as e:
            logger.exception(f"Analysis of agreement {agreement_id} failed unexpectedly")
            yield ProgressEvent.error(f"Analysis failed: {e}")
            return

        yield ProgressEvent.complete(
            f"Analysis complete. Overall risk: {summary.overall_risk_score.value}",
            summary=summary,
        )

    # ---- Run lifecycle --------------------------------------------------

    def _resolve_mode(self, mode: Optional[EvaluationMode]) -> EvaluationMode:
        if mode is None:
            return self.config.default_mode
        if isinstance(mode, str):
            try:
                return EvaluationMode(mode)
            except ValueError:
                known = ", ".join(m.value for m in EvaluationMode)
                raise ValueError(f"Unknown evaluation mode {mode!r}; expected one of: {known}") from None
        return mode

    def _execute(self, agreement_id: str, mode: EvaluationMode) -> RunSteps:
        start_time = time.time()

        agreement = self._repository.get_agreement(agreement_id)
        if agreement is None:
            logger.error(f"Agreement {agreement_id} not found")
            raise AgreementNotFound("Agreement not found", agreement_id=agreement_id)

        rules = self._repository.list_active_rules()
        if not rules:
            logger.error("No active policy rules found")
            raise NoActiveRules("No active policy rules found", agreement_id=agreement_id)

        logger.info(
            f"Starting {mode.value} analysis of '{agreement.title}' "
            f"against {len(rules)} active rules"
        )

        self._repository.begin_run(agreement_id)
        recorder = AuditTrailRecorder(agreement_id, self._repository)

        try:
            if mode is EvaluationMode.HOLISTIC:
                yield ProgressEvent.progress(
                    ProgressStatus.ANALYZING,
                    f"Evaluating agreement against {len(rules)} policy rules...",
                )
                results, assessments = self._evaluate_holistic(agreement, rules, recorder)
            else:
                results, assessments = yield from self._evaluate_per_clause(agreement, rules, recorder)

            levels = (
                [r.verdict.risk_level for r in results]
                if mode is EvaluationMode.HOLISTIC
                else [a.risk_level for a in assessments]
            )
            overall = RiskLevel.most_severe(levels)
            self._log_overall(recorder, results, overall)

            self._flush(recorder)
            analyzed_at = datetime.utcnow()
            stored = self._repository.complete_run(agreement_id, assessments, overall, analyzed_at)
        except GeneratorExit:
            logger.warning(f"Analysis of agreement {agreement_id} cancelled")
            self._abort(agreement_id, recorder, "Analysis cancelled before completion")
            raise
        except Exception as e:
            logger.error(f"Analysis of agreement {agreement_id} failed: {e}")
            self._abort(agreement_id, recorder, f"Analysis failed: {e}", error=e)
            raise

        logger.info(
            f"Analysis of agreement {agreement_id} complete in "
            f"{time.time() - start_time:.2f}s: overall {overall.value}, "
            f"{len(stored)} assessments"
        )
        return RunSummary(
            agreement_id=agreement_id,
            mode=mode,
            overall_risk_score=overall,
            per_rule_results=results,
            assessments=stored,
            analyzed_at=analyzed_at,
        )

    def _flush(self, recorder: AuditTrailRecorder) -> None:
        if self.config.enable_audit_logging:
            recorder.flush()

    def _abort(
        self,
        agreement_id: str,
        recorder: AuditTrailRecorder,
        message: str,
        error: Optional[Exception] = None,
    ) -> None:
        output = {"status": "aborted", "message": message}
        if isinstance(error, (ChecklistError, ReasoningError)):
            output["error"] = error.to_dict()
        elif error is not None:
            output["error"] = {"error_type": type(error).__name__, "message": str(error)}
        recorder.log(
            AuditStep.DECISION,
            "Analysis aborted",
            output=output,
            reasoning=message,
        )

        try:
            self._repository.abort_run(agreement_id)
        except ChecklistError as e:
            logger.error(f"Failed to reset agreement {agreement_id} after aborted run: {e}")

        try:
            self._flush(recorder)
        except ChecklistError as e:
            logger.warning(f"Failed to save audit trail of aborted run: {e}")

    # ---- Holistic mode --------------------------------------------------

    def _evaluate_holistic(
        self,
        agreement: Agreement,
        rules: List[PolicyRule],
        recorder: AuditTrailRecorder,
    ) -> Tuple[List[RuleResult], List[RiskAssessment]]:
        recorder.log(
            AuditStep.EXTRACTION,
            "Extracting structured information from agreement",
            input={"agreementLength": len(agreement.text), "rulesCount": len(rules)},
            extracted_data={
                "documentType": "NDA",
                "textLength": len(agreement.text),
                "rulesToEvaluate": [r.rule_id for r in rules],
            },
            reasoning="Analyzing unstructured agreement text to extract compliance-relevant information",
        )
        recorder.log(
            AuditStep.RULE_EVALUATION,
            "Evaluating agreement against policy rules",
            input={
                "rulesEvaluated": [
                    {"ruleId": r.rule_id, "name": r.name, "severity": r.severity.value}
                    for r in rules
                ],
            },
            reasoning="Reasoning service analyzing agreement text against each policy rule to determine compliance",
        )

        verdicts = self._checklist_evaluator.evaluate(agreement.text, rules)
        evaluator = self._checklist_evaluator

        recorder.log(
            AuditStep.RULE_EVALUATION,
            "Received analysis response",
            output={
                "resultsCount": getattr(evaluator, "reported_results", len(verdicts)),
                "overallRiskScore": getattr(evaluator, "reported_overall", None),
            },
            metadata=self._usage_metadata(),
        )

        fallbacks = [rule_id for rule_id, v in verdicts.items() if v.is_fallback]
        last_error = getattr(evaluator, "last_error", None)
        recorder.log(
            AuditStep.VALIDATION,
            "Validating response structure",
            input={"resultsCount": len(verdicts)},
            output={
                "defaultedRules": fallbacks,
                "unknownRuleIds": list(getattr(evaluator, "unknown_rule_ids", [])),
                "error": last_error.to_dict() if last_error else None,
            },
            reasoning=(
                "Response validated against the checklist analysis schema"
                if last_error is None
                else f"Response rejected, all rules defaulted: {last_error.message}"
            ),
        )

        results: List[RuleResult] = []
        assessments: List[RiskAssessment] = []
        for rule in rules:
            verdict = verdicts.get(rule.rule_id) or Verdict.safe_default(
                f"no verdict for rule {rule.rule_id}"
            )
            results.append(RuleResult(rule=rule, verdict=verdict))
            assessments.append(self._assessment(agreement.id, rule, verdict))
            self._log_decision(recorder, rule, verdict)

        return results, assessments

    # ---- Per-clause mode ------------------------------------------------

    def _evaluate_per_clause(
        self,
        agreement: Agreement,
        rules: List[PolicyRule],
        recorder: AuditTrailRecorder,
    ) -> Generator[ProgressEvent, None, Tuple[List[RuleResult], List[RiskAssessment]]]:
        clauses = self._repository.get_clauses(agreement.id)

        if clauses:
            recorder.log(
                AuditStep.EXTRACTION,
                f"Using {len(clauses)} stored clauses",
                output={"clauseCount": len(clauses), "extracted": False},
                reasoning="Clauses were extracted by an earlier run",
            )
        else:
            yield ProgressEvent.progress(
                ProgressStatus.EXTRACTING,
                "Extracting clauses from agreement...",
            )
            extracted = self._extractor.extract(agreement.text)
            clauses = self._repository.save_clauses(agreement.id, extracted)
            extraction_error = getattr(self._extractor, "last_error", None)
            recorder.log(
                AuditStep.EXTRACTION,
                f"Extracted {len(clauses)} clauses",
                input={"agreementLength": len(agreement.text)},
                output={
                    "clauseCount": len(clauses),
                    "extracted": True,
                    "wholeDocumentFallback": extraction_error is not None,
                    "clausesWithoutOffsets": sum(1 for c in clauses if not c.has_offsets),
                },
                extracted_data=[
                    {
                        "clauseNumber": c.clause_number,
                        "title": c.title,
                        "startOffset": c.start_offset,
                        "endOffset": c.end_offset,
                    }
                    for c in clauses
                ],
                metadata=self._usage_metadata(),
                reasoning=(
                    f"Extraction failed, whole document used as one clause: {extraction_error.message}"
                    if extraction_error is not None
                    else "Agreement segmented into clauses by the reasoning service"
                ),
            )

        total = len(clauses)
        results: List[RuleResult] = []
        assessments: List[RiskAssessment] = []
        fallback_count = 0

        for index, clause in enumerate(clauses, 1):
            yield ProgressEvent.progress(
                ProgressStatus.ANALYZING,
                f"Analyzing clause {index} of {total}: {clause.label}",
                clause_id=clause.id,
                clause_number=clause.clause_number,
                total_clauses=total,
                current_clause=index,
            )

            for rule in rules:
                verdict = self._rule_evaluator.evaluate(clause.content, rule)
                results.append(RuleResult(rule=rule, verdict=verdict, clause=clause))
                if verdict.is_fallback:
                    fallback_count += 1

                recorder.log(
                    AuditStep.RULE_EVALUATION,
                    f"Evaluated clause {clause.label} against rule {rule.rule_id}",
                    rule_id=rule.id,
                    input={"clauseId": clause.id, "clauseNumber": clause.clause_number, "ruleId": rule.rule_id},
                    output={
                        "flagColor": verdict.risk_level.value,
                        "matched": verdict.matched,
                        "isFallback": verdict.is_fallback,
                    },
                    metadata=None if verdict.is_fallback else self._usage_metadata(),
                )

                if verdict.is_finding:
                    assessments.append(self._assessment(agreement.id, rule, verdict, clause))
                    self._log_decision(recorder, rule, verdict, clause)

        recorder.log(
            AuditStep.VALIDATION,
            "Validated clause evaluations",
            input={"clauseCount": total, "rulesCount": len(rules), "evaluations": len(results)},
            output={"findings": len(assessments), "defaultedEvaluations": fallback_count},
            reasoning="Only matched or non-GREEN verdicts are kept as findings",
        )
        return results, assessments

    # ---- Helpers --------------------------------------------------------

    @staticmethod
    def _assessment(
        agreement_id: str,
        rule: PolicyRule,
        verdict: Verdict,
        clause: Optional[Clause] = None,
    ) -> RiskAssessment:
        return RiskAssessment(
            agreement_id=agreement_id,
            rule_id=rule.id,
            clause_id=clause.id if clause else None,
            risk_level=verdict.risk_level,
            explanation=verdict.explanation,
            evidence=list(verdict.evidence),
            confidence=verdict.confidence,
        )

    def _usage_metadata(self) -> Dict[str, object]:
        return dict(self._client.last_usage)

    @staticmethod
    def _log_decision(
        recorder: AuditTrailRecorder,
        rule: PolicyRule,
        verdict: Verdict,
        clause: Optional[Clause] = None,
    ) -> None:
        evidence_text = verdict.evidence[0].text if verdict.evidence else None
        recorder.log(
            AuditStep.DECISION,
            f"Decision made for rule {rule.rule_id}",
            rule_id=rule.id,
            input={
                "ruleName": rule.name,
                "ruleSeverity": rule.severity.value,
                "ruleId": rule.rule_id,
                "clauseId": clause.id if clause else None,
            },
            output={
                "flagColor": verdict.risk_level.value,
                "explanation": verdict.explanation,
                "evidenceText": evidence_text,
                "confidence": verdict.confidence,
                "isFallback": verdict.is_fallback,
            },
            extracted_data={
                "flagColor": verdict.risk_level.value,
                "evidence": [e.to_dict() for e in verdict.evidence],
            },
            reasoning=verdict.explanation,
        )

    @staticmethod
    def _log_overall(
        recorder: AuditTrailRecorder,
        results: List[RuleResult],
        overall: RiskLevel,
    ) -> None:
        breakdown = {level.value.lower(): 0 for level in (RiskLevel.RED, RiskLevel.YELLOW, RiskLevel.GREEN)}
        for result in results:
            breakdown[result.verdict.risk_level.value.lower()] += 1
        recorder.log(
            AuditStep.DECISION,
            "Overall risk assessment calculated",
            output={"overallRiskScore": overall.value, "breakdown": breakdown},
            reasoning=f"Overall risk score determined based on {len(results)} rule evaluations",
        )

