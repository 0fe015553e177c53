"""
Integration tests for the checklist analysis pipeline.

These tests run complete analyses against an in-memory SQLite repository
with a scripted reasoning backend standing in for the remote service.
"""

import json

import pytest

from contract_checklist import ChecklistOrchestrator, ConfigurationManager, to_ndjson
from contract_checklist.config import PipelineConfig
from contract_checklist.exceptions import AgreementNotFound, NoActiveRules
from contract_checklist.models import (
    AgreementStatus,
    AuditStep,
    EvaluationMode,
    EventType,
    ProgressStatus,
    RiskLevel,
    RunSummary,
)
from contract_checklist.reasoning import MalformedResponse, ServiceUnavailable


NDA_TEXT = (
    "1. Parties. This Agreement is between Acme Corp and Beta LLC.\n"
    "2. Obligations. The Recipient shall protect the Discloser's Confidential Information.\n"
    "3. Term. This Agreement shall continue for ten (10) years.\n"
)

CLAUSES = [
    {"clause_number": "1", "title": "Parties", "content": "1. Parties. This Agreement is between Acme Corp and Beta LLC."},
    {"clause_number": "2", "title": "Obligations", "content": "2. Obligations. The Recipient shall protect the Discloser's Confidential Information."},
    {"clause_number": "3", "title": "Term", "content": "3. Term. This Agreement shall continue for ten (10) years."},
]


def _verdict(level, matched, explanation, quote=None):
    evidence = [{"text": quote, "start_offset": 0, "end_offset": len(quote)}] if quote else []
    return {
        "risk_level": level,
        "matched": matched,
        "explanation": explanation,
        "evidence": evidence,
        "confidence": 0.8,
    }


def per_clause_responder(request, schema_name):
    """Flags the term clause RED for TERM-001 and the obligations clause YELLOW for MUTUALITY-001."""
    if request.task == "clause_extraction":
        return json.dumps({"clauses": CLAUSES})
    prompt = request.prompt
    if "(TERM-001)" in prompt and "ten (10) years" in prompt:
        return _verdict("red", True, "Ten years exceeds the five year limit.", "ten (10) years")
    if "(MUTUALITY-001)" in prompt and "Recipient shall protect" in prompt:
        return _verdict("Yellow", True, "Only the Recipient is bound.", "The Recipient shall protect")
    return _verdict("GREEN", False, "Nothing relevant in this clause.")


def holistic_reply(term="RED", remedies="YELLOW", mutuality="GREEN"):
    return {
        "results": [
            {"rule_id": "MUTUALITY-001", "flag_color": mutuality, "explanation": "Mutual obligations."},
            {
                "rule_id": "TERM-001",
                "flag_color": term,
                "explanation": "Term is ten years.",
                "evidence_text": "This Agreement shall continue for ten (10) years.",
                "line_number": 3,
            },
            {"rule_id": "REMEDIES-001", "flag_color": remedies, "explanation": "Remedies are silent."},
        ],
        "overall_risk_score": "RED",
    }


@pytest.fixture
def agreement(repository, rules):
    for rule in rules:
        repository.upsert_policy_rule(rule)
    return repository.create_agreement("Mutual NDA", NDA_TEXT)


@pytest.fixture
def build_orchestrator(repository, make_backend, make_client):
    def _build(config=None, **backend_kwargs):
        backend = make_backend(**backend_kwargs)
        return ChecklistOrchestrator(repository, make_client(backend), config=config), backend
    return _build


class TestHolisticAnalysis:
    """Tests for single-call evaluation of the whole agreement."""

    def test_run_stores_one_assessment_per_rule(self, repository, agreement, build_orchestrator):
        orchestrator, backend = build_orchestrator(structured_replies=[holistic_reply()])

        summary = orchestrator.run(agreement.id, EvaluationMode.HOLISTIC)

        assert summary.overall_risk_score is RiskLevel.RED
        assert len(summary.per_rule_results) == 3
        assessments = repository.get_assessments(agreement.id)
        assert sorted(a.rule_id for a in assessments) == ["MUTUALITY-001", "REMEDIES-001", "TERM-001"]
        assert all(a.clause_id is None for a in assessments)
        term = next(a for a in assessments if a.rule_id == "TERM-001")
        assert NDA_TEXT[term.evidence[0].start_offset:term.evidence[0].end_offset] == term.evidence[0].text

        loaded = repository.get_agreement(agreement.id)
        assert loaded.status is AgreementStatus.ANALYZED
        assert loaded.overall_risk_score == "RED"
        assert loaded.analyzed_at is not None
        assert backend.schema_names == ["PolicyChecklistAnalysis"]

    def test_overall_is_most_severe_flag(self, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(
            structured_replies=[holistic_reply(term="GREEN", remedies="YELLOW", mutuality="GREEN")],
        )

        summary = orchestrator.run(agreement.id, "holistic")

        assert summary.overall_risk_score is RiskLevel.YELLOW

    def test_stream_emits_progress_then_complete(self, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(structured_replies=[holistic_reply()])

        events = list(orchestrator.stream(agreement.id, EvaluationMode.HOLISTIC))

        assert [e.type for e in events] == [EventType.PROGRESS, EventType.COMPLETE]
        assert events[0].status is ProgressStatus.ANALYZING
        assert events[-1].to_dict()["overallRiskScore"] == "RED"

    def test_audit_trail_is_ordered(self, repository, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(structured_replies=[holistic_reply()])

        orchestrator.run(agreement.id, EvaluationMode.HOLISTIC)

        entries = repository.get_audit_entries(agreement.id)
        assert [e.step_order for e in entries] == list(range(1, len(entries) + 1))
        assert [e.step for e in entries[:4]] == [
            AuditStep.EXTRACTION,
            AuditStep.RULE_EVALUATION,
            AuditStep.RULE_EVALUATION,
            AuditStep.VALIDATION,
        ]
        decisions = [e for e in entries if e.step is AuditStep.DECISION and e.rule_id]
        assert {e.output["flagColor"] for e in decisions} == {"RED", "YELLOW", "GREEN"}
        assert entries[-1].output == {
            "overallRiskScore": "RED",
            "breakdown": {"red": 1, "yellow": 1, "green": 1},
        }
        assert entries[2].metadata["model"] == "scripted-model"

    def test_malformed_reply_defaults_every_rule(self, repository, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(structured_replies=[MalformedResponse("garbage")])

        summary = orchestrator.run(agreement.id, EvaluationMode.HOLISTIC)

        assert summary.overall_risk_score is RiskLevel.GREEN
        assert all(r.verdict.is_fallback for r in summary.per_rule_results)
        validation = next(e for e in repository.get_audit_entries(agreement.id) if e.step is AuditStep.VALIDATION)
        assert validation.output["error"]["error_type"] == "MalformedResponse"

    def test_service_unavailable_returns_agreement_to_draft(self, repository, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(
            structured_replies=[holistic_reply(), ServiceUnavailable("Reasoning service unavailable")],
        )
        orchestrator.run(agreement.id, EvaluationMode.HOLISTIC)

        events = list(orchestrator.stream(agreement.id, EvaluationMode.HOLISTIC))

        assert events[-1].type is EventType.ERROR
        assert events[-1].message == "Reasoning service unavailable"
        assert sum(1 for e in events if e.is_terminal) == 1
        loaded = repository.get_agreement(agreement.id)
        assert loaded.status is AgreementStatus.DRAFT
        assert loaded.overall_risk_score is None
        assert repository.get_assessments(agreement.id) == []
        entries = repository.get_audit_entries(agreement.id)
        assert entries[-1].action == "Analysis aborted"

    def test_run_raises_service_unavailable(self, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(structured_replies=[ServiceUnavailable("down")])

        with pytest.raises(ServiceUnavailable):
            orchestrator.run(agreement.id, EvaluationMode.HOLISTIC)


class TestPerClauseAnalysis:
    """Tests for clause-by-clause evaluation."""

    def test_extracts_then_evaluates_each_clause(self, repository, agreement, build_orchestrator):
        orchestrator, backend = build_orchestrator(responder=per_clause_responder)

        events = list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))

        assert [e.status for e in events[:-1]] == [
            ProgressStatus.EXTRACTING,
            ProgressStatus.ANALYZING,
            ProgressStatus.ANALYZING,
            ProgressStatus.ANALYZING,
        ]
        assert [e.current_clause for e in events[1:-1]] == [1, 2, 3]
        assert all(e.total_clauses == 3 for e in events[1:-1])
        assert events[-1].type is EventType.COMPLETE
        assert events[-1].message == "Analysis complete. Overall risk: RED"

        clauses = repository.get_clauses(agreement.id)
        assert [c.clause_number for c in clauses] == ["1", "2", "3"]
        assert events[3].clause_id == clauses[2].id
        assert [r.task for r in backend.requests].count("rule_evaluation") == 9

    def test_only_findings_are_persisted(self, repository, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(responder=per_clause_responder)

        list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))

        clauses = {c.id: c for c in repository.get_clauses(agreement.id)}
        findings = {
            (a.rule_id, clauses[a.clause_id].clause_number): a.risk_level
            for a in repository.get_assessments(agreement.id)
        }
        assert findings == {("TERM-001", "3"): RiskLevel.RED, ("MUTUALITY-001", "2"): RiskLevel.YELLOW}
        assert repository.get_agreement(agreement.id).overall_risk_score == "RED"

    def test_evidence_offsets_are_relative_to_clause(self, repository, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(responder=per_clause_responder)

        list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))

        clauses = {c.id: c for c in repository.get_clauses(agreement.id)}
        for assessment in repository.get_assessments(agreement.id):
            content = clauses[assessment.clause_id].content
            for evidence in assessment.evidence:
                assert content[evidence.start_offset:evidence.end_offset] == evidence.text

    def test_stored_clauses_are_reused(self, repository, agreement, build_orchestrator):
        orchestrator, backend = build_orchestrator(responder=per_clause_responder)
        list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))
        first_ids = [c.id for c in repository.get_clauses(agreement.id)]
        backend.requests.clear()

        events = list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))

        assert ProgressStatus.EXTRACTING not in [e.status for e in events]
        assert "clause_extraction" not in [r.task for r in backend.requests]
        assert [c.id for c in repository.get_clauses(agreement.id)] == first_ids

    def test_failed_pair_does_not_abort_the_run(self, repository, agreement, build_orchestrator):
        def responder(request, schema_name):
            if request.task == "rule_evaluation" and "(TERM-001)" in request.prompt and "ten (10) years" in request.prompt:
                return MalformedResponse("Reply is not valid JSON", task="rule_evaluation")
            return per_clause_responder(request, schema_name)

        orchestrator, _ = build_orchestrator(responder=responder)

        events = list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))

        assert events[-1].type is EventType.COMPLETE
        assessments = repository.get_assessments(agreement.id)
        assert [a.rule_id for a in assessments] == ["MUTUALITY-001"]
        assert repository.get_agreement(agreement.id).overall_risk_score == "YELLOW"
        fallbacks = [
            e for e in repository.get_audit_entries(agreement.id)
            if e.step is AuditStep.RULE_EVALUATION and e.output["isFallback"]
        ]
        assert len(fallbacks) == 1

    def test_extraction_failure_uses_whole_document(self, repository, agreement, build_orchestrator):
        def responder(request, schema_name):
            if request.task == "clause_extraction":
                return "I could not find any clauses."
            return per_clause_responder(request, schema_name)

        orchestrator, _ = build_orchestrator(responder=responder)

        list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))

        clauses = repository.get_clauses(agreement.id)
        assert len(clauses) == 1
        assert clauses[0].content == NDA_TEXT
        extraction = repository.get_audit_entries(agreement.id)[0]
        assert extraction.output["wholeDocumentFallback"] is True

    def test_audit_steps_restart_each_run(self, repository, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(responder=per_clause_responder)
        list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))
        first_run = repository.get_audit_entries(agreement.id)

        list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))
        second_run = repository.get_audit_entries(agreement.id)

        # extraction, 9 evaluations, 2 decisions, validation, overall
        assert len(first_run) == 14
        assert [e.step_order for e in second_run] == list(range(1, len(second_run) + 1))
        assert second_run[0].action == "Using 3 stored clauses"

    def test_closing_the_stream_cancels_the_run(self, repository, agreement, build_orchestrator):
        orchestrator, backend = build_orchestrator(
            structured_replies=[holistic_reply()],
            responder=None,
            text_replies=[json.dumps({"clauses": CLAUSES})],
        )
        orchestrator.run(agreement.id, EvaluationMode.HOLISTIC)
        assert repository.get_agreement(agreement.id).is_analyzed

        stream = orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE)
        assert next(stream).status is ProgressStatus.EXTRACTING
        assert next(stream).current_clause == 1
        stream.close()

        loaded = repository.get_agreement(agreement.id)
        assert loaded.status is AgreementStatus.DRAFT
        assert loaded.analyzed_at is None
        assert repository.get_assessments(agreement.id) == []
        assert "rule_evaluation" not in [r.task for r in backend.requests]
        assert repository.get_audit_entries(agreement.id)[-1].action == "Analysis aborted"


class TestPreconditions:
    """Tests for runs that fail before any state changes."""

    def test_missing_agreement(self, build_orchestrator):
        orchestrator, backend = build_orchestrator()

        with pytest.raises(AgreementNotFound):
            orchestrator.run("does-not-exist")

        events = list(orchestrator.stream("does-not-exist"))
        assert [e.to_dict() for e in events] == [{"type": "error", "message": "Agreement not found"}]
        assert backend.requests == []

    def test_no_active_rules(self, repository, make_rule, build_orchestrator):
        repository.upsert_policy_rule(make_rule("TERM-001", is_active=False))
        created = repository.create_agreement("NDA", NDA_TEXT)
        orchestrator, backend = build_orchestrator()

        with pytest.raises(NoActiveRules):
            orchestrator.run(created.id, EvaluationMode.PER_CLAUSE)

        events = list(orchestrator.stream(created.id, EvaluationMode.PER_CLAUSE))
        assert len(events) == 1
        assert events[0].message == "No active policy rules found"
        assert repository.get_agreement(created.id).status is AgreementStatus.DRAFT
        assert repository.get_audit_entries(created.id) == []
        assert repository.get_clauses(created.id) == []
        assert backend.requests == []

    def test_unknown_mode(self, repository, agreement, build_orchestrator):
        orchestrator, backend = build_orchestrator()

        events = list(orchestrator.stream(agreement.id, "bogus"))

        assert len(events) == 1
        assert events[0].type is EventType.ERROR
        assert "Unknown evaluation mode 'bogus'" in events[0].message
        with pytest.raises(ValueError):
            orchestrator.run(agreement.id, "bogus")
        assert repository.get_agreement(agreement.id).status is AgreementStatus.DRAFT
        assert repository.get_audit_entries(agreement.id) == []
        assert backend.requests == []


class TestRunLifecycle:
    """Tests for replacement of results between runs and mode selection."""

    def test_new_run_replaces_previous_results(self, repository, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(responder=per_clause_responder)
        list(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE))
        assert all(a.clause_id for a in repository.get_assessments(agreement.id))

        holistic, _ = build_orchestrator(structured_replies=[holistic_reply(term="GREEN", remedies="GREEN")])
        summary = holistic.run(agreement.id, EvaluationMode.HOLISTIC)

        assessments = repository.get_assessments(agreement.id)
        assert len(assessments) == 3
        assert all(a.clause_id is None for a in assessments)
        assert summary.overall_risk_score is RiskLevel.GREEN
        assert repository.get_agreement(agreement.id).overall_risk_score == "GREEN"

    def test_run_analysis_selects_entry_point_by_mode(self, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(
            config=PipelineConfig(default_mode=EvaluationMode.PER_CLAUSE),
            responder=per_clause_responder,
        )

        stream = orchestrator.run_analysis(agreement.id)
        assert not isinstance(stream, RunSummary)
        assert list(stream)[-1].type is EventType.COMPLETE

        holistic, _ = build_orchestrator(structured_replies=[holistic_reply()])
        summary = holistic.run_analysis(agreement.id, EvaluationMode.HOLISTIC)
        assert isinstance(summary, RunSummary)

    def test_audit_logging_can_be_disabled(self, repository, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(
            config=PipelineConfig(enable_audit_logging=False),
            structured_replies=[holistic_reply()],
        )

        orchestrator.run(agreement.id)

        assert repository.get_audit_entries(agreement.id) == []
        assert repository.get_agreement(agreement.id).is_analyzed

    def test_ndjson_stream(self, agreement, build_orchestrator):
        orchestrator, _ = build_orchestrator(responder=per_clause_responder)

        lines = list(to_ndjson(orchestrator.stream(agreement.id, EvaluationMode.PER_CLAUSE)))

        payloads = [json.loads(line) for line in lines]
        assert payloads[0] == {"type": "progress", "status": "extracting", "message": "Extracting clauses from agreement..."}
        assert payloads[1]["clauseNumber"] == "1"
        assert payloads[-1]["type"] == "complete"
        assert payloads[-1]["overallRiskScore"] == "RED"


def test_from_config_builds_database_and_backend():
    from contract_checklist.config import ReasoningSettings
    from contract_checklist.reasoning import AnthropicBackend

    config = PipelineConfig(
        database_url="sqlite:///:memory:",
        reasoning=ReasoningSettings(api_key="test-key", model="claude-test"),
    )
    orchestrator = ChecklistOrchestrator.from_config(config)
    try:
        orchestrator.repository.db_manager.init_database()

        assert isinstance(orchestrator.client.backend, AnthropicBackend)
        assert orchestrator.client.backend.model_name == "claude-test"
        events = list(orchestrator.stream("missing"))
        assert events[0].message == "Agreement not found"
    finally:
        orchestrator.close()


def test_seeded_default_checklist_drives_holistic_run(repository, build_orchestrator):
    manager = ConfigurationManager()
    manager.load_default_checklist()
    manager.apply_rules(repository)
    created = repository.create_agreement("Mutual NDA", NDA_TEXT)
    results = [
        {"rule_id": rule.rule_id, "flag_color": "GREEN", "explanation": "Acceptable."}
        for rule in manager.policy_rules if rule.rule_id != "TERM-001"
    ]
    results.append({
        "rule_id": "TERM-001",
        "flag_color": "RED",
        "explanation": "Term is ten years.",
        "evidence_text": "This Agreement shall continue for ten (10) years.",
    })
    orchestrator, backend = build_orchestrator(structured_replies=[{"results": results}])

    summary = orchestrator.run(created.id, EvaluationMode.HOLISTIC)

    assert summary.overall_risk_score is RiskLevel.RED
    assert len(summary.per_rule_results) == 10
    assert len(repository.get_assessments(created.id)) == 10
    assert "(JURISDICTION-001)" in backend.requests[0].prompt
