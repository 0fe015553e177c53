"""Unit tests for the holistic checklist evaluator."""

import pytest

from contract_checklist.evaluators import ChecklistEvaluator
from contract_checklist.models.enums import RiskLevel
from contract_checklist.reasoning import MalformedResponse, ServiceUnavailable


NDA = (
    "This Agreement is entered into by Acme and Beta.\n"
    "The Recipient shall protect the Discloser's information.\n"
    "This Agreement shall continue for ten (10) years.\n"
)


def _result(rule_id, flag, explanation="Because.", **kwargs):
    return {"rule_id": rule_id, "flag_color": flag, "explanation": explanation, **kwargs}


def _evaluator(make_backend, make_client, reply):
    backend = make_backend(structured_replies=[reply])
    return ChecklistEvaluator(make_client(backend)), backend


class TestChecklistEvaluator:
    """Tests for single-call evaluation of the whole checklist."""

    def test_one_verdict_per_rule(self, make_backend, make_client, rules):
        evaluator, backend = _evaluator(make_backend, make_client, {
            "results": [
                _result("MUTUALITY-001", "red", evidence_text="The Recipient shall protect the Discloser's information.", line_number=2),
                _result("TERM-001", "YELLOW"),
                _result("REMEDIES-001", "Green"),
            ],
            "overall_risk_score": "red",
        })

        verdicts = evaluator.evaluate(NDA, rules)

        assert set(verdicts) == {"MUTUALITY-001", "TERM-001", "REMEDIES-001"}
        assert verdicts["MUTUALITY-001"].risk_level is RiskLevel.RED
        assert verdicts["TERM-001"].risk_level is RiskLevel.YELLOW
        assert verdicts["REMEDIES-001"].risk_level is RiskLevel.GREEN
        evidence = verdicts["MUTUALITY-001"].evidence[0]
        assert NDA[evidence.start_offset:evidence.end_offset] == evidence.text
        assert evidence.context == "line 2"
        assert evaluator.reported_overall == "RED"
        assert backend.schema_names == ["PolicyChecklistAnalysis"]
        prompt = backend.requests[0].prompt
        assert "1. Mutuality of Protection (MUTUALITY-001)" in prompt
        assert "NDA Text:\n" + NDA in prompt

    def test_missing_rule_gets_safe_default(self, make_backend, make_client, rules):
        evaluator, _ = _evaluator(make_backend, make_client, {
            "results": [_result("MUTUALITY-001", "GREEN"), _result("TERM-001", "RED")],
        })

        verdicts = evaluator.evaluate(NDA, rules)

        assert verdicts["REMEDIES-001"].is_fallback
        assert verdicts["REMEDIES-001"].risk_level is RiskLevel.GREEN
        assert not verdicts["TERM-001"].is_fallback

    def test_unknown_rule_ids_are_ignored(self, make_backend, make_client, rules):
        evaluator, _ = _evaluator(make_backend, make_client, {
            "results": [
                _result("MUTUALITY-001", "GREEN"),
                _result("TERM-001", "GREEN"),
                _result("REMEDIES-001", "GREEN"),
                _result("INVENTED-999", "RED"),
            ],
        })

        verdicts = evaluator.evaluate(NDA, rules)

        assert "INVENTED-999" not in verdicts
        assert evaluator.unknown_rule_ids == ["INVENTED-999"]
        assert all(v.risk_level is RiskLevel.GREEN for v in verdicts.values())

    def test_duplicate_result_keeps_first(self, make_backend, make_client, rules):
        evaluator, _ = _evaluator(make_backend, make_client, {
            "results": [_result("TERM-001", "RED"), _result("TERM-001", "GREEN")],
        })

        verdicts = evaluator.evaluate(NDA, rules)

        assert verdicts["TERM-001"].risk_level is RiskLevel.RED

    def test_empty_results_default_every_rule(self, make_backend, make_client, rules):
        evaluator, _ = _evaluator(make_backend, make_client, {"results": [], "overall_risk_score": "GREEN"})

        verdicts = evaluator.evaluate(NDA, rules)

        assert len(verdicts) == 3
        assert all(v.is_fallback for v in verdicts.values())

    def test_malformed_reply_defaults_every_rule(self, make_backend, make_client, rules):
        evaluator, _ = _evaluator(make_backend, make_client, MalformedResponse("not json"))

        verdicts = evaluator.evaluate(NDA, rules)

        assert all(v.is_fallback for v in verdicts.values())
        assert isinstance(evaluator.last_error, MalformedResponse)

    def test_service_unavailable_propagates(self, make_backend, make_client, rules):
        evaluator, _ = _evaluator(make_backend, make_client, ServiceUnavailable("down"))

        with pytest.raises(ServiceUnavailable):
            evaluator.evaluate(NDA, rules)

    def test_missing_flag_color_defaults_to_green(self, make_backend, make_client, rules):
        evaluator, _ = _evaluator(make_backend, make_client, {
            "results": [
                {"rule_id": "MUTUALITY-001", "flag_color": None, "explanation": "Not stated."},
                {"rule_id": "TERM-001"},
                _result("REMEDIES-001", "RED"),
            ],
        })

        verdicts = evaluator.evaluate(NDA, rules)

        assert verdicts["MUTUALITY-001"].risk_level is RiskLevel.GREEN
        assert not verdicts["MUTUALITY-001"].is_fallback
        assert verdicts["TERM-001"].risk_level is RiskLevel.GREEN
        assert verdicts["REMEDIES-001"].risk_level is RiskLevel.RED
