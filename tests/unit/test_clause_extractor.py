"""Unit tests for the clause extractor."""

import json

import pytest

from contract_checklist.extractors import ClauseExtractor
from contract_checklist.reasoning import EmptyResult, MalformedResponse, ServiceUnavailable


AGREEMENT = (
    "MUTUAL NON-DISCLOSURE AGREEMENT\n"
    "1. Definitions. \"Confidential Information\" means any non-public information.\n"
    "2. Obligations. Each party shall hold the other party's Confidential Information in confidence.\n"
    "3. Term. This Agreement shall remain in effect for two (2) years.\n"
)


def _clause(number, title, content):
    return {"clause_number": number, "title": title, "content": content}


def _extractor(make_backend, make_client, *replies, **kwargs):
    backend = make_backend(text_replies=list(replies))
    return ClauseExtractor(make_client(backend), **kwargs), backend


class TestClauseExtractor:
    """Tests for clause segmentation and offset recovery."""

    def test_verbatim_clauses_get_exact_offsets(self, make_backend, make_client):
        contents = [line for line in AGREEMENT.splitlines()[1:]]
        reply = json.dumps([_clause(str(i + 1), None, c) for i, c in enumerate(contents)])
        extractor, backend = _extractor(make_backend, make_client, reply)

        clauses = extractor.extract(AGREEMENT)

        assert len(clauses) == 3
        for position, clause in enumerate(clauses):
            assert clause.position == position
            assert AGREEMENT[clause.start_offset:clause.end_offset] == clause.content
        assert backend.requests[0].temperature == 0.1
        assert extractor.last_error is None

    def test_paraphrased_clause_has_no_offsets(self, make_backend, make_client):
        reply = json.dumps([
            _clause("3", "Term", "3. Term. This Agreement remains in effect for two years."),
        ])
        extractor, _ = _extractor(make_backend, make_client, reply)

        clauses = extractor.extract(AGREEMENT)

        assert clauses[0].start_offset is None
        assert clauses[0].end_offset is None
        assert clauses[0].clause_number == "3"

    def test_matching_prefix_with_diverging_tail_has_no_offsets(self, make_backend, make_client):
        content = "1. Definitions. \"Confidential Information\" means any information at all."
        extractor, _ = _extractor(make_backend, make_client, json.dumps([_clause("1", None, content)]), prefix_length=20)

        clauses = extractor.extract(AGREEMENT)

        assert not clauses[0].has_offsets

    def test_ambiguous_prefix_falls_back_to_full_content(self, make_backend, make_client):
        # the prefix first occurs inside clause 1
        content = "Confidential Information in confidence."
        extractor, _ = _extractor(make_backend, make_client, json.dumps([_clause(None, None, content)]), prefix_length=12)

        clauses = extractor.extract(AGREEMENT)

        assert AGREEMENT[clauses[0].start_offset:clauses[0].end_offset] == content

    def test_malformed_reply_falls_back_to_whole_document(self, make_backend, make_client):
        extractor, _ = _extractor(make_backend, make_client, "Here are your clauses: none")

        clauses = extractor.extract(AGREEMENT)

        assert len(clauses) == 1
        assert clauses[0].content == AGREEMENT
        assert (clauses[0].start_offset, clauses[0].end_offset) == (0, len(AGREEMENT))
        assert isinstance(extractor.last_error, MalformedResponse)

    def test_service_failure_falls_back_to_whole_document(self, make_backend, make_client):
        extractor, _ = _extractor(make_backend, make_client, ServiceUnavailable("connection reset"))

        clauses = extractor.extract(AGREEMENT)

        assert [c.content for c in clauses] == [AGREEMENT]
        assert isinstance(extractor.last_error, ServiceUnavailable)

    def test_blank_clauses_are_dropped(self, make_backend, make_client):
        reply = json.dumps([_clause(None, "Empty", "   "), _clause("3", "Term", AGREEMENT.splitlines()[3])])
        extractor, _ = _extractor(make_backend, make_client, reply)

        clauses = extractor.extract(AGREEMENT)

        assert len(clauses) == 1
        assert clauses[0].title == "Term"
        assert clauses[0].position == 0

    def test_only_blank_clauses_is_empty_result(self, make_backend, make_client):
        extractor, _ = _extractor(make_backend, make_client, json.dumps([_clause(None, None, "")]))

        clauses = extractor.extract(AGREEMENT)

        assert [c.content for c in clauses] == [AGREEMENT]
        assert isinstance(extractor.last_error, EmptyResult)

    @pytest.mark.parametrize("reply", ["[]", "```json\n[]\n```"])
    def test_empty_array_falls_back(self, make_backend, make_client, reply):
        extractor, _ = _extractor(make_backend, make_client, reply)

        clauses = extractor.extract(AGREEMENT)

        assert len(clauses) == 1
        assert isinstance(extractor.last_error, EmptyResult)
