"""Shared fixtures: a scripted reasoning backend and an in-memory repository."""

from typing import Any, Callable, Dict, List, Optional

import pytest

from contract_checklist.config.models import ReasoningSettings
from contract_checklist.interfaces.reasoning import (
    IReasoningBackend,
    ReasoningReply,
    ReasoningRequest,
)
from contract_checklist.models.agreement import PolicyRule
from contract_checklist.models.enums import RuleSeverity
from contract_checklist.reasoning.client import ReasoningClient
from contract_checklist.storage.database import DatabaseManager
from contract_checklist.storage.repository import SQLAlchemyRepository


class ScriptedBackend(IReasoningBackend):
    """
    Reasoning backend that replays scripted replies.

    A reply is either raw content (wrapped in a ``ReasoningReply``), a
    ``ReasoningReply``, or an exception instance to raise. With a
    ``responder`` callable, replies are computed from each request instead.
    """

    def __init__(
        self,
        text_replies: Optional[List[Any]] = None,
        structured_replies: Optional[List[Any]] = None,
        responder: Optional[Callable[[ReasoningRequest, Optional[str]], Any]] = None,
    ):
        self.text_replies = list(text_replies or [])
        self.structured_replies = list(structured_replies or [])
        self.responder = responder
        self.requests: List[ReasoningRequest] = []
        self.schema_names: List[Optional[str]] = []

    @property
    def model_name(self) -> str:
        return "scripted-model"

    def complete_text(self, request: ReasoningRequest) -> ReasoningReply:
        return self._reply(self.text_replies, request, None)

    def complete_structured(
        self,
        request: ReasoningRequest,
        schema_name: str,
        schema: Dict[str, Any],
    ) -> ReasoningReply:
        return self._reply(self.structured_replies, request, schema_name)

    def _reply(self, queue: List[Any], request: ReasoningRequest, schema_name: Optional[str]) -> ReasoningReply:
        self.requests.append(request)
        self.schema_names.append(schema_name)
        if self.responder is not None:
            item = self.responder(request, schema_name)
        else:
            assert queue, f"No scripted reply left for task '{request.task}'"
            item = queue.pop(0)

        if isinstance(item, Exception):
            raise item
        if isinstance(item, ReasoningReply):
            return item
        return ReasoningReply(
            content=item,
            model=self.model_name,
            stop_reason="end_turn",
            usage={"input_tokens": 100, "output_tokens": 20, "total_tokens": 120},
        )


@pytest.fixture
def make_backend():
    """Factory for scripted backends."""
    return ScriptedBackend


@pytest.fixture
def make_client():
    """Factory wrapping a backend in a reasoning client with test settings."""
    def _make(backend: IReasoningBackend) -> ReasoningClient:
        return ReasoningClient(backend, ReasoningSettings(api_key="test-key"))
    return _make


def build_rule(
    rule_id: str,
    name: Optional[str] = None,
    severity: RuleSeverity = RuleSeverity.NEGOTIABLE,
    is_active: bool = True,
) -> PolicyRule:
    return PolicyRule(
        id=rule_id,
        rule_id=rule_id,
        name=name or f"Rule {rule_id}",
        description=f"Description of {rule_id}",
        acceptance_criteria=f"Acceptance criteria of {rule_id}",
        severity=severity,
        is_active=is_active,
    )


@pytest.fixture
def make_rule():
    """Factory for policy rules."""
    return build_rule


@pytest.fixture
def rules():
    """A three-rule checklist."""
    return [
        build_rule("MUTUALITY-001", "Mutuality of Protection", RuleSeverity.SHOW_STOPPER),
        build_rule("TERM-001", "Term and Duration", RuleSeverity.NEGOTIABLE),
        build_rule("REMEDIES-001", "Remedies and Injunctive Relief", RuleSeverity.COMPLIANT),
    ]


@pytest.fixture
def db_manager():
    """In-memory SQLite database with the schema created."""
    manager = DatabaseManager(database_url="sqlite:///:memory:")
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def repository(db_manager):
    """Repository over the in-memory database."""
    return SQLAlchemyRepository(db_manager=db_manager)
