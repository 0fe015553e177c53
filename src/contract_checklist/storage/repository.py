"""SQLAlchemy implementation of the analysis repository."""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Generator, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import PersistenceError
from ..interfaces.audit import AuditTrailEntry
from ..interfaces.repository import IAnalysisRepository
from ..models.agreement import Agreement, Clause, PolicyRule
from ..models.assessment import Evidence, RiskAssessment
from ..models.enums import AgreementStatus, AuditStep, RiskLevel, RuleSeverity
from .database import DatabaseManager
from .models import (
    AgreementModel,
    AuditTrailModel,
    ClauseModel,
    EvidenceModel,
    PolicyRuleModel,
    RiskAssessmentModel,
    new_id,
)


logger = logging.getLogger(__name__)


class SQLAlchemyRepository(IAnalysisRepository):
    """
    Analysis repository backed by SQLAlchemy (PostgreSQL or SQLite).

    Every public method runs in its own transaction. Database errors are
    rolled back and re-raised as ``PersistenceError``.
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        database_url: Optional[str] = None,
    ):
        """
        Initialize the repository.

        Args:
            db_manager: Optional DatabaseManager instance. If not provided,
                       a new one will be created.
            database_url: Database URL for creating a new DatabaseManager.
        """
        if db_manager is not None:
            self._db_manager = db_manager
            self._owns_db_manager = False
        else:
            self._db_manager = DatabaseManager(database_url=database_url)
            self._owns_db_manager = True

    @property
    def db_manager(self) -> DatabaseManager:
        return self._db_manager

    @contextmanager
    def _transaction(
        self,
        operation: str,
        agreement_id: Optional[str] = None,
    ) -> Generator[Session, None, None]:
        try:
            with self._db_manager.get_session() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Repository operation '{operation}' failed: {e}")
            raise PersistenceError(
                f"Failed to {operation}",
                agreement_id=agreement_id,
                details={"error": str(e)},
            ) from e

    # ---- Conversions ----------------------------------------------------

    @staticmethod
    def _agreement_from_model(model: AgreementModel) -> Agreement:
        return Agreement(
            id=model.id,
            title=model.title,
            text=model.raw_text,
            status=AgreementStatus(model.status),
            overall_risk_score=model.overall_risk_score,
            analyzed_at=model.analyzed_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _rule_from_model(model: PolicyRuleModel) -> PolicyRule:
        return PolicyRule(
            id=model.id,
            rule_id=model.rule_id,
            name=model.name,
            description=model.description,
            acceptance_criteria=model.acceptance_criteria,
            severity=RuleSeverity(model.severity),
            is_active=bool(model.is_active),
        )

    @staticmethod
    def _clause_from_model(model: ClauseModel) -> Clause:
        return Clause(
            id=model.id,
            agreement_id=model.agreement_id,
            content=model.content,
            clause_number=model.clause_number,
            title=model.title,
            start_offset=model.start_offset,
            end_offset=model.end_offset,
            position=model.position,
        )

    @staticmethod
    def _assessment_from_model(model: RiskAssessmentModel) -> RiskAssessment:
        return RiskAssessment(
            id=model.id,
            agreement_id=model.agreement_id,
            clause_id=model.clause_id,
            rule_id=model.rule_id,
            risk_level=RiskLevel(model.risk_level),
            explanation=model.explanation,
            confidence=model.confidence,
            created_at=model.created_at,
            evidence=[
                Evidence(
                    text=e.text,
                    start_offset=e.start_offset,
                    end_offset=e.end_offset,
                    context=e.context,
                )
                for e in model.evidence
            ],
        )

    @staticmethod
    def _audit_from_model(
        model: AuditTrailModel,
        rule: Optional[PolicyRuleModel] = None,
    ) -> AuditTrailEntry:
        summary = None
        if rule is not None:
            summary = {"rule_id": rule.rule_id, "name": rule.name, "severity": rule.severity}
        return AuditTrailEntry(
            id=model.id,
            agreement_id=model.agreement_id,
            step=AuditStep(model.step),
            step_order=model.step_order,
            rule_id=model.rule_id,
            action=model.action,
            input=model.input,
            output=model.output,
            extracted_data=model.extracted_data,
            metadata=model.metadata_,
            reasoning=model.reasoning,
            created_at=model.created_at,
            rule=summary,
        )

    # ---- Agreements and rules -------------------------------------------

    def create_agreement(self, title: str, text: str) -> Agreement:
        with self._transaction("create agreement") as session:
            model = AgreementModel(
                id=new_id(),
                title=title,
                raw_text=text,
                status=AgreementStatus.DRAFT.value,
            )
            session.add(model)
            session.flush()
            return self._agreement_from_model(model)

    def get_agreement(self, agreement_id: str) -> Optional[Agreement]:
        with self._transaction("load agreement", agreement_id) as session:
            model = session.get(AgreementModel, agreement_id)
            return self._agreement_from_model(model) if model else None

    def delete_agreement(self, agreement_id: str) -> bool:
        with self._transaction("delete agreement", agreement_id) as session:
            model = session.get(AgreementModel, agreement_id)
            if model is None:
                return False
            self._delete_assessments(session, agreement_id)
            session.execute(delete(AuditTrailModel).where(AuditTrailModel.agreement_id == agreement_id))
            session.execute(delete(ClauseModel).where(ClauseModel.agreement_id == agreement_id))
            session.delete(model)
            return True

    def upsert_policy_rule(self, rule: PolicyRule) -> PolicyRule:
        with self._transaction("save policy rule") as session:
            model = self._save_rule(session, rule)
            session.flush()
            return self._rule_from_model(model)

    def seed_policy_rules(self, rules: List[PolicyRule]) -> List[PolicyRule]:
        with self._transaction("seed policy rules") as session:
            models = [self._save_rule(session, rule) for rule in rules]
            session.flush()
            logger.info(f"Seeded {len(models)} policy rules")
            return [self._rule_from_model(m) for m in models]

    @staticmethod
    def _save_rule(session: Session, rule: PolicyRule) -> PolicyRuleModel:
        model = session.execute(
            select(PolicyRuleModel).where(PolicyRuleModel.rule_id == rule.rule_id)
        ).scalar_one_or_none()
        if model is None:
            model = PolicyRuleModel(id=rule.id or new_id(), rule_id=rule.rule_id)
            session.add(model)
        model.name = rule.name
        model.description = rule.description
        model.acceptance_criteria = rule.acceptance_criteria
        model.severity = rule.severity.value
        model.is_active = rule.is_active
        return model

    def list_active_rules(self) -> List[PolicyRule]:
        with self._transaction("list active rules") as session:
            models = session.execute(
                select(PolicyRuleModel)
                .where(PolicyRuleModel.is_active.is_(True))
                .order_by(PolicyRuleModel.rule_id)
            ).scalars().all()
            return [self._rule_from_model(m) for m in models]

    # ---- Clauses --------------------------------------------------------

    def get_clauses(self, agreement_id: str) -> List[Clause]:
        with self._transaction("load clauses", agreement_id) as session:
            models = session.execute(
                select(ClauseModel)
                .where(ClauseModel.agreement_id == agreement_id)
                .order_by(ClauseModel.position)
            ).scalars().all()
            return [self._clause_from_model(m) for m in models]

    def save_clauses(self, agreement_id: str, clauses: List[Clause]) -> List[Clause]:
        with self._transaction("save clauses", agreement_id) as session:
            models = [
                ClauseModel(
                    id=new_id(),
                    agreement_id=agreement_id,
                    content=c.content,
                    clause_number=c.clause_number,
                    title=c.title,
                    start_offset=c.start_offset,
                    end_offset=c.end_offset,
                    position=position,
                )
                for position, c in enumerate(clauses)
            ]
            session.add_all(models)
            session.flush()
            return [self._clause_from_model(m) for m in models]

    # ---- Analysis runs --------------------------------------------------

    def _delete_assessments(self, session: Session, agreement_id: str) -> None:
        assessment_ids = select(RiskAssessmentModel.id).where(
            RiskAssessmentModel.agreement_id == agreement_id
        )
        session.execute(delete(EvidenceModel).where(EvidenceModel.assessment_id.in_(assessment_ids)))
        session.execute(delete(RiskAssessmentModel).where(RiskAssessmentModel.agreement_id == agreement_id))

    def _require_agreement(self, session: Session, agreement_id: str) -> AgreementModel:
        model = session.get(AgreementModel, agreement_id)
        if model is None:
            raise PersistenceError("Agreement does not exist", agreement_id=agreement_id)
        return model

    def begin_run(self, agreement_id: str) -> None:
        with self._transaction("begin analysis run", agreement_id) as session:
            model = self._require_agreement(session, agreement_id)
            self._delete_assessments(session, agreement_id)
            session.execute(delete(AuditTrailModel).where(AuditTrailModel.agreement_id == agreement_id))
            model.status = AgreementStatus.ANALYZING.value
            model.overall_risk_score = None
            model.analyzed_at = None

    def complete_run(
        self,
        agreement_id: str,
        assessments: List[RiskAssessment],
        overall_risk_score: RiskLevel,
        analyzed_at: datetime,
    ) -> List[RiskAssessment]:
        with self._transaction("complete analysis run", agreement_id) as session:
            model = self._require_agreement(session, agreement_id)
            rows = []
            for assessment in assessments:
                row = RiskAssessmentModel(
                    id=new_id(),
                    agreement_id=agreement_id,
                    clause_id=assessment.clause_id,
                    rule_id=assessment.rule_id,
                    risk_level=assessment.risk_level.value,
                    explanation=assessment.explanation,
                    confidence=assessment.confidence,
                    evidence=[
                        EvidenceModel(
                            id=new_id(),
                            text=e.text,
                            start_offset=e.start_offset,
                            end_offset=e.end_offset,
                            context=e.context,
                            position=position,
                        )
                        for position, e in enumerate(assessment.evidence)
                    ],
                )
                rows.append(row)
            session.add_all(rows)

            model.status = AgreementStatus.ANALYZED.value
            model.overall_risk_score = overall_risk_score.value
            model.analyzed_at = analyzed_at
            session.flush()

            logger.info(
                f"Stored {len(rows)} assessments for agreement {agreement_id} "
                f"(overall {overall_risk_score.value})"
            )
            return [self._assessment_from_model(r) for r in rows]

    def abort_run(self, agreement_id: str) -> None:
        with self._transaction("abort analysis run", agreement_id) as session:
            model = session.get(AgreementModel, agreement_id)
            if model is None:
                return
            self._delete_assessments(session, agreement_id)
            model.status = AgreementStatus.DRAFT.value
            model.overall_risk_score = None
            model.analyzed_at = None

    def get_assessments(self, agreement_id: str) -> List[RiskAssessment]:
        with self._transaction("load assessments", agreement_id) as session:
            models = session.execute(
                select(RiskAssessmentModel)
                .where(RiskAssessmentModel.agreement_id == agreement_id)
                .order_by(RiskAssessmentModel.created_at, RiskAssessmentModel.rule_id)
            ).scalars().all()
            return [self._assessment_from_model(m) for m in models]

    # ---- Audit trail ----------------------------------------------------

    def save_audit_entries(self, entries: List[AuditTrailEntry]) -> None:
        if not entries:
            return
        with self._transaction("save audit entries", entries[0].agreement_id) as session:
            for entry in sorted(entries, key=lambda e: e.step_order):
                model = AuditTrailModel(
                    id=entry.id or new_id(),
                    agreement_id=entry.agreement_id,
                    step=entry.step.value,
                    step_order=entry.step_order,
                    rule_id=entry.rule_id,
                    action=entry.action,
                    input=entry.input,
                    output=entry.output,
                    reasoning=entry.reasoning,
                    extracted_data=entry.extracted_data,
                    metadata_=entry.metadata,
                    created_at=entry.created_at or datetime.utcnow(),
                )
                session.add(model)
                entry.id = model.id

    def get_audit_entries(self, agreement_id: str) -> List[AuditTrailEntry]:
        with self._transaction("load audit entries", agreement_id) as session:
            rows = session.execute(
                select(AuditTrailModel, PolicyRuleModel)
                .outerjoin(PolicyRuleModel, AuditTrailModel.rule_id == PolicyRuleModel.id)
                .where(AuditTrailModel.agreement_id == agreement_id)
                .order_by(AuditTrailModel.step_order)
            ).all()
            return [self._audit_from_model(audit, rule) for audit, rule in rows]

    def close(self) -> None:
        """Close the repository and release resources."""
        if self._owns_db_manager:
            self._db_manager.close()
