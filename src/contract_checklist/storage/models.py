"""SQLAlchemy models for the contract checklist system."""

from datetime import datetime
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    String,
    DateTime,
    Float,
    Integer,
    Text,
    ForeignKey,
    Index,
    CheckConstraint,
    JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.types import TypeDecorator


def new_id() -> str:
    return str(uuid.uuid4())


class JSONType(TypeDecorator):
    """Platform-independent JSON type.

    Uses JSONB for PostgreSQL and JSON for other databases (like SQLite).
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class AgreementModel(Base):
    """Agreement table model."""
    __tablename__ = "agreements"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(500), nullable=False)
    raw_text = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="draft")
    overall_risk_score = Column(String(10), nullable=True)
    analyzed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    clauses = relationship(
        "ClauseModel", back_populates="agreement",
        cascade="all, delete-orphan", order_by="ClauseModel.position",
    )
    assessments = relationship(
        "RiskAssessmentModel", back_populates="agreement", cascade="all, delete-orphan",
    )
    audit_entries = relationship(
        "AuditTrailModel", back_populates="agreement",
        cascade="all, delete-orphan", order_by="AuditTrailModel.step_order",
    )

    __table_args__ = (
        CheckConstraint("status IN ('draft', 'analyzing', 'analyzed')", name="check_agreement_status"),
        CheckConstraint(
            "overall_risk_score IS NULL OR overall_risk_score IN ('GREEN', 'YELLOW', 'RED')",
            name="check_agreement_risk_score",
        ),
        Index("idx_agreements_risk_score", "overall_risk_score"),
        Index("idx_agreements_created_at", "created_at"),
    )


class PolicyRuleModel(Base):
    """Policy rule table model."""
    __tablename__ = "policy_rules"

    id = Column(String(64), primary_key=True, default=new_id)
    rule_id = Column(String(64), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    acceptance_criteria = Column(Text, nullable=False)
    severity = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "severity IN ('SHOW_STOPPER', 'NEGOTIABLE', 'COMPLIANT')",
            name="check_rule_severity",
        ),
        Index("idx_policy_rules_severity", "severity"),
        Index("idx_policy_rules_is_active", "is_active"),
    )


class ClauseModel(Base):
    """Extracted clause table model."""
    __tablename__ = "clauses"

    id = Column(String(36), primary_key=True, default=new_id)
    agreement_id = Column(String(36), ForeignKey("agreements.id", ondelete="CASCADE"), nullable=False)
    clause_number = Column(String(50), nullable=True)
    title = Column(String(500), nullable=True)
    content = Column(Text, nullable=False)
    start_offset = Column(Integer, nullable=True)
    end_offset = Column(Integer, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    agreement = relationship("AgreementModel", back_populates="clauses")

    __table_args__ = (
        Index("idx_clauses_agreement_id", "agreement_id"),
        Index("idx_clauses_position", "agreement_id", "position"),
    )


class RiskAssessmentModel(Base):
    """Risk assessment table model."""
    __tablename__ = "risk_assessments"

    id = Column(String(36), primary_key=True, default=new_id)
    agreement_id = Column(String(36), ForeignKey("agreements.id", ondelete="CASCADE"), nullable=False)
    clause_id = Column(String(36), ForeignKey("clauses.id", ondelete="CASCADE"), nullable=True)
    rule_id = Column(String(64), ForeignKey("policy_rules.id", ondelete="CASCADE"), nullable=False)
    risk_level = Column(String(10), nullable=False)
    explanation = Column(Text, nullable=False)
    confidence = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    agreement = relationship("AgreementModel", back_populates="assessments")
    evidence = relationship(
        "EvidenceModel", back_populates="assessment",
        cascade="all, delete-orphan", order_by="EvidenceModel.position",
    )

    __table_args__ = (
        CheckConstraint("risk_level IN ('GREEN', 'YELLOW', 'RED')", name="check_assessment_risk_level"),
        Index("idx_risk_assessments_agreement_id", "agreement_id"),
        Index("idx_risk_assessments_rule_id", "rule_id"),
        Index("idx_risk_assessments_risk_level", "risk_level"),
    )


class EvidenceModel(Base):
    """Evidence quote table model."""
    __tablename__ = "evidence"

    id = Column(String(36), primary_key=True, default=new_id)
    assessment_id = Column(
        String(36), ForeignKey("risk_assessments.id", ondelete="CASCADE"), nullable=False,
    )
    text = Column(Text, nullable=False)
    start_offset = Column(Integer, nullable=True)
    end_offset = Column(Integer, nullable=True)
    context = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)

    assessment = relationship("RiskAssessmentModel", back_populates="evidence")

    __table_args__ = (
        Index("idx_evidence_assessment_id", "assessment_id"),
    )


class AuditTrailModel(Base):
    """Audit trail table model."""
    __tablename__ = "audit_trail"

    id = Column(String(36), primary_key=True, default=new_id)
    agreement_id = Column(String(36), ForeignKey("agreements.id", ondelete="CASCADE"), nullable=False)
    step = Column(String(30), nullable=False)
    step_order = Column(Integer, nullable=False)
    rule_id = Column(String(64), ForeignKey("policy_rules.id", ondelete="CASCADE"), nullable=True)
    action = Column(Text, nullable=False)
    input = Column(JSONType)
    output = Column(JSONType)
    reasoning = Column(Text)
    extracted_data = Column(JSONType)
    metadata_ = Column("metadata", JSONType)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    agreement = relationship("AgreementModel", back_populates="audit_entries")

    __table_args__ = (
        CheckConstraint(
            "step IN ('extraction', 'rule_evaluation', 'validation', 'decision')",
            name="check_audit_step",
        ),
        Index("idx_audit_trail_agreement_id", "agreement_id"),
        Index("idx_audit_trail_step_order", "agreement_id", "step_order"),
        Index("idx_audit_trail_rule_id", "rule_id"),
    )
