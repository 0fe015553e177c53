"""Persistence for the contract checklist system."""

from .database import DatabaseManager, get_database_url
from .models import (
    AgreementModel,
    AuditTrailModel,
    Base,
    ClauseModel,
    EvidenceModel,
    PolicyRuleModel,
    RiskAssessmentModel,
)
from .repository import SQLAlchemyRepository

__all__ = [
    "DatabaseManager",
    "get_database_url",
    "SQLAlchemyRepository",
    "Base",
    "AgreementModel",
    "AuditTrailModel",
    "ClauseModel",
    "EvidenceModel",
    "PolicyRuleModel",
    "RiskAssessmentModel",
]
