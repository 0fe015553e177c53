"""Audit trail for the contract checklist system."""

from .audit_trail import AuditTrailRecorder, export_audit_trail, flag_breakdown

__all__ = [
    "AuditTrailRecorder",
    "export_audit_trail",
    "flag_breakdown",
]
