"""Progress events emitted by the checklist orchestrator."""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .assessment import RunSummary
from .enums import EventType, ProgressStatus


@dataclass
class ProgressEvent:
    """
    One event of an analysis run.

    A stream of events always ends with exactly one ``complete`` or
    ``error`` event; progress events are informational only.
    """
    type: EventType
    message: str
    status: Optional[ProgressStatus] = None
    clause_id: Optional[str] = None
    clause_number: Optional[str] = None
    total_clauses: Optional[int] = None
    current_clause: Optional[int] = None
    summary: Optional[RunSummary] = None

    @property
    def is_terminal(self) -> bool:
        return self.type in (EventType.COMPLETE, EventType.ERROR)

    @classmethod
    def progress(cls, status: ProgressStatus, message: str, **kwargs) -> "ProgressEvent":
        return cls(type=EventType.PROGRESS, status=status, message=message, **kwargs)

    @classmethod
    def complete(cls, message: str, summary: Optional[RunSummary] = None) -> "ProgressEvent":
        return cls(type=EventType.COMPLETE, message=message, summary=summary)

    @classmethod
    def error(cls, message: str) -> "ProgressEvent":
        return cls(type=EventType.ERROR, message=message)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation with camelCase keys, unset fields omitted."""
        data: Dict[str, Any] = {"type": self.type.value}
        if self.status is not None:
            data["status"] = self.status.value
        optional = {
            "clauseId": self.clause_id,
            "clauseNumber": self.clause_number,
            "totalClauses": self.total_clauses,
            "currentClause": self.current_clause,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        data["message"] = self.message
        if self.summary is not None:
            data["overallRiskScore"] = self.summary.overall_risk_score.value
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)
