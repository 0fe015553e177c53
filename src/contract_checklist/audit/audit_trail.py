"""Audit trail recorder for analysis runs."""

import csv
import io
import json
import logging
from datetime import datetime
from typing import Any, List, Optional

from ..interfaces.audit import AuditTrailEntry, IAuditTrailStore
from ..models.enums import AuditStep, RiskLevel


logger = logging.getLogger(__name__)


class AuditTrailRecorder:
    """
    Buffers the audit entries of one analysis run.

    Entries are numbered 1, 2, 3, ... in the order they are logged and are
    written to the store in a single ``flush``. A recorder belongs to one
    run; a new run starts a new recorder and therefore restarts numbering.
    """

    def __init__(self, agreement_id: str, store: IAuditTrailStore):
        """
        Initialize the recorder.

        Args:
            agreement_id: The agreement under analysis.
            store: Where flushed entries are persisted.
        """
        self._agreement_id = agreement_id
        self._store = store
        self._step_order = 0
        self._entries: List[AuditTrailEntry] = []

    @property
    def agreement_id(self) -> str:
        return self._agreement_id

    @property
    def entries(self) -> List[AuditTrailEntry]:
        """Entries buffered and not yet flushed."""
        return list(self._entries)

    @property
    def step_order(self) -> int:
        """The order number assigned to the most recent entry."""
        return self._step_order

    def log(
        self,
        step: AuditStep,
        action: str,
        rule_id: Optional[str] = None,
        input: Optional[Any] = None,
        output: Optional[Any] = None,
        extracted_data: Optional[Any] = None,
        metadata: Optional[Any] = None,
        reasoning: Optional[str] = None,
    ) -> AuditTrailEntry:
        """
        Append an entry to the buffer.

        Args:
            step: Pipeline step the entry belongs to.
            action: Short description of what happened.
            rule_id: Storage key of the rule concerned, if any.
            input: Structured input of the step.
            output: Structured output of the step.
            extracted_data: Structured data extracted during the step.
            metadata: Model and usage details.
            reasoning: Free-text reasoning.

        Returns:
            The buffered entry.
        """
        self._step_order += 1
        entry = AuditTrailEntry(
            agreement_id=self._agreement_id,
            step=step,
            step_order=self._step_order,
            action=action,
            rule_id=rule_id,
            input=input,
            output=output,
            extracted_data=extracted_data,
            metadata=metadata,
            reasoning=reasoning,
            created_at=datetime.utcnow(),
        )
        self._entries.append(entry)
        return entry

    def flush(self) -> int:
        """
        Persist buffered entries in one transaction and clear the buffer.

        The buffer is kept if the store raises.

        Returns:
            Number of entries written.
        """
        if not self._entries:
            return 0
        self._store.save_audit_entries(list(self._entries))
        count = len(self._entries)
        self._entries.clear()
        logger.debug(f"Flushed {count} audit entries for agreement {self._agreement_id}")
        return count


def flag_breakdown(entries: List[AuditTrailEntry]) -> dict:
    """Count per-rule decisions by risk level."""
    breakdown = {level.value.lower(): 0 for level in (RiskLevel.RED, RiskLevel.YELLOW, RiskLevel.GREEN)}
    for entry in entries:
        if entry.step is not AuditStep.DECISION or not entry.rule_id:
            continue
        flag = (entry.output or {}).get("flagColor") if isinstance(entry.output, dict) else None
        if isinstance(flag, str) and flag.lower() in breakdown:
            breakdown[flag.lower()] += 1
    return breakdown


def export_audit_trail(entries: List[AuditTrailEntry], format: str = "json") -> str:
    """
    Export an audit trail.

    Args:
        entries: Entries ordered by step order.
        format: Export format ("json" or "csv").

    Returns:
        Exported trail as a string.

    Raises:
        ValueError: If format is not supported.
    """
    if format not in ("json", "csv"):
        raise ValueError(f"Unsupported export format: {format}. Use 'json' or 'csv'.")

    if format == "json":
        return _export_json(entries)
    return _export_csv(entries)


def _export_json(entries: List[AuditTrailEntry]) -> str:
    steps = {}
    for e in entries:
        steps[e.step.value] = steps.get(e.step.value, 0) + 1

    data = {
        "export_timestamp": datetime.utcnow().isoformat(),
        "agreement_id": entries[0].agreement_id if entries else None,
        "entry_count": len(entries),
        "steps": steps,
        "flag_breakdown": flag_breakdown(entries),
        "entries": [e.to_dict() for e in entries],
    }
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _export_csv(entries: List[AuditTrailEntry]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow([
        "step_order", "step", "action", "rule_id", "input", "output",
        "extracted_data", "metadata", "reasoning", "created_at",
        "rule_name", "rule_severity",
    ])

    for e in entries:
        writer.writerow([
            e.step_order,
            e.step.value,
            e.action,
            e.rule_id or "",
            _dump(e.input),
            _dump(e.output),
            _dump(e.extracted_data),
            _dump(e.metadata),
            e.reasoning or "",
            e.created_at.isoformat() if e.created_at else "",
            (e.rule or {}).get("name", ""),
            (e.rule or {}).get("severity", ""),
        ])

    return output.getvalue()


def _dump(value: Any) -> str:
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False, default=str)
