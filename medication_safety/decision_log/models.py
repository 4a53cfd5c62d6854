"""Data models for the decision log."""

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..models import EvaluationContext, PredictiveContext, RiskVerdict, SafetyVerdict


class DecisionKind(str, Enum):
    """Which evaluation produced the record."""
    BASELINE = "baseline"
    PREDICTIVE = "predictive"


def generate_record_id() -> str:
    """Generate a unique decision record ID."""
    return f"DEC-{uuid.uuid4().hex[:12].upper()}"


@dataclass(frozen=True)
class DecisionRecord:
    """Immutable audit entry for one evaluation."""
    record_id: str
    kind: DecisionKind
    resident_id: str
    medication_id: str
    staff_id: str
    facility_id: str
    administered_at: str
    actor: str

    # Outcome
    status: str
    is_valid: bool
    requires_witness: bool
    requires_vital_signs: bool
    risk_score: int | None
    findings: list[dict] = field(default_factory=list)
    required_actions: list[str] = field(default_factory=list)
    verdict: dict = field(default_factory=dict)

    # Predictive inputs as supplied
    environmental_data: dict | None = None
    staff_workload: dict | None = None

    created_at: str = ""

    @classmethod
    def for_baseline(
        cls, context: EvaluationContext, verdict: SafetyVerdict, actor: str
    ) -> "DecisionRecord":
        """Build the record for a baseline safety check."""
        return cls(
            record_id=generate_record_id(),
            kind=DecisionKind.BASELINE,
            resident_id=context.resident_id,
            medication_id=context.medication_id,
            staff_id=context.staff_id,
            facility_id=context.facility_id,
            administered_at=context.administered_at.isoformat(),
            actor=actor,
            status=verdict.status.value,
            is_valid=verdict.is_valid,
            requires_witness=verdict.requires_witness,
            requires_vital_signs=verdict.requires_vital_signs,
            risk_score=None,
            findings=[f.to_dict() for f in verdict.findings],
            required_actions=[],
            verdict=verdict.to_dict(),
            created_at=verdict.evaluated_at.isoformat(),
        )

    @classmethod
    def for_predictive(
        cls, context: PredictiveContext, verdict: RiskVerdict, actor: str
    ) -> "DecisionRecord":
        """Build the record for a predictive risk evaluation."""
        return cls(
            record_id=generate_record_id(),
            kind=DecisionKind.PREDICTIVE,
            resident_id=context.resident_id,
            medication_id=context.medication_id,
            staff_id=context.staff_id,
            facility_id=context.facility_id,
            administered_at=context.administered_at.isoformat(),
            actor=actor,
            status=verdict.safety.status.value,
            is_valid=verdict.is_valid,
            requires_witness=verdict.requires_witness,
            requires_vital_signs=verdict.requires_vital_signs,
            risk_score=verdict.risk_score,
            findings=[f.to_dict() for f in verdict.all_findings],
            required_actions=list(verdict.required_actions),
            verdict=verdict.to_dict(),
            environmental_data=context.environment.to_dict() if context.environment else None,
            staff_workload=context.workload.to_dict() if context.workload else None,
            created_at=verdict.safety.evaluated_at.isoformat(),
        )

    @classmethod
    def from_row(cls, row) -> "DecisionRecord":
        """Create from database row."""
        def load(val):
            return json.loads(val) if val else None

        return cls(
            record_id=row["id"],
            kind=DecisionKind(row["kind"]),
            resident_id=row["resident_id"],
            medication_id=row["medication_id"],
            staff_id=row["staff_id"],
            facility_id=row["facility_id"],
            administered_at=row["administered_at"],
            actor=row["actor"],
            status=row["status"],
            is_valid=bool(row["is_valid"]),
            requires_witness=bool(row["requires_witness"]),
            requires_vital_signs=bool(row["requires_vital_signs"]),
            risk_score=row["risk_score"],
            findings=load(row["findings"]) or [],
            required_actions=load(row["required_actions"]) or [],
            verdict=load(row["verdict"]) or {},
            environmental_data=load(row["environmental_data"]),
            staff_workload=load(row["staff_workload"]),
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.record_id,
            "kind": self.kind.value,
            "resident_id": self.resident_id,
            "medication_id": self.medication_id,
            "staff_id": self.staff_id,
            "facility_id": self.facility_id,
            "administered_at": self.administered_at,
            "actor": self.actor,
            "status": self.status,
            "is_valid": self.is_valid,
            "requires_witness": self.requires_witness,
            "requires_vital_signs": self.requires_vital_signs,
            "risk_score": self.risk_score,
            "findings": self.findings,
            "required_actions": self.required_actions,
            "verdict": self.verdict,
            "environmental_data": self.environmental_data,
            "staff_workload": self.staff_workload,
            "created_at": self.created_at,
        }
