"""Read-only records returned by the resident/medication/staff query service.

These mirror what the surrounding application stores. The engine never
creates or modifies them; a data source hands them out per lookup.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AdministrationStatus(str, Enum):
    """Outcome recorded against a scheduled dose."""
    GIVEN = "GIVEN"
    MISSED = "MISSED"
    REFUSED = "REFUSED"
    HELD = "HELD"


@dataclass(frozen=True)
class ResidentRecord:
    resident_id: str
    name: str = ""
    allergies: list[str] = field(default_factory=list)  # Substance names


@dataclass(frozen=True)
class VitalSignsReading:
    recorded_at: datetime
    out_of_range: bool = False


@dataclass(frozen=True)
class Incident:
    reported_at: datetime
    resolved: bool = False


@dataclass(frozen=True)
class MedicationRecord:
    """Medication profile used by the clinical and complexity checks."""
    medication_id: str
    name: str
    ingredients: list[str] = field(default_factory=list)
    interactions: list[str] = field(default_factory=list)       # Interaction ids
    contraindications: list[str] = field(default_factory=list)  # Health condition ids
    monitoring_requirements: list[str] = field(default_factory=list)
    vital_sign_requirements: list[str] = field(default_factory=list)
    special_instructions: list[str] = field(default_factory=list)
    high_risk: bool = False
    high_alert: bool = False

    @property
    def requires_recent_vitals(self) -> bool:
        """Whether this medication normally needs fresh vital signs."""
        return bool(
            self.vital_sign_requirements
            or self.monitoring_requirements
            or self.high_risk
        )


@dataclass(frozen=True)
class Prescription:
    prescription_id: str
    prescribed_at: datetime


@dataclass(frozen=True)
class StockLevel:
    quantity: int
    minimum_level: int


@dataclass(frozen=True)
class MedicationBatch:
    batch_number: str
    expiry_date: datetime


@dataclass(frozen=True)
class StaffRecord:
    staff_id: str
    name: str = ""
    role: str = ""


@dataclass(frozen=True)
class TrainingRecord:
    completed_at: datetime


@dataclass(frozen=True)
class CompetencyAssessment:
    assessed_at: datetime
    passed: bool


@dataclass(frozen=True)
class StorageCondition:
    """Storage band for a medication at a facility plus the latest reading."""
    min_temp: float
    max_temp: float
    latest_temperature: float | None = None


@dataclass(frozen=True)
class AdministrationRecord:
    """A past administration (or missed dose) for a resident/medication pair."""
    record_id: str
    resident_id: str
    medication_id: str
    created_at: datetime
    status: AdministrationStatus = AdministrationStatus.GIVEN
    scheduled_at: datetime | None = None
    actual_at: datetime | None = None
    signed_by: str | None = None
    notes: str | None = None
    errors: list[str] = field(default_factory=list)     # Error type codes
    reactions: list[str] = field(default_factory=list)  # Reaction type codes


@dataclass(frozen=True)
class MedicationSchedule:
    next_due_at: datetime
    time_critical: bool = False


@dataclass(frozen=True)
class MedicationInstruction:
    medication_id: str
    special_instructions: str | None = None


@dataclass(frozen=True)
class CarePlan:
    care_plan_id: str
    instructions: list[MedicationInstruction] = field(default_factory=list)
    health_conditions: list[str] = field(default_factory=list)  # Health condition ids

    def instruction_for(self, medication_id: str) -> MedicationInstruction | None:
        for instruction in self.instructions:
            if instruction.medication_id == medication_id:
                return instruction
        return None


@dataclass(frozen=True)
class MedicationChange:
    changed_at: datetime
    description: str = ""


@dataclass(frozen=True)
class AdverseEvent:
    recorded_at: datetime
    description: str = ""


@dataclass(frozen=True)
class BehavioralObservation:
    observed_at: datetime
    agitation: bool = False
    refusal: bool = False
    confusion: bool = False
