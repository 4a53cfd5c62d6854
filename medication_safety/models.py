"""Data models for the medication administration safety engine."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from .clock import to_local_naive


class FindingSeverity(str, Enum):
    """Severity of a single finding."""
    ERROR = "error"
    WARNING = "warning"


class VerdictStatus(str, Enum):
    """Overall outcome recorded in the decision log."""
    PASSED = "PASSED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class EvaluationContext:
    """A proposed administration event, fixed for one evaluation."""
    resident_id: str
    medication_id: str
    staff_id: str
    facility_id: str
    administered_at: datetime  # Proposed time of administration

    def normalized(self) -> "EvaluationContext":
        """Same context with ``administered_at`` as naive local time."""
        if self.administered_at.tzinfo is None:
            return self
        return replace(self, administered_at=to_local_naive(self.administered_at))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "resident_id": self.resident_id,
            "medication_id": self.medication_id,
            "staff_id": self.staff_id,
            "facility_id": self.facility_id,
            "administered_at": self.administered_at.isoformat(),
        }


@dataclass(frozen=True)
class EnvironmentalSnapshot:
    """Ambient measurements at the point of administration.

    Every field is optional; a missing reading is skipped, never scored.
    """
    temperature: float | None = None    # Celsius
    humidity: float | None = None       # Percent relative humidity
    light_level: float | None = None    # Lux
    noise_level: float | None = None    # dB

    def to_dict(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "light_level": self.light_level,
            "noise_level": self.noise_level,
        }


@dataclass(frozen=True)
class StaffWorkload:
    """Shift workload of the administering staff member."""
    hours_worked: float
    medications_administered: int
    breaks_taken: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "hours_worked": self.hours_worked,
            "medications_administered": self.medications_administered,
            "breaks_taken": self.breaks_taken,
        }


@dataclass(frozen=True)
class PredictiveContext(EvaluationContext):
    """Evaluation context plus optional measurements for risk scoring."""
    environment: EnvironmentalSnapshot | None = None
    workload: StaffWorkload | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["environment"] = self.environment.to_dict() if self.environment else None
        data["workload"] = self.workload.to_dict() if self.workload else None
        return data


@dataclass(frozen=True)
class Finding:
    """One unit of evidence produced by a check or risk contributor."""
    severity: FindingSeverity
    message: str
    check: str
    risk_score: int | None = None  # Risk contributors only

    @classmethod
    def error(cls, check: str, message: str, risk_score: int | None = None) -> "Finding":
        return cls(FindingSeverity.ERROR, message, check, risk_score)

    @classmethod
    def warning(cls, check: str, message: str, risk_score: int | None = None) -> "Finding":
        return cls(FindingSeverity.WARNING, message, check, risk_score)

    @property
    def is_error(self) -> bool:
        return self.severity == FindingSeverity.ERROR

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "severity": self.severity.value,
            "message": self.message,
            "check": self.check,
            "risk_score": self.risk_score,
        }


@dataclass(frozen=True)
class SafetyVerdict:
    """Aggregated result of the nine baseline checks."""
    findings: tuple[Finding, ...]
    requires_witness: bool
    requires_vital_signs: bool
    evaluated_at: datetime
    system_failure: bool = False

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.is_error]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if not f.is_error]

    @property
    def has_errors(self) -> bool:
        return any(f.is_error for f in self.findings)

    @property
    def has_warnings(self) -> bool:
        return any(not f.is_error for f in self.findings)

    @property
    def is_valid(self) -> bool:
        """True iff no error-severity finding was produced."""
        return not self.has_errors

    @property
    def requires_double_check(self) -> bool:
        return self.has_errors or self.has_warnings

    @property
    def status(self) -> VerdictStatus:
        return VerdictStatus.PASSED if self.is_valid else VerdictStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_valid": self.is_valid,
            "status": self.status.value,
            "errors": [f.message for f in self.errors],
            "warnings": [f.message for f in self.warnings],
            "findings": [f.to_dict() for f in self.findings],
            "requires_witness": self.requires_witness,
            "requires_double_check": self.requires_double_check,
            "requires_vital_signs": self.requires_vital_signs,
            "system_failure": self.system_failure,
            "evaluated_at": self.evaluated_at.isoformat(),
        }


@dataclass(frozen=True)
class RiskVerdict:
    """Baseline verdict combined with the predictive risk assessment."""
    safety: SafetyVerdict
    findings: tuple[Finding, ...]
    risk_score: int
    required_actions: tuple[str, ...]
    recommended_precautions: tuple[str, ...]
    biometric_checks_required: bool
    behavioral_checks_required: bool
    system_failure: bool = False

    @property
    def is_valid(self) -> bool:
        return self.safety.is_valid

    @property
    def requires_witness(self) -> bool:
        return self.safety.requires_witness

    @property
    def requires_vital_signs(self) -> bool:
        return self.safety.requires_vital_signs

    @property
    def requires_double_check(self) -> bool:
        return self.safety.requires_double_check

    @property
    def all_findings(self) -> list[Finding]:
        """Baseline findings followed by predictive findings."""
        return list(self.safety.findings) + list(self.findings)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "safety": self.safety.to_dict(),
            "risk_score": self.risk_score,
            "predictive_findings": [f.to_dict() for f in self.findings],
            "required_actions": list(self.required_actions),
            "recommended_precautions": list(self.recommended_precautions),
            "biometric_checks_required": self.biometric_checks_required,
            "behavioral_checks_required": self.behavioral_checks_required,
            "system_failure": self.system_failure,
        }
