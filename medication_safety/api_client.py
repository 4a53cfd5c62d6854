"""REST client for the resident/medication/staff query service.

Implements SafetyDataSource over HTTP:
- single-record lookups return None on HTTP 404 ("not found")
- collection lookups return the JSON list as-is (possibly empty)
- any other HTTP or transport error is raised to the calling check
"""

import logging
import os
import threading
from datetime import datetime
from typing import Any, Callable

import requests

from .clock import to_local_naive
from .data_source import SafetyDataSource
from .records import (
    AdministrationRecord,
    AdministrationStatus,
    AdverseEvent,
    BehavioralObservation,
    CarePlan,
    CompetencyAssessment,
    Incident,
    MedicationBatch,
    MedicationChange,
    MedicationInstruction,
    MedicationRecord,
    MedicationSchedule,
    Prescription,
    ResidentRecord,
    StaffRecord,
    StockLevel,
    StorageCondition,
    TrainingRecord,
    VitalSignsReading,
)

logger = logging.getLogger(__name__)


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp into a naive local datetime."""
    if not value:
        return None
    return to_local_naive(datetime.fromisoformat(value.replace("Z", "+00:00")))


def _parse_medication(data: dict) -> MedicationRecord:
    return MedicationRecord(
        medication_id=data["id"],
        name=data.get("name", ""),
        ingredients=data.get("ingredients", []),
        interactions=data.get("interactions", []),
        contraindications=data.get("contraindications", []),
        monitoring_requirements=data.get("monitoring_requirements", []),
        vital_sign_requirements=data.get("vital_sign_requirements", []),
        special_instructions=data.get("special_instructions", []),
        high_risk=bool(data.get("high_risk", False)),
        high_alert=bool(data.get("high_alert", False)),
    )


def _parse_administration(data: dict) -> AdministrationRecord:
    return AdministrationRecord(
        record_id=data["id"],
        resident_id=data["resident_id"],
        medication_id=data["medication_id"],
        created_at=parse_datetime(data["created_at"]),
        status=AdministrationStatus(data.get("status", AdministrationStatus.GIVEN.value)),
        scheduled_at=parse_datetime(data.get("scheduled_at")),
        actual_at=parse_datetime(data.get("actual_at")),
        signed_by=data.get("signed_by"),
        notes=data.get("notes"),
        errors=data.get("errors", []),
        reactions=data.get("reactions", []),
    )


class SafetyAPIClient(SafetyDataSource):
    """HTTP implementation of the safety data source.

    Checks call the client from several worker threads at once, so each
    thread gets its own requests session.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        """Initialize the client.

        Args:
            base_url: Base URL of the query service. Defaults to MED_SAFETY_API_URL env var.
            timeout: Request timeout in seconds. Defaults to MED_SAFETY_API_TIMEOUT or 10.
            session_factory: Builds the per-thread session (auth headers, adapters)
        """
        self.base_url = (
            base_url or os.environ.get("MED_SAFETY_API_URL", "http://localhost:8090/api")
        ).rstrip("/")
        self.timeout = timeout or float(os.environ.get("MED_SAFETY_API_TIMEOUT", "10"))
        self.session_factory = session_factory
        self._local = threading.local()
        logger.info(f"Initialized safety data client: {self.base_url}")

    @property
    def session(self) -> requests.Session:
        """Session owned by the calling thread."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = self.session_factory()
        return session

    def _get(self, path: str, params: dict | None = None, allow_missing: bool = False) -> Any:
        """Execute GET request and return decoded JSON.

        Returns None for HTTP 404 when ``allow_missing`` is set.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            if allow_missing and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"Safety data request failed for {path}: {e}")
            raise

    @staticmethod
    def _since(since: datetime) -> dict:
        return {"since": since.isoformat()}

    # --- Resident ---

    def get_resident(self, resident_id: str) -> ResidentRecord | None:
        data = self._get(f"residents/{resident_id}", allow_missing=True)
        if data is None:
            return None
        return ResidentRecord(
            resident_id=data["id"],
            name=data.get("name", ""),
            allergies=data.get("allergies", []),
        )

    def get_latest_vitals(self, resident_id: str) -> VitalSignsReading | None:
        data = self._get(f"residents/{resident_id}/vitals/latest", allow_missing=True)
        if data is None:
            return None
        return VitalSignsReading(
            recorded_at=parse_datetime(data["recorded_at"]),
            out_of_range=bool(data.get("out_of_range", False)),
        )

    def get_incidents(self, resident_id: str, since: datetime) -> list[Incident]:
        data = self._get(f"residents/{resident_id}/incidents", self._since(since))
        return [
            Incident(
                reported_at=parse_datetime(item["created_at"]),
                resolved=bool(item.get("resolved", False)),
            )
            for item in data
        ]

    def get_behavioral_observations(
        self, resident_id: str, since: datetime
    ) -> list[BehavioralObservation]:
        data = self._get(f"residents/{resident_id}/behavioral-observations", self._since(since))
        return [
            BehavioralObservation(
                observed_at=parse_datetime(item["observed_at"]),
                agitation=bool(item.get("agitation", False)),
                refusal=bool(item.get("refusal", False)),
                confusion=bool(item.get("confusion", False)),
            )
            for item in data
        ]

    def get_active_care_plan(self, resident_id: str) -> CarePlan | None:
        data = self._get(f"residents/{resident_id}/care-plan", allow_missing=True)
        if data is None:
            return None
        return CarePlan(
            care_plan_id=data["id"],
            instructions=[
                MedicationInstruction(
                    medication_id=item["medication_id"],
                    special_instructions=item.get("special_instructions"),
                )
                for item in data.get("medication_instructions", [])
            ],
            health_conditions=data.get("health_conditions", []),
        )

    def get_medication_changes(
        self, resident_id: str, since: datetime
    ) -> list[MedicationChange]:
        data = self._get(f"residents/{resident_id}/medication-changes", self._since(since))
        return [
            MedicationChange(
                changed_at=parse_datetime(item["created_at"]),
                description=item.get("description", ""),
            )
            for item in data
        ]

    # --- Medication ---

    def get_medication(self, medication_id: str) -> MedicationRecord | None:
        data = self._get(f"medications/{medication_id}", allow_missing=True)
        return _parse_medication(data) if data is not None else None

    def get_latest_prescription(
        self, resident_id: str, medication_id: str
    ) -> Prescription | None:
        data = self._get(
            f"residents/{resident_id}/medications/{medication_id}/prescription",
            allow_missing=True,
        )
        if data is None:
            return None
        return Prescription(
            prescription_id=data["id"],
            prescribed_at=parse_datetime(data["prescribed_at"]),
        )

    def get_stock_level(self, facility_id: str, medication_id: str) -> StockLevel | None:
        data = self._get(
            f"facilities/{facility_id}/medications/{medication_id}/stock", allow_missing=True
        )
        if data is None:
            return None
        return StockLevel(quantity=int(data["quantity"]), minimum_level=int(data["minimum_level"]))

    def get_batch(self, facility_id: str, medication_id: str) -> MedicationBatch | None:
        data = self._get(
            f"facilities/{facility_id}/medications/{medication_id}/batch", allow_missing=True
        )
        if data is None:
            return None
        return MedicationBatch(
            batch_number=data["batch_number"],
            expiry_date=parse_datetime(data["expiry_date"]),
        )

    def has_active_recall(self, batch_number: str) -> bool:
        data = self._get("recalls", {"batch_number": batch_number, "active": "true"})
        return len(data) > 0

    def get_storage_condition(
        self, facility_id: str, medication_id: str
    ) -> StorageCondition | None:
        data = self._get(
            f"facilities/{facility_id}/medications/{medication_id}/storage", allow_missing=True
        )
        if data is None:
            return None
        return StorageCondition(
            min_temp=float(data["min_temp"]),
            max_temp=float(data["max_temp"]),
            latest_temperature=(
                float(data["latest_temperature"])
                if data.get("latest_temperature") is not None
                else None
            ),
        )

    def get_active_schedule(
        self, resident_id: str, medication_id: str
    ) -> MedicationSchedule | None:
        data = self._get(
            f"residents/{resident_id}/medications/{medication_id}/schedule",
            allow_missing=True,
        )
        if data is None:
            return None
        return MedicationSchedule(
            next_due_at=parse_datetime(data["next_due_at"]),
            time_critical=bool(data.get("time_critical", False)),
        )

    # --- Staff ---

    def get_staff(self, staff_id: str) -> StaffRecord | None:
        data = self._get(f"staff/{staff_id}", allow_missing=True)
        if data is None:
            return None
        return StaffRecord(staff_id=data["id"], name=data.get("name", ""), role=data.get("role", ""))

    def get_latest_training(self, staff_id: str) -> TrainingRecord | None:
        data = self._get(f"staff/{staff_id}/training/latest", allow_missing=True)
        if data is None:
            return None
        return TrainingRecord(completed_at=parse_datetime(data["completed_at"]))

    def get_latest_assessment(self, staff_id: str) -> CompetencyAssessment | None:
        data = self._get(f"staff/{staff_id}/assessments/latest", allow_missing=True)
        if data is None:
            return None
        return CompetencyAssessment(
            assessed_at=parse_datetime(data["assessed_at"]),
            passed=bool(data["passed"]),
        )

    # --- Administration history ---

    def get_administration_records(
        self, resident_id: str, medication_id: str, since: datetime
    ) -> list[AdministrationRecord]:
        data = self._get(
            f"residents/{resident_id}/medications/{medication_id}/administrations",
            self._since(since),
        )
        return [_parse_administration(item) for item in data]

    def get_recently_administered_medications(
        self, resident_id: str, since: datetime
    ) -> list[MedicationRecord]:
        data = self._get(f"residents/{resident_id}/administered-medications", self._since(since))
        return [_parse_medication(item) for item in data]

    def get_adverse_events(
        self, resident_id: str, medication_id: str, since: datetime
    ) -> list[AdverseEvent]:
        data = self._get(
            f"residents/{resident_id}/medications/{medication_id}/adverse-events",
            self._since(since),
        )
        return [
            AdverseEvent(
                recorded_at=parse_datetime(item["created_at"]),
                description=item.get("description", ""),
            )
            for item in data
        ]
