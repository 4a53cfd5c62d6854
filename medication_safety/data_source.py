"""Collaborator interface for the read-only data the checks consult.

Lookups that return a single record return ``None`` when nothing exists
("not found"). Lookups that return collections return an empty list when
the entity exists but has nothing recorded ("empty"). Checks treat the two
outcomes differently, so implementations must not collapse them.

Any exception raised by an implementation is treated by the engine as a
system failure of the check that made the call.
"""

from datetime import datetime

from .records import (
    AdministrationRecord,
    AdverseEvent,
    BehavioralObservation,
    CarePlan,
    CompetencyAssessment,
    Incident,
    MedicationBatch,
    MedicationChange,
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


class SafetyDataSource:
    """Base class for resident/medication/staff/care-plan lookups."""

    # --- Resident ---

    def get_resident(self, resident_id: str) -> ResidentRecord | None:
        raise NotImplementedError

    def get_latest_vitals(self, resident_id: str) -> VitalSignsReading | None:
        raise NotImplementedError

    def get_incidents(self, resident_id: str, since: datetime) -> list[Incident]:
        """Return incidents reported since ``since``, resolved or not."""
        raise NotImplementedError

    def get_behavioral_observations(
        self, resident_id: str, since: datetime
    ) -> list[BehavioralObservation]:
        raise NotImplementedError

    def get_active_care_plan(self, resident_id: str) -> CarePlan | None:
        raise NotImplementedError

    def get_medication_changes(
        self, resident_id: str, since: datetime
    ) -> list[MedicationChange]:
        raise NotImplementedError

    # --- Medication ---

    def get_medication(self, medication_id: str) -> MedicationRecord | None:
        raise NotImplementedError

    def get_latest_prescription(
        self, resident_id: str, medication_id: str
    ) -> Prescription | None:
        raise NotImplementedError

    def get_stock_level(
        self, facility_id: str, medication_id: str
    ) -> StockLevel | None:
        raise NotImplementedError

    def get_batch(self, facility_id: str, medication_id: str) -> MedicationBatch | None:
        raise NotImplementedError

    def has_active_recall(self, batch_number: str) -> bool:
        raise NotImplementedError

    def get_storage_condition(
        self, facility_id: str, medication_id: str
    ) -> StorageCondition | None:
        raise NotImplementedError

    def get_active_schedule(
        self, resident_id: str, medication_id: str
    ) -> MedicationSchedule | None:
        raise NotImplementedError

    # --- Staff ---

    def get_staff(self, staff_id: str) -> StaffRecord | None:
        raise NotImplementedError

    def get_latest_training(self, staff_id: str) -> TrainingRecord | None:
        raise NotImplementedError

    def get_latest_assessment(self, staff_id: str) -> CompetencyAssessment | None:
        raise NotImplementedError

    # --- Administration history ---

    def get_administration_records(
        self, resident_id: str, medication_id: str, since: datetime
    ) -> list[AdministrationRecord]:
        """Return records for the pair created (or scheduled) since ``since``."""
        raise NotImplementedError

    def get_recently_administered_medications(
        self, resident_id: str, since: datetime
    ) -> list[MedicationRecord]:
        """Return medications given to the resident since ``since``."""
        raise NotImplementedError

    def get_adverse_events(
        self, resident_id: str, medication_id: str, since: datetime
    ) -> list[AdverseEvent]:
        raise NotImplementedError
