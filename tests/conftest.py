"""Shared fixtures: an in-memory data source describing a clean administration."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Allow running the tests from a plain checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from medication_safety.clock import FixedClock
from medication_safety.data_source import SafetyDataSource
from medication_safety.decision_log import DecisionLogger
from medication_safety.models import EvaluationContext, PredictiveContext
from medication_safety.records import (
    CarePlan,
    CompetencyAssessment,
    Incident,
    MedicationBatch,
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
from medication_safety.risk_scorer import PredictiveRiskScorer
from medication_safety.safety_checker import BaselineSafetyChecker

NOW = datetime(2026, 3, 10, 9, 0)

TEST_CONFIG = {"log_retry_delay_seconds": 0}


class InMemoryDataSource(SafetyDataSource):
    """Data source backed by plain attributes.

    Defaults describe an administration that passes every check. Tests
    overwrite attributes to introduce a single condition. Method names
    listed in ``failing`` raise ConnectionError.
    """

    def __init__(self, now: datetime = NOW):
        self.resident = ResidentRecord("R1", "Test Resident", allergies=[])
        self.vitals = VitalSignsReading(recorded_at=now - timedelta(hours=1))
        self.incidents: list[Incident] = []
        self.observations = []
        self.care_plan = CarePlan(
            "CP1",
            instructions=[MedicationInstruction("M1")],
            health_conditions=["hypertension"],
        )
        self.changes = []
        self.medication = MedicationRecord(
            "M1",
            "Paracetamol",
            ingredients=["Paracetamol"],
            interactions=["INT-WARFARIN"],
            contraindications=["liver-failure"],
        )
        self.prescription = Prescription("P1", prescribed_at=now - timedelta(days=5))
        self.stock = StockLevel(quantity=100, minimum_level=20)
        self.batch = MedicationBatch("B1", expiry_date=now + timedelta(days=365))
        self.recalled_batches: set[str] = set()
        self.storage = StorageCondition(min_temp=15, max_temp=25, latest_temperature=20)
        self.schedule = MedicationSchedule(next_due_at=now)
        self.staff = StaffRecord("S1", "Test Nurse")
        self.training = TrainingRecord(completed_at=now - timedelta(days=60))
        self.assessment = CompetencyAssessment(assessed_at=now - timedelta(days=30), passed=True)
        self.administrations = []
        self.recent_medications: list[MedicationRecord] = []
        self.adverse_events = []
        self.failing: set[str] = set()

    def _check(self, method: str) -> None:
        if method in self.failing:
            raise ConnectionError(f"{method} unavailable")

    def get_resident(self, resident_id):
        self._check("get_resident")
        return self.resident

    def get_latest_vitals(self, resident_id):
        self._check("get_latest_vitals")
        return self.vitals

    def get_incidents(self, resident_id, since):
        self._check("get_incidents")
        return [i for i in self.incidents if i.reported_at >= since]

    def get_behavioral_observations(self, resident_id, since):
        self._check("get_behavioral_observations")
        return [o for o in self.observations if o.observed_at >= since]

    def get_active_care_plan(self, resident_id):
        self._check("get_active_care_plan")
        return self.care_plan

    def get_medication_changes(self, resident_id, since):
        self._check("get_medication_changes")
        return [c for c in self.changes if c.changed_at >= since]

    def get_medication(self, medication_id):
        self._check("get_medication")
        return self.medication

    def get_latest_prescription(self, resident_id, medication_id):
        self._check("get_latest_prescription")
        return self.prescription

    def get_stock_level(self, facility_id, medication_id):
        self._check("get_stock_level")
        return self.stock

    def get_batch(self, facility_id, medication_id):
        self._check("get_batch")
        return self.batch

    def has_active_recall(self, batch_number):
        self._check("has_active_recall")
        return batch_number in self.recalled_batches

    def get_storage_condition(self, facility_id, medication_id):
        self._check("get_storage_condition")
        return self.storage

    def get_active_schedule(self, resident_id, medication_id):
        self._check("get_active_schedule")
        return self.schedule

    def get_staff(self, staff_id):
        self._check("get_staff")
        return self.staff

    def get_latest_training(self, staff_id):
        self._check("get_latest_training")
        return self.training

    def get_latest_assessment(self, staff_id):
        self._check("get_latest_assessment")
        return self.assessment

    def get_administration_records(self, resident_id, medication_id, since):
        self._check("get_administration_records")
        return [r for r in self.administrations if r.created_at >= since]

    def get_recently_administered_medications(self, resident_id, since):
        self._check("get_recently_administered_medications")
        return list(self.recent_medications)

    def get_adverse_events(self, resident_id, medication_id, since):
        self._check("get_adverse_events")
        return [e for e in self.adverse_events if e.recorded_at >= since]


class ListDecisionLog(DecisionLogger):
    """Decision log kept in a list; the first ``fail_times`` writes raise."""

    def __init__(self, fail_times: int = 0):
        self.records = []
        self.fail_times = fail_times
        self.attempts = 0

    def append(self, record):
        self.attempts += 1
        if self.attempts <= self.fail_times:
            raise OSError("disk full")
        self.records.append(record)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def data_source():
    return InMemoryDataSource()


@pytest.fixture
def decision_log():
    return ListDecisionLog()


@pytest.fixture
def checker(data_source, decision_log, clock):
    return BaselineSafetyChecker(data_source, decision_log, clock=clock, config=TEST_CONFIG)


@pytest.fixture
def scorer(checker):
    return PredictiveRiskScorer(checker)


@pytest.fixture
def context():
    return EvaluationContext(
        resident_id="R1",
        medication_id="M1",
        staff_id="S1",
        facility_id="F1",
        administered_at=NOW,
    )


@pytest.fixture
def predictive_context():
    return PredictiveContext(
        resident_id="R1",
        medication_id="M1",
        staff_id="S1",
        facility_id="F1",
        administered_at=NOW,
    )
