"""Tests for the baseline safety checker and its nine checks."""

import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from conftest import NOW, TEST_CONFIG, InMemoryDataSource, ListDecisionLog
from medication_safety.checks.environment_checks import EnvironmentalSafetyCheck
from medication_safety.checks.resident_checks import find_allergy_conflicts
from medication_safety.checks.timing_checks import minutes_between
from medication_safety.clock import Clock, FixedClock, to_local_naive
from medication_safety.decision_log import DecisionKind, DecisionLogError
from medication_safety.models import FindingSeverity, VerdictStatus
from medication_safety.records import (
    AdministrationRecord,
    AdministrationStatus,
    AdverseEvent,
    CompetencyAssessment,
    Incident,
    MedicationChange,
    MedicationInstruction,
    MedicationRecord,
    ResidentRecord,
    StockLevel,
    StorageCondition,
    TrainingRecord,
    VitalSignsReading,
)
from medication_safety.safety_checker import SYSTEM_ERROR_MESSAGE, BaselineSafetyChecker


def messages(verdict, severity=None):
    return [
        f.message for f in verdict.findings if severity is None or f.severity == severity
    ]


def error_messages(verdict):
    return messages(verdict, FindingSeverity.ERROR)


def warning_messages(verdict):
    return messages(verdict, FindingSeverity.WARNING)


# --- Aggregation ---


def test_clean_administration_passes(checker, context):
    """An administration with nothing wrong produces no findings."""
    verdict = checker.evaluate(context)

    assert verdict.findings == ()
    assert verdict.is_valid
    assert verdict.status == VerdictStatus.PASSED
    assert not verdict.requires_witness
    assert not verdict.requires_vital_signs
    assert not verdict.requires_double_check
    assert not verdict.system_failure
    assert verdict.evaluated_at == NOW


def test_warning_only_is_valid_but_needs_double_check(checker, data_source, context):
    data_source.incidents = [Incident(reported_at=NOW - timedelta(hours=2))]

    verdict = checker.evaluate(context)

    assert verdict.is_valid
    assert verdict.requires_double_check
    assert warning_messages(verdict) == ["Recent incidents reported - review incident log"]


def test_findings_follow_check_registration_order(checker, data_source, context):
    data_source.incidents = [Incident(reported_at=NOW - timedelta(hours=2))]
    data_source.changes = [MedicationChange(changed_at=NOW - timedelta(days=1))]
    data_source.staff = None

    verdict = checker.evaluate(context)

    assert [f.check for f in verdict.findings] == [
        "resident_status",
        "staff_competency",
        "recent_changes",
    ]


def test_every_check_reports_after_an_early_error(checker, data_source, context):
    """Errors in one check never stop the others from reporting."""
    data_source.resident = None
    data_source.staff = None
    data_source.care_plan = None
    data_source.schedule = None
    data_source.adverse_events = [AdverseEvent(recorded_at=NOW - timedelta(days=3))]

    verdict = checker.evaluate(context)

    assert {f.check for f in verdict.errors} == {
        "resident_status",
        "staff_competency",
        "timing",
        "care_plan",
        "recent_changes",
    }
    assert not verdict.is_valid


def test_adding_a_condition_never_removes_findings(checker, data_source, context):
    data_source.incidents = [Incident(reported_at=NOW - timedelta(hours=3))]
    before = set(checker.assess(context).findings)

    data_source.stock = StockLevel(quantity=1, minimum_level=20)
    after = set(checker.assess(context).findings)

    assert before < after


def test_result_is_independent_of_worker_count(data_source, context):
    data_source.resident = replace(data_source.resident, allergies=["paracetamol"])
    data_source.stock = None
    data_source.schedule = replace(data_source.schedule, next_due_at=NOW - timedelta(hours=2))
    data_source.changes = [MedicationChange(changed_at=NOW - timedelta(days=2))]
    clock = FixedClock(NOW)

    serial = BaselineSafetyChecker(
        data_source, ListDecisionLog(), clock=clock, config={**TEST_CONFIG, "max_workers": 1}
    )
    parallel = BaselineSafetyChecker(
        data_source, ListDecisionLog(), clock=clock, config={**TEST_CONFIG, "max_workers": 8}
    )

    for _ in range(5):
        assert serial.assess(context) == parallel.assess(context)



def test_timezone_aware_administration_time(checker, decision_log, context):
    verdict = checker.evaluate(replace(context, administered_at=NOW.astimezone()))

    assert verdict.is_valid
    assert verdict.findings == ()
    assert not verdict.system_failure
    assert decision_log.records[-1].administered_at == NOW.isoformat()


def test_timezone_aware_clock_is_read_as_local_time(data_source, context):
    checker = BaselineSafetyChecker(
        data_source, ListDecisionLog(), clock=FixedClock(NOW.astimezone()), config=TEST_CONFIG
    )

    verdict = checker.assess(context)

    assert verdict.findings == ()
    assert verdict.evaluated_at == NOW


def test_to_local_naive():
    assert to_local_naive(NOW) is NOW
    assert to_local_naive(NOW.astimezone()) == NOW

    utc = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
    assert to_local_naive(utc) == utc.astimezone().replace(tzinfo=None)


class CountingClock(Clock):
    """Clock that drifts a minute forward on every read."""

    def __init__(self, start):
        self.current = start
        self.reads = 0

    def now(self):
        self.reads += 1
        self.current += timedelta(minutes=1)
        return self.current


def test_every_check_sees_one_instant(data_source, context):
    clock = CountingClock(NOW)
    checker = BaselineSafetyChecker(data_source, ListDecisionLog(), clock=clock, config=TEST_CONFIG)

    verdict = checker.assess(context)

    assert clock.reads == 1
    assert verdict.evaluated_at == NOW + timedelta(minutes=1)
    assert verdict.findings == ()

# --- Resident status ---


def test_resident_not_found(checker, data_source, context):
    data_source.resident = None

    verdict = checker.evaluate(context)

    assert "Resident not found in system" in error_messages(verdict)


def test_allergy_alert_single_error(checker, data_source, context):
    """A known allergy to an ingredient is exactly one error."""
    data_source.resident = ResidentRecord("R1", allergies=["Penicillin"])
    data_source.medication = MedicationRecord(
        "M1", "Amoxicillin", ingredients=["Amoxicillin", "penicillin "]
    )

    verdict = checker.evaluate(context)

    allergy = [m for m in error_messages(verdict) if m.startswith("ALLERGY ALERT")]
    assert allergy == ["ALLERGY ALERT: Known allergy to medication ingredient(s): Penicillin"]
    assert not verdict.is_valid


def test_find_allergy_conflicts_ignores_case_and_whitespace():
    assert find_allergy_conflicts([" Latex", "Penicillin"], ["latex ", "Saline"]) == [" Latex"]
    assert find_allergy_conflicts([], ["anything"]) == []
    assert find_allergy_conflicts(["Sulfa"], []) == []


def test_stale_vitals_warning_for_monitored_medication(checker, data_source, context):
    data_source.medication = replace(
        data_source.medication, monitoring_requirements=["blood pressure"]
    )
    data_source.vitals = VitalSignsReading(recorded_at=NOW - timedelta(hours=9))

    verdict = checker.evaluate(context)

    assert "Vital signs not recorded in last 8 hours" in warning_messages(verdict)
    assert "Required monitoring: blood pressure" in warning_messages(verdict)
    assert verdict.requires_vital_signs


def test_stale_vitals_ignored_when_medication_needs_none(checker, data_source, context):
    data_source.vitals = VitalSignsReading(recorded_at=NOW - timedelta(hours=30))

    verdict = checker.evaluate(context)

    assert verdict.findings == ()


def test_old_incident_outside_window(checker, data_source, context):
    data_source.incidents = [Incident(reported_at=NOW - timedelta(hours=25))]

    assert checker.evaluate(context).findings == ()


def test_resolved_incident_is_not_reported(checker, data_source, context):
    data_source.incidents = [Incident(reported_at=NOW - timedelta(hours=2), resolved=True)]

    assert checker.evaluate(context).findings == ()

    data_source.incidents.append(Incident(reported_at=NOW - timedelta(hours=5)))

    assert warning_messages(checker.evaluate(context)) == [
        "Recent incidents reported - review incident log"
    ]


# --- Medication validity ---


def test_medication_not_found(checker, data_source, context):
    data_source.medication = None

    verdict = checker.evaluate(context)

    assert "Medication not found in system" in error_messages(verdict)
    assert "Medication not found" in error_messages(verdict)
    assert verdict.requires_witness


def test_missing_prescription(checker, data_source, context):
    data_source.prescription = None

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == ["No valid prescription found"]


def test_old_prescription_warning(checker, data_source, context):
    data_source.prescription = replace(
        data_source.prescription, prescribed_at=NOW - timedelta(days=45)
    )

    verdict = checker.evaluate(context)

    assert verdict.is_valid
    assert warning_messages(verdict) == ["Prescription is over 30 days old - consider review"]


def test_low_and_missing_stock_warn(checker, data_source, context):
    data_source.stock = StockLevel(quantity=5, minimum_level=20)
    assert warning_messages(checker.evaluate(context)) == [
        "Stock levels below minimum - order more"
    ]

    data_source.stock = None
    assert warning_messages(checker.evaluate(context)) == [
        "Stock levels below minimum - order more"
    ]


def test_expired_batch_is_error(checker, data_source, context):
    data_source.batch = replace(data_source.batch, expiry_date=NOW - timedelta(days=1))

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == ["EXPIRED MEDICATION: batch B1 expired 2026-03-09"]
    assert not verdict.is_valid


def test_batch_expiring_soon_is_warning_only(checker, data_source, context):
    data_source.batch = replace(data_source.batch, expiry_date=NOW + timedelta(days=10))

    verdict = checker.evaluate(context)

    assert verdict.is_valid
    assert warning_messages(verdict) == ["Medication expires within 30 days (2026-03-20)"]


def test_recalled_batch(checker, data_source, context):
    data_source.recalled_batches = {"B1"}

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == ["RECALL ALERT: Batch B1 has been recalled"]


# --- Staff competency ---


def test_staff_not_found(checker, data_source, context):
    data_source.staff = None

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == ["Staff member not found in system"]


def test_training_expiry_and_renewal(checker, data_source, context):
    # Test case 1: expired training is an error
    data_source.training = TrainingRecord(completed_at=NOW - timedelta(days=400))
    verdict = checker.evaluate(context)
    assert error_messages(verdict) == ["Medication training expired - requires renewal"]

    # Test case 2: training close to expiry is a warning
    data_source.training = TrainingRecord(completed_at=NOW - timedelta(days=320))
    verdict = checker.evaluate(context)
    assert verdict.is_valid
    assert warning_messages(verdict) == ["Medication training due for renewal soon"]

    # Test case 3: no training at all
    data_source.training = None
    verdict = checker.evaluate(context)
    assert error_messages(verdict) == ["Staff member has no medication training record"]


def test_competency_assessment(checker, data_source, context):
    data_source.assessment = None
    assert error_messages(checker.evaluate(context)) == ["No competency assessment found"]

    data_source.assessment = CompetencyAssessment(assessed_at=NOW - timedelta(days=5), passed=False)
    assert error_messages(checker.evaluate(context)) == [
        "Staff member has not passed latest competency assessment"
    ]


# --- Environmental safety ---


def test_storage_temperature_out_of_range(checker, data_source, context):
    data_source.storage = StorageCondition(min_temp=2, max_temp=8, latest_temperature=12.5)

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == [
        "Storage temperature out of range (12.5C, allowed 2-8C) - check medication condition"
    ]


def test_low_light_hours(checker, data_source, context):
    """Hours 6 through 22 inclusive count as well lit."""
    check = EnvironmentalSafetyCheck(data_source, FixedClock(NOW), checker.config)
    low_light = "Administering medication in low light conditions - ensure adequate lighting"

    for hour, expect_warning in [(5, True), (6, False), (22, False), (23, True), (2, True)]:
        at = NOW.replace(hour=hour, minute=30)
        result = check.evaluate(replace(context, administered_at=at))
        warnings = [f.message for f in result.findings if not f.is_error]
        assert (low_light in warnings) == expect_warning, hour


# --- Clinical safety ---


def test_high_risk_medication_requires_witness_and_vitals(checker, data_source, context):
    data_source.medication = replace(data_source.medication, high_risk=True)

    verdict = checker.evaluate(context)

    assert verdict.is_valid
    assert verdict.requires_witness
    assert verdict.requires_vital_signs
    assert warning_messages(verdict) == [
        "High-risk medication - requires witness and vital signs monitoring"
    ]


def test_interaction_with_recent_medication(checker, data_source, context):
    warfarin = MedicationRecord("M2", "Warfarin", interactions=["INT-WARFARIN"])
    saline = MedicationRecord("M3", "Saline", interactions=["INT-OTHER"])
    # Repeat doses of the same medication report once; the medication itself is skipped
    data_source.recent_medications = [warfarin, saline, warfarin, data_source.medication]

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == ["Potential interaction with Warfarin"]
    assert verdict.requires_witness
    assert not verdict.requires_vital_signs


# --- Documentation ---


def test_unsigned_and_incomplete_records(checker, data_source, context):
    data_source.administrations = [
        AdministrationRecord(
            "A1", "R1", "M1", created_at=NOW - timedelta(hours=4), signed_by=None, notes="ok"
        ),
        AdministrationRecord(
            "A2",
            "R1",
            "M1",
            created_at=NOW - timedelta(hours=2),
            signed_by="S2",
            notes="Given with water, no issues",
        ),
    ]

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == ["Previous administration records missing signatures (1)"]
    assert warning_messages(verdict) == [
        "Previous administration records have incomplete notes (1)"
    ]


# --- Timing ---


def test_schedule_deviation_warning(checker, data_source, context):
    data_source.schedule = replace(data_source.schedule, next_due_at=NOW - timedelta(minutes=45))

    verdict = checker.evaluate(context)

    assert verdict.is_valid
    assert warning_messages(verdict) == [
        "Administration time differs from scheduled time by 45 minutes"
    ]


def test_deviation_within_tolerance(checker, data_source, context):
    data_source.schedule = replace(data_source.schedule, next_due_at=NOW + timedelta(minutes=30))

    assert checker.evaluate(context).findings == ()


def test_no_active_schedule(checker, data_source, context):
    data_source.schedule = None

    assert error_messages(checker.evaluate(context)) == ["No active medication schedule found"]


def test_future_administration_time(checker, data_source, context):
    later = NOW + timedelta(minutes=10)
    data_source.schedule = replace(data_source.schedule, next_due_at=later)

    verdict = checker.evaluate(replace(context, administered_at=later))

    assert error_messages(verdict) == [
        "Administration time 2026-03-10T09:10:00 is in the future"
    ]


def test_missed_doses_warning(checker, data_source, context):
    data_source.administrations = [
        AdministrationRecord(
            f"A{i}",
            "R1",
            "M1",
            created_at=NOW - timedelta(days=i + 1),
            status=AdministrationStatus.MISSED,
            signed_by="S1",
            notes="Resident asleep, dose missed",
        )
        for i in range(2)
    ]

    verdict = checker.evaluate(context)

    assert warning_messages(verdict) == [
        "2 missed doses in the last 7 days - review medication compliance"
    ]


def test_minutes_between_truncates():
    assert minutes_between(NOW + timedelta(minutes=45, seconds=59), NOW) == 45
    assert minutes_between(NOW - timedelta(minutes=45, seconds=59), NOW) == -45


# --- Care plan ---


def test_no_active_care_plan(checker, data_source, context):
    data_source.care_plan = None

    assert error_messages(checker.evaluate(context)) == ["No active care plan found"]


def test_medication_not_in_care_plan(checker, data_source, context):
    data_source.care_plan = replace(data_source.care_plan, instructions=[])

    assert error_messages(checker.evaluate(context)) == [
        "Medication not listed in current care plan"
    ]


def test_care_plan_special_instructions_and_contraindications(checker, data_source, context):
    data_source.care_plan = replace(
        data_source.care_plan,
        instructions=[MedicationInstruction("M1", special_instructions="Give with food")],
        health_conditions=["hypertension", "liver-failure"],
    )

    verdict = checker.evaluate(context)

    assert warning_messages(verdict) == ["Special instructions: Give with food"]
    assert error_messages(verdict) == [
        "Medication may be contraindicated for resident's health conditions: liver-failure"
    ]


# --- Recent changes ---


def test_recent_changes_and_adverse_events(checker, data_source, context):
    data_source.changes = [MedicationChange(changed_at=NOW - timedelta(days=2))]
    data_source.adverse_events = [
        AdverseEvent(recorded_at=NOW - timedelta(days=10)),
        AdverseEvent(recorded_at=NOW - timedelta(days=45)),
    ]

    verdict = checker.evaluate(context)

    assert warning_messages(verdict) == [
        "Recent medication changes detected - verify against latest instructions"
    ]
    assert error_messages(verdict) == [
        "Previous adverse events recorded (1) - review before administration"
    ]


# --- Fail-closed behaviour ---


def test_data_source_failure_fails_closed(checker, data_source, context):
    data_source.failing = {"get_staff"}

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == [
        "System error during staff competency check: get_staff unavailable"
    ]
    assert not verdict.is_valid
    assert verdict.requires_witness
    assert verdict.requires_vital_signs
    assert verdict.system_failure


def test_failure_in_one_check_keeps_other_findings(checker, data_source, context):
    data_source.failing = {"get_active_care_plan"}
    data_source.recalled_batches = {"B1"}

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == [
        "RECALL ALERT: Batch B1 has been recalled",
        "System error during care plan check: get_active_care_plan unavailable",
    ]


def test_evaluation_breakdown_yields_single_system_error(checker, decision_log, context, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("executor unavailable")

    monkeypatch.setattr("medication_safety.safety_checker.run_concurrently", broken)

    verdict = checker.evaluate(context)

    assert error_messages(verdict) == [SYSTEM_ERROR_MESSAGE]
    assert warning_messages(verdict) == []
    assert verdict.requires_witness
    assert verdict.requires_vital_signs
    assert len(decision_log.records) == 1
    assert decision_log.records[0].status == "FAILED"


def test_slow_check_times_out_as_error(decision_log, context):
    release = threading.Event()

    class SlowDataSource(InMemoryDataSource):
        def get_active_care_plan(self, resident_id):
            release.wait(5)
            return super().get_active_care_plan(resident_id)

    checker = BaselineSafetyChecker(
        SlowDataSource(),
        decision_log,
        clock=FixedClock(NOW),
        config={**TEST_CONFIG, "evaluation_timeout_seconds": 1.0},
    )

    try:
        verdict = checker.evaluate(context)
    finally:
        release.set()

    assert [f.check for f in verdict.errors] == ["care_plan"]
    assert verdict.errors[0].message.startswith("System error during care plan check")
    assert verdict.system_failure


# --- Decision logging ---


def test_each_evaluation_appends_one_baseline_record(checker, data_source, decision_log, context):
    data_source.prescription = None

    checker.evaluate(context)

    assert len(decision_log.records) == 1
    record = decision_log.records[0]
    assert record.kind == DecisionKind.BASELINE
    assert record.resident_id == "R1"
    assert record.actor == "S1"
    assert record.status == "FAILED"
    assert not record.is_valid
    assert record.risk_score is None
    assert record.findings[0]["message"] == "No valid prescription found"
    assert record.created_at == NOW.isoformat()


def test_assess_does_not_record(checker, decision_log, context):
    checker.assess(context)

    assert decision_log.records == []


def test_log_write_is_retried(data_source, context):
    decision_log = ListDecisionLog(fail_times=2)
    checker = BaselineSafetyChecker(data_source, decision_log, clock=FixedClock(NOW), config=TEST_CONFIG)

    checker.evaluate(context, actor="supervisor")

    assert decision_log.attempts == 3
    assert len(decision_log.records) == 1
    assert decision_log.records[0].actor == "supervisor"


def test_log_write_failure_is_raised(data_source, context):
    decision_log = ListDecisionLog(fail_times=3)
    checker = BaselineSafetyChecker(data_source, decision_log, clock=FixedClock(NOW), config=TEST_CONFIG)

    with pytest.raises(DecisionLogError):
        checker.evaluate(context)

    assert decision_log.records == []


def test_verdict_to_dict(checker, data_source, context):
    data_source.incidents = [Incident(reported_at=NOW - timedelta(hours=1))]
    data_source.prescription = None

    data = checker.evaluate(context).to_dict()

    assert data["is_valid"] is False
    assert data["status"] == "FAILED"
    assert data["errors"] == ["No valid prescription found"]
    assert data["warnings"] == ["Recent incidents reported - review incident log"]
    assert data["requires_double_check"] is True
