"""Timing checks: schedule deviation, future-dated events, missed doses."""

import logging
from datetime import timedelta

from ..models import EvaluationContext, Finding
from ..records import AdministrationStatus
from ..safety_checker import BaseSafetyCheck, CheckResult

logger = logging.getLogger(__name__)


def minutes_between(later, earlier) -> int:
    """Whole minutes from ``earlier`` to ``later``, truncated toward zero."""
    return int((later - earlier).total_seconds() / 60)


class TimingCheck(BaseSafetyCheck):
    """Compare the proposed time with the schedule and recent history."""

    name = "timing"
    label = "timing"

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        now = self.clock.now()
        findings = []

        future_tolerance = timedelta(minutes=self.config["future_tolerance_minutes"])
        if context.administered_at > now + future_tolerance:
            findings.append(
                Finding.error(
                    self.name,
                    f"Administration time {context.administered_at.isoformat()} is in the future",
                )
            )

        schedule = self.data_source.get_active_schedule(
            context.resident_id, context.medication_id
        )
        if schedule is None:
            findings.append(Finding.error(self.name, "No active medication schedule found"))
        else:
            minutes_off = abs(minutes_between(context.administered_at, schedule.next_due_at))
            if minutes_off > self.config["timing_tolerance_minutes"]:
                findings.append(
                    Finding.warning(
                        self.name,
                        f"Administration time differs from scheduled time by {minutes_off} minutes",
                    )
                )

        lookback_days = self.config["missed_dose_lookback_days"]
        records = self.data_source.get_administration_records(
            context.resident_id, context.medication_id, now - timedelta(days=lookback_days)
        )
        missed = sum(1 for r in records if r.status == AdministrationStatus.MISSED)
        if missed > 0:
            findings.append(
                Finding.warning(
                    self.name,
                    f"{missed} missed doses in the last {lookback_days} days - review medication compliance",
                )
            )

        return CheckResult(findings=tuple(findings))
