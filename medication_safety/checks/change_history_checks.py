"""Recent change checks: medication changes and adverse events."""

import logging
from datetime import timedelta

from ..models import EvaluationContext, Finding
from ..safety_checker import BaseSafetyCheck, CheckResult

logger = logging.getLogger(__name__)


class RecentChangesCheck(BaseSafetyCheck):
    """Surface recent changes that the caregiver must reconcile first."""

    name = "recent_changes"
    label = "recent changes"

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        now = self.clock.now()
        findings = []

        changes = self.data_source.get_medication_changes(
            context.resident_id, now - timedelta(days=self.config["change_lookback_days"])
        )
        if changes:
            findings.append(
                Finding.warning(
                    self.name,
                    "Recent medication changes detected - verify against latest instructions",
                )
            )

        events = self.data_source.get_adverse_events(
            context.resident_id,
            context.medication_id,
            now - timedelta(days=self.config["adverse_event_lookback_days"]),
        )
        if events:
            findings.append(
                Finding.error(
                    self.name,
                    f"Previous adverse events recorded ({len(events)}) - review before administration",
                )
            )

        return CheckResult(findings=tuple(findings))
