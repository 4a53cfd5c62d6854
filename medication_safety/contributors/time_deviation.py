"""Risk from administering away from the scheduled time."""

import logging

from ..checks.timing_checks import minutes_between
from ..models import PredictiveContext
from ..risk_scorer import BaseRiskContributor, ContributorResult, build_result

logger = logging.getLogger(__name__)

DEVIATION_THRESHOLD_MINUTES = 30
# One point per two minutes off schedule, capped
MAX_DEVIATION_PENALTY = 30

TIME_CRITICAL_THRESHOLD_MINUTES = 15
TIME_CRITICAL_PENALTY = 40


class TimeDeviationContributor(BaseRiskContributor):
    """Score deviation from the active schedule.

    A missing schedule scores nothing here; the baseline timing check
    already reports it as an error.
    """

    name = "time_deviation"
    label = "time deviation"

    def evaluate(self, context: PredictiveContext) -> ContributorResult:
        schedule = self.data_source.get_active_schedule(
            context.resident_id, context.medication_id
        )
        if schedule is None:
            return ContributorResult()

        deviation = minutes_between(context.administered_at, schedule.next_due_at)
        minutes_off = abs(deviation)

        scored = []
        if minutes_off > DEVIATION_THRESHOLD_MINUTES:
            scored.append(
                (
                    f"Significant time deviation ({deviation} minutes) from scheduled time",
                    min(minutes_off // 2, MAX_DEVIATION_PENALTY),
                )
            )

        if schedule.time_critical and minutes_off > TIME_CRITICAL_THRESHOLD_MINUTES:
            scored.append(("Time-critical medication with significant delay", TIME_CRITICAL_PENALTY))

        return build_result(scored, self.name)
