"""Staff fatigue signals from the optional workload snapshot.

These are workload indicators, not evidence of impairment.
"""

import logging

from ..models import PredictiveContext
from ..risk_scorer import BaseRiskContributor, ContributorResult, build_result

logger = logging.getLogger(__name__)

EXTENDED_HOURS_THRESHOLD = 10
EXTENDED_HOURS_PENALTY = 25

HIGH_LOAD_THRESHOLD = 50
HIGH_LOAD_PENALTY = 20

MIN_BREAKS = 2
BREAKS_REQUIRED_AFTER_HOURS = 6
INSUFFICIENT_BREAKS_PENALTY = 15


class StaffFatigueContributor(BaseRiskContributor):
    name = "staff_fatigue"
    label = "staff fatigue"

    def evaluate(self, context: PredictiveContext) -> ContributorResult:
        workload = getattr(context, "workload", None)
        if workload is None:
            return ContributorResult()

        scored = []

        if workload.hours_worked > EXTENDED_HOURS_THRESHOLD:
            scored.append(
                ("Staff member has worked extended hours - fatigue risk", EXTENDED_HOURS_PENALTY)
            )

        if workload.medications_administered > HIGH_LOAD_THRESHOLD:
            scored.append(
                ("High medication administration load - increased error risk", HIGH_LOAD_PENALTY)
            )

        if workload.breaks_taken < MIN_BREAKS and workload.hours_worked > BREAKS_REQUIRED_AFTER_HOURS:
            scored.append(
                (
                    "Insufficient breaks taken - recommend break before proceeding",
                    INSUFFICIENT_BREAKS_PENALTY,
                )
            )

        return build_result(scored, self.name)
