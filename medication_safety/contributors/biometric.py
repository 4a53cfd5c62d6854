"""Biometric requirements: freshness and range of the latest vital signs."""

import logging

from ..models import PredictiveContext
from ..risk_scorer import BaseRiskContributor, ContributorResult, build_result

logger = logging.getLogger(__name__)

MISSING_VITALS_PENALTY = 25

# Vitals older than this many hours are stale; the penalty grows by one
# point per further hour up to the cap, always below MISSING_VITALS_PENALTY
STALE_VITALS_HOURS = 4
STALE_VITALS_BASE_PENALTY = 10
STALE_VITALS_MAX_PENALTY = 20

OUT_OF_RANGE_PENALTY = 30


def stale_vitals_penalty(hours_old: int) -> int:
    return min(STALE_VITALS_BASE_PENALTY + (hours_old - STALE_VITALS_HOURS), STALE_VITALS_MAX_PENALTY)


class BiometricRequirementContributor(BaseRiskContributor):
    name = "biometric_requirements"
    label = "biometric requirement"

    def evaluate(self, context: PredictiveContext) -> ContributorResult:
        medication = self.data_source.get_medication(context.medication_id)
        if medication is None or not medication.vital_sign_requirements:
            return ContributorResult()

        vitals = self.data_source.get_latest_vitals(context.resident_id)

        scored = []
        if vitals is None:
            scored.append(("No recent vital signs recorded - check required", MISSING_VITALS_PENALTY))
        else:
            hours_old = int((context.administered_at - vitals.recorded_at).total_seconds() // 3600)
            if hours_old > STALE_VITALS_HOURS:
                scored.append(
                    (
                        f"Vital signs {hours_old} hours old - new check required",
                        stale_vitals_penalty(hours_old),
                    )
                )

            if vitals.out_of_range:
                scored.append(("Previous vital signs out of normal range", OUT_OF_RANGE_PENALTY))

        return build_result(scored, self.name, biometric_checks_required=True)
