"""Resident behavior from the most recent observation of the last 24 hours."""

import logging
from datetime import timedelta

from ..models import PredictiveContext
from ..risk_scorer import BaseRiskContributor, ContributorResult, build_result

logger = logging.getLogger(__name__)

BEHAVIOR_LOOKBACK_HOURS = 24

AGITATION_PENALTY = 20
REFUSAL_PENALTY = 15
CONFUSION_PENALTY = 25


class ResidentBehaviorContributor(BaseRiskContributor):
    name = "resident_behavior"
    label = "resident behavior"

    def evaluate(self, context: PredictiveContext) -> ContributorResult:
        since = self.clock.now() - timedelta(hours=BEHAVIOR_LOOKBACK_HOURS)
        observations = self.data_source.get_behavioral_observations(context.resident_id, since)
        if not observations:
            return ContributorResult()

        latest = max(observations, key=lambda o: o.observed_at)

        scored = []
        if latest.agitation:
            scored.append(("Recent agitation reported - assess appropriateness", AGITATION_PENALTY))
        if latest.refusal:
            scored.append(("Recent medication refusal - assess willingness", REFUSAL_PENALTY))
        if latest.confusion:
            scored.append(("Recent confusion noted - verify understanding", CONFUSION_PENALTY))

        return build_result(scored, self.name, behavioral_checks_required=bool(scored))
