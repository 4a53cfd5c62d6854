"""Environmental risk from the optional ambient snapshot."""

import logging

from ..models import PredictiveContext
from ..risk_scorer import BaseRiskContributor, ContributorResult, build_result

logger = logging.getLogger(__name__)

# Comfort band for administration rooms, Celsius
MIN_ROOM_TEMPERATURE = 15
MAX_ROOM_TEMPERATURE = 25
TEMPERATURE_PENALTY = 15

MIN_LIGHT_LEVEL_LUX = 50
POOR_LIGHTING_PENALTY = 20

MAX_NOISE_LEVEL_DB = 60
NOISE_PENALTY = 10


class EnvironmentalRiskContributor(BaseRiskContributor):
    """Score room conditions. Readings that were not taken are skipped."""

    name = "environmental_risk"
    label = "environmental risk"

    def evaluate(self, context: PredictiveContext) -> ContributorResult:
        environment = getattr(context, "environment", None)
        if environment is None:
            return ContributorResult()

        scored = []

        if environment.temperature is not None:
            if environment.temperature > MAX_ROOM_TEMPERATURE:
                scored.append(
                    ("High temperature may affect medication stability", TEMPERATURE_PENALTY)
                )
            elif environment.temperature < MIN_ROOM_TEMPERATURE:
                scored.append(
                    ("Low temperature may affect medication stability", TEMPERATURE_PENALTY)
                )

        if environment.light_level is not None and environment.light_level < MIN_LIGHT_LEVEL_LUX:
            scored.append(("Poor lighting conditions increase risk of errors", POOR_LIGHTING_PENALTY))

        if environment.noise_level is not None and environment.noise_level > MAX_NOISE_LEVEL_DB:
            scored.append(("High noise levels may affect concentration", NOISE_PENALTY))

        return build_result(scored, self.name)
