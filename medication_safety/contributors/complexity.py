"""Medication complexity: interaction, contraindication and instruction counts."""

import logging

from ..models import PredictiveContext
from ..risk_scorer import BaseRiskContributor, ContributorResult, build_result

logger = logging.getLogger(__name__)

# Counts strictly above these thresholds are penalized
MAX_INTERACTIONS = 3
INTERACTIONS_PENALTY = 20

MAX_CONTRAINDICATIONS = 2
CONTRAINDICATIONS_PENALTY = 15

MAX_SPECIAL_INSTRUCTIONS = 2
SPECIAL_INSTRUCTIONS_PENALTY = 10

HIGH_ALERT_PENALTY = 30


class MedicationComplexityContributor(BaseRiskContributor):
    name = "medication_complexity"
    label = "medication complexity"

    def evaluate(self, context: PredictiveContext) -> ContributorResult:
        medication = self.data_source.get_medication(context.medication_id)
        if medication is None:
            return ContributorResult()

        scored = []

        if len(medication.interactions) > MAX_INTERACTIONS:
            scored.append(
                ("Multiple drug interactions - extra verification required", INTERACTIONS_PENALTY)
            )

        if len(medication.contraindications) > MAX_CONTRAINDICATIONS:
            scored.append(
                ("Multiple contraindications - careful assessment needed", CONTRAINDICATIONS_PENALTY)
            )

        if len(medication.special_instructions) > MAX_SPECIAL_INSTRUCTIONS:
            scored.append(
                (
                    "Complex administration instructions - verify understanding",
                    SPECIAL_INSTRUCTIONS_PENALTY,
                )
            )

        if medication.high_alert:
            scored.append(("High-alert medication - enhanced precautions required", HIGH_ALERT_PENALTY))

        return build_result(scored, self.name)
