"""Clinical safety checks: high-risk flag, recent interactions, monitoring.

This is the only baseline check that sets the witness and vital-signs
requirements for an otherwise clean administration.
"""

import logging
from datetime import timedelta

from ..models import EvaluationContext, Finding
from ..safety_checker import BaseSafetyCheck, CheckResult

logger = logging.getLogger(__name__)


class ClinicalSafetyCheck(BaseSafetyCheck):
    """Check medication risk level and interactions with recent doses."""

    name = "clinical_safety"
    label = "clinical safety"

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        medication = self.data_source.get_medication(context.medication_id)
        if medication is None:
            return CheckResult(
                findings=(Finding.error(self.name, "Medication not found"),),
                requires_witness=True,
            )

        findings = []
        requires_witness = False
        requires_vital_signs = False

        if medication.high_risk:
            requires_witness = True
            requires_vital_signs = True
            findings.append(
                Finding.warning(
                    self.name,
                    "High-risk medication - requires witness and vital signs monitoring",
                )
            )

        window = timedelta(hours=self.config["interaction_lookback_hours"])
        recent = self.data_source.get_recently_administered_medications(
            context.resident_id, self.clock.now() - window
        )

        interaction_ids = set(medication.interactions)
        seen: set[str] = set()
        for other in recent:
            if other.medication_id == medication.medication_id or other.medication_id in seen:
                continue
            seen.add(other.medication_id)

            if interaction_ids & set(other.interactions):
                requires_witness = True
                findings.append(
                    Finding.error(self.name, f"Potential interaction with {other.name}")
                )

        if medication.monitoring_requirements:
            requires_vital_signs = True
            findings.append(
                Finding.warning(
                    self.name,
                    "Required monitoring: " + ", ".join(medication.monitoring_requirements),
                )
            )

        return CheckResult(
            findings=tuple(findings),
            requires_witness=requires_witness,
            requires_vital_signs=requires_vital_signs,
        )
