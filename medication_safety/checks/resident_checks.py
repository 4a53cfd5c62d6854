"""Resident status checks: recent incidents, stale vital signs, allergies."""

import logging
from datetime import timedelta

from ..models import EvaluationContext, Finding
from ..safety_checker import BaseSafetyCheck, CheckResult

logger = logging.getLogger(__name__)


def find_allergy_conflicts(allergies: list[str], ingredients: list[str]) -> list[str]:
    """Return recorded allergens that appear among the ingredients.

    Matching ignores case and surrounding whitespace.
    """
    ingredient_names = {i.strip().lower() for i in ingredients}
    return [a for a in allergies if a.strip().lower() in ingredient_names]


class ResidentStatusCheck(BaseSafetyCheck):
    """Check the resident's current state against the proposed dose."""

    name = "resident_status"
    label = "resident status"

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        resident = self.data_source.get_resident(context.resident_id)
        if resident is None:
            return CheckResult(
                findings=(Finding.error(self.name, "Resident not found in system"),)
            )

        findings = []
        now = self.clock.now()

        incident_window = timedelta(hours=self.config["incident_lookback_hours"])
        incidents = self.data_source.get_incidents(context.resident_id, now - incident_window)
        if any(not incident.resolved for incident in incidents):
            findings.append(
                Finding.warning(self.name, "Recent incidents reported - review incident log")
            )

        medication = self.data_source.get_medication(context.medication_id)

        if medication is not None and medication.requires_recent_vitals:
            vitals = self.data_source.get_latest_vitals(context.resident_id)
            stale_after = timedelta(hours=self.config["vitals_stale_hours"])
            if vitals is not None and now - vitals.recorded_at > stale_after:
                findings.append(
                    Finding.warning(
                        self.name,
                        f"Vital signs not recorded in last {self.config['vitals_stale_hours']} hours",
                    )
                )

        if medication is not None:
            conflicts = find_allergy_conflicts(resident.allergies, medication.ingredients)
            if conflicts:
                findings.append(
                    Finding.error(
                        self.name,
                        "ALLERGY ALERT: Known allergy to medication ingredient(s): "
                        + ", ".join(conflicts),
                    )
                )

        return CheckResult(findings=tuple(findings))
