"""Environmental safety checks: storage temperature and lighting hours."""

import logging

from ..models import EvaluationContext, Finding
from ..safety_checker import BaseSafetyCheck, CheckResult

logger = logging.getLogger(__name__)


class EnvironmentalSafetyCheck(BaseSafetyCheck):
    """Check storage conditions and the time of day of administration."""

    name = "environmental_safety"
    label = "environmental safety"

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        findings = []

        storage = self.data_source.get_storage_condition(
            context.facility_id, context.medication_id
        )
        if storage is not None and storage.latest_temperature is not None:
            temp = storage.latest_temperature
            if temp > storage.max_temp or temp < storage.min_temp:
                findings.append(
                    Finding.error(
                        self.name,
                        f"Storage temperature out of range ({temp:g}C, allowed "
                        f"{storage.min_temp:g}-{storage.max_temp:g}C) - check medication condition",
                    )
                )

        hour = context.administered_at.hour
        if not self.config["well_lit_start_hour"] <= hour <= self.config["well_lit_end_hour"]:
            findings.append(
                Finding.warning(
                    self.name,
                    "Administering medication in low light conditions - ensure adequate lighting",
                )
            )

        return CheckResult(findings=tuple(findings))
