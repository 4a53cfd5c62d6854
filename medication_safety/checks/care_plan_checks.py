"""Care plan conformance checks."""

import logging

from ..models import EvaluationContext, Finding
from ..safety_checker import BaseSafetyCheck, CheckResult

logger = logging.getLogger(__name__)


class CarePlanCheck(BaseSafetyCheck):
    """Cross-reference the medication with the resident's active care plan.

    A missing care plan is an error; a care plan with no recorded health
    conditions is simply nothing to conflict with.
    """

    name = "care_plan"
    label = "care plan"

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        care_plan = self.data_source.get_active_care_plan(context.resident_id)
        if care_plan is None:
            return CheckResult(findings=(Finding.error(self.name, "No active care plan found"),))

        findings = []

        instruction = care_plan.instruction_for(context.medication_id)
        if instruction is None:
            findings.append(Finding.error(self.name, "Medication not listed in current care plan"))
        elif instruction.special_instructions:
            findings.append(
                Finding.warning(
                    self.name, f"Special instructions: {instruction.special_instructions}"
                )
            )

        medication = self.data_source.get_medication(context.medication_id)
        if medication is not None:
            conflicts = sorted(set(care_plan.health_conditions) & set(medication.contraindications))
            if conflicts:
                findings.append(
                    Finding.error(
                        self.name,
                        "Medication may be contraindicated for resident's health conditions: "
                        + ", ".join(conflicts),
                    )
                )

        return CheckResult(findings=tuple(findings))
