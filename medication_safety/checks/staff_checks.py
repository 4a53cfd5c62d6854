"""Staff competency checks: medication training and competency assessment."""

import logging
from datetime import timedelta

from ..models import EvaluationContext, Finding
from ..safety_checker import BaseSafetyCheck, CheckResult

logger = logging.getLogger(__name__)


class StaffCompetencyCheck(BaseSafetyCheck):
    """Confirm the administering staff member is trained and assessed."""

    name = "staff_competency"
    label = "staff competency"

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        staff = self.data_source.get_staff(context.staff_id)
        if staff is None:
            return CheckResult(
                findings=(Finding.error(self.name, "Staff member not found in system"),)
            )

        findings = []
        now = self.clock.now()

        training = self.data_source.get_latest_training(context.staff_id)
        if training is None:
            findings.append(
                Finding.error(self.name, "Staff member has no medication training record")
            )
        else:
            training_age = now - training.completed_at
            if training_age > timedelta(days=self.config["training_expiry_days"]):
                findings.append(
                    Finding.error(self.name, "Medication training expired - requires renewal")
                )
            elif training_age > timedelta(days=self.config["training_renewal_days"]):
                findings.append(
                    Finding.warning(self.name, "Medication training due for renewal soon")
                )

        assessment = self.data_source.get_latest_assessment(context.staff_id)
        if assessment is None:
            findings.append(Finding.error(self.name, "No competency assessment found"))
        elif not assessment.passed:
            findings.append(
                Finding.error(
                    self.name, "Staff member has not passed latest competency assessment"
                )
            )

        return CheckResult(findings=tuple(findings))
