"""Medication validity checks: prescription, stock, batch expiry and recalls."""

import logging
from datetime import timedelta

from ..models import EvaluationContext, Finding
from ..safety_checker import BaseSafetyCheck, CheckResult

logger = logging.getLogger(__name__)


class MedicationValidityCheck(BaseSafetyCheck):
    """Verify the medication itself may be given."""

    name = "medication_validity"
    label = "medication validity"

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        medication = self.data_source.get_medication(context.medication_id)
        if medication is None:
            return CheckResult(
                findings=(Finding.error(self.name, "Medication not found in system"),)
            )

        findings = []
        now = self.clock.now()

        prescription = self.data_source.get_latest_prescription(
            context.resident_id, context.medication_id
        )
        if prescription is None:
            findings.append(Finding.error(self.name, "No valid prescription found"))
        elif now - prescription.prescribed_at > timedelta(days=self.config["prescription_review_days"]):
            findings.append(
                Finding.warning(
                    self.name,
                    f"Prescription is over {self.config['prescription_review_days']} days old - consider review",
                )
            )

        # A missing stock record counts as below minimum
        stock = self.data_source.get_stock_level(context.facility_id, context.medication_id)
        if stock is None or stock.quantity < stock.minimum_level:
            findings.append(Finding.warning(self.name, "Stock levels below minimum - order more"))

        batch = self.data_source.get_batch(context.facility_id, context.medication_id)
        if batch is not None:
            warning_window = timedelta(days=self.config["expiry_warning_days"])
            if batch.expiry_date <= now:
                findings.append(
                    Finding.error(
                        self.name,
                        f"EXPIRED MEDICATION: batch {batch.batch_number} expired "
                        f"{batch.expiry_date.date().isoformat()}",
                    )
                )
            elif batch.expiry_date <= now + warning_window:
                findings.append(
                    Finding.warning(
                        self.name,
                        f"Medication expires within {self.config['expiry_warning_days']} days "
                        f"({batch.expiry_date.date().isoformat()})",
                    )
                )

            if self.data_source.has_active_recall(batch.batch_number):
                findings.append(
                    Finding.error(
                        self.name,
                        f"RECALL ALERT: Batch {batch.batch_number} has been recalled",
                    )
                )

        return CheckResult(findings=tuple(findings))
