"""Documentation completeness checks on recent administration records."""

import logging
from datetime import timedelta

from ..models import EvaluationContext, Finding
from ..safety_checker import BaseSafetyCheck, CheckResult

logger = logging.getLogger(__name__)


class DocumentationCheck(BaseSafetyCheck):
    """Check that recent records for this resident/medication are complete."""

    name = "documentation"
    label = "documentation"

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        window = timedelta(hours=self.config["documentation_lookback_hours"])
        records = self.data_source.get_administration_records(
            context.resident_id, context.medication_id, self.clock.now() - window
        )

        findings = []

        unsigned = [r for r in records if not r.signed_by]
        if unsigned:
            findings.append(
                Finding.error(
                    self.name,
                    f"Previous administration records missing signatures ({len(unsigned)})",
                )
            )

        min_length = self.config["min_note_length"]
        incomplete = [r for r in records if not r.notes or len(r.notes.strip()) < min_length]
        if incomplete:
            findings.append(
                Finding.warning(
                    self.name,
                    f"Previous administration records have incomplete notes ({len(incomplete)})",
                )
            )

        return CheckResult(findings=tuple(findings))
