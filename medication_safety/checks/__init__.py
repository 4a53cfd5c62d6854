"""Baseline safety check modules."""

from .care_plan_checks import CarePlanCheck
from .change_history_checks import RecentChangesCheck
from .clinical_checks import ClinicalSafetyCheck
from .documentation_checks import DocumentationCheck
from .environment_checks import EnvironmentalSafetyCheck
from .medication_checks import MedicationValidityCheck
from .resident_checks import ResidentStatusCheck
from .staff_checks import StaffCompetencyCheck
from .timing_checks import TimingCheck

__all__ = [
    "CarePlanCheck",
    "ClinicalSafetyCheck",
    "DocumentationCheck",
    "EnvironmentalSafetyCheck",
    "MedicationValidityCheck",
    "RecentChangesCheck",
    "ResidentStatusCheck",
    "StaffCompetencyCheck",
    "TimingCheck",
]
