"""Predictive risk contributor modules."""

from .behavior import ResidentBehaviorContributor
from .biometric import BiometricRequirementContributor
from .complexity import MedicationComplexityContributor
from .environmental import EnvironmentalRiskContributor
from .fatigue import StaffFatigueContributor
from .historical import HistoricalPatternContributor
from .time_deviation import TimeDeviationContributor

__all__ = [
    "BiometricRequirementContributor",
    "EnvironmentalRiskContributor",
    "HistoricalPatternContributor",
    "MedicationComplexityContributor",
    "ResidentBehaviorContributor",
    "StaffFatigueContributor",
    "TimeDeviationContributor",
]
