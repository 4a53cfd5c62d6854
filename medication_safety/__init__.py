"""Medication administration safety decision engine."""

from .clock import Clock, FixedClock, SystemClock
from .data_source import SafetyDataSource
from .decision_log import (
    DecisionKind,
    DecisionLogError,
    DecisionLogger,
    DecisionLogStore,
    DecisionRecord,
)
from .models import (
    EnvironmentalSnapshot,
    EvaluationContext,
    Finding,
    FindingSeverity,
    PredictiveContext,
    RiskVerdict,
    SafetyVerdict,
    StaffWorkload,
)
from .risk_scorer import (
    PredictiveRiskScorer,
    risk_band,
    select_precautions,
    select_required_actions,
)
from .safety_checker import BaselineSafetyChecker

__all__ = [
    "BaselineSafetyChecker",
    "Clock",
    "DecisionKind",
    "DecisionLogError",
    "DecisionLogStore",
    "DecisionLogger",
    "DecisionRecord",
    "EnvironmentalSnapshot",
    "EvaluationContext",
    "Finding",
    "FindingSeverity",
    "FixedClock",
    "PredictiveContext",
    "PredictiveRiskScorer",
    "RiskVerdict",
    "SafetyDataSource",
    "SafetyVerdict",
    "StaffWorkload",
    "SystemClock",
    "risk_band",
    "select_precautions",
    "select_required_actions",
]
