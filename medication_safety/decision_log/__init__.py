"""Append-only decision log for medication safety evaluations."""

from .models import DecisionKind, DecisionRecord
from .store import DecisionLogError, DecisionLogger, DecisionLogStore, record_decision

__all__ = [
    "DecisionKind",
    "DecisionLogError",
    "DecisionLogStore",
    "DecisionLogger",
    "DecisionRecord",
    "record_decision",
]
