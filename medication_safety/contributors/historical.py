"""Historical pattern analysis over the last 30 days of administrations.

Three pattern classes are scored, each at most once:

- repeated administration error types
- repeated adverse reaction types
- a consistent timing class (early, late or on-time administration)
"""

import logging
from collections import Counter
from datetime import timedelta

from ..models import PredictiveContext
from ..records import AdministrationRecord
from ..risk_scorer import BaseRiskContributor, ContributorResult, build_result

logger = logging.getLogger(__name__)

HISTORY_LOOKBACK_DAYS = 30

REPEATED_ERROR_MIN_COUNT = 2
ERROR_PATTERN_PENALTY = 20

REPEATED_REACTION_MIN_COUNT = 2
REACTION_PATTERN_PENALTY = 30

REPEATED_TIMING_MIN_COUNT = 3
TIMING_PATTERN_PENALTY = 15

# Minutes from the scheduled time at which a dose counts as early/late
TIMING_DEVIATION_MINUTES = 30


def categorize_time_deviation(minutes: int) -> str:
    if minutes <= -TIMING_DEVIATION_MINUTES:
        return "early administration"
    if minutes >= TIMING_DEVIATION_MINUTES:
        return "late administration"
    return "on-time administration"


def repeated(counts: Counter, min_count: int) -> list[tuple[str, int]]:
    """Return ``(type, count)`` pairs seen at least ``min_count`` times, sorted by type."""
    return sorted((kind, n) for kind, n in counts.items() if n >= min_count)


def error_patterns(history: list[AdministrationRecord]) -> list[str]:
    counts = Counter(error for record in history for error in record.errors)
    return [
        f"Repeated {kind} errors ({n} occurrences)"
        for kind, n in repeated(counts, REPEATED_ERROR_MIN_COUNT)
    ]


def reaction_patterns(history: list[AdministrationRecord]) -> list[str]:
    counts = Counter(reaction for record in history for reaction in record.reactions)
    return [
        f"Repeated {kind} reactions ({n} occurrences)"
        for kind, n in repeated(counts, REPEATED_REACTION_MIN_COUNT)
    ]


def timing_patterns(history: list[AdministrationRecord]) -> list[str]:
    counts: Counter = Counter()
    for record in history:
        if record.scheduled_at is None or record.actual_at is None:
            continue
        deviation = int((record.actual_at - record.scheduled_at).total_seconds() / 60)
        counts[categorize_time_deviation(deviation)] += 1

    return [
        f"Consistent {kind} ({n} occurrences)"
        for kind, n in repeated(counts, REPEATED_TIMING_MIN_COUNT)
    ]


class HistoricalPatternContributor(BaseRiskContributor):
    """Score recurring problems with this resident/medication pair."""

    name = "historical_patterns"
    label = "historical pattern"

    def evaluate(self, context: PredictiveContext) -> ContributorResult:
        since = self.clock.now() - timedelta(days=HISTORY_LOOKBACK_DAYS)
        history = self.data_source.get_administration_records(
            context.resident_id, context.medication_id, since
        )

        scored = []

        errors = error_patterns(history)
        if errors:
            scored.append(
                (f"Historical error patterns detected: {', '.join(errors)}", ERROR_PATTERN_PENALTY)
            )

        reactions = reaction_patterns(history)
        if reactions:
            scored.append(
                (f"Historical reaction patterns detected: {', '.join(reactions)}", REACTION_PATTERN_PENALTY)
            )

        timing = timing_patterns(history)
        if timing:
            scored.append(
                (f"Time-based risk patterns detected: {', '.join(timing)}", TIMING_PATTERN_PENALTY)
            )

        return build_result(scored, self.name)
