"""Engine configuration.

Values resolve in this order: explicit ``config`` dict passed to an engine,
``MED_SAFETY_<KEY>`` environment variables, then ``DEFAULT_CONFIG``.
"""

import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

ENV_PREFIX = "MED_SAFETY_"

DEFAULT_CONFIG: dict[str, Any] = {
    # Resident status
    "incident_lookback_hours": 24,
    "vitals_stale_hours": 8,
    # Medication validity
    "prescription_review_days": 30,
    "expiry_warning_days": 30,
    # Staff competency
    "training_expiry_days": 365,
    "training_renewal_days": 300,
    # Environment (inclusive hour range considered well lit)
    "well_lit_start_hour": 6,
    "well_lit_end_hour": 22,
    # Clinical / documentation
    "interaction_lookback_hours": 24,
    "documentation_lookback_hours": 24,
    "min_note_length": 10,
    # Timing
    "timing_tolerance_minutes": 30,
    "missed_dose_lookback_days": 7,
    "future_tolerance_minutes": 5,
    # Recent changes
    "change_lookback_days": 7,
    "adverse_event_lookback_days": 30,
    # Execution
    "max_workers": 8,
    "evaluation_timeout_seconds": 30.0,
    # Decision log writes
    "log_write_attempts": 3,
    "log_retry_delay_seconds": 0.2,
}


def _coerce(key: str, raw: str, default: Any) -> Any:
    """Convert an environment string to the type of the default."""
    try:
        if isinstance(default, bool):
            return raw.strip().lower() in ("1", "true", "yes", "on")
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {ENV_PREFIX}{key.upper()}: {raw!r}")
        return default
    return raw


def load_config(overrides: dict | None = None) -> dict[str, Any]:
    """Build the effective engine configuration.

    Args:
        overrides: Optional dict of values that take precedence over
                   environment variables and defaults

    Returns:
        Configuration dict containing every key in DEFAULT_CONFIG
    """
    config = dict(DEFAULT_CONFIG)

    for key, default in DEFAULT_CONFIG.items():
        raw = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
        if raw is not None:
            config[key] = _coerce(key, raw, default)

    if overrides:
        unknown = set(overrides) - set(DEFAULT_CONFIG)
        if unknown:
            logger.warning(f"Unknown configuration keys ignored: {sorted(unknown)}")
        config.update({k: v for k, v in overrides.items() if k in DEFAULT_CONFIG})

    return config
