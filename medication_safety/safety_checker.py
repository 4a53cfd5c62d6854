"""Baseline safety checker for a proposed medication administration."""

import copy
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime
from itertools import chain
from typing import Any

from .clock import Clock, FixedClock, SystemClock, to_local_naive
from .config import load_config
from .data_source import SafetyDataSource
from .decision_log import DecisionLogger, DecisionRecord, record_decision
from .models import EvaluationContext, Finding, SafetyVerdict

logger = logging.getLogger(__name__)

SYSTEM_ERROR_MESSAGE = "System error during safety check"


@dataclass(frozen=True)
class CheckResult:
    """Findings and requirement flags returned by one baseline check."""
    findings: tuple[Finding, ...] = ()
    requires_witness: bool = False
    requires_vital_signs: bool = False
    system_failure: bool = False


class BaseSafetyCheck:
    """Base class for baseline check modules.

    Subclasses read from the data source and return a new CheckResult.
    They never mutate shared state, so checks can run side by side.
    """

    name = "base"
    label = "base"

    def __init__(self, data_source: SafetyDataSource, clock: Clock, config: dict):
        self.data_source = data_source
        self.clock = clock
        self.config = config

    def evaluate(self, context: EvaluationContext) -> CheckResult:
        """Return the findings of this check for one administration.

        Args:
            context: Proposed administration event

        Returns:
            CheckResult with this check's findings
        """
        raise NotImplementedError

    def failure(self, exc: BaseException) -> CheckResult:
        """Fail-closed result used when the check could not run."""
        return CheckResult(
            findings=(Finding.error(self.name, f"System error during {self.label} check: {exc}"),),
            requires_witness=True,
            requires_vital_signs=True,
            system_failure=True,
        )


def pinned(units: list[Any], now: datetime) -> list[Any]:
    """Copies of ``units`` whose clocks all read ``now``.

    Every unit of one evaluation sees the same instant, however long its
    siblings take.
    """
    clock = FixedClock(now)
    pinned_units = []
    for unit in units:
        unit = copy.copy(unit)
        unit.clock = clock
        pinned_units.append(unit)
    return pinned_units


def run_concurrently(
    units: list[Any],
    context: EvaluationContext,
    max_workers: int,
    timeout: float | None = None,
) -> list[Any]:
    """Evaluate independent units in a thread pool.

    Results come back in the order of ``units`` regardless of completion
    order. A unit that raises or does not finish within ``timeout`` is
    replaced by its own ``failure()`` result; siblings are unaffected.

    Args:
        units: Objects exposing ``evaluate(context)`` and ``failure(exc)``
        context: Context handed to every unit
        max_workers: Thread pool size
        timeout: Seconds to wait for all units, or None to wait indefinitely

    Returns:
        One result per unit, in unit order
    """
    executor = ThreadPoolExecutor(
        max_workers=max(1, max_workers), thread_name_prefix="medsafety"
    )
    try:
        futures = [executor.submit(unit.evaluate, context) for unit in units]
        done, _ = wait(futures, timeout=timeout)

        results = []
        for unit, future in zip(units, futures):
            if future not in done:
                logger.error(f"{unit.__class__.__name__} timed out after {timeout}s")
                results.append(unit.failure(TimeoutError(f"timed out after {timeout}s")))
                continue
            try:
                results.append(future.result())
            except Exception as e:
                logger.error(f"Error in {unit.__class__.__name__}: {e}", exc_info=True)
                results.append(unit.failure(e))
        return results
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


class BaselineSafetyChecker:
    """Runs the nine baseline checks and records the decision."""

    def __init__(
        self,
        data_source: SafetyDataSource,
        decision_log: DecisionLogger,
        clock: Clock | None = None,
        config: dict | None = None,
    ):
        """Initialize the checker.

        Args:
            data_source: Read-only query service
            decision_log: Append-only store for decision records
            clock: Source of "now"; defaults to the system clock
            config: Optional overrides for DEFAULT_CONFIG
        """
        self.data_source = data_source
        self.decision_log = decision_log
        self.clock = clock or SystemClock()
        self.config = load_config(config)
        self.checks: list[BaseSafetyCheck] = []

        self._register_checks()

    def _register_checks(self) -> None:
        """Register all check modules in reporting order."""
        from .checks.resident_checks import ResidentStatusCheck
        from .checks.medication_checks import MedicationValidityCheck
        from .checks.staff_checks import StaffCompetencyCheck
        from .checks.environment_checks import EnvironmentalSafetyCheck
        from .checks.clinical_checks import ClinicalSafetyCheck
        from .checks.documentation_checks import DocumentationCheck
        from .checks.timing_checks import TimingCheck
        from .checks.care_plan_checks import CarePlanCheck
        from .checks.change_history_checks import RecentChangesCheck

        check_classes = [
            ResidentStatusCheck,
            MedicationValidityCheck,
            StaffCompetencyCheck,
            EnvironmentalSafetyCheck,
            ClinicalSafetyCheck,
            DocumentationCheck,
            TimingCheck,
            CarePlanCheck,
            RecentChangesCheck,
        ]
        self.checks = [
            cls(self.data_source, self.clock, self.config) for cls in check_classes
        ]

    def assess(self, context: EvaluationContext) -> SafetyVerdict:
        """Run every check and aggregate the verdict without recording it.

        Args:
            context: Proposed administration event

        Returns:
            SafetyVerdict; fail-closed if the evaluation itself broke down
        """
        context = context.normalized()
        try:
            now = to_local_naive(self.clock.now())
            results = run_concurrently(
                pinned(self.checks, now),
                context,
                max_workers=self.config["max_workers"],
                timeout=self.config["evaluation_timeout_seconds"],
            )
            return self._aggregate(results, now)
        except Exception as e:
            logger.error(f"Safety check failed for {context.resident_id}: {e}", exc_info=True)
            return self._fail_safe_verdict()

    def evaluate(self, context: EvaluationContext, actor: str | None = None) -> SafetyVerdict:
        """Assess a proposed administration and append the decision record.

        Args:
            context: Proposed administration event
            actor: Who triggered the evaluation; defaults to the staff member

        Returns:
            SafetyVerdict

        Raises:
            DecisionLogError: If the decision record could not be written
        """
        context = context.normalized()
        verdict = self.assess(context)

        record = DecisionRecord.for_baseline(
            context, verdict, actor=actor or context.staff_id
        )
        record_decision(
            self.decision_log,
            record,
            attempts=self.config["log_write_attempts"],
            retry_delay_seconds=self.config["log_retry_delay_seconds"],
        )

        logger.info(
            f"Safety check {record.record_id}: resident={context.resident_id} "
            f"medication={context.medication_id} status={verdict.status.value} "
            f"errors={len(verdict.errors)} warnings={len(verdict.warnings)}"
        )
        return verdict

    def _aggregate(self, results: list[CheckResult], now: datetime) -> SafetyVerdict:
        """Merge check results in registration order."""
        return SafetyVerdict(
            findings=tuple(chain.from_iterable(r.findings for r in results)),
            requires_witness=any(r.requires_witness for r in results),
            requires_vital_signs=any(r.requires_vital_signs for r in results),
            evaluated_at=now,
            system_failure=any(r.system_failure for r in results),
        )

    def _fail_safe_verdict(self) -> SafetyVerdict:
        """Most restrictive verdict, used when no check result is usable."""
        try:
            evaluated_at = to_local_naive(self.clock.now())
        except Exception:
            evaluated_at = datetime.now()

        return SafetyVerdict(
            findings=(Finding.error("system", SYSTEM_ERROR_MESSAGE),),
            requires_witness=True,
            requires_vital_signs=True,
            evaluated_at=evaluated_at,
            system_failure=True,
        )
