"""Predictive risk scoring layered on top of the baseline safety checker."""

import logging
from dataclasses import dataclass
from itertools import chain

from .clock import Clock
from .config import load_config
from .data_source import SafetyDataSource
from .decision_log import DecisionLogger, DecisionRecord, record_decision
from .models import Finding, PredictiveContext, RiskVerdict, SafetyVerdict
from .safety_checker import BaselineSafetyChecker, pinned, run_concurrently

logger = logging.getLogger(__name__)

# Score forced on any system failure; lands in the top band
FAIL_SAFE_RISK_SCORE = 100

PREDICTIVE_FAILURE_MESSAGE = "System error during predictive analysis"
BASELINE_FAILURE_MESSAGE = "System error during baseline safety assessment"


@dataclass(frozen=True)
class RiskBand:
    """A score range and the fixed actions/precautions it implies."""
    name: str
    min_score: int
    required_actions: tuple[str, ...]
    precautions: tuple[str, ...]


# Evaluated highest first; the first band whose floor is reached wins
RISK_BANDS: tuple[RiskBand, ...] = (
    RiskBand(
        name="critical",
        min_score=80,
        required_actions=(
            "STOP: Supervisor verification required",
            "Complete full risk assessment",
            "Document mitigation strategies",
        ),
        precautions=(
            "Implement enhanced monitoring protocol",
            "Prepare emergency response equipment",
            "Alert medical team of high-risk administration",
        ),
    ),
    RiskBand(
        name="high",
        min_score=60,
        required_actions=(
            "Double-check all parameters",
            "Verify with second staff member",
            "Record detailed notes",
        ),
        precautions=(
            "Increase observation frequency",
            "Have emergency protocols ready",
            "Document baseline vital signs",
        ),
    ),
    RiskBand(
        name="elevated",
        min_score=40,
        required_actions=(
            "Take extra time to verify details",
            "Document any concerns",
        ),
        precautions=(
            "Monitor for immediate reactions",
            "Schedule follow-up check",
        ),
    ),
    RiskBand(
        name="standard",
        min_score=0,
        required_actions=("Proceed with standard safety protocols",),
        precautions=(),
    ),
)


def risk_band(score: int) -> RiskBand:
    """Return the single band that applies to ``score``."""
    for band in RISK_BANDS:
        if score >= band.min_score:
            return band
    return RISK_BANDS[-1]


def select_required_actions(score: int) -> list[str]:
    return list(risk_band(score).required_actions)


def select_precautions(score: int) -> list[str]:
    return list(risk_band(score).precautions)


@dataclass(frozen=True)
class ContributorResult:
    """Findings and score delta from one risk contributor."""
    findings: tuple[Finding, ...] = ()
    risk_delta: int = 0
    biometric_checks_required: bool = False
    behavioral_checks_required: bool = False
    system_failure: bool = False


class BaseRiskContributor:
    """Base class for predictive risk contributors."""

    name = "base"
    label = "base"

    def __init__(self, data_source: SafetyDataSource, clock: Clock, config: dict):
        self.data_source = data_source
        self.clock = clock
        self.config = config

    def evaluate(self, context: PredictiveContext) -> ContributorResult:
        """Return findings and a score delta for one administration.

        Args:
            context: Proposed administration with optional measurements

        Returns:
            ContributorResult
        """
        raise NotImplementedError

    def failure(self, exc: BaseException) -> ContributorResult:
        """Result used when the contributor could not run."""
        return ContributorResult(
            findings=(Finding.error(self.name, f"System error during {self.label} analysis: {exc}"),),
            system_failure=True,
        )


def build_result(
    scored: list[tuple[str, int]], name: str, **flags
) -> ContributorResult:
    """Turn ``(message, penalty)`` pairs into a ContributorResult."""
    findings = tuple(Finding.warning(name, message, risk_score=penalty) for message, penalty in scored)
    return ContributorResult(
        findings=findings,
        risk_delta=sum(penalty for _, penalty in scored),
        **flags,
    )


class PredictiveRiskScorer:
    """Scores a proposed administration on top of the baseline verdict.

    Holds a BaselineSafetyChecker and runs its assessment first. Only the
    predictive record is written; it embeds the baseline verdict.
    """

    def __init__(
        self,
        checker: BaselineSafetyChecker,
        data_source: SafetyDataSource | None = None,
        decision_log: DecisionLogger | None = None,
        clock: Clock | None = None,
        config: dict | None = None,
    ):
        """Initialize the scorer.

        Args:
            checker: Baseline checker run before scoring
            data_source: Query service; defaults to the checker's
            decision_log: Append-only store; defaults to the checker's
            clock: Contributor clock outside an evaluation; defaults to the checker's.
                During ``evaluate`` contributors read the baseline's instant.
            config: Optional overrides; defaults to the checker's configuration
        """
        self.checker = checker
        self.data_source = data_source or checker.data_source
        self.decision_log = decision_log or checker.decision_log
        self.clock = clock or checker.clock
        self.config = load_config(config) if config is not None else checker.config
        self.contributors: list[BaseRiskContributor] = []

        self._register_contributors()

    def _register_contributors(self) -> None:
        """Register all risk contributors in reporting order."""
        from .contributors.historical import HistoricalPatternContributor
        from .contributors.environmental import EnvironmentalRiskContributor
        from .contributors.fatigue import StaffFatigueContributor
        from .contributors.behavior import ResidentBehaviorContributor
        from .contributors.time_deviation import TimeDeviationContributor
        from .contributors.complexity import MedicationComplexityContributor
        from .contributors.biometric import BiometricRequirementContributor

        contributor_classes = [
            HistoricalPatternContributor,
            EnvironmentalRiskContributor,
            StaffFatigueContributor,
            ResidentBehaviorContributor,
            TimeDeviationContributor,
            MedicationComplexityContributor,
            BiometricRequirementContributor,
        ]
        self.contributors = [
            cls(self.data_source, self.clock, self.config) for cls in contributor_classes
        ]

    def evaluate(self, context: PredictiveContext, actor: str | None = None) -> RiskVerdict:
        """Run the baseline checks, score the risk and record the decision.

        Args:
            context: Proposed administration with optional measurements
            actor: Who triggered the evaluation; defaults to the staff member

        Returns:
            RiskVerdict

        Raises:
            DecisionLogError: If the decision record could not be written
        """
        actor = actor or context.staff_id
        context = context.normalized()
        safety = self.checker.assess(context)

        try:
            verdict = self._score(context, safety)
        except Exception as e:
            logger.error(
                f"Predictive analysis failed for {context.resident_id}: {e}", exc_info=True
            )
            verdict = self._fail_safe_verdict(safety)

        record = DecisionRecord.for_predictive(context, verdict, actor=actor)
        record_decision(
            self.decision_log,
            record,
            attempts=self.config["log_write_attempts"],
            retry_delay_seconds=self.config["log_retry_delay_seconds"],
        )

        logger.info(
            f"Predictive analysis {record.record_id}: resident={context.resident_id} "
            f"medication={context.medication_id} risk_score={verdict.risk_score} "
            f"band={risk_band(verdict.risk_score).name}"
        )
        return verdict

    def _score(self, context: PredictiveContext, safety: SafetyVerdict) -> RiskVerdict:
        # Contributors share the instant the baseline was assessed at
        results = run_concurrently(
            pinned(self.contributors, safety.evaluated_at),
            context,
            max_workers=self.config["max_workers"],
            timeout=self.config["evaluation_timeout_seconds"],
        )

        findings = tuple(chain.from_iterable(r.findings for r in results))
        risk_score = sum(r.risk_delta for r in results)

        if any(r.system_failure for r in results):
            return self._fail_safe_verdict(safety, findings, risk_score)
        if safety.system_failure:
            return self._fail_safe_verdict(
                safety, findings, risk_score, message=BASELINE_FAILURE_MESSAGE
            )

        band = risk_band(risk_score)
        return RiskVerdict(
            safety=safety,
            findings=findings,
            risk_score=risk_score,
            required_actions=band.required_actions,
            recommended_precautions=band.precautions,
            biometric_checks_required=any(r.biometric_checks_required for r in results),
            behavioral_checks_required=any(r.behavioral_checks_required for r in results),
        )

    def _fail_safe_verdict(
        self,
        safety: SafetyVerdict,
        findings: tuple[Finding, ...] = (),
        risk_score: int = 0,
        message: str = PREDICTIVE_FAILURE_MESSAGE,
    ) -> RiskVerdict:
        """Maximally cautious verdict used whenever any evidence is missing.

        ``message`` is reported only when no contributor produced a finding.
        """
        if not findings:
            findings = (Finding.error("system", message),)

        risk_score = max(risk_score, FAIL_SAFE_RISK_SCORE)
        band = risk_band(risk_score)
        return RiskVerdict(
            safety=safety,
            findings=findings,
            risk_score=risk_score,
            required_actions=band.required_actions + ("Perform manual safety checks",),
            recommended_precautions=band.precautions + ("Exercise maximum caution",),
            biometric_checks_required=True,
            behavioral_checks_required=True,
            system_failure=True,
        )
