"""Rule-based fit classification over a pair of curve summaries.

The rules are checked in a fixed priority order and the first one that
matches decides the category, the same order in which a reader triages a
learning-curve plot: capacity first, then unfinished training, then
overfitting, then a clean fit, then dataset representativeness.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from assay.src.models import (
    CurveSummary,
    CurveTrend,
    DiagnosticConfig,
    Diagnosis,
    FitCategory,
    InvalidInputError,
)

_Rule = Callable[[CurveSummary, CurveSummary, float], bool]


class FitClassifier:
    """Classifies a training run from its training and validation summaries.

    Training and validation are not interchangeable: swapping the
    arguments generally changes the diagnosis.

    Args:
        config: Diagnostic thresholds (uses defaults if not provided).
    """

    def __init__(self, config: DiagnosticConfig | None = None) -> None:
        self._config = config or DiagnosticConfig()
        self._rules: list[tuple[str, FitCategory, _Rule]] = [
            ("flat_above_baseline", FitCategory.UNDERFIT_NO_CAPACITY, self._no_capacity),
            ("both_still_improving", FitCategory.UNDERFIT_NEEDS_MORE_TRAINING, self._needs_training),
            ("train_down_val_up", FitCategory.OVERFIT, self._overfit),
            ("both_stable_small_gap", FitCategory.OPTIMAL, self._good_fit),
            ("persistent_gap", FitCategory.TRAIN_UNREPRESENTATIVE, self._persistent_gap),
            ("noisy_validation", FitCategory.VALIDATION_UNREPRESENTATIVE_NOISY, self._noisy_val),
            ("validation_easier", FitCategory.VALIDATION_UNREPRESENTATIVE_LEAKAGE, self._val_easier),
        ]

    def classify(self, train: CurveSummary, val: CurveSummary) -> Diagnosis:
        """Diagnose a run from its two curve summaries.

        Args:
            train: Summary of the training-loss curve.
            val: Summary of the validation-loss curve.

        Returns:
            Diagnosis with category, generalization gap, and evidence.

        Raises:
            InvalidInputError: If the summaries come from sequences of
                different lengths.
        """
        if train.length != val.length:
            raise InvalidInputError(
                "Training and validation curves must be index-aligned: "
                f"got {train.length} and {val.length} iterations."
            )
        gap = val.final_value - train.final_value
        category = FitCategory.OPTIMAL
        matched = "no_anomaly"
        for name, rule_category, rule in self._rules:
            if rule(train, val, gap):
                category = rule_category
                matched = name
                break
        return Diagnosis(
            category=category,
            generalization_gap=gap,
            evidence=self._collect_evidence(train, val, gap, matched),
        )

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _no_capacity(self, train: CurveSummary, val: CurveSummary, gap: float) -> bool:
        baseline = self._config.baseline
        if baseline is None:
            return False
        return (
            train.trend in (CurveTrend.FLAT, CurveTrend.NOISY)
            and train.final_value - baseline > self._config.gap_threshold
        )

    @staticmethod
    def _needs_training(train: CurveSummary, val: CurveSummary, gap: float) -> bool:
        return train.still_improving and val.still_improving

    @staticmethod
    def _overfit(train: CurveSummary, val: CurveSummary, gap: float) -> bool:
        return train.trend == CurveTrend.DECREASING and val.trend == CurveTrend.INCREASING

    def _good_fit(self, train: CurveSummary, val: CurveSummary, gap: float) -> bool:
        # A strongly negative gap is a leakage signal, not a good fit.
        return train.stabilized and val.stabilized and abs(gap) < self._config.gap_threshold

    def _persistent_gap(self, train: CurveSummary, val: CurveSummary, gap: float) -> bool:
        if not (train.improved and val.improved):
            return False
        gaps = _aligned_tail_gaps(train, val)
        return bool(gaps) and min(gaps) > self._config.gap_threshold

    def _noisy_val(self, train: CurveSummary, val: CurveSummary, gap: float) -> bool:
        return (
            val.trend == CurveTrend.NOISY
            and val.window_std > self._config.noisy_multiplier * train.window_std
        )

    def _val_easier(self, train: CurveSummary, val: CurveSummary, gap: float) -> bool:
        return -gap > self._config.gap_threshold

    # ------------------------------------------------------------------

    def _collect_evidence(
        self,
        train: CurveSummary,
        val: CurveSummary,
        gap: float,
        matched: str,
    ) -> dict[str, Any]:
        """Gather the signals consulted by the rules.

        Args:
            train: Training summary.
            val: Validation summary.
            gap: Final generalization gap.
            matched: Name of the rule that decided the category.

        Returns:
            Mapping of signal name to value.
        """
        tail_gaps = _aligned_tail_gaps(train, val)
        return {
            "matched_rule": matched,
            "train_trend": train.trend.value,
            "val_trend": val.trend.value,
            "train_slope": train.slope,
            "val_slope": val.slope,
            "train_window_change": train.window_change,
            "val_window_change": val.window_change,
            "train_window_std": train.window_std,
            "val_window_std": val.window_std,
            "train_stabilized": train.stabilized,
            "val_stabilized": val.stabilized,
            "train_still_improving": train.still_improving,
            "val_still_improving": val.still_improving,
            "train_final": train.final_value,
            "val_final": val.final_value,
            "generalization_gap": gap,
            "min_tail_gap": min(tail_gaps) if tail_gaps else None,
            "best_val_iteration": val.min_index,
            "gap_threshold": self._config.gap_threshold,
            "baseline": self._config.baseline,
        }


def classify(
    train: CurveSummary,
    val: CurveSummary,
    config: DiagnosticConfig | None = None,
) -> Diagnosis:
    """Diagnose a run with the given (or default) thresholds.

    Args:
        train: Summary of the training-loss curve.
        val: Summary of the validation-loss curve.
        config: Diagnostic thresholds.

    Returns:
        Diagnosis for the run.
    """
    return FitClassifier(config).classify(train, val)


def _aligned_tail_gaps(train: CurveSummary, val: CurveSummary) -> list[float]:
    """Per-iteration val minus train gaps over the common trailing window."""
    common = min(len(train.tail), len(val.tail))
    return [v - t for t, v in zip(train.tail[-common:], val.tail[-common:])]
