"""Tests for assay.src.classifier -- rule-based fit classification.

Each category is exercised with a synthetic pair of curves, plus the
priority order, alignment check, argument asymmetry, and evidence.
"""

from __future__ import annotations

import pytest

from assay.src.classifier import FitClassifier, classify
from assay.src.models import DiagnosticConfig, Diagnosis, FitCategory, InvalidInputError
from assay.src.summarizer import summarize


def diagnose(
    train: list[float],
    val: list[float],
    config: DiagnosticConfig | None = None,
    window: int | None = None,
) -> Diagnosis:
    """Summarize both curves and classify them."""
    return classify(
        summarize(train, window, config),
        summarize(val, window, config),
        config,
    )


# ===========================================================================
# TestScenarios
# ===========================================================================


class TestScenarios:
    """Worked scenarios at the default thresholds."""

    def test_underfit_no_capacity(self, flat_high_curves) -> None:
        """A training curve stuck far above baseline lacks capacity."""
        train, val = flat_high_curves
        result = diagnose(train, val, DiagnosticConfig(baseline=0.3), window=6)
        assert result.category == FitCategory.UNDERFIT_NO_CAPACITY
        assert result.evidence["matched_rule"] == "flat_above_baseline"

    def test_overfit(self, overfit_curves) -> None:
        """Validation rising while training falls is overfitting."""
        train, val = overfit_curves
        result = diagnose(train, val)
        assert result.category == FitCategory.OVERFIT
        assert result.generalization_gap == pytest.approx(0.75)

    def test_optimal(self, optimal_curves) -> None:
        """Two settled curves with a small gap are a good fit."""
        train, val = optimal_curves
        result = diagnose(train, val)
        assert result.category == FitCategory.OPTIMAL
        assert result.generalization_gap == pytest.approx(0.05)
        assert result.evidence["matched_rule"] == "both_stable_small_gap"

    def test_needs_more_training(self, unfinished_curves) -> None:
        """Two curves still dropping at the end need more training."""
        train, val = unfinished_curves
        result = diagnose(train, val)
        assert result.category == FitCategory.UNDERFIT_NEEDS_MORE_TRAINING

    def test_train_unrepresentative(self) -> None:
        """Both improve and settle, but a wide gap never closes."""
        train = [1.0, 0.7, 0.5, 0.4, 0.395, 0.395]
        val = [1.2, 0.95, 0.8, 0.72, 0.715, 0.715]
        result = diagnose(train, val)
        assert result.category == FitCategory.TRAIN_UNREPRESENTATIVE
        assert result.evidence["min_tail_gap"] == pytest.approx(0.32)

    def test_validation_noisy(self) -> None:
        """Validation bouncing around a smooth training curve is noisy."""
        train = [1.0, 0.6, 0.4, 0.35, 0.35, 0.35]
        val = [1.0, 0.6, 0.5, 0.3, 0.5, 0.3]
        result = diagnose(train, val)
        assert result.category == FitCategory.VALIDATION_UNREPRESENTATIVE_NOISY
        assert result.evidence["val_trend"] == "noisy"

    def test_long_overfit(self, long_overfit_curves) -> None:
        """Overfitting over many iterations is caught despite small per-step slopes."""
        train, val = long_overfit_curves
        result = diagnose(train, val)
        assert result.category == FitCategory.OVERFIT
        assert result.evidence["best_val_iteration"] == 24
        assert result.evidence["val_window_change"] == pytest.approx(0.24)

    def test_validation_leakage(self) -> None:
        """Validation ending well below training suggests leakage."""
        train = [1.0, 0.7, 0.5, 0.5, 0.5, 0.5]
        val = [0.9, 0.5, 0.3, 0.3, 0.3, 0.3]
        result = diagnose(train, val)
        assert result.category == FitCategory.VALIDATION_UNREPRESENTATIVE_LEAKAGE
        assert result.generalization_gap == pytest.approx(-0.2)

    def test_fallback_optimal(self) -> None:
        """With no anomaly signal the run defaults to OPTIMAL."""
        train = [1.0, 0.8, 0.6, 0.5, 0.4, 0.3]
        val = [1.0, 0.6, 0.3, 0.5, 0.42, 0.35]
        result = diagnose(train, val)
        assert result.category == FitCategory.OPTIMAL
        assert result.evidence["matched_rule"] == "no_anomaly"


# ===========================================================================
# TestRulePriority
# ===========================================================================


class TestRulePriority:
    """Tests for the capacity rule and first-match ordering."""

    def test_capacity_rule_skipped_without_baseline(self, flat_high_curves) -> None:
        """Without a baseline the flat/high curve falls through to later rules."""
        train, val = flat_high_curves
        result = diagnose(train, val, window=6)
        assert result.category == FitCategory.UNDERFIT_NEEDS_MORE_TRAINING
        assert result.evidence["baseline"] is None

    def test_capacity_rule_skipped_near_baseline(self, flat_high_curves) -> None:
        """A flat curve already close to the baseline is not a capacity problem."""
        train, val = flat_high_curves
        result = diagnose(train, val, DiagnosticConfig(baseline=0.8), window=6)
        assert result.category != FitCategory.UNDERFIT_NO_CAPACITY

    def test_capacity_wins_over_needs_training(self, flat_high_curves) -> None:
        """The capacity rule is checked before the still-improving rule."""
        train, val = flat_high_curves
        config = DiagnosticConfig(baseline=0.3)
        train_summary = summarize(train, 6, config)
        val_summary = summarize(val, 6, config)
        assert train_summary.still_improving and val_summary.still_improving
        result = classify(train_summary, val_summary, config)
        assert result.category == FitCategory.UNDERFIT_NO_CAPACITY

    def test_gap_threshold_override(self, optimal_curves) -> None:
        """A stricter gap threshold turns the optimal pair unrepresentative."""
        train, val = optimal_curves
        result = diagnose(train, val, DiagnosticConfig(gap_threshold=0.01))
        assert result.category == FitCategory.TRAIN_UNREPRESENTATIVE

    def test_noisy_multiplier_override(self) -> None:
        """A huge multiplier keeps noisy validation from being flagged."""
        train = [1.0, 0.6, 0.45, 0.35, 0.37, 0.35]
        val = [1.0, 0.6, 0.5, 0.3, 0.5, 0.3]
        config = DiagnosticConfig(noisy_multiplier=1000.0)
        result = diagnose(train, val, config)
        assert result.category != FitCategory.VALIDATION_UNREPRESENTATIVE_NOISY


# ===========================================================================
# TestContract
# ===========================================================================


class TestContract:
    """Tests for alignment, asymmetry, and evidence."""

    def test_mismatched_lengths(self) -> None:
        """Curves of different lengths are rejected."""
        train = summarize([0.9, 0.7, 0.5, 0.4])
        val = summarize([0.9, 0.7, 0.5])
        with pytest.raises(InvalidInputError, match="index-aligned"):
            classify(train, val)

    def test_arguments_not_interchangeable(self, overfit_curves) -> None:
        """Swapping train and val changes the diagnosis."""
        train, val = overfit_curves
        forward = diagnose(train, val)
        swapped = diagnose(val, train)
        assert forward.category == FitCategory.OVERFIT
        assert swapped.category != forward.category
        assert swapped.category == FitCategory.VALIDATION_UNREPRESENTATIVE_LEAKAGE

    def test_deterministic(self, overfit_curves) -> None:
        """The same summaries always produce the same diagnosis."""
        train, val = overfit_curves
        assert diagnose(train, val) == diagnose(train, val)

    def test_evidence_contents(self, overfit_curves) -> None:
        """Evidence names the signals behind the decision."""
        train, val = overfit_curves
        evidence = diagnose(train, val).evidence
        assert evidence["matched_rule"] == "train_down_val_up"
        assert evidence["train_trend"] == "decreasing"
        assert evidence["val_trend"] == "increasing"
        assert evidence["best_val_iteration"] == 3
        assert evidence["train_still_improving"] is True
        assert evidence["val_still_improving"] is False
        assert evidence["gap_threshold"] == 0.1

    def test_classifier_reusable(self, optimal_curves, overfit_curves) -> None:
        """One FitClassifier instance can classify many runs."""
        classifier = FitClassifier()
        a = classifier.classify(summarize(optimal_curves[0]), summarize(optimal_curves[1]))
        b = classifier.classify(summarize(overfit_curves[0]), summarize(overfit_curves[1]))
        assert a.category == FitCategory.OPTIMAL
        assert b.category == FitCategory.OVERFIT
