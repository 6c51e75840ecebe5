"""Learning-curve diagnostics with plain-language guidance.

Wraps the summarizer and the fit classifier for callers that hold raw
loss sequences or a recorded ``LossHistory``, and attaches an
explanation of the diagnosis plus concrete next steps.

Example::

    from assay.src.diagnostics import LearningCurveDiagnostics

    diag = LearningCurveDiagnostics()
    report = diag.analyze(train_losses, val_losses)
    print(report.plain_language_summary)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from assay.src.classifier import FitClassifier
from assay.src.models import (
    CurveSummary,
    DiagnosticConfig,
    Diagnosis,
    FitCategory,
    InvalidInputError,
    LossHistory,
    MetricSnapshot,
)
from assay.src.summarizer import CurveSummarizer

logger = logging.getLogger(__name__)


@dataclass
class LearningCurveReport:
    """Diagnosis of a run together with its explanation.

    Attributes:
        diagnosis: The classifier's result.
        train_summary: Summary of the training curve.
        val_summary: Summary of the validation curve.
        plain_language_summary: Human-readable explanation.
        recommendations: Suggested next steps.
    """

    diagnosis: Diagnosis
    train_summary: CurveSummary
    val_summary: CurveSummary
    plain_language_summary: str
    recommendations: list[str]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "diagnosis": self.diagnosis.to_dict(),
            "train_summary": self.train_summary.to_dict(),
            "val_summary": self.val_summary.to_dict(),
            "plain_language_summary": self.plain_language_summary,
            "recommendations": self.recommendations,
        }


class LearningCurveDiagnostics:
    """Main entry point for diagnosing a run from its loss curves.

    Args:
        config: Diagnostic configuration (uses defaults if not provided).
    """

    def __init__(self, config: DiagnosticConfig | None = None) -> None:
        self._config = config or DiagnosticConfig()
        self._summarizer = CurveSummarizer(self._config)
        self._classifier = FitClassifier(self._config)

    @property
    def config(self) -> DiagnosticConfig:
        """The thresholds in use."""
        return self._config

    def analyze(
        self,
        train_losses: Sequence[float],
        val_losses: Sequence[float],
    ) -> LearningCurveReport:
        """Diagnose a run from its training and validation loss sequences.

        Args:
            train_losses: Training loss per iteration.
            val_losses: Validation loss per iteration, index-aligned.

        Returns:
            LearningCurveReport for the run.

        Raises:
            InvalidInputError: If either sequence is malformed or the
                lengths differ.
        """
        train = self._summarizer.summarize(train_losses)
        val = self._summarizer.summarize(val_losses)
        diagnosis = self._classifier.classify(train, val)
        logger.debug(
            "Diagnosed %d iterations as %s (rule %s, gap %.4f)",
            train.length,
            diagnosis.category.value,
            diagnosis.evidence["matched_rule"],
            diagnosis.generalization_gap,
        )
        return LearningCurveReport(
            diagnosis=diagnosis,
            train_summary=train,
            val_summary=val,
            plain_language_summary=_summary_text(diagnosis),
            recommendations=_recommendations(diagnosis),
        )

    def analyze_history(self, history: LossHistory) -> LearningCurveReport:
        """Diagnose a run from its recorded loss history.

        Args:
            history: Per-iteration losses recorded by the training loop.

        Returns:
            LearningCurveReport for the run.
        """
        return self.analyze_snapshots(history.snapshots)

    def analyze_snapshots(self, snapshots: Sequence[MetricSnapshot]) -> LearningCurveReport:
        """Diagnose a run from metric snapshots in iteration order.

        Args:
            snapshots: One snapshot per iteration.

        Returns:
            LearningCurveReport for the run.

        Raises:
            InvalidInputError: If any snapshot lacks a validation loss.
        """
        missing = [s.iteration for s in snapshots if s.val_loss is None]
        if missing:
            raise InvalidInputError(
                f"Validation loss missing for iterations: {missing[:5]}"
                + (" ..." if len(missing) > 5 else "")
            )
        return self.analyze(
            [s.train_loss for s in snapshots],
            [s.val_loss for s in snapshots],  # type: ignore[misc]
        )


# ---------------------------------------------------------------------------
# Guidance text
# ---------------------------------------------------------------------------

_SUMMARIES: dict[FitCategory, str] = {
    FitCategory.UNDERFIT_NO_CAPACITY: (
        "The training loss has levelled off well above the loss this kind of "
        "problem can reach. The model is unable to learn the training data, "
        "which usually means it does not have enough capacity."
    ),
    FitCategory.UNDERFIT_NEEDS_MORE_TRAINING: (
        "Both the training and validation losses were still going down when "
        "training stopped. The model has not finished learning yet."
    ),
    FitCategory.OVERFIT: (
        "The training loss keeps improving but the validation loss has "
        "turned upward. The model has started to memorize the training "
        "data instead of learning patterns that generalize."
    ),
    FitCategory.OPTIMAL: (
        "Both losses have settled and end close to each other. The model "
        "fits the data well and generalizes to the validation set."
    ),
    FitCategory.TRAIN_UNREPRESENTATIVE: (
        "Both losses improve, but a wide gap between them never closes. The "
        "training data probably does not contain enough information to "
        "learn the problem as it appears in the validation data."
    ),
    FitCategory.VALIDATION_UNREPRESENTATIVE_NOISY: (
        "The validation loss jumps around much more than the training loss. "
        "The validation set is probably too small to give a reliable "
        "picture of how well the model generalizes."
    ),
    FitCategory.VALIDATION_UNREPRESENTATIVE_LEAKAGE: (
        "The validation loss ends well below the training loss. The "
        "validation set appears easier than the training set, which can "
        "mean it is unrepresentative or overlaps with the training data."
    ),
}

_RECOMMENDATIONS: dict[FitCategory, list[str]] = {
    FitCategory.UNDERFIT_NO_CAPACITY: [
        "Increase model capacity, for example more layers or more units per layer.",
        "Check that the input features carry enough signal for the target.",
    ],
    FitCategory.UNDERFIT_NEEDS_MORE_TRAINING: [
        "Continue training for more iterations.",
        "Consider a larger learning rate if progress per iteration is slow.",
    ],
    FitCategory.OVERFIT: [
        "Stop training near the iteration with the lowest validation loss.",
        "Add regularization such as dropout or weight decay, or reduce model capacity.",
        "Collect more training data if possible.",
    ],
    FitCategory.OPTIMAL: [
        "No change needed. Keep the checkpoint where both curves settled.",
    ],
    FitCategory.TRAIN_UNREPRESENTATIVE: [
        "Add more training examples, or re-split so training covers the full range of cases.",
    ],
    FitCategory.VALIDATION_UNREPRESENTATIVE_NOISY: [
        "Use a larger validation split.",
        "Use cross-validation instead of a single hold-out set.",
    ],
    FitCategory.VALIDATION_UNREPRESENTATIVE_LEAKAGE: [
        "Check for duplicate or overlapping examples between the training and validation sets.",
        "Re-split the data so both sets are drawn from the same distribution.",
    ],
}


def _summary_text(diagnosis: Diagnosis) -> str:
    """Build the plain-language summary for a diagnosis.

    Args:
        diagnosis: The classifier's result.

    Returns:
        Summary text including the final generalization gap.
    """
    parts = [_SUMMARIES[diagnosis.category]]
    parts.append(f"Final gap between validation and training loss: {diagnosis.generalization_gap:.4f}.")
    return " ".join(parts)


def _recommendations(diagnosis: Diagnosis) -> list[str]:
    """Return the next steps for a diagnosis.

    Args:
        diagnosis: The classifier's result.

    Returns:
        List of recommendation strings.
    """
    recs = list(_RECOMMENDATIONS[diagnosis.category])
    if diagnosis.category == FitCategory.OVERFIT:
        best = diagnosis.evidence.get("best_val_iteration")
        if best is not None:
            recs[0] = f"Stop training near iteration {best}, where validation loss was lowest."
    return recs
