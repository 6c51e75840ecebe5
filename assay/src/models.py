"""Assay data models for learning-curve diagnostics.

Defines the enums, configuration, and records shared by the summarizer,
the fit classifier, and the HTTP layer. Summaries and diagnoses are
immutable dataclasses created fresh per call; ``LossHistory`` is the
only mutable object and is owned by whoever records into it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class InvalidInputError(ValueError):
    """Raised for malformed loss sequences, summaries, or configuration."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class CurveTrend(str, Enum):
    """Direction of a loss curve over its trailing window."""

    DECREASING = "decreasing"
    INCREASING = "increasing"
    FLAT = "flat"
    NOISY = "noisy"


class FitCategory(str, Enum):
    """Diagnosis assigned to a pair of training/validation curves.

    Attributes:
        UNDERFIT_NO_CAPACITY: Training loss flattened well above baseline.
        UNDERFIT_NEEDS_MORE_TRAINING: Both curves are still going down.
        OVERFIT: Training keeps improving while validation turned upward.
        OPTIMAL: Both curves settled with a small gap between them.
        TRAIN_UNREPRESENTATIVE: Both improve but a wide gap never closes.
        VALIDATION_UNREPRESENTATIVE_NOISY: Validation loss is erratic.
        VALIDATION_UNREPRESENTATIVE_LEAKAGE: Validation is easier than training.
    """

    UNDERFIT_NO_CAPACITY = "underfit_no_capacity"
    UNDERFIT_NEEDS_MORE_TRAINING = "underfit_needs_more_training"
    OVERFIT = "overfit"
    OPTIMAL = "optimal"
    TRAIN_UNREPRESENTATIVE = "train_unrepresentative"
    VALIDATION_UNREPRESENTATIVE_NOISY = "validation_unrepresentative_noisy"
    VALIDATION_UNREPRESENTATIVE_LEAKAGE = "validation_unrepresentative_leakage"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class DiagnosticConfig:
    """Thresholds for curve summarization and fit classification.

    Loss-valued thresholds are in the same units as the loss sequences.

    Attributes:
        window: Trailing window length. None uses the trailing half.
        slope_epsilon: Fitted change across the trailing window below which
            a curve is not trending.
        noise_threshold: Window std below which a curve counts as settled.
        gap_threshold: Validation/training gap considered minimal.
        noisy_multiplier: How much noisier val must be than train.
        baseline: Achievable loss for the domain. None skips the check.
        recent_fraction: Tail fraction in which a minimum counts as recent.
    """

    window: int | None = None
    slope_epsilon: float = 0.1
    noise_threshold: float = 0.01
    gap_threshold: float = 0.1
    noisy_multiplier: float = 3.0
    baseline: float | None = None
    recent_fraction: float = 0.1

    def __post_init__(self) -> None:
        if self.window is not None and (
            isinstance(self.window, bool) or not isinstance(self.window, int) or self.window < 1
        ):
            raise InvalidInputError(f"window must be a positive integer, got {self.window!r}")
        for name in ("slope_epsilon", "noise_threshold", "gap_threshold", "noisy_multiplier"):
            _check_non_negative(name, getattr(self, name))
        if self.baseline is not None:
            _check_non_negative("baseline", self.baseline)
        _check_non_negative("recent_fraction", self.recent_fraction)
        if not 0 < self.recent_fraction <= 1:
            raise InvalidInputError("recent_fraction must be in (0, 1]")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "window": self.window,
            "slope_epsilon": self.slope_epsilon,
            "noise_threshold": self.noise_threshold,
            "gap_threshold": self.gap_threshold,
            "noisy_multiplier": self.noisy_multiplier,
            "baseline": self.baseline,
            "recent_fraction": self.recent_fraction,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiagnosticConfig:
        """Deserialize from dictionary.

        Missing keys fall back to the defaults.

        Args:
            data: Dictionary with config fields.

        Returns:
            Restored DiagnosticConfig.

        Raises:
            InvalidInputError: If a key is unknown or a value is out of range.
        """
        unknown = set(data) - set(cls().to_dict())
        if unknown:
            raise InvalidInputError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        try:
            return cls(**data)
        except TypeError as exc:
            raise InvalidInputError(f"Invalid config value: {exc}") from exc


def _check_non_negative(name: str, value: Any) -> None:
    """Raise InvalidInputError unless value is a finite, non-negative real number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"{name} must be finite and non-negative, got {value!r}")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CurveSummary:
    """Descriptive signals reduced from one loss sequence.

    Attributes:
        final_value: Last element of the sequence.
        min_value: Global minimum.
        min_index: Position of the first occurrence of the minimum.
        trend: Direction over the trailing window.
        stabilized: Window std and window change both below their thresholds.
        still_improving: Sitting at a recent minimum and not yet flat.
        length: Number of iterations in the sequence.
        initial_value: First element of the sequence.
        window: Effective trailing window length.
        slope: Least-squares slope over the trailing window.
        window_change: Fitted change across the window, slope * (window - 1).
        window_std: Population standard deviation over the trailing window.
        tail: The trailing window values.
    """

    final_value: float
    min_value: float
    min_index: int
    trend: CurveTrend
    stabilized: bool
    still_improving: bool
    length: int
    initial_value: float
    window: int
    slope: float
    window_change: float
    window_std: float
    tail: tuple[float, ...]

    @property
    def improved(self) -> bool:
        """Whether the curve ended lower than it started and is not rising."""
        return self.final_value < self.initial_value and self.trend != CurveTrend.INCREASING

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "final_value": self.final_value,
            "min_value": self.min_value,
            "min_index": self.min_index,
            "trend": self.trend.value,
            "stabilized": self.stabilized,
            "still_improving": self.still_improving,
            "length": self.length,
            "initial_value": self.initial_value,
            "window": self.window,
            "slope": self.slope,
            "window_change": self.window_change,
            "window_std": self.window_std,
            "tail": list(self.tail),
        }


@dataclass(frozen=True)
class Diagnosis:
    """Classification of a training run from its two learning curves.

    Attributes:
        category: The diagnosed fit or representativeness category.
        generalization_gap: Final validation loss minus final training loss.
        evidence: Named signals the decision was based on.
    """

    category: FitCategory
    generalization_gap: float
    evidence: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "category": self.category.value,
            "generalization_gap": self.generalization_gap,
            "evidence": dict(self.evidence),
        }


@dataclass
class MetricSnapshot:
    """Losses recorded at the end of one training iteration.

    Attributes:
        iteration: Zero-based iteration index.
        train_loss: Training loss value.
        val_loss: Validation loss value (None if not evaluated).
        timestamp: When this snapshot was recorded.
    """

    iteration: int
    train_loss: float
    val_loss: float | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "iteration": self.iteration,
            "train_loss": self.train_loss,
            "val_loss": self.val_loss,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetricSnapshot:
        """Deserialize from dictionary.

        Args:
            data: Dictionary with snapshot fields.

        Returns:
            Restored MetricSnapshot.
        """
        return cls(
            iteration=data["iteration"],
            train_loss=data["train_loss"],
            val_loss=data.get("val_loss"),
            timestamp=(
                datetime.fromisoformat(data["timestamp"]) if "timestamp" in data else datetime.now()
            ),
        )


class LossHistory:
    """Append-only record of per-iteration losses for one training run.

    A training loop calls :meth:`record` once per completed iteration;
    the diagnostics read the accumulated sequences.
    """

    def __init__(self, snapshots: list[MetricSnapshot] | None = None) -> None:
        self._snapshots: list[MetricSnapshot] = list(snapshots or [])

    def record(self, train_loss: float, val_loss: float | None = None) -> MetricSnapshot:
        """Append the losses of the next iteration.

        Args:
            train_loss: Training loss for the iteration.
            val_loss: Validation loss for the iteration, if evaluated.

        Returns:
            The recorded snapshot.
        """
        snapshot = MetricSnapshot(
            iteration=len(self._snapshots),
            train_loss=train_loss,
            val_loss=val_loss,
        )
        self._snapshots.append(snapshot)
        return snapshot

    @property
    def snapshots(self) -> list[MetricSnapshot]:
        """Copy of the recorded snapshots in iteration order."""
        return list(self._snapshots)

    @property
    def train_losses(self) -> list[float]:
        """Training losses in iteration order."""
        return [s.train_loss for s in self._snapshots]

    @property
    def val_losses(self) -> list[float | None]:
        """Validation losses in iteration order (None where missing)."""
        return [s.val_loss for s in self._snapshots]

    def __len__(self) -> int:
        return len(self._snapshots)
