"""Reduce a raw loss sequence to the signals the fit classifier reads.

Example::

    from assay.src.summarizer import summarize

    summary = summarize([0.9, 0.6, 0.4, 0.3, 0.29, 0.285])
    summary.trend, summary.stabilized
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from assay.src.models import CurveSummary, CurveTrend, DiagnosticConfig, InvalidInputError


class CurveSummarizer:
    """Computes trend, stability, and minimum signals for one loss curve.

    Args:
        config: Diagnostic thresholds (uses defaults if not provided).
    """

    def __init__(self, config: DiagnosticConfig | None = None) -> None:
        self._config = config or DiagnosticConfig()

    def summarize(self, sequence: Sequence[float], window: int | None = None) -> CurveSummary:
        """Summarize a loss sequence.

        Args:
            sequence: Loss values in iteration order.
            window: Trailing window length. Falls back to the configured
                window, then to the trailing half of the sequence.

        Returns:
            CurveSummary for the sequence.

        Raises:
            InvalidInputError: If the sequence or window is malformed.
        """
        values = validate_loss_sequence(sequence)
        n = len(values)
        size = self._effective_window(n, window)
        tail = values[-size:]

        slope = _least_squares_slope(tail)
        # Fitted change across the window, so the trend test does not
        # depend on how many iterations the window spans.
        window_change = slope * (size - 1)
        window_std = float(np.std(tail))
        eps = self._config.slope_epsilon
        tau = self._config.noise_threshold

        if window_change < -eps:
            trend = CurveTrend.DECREASING
        elif window_change > eps:
            trend = CurveTrend.INCREASING
        elif window_std < tau:
            trend = CurveTrend.FLAT
        else:
            trend = CurveTrend.NOISY

        stabilized = window_std < tau and abs(window_change) < eps
        min_index = int(np.argmin(values))
        min_value = float(values[min_index])
        final_value = float(values[-1])
        recent_start = n - max(1, math.ceil(n * self._config.recent_fraction))
        still_improving = (
            final_value - min_value <= eps and min_index >= recent_start and not stabilized
        )

        return CurveSummary(
            final_value=final_value,
            min_value=min_value,
            min_index=min_index,
            trend=trend,
            stabilized=stabilized,
            still_improving=still_improving,
            length=n,
            initial_value=float(values[0]),
            window=size,
            slope=slope,
            window_change=window_change,
            window_std=window_std,
            tail=tuple(float(v) for v in tail),
        )

    def _effective_window(self, n: int, window: int | None) -> int:
        """Resolve the trailing window length for a sequence of length n."""
        if window is None:
            window = self._config.window
        if window is None:
            return max(2, n - n // 2)
        if isinstance(window, bool) or not isinstance(window, int) or window < 1:
            raise InvalidInputError(f"window must be a positive integer, got {window!r}")
        return min(window, n)


def summarize(
    sequence: Sequence[float],
    window: int | None = None,
    config: DiagnosticConfig | None = None,
) -> CurveSummary:
    """Summarize a loss sequence with the given (or default) thresholds.

    Args:
        sequence: Loss values in iteration order.
        window: Trailing window length.
        config: Diagnostic thresholds.

    Returns:
        CurveSummary for the sequence.
    """
    return CurveSummarizer(config).summarize(sequence, window)


def validate_loss_sequence(sequence: Sequence[float]) -> np.ndarray:
    """Check a loss sequence and return it as a float array.

    Args:
        sequence: Candidate loss values.

    Returns:
        One-dimensional float64 array (a copy; the caller's data is untouched).

    Raises:
        InvalidInputError: If the sequence has fewer than 2 values or
            contains non-numeric, negative, or non-finite entries.
    """
    if isinstance(sequence, (str, bytes)):
        raise InvalidInputError("Loss sequence must contain only real numbers.")
    try:
        items = list(sequence)
    except TypeError as exc:
        raise InvalidInputError("Loss sequence must be a sequence of numbers.") from exc
    if any(isinstance(v, (bool, str, bytes)) for v in items):
        raise InvalidInputError("Loss sequence must contain only real numbers.")
    try:
        values = np.array(items, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Loss sequence must contain only real numbers: {exc}") from exc
    if values.ndim != 1:
        raise InvalidInputError("Loss sequence must be one-dimensional.")
    if values.size < 2:
        raise InvalidInputError(
            f"Loss sequence needs at least 2 values to assess a trend, got {values.size}."
        )
    if not np.all(np.isfinite(values)):
        raise InvalidInputError("Loss sequence contains NaN or infinite values.")
    if np.any(values < 0):
        raise InvalidInputError("Loss sequence contains negative values.")
    return values


def _least_squares_slope(values: np.ndarray) -> float:
    """Ordinary least-squares slope of values against their index.

    Returns zero for fewer than 2 values.
    """
    n = len(values)
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=np.float64)
    x_centered = x - x.mean()
    return float(np.dot(x_centered, values - values.mean()) / np.dot(x_centered, x_centered))
