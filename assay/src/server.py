"""FastAPI router for the Assay backend.

Exposes the learning-curve diagnostic to reporting and plotting
clients, plus an in-memory run registry that a training loop can append
per-iteration losses to. Mounted by the parent application at
``/api/assay/``.

Request bodies use Pydantic models for validation. ``InvalidInputError``
from the diagnostic core is translated into HTTP 400 with a
user-friendly detail.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from assay.src.diagnostics import LearningCurveDiagnostics
from assay.src.models import DiagnosticConfig, InvalidInputError, LossHistory
from assay.src.summarizer import summarize
from shared.hardening import ErrorFormatter

logger = logging.getLogger(__name__)

router = APIRouter()

_formatter = ErrorFormatter()

# ===================================================================
# In-memory state
# ===================================================================

_state: dict[str, Any] = {
    "runs": {},
}


def _get_run(run_id: str) -> LossHistory:
    """Return the recorded history for a run.

    Args:
        run_id: The run identifier.

    Returns:
        LossHistory for the run.

    Raises:
        HTTPException: 404 if the run is unknown.
    """
    history = _state["runs"].get(run_id)
    if history is None:
        raise HTTPException(
            status_code=404,
            detail=f"Run not found: {run_id}",
        )
    return history


def _build_config(raw: dict[str, Any] | None) -> DiagnosticConfig:
    """Build a DiagnosticConfig from an optional request dict."""
    if raw is None:
        return DiagnosticConfig()
    return DiagnosticConfig.from_dict(raw)


def _bad_request(exc: Exception) -> HTTPException:
    """Translate a diagnostic error into an HTTP 400."""
    formatted = _formatter.format_diagnostic_error(exc)
    return HTTPException(status_code=400, detail=formatted.to_dict())


# ===================================================================
# Pydantic request models
# ===================================================================


class SummarizeRequest(BaseModel):
    """Request body for POST /summarize."""

    values: list[float]
    window: int | None = None
    config: dict[str, Any] | None = None


class DiagnoseRequest(BaseModel):
    """Request body for POST /diagnose."""

    train_losses: list[float]
    val_losses: list[float]
    config: dict[str, Any] | None = None


class RecordMetricsRequest(BaseModel):
    """Request body for POST /runs/{run_id}/metrics."""

    train_loss: float = Field(ge=0, allow_inf_nan=False)
    val_loss: float | None = Field(default=None, ge=0, allow_inf_nan=False)


# ===================================================================
# Health endpoint
# ===================================================================


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Return service health status.

    Returns:
        Dict with status, service name, and version.
    """
    return {
        "status": "ok",
        "service": "assay",
        "version": "0.1.0",
    }


# ===================================================================
# Diagnostic endpoints
# ===================================================================


@router.post("/summarize")
async def summarize_curve(request: SummarizeRequest) -> dict[str, Any]:
    """Summarize a single loss curve.

    Args:
        request: Loss values plus optional window and thresholds.

    Returns:
        Dict with the curve summary.
    """
    try:
        config = _build_config(request.config)
        return summarize(request.values, request.window, config).to_dict()
    except InvalidInputError as exc:
        raise _bad_request(exc) from exc


@router.post("/diagnose")
async def diagnose_curves(request: DiagnoseRequest) -> dict[str, Any]:
    """Diagnose a run from its training and validation loss curves.

    Args:
        request: Both loss sequences plus optional thresholds.

    Returns:
        Dict with the full learning-curve report.
    """
    try:
        diag = LearningCurveDiagnostics(_build_config(request.config))
        report = diag.analyze(request.train_losses, request.val_losses)
    except InvalidInputError as exc:
        raise _bad_request(exc) from exc
    return report.to_dict()


# ===================================================================
# Run registry endpoints
# ===================================================================


@router.get("/runs")
async def list_runs() -> dict[str, Any]:
    """List recorded runs and their iteration counts.

    Returns:
        Dict with a list of runs.
    """
    runs = [
        {"run_id": run_id, "iterations": len(history)}
        for run_id, history in _state["runs"].items()
    ]
    return {"runs": runs, "count": len(runs)}


@router.post("/runs/{run_id}/metrics")
async def record_metrics(run_id: str, request: RecordMetricsRequest) -> dict[str, Any]:
    """Append one iteration's losses to a run, creating it on first use.

    Args:
        run_id: The run identifier.
        request: Losses for the iteration.

    Returns:
        Dict with run_id and the number of recorded iterations.
    """
    history = _state["runs"].get(run_id)
    if history is None:
        history = LossHistory()
        _state["runs"][run_id] = history
        logger.info("Started recording run %s", run_id)
    snapshot = history.record(request.train_loss, request.val_loss)
    return {
        "run_id": run_id,
        "iteration": snapshot.iteration,
        "iterations": len(history),
    }


@router.get("/runs/{run_id}/diagnosis")
async def diagnose_run(run_id: str) -> dict[str, Any]:
    """Diagnose a recorded run.

    Args:
        run_id: The run identifier.

    Returns:
        Dict with the learning-curve report and run_id.
    """
    history = _get_run(run_id)
    try:
        report = LearningCurveDiagnostics().analyze_history(history)
    except InvalidInputError as exc:
        raise _bad_request(exc) from exc
    report_dict = report.to_dict()
    report_dict["run_id"] = run_id
    return report_dict


@router.delete("/runs/{run_id}")
async def delete_run(run_id: str) -> dict[str, Any]:
    """Forget a recorded run.

    Args:
        run_id: The run identifier.

    Returns:
        Dict with run_id and a confirmation message.
    """
    _get_run(run_id)
    del _state["runs"][run_id]
    return {"run_id": run_id, "message": "Run deleted."}
