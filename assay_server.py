"""Assay backend server.

Mounts the Assay learning-curve diagnostics router under a FastAPI
application. The router is imported lazily so that an import or
initialization failure does not prevent the server from starting --
the unified health endpoint reports the error instead.

Usage::

    # Development (auto-reload)
    uvicorn assay_server:app --reload --port 8430

    # Or run directly
    python assay_server.py
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger("assay")

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Assay API",
    description=(
        "Learning-curve diagnostics: classifies training runs as underfit, "
        "overfit, a good fit, or affected by unrepresentative data."
    ),
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# CORS -- allow local dashboard dev origins
# ---------------------------------------------------------------------------

_ALLOWED_ORIGINS = [
    "http://localhost:5173",   # Vite dev server
    "http://localhost:8430",   # Self (for Swagger UI)
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8430",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_router_status: dict[str, Any] = {"loaded": False, "error": None}


def _mount_assay() -> None:
    """Mount the Assay router at ``/api/assay/``."""
    try:
        from assay.src.server import router as assay_router

        app.include_router(assay_router, prefix="/api/assay", tags=["assay"])
        _router_status["loaded"] = True
        logger.info("Assay router mounted at /api/assay/")
    except Exception as exc:
        _router_status["error"] = str(exc)
        logger.warning("Assay router failed to load: %s", exc)


@app.get("/api/health")
async def unified_health() -> dict[str, Any]:
    """Return overall health status.

    Returns:
        Dictionary with overall status and router load state.
    """
    return {
        "status": "ok" if _router_status["loaded"] else "error",
        "version": "0.1.0",
        "assay": _router_status,
    }


_mount_assay()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def run_server(host: str = "127.0.0.1", port: int = 8430) -> None:
    """Start the Assay server via uvicorn.

    Args:
        host: Bind address. Defaults to localhost.
        port: Port number. Defaults to 8430.
    """
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    run_server()
