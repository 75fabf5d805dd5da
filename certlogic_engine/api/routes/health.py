import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from certlogic_engine.core.dependencies import get_engine
from certlogic_engine.core.errors import EngineNotReadyError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    """Basic health check endpoint."""
    return {"ok": True}


@router.get("/readyz")
def readyz() -> JSONResponse:
    """Readiness probe: verifies a validation engine is loaded.

    Returns:
      - 200 with the loaded rule count when the engine is ready
      - 503 when no engine is configured
    """
    try:
        engine = get_engine()
    except EngineNotReadyError as exc:
        logger.warning(f"Readiness check failed: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "engine": "unavailable"},
        )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"ok": True, "engine": "ok", "rules": len(engine.rules)},
    )
