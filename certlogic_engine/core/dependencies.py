"""
Engine provider for the API layer.

The process holds one CertLogicEngine built from the configured schema and
rules files. Routes receive it through FastAPI dependency injection so tests
can override it with ``app.dependency_overrides[get_engine]``.
"""

import logging
from pathlib import Path
from typing import Annotated

from fastapi import Depends

from certlogic_engine.core.config import settings
from certlogic_engine.core.errors import EngineNotReadyError
from certlogic_engine.engine import CertLogicEngine

logger = logging.getLogger(__name__)

_engine: CertLogicEngine | None = None


def load_engine_from_files(schema_file: str | Path, rules_file: str | Path) -> CertLogicEngine:
    """Build an engine from a schema file and a JSON rule list file."""
    schema = Path(schema_file).read_text(encoding="utf-8")
    rules = Path(rules_file).read_bytes()
    engine = CertLogicEngine.from_rules_json(
        schema,
        rules,
        engine_name=settings.certlogic_engine_name,
        engine_version=settings.certlogic_engine_version,
    )
    logger.info(
        "Loaded %d rules from %s (schema %s)",
        len(engine.rules),
        rules_file,
        schema_file,
    )
    return engine


def init_engine() -> CertLogicEngine | None:
    """
    Build the process-wide engine from settings, if files are configured.

    Called on application startup. Missing configuration leaves the API
    running with readiness reporting unavailable.
    """
    global _engine
    if not settings.schema_file or not settings.rules_file:
        logger.warning("SCHEMA_FILE or RULES_FILE not configured; engine not loaded")
        return None
    _engine = load_engine_from_files(settings.schema_file, settings.rules_file)
    return _engine


def set_engine(engine: CertLogicEngine | None) -> None:
    global _engine
    _engine = engine


def get_engine() -> CertLogicEngine:
    """
    Dependency: return the configured engine.

    Raises:
        EngineNotReadyError: If no engine has been loaded
    """
    if _engine is None:
        raise EngineNotReadyError(
            "Validation engine is not loaded",
            details={"hint": "Set SCHEMA_FILE and RULES_FILE"},
        )
    return _engine


Engine = Annotated[CertLogicEngine, Depends(get_engine)]
