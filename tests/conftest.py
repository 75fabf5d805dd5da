"""
Pytest configuration and shared fixtures.

Provides:
- Rule factory producing EU DCC business rules with sensible defaults
- Certificate schema and payload fixtures
- Filter / external parameter builders
- FastAPI TestClient wired to an in-memory engine
"""

from __future__ import annotations

import os
import sys
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

# Add project root to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before importing the app
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("OBSERVABILITY_STRUCTURED_LOGS", "false")
os.environ.setdefault("METRICS_TOKEN", "test-metrics-token")

import pytest  # noqa: E402 (import after path setup)
from fastapi.testclient import TestClient  # noqa: E402 (import after path setup)

from certlogic_engine.core.dependencies import set_engine  # noqa: E402
from certlogic_engine.domain.enums import CertificateType  # noqa: E402
from certlogic_engine.domain.models import (  # noqa: E402
    ExternalParameter,
    FilterParameter,
    Rule,
)
from certlogic_engine.engine import CertLogicEngine  # noqa: E402
from certlogic_engine.main import create_app  # noqa: E402

VALIDATION_CLOCK = datetime(2021, 6, 1, tzinfo=UTC)

# Logic used by most tests: the payload carries at least one vaccination entry.
HAS_VACCINATION = {"!": [{"!": [{"var": "payload.v.0"}]}]}


@pytest.fixture
def anyio_backend():
    return "asyncio"


# ============================================================================
# Rule factory
# ============================================================================


def rule_dict(**overrides: Any) -> dict[str, Any]:
    """Serialized rule (PascalCase keys) with defaults for a CZ general acceptance rule."""
    data: dict[str, Any] = {
        "Identifier": "GR-CZ-0001",
        "Type": "Acceptance",
        "Country": "CZ",
        "Version": "1.0.0",
        "SchemaVersion": "1.0.0",
        "Engine": "CERTLOGIC",
        "EngineVersion": "1.0.0",
        "CertificateType": "General",
        "Description": [{"lang": "en", "desc": "At least one vaccination entry"}],
        "ValidFrom": "2021-01-01T00:00:00Z",
        "ValidTo": "2030-01-01T00:00:00Z",
        "AffectedFields": ["v.0"],
        "Logic": HAS_VACCINATION,
    }
    data.update(overrides)
    return data


def make_rule(**overrides: Any) -> Rule:
    return Rule.model_validate(rule_dict(**overrides))


# ============================================================================
# Context builders
# ============================================================================


def make_filter(
    country_code: str = "CZ",
    certificate_type: CertificateType = CertificateType.GENERAL,
    region: str | None = None,
    validation_clock: datetime = VALIDATION_CLOCK,
) -> FilterParameter:
    return FilterParameter(
        validation_clock=validation_clock,
        country_code=country_code,
        certificate_type=certificate_type,
        region=region,
    )


def make_external(
    issuer_country_code: str = "DE",
    country_code: str = "CZ",
    validation_clock: datetime = VALIDATION_CLOCK,
    value_sets: dict[str, list[str]] | None = None,
) -> ExternalParameter:
    return ExternalParameter(
        validation_clock=validation_clock,
        value_sets=value_sets or {},
        country_code=country_code,
        issuer_country_code=issuer_country_code,
        exp=datetime(2022, 6, 1, tzinfo=UTC),
        iat=datetime(2021, 5, 1, tzinfo=UTC),
        kid="kid-1",
    )


# ============================================================================
# Schema and payloads
# ============================================================================


@pytest.fixture
def schema() -> dict[str, Any]:
    """Trimmed DCC combined schema with field descriptions."""
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "$defs": {
            "vaccination_entry": {
                "properties": {
                    "tg": {"description": "disease or agent targeted"},
                    "mp": {"description": "vaccine medicinal product"},
                    "dn": {"description": "Dose Number"},
                    "dt": {"description": "Date of Vaccination"},
                    "co": {"description": "Country of Vaccination"},
                }
            },
            "test_entry": {
                "properties": {
                    "tt": {"description": "Type of Test"},
                    "sc": {"description": "Date/Time of Sample Collection"},
                    "tr": {"description": "Test Result"},
                }
            },
            "recovery_entry": {
                "properties": {
                    "fr": {"description": "ISO 8601 complete date of first positive NAA test result"},
                    "df": {"description": "ISO 8601 complete date: Certificate Valid From"},
                }
            },
        },
    }


@pytest.fixture
def vaccination_payload() -> dict[str, Any]:
    return {
        "ver": "1.0.0",
        "nam": {"fn": "Musterfrau", "gn": "Erika"},
        "dob": "1964-08-12",
        "v": [
            {
                "tg": "840539006",
                "vp": "1119349007",
                "mp": "EU/1/20/1528",
                "ma": "ORG-100030215",
                "dn": 2,
                "sd": 2,
                "dt": "2021-05-29",
                "co": "DE",
                "is": "Robert Koch-Institut",
                "ci": "URN:UVCI:01DE/IZ12345A/5CWLU12RNOB9RXSEOP6FG8#W",
            }
        ],
    }


@pytest.fixture
def test_payload() -> dict[str, Any]:
    return {
        "ver": "1.0.0",
        "t": [
            {
                "tg": "840539006",
                "tt": "LP6464-4",
                "sc": "2021-05-30T10:12:22Z",
                "tr": "260415000",
                "co": "DE",
            }
        ],
    }


# ============================================================================
# API client
# ============================================================================


@pytest.fixture
def engine(schema: dict[str, Any]) -> CertLogicEngine:
    return CertLogicEngine(schema, [make_rule()])


@pytest.fixture
def client(engine: CertLogicEngine) -> Generator[TestClient, None, None]:
    """TestClient with the process-wide engine set to the engine fixture."""
    set_engine(engine)
    try:
        yield TestClient(create_app())
    finally:
        set_engine(None)
