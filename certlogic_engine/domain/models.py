"""
Domain models for rules, validation contexts and results.

Rules are decoded from the EU DCC business-rule JSON shape, which uses
PascalCase keys ("Identifier", "ValidFrom", ...). Validation contexts use
camelCase on the wire because rule logic reads them through
``{"var": "external.validationClock"}`` style lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from certlogic_engine.domain.enums import CertificateType, Result, RuleType
from certlogic_engine.domain.versioning import to_int


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so rule windows and clocks compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class RuleDescription(BaseModel):
    """One localized description entry of a rule."""

    model_config = ConfigDict(frozen=True)

    lang: str
    desc: str


class Rule(BaseModel):
    """A single named, versioned business rule."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    identifier: str = Field(alias="Identifier")
    rule_type: RuleType = Field(alias="Type")
    country_code: str = Field(alias="Country")
    region: str | None = Field(default=None, alias="Region")
    version: str = Field(alias="Version")
    schema_version: str = Field(alias="SchemaVersion")
    engine: str = Field(alias="Engine")
    engine_version: str = Field(alias="EngineVersion")
    certificate_type: CertificateType = Field(alias="CertificateType")
    description: list[RuleDescription] = Field(default_factory=list, alias="Description")
    valid_from: datetime = Field(alias="ValidFrom")
    valid_to: datetime = Field(alias="ValidTo")
    affected_fields: list[str] = Field(default_factory=list, alias="AffectedFields")
    logic: Any = Field(alias="Logic")

    @field_validator("valid_from", "valid_to")
    @classmethod
    def validate_window_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def version_int(self) -> int:
        return to_int(self.version)

    def is_valid_at(self, clock: datetime) -> bool:
        """Inclusive validity window check."""
        return self.valid_from <= ensure_utc(clock) <= self.valid_to


class FilterParameter(BaseModel):
    """
    Caller-selected validation frame used for rule selection.

    country_code is the destination country (where the certificate is
    presented); acceptance rules are selected against it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    validation_clock: datetime
    country_code: str
    certificate_type: CertificateType
    region: str | None = None

    @field_validator("validation_clock")
    @classmethod
    def validate_clock_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ExternalParameter(BaseModel):
    """
    External values exposed to rule logic under the "external" key.

    issuer_country_code is the country that issued the certificate;
    invalidation rules are selected against it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    validation_clock: datetime
    value_sets: dict[str, list[str]] = Field(default_factory=dict)
    country_code: str
    issuer_country_code: str
    exp: datetime | None = None
    iat: datetime | None = None
    kid: str | None = None
    region: str | None = None

    @field_validator("validation_clock", "exp", "iat")
    @classmethod
    def validate_timezone(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return v
        return ensure_utc(v)

    def to_data_context(self) -> dict[str, Any]:
        """JSON-compatible form with camelCase keys, as read by rule logic."""
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class ValidationResult:
    """Verdict for one rule, or a rule-less verdict for the whole payload."""

    rule: Rule | None
    result: Result
    validation_errors: list[Exception] | None = None


@dataclass(frozen=True)
class BooleanOutcome:
    """Evaluator produced a boolean."""

    value: bool


@dataclass(frozen=True)
class OtherOutcome:
    """Evaluator produced a non-boolean JSON value (null, number, object, ...)."""

    value: Any


EvaluationOutcome = BooleanOutcome | OtherOutcome
