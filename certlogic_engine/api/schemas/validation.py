"""Pydantic schemas for validation API requests/responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from certlogic_engine.domain.enums import CertificateType, Result, RuleType, ValidationType
from certlogic_engine.domain.models import (
    ExternalParameter,
    FilterParameter,
    Rule,
    RuleDescription,
    ValidationResult,
)

# =============================================================================
# Validation
# =============================================================================


class ValidateRequest(BaseModel):
    """Validate one certificate payload."""

    filter: FilterParameter
    external: ExternalParameter
    payload: dict[str, Any] = Field(description="Decoded certificate payload (HCERT content)")
    validation_type: ValidationType = ValidationType.ALL


class RuleSummary(BaseModel):
    """Identifying attributes of an evaluated rule."""

    identifier: str
    version: str
    rule_type: RuleType
    certificate_type: CertificateType
    country_code: str
    region: str | None = None
    affected_fields: list[str] = Field(default_factory=list)
    description: list[RuleDescription] = Field(default_factory=list)

    @classmethod
    def from_rule(cls, rule: Rule) -> RuleSummary:
        return cls(
            identifier=rule.identifier,
            version=rule.version,
            rule_type=rule.rule_type,
            certificate_type=rule.certificate_type,
            country_code=rule.country_code,
            region=rule.region,
            affected_fields=list(rule.affected_fields),
            description=list(rule.description),
        )


class ValidationResultResponse(BaseModel):
    """One rule verdict."""

    rule: RuleSummary | None = None
    result: Result
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ValidationResult) -> ValidationResultResponse:
        return cls(
            rule=RuleSummary.from_rule(result.rule) if result.rule is not None else None,
            result=result.result,
            errors=[
                f"{type(error).__name__}: {error}" for error in result.validation_errors or []
            ],
        )


class ValidateResponse(BaseModel):
    """All verdicts of a validation, in evaluation order."""

    results: list[ValidationResultResponse]
    summary: dict[str, int] = Field(
        description="Number of results per outcome (passed, fail, open)"
    )

    @classmethod
    def from_results(cls, results: list[ValidationResult]) -> ValidateResponse:
        summary = {outcome.value: 0 for outcome in Result}
        for result in results:
            summary[result.result.value] += 1
        return cls(
            results=[ValidationResultResponse.from_result(r) for r in results],
            summary=summary,
        )


# =============================================================================
# Error details
# =============================================================================


class ErrorDetailsRequest(BaseModel):
    """Describe the affected fields of a loaded rule."""

    rule_identifier: str = Field(min_length=1)
    filter: FilterParameter
    payload: dict[str, Any]


class ErrorDetailsResponse(BaseModel):
    rule_identifier: str
    rule_version: str
    details: dict[str, str]


# =============================================================================
# Rule set replacement
# =============================================================================


class RulesReplaceResponse(BaseModel):
    rule_count: int
    previous_rule_count: int
