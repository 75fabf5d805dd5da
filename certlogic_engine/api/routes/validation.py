import logging

from fastapi import APIRouter, Body

from certlogic_engine.api.schemas.validation import (
    ErrorDetailsRequest,
    ErrorDetailsResponse,
    RulesReplaceResponse,
    ValidateRequest,
    ValidateResponse,
)
from certlogic_engine.core.dependencies import Engine
from certlogic_engine.core.errors import NotFoundError
from certlogic_engine.domain.models import Rule

logger = logging.getLogger(__name__)

router = APIRouter(tags=["validation"])


@router.post("/validate", response_model=ValidateResponse)
def validate_payload(body: ValidateRequest, engine: Engine) -> ValidateResponse:
    """Validate a certificate payload against the loaded rules."""
    results = engine.validate(body.filter, body.external, body.payload, body.validation_type)
    return ValidateResponse.from_results(results)


@router.post("/error-details", response_model=ErrorDetailsResponse)
def error_details(body: ErrorDetailsRequest, engine: Engine) -> ErrorDetailsResponse:
    """Describe a rule's affected fields with the values found in the payload."""
    rule = engine.find_rule(body.rule_identifier)
    if rule is None:
        raise NotFoundError(
            "Rule not found", details={"rule_identifier": body.rule_identifier}
        )
    details = engine.get_details_of_error(rule, body.filter, body.payload)
    return ErrorDetailsResponse(
        rule_identifier=rule.identifier, rule_version=rule.version, details=details
    )


@router.put("/rules", response_model=RulesReplaceResponse)
def replace_rules(engine: Engine, rules: list[Rule] = Body(...)) -> RulesReplaceResponse:
    """Atomically replace the active rule set."""
    previous_count = len(engine.rules)
    engine.update_rules(rules)
    logger.info(
        "Rule set replaced via API",
        extra={"previous_rule_count": previous_count, "rule_count": len(rules)},
    )
    return RulesReplaceResponse(rule_count=len(rules), previous_rule_count=previous_count)
