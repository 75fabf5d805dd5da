"""
Evaluation dispatcher: runs one compatible rule and maps the evaluator
outcome onto a ValidationResult.
"""

import logging
from collections.abc import Callable
from typing import Any

from certlogic_engine.core.errors import OpenStateError
from certlogic_engine.domain.enums import Result
from certlogic_engine.domain.models import (
    BooleanOutcome,
    EvaluationOutcome,
    ExternalParameter,
    OtherOutcome,
    Rule,
    ValidationResult,
)
from certlogic_engine.engine import certlogic

logger = logging.getLogger(__name__)

EXTERNAL_KEY = "external"
PAYLOAD_KEY = "payload"

Evaluator = Callable[[Any, Any], EvaluationOutcome]


def build_data_context(external: ExternalParameter, payload: dict[str, Any]) -> dict[str, Any]:
    """Combine external parameters and the raw payload into the logic's data."""
    return {
        EXTERNAL_KEY: external.to_data_context(),
        PAYLOAD_KEY: payload,
    }


def dispatch(
    rule: Rule,
    data: dict[str, Any],
    evaluator: Evaluator = certlogic.evaluate,
) -> ValidationResult:
    """
    Evaluate a rule that already passed the compatibility gate.

    Args:
        rule: Rule to evaluate
        data: Data context from build_data_context()
        evaluator: Expression evaluator returning a tagged outcome

    Returns:
        passed for true, fail for false, open for non-boolean results and
        for any error raised by the evaluator (the error is attached)
    """
    try:
        outcome = evaluator(rule.logic, data)
    except Exception as e:
        logger.warning(
            "Rule %s (v%s) could not be evaluated: %s",
            rule.identifier,
            rule.version,
            e,
        )
        return ValidationResult(rule=rule, result=Result.OPEN, validation_errors=[e])

    if isinstance(outcome, BooleanOutcome):
        result = Result.PASSED if outcome.value else Result.FAIL
        return ValidationResult(rule=rule, result=result)

    if isinstance(outcome, OtherOutcome):
        logger.debug(
            "Rule %s (v%s) evaluated to non-boolean %r",
            rule.identifier,
            rule.version,
            outcome.value,
        )
        return ValidationResult(
            rule=rule,
            result=Result.OPEN,
            validation_errors=[
                OpenStateError(
                    "Rule logic did not evaluate to a boolean",
                    details={"value_type": type(outcome.value).__name__},
                )
            ],
        )

    raise TypeError(f"Unsupported evaluation outcome: {outcome!r}")
