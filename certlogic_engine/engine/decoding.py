"""
Decoding of serialized rules, schemas and payloads.

Rule sets arrive as JSON text or bytes (a list of rule objects in the EU DCC
business-rule format). Decoding is strict: malformed input raises
RuleDecodeError instead of being dropped.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from certlogic_engine.core.errors import PayloadError, RuleDecodeError, ValidationError
from certlogic_engine.domain.models import Rule

logger = logging.getLogger(__name__)

_rule_list_adapter = TypeAdapter(list[Rule])


def decode_rules(data: str | bytes) -> list[Rule]:
    """
    Decode a JSON array of rules.

    Args:
        data: JSON text or UTF-8 bytes

    Returns:
        Decoded rules in input order

    Raises:
        RuleDecodeError: If the input is not a valid rule list
    """
    try:
        rules = _rule_list_adapter.validate_json(data)
    except PydanticValidationError as e:
        logger.error("Failed to decode rule set: %d errors", e.error_count())
        raise RuleDecodeError(
            "Rule set could not be decoded",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e
    logger.info("Decoded %d rules", len(rules))
    return rules


def decode_rule(data: str | bytes) -> Rule:
    """Decode a single JSON rule object."""
    try:
        return Rule.model_validate_json(data)
    except PydanticValidationError as e:
        raise RuleDecodeError(
            "Rule could not be decoded",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def coerce_rules(rules: Any) -> list[Rule]:
    """
    Accept already-built Rule objects, decoded JSON (list of dicts) or raw JSON.
    """
    if isinstance(rules, (str, bytes)):
        return decode_rules(rules)
    try:
        return _rule_list_adapter.validate_python(list(rules))
    except (PydanticValidationError, TypeError) as e:
        errors = (
            e.errors(include_url=False, include_context=False)
            if isinstance(e, PydanticValidationError)
            else []
        )
        raise RuleDecodeError(
            "Rule set could not be decoded", details={"errors": errors, "error": str(e)}
        ) from e


def decode_schema(schema: str | bytes | Mapping[str, Any]) -> dict[str, Any]:
    """Decode the certificate JSON schema used for error details."""
    if isinstance(schema, Mapping):
        return dict(schema)
    try:
        decoded = json.loads(schema)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Schema is not valid JSON", details={"error": str(e)}) from e
    if not isinstance(decoded, dict):
        raise ValidationError(
            "Schema must be a JSON object", details={"type": type(decoded).__name__}
        )
    return decoded


def decode_payload(payload: str | bytes | Mapping[str, Any]) -> dict[str, Any]:
    """
    Decode a certificate payload.

    Raises:
        PayloadError: If the payload is not a JSON object
    """
    if isinstance(payload, Mapping):
        return dict(payload)
    try:
        decoded = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PayloadError("Payload is not valid JSON", details={"error": str(e)}) from e
    if not isinstance(decoded, dict):
        raise PayloadError(
            "Payload must be a JSON object", details={"type": type(decoded).__name__}
        )
    return decoded
