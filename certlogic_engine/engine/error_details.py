"""
Human-readable details for a rule's affected fields.

Maps each resolvable affected-field path to the field description from the
certificate JSON schema and the value found in the payload, e.g.

    {"Disease or agent targeted": "840539006"}
"""

import logging
from collections.abc import Mapping
from typing import Any

from certlogic_engine.domain.enums import CertificateType
from certlogic_engine.domain.models import Rule

logger = logging.getLogger(__name__)

SCHEMA_DEFS_SECTION = "$defs"
SCHEMA_PROPERTIES = "properties"
SCHEMA_DESCRIPTION = "description"

# Certificate type -> (schema entry definition, payload array key)
SECTIONS: dict[CertificateType, tuple[str, str]] = {
    CertificateType.TEST: ("test_entry", "t"),
    CertificateType.VACCINATION: ("vaccination_entry", "v"),
    CertificateType.RECOVERY: ("recovery_entry", "r"),
}

# General certificates fall back to the test sections.
DEFAULT_SECTION = SECTIONS[CertificateType.TEST]


def leaf_key(affected_field: str) -> str | None:
    """
    Return the field name to look up for an affected-field path.

    "ma" -> "ma", "v.0.ma" -> "ma"; every other shape (e.g. "v.0") is skipped
    because its schema description is not leaf-addressable.
    """
    segments = affected_field.split(".")
    if len(segments) == 1:
        return affected_field
    if len(segments) == 3:
        return segments[-1]
    return None


def schema_description(
    schema: Mapping[str, Any], certificate_type: CertificateType, key: str
) -> str | None:
    section, _ = SECTIONS.get(certificate_type, DEFAULT_SECTION)
    node: Any = schema
    for step in (SCHEMA_DEFS_SECTION, section, SCHEMA_PROPERTIES, key, SCHEMA_DESCRIPTION):
        if not isinstance(node, Mapping):
            return None
        node = node.get(step)
    return node if isinstance(node, str) else None


def payload_value(
    payload: Mapping[str, Any] | None, certificate_type: CertificateType, key: str
) -> str | None:
    """Value of key in the first entry of the certificate's payload array, as a string."""
    if not payload:
        return None
    _, section = SECTIONS.get(certificate_type, DEFAULT_SECTION)
    entries = payload.get(section)
    if not isinstance(entries, list) or not entries or not isinstance(entries[0], Mapping):
        return None

    value = entries[0].get(key)
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return None


def resolve_error_details(
    rule: Rule,
    certificate_type: CertificateType,
    schema: Mapping[str, Any],
    payload: Mapping[str, Any] | None,
) -> dict[str, str]:
    """
    Build the description -> actual value mapping for a rule.

    Args:
        rule: Rule whose affected fields are reported
        certificate_type: Selects the schema section and payload array
        schema: Certificate JSON schema with a "$defs" section
        payload: Decoded certificate payload

    Returns:
        Mapping of field description to payload value; paths failing either
        lookup are omitted
    """
    details: dict[str, str] = {}
    for affected_field in rule.affected_fields:
        key = leaf_key(affected_field)
        if key is None:
            continue
        description = schema_description(schema, certificate_type, key)
        value = payload_value(payload, certificate_type, key)
        if description is None or value is None:
            logger.debug("No error detail for %s in rule %s", affected_field, rule.identifier)
            continue
        details[description] = value
    return details
