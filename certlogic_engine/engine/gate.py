"""
Compatibility gate run before a rule is evaluated.

A rule is evaluated only when the payload's schema version and this
engine's name/version are compatible with what the rule was written for.
Incompatible rules are not failures: they end up open.
"""

from dataclasses import dataclass

from certlogic_engine.domain.models import Rule
from certlogic_engine.domain.versioning import same_major, to_int


@dataclass(frozen=True)
class GateDecision:
    """Outcome of the compatibility checks for one rule."""

    failed_checks: tuple[str, ...] = ()

    @property
    def allowed(self) -> bool:
        return not self.failed_checks


def check_schema_version(rule: Rule, payload_schema_version: str) -> list[str]:
    """
    Payload schema must share the rule's major version and be at least as new.
    """
    failures = []
    if not same_major(payload_schema_version, rule.schema_version):
        failures.append("schema_major_mismatch")
    if to_int(payload_schema_version) < to_int(rule.schema_version):
        failures.append("schema_too_old")
    return failures


def check_engine_version(rule: Rule, engine_version: str) -> list[str]:
    """
    Rule must target this engine's major version and not require a newer one.
    """
    failures = []
    if not same_major(rule.engine_version, engine_version):
        failures.append("engine_major_mismatch")
    if to_int(rule.engine_version) > to_int(engine_version):
        failures.append("engine_too_old")
    return failures


def check_compatibility(
    rule: Rule,
    payload_schema_version: str,
    engine_name: str,
    engine_version: str,
) -> GateDecision:
    """
    Run all compatibility checks for a rule.

    Args:
        rule: Candidate rule
        payload_schema_version: The payload's declared scheme version ("ver")
        engine_name: Name of this evaluation engine (exact match required)
        engine_version: Version of this evaluation engine

    Returns:
        GateDecision listing every failed check (empty when allowed)
    """
    failures = check_schema_version(rule, payload_schema_version)
    failures.extend(check_engine_version(rule, engine_version))
    if rule.engine != engine_name:
        failures.append("engine_name_mismatch")
    return GateDecision(failed_checks=tuple(failures))
