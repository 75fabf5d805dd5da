"""
Rule selection for a validation context and role profile.

Four predicate sets exist, formed by two dimensions:

- rule type: acceptance rules are matched against the destination country,
  invalidation rules against the issuer country (an issuing authority can
  retract trust in its own certificates wherever the traveller goes);
- certificate type: "general" rules, or rules for the filter's own type.

Each included set is reduced independently to one rule per identifier (the
highest version) and the survivors are concatenated in set order. Sets are
not deduplicated against each other. For a filter on general certificates
only the general sets are included.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from certlogic_engine.domain.enums import CertificateType, RuleType, ValidationType
from certlogic_engine.domain.models import FilterParameter, Rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleSet:
    """One predicate set: a rule type paired with general or type-specific certificates."""

    rule_type: RuleType
    general: bool

    @property
    def name(self) -> str:
        scope = "general" if self.general else "type"
        return f"{scope}-{self.rule_type.value.lower()}"


GENERAL_ACCEPTANCE = RuleSet(RuleType.ACCEPTANCE, general=True)
GENERAL_INVALIDATION = RuleSet(RuleType.INVALIDATION, general=True)
TYPE_ACCEPTANCE = RuleSet(RuleType.ACCEPTANCE, general=False)
TYPE_INVALIDATION = RuleSet(RuleType.INVALIDATION, general=False)

# Output order follows the order of the sets in each profile.
VALIDATION_TYPE_TO_RULE_SETS: dict[ValidationType, tuple[RuleSet, ...]] = {
    ValidationType.ALL: (
        GENERAL_INVALIDATION,
        GENERAL_ACCEPTANCE,
        TYPE_ACCEPTANCE,
        TYPE_INVALIDATION,
    ),
    ValidationType.ISSUER: (GENERAL_INVALIDATION, TYPE_INVALIDATION),
    ValidationType.DESTINATION: (TYPE_ACCEPTANCE,),
    ValidationType.TRAVELLER: (GENERAL_ACCEPTANCE,),
}


def select_rules(
    rules: Iterable[Rule],
    filter: FilterParameter,
    issuer_country_code: str,
    validation_type: ValidationType = ValidationType.ALL,
) -> list[Rule]:
    """
    Select the rules to evaluate for a validation request.

    Args:
        rules: Rule snapshot to select from
        filter: Destination country, region, certificate type and clock
        issuer_country_code: Country that issued the certificate
        validation_type: Role profile choosing which sets are included

    Returns:
        At most one rule per identifier per included set, in set order

    Example:
        >>> select_rules(store.snapshot(), filter, "DE", ValidationType.TRAVELLER)
        [Rule(identifier='GR-CZ-0001', ...)]
    """
    candidates = tuple(rules)
    selected: list[Rule] = []

    for rule_set in VALIDATION_TYPE_TO_RULE_SETS[validation_type]:
        if not rule_set.general and filter.certificate_type == CertificateType.GENERAL:
            continue
        country = (
            filter.country_code
            if rule_set.rule_type == RuleType.ACCEPTANCE
            else issuer_country_code
        )
        matching = [rule for rule in candidates if _matches(rule, rule_set, filter, country)]
        latest = _latest_versions(matching)
        logger.debug(
            "Rule set %s for %s: %d matching, %d selected",
            rule_set.name,
            country,
            len(matching),
            len(latest),
        )
        selected.extend(latest)

    return selected


def _matches(rule: Rule, rule_set: RuleSet, filter: FilterParameter, country: str) -> bool:
    """Check a rule against one predicate set."""
    if rule.rule_type != rule_set.rule_type:
        return False

    wanted_type = CertificateType.GENERAL if rule_set.general else filter.certificate_type
    if rule.certificate_type != wanted_type:
        return False

    if rule.country_code.lower() != country.lower():
        return False

    if not _region_matches(rule.region, filter.region):
        return False

    return rule.is_valid_at(filter.validation_clock)


def _region_matches(rule_region: str | None, filter_region: str | None) -> bool:
    """
    Region filter.

    With a requested region only rules for exactly that region match; without
    one only country-wide (region-less) rules match.
    """
    if filter_region is None:
        return rule_region is None
    return rule_region is not None and rule_region.lower() == filter_region.lower()


def _latest_versions(rules: list[Rule]) -> list[Rule]:
    """
    Reduce rules to the highest version per identifier.

    Groups keep first-seen order. On equal version_int the earlier rule wins.
    """
    latest: dict[str, Rule] = {}
    for rule in rules:
        current = latest.get(rule.identifier)
        if current is None or rule.version_int > current.version_int:
            latest[rule.identifier] = rule
    return list(latest.values())
