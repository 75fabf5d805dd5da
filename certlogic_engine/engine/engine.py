"""
CertLogic validation engine.

Validates a certificate payload against the loaded business rules:

1. An empty rule set short-circuits to a single rule-less passed result.
2. A payload without a string "ver" is rejected with a single rule-less
   fail result. Text that does not decode to a JSON object is treated the
   same way.
3. Otherwise the selector picks the rules for the requested role profile and
   each rule yields exactly one result: open when the compatibility gate
   rejects it, otherwise the dispatcher's verdict.

Note that step 1 looks at the whole loaded rule set. A non-empty rule set
from which nothing is selected yields an empty result list.
"""

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any

from certlogic_engine.core.errors import OpenStateError, PayloadError
from certlogic_engine.domain.enums import Result, ValidationType
from certlogic_engine.domain.models import (
    ExternalParameter,
    FilterParameter,
    Rule,
    ValidationResult,
)
from certlogic_engine.engine import certlogic
from certlogic_engine.engine.decoding import coerce_rules, decode_payload, decode_schema
from certlogic_engine.engine.dispatcher import Evaluator, build_data_context, dispatch
from certlogic_engine.engine.error_details import resolve_error_details
from certlogic_engine.engine.gate import check_compatibility
from certlogic_engine.engine.selector import select_rules
from certlogic_engine.engine.store import RuleStore

logger = logging.getLogger(__name__)

ENGINE_NAME = "CERTLOGIC"
ENGINE_VERSION = "1.0.0"

# Payload key holding the certificate's scheme version.
PAYLOAD_VERSION_KEY = "ver"


class CertLogicEngine:
    """
    Rule selection, compatibility gating and evaluation for one rule set.

    Example:
        >>> engine = CertLogicEngine(schema_json, rules)
        >>> results = engine.validate(filter, external, payload)
        >>> [r.result for r in results]
        [<Result.PASSED: 'passed'>]
    """

    def __init__(
        self,
        schema: str | bytes | Mapping[str, Any],
        rules: Iterable[Rule] | Iterable[Mapping[str, Any]] | str | bytes,
        *,
        engine_name: str = ENGINE_NAME,
        engine_version: str = ENGINE_VERSION,
        evaluator: Evaluator = certlogic.evaluate,
    ) -> None:
        self.schema = decode_schema(schema)
        self.engine_name = engine_name
        self.engine_version = engine_version
        self._evaluator = evaluator
        self._store = RuleStore(coerce_rules(rules))
        self._last_payload: dict[str, Any] | None = None
        _record_rules_loaded(len(self._store))

    @classmethod
    def from_rules_json(
        cls,
        schema: str | bytes | Mapping[str, Any],
        data: str | bytes,
        **kwargs: Any,
    ) -> "CertLogicEngine":
        """Build an engine from a serialized rule list (JSON text or bytes)."""
        return cls(schema, coerce_rules(data), **kwargs)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._store.snapshot()

    def update_rules(self, rules: Iterable[Rule] | str | bytes) -> None:
        """Atomically replace the active rule set."""
        self._store.replace(coerce_rules(rules))
        _record_rules_loaded(len(self._store))

    def find_rule(self, identifier: str) -> Rule | None:
        return self._store.find(identifier)

    def validate(
        self,
        filter: FilterParameter,
        external: ExternalParameter,
        payload: str | bytes | Mapping[str, Any],
        validation_type: ValidationType = ValidationType.ALL,
    ) -> list[ValidationResult]:
        """
        Validate a payload for a role profile.

        Args:
            filter: Destination country, region, certificate type and clock
            external: Values exposed to rule logic, including the issuer country
            payload: Certificate payload as a mapping or JSON text
            validation_type: Role profile

        Returns:
            One ValidationResult per selected rule, in selection order, or a
            single rule-less result for the two whole-payload conditions. A
            payload that is not a JSON object counts as one without "ver".
        """
        start_time = time.time()
        rules = self._store.snapshot()

        if not rules:
            logger.info("No rules loaded; payload passes without evaluation")
            results = [ValidationResult(rule=None, result=Result.PASSED)]
            _record_validation_metrics(results, time.time() - start_time)
            return results

        try:
            payload_data = decode_payload(payload)
        except PayloadError as e:
            logger.warning("Payload rejected: %s", e.message)
            payload_data = None
        self._last_payload = payload_data

        scheme_version = payload_data.get(PAYLOAD_VERSION_KEY) if payload_data else None
        if not isinstance(scheme_version, str):
            logger.warning(
                "Payload rejected: '%s' missing or not a string",
                PAYLOAD_VERSION_KEY,
            )
            results = [ValidationResult(rule=None, result=Result.FAIL)]
            _record_validation_metrics(results, time.time() - start_time)
            return results

        selected = select_rules(
            rules, filter, external.issuer_country_code, validation_type
        )
        data = build_data_context(external, payload_data)

        results: list[ValidationResult] = []
        for rule in selected:
            decision = check_compatibility(
                rule, scheme_version, self.engine_name, self.engine_version
            )
            if not decision.allowed:
                logger.debug(
                    "Rule %s (v%s) not compatible: %s",
                    rule.identifier,
                    rule.version,
                    ", ".join(decision.failed_checks),
                )
                results.append(
                    ValidationResult(
                        rule=rule,
                        result=Result.OPEN,
                        validation_errors=[
                            OpenStateError(
                                "Rule is not compatible with this payload or engine",
                                details={"failed_checks": list(decision.failed_checks)},
                            )
                        ],
                    )
                )
                continue
            results.append(dispatch(rule, data, self._evaluator))

        duration = time.time() - start_time
        logger.info(
            "Validated payload for %s/%s (%s): %d rules loaded, %d selected, duration=%.3fs",
            filter.country_code,
            filter.certificate_type.value,
            validation_type.value,
            len(rules),
            len(selected),
            duration,
        )
        _record_validation_metrics(results, duration)
        return results

    def get_details_of_error(
        self,
        rule: Rule,
        filter: FilterParameter,
        payload: str | bytes | Mapping[str, Any] | None = None,
    ) -> dict[str, str]:
        """
        Describe the affected fields of a rule with their payload values.

        Args:
            rule: Rule to describe
            filter: Supplies the certificate type
            payload: Payload to read values from; defaults to the payload of
                the most recent validate() call. That default is shared by
                every caller of this engine, so concurrent callers must pass
                the payload explicitly.

        Returns:
            Mapping of schema description to payload value
        """
        payload_data = decode_payload(payload) if payload is not None else self._last_payload
        return resolve_error_details(rule, filter.certificate_type, self.schema, payload_data)


def _record_validation_metrics(results: list[ValidationResult], duration: float) -> None:
    """
    Record validation metrics to Prometheus.

    Metrics failures never break validation.
    """
    try:
        from certlogic_engine.core.observability import metrics

        metrics.validation_duration_seconds.observe(duration)
        for result in results:
            metrics.validation_results_total.labels(result=result.result.value).inc()
    except Exception:
        logger.debug("Failed to record validation metrics", exc_info=True)


def _record_rules_loaded(count: int) -> None:
    try:
        from certlogic_engine.core.observability import metrics

        metrics.rules_loaded.set(count)
    except Exception:
        logger.debug("Failed to record rule count", exc_info=True)
