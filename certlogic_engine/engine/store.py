"""
Rule store with snapshot-and-swap semantics.

The active rule set is held as an immutable tuple. Replacement builds a new
tuple and swaps the reference; readers call snapshot() once per validation
and iterate that local reference, so an in-flight validation never observes
a partially updated rule set and readers never take a lock.
"""

import logging
import threading
from collections.abc import Iterable

from certlogic_engine.domain.models import Rule

logger = logging.getLogger(__name__)


class RuleStore:
    """Holds the active rule set for one engine instance."""

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules)
        # Serializes writers only; reads are a single attribute load.
        self._write_lock = threading.Lock()

    def snapshot(self) -> tuple[Rule, ...]:
        """Return the current immutable rule set."""
        return self._rules

    def replace(self, rules: Iterable[Rule]) -> tuple[Rule, ...]:
        """
        Atomically replace the active rule set.

        Args:
            rules: New rules; materialized before the swap

        Returns:
            The previous snapshot
        """
        new_rules = tuple(rules)
        with self._write_lock:
            previous = self._rules
            self._rules = new_rules
        logger.info(
            "Rule set replaced: %d -> %d rules",
            len(previous),
            len(new_rules),
        )
        return previous

    def find(self, identifier: str) -> Rule | None:
        """Return the highest-version rule with the given identifier, if any."""
        best: Rule | None = None
        for rule in self._rules:
            if rule.identifier != identifier:
                continue
            if best is None or rule.version_int > best.version_int:
                best = rule
        return best

    def __len__(self) -> int:
        return len(self._rules)
