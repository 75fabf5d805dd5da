"""
CertLogic rule engine.

This package selects, gates and evaluates EU DCC business rules against a
certificate payload.

Key Components:
- selector: Picks at most one rule per identifier for a role profile
- gate: Schema and engine version compatibility checks
- certlogic: The CertLogic expression evaluator
- dispatcher: Maps evaluator outcomes to passed / fail / open
- engine: Top-level validation procedure and rule set replacement
- error_details: Affected-field descriptions for reviewers

Design Principles:
- Rules are data: nothing here is specific to one jurisdiction
- Every selected rule yields exactly one result; no rule aborts the others
- Rule sets are replaced by swapping immutable snapshots
"""

from certlogic_engine.engine.certlogic import evaluate
from certlogic_engine.engine.engine import ENGINE_NAME, ENGINE_VERSION, CertLogicEngine
from certlogic_engine.engine.selector import select_rules

__all__ = [
    "CertLogicEngine",
    "ENGINE_NAME",
    "ENGINE_VERSION",
    "evaluate",
    "select_rules",
]
