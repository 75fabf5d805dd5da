"""
Domain enums matching the EU DCC business-rule JSON vocabulary.

Values are the literal strings used in serialized rule sets, so they can be
decoded directly by pydantic.
"""

from enum import Enum


class RuleType(str, Enum):
    """Type of business rule - matches the rule's "Type" attribute."""

    ACCEPTANCE = "Acceptance"
    INVALIDATION = "Invalidation"


class CertificateType(str, Enum):
    """
    Certificate kind a rule applies to - matches "CertificateType".

    Note: GENERAL rules apply regardless of the certificate sub-type.
    """

    GENERAL = "General"
    TEST = "Test"
    VACCINATION = "Vaccination"
    RECOVERY = "Recovery"


class ValidationType(str, Enum):
    """
    Perspective from which a validation is requested.

    Controls which rule sets the selector unions together.
    """

    ALL = "all"
    ISSUER = "issuer"
    DESTINATION = "destination"
    TRAVELLER = "traveller"


class Result(str, Enum):
    """Outcome of a single rule evaluation."""

    PASSED = "passed"
    FAIL = "fail"
    OPEN = "open"  # Not conclusively evaluated
