"""
Domain-specific exceptions for the CertLogic validation engine.

These exceptions represent structural problems with inputs (rules, payloads)
and evaluation failures. They are mapped to HTTP status codes in the API
layer; inside the engine, per-rule failures are captured into
ValidationResult.validation_errors instead of being raised.
"""

from typing import Any


class CertLogicEngineError(Exception):
    """Base exception for all validation engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CertLogicEngineError):
    """
    Raised when input data fails validation.

    Examples:
    - Filter parameters with an unknown certificate type
    - Request body that is not a JSON object

    HTTP Status: 400 Bad Request
    """

    pass


class RuleDecodeError(ValidationError):
    """
    Raised when a serialized rule set cannot be decoded.

    Examples:
    - Input is not valid JSON
    - Input is not a list of rule objects
    - A rule is missing Identifier, Version or Logic

    HTTP Status: 400 Bad Request
    """

    pass


class PayloadError(ValidationError):
    """
    Raised when a certificate payload is structurally unusable.

    Only raised for payloads that are not JSON objects at all. A payload
    without a scheme version is NOT an error: it yields a single failed
    result instead.

    HTTP Status: 400 Bad Request
    """

    pass


class NotFoundError(CertLogicEngineError):
    """
    Raised when a requested rule does not exist in the loaded rule set.

    HTTP Status: 404 Not Found
    """

    pass


class EngineNotReadyError(CertLogicEngineError):
    """
    Raised when no engine has been configured (missing schema or rules file).

    HTTP Status: 503 Service Unavailable
    """

    pass


class CertLogicEvaluationError(CertLogicEngineError):
    """
    Raised by the CertLogic evaluator for malformed logic or type mismatches.

    Examples:
    - Unknown operator
    - Wrong operand count for an operator
    - Comparing an integer with a string

    Inside validate() this error is attached to an open result.

    HTTP Status: 422 Unprocessable Entity
    """

    def __init__(self, message: str, path: str = "$", details: dict[str, Any] | None = None):
        self.path = path
        super().__init__(message, details={"path": path, **(details or {})})


class OpenStateError(CertLogicEngineError):
    """
    Marker attached to open results.

    Signals that a rule was not conclusively evaluated: either the rule is not
    compatible with the payload or engine version, or the logic produced a
    non-boolean value.
    """

    def __init__(self, reason: str = "open state", details: dict[str, Any] | None = None):
        super().__init__(reason, details)


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    ValidationError: 400,
    RuleDecodeError: 400,
    PayloadError: 400,
    NotFoundError: 404,
    CertLogicEvaluationError: 422,
    EngineNotReadyError: 503,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
