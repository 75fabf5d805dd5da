"""
Pydantic schemas for API request/response validation.
"""

# Re-export schemas for convenient imports.
from .validation import ErrorDetailsRequest as ErrorDetailsRequest
from .validation import ErrorDetailsResponse as ErrorDetailsResponse
from .validation import RuleSummary as RuleSummary
from .validation import RulesReplaceResponse as RulesReplaceResponse
from .validation import ValidateRequest as ValidateRequest
from .validation import ValidateResponse as ValidateResponse
from .validation import ValidationResultResponse as ValidationResultResponse
