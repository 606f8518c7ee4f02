"""
Shipping Rate Service Exception Hierarchy

All exceptions include code, message and details so they can be logged
and serialized consistently. Each error also carries the HTTP status it
maps to at the API boundary.

Exception Hierarchy:
    ShippingRatesError
    ├── PostalCodeError
    │   ├── InvalidPostalCodeError
    │   ├── PostalCodeNotFoundError
    │   └── PostalCodeLookupError
    ├── ProviderUnavailableError
    └── InternalComputationError
"""
from typing import Optional, Dict, Any


class ShippingRatesError(Exception):
    """
    Base exception for all shipping rate errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging
        status_code: HTTP status used when the error reaches the API boundary
    """

    default_code: str = "SHIPPING_RATES_ERROR"
    default_message: str = "Shipping rate error"
    status_code: int = 500

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# POSTAL CODE ERRORS
# =============================================================================

class PostalCodeError(ShippingRatesError):
    """Base exception for postal code resolution errors."""
    default_code = "POSTAL_CODE_ERROR"


class InvalidPostalCodeError(PostalCodeError):
    """Malformed postal code. Raised before any network call."""
    default_code = "INVALID_POSTAL_CODE"
    default_message = "invalid code"
    status_code = 400


class PostalCodeNotFoundError(PostalCodeError):
    """Well-formed postal code with no match in the directory."""
    default_code = "POSTAL_CODE_NOT_FOUND"
    default_message = "not found"
    status_code = 404


class PostalCodeLookupError(PostalCodeError):
    """Directory unreachable or answered with an unusable response."""
    default_code = "POSTAL_CODE_LOOKUP_FAILED"
    default_message = "postal code lookup unavailable"
    status_code = 502


# =============================================================================
# RATE QUOTING ERRORS
# =============================================================================

class ProviderUnavailableError(ShippingRatesError):
    """
    Rate-quote provider failed, timed out or returned unusable data.

    Always recovered by the fallback pricing path.
    """
    default_code = "PROVIDER_UNAVAILABLE"
    default_message = "rate provider unavailable"
    status_code = 502

    def __init__(self, message: Optional[str] = None, reason: str = "error", **kwargs):
        details = kwargs.pop("details", {})
        details.setdefault("reason", reason)
        super().__init__(message, details=details, **kwargs)
        self.reason = reason


class InternalComputationError(ShippingRatesError):
    """Fallback formulas received out-of-contract values (caller contract violation)."""
    default_code = "INTERNAL_COMPUTATION_ERROR"
    default_message = "invalid package or distance values"
    status_code = 400
