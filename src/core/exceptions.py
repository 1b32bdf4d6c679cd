"""Custom exceptions for the toll-free migration tool."""
from __future__ import annotations

from typing import Optional


class MigrationToolError(Exception):
    """Base exception for all application errors."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(MigrationToolError):
    """Raised when required configuration or operator input is missing or invalid."""

    pass


class MissingCredentialsError(ConfigurationError):
    """Raised when required API credentials are not configured."""

    pass


class ExclusionFileError(ConfigurationError):
    """Raised when the exclusion CSV cannot be found or read."""

    pass


# =============================================================================
# Telephony Errors
# =============================================================================


class TelephonyError(MigrationToolError):
    """Base exception for telephony provider errors."""

    pass


class TwilioError(TelephonyError):
    """Raised when a Twilio API call fails.

    Carries the Twilio error ``code`` and HTTP ``status`` when the SDK
    reported them.
    """

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


# =============================================================================
# Compliance Errors
# =============================================================================


class ComplianceError(MigrationToolError):
    """Base exception for compliance (A2P / toll-free verification) errors."""

    pass


class VerificationError(ComplianceError):
    """Raised when toll-free verification data cannot be assembled."""

    pass


__all__ = [
    # Base
    "MigrationToolError",
    # Configuration
    "ConfigurationError",
    "MissingCredentialsError",
    "ExclusionFileError",
    # Telephony
    "TelephonyError",
    "TwilioError",
    # Compliance
    "ComplianceError",
    "VerificationError",
]
