"""Core module exports."""
from __future__ import annotations

from core.config import Settings, get_settings, reload_settings
from core.exceptions import (
    # Base
    MigrationToolError,
    # Configuration
    ConfigurationError,
    MissingCredentialsError,
    ExclusionFileError,
    # Telephony
    TelephonyError,
    TwilioError,
    # Compliance
    ComplianceError,
    VerificationError,
)
from core.logging_config import (
    setup_logging,
    get_logger,
    get_context_logger,
    JSONFormatter,
    ContextTextFormatter,
    SecretRedactingFilter,
    ContextLogger,
)
from core.types import (
    NumberType,
    CampaignStatus,
    SubaccountRecord,
    MessagingServiceRecord,
    PhoneNumberRecord,
    MessageRecord,
    CampaignRecord,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "reload_settings",
    # Exceptions
    "MigrationToolError",
    "ConfigurationError",
    "MissingCredentialsError",
    "ExclusionFileError",
    "TelephonyError",
    "TwilioError",
    "ComplianceError",
    "VerificationError",
    # Logging
    "setup_logging",
    "get_logger",
    "get_context_logger",
    "JSONFormatter",
    "ContextTextFormatter",
    "SecretRedactingFilter",
    "ContextLogger",
    # Records
    "NumberType",
    "CampaignStatus",
    "SubaccountRecord",
    "MessagingServiceRecord",
    "PhoneNumberRecord",
    "MessageRecord",
    "CampaignRecord",
]
