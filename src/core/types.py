"""Shared dataclasses and type helpers.

These records are the provider-neutral view of the Twilio resources the
migration reads. ``telephony.twilio_client`` builds them from SDK instances;
everything else works on these records only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class NumberType(str, Enum):
    """Shape of a phone number string."""
    TOLL_FREE = "toll_free"
    LONG_CODE = "long_code"
    SHORT_CODE = "short_code"
    UNKNOWN = "unknown"


class CampaignStatus(str, Enum):
    """A2P campaign statuses the eligibility rules care about."""
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(slots=True, frozen=True)
class SubaccountRecord:
    """A Twilio sub-account. ``auth_token`` is None when the API withheld it."""

    sid: str
    friendly_name: Optional[str] = None
    auth_token: Optional[str] = None
    status: Optional[str] = None


@dataclass(slots=True, frozen=True)
class MessagingServiceRecord:
    """A messaging service owned by a sub-account."""

    sid: str
    friendly_name: Optional[str] = None


@dataclass(slots=True, frozen=True)
class PhoneNumberRecord:
    """A phone number resource (incoming number or messaging-service sender)."""

    sid: str
    phone_number: str

    @property
    def number_type(self) -> NumberType:
        # Imported lazily to keep core free of telephony imports at module load
        from telephony.phone import classify_number

        return classify_number(self.phone_number)


@dataclass(slots=True, frozen=True)
class MessageRecord:
    """An outbound message as seen by the delivery-error telemetry."""

    sid: str
    to: Optional[str]
    from_number: Optional[str]
    error_code: Optional[int]
    date_sent: Optional[datetime]
    status: Optional[str] = None


@dataclass(slots=True, frozen=True)
class CampaignRecord:
    """An A2P 10DLC campaign (``us_app_to_person``) attached to a messaging service."""

    sid: str
    status: Optional[str]
    brand_registration_sid: Optional[str] = None
    messaging_service_sid: Optional[str] = None
    account_sid: Optional[str] = None
    description: Optional[str] = None
    message_samples: List[str] = field(default_factory=list)
    use_case: Optional[str] = None
    message_flow: Optional[str] = None
    opt_in_message: Optional[str] = None
    opt_out_message: Optional[str] = None
    help_message: Optional[str] = None
    opt_in_keywords: List[str] = field(default_factory=list)
    opt_out_keywords: List[str] = field(default_factory=list)
    help_keywords: List[str] = field(default_factory=list)
    has_embedded_links: Optional[bool] = None
    has_embedded_phone: Optional[bool] = None
    campaign_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "sid": self.sid,
            "status": self.status,
            "brand_registration_sid": self.brand_registration_sid,
            "messaging_service_sid": self.messaging_service_sid,
            "account_sid": self.account_sid,
            "description": self.description,
            "message_samples": list(self.message_samples),
            "use_case": self.use_case,
            "message_flow": self.message_flow,
            "opt_in_message": self.opt_in_message,
            "opt_out_message": self.opt_out_message,
            "help_message": self.help_message,
            "opt_in_keywords": list(self.opt_in_keywords),
            "opt_out_keywords": list(self.opt_out_keywords),
            "help_keywords": list(self.help_keywords),
            "has_embedded_links": self.has_embedded_links,
            "has_embedded_phone": self.has_embedded_phone,
            "campaign_id": self.campaign_id,
            **self.metadata,
        }


__all__ = [
    "NumberType",
    "CampaignStatus",
    "SubaccountRecord",
    "MessagingServiceRecord",
    "PhoneNumberRecord",
    "MessageRecord",
    "CampaignRecord",
]
