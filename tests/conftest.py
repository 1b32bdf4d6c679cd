"""Pytest configuration and fixtures."""
from __future__ import annotations

import os
import sys
from datetime import timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Set test environment
os.environ.setdefault("DRY_RUN", "true")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "ACparent0000000000000000000000000")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "parent-token")

from compliance.background import VerificationJob, VerificationQueue
from core.types import (
    CampaignRecord,
    MessageRecord,
    MessagingServiceRecord,
    PhoneNumberRecord,
    SubaccountRecord,
)
from core.utils import utcnow
from migration.options import MigrationOptions
from telephony.twilio_client import TwilioProvider


LONG_CODE = PhoneNumberRecord(sid="PNlong", phone_number="+14155551234")
TOLL_FREE = PhoneNumberRecord(sid="PNtoll", phone_number="+18002345678")
SHORT_CODE = PhoneNumberRecord(sid="SCshort", phone_number="12345")


def make_campaign(status: str, sid: str = "QE0001", **kwargs) -> CampaignRecord:
    """Build a campaign record with sensible defaults."""
    defaults = dict(
        brand_registration_sid="BN0001",
        messaging_service_sid="MG0001",
        account_sid="AC0001",
        description="Appointment reminders for patients",
        message_samples=["Your appointment is tomorrow at 9am. Reply STOP to opt out."],
    )
    defaults.update(kwargs)
    return CampaignRecord(sid=sid, status=status, **defaults)


def make_error_message(
    error_code: int = 30034,
    to: str = "+12125550100",
    hours_ago: float = 24,
    sid: str = "SM0001",
) -> MessageRecord:
    """Build an outbound message that failed with ``error_code``."""
    return MessageRecord(
        sid=sid,
        to=to,
        from_number=LONG_CODE.phone_number,
        error_code=error_code,
        date_sent=utcnow() - timedelta(hours=hours_ago),
        status="undelivered",
    )


@pytest.fixture
def options() -> MigrationOptions:
    """Operator answers for a typical run."""
    return MigrationOptions(
        only_pending=False,
        max_toll_free_numbers=1,
        message_volume="1,000",
        opt_in_type="WEB_FORM",
        use_case_category="ACCOUNT_NOTIFICATIONS",
        opt_in_image_url="https://example.com/opt-in.png",
    )


@pytest.fixture
def sub_provider() -> MagicMock:
    """Provider scoped to one sub-account with one messaging service."""
    provider = MagicMock(spec=TwilioProvider)
    provider.account_sid = "AC0001"
    provider.list_messaging_services.return_value = [MessagingServiceRecord(sid="MG0001")]
    provider.list_service_numbers.return_value = [LONG_CODE, TOLL_FREE, SHORT_CODE]
    provider.list_incoming_numbers.return_value = [LONG_CODE, TOLL_FREE]
    provider.list_campaigns.return_value = [make_campaign("IN_PROGRESS")]
    provider.list_messages.return_value = [
        make_error_message(sid="SM1"),
        make_error_message(sid="SM2", error_code=30035),
        make_error_message(sid="SM3", hours_ago=100),
    ]
    provider.search_toll_free.return_value = ["+18885550100"]
    provider.purchase_number.return_value = PhoneNumberRecord(
        sid="PNbought", phone_number="+18885550100"
    )
    return provider


@pytest.fixture
def parent_provider(sub_provider) -> MagicMock:
    """Parent-account provider listing a single active sub-account."""
    provider = MagicMock(spec=TwilioProvider)
    provider.account_sid = "ACparent"
    provider.list_subaccounts.return_value = [
        SubaccountRecord(sid="AC0001", friendly_name="Clinic", auth_token="sub-token", status="active")
    ]
    provider.for_subaccount.return_value = sub_provider
    return provider


@pytest.fixture
def verification_queue() -> MagicMock:
    """Queue double that records submissions without running them."""
    queue = MagicMock(spec=VerificationQueue)
    queue.submit.side_effect = lambda provider, account_sid, service_sid, campaign, number, profile: (
        VerificationJob(
            job_id=f"tfv_{number.sid}",
            account_sid=account_sid,
            service_sid=service_sid,
            campaign_sid=campaign.sid,
            phone_number=number.phone_number,
        )
    )
    queue.drain.return_value = []
    return queue
