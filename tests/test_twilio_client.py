"""Test the Twilio provider wrapper."""
from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from twilio.base.exceptions import TwilioException, TwilioRestException

# Add src to path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from core.exceptions import MissingCredentialsError, TwilioError
from core.types import PhoneNumberRecord
from telephony.twilio_client import (
    TwilioProvider,
    campaign_from_instance,
    get_twilio_provider,
    reset_twilio_provider,
)


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def provider(client) -> TwilioProvider:
    return TwilioProvider(account_sid="AC0001", auth_token="token", client=client)


def test_missing_credentials():
    """A provider without credentials cannot build a client."""
    provider = TwilioProvider(account_sid="", auth_token="")
    provider.account_sid = None
    provider.auth_token = None

    assert provider.is_configured() is False
    with pytest.raises(MissingCredentialsError):
        provider.list_messaging_services()


def test_client_uses_timeout():
    """The REST client is built with a per-request timeout."""
    provider = TwilioProvider(account_sid="AC0001", auth_token="token", timeout_seconds=12)

    with patch("telephony.twilio_client.TwilioHttpClient") as http_cls, patch(
        "telephony.twilio_client.Client"
    ) as client_cls:
        provider._get_client()

    http_cls.assert_called_once_with(timeout=12)
    client_cls.assert_called_once_with("AC0001", "token", http_client=http_cls.return_value)


def test_for_subaccount_keeps_timeout(provider):
    sub = provider.for_subaccount("AC0002", "sub-token")

    assert sub.account_sid == "AC0002"
    assert sub.auth_token == "sub-token"
    assert sub.timeout_seconds == provider.timeout_seconds


def test_for_subaccount_builds_its_own_client(provider, client):
    """A derived provider never reuses the parent's REST client."""
    same_account = provider.for_subaccount(provider.account_sid, provider.auth_token)

    with patch("telephony.twilio_client.TwilioHttpClient"), patch(
        "telephony.twilio_client.Client"
    ) as client_cls:
        built = same_account._get_client()

    assert built is client_cls.return_value
    assert built is not client
    assert provider._get_client() is client


def test_list_subaccounts(provider, client):
    client.api.v2010.accounts.list.return_value = [
        SimpleNamespace(sid="AC0001", friendly_name="Parent", auth_token="t1", status="active"),
        SimpleNamespace(sid="AC0002", friendly_name="Clinic", auth_token="t2", status="active"),
    ]

    accounts = provider.list_subaccounts(status="active")

    assert [a.sid for a in accounts] == ["AC0001", "AC0002"]
    assert accounts[1].auth_token == "t2"
    client.api.v2010.accounts.list.assert_called_once_with(status="active")


def test_rest_error_translated(provider, client):
    client.api.v2010.accounts.list.side_effect = TwilioRestException(
        401, "/Accounts", msg="Authenticate", code=20003
    )

    with pytest.raises(TwilioError) as exc_info:
        provider.list_subaccounts()

    assert exc_info.value.code == 20003
    assert exc_info.value.status == 401


def test_transport_error_translated(provider, client):
    client.incoming_phone_numbers.list.side_effect = OSError("timed out")

    with pytest.raises(TwilioError, match="timed out"):
        provider.list_incoming_numbers()


def test_sdk_error_translated(provider, client):
    client.messaging.v1.services.list.side_effect = TwilioException("bad response")

    with pytest.raises(TwilioError):
        provider.list_messaging_services()


def test_assign_and_remove_number(provider, client):
    provider.assign_number("MG0001", "PN0001")
    client.messaging.v1.services.assert_called_with("MG0001")
    client.messaging.v1.services.return_value.phone_numbers.create.assert_called_once_with(
        phone_number_sid="PN0001"
    )

    provider.remove_number("MG0001", "PN0002")
    phone_numbers = client.messaging.v1.services.return_value.phone_numbers
    phone_numbers.assert_called_once_with("PN0002")
    phone_numbers.return_value.delete.assert_called_once_with()


def test_search_and_purchase(provider, client):
    client.available_phone_numbers.return_value.toll_free.list.return_value = [
        SimpleNamespace(phone_number="+18885550100")
    ]
    client.incoming_phone_numbers.create.return_value = SimpleNamespace(
        sid="PNbought", phone_number="+18885550100"
    )

    found = provider.search_toll_free(country="US", limit=1)
    bought = provider.purchase_number(found[0])

    assert found == ["+18885550100"]
    assert bought == PhoneNumberRecord(sid="PNbought", phone_number="+18885550100")
    client.available_phone_numbers.assert_called_once_with("US")
    client.available_phone_numbers.return_value.toll_free.list.assert_called_once_with(limit=1)
    client.incoming_phone_numbers.create.assert_called_once_with(phone_number="+18885550100")


def test_list_messages_filters_server_side(provider, client):
    sent = datetime(2026, 10, 1, tzinfo=timezone.utc)
    client.messages.list.return_value = [
        SimpleNamespace(
            sid="SM1",
            to="+12125550100",
            from_="+14155551234",
            error_code=30034,
            date_sent=sent,
            status="undelivered",
        )
    ]

    messages = provider.list_messages("+14155551234", sent_after=sent)

    client.messages.list.assert_called_once_with(from_="+14155551234", date_sent_after=sent)
    assert messages[0].error_code == 30034
    assert messages[0].from_number == "+14155551234"


def test_create_toll_free_verification(provider, client):
    client.messaging.v1.tollfree_verifications.create.return_value = SimpleNamespace(sid="HH0001")

    sid = provider.create_toll_free_verification(tollfree_phone_number_sid="PN0001")

    assert sid == "HH0001"
    client.messaging.v1.tollfree_verifications.create.assert_called_once_with(
        tollfree_phone_number_sid="PN0001"
    )


def test_campaign_from_instance():
    instance = MagicMock()
    instance.sid = "QE0001"
    instance.campaign_status = "IN_PROGRESS"
    instance.brand_registration_sid = "BN0001"
    instance.description = "Reminders"
    instance.message_samples = ["Sample one", "Sample two"]
    instance.opt_in_keywords = None

    campaign = campaign_from_instance(instance)

    assert campaign.sid == "QE0001"
    assert campaign.status == "IN_PROGRESS"
    assert campaign.brand_registration_sid == "BN0001"
    assert campaign.message_samples == ["Sample one", "Sample two"]
    assert campaign.opt_in_keywords == []


def test_provider_singleton():
    reset_twilio_provider()
    first = get_twilio_provider()

    assert get_twilio_provider() is first
    reset_twilio_provider()
    assert get_twilio_provider() is not first
    reset_twilio_provider()
