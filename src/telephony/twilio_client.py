"""Twilio provider for the migration.

Wraps the Twilio REST client with:
- Per-request timeouts
- Uniform error translation (every SDK or transport failure becomes TwilioError)
- Conversion of SDK instances to the records in ``core.types``

No call is retried here.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from core.config import get_settings
from core.exceptions import MissingCredentialsError, TwilioError
from core.logging_config import get_logger
from core.types import (
    CampaignRecord,
    MessageRecord,
    MessagingServiceRecord,
    PhoneNumberRecord,
    SubaccountRecord,
)

LOGGER = get_logger(__name__)
SETTINGS = get_settings()

T = TypeVar("T")

# Campaign attributes kept verbatim in CampaignRecord.metadata
CAMPAIGN_METADATA_FIELDS = (
    "is_externally_registered",
    "rate_limits",
    "date_created",
    "date_updated",
    "url",
    "mock",
    "errors",
)


def _to_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def campaign_from_instance(instance: Any) -> CampaignRecord:
    """Build a CampaignRecord from a ``us_app_to_person`` instance."""
    return CampaignRecord(
        sid=instance.sid,
        status=instance.campaign_status,
        brand_registration_sid=instance.brand_registration_sid,
        messaging_service_sid=instance.messaging_service_sid,
        account_sid=instance.account_sid,
        description=instance.description,
        message_samples=_to_list(instance.message_samples),
        use_case=instance.us_app_to_person_usecase,
        message_flow=instance.message_flow,
        opt_in_message=instance.opt_in_message,
        opt_out_message=instance.opt_out_message,
        help_message=instance.help_message,
        opt_in_keywords=_to_list(instance.opt_in_keywords),
        opt_out_keywords=_to_list(instance.opt_out_keywords),
        help_keywords=_to_list(instance.help_keywords),
        has_embedded_links=instance.has_embedded_links,
        has_embedded_phone=instance.has_embedded_phone,
        campaign_id=instance.campaign_id,
        metadata={name: getattr(instance, name, None) for name in CAMPAIGN_METADATA_FIELDS},
    )


class TwilioProvider:
    """
    Account-scoped Twilio provider.

    One instance talks to one account: the parent account (to enumerate
    sub-accounts) or a single sub-account (everything else).

    Usage:
        parent = get_twilio_provider()
        for subaccount in parent.list_subaccounts():
            provider = parent.for_subaccount(subaccount.sid, subaccount.auth_token)
            services = provider.list_messaging_services()
    """

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[Client] = None,
    ):
        """
        Initialize the provider.

        Args:
            account_sid: Twilio Account SID (uses env if not provided).
            auth_token: Twilio Auth Token (uses env if not provided).
            timeout_seconds: HTTP timeout per request (uses settings if not provided).
            client: Pre-built Twilio client, mainly for tests.
        """
        self.account_sid = account_sid or SETTINGS.twilio_account_sid
        self.auth_token = auth_token or SETTINGS.twilio_auth_token
        self.timeout_seconds = timeout_seconds or SETTINGS.twilio_timeout_seconds
        self._client: Optional[Client] = client

    def _get_client(self) -> Client:
        """Get or create the Twilio REST client."""
        if self._client is None:
            if not self.account_sid or not self.auth_token:
                raise MissingCredentialsError("Twilio credentials not configured")
            http_client = TwilioHttpClient(timeout=self.timeout_seconds)
            self._client = Client(self.account_sid, self.auth_token, http_client=http_client)
        return self._client

    def is_configured(self) -> bool:
        """Check if the provider has credentials."""
        return bool(self.account_sid and self.auth_token)

    def for_subaccount(self, account_sid: str, auth_token: str) -> "TwilioProvider":
        """Return a provider authenticated as the given sub-account."""
        return TwilioProvider(
            account_sid=account_sid,
            auth_token=auth_token,
            timeout_seconds=self.timeout_seconds,
        )

    def _call(self, operation: str, func: Callable[[], T]) -> T:
        """Run one SDK call, translating every failure into TwilioError."""
        try:
            return func()
        except TwilioRestException as e:
            LOGGER.error(f"Twilio error during {operation} on {self.account_sid}: {e.msg} (code={e.code})")
            raise TwilioError(f"{operation} failed: {e.msg}", code=e.code, status=e.status) from e
        except (TwilioException, OSError) as e:
            LOGGER.error(f"Twilio transport error during {operation} on {self.account_sid}: {e}")
            raise TwilioError(f"{operation} failed: {e}") from e

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def list_subaccounts(self, status: Optional[str] = None) -> List[SubaccountRecord]:
        """
        List the accounts visible to this (parent) account by status.

        Twilio includes the parent itself in this listing, so it is migrated
        like any sub-account unless the exclusion list names it.
        """
        client = self._get_client()
        status = status or SETTINGS.subaccount_status
        accounts = self._call(
            "list sub-accounts",
            lambda: client.api.v2010.accounts.list(status=status),
        )
        return [
            SubaccountRecord(
                sid=account.sid,
                friendly_name=account.friendly_name,
                auth_token=account.auth_token,
                status=account.status,
            )
            for account in accounts
        ]

    # -------------------------------------------------------------------------
    # Messaging services and their senders
    # -------------------------------------------------------------------------

    def list_messaging_services(self) -> List[MessagingServiceRecord]:
        client = self._get_client()
        services = self._call(
            "list messaging services",
            lambda: client.messaging.v1.services.list(),
        )
        return [MessagingServiceRecord(sid=s.sid, friendly_name=s.friendly_name) for s in services]

    def list_service_numbers(self, service_sid: str) -> List[PhoneNumberRecord]:
        client = self._get_client()
        numbers = self._call(
            f"list numbers of {service_sid}",
            lambda: client.messaging.v1.services(service_sid).phone_numbers.list(),
        )
        return [PhoneNumberRecord(sid=n.sid, phone_number=n.phone_number) for n in numbers]

    def assign_number(self, service_sid: str, phone_number_sid: str) -> None:
        client = self._get_client()
        self._call(
            f"assign {phone_number_sid} to {service_sid}",
            lambda: client.messaging.v1.services(service_sid).phone_numbers.create(
                phone_number_sid=phone_number_sid
            ),
        )
        LOGGER.info(f"Assigned {phone_number_sid} to messaging service {service_sid}")

    def remove_number(self, service_sid: str, phone_number_sid: str) -> None:
        client = self._get_client()
        self._call(
            f"remove {phone_number_sid} from {service_sid}",
            lambda: client.messaging.v1.services(service_sid).phone_numbers(phone_number_sid).delete(),
        )
        LOGGER.info(f"Removed {phone_number_sid} from messaging service {service_sid}")

    def list_campaigns(self, service_sid: str) -> List[CampaignRecord]:
        client = self._get_client()
        campaigns = self._call(
            f"list campaigns of {service_sid}",
            lambda: client.messaging.v1.services(service_sid).us_app_to_person.list(),
        )
        return [campaign_from_instance(c) for c in campaigns]

    # -------------------------------------------------------------------------
    # Incoming numbers
    # -------------------------------------------------------------------------

    def list_incoming_numbers(self) -> List[PhoneNumberRecord]:
        client = self._get_client()
        numbers = self._call(
            "list incoming numbers",
            lambda: client.incoming_phone_numbers.list(),
        )
        return [PhoneNumberRecord(sid=n.sid, phone_number=n.phone_number) for n in numbers]

    def search_toll_free(self, country: Optional[str] = None, limit: int = 1) -> List[str]:
        """Return up to ``limit`` purchasable toll-free numbers in ``country``."""
        client = self._get_client()
        country = country or SETTINGS.toll_free_country
        available = self._call(
            f"search toll-free numbers in {country}",
            lambda: client.available_phone_numbers(country).toll_free.list(limit=limit),
        )
        return [a.phone_number for a in available]

    def purchase_number(self, phone_number: str) -> PhoneNumberRecord:
        client = self._get_client()
        purchased = self._call(
            f"purchase {phone_number}",
            lambda: client.incoming_phone_numbers.create(phone_number=phone_number),
        )
        LOGGER.info(f"Purchased {purchased.phone_number} ({purchased.sid}) on {self.account_sid}")
        return PhoneNumberRecord(sid=purchased.sid, phone_number=purchased.phone_number)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def list_messages(
        self,
        from_number: str,
        sent_after: Optional[datetime] = None,
    ) -> List[MessageRecord]:
        """List messages sent from ``from_number``, optionally after ``sent_after``."""
        client = self._get_client()
        params: Dict[str, Any] = {"from_": from_number}
        if sent_after is not None:
            params["date_sent_after"] = sent_after
        messages = self._call(
            f"list messages from {from_number}",
            lambda: client.messages.list(**params),
        )
        return [
            MessageRecord(
                sid=m.sid,
                to=m.to,
                from_number=m.from_,
                error_code=m.error_code,
                date_sent=m.date_sent,
                status=m.status,
            )
            for m in messages
        ]

    # -------------------------------------------------------------------------
    # Compliance (brand, Trust Hub, regulatory documents)
    # -------------------------------------------------------------------------

    def fetch_brand_registration(self, brand_sid: str) -> Any:
        client = self._get_client()
        return self._call(
            f"fetch brand {brand_sid}",
            lambda: client.messaging.v1.brand_registrations(brand_sid).fetch(),
        )

    def fetch_customer_profile(self, profile_sid: str) -> Any:
        client = self._get_client()
        return self._call(
            f"fetch customer profile {profile_sid}",
            lambda: client.trusthub.v1.customer_profiles(profile_sid).fetch(),
        )

    def list_end_users(self) -> List[Any]:
        client = self._get_client()
        return self._call("list end users", lambda: client.trusthub.v1.end_users.list())

    def fetch_end_user(self, end_user_sid: str) -> Any:
        client = self._get_client()
        return self._call(
            f"fetch end user {end_user_sid}",
            lambda: client.trusthub.v1.end_users(end_user_sid).fetch(),
        )

    def list_entity_assignments(self, profile_sid: str) -> List[Any]:
        client = self._get_client()
        return self._call(
            f"list entity assignments of {profile_sid}",
            lambda: client.trusthub.v1.customer_profiles(
                profile_sid
            ).customer_profiles_entity_assignments.list(),
        )

    def fetch_supporting_document(self, document_sid: str) -> Any:
        client = self._get_client()
        return self._call(
            f"fetch supporting document {document_sid}",
            lambda: client.numbers.v2.regulatory_compliance.supporting_documents(document_sid).fetch(),
        )

    def fetch_address(self, address_sid: str) -> Any:
        client = self._get_client()
        return self._call(
            f"fetch address {address_sid}",
            lambda: client.addresses(address_sid).fetch(),
        )

    def create_toll_free_verification(self, **params: Any) -> str:
        """Submit a toll-free verification request and return its sid."""
        client = self._get_client()
        verification = self._call(
            "create toll-free verification",
            lambda: client.messaging.v1.tollfree_verifications.create(**params),
        )
        return verification.sid


# Module-level singleton for the parent account
_provider: Optional[TwilioProvider] = None


def get_twilio_provider() -> TwilioProvider:
    """Get the global parent-account TwilioProvider instance."""
    global _provider
    if _provider is None:
        _provider = TwilioProvider()
    return _provider


def reset_twilio_provider() -> None:
    """Reset the global provider (useful for testing)."""
    global _provider
    _provider = None


__all__ = [
    "TwilioProvider",
    "campaign_from_instance",
    "get_twilio_provider",
    "reset_twilio_provider",
]
