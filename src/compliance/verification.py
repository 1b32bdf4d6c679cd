"""Toll-free verification from existing A2P brand and campaign data.

The chain walked for every campaign:

    campaign -> brand registration -> customer profile -> end users
             -> entity assignments -> supporting document -> address

Nothing is cached between campaigns; each submission re-reads its chain.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from core.exceptions import VerificationError
from core.logging_config import get_logger
from core.types import CampaignRecord, PhoneNumberRecord

LOGGER = get_logger(__name__)

BUSINESS_INFORMATION_TYPE = "customer_profile_business_information"
AUTHORIZED_REPRESENTATIVE_TYPE = "authorized_representative_1"
# Supporting documents are the RD-prefixed objects in a profile's assignments
SUPPORTING_DOCUMENT_PREFIX = "RD"


class MessageVolume(str, Enum):
    """Monthly message volumes accepted by the Toll-Free Verification API."""
    V10 = "10"
    V100 = "100"
    V1K = "1,000"
    V10K = "10,000"
    V100K = "100,000"
    V250K = "250,000"
    V500K = "500,000"
    V750K = "750,000"
    V1M = "1,000,000"
    V5M = "5,000,000"
    V10M_PLUS = "10,000,000+"


class OptInType(str, Enum):
    """How recipients opted in to messages."""
    VERBAL = "VERBAL"
    WEB_FORM = "WEB_FORM"
    PAPER_FORM = "PAPER_FORM"
    VIA_TEXT = "VIA_TEXT"
    MOBILE_QR_CODE = "MOBILE_QR_CODE"


class UseCaseCategory(str, Enum):
    """Toll-free verification use case categories."""
    TWO_FACTOR_AUTHENTICATION = "TWO_FACTOR_AUTHENTICATION"
    ACCOUNT_NOTIFICATIONS = "ACCOUNT_NOTIFICATIONS"
    CUSTOMER_CARE = "CUSTOMER_CARE"
    CHARITY_NONPROFIT = "CHARITY_NONPROFIT"
    DELIVERY_NOTIFICATIONS = "DELIVERY_NOTIFICATIONS"
    FRAUD_ALERT_MESSAGING = "FRAUD_ALERT_MESSAGING"
    EVENTS = "EVENTS"
    HIGHER_EDUCATION = "HIGHER_EDUCATION"
    K12 = "K12"
    MARKETING = "MARKETING"
    POLLING_AND_VOTING_NON_POLITICAL = "POLLING_AND_VOTING_NON_POLITICAL"
    POLITICAL_ELECTION_CAMPAIGNS = "POLITICAL_ELECTION_CAMPAIGNS"
    PUBLIC_SERVICE_ANNOUNCEMENT = "PUBLIC_SERVICE_ANNOUNCEMENT"
    SECURITY_ALERT = "SECURITY_ALERT"


@dataclass(frozen=True)
class VerificationProfile:
    """Operator answers shared by every verification filed in a run."""

    use_case_category: UseCaseCategory
    opt_in_type: OptInType
    message_volume: MessageVolume
    opt_in_image_url: str


@dataclass
class BusinessInformation:
    business_name: Optional[str] = None
    website_url: Optional[str] = None
    email: Optional[str] = None


@dataclass
class AuthorizedRepresentative:
    phone_number: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_title: Optional[str] = None


@dataclass
class BusinessAddress:
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


@dataclass
class VerificationSubmission:
    """Everything needed to file toll-free verification for one campaign."""

    campaign: CampaignRecord
    business: BusinessInformation = field(default_factory=BusinessInformation)
    representative: AuthorizedRepresentative = field(default_factory=AuthorizedRepresentative)
    address: BusinessAddress = field(default_factory=BusinessAddress)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign": self.campaign.as_dict(),
            "business_information": vars(self.business).copy(),
            "authorized_representative": vars(self.representative).copy(),
            "address": vars(self.address).copy(),
        }


def _attributes(resource: Any) -> Dict[str, Any]:
    return getattr(resource, "attributes", None) or {}


def extract_verification_data(provider: Any, campaign: CampaignRecord) -> VerificationSubmission:
    """
    Assemble the business, representative and address data behind a campaign.

    Args:
        provider: TwilioProvider scoped to the campaign's account.
        campaign: The IN_PROGRESS campaign of the migrated service.

    Returns:
        VerificationSubmission.

    Raises:
        VerificationError: If the chain is incomplete (no brand, no supporting
            document assignment, no address on the document).
        TwilioError: If any fetch fails.
    """
    if not campaign.brand_registration_sid:
        raise VerificationError(f"Campaign {campaign.sid} has no brand registration")

    brand = provider.fetch_brand_registration(campaign.brand_registration_sid)
    profile = provider.fetch_customer_profile(brand.customer_profile_bundle_sid)

    submission = VerificationSubmission(campaign=campaign)

    for end_user in provider.list_end_users():
        if end_user.type not in (BUSINESS_INFORMATION_TYPE, AUTHORIZED_REPRESENTATIVE_TYPE):
            continue
        fetched = provider.fetch_end_user(end_user.sid)
        attributes = _attributes(fetched)
        LOGGER.debug("Fetched end user %s (%s)", fetched.sid, fetched.type)

        if fetched.type == BUSINESS_INFORMATION_TYPE:
            submission.business.business_name = attributes.get("business_name")
            submission.business.website_url = attributes.get("website_url")
        elif fetched.type == AUTHORIZED_REPRESENTATIVE_TYPE:
            submission.representative.phone_number = attributes.get("phone_number")
            submission.representative.first_name = attributes.get("first_name")
            submission.representative.last_name = attributes.get("last_name")
            submission.representative.business_title = attributes.get("business_title")

    submission.business.email = profile.email

    assignments = provider.list_entity_assignments(profile.sid)
    documents = [a for a in assignments if (a.object_sid or "").startswith(SUPPORTING_DOCUMENT_PREFIX)]
    if not documents:
        raise VerificationError(
            f"No supporting document assignment found for customer profile {profile.sid}"
        )

    document = provider.fetch_supporting_document(documents[0].object_sid)
    address_sids: List[str] = _attributes(document).get("address_sids") or []
    if not address_sids:
        raise VerificationError(f"Supporting document {document.sid} lists no address")

    address = provider.fetch_address(address_sids[0])
    submission.address = BusinessAddress(
        street=address.street,
        city=address.city,
        state=address.region,
        postal_code=address.postal_code,
        country=address.iso_country,
    )
    return submission


def build_verification_params(
    submission: VerificationSubmission,
    toll_free_number: PhoneNumberRecord,
    profile: VerificationProfile,
) -> Dict[str, Any]:
    """Map a submission onto ``tollfree_verifications.create`` keyword arguments."""
    campaign = submission.campaign
    samples = campaign.message_samples
    return {
        "tollfree_phone_number_sid": toll_free_number.sid,
        "business_name": submission.business.business_name,
        "business_website": submission.business.website_url,
        "business_street_address": submission.address.street,
        "business_city": submission.address.city,
        "business_state_province_region": submission.address.state,
        "business_postal_code": submission.address.postal_code,
        "business_country": submission.address.country,
        "business_contact_first_name": submission.representative.first_name,
        "business_contact_last_name": submission.representative.last_name,
        "business_contact_email": submission.business.email,
        "business_contact_phone": submission.representative.phone_number,
        "notification_email": submission.business.email,
        "use_case_categories": [profile.use_case_category.value],
        "use_case_summary": campaign.description,
        "production_message_sample": samples[0] if samples else None,
        "opt_in_image_urls": [profile.opt_in_image_url],
        "opt_in_type": profile.opt_in_type.value,
        "message_volume": profile.message_volume.value,
    }


def submit_toll_free_verification(
    provider: Any,
    campaign: CampaignRecord,
    toll_free_number: PhoneNumberRecord,
    profile: VerificationProfile,
) -> str:
    """
    Extract a campaign's compliance data and file toll-free verification.

    Returns:
        The verification sid.
    """
    submission = extract_verification_data(provider, campaign)
    params = build_verification_params(submission, toll_free_number, profile)
    LOGGER.info(
        "Sending toll-free verification for %s with campaign %s brand data",
        toll_free_number.phone_number, campaign.sid,
    )
    verification_sid = provider.create_toll_free_verification(**params)
    LOGGER.info("Toll-free verification %s submitted for %s", verification_sid, toll_free_number.phone_number)
    return verification_sid


__all__ = [
    "MessageVolume",
    "OptInType",
    "UseCaseCategory",
    "VerificationProfile",
    "BusinessInformation",
    "AuthorizedRepresentative",
    "BusinessAddress",
    "VerificationSubmission",
    "extract_verification_data",
    "build_verification_params",
    "submit_toll_free_verification",
]
