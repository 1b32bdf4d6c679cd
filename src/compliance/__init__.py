"""Compliance tools: campaign eligibility and toll-free verification."""
from .background import VerificationJob, VerificationQueue
from .campaigns import CampaignDecision, EligibilityKind, resolve_campaign_eligibility
from .verification import (
    MessageVolume,
    OptInType,
    UseCaseCategory,
    VerificationProfile,
    VerificationSubmission,
    extract_verification_data,
    submit_toll_free_verification,
)

__all__ = [
    "VerificationJob",
    "VerificationQueue",
    "CampaignDecision",
    "EligibilityKind",
    "resolve_campaign_eligibility",
    "MessageVolume",
    "OptInType",
    "UseCaseCategory",
    "VerificationProfile",
    "VerificationSubmission",
    "extract_verification_data",
    "submit_toll_free_verification",
]
