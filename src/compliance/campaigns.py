"""Campaign eligibility for toll-free migration."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from core.logging_config import get_logger
from core.types import CampaignRecord, CampaignStatus

LOGGER = get_logger(__name__)


class EligibilityKind(str, Enum):
    """Outcome of evaluating a messaging service's campaigns."""
    INELIGIBLE = "ineligible"
    ELIGIBLE_WITH_CAMPAIGN = "eligible_with_campaign"
    ELIGIBLE_NO_CAMPAIGN = "eligible_no_campaign"


@dataclass(frozen=True)
class CampaignDecision:
    """Eligibility decision; ``campaign`` is set only for ELIGIBLE_WITH_CAMPAIGN."""

    kind: EligibilityKind
    campaign: Optional[CampaignRecord] = None
    reason: str = ""

    @property
    def proceed(self) -> bool:
        return self.kind is not EligibilityKind.INELIGIBLE

    @property
    def has_campaign(self) -> bool:
        return self.kind is EligibilityKind.ELIGIBLE_WITH_CAMPAIGN

    @classmethod
    def ineligible(cls, reason: str) -> "CampaignDecision":
        return cls(EligibilityKind.INELIGIBLE, reason=reason)

    @classmethod
    def with_campaign(cls, campaign: CampaignRecord) -> "CampaignDecision":
        return cls(
            EligibilityKind.ELIGIBLE_WITH_CAMPAIGN,
            campaign=campaign,
            reason=f"campaign {campaign.sid} is in progress",
        )

    @classmethod
    def no_campaign(cls, reason: str) -> "CampaignDecision":
        return cls(EligibilityKind.ELIGIBLE_NO_CAMPAIGN, reason=reason)


def resolve_campaign_eligibility(
    campaigns: Sequence[CampaignRecord],
    only_pending: bool,
) -> CampaignDecision:
    """
    Decide whether a messaging service may have its long codes migrated.

    Rules, first match wins:
    1. Any SUCCESS campaign: the service is already compliant, leave it alone.
    2. Any IN_PROGRESS campaign: eligible, and the last IN_PROGRESS campaign
       in provider order is the one used for toll-free verification.
    3. No campaigns at all: eligible only when ``only_pending`` is set.
    4. Campaigns in other states (e.g. FAILED): eligible, but there is no
       campaign to file verification from.

    Args:
        campaigns: Campaigns of one messaging service, in provider order.
        only_pending: Operator opted in to migrating services without a campaign.

    Returns:
        CampaignDecision.
    """
    if not campaigns:
        if only_pending:
            return CampaignDecision.no_campaign("no campaigns; pending-only mode is on")
        return CampaignDecision.ineligible("no campaigns; verification cannot be filed")

    in_progress: Optional[CampaignRecord] = None
    for campaign in campaigns:
        if campaign.status == CampaignStatus.SUCCESS.value:
            return CampaignDecision.ineligible(f"campaign {campaign.sid} is already verified")
        if campaign.status == CampaignStatus.IN_PROGRESS.value:
            in_progress = campaign

    if in_progress is not None:
        return CampaignDecision.with_campaign(in_progress)

    statuses = ", ".join(sorted({str(c.status) for c in campaigns}))
    return CampaignDecision.no_campaign(f"no active campaign (statuses: {statuses})")


__all__ = [
    "EligibilityKind",
    "CampaignDecision",
    "resolve_campaign_eligibility",
]
