"""Long-code to toll-free migration across sub-accounts.

For every active sub-account (minus exclusions) and every messaging service
in it:

    campaigns -> eligibility -> long codes -> per number:
        recent delivery errors? -> remove -> allocate -> assign -> verify

Sub-accounts, services and numbers are processed strictly in sequence so the
purchase budget and each sub-account's toll-free pool need no locking.
Verification submissions run on a background queue and never undo a swap.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, FrozenSet, List, Optional

from compliance.background import VerificationJob, VerificationQueue
from compliance.campaigns import EligibilityKind, resolve_campaign_eligibility
from core.config import get_settings
from core.exceptions import MigrationToolError
from core.logging_config import REDACTOR, get_context_logger, get_logger
from core.types import (
    CampaignRecord,
    MessagingServiceRecord,
    PhoneNumberRecord,
    SubaccountRecord,
)
from telephony.phone import get_long_code_numbers
from telephony.telemetry import count_recent_delivery_errors
from .options import MigrationOptions
from .pool import AllocationSource, PurchaseBudget, allocate, compute_unassigned, plan_allocation

LOGGER = get_logger(__name__)
SETTINGS = get_settings()


class ServiceOutcome(str, Enum):
    """How processing of one messaging service ended."""
    SKIPPED = "skipped"
    NO_LONG_CODES = "no_long_codes"
    COMPLETED = "completed"
    HALTED = "halted"
    FAILED = "failed"


@dataclass
class NumberMigration:
    """
    One long code swapped (or, in dry-run, selected) for a toll-free number.

    ``failure`` is set when the long code was removed but no replacement
    could be allocated.
    """

    account_sid: str
    service_sid: str
    long_code: str
    long_code_sid: str
    error_count: int
    toll_free: Optional[str] = None
    toll_free_sid: Optional[str] = None
    source: Optional[str] = None
    verification_job_id: Optional[str] = None
    failure: Optional[str] = None
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_sid": self.account_sid,
            "service_sid": self.service_sid,
            "long_code": self.long_code,
            "long_code_sid": self.long_code_sid,
            "error_count": self.error_count,
            "toll_free": self.toll_free,
            "toll_free_sid": self.toll_free_sid,
            "source": self.source,
            "verification_job_id": self.verification_job_id,
            "failure": self.failure,
            "dry_run": self.dry_run,
        }


@dataclass
class MigrationReport:
    """Result of a migration run."""

    dry_run: bool = False
    subaccounts_processed: int = 0
    subaccounts_skipped: int = 0
    subaccounts_failed: int = 0
    services_evaluated: int = 0
    services_skipped: int = 0
    services_failed: int = 0
    services_halted: int = 0
    numbers_checked: int = 0
    numbers_left_in_place: int = 0
    numbers_migrated: int = 0
    numbers_reused: int = 0
    numbers_purchased: int = 0
    numbers_unreplaced: int = 0
    dry_run_candidates: int = 0
    migrations: List[NumberMigration] = field(default_factory=list)
    verifications: List[VerificationJob] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    budget: Dict[str, Any] = field(default_factory=dict)

    @property
    def verifications_submitted(self) -> int:
        return sum(1 for job in self.verifications if job.status == "submitted")

    @property
    def verifications_failed(self) -> int:
        return sum(1 for job in self.verifications if job.status == "failed")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for CLI/JSON output."""
        return {
            "dry_run": self.dry_run,
            "subaccounts_processed": self.subaccounts_processed,
            "subaccounts_skipped": self.subaccounts_skipped,
            "subaccounts_failed": self.subaccounts_failed,
            "services_evaluated": self.services_evaluated,
            "services_skipped": self.services_skipped,
            "services_failed": self.services_failed,
            "services_halted": self.services_halted,
            "numbers_checked": self.numbers_checked,
            "numbers_left_in_place": self.numbers_left_in_place,
            "numbers_migrated": self.numbers_migrated,
            "numbers_reused": self.numbers_reused,
            "numbers_purchased": self.numbers_purchased,
            "numbers_unreplaced": self.numbers_unreplaced,
            "dry_run_candidates": self.dry_run_candidates,
            "verifications_submitted": self.verifications_submitted,
            "verifications_failed": self.verifications_failed,
            "budget": self.budget,
            "errors": list(self.errors),
            "migrations": [m.to_dict() for m in self.migrations],
            "verifications": [j.to_dict() for j in self.verifications],
        }


class MigrationService:
    """Service that migrates failing long codes to toll-free numbers."""

    def __init__(
        self,
        provider: Any,
        options: MigrationOptions,
        exclusions: FrozenSet[str] = frozenset(),
        budget: Optional[PurchaseBudget] = None,
        verification_queue: Optional[VerificationQueue] = None,
        dry_run: bool = False,
    ) -> None:
        """
        Initialize the migration service.

        Args:
            provider: TwilioProvider for the parent account.
            options: Operator answers for this run.
            exclusions: Account sids never to touch.
            budget: Purchase budget (defaults to options.max_toll_free_numbers).
            verification_queue: Queue for verification submissions.
            dry_run: Read everything, change nothing.
        """
        self.provider = provider
        self.options = options
        self.exclusions = exclusions
        self.budget = budget or PurchaseBudget(maximum=options.max_toll_free_numbers)
        self.verification_queue = verification_queue or VerificationQueue()
        self.dry_run = dry_run
        self.profile = options.verification_profile()
        self.report = MigrationReport(dry_run=dry_run)

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def run(self) -> MigrationReport:
        """
        Process every listed sub-account, then wait for verification jobs.

        Raises:
            TwilioError: If the sub-account listing itself fails.
        """
        if self.dry_run:
            LOGGER.warning("[DRY RUN] No numbers will be removed, purchased or assigned")

        try:
            subaccounts = self.provider.list_subaccounts()
            LOGGER.info(f"Found {len(subaccounts)} sub-accounts")
            for subaccount in subaccounts:
                self.process_subaccount(subaccount)
        finally:
            self.finish()

        return self.report

    def finish(self) -> MigrationReport:
        """Drain the verification queue and fold its outcomes into the report."""
        self.report.verifications = self.verification_queue.drain()
        self.report.budget = self.budget.to_dict()
        return self.report

    # -------------------------------------------------------------------------
    # Sub-accounts
    # -------------------------------------------------------------------------

    def process_subaccount(self, subaccount: SubaccountRecord) -> bool:
        """
        Migrate one sub-account's services.

        Returns:
            True if the sub-account was processed, False if skipped or failed.
        """
        if not subaccount.auth_token:
            LOGGER.warning(f"Skipping subaccount SID: {subaccount.sid} due to undefined authToken.")
            self.report.subaccounts_skipped += 1
            return False

        if subaccount.sid in self.exclusions:
            LOGGER.info(f"Skipping {subaccount.sid} as it's in the exclusion list.")
            self.report.subaccounts_skipped += 1
            return False

        REDACTOR.add_secret(subaccount.auth_token)
        logger = get_context_logger(__name__, account_sid=subaccount.sid)
        logger.info(f"Processing subaccount SID: {subaccount.sid}")

        try:
            sub_provider = self.provider.for_subaccount(subaccount.sid, subaccount.auth_token)
            services = sub_provider.list_messaging_services()
            pool = compute_unassigned(sub_provider, services)

            for service in services:
                self.process_service(sub_provider, subaccount.sid, service, pool)
        except MigrationToolError as e:
            logger.error(f"Failed processing subaccount {subaccount.sid}: {e}")
            self.report.subaccounts_failed += 1
            self.report.errors.append(f"{subaccount.sid}: {e}")
            return False
        except Exception as e:
            logger.exception(f"Unexpected error processing subaccount {subaccount.sid}")
            self.report.subaccounts_failed += 1
            self.report.errors.append(f"{subaccount.sid}: {e}")
            return False

        self.report.subaccounts_processed += 1
        return True

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    def process_service(
        self,
        provider: Any,
        account_sid: str,
        service: MessagingServiceRecord,
        pool: Deque[PhoneNumberRecord],
    ) -> ServiceOutcome:
        """Evaluate and migrate one messaging service. Provider errors stay inside it."""
        logger = get_context_logger(__name__, account_sid=account_sid, service_sid=service.sid)
        logger.info(f"Messaging Service SID: {service.sid}")
        self.report.services_evaluated += 1

        try:
            outcome = self._migrate_service(provider, account_sid, service, pool, logger)
        except MigrationToolError as e:
            logger.error(f"Failed processing messaging service {service.sid}: {e}")
            self.report.services_failed += 1
            self.report.errors.append(f"{account_sid}/{service.sid}: {e}")
            return ServiceOutcome.FAILED

        if outcome is ServiceOutcome.SKIPPED:
            self.report.services_skipped += 1
        elif outcome is ServiceOutcome.HALTED:
            self.report.services_halted += 1
        return outcome

    def _migrate_service(
        self,
        provider: Any,
        account_sid: str,
        service: MessagingServiceRecord,
        pool: Deque[PhoneNumberRecord],
        logger: Any,
    ) -> ServiceOutcome:
        campaigns = provider.list_campaigns(service.sid)
        decision = resolve_campaign_eligibility(campaigns, self.options.only_pending)

        campaign: Optional[CampaignRecord]
        if decision.kind is EligibilityKind.INELIGIBLE:
            logger.info(f"Skipping messaging service {service.sid}: {decision.reason}")
            return ServiceOutcome.SKIPPED
        elif decision.kind is EligibilityKind.ELIGIBLE_WITH_CAMPAIGN:
            campaign = decision.campaign
        elif decision.kind is EligibilityKind.ELIGIBLE_NO_CAMPAIGN:
            logger.info(
                f"Messaging service {service.sid} continues without verification: {decision.reason}"
            )
            campaign = None
        else:
            raise ValueError(f"Unhandled eligibility kind: {decision.kind}")

        long_codes = get_long_code_numbers(provider.list_service_numbers(service.sid))
        if not long_codes:
            logger.info(f"No long code numbers associated with the messaging service {service.sid}")
            return ServiceOutcome.NO_LONG_CODES

        for long_code in long_codes:
            if not self._migrate_number(provider, account_sid, service, long_code, campaign, pool, logger):
                return ServiceOutcome.HALTED

        return ServiceOutcome.COMPLETED

    # -------------------------------------------------------------------------
    # Numbers
    # -------------------------------------------------------------------------

    def _migrate_number(
        self,
        provider: Any,
        account_sid: str,
        service: MessagingServiceRecord,
        long_code: PhoneNumberRecord,
        campaign: Optional[CampaignRecord],
        pool: Deque[PhoneNumberRecord],
        logger: Any,
    ) -> bool:
        """
        Migrate one long code if it has recent delivery errors.

        Returns:
            False when no replacement could be allocated and the rest of the
            service must be left alone, True otherwise.
        """
        logger.info(f"Phone Number SID: {long_code.sid}, Phone Number: {long_code.phone_number}")
        self.report.numbers_checked += 1

        error_count = count_recent_delivery_errors(provider, account_sid, long_code.phone_number)
        if error_count <= 0:
            logger.info(
                f"No delivery errors sent from {long_code.phone_number} in the last "
                f"{SETTINGS.error_window_days} days. Leaving it assigned."
            )
            self.report.numbers_left_in_place += 1
            return True

        migration = NumberMigration(
            account_sid=account_sid,
            service_sid=service.sid,
            long_code=long_code.phone_number,
            long_code_sid=long_code.sid,
            error_count=error_count,
            dry_run=self.dry_run,
        )

        if self.dry_run:
            allocation = plan_allocation(pool, self.budget)
        else:
            provider.remove_number(service.sid, long_code.sid)
            logger.info(f"Removed long code number {long_code.phone_number} from Messaging Service SID: {service.sid}")
            allocation = allocate(provider, pool, self.budget, SETTINGS.toll_free_country)

        if not allocation.allocated:
            prefix = "[DRY RUN] " if self.dry_run else ""
            logger.warning(
                f"{prefix}No toll-free number available for {long_code.phone_number} on {service.sid} "
                f"({allocation.failure.value}); leaving its remaining numbers untouched"
            )
            migration.failure = allocation.failure.value
            self.report.numbers_unreplaced += 1
            self.report.migrations.append(migration)
            return False

        migration.source = allocation.source.value
        if allocation.number is not None:
            migration.toll_free = allocation.number.phone_number
            migration.toll_free_sid = allocation.number.sid

        if self.dry_run:
            logger.info(
                f"[DRY RUN] Would replace {long_code.phone_number} ({error_count} errors) "
                f"with a {allocation.source.value} toll-free number on Messaging Service SID: {service.sid}"
            )
            self.report.dry_run_candidates += 1
            self.report.migrations.append(migration)
            return True

        toll_free = allocation.number
        provider.assign_number(service.sid, toll_free.sid)
        logger.info(
            f"Assigned {allocation.source.value} toll-free number {toll_free.phone_number} "
            f"to Messaging Service SID: {service.sid}"
        )

        self.report.numbers_migrated += 1
        if allocation.source is AllocationSource.PURCHASE:
            self.report.numbers_purchased += 1
        else:
            self.report.numbers_reused += 1

        if campaign is not None:
            job = self.verification_queue.submit(
                provider, account_sid, service.sid, campaign, toll_free, self.profile
            )
            migration.verification_job_id = job.job_id

        self.report.migrations.append(migration)
        return True


__all__ = [
    "ServiceOutcome",
    "NumberMigration",
    "MigrationReport",
    "MigrationService",
]
