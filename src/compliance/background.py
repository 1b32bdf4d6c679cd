"""Background toll-free verification submissions with outcome tracking."""
from __future__ import annotations

import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.config import get_settings
from core.logging_config import get_logger
from core.types import CampaignRecord, PhoneNumberRecord
from core.utils import utcnow
from .verification import VerificationProfile, submit_toll_free_verification

LOGGER = get_logger(__name__)
SETTINGS = get_settings()


@dataclass
class VerificationJob:
    """Track one queued verification submission."""
    job_id: str
    account_sid: str
    service_sid: str
    campaign_sid: str
    phone_number: str
    status: str = "pending"
    verification_sid: Optional[str] = None
    error: Optional[str] = None
    queued_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "account_sid": self.account_sid,
            "service_sid": self.service_sid,
            "campaign_sid": self.campaign_sid,
            "phone_number": self.phone_number,
            "status": self.status,
            "verification_sid": self.verification_sid,
            "error": self.error,
            "queued_at": self.queued_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


class VerificationQueue:
    """
    Run verification submissions off the migration loop.

    Submissions never block the caller. Each job's outcome is recorded and
    logged when it finishes, and ``drain()`` waits for all of them so a run
    never exits with submissions in flight.

    Usage:
        queue = VerificationQueue()
        queue.submit(provider, account_sid, service_sid, campaign, number, profile)
        jobs = queue.drain()
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or SETTINGS.verification_workers,
            thread_name_prefix="tfv",
        )
        self._jobs: Dict[str, VerificationJob] = {}
        self._futures: List[Future] = []
        self._lock = threading.Lock()
        self._closed = False

    def submit(
        self,
        provider: Any,
        account_sid: str,
        service_sid: str,
        campaign: CampaignRecord,
        toll_free_number: PhoneNumberRecord,
        profile: VerificationProfile,
    ) -> VerificationJob:
        """Queue verification for a newly assigned toll-free number."""
        # Workers must not share the caller's HTTP client
        job_provider = provider.for_subaccount(provider.account_sid, provider.auth_token)
        job = VerificationJob(
            job_id=f"tfv_{uuid.uuid4().hex[:12]}",
            account_sid=account_sid,
            service_sid=service_sid,
            campaign_sid=campaign.sid,
            phone_number=toll_free_number.phone_number,
        )
        with self._lock:
            if self._closed:
                raise RuntimeError("Verification queue is already drained")
            self._jobs[job.job_id] = job
            future = self._executor.submit(
                self._run, job, job_provider, campaign, toll_free_number, profile
            )
            self._futures.append(future)

        LOGGER.info(
            "Queued toll-free verification %s for %s (campaign %s)",
            job.job_id, job.phone_number, job.campaign_sid,
        )
        return job

    def _run(
        self,
        job: VerificationJob,
        provider: Any,
        campaign: CampaignRecord,
        toll_free_number: PhoneNumberRecord,
        profile: VerificationProfile,
    ) -> None:
        with self._lock:
            job.status = "running"
        try:
            verification_sid = submit_toll_free_verification(
                provider, campaign, toll_free_number, profile
            )
        except Exception as e:
            LOGGER.error(
                "Toll-free verification for %s failed (campaign %s): %s",
                job.phone_number, job.campaign_sid, e,
            )
            with self._lock:
                job.status = "failed"
                job.error = str(e)
                job.completed_at = utcnow()
            return

        with self._lock:
            job.status = "submitted"
            job.verification_sid = verification_sid
            job.completed_at = utcnow()

    @property
    def jobs(self) -> List[VerificationJob]:
        with self._lock:
            return list(self._jobs.values())

    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for f in self._futures if not f.done())

    def drain(self) -> List[VerificationJob]:
        """Wait for every queued submission and return all jobs."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)

        jobs = self.jobs
        failed = sum(1 for j in jobs if j.status == "failed")
        if jobs:
            LOGGER.info(
                "Verification queue drained: %d submitted, %d failed",
                len(jobs) - failed, failed,
            )
        return jobs


__all__ = [
    "VerificationJob",
    "VerificationQueue",
]
