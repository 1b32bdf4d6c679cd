"""Migration of failing long codes to toll-free numbers."""
from .exclusions import load_exclusions
from .options import MigrationOptions, build_options
from .orchestrator import MigrationReport, MigrationService, NumberMigration, ServiceOutcome
from .pool import (
    AllocationFailure,
    AllocationResult,
    AllocationSource,
    PurchaseBudget,
    allocate,
    compute_unassigned,
    plan_allocation,
)

__all__ = [
    "load_exclusions",
    "MigrationOptions",
    "build_options",
    "MigrationReport",
    "MigrationService",
    "NumberMigration",
    "ServiceOutcome",
    "AllocationFailure",
    "AllocationResult",
    "AllocationSource",
    "PurchaseBudget",
    "allocate",
    "plan_allocation",
    "compute_unassigned",
]
