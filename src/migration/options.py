"""Operator answers for a migration run."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError, field_validator

from compliance.verification import (
    MessageVolume,
    OptInType,
    UseCaseCategory,
    VerificationProfile,
)
from core.exceptions import ConfigurationError

UNLIMITED = "unlimited"


class MigrationOptions(BaseModel):
    """
    Immutable run configuration collected from the operator.

    ``max_toll_free_numbers`` of None means purchases are not capped.
    """

    model_config = ConfigDict(frozen=True)

    only_pending: bool = False
    max_toll_free_numbers: Optional[int] = Field(default=None, ge=0)
    exclusion_file: Optional[Path] = None
    message_volume: MessageVolume
    opt_in_type: OptInType
    use_case_category: UseCaseCategory
    opt_in_image_url: HttpUrl

    @field_validator("max_toll_free_numbers", mode="before")
    @classmethod
    def parse_limit(cls, v: object) -> object:
        """Accept "unlimited" (any case) as no limit."""
        if isinstance(v, str):
            stripped = v.strip()
            if stripped.lower() == UNLIMITED:
                return None
            return int(stripped)
        return v

    @field_validator("exclusion_file")
    @classmethod
    def validate_exclusion_file(cls, v: Optional[Path]) -> Optional[Path]:
        if v is not None and not v.is_file():
            raise ValueError(f"exclusion file {v} does not exist")
        return v

    def verification_profile(self) -> VerificationProfile:
        return VerificationProfile(
            use_case_category=self.use_case_category,
            opt_in_type=self.opt_in_type,
            message_volume=self.message_volume,
            opt_in_image_url=str(self.opt_in_image_url),
        )


def build_options(**values: object) -> MigrationOptions:
    """
    Validate operator answers into MigrationOptions.

    Raises:
        ConfigurationError: If any answer is missing or invalid.
    """
    try:
        return MigrationOptions(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid migration options: {problems}") from e


__all__ = [
    "UNLIMITED",
    "MigrationOptions",
    "build_options",
]
