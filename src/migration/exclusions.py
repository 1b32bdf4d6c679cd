"""Sub-account exclusion list loading."""
from __future__ import annotations

from pathlib import Path
from typing import FrozenSet, Optional, Union

import pandas as pd
from pandas.errors import EmptyDataError, ParserError

from core.exceptions import ExclusionFileError
from core.logging_config import get_logger

LOGGER = get_logger(__name__)


def load_exclusions(file_path: Optional[Union[str, Path]]) -> FrozenSet[str]:
    """
    Read the account sids to skip from an exclusion CSV.

    The first row is a header. Every later non-blank row contributes its
    first cell, whitespace stripped.

    Args:
        file_path: Path to the CSV, or None for no exclusions.

    Returns:
        Frozen set of excluded account sids.

    Raises:
        ExclusionFileError: If the file is missing or unreadable.
    """
    if file_path is None:
        return frozenset()

    path = Path(file_path)
    if not path.is_file():
        raise ExclusionFileError(f"Exclusion file not found: {path}")

    try:
        df = pd.read_csv(
            path,
            dtype=str,
            header=0,
            # Rows with a note column or a trailing comma must not shift the
            # sid into the index
            index_col=False,
            usecols=[0],
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
        )
    except EmptyDataError:
        LOGGER.warning(f"Exclusion file {path} is empty")
        return frozenset()
    except (ParserError, UnicodeDecodeError, OSError) as e:
        raise ExclusionFileError(f"Failed to read exclusion file {path}: {e}") from e

    if df.columns.empty:
        return frozenset()

    sids = {value.strip() for value in df.iloc[:, 0] if value and value.strip()}
    LOGGER.info(f"Loaded {len(sids)} excluded account SIDs from {path}")
    return frozenset(sids)


__all__ = ["load_exclusions"]
