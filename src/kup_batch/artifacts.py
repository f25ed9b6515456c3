"""Naming and cleanup of intermediate text and final PDF artifacts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

LOGGER = logging.getLogger(__name__)

INTERMEDIATE_SUFFIX = ".txt"
FINAL_SUFFIX = ".pdf"


@dataclass(frozen=True, slots=True)
class PeriodArtifacts:
    """Resolved file locations for one period."""

    period: str
    intermediate_path: Path
    final_path: Path


def intermediate_name(period: str) -> str:
    """Return the text file name holding generator output for a period."""

    return f"{period}{INTERMEDIATE_SUFFIX}"


def final_name(name_prefix: str, period: str) -> str:
    """Return the PDF file name rendered for a period."""

    return f"{name_prefix}-{period}{FINAL_SUFFIX}"


def artifact_paths(work_dir: Path, name_prefix: str, period: str) -> PeriodArtifacts:
    """Resolve both artifact paths for a period inside ``work_dir``."""

    return PeriodArtifacts(
        period=period,
        intermediate_path=work_dir / intermediate_name(period),
        final_path=work_dir / final_name(name_prefix, period),
    )


def discard_intermediate(artifacts: PeriodArtifacts, *, logger: logging.Logger | None = None) -> None:
    """Delete the period's text file; a file already gone is not an error."""

    effective_logger = logger or LOGGER
    path = artifacts.intermediate_path
    if not path.exists():
        effective_logger.debug("artifacts.intermediate_absent period=%s path=%s", artifacts.period, path)
        return
    path.unlink(missing_ok=True)
    effective_logger.debug("artifacts.intermediate_removed period=%s path=%s", artifacts.period, path)
