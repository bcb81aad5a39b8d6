"""
Two-stage coverage lookup: by name first, then by path.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple, Union

from coverage_lens.core.config import LensConfig, get_default_config
from coverage_lens.core.errors import RecordNotFoundError, ReportNotFoundError
from coverage_lens.core.extractor import extract_file_tag
from coverage_lens.core.matcher import SearchMode, sanitize_target
from coverage_lens.io.reports import candidate_locations, locate_report

logger = logging.getLogger(__name__)

# Each stage is a full, independent scan; a later stage runs only when
# every earlier one found nothing.
SEARCH_STAGES: Tuple[SearchMode, ...] = (SearchMode.BY_NAME, SearchMode.BY_PATH)


@dataclass(frozen=True)
class LookupResult:
    """A located coverage record."""

    record: str
    mode: SearchMode
    report_path: Path
    target: str


async def find_record(
    report_path: Union[str, Path],
    target: str,
    config: LensConfig,
) -> Optional[Tuple[str, SearchMode]]:
    """Run the search stages in order and return the first match with its mode."""
    for mode in SEARCH_STAGES:
        record = await extract_file_tag(
            report_path,
            target,
            mode,
            record_tag=config.markers.record_tag,
            encoding=config.report.encoding,
            errors=config.report.errors,
        )
        if record is not None:
            logger.debug(f"Matched '{target}' by {mode.value}")
            return record, mode
        logger.debug(f"No record for '{target}' by {mode.value}")
    return None


async def lookup_file_coverage(
    target_file: str,
    config: Optional[LensConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
    report_path: Optional[Union[str, Path]] = None,
) -> LookupResult:
    """
    Locate the report and extract the record for target_file.

    Args:
        target_file: Caller-supplied identifier, possibly quoted
        config: Active configuration
        environ: Environment used for the report override
        cwd: Working directory used for the default report location
        report_path: Explicit report path, bypassing location resolution

    Returns:
        The located record

    Raises:
        ReportNotFoundError: If no report exists at any known location
        ReportAccessError: If the report cannot be opened or read
        RecordNotFoundError: If no record matches in any stage
    """
    config = config or get_default_config()
    target = sanitize_target(target_file)

    if report_path is None:
        report_path = locate_report(config, environ, cwd)
        if report_path is None:
            checked = [str(path) for _, path in candidate_locations(config, environ, cwd)]
            raise ReportNotFoundError(config.report.env_var, checked)
    report_path = Path(report_path)

    found = await find_record(report_path, target, config)
    if found is None:
        raise RecordNotFoundError(target, report_path)

    record, mode = found
    return LookupResult(record=record, mode=mode, report_path=report_path, target=target)


async def get_file_coverage(
    target_file: str,
    config: Optional[LensConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> str:
    """Return the raw coverage record text for target_file."""
    result = await lookup_file_coverage(target_file, config, environ, cwd)
    return result.record
