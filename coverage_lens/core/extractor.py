"""
Streaming extraction of a single coverage record.

The report is consumed line by line; only the lines of the matched record
are ever held in memory.
"""

import logging
from pathlib import Path
from typing import AsyncIterable, Optional, Pattern, Union

from coverage_lens.core.matcher import SearchMode, build_start_pattern, matches_start
from coverage_lens.io.reports import open_report_lines

logger = logging.getLogger(__name__)


async def scan_for_record(
    lines: AsyncIterable[str],
    start_pattern: Pattern[str],
    closing_marker: str = "</file>",
) -> Optional[str]:
    """
    Capture the first record whose opening line matches start_pattern.

    Lines are kept verbatim, terminators included. Scanning stops at the
    first captured line containing closing_marker, which may be the
    opening line itself.

    Returns:
        The record text, or None if the input ends before a record closes
    """
    capturing = False
    captured = []

    async for line in lines:
        if not capturing and matches_start(start_pattern, line):
            capturing = True

        if capturing:
            captured.append(line)
            if closing_marker in line:
                return "".join(captured)

    if capturing:
        logger.warning("Record opened but never closed before end of report")
    return None


async def extract_file_tag(
    report_path: Union[str, Path],
    target: str,
    mode: SearchMode = SearchMode.BY_NAME,
    *,
    record_tag: str = "file",
    encoding: str = "utf-8",
    errors: str = "replace",
) -> Optional[str]:
    """
    Run one full scan of the report for the target in the given mode.

    Args:
        report_path: Report file to read
        target: Sanitized target identifier
        mode: Search mode for this scan
        record_tag: Element name of a record
        encoding: Report text encoding
        errors: Codec error handler for undecodable bytes

    Returns:
        Record text or None when no record matches

    Raises:
        ReportAccessError: If the report cannot be opened or read
    """
    start_pattern = build_start_pattern(target, mode, record_tag)
    closing_marker = f"</{record_tag}>"

    async with open_report_lines(report_path, encoding, errors) as lines:
        return await scan_for_record(lines, start_pattern, closing_marker)
