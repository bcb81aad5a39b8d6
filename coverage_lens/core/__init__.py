"""Core coverage-lens components."""

from coverage_lens.core.config import LensConfig, get_default_config, load_config
from coverage_lens.core.errors import (
    CoverageLensError,
    RecordNotFoundError,
    ReportAccessError,
    ReportNotFoundError,
)
from coverage_lens.core.matcher import SearchMode, build_start_pattern, sanitize_target
from coverage_lens.core.extractor import extract_file_tag, scan_for_record
from coverage_lens.core.lookup import get_file_coverage, lookup_file_coverage

__all__ = [
    "LensConfig",
    "get_default_config",
    "load_config",
    "CoverageLensError",
    "RecordNotFoundError",
    "ReportAccessError",
    "ReportNotFoundError",
    "SearchMode",
    "build_start_pattern",
    "sanitize_target",
    "extract_file_tag",
    "scan_for_record",
    "get_file_coverage",
    "lookup_file_coverage",
]
