"""
coverage-lens: per-file record extraction from Clover coverage reports.

Streams a coverage report line by line, extracts the record for one source
file, and exposes the lookup as an MCP tool over stdio.
"""

__version__ = "1.0.0"

from coverage_lens.core.config import LensConfig
from coverage_lens.core.lookup import get_file_coverage, lookup_file_coverage

__all__ = [
    "LensConfig",
    "get_file_coverage",
    "lookup_file_coverage",
    "__version__",
]
