"""I/O components for coverage-lens."""

from coverage_lens.io.reports import locate_report, open_report_lines

__all__ = [
    "locate_report",
    "open_report_lines",
]
