"""
Coverage report location and line streaming.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Mapping, Optional, TextIO, Tuple, Union

from coverage_lens.core.config import LensConfig
from coverage_lens.core.errors import ReportAccessError

logger = logging.getLogger(__name__)

# Size hint for one block of lines read off the event loop
READ_HINT = 64 * 1024


def candidate_locations(
    config: LensConfig,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> List[Tuple[str, Path]]:
    """
    List report locations in precedence order.

    Args:
        config: Active configuration
        environ: Environment mapping (defaults to os.environ)
        cwd: Working directory (defaults to the process cwd)

    Returns:
        (source, path) pairs; source is the env var name or "default"
    """
    environ = os.environ if environ is None else environ
    cwd = Path.cwd() if cwd is None else Path(cwd)

    candidates = []
    override = environ.get(config.report.env_var)
    if override:
        candidates.append((config.report.env_var, Path(override)))
    candidates.append(("default", cwd / config.report.default_path))
    return candidates


def locate_report(
    config: LensConfig,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> Optional[Path]:
    """Return the first existing report location, or None."""
    for source, path in candidate_locations(config, environ, cwd):
        if path.exists():
            logger.debug(f"Using coverage report from {source}: {path}")
            return path
        if source != "default":
            logger.debug(f"Override {source} points to missing path: {path}")
    return None


async def _iter_lines(handle: TextIO, path: Path) -> AsyncIterator[str]:
    """Yield lines with their terminators, suspending at each line boundary.

    Blocks of lines are read in the default executor so file I/O never
    runs on the event loop.
    """
    loop = asyncio.get_running_loop()
    while True:
        try:
            block = await loop.run_in_executor(None, handle.readlines, READ_HINT)
        except (OSError, UnicodeDecodeError) as e:
            # decode errors only surface when errors="strict" is configured
            raise ReportAccessError(path, str(e)) from e
        if not block:
            return
        for line in block:
            yield line
            await asyncio.sleep(0)


@asynccontextmanager
async def open_report_lines(
    path: Union[str, Path],
    encoding: str = "utf-8",
    errors: str = "replace",
) -> AsyncIterator[AsyncIterator[str]]:
    """
    Open a report as an async line source.

    Undecodable bytes are handled per `errors`; with the default "replace"
    a stray byte elsewhere in the report never hides a valid record.

    The handle is closed when the context exits, whether the scan finished,
    returned early or raised.

    Raises:
        ReportAccessError: If the report cannot be opened or read
    """
    path = Path(path)
    try:
        handle = path.open("r", encoding=encoding, errors=errors, newline="")
    except FileNotFoundError as e:
        raise ReportAccessError(path) from e
    except OSError as e:
        raise ReportAccessError(path, e.strerror or str(e)) from e

    lines = _iter_lines(handle, path)
    try:
        yield lines
    finally:
        await lines.aclose()
        handle.close()
