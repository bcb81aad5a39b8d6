"""
Opening-marker recognition for coverage records.

A record opens with a line such as::

    <file name="Utils.ts" path="/src/Utils.ts">

Matching works on the raw line text with a regular expression; attributes
are never parsed structurally.
"""

import re
from enum import Enum
from typing import Pattern

_EXTENSION = re.compile(r"\.[^.]+$")
_QUOTES = "\"'"
_NEVER = re.compile(r"(?!)")


class SearchMode(str, Enum):
    """Which attribute of the opening marker the target is compared with."""

    BY_NAME = "name"
    BY_PATH = "path"


def sanitize_target(raw: str) -> str:
    """
    Clean a loosely quoted caller identifier.

    Surrounding whitespace is removed, then one leading and one trailing
    quote character, then any whitespace that was inside the quotes.
    """
    cleaned = raw.strip()
    if cleaned and cleaned[0] in _QUOTES:
        cleaned = cleaned[1:]
    if cleaned and cleaned[-1] in _QUOTES:
        cleaned = cleaned[:-1]
    return cleaned.strip()


def has_file_extension(identifier: str) -> bool:
    """True when the identifier ends with a dot followed by non-dot characters."""
    return _EXTENSION.search(identifier) is not None


def _attribute_prefix(record_tag: str, attribute: str) -> str:
    # attribute must be a whole name: `name=` never matches `filename=`
    return rf'<{re.escape(record_tag)}\s(?:[^>]*\s)?{attribute}="'


def build_start_pattern(target: str, mode: SearchMode, record_tag: str = "file") -> Pattern[str]:
    """
    Compile the predicate recognizing the opening marker of the target record.

    Args:
        target: Sanitized identifier, matched literally
        mode: BY_PATH matches any path containing the target; BY_NAME
            requires the name attribute to equal the target, allowing a
            trailing extension only when the target has none
        record_tag: Element name of a record

    Returns:
        Compiled pattern; an empty target yields a pattern matching nothing
    """
    if not target:
        return _NEVER

    literal = re.escape(target)
    mode = SearchMode(mode)

    if mode is SearchMode.BY_PATH:
        body = rf'[^"]*{literal}[^"]*"'
        return re.compile(_attribute_prefix(record_tag, "path") + body)

    if has_file_extension(target):
        body = rf'{literal}"'
    else:
        body = rf'{literal}(?:\.[^"]+)?"'
    return re.compile(_attribute_prefix(record_tag, "name") + body)


def matches_start(pattern: Pattern[str], line: str) -> bool:
    return pattern.search(line) is not None
