"""Testcase identifier helpers.

Testcase identifiers are stored as the path of the benchmark file on the
machine that ran it, e.g. ``C:\\bench\\testcases\\mill\\pocket.ini``. Reports
show the part after the ``testcases`` directory.
"""

from __future__ import annotations

import re
from functools import lru_cache

DEFAULT_MARKER = "testcases"


def normalize_name(raw: str, marker: str = DEFAULT_MARKER) -> str:
    """Return the display name for a raw testcase identifier.

    The name is everything after the last ``<sep>marker<sep>`` segment, where
    ``<sep>`` is either ``/`` or ``\\``. Identifiers without the marker are
    returned unchanged.

    Args:
        raw: Raw identifier as stored with the measurements
        marker: Directory name that precedes the display name

    Returns:
        Display name

    Example::

        >>> normalize_name("C:\\\\proj\\\\testcases\\\\foo.ini")
        'foo.ini'
        >>> normalize_name("bar.ini")
        'bar.ini'
    """
    pattern = _marker_pattern(marker)
    last = None
    for last in pattern.finditer(raw):
        pass
    if last is None:
        return raw
    return raw[last.end():]


@lru_cache(maxsize=8)
def _marker_pattern(marker: str) -> re.Pattern[str]:
    return re.compile(r"[\\/]" + re.escape(marker) + r"[\\/]")


def testcase_matches(raw: str, pattern: str) -> bool:
    """Check a raw identifier against an SQL ``LIKE`` pattern.

    ``%`` matches any run of characters and ``_`` matches exactly one. As in
    SQLite, matching ignores ASCII case.

    Args:
        raw: Raw testcase identifier
        pattern: LIKE pattern, e.g. ``%pocket.ini``

    Returns:
        True if the identifier matches
    """
    return _like_regex(pattern).fullmatch(raw) is not None


@lru_cache(maxsize=256)
def _like_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL | re.IGNORECASE | re.ASCII)


def as_suffix_pattern(testcase: str) -> str:
    """Turn a display name into the LIKE pattern the chart client sends.

    Patterns that already contain a ``%`` wildcard are returned as-is.
    """
    if "%" in testcase:
        return testcase
    return "%" + testcase
