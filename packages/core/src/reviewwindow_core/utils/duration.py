"""ISO-8601 duration parsing and human-readable rendering.

Only the day/time subset is accepted (``PnDTnHnMn.nS``), since a review window
measured in months or years has no fixed length.
"""

from __future__ import annotations

import re
from datetime import timedelta

_DURATION_RE = re.compile(
    r"^(?P<sign>[-+]?)P"
    r"(?:(?P<days>[-+]?\d+)D)?"
    r"(?:T"
    r"(?:(?P<hours>[-+]?\d+)H)?"
    r"(?:(?P<minutes>[-+]?\d+)M)?"
    r"(?:(?P<seconds>[-+]?\d+)(?:[.,](?P<fraction>\d{0,9}))?S)?"
    r")?$",
    re.IGNORECASE,
)

_UNITS = (
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def parse_duration(text: str) -> timedelta:
    """Parse an ISO-8601 duration such as ``P3D``, ``PT2H`` or ``P1DT30M``.

    Raises ValueError for anything else, including a bare ``P`` or a ``T``
    with no time component after it.
    """
    if not isinstance(text, str):
        raise ValueError(f"Duration must be a string, got {type(text).__name__}")

    value = text.strip()
    match = _DURATION_RE.match(value)
    if match is None:
        raise ValueError(f"Invalid duration: {text!r}")

    parts = match.groupdict()
    if all(parts[k] is None for k in ("days", "hours", "minutes", "seconds")):
        raise ValueError(f"Invalid duration: {text!r}")
    if value.upper().endswith("T"):
        raise ValueError(f"Invalid duration: {text!r}")

    seconds = int(parts["seconds"] or 0)
    micros = 0
    if parts["fraction"]:
        micros = int(parts["fraction"].ljust(9, "0")[:6])
        if parts["seconds"].startswith("-"):
            micros = -micros

    result = timedelta(
        days=int(parts["days"] or 0),
        hours=int(parts["hours"] or 0),
        minutes=int(parts["minutes"] or 0),
        seconds=seconds,
        microseconds=micros,
    )
    return -result if parts["sign"] == "-" else result


def make_human_readable(duration: timedelta) -> str:
    """Render a duration as e.g. ``"1 day 3 hour"``.

    Units are computed by successive truncation, largest first; zero units are
    left out and unit names are always singular.
    """
    remaining = int(duration.total_seconds())
    parts = []
    for name, size in _UNITS:
        amount, remaining = divmod(remaining, size)
        if amount:
            parts.append(f"{amount} {name}")
    return " ".join(parts)
