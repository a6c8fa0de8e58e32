"""Selection of the most recent statement among repeated, dated facts."""

import re
from datetime import date
from typing import Iterable

from app.reconciliation.types import TemporalStatement

_NON_DIGITS = re.compile(r"\D")
_WIKIDATA_TIME = re.compile(r"^[+]?(\d{4})-(\d{2})-(\d{2})")


def point_in_time_key(point_in_time: str | None) -> int:
    """Turn a point-in-time qualifier into an integer ordering key.

    Only the leading eight digits (``YYYYMMDD``) are used, so a Wikidata time
    like ``"+2024-00-00T00:00:00Z"`` (year precision) becomes ``20240000`` and
    sorts before any fully specified date of the same year. Missing or
    digit-less qualifiers get key 0, the oldest possible value.
    """
    if not point_in_time:
        return 0
    digits = _NON_DIGITS.sub("", point_in_time)[:8]
    return int(digits) if digits else 0


def pick_latest(statements: Iterable[TemporalStatement]) -> TemporalStatement | None:
    """Return the statement with the most recent point-in-time qualifier.

    Ties keep the first statement in input order. Returns None for empty input.
    """
    best: TemporalStatement | None = None
    best_key = -1
    for statement in statements:
        key = point_in_time_key(statement.point_in_time)
        if key > best_key:
            best, best_key = statement, key
    return best


def point_in_time_date(point_in_time: str | None) -> date | None:
    """Calendar date of a qualifier like ``"+2024-06-30T00:00:00Z"``.

    Month or day precision markers (``00``) are read as the first month or
    day. Anything that is not a valid date yields None.
    """
    if not point_in_time:
        return None
    m = _WIKIDATA_TIME.match(point_in_time.strip())
    if not m:
        return None
    year, month, day = (int(g) for g in m.groups())
    try:
        return date(year, month or 1, day or 1)
    except ValueError:
        return None
