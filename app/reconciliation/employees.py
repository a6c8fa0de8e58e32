"""Headcount extraction from free text such as "182,502 (June 2024)"."""

import logging
import re
from datetime import date

from app.models import EmployeeSnapshot

logger = logging.getLogger(__name__)

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?"
    r"|Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?"
)

# Ordered by priority: the first pattern that matches wins
_ISO_DATE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
_DAY_MONTH_YEAR = re.compile(rf"\b(\d{{1,2}})\s+({_MONTH})\s+(\d{{4}})\b", re.IGNORECASE)
_MONTH_DAY_YEAR = re.compile(rf"\b({_MONTH})\s+(\d{{1,2}}),?\s+(\d{{4}})\b", re.IGNORECASE)
_MONTH_YEAR = re.compile(rf"\b({_MONTH})\s+(\d{{4}})\b", re.IGNORECASE)
_YEAR = re.compile(r"\b(\d{4})\b")

_PARENTHETICAL = re.compile(r"\(([^)]+)\)")
_SEPARATORS = re.compile(r"[,.\s]")
# Fewer than three digits is more likely a footnote or ordinal than a headcount
_COUNT = re.compile(r"\d{3,}")


def _month_number(token: str) -> int:
    return _MONTHS[token.strip(".")[:3].lower()]


def _find_date(text: str) -> tuple[date | None, tuple[int, int] | None]:
    """Find the highest-priority date form in ``text``.

    Returns the parsed date (None if the matched text is not a real calendar
    date) and the span of the matched text, or ``(None, None)`` if nothing
    matched.
    """
    try:
        if m := _ISO_DATE.search(text):
            y, mo, d = (int(g) for g in m.groups())
            return date(y, mo, d), m.span()
        if m := _DAY_MONTH_YEAR.search(text):
            return date(int(m.group(3)), _month_number(m.group(2)), int(m.group(1))), m.span()
        if m := _MONTH_DAY_YEAR.search(text):
            return date(int(m.group(3)), _month_number(m.group(1)), int(m.group(2))), m.span()
        if m := _MONTH_YEAR.search(text):
            return date(int(m.group(2)), _month_number(m.group(1)), 1), m.span()
        if m := _YEAR.search(text):
            return date(int(m.group(1)), 1, 1), m.span()
    except ValueError as e:
        logger.debug(f"Discarding unparseable employee date in {text!r}: {e}")
        return None, m.span()
    return None, None


def parse_employees_text(raw: str | None) -> EmployeeSnapshot | None:
    """Extract a headcount and its as-of date from unstructured text.

    The date is looked for inside a parenthetical if there is one, else in
    the whole string. The count is the first run of 3+ digits once thousands
    separators and whitespace are removed, ignoring the text that was
    consumed as the date (so "founded 1998" yields only a date).

    Returns:
        EmployeeSnapshot, or None if neither a count nor a date was found.
    """
    if not raw or not raw.strip():
        return None

    paren = _PARENTHETICAL.search(raw)
    offset = paren.start(1) if paren else 0
    as_of, date_span = _find_date(paren.group(1) if paren else raw)

    count_source = raw
    if date_span:
        start, end = date_span
        count_source = raw[:offset + start] + " " + raw[offset + end:]
    count_match = _COUNT.search(_SEPARATORS.sub("", count_source))
    count = int(count_match.group(0)) if count_match else None

    if count is None and as_of is None:
        return None
    return EmployeeSnapshot(count=count, as_of=as_of)
