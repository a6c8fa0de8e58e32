"""Primary ticker selection across exchanges."""

from typing import Sequence

from app.reconciliation.config import EXCHANGE_PREFERENCE
from app.reconciliation.types import TickerCandidate


def choose_primary_ticker(
    candidates: Sequence[TickerCandidate],
    exchange_preference: Sequence[str] = EXCHANGE_PREFERENCE,
) -> str | None:
    """Pick the symbol that best represents the organization.

    Walks the ranked exchange list and returns the first candidate (in input
    order) whose exchange label contains the ranked name, case-insensitively.
    Falls back to the first candidate when no exchange matches.
    """
    if not candidates:
        return None
    for preferred in exchange_preference:
        wanted = preferred.upper()
        for candidate in candidates:
            if wanted in (candidate.exchange_label or "").upper():
                return candidate.symbol
    return candidates[0].symbol
