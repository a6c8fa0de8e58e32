"""Map hyperlinks found on a company homepage to social platforms."""

import logging
from typing import Iterable, Mapping, Sequence
from urllib.parse import urlparse

from app.reconciliation.config import SOCIAL_DOMAINS

logger = logging.getLogger(__name__)


def classify_social_link(
    url: str,
    social_domains: Mapping[str, Sequence[str]] = SOCIAL_DOMAINS,
) -> str | None:
    """Return the platform key for ``url``, or None if it is not a known platform.

    The hostname must equal a configured root domain or be a subdomain of it,
    so ``www.x.com`` matches ``x.com`` but ``notx.com`` does not.
    """
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        logger.debug(f"Unparseable link skipped: {url!r}")
        return None
    if not host:
        return None
    for platform, domains in social_domains.items():
        if any(host == d or host.endswith(f".{d}") for d in domains):
            return platform
    return None


def classify_social_links(
    urls: Iterable[str],
    social_domains: Mapping[str, Sequence[str]] = SOCIAL_DOMAINS,
) -> dict[str, str]:
    """Group links by platform, keeping the first link seen for each one."""
    found: dict[str, str] = {}
    for url in urls:
        platform = classify_social_link(url, social_domains)
        if platform and platform not in found:
            found[platform] = url
    return found
