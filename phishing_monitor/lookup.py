# ChainAbuse corroboration lookup: best-effort enrichment, never a gate.

# Whatever happens inside lookup() (timeout, non-2xx, transport error, a
# page layout change that defeats every regex) the caller gets a normalized
# LookupResult. A lookup that fails counts as zero reports.

import asyncio
import logging
from typing import Iterable
from urllib.parse import quote

import aiohttp

from phishing_monitor.config import (
    BROWSER_USER_AGENT,
    CHAINABUSE_BASE_URL,
    LOOKUP_TIMEOUT_SECONDS,
)
from phishing_monitor.errors import LookupTimeout
from phishing_monitor.models import LookupResult
from phishing_monitor.parser import extract_report_count
from phishing_monitor.ports import LookupPort

log = logging.getLogger(__name__)

_BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Cache-Control": "no-cache",
}


def chainabuse_url(identifier: str, base_url: str = CHAINABUSE_BASE_URL) -> str:
    """
    ChainAbuse expects the full URL, percent-encoded as one path segment.

    >>> chainabuse_url("evil.example")
    'https://www.chainabuse.com/domain/https%3A%2F%2Fevil.example'
    """
    full_url = identifier if identifier.startswith("http") else f"https://{identifier}"
    return f"{base_url}/{quote(full_url, safe='')}"


class ChainAbuseLookup:

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = LOOKUP_TIMEOUT_SECONDS,
        base_url: str = CHAINABUSE_BASE_URL,
    ) -> None:
        self._session = session
        self._timeout = timeout
        self._base_url = base_url

    async def lookup(self, identifier: str) -> LookupResult:
        url = chainabuse_url(identifier, self._base_url)
        log.debug("Checking ChainAbuse for %s", identifier)

        try:
            html = await self._get_html(url)
        except LookupTimeout:
            log.warning("ChainAbuse lookup timed out for %s after %ss", identifier, self._timeout)
            return LookupResult(identifier)
        except aiohttp.ClientResponseError as exc:
            log.warning("ChainAbuse request failed for %s: %s", identifier, exc.status)
            return LookupResult(identifier)
        except aiohttp.ClientError as exc:
            log.warning("ChainAbuse request failed for %s: %s", identifier, exc)
            return LookupResult(identifier)

        count, found = extract_report_count(html, identifier)
        if found:
            log.info("ChainAbuse: %d report(s) for %s", count, identifier)
        else:
            log.info("ChainAbuse: no reports found for %s", identifier)
        return LookupResult(identifier, count, found)

    async def _get_html(self, url: str) -> str:
        try:
            async with self._session.get(
                url,
                headers=_BROWSER_HEADERS,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                resp.raise_for_status()
                return await resp.text(errors="replace")
        except asyncio.TimeoutError as exc:
            raise LookupTimeout(url) from exc


async def lookup_all(lookup: LookupPort, identifiers: Iterable[str]) -> list[LookupResult]:
    """
    Run one lookup per identifier concurrently and wait for all to settle.

    A lookup that raises anyway (a substituted adapter, say) is logged and
    contributes nothing; the others are still used.
    """
    identifiers = list(identifiers)
    outcomes = await asyncio.gather(
        *(lookup.lookup(i) for i in identifiers),
        return_exceptions=True,
    )

    results: list[LookupResult] = []
    for identifier, outcome in zip(identifiers, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            log.warning("Lookup for %s failed: %r", identifier, outcome)
            continue
        results.append(outcome)
    return results


def total_reports(results: Iterable[LookupResult]) -> int:
    return sum(r.report_count for r in results)
