# ETag-based conditional HTTP GET client and the list source built on it.

# GitHub raw content carries an ETag. We store it and send it back as
# If-None-Match on the next request. If the document did not change the
# server answers 304 with no body, and the source hands back the list it
# parsed last time: no download, no JSON decoding.
#
# Cache-Control / Pragma: no-cache still go out on every request so that
# intermediaries revalidate instead of serving a stale copy.

import asyncio
import logging

import aiohttp

from phishing_monitor.config import PHISHING_CONFIG_URL, REQUEST_TIMEOUT_SECONDS
from phishing_monitor.errors import FetchError, ParseError
from phishing_monitor.models import PhishingList
from phishing_monitor.parser import parse_phishing_config

log = logging.getLogger(__name__)

_NO_CACHE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class ConditionalHTTPClient:
    """
    Wraps an aiohttp.ClientSession with ETag-based conditional GET support.

    Per-URL ETag state is stored in a dict, so one instance can serve
    several URLs over the shared session.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session
        self._timeout = timeout
        self._etags: dict[str, str] = {}   # url → last received ETag

    def forget(self, url: str) -> None:
        """Drop the stored ETag so the next GET downloads the full body."""
        self._etags.pop(url, None)

    async def get_text_if_changed(self, url: str) -> tuple[bool, str | None]:
        """
        Perform a conditional GET.

        Returns:
            (True, text)   — server returned 2xx with a body
            (False, None)  — server returned 304 (nothing changed)

        Raises:
            FetchError  on transport failures, timeouts and non-2xx / non-304 responses
            ParseError  when the body cannot be decoded as text
        """
        headers = dict(_NO_CACHE_HEADERS)
        if url in self._etags:
            headers["If-None-Match"] = self._etags[url]

        try:
            async with self._session.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if resp.status == 304:
                    return False, None   # Not Modified → reuse last parse

                resp.raise_for_status()

                try:
                    text = await resp.text()
                except UnicodeDecodeError as exc:
                    self.forget(url)
                    log.warning("Undecodable body from %s: %s", url, exc)
                    raise ParseError(f"{url} body is not valid text: {exc}") from exc

                # only a body we could read may pin its ETag
                etag = resp.headers.get("ETag")
                if etag:
                    self._etags[url] = etag

                return True, text

        except aiohttp.ClientResponseError as exc:
            log.warning("HTTP error fetching %s: %s %s", url, exc.status, exc.message)
            raise FetchError(f"{url} answered {exc.status}") from exc
        except asyncio.TimeoutError as exc:
            log.warning("Timeout fetching %s", url)
            raise FetchError(f"timed out fetching {url}") from exc
        except aiohttp.ClientError as exc:
            log.warning("Transport error fetching %s: %s", url, exc)
            raise FetchError(f"could not reach {url}: {exc}") from exc


class PhishingListSource:
    """
    List source adapter: fetch() always returns a full PhishingList.

    A 304 answer is served from the last successful parse. If there is no
    previous parse (should not happen: the first request never carries an
    ETag) the ETag is dropped and the error surfaces as a FetchError.
    """

    def __init__(self, http_client: ConditionalHTTPClient, url: str = PHISHING_CONFIG_URL) -> None:
        self.url = url
        self._http = http_client
        self._last: PhishingList | None = None

    async def fetch(self) -> PhishingList:
        changed, text = await self._http.get_text_if_changed(self.url)

        if not changed:
            if self._last is None:
                self._http.forget(self.url)
                raise FetchError(f"{self.url} answered 304 before any full response")
            log.debug("304 Not Modified for %s", self.url)
            return self._last

        try:
            parsed = parse_phishing_config(text or "")
        except Exception:
            # a bad body must not pin its ETag: force a full download next tick
            self._http.forget(self.url)
            raise

        self._last = parsed
        return parsed
