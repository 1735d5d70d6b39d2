# PhishingListWatcher: the notifier cycle, one tick at a time.

# responsibilities:
#   - fetch the current phishing list
#   - on the very first success, set the baseline and announce startup
#   - afterwards, diff against the baseline, enrich new links with
#     ChainAbuse report counts, and send one aggregate alert
#   - move the baseline after every successful fetch, delivered or not
#
# the watcher never schedules itself: PhishingMonitor calls tick() on a timer.
# every failure ends at this boundary as a log line; tick() never raises
# anything but cancellation.

import asyncio
import enum
import logging

from phishing_monitor.config import POLL_INTERVAL_SECONDS
from phishing_monitor.errors import DispatchError, MonitorError
from phishing_monitor.lookup import lookup_all, total_reports
from phishing_monitor.messages import format_new_links, format_startup
from phishing_monitor.ports import DispatcherPort, ListSourcePort, LookupPort
from phishing_monitor.snapshot import SnapshotStore


class TickResult(enum.Enum):
    FAILED = "failed"            # fetch / diff / compose failed, nothing changed
    INITIALIZED = "initialized"  # first successful fetch, baseline set
    UNCHANGED = "unchanged"      # no new links
    ALERTED = "alerted"          # new links found, alert composed and dispatched


class PhishingListWatcher:
    """
    States: UNINITIALIZED → INITIALIZED, tracked by snapshot.initialized.

    All collaborators are injected, so the same watcher runs against the
    aiohttp adapters in production and against fakes in tests.
    """

    def __init__(
        self,
        source: ListSourcePort,
        snapshot: SnapshotStore,
        lookup: LookupPort,
        dispatcher: DispatcherPort,
        mode: str = "DEVELOPMENT",
        interval_seconds: int = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._source = source
        self._snapshot = snapshot
        self._lookup = lookup
        self._dispatcher = dispatcher
        self._mode = mode
        self._interval = interval_seconds
        self._log = logging.getLogger("watcher.phishing-list")

    @property
    def snapshot(self) -> SnapshotStore:
        return self._snapshot

    async def tick(self) -> TickResult:
        try:
            phishing_list = await self._source.fetch()
            current = phishing_list.flagged()

            if not self._snapshot.initialized:
                return await self._initialize(current)

            new_links = self._snapshot.diff(current)
            if not new_links:
                self._log.info("No new links found. Total: %d", len(current))
                self._snapshot.commit(current)
                return TickResult.UNCHANGED

            self._log.info("Found %d new link(s), checking ChainAbuse...", len(new_links))
            results = await lookup_all(self._lookup, new_links)
            message = format_new_links(new_links, len(current), total_reports(results))

        except asyncio.CancelledError:
            self._log.info("Tick cancelled.")
            raise

        except MonitorError as exc:
            self._log.warning("Skipping tick: %s", exc)
            return TickResult.FAILED

        except Exception as exc:
            self._log.exception("Unexpected error while checking for new links: %s", exc)
            return TickResult.FAILED

        try:
            delivered = await self._dispatch(message)
        finally:
            # at-most-once: the baseline moves whether or not the alert went out
            self._snapshot.commit(current)
        self._log.info(
            "New links %s: %s",
            "announced" if delivered else "detected (alert not delivered)",
            ", ".join(sorted(new_links)),
        )
        return TickResult.ALERTED

    async def _initialize(self, current: set[str]) -> TickResult:
        self._snapshot.commit(current)
        self._log.info("Monitor initialized in %s mode with %d links", self._mode, len(current))
        await self._dispatch(format_startup(self._mode, len(current), self._interval))
        return TickResult.INITIALIZED

    async def _dispatch(self, message: str) -> bool:
        # dispatchers report failure by returning False; this guards against
        # one that raises instead
        try:
            return await self._dispatcher.send(message)
        except DispatchError as exc:
            self._log.warning("Notification dropped: %s", exc)
            return False
        except Exception as exc:
            self._log.exception("Dispatcher failed, notification dropped: %s", exc)
            return False
