# PhishingMonitor: the top-level orchestrator and scheduler.

# Responsibilities:
#   - Create the shared aiohttp session used by every adapter
#   - Wire the list source, ChainAbuse lookup and dispatcher into a watcher
#   - Fire one tick immediately, then one every POLL_INTERVAL_SECONDS
#   - Skip a tick when the previous one is still running
#   - Provide a clean stop() and a read-only status() payload
#
# Scheduling model:
#   One repeating task owns the cadence. Each tick runs in its own task so
#   a stalled fetch or lookup cannot shift the schedule; it can only cause
#   the following ticks to be skipped until it finishes.

import asyncio
import logging

import aiohttp

from phishing_monitor.config import (
    PHISHING_CONFIG_URL,
    POLL_INTERVAL_SECONDS,
    TELEGRAM_BOT_TOKEN,
    TELEGRAM_GROUP_CHAT_ID,
    USER_AGENT,
    run_mode,
)
from phishing_monitor.handlers import ConsoleDispatcher, TelegramDispatcher
from phishing_monitor.http_client import ConditionalHTTPClient, PhishingListSource
from phishing_monitor.lookup import ChainAbuseLookup
from phishing_monitor.models import utc_timestamp
from phishing_monitor.ports import DispatcherPort
from phishing_monitor.snapshot import SnapshotStore
from phishing_monitor.watcher import PhishingListWatcher

log = logging.getLogger(__name__)


class PhishingMonitor:

    def __init__(
        self,
        bot_token: str | None = TELEGRAM_BOT_TOKEN,
        chat_id: str | None = TELEGRAM_GROUP_CHAT_ID,
        mode: str | None = None,
        interval_seconds: float = POLL_INTERVAL_SECONDS,
        source_url: str = PHISHING_CONFIG_URL,
    ) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self.mode = mode or run_mode()
        self._interval = interval_seconds
        self._source_url = source_url
        self.snapshot = SnapshotStore()
        self._task: asyncio.Task | None = None        # repeating schedule
        self._tick_task: asyncio.Task | None = None   # tick in flight, if any
        self._stopping = False

    @property
    def monitoring(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self) -> None:
        async with aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=20),
            headers={"User-Agent": USER_AGENT},
        ) as session:
            watcher = PhishingListWatcher(
                source=PhishingListSource(ConditionalHTTPClient(session), self._source_url),
                snapshot=self.snapshot,
                lookup=ChainAbuseLookup(session),
                dispatcher=self._build_dispatcher(session),
                mode=self.mode,
                interval_seconds=int(self._interval),
            )
            await self.run_watcher(watcher)

    def _build_dispatcher(self, session: aiohttp.ClientSession) -> DispatcherPort:
        if self._bot_token and self._chat_id:
            return TelegramDispatcher(session, self._bot_token, self._chat_id)
        log.warning(
            "TELEGRAM_BOT_TOKEN / TELEGRAM_GROUP_CHAT_ID not set: notifications go to the log only."
        )
        return ConsoleDispatcher()

    async def run_watcher(self, watcher: PhishingListWatcher) -> None:
        """Drive watcher.tick() on the schedule until stop() is called."""
        if self.monitoring:
            log.warning("Monitor already running")
            return

        if self._stopping:
            log.info("Stop requested before start, not starting.")
            self._stopping = False
            return

        self._task = asyncio.create_task(self._repeat(watcher), name="phishing-monitor")
        log.info(
            "Starting phishing monitor in %s mode, checking every %ss. Press Ctrl+C to stop.",
            self.mode, self._interval,
        )

        try:
            await self._task
        except asyncio.CancelledError:
            if not self._stopping:
                raise
            log.info("Monitor stopped.")
        finally:
            await self._cancel_tick()
            self._stopping = False

    async def _repeat(self, watcher: PhishingListWatcher) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while True:
            self.trigger(watcher)
            # fixed cadence: the next slot does not drift with tick duration
            next_at += self._interval
            await asyncio.sleep(max(0.0, next_at - loop.time()))

    def trigger(self, watcher: PhishingListWatcher) -> bool:
        """
        Start one tick in the background unless the previous one is still
        running. Returns True when a tick was started.
        """
        if self._tick_task is not None and not self._tick_task.done():
            log.warning("Previous check still running, skipping this tick.")
            return False
        self._tick_task = asyncio.create_task(watcher.tick(), name="phishing-monitor-tick")
        return True

    async def _cancel_tick(self) -> None:
        if self._tick_task is None:
            return
        self._tick_task.cancel()
        await asyncio.gather(self._tick_task, return_exceptions=True)
        self._tick_task = None

    def stop(self) -> None:
        """Cancel the schedule; run_watcher() cancels any tick in flight."""
        self._stopping = True
        if self._task is not None:
            self._task.cancel()

    def status(self) -> dict:
        return {
            "status": "running" if self.monitoring else "stopped",
            "mode": self.mode.lower(),
            "timestamp": utc_timestamp(),
            "totalLinks": self.snapshot.total,
            "initialized": self.snapshot.initialized,
            "monitoring": self.monitoring,
        }

    def health(self) -> dict:
        """Alias of status(), the payload the original served on /health."""
        return self.status()
