import asyncio
import json
import logging
import platform
import signal
import sys

from phishing_monitor.config import LOG_LEVEL
from phishing_monitor.orchestrator import PhishingMonitor

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)],
)
log = logging.getLogger("main")


async def main() -> None:
    monitor = PhishingMonitor()
    loop    = asyncio.get_running_loop()

    if platform.system() != "Windows":

        def _shutdown(sig: signal.Signals) -> None:
            log.info("Received %s, shutting down gracefully...", sig.name)
            monitor.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _shutdown, sig)

    try:
        await monitor.run()
    except (asyncio.CancelledError, KeyboardInterrupt):
        log.info("Shutting down...")
        monitor.stop()
    finally:
        log.info("Final status: %s", json.dumps(monitor.status()))


if __name__ == "__main__":
    asyncio.run(main())
