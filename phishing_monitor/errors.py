# error taxonomy for the monitor.

# adapters translate aiohttp / asyncio / json failures into these at their
# own boundary. none of them is allowed to reach the scheduler: the cycle
# catches MonitorError, logs it, and ends the tick with no state change.


class MonitorError(Exception):
    """Base class for every failure the monitor knows how to absorb."""


class FetchError(MonitorError):
    """List source unreachable, timed out, or answered with a non-2xx status."""


class ParseError(MonitorError):
    """A response body could not be decoded into the expected shape."""


class DispatchError(MonitorError):
    """Messaging sink unreachable or rejected the message."""


class LookupTimeout(MonitorError):
    """A corroboration lookup exceeded its time budget."""
