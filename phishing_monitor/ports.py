"""Contracts for the collaborators the notifier cycle depends on.

Each is a substitutable capability so the cycle can run against fakes in
tests and against aiohttp-backed adapters in production.
"""

from typing import Protocol

from phishing_monitor.models import LookupResult, PhishingList


class ListSourcePort(Protocol):

    async def fetch(self) -> PhishingList:
        """Return the current list. Raises FetchError or ParseError."""
        ...


class LookupPort(Protocol):

    async def lookup(self, identifier: str) -> LookupResult:
        """Return a normalized result. Must not raise."""
        ...


class DispatcherPort(Protocol):

    async def send(self, message: str) -> bool:
        """Deliver one message, best-effort. True when delivered."""
        ...
