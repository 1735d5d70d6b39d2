from __future__ import annotations

import asyncio

from phishing_monitor.errors import DispatchError, FetchError, LookupTimeout, ParseError
from phishing_monitor.models import LookupResult, PhishingList
from phishing_monitor.snapshot import SnapshotStore
from phishing_monitor.watcher import PhishingListWatcher, TickResult


class FakeSource:
    def __init__(self, *outcomes: PhishingList | Exception) -> None:
        self._outcomes = list(outcomes)
        self.fetches = 0

    async def fetch(self) -> PhishingList:
        self.fetches += 1
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeLookup:
    def __init__(self, results: dict[str, LookupResult | Exception] | None = None) -> None:
        self._results = results or {}
        self.queried: list[str] = []

    async def lookup(self, identifier: str) -> LookupResult:
        self.queried.append(identifier)
        result = self._results.get(identifier, LookupResult(identifier))
        if isinstance(result, Exception):
            raise result
        return result


class RecordingDispatcher:
    def __init__(self, fail_with: Exception | None = None, delivered: bool = True) -> None:
        self.sent: list[str] = []
        self._fail_with = fail_with
        self._delivered = delivered

    async def send(self, message: str) -> bool:
        self.sent.append(message)
        if self._fail_with is not None:
            raise self._fail_with
        return self._delivered


def _list(blacklist: list[str], fuzzylist: list[str] | None = None) -> PhishingList:
    return PhishingList(blacklist=blacklist, fuzzylist=fuzzylist or [])


def _watcher(
    source: FakeSource,
    dispatcher: RecordingDispatcher,
    lookup: FakeLookup | None = None,
    snapshot: SnapshotStore | None = None,
) -> PhishingListWatcher:
    return PhishingListWatcher(
        source=source,
        snapshot=snapshot or SnapshotStore(),
        lookup=lookup or FakeLookup(),
        dispatcher=dispatcher,
        mode="DEVELOPMENT",
    )


def test_first_fetch_sends_only_startup_notice() -> None:
    source = FakeSource(_list(["a", "b"], ["c"]))
    dispatcher = RecordingDispatcher()
    lookup = FakeLookup()
    watcher = _watcher(source, dispatcher, lookup)

    result = asyncio.run(watcher.tick())

    assert result is TickResult.INITIALIZED
    assert watcher.snapshot.initialized
    assert watcher.snapshot.items == frozenset({"a", "b", "c"})
    assert len(dispatcher.sent) == 1
    assert "Phishing Monitor Started" in dispatcher.sent[0]
    assert "NEW PHISHING LINK" not in dispatcher.sent[0]
    assert lookup.queried == []


def test_new_link_alert_contains_link_and_total() -> None:
    source = FakeSource(_list(["a", "b"]), _list(["a", "b", "c"]))
    dispatcher = RecordingDispatcher()
    watcher = _watcher(source, dispatcher)

    async def run() -> TickResult:
        await watcher.tick()
        return await watcher.tick()

    result = asyncio.run(run())

    assert result is TickResult.ALERTED
    assert len(dispatcher.sent) == 2
    alert = dispatcher.sent[1]
    assert "<code>c</code>" in alert
    assert "Total MetaMask links now: 3" in alert
    assert watcher.snapshot.diff({"a", "b", "c"}) == set()


def test_no_new_links_sends_nothing() -> None:
    source = FakeSource(_list(["a"]), _list(["a"]))
    dispatcher = RecordingDispatcher()
    watcher = _watcher(source, dispatcher)

    async def run() -> TickResult:
        await watcher.tick()
        return await watcher.tick()

    assert asyncio.run(run()) is TickResult.UNCHANGED
    assert len(dispatcher.sent) == 1


def test_failed_lookup_does_not_block_alert() -> None:
    snapshot = SnapshotStore()
    snapshot.commit({"a"})
    source = FakeSource(_list(["a", "slow.example", "known.example"]))
    lookup = FakeLookup({
        "slow.example": LookupTimeout("slow.example"),
        "known.example": LookupResult("known.example", report_count=5, found=True),
    })
    dispatcher = RecordingDispatcher()
    watcher = _watcher(source, dispatcher, lookup, snapshot)

    result = asyncio.run(watcher.tick())

    assert result is TickResult.ALERTED
    assert sorted(lookup.queried) == ["known.example", "slow.example"]
    assert len(dispatcher.sent) == 1
    assert "Found <b>5</b> reports total" in dispatcher.sent[0]


def test_dispatch_failure_still_commits() -> None:
    snapshot = SnapshotStore()
    snapshot.commit({"a", "b"})
    source = FakeSource(_list(["a", "b", "c"]), _list(["a", "b", "c"]))
    dispatcher = RecordingDispatcher(fail_with=DispatchError("bot api down"))
    watcher = _watcher(source, dispatcher, snapshot=snapshot)

    async def run() -> tuple[TickResult, TickResult]:
        return await watcher.tick(), await watcher.tick()

    first, second = asyncio.run(run())

    assert first is TickResult.ALERTED
    assert second is TickResult.UNCHANGED
    # one attempt only: the failed alert is never re-sent
    assert len(dispatcher.sent) == 1
    assert snapshot.items == frozenset({"a", "b", "c"})


def test_undelivered_alert_still_commits() -> None:
    snapshot = SnapshotStore()
    snapshot.commit({"a"})
    source = FakeSource(_list(["a", "b"]))
    dispatcher = RecordingDispatcher(delivered=False)
    watcher = _watcher(source, dispatcher, snapshot=snapshot)

    assert asyncio.run(watcher.tick()) is TickResult.ALERTED
    assert snapshot.diff({"a", "b"}) == set()


def test_fetch_failure_leaves_snapshot_untouched() -> None:
    snapshot = SnapshotStore()
    snapshot.commit({"a", "b"})
    source = FakeSource(FetchError("unreachable"), ParseError("not json"), RuntimeError("boom"))
    dispatcher = RecordingDispatcher()
    watcher = _watcher(source, dispatcher, snapshot=snapshot)

    async def run() -> list[TickResult]:
        return [await watcher.tick() for _ in range(3)]

    assert asyncio.run(run()) == [TickResult.FAILED] * 3
    assert dispatcher.sent == []
    assert snapshot.items == frozenset({"a", "b"})
    assert snapshot.diff({"a", "b", "c"}) == {"c"}


def test_fetch_failure_before_first_success_stays_uninitialized() -> None:
    source = FakeSource(FetchError("unreachable"), _list(["a"]))
    dispatcher = RecordingDispatcher()
    watcher = _watcher(source, dispatcher)

    async def run() -> list[TickResult]:
        return [await watcher.tick(), await watcher.tick()]

    assert asyncio.run(run()) == [TickResult.FAILED, TickResult.INITIALIZED]
    assert len(dispatcher.sent) == 1


def test_unexpected_dispatcher_error_still_commits() -> None:
    snapshot = SnapshotStore()
    snapshot.commit({"a", "b"})
    source = FakeSource(_list(["a", "b", "c"]), _list(["a", "b", "c"]))
    dispatcher = RecordingDispatcher(fail_with=RuntimeError("Session is closed"))
    watcher = _watcher(source, dispatcher, snapshot=snapshot)

    async def run() -> tuple[TickResult, TickResult]:
        return await watcher.tick(), await watcher.tick()

    first, second = asyncio.run(run())

    assert first is TickResult.ALERTED
    assert second is TickResult.UNCHANGED
    assert len(dispatcher.sent) == 1
    assert snapshot.items == frozenset({"a", "b", "c"})


def test_startup_notice_dispatcher_error_still_initializes() -> None:
    source = FakeSource(_list(["a"]))
    dispatcher = RecordingDispatcher(fail_with=ConnectionError("sink reset"))
    watcher = _watcher(source, dispatcher)

    assert asyncio.run(watcher.tick()) is TickResult.INITIALIZED
    assert watcher.snapshot.initialized
