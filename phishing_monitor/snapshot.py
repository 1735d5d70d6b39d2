from typing import Iterable


class SnapshotStore:
    """
    Holds the last committed view of the flagged set: the diff baseline.

    Why is diff() free of side effects (unlike a seen-set that grows as it
    is queried)?

    The cycle must be able to compute new items, spend time on lookups and
    dispatch, and only then decide to move the baseline. Keeping diff() pure
    means a tick that dies halfway leaves the baseline exactly where it was,
    and the next tick sees the same new items again.

    commit() swaps the whole set in one assignment. Under a single asyncio
    event loop that is atomic with respect to any diff() call.
    """

    def __init__(self) -> None:
        self._items: frozenset[str] = frozenset()
        self._initialized = False

    @property
    def items(self) -> frozenset[str]:
        return self._items

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def total(self) -> int:
        return len(self._items)

    def diff(self, current: Iterable[str]) -> set[str]:
        """current − previous. Empty baseline before the first commit."""
        return set(current) - self._items

    def commit(self, current: Iterable[str]) -> None:
        """Replace the baseline in full and mark the store initialized."""
        self._items = frozenset(current)
        self._initialized = True
