from dataclasses import dataclass, field
from datetime import datetime, timezone


def utc_timestamp() -> str:
    """ISO 8601 UTC timestamp, e.g. 2026-02-21T12:39:08Z"""
    return datetime.now(tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class PhishingList:
    """
    One parsed copy of the eth-phishing-detect config document.

    Only blacklist and fuzzylist feed alerting. The remaining fields are kept
    because the document carries them and they are useful in logs.
    """
    blacklist: list[str]
    fuzzylist: list[str]
    whitelist: list[str] = field(default_factory=list)
    version: int | None = None
    tolerance: int | None = None

    def flagged(self) -> set[str]:
        # exact and fuzzy matches collapse into one set: alerting does not
        # distinguish them
        return set(self.blacklist) | set(self.fuzzylist)


@dataclass(frozen=True)
class LookupResult:
    """
    Outcome of one ChainAbuse lookup. Already normalized: no raw HTML ever
    leaves the lookup adapter.
    """
    identifier: str
    report_count: int = 0
    found: bool = False
