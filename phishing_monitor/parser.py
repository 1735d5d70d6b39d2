# pure parsing helpers: no I/O, no logging side effects beyond warnings.

# two inputs are parsed here:
#   - the eth-phishing-detect config.json document (strict: bad shape is a ParseError)
#   - a ChainAbuse domain page (lenient: free-form HTML, best-effort regexes)

import json
import re
from typing import Any

from phishing_monitor.errors import ParseError
from phishing_monitor.models import PhishingList

# Tried in order; the first capture that parses as an integer wins.
REPORT_COUNT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(\d+)\s+Scam\s+Reports?", re.IGNORECASE),
    re.compile(r"Reports\s+submitted\s+for[^>]*>([^<]*)<", re.IGNORECASE),
    re.compile(r"(\d+)\s+reports?\s+found", re.IGNORECASE),
    re.compile(r"Total\s+reports?:\s*(\d+)", re.IGNORECASE),
)

_LEADING_INT = re.compile(r"\s*(\d+)")
_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def _string_list(data: dict, key: str, required: bool) -> list[str]:
    value = data.get(key)
    if value is None:
        if required:
            raise ParseError(f"missing required field {key!r}")
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ParseError(f"field {key!r} must be a list of strings")
    return value


def _optional_int(data: dict, key: str) -> int | None:
    value = data.get(key)
    # bool is an int subclass; a boolean here is malformed, not a number
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def parse_phishing_config(text: str) -> PhishingList:
    """
    Decode the config.json body.

    Raises ParseError when the body is not a JSON object or when blacklist /
    fuzzylist are missing or not lists of strings.
    """
    try:
        data: Any = json.loads(text)
    except ValueError as exc:
        raise ParseError(f"list document is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ParseError(f"list document must be a JSON object, got {type(data).__name__}")

    return PhishingList(
        blacklist=_string_list(data, "blacklist", required=True),
        fuzzylist=_string_list(data, "fuzzylist", required=True),
        whitelist=_string_list(data, "whitelist", required=False),
        version=_optional_int(data, "version"),
        tolerance=_optional_int(data, "tolerance"),
    )


def _leading_int(text: str) -> int | None:
    """'  12 reports' -> 12, 'n/a' -> None"""
    m = _LEADING_INT.match(text)
    return int(m.group(1)) if m else None


def strip_scheme(identifier: str) -> str:
    return _SCHEME.sub("", identifier)


def extract_report_count(html: str, identifier: str) -> tuple[int, bool]:
    """
    Scrape a report count out of a ChainAbuse page.

    Returns (count, found):
        (n, True)   — a pattern matched with a parseable count
        (0, True)   — no count, but the page references the identifier
        (0, False)  — nothing recognisable
    """
    for pattern in REPORT_COUNT_PATTERNS:
        m = pattern.search(html)
        if not m:
            continue
        count = _leading_int(m.group(1))
        if count is not None:
            return count, True

    if "chainabuse" in html and strip_scheme(identifier) in html:
        return 0, True

    return 0, False
