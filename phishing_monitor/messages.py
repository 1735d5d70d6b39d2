"""Telegram message composition.

All message text lives here so the cycle only decides *when* to notify.
Messages use Telegram's HTML parse mode; every identifier is escaped since
list entries are untrusted input.
"""

import html
from typing import Iterable

from phishing_monitor.config import PHISHING_CONFIG_URL, POLL_INTERVAL_SECONDS

TELEGRAM_MESSAGE_LIMIT = 4096
MAX_LISTED_LINKS = 50
# room left for the listing once header, totals, summary and link are in
_LISTING_BUDGET = 3000


def _source_link(url: str) -> str:
    return f'<a href="{html.escape(url)}">MetaMask Config</a>'


def _interval_text(seconds: int) -> str:
    if seconds == 60:
        return "every minute"
    if seconds % 60 == 0:
        return f"every {seconds // 60} minutes"
    return f"every {seconds} seconds"


def _listing(links: list[str]) -> list[str]:
    """
    One <code> line per link, cut off by count or by length so the alert
    stays under TELEGRAM_MESSAGE_LIMIT. The rest are summarised.
    """
    lines: list[str] = []
    used = 0
    for link in links[:MAX_LISTED_LINKS]:
        line = f"<code>{html.escape(link)}</code>"
        if used + len(line) + 1 > _LISTING_BUDGET:
            break
        lines.append(line)
        used += len(line) + 1

    hidden = len(links) - len(lines)
    if hidden:
        lines.append(f"… and {hidden} more")
    return lines


def format_startup(
    mode: str,
    total: int,
    interval_seconds: int = POLL_INTERVAL_SECONDS,
    source_url: str = PHISHING_CONFIG_URL,
) -> str:
    """Notice sent once, when the first successful fetch sets the baseline."""
    return "\n".join([
        "🤖 <b>Phishing Monitor Started!</b>",
        "",
        f"🌍 Mode: <b>{html.escape(mode)}</b>",
        f"📊 Monitoring {total} known phishing links",
        f"⏰ Checking {_interval_text(interval_seconds)} for new threats",
        f"🔗 Source: {_source_link(source_url)}",
    ])


def format_new_links(
    new_links: Iterable[str],
    total: int,
    report_count: int,
    source_url: str = PHISHING_CONFIG_URL,
) -> str:
    """
    One aggregate alert for every identifier that appeared this tick.

    Identifiers are listed in sorted order so the same set always renders
    the same message.
    """
    links = sorted(new_links)
    if not links:
        raise ValueError("format_new_links needs at least one new link")

    parts = ["🚨 <b>NEW PHISHING LINK DETECTED!</b> 🚨", ""]

    if len(links) == 1:
        parts.append("🔗 New link on MetaMask phishing list:")
    else:
        parts.append(f"🔗 Found {len(links)} new links on MetaMask phishing list:")
    parts.extend(_listing(links))
    parts.append("")

    parts.append(f"📊 Total MetaMask links now: {total}")
    parts.append("")

    if report_count > 0:
        parts.append(f"🕵️ ChainAbuse: Found <b>{report_count}</b> reports total")
    else:
        parts.append("🕵️ ChainAbuse: No reports found")
    parts.append("")

    parts.append(f"📋 Check full MetaMask list: {_source_link(source_url)}")
    return "\n".join(parts)
