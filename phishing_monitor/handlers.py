# notification dispatchers: the output layer of the pipeline.

# each dispatcher receives a fully composed message and delivers it.
# formatting decisions live in messages.py, not here.

# to add a new output target, implement a class with:
#     async def send(self, message: str) -> bool: ...
# and pass it into PhishingListWatcher in orchestrator.py.
#
# delivery is at-most-once: a failed send is logged and dropped. the cycle
# moves its baseline anyway, so the same links are never re-announced.

import asyncio
import logging
import re

import aiohttp

from phishing_monitor.config import REQUEST_TIMEOUT_SECONDS, TELEGRAM_API_BASE
from phishing_monitor.errors import DispatchError

log = logging.getLogger(__name__)

_TAG = re.compile(r"<[^>]+>")


class TelegramDispatcher:
    """
    Posts messages to a chat through the Telegram Bot API sendMessage method.

    The bot token only ever appears in the request URL; it is kept out of
    every log line.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        bot_token: str,
        chat_id: str,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        api_base: str = TELEGRAM_API_BASE,
    ) -> None:
        if not bot_token or not chat_id:
            raise ValueError("TelegramDispatcher needs both a bot token and a chat id")
        self._session = session
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._timeout = timeout
        self._api_base = api_base

    def _endpoint(self) -> str:
        return f"{self._api_base}/bot{self._bot_token}/sendMessage"

    def _payload(self, message: str) -> dict:
        return {
            "chat_id": self._chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

    async def send(self, message: str) -> bool:
        try:
            await self._post(message)
        except DispatchError as exc:
            log.warning("Telegram message not delivered: %s", exc)
            return False
        log.debug("Telegram message delivered to chat %s", self._chat_id)
        return True

    async def _post(self, message: str) -> None:
        try:
            async with self._session.post(
                self._endpoint(),
                json=self._payload(message),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if resp.status >= 300:
                    body = await resp.text(errors="replace")
                    raise DispatchError(f"Bot API error {resp.status}: {body[:200]}")
                data = await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise DispatchError("Bot API request timed out") from exc
        except aiohttp.ClientError as exc:
            # str(exc) may embed the request URL, which carries the token
            raise DispatchError(f"Bot API unreachable: {type(exc).__name__}") from exc
        except ValueError as exc:
            raise DispatchError("Bot API reply was not JSON") from exc

        if not isinstance(data, dict) or not data.get("ok", False):
            description = data.get("description") if isinstance(data, dict) else data
            raise DispatchError(f"Bot API rejected message: {description}")


class ConsoleDispatcher:
    """
    Writes messages to the log instead of a chat.

    Used when no Telegram credentials are configured, e.g. a local
    development run. HTML tags are stripped so the lines stay readable.
    """

    async def send(self, message: str) -> bool:
        log.info("Notification:\n%s", _TAG.sub("", message))
        return True
