"""
Error Reporter — tells a human when a chat send failed.

Order of preference: reply to the operator who triggered the send, else the
debug channel, else the main chat connection itself. Reporting never
raises; whatever cannot be delivered is logged.
"""

import logging
from typing import Awaitable, Callable, Optional

from . import config as cfg
from .connection import ChatConnection, WebhookChannel

log = logging.getLogger("hookrelay.reporter")

Reply = Callable[[str], Awaitable[None]]


class ErrorReporter:

    def __init__(
        self,
        connection: ChatConnection,
        debug_channel: Optional[WebhookChannel] = None,
        bot_name: str = cfg.BOT_NAME,
    ):
        self.connection = connection
        self.debug_channel = debug_channel
        self.bot_name = bot_name

    async def report(self, error: BaseException, context: str, reply: Optional[Reply] = None) -> None:
        log.error(f"{context}: {error}")

        if reply is not None:
            try:
                await reply(f"encountered an error from the chat API: {error}")
                return
            except Exception as exc:
                log.error(f"Replying with error report failed: {exc}")

        if self.debug_channel is not None:
            try:
                await self.debug_channel.send(
                    f"Someone encountered an error from the chat API...\n"
                    f"Context: {context}\nError: {error}"
                )
                log.info(f"[Via Debug Channel] Reported an error during {context}")
                return
            except Exception as exc:
                await self._fallback(error, context, exc, "Sending error report to debug channel")
                return

        await self._fallback(error, context)

    async def _fallback(
        self,
        error: BaseException,
        context: str,
        subsequent: Optional[BaseException] = None,
        subsequent_context: str = "",
    ) -> None:
        text = f"[{self.bot_name}] encountered an error...\nContext: {context}\nError: {error}"
        if subsequent is not None:
            text += f"\nSubsequent Context: {subsequent_context}\nSubsequent Error: {subsequent}"
        try:
            await self.connection.send(text)
            log.info("Sent an error report via chat webhook")
        except Exception as exc:
            log.error(f"Error report could not be delivered anywhere: {exc}")
