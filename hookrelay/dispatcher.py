"""
Notification Dispatcher — deliver now, or buffer until chat comes back.

A record is sent immediately when the connection is READY. A failed send
after that check is reported and dropped; it is not retried or buffered.
While the connection is not READY, records go to the DeliveryBuffer and
are replayed by ``on_recovered``.
"""

import logging
from typing import Dict, Iterator, List, Optional, Sequence

from . import config as cfg
from .buffer import DeliveryBuffer
from .connection import ChatConnection
from .models import ConnectionState, NotificationRecord
from .normalizer import EventNormalizer
from .reporter import ErrorReporter, Reply

log = logging.getLogger("hookrelay.dispatcher")


class NotificationDispatcher:

    def __init__(
        self,
        connection: ChatConnection,
        reporter: ErrorReporter,
        buffer: Optional[DeliveryBuffer] = None,
        normalizer: Optional[EventNormalizer] = None,
        bot_name: str = cfg.BOT_NAME,
        max_embeds: int = cfg.MAX_EMBEDS_PER_MESSAGE,
        max_chars: int = cfg.MAX_EMBED_CHARS_PER_MESSAGE,
    ):
        self.connection = connection
        self.reporter = reporter
        self.buffer = buffer if buffer is not None else DeliveryBuffer()
        self.normalizer = normalizer or EventNormalizer()
        self.bot_name = bot_name
        self.max_embeds = max(1, max_embeds)
        self.max_chars = max_chars
        self.stats: Dict[str, int] = {
            "delivered": 0,
            "buffered": 0,
            "delivery_failures": 0,
            "recoveries": 0,
            "replayed": 0,
        }

    async def handle(self, record: NotificationRecord, reply: Optional[Reply] = None) -> bool:
        """Deliver or buffer one record. True when it was sent."""
        if self.connection.status != ConnectionState.READY:
            self.buffer.enqueue(record)
            self.stats["buffered"] += 1
            return False
        try:
            await self.connection.send("", [record])
        except Exception as exc:
            self.stats["delivery_failures"] += 1
            await self.reporter.report(exc, f"[handle] Sending embed '{record.title}'", reply)
            return False
        self.stats["delivered"] += 1
        log.info(f"Sent embed '{record.title}'")
        return True

    async def on_recovered(self) -> int:
        """Replay the buffer after a reconnect. Returns records replayed.

        The drain happens before the first await; anything buffered while
        the batch is in flight stays for the next recovery.
        """
        pending = self.buffer.drain_all()
        count = len(pending)
        status = self.normalizer.status_record(
            f"{self.bot_name} recovered {count} request{'s' if count != 1 else ''}",
            "Connection restored. Notifications received during the outage follow in order.",
        )
        batch: List[NotificationRecord] = [status, *pending]
        self.stats["recoveries"] += 1

        sent = 0
        for chunk in self.split_batches(batch):
            first, sent = sent + 1, sent + len(chunk)
            try:
                await self.connection.send("", chunk)
            except Exception as exc:
                self.stats["delivery_failures"] += len(chunk)
                await self.reporter.report(
                    exc, f"[on_recovered] Sending recovered embeds {first}-{sent}"
                )
                continue
            self.stats["replayed"] += sum(1 for r in chunk if r is not status)

        log.info(f"Recovery replay finished: {count} buffered record(s)")
        return count

    def split_batches(self, records: Sequence[NotificationRecord]) -> Iterator[List[NotificationRecord]]:
        """Consecutive chunks within both the embed-count and character limits.

        A single record over the character budget still goes out alone.
        """
        chunk: List[NotificationRecord] = []
        size = 0
        for record in records:
            chars = record.char_count()
            if chunk and (len(chunk) >= self.max_embeds or size + chars > self.max_chars):
                yield chunk
                chunk, size = [], 0
            chunk.append(record)
            size += chars
        if chunk:
            yield chunk

    async def announce(self, text: str) -> None:
        """Plain status line, e.g. the ready message."""
        try:
            await self.connection.send(text)
        except Exception as exc:
            await self.reporter.report(exc, f"[announce] Sending message [{text}]")
