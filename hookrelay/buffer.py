"""
Delivery Buffer — holds records that arrived while chat was unreachable.

Plain FIFO retention. ``drain_all`` swaps the backing list in one step with
no await in between, so on a single event loop a record appended
concurrently lands either in the drained batch or in the next one, never
both and never neither.
"""

import logging
from typing import List

from .models import NotificationRecord

log = logging.getLogger("hookrelay.buffer")


class DeliveryBuffer:

    def __init__(self):
        self._records: List[NotificationRecord] = []

    def enqueue(self, record: NotificationRecord) -> None:
        self._records.append(record)
        log.info(f"Buffered record '{record.title}' ({len(self._records)} pending)")

    def drain_all(self) -> List[NotificationRecord]:
        """Remove and return every buffered record, oldest first."""
        drained, self._records = self._records, []
        return drained

    def __len__(self) -> int:
        return len(self._records)
