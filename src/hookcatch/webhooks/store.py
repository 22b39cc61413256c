"""Bounded per-endpoint payload history.

Each endpoint owns one PayloadStore. Payloads are kept in receipt order in a
``deque`` with ``maxlen`` set to the endpoint capacity, so appending past
capacity drops the oldest entry in O(1).
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from itertools import islice
from typing import Any
from uuid import uuid4

from hookcatch.errors import EndpointNotFoundError, InvalidParameterError


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class Payload:
    """One delivered webhook body plus receipt metadata."""

    body: Any
    headers: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "headers": dict(self.headers),
            "body": self.body,
        }


class PayloadStore:
    """Insertion-ordered, capacity-bounded payload collection.

    All mutations and reads hold the store's lock, so concurrent appends
    never interleave a partial eviction and readers always see a
    consistent receipt order.
    """

    __slots__ = ("endpoint_id", "_items", "_lock", "_closed")

    def __init__(self, endpoint_id: str, capacity: int) -> None:
        if capacity <= 0:
            raise InvalidParameterError("maxPayloads must be a positive integer", field="maxPayloads")
        self.endpoint_id = endpoint_id
        self._items: deque[Payload] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def append(self, payload: Payload) -> tuple[int, int]:
        """Store a payload at the tail, evicting from the head when full.

        Returns:
            Tuple of (size after append, number of payloads evicted).

        Raises:
            EndpointNotFoundError: If the owning endpoint was unregistered.
        """
        with self._lock:
            if self._closed:
                raise EndpointNotFoundError(self.endpoint_id)
            evicted = 1 if len(self._items) == self._items.maxlen else 0
            self._items.append(payload)
            return len(self._items), evicted

    def page(self, offset: int = 0, limit: int | None = None) -> tuple[list[Payload], int]:
        """Return a contiguous slice in receipt order.

        An offset at or past the end yields an empty page. ``limit=None``
        means "to the end".

        Returns:
            Tuple of (page, total stored).
        """
        if offset < 0:
            raise InvalidParameterError("offset must be a non-negative integer", field="offset")
        if limit is not None and limit < 0:
            raise InvalidParameterError("limit must be a non-negative integer", field="limit")

        with self._lock:
            total = len(self._items)
            stop = total if limit is None else min(total, offset + limit)
            if offset >= stop:
                return [], total
            return list(islice(self._items, offset, stop)), total

    def clear(self) -> int:
        """Remove every payload. Returns how many were removed."""
        with self._lock:
            count = len(self._items)
            self._items.clear()
            return count

    def close(self) -> int:
        """Clear the store and refuse further appends."""
        with self._lock:
            self._closed = True
            count = len(self._items)
            self._items.clear()
            return count
