"""
Append-only event log.

Events are immutable once appended. Queries return a view that is bounded by
the log length at query time and can be iterated any number of times.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from devchain.accounts import normalize_address

logger = logging.getLogger(__name__)

TRANSFER_ARG_NAMES = ("from", "to", "amount")


@dataclass(frozen=True)
class Event:
    kind: str
    args: Tuple
    sequence: int
    address: Optional[str] = None       # emitting contract
    block_number: Optional[int] = None
    tx_hash: Optional[str] = None

    def named_args(self) -> dict:
        if len(self.args) == len(TRANSFER_ARG_NAMES):
            return dict(zip(TRANSFER_ARG_NAMES, self.args))
        return {str(i): value for i, value in enumerate(self.args)}

    def to_dict(self):
        return {
            "kind": self.kind,
            "args": list(self.args),
            "sequence": self.sequence,
            "address": self.address,
            "block_number": self.block_number,
            "tx_hash": self.tx_hash,
        }


@dataclass(frozen=True)
class EventFilter:
    """All set fields must match. Block range bounds are inclusive."""
    kind: Optional[str] = None
    address: Optional[str] = None
    sender: Optional[str] = None
    recipient: Optional[str] = None
    from_block: Optional[int] = None
    to_block: Optional[int] = None

    def __post_init__(self):
        # Normalized once at construction; frozen, so set through object
        for field in ("address", "sender", "recipient"):
            value = getattr(self, field)
            if value is not None:
                object.__setattr__(self, field, normalize_address(value))

    def matches(self, event: Event) -> bool:
        if self.kind is not None and event.kind != self.kind:
            return False
        if self.address is not None and event.address != self.address:
            return False
        if self.sender is not None and (not event.args or event.args[0] != self.sender):
            return False
        if self.recipient is not None and (len(event.args) < 2 or event.args[1] != self.recipient):
            return False
        if self.from_block is not None and (event.block_number is None or event.block_number < self.from_block):
            return False
        if self.to_block is not None and (event.block_number is None or event.block_number > self.to_block):
            return False
        return True


class EventQuery:
    """Lazy, restartable view over the events a log held when the query was made."""

    def __init__(self, events: Tuple[Event, ...], event_filter: Optional[EventFilter]):
        self._events = events
        self._filter = event_filter

    def __iter__(self) -> Iterator[Event]:
        for event in self._events:
            if self._filter is None or self._filter.matches(event):
                yield event

    def __len__(self):
        return sum(1 for _ in self)

    def __repr__(self):
        return f"EventQuery(events={len(self._events)}, filter={self._filter})"


class EventLog:
    def __init__(self):
        self._events: List[Event] = []
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._events)

    @property
    def next_sequence(self) -> int:
        return len(self._events)

    def append(self, event: Event):
        with self._lock:
            if event.sequence != len(self._events):
                raise ValueError(
                    f"Event sequence {event.sequence} out of order, expected {len(self._events)}"
                )
            self._events.append(event)
        logger.debug("Event #%d %s%s", event.sequence, event.kind, event.args)

    def query(self, event_filter: Optional[EventFilter] = None) -> EventQuery:
        return EventQuery(tuple(self._events), event_filter)

    def truncate(self, length: int):
        """Drop every event at index >= length."""
        if length < 0:
            raise ValueError("Length must be non-negative")
        with self._lock:
            dropped = len(self._events) - length
            if dropped > 0:
                del self._events[length:]
                logger.debug("Event log truncated to %d (%d dropped)", length, dropped)

    def events(self) -> List[Event]:
        return list(self._events)
