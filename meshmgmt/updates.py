"""Per-peer update channels used to push network changes to connected peers."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Optional, Protocol

log = logging.getLogger(__name__)

CHANNEL_BUFFER_SIZE = 100


@dataclass
class UpdateMessage:
    """An update for one peer, with the network map it was built from."""

    update: Any = None
    network_map: Any = None


class _UpdateChannelMetrics(Protocol):
    def count_send_update_duration(self, elapsed: float, found: bool, dropped: bool) -> None: ...

    def count_create_channel_duration(self, elapsed: float, closed: bool) -> None: ...

    def count_close_channels_duration(self, elapsed: float, count: int) -> None: ...

    def count_close_channel_duration(self, elapsed: float) -> None: ...

    def count_get_all_connected_peers_duration(self, elapsed: float, count: int) -> None: ...

    def count_has_channel_duration(self, elapsed: float) -> None: ...


class PeerChannel:
    """A bounded queue of updates for one peer that can be closed."""

    def __init__(self, capacity: int = CHANNEL_BUFFER_SIZE) -> None:
        if capacity < 1:
            raise ValueError("channel capacity must be positive")
        self._capacity = capacity
        self._items: deque[UpdateMessage] = deque()
        self._closed = False
        self._cond = threading.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def send(self, message: UpdateMessage) -> bool:
        """Queue a message without blocking; False if the buffer is full.

        Raises RuntimeError if the channel is closed.
        """
        with self._cond:
            if self._closed:
                raise RuntimeError("send on closed channel")
            if len(self._items) >= self._capacity:
                return False
            self._items.append(message)
            self._cond.notify()
            return True

    def receive(self, timeout: Optional[float] = None) -> Optional[UpdateMessage]:
        """Wait for the next message; None once the channel is closed and drained.

        Raises TimeoutError if nothing arrives within the timeout.
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: bool(self._items) or self._closed, timeout
            )
            if not ready:
                raise TimeoutError("no update received in time")
            if self._items:
                return self._items.popleft()
            return None

    def close(self) -> None:
        """Close the channel; queued messages can still be received."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[UpdateMessage]:
        while (message := self.receive()) is not None:
            yield message


class UpdateChannel:
    """The update channels of all connected peers, indexed by peer id."""

    def __init__(self, metrics: Optional[_UpdateChannelMetrics] = None) -> None:
        self._channels: dict[str, PeerChannel] = {}
        self._lock = threading.Lock()
        self._metrics = metrics

    def send_update(self, peer_id: str, update: UpdateMessage) -> bool:
        """Deliver an update to the peer's channel; False if it has none or it is full."""
        start = time.monotonic()
        found = dropped = False
        try:
            with self._lock:
                channel = self._channels.get(peer_id)
                if channel is None:
                    log.debug("peer %s has no channel", peer_id)
                    return False
                found = True
                if channel.send(update):
                    log.debug("update was sent to channel for peer %s", peer_id)
                    return True
                dropped = True
                log.warning(
                    "channel for peer %s is %d full or closed", peer_id, len(channel)
                )
                return False
        finally:
            if self._metrics is not None:
                self._metrics.count_send_update_duration(
                    time.monotonic() - start, found, dropped
                )

    def create_channel(self, peer_id: str) -> PeerChannel:
        """Open a fresh channel for the peer, closing any previous one."""
        start = time.monotonic()
        closed = False
        try:
            with self._lock:
                previous = self._channels.pop(peer_id, None)
                if previous is not None:
                    closed = True
                    previous.close()
                channel = PeerChannel(CHANNEL_BUFFER_SIZE)
                self._channels[peer_id] = channel
                log.debug("opened updates channel for a peer %s", peer_id)
                return channel
        finally:
            if self._metrics is not None:
                self._metrics.count_create_channel_duration(
                    time.monotonic() - start, closed
                )

    def _close_channel(self, peer_id: str) -> None:
        channel = self._channels.pop(peer_id, None)
        if channel is None:
            log.debug("closing updates channel: peer %s has no channel", peer_id)
            return
        channel.close()
        log.debug("closed updates channel of a peer %s", peer_id)

    def close_channels(self, peer_ids: Iterable[str]) -> None:
        """Close the channel of each given peer."""
        start = time.monotonic()
        ids = list(peer_ids)
        try:
            with self._lock:
                for peer_id in ids:
                    self._close_channel(peer_id)
        finally:
            if self._metrics is not None:
                self._metrics.count_close_channels_duration(
                    time.monotonic() - start, len(ids)
                )

    def close_channel(self, peer_id: str) -> None:
        """Close the channel of one peer."""
        start = time.monotonic()
        try:
            with self._lock:
                self._close_channel(peer_id)
        finally:
            if self._metrics is not None:
                self._metrics.count_close_channel_duration(time.monotonic() - start)

    def get_all_connected_peers(self) -> set[str]:
        """The ids of all peers that currently have a channel."""
        start = time.monotonic()
        peers: set[str] = set()
        try:
            with self._lock:
                peers = set(self._channels)
            return peers
        finally:
            if self._metrics is not None:
                self._metrics.count_get_all_connected_peers_duration(
                    time.monotonic() - start, len(peers)
                )

    def has_channel(self, peer_id: str) -> bool:
        start = time.monotonic()
        try:
            with self._lock:
                return peer_id in self._channels
        finally:
            if self._metrics is not None:
                self._metrics.count_has_channel_duration(time.monotonic() - start)