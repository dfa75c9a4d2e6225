"""Automatic removal of ephemeral peers that stay disconnected too long."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from meshmgmt.peer import Peer

log = logging.getLogger(__name__)

EPHEMERAL_LIFETIME = timedelta(minutes=10)
"""How long an ephemeral peer may stay disconnected before it is deleted."""

SYSTEM_INITIATOR = "sys"
"""Initiator recorded for deletions the system performs on its own."""


class EphemeralPeerStore(Protocol):
    def get_all_ephemeral_peers(self) -> Iterable[Peer]: ...


class PeerDeleter(Protocol):
    def delete_peer(self, account_id: str, peer_id: str, initiator: str) -> None: ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Entry:
    account_id: str
    deadline: datetime


class EphemeralPeerController:
    """Keeps disconnected ephemeral peers in deadline order and deletes expired ones.

    Peers are queued in the order they went inactive; since every peer gets the
    same lifetime, the head of the queue is always the first to expire.
    """

    def __init__(
        self,
        store: EphemeralPeerStore,
        peer_deleter: PeerDeleter,
        clock: Optional[Callable[[], datetime]] = None,
        lifetime: timedelta = EPHEMERAL_LIFETIME,
    ) -> None:
        self._store = store
        self._deleter = peer_deleter
        self._clock = clock or _now
        self._lifetime = lifetime
        self._peers: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    @property
    def pending_peer_ids(self) -> list[str]:
        """Ids of the peers awaiting deletion, earliest deadline first."""
        with self._lock:
            return list(self._peers)

    def _new_deadline(self) -> datetime:
        return self._clock() + self._lifetime

    def _schedule(self, delay: timedelta) -> None:
        if self._timer is not None:
            self._timer.cancel()
        timer = threading.Timer(max(delay.total_seconds(), 0.0), self.cleanup)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _head(self) -> Optional[_Entry]:
        return next(iter(self._peers.values()), None)

    def _load_locked(self) -> int:
        try:
            peers = list(self._store.get_all_ephemeral_peers())
        except Exception as exc:  # the store's failure only delays cleanup
            log.debug("failed to load ephemeral peers: %s", exc)
            return 0
        deadline = self._new_deadline()
        for peer in peers:
            self._peers[peer.id] = _Entry(peer.account_id, deadline)
        log.debug("loaded ephemeral peer(s): %d", len(peers))
        return len(peers)

    def load_ephemeral_peers(self) -> int:
        """Queue every ephemeral peer in the store; return how many were loaded."""
        with self._lock:
            return self._load_locked()

    def load_initial_peers(self) -> None:
        """Load the ephemeral peers and schedule a cleanup after one lifetime."""
        with self._lock:
            self._load_locked()
            if self._peers:
                self._schedule(self._lifetime)

    def stop(self) -> None:
        """Cancel the pending cleanup."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()

    def on_peer_connected(self, peer: Peer) -> None:
        """Take a peer off the deletion queue because it is active again."""
        if not peer.ephemeral:
            return
        log.debug("remove peer from ephemeral list: %s", peer.id)
        with self._lock:
            self._peers.pop(peer.id, None)
            if not self._peers and self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def on_peer_disconnected(self, peer: Peer) -> None:
        """Queue a peer for deletion once it has been inactive for a lifetime."""
        if not peer.ephemeral:
            return
        log.debug("add peer to ephemeral list: %s", peer.id)
        with self._lock:
            if peer.id in self._peers:
                return
            self._peers[peer.id] = _Entry(peer.account_id, self._new_deadline())
            if self._timer is None:
                head = self._head()
                assert head is not None
                self._schedule(head.deadline - self._clock())

    def cleanup(self) -> list[str]:
        """Delete every peer whose deadline has passed; return their ids."""
        expired: list[tuple[str, _Entry]] = []
        with self._lock:
            now = self._clock()
            for peer_id, entry in list(self._peers.items()):
                if now < entry.deadline:
                    break
                expired.append((peer_id, entry))
                del self._peers[peer_id]

            head = self._head()
            if head is not None:
                self._schedule(head.deadline - self._clock())
            else:
                if self._timer is not None:
                    self._timer.cancel()
                self._timer = None

        for peer_id, entry in expired:
            log.debug("delete ephemeral peer: %s", peer_id)
            try:
                self._deleter.delete_peer(entry.account_id, peer_id, SYSTEM_INITIATOR)
            except Exception as exc:  # one failure must not stop the others
                log.error("failed to delete ephemeral peer: %s", exc)
        return [peer_id for peer_id, _ in expired]