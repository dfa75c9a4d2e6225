"""Routers that give peers access to a network."""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from meshmgmt.networks import Network


@dataclass
class NetworkRouter:
    """A peer, or a group of peers, routing traffic into a network."""

    id: str = ""
    network_id: str = ""
    account_id: str = ""
    peer: str = ""
    peer_groups: list[str] = field(default_factory=list)
    masquerade: bool = False
    metric: int = 0
    enabled: bool = False

    def to_api_response(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "peer": self.peer,
            "peer_groups": list(self.peer_groups),
            "masquerade": self.masquerade,
            "metric": self.metric,
            "enabled": self.enabled,
        }

    def from_api_request(self, req: Mapping[str, Any]) -> None:
        """Fill the router from an API request body; absent peer fields stay."""
        peer = req.get("peer")
        if peer is not None:
            self.peer = peer
        peer_groups = req.get("peer_groups")
        if peer_groups is not None:
            self.peer_groups = list(peer_groups)
        self.masquerade = bool(req.get("masquerade", False))
        self.metric = int(req.get("metric", 0))
        self.enabled = bool(req.get("enabled", False))

    def copy(self) -> NetworkRouter:
        return dataclasses.replace(self, peer_groups=list(self.peer_groups))

    def event_meta(self, network: Network) -> dict[str, Any]:
        return {
            "network_name": network.name,
            "network_id": network.id,
            "peer": self.peer,
            "peer_groups": self.peer_groups,
        }


def new_network_router(
    account_id: str,
    network_id: str,
    peer: str,
    peer_groups: list[str],
    masquerade: bool,
    metric: int,
    enabled: bool,
) -> NetworkRouter:
    """Create a router; a single peer and peer groups exclude each other."""
    if peer and peer_groups:
        raise ValueError("peer and peerGroups cannot be set at the same time")
    return NetworkRouter(
        id=uuid.uuid4().hex,
        account_id=account_id,
        network_id=network_id,
        peer=peer,
        peer_groups=list(peer_groups),
        masquerade=masquerade,
        metric=metric,
        enabled=enabled,
    )