"""The overlay network of an account and its change serial."""

from __future__ import annotations

import ipaddress
import random
import threading
import uuid
from dataclasses import dataclass, field

SUBNET_SIZE = 16
"""Prefix length of an account's subnet of the global network."""

NET_SIZE = 10
"""Prefix length of the global network 100.64.0.0/10."""

ALLOWED_IPS_FORMAT = "%s/32"
"""Format of a single peer address in WireGuard AllowedIPs."""

_GLOBAL_NETWORK = ipaddress.IPv4Network(f"100.64.0.0/{NET_SIZE}")


@dataclass
class OverlayNetwork:
    """An account's overlay network with a serial bumped on every change."""

    identifier: str = ""
    net: ipaddress.IPv4Network = _GLOBAL_NETWORK
    dns: str = ""
    serial: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def inc_serial(self) -> None:
        """Record that the network state has changed."""
        with self._lock:
            self.serial += 1

    def current_serial(self) -> int:
        """The id of the latest network state."""
        with self._lock:
            return self.serial

    def copy(self) -> OverlayNetwork:
        return OverlayNetwork(
            identifier=self.identifier,
            net=self.net,
            dns=self.dns,
            serial=self.serial,
        )


def new_overlay_network() -> OverlayNetwork:
    """Create a network on a random /16 of 100.64.0.0/10, with serial 0."""
    subnets = list(_GLOBAL_NETWORK.subnets(new_prefix=SUBNET_SIZE))
    return OverlayNetwork(
        identifier=uuid.uuid4().hex,
        net=random.choice(subnets),
        dns="",
        serial=0,
    )