"""Network resources: hosts, subnets and domains reachable through a network."""

from __future__ import annotations

import dataclasses
import ipaddress
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from meshmgmt.networks import Network
from meshmgmt.peer import Peer
from meshmgmt.routers import NetworkRouter

IPInterface = Union[ipaddress.IPv4Interface, ipaddress.IPv6Interface]

_DOMAIN_RE = re.compile(r"(\*\.)?([a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}")

# Placeholder network that domain routes carry in place of a real prefix.
_DOMAIN_PLACEHOLDER = ipaddress.ip_interface("192.0.2.0/32")

_INVALID_PREFIX = "invalid Prefix"


class NetworkResourceType(str, Enum):
    """The kind of address a resource stands for."""

    HOST = "host"
    SUBNET = "subnet"
    DOMAIN = "domain"

    def __str__(self) -> str:
        return self.value


class RouteNetworkType(str, Enum):
    """The kind of network a route points to."""

    INVALID = "Invalid"
    IPV4 = "IPv4"
    IPV6 = "IPv6"
    DOMAIN = "Domain"


@dataclass
class Route:
    """A route that a routing peer announces for a resource."""

    id: str = ""
    account_id: str = ""
    keep_route: bool = False
    net_id: str = ""
    description: str = ""
    peer: str = ""
    peer_id: str = ""
    peer_groups: list[str] = field(default_factory=list)
    masquerade: bool = False
    metric: int = 0
    enabled: bool = False
    groups: list[str] = field(default_factory=list)
    access_control_groups: list[str] = field(default_factory=list)
    network: Optional[IPInterface] = None
    network_type: RouteNetworkType = RouteNetworkType.INVALID


def _parse_prefix(address: str) -> Optional[IPInterface]:
    """Parse strict "address/bits" notation, keeping the address as given."""
    ip_part, sep, bits = address.rpartition("/")
    if not sep:
        return None
    if not (bits.isascii() and bits.isdigit()) or (len(bits) > 1 and bits[0] == "0"):
        return None
    try:
        ip = ipaddress.ip_address(ip_part)
        return ipaddress.ip_interface(f"{ip}/{int(bits)}")
    except ValueError:
        return None


def _parse_addr(address: str) -> Optional[IPInterface]:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return None
    return ipaddress.ip_interface(f"{ip}/{ip.max_prefixlen}")


def get_resource_type(
    address: str,
) -> tuple[NetworkResourceType, str, Optional[IPInterface]]:
    """Classify an address as host, subnet or domain.

    Returns the type, the domain (for domains only) and the prefix (for hosts
    and subnets only). Raises ValueError if the address is none of these.
    """
    prefix = _parse_prefix(address)
    if prefix is not None:
        if prefix.network.prefixlen in (32, 128):
            return NetworkResourceType.HOST, "", prefix
        return NetworkResourceType.SUBNET, "", prefix

    host = _parse_addr(address)
    if host is not None:
        return NetworkResourceType.HOST, "", host

    if _DOMAIN_RE.fullmatch(address):
        return NetworkResourceType.DOMAIN, address, None

    raise ValueError("not a valid host, subnet, or domain")


@dataclass
class NetworkResource:
    """A host, subnet or domain that belongs to a network."""

    id: str = ""
    network_id: str = ""
    account_id: str = ""
    name: str = ""
    description: str = ""
    type: Optional[NetworkResourceType] = None
    address: str = ""
    group_ids: list[str] = field(default_factory=list)
    domain: str = ""
    prefix: Optional[IPInterface] = None
    enabled: bool = False

    def to_api_response(self, groups: list[Any]) -> dict[str, Any]:
        """The API form of the resource with the given group summaries."""
        if self.type is NetworkResourceType.DOMAIN:
            address = self.domain
        else:
            address = str(self.prefix) if self.prefix is not None else _INVALID_PREFIX
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value if self.type is not None else "",
            "address": address,
            "groups": list(groups),
            "enabled": self.enabled,
        }

    def from_api_request(self, req: Mapping[str, Any]) -> None:
        """Fill the resource from an API request body."""
        self.name = req.get("name", "")
        description = req.get("description")
        if description is not None:
            self.description = description
        self.address = req.get("address", "")
        self.group_ids = list(req.get("groups") or [])
        self.enabled = bool(req.get("enabled", False))

    def copy(self) -> NetworkResource:
        return dataclasses.replace(self, group_ids=list(self.group_ids))

    def to_route(self, peer: Peer, router: NetworkRouter) -> Route:
        """The route the given peer announces for this resource."""
        route = Route(
            id=f"{self.id}:{peer.id}",
            account_id=self.account_id,
            keep_route=True,
            net_id=self.name,
            description=self.description,
            peer=peer.key,
            peer_id=peer.id,
            masquerade=router.masquerade,
            metric=router.metric,
            enabled=self.enabled,
        )

        if self.type in (NetworkResourceType.HOST, NetworkResourceType.SUBNET):
            route.network = self.prefix
            route.network_type = RouteNetworkType.IPV4
            if self.prefix is not None and self.prefix.version == 6:
                route.network_type = RouteNetworkType.IPV6

        if self.type is NetworkResourceType.DOMAIN:
            route.network_type = RouteNetworkType.DOMAIN
            route.network = _DOMAIN_PLACEHOLDER

        return route

    def event_meta(self, network: Network) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "network_name": network.name,
            "network_id": network.id,
        }


def new_network_resource(
    account_id: str,
    network_id: str,
    name: str,
    description: str,
    address: str,
    group_ids: list[str],
    enabled: bool,
) -> NetworkResource:
    """Create a resource, classifying its address; raises ValueError if invalid."""
    try:
        resource_type, domain, prefix = get_resource_type(address)
    except ValueError as exc:
        raise ValueError(f"invalid address: {exc}") from exc

    return NetworkResource(
        id=uuid.uuid4().hex,
        account_id=account_id,
        network_id=network_id,
        name=name,
        description=description,
        type=resource_type,
        address=address,
        domain=domain,
        prefix=prefix,
        group_ids=list(group_ids),
        enabled=enabled,
    )