"""Peers of the overlay network and their system metadata."""

from __future__ import annotations

import copy as _copy
import dataclasses
import ipaddress
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPInterface = Union[ipaddress.IPv4Interface, ipaddress.IPv6Interface]

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
"""The time a peer reports when no time was ever recorded."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PeerStatus:
    """Connection status of a peer towards the management service."""

    last_seen: datetime = ZERO_TIME
    connected: bool = False
    login_expired: bool = False
    requires_approval: bool = False

    def copy(self) -> PeerStatus:
        return dataclasses.replace(self)


@dataclass
class Location:
    """Geo location of a peer based on its public connection IP."""

    connection_ip: Optional[IPAddress] = None
    country_code: str = ""
    city_name: str = ""
    geo_name_id: int = 0


@dataclass
class NetworkAddress:
    """An interface address with its prefix and MAC address."""

    net_ip: Optional[IPInterface] = None
    mac: str = ""


@dataclass
class Environment:
    """The environment a peer runs in."""

    cloud: str = ""
    platform: str = ""


@dataclass
class File:
    """A file checked on the peer's system."""

    path: str = ""
    exist: bool = False
    process_is_running: bool = False


@dataclass
class PeerSystemMeta:
    """System metadata reported by a peer."""

    hostname: str = ""
    go_os: str = ""
    kernel: str = ""
    core: str = ""
    platform: str = ""
    os: str = ""
    os_version: str = ""
    wt_version: str = ""
    ui_version: str = ""
    kernel_version: str = ""
    network_addresses: list[NetworkAddress] = field(default_factory=list)
    system_serial_number: str = ""
    system_product_name: str = ""
    system_manufacturer: str = ""
    environment: Environment = field(default_factory=Environment)
    files: list[File] = field(default_factory=list)

    def is_equal(self, other: PeerSystemMeta) -> bool:
        """Compare two metadata sets, ignoring the order of addresses and files."""
        mine = sorted(self.network_addresses, key=lambda a: a.mac)
        theirs = sorted(other.network_addresses, key=lambda a: a.mac)
        if len(mine) != len(theirs) or any(
            a.mac != b.mac or a.net_ip != b.net_ip for a, b in zip(mine, theirs)
        ):
            return False

        my_files = sorted(self.files, key=lambda f: f.path)
        their_files = sorted(other.files, key=lambda f: f.path)
        if len(my_files) != len(their_files) or any(
            (a.path, a.exist, a.process_is_running)
            != (b.path, b.exist, b.process_is_running)
            for a, b in zip(my_files, their_files)
        ):
            return False

        return (
            self.hostname == other.hostname
            and self.go_os == other.go_os
            and self.kernel == other.kernel
            and self.kernel_version == other.kernel_version
            and self.core == other.core
            and self.platform == other.platform
            and self.os == other.os
            and self.os_version == other.os_version
            and self.wt_version == other.wt_version
            and self.ui_version == other.ui_version
            and self.system_serial_number == other.system_serial_number
            and self.system_product_name == other.system_product_name
            and self.system_manufacturer == other.system_manufacturer
            and self.environment.cloud == other.environment.cloud
            and self.environment.platform == other.environment.platform
        )

    def is_empty(self) -> bool:
        """True when no metadata at all has been reported."""
        return not any(
            (
                self.hostname,
                self.go_os,
                self.kernel,
                self.core,
                self.platform,
                self.os,
                self.os_version,
                self.wt_version,
                self.ui_version,
                self.kernel_version,
                self.network_addresses,
                self.system_serial_number,
                self.system_product_name,
                self.system_manufacturer,
                self.environment.cloud,
                self.environment.platform,
                self.files,
            )
        )


@dataclass
class Peer:
    """A machine connected to the network, identified by its WireGuard key."""

    id: str = ""
    account_id: str = ""
    key: str = ""
    ip: Optional[IPAddress] = None
    meta: PeerSystemMeta = field(default_factory=PeerSystemMeta)
    name: str = ""
    dns_label: str = ""
    status: Optional[PeerStatus] = field(default_factory=PeerStatus)
    user_id: str = ""
    ssh_key: str = ""
    ssh_enabled: bool = False
    login_expiration_enabled: bool = False
    inactivity_expiration_enabled: bool = False
    last_login: Optional[datetime] = None
    created_at: datetime = ZERO_TIME
    ephemeral: bool = False
    location: Location = field(default_factory=Location)
    extra_dns_labels: list[str] = field(default_factory=list)
    allow_extra_dns_labels: bool = False

    def _require_status(self) -> PeerStatus:
        if self.status is None:
            raise ValueError(f"peer {self.id!r} has no status")
        return self.status

    def added_with_sso_login(self) -> bool:
        """True if a user registered this peer through an SSO login."""
        return self.user_id != ""

    def copy(self) -> Peer:
        return dataclasses.replace(
            self,
            meta=_copy.deepcopy(self.meta),
            status=self.status.copy() if self.status is not None else None,
            location=dataclasses.replace(self.location),
            extra_dns_labels=list(self.extra_dns_labels),
        )

    def update_meta_if_new(self, meta: PeerSystemMeta) -> bool:
        """Replace the metadata if the given one differs; return whether it did."""
        if meta.is_empty():
            return False
        # A CLI-only update carries no UI version; keep the known one.
        if meta.ui_version == "":
            meta = dataclasses.replace(meta, ui_version=self.meta.ui_version)
        if self.meta.is_equal(meta):
            return False
        self.meta = meta
        return True

    def last_login_time(self) -> datetime:
        """The last login time, or the zero time if the peer never logged in."""
        return self.last_login if self.last_login is not None else ZERO_TIME

    def mark_login_expired(self, expired: bool) -> None:
        new_status = self._require_status().copy()
        new_status.login_expired = expired
        if expired:
            new_status.connected = False
        self.status = new_status

    def session_expired(self, expires_in: timedelta) -> tuple[bool, timedelta]:
        """Whether the inactivity session expired, and the time left (negative if so)."""
        status = self._require_status()
        if (
            not self.added_with_sso_login()
            or not self.inactivity_expiration_enabled
            or status.connected
        ):
            return False, timedelta(0)
        time_left = status.last_seen + expires_in - _now()
        return time_left <= timedelta(0), time_left

    def login_expired(self, expires_in: timedelta) -> tuple[bool, timedelta]:
        """Whether the login expired, and the time left (negative if so)."""
        if not self.added_with_sso_login() or not self.login_expiration_enabled:
            return False, timedelta(0)
        time_left = self.last_login_time() + expires_in - _now()
        return time_left <= timedelta(0), time_left

    def fqdn(self, dns_domain: str) -> str:
        if dns_domain == "":
            return ""
        return f"{self.dns_label}.{dns_domain}"

    def event_meta(self, dns_domain: str) -> dict[str, Any]:
        return {
            "name": self.name,
            "fqdn": self.fqdn(dns_domain),
            "ip": self.ip,
            "created_at": self.created_at,
            "location_city_name": self.location.city_name,
            "location_country_code": self.location.country_code,
            "location_geo_name_id": self.location.geo_name_id,
            "location_connection_ip": self.location.connection_ip,
        }

    def update_last_login(self) -> Peer:
        """Record a login now and clear the login-expired flag."""
        self.last_login = _now()
        new_status = self._require_status().copy()
        new_status.login_expired = False
        self.status = new_status
        return self