"""Configuration of the management service."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Optional, Union

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

PROVIDER_NONE = "none"
"""Authorization flow provider meaning no provider is configured."""

DEFAULT_DEVICE_AUTH_FLOW_SCOPE = "openid"
"""The minimum scope requested in the device authorization flow."""


class Protocol(str, Enum):
    """Protocol of a host the clients connect to."""

    UDP = "udp"
    DTLS = "dtls"
    TCP = "tcp"
    HTTP = "http"
    HTTPS = "https"


@dataclass
class Host:
    """A STUN, TURN or Signal host."""

    proto: Optional[Protocol] = None
    uri: str = ""
    username: str = ""
    password: str = ""


@dataclass
class TURNConfig:
    """Settings of the TURN credentials manager."""

    time_based_credentials: bool = False
    credentials_ttl: timedelta = timedelta(0)
    secret: str = ""
    turns: list[Host] = field(default_factory=list)


@dataclass
class Relay:
    addresses: list[str] = field(default_factory=list)
    credentials_ttl: timedelta = timedelta(0)
    secret: str = ""


@dataclass
class HttpServerConfig:
    """Settings of the HTTP API server and its JWT validation."""

    lets_encrypt_domain: str = ""
    cert_file: str = ""
    cert_key: str = ""
    auth_audience: str = ""
    auth_issuer: str = ""
    auth_user_id_claim: str = ""
    auth_keys_location: str = ""
    oidc_config_endpoint: str = ""
    idp_sign_key_refresh_enabled: bool = False
    extra_auth_audience: str = ""


@dataclass
class ProviderConfig:
    """What a client needs to start a device or PKCE authorization flow."""

    client_id: str = ""
    client_secret: str = ""
    domain: str = ""
    audience: str = ""
    token_endpoint: str = ""
    device_auth_endpoint: str = ""
    authorization_endpoint: str = ""
    scope: str = ""
    use_id_token: bool = False
    redirect_urls: list[str] = field(default_factory=list)
    disable_prompt_login: bool = False


@dataclass
class DeviceAuthorizationFlow:
    """OAuth 2.0 device authorization grant settings."""

    provider: str = ""
    provider_config: ProviderConfig = field(default_factory=ProviderConfig)


@dataclass
class PKCEAuthorizationFlow:
    """OAuth 2.0 authorization code grant with PKCE settings."""

    provider_config: ProviderConfig = field(default_factory=ProviderConfig)


@dataclass
class StoreConfig:
    engine: str = ""


@dataclass
class ReverseProxy:
    """Trusted proxies in front of the management service."""

    trusted_http_proxies: list[IPNetwork] = field(default_factory=list)
    trusted_http_proxies_count: int = 0
    trusted_peers: list[IPNetwork] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.trusted_http_proxies_count < 0:
            raise ValueError("trusted HTTP proxies count must not be negative")


@dataclass
class Config:
    """Configuration of the management service."""

    stuns: list[Host] = field(default_factory=list)
    turn_config: Optional[TURNConfig] = None
    relay: Optional[Relay] = None
    signal: Optional[Host] = None
    datadir: str = ""
    data_store_encryption_key: str = ""
    http_config: Optional[HttpServerConfig] = None
    idp_manager_config: Optional[dict[str, Any]] = None
    device_authorization_flow: Optional[DeviceAuthorizationFlow] = None
    pkce_authorization_flow: Optional[PKCEAuthorizationFlow] = None
    store_config: StoreConfig = field(default_factory=StoreConfig)
    reverse_proxy: ReverseProxy = field(default_factory=ReverseProxy)

    def auth_audiences(self) -> list[str]:
        """The audiences accepted in tokens: HTTP, extra and device flow ones."""
        if self.http_config is None:
            raise ValueError("HTTP server configuration is missing")
        audiences = [self.http_config.auth_audience]
        if self.http_config.extra_auth_audience:
            audiences.append(self.http_config.extra_auth_audience)
        flow = self.device_authorization_flow
        if flow is not None and flow.provider_config.audience:
            audiences.append(flow.provider_config.audience)
        return audiences