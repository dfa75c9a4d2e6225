"""Account settings that can be changed through the API and the dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional


@dataclass
class ExtraSettings:
    """Additional account settings, such as peer approval and flow collection."""

    peer_approval_enabled: bool = False
    integrated_validator_groups: list[str] = field(default_factory=list)
    # The flow flags are not persisted; they come from the integrations.
    flow_enabled: bool = False
    flow_packet_counter_enabled: bool = False
    flow_en_collection_enabled: bool = False
    flow_dns_collection_enabled: bool = False

    def copy(self) -> ExtraSettings:
        """Copy the persisted part; the flow flags are left at their defaults."""
        return ExtraSettings(
            peer_approval_enabled=self.peer_approval_enabled,
            integrated_validator_groups=list(self.integrated_validator_groups),
        )


@dataclass
class Settings:
    """Account settings."""

    peer_login_expiration_enabled: bool = False
    peer_login_expiration: timedelta = timedelta(0)
    peer_inactivity_expiration_enabled: bool = False
    peer_inactivity_expiration: timedelta = timedelta(0)
    regular_users_view_blocked: bool = False
    groups_propagation_enabled: bool = False
    jwt_groups_enabled: bool = False
    jwt_groups_claim_name: str = ""
    jwt_allow_groups: list[str] = field(default_factory=list)
    routing_peer_dns_resolution_enabled: bool = False
    extra: Optional[ExtraSettings] = None

    def copy(self) -> Settings:
        return Settings(
            peer_login_expiration_enabled=self.peer_login_expiration_enabled,
            peer_login_expiration=self.peer_login_expiration,
            peer_inactivity_expiration_enabled=self.peer_inactivity_expiration_enabled,
            peer_inactivity_expiration=self.peer_inactivity_expiration,
            regular_users_view_blocked=self.regular_users_view_blocked,
            groups_propagation_enabled=self.groups_propagation_enabled,
            jwt_groups_enabled=self.jwt_groups_enabled,
            jwt_groups_claim_name=self.jwt_groups_claim_name,
            jwt_allow_groups=list(self.jwt_allow_groups),
            routing_peer_dns_resolution_enabled=self.routing_peer_dns_resolution_enabled,
            extra=self.extra.copy() if self.extra is not None else None,
        )