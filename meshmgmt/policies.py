"""Access policies and the rules they are made of."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from meshmgmt.groups import Resource

DEFAULT_RULE_NAME = "Default"
DEFAULT_RULE_DESCRIPTION = (
    "This is a default rule that allows connections between all the resources"
)
DEFAULT_POLICY_NAME = "Default"
DEFAULT_POLICY_DESCRIPTION = (
    "This is a default policy that allows connections between all the resources"
)

_MAX_PORT = 0xFFFF


class PolicyTrafficAction(str, Enum):
    """What the firewall does with matching traffic."""

    ACCEPT = "accept"
    DROP = "drop"


class PolicyRuleProtocol(str, Enum):
    """The kind of traffic a rule applies to."""

    ALL = "all"
    TCP = "tcp"
    UDP = "udp"
    ICMP = "icmp"


class PolicyRuleDirection(str, Enum):
    """The direction traffic is allowed to flow."""

    DIRECT = "direct"
    BIDIRECT = "bidirect"


@dataclass
class PolicyUpdateOperation:
    """An operation with its type and the values it applies."""

    type: int = 0
    values: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RulePortRange:
    """An inclusive range of ports for a firewall rule."""

    start: int = 0
    end: int = 0

    def __post_init__(self) -> None:
        for name, port in (("start", self.start), ("end", self.end)):
            if not 0 <= port <= _MAX_PORT:
                raise ValueError(f"port range {name} {port} is out of range")

    def to_proto(self) -> dict[str, Any]:
        """The wire form of the range as a port selection."""
        return {"range": {"start": self.start, "end": self.end}}


@dataclass
class PolicyRule:
    """A single rule of a policy."""

    id: str = ""
    policy_id: str = ""
    name: str = ""
    description: str = ""
    enabled: bool = False
    action: Optional[PolicyTrafficAction] = None
    destinations: list[str] = field(default_factory=list)
    destination_resource: Resource = field(default_factory=Resource)
    sources: list[str] = field(default_factory=list)
    source_resource: Resource = field(default_factory=Resource)
    bidirectional: bool = False
    protocol: Optional[PolicyRuleProtocol] = None
    ports: list[str] = field(default_factory=list)
    port_ranges: list[RulePortRange] = field(default_factory=list)

    def copy(self) -> PolicyRule:
        return dataclasses.replace(
            self,
            destinations=list(self.destinations),
            destination_resource=dataclasses.replace(self.destination_resource),
            sources=list(self.sources),
            source_resource=dataclasses.replace(self.source_resource),
            ports=list(self.ports),
            port_ranges=list(self.port_ranges),
        )


@dataclass
class Policy:
    """A named set of rules that governs traffic between groups."""

    id: str = ""
    account_id: str = ""
    name: str = ""
    description: str = ""
    enabled: bool = False
    rules: list[PolicyRule] = field(default_factory=list)
    source_posture_checks: list[str] = field(default_factory=list)

    def copy(self) -> Policy:
        return dataclasses.replace(
            self,
            rules=[rule.copy() for rule in self.rules],
            source_posture_checks=list(self.source_posture_checks),
        )

    def event_meta(self) -> dict[str, Any]:
        return {"name": self.name}

    def upgrade_and_fix(self) -> None:
        """Bring rules stored by older versions up to the current form."""
        for rule in self.rules:
            if rule.protocol is None:
                rule.protocol = PolicyRuleProtocol.ALL
            if rule.protocol is PolicyRuleProtocol.ALL and not rule.bidirectional:
                rule.bidirectional = True

    def rule_groups(self) -> list[str]:
        """All groups the rules reference, sources before destinations per rule."""
        groups: list[str] = []
        for rule in self.rules:
            groups.extend(rule.sources)
            groups.extend(rule.destinations)
        return groups

    def source_groups(self) -> list[str]:
        """The distinct source groups across all rules."""
        if len(self.rules) == 1:
            return list(self.rules[0].sources)
        unique = dict.fromkeys(
            source for rule in self.rules for source in rule.sources
        )
        return list(unique)