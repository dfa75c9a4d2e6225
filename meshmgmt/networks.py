"""Networks that group routers and resources within an account."""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass
class Network:
    """A named network belonging to an account."""

    id: str = ""
    account_id: str = ""
    name: str = ""
    description: str = ""

    def to_api_response(
        self,
        router_ids: list[str],
        resource_ids: list[str],
        routing_peers_count: int,
        policy_ids: list[str],
    ) -> dict[str, Any]:
        """The API form of the network with the ids of what belongs to it."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "routers": list(router_ids),
            "resources": list(resource_ids),
            "routing_peers_count": routing_peers_count,
            "policies": list(policy_ids),
        }

    def from_api_request(self, req: Mapping[str, Any]) -> None:
        """Take name and, when given, description from an API request body."""
        self.name = req.get("name", "")
        description = req.get("description")
        if description is not None:
            self.description = description

    def copy(self) -> Network:
        return dataclasses.replace(self)

    def event_meta(self) -> dict[str, Any]:
        return {"name": self.name}


def new_network(account_id: str, name: str, description: str) -> Network:
    """Create a network with a fresh unique id."""
    return Network(
        id=uuid.uuid4().hex,
        account_id=account_id,
        name=name,
        description=description,
    )