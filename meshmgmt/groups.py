"""Groups of peers and resources."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

ISSUED_API = "api"
ISSUED_INTEGRATION = "integration"
ISSUED_JWT = "jwt"


@dataclass
class Resource:
    """A reference to a resource by id and type."""

    id: str = ""
    type: str = ""

    def to_api_response(self) -> Optional[dict[str, str]]:
        """The API form of the resource, or None when it is unset."""
        if self.id == "" and self.type == "":
            return None
        return {"id": self.id, "type": self.type}

    def from_api_request(self, req: Optional[Mapping[str, Any]]) -> None:
        """Fill the resource from an API request body; None leaves it unchanged."""
        if req is None:
            return
        self.id = str(req.get("id", ""))
        self.type = str(req.get("type", ""))


@dataclass
class Group:
    """A named set of peers and resources within an account."""

    id: str = ""
    account_id: str = ""
    name: str = ""
    issued: str = ""
    peers: list[str] = field(default_factory=list)
    resources: list[Resource] = field(default_factory=list)
    integration_reference: dict[str, Any] = field(default_factory=dict)