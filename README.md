# meshmgmt

Building blocks for the management side of a mesh overlay network: the
domain objects (peers, users, groups, policies, networks, routers and
resources) and small in-process controllers that keep peers up to date.
It has no dependencies beyond the standard library.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## What is inside

| Module | Contents |
| --- | --- |
| `meshmgmt.peer` | `Peer`, `PeerStatus`, `PeerSystemMeta`, `Location`, `NetworkAddress`, `Environment`, `File`; login and session expiry checks, FQDN building |
| `meshmgmt.groups` | `Group` and `Resource` |
| `meshmgmt.settings` | account `Settings` and `ExtraSettings` |
| `meshmgmt.users` | `User`, `UserRole`, `UserStatus`, `UserInfo`, `UserData`, `str_role_to_user_role` and the `new_user`, `new_regular_user`, `new_admin_user`, `new_owner_user` helpers |
| `meshmgmt.policies` | `Policy`, `PolicyRule`, `RulePortRange` and the `PolicyTrafficAction`, `PolicyRuleProtocol`, `PolicyRuleDirection` enums |
| `meshmgmt.networks` | `Network` and `new_network` |
| `meshmgmt.routers` | `NetworkRouter` and `new_network_router` |
| `meshmgmt.resources` | `NetworkResource`, `new_network_resource`, `get_resource_type`, and conversion to a `Route` |
| `meshmgmt.overlay` | `OverlayNetwork` and `new_overlay_network`, a random /16 taken from 100.64.0.0/10 |
| `meshmgmt.updates` | `UpdateChannel` and `PeerChannel`, one bounded queue of updates per connected peer |
| `meshmgmt.ephemeral` | `EphemeralPeerController`, which deletes ephemeral peers after ten minutes offline |
| `meshmgmt.container` | `Container`, a keyed registry of lazily created dependencies |
| `meshmgmt.config` | `Config` and the settings objects it holds |

## Examples

Classify an address for a network resource. `get_resource_type` returns the
type, the domain (for domains) and the prefix (for hosts and subnets), and
raises `ValueError` for anything else:

```python
from meshmgmt.resources import get_resource_type

get_resource_type("10.0.0.0/24")    # (SUBNET, "", 10.0.0.0/24)
get_resource_type("10.0.0.1")       # (HOST, "", 10.0.0.1/32)
get_resource_type("*.example.com")  # (DOMAIN, "*.example.com", None)
```

Check whether a peer's login has expired:

```python
from datetime import timedelta
from meshmgmt.peer import Peer

peer = Peer(id="peer-1", user_id="user-1", login_expiration_enabled=True)
peer.update_last_login()
expired, time_left = peer.login_expired(timedelta(hours=24))
```

Only peers added through an SSO login (those with a `user_id`) can expire.

Send updates to connected peers:

```python
from meshmgmt.updates import UpdateChannel, UpdateMessage

channels = UpdateChannel()
queue = channels.create_channel("peer-1")
channels.send_update("peer-1", UpdateMessage())
message = queue.receive(timeout=1.0)
channels.close_channel("peer-1")
```

Each peer's queue holds at most 100 messages. When it is full,
`send_update` drops the update and returns `False` rather than blocking.
Creating a channel for a peer that already has one closes the old one.

Remove ephemeral peers that stay offline. The controller is given an object
with `get_all_ephemeral_peers()` and one with
`delete_peer(account_id, peer_id, initiator)`; the clock and the lifetime
can be replaced:

```python
from meshmgmt.ephemeral import EphemeralPeerController

controller = EphemeralPeerController(store, deleter)
controller.load_initial_peers()      # queue them and schedule a cleanup
controller.on_peer_connected(peer)   # active again: no longer deleted
controller.on_peer_disconnected(peer)
deleted_ids = controller.cleanup()   # delete everything past its deadline
controller.stop()
```

Share dependencies between components:

```python
from meshmgmt.container import Container

container = Container()
settings = container.create(dict, lambda: {"dns": ""})
assert container.create(dict, dict) is settings
```

The first object stored for a key wins. `inject` puts a ready-made object in
place before anything asks for it, which is handy in tests; `create_named`
and `inject_named` keep several instances of one kind apart.

## What this package does not do

It is a library of in-memory objects and controllers. It has no command to
start, no HTTP or gRPC server, no REST API, no database storage and no
metrics export. The API forms returned by `to_api_response` are plain
dictionaries, and persistence of peers, users or networks is left to the
application that uses the package.