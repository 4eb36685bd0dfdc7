"""
Directory model: users, servers, user groups and server groups.

The shape of the directory is fixed once it has been loaded. The only field
that changes afterwards is ``KeyEntry.resolved``, which the key refresher
rewrites under the write side of the service lock.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, List

GROUP_PREFIX = "@"
REMOTE_PREFIX = "http"


@dataclass
class KeyEntry:
    """One declared key: literal key text or a URL to fetch it from."""
    source: str
    resolved: str = ""

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(REMOTE_PREFIX)


@dataclass
class User:
    """A declared user and its key entries, in declaration order."""
    name: str
    entries: List[KeyEntry] = field(default_factory=list)

    @classmethod
    def from_keys(cls, name: str, keys: List[str]) -> "User":
        return cls(name=name, entries=[KeyEntry(source=key) for key in keys])

    @property
    def keys(self) -> List[str]:
        """Declared key sources."""
        return [entry.source for entry in self.entries]

    def resolved_keys(self) -> List[str]:
        """Cached key text, one per entry, empty where nothing is cached yet."""
        return [entry.resolved for entry in self.entries]


@dataclass
class AccountPolicy:
    """Which local accounts accept which user/group references."""
    users: Dict[str, List[str]] = field(default_factory=dict)
    map_users: bool = False

    def references_for(self, account: str):
        """Reference list for a local account, or None when unmapped."""
        return self.users.get(account)

    def copy(self) -> "AccountPolicy":
        return AccountPolicy(users=copy.deepcopy(self.users), map_users=self.map_users)


@dataclass
class Server:
    """A managed host and its account-mapping policy."""
    hostname: str
    policy: AccountPolicy = field(default_factory=AccountPolicy)


@dataclass
class UserGroup:
    """Named set of concrete usernames, referenced as ``@name``."""
    name: str
    members: List[str] = field(default_factory=list)


@dataclass
class ServerGroup:
    """Hosts that share one account-mapping policy."""
    name: str
    members: List[str] = field(default_factory=list)
    policy: AccountPolicy = field(default_factory=AccountPolicy)

    def materialize(self) -> List[Server]:
        """One Server per member host, each with its own copy of the policy."""
        return [Server(hostname=member, policy=self.policy.copy()) for member in self.members]


@dataclass
class Directory:
    """The aggregate loaded at startup."""
    users: Dict[str, User] = field(default_factory=dict)
    servers: Dict[str, Server] = field(default_factory=dict)
    user_groups: Dict[str, UserGroup] = field(default_factory=dict)
    server_groups: Dict[str, ServerGroup] = field(default_factory=dict)

    def get_stats(self) -> Dict[str, int]:
        """Directory sizes for status endpoints and startup logging."""
        return {
            "users": len(self.users),
            "servers": len(self.servers),
            "user_groups": len(self.user_groups),
            "server_groups": len(self.server_groups),
            "key_entries": sum(len(u.entries) for u in self.users.values()),
            "remote_key_entries": sum(
                1 for u in self.users.values() for e in u.entries if e.is_remote
            ),
        }
