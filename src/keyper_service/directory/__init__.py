"""
Directory module - users, servers and groups loaded at startup.
"""

from .models import (
    KeyEntry, User, AccountPolicy, Server, UserGroup, ServerGroup, Directory,
    GROUP_PREFIX, REMOTE_PREFIX,
)
from .groups import expand_users
from .loader import load_directory, parse_directory, expand_server_groups

__all__ = [
    "KeyEntry", "User", "AccountPolicy", "Server", "UserGroup", "ServerGroup", "Directory",
    "GROUP_PREFIX", "REMOTE_PREFIX",
    "expand_users",
    "load_directory", "parse_directory", "expand_server_groups",
]
