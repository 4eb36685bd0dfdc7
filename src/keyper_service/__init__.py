"""
Keyper Service - SSH public key distribution for AuthorizedKeysCommand.

This service handles:
- Loading users, servers and groups from a YAML directory file
- Refreshing remotely hosted public keys in the background
- Resolving (host, account) lookups into authorized_keys bodies
- Serving the client scripts hosts install to query it
"""

from .main import main, app
from .version import __version__

__all__ = ["main", "app", "__version__"]
