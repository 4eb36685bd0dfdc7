"""
Error taxonomy for Keyper Service.

Every domain failure carries a stable ``code`` and the HTTP status the
transport layer would use if it chose to surface it. Only ``UnknownHost`` is
ever surfaced to callers; the rest are logged and turned into empty or
partial results by the resolver and refresher.
"""

from typing import Any, Dict, Optional


KEYPER_E_UNKNOWN_HOST = "KEYPER_E_UNKNOWN_HOST"
KEYPER_E_UNKNOWN_GROUP = "KEYPER_E_UNKNOWN_GROUP"
KEYPER_E_UNMAPPED_USER = "KEYPER_E_UNMAPPED_USER"
KEYPER_E_REMOTE_FETCH = "KEYPER_E_REMOTE_FETCH"
KEYPER_E_DIRECTORY_INCONSISTENCY = "KEYPER_E_DIRECTORY_INCONSISTENCY"
KEYPER_E_DIRECTORY = "KEYPER_E_DIRECTORY"


class KeyperError(Exception):
    """Base exception with a stable error code."""

    code = "KEYPER_E_INTERNAL"
    http_status = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "http_status": self.http_status,
        }
        if self.details:
            d["details"] = self.details
        return d

    def __str__(self) -> str:
        return self.message


class UnknownHost(KeyperError):
    """Requested hostname is not in the directory."""

    code = KEYPER_E_UNKNOWN_HOST
    http_status = 400

    def __init__(self, hostname: str):
        super().__init__(f"No entry for hostname '{hostname}'", hostname=hostname)
        self.hostname = hostname


class UnknownGroup(KeyperError):
    """An ``@group`` reference has no matching user group."""

    code = KEYPER_E_UNKNOWN_GROUP
    http_status = 200

    def __init__(self, reference: str):
        super().__init__(f"Could not find users for group {reference}", reference=reference)
        self.reference = reference


class UnmappedUser(KeyperError):
    """Requested account has no mapping on the host."""

    code = KEYPER_E_UNMAPPED_USER
    http_status = 200

    def __init__(self, username: str, hostname: str, mapped: bool = False):
        if mapped:
            message = f"No entry for mapped user '{username}' on server '{hostname}'"
        else:
            message = f"No entry for user '{username}' on server '{hostname}'"
        super().__init__(message, username=username, hostname=hostname, mapped=mapped)
        self.username = username
        self.hostname = hostname


class DirectoryInconsistency(KeyperError):
    """A resolved username is not declared as a user."""

    code = KEYPER_E_DIRECTORY_INCONSISTENCY
    http_status = 200

    def __init__(self, username: str):
        super().__init__(f"Could not get user for username: {username}", username=username)
        self.username = username


class RemoteFetchFailure(KeyperError):
    """Fetching a remote key source failed; the cached value is kept."""

    code = KEYPER_E_REMOTE_FETCH
    http_status = 200

    def __init__(self, url: str, username: str, reason: Optional[str] = None):
        message = f"Could not get '{url}' for user '{username}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, url=url, username=username)
        self.url = url
        self.username = username
        self.reason = reason


class DirectoryError(KeyperError):
    """The directory file is invalid. Fatal at startup."""

    code = KEYPER_E_DIRECTORY
    http_status = 500
