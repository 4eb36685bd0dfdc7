"""
Resolution of a (host, account) pair into the keys that account should trust.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from .directory import Directory, expand_users
from .errors import DirectoryInconsistency, UnknownGroup, UnknownHost, UnmappedUser

logger = logging.getLogger(__name__)


@dataclass
class UserKeys:
    """Keys of one resolved user, in the user's declared entry order."""
    username: str
    keys: List[str] = field(default_factory=list)


def resolve(directory: Directory, hostname: str, requested_user: str) -> List[UserKeys]:
    """
    Resolve the keys that may log in as ``requested_user`` on ``hostname``.

    Only an unknown host is an error. Every other problem is logged and
    answered with an empty (or, for an inconsistent directory, partial)
    result, so that hosts polling this service clear their cached keys
    instead of failing the login path.

    The caller must hold the read side of the key lock.

    Raises:
        UnknownHost: ``hostname`` is not a declared or group-expanded server.
    """
    server = directory.servers.get(hostname)
    if server is None:
        raise UnknownHost(hostname)

    references = server.policy.references_for(requested_user)
    if references is None:
        if not server.policy.map_users:
            logger.error(str(UnmappedUser(requested_user, hostname)))
            return []
        if requested_user not in directory.users:
            logger.error(str(UnmappedUser(requested_user, hostname, mapped=True)))
            return []
        references = [requested_user]

    try:
        usernames = expand_users(references, directory.user_groups)
    except UnknownGroup as e:
        logger.error(f"Could not expand users: {e}")
        return []

    result: List[UserKeys] = []
    for username in usernames:
        user = directory.users.get(username)
        if user is None:
            # the undeclared user keeps its header line; nothing after it is rendered
            result.append(UserKeys(username=username, keys=[]))
            logger.error(str(DirectoryInconsistency(username)))
            break
        result.append(UserKeys(username=username, keys=[key for key in user.resolved_keys() if key]))
    return result


def render(entries: List[UserKeys]) -> str:
    """Render resolved entries as an authorized_keys body."""
    lines: List[str] = []
    for entry in entries:
        lines.append(f"# user: {entry.username}")
        lines.extend(entry.keys)
    return "".join(f"{line}\n" for line in lines)
