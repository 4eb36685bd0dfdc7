"""
User group expansion.
"""

from typing import Iterable, List, Mapping, Set

from ..errors import UnknownGroup
from .models import GROUP_PREFIX, UserGroup


def expand_users(references: Iterable[str], groups: Mapping[str, UserGroup]) -> List[str]:
    """
    Expand user references into a sorted, deduplicated list of usernames.

    A reference is either a plain username or ``@group``. Groups are expanded
    one level deep: members are taken verbatim, so a member that itself starts
    with ``@`` is treated as a username, not another group.

    Raises:
        UnknownGroup: a ``@group`` reference does not name a user group.
    """
    usernames: Set[str] = set()
    for reference in references:
        if reference.startswith(GROUP_PREFIX):
            group = groups.get(reference[len(GROUP_PREFIX):])
            if group is None:
                raise UnknownGroup(reference)
            usernames.update(group.members)
        else:
            usernames.add(reference)
    return sorted(usernames)
