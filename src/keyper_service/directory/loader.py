"""
Directory loader.

Reads the YAML directory file, validates its structure and folds server
group membership into the servers map. Every structural problem is raised as
DirectoryError before the service starts serving or refreshing.

Section and field names are matched case-insensitively, so ``Mapusers`` and
``mapusers`` are both accepted. Names of users, hosts, groups and local
accounts are taken as written.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from ..errors import DirectoryError
from .models import AccountPolicy, Directory, Server, ServerGroup, User, UserGroup

logger = logging.getLogger(__name__)

SECTIONS = ("users", "servers", "usergroups", "servergroups")


def _field(mapping: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Case-insensitive lookup of a section or field name."""
    for key, value in mapping.items():
        if str(key).lower() == name:
            return value
    return default


def _mapping(value: Any, where: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DirectoryError(f"{where}: expected a mapping, got {type(value).__name__}")
    for key in value:
        if not isinstance(key, str):
            raise DirectoryError(f"{where}: expected string keys, got {key!r} (quote it in YAML)")
    return dict(value)


def _string_list(value: Any, where: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DirectoryError(f"{where}: expected a list, got {type(value).__name__}")
    for item in value:
        if not isinstance(item, str):
            raise DirectoryError(f"{where}: expected strings, got {item!r}")
    return list(value)


def _policy(spec: Mapping[str, Any], where: str) -> AccountPolicy:
    accounts = _mapping(_field(spec, "users"), f"{where}.users")
    map_users = _field(spec, "mapusers", False)
    if not isinstance(map_users, bool):
        raise DirectoryError(f"{where}.mapusers: expected a boolean, got {map_users!r}")
    return AccountPolicy(
        users={account: _string_list(refs, f"{where}.users.{account}") for account, refs in accounts.items()},
        map_users=map_users,
    )


def parse_directory(data: Optional[Mapping[str, Any]]) -> Directory:
    """Build a Directory from an already-parsed document, without server group expansion."""
    data = _mapping(data, "directory")
    unknown = [key for key in data if key.lower() not in SECTIONS]
    if unknown:
        raise DirectoryError(f"directory: unknown section(s): {', '.join(sorted(unknown))}")

    directory = Directory()

    for name, spec in _mapping(_field(data, "users"), "users").items():
        spec = _mapping(spec, f"users.{name}")
        directory.users[name] = User.from_keys(name, _string_list(_field(spec, "keys"), f"users.{name}.keys"))

    for hostname, spec in _mapping(_field(data, "servers"), "servers").items():
        spec = _mapping(spec, f"servers.{hostname}")
        directory.servers[hostname] = Server(hostname=hostname, policy=_policy(spec, f"servers.{hostname}"))

    for name, spec in _mapping(_field(data, "usergroups"), "usergroups").items():
        spec = _mapping(spec, f"usergroups.{name}")
        directory.user_groups[name] = UserGroup(
            name=name,
            members=_string_list(_field(spec, "members"), f"usergroups.{name}.members"),
        )

    for name, spec in _mapping(_field(data, "servergroups"), "servergroups").items():
        spec = _mapping(spec, f"servergroups.{name}")
        directory.server_groups[name] = ServerGroup(
            name=name,
            members=_string_list(_field(spec, "members"), f"servergroups.{name}.members"),
            policy=_policy(spec, f"servergroups.{name}"),
        )

    return directory


def expand_server_groups(directory: Directory) -> Directory:
    """
    Materialize every server group member as a Server.

    A hostname may be a direct server or a member of exactly one server
    group. Anything else raises DirectoryError.
    """
    owners: Dict[str, str] = {}
    for group_name in sorted(directory.server_groups):
        group = directory.server_groups[group_name]
        for server in group.materialize():
            if server.hostname in owners:
                raise DirectoryError(
                    f"server '{server.hostname}' is member of servergroup '{owners[server.hostname]}', "
                    f"but also of servergroup '{group_name}'"
                )
            if server.hostname in directory.servers:
                raise DirectoryError(
                    f"server '{server.hostname}' already exists, but is also member of servergroup '{group_name}'"
                )
            owners[server.hostname] = group_name
            directory.servers[server.hostname] = server
    return directory


def load_directory(path: Union[str, Path]) -> Directory:
    """Load, validate and expand the directory file at ``path``."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise DirectoryError(f"Could not read directory file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise DirectoryError(f"Could not parse directory file {path}: {e}") from e

    directory = expand_server_groups(parse_directory(data))
    stats = directory.get_stats()
    logger.info(
        f"Loaded directory from {path}: {stats['users']} users, {stats['servers']} servers, "
        f"{stats['user_groups']} user groups, {stats['server_groups']} server groups"
    )
    return directory
