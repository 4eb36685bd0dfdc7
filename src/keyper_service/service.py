"""
Key service: owns the directory, the key lock and the refresher.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from .config import KeyperServiceConfig, get_config
from .directory import Directory, load_directory
from .keys import KeyRefresher, ReadWriteLock
from .resolver import UserKeys, render, resolve

logger = logging.getLogger(__name__)


class KeyService:
    """
    Answers key lookups against one loaded directory.

    Lookups hold the read side of the lock while resolving; refresh passes
    publish under the write side. The directory structure itself is never
    modified after construction.
    """

    def __init__(
        self,
        directory: Directory,
        key_fetch_interval: float = 300.0,
        fetch_timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.directory = directory
        self.lock = ReadWriteLock()
        self.refresher = KeyRefresher(
            directory,
            self.lock,
            interval=key_fetch_interval,
            timeout=fetch_timeout,
            session=session,
        )

    @classmethod
    def from_config(cls, config: KeyperServiceConfig) -> "KeyService":
        """Load the directory file named by ``config``. Raises DirectoryError."""
        directory = load_directory(config.directory_file)
        return cls(
            directory,
            key_fetch_interval=config.key_fetch_interval,
            fetch_timeout=config.fetch_timeout,
        )

    def start(self):
        """Refresh once synchronously, then keep refreshing in the background."""
        report = self.refresher.refresh()
        logger.info(
            f"Initial key refresh: {report.updated_entries} entries, "
            f"{report.remote_failed} failed fetch(es)"
        )
        self.refresher.start()

    def stop(self):
        self.refresher.stop()

    def lookup(self, hostname: str, username: str) -> List[UserKeys]:
        """Resolve keys for ``username`` on ``hostname``. Raises UnknownHost."""
        with self.lock.read_locked():
            return resolve(self.directory, hostname, username)

    def lookup_text(self, hostname: str, username: str) -> str:
        """Lookup rendered as an authorized_keys body. Raises UnknownHost."""
        return render(self.lookup(hostname, username))

    def get_status(self) -> Dict[str, Any]:
        last = self.refresher.last_report
        return {
            "directory": self.directory.get_stats(),
            "refresher": {
                "running": self.refresher.is_running,
                "interval": self.refresher.interval,
                "passes": self.refresher.pass_count,
                "last_refresh": last.to_dict() if last else None,
            },
        }


# Module-level singleton
_key_service: Optional[KeyService] = None


def get_key_service() -> KeyService:
    """Get or create the singleton KeyService from the global config."""
    global _key_service
    if _key_service is None:
        _key_service = KeyService.from_config(get_config())
    return _key_service


def set_key_service(service: Optional[KeyService]) -> None:
    """Set (or clear) the singleton KeyService."""
    global _key_service
    _key_service = service
