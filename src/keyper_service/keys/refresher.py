"""
Key cache refresher.

Resolves every declared key entry to literal key text. Literal entries are
copied as-is; URL entries are fetched over HTTP. A failed fetch keeps the
previously cached value, so an upstream outage degrades to "last known good"
instead of "no keys".
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..directory import Directory, KeyEntry
from ..errors import RemoteFetchFailure
from ..metrics import record_refresh
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


@dataclass
class RefreshReport:
    """Outcome of one refresh pass."""
    started_at: datetime = field(default_factory=datetime.now)
    duration: float = 0.0
    local_entries: int = 0
    remote_ok: int = 0
    remote_failed: int = 0
    completed: bool = False

    @property
    def updated_entries(self) -> int:
        return self.local_entries + self.remote_ok

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "duration": round(self.duration, 3),
            "local_entries": self.local_entries,
            "remote_ok": self.remote_ok,
            "remote_failed": self.remote_failed,
            "completed": self.completed,
        }


class KeyRefresher:
    """
    Periodically refreshes cached key material.

    Fetches happen without holding the lock. The results of a whole pass are
    then published in one write-locked section, so a concurrent lookup sees
    either all of the previous pass or all of the new one.

    Usage:
        refresher = KeyRefresher(directory, lock, interval=300)
        refresher.refresh()  # synchronous first pass
        refresher.start()    # background passes every `interval` seconds
        ...
        refresher.stop()
    """

    def __init__(
        self,
        directory: Directory,
        lock: ReadWriteLock,
        interval: float = 300.0,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.directory = directory
        self.lock = lock
        self.interval = interval
        self.timeout = timeout
        self.session = session or requests.Session()

        self.running = False
        self.refresh_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._refresh_lock = threading.Lock()  # one pass at a time

        self.pass_count = 0
        self.last_report: Optional[RefreshReport] = None

    def fetch(self, url: str, username: str) -> str:
        """
        Fetch key text from ``url``.

        Raises:
            RemoteFetchFailure: transport error, body read error or non-2xx status.
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
        except Exception as e:
            # urllib3 raises plain ValueErrors for some unparseable URLs
            raise RemoteFetchFailure(url, username, str(e)) from e

        try:
            if not 200 <= response.status_code < 300:
                raise RemoteFetchFailure(
                    url, username, f"status not successful: {response.status_code} {response.reason}"
                )
            try:
                text = response.text
            except Exception as e:
                raise RemoteFetchFailure(url, username, str(e)) from e
            return text.strip()
        finally:
            response.close()

    def refresh(self) -> RefreshReport:
        """Run one full refresh pass and publish its results."""
        with self._refresh_lock:
            report = RefreshReport()
            start = time.monotonic()
            updates: List[Tuple[KeyEntry, str]] = []

            for username, user in self.directory.users.items():
                for entry in user.entries:
                    if self._stop_event.is_set():
                        report.duration = time.monotonic() - start
                        logger.info("Key refresh interrupted, nothing published")
                        self.last_report = report
                        record_refresh(False, report.remote_failed)
                        return report

                    if not entry.is_remote:
                        updates.append((entry, entry.source))
                        report.local_entries += 1
                        continue

                    try:
                        value = self.fetch(entry.source, username)
                    except RemoteFetchFailure as e:
                        logger.error(str(e))
                        report.remote_failed += 1
                        continue
                    updates.append((entry, value))
                    report.remote_ok += 1

            with self.lock.write_locked():
                for entry, value in updates:
                    entry.resolved = value

            report.duration = time.monotonic() - start
            report.completed = True
            self.pass_count += 1
            self.last_report = report

        record_refresh(True, report.remote_failed)
        if report.remote_failed:
            logger.warning(
                f"Key refresh finished with {report.remote_failed} failed fetch(es): "
                f"{report.updated_entries} entries updated in {report.duration:.2f}s"
            )
        else:
            logger.debug(f"Key refresh finished: {report.updated_entries} entries updated in {report.duration:.2f}s")
        return report

    def start(self):
        """Start periodic refreshing in a background thread."""
        if self.running:
            logger.warning("Key refresher is already running")
            return

        self.running = True
        self._stop_event.clear()

        self.refresh_thread = threading.Thread(
            target=self._refresh_loop,
            name="KeyRefresher",
            daemon=True
        )
        self.refresh_thread.start()

        logger.info(f"Key refresher started (interval {self.interval}s)")

    def stop(self):
        """Stop the refresher. An in-flight pass is abandoned between entries."""
        if not self.running:
            return

        logger.info("Stopping key refresher")
        self.running = False
        self._stop_event.set()

        if self.refresh_thread and self.refresh_thread.is_alive():
            self.refresh_thread.join(timeout=self.timeout + 5)

        logger.info("Key refresher stopped")

    def _refresh_loop(self):
        while not self._stop_event.wait(self.interval):
            try:
                self.refresh()
            except Exception as e:
                logger.error(f"Error in key refresh loop: {e}")

        logger.info("Key refresh loop ended")

    @property
    def is_running(self) -> bool:
        return self.running and self.refresh_thread is not None and self.refresh_thread.is_alive()
