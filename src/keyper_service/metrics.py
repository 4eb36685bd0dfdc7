"""Prometheus metrics for Keyper Service.

Metrics are exposed at the /metrics endpoint.
"""

from prometheus_client import Counter, Gauge, Info

APP_INFO = Info("keyper_app", "Keyper Service application information")

KEYS_REQUESTS_TOTAL = Counter(
    "keyper_keys_requests_total",
    "Total requests for keys",
    ["code", "host", "user"],
)

KEY_REFRESH_TOTAL = Counter(
    "keyper_key_refresh_total",
    "Total key refresh passes",
    ["status"],  # completed, interrupted
)

REMOTE_FETCH_FAILURES_TOTAL = Counter(
    "keyper_remote_fetch_failures_total",
    "Total failed remote key fetches",
)

DIRECTORY_ENTRIES = Gauge(
    "keyper_directory_entries",
    "Number of loaded directory entries",
    ["kind"],
)


def set_app_info(version: str, commit: str) -> None:
    APP_INFO.info({"version": version, "commit": commit})


def record_keys_request(code: int, host: str = "", user: str = "") -> None:
    KEYS_REQUESTS_TOTAL.labels(code=str(code), host=host, user=user).inc()


def record_refresh(completed: bool, remote_failed: int) -> None:
    KEY_REFRESH_TOTAL.labels(status="completed" if completed else "interrupted").inc()
    if remote_failed:
        REMOTE_FETCH_FAILURES_TOTAL.inc(remote_failed)


def update_directory_counts(stats: dict) -> None:
    for kind in ("users", "servers", "user_groups", "server_groups"):
        DIRECTORY_ENTRIES.labels(kind=kind).set(stats.get(kind, 0))
