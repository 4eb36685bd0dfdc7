"""Test configuration and fixtures."""

import copy

import pytest
import requests
from fastapi.testclient import TestClient

from keyper_service.config import KeyperServiceConfig, set_config
from keyper_service.directory import expand_server_groups, parse_directory
from keyper_service.main import app
from keyper_service.service import KeyService, set_key_service

CAROL_URL = "https://keys.example.com/carol.keys"
CAROL_KEY = "ssh-ed25519 AAAAC3carol carol@remote"

DIRECTORY = {
    "users": {
        "alice": {"keys": ["ssh-ed25519 AAAAC3alice alice@laptop", "ssh-rsa AAAAB3alice alice@desk"]},
        "bob": {"keys": ["ssh-ed25519 AAAAC3bob bob@laptop"]},
        "carol": {"keys": [CAROL_URL]},
        "dave": {"keys": []},
    },
    "servers": {
        "web1": {
            "users": {
                "root": ["@admins"],
                "deploy": ["bob", "@admins"],
                "broken": ["@nonexistent"],
                "ghost": ["alice", "zed"],
            },
            "mapusers": False,
        },
        "web2": {
            "users": {"root": ["@admins", "carol"]},
            "mapusers": True,
        },
    },
    "usergroups": {
        "admins": {"members": ["alice", "bob"]},
    },
    "servergroups": {
        "workers": {
            "members": ["worker1", "worker2"],
            "users": {"root": ["@admins"]},
            "mapusers": True,
        },
    },
}


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, text: str = "", status_code: int = 200, reason: str = "OK"):
        self.text = text
        self.status_code = status_code
        self.reason = reason
        self.closed = False

    def close(self):
        self.closed = True


class FakeSession:
    """Serves canned responses per URL; unknown URLs fail like a dead host."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        result = self.responses.get(url)
        if result is None:
            raise requests.ConnectionError(f"Failed to establish a new connection to {url}")
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result()
        return result


def build_directory(data=None):
    return expand_server_groups(parse_directory(copy.deepcopy(data or DIRECTORY)))


@pytest.fixture
def directory():
    """Directory with nothing resolved yet."""
    return build_directory()


@pytest.fixture
def session():
    return FakeSession({CAROL_URL: FakeResponse(f"  {CAROL_KEY}\n\n")})


@pytest.fixture
def service(directory, session):
    """KeyService over the sample directory, after one refresh pass."""
    svc = KeyService(directory, key_fetch_interval=3600, fetch_timeout=1, session=session)
    svc.refresher.refresh()
    return svc


@pytest.fixture
def client(directory, session):
    """Test client running the full app lifespan against the sample directory."""
    set_config(KeyperServiceConfig(url="https://keyper.example.com"))
    set_key_service(KeyService(directory, key_fetch_interval=3600, fetch_timeout=1, session=session))
    with TestClient(app) as test_client:
        yield test_client
    set_key_service(None)
    set_config(KeyperServiceConfig())
