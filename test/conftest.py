"""
Shared pytest fixtures and utilities for Google OAuth2 client tests.
"""

import json
import os
import sys
from contextlib import contextmanager

import pytest

# Ensure src/tools are in path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../tools")))

from mock_oauth_server import start_server_thread as start_oauth_server_thread

TEST_SCOPE = "https://www.googleapis.com/auth/drive.readonly"


def make_client_secret(token_uri="https://oauth2.googleapis.com/token", client_type="installed"):
    """Build a client secret document in the Google Cloud console layout."""
    return {
        client_type: {
            "client_id": "test-client-id.apps.googleusercontent.com",
            "client_secret": "test-client-secret",
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": token_uri,
            "redirect_uris": ["urn:ietf:wg:oauth:2.0:oob", "http://localhost"],
        }
    }


@contextmanager
def temp_env(env):
    original = os.environ.copy()
    os.environ.clear()
    os.environ.update(env)
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(original)


@contextmanager
def temp_argv(args):
    original = sys.argv[:]
    sys.argv = list(args)
    try:
        yield
    finally:
        sys.argv = original


@pytest.fixture(autouse=True)
def clean_sys_argv():
    """Ensure sys.argv is clean for all tests."""
    original = sys.argv[:]
    sys.argv = ["test_script.py"]
    yield
    sys.argv = original


@pytest.fixture
def fake_home(tmp_path):
    """A synthetic home directory, returned as (home_path, provider)."""
    home = tmp_path / "home"
    home.mkdir()
    return str(home), lambda: str(home)


@pytest.fixture
def client_secret_bytes():
    return json.dumps(make_client_secret()).encode("utf-8")


@pytest.fixture
def mock_oauth_server(monkeypatch):
    """Starts a mock OAuth2 token endpoint; the server has base_url and requests attributes."""
    # oauthlib refuses plain-HTTP token endpoints otherwise
    monkeypatch.setenv("OAUTHLIB_INSECURE_TRANSPORT", "1")
    thread, server = start_oauth_server_thread(0)
    host, port = server.server_address[:2]
    server.base_url = f"http://{host}:{port}"

    yield server

    server.shutdown()
    server.server_close()
    thread.join(timeout=2)


__all__ = [
    "TEST_SCOPE",
    "make_client_secret",
    "mock_oauth_server",
    "temp_env",
    "temp_argv",
]
