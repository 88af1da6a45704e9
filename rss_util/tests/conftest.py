"""
Pytest fixtures for rss_util tests.
"""

import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from rss_util.config import state
from rss_util.feeds import FeedParser
from rss_util.mirror import MirrorSyncEngine
from rss_util.server import app
from rss_util.store import DocumentStore
from rss_util.vault import SecretVault

TEST_INSTALL_PATH = "/Applications/RSS Util.app"


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def temp_mirror_dir():
    """Create a temporary mirror directory, separate from the data directory."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d) / "mirror"


@pytest.fixture
def store(temp_data_dir):
    """Create a document store over the temporary data directory."""
    s = DocumentStore(temp_data_dir)
    s.ensure_data_dir()
    yield s


@pytest.fixture
def vault(temp_data_dir):
    return SecretVault(temp_data_dir, TEST_INSTALL_PATH)


@pytest.fixture
def app_state(store, vault):
    """Install a fresh store, vault and mirror engine in the shared state."""
    # Store original state
    original_store = state.store
    original_vault = state.vault
    original_mirror = state.mirror
    original_feed_parser = state.feed_parser
    original_schema_version = state.schema_version

    mirror = MirrorSyncEngine(store)
    mirror.attach()

    state.store = store
    state.vault = vault
    state.mirror = mirror
    state.feed_parser = FeedParser()
    state.schema_version = "1.4.0"
    state.refresh_in_progress = False

    yield state

    mirror.detach()

    # Restore original state
    state.store = original_store
    state.vault = original_vault
    state.mirror = original_mirror
    state.feed_parser = original_feed_parser
    state.schema_version = original_schema_version
    state.refresh_in_progress = False


@pytest.fixture
def client(app_state):
    """Create a test client with an isolated data directory."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
