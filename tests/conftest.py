"""Global pytest fixtures and configuration."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest

# Add src and the tests directory (device_mock) to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from webota.config import ClientConfig  # noqa: E402
from webota.services.credential_store import CredentialStore  # noqa: E402
from webota.services.sink import PresentationSink  # noqa: E402
from device_mock.server import MockDevice, RebootAwareTransport  # noqa: E402

DEVICE_URL = "http://device.local"


@pytest.fixture
def fast_config():
    """Config with zero poll cadence; reload far enough away to inspect state."""
    return ClientConfig(base_url=DEVICE_URL, poll_interval=0, reload_delay=60)


@pytest.fixture
def credentials():
    """Empty credential store over a private session mapping."""
    return CredentialStore(storage={})


@pytest.fixture
def mock_sink():
    """Mock PresentationSink recording every call."""
    return MagicMock(spec=PresentationSink)


@pytest.fixture
def mock_device():
    """Mock device with default credentials admin/1234."""
    return MockDevice()


@pytest.fixture
def device_transport(mock_device):
    """httpx transport serving mock_device in-process."""
    return RebootAwareTransport(mock_device)


def make_response(status_code=200, json=None, text=None, path="/ota-progress"):
    """Build an httpx.Response bound to a request (raise_for_status needs one)."""
    request = httpx.Request("GET", f"{DEVICE_URL}{path}")
    if json is not None:
        return httpx.Response(status_code, json=json, request=request)
    return httpx.Response(status_code, text=text or "", request=request)
