import os
import sys

import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from bitcoin_data_mcp.metrics import default_metrics  # noqa: E402


class RecordingClient:
    """Backend stand-in that records requested URLs and returns a fixed body."""

    def __init__(self, body: str = '{"ok": true}', exc: Exception | None = None):
        self.body = body
        self.exc = exc
        self.urls = []

    async def fetch(self, url):
        self.urls.append(url)
        if self.exc is not None:
            raise self.exc
        return self.body


@pytest.fixture(autouse=True)
def reset_metrics():
    default_metrics.reset()
    yield
    default_metrics.reset()


@pytest.fixture
def recording_client():
    return RecordingClient()
