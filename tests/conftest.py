"""
Pytest configuration and fixtures for deployctl tests.
"""

import pytest
import structlog
from structlog.contextvars import clear_contextvars

from deployctl.core.models import DeploymentSourceEntry


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """
    Keep tests independent of the developer's environment.

    Removes deployctl environment variables, runs every test from an empty
    working directory (no stray .env file) and resets structlog afterwards.
    """
    for name in ("DENO_DEPLOY_TOKEN", "DEPLOY_API_ENDPOINT", "REQUEST_TIMEOUT_SECONDS", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    clear_contextvars()
    structlog.reset_defaults()


def make_entry(specifier: str, source: str = "", kind: str = "module") -> DeploymentSourceEntry:
    return DeploymentSourceEntry(specifier=specifier, kind=kind, source=source)


class FakeAPI:
    """Deployment source that yields fixed entries, then optionally fails."""

    def __init__(self, entries, error=None):
        self.entries = list(entries)
        self.error = error
        self.requested = []

    async def download_deployment(self, deployment_id):
        self.requested.append(deployment_id)
        for entry in self.entries:
            yield entry
        if self.error is not None:
            raise self.error
