"""Token provisioning for API clients without an explicit --token."""

from typing import Optional, Protocol, runtime_checkable

import structlog

from deployctl.core.config import Settings
from deployctl.core.exceptions import AuthenticationError

logger = structlog.get_logger()


@runtime_checkable
class TokenProvisioner(Protocol):
    async def provision(self) -> str:
        ...


class EnvTokenProvisioner:
    """Supplies the token configured through DENO_DEPLOY_TOKEN."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings

    async def provision(self) -> str:
        settings = self._settings or Settings()
        token = settings.token
        if token is None:
            raise AuthenticationError(
                "No API token found. Pass --token or set the DENO_DEPLOY_TOKEN environment variable.",
                code="token_missing",
            )
        logger.debug("Using API token from environment")
        return token
