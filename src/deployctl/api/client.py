"""HTTP client for the deployment API."""

from __future__ import annotations

import json
from typing import AsyncIterator, Optional, Protocol, Union
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from deployctl import __version__
from deployctl.core.config import Settings
from deployctl.core.exceptions import APIError
from deployctl.core.models import DeploymentSourceEntry
from deployctl.utils.access_token import TokenProvisioner

logger = structlog.get_logger()


class DeploymentSource(Protocol):
    def download_deployment(self, deployment_id: str) -> AsyncIterator[DeploymentSourceEntry]:
        ...


def _error_from_response(response: httpx.Response) -> APIError:
    """Build an APIError from a failed response body ({"code", "message"})."""
    trace_id = response.headers.get("x-deno-ray")
    code = None
    message = response.text or response.reason_phrase
    try:
        body = json.loads(response.text)
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = body.get("code")
        message = body.get("message", message)
    return APIError(message, code=code, status=response.status_code, trace_id=trace_id)


class API:
    """Client for the deployment API.

    Authenticates either with a fixed token or with a provisioner that is
    asked for a token on the first request.
    """

    def __init__(
        self,
        authorization: Union[str, TokenProvisioner],
        endpoint: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ):
        if endpoint is None or timeout is None:
            settings = settings or Settings()
            endpoint = endpoint or settings.api_endpoint
            timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._authorization = authorization
        self._transport = transport

    @classmethod
    def from_token(cls, token: str, endpoint: Optional[str] = None, **kwargs) -> "API":
        return cls(token, endpoint, **kwargs)

    @classmethod
    def with_token_provisioner(
        cls, provisioner: TokenProvisioner, endpoint: Optional[str] = None, **kwargs
    ) -> "API":
        return cls(provisioner, endpoint, **kwargs)

    async def _token(self) -> str:
        if isinstance(self._authorization, str):
            return self._authorization
        return await self._authorization.provision()

    async def _headers(self) -> dict:
        token = await self._token()
        return {
            "Authorization": f"Bearer {token}",
            "User-Agent": f"deployctl/{__version__}",
            "Accept": "application/x-ndjson",
        }

    async def download_deployment(self, deployment_id: str) -> AsyncIterator[DeploymentSourceEntry]:
        """Stream the source entries of a deployment.

        The response body is newline-delimited JSON, one entry per line.
        Entries are yielded as they arrive.

        Raises:
            APIError: on an error status, a network failure or a malformed line
        """
        headers = await self._headers()
        path = f"/api/v1/deployments/{quote(deployment_id, safe='')}/download"
        logger.debug("Requesting deployment source", endpoint=self.endpoint, path=path)

        async with httpx.AsyncClient(
            base_url=self.endpoint,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        ) as client:
            try:
                async with client.stream("GET", path, headers=headers) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        raise _error_from_response(response)
                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue
                        try:
                            entry = DeploymentSourceEntry.model_validate_json(line)
                        except ValidationError as exc:
                            raise APIError(
                                f"Malformed entry in download stream: {exc.errors()[0]['msg']}",
                                code="invalid_response",
                                status=response.status_code,
                                trace_id=response.headers.get("x-deno-ray"),
                            ) from exc
                        yield entry
            except httpx.HTTPError as exc:
                raise APIError(str(exc) or type(exc).__name__, code="network_error") from exc
