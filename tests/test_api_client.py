"""
Tests for the deployment API client.
"""

import json

import httpx
import pytest

from deployctl import __version__
from deployctl.api.client import API
from deployctl.core.config import Settings
from deployctl.core.exceptions import APIError, AuthenticationError
from deployctl.core.models import DeploymentSourceEntry

ENDPOINT = "https://api.test"


def ndjson(*entries):
    return "\n".join(json.dumps(e) for e in entries) + "\n"


def make_api(handler, token="ddp_test"):
    return API.from_token(token, ENDPOINT, timeout=5.0, transport=httpx.MockTransport(handler))


async def collect(api, deployment_id="abcd1234"):
    return [entry async for entry in api.download_deployment(deployment_id)]


@pytest.mark.asyncio
async def test_streams_entries_in_order():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        body = ndjson(
            {"specifier": "file:///src/main.ts", "kind": "module", "source": "a"},
            {"specifier": "https://deno.land/x/y.ts", "kind": "module", "source": "b"},
        )
        return httpx.Response(200, text=body)

    entries = await collect(make_api(handler))

    assert entries == [
        DeploymentSourceEntry(specifier="file:///src/main.ts", kind="module", source="a"),
        DeploymentSourceEntry(specifier="https://deno.land/x/y.ts", kind="module", source="b"),
    ]
    assert len(requests) == 1
    request = requests[0]
    assert request.method == "GET"
    assert str(request.url) == f"{ENDPOINT}/api/v1/deployments/abcd1234/download"
    assert request.headers["authorization"] == "Bearer ddp_test"
    assert request.headers["user-agent"] == f"deployctl/{__version__}"


@pytest.mark.asyncio
async def test_blank_lines_and_unknown_fields_are_ignored():
    def handler(request):
        body = "\n\n" + json.dumps({"specifier": "file:///src/a.js", "kind": "asset", "source": "x", "size": 1}) + "\n\n"
        return httpx.Response(200, text=body)

    entries = await collect(make_api(handler))

    assert [e.specifier for e in entries] == ["file:///src/a.js"]


@pytest.mark.asyncio
async def test_error_status_becomes_api_error():
    def handler(request):
        return httpx.Response(
            404,
            json={"code": "deploymentNotFound", "message": "The requested deployment was not found."},
            headers={"x-deno-ray": "ray-123"},
        )

    with pytest.raises(APIError) as exc_info:
        await collect(make_api(handler))

    err = exc_info.value
    assert err.status == 404
    assert err.code == "deploymentNotFound"
    assert err.trace_id == "ray-123"
    assert str(err) == "deploymentNotFound: The requested deployment was not found. (x-deno-ray: ray-123)"


@pytest.mark.asyncio
async def test_error_status_with_plain_body():
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(APIError) as exc_info:
        await collect(make_api(handler))

    assert exc_info.value.status == 502
    assert exc_info.value.message == "Bad Gateway"


@pytest.mark.asyncio
async def test_malformed_line_becomes_api_error():
    def handler(request):
        return httpx.Response(200, text='{"specifier": "file:///src/a.js"}\n')

    with pytest.raises(APIError) as exc_info:
        await collect(make_api(handler))

    assert exc_info.value.code == "invalid_response"


@pytest.mark.asyncio
async def test_network_failure_becomes_api_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(APIError) as exc_info:
        await collect(make_api(handler))

    assert exc_info.value.code == "network_error"
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_entries_before_failure_are_delivered():
    def handler(request):
        return httpx.Response(200, text=ndjson({"specifier": "file:///src/a.js", "kind": "module", "source": "a"}) + "not json\n")

    received = []
    with pytest.raises(APIError):
        async for entry in make_api(handler).download_deployment("abcd1234"):
            received.append(entry.specifier)

    assert received == ["file:///src/a.js"]


@pytest.mark.asyncio
async def test_token_provisioner_is_used():
    class Provisioner:
        async def provision(self):
            return "from-provisioner"

    seen = []

    def handler(request):
        seen.append(request.headers["authorization"])
        return httpx.Response(200, text="")

    api = API.with_token_provisioner(Provisioner(), ENDPOINT, timeout=5.0, transport=httpx.MockTransport(handler))
    assert await collect(api) == []
    assert seen == ["Bearer from-provisioner"]


@pytest.mark.asyncio
async def test_provisioner_failure_propagates_without_request():
    class Provisioner:
        async def provision(self):
            raise AuthenticationError("not logged in")

    def handler(request):
        raise AssertionError("no request expected")

    api = API.with_token_provisioner(Provisioner(), ENDPOINT, timeout=5.0, transport=httpx.MockTransport(handler))
    with pytest.raises(AuthenticationError):
        await collect(api)


def test_endpoint_and_timeout_from_settings(monkeypatch):
    monkeypatch.setenv("DEPLOY_API_ENDPOINT", "https://custom.example/")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "12.5")

    api = API.from_token("t")

    assert api.endpoint == "https://custom.example"
    assert api.timeout == 12.5


@pytest.mark.asyncio
async def test_deployment_id_is_escaped_in_path():
    urls = []

    def handler(request):
        urls.append(request.url)
        return httpx.Response(200, text="")

    await collect(make_api(handler), deployment_id="a/../../other?x=1")

    url = urls[0]
    assert url.path == "/api/v1/deployments/a/../../other?x=1/download"
    assert url.raw_path == b"/api/v1/deployments/a%2F..%2F..%2Fother%3Fx%3D1/download"
    assert url.query == b""


def test_endpoint_and_timeout_from_given_settings(monkeypatch):
    monkeypatch.setenv("DEPLOY_API_ENDPOINT", "https://ignored.example")
    settings = Settings(api_endpoint="https://given.example", request_timeout_seconds=3.0)

    api = API.from_token("t", settings=settings)

    assert api.endpoint == "https://given.example"
    assert api.timeout == 3.0
