"""Tests for the REST API client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from pomoflow_cli.services.api.client import APIClient


@pytest.fixture()
def remote_config(tmp_config):
    """Config service whose current context is the remote store."""
    tmp_config.use_context("cloud")
    tmp_config.config.api.api_key = "secret-key"
    return tmp_config


def _response(status: int, method: str = "GET") -> httpx.Response:
    return httpx.Response(
        status, json=[], request=httpx.Request(method, "https://example.com/x")
    )


class TestAPIClient:
    def test_base_url_from_current_context(self, remote_config):
        client = APIClient(remote_config)
        assert client.base_url == remote_config.get_current_context().source

    def test_headers_carry_api_key(self, remote_config):
        headers = APIClient(remote_config)._get_headers()
        assert headers["apikey"] == "secret-key"
        assert headers["Authorization"] == "Bearer secret-key"

    def test_headers_without_api_key(self, tmp_config):
        headers = APIClient(tmp_config)._get_headers()
        assert "Authorization" not in headers

    @pytest.mark.asyncio
    async def test_request_passes_params_and_headers(self, remote_config):
        client = APIClient(remote_config)
        http = MagicMock()
        http.request = AsyncMock(return_value=_response(200))

        with patch.object(client, "_get_client", AsyncMock(return_value=http)):
            await client.patch(
                "active_pomodoro_sessions",
                json={"a": 1},
                params={"id": "eq.1"},
                headers={"Prefer": "return=representation"},
            )

        kwargs = http.request.call_args.kwargs
        assert kwargs["method"] == "PATCH"
        assert kwargs["url"] == "/active_pomodoro_sessions"
        assert kwargs["params"] == {"id": "eq.1"}
        assert kwargs["headers"] == {"Prefer": "return=representation"}

    @pytest.mark.asyncio
    async def test_single_attempt_by_default(self, remote_config):
        client = APIClient(remote_config)
        http = MagicMock()
        http.request = AsyncMock(side_effect=httpx.ConnectError("down"))

        with patch.object(client, "_get_client", AsyncMock(return_value=http)):
            with pytest.raises(httpx.ConnectError):
                await client.get("/x")

        assert http.request.await_count == 1

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self, remote_config):
        remote_config.config.api.retry = 1
        client = APIClient(remote_config)
        http = MagicMock()
        http.request = AsyncMock(side_effect=[_response(503), _response(200)])

        with patch.object(client, "_get_client", AsyncMock(return_value=http)):
            with patch("pomoflow_cli.services.api.client.asyncio.sleep", AsyncMock()):
                response = await client.get("/x")

        assert response.status_code == 200
        assert http.request.await_count == 2

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self, remote_config):
        remote_config.config.api.retry = 3
        client = APIClient(remote_config)
        http = MagicMock()
        http.request = AsyncMock(return_value=_response(404))

        with patch.object(client, "_get_client", AsyncMock(return_value=http)):
            with pytest.raises(httpx.HTTPStatusError):
                await client.get("/x")

        assert http.request.await_count == 1

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, remote_config):
        async with APIClient(remote_config) as client:
            http = await client._get_client()
            assert isinstance(http, httpx.AsyncClient)
        assert client._client is None
