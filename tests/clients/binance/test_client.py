"""Tests for Binance HTTP client."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from tradedesk.clients.binance.client import BinanceClient
from tradedesk.clients.binance.exceptions import BinanceAPIError, BinanceError
from tradedesk.core.exceptions import DataFetchError

_BINANCE_ERROR_CODE = -1121
_HTTP_SERVER_ERROR = 502


class TestBinanceClient:
    """Test suite for Binance HTTP client."""

    @pytest.fixture
    def client(self) -> BinanceClient:
        """Create a BinanceClient instance."""
        return BinanceClient(base_url="https://api.binance.com")

    def test_client_initialization(self) -> None:
        """Test client can be initialized with defaults."""
        client = BinanceClient()
        assert client.base_url == "https://api.binance.com"

    def test_trailing_slash_stripped(self) -> None:
        """Test trailing slash is stripped from base URL."""
        client = BinanceClient(base_url="https://api.binance.com/")
        assert client.base_url == "https://api.binance.com"

    def test_from_config_reads_env_override(self) -> None:
        """Test that from_config picks up the BINANCE_BASE_URL override."""
        with patch.dict(os.environ, {"BINANCE_BASE_URL": "https://testnet.binance.vision"}):
            client = BinanceClient.from_config()
        assert client.base_url == "https://testnet.binance.vision"

    @pytest.mark.asyncio
    async def test_get_request(self, client: BinanceClient) -> None:
        """Test making a successful GET request."""
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = [["data"]]

        with patch.object(
            client._http_client, "request", new=AsyncMock(return_value=mock_response)
        ):
            result = await client.get("/api/v3/klines", params={"symbol": "BTCUSDT"})
            assert result == [["data"]]

    @pytest.mark.asyncio
    async def test_get_prepends_slash(self, client: BinanceClient) -> None:
        """Test that a missing leading slash is added to the path."""
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = []

        with patch.object(
            client._http_client, "request", new=AsyncMock(return_value=mock_response)
        ) as mock_request:
            await client.get("api/v3/klines")
            called_url = mock_request.call_args[0][1]
            assert called_url == "https://api.binance.com/api/v3/klines"

    @pytest.mark.asyncio
    async def test_klines_params(self, client: BinanceClient) -> None:
        """Test that klines sends the documented query parameters."""
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = []

        with patch.object(
            client._http_client, "request", new=AsyncMock(return_value=mock_response)
        ) as mock_request:
            await client.klines("BTCUSDT", "1d", 1000, 2000, 500)
            assert mock_request.call_args[1]["params"] == {
                "symbol": "BTCUSDT",
                "interval": "1d",
                "startTime": 1000,
                "endTime": 2000,
                "limit": 500,
            }

    @pytest.mark.asyncio
    async def test_error_response_raises_api_error(self, client: BinanceClient) -> None:
        """Test that a Binance error response raises BinanceAPIError."""
        mock_response = MagicMock()
        mock_response.status_code = 400
        mock_response.json.return_value = {
            "code": _BINANCE_ERROR_CODE,
            "msg": "Invalid symbol.",
        }

        with (
            patch.object(client._http_client, "request", new=AsyncMock(return_value=mock_response)),
            pytest.raises(BinanceAPIError, match="Invalid symbol") as exc_info,
        ):
            await client.get("/api/v3/klines", params={"symbol": "BAD"})

        assert exc_info.value.code == _BINANCE_ERROR_CODE

    @pytest.mark.asyncio
    async def test_error_without_json_body(self, client: BinanceClient) -> None:
        """Test that a non-JSON error body falls back to the HTTP status."""
        mock_response = MagicMock()
        mock_response.status_code = _HTTP_SERVER_ERROR
        mock_response.json.side_effect = ValueError("not json")

        with (
            patch.object(client._http_client, "request", new=AsyncMock(return_value=mock_response)),
            pytest.raises(BinanceAPIError, match="HTTP 502") as exc_info,
        ):
            await client.get("/api/v3/klines")

        assert exc_info.value.code == _HTTP_SERVER_ERROR

    @pytest.mark.asyncio
    async def test_invalid_json_raises_binance_error(self, client: BinanceClient) -> None:
        """Test that a successful response with a non-JSON body is wrapped."""
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.side_effect = ValueError("Expecting value")

        with (
            patch.object(client._http_client, "request", new=AsyncMock(return_value=mock_response)),
            pytest.raises(BinanceError, match="invalid JSON") as exc_info,
        ):
            await client.get("/api/v3/klines")

        assert isinstance(exc_info.value, DataFetchError)

    @pytest.mark.asyncio
    async def test_timeout_raises_binance_error(self, client: BinanceClient) -> None:
        """Test that timeouts are wrapped as a DataFetchError subclass."""
        with (
            patch.object(
                client._http_client,
                "request",
                new=AsyncMock(side_effect=httpx.ReadTimeout("slow")),
            ),
            pytest.raises(BinanceError, match="timed out") as exc_info,
        ):
            await client.get("/api/v3/klines")

        assert isinstance(exc_info.value, DataFetchError)

    @pytest.mark.asyncio
    async def test_transport_error_raises_binance_error(self, client: BinanceClient) -> None:
        """Test that connection failures are wrapped."""
        with (
            patch.object(
                client._http_client,
                "request",
                new=AsyncMock(side_effect=httpx.ConnectError("refused")),
            ),
            pytest.raises(BinanceError, match="request failed"),
        ):
            await client.get("/api/v3/klines")

    @pytest.mark.asyncio
    async def test_context_manager_closes(self) -> None:
        """Test that leaving the context closes the HTTP client."""
        client = BinanceClient()
        with patch.object(client._http_client, "aclose", new=AsyncMock()) as mock_close:
            async with client:
                pass
            mock_close.assert_awaited_once()
