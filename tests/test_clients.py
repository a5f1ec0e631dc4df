"""Tests for the provider clients against a fake HTTP session."""

import pytest
import requests
from conftest import BONK_MINT, USDC_MINT, WALLET, FakeResponse, FakeSession

from wallet_insights.services.base_client import MAX_ATTEMPTS, ProviderClient
from wallet_insights.services.birdeye_client import BirdEyeAPIClient
from wallet_insights.services.coingecko_client import CoinGeckoPriceClient
from wallet_insights.services.errors import ProviderError, RateLimitedError
from wallet_insights.services.helius_client import HeliusAPIClient, extract_asset_symbol
from wallet_insights.services.jupiter_client import JupiterTokenListClient
from wallet_insights.services.mobula_client import MobulaAPIClient


@pytest.fixture
def no_backoff(monkeypatch):
    monkeypatch.setattr(ProviderClient._send.retry, "sleep", lambda seconds: None)


class TestProviderClient:

    def test_retries_rate_limits_then_gives_up(self, no_backoff):
        session = FakeSession(FakeResponse(429))
        client = ProviderClient("https://example.test", session=session)

        with pytest.raises(RateLimitedError):
            client._make_request("GET", "/thing")

        assert len(session.calls) == MAX_ATTEMPTS

    def test_recovers_after_rate_limit(self, no_backoff):
        session = FakeSession(FakeResponse(429), FakeResponse(200, {"ok": True}))
        client = ProviderClient("https://example.test", session=session)

        assert client._make_request("GET", "/thing") == {"ok": True}
        assert len(session.calls) == 2

    def test_http_error_is_not_retried(self):
        session = FakeSession(FakeResponse(500))
        client = ProviderClient("https://example.test", session=session)

        with pytest.raises(ProviderError) as excinfo:
            client._make_request("GET", "/thing")

        assert excinfo.value.status_code == 500
        assert len(session.calls) == 1

    def test_invalid_json(self):
        client = ProviderClient("https://example.test", session=FakeSession(FakeResponse(200, invalid_json=True)))

        with pytest.raises(ProviderError, match="invalid JSON"):
            client._make_request("GET", "/thing")

    def test_transport_error_is_wrapped(self):
        class BrokenSession:
            def request(self, method, url, **kwargs):
                raise requests.exceptions.ConnectionError("connection refused")

        client = ProviderClient("https://example.test", session=BrokenSession())

        with pytest.raises(ProviderError, match="connection refused"):
            client._make_request("GET", "/thing")

    def test_headers_are_sent_per_client(self):
        session = FakeSession(FakeResponse(200, {}))
        first = ProviderClient("https://a.test", {"Authorization": "secret"}, session)
        second = ProviderClient("https://b.test", None, session)

        first._make_request("GET", "")
        second._make_request("GET", "")

        assert session.calls[0]["headers"]["Authorization"] == "secret"
        assert "Authorization" not in session.calls[1]["headers"]


class TestHeliusClient:

    def test_get_recent_transactions(self):
        session = FakeSession(FakeResponse(200, [{"signature": "abc"}]))
        client = HeliusAPIClient("key", session=session)

        result = client.get_recent_transactions(WALLET, limit=20, tx_type="SWAP")

        assert result == [{"signature": "abc"}]
        call = session.calls[0]
        assert call["url"].endswith(f"/addresses/{WALLET}/transactions")
        assert call["params"] == {"api-key": "key", "limit": 20, "type": "SWAP"}

    def test_not_found_means_no_transactions(self):
        client = HeliusAPIClient("key", session=FakeSession(FakeResponse(404)))

        assert client.get_recent_transactions(WALLET) == []

    def test_non_list_payload_is_an_error(self):
        client = HeliusAPIClient("key", session=FakeSession(FakeResponse(200, {"error": "bad"})))

        with pytest.raises(ProviderError, match="Failed to fetch transactions from Helius"):
            client.get_recent_transactions(WALLET)

    def test_get_asset_batch(self):
        assets = [{"id": BONK_MINT, "content": {"metadata": {"symbol": "Bonk"}}}]
        session = FakeSession(FakeResponse(200, {"jsonrpc": "2.0", "id": "token-resolve", "result": assets}))
        client = HeliusAPIClient("key", session=session)

        assert client.get_asset_batch([BONK_MINT]) == assets
        body = session.calls[0]["json"]
        assert body["method"] == "getAssetBatch"
        assert body["id"] == "token-resolve"
        assert body["params"] == {"ids": [BONK_MINT]}

    def test_get_asset_batch_empty_input_skips_request(self):
        session = FakeSession(FakeResponse(200, {}))

        assert HeliusAPIClient("key", session=session).get_asset_batch([]) == []
        assert session.calls == []

    def test_rpc_error(self):
        session = FakeSession(FakeResponse(200, {"error": {"code": -32602, "message": "invalid params"}}))
        client = HeliusAPIClient("key", session=session)

        with pytest.raises(ProviderError, match="invalid params"):
            client.get_asset_batch([BONK_MINT])

    def test_get_assets_by_owner(self):
        session = FakeSession(FakeResponse(200, {"result": {"total": 1, "items": [{"id": BONK_MINT}]}}))
        client = HeliusAPIClient("key", session=session)

        assert client.get_assets_by_owner(WALLET)["total"] == 1
        assert session.calls[0]["json"]["params"] == {"ownerAddress": WALLET, "page": 1, "limit": 1000}


@pytest.mark.parametrize("asset,expected", [
    ({"content": {"metadata": {"symbol": "BONK", "name": "Bonk"}}, "token_info": {"symbol": "X"}}, "BONK"),
    ({"content": {"metadata": {"name": "Bonk Inu"}}, "token_info": {"symbol": "X"}}, "Bonk Inu"),
    ({"content": {}, "token_info": {"symbol": "TI"}}, "TI"),
    ({"content": {"metadata": {"symbol": "AVeryLongSymbolName"}}}, "AVeryLongSym"),
    ({}, None),
])
def test_extract_asset_symbol(asset, expected):
    assert extract_asset_symbol(asset) == expected


def test_jupiter_token_list_is_normalized():
    payload = [
        {"address": USDC_MINT, "symbol": "USDC", "name": "USD Coin", "decimals": 6, "tags": ["verified"]},
        {"symbol": "NOADDR"},
        "garbage",
    ]
    client = JupiterTokenListClient(session=FakeSession(FakeResponse(200, payload)))

    assert client.get_token_list() == [{"address": USDC_MINT, "symbol": "USDC", "name": "USD Coin", "decimals": 6}]


def test_jupiter_non_list_payload():
    client = JupiterTokenListClient(session=FakeSession(FakeResponse(200, {"tokens": []})))

    with pytest.raises(ProviderError, match="Failed to fetch Jupiter token list"):
        client.get_token_list()


def test_coingecko_price():
    session = FakeSession(FakeResponse(200, {"solana": {"usd": 142.5}}))
    client = CoinGeckoPriceClient(session=session)

    assert client.get_sol_price_usd() == 142.5
    assert session.calls[0]["params"] == {"ids": "solana", "vs_currencies": "usd"}


@pytest.mark.parametrize("payload", [{}, {"solana": {}}, {"solana": {"usd": 0}}, {"solana": "oops"}])
def test_coingecko_rejects_unusable_price(payload):
    client = CoinGeckoPriceClient(session=FakeSession(FakeResponse(200, payload)))

    with pytest.raises(ProviderError, match="CoinGecko"):
        client.get_sol_price_usd()


class TestMobulaClient:

    def test_get_wallet_positions(self):
        payload = {"data": [
            {
                "token": {"symbol": "BONK", "address": BONK_MINT, "name": "Bonk"},
                "balance": "1000",
                "amountUSD": 250.5,
                "realizedPnlUSD": 10,
                "unrealizedPnlUSD": -2.5,
            },
            {"token": {"symbol": "USDC", "address": USDC_MINT}, "amountUSD": 100},
        ]}
        session = FakeSession(FakeResponse(200, payload))
        client = MobulaAPIClient("mobula-key", session=session)

        result = client.get_wallet_positions(WALLET)

        assert [p.symbol for p in result.positions] == ["BONK", "USDC"]
        assert result.positions[0].total_pnl == pytest.approx(7.5)
        assert result.positions[1].realized_pnl is None
        assert result.net_worth == pytest.approx(350.5)
        assert session.calls[0]["headers"]["Authorization"] == "mobula-key"

    def test_positions_error_payload(self):
        client = MobulaAPIClient("key", session=FakeSession(FakeResponse(200, {"error": "wallet not found"})))

        with pytest.raises(ProviderError, match="wallet not found"):
            client.get_wallet_positions(WALLET)

    def test_history_keeps_latest_sample_per_day(self):
        day_ms = 86_400_000
        start = 1_704_067_200_000  # 2024-01-01 00:00 UTC
        payload = {"data": {"balance_history": [
            [start + day_ms + 3_600_000, 120.123],
            [start + 3_600_000, 100.0],
            [start + 7_200_000, 105.0],
        ]}}
        client = MobulaAPIClient("key", session=FakeSession(FakeResponse(200, payload)))

        history = client.get_wallet_history(WALLET, days=30)

        assert [(p.date, p.value) for p in history] == [("2024-01-01", 105.0), ("2024-01-02", 120.12)]

    def test_history_skips_samples_with_invalid_timestamps(self):
        payload = {"data": {"balance_history": [[1_705_284_000_000, 100.0], [10**20, 120.0]]}}
        client = MobulaAPIClient("key", session=FakeSession(FakeResponse(200, payload)))

        history = client.get_wallet_history(WALLET)

        assert [(p.date, p.value) for p in history] == [("2024-01-15", 100.0)]

    def test_history_with_only_invalid_timestamps_is_an_error(self):
        payload = {"data": {"balance_history": [[10**20, 120.0]]}}
        client = MobulaAPIClient("key", session=FakeSession(FakeResponse(200, payload)))

        with pytest.raises(ProviderError, match="empty balance history"):
            client.get_wallet_history(WALLET)

    def test_empty_history_is_an_error(self):
        client = MobulaAPIClient("key", session=FakeSession(FakeResponse(200, {"data": {"balance_history": []}})))

        with pytest.raises(ProviderError, match="empty balance history"):
            client.get_wallet_history(WALLET)


class TestBirdEyeClient:

    def test_get_wallet_pnl(self):
        payload = {"success": True, "data": {
            "total_profit": "12.5",
            "overall_roi": 0.42,
            "tokens": [{"token_address": BONK_MINT, "symbol": "BONK", "profit": 3, "roi": 0.1}, {"symbol": "NOADDR"}],
        }}
        session = FakeSession(FakeResponse(200, payload))
        client = BirdEyeAPIClient("birdeye-key", session=session)

        result = client.get_wallet_pnl(WALLET)

        assert result["total_profit"] == 12.5
        assert result["overall_roi"] == 0.42
        assert [t["symbol"] for t in result["tokens"]] == ["BONK"]
        assert session.calls[0]["headers"]["X-API-KEY"] == "birdeye-key"

    def test_unsuccessful_response(self):
        client = BirdEyeAPIClient("key", session=FakeSession(FakeResponse(200, {"success": False, "message": "quota"})))

        with pytest.raises(ProviderError, match="Failed to fetch PnL from BirdEye: quota"):
            client.get_wallet_pnl(WALLET)
