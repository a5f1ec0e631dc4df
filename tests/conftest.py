"""
Shared fixtures: provider payloads, a controllable clock and fake provider
clients so no test touches the network.
"""

import pytest

from wallet_insights.config.settings import Settings
from wallet_insights.models.transactions import WSOL_MINT, RawTransaction
from wallet_insights.services.errors import ProviderError

WALLET = "CuieVDEDtLo7FypA9SbLM9saXFdb1dsshEkyErMqkRQq"
COUNTERPARTY = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
BONK_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
USDC_MINT = "EPjFWJd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
MEME_MINT = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"

# 2024-01-15 02:00:00 UTC (Asia session)
BASE_TIMESTAMP = 1705284000


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeTokenListClient:
    def __init__(self, tokens=None, error: bool = False):
        self.tokens = tokens if tokens is not None else [
            {"address": USDC_MINT, "symbol": "USDC", "name": "USD Coin", "decimals": 6},
            {"address": BONK_MINT, "symbol": "Bonk", "name": "Bonk", "decimals": 5},
        ]
        self.error = error
        self.calls = 0

    def get_token_list(self):
        self.calls += 1
        if self.error:
            raise ProviderError("Failed to fetch Jupiter token list: boom")
        return list(self.tokens)


class FakeMetadataClient:
    def __init__(self, assets=None, error: bool = False):
        self.assets = assets or []
        self.error = error
        self.requests = []

    def get_asset_batch(self, mints):
        self.requests.append(list(mints))
        if self.error:
            raise ProviderError("Failed to fetch asset metadata from Helius: boom")
        return [a for a in self.assets if a.get('id') in mints]


class FakePriceClient:
    def __init__(self, prices=None):
        self.prices = list(prices or [150.0])
        self.calls = 0

    def get_sol_price_usd(self):
        self.calls += 1
        price = self.prices.pop(0) if len(self.prices) > 1 else self.prices[0]
        if isinstance(price, Exception):
            raise price
        return price


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replays queued responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def native_transfer(sender, receiver, lamports):
    return {"fromUserAccount": sender, "toUserAccount": receiver, "amount": lamports}


def token_transfer(sender, receiver, mint, amount=1.0):
    return {"fromUserAccount": sender, "toUserAccount": receiver, "mint": mint, "tokenAmount": amount}


def transaction_payload(
    signature="sig",
    timestamp=BASE_TIMESTAMP,
    description="",
    tx_type="SWAP",
    source="JUPITER",
    fee=5000,
    native_transfers=None,
    token_transfers=None,
    swap=None,
    error=None
):
    payload = {
        "signature": signature,
        "timestamp": timestamp,
        "description": description,
        "type": tx_type,
        "source": source,
        "fee": fee,
        "nativeTransfers": native_transfers or [],
        "tokenTransfers": token_transfers or [],
        "events": {"swap": swap} if swap else {},
        "transactionError": error,
    }
    return payload


def sol_for_token_payload(signature="buy", lamports=1_000_000_000, mint=BONK_MINT, timestamp=BASE_TIMESTAMP, source="JUPITER"):
    """Wallet spends SOL and receives a token via a structured swap event."""
    return transaction_payload(
        signature=signature,
        timestamp=timestamp,
        source=source,
        description=f"{WALLET} swapped 1 SOL for 1000 Bonk",
        native_transfers=[native_transfer(WALLET, COUNTERPARTY, lamports)],
        token_transfers=[token_transfer(COUNTERPARTY, WALLET, mint, 1000)],
        swap={
            "nativeInput": {"account": WALLET, "amount": str(lamports)},
            "tokenOutputs": [{"mint": mint, "userAccount": WALLET, "rawTokenAmount": {"tokenAmount": "100000000", "decimals": 5}}],
        }
    )


def token_for_sol_payload(signature="sell", lamports=2_000_000_000, mint=BONK_MINT, timestamp=BASE_TIMESTAMP, source="RAYDIUM"):
    """Wallet sends a token and receives SOL via a structured swap event."""
    return transaction_payload(
        signature=signature,
        timestamp=timestamp,
        source=source,
        native_transfers=[native_transfer(COUNTERPARTY, WALLET, lamports)],
        token_transfers=[token_transfer(WALLET, COUNTERPARTY, mint, 1000)],
        swap={
            "nativeOutput": {"account": WALLET, "amount": str(lamports)},
            "tokenInputs": [{"mint": mint, "userAccount": WALLET, "rawTokenAmount": {"tokenAmount": "100000000", "decimals": 5}}],
        }
    )


def make_tx(**kwargs) -> RawTransaction:
    return RawTransaction.from_dict(transaction_payload(**kwargs))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_list_client():
    return FakeTokenListClient()


@pytest.fixture
def metadata_client():
    return FakeMetadataClient(assets=[
        {"id": MEME_MINT, "content": {"metadata": {"symbol": "MEME", "name": "Meme Coin"}}},
    ])


@pytest.fixture
def symbols():
    return {WSOL_MINT: "SOL", USDC_MINT: "USDC", BONK_MINT: "Bonk"}


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings backed by an empty config file with credentials set."""
    config_file = tmp_path / "dashboard_config.yaml"
    config_file.write_text("analytics:\n  transaction_limit: 50\n")
    monkeypatch.setenv("HELIUS_API_KEY", "helius-test-key-123456")
    monkeypatch.setenv("MOBULA_API_KEY", "mobula-test-key-123456")
    monkeypatch.delenv("BIRDEYE_API_KEY", raising=False)
    return Settings(str(config_file))
