"""Tests for mint to symbol resolution."""

from conftest import BONK_MINT, MEME_MINT, USDC_MINT, FakeMetadataClient, FakeTokenListClient

from wallet_insights.models.transactions import WSOL_MINT
from wallet_insights.pipeline.cache import TTLCache
from wallet_insights.pipeline.symbols import SymbolResolver, shorten_mint

UNKNOWN_MINT = "HeLp6NuQkmYB4pYWo2zYs22mESHXPQYzXbB8n4V98jwC"


def make_resolver(token_list_client, metadata_client=None, clock=None):
    cache = TTLCache(600, clock=clock) if clock else None
    return SymbolResolver(token_list_client, metadata_client=metadata_client, token_list_cache=cache)


def test_shorten_mint():
    assert shorten_mint(UNKNOWN_MINT) == "HeLp...8jwC"
    assert shorten_mint("SHORTMINT") == "SHORTMINT"


def test_resolves_from_token_list(token_list_client):
    resolver = make_resolver(token_list_client)

    assert resolver.resolve_symbols([USDC_MINT, BONK_MINT]) == {USDC_MINT: "USDC", BONK_MINT: "Bonk"}


def test_wrapped_sol_always_maps_to_sol():
    resolver = make_resolver(FakeTokenListClient(tokens=[]))

    assert resolver.resolve_symbol(WSOL_MINT) == "SOL"


def test_second_resolution_within_ttl_does_not_refetch(token_list_client, clock):
    resolver = make_resolver(token_list_client, clock=clock)

    resolver.resolve_symbols([USDC_MINT])
    clock.advance(300)
    resolver.resolve_symbols([USDC_MINT])

    assert token_list_client.calls == 1


def test_token_list_refetched_after_ttl(token_list_client, clock):
    resolver = make_resolver(token_list_client, clock=clock)

    resolver.resolve_symbols([USDC_MINT])
    clock.advance(601)
    resolver.resolve_symbols([USDC_MINT])

    assert token_list_client.calls == 2


def test_unknown_mints_use_metadata_tier_and_are_cached(token_list_client, metadata_client):
    resolver = make_resolver(token_list_client, metadata_client)

    first = resolver.resolve_symbols([MEME_MINT, USDC_MINT])
    second = resolver.resolve_symbols([MEME_MINT])

    assert first == {MEME_MINT: "MEME", USDC_MINT: "USDC"}
    assert second == {MEME_MINT: "MEME"}
    assert metadata_client.requests == [[MEME_MINT]]


def test_every_mint_resolves_when_all_providers_fail():
    resolver = make_resolver(FakeTokenListClient(error=True), FakeMetadataClient(error=True))
    mints = [USDC_MINT, UNKNOWN_MINT, "tiny"]

    result = resolver.resolve_symbols(mints)

    assert set(result) == set(mints)
    assert result[UNKNOWN_MINT] == "HeLp...8jwC"
    assert result["tiny"] == "tiny"


def test_missing_metadata_client_falls_back_to_short_mint(token_list_client):
    resolver = make_resolver(token_list_client, metadata_client=None)

    assert resolver.resolve_symbol(UNKNOWN_MINT) == "HeLp...8jwC"


def test_long_metadata_names_are_truncated(token_list_client):
    metadata = FakeMetadataClient(assets=[
        {"id": UNKNOWN_MINT, "content": {"metadata": {"name": "Extremely Long Pump Token"}}},
    ])
    resolver = make_resolver(token_list_client, metadata)

    assert resolver.resolve_symbol(UNKNOWN_MINT) == "Extremely Lo"


def test_get_token_info(token_list_client):
    resolver = make_resolver(token_list_client)

    info = resolver.get_token_info(USDC_MINT)

    assert info.symbol == "USDC"
    assert info.decimals == 6
    assert resolver.get_token_info(UNKNOWN_MINT) is None
