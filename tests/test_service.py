"""
Tests for AddressAnalysisService: the caller-facing contract end to end.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from eth_network_analyzer.api_clients import EtherscanAPIError
from eth_network_analyzer.service import AddressAnalysisService

from conftest import ADDRESS, OTHER, WEI, raw_tx, stub_client


@pytest.fixture
def service_for(config, clock):
    def _make(client):
        return AddressAnalysisService(config, client=client, clock=clock)
    return _make


def test_analyze_address_merges_price(service_for):
    client = stub_client(pages={"normal": [[raw_tx(ADDRESS, OTHER, WEI, timestamp=100)]]})
    result = service_for(client).analyze_address(ADDRESS, "key")

    assert result.eth_price == Decimal("2500.12")
    assert result.net_position == Decimal("3.5")
    assert result.connections[0].address == OTHER
    assert result.total_eth_sent == Decimal("1")


def test_analyze_address_survives_upstream_outage(service_for):
    client = stub_client(
        fail={"normal": {1}, "internal": {1}},
        balance=EtherscanAPIError("down"),
        price=EtherscanAPIError("down"),
    )
    result = service_for(client).analyze_address(ADDRESS)

    assert result.eth_price == Decimal("2000")
    assert result.connections == []
    assert result.total_transactions == 0
    assert result.net_position == 0
    assert result.is_partial is True


def test_repeated_fetch_within_ttl_is_identical(service_for):
    client = stub_client(pages={"normal": [[raw_tx()]]})
    service = service_for(client)
    first = service.fetch_transactions(ADDRESS)
    second = service.fetch_transactions(ADDRESS)
    assert first is second
    assert client.get_balance.call_count == 1


def test_refetch_after_ttl(service_for, clock, config):
    client = stub_client(pages={"normal": [[raw_tx()]]})
    service = service_for(client)
    service.analyze_address(ADDRESS)
    clock.advance(config.cache_ttl + 1)
    service.analyze_address(ADDRESS)
    assert client.get_balance.call_count == 2
    assert client.get_eth_price.call_count == 2


def test_close_clears_caches(service_for):
    service = service_for(stub_client())
    service.analyze_address(ADDRESS)
    service.close()
    assert len(service.transaction_cache) == 0
    assert len(service.price_cache) == 0
