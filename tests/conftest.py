"""
Pytest fixtures for the network analyzer tests. Etherscan is always stubbed.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from eth_network_analyzer.api_clients import EtherscanAPIError, EtherscanClient
from eth_network_analyzer.cache import TTLCache
from eth_network_analyzer.config import Config
from eth_network_analyzer.fetcher import TransactionFetcher

ADDRESS = "0x" + "a" * 40
OTHER = "0x" + "b" * 40
THIRD = "0x" + "c" * 40
WEI = 10 ** 18


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def raw_tx(from_addr: str = ADDRESS, to_addr: str = OTHER, value: int = WEI,
           timestamp: int = 100, tx_hash: str = "0xhash", **extra) -> dict:
    """Etherscan-shaped txlist record."""
    record = {
        "blockNumber": "1",
        "timeStamp": str(timestamp),
        "hash": tx_hash,
        "from": from_addr,
        "to": to_addr,
        "value": str(value),
        "isError": "0",
        "contractAddress": "",
    }
    record.update(extra)
    return record


def stub_client(pages: dict | None = None, fail: dict | None = None,
                balance: Decimal | Exception = Decimal("3.5"),
                price: Decimal | Exception = Decimal("2500.12")) -> MagicMock:
    """MagicMock EtherscanClient.

    ``pages`` maps kind -> list of pages (lists of raw records); pages past
    the end are empty. ``fail`` maps kind -> set of page numbers that raise.
    """
    pages = pages or {}
    fail = fail or {}
    client = MagicMock(spec=EtherscanClient)

    def get_transactions(address, kind="normal", page=1, offset=10000, sort="desc", api_key=None):
        if page in fail.get(kind, ()):
            raise EtherscanAPIError(f"boom on {kind} page {page}")
        kind_pages = pages.get(kind, [])
        return list(kind_pages[page - 1]) if page <= len(kind_pages) else []

    client.get_transactions.side_effect = get_transactions

    if isinstance(balance, Exception):
        client.get_balance.side_effect = balance
    else:
        client.get_balance.return_value = balance

    if isinstance(price, Exception):
        client.get_eth_price.side_effect = price
    else:
        client.get_eth_price.return_value = price
    return client


@pytest.fixture
def config():
    return Config(etherscan_api_key="test-key", page_size=3, max_pages=50,
                  rate_limit_delay=0, retry_backoff=0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_fetcher(config, clock):
    def _make(client, **overrides):
        for name, value in overrides.items():
            setattr(config, name, value)
        return TransactionFetcher(
            client, config,
            TTLCache(config.cache_ttl, clock=clock, name="transactions"),
            TTLCache(config.cache_ttl, clock=clock, name="price"),
            sleep=lambda _: None,
        )
    return _make
