"""
Caller-facing entry point: owns the client, both caches and the fetcher.
"""

import logging
from decimal import Decimal
from typing import Optional

from .analyzer import analyze_address_transactions
from .api_clients import EtherscanClient
from .cache import TTLCache
from .config import Config
from .fetcher import TransactionFetcher
from .models import AnalysisResult, TransactionBundle

logger = logging.getLogger(__name__)


class AddressAnalysisService:
    """Construct once per process and share across requests."""

    def __init__(self, config: Config, client: Optional[EtherscanClient] = None,
                 clock=None):
        self.config = config
        self.client = client or EtherscanClient(config)

        cache_kwargs = {"clock": clock} if clock is not None else {}
        self.price_cache = TTLCache(
            config.cache_ttl, max_entries=1, name="price", **cache_kwargs)
        self.transaction_cache = TTLCache(
            config.cache_ttl, max_entries=config.cache_max_entries,
            name="transactions", **cache_kwargs)

        self.fetcher = TransactionFetcher(
            self.client, config, self.transaction_cache, self.price_cache)

    def get_eth_price(self, api_key: Optional[str] = None) -> Decimal:
        return self.fetcher.get_eth_price(api_key)

    def fetch_transactions(self, address: str, api_key: Optional[str] = None) -> TransactionBundle:
        return self.fetcher.fetch_transactions(address, api_key)

    def analyze(self, address: str, bundle: TransactionBundle) -> AnalysisResult:
        return analyze_address_transactions(address, bundle)

    def analyze_address(self, address: str, api_key: Optional[str] = None) -> AnalysisResult:
        """Fetch (or reuse) the bundle, analyze it and attach the spot price."""
        self.transaction_cache.sweep()
        eth_price = self.get_eth_price(api_key)
        bundle = self.fetch_transactions(address, api_key)
        result = self.analyze(address, bundle)
        result.eth_price = eth_price

        if result.is_partial:
            logger.warning(
                f"Analysis of {result.address} is based on incomplete transaction history")
        return result

    def close(self) -> None:
        """Drop cached data at shutdown."""
        self.price_cache.clear()
        self.transaction_cache.clear()
