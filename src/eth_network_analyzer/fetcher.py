"""
Paginated transaction fetching with running summaries and caching.
"""

import time
import logging
import threading
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from .api_clients import EtherscanAPIError, EtherscanClient
from .cache import TTLCache
from .config import Config
from .models import Transaction, TransactionBundle, TransactionSummary
from .utils import fold_transaction, normalize_address, parse_etherscan_transactions

logger = logging.getLogger(__name__)

PRICE_CACHE_KEY = "eth_price"


class FetchState(Enum):
    FETCHING = "fetching"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class PaginationResult:
    """Outcome of paginating one transaction kind."""
    kind: str
    state: FetchState
    transactions: List[Transaction] = field(default_factory=list)
    summary: TransactionSummary = field(default_factory=TransactionSummary)
    requests_made: int = 0


class TransactionFetcher:
    """Builds TransactionBundles from Etherscan, one page at a time.

    Pages of one kind are requested strictly in order; a short page ends the
    listing and a failed page ends it early, keeping what was accumulated.
    """

    def __init__(self, client: EtherscanClient, config: Config,
                 transaction_cache: TTLCache, price_cache: TTLCache,
                 sleep=time.sleep):
        self.client = client
        self.config = config
        self.transaction_cache = transaction_cache
        self.price_cache = price_cache
        self._sleep = sleep
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def get_eth_price(self, api_key: Optional[str] = None) -> Decimal:
        """Spot ETH/USD price, falling back to a fixed value when unavailable."""
        cached = self.price_cache.get(PRICE_CACHE_KEY)
        if cached is not None:
            return cached

        try:
            price = self.client.get_eth_price(api_key)
        except EtherscanAPIError as e:
            logger.warning(
                f"ETH price unavailable, using fallback {self.config.fallback_eth_price}: {e}")
            return self.config.fallback_eth_price

        self.price_cache.set(PRICE_CACHE_KEY, price)
        return price

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def fetch_transactions(self, address: str, api_key: Optional[str] = None) -> TransactionBundle:
        """Return the bundle for an address, from cache when still fresh.

        Concurrent callers for the same address wait for the first one and
        then read its cached bundle instead of fetching again.
        """
        cache_key = normalize_address(address)
        cached = self.transaction_cache.get(cache_key)
        if cached is not None:
            logger.info(f"Transaction cache hit for {cache_key}")
            return cached

        with self._lock_for(cache_key):
            cached = self.transaction_cache.get(cache_key)
            if cached is not None:
                return cached

            bundle = self._build_bundle(cache_key, api_key)
            self.transaction_cache.set(cache_key, bundle)

        with self._locks_guard:
            self._locks.pop(cache_key, None)
        return bundle

    def _build_bundle(self, address: str, api_key: Optional[str]) -> TransactionBundle:
        try:
            balance = self.client.get_balance(address, api_key)
        except EtherscanAPIError as e:
            logger.warning(f"Error fetching balance for {address}: {e}")
            balance = Decimal("0")

        normal = self.paginate(address, "normal", api_key)
        internal = self.paginate(address, "internal", api_key)

        logger.info(
            f"Fetched {normal.summary.total_transactions} normal and "
            f"{internal.summary.total_transactions} internal transactions for {address}")

        return TransactionBundle(
            address=address,
            normal_transactions=normal.transactions,
            internal_transactions=internal.transactions,
            normal_summary=normal.summary,
            internal_summary=internal.summary,
            current_balance=balance,
            fetched_at=time.time(),
        )

    def _fetch_page(self, address: str, kind: str, page: int,
                    api_key: Optional[str], result: PaginationResult) -> list:
        """One page request, retried up to ``max_retries`` times."""
        attempt = 0
        while True:
            result.requests_made += 1
            try:
                return self.client.get_transactions(
                    address, kind=kind, page=page, offset=self.config.page_size,
                    sort="desc", api_key=api_key)
            except EtherscanAPIError as e:
                if attempt >= self.config.max_retries:
                    raise
                attempt += 1
                delay = self.config.retry_backoff * attempt
                logger.info(
                    f"Retrying {kind} page {page} for {address} in {delay}s "
                    f"(attempt {attempt}/{self.config.max_retries}): {e}")
                self._sleep(delay)

    def paginate(self, address: str, kind: str, api_key: Optional[str] = None) -> PaginationResult:
        """Walk every page of one transaction kind, folding the running summary."""
        address = normalize_address(address)
        result = PaginationResult(kind=kind, state=FetchState.FETCHING)
        page = 1

        while result.state is FetchState.FETCHING:
            if self.config.max_pages and page > self.config.max_pages:
                logger.warning(
                    f"Stopping {kind} pagination for {address} after "
                    f"{self.config.max_pages} pages")
                result.state = FetchState.ABORTED
                break

            try:
                raw = self._fetch_page(address, kind, page, api_key, result)
            except EtherscanAPIError as e:
                logger.warning(
                    f"Error fetching {kind} transactions page {page} for {address}: {e}")
                result.state = FetchState.ABORTED
                break

            for tx in parse_etherscan_transactions(raw):
                result.transactions.append(tx)
                fold_transaction(result.summary, tx, address)
            result.summary.total_transactions = len(result.transactions)
            result.summary.pages_fetched = page
            logger.debug(
                f"{kind} page {page} for {address}: {len(raw)} records")

            if len(raw) < self.config.page_size:
                result.state = FetchState.DONE
            else:
                page += 1

        result.summary.complete = result.state is FetchState.DONE
        return result
