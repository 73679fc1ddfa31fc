import time
import logging
from typing import Optional, List, Dict, Any
from decimal import Decimal, InvalidOperation
import requests

from .config import Config
from .utils import wei_to_ether

# Set up logging
logger = logging.getLogger(__name__)

# Etherscan action per transaction kind
TRANSACTION_ACTIONS = {
    "normal": "txlist",
    "internal": "txlistinternal",
}

START_BLOCK = 0
END_BLOCK = 99999999


class EtherscanAPIError(Exception):
    """Raised when Etherscan cannot be reached or answers with an error envelope."""

    def __init__(self, message: str, action: Optional[str] = None):
        super().__init__(message)
        self.action = action


def _is_empty_result(data: Dict[str, Any]) -> bool:
    """Etherscan reports an empty listing as status 0 with an empty result."""
    message = str(data.get("message", "")).lower()
    return data.get("result") in ([], None) and "no transactions found" in message


class EtherscanClient:
    """Client for Etherscan API.

    Pure transport: every failure surfaces as ``EtherscanAPIError`` and no
    call is retried here.
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.etherscan_base_url
        self.api_key = config.etherscan_api_key
        self.session = session

    def _make_request(self, params: Dict[str, Any], api_key: Optional[str] = None) -> Dict[str, Any]:
        """Make a request to Etherscan API."""
        params = dict(params)
        params["apikey"] = api_key or self.api_key or ""
        action = params.get("action")

        getter = self.session.get if self.session is not None else requests.get
        try:
            response = getter(self.base_url, params=params,
                              timeout=self.config.request_timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise EtherscanAPIError(
                f"Etherscan request failed for {action}: {e}", action) from e
        except ValueError as e:
            raise EtherscanAPIError(
                f"Etherscan returned invalid JSON for {action}: {e}", action) from e

        if not isinstance(data, dict):
            raise EtherscanAPIError(
                f"Etherscan returned an unexpected payload for {action}", action)

        if data.get("status") != "1" and not _is_empty_result(data):
            detail = data.get("result") if isinstance(
                data.get("result"), str) else None
            raise EtherscanAPIError(
                f"Etherscan API error: {data.get('message', 'Unknown error')}"
                + (f" ({detail})" if detail else ""), action)

        # Rate limiting
        if self.config.rate_limit_delay:
            time.sleep(self.config.rate_limit_delay)

        return data

    def get_eth_price(self, api_key: Optional[str] = None) -> Decimal:
        """Get current ETH price in USD using Etherscan stats endpoint."""
        params = {
            "module": "stats",
            "action": "ethprice"
        }
        data = self._make_request(params, api_key)
        result = data.get("result") or {}
        try:
            return Decimal(str(result["ethusd"]))
        except (KeyError, TypeError, InvalidOperation) as e:
            raise EtherscanAPIError(
                f"Etherscan price payload without ethusd: {result}", "ethprice") from e

    def get_balance(self, address: str, api_key: Optional[str] = None) -> Decimal:
        """Get the current ETH balance of an address."""
        params = {
            "module": "account",
            "action": "balance",
            "address": address,
            "tag": "latest"
        }
        data = self._make_request(params, api_key)
        return wei_to_ether(data.get("result", "0"))

    def get_transactions(self, address: str, kind: str = "normal", page: int = 1,
                         offset: int = 10000, sort: str = "desc",
                         api_key: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get one page of normal or internal transactions for an address.

        The caller compares the length of the returned list with ``offset``
        to detect the last page.
        """
        try:
            action = TRANSACTION_ACTIONS[kind]
        except KeyError:
            raise ValueError(
                f"Unknown transaction kind {kind!r}, expected one of {sorted(TRANSACTION_ACTIONS)}")

        params = {
            "module": "account",
            "action": action,
            "address": address,
            "startblock": START_BLOCK,
            "endblock": END_BLOCK,
            "page": page,
            "offset": offset,
            "sort": sort
        }

        data = self._make_request(params, api_key)
        result = data.get("result") or []
        if not isinstance(result, list):
            raise EtherscanAPIError(
                f"Etherscan returned a non-list result for {action}", action)
        return result
