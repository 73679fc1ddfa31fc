"""
Utility functions for data processing and analysis.
"""

from typing import List, Dict, Any
from decimal import Decimal
import re
import logging

from web3 import Web3

from .models import Transaction, TransactionSummary

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r'^0x[0-9a-fA-F]{40}$')


def is_valid_ethereum_address(address: str) -> bool:
    """Check if a string is a 0x-prefixed, 40 hex digit Ethereum address."""
    if not address:
        return False
    return bool(_ADDRESS_RE.match(address))


def normalize_address(address: str) -> str:
    """Normalize an Ethereum address to lowercase with 0x prefix."""
    if not address:
        return ""

    address = address.strip().lower()
    if not address.startswith('0x'):
        address = '0x' + address

    return address


def to_checksum(address: str) -> str:
    """EIP-55 form of an address for display, or the input if it is not one."""
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError):
        return address


def wei_to_ether(wei: Any) -> Decimal:
    """Convert Wei to Ether."""
    try:
        return Decimal(Web3.from_wei(int(wei), 'ether'))
    except (ValueError, TypeError) as e:
        logger.warning(f"Error converting wei to ether: {wei}, error: {e}")
        return Decimal('0')


def parse_etherscan_transaction(tx: Dict[str, Any]) -> Transaction:
    """Build a Transaction from one raw txlist / txlistinternal record.

    Contract creations carry an empty ``to``; the created contract is used
    as the receiving side instead.
    """
    to_addr = tx.get('to') or tx.get('contractAddress') or ''
    return Transaction(
        from_address=normalize_address(tx['from']),
        to_address=normalize_address(to_addr),
        value=wei_to_ether(tx.get('value', '0')),
        timestamp=int(tx['timeStamp']),
        tx_hash=tx.get('hash', ''),
        block_number=int(tx.get('blockNumber') or 0),
        is_error=str(tx.get('isError', '0')) == '1',
    )


def parse_etherscan_transactions(raw_transactions: List[Dict[str, Any]]) -> List[Transaction]:
    """Parse raw Etherscan transaction data into Transaction objects."""
    transactions = []

    for tx in raw_transactions or []:
        try:
            transactions.append(parse_etherscan_transaction(tx))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(
                f"Skipping malformed transaction {tx.get('hash', 'unknown') if isinstance(tx, dict) else tx}: {e}")

    if len(transactions) != len(raw_transactions or []):
        logger.info(
            f"Parsed {len(transactions)} valid transactions from {len(raw_transactions)} raw transactions")
    return transactions


def fold_transaction(summary: TransactionSummary, tx: Transaction, address: str) -> None:
    """Add one transaction's value to the running in/out totals of ``address``.

    A self-transfer counts as both inflow and outflow.
    """
    address = normalize_address(address)
    if tx.from_address == address:
        summary.total_eth_out += tx.value
    if tx.to_address == address:
        summary.total_eth_in += tx.value


def format_number(number: Decimal, decimals: int = 2) -> str:
    """Format a number with K/M/B suffixes."""
    try:
        if number == 0:
            return "0"

        # Convert to float for formatting
        num = float(number)

        if abs(num) >= 1_000_000_000:
            return f"{num / 1_000_000_000:.{decimals}f}B"
        elif abs(num) >= 1_000_000:
            return f"{num / 1_000_000:.{decimals}f}M"
        elif abs(num) >= 1_000:
            return f"{num / 1_000:.{decimals}f}K"
        else:
            return f"{num:.{decimals}f}"
    except (ValueError, TypeError, OverflowError) as e:
        logger.warning(f"Error formatting number {number}: {e}")
        return str(number)
