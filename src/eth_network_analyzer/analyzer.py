"""
Counterparty network analysis over a fetched transaction bundle.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .models import AnalysisResult, ConnectionSummary, Transaction, TransactionBundle
from .utils import normalize_address

logger = logging.getLogger(__name__)


def _fold_connection(connections: Dict[str, ConnectionSummary], address: str, tx: Transaction) -> None:
    is_outgoing = tx.from_address == address
    is_incoming = tx.to_address == address

    if not is_outgoing and not is_incoming:
        logger.debug(f"Skipping {tx.tx_hash or 'transaction'} not involving {address}")
        return

    # A self-transfer is its own counterparty, on both sides
    counterparty = tx.to_address if is_outgoing else tx.from_address

    conn = connections.get(counterparty)
    if conn is None:
        conn = connections[counterparty] = ConnectionSummary(address=counterparty)

    if is_outgoing:
        conn.sent += tx.value
    if is_incoming:
        conn.received += tx.value
    conn.count += 1
    conn.dates.append(tx.timestamp)


def build_connections(address: str, transactions: Iterable[Transaction]) -> List[ConnectionSummary]:
    """Aggregate transactions per counterparty, ranked by sent + received.

    Ties keep the order in which counterparties were first seen.
    """
    address = normalize_address(address)
    connections: Dict[str, ConnectionSummary] = {}

    for tx in transactions:
        _fold_connection(connections, address, tx)

    for conn in connections.values():
        conn.dates.sort(reverse=True)
        conn.last_interaction = conn.dates[0] if conn.dates else 0

    # sorted() is stable, so insertion order breaks ties
    return sorted(connections.values(), key=lambda c: c.total_volume, reverse=True)


def analyze_address_transactions(address: str, bundle: TransactionBundle,
                                 eth_price: Optional[Decimal] = None) -> AnalysisResult:
    """Build the ranked counterparty network and totals for an address."""
    normal = bundle.normal_summary
    internal = bundle.internal_summary

    connections = build_connections(
        address, list(bundle.normal_transactions) + list(bundle.internal_transactions))

    return AnalysisResult(
        address=normalize_address(address),
        connections=connections,
        total_eth_sent=normal.total_eth_out + internal.total_eth_out,
        total_eth_received=normal.total_eth_in + internal.total_eth_in,
        net_position=bundle.current_balance or Decimal("0"),
        total_transactions=normal.total_transactions + internal.total_transactions,
        normal_summary=normal,
        internal_summary=internal,
        normal_transactions=bundle.normal_transactions,
        internal_transactions=bundle.internal_transactions,
        eth_price=eth_price,
        is_partial=bundle.is_partial,
    )
