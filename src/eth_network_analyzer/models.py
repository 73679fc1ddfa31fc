"""
Data models for Ethereum address network analysis.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, List, Dict, Any


@dataclass(frozen=True)
class Transaction:
    """A single transfer of ETH as reported by Etherscan."""
    from_address: str
    to_address: str
    value: Decimal  # ETH, already converted from wei
    timestamp: int  # epoch seconds
    tx_hash: str = ""
    block_number: int = 0
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.tx_hash,
            "block_number": self.block_number,
            "from": self.from_address,
            "to": self.to_address,
            "value": str(self.value),
            "timestamp": self.timestamp,
            "is_error": self.is_error,
        }


@dataclass
class TransactionSummary:
    """Running totals for one transaction kind of one address."""
    total_eth_in: Decimal = Decimal("0")
    total_eth_out: Decimal = Decimal("0")
    total_transactions: int = 0
    pages_fetched: int = 0
    complete: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_eth_in": str(self.total_eth_in),
            "total_eth_out": str(self.total_eth_out),
            "total_transactions": self.total_transactions,
            "pages_fetched": self.pages_fetched,
            "complete": self.complete,
        }


@dataclass(frozen=True)
class TransactionBundle:
    """Everything fetched for one address, as stored in the cache."""
    address: str
    normal_transactions: List[Transaction]
    internal_transactions: List[Transaction]
    normal_summary: TransactionSummary
    internal_summary: TransactionSummary
    current_balance: Decimal = Decimal("0")
    fetched_at: float = 0.0

    @property
    def is_partial(self) -> bool:
        return not (self.normal_summary.complete and self.internal_summary.complete)


@dataclass
class ConnectionSummary:
    """Aggregated interaction between the analyzed address and one counterparty."""
    address: str
    sent: Decimal = Decimal("0")
    received: Decimal = Decimal("0")
    count: int = 0
    dates: List[int] = field(default_factory=list)
    last_interaction: int = 0

    @property
    def total_volume(self) -> Decimal:
        return self.sent + self.received

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "sent": str(self.sent),
            "received": str(self.received),
            "count": self.count,
            "dates": list(self.dates),
            "last_interaction": self.last_interaction,
        }


@dataclass
class AnalysisResult:
    """Ranked counterparty network plus totals for one address."""
    address: str
    connections: List[ConnectionSummary]
    total_eth_sent: Decimal
    total_eth_received: Decimal
    net_position: Decimal
    total_transactions: int
    normal_summary: TransactionSummary
    internal_summary: TransactionSummary
    normal_transactions: List[Transaction]
    internal_transactions: List[Transaction]
    eth_price: Optional[Decimal] = None
    is_partial: bool = False

    def to_dict(self, include_transactions: bool = True) -> Dict[str, Any]:
        data = {
            "address": self.address,
            "connections": [conn.to_dict() for conn in self.connections],
            "total_eth_sent": str(self.total_eth_sent),
            "total_eth_received": str(self.total_eth_received),
            "net_position": str(self.net_position),
            "total_transactions": self.total_transactions,
            "normal_summary": self.normal_summary.to_dict(),
            "internal_summary": self.internal_summary.to_dict(),
            "eth_price": str(self.eth_price) if self.eth_price is not None else None,
            "is_partial": self.is_partial,
        }
        if include_transactions:
            data["normal_transactions"] = [
                tx.to_dict() for tx in self.normal_transactions]
            data["internal_transactions"] = [
                tx.to_dict() for tx in self.internal_transactions]
        return data
