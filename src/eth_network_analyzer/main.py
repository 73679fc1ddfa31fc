"""
Main CLI application for the Ethereum address network analyzer.
"""

from .utils import (
    is_valid_ethereum_address,
    format_number,
    to_checksum,
)
from .models import AnalysisResult
from typing import Optional
from datetime import datetime, timezone
from decimal import Decimal
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.logging import RichHandler

from .config import Config
from .service import AddressAnalysisService

# Logging setup
import logging
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="eth-network",
    help="Show who an Ethereum address has transacted with, how much, and when."
)

console = Console()


def setup_logging(level: str = "WARNING") -> None:
    """Route log records through Rich."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def load_config() -> Config:
    """Load application configuration."""
    try:
        return Config.from_env()
    except (ValueError, ArithmeticError) as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)


def resolve_api_key(api_key: Optional[str], config: Config) -> str:
    """Pick the API key from the command line or the environment."""
    key = api_key or config.etherscan_api_key
    if not key:
        console.print("[red]API key is required[/red]")
        console.print(
            "[yellow]Pass --api-key or set ETHERSCAN_API_KEY in your .env file.[/yellow]")
        raise typer.Exit(1)
    return key


def _format_date(timestamp: int) -> str:
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _usd(amount: Decimal, eth_price: Optional[Decimal]) -> str:
    if eth_price is None:
        return "N/A"
    return f"${format_number(amount * eth_price)}"


def display_results_table(result: AnalysisResult, top: int = 25):
    """Display results in a rich table."""

    summary_panel = Panel(
        f"Address: [yellow]{to_checksum(result.address)}[/yellow]\n"
        f"Balance: [green]{result.net_position:.6f} ETH[/green] "
        f"({_usd(result.net_position, result.eth_price)})\n"
        f"ETH price: [cyan]${result.eth_price}[/cyan]",
        title="Address Information",
        expand=False
    )
    console.print(summary_panel)

    console.print(f"\n[bold]Analysis Summary:[/bold]")
    console.print(
        f"Total Transactions: [green]{result.total_transactions:,}[/green] "
        f"({result.normal_summary.total_transactions:,} normal, "
        f"{result.internal_summary.total_transactions:,} internal)")
    console.print(
        f"Total Sent: [red]{format_number(result.total_eth_sent, 4)} ETH[/red]")
    console.print(
        f"Total Received: [green]{format_number(result.total_eth_received, 4)} ETH[/green]")
    console.print(
        f"Counterparties: [green]{len(result.connections):,}[/green]")

    if result.is_partial:
        console.print(
            "[yellow]Warning: Etherscan stopped answering mid-way, transaction history is incomplete.[/yellow]")

    if not result.connections:
        console.print("[yellow]No counterparties found.[/yellow]")
        return

    table = Table(title=f"\nTop {min(top, len(result.connections))} Counterparties by Volume")

    table.add_column("Rank", style="cyan", no_wrap=True)
    table.add_column("Counterparty", style="magenta", no_wrap=True)
    table.add_column("Sent (ETH)", style="red", justify="right")
    table.add_column("Received (ETH)", style="green", justify="right")
    table.add_column("Volume (USD)", style="white", justify="right")
    table.add_column("Txs", style="white", justify="right")
    table.add_column("Last Interaction", style="blue", no_wrap=True)

    for i, conn in enumerate(result.connections[:top], 1):
        table.add_row(
            str(i),
            conn.address,
            format_number(conn.sent, 4),
            format_number(conn.received, 4),
            _usd(conn.total_volume, result.eth_price),
            f"{conn.count:,}",
            _format_date(conn.last_interaction),
        )

    console.print(table)


def export_to_json(result: AnalysisResult, filepath: Optional[str] = None,
                   include_transactions: bool = True) -> str:
    """Render analysis results as JSON, optionally writing them to a file."""
    payload = json.dumps(
        {"success": True, "analysis": result.to_dict(include_transactions)},
        indent=2, default=str)

    if filepath:
        with open(filepath, 'w') as jsonfile:
            jsonfile.write(payload)
    return payload


@app.command()
def analyze(
    address: str = typer.Argument(..., help="Ethereum address (0x followed by 40 hex digits)"),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", "-k", help="Etherscan API key (defaults to ETHERSCAN_API_KEY)"),
    output_format: Optional[str] = typer.Option(
        None, "--format", "-f", help="Output format: table, json"),
    output_file: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output file path (JSON)"),
    top: int = typer.Option(
        25, "--top", "-n", help="Number of counterparties to show in the table"),
    include_transactions: bool = typer.Option(
        True, "--with-transactions/--without-transactions",
        help="Include raw transaction lists in JSON output"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress"),
):
    """Analyze the counterparty network of an Ethereum address."""

    config = load_config()
    setup_logging("INFO" if verbose else config.log_level)
    output_format = (output_format or config.output_format).lower()

    if not is_valid_ethereum_address(address):
        console.print(f"[red]Invalid Ethereum address: {address}[/red]")
        raise typer.Exit(1)

    key = resolve_api_key(api_key, config)
    service = AddressAnalysisService(config)

    try:
        if output_format == "table":
            with console.status(f"[cyan]Analyzing {address}...[/cyan]"):
                result = service.analyze_address(address, key)
        else:
            result = service.analyze_address(address, key)
    except Exception:
        logger.exception(f"Error analyzing address {address}")
        console.print("[red]Failed to analyze address[/red]")
        raise typer.Exit(1)
    finally:
        service.close()

    if output_format == "json":
        payload = export_to_json(result, output_file, include_transactions)
        if output_file:
            console.print(f"[green]Results exported to {output_file}[/green]")
        else:
            typer.echo(payload)
    elif output_format == "table":
        display_results_table(result, top)
        if output_file:
            export_to_json(result, output_file, include_transactions)
            console.print(f"[green]Results exported to {output_file}[/green]")
    else:
        console.print(
            f"[yellow]Unsupported output format: {output_format}[/yellow]")
        raise typer.Exit(1)


@app.command()
def price(
    api_key: Optional[str] = typer.Option(
        None, "--api-key", "-k", help="Etherscan API key (defaults to ETHERSCAN_API_KEY)"),
):
    """Show the current ETH/USD price."""
    config = load_config()
    setup_logging(config.log_level)
    key = resolve_api_key(api_key, config)

    service = AddressAnalysisService(config)
    eth_price = service.get_eth_price(key)
    console.print(f"ETH price: [green]${eth_price}[/green]")


@app.command()
def setup():
    """Setup the application by creating a .env file template."""
    env_content = """# Ethereum Address Network Analyzer Configuration

# Required: Etherscan API Key (get from https://etherscan.io/apis)
ETHERSCAN_API_KEY=your_etherscan_api_key_here

# Pagination Settings
PAGE_SIZE=10000
MAX_PAGES=100
MAX_RETRIES=0
REQUEST_TIMEOUT=30
RATE_LIMIT_DELAY=0.2

# Cache Settings (seconds)
CACHE_TTL=300

# Used when the ETH price cannot be fetched
FALLBACK_ETH_PRICE=2000

# Output Settings
OUTPUT_FORMAT=table
LOG_LEVEL=WARNING
"""

    env_path = Path(".env")
    if env_path.exists():
        console.print("[yellow].env file already exists![/yellow]")
        if not typer.confirm("Overwrite existing .env file?"):
            return

    with open(env_path, 'w') as f:
        f.write(env_content)

    console.print(f"[green]Created .env file at {env_path.absolute()}[/green]")
    console.print(
        "\n[yellow]Please edit the .env file and add your API key:[/yellow]")
    console.print("1. Get an Etherscan API key from https://etherscan.io/apis")
    console.print(
        "2. Replace 'your_etherscan_api_key_here' with your real key")
    console.print("3. Run: eth-network analyze <address>")


if __name__ == "__main__":
    app()
