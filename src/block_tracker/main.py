"""
Main CLI application for BlockTracker.
"""

from .utils import (
    is_valid_ethereum_address,
    shorten_address,
    format_date,
    format_number,
)
from .models import (
    AnalysisMode,
    ContractReport,
    NFTReport,
    Report,
    WalletReport,
    report_to_dict,
)
from typing import Optional
from datetime import datetime, timezone
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.panel import Panel
from rich.markup import escape

from .config import Config
from .aggregator import Aggregator
from .exceptions import BlockTrackerError
from .prompts import render_intelligence_prompt

# Logging setup
import logging
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="block-tracker",
    help="Explore Ethereum wallets, contracts and NFT collections and build an AI analysis prompt."
)

console = Console()


def load_config() -> Config:
    """Load application configuration."""
    try:
        return Config.from_env()
    except ValueError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        console.print(
            "\n[yellow]Please create a .env file with your API keys (run: block-tracker setup):[/yellow]")
        console.print("ALCHEMY_API_KEY=your_key_here")
        console.print("ETHERSCAN_API_KEY=your_key_here")
        raise typer.Exit(1)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def display_wallet(report: WalletReport):
    """Display wallet results in rich panels and tables."""
    title = report.ens_name or shorten_address(report.address)
    console.print(Panel(
        f"[bold blue]{escape(title)}[/bold blue]\n"
        f"Address: [yellow]{report.address}[/yellow]\n"
        f"Balance: [green]{report.balance}[/green]\n"
        f"Transactions: [green]{format_number(report.transaction_count)}[/green]\n"
        f"First Activity: {format_date(report.first_activity)}\n"
        f"Block: {format_number(report.block_number)}",
        title="Wallet Information",
        expand=False
    ))

    if report.tokens:
        table = Table(title="\nERC-20 Token Holdings")
        table.add_column("Token", style="magenta")
        table.add_column("Symbol", style="cyan", no_wrap=True)
        table.add_column("Balance", style="green", justify="right")
        table.add_column("Contract", style="yellow", no_wrap=True)
        for token in report.tokens:
            table.add_row(
                escape(token.name),
                escape(token.symbol),
                f"{token.balance} {escape(token.symbol)}",
                shorten_address(token.contract_address))
        console.print(table)
    else:
        console.print("[yellow]No ERC-20 tokens found.[/yellow]")

    if report.transactions:
        table = Table(title="\nRecent Transactions")
        table.add_column("Hash", style="yellow", no_wrap=True)
        table.add_column("From", style="magenta", no_wrap=True)
        table.add_column("To", style="magenta", no_wrap=True)
        table.add_column("Value", style="green", justify="right")
        table.add_column("Date", style="white", no_wrap=True)
        table.add_column("Status", no_wrap=True)
        for tx in report.transactions[:5]:
            table.add_row(
                shorten_address(tx.hash, 10, 8),
                shorten_address(tx.from_address),
                shorten_address(tx.to_address) if tx.to_address else "Contract Creation",
                tx.value,
                format_date(tx.timestamp),
                "[red]Failed[/red]" if tx.failed else "[green]Success[/green]")
        console.print(table)
    else:
        console.print("[yellow]No recent transactions found.[/yellow]")


def display_contract(report: ContractReport):
    console.print(Panel(
        f"[bold blue]{escape(report.name or 'Unknown')}[/bold blue]\n"
        f"Address: [yellow]{shorten_address(report.address)}[/yellow]\n"
        f"Compiler: {escape(report.compiler_version or 'Unknown')}\n"
        f"Verified: {'[green]Yes[/green]' if report.verified else '[red]No[/red]'}\n"
        f"ABI entries: {len(report.abi) if report.abi else 0}",
        title="Contract Information",
        expand=False
    ))


def display_nft(report: NFTReport):
    console.print(Panel(
        f"[bold blue]{escape(report.name)}[/bold blue] ([green]{escape(report.symbol)}[/green])\n"
        f"Address: [yellow]{shorten_address(report.address)}[/yellow]\n"
        f"Total Supply: {format_number(report.total_supply)}\n"
        f"Standard: {report.standard}",
        title="NFT Collection",
        expand=False
    ))


def display_report(report: Report):
    if isinstance(report, WalletReport):
        display_wallet(report)
    elif isinstance(report, ContractReport):
        display_contract(report)
    else:
        display_nft(report)


def export_to_json(report: Report, filepath: str):
    """Export a report to JSON."""
    with open(filepath, 'w') as jsonfile:
        json.dump(report_to_dict(report), jsonfile, indent=2, default=str)


@app.command()
def analyze(
    address: str = typer.Argument(..., help="Ethereum address (0x followed by 40 hex characters)"),
    mode: AnalysisMode = typer.Option(
        AnalysisMode.WALLET, "--mode", "-m", help="Analysis type: wallet, contract, nft"),
    output_file: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write the report as JSON to this file"),
    prompt_file: Optional[str] = typer.Option(
        None, "--prompt-file", "-p", help="Write the AI prompt to this file"),
    show_prompt: bool = typer.Option(
        True, "--prompt/--no-prompt", help="Print the AI analysis prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Analyze a wallet, smart contract or NFT collection."""

    address = address.strip()
    if not is_valid_ethereum_address(address):
        console.print(
            "[red]Invalid Ethereum address format. Must start with 0x and be 42 characters long.[/red]")
        raise typer.Exit(1)

    config = load_config()
    configure_logging("DEBUG" if verbose else config.log_level)

    try:
        aggregator = Aggregator(config)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Analyzing {mode.value} {shorten_address(address)}...", total=None)
            report = aggregator.produce_report(address, mode)
    except BlockTrackerError as e:
        logger.debug(f"Analysis failed: {e.to_dict()}")
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1)

    display_report(report)

    prompt = render_intelligence_prompt(report, mode, datetime.now(timezone.utc))
    if show_prompt:
        console.print(Panel(escape(prompt), title="AI Analysis Prompt", expand=False))

    if prompt_file:
        Path(prompt_file).write_text(prompt)
        console.print(f"[green]Prompt written to {prompt_file}[/green]")

    if output_file:
        export_to_json(report, output_file)
        console.print(f"[green]Results exported to {output_file}[/green]")


@app.command()
def setup():
    """Setup the application by creating a .env file template."""
    env_content = """# BlockTracker Configuration

# Required: Alchemy API Key (get from https://www.alchemy.com/)
ALCHEMY_API_KEY=your_alchemy_api_key_here

# Required: Etherscan API Key (get from https://etherscan.io/apis)
ETHERSCAN_API_KEY=your_etherscan_api_key_here

# Network: mainnet, sepolia or holesky
NETWORK=mainnet

# Analysis Settings
RECENT_TX_LIMIT=10
TOKEN_BALANCE_CAP=10
LOOKUP_TIMEOUT=10
RATE_LIMIT_DELAY=0.2

# Logging
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
        "\n[yellow]Please edit the .env file and add your API keys:[/yellow]")
    console.print("1. Get an Alchemy API key from https://www.alchemy.com/")
    console.print("2. Get an Etherscan API key from https://etherscan.io/apis")
    console.print("3. Replace the 'your_..._here' placeholders with your real keys")
    console.print("4. Run: block-tracker analyze <address>")


if __name__ == "__main__":
    app()
