"""
Command-line interface for the insider scanner.

Usage:
    insider-scanner arbitrage --threshold 0.99
    insider-scanner wallet 0x1234...
    insider-scanner scan --sample 5000
    insider-scanner scan --wallet 0xabc... --wallet 0xdef...
"""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .analysis.wallet import WalletAnalyzer
from .arbitrage import ArbitrageScanner
from .clients.paginator import PaginationError
from .clients.polymarket import PolymarketClient
from .config import get_config
from .detection.classifier import AnomalyClassifier
from .detection.scanner import WalletScanner
from .models import PerformanceSummary

app = typer.Typer(
    name="insider-scanner",
    help="Scan Polymarket for arbitrage and for wallets with insider-like performance",
    add_completion=False,
)

console = Console()


def setup_logging(debug: bool = False):
    """Configure logging."""
    level = logging.DEBUG if debug else getattr(logging, get_config().log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def page_progress(progress: Progress, task, label: str):
    """Paginator callback that updates a spinner with the running total."""
    def on_page(offset: int, count: int, total: int) -> None:
        progress.update(task, description=f"{label}: {total:,} records")
    return on_page


def performance_panel(summary: PerformanceSummary, flagged: bool, reasons: list[str]) -> Panel:
    lines = [
        f"[bold]Wallet:[/bold] {summary.wallet_address}",
        "",
        f"[bold]Total Trades:[/bold] {summary.total_trades}",
        f"[bold]Unique Markets:[/bold] {summary.total_markets}",
        f"[bold]Resolved Positions:[/bold] {summary.resolved_positions}",
        "",
        f"[bold]Wins / Losses:[/bold] {summary.wins} / {summary.losses}",
        f"[bold]Win Rate:[/bold] {summary.win_rate:.1f}%",
        "",
        f"[bold]Total Invested:[/bold] ${float(summary.capital_allocated):,.2f}",
        f"[bold]Total Payout:[/bold] ${float(summary.total_payout):,.2f}",
        f"[bold]Net Profit:[/bold] ${float(summary.net_profit):,.2f}",
        f"[bold]ROI:[/bold] {summary.roi:.1f}%",
        f"[bold]Avg Profit per Win:[/bold] ${float(summary.avg_profit_per_win):,.2f}",
        f"[bold]Avg Loss per Loss:[/bold] ${float(summary.avg_loss_per_loss):,.2f}",
    ]

    if flagged:
        lines.append("")
        lines.append("[red bold]SUSPICIOUS ACTIVITY DETECTED[/red bold]")
        lines.extend(f"  • {reason}" for reason in reasons)
        style = "red"
    else:
        lines.append("")
        lines.append("[green]No suspicious patterns detected[/green]")
        lines.extend(f"[dim]  {reason}[/dim]" for reason in reasons)
        style = "green"

    return Panel("\n".join(lines), title="Wallet Performance Report", border_style=style)


@app.command()
def arbitrage(
    threshold: Optional[float] = typer.Option(
        None,
        "--threshold", "-t",
        help="Flag markets whose YES + NO price is below this (default 0.99)",
    ),
    limit: int = typer.Option(25, "--limit", "-l", help="Maximum opportunities to display"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """
    Scan all active markets for YES + NO arbitrage.
    """
    setup_logging(debug)

    scanner = ArbitrageScanner(threshold)

    async def run():
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Fetching active markets...", total=None)
            async with PolymarketClient() as client:
                markets = await client.fetch_active_markets(
                    on_page=page_progress(progress, task, "Fetching active markets")
                )

        console.print(f"Found [bold]{len(markets):,}[/bold] active markets")
        opportunities = scanner.scan(markets)

        if not opportunities:
            console.print(f"[yellow]No arbitrage opportunities found (threshold: total < ${scanner.threshold:.2f})[/yellow]")
            console.print("[dim]Efficient markets close arbitrage quickly, run this periodically.[/dim]")
            return

        table = Table(title=f"Arbitrage Opportunities ({len(opportunities)})", show_header=True)
        table.add_column("Market", style="cyan", max_width=50)
        table.add_column("YES", justify="right")
        table.add_column("NO", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Profit", justify="right", style="green")
        table.add_column("Volume", justify="right")
        table.add_column("Liquidity", justify="right")

        for opp in opportunities[:limit]:
            table.add_row(
                opp.question[:50],
                f"${opp.yes_price:.4f}",
                f"${opp.no_price:.4f}",
                f"${opp.total_cost:.4f}",
                f"{opp.profit_percent:.2f}%",
                f"${opp.volume:,.0f}",
                f"${opp.liquidity:,.0f}",
            )

        console.print(table)

    try:
        asyncio.run(run())
    except PaginationError as e:
        console.print(f"[red]Failed to fetch markets: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def wallet(
    address: str = typer.Argument(..., help="Proxy wallet address"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """
    Analyze a single wallet's trading performance.
    """
    setup_logging(debug)

    analyzer = WalletAnalyzer()
    classifier = AnomalyClassifier()

    async def run():
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            async with PolymarketClient() as client:
                task = progress.add_task("Fetching trades...", total=None)
                trades = await client.fetch_trades(
                    user=address,
                    on_page=page_progress(progress, task, "Fetching trades"),
                )
                if not trades:
                    return None

                progress.update(task, description="Loading resolved markets...")
                resolved = await client.fetch_resolved_markets(
                    on_page=page_progress(progress, task, "Loading resolved markets")
                )

        return analyzer.analyze(trades, resolved)

    try:
        summary = asyncio.run(run())
    except PaginationError as e:
        console.print(f"[red]Failed to fetch data: {e}[/red]")
        raise typer.Exit(code=1)

    if summary is None:
        console.print(f"[yellow]No trades found for {address}[/yellow]")
        return

    flagged, reasons = classifier.classify(summary)
    console.print(performance_panel(summary, flagged, reasons))


@app.command()
def scan(
    wallets: Optional[list[str]] = typer.Option(
        None,
        "--wallet", "-w",
        help="Wallet to scan (repeatable). Defaults to the most active wallets.",
    ),
    sample: Optional[int] = typer.Option(
        None,
        "--sample", "-s",
        help="Recent trades to sample when discovering active wallets",
    ),
    top: Optional[int] = typer.Option(None, "--top", "-n", help="Number of active wallets to scan"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """
    Scan wallets for potential insider trading.

    Without --wallet, the most active wallets in a sample of recent trades
    are scanned.
    """
    setup_logging(debug)

    async def run():
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            async with PolymarketClient() as client:
                scanner = WalletScanner(client)
                task = progress.add_task("Starting...", total=None)

                targets = list(wallets or [])
                if not targets:
                    targets = await scanner.find_active_wallets(
                        sample_size=sample,
                        limit=top,
                        on_page=page_progress(progress, task, "Sampling recent trades"),
                    )

                resolved = await client.fetch_resolved_markets(
                    on_page=page_progress(progress, task, "Loading resolved markets")
                )

                def on_wallet(report, index, total):
                    progress.update(task, description=f"[{index}/{total}] Analyzed {report.wallet_address[:12]}...")

                return await scanner.scan_for_insiders(targets, resolved, on_wallet=on_wallet)

    try:
        reports = asyncio.run(run())
    except PaginationError as e:
        console.print(f"[red]Failed to fetch data: {e}[/red]")
        raise typer.Exit(code=1)

    suspicious = [r for r in reports if r.suspicious]

    if suspicious:
        table = Table(title="Suspicious Wallets (Potential Insiders)", show_header=True)
        table.add_column("Wallet", style="cyan")
        table.add_column("Win Rate", justify="right")
        table.add_column("ROI", justify="right")
        table.add_column("Resolved", justify="right")
        table.add_column("Invested", justify="right")
        table.add_column("Net Profit", justify="right")
        table.add_column("Red Flags")

        for report in suspicious:
            s = report.summary
            table.add_row(
                report.wallet_address,
                f"{s.win_rate:.1f}%",
                f"{s.roi:.1f}%",
                str(s.resolved_positions),
                f"${float(s.capital_allocated):,.2f}",
                f"${float(s.net_profit):,.2f}",
                "\n".join(report.flags),
            )

        console.print(table)
    else:
        console.print("[yellow]No suspicious wallets found[/yellow]")

    analyzed = sum(1 for r in reports if r.analyzed)
    failed = sum(1 for r in reports if r.error)

    console.print()
    console.print(Panel(
        f"Scanned [bold]{len(reports)}[/bold] wallets, "
        f"[bold]{analyzed}[/bold] analyzed, "
        f"[bold]{failed}[/bold] without data, "
        f"[bold red]{len(suspicious)}[/bold red] suspicious",
        title="Scan Summary",
    ))


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
