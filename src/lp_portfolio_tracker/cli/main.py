"""CLI for the LP portfolio tracker."""

import json
import logging
from enum import StrEnum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from lp_portfolio_tracker.core.models import DEFAULT_NETWORK, PoolState, PortfolioSnapshot, PortfolioView
from lp_portfolio_tracker.core.pipeline import derive_portfolio
from lp_portfolio_tracker.data import get_all_supported_networks, get_network_by_name, load_networks
from lp_portfolio_tracker.integrations import NetworkCollector, PositionsAPIClient
from lp_portfolio_tracker.pricing import DeFiLlamaPricing, positions_gas_cost
from lp_portfolio_tracker.settings import AppSettings, GlobalCurrency

install(show_locals=False)

DEFAULT_SETTINGS_PATH = Path.home() / ".config" / "lp-portfolio" / "settings.yaml"

app = typer.Typer(
    name="lp-portfolio",
    help="Aggregate concentrated-liquidity positions across networks into one portfolio",
    add_completion=False,
)

console = Console()


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _resolve_settings(
    settings_path: Path,
    currency: GlobalCurrency | None,
    hide_closed: bool | None,
) -> AppSettings:
    settings = AppSettings.load(settings_path)
    overrides = {}
    if currency is not None:
        overrides["global_currency"] = currency
    if hide_closed is not None:
        overrides["filter_closed"] = hide_closed
    return settings.model_copy(update=overrides) if overrides else settings


@app.command()
def pools(
    addresses: list[str] = typer.Argument(..., help="Wallet addresses to query"),
    network: list[str] | None = typer.Option(None, "--network", "-n", help="Network to query (repeatable)"),
    currency: GlobalCurrency | None = typer.Option(None, "--currency", "-c", help="Global display currency"),
    hide_closed: bool | None = typer.Option(
        None, "--hide-closed/--show-closed", help="Hide positions with zero liquidity"
    ),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    api_url: str = typer.Option(
        PositionsAPIClient.BASE_URL, "--api-url", envvar="LP_PORTFOLIO_API_URL", help="Positions API base URL"
    ),
    settings_path: Path = typer.Option(DEFAULT_SETTINGS_PATH, "--settings", help="Settings YAML file"),
    save: Path | None = typer.Option(None, "--save", help="Write the fetched snapshot to a JSON file"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Fetch and aggregate liquidity positions for wallet addresses.

    Examples:

        # All networks, values in USD
        lp-portfolio pools 0xABC...

        # Arbitrum only, values in ETH, closed positions hidden
        lp-portfolio pools 0xABC... --network arbitrum --currency eth --hide-closed
    """
    _configure_logging(debug)
    settings = _resolve_settings(settings_path, currency, hide_closed)

    try:
        networks = [get_network_by_name(name) for name in network] if network else get_all_supported_networks()
    except KeyError as e:
        console.print(f"[bold red]Unknown network:[/bold red] {e}")
        raise typer.Exit(1) from e

    console.print(f"\n[bold cyan]Fetching positions for:[/bold cyan] {', '.join(addresses)}")

    try:
        with PositionsAPIClient(base_url=api_url) as client, DeFiLlamaPricing() as pricing:
            # Every network, so bridged-WETH values on non-ether networks have an ether price.
            native_prices = pricing.get_native_prices(get_all_supported_networks())
            collector = NetworkCollector(client, networks)

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console,
            ) as progress:
                task = progress.add_task(f"Scanning {len(networks)} networks...", total=len(networks))
                snapshots = []
                for snapshots in collector.stream(addresses):
                    view = derive_portfolio(snapshots, settings, native_prices)
                    resolved = sum(not snapshot.loading for snapshot in snapshots)
                    progress.update(task, description=f"Found {len(view.pools)} pools...", completed=resolved)
                progress.update(task, description="✓ Scan complete", completed=len(networks))

        snapshot = PortfolioSnapshot(
            networks=snapshots,
            native_prices={int(net): price for net, price in native_prices.items()},
        )
        if save:
            save.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
            console.print(f"[dim]Snapshot written to {save}[/dim]")

        _output(derive_portfolio(snapshot.networks, settings, snapshot.prices_by_network()), format)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if debug:
            raise
        raise typer.Exit(1) from e


@app.command()
def show(
    snapshot_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Snapshot JSON file"),
    currency: GlobalCurrency | None = typer.Option(None, "--currency", "-c", help="Global display currency"),
    hide_closed: bool | None = typer.Option(
        None, "--hide-closed/--show-closed", help="Hide positions with zero liquidity"
    ),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    settings_path: Path = typer.Option(DEFAULT_SETTINGS_PATH, "--settings", help="Settings YAML file"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """Aggregate a previously saved snapshot without fetching anything."""
    _configure_logging(debug)
    settings = _resolve_settings(settings_path, currency, hide_closed)

    snapshot = PortfolioSnapshot.model_validate_json(snapshot_path.read_text(encoding="utf-8"))
    view = derive_portfolio(snapshot.networks, settings, snapshot.prices_by_network())
    _output(view, format)


@app.command()
def networks() -> None:
    """List all configured networks."""
    table = Table(title="Supported Networks", show_header=True, header_style="bold magenta")
    table.add_column("Network", style="cyan")
    table.add_column("Chain ID", style="blue", justify="right")
    table.add_column("Wrapped Native", style="green")
    table.add_column("Stablecoins", style="yellow")
    table.add_column("Native Price", style="white")

    for config in load_networks().values():
        stablecoins = ", ".join(sorted(token.symbol for token in config.stablecoins))
        if config.native_price_feed:
            price_source = "live"
        else:
            price_source = f"fixed ${config.fallback_native_usd_rate:,.2f} (approx.)"
        table.add_row(config.name, str(int(config.network)), config.wrapped_native.symbol, stablecoins, price_source)

    console.print(table)


def _output(view: PortfolioView, format: OutputFormat) -> None:
    if format == OutputFormat.JSON:
        _output_json(view)
    else:
        _output_table(view)


def _pool_label(pool_state: PoolState) -> str:
    pool = pool_state.pool
    return f"{pool.token0.symbol}/{pool.token1.symbol} {pool.fee / 10_000:.2f}%"


def _output_table(view: PortfolioView) -> None:
    """Output portfolio as rich table."""
    if view.empty:
        console.print("\n[yellow]No positions found[/yellow]")
        return

    table = Table(title="Liquidity Pools", show_header=True, header_style="bold magenta")
    table.add_column("Network", style="blue")
    table.add_column("Pool", style="cyan")
    table.add_column("Positions", style="white", justify="right")
    table.add_column("Liquidity", style="bold green", justify="right")
    table.add_column("Uncl. Fees", style="green", justify="right")
    table.add_column("Gas Spent", style="yellow", justify="right")

    for pool_state in view.pools:
        gas = positions_gas_cost(pool_state.positions, pool_state.quote_token, view.normalizer)
        inconsistent = any(not position.is_consistent for position in pool_state.positions)
        table.add_row(
            pool_state.network.name.lower(),
            _pool_label(pool_state) + (" [red](!)[/red]" if inconsistent else ""),
            str(len(pool_state.positions)),
            view.convert_to_global_formatted(pool_state.liquidity_value),
            view.convert_to_global_formatted(pool_state.uncollected_fees_value),
            view.convert_to_global_formatted(gas) if gas else "-",
        )

    console.print("\n")
    console.print(table)

    summary_table = Table(show_header=False, box=None)
    summary_table.add_column("Label", style="bold")
    summary_table.add_column("Value", style="bold green")
    summary_table.add_row("Total Liquidity:", view.format_with_symbol(view.total_liquidity, DEFAULT_NETWORK))
    summary_table.add_row(
        "Total Uncollected Fees:", view.format_with_symbol(view.total_uncollected_fees, DEFAULT_NETWORK)
    )
    summary_table.add_row("Total Pools:", str(len(view.pools)))
    if view.loading:
        summary_table.add_row("[yellow]Status:[/yellow]", "[yellow]some networks still loading[/yellow]")

    console.print("\n")
    console.print(summary_table)
    console.print("\n")


def _output_json(view: PortfolioView) -> None:
    """Output portfolio as JSON."""
    data = view.model_dump(mode="json")
    for pool_data, pool_state in zip(data["pools"], view.pools, strict=True):
        pool_data["liquidity_global"] = view.convert_to_global(pool_state.liquidity_value)
        pool_data["uncollected_fees_global"] = view.convert_to_global(pool_state.uncollected_fees_value)

    console.print(json.dumps(data, indent=2), soft_wrap=True, markup=False, highlight=False, emoji=False)


if __name__ == "__main__":
    app()
