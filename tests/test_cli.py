"""Tests for the command-line interface."""

import json

import httpx
import pytest
from rich.console import Console
from typer.testing import CliRunner

from lp_portfolio_tracker.cli import main as cli_main
from lp_portfolio_tracker.core.models import Network, NetworkSnapshot, PortfolioSnapshot

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Render tables without wrapping."""
    monkeypatch.setattr(cli_main, "console", Console(width=200))


@pytest.fixture
def snapshot_file(tmp_path, make_position, make_pool):
    snapshot = PortfolioSnapshot(
        networks=[
            NetworkSnapshot(
                network=Network.MAINNET, loading=False, positions=(make_position(),), pools=(make_pool(),)
            ),
            NetworkSnapshot(network=Network.ARBITRUM, loading=False),
        ],
        native_prices={1: 2000.0, 42161: 2000.0},
    )
    path = tmp_path / "snapshot.json"
    path.write_text(snapshot.model_dump_json(), encoding="utf-8")
    return path


@pytest.fixture
def no_settings(tmp_path):
    return ["--settings", str(tmp_path / "missing.yaml")]


def test_networks_command():
    """All configured networks are listed."""
    result = runner.invoke(cli_main.app, ["networks"])

    assert result.exit_code == 0
    for name in ("mainnet", "optimism", "polygon", "arbitrum"):
        assert name in result.stdout
    assert "fixed $2.00" in result.stdout


def test_show_json(snapshot_file, no_settings):
    """A saved snapshot is aggregated offline into JSON."""
    result = runner.invoke(cli_main.app, ["show", str(snapshot_file), "--format", "json", *no_settings])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["loading"] is False
    assert data["empty"] is False
    assert len(data["pools"]) == 1
    assert data["pools"][0]["liquidity_global"] > 0
    assert data["total_liquidity"] == pytest.approx(data["pools"][0]["liquidity_global"])


def test_show_json_in_eth(snapshot_file, no_settings):
    """The currency option renormalizes the same snapshot."""
    in_usd = json.loads(runner.invoke(cli_main.app, ["show", str(snapshot_file), "-f", "json", *no_settings]).stdout)
    in_eth = json.loads(
        runner.invoke(cli_main.app, ["show", str(snapshot_file), "-f", "json", "-c", "eth", *no_settings]).stdout
    )

    assert in_eth["total_liquidity"] == pytest.approx(in_usd["total_liquidity"] / 2000, rel=0.01)


def test_show_table(snapshot_file, no_settings):
    """The table lists each pool and the totals."""
    result = runner.invoke(cli_main.app, ["show", str(snapshot_file), *no_settings])

    assert result.exit_code == 0
    assert "USDC/WETH 0.05%" in result.stdout
    assert "Total Liquidity:" in result.stdout
    assert "$" in result.stdout


def test_show_empty(tmp_path, no_settings):
    """A snapshot with no positions reports that nothing was found."""
    path = tmp_path / "empty.json"
    snapshot = PortfolioSnapshot(networks=[NetworkSnapshot(network=Network.MAINNET, loading=False)])
    path.write_text(snapshot.model_dump_json(), encoding="utf-8")

    result = runner.invoke(cli_main.app, ["show", str(path), *no_settings])

    assert result.exit_code == 0
    assert "No positions found" in result.stdout


def test_show_hide_closed_from_settings(tmp_path, snapshot_file):
    """Settings files are honoured and command-line flags override them."""
    settings = tmp_path / "settings.yaml"
    settings.write_text("filter_closed: true\nglobal_currency: eth\n", encoding="utf-8")

    result = runner.invoke(cli_main.app, ["show", str(snapshot_file), "-f", "json", "--settings", str(settings)])
    overridden = runner.invoke(
        cli_main.app, ["show", str(snapshot_file), "-f", "json", "-c", "usd", "--settings", str(settings)]
    )

    assert len(json.loads(result.stdout)["pools"]) == 1
    assert json.loads(overridden.stdout)["pools"][0]["quote_token"]["symbol"] == "USDC"
    assert json.loads(result.stdout)["pools"][0]["quote_token"]["symbol"] == "WETH"


def test_show_blank_currency_setting(tmp_path, snapshot_file):
    """A blank currency in the settings file falls back to USD."""
    settings = tmp_path / "settings.yaml"
    settings.write_text("global_currency:\n", encoding="utf-8")

    result = runner.invoke(cli_main.app, ["show", str(snapshot_file), "--settings", str(settings)])

    assert result.exit_code == 0, result.stdout
    assert "Total Liquidity:" in result.stdout
    assert "$" in result.stdout


def test_pools_unknown_network(no_settings):
    """Unknown network names fail before any request."""
    result = runner.invoke(cli_main.app, ["pools", "0xabc", "--network", "solana", *no_settings])

    assert result.exit_code == 1
    assert "Unknown network" in result.stdout


def test_pools_command(monkeypatch, tmp_path, make_pool, no_settings):
    """The pools command fetches, aggregates and saves a snapshot."""
    position_record = {
        "positionId": "9",
        "token0": {"id": make_pool().token0.address, "symbol": "USDC", "decimals": "6"},
        "token1": {"id": make_pool().token1.address, "symbol": "WETH", "decimals": "18"},
        "fee": "500",
        "tickLower": "190000",
        "tickUpper": "210000",
        "transactions": [{"transactionType": 0, "liquidity": str(10**15)}],
    }
    pool = make_pool()
    pool_record = {
        "address": pool.address,
        "token0": position_record["token0"],
        "token1": position_record["token1"],
        "fee": "500",
        "tick": str(pool.tick),
        "sqrtPriceX96": str(pool.sqrt_price_x96),
    }

    def api(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/positions":
            return httpx.Response(200, json=[[position_record]])
        if path == "/pools":
            return httpx.Response(200, json=[pool_record])
        return httpx.Response(200, json=[[{"tokenId": "9", "amount0": "1000000", "amount1": "0"}]])

    def prices(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"coins": {"coingecko:ethereum": {"price": 2000.0}}})

    real_api_client = cli_main.PositionsAPIClient
    real_pricing = cli_main.DeFiLlamaPricing
    monkeypatch.setattr(
        cli_main,
        "PositionsAPIClient",
        lambda base_url: real_api_client(base_url=base_url, client=httpx.Client(transport=httpx.MockTransport(api))),
    )
    monkeypatch.setattr(
        cli_main,
        "DeFiLlamaPricing",
        lambda: real_pricing(client=httpx.Client(transport=httpx.MockTransport(prices))),
    )
    saved = tmp_path / "saved.json"

    result = runner.invoke(
        cli_main.app,
        ["pools", "0xowner", "-n", "mainnet", "-f", "json", "--save", str(saved), *no_settings],
    )

    assert result.exit_code == 0, result.stdout
    snapshot = PortfolioSnapshot.model_validate_json(saved.read_text(encoding="utf-8"))
    assert [s.network for s in snapshot.networks] == [Network.MAINNET]
    assert snapshot.networks[0].positions[0].uncollected_fees0 == 1_000_000
    assert snapshot.native_prices == {1: 2000.0, 10: 2000.0, 137: None, 42161: 2000.0}
