"""depthdesk CLI."""

import asyncio
import logging
from decimal import Decimal, InvalidOperation

import click

from depthdesk.app import MarketSession, setup_logging
from depthdesk.config_loader import AppConfig, DepthConfig, load_config_with_overrides
from depthdesk.constants import LogLevel, OrderType, Side
from depthdesk.ui.console import render_outcome, render_view

logger = logging.getLogger(__name__)


def _load(
    config: str | None,
    dry_run: bool,
    log_level: str | None = None,
    max_levels: int | None = None,
) -> AppConfig:
    if config is None:
        cfg = AppConfig()
        if dry_run:
            cfg.environment.dry_run = True
        if log_level:
            cfg.environment.log_level = LogLevel(log_level.upper())
        if max_levels is not None:
            cfg.depth = DepthConfig(max_levels=max_levels)
        return cfg
    return load_config_with_overrides(
        config, dry_run=dry_run or None, log_level=log_level, max_levels=max_levels
    )


async def _watch(cfg: AppConfig, refresh_sec: float, iterations: int | None) -> None:
    async with MarketSession(cfg) as session:
        count = 0
        while iterations is None or count < iterations:
            await asyncio.sleep(refresh_sec)
            click.echo(render_view(session.view()))
            click.echo("")
            count += 1


async def _place(cfg: AppConfig, price: Decimal, quantity: int, side: Side, order_type: OrderType):
    session = MarketSession(cfg)
    try:
        return await session.submit_order(price, quantity, side, order_type)
    finally:
        await session.api.close()


@click.group()
def cli():
    """depthdesk Command Line Interface."""
    pass


@cli.command()
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--dry-run", is_flag=True, help="Use the simulated exchange")
@click.option("--refresh", default=1.0, help="Seconds between renders")
@click.option("--iterations", type=int, default=None, help="Stop after N renders")
@click.option("--log-level", default=None, help="Override log level")
@click.option(
    "--levels", type=click.IntRange(min=1), default=None, help="Price levels per side of the ladder"
)
def run(config, dry_run, refresh, iterations, log_level, levels):
    """Stream the market and render the ladder."""
    cfg = _load(config, dry_run, log_level, levels)
    setup_logging(cfg.environment.log_level)
    try:
        asyncio.run(_watch(cfg, refresh, iterations))
    except KeyboardInterrupt:
        pass


@cli.command()
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--dry-run", is_flag=True, help="Use the simulated exchange")
@click.option("--side", type=click.Choice(["buy", "sell"], case_sensitive=False), required=True)
@click.option("--price", required=True, help="Limit price as a decimal string")
@click.option("--quantity", type=int, required=True)
@click.option("--market", is_flag=True, help="Send a market order")
def order(config, dry_run, side, price, quantity, market):
    """Place one order and print the classified outcome."""
    cfg = _load(config, dry_run)
    setup_logging(cfg.environment.log_level)
    try:
        limit_price = Decimal(price)
    except InvalidOperation:
        raise click.BadParameter(f"not a decimal: {price}", param_hint="--price")
    order_side = Side.BUY if side.lower() == "buy" else Side.SELL
    order_type = OrderType.MARKET if market else OrderType.LIMIT
    outcome = asyncio.run(_place(cfg, limit_price, quantity, order_side, order_type))
    click.echo(render_outcome(outcome))
    if outcome.is_error:
        raise SystemExit(1)


@cli.command()
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
def smoke_test(config):
    """Load config and build a session against the simulated exchange, then exit."""
    try:
        cfg = _load(config, dry_run=True)
        setup_logging(cfg.environment.log_level)
        session = MarketSession(cfg)
        click.echo(render_view(session.view(), use_color=False))
        click.echo("Smoke test passed: Components initialized successfully.")
    except Exception as e:
        click.echo(f"Smoke test failed: {e}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    cli()

# Alias for __main__.py
main = cli
