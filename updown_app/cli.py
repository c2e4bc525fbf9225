"""Command line entry point: run the monitor, inspect markets, check config."""

from pathlib import Path
from typing import Optional

import typer

from .config.delivery import DeliveryDestination
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .config.defaults import PolymarketParams
from .engine import SnapshotEngine
from .logging.config import configure_logging
from .market.selector import partition_markets, select_market
from .persistence.snapshot_cache import SnapshotCache
from .sources.polymarket import GammaSource
from .utils.time import format_ms, format_time_left, now_ms, time_remaining

app = typer.Typer(
    name="updown",
    help="Polymarket Up/Down window monitor aligned with the spot price.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Optional[Path] = typer.Option(
        None, "--config-dir", "-C", help="Directory holding settings.yaml"
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Render logs as JSON"),
) -> None:
    """Configure logging and store options in context."""
    try:
        configure_logging(level=log_level, format_json=json_logs)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level")
    ctx.obj = {"config_dir": config_dir}


@app.command("run")
def run_monitor(
    ctx: typer.Context,
    ticks: Optional[int] = typer.Option(None, "--ticks", "-n", help="Stop after this many ticks"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Append snapshots to this JSONL file"),
    cache: Optional[Path] = typer.Option(None, "--cache", help="Snapshot cache file for restarts"),
    pretty: bool = typer.Option(True, "--pretty/--json", help="Stdout format"),
) -> None:
    """Poll upstream feeds and emit one snapshot per tick (Ctrl+C to stop)."""
    config_dir = ctx.obj["config_dir"]

    destinations = [DeliveryDestination.stdout(format="pretty" if pretty else "json")]
    if output is not None:
        destinations.append(DeliveryDestination.file(str(output)))

    try:
        engine = SnapshotEngine(
            config_dir=str(config_dir) if config_dir else None,
            destinations=destinations,
            cache=SnapshotCache(str(cache)) if cache else None,
        )
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    try:
        engine.run(max_ticks=ticks)
    except KeyboardInterrupt:
        pass
    typer.echo("Stopped.", err=True)


@app.command("markets")
def list_markets(ctx: typer.Context) -> None:
    """Show candidate markets of the series and which one would be selected."""
    config = ConfigLoader.create(ctx.obj["config_dir"]).merge_config()
    gamma = GammaSource(PolymarketParams(**config["polymarket"]),
                        config["poll"]["request_timeout_seconds"])

    markets = gamma.fetch_markets()
    if markets is None:
        typer.echo("Gamma events endpoint unavailable.", err=True)
        raise typer.Exit(1)

    now = now_ms()
    live, upcoming = partition_markets(markets, now)
    selected = select_market(markets, now)

    typer.echo(f"Candidates: {len(markets)}  live: {len(live)}  upcoming: {len(upcoming)}")
    for market in live + upcoming:
        marker = "*" if market is selected else " "
        state = "live" if market in live else "upcoming"
        left = format_time_left(time_remaining(now, market.end_ms))
        typer.echo(f" {marker} {state:<8} {left}  {market.slug}  ends {format_ms(market.end_ms)}")

    if selected is None:
        typer.echo("No active market.")


@app.command("validate-config")
def validate_config(ctx: typer.Context) -> None:
    """Validate the merged configuration."""
    config = ConfigLoader.create(ctx.obj["config_dir"]).merge_config()
    errors = ConfigValidator.validate_config(config)

    if errors:
        typer.echo(f"Found {len(errors)} validation errors:")
        for error in errors:
            typer.echo(f"  {error.field}: {error.message} (value: {error.value})")
        raise typer.Exit(1)

    typer.echo("Configuration is valid.")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
