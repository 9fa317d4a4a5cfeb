from __future__ import annotations

import signal
from pathlib import Path

import typer

from avgentry.config import get_settings
from avgentry.core.logger import setup_logging, get_logger, log_error_with_context
from avgentry.core.timeutils import utcnow
from avgentry.feed.snapshot import load_snapshot
from avgentry.monitor import BreakEvenMonitor
from avgentry.pricing.break_even import compute_all
from avgentry.pricing.errors import ValidationError
from avgentry.render.console import ConsoleRenderer

log = get_logger("avgentry")
cli_app = typer.Typer(help="Break-even (average entry) monitor for open positions.")

# Global state for graceful shutdown
_shutdown_requested = False


def _signal_handler(signum: int, frame) -> None:
    """Handle shutdown signals."""
    global _shutdown_requested
    sig_name = signal.Signals(signum).name
    log.info(f"Received {sig_name}, initiating graceful shutdown...")
    _shutdown_requested = True


@cli_app.command()
def run(paper: bool = typer.Option(True, "--paper/--live", help="Use Alpaca paper or live account")):
    """Recompute and print break-even levels on every refresh tick."""
    global _shutdown_requested
    _shutdown_requested = False

    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)

    try:
        settings = get_settings()
        setup_logging(settings.log_level, json_output=settings.log_json, log_file=settings.log_file)
        settings.validate_alpaca_credentials()
    except Exception as e:
        setup_logging("INFO")
        log.error(f"Configuration error: {e}")
        raise typer.Exit(code=1)

    # Alpaca clients are only needed by the live loop
    from avgentry.feed.alpaca_feed import AlpacaPositionFeed, AlpacaReferenceData

    feed = AlpacaPositionFeed(
        api_key=settings.alpaca_api_key,
        api_secret=settings.alpaca_api_secret,
        paper=paper,
    )
    reference = AlpacaReferenceData(
        api_key=settings.alpaca_api_key,
        api_secret=settings.alpaca_api_secret,
        pip_size=settings.pip_size,
        pip_value=settings.pip_value,
        timeframe=settings.timeframe,
        feed=settings.alpaca_data_feed,
    )
    monitor = BreakEvenMonitor(
        symbol=settings.symbol,
        feed=feed,
        reference=reference,
        renderer=ConsoleRenderer(show_text=settings.show_text),
    )

    log.info(
        f"Monitor started at {utcnow().isoformat()}. Paper={paper}. "
        f"Symbol={settings.symbol}. Interval={settings.refresh_interval_seconds}s"
    )
    cycles = monitor.run(
        interval=settings.refresh_interval_seconds,
        should_stop=lambda: _shutdown_requested,
    )
    log.info(f"Monitor stopped after {cycles} refresh cycles.")


@cli_app.command()
def compute(
    snapshot: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON position snapshot"),
    json_output: bool = typer.Option(False, "--json", help="Print one JSON object per result"),
):
    """Compute break-even levels once from a snapshot file."""
    setup_logging("WARNING")

    try:
        symbol, feed = load_snapshot(snapshot)
        results = compute_all(feed.get_open_positions(symbol), symbol, feed.get_constants(symbol))
    except ValidationError as e:
        log_error_with_context(log, "Invalid snapshot", e, snapshot=str(snapshot))
        raise typer.Exit(code=1)

    ConsoleRenderer(json_output=json_output).render(symbol, results)


@cli_app.command()
def validate():
    """Validate configuration without starting the monitor."""
    setup_logging("INFO")

    try:
        settings = get_settings()
        log.info("Configuration validation passed!")
        log.info(f"  Symbol: {settings.symbol}")
        log.info(f"  Pips: size={settings.pip_size}, value={settings.pip_value}")
        log.info(f"  Refresh: every {settings.refresh_interval_seconds}s, text={'on' if settings.show_text else 'off'}")

        if settings.alpaca_api_key and settings.alpaca_api_secret:
            log.info("  Alpaca: credentials configured")
        else:
            log.warning("  Alpaca: credentials NOT configured")

    except Exception as e:
        log.error(f"Configuration validation failed: {e}")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    cli_app()
