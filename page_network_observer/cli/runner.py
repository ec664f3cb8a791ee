"""CLI runner for replaying and watching page network events."""

import asyncio
import logging
import sys
from typing import Optional

import click
from playwright.async_api import async_playwright
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from page_network_observer.core.config import BrowserConfig, Config, NetworkConfig
from page_network_observer.core.exceptions import NetworkObserverError
from page_network_observer.core.logging import (
    configure_structlog,
    quiet_noisy_loggers,
    setup_logging,
)
from page_network_observer.browser.bridge import PlaywrightNetworkBridge
from page_network_observer.browser.page import NetworkPage
from page_network_observer.network.replay import replay_file

console = Console()

EVENT_STYLES = {
    "request": "cyan",
    "response": "green",
    "requestfinished": "blue",
    "requestfailed": "red",
}


def setup_cli_logging(verbose: bool = False) -> None:
    """Set up logging for CLI."""
    config = Config.from_env()
    level = "DEBUG" if verbose else "WARNING"

    # Structured logs when a log file or JSON output is configured
    if config.log_file or config.json_logs:
        setup_logging(level=level, log_file=config.log_file, json_logs=config.json_logs)
        return

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=False,
        )]
    )
    configure_structlog()
    quiet_noisy_loggers()


def display_events(page: NetworkPage) -> None:
    """Display the page's event log and a summary."""
    events = page.get_event_log()

    table = Table(title="Network Events", border_style="blue")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Event")
    table.add_column("Type", style="magenta")
    table.add_column("Detail")
    table.add_column("URL", overflow="fold")

    for index, event in enumerate(events, start=1):
        style = EVENT_STYLES.get(event["type"], "white")
        if event["type"] == "request":
            detail = event["method"]
        elif event["type"] == "response":
            detail = str(event["status"])
        elif event["type"] == "requestfailed":
            detail = event.get("error_text", "")
        else:
            detail = "DONE"
        table.add_row(
            str(index),
            f"[{style}]{event['type']}[/{style}]",
            event["resource_type"],
            detail,
            event["url"],
        )

    console.print(table)

    records = page.tracker.requests()
    summary = Table(title="Summary", border_style="blue")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("Requests", str(len(records)))
    summary.add_row("Finished", str(sum(1 for r in records if r.is_finished and not r.failure)))
    summary.add_row("Failed", str(sum(1 for r in records if r.failure)))
    summary.add_row("In Flight", str(len(page.tracker.in_flight())))
    summary.add_row("Main Frame URL", page.main_frame.url or "-")
    console.print(summary)


async def watch_url(
    url: str,
    browser_config: BrowserConfig,
    settle: float = 0.0,
) -> NetworkPage:
    """
    Load a URL in a Playwright browser and record its network events.

    Args:
        url: URL to open
        browser_config: Browser settings
        settle: Seconds to keep recording after the load event

    Returns:
        The page holding the recorded events
    """
    page = NetworkPage()

    async with async_playwright() as playwright:
        browser_type = getattr(playwright, browser_config.browser_type)
        browser = await browser_type.launch(headless=browser_config.headless)
        try:
            context = await browser.new_context(
                ignore_https_errors=browser_config.ignore_https_errors
            )
            playwright_page = await context.new_page()
            bridge = PlaywrightNetworkBridge(page, playwright_page).attach()

            await playwright_page.goto(url, timeout=browser_config.timeout)
            if settle > 0:
                await asyncio.sleep(settle)

            bridge.detach()
        finally:
            await browser.close()

    return page


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """Page Network Observer - ordered network events for browser pages"""
    pass


@cli.command()
@click.argument("signal_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--strict", is_flag=True, help="Fail on protocol violations")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def replay(signal_file: str, strict: bool, verbose: bool):
    """Replay a recorded signal log (one JSON signal per line).

    Examples:

        page-network replay recording.jsonl

        page-network replay recording.jsonl --strict
    """
    setup_cli_logging(verbose)

    network_config = NetworkConfig.from_env()
    if strict:
        network_config = network_config.model_copy(update={"strict_signals": True})

    page = NetworkPage(config=network_config)
    try:
        signals = replay_file(page, signal_file)
    except NetworkObserverError as e:
        console.print(f"\n[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"[dim]Replayed {len(signals)} signal(s) from {signal_file}[/dim]")
    display_events(page)


@cli.command()
@click.argument("url")
@click.option("--headless/--no-headless", default=None, help="Run browser in headless mode")
@click.option(
    "--browser", "-b",
    type=click.Choice(["chromium", "firefox", "webkit"]),
    default=None,
    help="Browser engine",
)
@click.option("--settle", default=0.0, help="Seconds to keep recording after load")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def watch(
    url: str,
    headless: Optional[bool],
    browser: Optional[str],
    settle: float,
    verbose: bool,
):
    """Open a URL in a real browser and show its network events.

    Examples:

        page-network watch https://example.com

        page-network watch https://example.com -b firefox --no-headless
    """
    setup_cli_logging(verbose)

    browser_config = BrowserConfig.from_env()
    updates = {}
    if headless is not None:
        updates["headless"] = headless
    if browser is not None:
        updates["browser_type"] = browser
    browser_config = browser_config.model_copy(update=updates)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Loading {url}...", total=None)
            page = asyncio.run(watch_url(url, browser_config, settle=settle))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)

    display_events(page)


@cli.command()
def info():
    """Show configuration."""
    config = Config.from_env()

    table = Table(title="Configuration", border_style="blue")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Strict Signals", "Yes" if config.network.strict_signals else "No")
    table.add_row("Signal Timeout", f"{config.network.signal_timeout}ms")
    table.add_row("Raise Handler Errors", "Yes" if config.network.raise_handler_errors else "No")
    table.add_row("Browser", config.browser.browser_type)
    table.add_row("Headless", "Yes" if config.browser.headless else "No")
    table.add_row("Navigation Timeout", f"{config.browser.timeout}ms")
    table.add_row("Log Level", config.log_level)

    console.print(table)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
