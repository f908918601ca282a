"""
Alacrite CLI

Command-line interface for the Alacrite discovery node.

Usage:
    alacrite start                  # Advertise and discover peers
    alacrite start --no-api -r 5    # Print the peer table every 5s
    alacrite peers                  # One-shot: list peers and exit
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.logging import RichHandler

from .config import load_config
from .errors import StartupError
from .node import AlacriteNode

console = Console()


def setup_logging(verbose: bool = False, level: str = 'INFO'):
    """Configure logging with rich output."""
    if verbose:
        level = 'DEBUG'
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)]
    )


def peer_table(peers: Dict[str, str], title: str = "Discovered Peers (LAN)") -> Table:
    """Build a table of registry entries."""
    table = Table(title=title)
    table.add_column("Service", style="cyan")
    table.add_column("Host", style="yellow")

    for name, host in sorted(peers.items()):
        table.add_row(name, host)

    return table


async def report_peers(node: AlacriteNode, interval: float):
    """Print the peer table every `interval` seconds."""
    while True:
        await asyncio.sleep(interval)
        peers = node.get_peers()
        if peers:
            console.print(peer_table(peers))
        else:
            console.print("[dim]No peers discovered yet[/dim]")


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False),
              help='JSON config file')
@click.pass_context
def cli(ctx, verbose, config_path):
    """Alacrite - advertise this host and discover peers on the LAN."""
    config = load_config(Path(config_path) if config_path else None)
    setup_logging(verbose, config.log_level)
    ctx.ensure_object(dict)
    ctx.obj['config'] = config


@cli.command()
@click.option('--port', '-p', type=int, default=None, help='Port of the advertised service')
@click.option('--api-port', type=int, default=None, help='REST API port')
@click.option('--no-api', is_flag=True, help='Disable REST API')
@click.option('--report-interval', '-r', type=float, default=None,
              help='Print discovered peers every N seconds (0 disables)')
@click.pass_context
def start(ctx, port, api_port, no_api, report_interval):
    """Advertise the local service and track peers until Ctrl+C."""
    config = ctx.obj['config']
    if port is not None:
        config.port = port
    if api_port is not None:
        config.api_port = api_port
    if report_interval is not None:
        config.report_interval = report_interval

    async def run():
        node = AlacriteNode(config)
        reporter: Optional[asyncio.Task] = None

        try:
            await node.start()

            identity = node.identity
            console.print(Panel.fit(
                f"[bold green]Alacrite Node Started[/bold green]\n\n"
                f"Service: [cyan]{node.advertiser.registered_name}[/cyan]\n"
                f"Host: [yellow]{identity.host}[/yellow]\n"
                f"Port: [yellow]{identity.port}[/yellow]",
                title="Node Info"
            ))

            if config.report_interval > 0:
                reporter = asyncio.create_task(report_peers(node, config.report_interval))

            if not no_api:
                console.print(f"\n[dim]REST API available at http://localhost:{config.api_port}[/dim]\n")

                from .api import run_api_server
                await run_api_server(node, host=config.api_host, port=config.api_port)
            else:
                console.print("\n[dim]Press Ctrl+C to exit[/dim]\n")
                while True:
                    await asyncio.sleep(1)

        finally:
            if reporter:
                reporter.cancel()
            await node.stop()
            console.print("[green]Node stopped[/green]")

    _run_or_exit(run)


@cli.command()
@click.option('--wait', '-w', type=float, default=3.0, help='Seconds to listen before listing')
@click.pass_context
def peers(ctx, wait):
    """List peers discovered within a short listening window."""
    config = ctx.obj['config']

    async def run():
        node = AlacriteNode(config)

        console.print("[dim]Discovering peers...[/dim]")
        await node.start()
        try:
            await asyncio.sleep(wait)
            discovered = node.get_peers()
        finally:
            await node.stop()

        if not discovered:
            console.print("[yellow]No peers found[/yellow]")
        else:
            console.print(peer_table(discovered))

    _run_or_exit(run)


def _run_or_exit(main):
    """Run an async command; fatal startup errors end the process with status 1."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        console.print("\n[yellow]Shutting down...[/yellow]")
    except StartupError as e:
        console.print(f"[red]Startup failed: {e}[/red]")
        sys.exit(1)


if __name__ == '__main__':
    cli()
