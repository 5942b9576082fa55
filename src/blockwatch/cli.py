import asyncio
import time

import click
from rich.console import Console
from rich.table import Table

from blockwatch.clients.rpc import RPC
from blockwatch.core.config import PipelineConfig
from blockwatch.core.errors import RpcError
from blockwatch.log_setup import configure_logging

# records go to stdout; the human-facing output goes to stderr
console = Console(stderr=True)


@click.group()
def cli() -> None:
    """blockwatch: follow the chain head and emit one enriched record per block."""


@cli.command("watch")
@click.option("--node-url", envvar="BLOCKWATCH_NODE_URL", required=True, help="JSON-RPC node endpoint")
@click.option(
    "--metadata-url",
    envvar="BLOCKWATCH_METADATA_URL",
    required=True,
    help="Block-metadata URL with a {block} placeholder",
)
@click.option("--start-height", envvar="BLOCKWATCH_START_HEIGHT", type=int, required=True, help="Last block already seen; watching starts at the next one")
@click.option("--poll-interval", envvar="BLOCKWATCH_POLL_INTERVAL", type=float, default=1.0, show_default=True, help="Seconds between head polls")
@click.option("--retry-delay", envvar="BLOCKWATCH_RETRY_DELAY", type=float, default=12.0, show_default=True, help="Seconds before re-fetching a not-yet-indexed block")
@click.option("--error-delay", envvar="BLOCKWATCH_ERROR_DELAY", type=float, default=1.0, show_default=True, help="Seconds before re-polling after a head-query failure")
@click.option("--queue-capacity", envvar="BLOCKWATCH_QUEUE_CAPACITY", type=int, default=20, show_default=True)
@click.option("--timeout", "timeout_s", envvar="BLOCKWATCH_TIMEOUT", type=float, default=5.0, show_default=True, help="Per-request timeout in seconds")
@click.option("--max-retries", envvar="BLOCKWATCH_MAX_RETRIES", type=int, default=None, help="Skip a block after this many not-ready retries (default: retry forever)")
@click.option("--confirmations", envvar="BLOCKWATCH_CONFIRMATIONS", type=int, default=0, show_default=True)
@click.option("--priority-class", envvar="BLOCKWATCH_PRIORITY_CLASS", default="mev", show_default=True, help="Transaction class whose ratios are reported")
@click.option(
    "--log-level",
    envvar="BLOCKWATCH_LOG_LEVEL",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
)
@click.option("--json-logs/--console-logs", default=True, show_default=True)
def watch_cmd(
    node_url: str,
    metadata_url: str,
    start_height: int,
    poll_interval: float,
    retry_delay: float,
    error_delay: float,
    queue_capacity: int,
    timeout_s: float,
    max_retries: int | None,
    confirmations: int,
    priority_class: str,
    log_level: str,
    json_logs: bool,
) -> None:
    """Follow the chain head and emit one structured record per new block."""
    try:
        config = PipelineConfig(
            node_url=node_url,
            metadata_url=metadata_url,
            start_height=start_height,
            poll_interval_s=poll_interval,
            not_ready_retry_s=retry_delay,
            queue_capacity=queue_capacity,
            error_retry_s=error_delay,
            request_timeout_s=timeout_s,
            max_not_ready_retries=max_retries,
            confirmations=confirmations,
            priority_class=priority_class,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    configure_logging(log_level, json_logs=json_logs)

    from blockwatch.orchestration.orchestrator import watch_blocks

    table = Table(title="blockwatch", show_header=False)
    table.add_row("node", config.node_url)
    table.add_row("metadata", config.metadata_url)
    table.add_row("start after", f"{config.start_height:,}")
    table.add_row("retry delay", f"{config.not_ready_retry_s}s")
    table.add_row("max retries", "∞" if config.max_not_ready_retries is None else str(config.max_not_ready_retries))
    console.print(table)

    t0 = time.time()
    try:
        stats = asyncio.run(watch_blocks(config))
    except KeyboardInterrupt:
        console.print("[yellow]interrupted[/]")
        return

    elapsed = time.time() - t0
    console.print(f"[bold]done[/]: last emitted {stats.last_emitted} • {elapsed:.2f}s")
    console.print(
        f"[bold]summary[/]: "
        f"[green]emitted[/]={stats.emitted}  "
        f"[red]skipped[/]={stats.skipped}  "
        f"[yellow]not_ready_retries[/]={stats.not_ready_retries}  "
        f"(discovered={stats.discovered}, polls={stats.polls}, poll_failures={stats.poll_failures})"
    )


@cli.command("head")
@click.option("--node-url", envvar="BLOCKWATCH_NODE_URL", required=True, help="JSON-RPC node endpoint")
@click.option("--timeout", "timeout_s", type=float, default=5.0, show_default=True)
def head_cmd(node_url: str, timeout_s: float) -> None:
    """Print the node's current head height."""

    async def run() -> int:
        rpc = RPC(node_url, timeout_s=timeout_s)
        try:
            return await rpc.latest_block()
        finally:
            await rpc.aclose()

    try:
        height = asyncio.run(run())
    except RpcError as e:
        raise click.ClickException(str(e)) from e
    click.echo(height)


if __name__ == "__main__":
    cli()
