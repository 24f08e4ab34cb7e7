"""
Tangle Promoter CLI
===================
Thin driver around the Promoter using Typer + Rich.

Commands:
    tangle-promoter run --all
    tangle-promoter run --failed-only --strategy random
    tangle-promoter status
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tangle_promoter.config.settings import Settings
from tangle_promoter.core.orchestrator import Promoter
from tangle_promoter.shared.errors import InvalidInput, StateFileError
from tangle_promoter.shared.infrastructure.node_pool import NodePool, load_nodes
from tangle_promoter.shared.models import RunReport
from tangle_promoter.shared.system.bundle_store import BundleStore, StatePaths
from tangle_promoter.shared.system.logging import Logger, close_file_logging, setup_file_logging

app = typer.Typer(
    name="tangle-promoter",
    help="Promote or reattach unconfirmed tangle bundles until they confirm.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


async def _run_pass(promoter: Promoter) -> RunReport:
    try:
        return await promoter.initialize()
    finally:
        await promoter.client.close()


def _render_report(report: RunReport) -> None:
    summary = report.to_dict()
    body = "\n".join(f"[bold]{key.title():<12}[/bold] {value}" for key, value in summary.items())
    console.print(Panel(body, title="Promotion Run", border_style="green"))


@app.command()
def run(
    promote_all: bool = typer.Option(
        True,
        "--all/--failed-only",
        help="Process every unconfirmed bundle, or only previously failed ones",
    ),
    strategy: Optional[str] = typer.Option(
        None,
        "--strategy",
        help="Node rotation strategy: round-robin or random",
    ),
    nodes: Optional[str] = typer.Option(
        None,
        "--nodes",
        help="Comma separated node URLs or a JSON file (overrides IOTA_NODES)",
    ),
):
    """
    Run one promotion pass over the persisted bundle lists.

    \b
    Examples:
        tangle-promoter run
        tangle-promoter run --failed-only
        tangle-promoter run --strategy random
    """
    log_file = setup_file_logging(Settings.LOG_DIR)
    Logger.debug(f"[SYSTEM] Logging to {log_file}")

    try:
        if not Settings.SPAM_BUNDLE_TRYTES:
            Logger.warning(
                "[SYSTEM] SPAM_BUNDLE_TRYTES is empty: promotions will fail and those bundles will be marked failed"
            )

        try:
            pool = NodePool(load_nodes(nodes or Settings.IOTA_NODES), strategy or Settings.NODE_STRATEGY)
            store = BundleStore.load(StatePaths.from_settings())
            promoter = Promoter(
                pool.select_endpoint(),
                store.unconfirmed,
                store.failed,
                store.confirmed,
                promote_all,
                node_pool=pool,
            )
        except (InvalidInput, StateFileError) as e:
            console.print(f"[red bold]❌ {e}[/red bold]")
            raise typer.Exit(code=1)

        try:
            report = asyncio.run(_run_pass(promoter))
        except KeyboardInterrupt:
            console.print("[yellow]Interrupted. State is saved up to the last finished bundle.[/yellow]")
            raise typer.Exit(code=130)

        _render_report(report)
    finally:
        close_file_logging()


@app.command()
def status():
    """Show the size of the unconfirmed, failed and confirmed lists."""
    try:
        store = BundleStore.load(StatePaths.from_settings())
    except StateFileError as e:
        console.print(f"[red bold]❌ {e}[/red bold]")
        raise typer.Exit(code=1)

    table = Table(title="Bundle State")
    table.add_column("List", style="cyan")
    table.add_column("Bundles", justify="right")
    for name, count in store.counts().items():
        table.add_row(name, str(count))
    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
