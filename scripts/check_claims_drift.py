#!/usr/bin/env python3
"""Claims Drift Checker.

Lists identities whose claims payload role disagrees with their profile
role, and reports whether the role sync reactions are installed.

Usage:
    uv run python scripts/check_claims_drift.py
    uv run python scripts/check_claims_drift.py --fail-on-drift

Environment Variables:
    ROLESYNC_DB_HOST: Database host (default: localhost)
    ROLESYNC_DB_PORT: Database port (default: 5432)
    ROLESYNC_DB_DATABASE: Database name (default: rolesync)
    ROLESYNC_DB_USERNAME: Database user (default: rolesync)
    ROLESYNC_DB_PASSWORD: Database password
    ROLESYNC_SYNC_REACTION_BACKEND: database or application (default: database)
"""

import argparse
import asyncio
import sys

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from infrastructure.database.sessions import (
    close_database_connections,
    get_read_engine,
    get_read_session,
)
from infrastructure.logging import configure_logging
from infrastructure.settings import ReactionBackend, get_settings
from role_sync.dependencies import get_claims_service
from role_sync.domain.aggregates import ClaimsDrift
from role_sync.infrastructure.reactions.trigger_ddl import TriggerInstaller

console = Console()


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Claims drift checker for role sync",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--fail-on-drift",
        action="store_true",
        help="Exit with status 2 when any identity is out of sync",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Maximum number of drifting identities to list",
    )
    return parser.parse_args()


def render_reactions(backend: ReactionBackend, installed: dict[str, bool] | None) -> None:
    """Print the reaction installation status."""
    table = Table(title="Reactions", box=box.ROUNDED)
    table.add_column("Reaction", style="cyan")
    table.add_column("Trigger", justify="center")

    if installed is None:
        console.print(
            f"[dim]Backend is [bold]{backend.value}[/bold]; "
            "reactions are attached by the running application.[/dim]"
        )
        return

    for name, present in installed.items():
        table.add_row(name, "[green]✓[/]" if present else "[red]✗[/]")
    console.print(table)


def render_drift(drift: list[ClaimsDrift], limit: int) -> None:
    """Print the drifting identities."""
    if not drift:
        console.print("[green]✓[/] All claims payloads match their profiles")
        return

    table = Table(
        title=f"Claims drift ({len(drift)} identities)",
        box=box.ROUNDED,
    )
    table.add_column("Identity", style="cyan")
    table.add_column("Profile role")
    table.add_column("Claims role")

    for entry in drift[:limit]:
        claims_role = entry.claims_role if entry.claims_role_present else "[dim]<missing>[/]"
        table.add_row(
            str(entry.identity_id),
            entry.profile_role.value if entry.profile_role else "[dim]null[/]",
            claims_role if claims_role is not None else "[dim]null[/]",
        )
    console.print(table)
    if len(drift) > limit:
        console.print(f"[dim]... and {len(drift) - limit} more[/dim]")


async def check(args) -> int:
    """Run the checks and return the exit status."""
    settings = get_settings()
    backend = settings.sync.reaction_backend

    console.print(
        Panel(
            f"[bold cyan]Checking claims of:[/] [green]{settings.sync.identity_relation}[/] "
            f"[dim](backend: {backend.value})[/]",
            box=box.ROUNDED,
            border_style="blue",
        )
    )

    try:
        installed = None
        if backend is ReactionBackend.DATABASE:
            async with get_read_engine().connect() as conn:
                installed = await conn.run_sync(
                    lambda sync_conn: TriggerInstaller(
                        sync_conn, settings=settings.sync
                    ).installed()
                )
        render_reactions(backend, installed)

        async with get_read_session() as session:
            drift = await get_claims_service(session).find_drift()
        render_drift(drift, args.limit)
    finally:
        await close_database_connections()

    if drift and args.fail_on_drift:
        return 2
    return 0


def main():
    """Main entry point."""
    args = parse_args()
    settings = get_settings()
    configure_logging(
        "debug" if settings.debug else "warning",
        app_name=settings.app_name,
        reaction_backend=settings.sync.reaction_backend.value,
    )

    try:
        status = asyncio.run(check(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/]")
        sys.exit(0)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/] {e}")
        import traceback

        console.print(traceback.format_exc(), style="dim red")
        sys.exit(1)

    sys.exit(status)


if __name__ == "__main__":
    main()
