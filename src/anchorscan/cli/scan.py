"""anchorscan scan command - rebuild the metadata documents."""

from pathlib import Path

import click
from rich.table import Table

from anchorscan.cli.utils import cli_errors, find_repo_root
from anchorscan.core.logging import configure_logging
from anchorscan.core.progress import get_console, pluralize, progress, status, task
from anchorscan.index.models import EntityKind
from anchorscan.index.ops import IndexCoordinator, ScanStats


def print_scan_summary(stats: ScanStats) -> None:
    """Render a per-kind count table for a finished scan."""
    console = get_console()
    table = Table(show_header=False, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("kind", style="cyan")
    table.add_column("count", style="white", justify="right")
    for kind, count in stats.entities_by_kind.items():
        table.add_row(kind, str(count))
    table.add_row("impl records", str(stats.trait_implementations), style="dim")
    table.add_row("account structs", str(stats.context_accounts), style="dim")
    console.print(table)

    if stats.program_lib_path:
        status(
            f"{pluralize(len(stats.entrypoints), 'entrypoint')} in {stats.program_lib_path}",
            style="info",
        )
    else:
        status("No #[program] file detected; entrypoints not classified", style="warning")
    for skipped in stats.skipped_files:
        status(f"Skipped (too large): {skipped}", style="warning", indent=2)
    for error in stats.errors:
        status(error, style="error", indent=2)


@click.command()
@click.option(
    "--repo",
    "repo",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root (default: auto-detect)",
)
@click.option("--deps", "resolve_deps", is_flag=True, help="Also resolve every function's calls")
@click.pass_context
def scan_command(ctx: click.Context, repo: Path | None, resolve_deps: bool) -> None:
    """Rescan the program directory and rewrite the metadata documents."""
    repo_root = find_repo_root(repo)
    with cli_errors():
        coordinator = IndexCoordinator(repo_root)
        if not (ctx.obj or {}).get("verbose"):
            configure_logging(config=coordinator.config.logging)

        with task("Scanning program"):
            stats = coordinator.scan()
        print_scan_summary(stats)

        if resolve_deps:
            functions = coordinator.query(EntityKind.FUNCTION)
            for function in progress(functions, desc="Resolving", unit="functions"):
                coordinator.resolve_dependencies(function.id)
            parsed = coordinator.resolver.parse_count
            bodies = pluralize(parsed, "function body", "function bodies")
            status(f"Resolved {bodies}", style="success")
