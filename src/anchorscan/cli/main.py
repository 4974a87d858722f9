"""anchorscan CLI - Anchor program audit index."""

import click

from anchorscan.cli.init import init_command
from anchorscan.cli.query import deps_command, entrypoint_command, query_command, show_command
from anchorscan.cli.scan import scan_command
from anchorscan.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="anchorscan")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """anchorscan - Index Solana/Anchor programs for security review."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(init_command, name="init")
cli.add_command(scan_command, name="scan")
cli.add_command(query_command, name="query")
cli.add_command(show_command, name="show")
cli.add_command(deps_command, name="deps")
cli.add_command(entrypoint_command, name="entrypoint")


if __name__ == "__main__":
    cli()
