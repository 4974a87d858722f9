"""anchorscan init command - prepare a workspace for auditing."""

import shutil
from pathlib import Path

import click

from anchorscan.cli.scan import print_scan_summary
from anchorscan.cli.utils import cli_errors
from anchorscan.config.constants import ANCHORSCAN_DIR, DEFAULT_PROGRAM_DIR
from anchorscan.config.user_config import UserConfig, write_user_config
from anchorscan.core.progress import get_console, spinner, status
from anchorscan.index.ops import IndexCoordinator


def initialize_repo(
    repo_root: Path,
    *,
    force: bool = False,
    program_dir: str = DEFAULT_PROGRAM_DIR,
    program_lib_path: str | None = None,
) -> bool:
    """Initialize a workspace for anchorscan, returning True on success.

    Args:
        repo_root: Path to the Anchor workspace root
        force: Overwrite existing .anchorscan directory
        program_dir: Directory holding the program crates
        program_lib_path: File declaring the #[program] module, if not auto-detected
    """
    anchorscan_dir = repo_root / ANCHORSCAN_DIR
    console = get_console()

    if anchorscan_dir.exists() and not force:
        status(f"Already initialized: {anchorscan_dir}", style="info")
        status("Use --force to reinitialize", style="info")
        return False

    console.print()
    status(f"Initializing anchorscan in {repo_root}", style="none")
    console.print()

    if force and anchorscan_dir.exists():
        shutil.rmtree(anchorscan_dir)
    anchorscan_dir.mkdir()

    config_path = anchorscan_dir / "config.yaml"
    write_user_config(
        config_path,
        UserConfig(program_dir=program_dir, program_lib_path=program_lib_path),
    )

    gitignore_path = anchorscan_dir / ".gitignore"
    gitignore_path.write_text(
        "# Metadata documents are regenerated by 'anchorscan scan'\n"
        "metadata/\n"
        "*.tmp\n"
    )

    coordinator = IndexCoordinator(repo_root)
    with spinner("Scanning program"):
        stats = coordinator.scan()
    print_scan_summary(stats)

    console.print()
    status(f"Config created at {config_path.relative_to(repo_root)}", style="success")
    return True


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--force", "-f", is_flag=True, help="Overwrite existing .anchorscan directory")
@click.option(
    "--program-dir",
    default=DEFAULT_PROGRAM_DIR,
    show_default=True,
    help="Directory holding the program crates (relative to PATH)",
)
@click.option("--program-lib", "program_lib_path", default=None, help="File declaring #[program]")
def init_command(path: Path, force: bool, program_dir: str, program_lib_path: str | None) -> None:
    """Initialize an Anchor workspace for auditing.

    Creates .anchorscan/ with a default configuration and builds the
    initial metadata documents.

    PATH is the workspace root (default: current directory).
    """
    with cli_errors():
        initialize_repo(
            path.resolve(),
            force=force,
            program_dir=program_dir,
            program_lib_path=program_lib_path,
        )
