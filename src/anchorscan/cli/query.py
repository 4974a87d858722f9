"""Read-only commands over the metadata documents: query, show, deps, entrypoint."""

import json
from pathlib import Path

import click
from rich.table import Table

from anchorscan.cli.utils import cli_errors, find_repo_root, to_jsonable
from anchorscan.core.progress import get_console, status
from anchorscan.index.models import EntityKind, FunctionDependencyRecord, SourceEntity
from anchorscan.index.ops import IndexCoordinator

_KIND_CHOICE = click.Choice([kind.value for kind in EntityKind], case_sensitive=False)

repo_option = click.option(
    "--repo",
    "repo",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root (default: auto-detect)",
)
json_option = click.option("--json", "as_json", is_flag=True, help="Output as JSON")


def _open(repo: Path | None) -> IndexCoordinator:
    return IndexCoordinator(find_repo_root(repo))


def _parse_kind(value: str) -> EntityKind:
    for kind in EntityKind:
        if kind.value.lower() == value.lower():
            return kind
    raise click.BadParameter(f"Unknown kind: {value}", param_hint="KIND")


def _entity_table(entities: list[SourceEntity]) -> Table:
    table = Table(box=None, padding=(0, 1), pad_edge=False)
    table.add_column("id", style="dim")
    table.add_column("name", style="cyan")
    table.add_column("subtype")
    table.add_column("location")
    for entity in entities:
        table.add_row(
            entity.id,
            entity.name,
            entity.subtype.value,
            f"{entity.path}:{entity.start_line}-{entity.end_line}",
        )
    return table


@click.command()
@click.argument("kind", type=_KIND_CHOICE)
@click.option("--name", default=None, help="Exact entity name")
@click.option("--subtype", default=None, help="Subtype value, e.g. EntryPoint or ContextAccounts")
@repo_option
@json_option
def query_command(
    kind: str, name: str | None, subtype: str | None, repo: Path | None, as_json: bool
) -> None:
    """List stored entities of KIND, optionally filtered by name and subtype."""
    entity_kind = _parse_kind(kind)
    try:
        parsed_subtype = entity_kind.parse_subtype(subtype) if subtype else None
    except ValueError as e:
        allowed = ", ".join(s.value for s in entity_kind.subtype_enum)
        raise click.BadParameter(
            f"{subtype!r} is not a {entity_kind.value} subtype (expected one of: {allowed})",
            param_hint="--subtype",
        ) from e

    with cli_errors():
        entities = _open(repo).query(entity_kind, name=name, subtype=parsed_subtype)

    if as_json:
        click.echo(json.dumps(to_jsonable(entities), indent=2))
        return
    if not entities:
        status(f"No {entity_kind.value} entities match", style="info")
        return
    get_console().print(_entity_table(entities))


@click.command()
@click.argument("entity_id")
@repo_option
@json_option
def show_command(entity_id: str, repo: Path | None, as_json: bool) -> None:
    """Show one entity by id, with its source text."""
    with cli_errors():
        coordinator = _open(repo)
        entity = coordinator.read_by_id(entity_id)
        content = coordinator.source.content(entity)

    if as_json:
        click.echo(json.dumps({**to_jsonable(entity), "content": content}, indent=2))
        return
    click.echo(f"{entity.kind.value} {entity.name} [{entity.subtype.value}]")
    click.echo(f"{entity.path}:{entity.start_line}-{entity.end_line}")
    click.echo("")
    click.echo(content)


def _dependency_json(coordinator: IndexCoordinator, record: FunctionDependencyRecord) -> dict:
    internal = [coordinator.read_by_id(dep_id) for dep_id in sorted(record.internal_dependencies)]
    return {
        "owner_id": record.owner_id,
        "function_name": record.function_name,
        "internal_dependencies": [
            {"id": dep.id, "name": dep.name, "path": dep.path, "start_line": dep.start_line}
            for dep in internal
        ],
        "external_dependencies": sorted(record.external_dependencies),
    }


@click.command()
@click.argument("target")
@repo_option
@json_option
def deps_command(target: str, repo: Path | None, as_json: bool) -> None:
    """Show call dependencies of a function.

    TARGET is a function id, or a function name (every function with that
    name is resolved).
    """
    with cli_errors():
        coordinator = _open(repo)
        function = coordinator.store.find_by_id(target)
        if function is not None and function.kind is EntityKind.FUNCTION:
            records = [coordinator.resolve_dependencies(function.id)]
        else:
            records = coordinator.resolve_dependencies_by_name(target)
        if not records:
            raise click.ClickException(f"No function named or identified by {target!r}")
        payload = [_dependency_json(coordinator, record) for record in records]

    if as_json:
        click.echo(json.dumps(payload, indent=2))
        return
    for item in payload:
        click.echo(f"{item['function_name']} ({item['owner_id']})")
        for dep in item["internal_dependencies"]:
            click.echo(f"  -> {dep['name']}  {dep['path']}:{dep['start_line']}")
        for name in item["external_dependencies"]:
            click.echo(f"  -> {name}  (external)")


@click.command()
@click.argument("name")
@repo_option
@json_option
def entrypoint_command(name: str, repo: Path | None, as_json: bool) -> None:
    """Show an entrypoint with its handler and accounts struct."""
    with cli_errors():
        view = _open(repo).entrypoint(name)

    if as_json:
        click.echo(json.dumps(to_jsonable(view), indent=2))
        return

    click.echo(f"entrypoint  {view.entrypoint.path}:{view.entrypoint.start_line}")
    if view.handler is not None:
        handler = view.handler
        click.echo(f"handler     {handler.name}  {handler.path}:{handler.start_line}")
    else:
        click.echo("handler     (not found)")
    accounts = view.context_accounts
    click.echo(f"accounts    {accounts.name}  {accounts.path}:{accounts.start_line}")

    if view.accounts is None:
        return
    table = Table(box=None, padding=(0, 1), pad_edge=False)
    table.add_column("account", style="cyan")
    table.add_column("type")
    table.add_column("flags")
    table.add_column("constraints", style="dim")
    for account in view.accounts.accounts:
        flags = [
            flag
            for flag, enabled in (
                ("init", account.is_init),
                ("mut", account.is_mut),
                ("pda", account.is_pda),
                ("close", account.is_close),
            )
            if enabled
        ]
        table.add_row(
            account.account_name,
            f"{account.wrapper_type}<{account.inner_type}>",
            ",".join(flags),
            "; ".join(account.validations),
        )
    get_console().print(table)
