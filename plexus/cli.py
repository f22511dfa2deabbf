from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

from plexus.workspace.models.enums import GraphFormat, OrderMode


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """Plexus - dependency graph and change analysis for multi-project repositories."""
    from plexus.workspace.log import setup_logging
    from plexus.workspace.settings import get_settings

    setup_logging("DEBUG" if verbose else get_settings().log_level)


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------


_WORKSPACE_OPTIONS = [
    click.option("--workspace-path", default=".", type=click.Path(file_okay=False), help="Workspace root."),
    click.option("--config-path", default=None, help="Config file relative to the workspace root."),
    click.option("--base", default=None, help="Git ref to compare against (default: PLEXUS_BASE_REF or HEAD)."),
    click.option(
        "--head",
        default=None,
        help="Compare --base...HEAD_REF instead of the work tree (--base defaults to HEAD).",
    ),
    click.option(
        "--changed-file",
        "changed_files",
        multiple=True,
        help="Treat this file as changed instead of asking git. Can be given more than once.",
    ),
]

_FILTER_OPTIONS = [
    click.option("--ignore", "-i", multiple=True, help="Ignore the given project. Can be repeated."),
    click.option("--project", "-p", multiple=True, help="Only consider the given project. Can be repeated."),
    click.option("--affected", "-a", is_flag=True, default=False, help="Only consider affected projects."),
    click.option("--modified", "-m", is_flag=True, default=False, help="Only consider modified projects."),
    click.option("--only-roots", is_flag=True, default=False, help="Only consider root projects."),
]


F = TypeVar("F", bound=Callable[..., Any])


def workspace_options(func: F) -> F:
    """Options locating the workspace and its change set."""
    for option in reversed(_WORKSPACE_OPTIONS):
        func = option(func)
    return func


def filter_options(func: F) -> F:
    """Options selecting which projects a command operates on."""
    for option in reversed(_FILTER_OPTIONS):
        func = option(func)
    return func


def _load(workspace_path: str, config_path: str | None):
    """Load the workspace, turning construction errors into CLI errors."""
    from plexus.workspace.assembler import ConstructionError
    from plexus.workspace.scanner import load_workspace

    try:
        return load_workspace(workspace_path, config_path)
    except ConstructionError as exc:
        raise click.ClickException(str(exc)) from None


def _change_source(workspace, base: str | None, head: str | None, changed_files: tuple[str, ...]):
    from plexus.workspace.changes import StaticChanges
    from plexus.workspace.settings import get_settings
    from plexus.workspace.vcs import GitChanges

    if changed_files:
        return StaticChanges(changed_files)
    settings = get_settings()
    return GitChanges(workspace.path, base=base or settings.base_ref, head=head or settings.head_ref)


def _prepare(
    *,
    workspace_path: str,
    config_path: str | None,
    base: str | None,
    head: str | None,
    changed_files: tuple[str, ...],
    with_status: bool,
    ignore: tuple[str, ...] = (),
    project: tuple[str, ...] = (),
    affected: bool = False,
    modified: bool = False,
    only_roots: bool = False,
):
    """Load, optionally annotate statuses, and filter the workspace."""
    from plexus.workspace.changes import ChangeSourceError
    from plexus.workspace.status import FilterOptions, filter_workspace, update_statuses

    workspace = _load(workspace_path, config_path)
    changes = _change_source(workspace, base, head, changed_files)
    options = FilterOptions(
        ignore=list(ignore),
        select=list(project),
        affected=affected,
        modified=modified,
        only_roots=only_roots,
    )

    try:
        if with_status:
            workspace = update_statuses(workspace, changes)
        return filter_workspace(workspace, options, changes)
    except ChangeSourceError as exc:
        raise click.ClickException(str(exc)) from None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@main.command(name="list")
@workspace_options
@filter_options
@click.option("--show-status", is_flag=True, default=False, help="Show the modified/affected status of projects.")
def list_projects(show_status: bool, **kwargs: Any) -> None:
    """List the workspace projects."""
    from plexus.workspace.render import status_label

    workspace = _prepare(with_status=show_status, **kwargs)

    for project in workspace.project_list():
        if project.skip:
            continue
        label = status_label(project) if show_status else project.name
        click.echo(f"{label}  {workspace.relative_path(project.path).as_posix()}")


@main.command()
@workspace_options
@click.option(
    "--format",
    "format_",
    type=click.Choice([f.value for f in GraphFormat]),
    default=GraphFormat.PRETTY.value,
    help="Output format.",
)
@click.option("--show-status", is_flag=True, default=False, help="Highlight modified and affected projects.")
@click.option("--external", is_flag=True, default=False, help="Include external dependencies.")
def graph(format_: str, show_status: bool, external: bool, **kwargs: Any) -> None:
    """Print the workspace dependency graph."""
    from plexus.workspace.render import mermaid, print_tree

    workspace = _prepare(with_status=show_status, **kwargs)
    dependency_graph = workspace.external_graph() if external else workspace.graph

    if GraphFormat(format_) == GraphFormat.MERMAID:
        click.echo(mermaid(workspace, show_status=show_status, graph=dependency_graph))
    else:
        click.echo(print_tree(dependency_graph))


@main.command()
@workspace_options
def status(**kwargs: Any) -> None:
    """Show modified and affected projects."""
    from plexus.workspace.models.enums import ProjectStatus

    workspace = _prepare(with_status=True, **kwargs)

    for project_status in (ProjectStatus.MODIFIED, ProjectStatus.AFFECTED):
        names = [p.name for p in workspace.project_list() if p.status == project_status]
        click.echo(f"{project_status}: {', '.join(names) if names else '-'}")


@main.command()
@workspace_options
@filter_options
@click.option(
    "--mode",
    type=click.Choice([m.value for m in OrderMode]),
    default=OrderMode.POSTORDER.value,
    help="Ordering: dependencies first (postorder) or by name.",
)
def order(mode: str, **kwargs: Any) -> None:
    """Print the selected projects, one per line, in execution order."""
    workspace = _prepare(with_status=False, **kwargs)

    for project in workspace.ordered(OrderMode(mode)):
        if not project.skip:
            click.echo(project.name)


if __name__ == "__main__":
    main()
