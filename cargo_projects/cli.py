import functools
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from cargo_projects import commands, output
from cargo_projects.errors import ProjectsError


def _handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Print domain and I/O failures as ``Error: ...`` and exit 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (ProjectsError, OSError) as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)

    return wrapper


@click.group()
@click.option("-v", "--verbose", count=True, help="Log progress to stderr (-vv for debug output).")
@click.pass_context
def main(ctx: click.Context, verbose: int) -> None:
    """Discover, track and clean local Cargo projects."""
    from cargo_projects.log import level_for_verbosity, setup_logging
    from cargo_projects.settings import get_settings

    settings = get_settings()
    setup_logging(level_for_verbosity(verbose, settings.log_level))
    ctx.obj = commands.AppContext.from_settings(settings)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@main.command("list")
@click.argument("watcher", required=False)
@click.pass_obj
@_handle_errors
def list_(app: commands.AppContext, watcher: str | None) -> None:
    """List tracked projects, optionally only those under WATCHER."""
    click.echo(output.format_project_list(commands.list_projects(app, watcher)))


@main.command()
@click.option("--path", default=".", type=click.Path(path_type=Path), help="Directory to scan (default: .).")
@click.pass_obj
@_handle_errors
def scan(app: commands.AppContext, path: Path) -> None:
    """Find Cargo projects under a directory and add the new ones."""
    click.echo(output.format_scan_result(commands.scan(app, path)))


@main.command()
@click.argument("project_id", type=int)
@click.pass_obj
@_handle_errors
def clean(app: commands.AppContext, project_id: int) -> None:
    """Run ``cargo clean`` for the project with PROJECT_ID."""
    click.echo(output.format_clean_result(commands.clean_project(app, project_id)))


@main.command()
@click.argument("project_id", type=int)
@click.pass_obj
@_handle_errors
def remove(app: commands.AppContext, project_id: int) -> None:
    """Stop tracking the project with PROJECT_ID."""
    click.echo(output.format_remove_result(commands.remove_project(app, project_id)))


@main.command()
@click.confirmation_option(prompt="Forget every tracked project?")
@click.pass_obj
@_handle_errors
def reset(app: commands.AppContext) -> None:
    """Remove all projects from the registry."""
    click.echo(output.format_reset_result(commands.reset_projects(app)))


@main.command()
@click.pass_obj
@_handle_errors
def update(app: commands.AppContext) -> None:
    """Recompute sizes and build times of every tracked project."""
    click.echo(output.format_update_result(commands.update_projects(app)))


@main.command()
@click.pass_obj
@_handle_errors
def refresh(app: commands.AppContext) -> None:
    """Clear cached build-time estimates."""
    click.echo(output.format_refresh_result(commands.refresh_timings(app)))


# ---------------------------------------------------------------------------
# Watchers
# ---------------------------------------------------------------------------


@main.command()
@click.pass_obj
@_handle_errors
def watchers(app: commands.AppContext) -> None:
    """List configured watchers."""
    click.echo(output.format_watcher_list(commands.list_watchers(app)))


@main.command("clean-watchers")
@click.pass_obj
@_handle_errors
def clean_watchers(app: commands.AppContext) -> None:
    """Remove every watcher."""
    click.echo(output.format_clean_watchers_result(commands.clean_watchers(app)))


@main.command()
@click.argument("name")
@click.pass_obj
@_handle_errors
def unwatch(app: commands.AppContext, name: str) -> None:
    """Remove the watcher called NAME."""
    click.echo(output.format_watcher_removed(commands.remove_watcher(app, name)))


@main.command()
@click.option("--path", default=".", type=click.Path(path_type=Path), help="Directory to watch (default: .).")
@click.option("--name", default=None, help="Watcher name (default: the directory's name).")
@click.option("--system-wide", is_flag=True, default=False, help="Watch the whole filesystem (not supported).")
@click.pass_obj
@_handle_errors
def watch(app: commands.AppContext, path: Path, name: str | None, system_wide: bool) -> None:
    """Register a watcher and keep its projects up to date until interrupted."""
    if system_wide:
        raise click.UsageError("System-wide watching is not supported; use --path.")

    watcher = commands.register_watcher(app, path, name)
    click.echo(output.format_watch_started(watcher))
    commands.watch(app, watcher)
