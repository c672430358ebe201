"""Plain-text rendering of command results.

Every formatter returns a string; printing is the CLI's job.  Tables are
drawn with rich into an in-memory console so the text is identical whether
or not stdout is a terminal.
"""

from __future__ import annotations

import io

from rich import box
from rich.console import Console
from rich.table import Table

from cargo_projects.models.project import Project
from cargo_projects.models.results import (
    ProjectListResult,
    ScanResult,
    UpdateResult,
    WatcherListResult,
)
from cargo_projects.models.watcher import WatcherConfig

TABLE_WIDTH = 120


def _render(table: Table) -> str:
    buffer = io.StringIO()
    console = Console(file=buffer, width=TABLE_WIDTH, color_system=None, force_terminal=False)
    console.print(table)
    return buffer.getvalue().rstrip("\n")


def format_build_time(seconds: int) -> str:
    """``0 -> Unknown``, ``90 -> 1m30s``, ``3660 -> 1h1m``."""
    if seconds <= 0:
        return "Unknown"
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        mins, secs = divmod(seconds, 60)
        return f"{mins}m{secs}s" if secs else f"{mins}m"
    hours, mins = seconds // 3600, (seconds % 3600) // 60
    return f"{hours}h{mins}m" if mins else f"{hours}h"


# -- Projects ------------------------------------------------------------------


def format_project_list(result: ProjectListResult) -> str:
    if not result.projects:
        return "No projects found."

    table = Table(box=box.SQUARE, show_header=True)
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Size (GB)", justify="right")
    table.add_column("Cache (GB)", justify="right")
    table.add_column("Check Time", justify="right")
    for project in result.projects:
        table.add_row(
            str(project.id),
            project.name,
            f"{project.size_gb:.3f}",
            f"{project.target_size_gb:.3f}",
            format_build_time(project.estimated_build_time_seconds),
        )
    return f"{_render(table)}\nTotal: {result.total_count} projects"


def format_scan_result(result: ScanResult) -> str:
    if result.added_count == 0:
        return "No new projects found."
    lines = [f"Found and added {result.added_count} new projects:"]
    lines.extend(f"  • {p.name} ({p.path})" for p in result.found_projects)
    return "\n".join(lines)


def format_update_result(result: UpdateResult) -> str:
    if result.total_updated == 0:
        return "All projects are up to date."
    lines = [f"Updated {result.total_updated} projects:"]
    lines.extend(f"  • {name}" for name in result.updated_projects)
    return "\n".join(lines)


def format_clean_result(project: Project) -> str:
    return f"Cleaned project: {project.name}"


def format_remove_result(project: Project) -> str:
    return f"Removed project: {project.name} ({project.path})"


def format_reset_result(count: int) -> str:
    return f"Removed {count} projects"


def format_refresh_result(count: int) -> str:
    return f"Timing cache cleared ({count} projects). Run 'update' to refresh timing data."


# -- Watchers ------------------------------------------------------------------


def format_watcher_list(result: WatcherListResult) -> str:
    if not result.watchers:
        return "No watchers configured."

    table = Table(box=box.SIMPLE_HEAD, show_header=True)
    table.add_column("Name")
    table.add_column("Path")
    table.add_column("Created")
    for watcher in result.watchers:
        table.add_row(watcher.name, str(watcher.path), watcher.created_at.strftime("%Y-%m-%d %H:%M"))
    return _render(table)


def format_clean_watchers_result(count: int) -> str:
    return f"Removed {count} watchers"


def format_watcher_removed(watcher: WatcherConfig) -> str:
    return f"Removed watcher: {watcher.name}"


def format_watch_started(watcher: WatcherConfig) -> str:
    return f"Watching {watcher.path} as '{watcher.name}' (Ctrl+C to stop)"
