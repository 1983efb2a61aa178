"""Command line interface for the Spyglass project."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, NoReturn, Sequence

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from spyglass.browse import (
    BrowseError,
    DirectoryItem,
    get_home_dir,
    initial_location,
    read_directory,
)
from spyglass.config import (
    ConfigError,
    ConfigManager,
    SpyglassConfig,
    resolve_with_precedence,
)
from spyglass.config.resolver import assign_nested
from spyglass.index.service import IndexService, ScanError
from spyglass.logging_config import configure_logging
from spyglass.state import DEFAULT_STATE_DIR
from spyglass.state.models import IndexEntry

LOGGER = logging.getLogger(__name__)

console = Console()

_POLL_INTERVAL_SECONDS = 0.2
_SUMMARY_MODES = frozenset({"summary", "warning", "error"})


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    original: Exception | None = None,
) -> NoReturn:
    """Report ``message`` and stop the command.

    In JSON mode the error is printed as ``{"error": {"code", "message"}}`` and
    the process exits with status 1; otherwise a ``click.ClickException`` is
    raised so Click prints ``Error: ...``.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier such as ``scan_error``.
        json_output: Whether JSON mode is active.
        original: Exception being reported, chained onto the Click error.
    """

    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)
    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Print ``message`` unless quiet or summary-only output filters it out.

    ``mode`` is one of ``detail``, ``summary``, ``warning`` or ``error``. Quiet
    mode keeps only errors; summary mode drops details.
    """

    if quiet:
        if mode == "error":
            console.print(message)
        return
    if summary_only and mode not in _SUMMARY_MODES:
        return
    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    rendered = ", ".join(f"{name}={value}" for name, value in metrics.items())
    return f"[green]{command} summary for {escape(str(root))}: {rendered}.[/green]"


def _load_config(json_output: bool) -> SpyglassConfig:
    """Load configuration and install logging handlers.

    Args:
        json_output: Whether errors should be reported as JSON.

    Returns:
        SpyglassConfig: Effective configuration.
    """

    manager = ConfigManager()
    try:
        manager.ensure_exists()
        config = manager.load()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)

    configure_logging(config.logging, DEFAULT_STATE_DIR)
    return config


def _resolve_output_modes(
    ctx: click.Context,
    config: SpyglassConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Combine explicit flags with configured CLI defaults.

    Returns:
        tuple[bool, bool]: Effective quiet and summary-only flags.

    Raises:
        click.ClickException: If the combination is contradictory.
    """

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _build_service(config: SpyglassConfig, root: str | None) -> IndexService:
    return IndexService(
        root=Path(root).expanduser() if root else None,
        options=config.indexing,
    )


def _run_scan(service: IndexService, *, show_progress: bool, json_output: bool) -> None:
    """Start a scan and block until it has committed, optionally rendering progress."""

    try:
        service.start_scan()
    except ScanError as exc:
        _handle_cli_error(str(exc), code="scan_error", json_output=json_output, original=exc)

    if not show_progress:
        service.wait()
        return

    columns = (
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("{task.fields[files]} entries"),
    )
    with Progress(*columns, console=console, transient=True) as bar:
        task_id = bar.add_task("Indexing", total=1, files=0)
        while True:
            done = service.wait(_POLL_INTERVAL_SECONDS)
            snapshot = service.get_progress()
            bar.update(
                task_id,
                total=max(snapshot.total_folders, snapshot.indexed_folders, 1),
                completed=snapshot.indexed_folders,
                files=snapshot.total_files,
                description=_shorten(snapshot.current_folder) or "Indexing",
            )
            if done:
                break


def _shorten(text: str, width: int = 48) -> str:
    if len(text) <= width:
        return text
    return "…" + text[-(width - 1) :]


def _entries_table(entries: Sequence[IndexEntry]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Parent")
    table.add_column("Path", overflow="fold")
    for entry in entries:
        kind = "dir" if entry.is_directory else "file"
        table.add_row(escape(entry.name), kind, escape(entry.parent_folder), escape(entry.path))
    return table


def _listing_table(items: Sequence[DirectoryItem]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Type")
    for item in items:
        name = escape(item.name)
        if item.is_directory:
            name = f"[bold blue]{name}/[/bold blue]"
        table.add_row(name, "dir" if item.is_directory else "file")
    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="spyglass")
def cli() -> None:
    """Spyglass indexes file and folder names under your home directory for instant search."""


@cli.command()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=str),
    help="Directory to index instead of the home directory.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit the final progress as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def scan(
    ctx: click.Context,
    root: str | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Rebuild the index and persist it for later searches.

    Args:
        ctx: Click context used for parameter source inspection.
        root: Optional directory to index instead of the home directory.
        json_output: If True, emit JSON describing the completed scan.
        summary_mode: When True, limit output to summary lines.
        quiet: When True, suppress non-error CLI output entirely.
    """

    config = _load_config(json_output)
    quiet_enabled, summary_only = _resolve_output_modes(
        ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
    )
    service = _build_service(config, root)
    _run_scan(
        service,
        show_progress=not (json_output or quiet_enabled or summary_only),
        json_output=json_output,
    )

    progress = service.get_progress()
    if json_output:
        console.print_json(
            data={
                "progress": progress.model_dump(mode="json"),
                "count": service.index_count(),
                "index_path": str(service.index_path),
                "persisted": service.index_path.exists(),
            }
        )
        return

    _emit_message(
        _format_summary_line(
            "Scan",
            root or get_home_dir() or "~",
            {
                "entries": service.index_count(),
                "folders": progress.indexed_folders,
            },
        ),
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )
    _emit_message(
        f"Index written to {service.index_path}",
        mode="detail",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )


@cli.command()
@click.argument("query")
@click.option(
    "--limit",
    type=click.IntRange(1, 100),
    default=None,
    help="Maximum number of results (defaults to configuration).",
)
@click.option("--rescan", is_flag=True, help="Rebuild the index before searching.")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=str),
    help="Directory to index when a scan is needed.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON.")
def search(
    query: str,
    limit: int | None,
    rescan: bool,
    root: str | None,
    json_output: bool,
) -> None:
    """Search indexed names for QUERY, best matches first.

    When no saved index exists, one is built first.

    Args:
        query: Case-insensitive substring to look for in names.
        limit: Optional result cap.
        rescan: If True, rebuild the index before searching.
        root: Optional directory to index when a scan is needed.
        json_output: If True, emit JSON results.
    """

    config = _load_config(json_output)
    service = _build_service(config, root)
    loaded = False if rescan else service.load_persisted_index()
    if not loaded:
        _run_scan(service, show_progress=not json_output, json_output=json_output)

    results = service.search(query, limit=limit or config.search.max_results)
    if json_output:
        console.print_json(
            data={
                "query": query,
                "count": len(results),
                "results": [entry.model_dump(mode="json") for entry in results],
            }
        )
        return

    if not results:
        console.print(f"[yellow]No matches for {query!r}.[/yellow]")
        return
    console.print(_entries_table(results))


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit status information as JSON.")
def status(json_output: bool) -> None:
    """Show where the index is stored and how many entries it holds.

    Args:
        json_output: If True, emit JSON status.
    """

    config = _load_config(json_output)
    service = _build_service(config, None)
    loaded = service.load_persisted_index()
    payload = {
        "index_path": str(service.index_path),
        "loaded": loaded,
        "count": service.index_count(),
    }
    if json_output:
        console.print_json(data=payload)
        return

    if not loaded:
        console.print(
            f"[yellow]No saved index at {service.index_path}. Run `spyglass scan`.[/yellow]"
        )
        return
    console.print(f"[green]{payload['count']} entries indexed in {payload['index_path']}.[/green]")


@cli.command("ls")
@click.argument("path", required=False, type=str)
@click.option("--json", "json_output", is_flag=True, help="Emit the listing as JSON.")
def list_directory(path: str | None, json_output: bool) -> None:
    """List the visible contents of PATH.

    Without PATH the listing opens at the remembered location, the active tab,
    the configured root folder, or the home directory, in that order. The
    listed folder is remembered when `remember_location` is enabled.

    Args:
        path: Folder to list.
        json_output: If True, emit JSON listing.
    """

    config = _load_config(json_output)
    target = str(Path(path).expanduser().absolute()) if path else initial_location(config)
    if target is None:
        _handle_cli_error(
            "Could not determine a folder to list.", code="browse_error", json_output=json_output
        )

    try:
        items = read_directory(target)
    except BrowseError as exc:
        _handle_cli_error(str(exc), code="browse_error", json_output=json_output, original=exc)

    try:
        ConfigManager().record_location(target)
    except ConfigError as exc:
        LOGGER.warning("Could not remember location %s: %s", target, exc)

    if json_output:
        console.print_json(
            data={"path": str(target), "items": [item.model_dump(mode="json") for item in items]}
        )
        return
    console.print(_listing_table(items))


@cli.group()
def config() -> None:
    """Inspect and change ~/.spyglass/config.yaml."""


def _config_manager() -> ConfigManager:
    manager = ConfigManager()
    try:
        manager.ensure_exists()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    return manager


def _validate_and_save(manager: ConfigManager, file_data: dict[str, Any]) -> None:
    """Reject ``file_data`` unless it resolves to a valid config, then write it."""
    try:
        resolve_with_precedence(defaults=SpyglassConfig(), file_overrides=file_data)
        manager.save(file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _changed_lines(before: str, after: str) -> list[str]:
    diff = difflib.unified_diff(
        before.splitlines(),
        after.splitlines(),
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    return list(diff)


@config.command("path")
def config_path() -> None:
    """Print the location of the configuration file."""
    click.echo(str(ConfigManager().config_path))


@config.command("view")
@click.option("--no-env", is_flag=True, help="Show the file values without SPYGLASS__* overrides.")
def config_view(no_env: bool) -> None:
    """Print the effective configuration as YAML.

    Args:
        no_env: If True, skip environment overrides.
    """
    manager = _config_manager()
    try:
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    rendered = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(rendered, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML literal stored at KEY.")
def config_set(key: str, value: str) -> None:
    """Store VALUE at the dotted KEY, e.g. `indexing.follow_symlinks`.

    Args:
        key: Dotted path of the setting.
        value: YAML literal to store.
    """
    manager = _config_manager()
    path = [part.strip() for part in key.split(".") if part.strip()]
    if not path:
        raise click.ClickException("KEY must be a dotted path such as 'indexing.skip_hidden'.")
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    before = manager.read_text()
    try:
        file_data = manager.load_file_overrides()
        assign_nested(file_data, path, parsed, source_name="file")
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    _validate_and_save(manager, file_data)

    diff = _changed_lines(before, manager.read_text())
    # The timestamp line differs on every write.
    changed = [
        line
        for line in diff
        if line.startswith(("+", "-"))
        and not line.startswith(("+++", "---"))
        and "Last updated:" not in line
    ]
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {escape('.'.join(path))}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Edit the configuration file in $EDITOR and validate the result."""
    manager = _config_manager()
    current = manager.read_text()
    edited = click.edit(current, extension=".yaml")
    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == current:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    _validate_and_save(manager, parsed)
    console.print("[green]Configuration updated.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
