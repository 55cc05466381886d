"""gman CLI — the main entry point for the CodeSource drift audit."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from gman import __version__
from gman.config.settings import DEFAULT_PORT, DEFAULT_USERNAME

console = Console()


@click.group()
@click.version_option(version=__version__)
def main():
    """gman — compare a CodeSource tree with a database.

    Reports files that are new or will be updated, and database patches
    that have not been run yet.
    """


# ── Compare ──────────────────────────────────────────────────────────


@main.command()
@click.option("--directory", "-d", required=True, type=click.Path(file_okay=False),
              envvar="GMAN_DIRECTORY", help="The CodeSource directory to compare with")
@click.option("--definitions", default=None, type=click.Path(file_okay=False),
              help="Folder definitions directory (default: ./gman)")
@click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False),
              help="YAML settings file")
@click.option("--url", envvar="GMAN_DATABASE_URL", default=None,
              help="SQLAlchemy database URL (overrides host/port/sid)")
@click.option("--username", "-u", envvar="GMAN_USERNAME", default=DEFAULT_USERNAME,
              show_default=True, help="The username to log in as")
@click.option("--password", "-p", envvar="GMAN_PASSWORD", default=None,
              help="The password of the user")
@click.option("--host", "-o", envvar="GMAN_HOST", default=None, help="The host to connect to")
@click.option("--port", "-r", envvar="GMAN_PORT", default=DEFAULT_PORT, type=int,
              show_default=True, help="The port to connect to")
@click.option("--sid", "-s", envvar="GMAN_SID", default=None, help="The Oracle service ID")
@click.option("--check-source/--no-check-source", default=None,
              help="Also compare DatabaseSource objects")
@click.option("--dump-dir", default=None, type=click.Path(file_okay=False),
              help="Write normalized text of changed source objects here")
@click.option("--show-unchanged", is_flag=True, help="Also list unchanged files")
@click.option("--fail-on-drift", is_flag=True, help="Exit with status 1 when drift is found")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr")
def compare(directory: str, definitions: str | None, config_path: str | None, url: str | None,
            username: str, password: str | None, host: str | None, port: int, sid: str | None,
            check_source: bool | None, dump_dir: str | None, show_unchanged: bool,
            fail_on_drift: bool, verbose: bool):
    """Compare the CodeSource directory with the database."""
    from gman.config.settings import ConnectionSettings, load_settings
    from gman.db.database import Database
    from gman.errors import ConfigurationError, ConnectivityError
    from gman.sync.orchestrator import AuditRunner
    from gman.utils.log import configure_logging

    configure_logging(verbose)

    try:
        settings = load_settings(config_path).with_overrides(
            code_source_dir=Path(directory),
            definitions_dir=Path(definitions) if definitions else None,
            check_source=check_source,
            dump_dir=Path(dump_dir) if dump_dir else None,
        )
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    connection = ConnectionSettings(
        url=url, username=username, password=password, host=host, port=port, sid=sid
    )
    if not connection.is_complete:
        raise click.UsageError("Either --url, or --host, --sid and --password are required.")
    try:
        database_url = connection.to_url()
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    console.print(f"\n[bold blue]gman[/] — Comparing: {settings.code_source_dir}\n")

    try:
        with Database.connect(database_url, settings.patch_statement) as db:
            report = AuditRunner(settings, db, ConsoleListener(show_unchanged)).run()
    except ConnectivityError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    console.print(f"\n[bold]Summary:[/] {report.summary()}")

    if fail_on_drift and report.has_drift:
        sys.exit(1)


class ConsoleListener:
    """Prints audit progress to the console as it arrives."""

    def __init__(self, show_unchanged: bool = False):
        self.show_unchanged = show_unchanged

    def on_section(self, title: str) -> None:
        console.rule(f"[bold]{title}")

    def on_result(self, result) -> None:
        from gman.models.audit import ComparisonStatus

        if result.status == ComparisonStatus.UNCHANGED:
            if self.show_unchanged:
                console.print(f"  [dim]{result.message}[/]")
            return
        if result.status == ComparisonStatus.UPDATED:
            console.print(f"  [yellow]{result.message}[/]")
        else:
            console.print(f"  [cyan]{result.message}[/]")

    def on_issue(self, issue) -> None:
        console.print(f"  [red]![/] {issue.message}")


# ── Definitions ──────────────────────────────────────────────────────


@main.command()
@click.option("--definitions", default="gman", type=click.Path(file_okay=False),
              help="Folder definitions directory")
def definitions(definitions: str):
    """List the folder definitions and any that failed to load."""
    from gman.config.definitions import load_definitions

    loaded = load_definitions(definitions)

    for issue in loaded.issues:
        console.print(f"  [red]x[/] {issue.message}")

    if not loaded.definitions:
        console.print("[yellow]No folder definitions found.[/]")
        return

    table = Table(title=f"Folder Definitions ({len(loaded.definitions)} loaded)")
    table.add_column("Name", style="cyan")
    table.add_column("Directory")
    table.add_column("Extension")
    table.add_column("Load Statement")

    for definition in loaded.definitions:
        statement = " ".join(definition.lookup_statement.split())
        table.add_row(definition.name, definition.directory, definition.extension, statement[:60])

    console.print(table)


# ── Patches ──────────────────────────────────────────────────────────


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--exclude-marker", default="NoDeploy", show_default=True,
              help="Skip patch folders whose name contains this text")
def patches(directory: str, exclude_marker: str):
    """Check patch file names under DIRECTORY without touching the database.

    DIRECTORY is the DatabasePatches folder.
    """
    from gman.errors import PatchNameError
    from gman.sync.patches import parse_patch_file_name, scan_patch_files

    files = scan_patch_files(Path(directory), exclude_marker=exclude_marker)
    if not files:
        console.print("[yellow]No patch files found.[/]")
        return

    table = Table(title=f"Patches ({len(files)} found)")
    table.add_column("Folder", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Number", justify="right")
    table.add_column("File")

    invalid = []
    for path in files:
        try:
            key = parse_patch_file_name(path.name)
        except PatchNameError as e:
            invalid.append(e)
            continue
        table.add_row(path.parent.name, key.patch_type, key.patch_number, path.name)

    console.print(table)
    for e in invalid:
        console.print(f"  [red]x[/] {e}")


# ── Normalize ────────────────────────────────────────────────────────


@main.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--entity", "-e", default=None,
              help="Normalize as procedural source for this object name (default: markup)")
def normalize(file_path: str, entity: str | None):
    """Print the normalized form of FILE_PATH as used for comparison."""
    from gman.sync.normalizer import normalize_markup, normalize_procedural
    from gman.utils.file_scanner import read_text

    content = read_text(Path(file_path))
    if entity is not None:
        click.echo(normalize_procedural(content, entity))
    else:
        click.echo(normalize_markup(content))


if __name__ == "__main__":
    main()
