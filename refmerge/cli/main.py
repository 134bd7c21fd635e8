"""Main CLI entry point and application setup."""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click
from click.exceptions import Exit
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from refmerge import __version__
from refmerge.cli.config import load_config, resolve_paths
from refmerge.operations import ConnectorService, ImportResult, RecordImporter
from refmerge.storage import AttachmentResolver, SQLiteStore, load_records


@dataclass
class Context:
    """CLI context that holds shared resources.

    The store is opened on first use so that commands which never touch
    it (``parse``) do not create a database.
    """

    database: Path
    storage_dir: Path
    console: Console
    config: dict[str, Any] = field(default_factory=dict)
    debug: bool = False
    _importer: RecordImporter | None = None

    @property
    def importer(self) -> RecordImporter:
        if self._importer is None:
            self.database.parent.mkdir(parents=True, exist_ok=True)
            store = SQLiteStore(self.database)
            click.get_current_context().call_on_close(store.close)
            self._importer = RecordImporter(
                store, AttachmentResolver(self.storage_dir)
            )
        return self._importer

    @property
    def store(self) -> SQLiteStore:
        return self.importer.store


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.WARNING
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
        if not debug
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_console(no_color: bool = False, width: int | None = None) -> Console:
    """Create Rich console with appropriate settings."""
    return Console(
        no_color=no_color,
        width=width or 120,
        highlight=not no_color,
        color_system=None if no_color else "auto",
    )


class RefMergeGroup(click.Group):
    """Custom group that handles KeyboardInterrupt."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except KeyboardInterrupt:
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print("[yellow]Interrupted[/yellow]")
            ctx.exit(130)
        except (click.ClickException, click.Abort, Exit, SystemExit):
            raise
        except Exception as e:
            debug = getattr(ctx.obj, "debug", False) if ctx.obj else False
            if debug:
                raise
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print(f"[red]Error:[/red] {e}")
            else:
                click.echo(f"Error: {e}", err=True)
            ctx.exit(1)


@click.group(cls=RefMergeGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug mode with full tracebacks")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(path_type=Path),
    help="Override data directory location",
)
@click.version_option(
    version=__version__, prog_name="refmerge", message="refmerge version %(version)s"
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config: Path | None,
    data_dir: Path | None,
) -> None:
    """Import references from other reference managers.

    BibTeX, Zotero RDF, EndNote XML and Mendeley XML exports are merged
    into the local library without creating duplicates.
    """
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)
    console = create_console(no_color=no_color)

    try:
        config_data = load_config(config)
    except ValueError as e:
        if debug:
            raise
        console.print(f"[red]Error loading config file:[/red] {e}")
        ctx.exit(1)

    database, storage_dir = resolve_paths(config_data, data_dir)
    ctx.obj = Context(
        database=database,
        storage_dir=storage_dir,
        console=console,
        config=config_data,
        debug=debug,
    )


def _summary_table(result: ImportResult) -> Table:
    table = Table(title="Import summary", show_header=True)
    table.add_column("Outcome", style="bold")
    table.add_column("Records", justify="right")
    table.add_row("Parsed", str(result.total_records))
    table.add_row("[green]Created[/green]", str(result.created))
    table.add_row("[cyan]Merged[/cyan]", str(result.merged))
    if result.failed:
        table.add_row("[red]Failed[/red]", str(result.failed))
    return table


@cli.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--collection", "-C", default="", help="Target collection path, e.g. Papers/2024"
)
@click.option(
    "--new-collection",
    "-n",
    help="Create this collection (under --collection if given) and import into it",
)
@click.pass_context
def import_command(
    ctx: click.Context, source: Path, collection: str, new_collection: str | None
) -> None:
    """Import a .bib, .rdf or .xml export into the library."""
    console = ctx.obj.console
    result = ctx.obj.importer.import_file(source, collection, new_collection)

    console.print(f"Imported {result.persisted} items")
    if result.total_records:
        console.print(_summary_table(result))
    for error in result.errors:
        console.print(f"[red]Error:[/red] {error}")

    if result.errors and not result.persisted:
        ctx.exit(1)


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def parse(ctx: click.Context, source: Path) -> None:
    """Parse an export and show its records without importing them."""
    console = ctx.obj.console
    records, errors = load_records(source)

    for error in errors:
        console.print(f"[red]Error:[/red] {error}")
    if not records:
        console.print("[yellow]No records found[/yellow]")
        if errors:
            ctx.exit(1)
        return

    table = Table(title=f"{len(records)} records in {source.name}", show_lines=False)
    table.add_column("Type", style="dim")
    table.add_column("Title", style="bold", max_width=50)
    table.add_column("Authors", max_width=30)
    table.add_column("Year")
    table.add_column("DOI / ISBN")
    table.add_column("Files", justify="right")
    for record in records:
        table.add_row(
            record.type,
            escape(record.title),
            escape(record.authors),
            record.year,
            record.doi or record.isbn,
            str(len(record.sources)),
        )
    console.print(table)


@cli.command("list")
@click.option("--collection", "-C", help="Only records in this collection")
@click.option("--limit", "-l", type=int, default=50, show_default=True)
@click.pass_context
def list_cmd(ctx: click.Context, collection: str | None, limit: int) -> None:
    """List stored records."""
    console = ctx.obj.console
    records = ctx.obj.store.list_records(collection)
    if not records:
        console.print("[yellow]No records[/yellow]")
        return

    table = Table(show_header=True)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="bold", max_width=50)
    table.add_column("Authors", max_width=30)
    table.add_column("Year")
    table.add_column("Collections")
    table.add_column("Files", justify="right")
    for record in records[:limit]:
        table.add_row(
            record.id,
            escape(record.title),
            escape(record.authors),
            record.year,
            ", ".join(record.collections),
            str(len(record.attachments)),
        )
    console.print(table)
    if len(records) > limit:
        console.print(f"[dim]... and {len(records) - limit} more[/dim]")


@cli.command()
@click.pass_context
def collections(ctx: click.Context) -> None:
    """List collection paths."""
    console = ctx.obj.console
    paths = ctx.obj.store.list_collections()
    if not paths:
        console.print("[yellow]No collections[/yellow]")
        return
    for path in paths:
        console.print(path)


@cli.command()
@click.argument("record_id")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def attach(ctx: click.Context, record_id: str, file: Path) -> None:
    """Copy FILE into a record's attachment storage."""
    console = ctx.obj.console
    record = ctx.obj.importer.attach_file(record_id, file)
    console.print(f"[green]✓[/green] {record.id}: {len(record.attachments)} attachments")


@cli.command()
@click.argument("payload", type=click.File("rb"), default="-")
@click.pass_context
def save(ctx: click.Context, payload) -> None:
    """Save a browser-connector request body (file or stdin)."""
    service = ConnectorService(ctx.obj.importer)
    response = service.save(payload.read())
    click.echo(service.encode(response).decode("utf-8"))
    if not response["success"]:
        ctx.exit(1)


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
