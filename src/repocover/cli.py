"""Command-line interface for repocover."""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import Optional

import pypandoc
import typer
from rich.console import Console
from rich.table import Table

from repocover.catalog import Catalog, DocumentNotFound
from repocover.logging_config import configure_logging
from repocover.services import CoverGenerator
from repocover.settings import get_settings

console = Console()
app = typer.Typer(help="repocover – PDF cover pages for repository documents")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug events"),
) -> None:
    """Configure logging before any command runs."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)


@app.command()
def generate(
    document_id: int = typer.Argument(..., help="ID of document"),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Name of output file"),
    template: Optional[str] = typer.Option(
        None,
        "--template",
        "-t",
        help="Template path, absolute or relative to the templates directory",
    ),
) -> None:
    """Generate a PDF cover for a single document.

    The cover is always rebuilt, bypassing the file cache, which helps when
    developing a custom cover template. Without --out the cover keeps the
    generated file name. If the template doesn't exist, the template that
    applies to the document is used.
    """
    settings = get_settings()
    catalog = Catalog(settings)
    try:
        document = catalog.get_document(document_id)
    except DocumentNotFound as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    generator = CoverGenerator(settings, collections=catalog)
    cover_path = generator.process_document(document, template)
    if cover_path is None:
        console.print(f"[red]Could not generate a cover for document {document_id}.[/red]")
        raise typer.Exit(code=1)

    output_path = Path.cwd() / (out or cover_path.name)
    try:
        shutil.copyfile(cover_path, output_path)
    except OSError as exc:
        console.print(f"[red]Could not write the cover to {output_path}: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    typer.echo(f"Generated cover for document with ID {document_id} at {output_path}")


@app.command("import")
def import_catalog(
    file: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, readable=True),
) -> None:
    """Load documents, collections and files from a JSON fixture."""
    catalog = Catalog(get_settings())
    collections, documents, files = catalog.import_file(file)
    console.print(
        f"[green]Imported[/green] {documents} documents, {collections} collections, {files} files."
    )


@app.command("list")
def list_documents() -> None:
    """List catalog documents."""
    catalog = Catalog(get_settings())
    documents = catalog.list_documents()
    if not documents:
        console.print("[yellow]The catalog is empty.")
        return
    table = Table(title="Documents")
    table.add_column("ID")
    table.add_column("Type")
    table.add_column("Title", overflow="fold")
    table.add_column("Files")
    for document in documents:
        files = ", ".join(file.path_name for file in catalog.files_for(document.id))
        table.add_row(str(document.id), document.type or "—", document.main_title or "—", files or "—")
    console.print(table)


@app.command()
def config(
    json_output: bool = typer.Option(False, "--json", help="Output settings as JSON"),
) -> None:
    """Display the resolved settings."""
    settings = get_settings()
    if json_output:
        typer.echo(settings.model_dump_json(indent=2))
        return
    table = Table(title="repocover settings")
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    for key, value in settings.model_dump(exclude={"repository"}).items():
        table.add_row(key, str(value))
    table.add_row("templates_dir (resolved)", str(settings.resolved_templates_dir))
    table.add_row("filecache_dir", str(settings.filecache_dir))
    table.add_row("temp_dir", str(settings.temp_dir))
    console.print(table)


@app.command()
def doctor() -> None:
    """Environment checks (pandoc, xelatex, workspace, templates)."""
    checks: list[tuple[str, bool, str]] = []
    checks.append(("python>=3.11", sys.version_info >= (3, 11), sys.version.split()[0]))
    try:
        checks.append(("pandoc", True, pypandoc.get_pandoc_version()))
    except OSError as exc:
        checks.append(("pandoc", False, str(exc)))
    xelatex = shutil.which("xelatex")
    checks.append(("xelatex", xelatex is not None, xelatex or "not found on PATH"))

    settings = get_settings()
    try:
        probe = settings.temp_dir / ".repocover_doctor"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink()
        checks.append(("workspace writable", True, str(settings.workspace_dir)))
    except OSError as exc:
        checks.append(("workspace writable", False, str(exc)))

    templates_dir = settings.resolved_templates_dir
    checks.append(("templates dir", templates_dir.is_dir(), str(templates_dir)))
    if settings.default_template:
        default_path = templates_dir / settings.default_template
        checks.append(("default template", default_path.is_file(), str(default_path)))
    if settings.licence_logos_dir:
        checks.append(
            ("licence logos dir", settings.licence_logos_dir.is_dir(), str(settings.licence_logos_dir))
        )

    passed = True
    for name, ok, note in checks:
        status = "[green]OK[/green]" if ok else "[red]FAIL[/red]"
        console.print(f"{status} {name} ({note})")
        passed = passed and ok
    if not passed:
        raise typer.Exit(code=1)
    console.print("[green]Doctor checks passed.[/green]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """Serve document files with covers over HTTP."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        console.print("[red]uvicorn is not installed.[/red]")
        raise typer.Exit(code=1) from exc

    uvicorn.run(
        "repocover.web.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )
