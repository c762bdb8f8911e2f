"""CLI entry points: `folio serve` plus notebook commands against a running server."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.table import Table

from folio.client.api import FolioApi
from folio.client.state import NotebookState
from folio.config import load_config
from folio.errors import FolioError
from folio.notebook.notebook import Notebook

app = typer.Typer(name="folio", help="Paged notebooks with cloud-style storage.")
console = Console()

T = TypeVar("T")


def _run(action: Callable[[NotebookState], Awaitable[T]]) -> T:
    """Run `action` against a fresh state container; errors end the command."""

    async def _main() -> T:
        async with FolioApi.from_config(load_config().client) as api:
            return await action(NotebookState(api))

    try:
        return asyncio.run(_main())
    except FolioError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _when(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _page_id(nb: Notebook, page: int) -> str:
    pages = nb.sorted_pages()
    if not 1 <= page <= len(pages):
        console.print(f"[red]Notebook has {len(pages)} page(s); no page {page}.[/red]")
        raise typer.Exit(1)
    return pages[page - 1].id


@app.command()
def serve(
    port: int | None = typer.Option(None, "--port", "-p", help="Port to serve on"),
    data: Path | None = typer.Option(None, "--data-dir", help="Directory for notebook records and content"),
) -> None:
    """Start the Folio API server."""
    import logging

    import uvicorn

    from folio.storage.backend import get_backend

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    config = load_config().server
    if data is not None:
        config.data_dir = str(data)
    if port is not None:
        config.port = port
    get_backend(config)

    console.print(f"[bold]Starting Folio on {config.host}:{config.port}...[/bold]")
    uvicorn.run("folio.server:app", host=config.host, port=config.port, reload=False)


@app.command("ls")
def list_notebooks(
    search: str = typer.Option("", "--search", "-s", help="Filter by title"),
    favorites: bool = typer.Option(False, "--favorites", "-f", help="Only favorites"),
) -> None:
    """List notebooks, most recently edited first."""

    async def _list(state: NotebookState) -> list[Notebook]:
        await state.fetch_all()
        notebooks = state.search(search)
        if favorites:
            notebooks = [nb for nb in notebooks if nb.is_favorite]
        return notebooks

    notebooks = _run(_list)
    if not notebooks:
        console.print("[dim]No notebooks.[/dim]")
        return

    t = Table(show_lines=False)
    t.add_column("ID", style="cyan")
    t.add_column("Title")
    t.add_column("★")
    t.add_column("Pages", justify="right")
    t.add_column("Tags", style="green")
    t.add_column("Edited")
    t.add_column("Snippet", style="dim")
    for nb in notebooks:
        t.add_row(
            nb.id,
            nb.title,
            "★" if nb.is_favorite else "",
            str(len(nb.pages)),
            ", ".join(nb.tags),
            _when(nb.last_edited_at),
            nb.snippet[:40],
        )
    console.print(t)


@app.command()
def new(title: str | None = typer.Argument(None, help="Notebook title")) -> None:
    """Create a notebook."""
    notebook_id = _run(lambda state: state.create(title))
    console.print(f"[green]Created[/green] {notebook_id}")


@app.command("rm")
def remove(notebook_id: str) -> None:
    """Delete a notebook and its pages."""
    if _run(lambda state: state.delete(notebook_id)):
        console.print(f"[green]Deleted[/green] {notebook_id}")
    else:
        console.print(f"[yellow]Delete of {notebook_id} was not confirmed by the server.[/yellow]")
        raise typer.Exit(1)


@app.command("fav")
def favorite(notebook_id: str) -> None:
    """Toggle a notebook's favorite flag."""
    value = _run(lambda state: state.toggle_favorite(notebook_id))
    console.print("★ favorited" if value else "☆ unfavorited")


@app.command()
def show(notebook_id: str, page: int = typer.Option(1, "--page", "-p", help="1-based page number")) -> None:
    """Print a notebook's metadata and one page of content."""

    async def _show(state: NotebookState) -> tuple[Notebook, str]:
        nb = await state.get_one(notebook_id)
        if nb is None:
            raise FolioError(f"Notebook {notebook_id} not found")
        html = await state.load_content(notebook_id, _page_id(nb, page))
        return nb, html

    nb, html = _run(_show)
    console.print(f"[bold]{nb.title}[/bold]  [dim]{_when(nb.last_edited_at)}[/dim]")
    if nb.tags:
        console.print(" ".join(f"#{tag}" for tag in nb.tags), style="green")
    console.print(f"[dim]Page {page} of {len(nb.pages)}[/dim]\n")
    if html:
        console.print(html, markup=False, highlight=False)
    else:
        console.print("[dim](empty page)[/dim]")


@app.command()
def write(
    notebook_id: str,
    file: Path = typer.Argument(help="HTML file to store as the page body", exists=True, dir_okay=False),
    page: int = typer.Option(1, "--page", "-p", help="1-based page number"),
) -> None:
    """Save a local HTML file as a page's content."""
    html = file.read_text()

    async def _write(state: NotebookState) -> None:
        nb = await state.get_one(notebook_id)
        if nb is None:
            raise FolioError(f"Notebook {notebook_id} not found")
        await state.save_content(notebook_id, html, _page_id(nb, page))

    _run(_write)
    console.print(f"[green]Saved[/green] page {page} of {notebook_id}")


@app.command()
def pages(
    notebook_id: str,
    add: bool = typer.Option(False, "--add", help="Append a page"),
    delete: str | None = typer.Option(None, "--delete", help="Page ID to delete"),
) -> None:
    """List a notebook's pages, optionally adding or deleting one first."""

    async def _pages(state: NotebookState) -> Notebook:
        nb = await state.get_one(notebook_id)
        if nb is None:
            raise FolioError(f"Notebook {notebook_id} not found")
        if add:
            await state.add_page(notebook_id)
        if delete and not await state.delete_page(notebook_id, delete):
            console.print("[yellow]Page not deleted: it is missing or the only page.[/yellow]")
        return state.find(notebook_id) or nb

    nb = _run(_pages)
    t = Table(title=nb.title)
    t.add_column("#", justify="right")
    t.add_column("ID", style="cyan")
    t.add_column("Title")
    t.add_column("Order", justify="right")
    for i, p in enumerate(nb.sorted_pages(), start=1):
        t.add_row(str(i), p.id, p.title or "", str(p.order))
    console.print(t)


def main() -> None:
    app()
