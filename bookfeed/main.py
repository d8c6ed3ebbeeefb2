import asyncio
import logging
from typing import Optional

import typer

from bookfeed.config import settings
from bookfeed.feed import smart_query
from bookfeed.repository import BookRepository
from bookfeed.shelf_store import FileBlobStore, LocalShelfStore, Shelf
from bookfeed.ui_helpers import print_books, print_shelf, set_output_mode

logger = logging.getLogger(__name__)


def get_repository() -> BookRepository:
    """Repository used by the CLI commands."""
    return BookRepository.create(settings)


def get_shelf_store() -> LocalShelfStore:
    """Shelf store backed by the configured shelf file."""
    return LocalShelfStore(FileBlobStore(settings.shelf_file))


def _parse_shelf(name: str) -> Shelf:
    try:
        return Shelf(name.upper())
    except ValueError:
        valid = ", ".join(s.value for s in Shelf)
        raise typer.BadParameter(f"Unknown shelf '{name}'. Choose one of: {valid}") from None


async def _search(query: str, max_results: int, offset: int, order_by: Optional[str]):
    async with get_repository() as repo:
        return await repo.search_books(query, max_results=max_results, offset=offset, order_by=order_by)


async def _lookup(isbn: str):
    async with get_repository() as repo:
        return await repo.get_book_by_isbn(isbn)


# --- Typer CLI ---
app = typer.Typer(help="Book discovery feed CLI")
shelf_app = typer.Typer(help="Manage local shelves (TBR, RECOMMEND, READ)")
app.add_typer(shelf_app, name="shelf")

@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global CLI options (output mode, logging)."""
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.WARNING))
    if output:
        set_output_mode(output)

@app.command("search")
def cli_search(
    query: str,
    max_results: int = typer.Option(settings.default_page_size, "--max-results", "-n", help="Page size (1-40)"),
    offset: int = typer.Option(0, "--offset", help="Index of the first result"),
    order_by: Optional[str] = typer.Option(None, "--order-by", help="newest | relevance"),
):
    """Search books by free text (Google Books query syntax allowed)."""
    books = asyncio.run(_search(query, max_results, offset, order_by))
    print_books(books, empty_message=f"No books found for '{query}'.")

@app.command("isbn")
def cli_isbn(isbn: str):
    """Look up a book by ISBN, falling back to Open Library."""
    book = asyncio.run(_lookup(isbn))
    if book is None:
        print(f"Book with ISBN {isbn} not found.")
        return
    print_books([book])

@app.command("feed")
def cli_feed(load_count: int = typer.Option(0, "--load-count", help="Feed reload counter, selects the query")):
    """Show one page of the discovery feed."""
    query, order_by = smart_query(load_count)
    books = asyncio.run(_search(query, settings.default_page_size, 0, order_by))
    print_books(books, empty_message="The feed is empty right now.")

@shelf_app.command("add")
def cli_shelf_add(item_id: str, shelf: str):
    """Put a book on a shelf."""
    target = _parse_shelf(shelf)
    get_shelf_store().add_to_shelf(item_id, target)
    print(f"Added {item_id} to {target.value}.")

@shelf_app.command("remove")
def cli_shelf_remove(item_id: str, shelf: str):
    """Take a book off a shelf."""
    target = _parse_shelf(shelf)
    get_shelf_store().remove_from_shelf(item_id, target)
    print(f"Removed {item_id} from {target.value}.")

@shelf_app.command("toggle")
def cli_shelf_toggle(item_id: str, shelf: str):
    """Toggle a book on a shelf."""
    target = _parse_shelf(shelf)
    if get_shelf_store().toggle_shelf(item_id, target):
        print(f"Added {item_id} to {target.value}.")
    else:
        print(f"Removed {item_id} from {target.value}.")

@shelf_app.command("list")
def cli_shelf_list(shelf: str):
    """List a shelf, most recently saved first."""
    target = _parse_shelf(shelf)
    print_shelf(target.value, get_shelf_store().get_shelf(target))

@shelf_app.command("show")
def cli_shelf_show(item_id: str):
    """Show which shelves a book is on."""
    shelves = get_shelf_store().shelves_for(item_id)
    if not shelves:
        print(f"{item_id} is not on any shelf.")
        return
    names = sorted(s.value for s in shelves)
    print(f"{item_id}: {', '.join(names)}")


if __name__ == "__main__":
    app()
