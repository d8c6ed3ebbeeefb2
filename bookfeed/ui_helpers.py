import os
import json
from datetime import datetime
from typing import List

from rich.console import Console
from rich.table import Table

from bookfeed.book import BookRecord
from bookfeed.shelf_store import ShelfMembership

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOKFEED_CLI_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def print_books(books: List[BookRecord], empty_message: str = "No books found.") -> None:
    """Print books in the current output mode.
    - plain: 'ID - Title by Author' lines
    - json: JSON array of full records
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print(empty_message)
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("ISBN", style="dim")
        for b in books:
            table.add_row(b.id, b.title, b.author, b.isbn or "")
        _console.print(table)
    else:
        for b in books:
            print(f"{b.id} - {b.title} by {b.author}")

def print_shelf(shelf_name: str, memberships: List[ShelfMembership]) -> None:
    """Print one shelf's memberships, newest first."""
    mode = get_output_mode()

    if not memberships:
        print(f"Shelf {shelf_name} is empty.")
        return

    if mode == "json":
        print(json.dumps([m.to_dict() for m in memberships], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title=f"🔖 {shelf_name}", header_style="bold cyan")
        table.add_column("Book ID", style="magenta", no_wrap=True)
        table.add_column("Saved At", style="white")
        for m in memberships:
            table.add_row(m.item_id, _format_millis(m.saved_at_millis))
        _console.print(table)
    else:
        for m in memberships:
            print(f"{m.item_id} (saved {_format_millis(m.saved_at_millis)})")

def _format_millis(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000).strftime("%Y-%m-%d %H:%M")
