"""
Display utilities for storage directory listings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dirstore.metadata import format_timestamp

if TYPE_CHECKING:
    from dirstore.metadata import Metadata
    from dirstore.store.layout import DirectoryLocation


def display_directories(
    entries: list[tuple["DirectoryLocation", "Metadata | None"]],
    console: Console | None = None,
    title: str | None = None,
) -> None:
    """
    Display storage directories as a table.

    Args:
        entries: ``(location, metadata)`` pairs; metadata is None when it
            could not be read.
        console: Optional rich Console instance.
        title: Optional table title (e.g. the storage root).
    """
    if console is None:
        console = Console()

    if not entries:
        console.print("[yellow]No storage directories.[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Partition", style="magenta")
    table.add_column("Name")
    table.add_column("Created", style="dim", no_wrap=True)
    table.add_column("Tags", style="green")

    for location, metadata in entries:
        if metadata is None:
            table.add_row(
                location.identifier,
                location.partition,
                f"[red]{escape(location.entry_name)} (unreadable metadata)[/red]",
                "",
                "",
            )
            continue
        table.add_row(
            location.identifier,
            location.partition,
            escape(metadata.name),
            format_timestamp(metadata.created),
            escape(", ".join(metadata.tags)),
        )

    console.print(table)
