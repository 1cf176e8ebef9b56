# ABOUTME: Rich table utilities for styled, colorful CLI displays of journal data
# ABOUTME: Provides pre-configured table generators for entries, image manifests and save results

from typing import Any

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from trade_journal.content.models import ImageManifest, SkippedImage


def _truncate(text: str, length: int) -> str:
    return text[:length] + "..." if len(text) > length else text


def create_key_value_table(
    title: str,
    data: dict[str, str],
    title_style: str = "bold cyan",
    key_style: str = "bold blue",
    value_style: str = "green",
    box_style=ROUNDED,
) -> Table:
    """Create a key-value table.

    Args:
        title: Table title with emoji/styling
        data: Dictionary of key-value pairs to display
        title_style: Style for the table title
        key_style: Style for the key column
        value_style: Style for the value column
        box_style: Border style for the table

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style="bold magenta",
        border_style="cyan",
        title_justify="left",
        expand=False,
    )

    table.add_column("Field", style=key_style, width=None, no_wrap=False)
    table.add_column("Value", style=value_style, width=None, no_wrap=False)

    for key, value in data.items():
        table.add_row(key, str(value))

    return table


def create_multi_column_table(
    title: str,
    columns: list[tuple[str, str]],
    rows: list[list[str]],
    title_style: str = "bold cyan",
    header_style: str = "bold magenta",
    alternate_row_styles: list[str] | None = None,
    box_style=ROUNDED,
) -> Table:
    """Create a multi-column table.

    Args:
        title: Table title with emoji/styling
        columns: List of (column_name, column_style) tuples
        rows: List of row data
        title_style: Style for the table title
        header_style: Style for column headers
        alternate_row_styles: Alternating row styles for zebra striping
        box_style: Border style for the table

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style=header_style,
        border_style="cyan",
        title_justify="left",
        row_styles=alternate_row_styles or ["", "dim"],
        expand=True,
    )

    for name, style in columns:
        table.add_column(name, style=style)

    for row in rows:
        table.add_row(*row)

    return table


def create_entry_table(title: str, fields: dict[str, str], value_length: int = 200) -> Table:
    """Create a table of labelled field values for one entry.

    Args:
        title: Table title, usually the entry date
        fields: Label to plain-text value
        value_length: Maximum characters shown per value

    Returns:
        Styled entry table
    """
    data = {escape(label): escape(_truncate(value, value_length)) for label, value in fields.items()}
    return create_key_value_table(
        title=title,
        data=data,
        title_style="bold yellow",
        key_style="bold blue",
        value_style="white",
    )


def create_manifest_table(manifest: ImageManifest) -> Table:
    """Create a table listing every image attached to an entry."""
    columns = [
        ("Filename", "cyan"),
        ("Source", "magenta"),
        ("Position", "yellow"),
        ("Caption", "white"),
        ("Path", "dim white"),
    ]
    rows = [
        [
            image.filename,
            "📎 upload" if image.is_direct_upload else f"🖋️ {image.source_field}",
            str(image.ordinal_position),
            escape(_truncate(image.caption, 60)) or "[dim]-[/dim]",
            image.stored_path,
        ]
        for image in manifest.images
    ]
    return create_multi_column_table(title="🖼️ Images", columns=columns, rows=rows)


def create_entries_table(entries: list[Any]) -> Table:
    """Create a table of stored entries, newest first.

    Args:
        entries: JournalEntry rows

    Returns:
        Styled entries table
    """
    columns = [
        ("Date", "cyan"),
        ("Fields", "yellow"),
        ("Created", "white"),
        ("Updated", "green"),
    ]
    rows = [
        [
            entry.entry_date.isoformat(),
            str(sum(1 for value in (entry.content or {}).values() if value)),
            entry.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            entry.updated_at.strftime("%Y-%m-%d %H:%M:%S"),
        ]
        for entry in entries
    ]
    return create_multi_column_table(title="📓 Journal Entries", columns=columns, rows=rows)


def create_skipped_table(skipped: list[SkippedImage]) -> Table:
    """Create a table explaining which images were not stored."""
    columns = [
        ("Source", "magenta"),
        ("Position", "yellow"),
        ("Reason", "red"),
        ("Detail", "dim white"),
    ]
    rows = [[s.source_field, str(s.position), s.reason, escape(_truncate(s.detail, 80))] for s in skipped]
    return create_multi_column_table(title="⚠️ Skipped Images", columns=columns, rows=rows)


def create_logging_status_table(status: dict[str, Any]) -> Table:
    """Create a logging configuration status table.

    Args:
        status: Logging status dictionary

    Returns:
        Styled logging configuration table
    """
    logging_data = {
        "🔧 Mode": status["mode"].title(),
        "📁 Log Directory": status["log_directory"] or "N/A (production mode)",
        "🔇 Suppressed Libraries": ", ".join(status["third_party_suppressed"]),
    }

    if status["log_files"]["main"]:
        logging_data["📝 Main Log"] = status["log_files"]["main"]
    if status["log_files"]["json"]:
        logging_data["📊 JSON Log"] = status["log_files"]["json"]
    if status["log_files"]["errors"]:
        logging_data["🚨 Error Log"] = status["log_files"]["errors"]

    return create_key_value_table(
        title="🔍 Logging Configuration",
        data=logging_data,
        title_style="bold green",
        key_style="blue",
        value_style="white",
    )


def create_save_summary_table(result: Any) -> Table:
    """Create a summary table for a completed save.

    Args:
        result: SaveResult from the journal service

    Returns:
        Save summary table
    """
    summary_data = {
        "📅 Date": result.entry_date.isoformat(),
        "🆕 Action": "Created" if result.created else "Updated",
        "🖼️ New Images": str(result.new_image_count),
        "📎 Total Images": str(len(result.manifest)),
        "⚠️ Skipped": str(result.skipped_count),
    }

    return create_key_value_table(
        title="💾 Entry Saved",
        data=summary_data,
        title_style="bold green",
        key_style="cyan",
        value_style="white",
        box_style=SIMPLE,
    )


def print_rich_table(console: Console, table: Table) -> None:
    """Print a rich table with consistent spacing and style.

    Args:
        console: Rich console instance
        table: Configured table to print
    """
    console.print()  # Add spacing before
    console.print(table)
    console.print()  # Add spacing after
