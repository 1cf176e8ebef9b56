# ABOUTME: Main CLI application entry point using asyncclick for native async support
# ABOUTME: Provides commands to save, show, list and export trading journal entries

import json as jsonlib
import mimetypes
from datetime import date, datetime
from pathlib import Path

import asyncclick as click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from trade_journal.config import get_config
from trade_journal.content import DirectUpload, StorageError, to_plain_text
from trade_journal.core.fields import get_field, label_for
from trade_journal.core.service import EntryNotFoundError, JournalService
from trade_journal.utils.logging import (
    LoggingMode,
    configure_logging,
    get_logging_status,
    with_pipeline_context,
)
from trade_journal.utils.rich_tables import (
    create_entries_table,
    create_entry_table,
    create_logging_status_table,
    create_manifest_table,
    create_save_summary_table,
    create_skipped_table,
    print_rich_table,
)

console = Console()

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


def _as_date(value: datetime) -> date:
    return value.date()


def _load_submission(path: Path) -> dict[str, str | None]:
    """Read a submission JSON object of field key to value."""
    raw = jsonlib.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise click.BadParameter("Submission must be a JSON object of field values", param_hint="SUBMISSION")

    submission: dict[str, str | None] = {}
    for key, value in raw.items():
        if value is None or isinstance(value, str):
            submission[key] = value
        elif isinstance(value, bool):
            submission[key] = "true" if value else "false"
        elif isinstance(value, int | float):
            submission[key] = str(value)
        else:
            raise click.BadParameter(f"Field {key!r} must be a string, number, boolean or null", param_hint="SUBMISSION")
    return submission


def _load_upload(path: Path) -> DirectUpload:
    content_type, _ = mimetypes.guess_type(path.name)
    return DirectUpload(
        data=path.read_bytes(),
        original_name=path.name,
        content_type=content_type or "application/octet-stream",
    )


@click.command()
@click.argument("entry_date", metavar="DATE", type=DATE_TYPE)
@click.argument("submission_file", metavar="SUBMISSION", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--image",
    "images",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Chart image to attach (repeatable, order is kept)",
)
@click.option("--captions", help="Newline-separated captions for the attached images")
@click.pass_context
async def save(ctx, entry_date: datetime, submission_file: Path, images: tuple[Path, ...], captions: str | None):
    """
    💾 Save a journal entry from a JSON submission.

    Rich-text fields are sanitized and inline base64 images are stored as files.
    Saving an existing date updates it: attached charts are replaced, inline images kept.
    """
    json_output = ctx.obj["json_output"]
    day = _as_date(entry_date)
    submission = _load_submission(submission_file)
    uploads = [_load_upload(path) for path in images]

    service = JournalService.from_config()
    try:
        with with_pipeline_context("save_entry", entry_date=day.isoformat(), upload_count=len(uploads)) as log:
            result = await service.save_entry(day, submission, uploads, captions_blob=captions)
            log.info("Journal entry saved", created=result.created, new_images=result.new_image_count)
    except StorageError as e:
        log.error("Save failed", orphaned_paths=e.orphaned_paths)
        if not json_output:
            console.print(f"[red]❌ Entry not saved: {e}[/red]")
            if e.orphaned_paths:
                console.print(f"[yellow]Orphaned files: {', '.join(e.orphaned_paths)}[/yellow]")
        ctx.exit(1)
    finally:
        await service.close()

    if json_output:
        click.echo(result.model_dump_json())
        return

    print_rich_table(console, create_save_summary_table(result))
    if result.skipped:
        print_rich_table(console, create_skipped_table(result.skipped))


@click.command()
@click.argument("entry_date", metavar="DATE", type=DATE_TYPE)
@click.option("--html", "show_html", is_flag=True, help="Print rendered HTML instead of a summary table")
@click.pass_context
async def show(ctx, entry_date: datetime, show_html: bool):
    """
    📖 Show a journal entry with its images resolved.
    """
    json_output = ctx.obj["json_output"]
    day = _as_date(entry_date)

    service = JournalService.from_config()
    try:
        rendered = await service.render_entry(day)
    except EntryNotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        ctx.exit(1)
    finally:
        await service.close()

    if json_output:
        click.echo(rendered.model_dump_json())
        return

    if show_html:
        for key, value in rendered.fields.items():
            if value:
                console.print(Panel(Text(value), title=label_for(key), border_style="blue"))
        for block in rendered.gallery:
            console.print(Panel(Text(block), title="📎 Chart", border_style="magenta"))
        return

    labelled = {}
    for key, value in rendered.fields.items():
        spec = get_field(key)
        labelled[spec.label if spec else key] = to_plain_text(value) or "-"
    print_rich_table(console, create_entry_table(f"📓 {day.isoformat()}", labelled))
    if len(rendered.manifest):
        print_rich_table(console, create_manifest_table(rendered.manifest))


@click.command(name="list")
@click.pass_context
async def list_entries(ctx):
    """
    📚 List stored journal entries, newest first.
    """
    service = JournalService.from_config()
    try:
        entries = await service.list_entries()
    finally:
        await service.close()

    if ctx.obj["json_output"]:
        click.echo(jsonlib.dumps([entry.entry_date.isoformat() for entry in entries]))
        return

    if not entries:
        console.print("[yellow]No journal entries found.[/yellow]")
        return
    print_rich_table(console, create_entries_table(entries))


@click.command(name="export-text")
@click.argument("entry_date", metavar="DATE", type=DATE_TYPE)
@click.pass_context
async def export_text(ctx, entry_date: datetime):
    """
    📝 Export a journal entry as labelled plain text.
    """
    day = _as_date(entry_date)
    service = JournalService.from_config()
    try:
        text = await service.export_text(day)
    except EntryNotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        ctx.exit(1)
    finally:
        await service.close()

    click.echo(text)


@click.command()
@click.argument("entry_date", metavar="DATE", type=DATE_TYPE)
@click.pass_context
async def delete(ctx, entry_date: datetime):
    """
    🗑️ Delete a journal entry and its image records.

    Image files stay in the upload directory.
    """
    day = _as_date(entry_date)
    service = JournalService.from_config()
    try:
        deleted = await service.delete_entry(day)
    finally:
        await service.close()

    if not deleted:
        console.print(f"[yellow]No journal entry for {day.isoformat()}[/yellow]")
        ctx.exit(1)
    console.print(f"[green]✅ Deleted journal entry for {day.isoformat()}[/green]")


def _initialize_logging(json_output: bool, log_level: str | None = None, log_file: str | None = None) -> None:
    """Initialize logging configuration."""
    try:
        config = get_config()
        mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE

        # Use config defaults when CLI parameters are not provided
        final_log_level = log_level or config.log_level
        final_log_file = log_file or (str(config.log_file) if config.log_file else None)

        configure_logging(mode=mode, log_level=final_log_level, log_file=final_log_file)
    except (FileNotFoundError, PermissionError, OSError):
        # Log directory unavailable; fall back to minimal configuration
        mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE
        final_log_level = log_level or "INFO"
        configure_logging(mode=mode, log_level=final_log_level, log_file=log_file)


@click.command(name="logging-status")
def logging_status():
    """
    📊 Show current logging configuration and status.
    """
    status = get_logging_status()
    logging_table = create_logging_status_table(status)
    print_rich_table(console, logging_table)


@click.group(invoke_without_command=True)
@click.option("--json", is_flag=True, help="Output structured JSON instead of rich tables")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--log-file", help="Custom log file path")
@click.pass_context
def app(ctx, json: bool, log_level: str | None, log_file: str | None):
    """
    📈 Trade Journal - daily trading journal with safe rich text and chart images

    Saves journal entries with sanitized rich text, stores pasted and attached
    images as files, and renders entries with their images resolved.
    """
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json

    _initialize_logging(json, log_level, log_file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


app.add_command(save)
app.add_command(show)
app.add_command(list_entries)
app.add_command(export_text)
app.add_command(delete)
app.add_command(logging_status)


if __name__ == "__main__":
    app()
