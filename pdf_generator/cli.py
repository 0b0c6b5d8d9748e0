"""
Command-line interface for PDF generator.
"""

import json
import logging
import os
import sys

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeRemainingColumn
from rich.table import Table

from pdf_generator import __version__
from pdf_generator.batch import BatchGenerator
from pdf_generator.config import GeneratorConfig
from pdf_generator.generator import PDFGenerator
from pdf_generator.options import BatchOptions
from pdf_generator.stores.filesystem import FileBlobStore, FileTemplateStore
from pdf_generator.utils import format_file_size

console = Console()


def _load_json(path):
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


def _build_generator(store):
    return PDFGenerator(FileTemplateStore(store), FileBlobStore(store), GeneratorConfig.from_env())


def _build_options(output_format, watermark, title, author):
    options = {"outputFormat": output_format}
    if watermark:
        options["watermark"] = {"text": watermark}
    metadata = {key: value for key, value in (("title", title), ("author", author)) if value}
    if metadata:
        options["metadata"] = metadata
    return options


def _print_diagnostics(result):
    for error in result.errors:
        target = f" ({error.field})" if error.field else ""
        console.print(f"  [red]✗ {error.code}{target}:[/red] {error.message}")
    for warning in result.warnings:
        target = f" ({warning.field})" if warning.field else ""
        console.print(f"  [yellow]! {warning.code}{target}:[/yellow] {warning.message}")


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
def cli(verbose):
    """
    PDF Generator CLI - Fill PDF templates with JSON data.
    """
    if verbose:
        logging.getLogger("pdf_generator").setLevel(logging.DEBUG)
        for name in list(logging.root.manager.loggerDict):
            if name.startswith("pdf_generator"):
                logging.getLogger(name).setLevel(logging.DEBUG)


@cli.command(name="generate")
@click.argument('template_id')
@click.option(
    '--store', '-s',
    required=True,
    help='Store directory holding templates/ and blobs/',
    type=click.Path(exists=True, file_okay=False)
)
@click.option(
    '--data', '-d',
    'data_file',
    required=True,
    help='JSON file with the field data',
    type=click.Path(exists=True, dir_okay=False)
)
@click.option(
    '--output', '-o',
    default=None,
    help='Output PDF file (defaults to <template id>.pdf)',
    type=click.Path()
)
@click.option(
    '--format', 'output_format',
    default='buffer',
    type=click.Choice(['buffer', 'base64', 'url']),
    help='Output format'
)
@click.option('--watermark', default=None, help='Watermark text drawn on every page')
@click.option('--title', default=None, help='Document title')
@click.option('--author', default=None, help='Document author')
def generate(template_id, store, data_file, output, output_format, watermark, title, author):
    """
    Generate a filled PDF from a stored template.

    Examples:

        pdf-generator generate invoice -s ./store -d invoice.json

        pdf-generator generate invoice -s ./store -d invoice.json --watermark DRAFT

        pdf-generator generate invoice -s ./store -d invoice.json --format url
    """
    try:
        data = _load_json(data_file)
        generator = _build_generator(store)

        console.print(f"\n[bold cyan]Generating {template_id}...[/bold cyan]")
        result = generator.generate(template_id, data, _build_options(output_format, watermark, title, author))

        if not result.success:
            error = result.errors[0]
            console.print(f"[bold red]✗ Error:[/bold red] {error.code}: {error.message}")
            if isinstance(error.details, list):
                for detail in error.details:
                    console.print(f"  • {detail}")
            sys.exit(1)

        if result.pdf_buffer is not None:
            output = output or f"{template_id}.pdf"
            with open(output, "wb") as handle:
                handle.write(result.pdf_buffer)
            console.print(f"\n[bold green]✓ Successfully created:[/bold green] {output}")
        elif output_format == "base64":
            if output:
                with open(output, "w", encoding="ascii") as handle:
                    handle.write(result.pdf_base64)
                console.print(f"\n[bold green]✓ Base64 written to:[/bold green] {output}")
            else:
                click.echo(result.pdf_base64)
        else:
            console.print(f"\n[bold green]✓ Stored at:[/bold green] {result.download_url}")

        meta = result.metadata
        console.print(
            f"[dim]{meta.page_count} page(s), {format_file_size(meta.file_size)}, "
            f"{meta.fields_processed} field(s) processed, {meta.fields_skipped} skipped, "
            f"{meta.processing_time:.1f} ms[/dim]"
        )
        _print_diagnostics(result)
        console.print()

    except json.JSONDecodeError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] Invalid JSON data: {e}")
        sys.exit(1)
    except OSError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)
    except ValueError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command(name="validate")
@click.argument('template_id')
@click.option('--store', '-s', required=True, type=click.Path(exists=True, file_okay=False),
              help='Store directory holding templates/ and blobs/')
@click.option('--data', '-d', 'data_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='JSON file with the field data')
def validate(template_id, store, data_file):
    """
    Check data against a template without rendering.

    Example:

        pdf-generator validate invoice -s ./store -d invoice.json
    """
    try:
        data = _load_json(data_file)
        result = _build_generator(store).validate_template_data(template_id, data)

        for message in result.errors:
            console.print(f"  [red]✗[/red] {message}")
        for message in result.warnings:
            console.print(f"  [yellow]![/yellow] {message}")

        if result.is_valid:
            console.print("\n[bold green]✓ Data is valid[/bold green]\n")
        else:
            console.print(f"\n[bold red]✗ {len(result.errors)} validation error(s)[/bold red]\n")
            sys.exit(1)

    except json.JSONDecodeError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] Invalid JSON data: {e}")
        sys.exit(1)
    except OSError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command(name="batch")
@click.argument('template_id')
@click.option('--store', '-s', required=True, type=click.Path(exists=True, file_okay=False),
              help='Store directory holding templates/ and blobs/')
@click.option('--data', '-d', 'data_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='JSON file holding an array of records')
@click.option(
    '--output-dir', '-o',
    default='./output',
    help='Output directory for generated documents',
    type=click.Path()
)
@click.option('--concurrent', '-c', default=None, type=click.IntRange(1, 10), help='Worker count')
@click.option('--fail-fast', is_flag=True, help='Stop after the first failed record')
@click.option('--prefix', '-p', default=None, help='Prefix for output filenames')
def batch(template_id, store, data_file, output_dir, concurrent, fail_fast, prefix):
    """
    Generate one PDF per record of a JSON array.

    Example:

        pdf-generator batch certificate -s ./store -d people.json -o certificates -c 4
    """
    try:
        records = _load_json(data_file)
        if not isinstance(records, list):
            console.print("[bold red]✗ Error:[/bold red] Batch data must be a JSON array")
            sys.exit(1)

        generator = _build_generator(store)
        batch_options = BatchOptions(
            concurrent=concurrent or generator.config.batch_concurrency,
            fail_fast=fail_fast,
        )

        console.print(f"\n[bold cyan]Generating {len(records)} document(s)...[/bold cyan]")
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=console
        ) as progress:
            task = progress.add_task("Generating", total=len(records))

            def update_progress(index, completed, total):
                progress.update(task, completed=completed)

            result = BatchGenerator(generator).generate_many(
                template_id,
                records,
                {"outputFormat": "buffer"},
                batch_options,
                progress_callback=update_progress,
            )

        os.makedirs(output_dir, exist_ok=True)
        prefix = prefix or template_id
        padding = max(3, len(str(len(records))))
        for item in result.results:
            if item.success and item.result is not None:
                path = os.path.join(output_dir, f"{prefix}_{item.index + 1:0{padding}d}.pdf")
                with open(path, "wb") as handle:
                    handle.write(item.result.pdf_buffer)

        summary = Table(title="Batch Summary", show_header=False)
        summary.add_column("Property", style="cyan")
        summary.add_column("Value", style="green")
        summary.add_row("Records", str(result.total_requests))
        summary.add_row("Successful", str(result.successful_requests))
        summary.add_row("Failed", str(result.failed_requests))
        summary.add_row("Time", f"{result.processing_time:.1f} ms")
        console.print()
        console.print(summary)

        if result.failed_requests:
            console.print("\n[bold red]Failed Records:[/bold red]")
            for item in result.results:
                if not item.success:
                    console.print(f"  ✗ record {item.index + 1}: {item.error}")

        console.print(f"[dim]Output directory: {os.path.abspath(output_dir)}[/dim]\n")
        sys.exit(0 if result.success else 1)

    except json.JSONDecodeError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] Invalid JSON data: {e}")
        sys.exit(1)
    except OSError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command(name="fields")
@click.argument('template_id')
@click.option('--store', '-s', required=True, type=click.Path(exists=True, file_okay=False),
              help='Store directory holding templates/ and blobs/')
def show_fields(template_id, store):
    """
    List the fields a template declares.

    Example:

        pdf-generator fields invoice -s ./store
    """
    try:
        templates = FileTemplateStore(store)
        template = templates.get_template(template_id)
        if template is None:
            console.print(f"[bold red]✗ Error:[/bold red] Template not found: {template_id}")
            sys.exit(1)

        table = Table(title=f"Fields: {template.name}")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Name", style="green")
        table.add_column("Type")
        table.add_column("Page", justify="right")
        table.add_column("Position", justify="right")
        table.add_column("Size", justify="right")
        table.add_column("Required")

        for field in templates.get_fields(template_id):
            table.add_row(
                field.id,
                field.path,
                field.type_name,
                str(field.page),
                f"{field.position.x:g}, {field.position.y:g}",
                f"{field.dimensions.width:g} x {field.dimensions.height:g}",
                "Yes" if field.required else "No",
            )

        console.print()
        console.print(table)
        console.print()

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == '__main__':
    cli()
