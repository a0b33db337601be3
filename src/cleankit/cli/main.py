"""Command-line interface for CleanKit."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import typer
    from rich.console import Console
    from rich.table import Table
    from rich.panel import Panel
    from rich.progress import Progress
    from rich.markup import escape
except ImportError:
    print("CLI dependencies not installed. Install with: pip install cleankit[cli]")
    sys.exit(1)

app = typer.Typer(
    name="cleankit",
    help="Format-aware cleaning for CSV, JSON, code and text.",
    add_completion=False,
)
console = Console()


@app.command()
def clean(
    input_path: Optional[Path] = typer.Argument(
        None,
        help="File to clean. Use - for stdin.",
    ),
    text: Optional[str] = typer.Option(
        None,
        "--text", "-t",
        help="Text to clean directly.",
    ),
    cleaner: Optional[str] = typer.Option(
        None,
        "--cleaner", "-C",
        help="Cleaner id. Guessed from the file extension when omitted.",
    ),
    option: Optional[List[str]] = typer.Option(
        None,
        "--option", "-O",
        help="Cleaner option as key=value (repeatable). Values are parsed as JSON when possible.",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to configuration YAML file.",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output-file", "-w",
        help="Write the cleaned text here instead of stdout.",
    ),
    show_metadata: bool = typer.Option(
        False,
        "--metadata", "-m",
        help="Print result metadata as JSON to stderr.",
    ),
):
    """
    Clean a single document.

    Examples:

        cleankit clean data.csv

        cleankit clean --text '{"b":1,"a":2}' --cleaner json -O sort_keys=true

        cat script.py | cleankit clean - --cleaner code -O indent_size=4
    """
    from cleankit import CleanKitError

    if text is not None:
        content, source = text, None
    elif input_path:
        content, source = _read_input(input_path), input_path
    else:
        console.print("[red]Error: Provide either --text or a file path[/red]")
        raise typer.Exit(1)

    orchestrator = _build_orchestrator(config)
    cleaner_id = cleaner or _guess_cleaner(orchestrator, source)

    try:
        result = orchestrator.process(content, cleaner_id, _parse_options(option))
    except CleanKitError as e:
        console.print(f"[red]Cleaning failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if output_file:
        output_file.write_text(result.output, encoding="utf-8")
        console.print(f"[green]Wrote {output_file}[/green]")
    else:
        sys.stdout.write(result.output)
        if not result.output.endswith("\n"):
            sys.stdout.write("\n")

    if show_metadata:
        err_console = Console(stderr=True)
        err_console.print_json(json.dumps(result.metadata, default=str))


@app.command()
def batch(
    paths: List[Path] = typer.Argument(
        ...,
        help="Files or directories to clean.",
    ),
    cleaner: Optional[str] = typer.Option(
        None,
        "--cleaner", "-C",
        help="Cleaner id. Guessed from the first file's extension when omitted.",
    ),
    option: Optional[List[str]] = typer.Option(
        None,
        "--option", "-O",
        help="Cleaner option as key=value (repeatable).",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to configuration YAML file.",
    ),
    stop_on_error: bool = typer.Option(
        False,
        "--stop-on-error",
        help="Abort the batch at the first failing file.",
    ),
    chunk_size: Optional[int] = typer.Option(
        None,
        "--chunk-size",
        min=1,
        help="Process files in chunks of this size.",
    ),
    export: Optional[str] = typer.Option(
        None,
        "--export", "-e",
        help="Export format: json, csv, zip",
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out", "-o",
        help="Export destination (file for json/csv, directory for zip).",
    ),
):
    """
    Clean many files with one cleaner.

    Examples:

        cleankit batch ./exports/ --cleaner csv

        cleankit batch a.json b.json --export json --out report.json

        cleankit batch ./src --cleaner code --export zip --out ./cleaned
    """
    from cleankit import BatchCoordinator, CleanKitError, export_results

    items = _collect_items(paths)
    if not items:
        console.print("[yellow]No files to clean[/yellow]")
        raise typer.Exit(0)

    orchestrator = _build_orchestrator(config)
    cleaner_id = cleaner or _guess_cleaner(orchestrator, Path(items[0]["name"]))
    coordinator = BatchCoordinator(orchestrator)

    with Progress(console=console, transient=True) as progress:
        task = progress.add_task(f"Cleaning with {cleaner_id}", total=len(items))
        try:
            result = coordinator.process_batch(
                items,
                cleaner_id,
                _parse_options(option),
                continue_on_error=not stop_on_error,
                chunk_size=chunk_size,
                on_progress=lambda update: progress.update(task, completed=update.processed),
            )
        except CleanKitError as e:
            console.print(f"[red]Batch rejected: {escape(str(e))}[/red]")
            raise typer.Exit(1)

    _print_batch(result)

    if export:
        try:
            exported = export_results(result, export)
        except CleanKitError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            raise typer.Exit(1)
        _write_export(exported, export, out)

    if result.failed or result.aborted:
        raise typer.Exit(1)


@app.command()
def cleaners(
    output: str = typer.Option(
        "text",
        "--output", "-o",
        help="Output format: text, json",
    ),
):
    """List the available cleaners."""
    from cleankit import create_default_registry

    descriptors = create_default_registry().list()

    if output == "json":
        print(json.dumps([d.to_dict() for d in descriptors], indent=2))
        return

    table = Table(title="Cleaners")
    table.add_column("Id", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Extensions")
    table.add_column("Description")
    for descriptor in descriptors:
        table.add_row(
            descriptor.id,
            descriptor.name,
            " ".join(descriptor.supported_extensions),
            descriptor.description,
        )
    console.print(table)


@app.command("config")
def config_cmd(
    action: str = typer.Argument(
        "show",
        help="Action: show, validate, init",
    ),
    path: Optional[Path] = typer.Argument(
        None,
        help="Path to config file (for validate/init).",
    ),
    force: bool = typer.Option(
        False,
        "--force", "-f",
        help="Overwrite an existing file on init.",
    ),
):
    """
    Manage CleanKit configuration.

    Actions:
        show      - Show current configuration
        validate  - Validate a configuration file
        init      - Create a default configuration file
    """
    from cleankit import CleanKitConfig

    if action == "show":
        config = CleanKitConfig.load(path)
        console.print(Panel(
            json.dumps(config.to_dict(), indent=2),
            title="Current Configuration",
        ))

    elif action == "validate":
        if not path:
            console.print("[red]Please provide a config file path[/red]")
            raise typer.Exit(1)

        try:
            CleanKitConfig.from_yaml(path)
        except Exception as e:
            console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
            raise typer.Exit(1)
        console.print("[green]Configuration is valid![/green]")

    elif action == "init":
        output_path = path or Path("cleankit.yaml")
        if output_path.exists() and not force:
            if not typer.confirm(f"{output_path} exists. Overwrite?"):
                raise typer.Exit(0)

        CleanKitConfig().to_yaml(output_path)
        console.print(f"[green]Created {output_path}[/green]")

    else:
        console.print(f"[red]Unknown action: {action}[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show CleanKit version."""
    from cleankit import __version__
    console.print(f"cleankit {__version__}")


# Helper functions

def _build_orchestrator(config: Optional[Path]):
    from cleankit import CleaningOrchestrator

    try:
        return CleaningOrchestrator(config=config)
    except Exception as e:
        console.print(f"[red]Failed to initialize CleanKit: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _read_input(path: Path) -> str:
    if str(path) == "-":
        return sys.stdin.read()
    if not path.is_file():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


def _guess_cleaner(orchestrator, source: Optional[Path]) -> str:
    """Pick a cleaner from the file extension, else the configured default."""
    if source is not None and source.suffix:
        found = orchestrator.registry.find_by_extension(source.suffix)
        if found:
            return found
    return orchestrator.config.processing.default_cleaner


def _parse_options(pairs: Optional[List[str]]) -> Optional[Dict[str, Any]]:
    """Turn ``key=value`` strings into an options dict."""
    if not pairs:
        return None
    options: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            console.print(f"[red]Invalid option {pair!r}, expected key=value[/red]")
            raise typer.Exit(1)
        try:
            options[key.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            options[key.strip()] = raw
    return options


def _collect_items(paths: List[Path]) -> List[Dict[str, Any]]:
    """Load files (directories recursively) as batch item dicts."""
    files: List[Path] = []
    for path in paths:
        if not path.exists():
            console.print(f"[red]Path not found: {path}[/red]")
            raise typer.Exit(1)
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if p.is_file()))
        else:
            files.append(path)

    items = []
    for file_path in files:
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[yellow]Warning: Could not read {file_path}: {escape(str(e))}[/yellow]")
            continue
        stat = file_path.stat()
        items.append({
            "name": file_path.name,
            "content": content,
            "size": stat.st_size,
            "last_modified": stat.st_mtime,
        })
    return items


def _print_batch(result) -> None:
    """Output batch results as a table plus summary line."""
    table = Table(title=f"Batch {result.batch_id}")
    table.add_column("File", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Time (ms)", justify="right")
    table.add_column("Error")

    for entry in result.ordered():
        if entry.success:
            table.add_row(
                escape(entry.name),
                "[green]OK[/green]",
                f"{entry.original_size} -> {entry.processed_size}",
                f"{entry.processing_time:.2f}",
                "",
            )
        else:
            table.add_row(
                escape(entry.name), "[red]FAILED[/red]", str(entry.original_size), "", escape(entry.error)
            )
    console.print(table)

    summary = result.summary
    line = (
        f"{summary.successful_files}/{result.total_items} succeeded, "
        f"size reduction {summary.size_reduction:.2f}%, "
        f"{summary.total_batch_time:.2f}ms total"
    )
    if result.aborted:
        console.print(f"\n[red]Aborted: {line}[/red]")
    elif summary.failed_files:
        console.print(f"\n[yellow]{line}[/yellow]")
    else:
        console.print(f"\n[green]{line}[/green]")


def _write_export(exported, fmt: str, out: Optional[Path]) -> None:
    if fmt.lower() == "zip":
        directory = out or Path(Path(exported.filename).stem)
        written = exported.write_to(directory)
        console.print(f"[green]Wrote {len(written)} files to {directory}[/green]")
        return
    if out is None:
        print(exported)
        return
    out.write_text(exported, encoding="utf-8")
    console.print(f"[green]Wrote {out}[/green]")


if __name__ == "__main__":
    app()
