"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with progress bars, tables, and formatted messages.
"""

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from polyprep.domain import Point

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def create_progress() -> Progress:
    """Create a rich progress bar for shape processing.

    Returns:
        Configured Progress instance with bar and time elapsed.
    """
    return Progress(
        TextColumn("  "),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]Polyprep[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator.

    Args:
        message: Step description message
    """
    console.print(f"\n{SYM_STEP} {message}")


def print_document_info(document_path: str, shape_count: int) -> None:
    """Print input document information."""
    line = Text("  ")
    line.append(document_path)
    console.print(line)
    console.print(f"  {shape_count:,} shapes")


def create_ring_table(title: str) -> Table:
    """Create the validation report table used by the check command."""
    table = Table(title=title, title_justify="left", show_lines=False)
    table.add_column("Shape")
    table.add_column("Ring")
    table.add_column("Vertices", justify="right")
    table.add_column("Area", justify="right")
    table.add_column("Winding")
    table.add_column("Status")
    return table


def print_ring(title: str, points: list[Point], status: str | None = None) -> None:
    """Print the vertices of one ring.

    Args:
        title: Table title
        points: Ring vertices in order
        status: Optional status line printed below the table
    """
    table = Table(title=title, title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    for index, point in enumerate(points):
        table.add_row(str(index), f"{point.x:g}", f"{point.y:g}")
    console.print(table)
    if status:
        console.print(f"  {SYM_DOT} {status}")


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def print_processing_info(workers: int, is_auto: bool = False) -> None:
    """Print processing configuration.

    Args:
        workers: Number of parallel workers
        is_auto: Whether the count was auto-detected
    """
    auto_suffix = " (auto)" if is_auto else ""
    console.print(f"  {workers} workers{auto_suffix} {SYM_DOT} Ctrl+C to cancel")


def print_success(
    output_path: str,
    total_time_s: float,
    processed: int,
    constraints: int,
    rings_split: int,
    holes_merged: int,
    errors: int,
) -> None:
    """Print success message with summary.

    Args:
        output_path: Path to output file
        total_time_s: Total processing time in seconds
        processed: Number of shapes processed
        constraints: Total number of constraint edges emitted
        rings_split: Number of self-intersecting rings decomposed
        holes_merged: Number of overlapping hole pairs merged
        errors: Number of shapes that failed
    """
    time_str = _format_time(total_time_s)

    console.print(f"\n[bold green]{SYM_OK} Complete[/bold green] in {time_str}")

    line = Text("  ")
    line.append(output_path, style="bold")
    console.print(line)

    error_style = "red" if errors > 0 else "green"
    console.print(
        f"  {processed} shapes {SYM_DOT} {constraints} constraints {SYM_DOT} "
        f"{rings_split} split {SYM_DOT} {holes_merged} merged {SYM_DOT} "
        f"[{error_style}]{errors} errors[/{error_style}]"
    )


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")


def print_cancellation_notice() -> None:
    """Print cancellation acknowledgment."""
    console.print(f"\n{SYM_DOT} Cancelling... waiting for in-progress shapes")


def print_cancellation_summary(processed: int, cancelled: int) -> None:
    """Print cancellation summary.

    Args:
        processed: Number of shapes successfully processed before cancellation
        cancelled: Number of pending tasks that were cancelled
    """
    console.print(f"\n{SYM_DOT} [bold]Cancelled[/bold]")
    console.print(f"  {processed} shapes completed {SYM_DOT} {cancelled} tasks cancelled")
    console.print("  No output file created")
