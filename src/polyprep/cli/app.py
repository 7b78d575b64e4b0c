"""CLI application entry point for polyprep.

This module provides the main CLI interface using Typer.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from polyprep import __version__
from polyprep.cli.output import (
    SYM_DOT,
    SYM_ERR,
    SYM_OK,
    console,
    create_progress,
    create_ring_table,
    print_cancellation_notice,
    print_cancellation_summary,
    print_document_info,
    print_error,
    print_header,
    print_processing_info,
    print_ring,
    print_step,
    print_success,
)
from polyprep.config import PolyprepSettings, ProcessingConfig
from polyprep.core import (
    BooleanOpEngine,
    PolygonPreprocessor,
    SelfIntersectionSplitter,
    polygon_error_names,
)
from polyprep.domain import PointRing, Shape
from polyprep.exceptions import (
    ConfigurationError,
    DocumentLoadError,
    DocumentSaveError,
    PolyprepError,
)
from polyprep.io import PolygonReader, PolygonWriter, write_shape_document
from polyprep.utils import configure_logging

BOOLEAN_OPERATIONS = ("union", "intersect", "subtract")

# Create the Typer app
app = typer.Typer(
    name="polyprep",
    help="Prepare 2D polygons with holes for constrained triangulation.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Polyprep[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_options(
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Prepare 2D polygons with holes for constrained triangulation."""
    try:
        configure_logging(log_file=log_file, console_level=log_level)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1)


def _load_shapes(document: Path) -> list[Shape]:
    """Load every shape of a document, exiting with code 1 on failure."""
    if not document.is_file():
        print_error(
            f"Input file not found: {document}",
            details=f"The file '{document}' does not exist or is not a file.",
        )
        raise typer.Exit(code=1)

    try:
        with PolygonReader(document) as reader:
            return list(reader.iter_shapes())
    except DocumentLoadError as e:
        print_error(f"Could not load document: {e.reason}")
        raise typer.Exit(code=1)


@app.command()
def check(
    document: Annotated[
        Path,
        typer.Argument(help="Path to a JSON polygon document", show_default=False),
    ],
    convexity: Annotated[
        bool,
        typer.Option("--convexity", help="Also report non-convex rings"),
    ] = False,
) -> None:
    """Validate every ring of every shape and print a report."""
    shapes = _load_shapes(document)
    table = create_ring_table(f"{document.name}")
    failing = 0
    total = 0

    for shape in shapes:
        rings = [("outer", shape.outer)]
        rings.extend((f"hole[{i}]", hole) for i, hole in enumerate(shape.holes))
        for label, points in rings:
            ring = PointRing(points)
            error = ring.check_polygon(check_convexity=convexity)
            total += 1
            if error:
                failing += 1
                names = polygon_error_names(error)
                status = f"[red]{SYM_ERR} {', '.join(names)}[/red]"
            else:
                status = f"[green]{SYM_OK} ok[/green]"
            table.add_row(
                shape.name,
                label,
                str(len(ring)),
                f"{ring.area():g}",
                ring.winding_order.value,
                status,
            )

    console.print(table)
    console.print(f"  {total} rings {SYM_DOT} {failing} with errors")


@app.command()
def boolean(
    operation: Annotated[
        str,
        typer.Argument(help="Operation (union|intersect|subtract)", show_default=False),
    ],
    document: Annotated[
        Path,
        typer.Argument(help="Document whose first two shapes are the operands", show_default=False),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the result ring as a shape document"),
    ] = None,
) -> None:
    """Combine the outer rings of the first two shapes of a document."""
    operation = operation.lower()
    if operation not in BOOLEAN_OPERATIONS:
        print_error(
            f"Invalid operation: {operation}",
            details=f"Valid values: {', '.join(BOOLEAN_OPERATIONS)}",
        )
        raise typer.Exit(code=1)

    shapes = _load_shapes(document)
    if len(shapes) < 2:
        print_error(f"Need two shapes, found {len(shapes)}")
        raise typer.Exit(code=1)

    first, second = shapes[0], shapes[1]
    engine = BooleanOpEngine()
    try:
        ring, error = getattr(engine, operation)(PointRing(first.outer), PointRing(second.outer))
    except PolyprepError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    print_ring(f"{first.name} {operation} {second.name}", ring.points, status=error.value)

    if output is not None:
        try:
            write_shape_document([Shape(name=operation, outer=ring.points)], output)
        except DocumentSaveError as e:
            print_error(f"Could not save document: {e.reason}")
            raise typer.Exit(code=1)


@app.command()
def split(
    document: Annotated[
        Path,
        typer.Argument(help="Path to a JSON polygon document", show_default=False),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the simple rings as a shape document"),
    ] = None,
) -> None:
    """Split self-intersecting outer rings into simple rings."""
    shapes = _load_shapes(document)
    splitter = SelfIntersectionSplitter()
    results: list[Shape] = []
    failures = 0

    for shape in shapes:
        ring = PointRing(shape.outer)
        if len(ring) >= 3 and ring.is_simple():
            results.append(shape)
            continue
        try:
            pieces = splitter.split(ring)
        except PolyprepError as e:
            failures += 1
            print_error(f"{shape.name}: {e}")
            continue
        for index, piece in enumerate(pieces):
            name = f"{shape.name}/part[{index}]"
            print_ring(name, piece.points)
            results.append(Shape(name=name, outer=piece.points))

    console.print(
        f"  {len(shapes)} shapes {SYM_DOT} {len(results)} rings {SYM_DOT} {failures} failed"
    )

    if output is not None:
        try:
            write_shape_document(results, output)
        except DocumentSaveError as e:
            print_error(f"Could not save document: {e.reason}")
            raise typer.Exit(code=1)

    if failures:
        raise typer.Exit(code=1)


@app.command()
def prepare(
    document: Annotated[
        Path,
        typer.Argument(help="Path to a JSON polygon document", show_default=False),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path (default: {name}-prepared.json)",
        ),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-j",
            help="Number of parallel workers (default: auto)",
            min=1,
        ),
    ] = None,
    bias: Annotated[
        float,
        typer.Option("--bias", help="Join vertices closer than this to their predecessor", min=0.0),
    ] = 0.0,
    merge_parallel: Annotated[
        float | None,
        typer.Option("--merge-parallel", help="Merge nearly parallel edges with this tolerance"),
    ] = None,
    no_split: Annotated[
        bool,
        typer.Option("--no-split", help="Drop self-intersecting rings instead of splitting them"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Minimal console output"),
    ] = False,
) -> None:
    """Prepare every shape of a document for triangulation.

    Example:
        polyprep prepare shapes.json

    This will create shapes-prepared.json with the contour trees and
    constraint edges of every shape.
    """
    if not quiet:
        print_header(__version__)
        print_step("Loading document")

    shapes = _load_shapes(document)

    if not quiet:
        print_document_info(str(document), len(shapes))

    if not shapes:
        if not quiet:
            console.print("\nNo shapes found. Nothing to process.")
        raise typer.Exit(code=0)

    settings = PolyprepSettings(
        processing=ProcessingConfig(
            simplify_bias=bias,
            merge_parallel_tolerance=merge_parallel,
            split_self_intersections=not no_split,
            max_workers=workers,
        ),
    )
    output_path = output if output is not None else PolygonWriter.get_prepared_path(document)
    processor = PolygonPreprocessor(settings)

    if not quiet:
        print_step("Processing")
        print_processing_info(workers or os.cpu_count() or 1, is_auto=(workers is None))

    try:
        if not quiet:
            with create_progress() as progress:
                task_id = progress.add_task(f"Processing {len(shapes)} shapes", total=len(shapes))

                def update_progress(completed: int, *_: object) -> None:
                    progress.update(task_id, completed=completed)

                prepared, stats = processor.prepare_batch(
                    shapes, max_workers=workers, progress_callback=update_progress
                )
        else:
            prepared, stats = processor.prepare_batch(shapes, max_workers=workers)
    except KeyboardInterrupt:
        if not quiet:
            print_cancellation_notice()
            print_cancellation_summary(processed=0, cancelled=len(shapes))
        raise typer.Exit(code=130) from None  # Standard Unix SIGINT exit code

    writer = PolygonWriter(output_path)
    for result in prepared:
        writer.add(result)
    try:
        writer.save()
    except DocumentSaveError as e:
        print_error(f"Could not save document: {e.reason}")
        raise typer.Exit(code=1)

    for shape_name, message in stats.errors:
        print_error(f"{shape_name}: {message}")

    if not quiet:
        print_success(
            output_path=str(output_path),
            total_time_s=stats.duration_seconds,
            processed=stats.processed_count,
            constraints=stats.constraints_emitted,
            rings_split=stats.rings_split,
            holes_merged=stats.holes_merged,
            errors=stats.error_count,
        )

    if stats.error_count and not stats.processed_count:
        raise typer.Exit(code=1)


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
