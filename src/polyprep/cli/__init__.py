"""Command-line interface for polyprep.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- Validation reports per ring
- Boolean operations and self-intersection splitting on documents
- Progress bars for batch preparation
- Detailed error reporting
"""

from polyprep.cli.app import app, cli, main

__all__ = ["app", "cli", "main"]
