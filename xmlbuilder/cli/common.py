"""
Common CLI options and callbacks for xmlbuilder.

This module provides reusable option classes and callbacks for CLI commands.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

import typer

from xmlbuilder.core.logging_utils import (
    verbose_callback,
    quiet_callback,
    log_level_callback,
    log_file_callback,
    log_format_callback,
)
from xmlbuilder.core.xml.query import ResultKind


class CommonOptions:
    """Base class for common command options."""

    def __init__(self):
        self.verbose = False
        self.quiet = False
        self.log_level = "info"
        self.log_file = None
        self.log_format = "text"

    @staticmethod
    def apply_to_app(app: typer.Typer):
        """Apply common options to the application."""

        @app.callback()
        def callback(
            verbose: bool = typer.Option(
                False, "--verbose", "-v", help="Enable verbose output", callback=verbose_callback
            ),
            quiet: bool = typer.Option(
                False, "--quiet", "-q", help="Suppress console output", callback=quiet_callback
            ),
            log_level: str = typer.Option(
                "info",
                "--log-level",
                "-l",
                help="Set log level (debug, info, warning, error, critical)",
                callback=log_level_callback,
            ),
            log_file: Optional[str] = typer.Option(
                None, "--log-file", "-f", help="Log to file", callback=log_file_callback
            ),
            log_format: str = typer.Option(
                "text", "--log-format", help="Log record format (text, json)", callback=log_format_callback
            ),
        ):
            """Build, query and format XML documents"""
            # Configure logging (done by callbacks)
            pass


def file_callback(value: str) -> str:
    """
    Validate that the specified file exists.

    Args:
        value: The file path

    Returns:
        The validated file path

    Raises:
        typer.BadParameter: If the file does not exist
    """
    if not os.path.exists(value):
        raise typer.BadParameter(f"File does not exist: {value}")
    return value


def optional_file_callback(value: Optional[Path]) -> Optional[Path]:
    """Validate an optional file option, passing None through."""
    if value is None:
        return None
    file_callback(str(value))
    return value


def complete_result_kinds() -> List[str]:
    """Auto-complete XPath result kinds."""
    return [kind.value for kind in ResultKind]


def kind_callback(value: str) -> str:
    """
    Validate an XPath result kind.

    Raises:
        typer.BadParameter: If the kind is not supported
    """
    value = value.lower()
    supported = complete_result_kinds()
    if value not in supported:
        raise typer.BadParameter(
            f"Result kind '{value}' not supported. Valid kinds: {', '.join(supported)}"
        )
    return value


def parse_namespace_options(values: Optional[List[str]]) -> Dict[str, str]:
    """
    Turn repeated ``--ns prefix=uri`` options into a prefix mapping.

    Raises:
        typer.BadParameter: If an option is not of the form prefix=uri
    """
    namespaces = {}
    for value in values or []:
        prefix, sep, uri = value.partition("=")
        if not sep or not prefix or not uri:
            raise typer.BadParameter(f"Namespace must be given as prefix=uri, got '{value}'")
        namespaces[prefix] = uri
    return namespaces
