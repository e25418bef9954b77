"""
Main CLI application for xmlbuilder.

This module provides the main Typer application and its global error handling.
"""

import sys
import logging

import typer
from lxml import etree

from xmlbuilder.core.logging_utils import configure_logging
from .common import CommonOptions

# Create main Typer app with auto-completion support
app = typer.Typer(
    help="xmlbuilder CLI",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Get logger
logger = logging.getLogger("xmlbuilder")

# Apply common options to the app
CommonOptions.apply_to_app(app)

# Set up logging once, options may reconfigure it later
configure_logging(level="info")


# ===== Exception Handler =====
def _global_exception_handler(exc_type, exc_value, exc_traceback):
    """
    Global exception handler for unhandled exceptions.
    Provides more user-friendly error messages for common issues.
    """
    from xmlbuilder import (
        XmlBuilderError, ParseError, SourceError, QueryError, XmlBuilderRuntimeError
    )

    if isinstance(exc_value, XmlBuilderRuntimeError):
        exc_value = exc_value.cause

    if isinstance(exc_value, XmlBuilderError):
        if isinstance(exc_value, ParseError):
            logger.error(f"XML parsing error: {exc_value}")
        elif isinstance(exc_value, SourceError):
            logger.error(f"Cannot read input: {exc_value}")
        elif isinstance(exc_value, QueryError):
            logger.error(f"XPath error: {exc_value}")
        else:
            logger.error(f"{type(exc_value).__name__}: {exc_value}")
        sys.exit(1)
    elif isinstance(exc_value, etree.XMLSyntaxError):
        logger.error(f"XML syntax error: {exc_value}")
        sys.exit(1)
    elif isinstance(exc_value, PermissionError):
        logger.error(f"Permission denied: {exc_value}")
        sys.exit(1)
    else:
        logger.error(f"Unexpected error: {exc_type.__name__}: {exc_value}")
        if logger.getEffectiveLevel() <= logging.DEBUG:
            import traceback
            logger.debug("Traceback:")
            for line in traceback.format_tb(exc_traceback):
                logger.debug(line.rstrip())
        sys.exit(1)


# Set up the global exception handler
sys.excepthook = _global_exception_handler

# Register commands; must come after app is created
from .commands import xml_commands  # noqa: E402,F401
