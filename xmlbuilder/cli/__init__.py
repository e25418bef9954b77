"""
CLI package for xmlbuilder.

This module organizes the command-line interface for xmlbuilder.
"""

from .app import app
from .common import CommonOptions

__all__ = ["app", "CommonOptions"]
