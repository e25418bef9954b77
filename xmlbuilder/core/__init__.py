"""
Core package for xmlbuilder.

- xmlbuilder.core.xml: building, parsing, querying and rendering documents
- xmlbuilder.core.exceptions: error hierarchy
- xmlbuilder.core.settings: process-wide defaults
- xmlbuilder.core.logging_utils: logging configuration
"""

from . import xml
