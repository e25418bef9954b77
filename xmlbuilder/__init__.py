"""
xmlbuilder

Build, parse, query and render XML documents with chained method calls.
"""

import logging

from .core.exceptions import (
    XmlBuilderError, ConfigurationError, ParseError, SourceError, StateError,
    UnsupportedOperationError, InvalidArgumentError, QueryError, RenderError,
    XmlBuilderRuntimeError
)
from .core.settings import settings, get_setting
from .core.xml import (
    XmlBuilder, RuntimeXmlBuilder, XmlDocument, NamespaceContext, NodeKind,
    ResultKind, XML_NAMESPACE
)

__version__ = "1.3.0"

# Set up logging
logger = logging.getLogger("xmlbuilder")
logger.addHandler(logging.NullHandler())
