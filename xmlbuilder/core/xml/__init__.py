"""
XML package for xmlbuilder.

The package is organized into several modules:
- builder: the fluent XmlBuilder cursor and its runtime-error variant
- document: creating and parsing documents
- query: XPath evaluation
- serializer: rendering documents and elements to text
- namespaces: prefix/namespace lookup for XPath

Most common functionality is available from the package directly.
"""

from .builder import BuilderFactory, RuntimeXmlBuilder, XmlBuilder
from .document import (
    NodeKind,
    XmlDocument,
    create_document,
    make_parser,
    node_kind,
    parse_document,
    strip_whitespace_only_text_nodes,
)
from .namespaces import NamespaceContext, XML_NAMESPACE
from .query import ResultKind, evaluate, find_element
from .serializer import DEFAULT_OUTPUT_OPTIONS, render

__all__ = [
    # Classes
    "XmlBuilder",
    "RuntimeXmlBuilder",
    "BuilderFactory",
    "XmlDocument",
    "NamespaceContext",
    "NodeKind",
    "ResultKind",
    # Documents
    "create_document",
    "parse_document",
    "make_parser",
    "node_kind",
    "strip_whitespace_only_text_nodes",
    # Queries
    "evaluate",
    "find_element",
    # Output
    "render",
    "DEFAULT_OUTPUT_OPTIONS",
    "XML_NAMESPACE",
]
