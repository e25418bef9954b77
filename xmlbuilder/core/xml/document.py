"""
Document factory for xmlbuilder.

This module creates new XML documents and parses existing ones into an
XmlDocument, the single tree shared by every builder derived from it.

Security: external entity resolution and network access are disabled by
default so that parsing untrusted input cannot read local files or make
network requests (XXE). Callers must opt in with enable_external_entities.
"""

import io
import os
import logging
from enum import Enum
from typing import Any, IO, Optional, Union

from lxml import etree

from ..exceptions import ConfigurationError, InvalidArgumentError, ParseError, SourceError
from ..settings import resolve
from .namespaces import split_qualified_name

# Initialize logger
logger = logging.getLogger("xmlbuilder")

XmlSource = Union[str, bytes, "os.PathLike[str]", IO[Any]]


class NodeKind(Enum):
    """Kinds of node found in a document."""
    DOCUMENT = "document"
    ELEMENT = "element"
    TEXT = "text"
    CDATA = "cdata"
    COMMENT = "comment"
    PROCESSING_INSTRUCTION = "processing-instruction"
    ENTITY_REFERENCE = "entity-reference"


def node_kind(node: Any) -> NodeKind:
    """
    Classify a node.

    CDATA content is stored as element text by lxml and cannot be told
    apart from plain text once written, so it is reported as TEXT.

    Args:
        node: An XmlDocument, ElementTree, lxml node or text result

    Returns:
        The node kind

    Raises:
        InvalidArgumentError: If the object is not a document node
    """
    if isinstance(node, (XmlDocument, etree._ElementTree)):
        return NodeKind.DOCUMENT
    if isinstance(node, etree._Comment):
        return NodeKind.COMMENT
    if isinstance(node, etree._ProcessingInstruction):
        return NodeKind.PROCESSING_INSTRUCTION
    if isinstance(node, etree._Entity):
        return NodeKind.ENTITY_REFERENCE
    if isinstance(node, etree._Element):
        return NodeKind.ELEMENT
    if isinstance(node, str):
        return NodeKind.TEXT
    raise InvalidArgumentError(f"Not an XML node: {node!r}")


class XmlDocument:
    """
    The tree behind a family of builders.

    Wraps the lxml ElementTree together with the document-level flags that
    lxml does not let us change on the tree itself.
    """

    def __init__(self, tree: etree._ElementTree, namespace_aware: bool = True,
                 standalone: Optional[bool] = None):
        self.tree = tree
        self.namespace_aware = namespace_aware
        if standalone is None:
            standalone = tree.docinfo.standalone
        self.standalone = standalone

    @property
    def root(self) -> etree._Element:
        """The document's root element."""
        return self.tree.getroot()

    def __repr__(self) -> str:
        return f"<XmlDocument root={self.root.tag!r} namespace_aware={self.namespace_aware}>"


def make_parser(enable_external_entities: bool = False,
                strict_security: Optional[bool] = None) -> etree.XMLParser:
    """
    Build an XML parser with the requested entity policy.

    Args:
        enable_external_entities: Resolve external entities and allow
            network access while parsing
        strict_security: Fail rather than fall back to a default parser when
            the policy cannot be applied (defaults to the setting)

    Returns:
        A configured XMLParser

    Raises:
        ConfigurationError: If the policy cannot be applied in strict mode
    """
    strict_security = resolve("strict_security", strict_security)
    try:
        if enable_external_entities:
            return etree.XMLParser(resolve_entities=True, load_dtd=True, no_network=False)
        # Unresolved entities stay in the tree as references
        return etree.XMLParser(resolve_entities=False, load_dtd=False, no_network=True)
    except (TypeError, ValueError) as e:
        if strict_security:
            logger.error(f"Cannot configure XML parser entity handling: {e}")
            raise ConfigurationError(f"Cannot configure XML parser entity handling: {e}") from e
        logger.warning(f"Entity handling could not be configured, using default parser: {e}")
        return etree.XMLParser()


def strip_namespaces(root: etree._Element) -> None:
    """Remove namespace URIs and declarations from a subtree, keeping local names."""
    for element in root.iter(etree.Element):
        element.tag = etree.QName(element).localname
        for name in [n for n in element.attrib if n.startswith("{")]:
            value = element.attrib.pop(name)
            element.set(etree.QName(name).localname, value)
    etree.cleanup_namespaces(root)


def create_document(name: str, namespace_uri: Optional[str] = None,
                    enable_external_entities: Optional[bool] = None,
                    namespace_aware: Optional[bool] = None) -> XmlDocument:
    """
    Create a new document with a single root element.

    Args:
        name: Root element name, optionally prefixed ("p:Root")
        namespace_uri: Namespace of the root element, ignored if None or empty
        enable_external_entities: Entity policy for the document's parser
        namespace_aware: Whether the document uses namespaces

    Returns:
        The new XmlDocument

    Raises:
        ConfigurationError: If the parser cannot be configured
        InvalidArgumentError: If the name is not a valid element name
    """
    enable_external_entities = resolve("enable_external_entities", enable_external_entities)
    namespace_aware = resolve("namespace_aware", namespace_aware)
    parser = make_parser(enable_external_entities)

    prefix, local_name = split_qualified_name(name)
    try:
        if namespace_uri and namespace_aware:
            root = parser.makeelement(f"{{{namespace_uri}}}{local_name}", nsmap={prefix: namespace_uri})
        else:
            if namespace_uri:
                logger.warning(f"Ignoring namespace '{namespace_uri}' for namespace-unaware document")
            root = parser.makeelement(name if prefix is None or namespace_aware else local_name)
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid root element name '{name}': {e}") from e

    logger.debug(f"Created document with root element '{name}'")
    return XmlDocument(etree.ElementTree(root), namespace_aware=namespace_aware)


def parse_document(source: XmlSource,
                   enable_external_entities: Optional[bool] = None,
                   namespace_aware: Optional[bool] = None) -> XmlDocument:
    """
    Parse an XML document.

    Args:
        source: XML text (str), XML bytes, a file path (os.PathLike) or a
            readable stream
        enable_external_entities: Resolve external entities (unsafe for
            untrusted input)
        namespace_aware: When False, namespaces are stripped after parsing so
            that unprefixed XPath expressions match

    Returns:
        The parsed XmlDocument

    Raises:
        ConfigurationError: If the parser cannot be configured
        ParseError: If the XML is malformed
        SourceError: If the source cannot be read
        InvalidArgumentError: If the source type is not supported
    """
    enable_external_entities = resolve("enable_external_entities", enable_external_entities)
    namespace_aware = resolve("namespace_aware", namespace_aware)
    parser = make_parser(enable_external_entities)

    if isinstance(source, str):
        source = io.BytesIO(source.encode("utf-8"))
    elif isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(bytes(source))
    elif isinstance(source, os.PathLike):
        source = os.fspath(source)
        if not os.path.exists(source):
            logger.error(f"XML file not found: {source}")
            raise SourceError(f"XML file not found: {source}")
    elif not hasattr(source, "read"):
        raise InvalidArgumentError(f"Unsupported XML source type: {type(source).__name__}")

    try:
        tree = etree.parse(source, parser)
    except etree.XMLSyntaxError as e:
        logger.error(f"XML parsing failed: {e}")
        raise ParseError(f"XML parsing failed: {e}") from e
    except OSError as e:
        logger.error(f"Cannot read XML source: {e}")
        raise SourceError(f"Cannot read XML source: {e}") from e

    if tree.getroot() is None:
        raise ParseError("XML parsing failed: document has no root element")

    if not namespace_aware:
        strip_namespaces(tree.getroot())

    logger.debug(f"Parsed document with root element '{tree.getroot().tag}'")
    return XmlDocument(tree, namespace_aware=namespace_aware)


def is_whitespace_only(text: Optional[str]) -> bool:
    """True when text is None or contains nothing but whitespace characters."""
    return text is None or not "".join(text.split())


def strip_whitespace_only_text_nodes(document: XmlDocument) -> None:
    """
    Delete every text node that contains only whitespace.

    This removes the indentation left behind by pretty-printed input.
    """
    removed = 0
    for node in document.root.iter():
        if isinstance(node.tag, str) and node.text is not None and is_whitespace_only(node.text):
            node.text = None
            removed += 1
        if node.tail is not None and is_whitespace_only(node.tail):
            node.tail = None
            removed += 1
    logger.debug(f"Removed {removed} whitespace-only text nodes")
