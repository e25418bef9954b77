"""
Fluent XML builder for xmlbuilder.

An XmlBuilder is a cursor: a position in a document (the document node or
one of its elements) plus a handle on the whole tree. Operations that create
a child element return a new cursor on that child, while operations that
change the current node return the same cursor, so documents can be written
as one chained expression:

    xml = (XmlBuilder.create("Projects")
           .e("java-xmlbuilder").a("language", "Java")
               .e("Location").a("type", "URL").t("https://example.com")
           .up(2)
           .as_string())

Every cursor derived from the same create() or parse() call shares one
XmlDocument. A change made through any of them is visible through all of
them. Nothing is locked: using cursors of one document from several threads
at once must be serialized by the caller.

Two error conventions are offered over the same operations. XmlBuilder
raises the typed XmlBuilderError subclasses; RuntimeXmlBuilder re-raises
them as XmlBuilderRuntimeError with the original error as the cause.
"""

import base64
import copy
import inspect
import logging
from contextlib import contextmanager
from typing import Any, IO, Mapping, Optional, Union

from lxml import etree

from ..exceptions import (
    InvalidArgumentError,
    StateError,
    UnsupportedOperationError,
    wrap_runtime_errors,
)
from ..settings import get_setting
from . import query
from .document import (
    NodeKind,
    XmlDocument,
    XmlSource,
    create_document,
    is_whitespace_only,
    node_kind,
    parse_document,
    strip_whitespace_only_text_nodes,
)
from .namespaces import NamespaceContext, lookup_namespace_uri, split_qualified_name
from .query import Namespaces, ResultKind
from .serializer import DEFAULT_OUTPUT_OPTIONS, render, write_file, write_to

# Initialize logger
logger = logging.getLogger("xmlbuilder")

# Content nodes lxml can't create directly are built in a parsed fragment and
# moved in as the tail of a placeholder element, which is then stripped
_PLACEHOLDER_NAMESPACE = "urn:xmlbuilder:placeholder"
_PLACEHOLDER_TAG = f"{{{_PLACEHOLDER_NAMESPACE}}}content"
_FRAGMENT_PARSER = etree.XMLParser(strip_cdata=False, resolve_entities=False,
                                   load_dtd=False, no_network=True)
# recover keeps an undeclared prefix as part of the element name
_UNBOUND_PARSER = etree.XMLParser(recover=True, resolve_entities=False,
                                  load_dtd=False, no_network=True)


@contextmanager
def _invalid_argument(description: str):
    """Report lxml's rejection of a name or value as InvalidArgumentError."""
    try:
        yield
    except (TypeError, ValueError, etree.XMLSyntaxError) as e:
        logger.error(f"{description}: {e}")
        raise InvalidArgumentError(f"{description}: {e}") from e


def _unbound_element(name: str) -> etree._Element:
    """Build an element named "prefix:local" with the prefix bound to no namespace."""
    prefix, local_name = split_qualified_name(name)
    etree.QName(prefix)
    etree.QName(local_name)
    return etree.fromstring(f"<{name}/>", _UNBOUND_PARSER)


def _text_holder(value: str) -> etree._Element:
    holder = etree.Element(_PLACEHOLDER_TAG)
    holder.tail = value
    return holder


def _cdata_holder(data: str) -> etree._Element:
    if "]]>" in data:
        raise ValueError("a CDATA section can't contain ']]>'")
    fragment = etree.fromstring(
        f'<fragment xmlns:p="{_PLACEHOLDER_NAMESPACE}"><p:content/><![CDATA[{data}]]></fragment>',
        _FRAGMENT_PARSER)
    return fragment[0]


def _append_content(element: etree._Element, holder: etree._Element) -> None:
    """Append the holder's tail after the existing content of the element."""
    element.append(holder)
    etree.strip_tags(element, _PLACEHOLDER_TAG)


class BuilderFactory:
    """
    create() and parse() bound to a namespace-awareness flag.

    Returned by XmlBuilder.namespace_aware().
    """

    def __init__(self, builder_class: type, namespace_aware: bool):
        self.builder_class = builder_class
        self.namespace_aware = namespace_aware

    def create(self, name: str, namespace_uri: Optional[str] = None,
               enable_external_entities: Optional[bool] = None) -> 'XmlBuilder':
        """Create a new document, see XmlBuilder.create()."""
        return self.builder_class.create(name, namespace_uri, enable_external_entities,
                                         namespace_aware=self.namespace_aware)

    def parse(self, source: XmlSource,
              enable_external_entities: Optional[bool] = None) -> 'XmlBuilder':
        """Parse a document, see XmlBuilder.parse()."""
        return self.builder_class.parse(source, enable_external_entities,
                                        namespace_aware=self.namespace_aware)


class XmlBuilder:
    """
    A cursor over an XML document with chainable editing operations.

    Operations raise the typed XmlBuilderError subclasses.
    """

    def __init__(self, xml_document: XmlDocument, node: Any = None):
        """
        Initialize a cursor.

        Args:
            xml_document: The document the cursor belongs to
            node: The element the cursor is on; the document node if None
        """
        self._xml_document = xml_document
        self._node = xml_document if node is None else node

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, name: str, namespace_uri: Optional[str] = None,
               enable_external_entities: Optional[bool] = None,
               namespace_aware: Optional[bool] = None) -> 'XmlBuilder':
        """
        Create a new document and return a cursor on its root element.

        Args:
            name: Root element name, optionally prefixed ("p:Root")
            namespace_uri: Namespace of the root element
            enable_external_entities: Resolve external entities (defaults to
                the enable_external_entities setting)
            namespace_aware: Namespace handling (defaults to the
                namespace_aware setting)

        Returns:
            XmlBuilder: Cursor on the root element

        Raises:
            ConfigurationError: If the parser cannot be configured
            InvalidArgumentError: If the name is not a valid element name
        """
        document = create_document(name, namespace_uri, enable_external_entities, namespace_aware)
        return cls(document, document.root)

    @classmethod
    def parse(cls, source: XmlSource,
              enable_external_entities: Optional[bool] = None,
              namespace_aware: Optional[bool] = None) -> 'XmlBuilder':
        """
        Parse a document and return a cursor on its root element.

        Args:
            source: XML text, bytes, a file path or a readable stream
            enable_external_entities: Resolve external entities (unsafe for
                untrusted input)
            namespace_aware: Namespace handling (defaults to the
                namespace_aware setting)

        Returns:
            XmlBuilder: Cursor on the root element

        Raises:
            ConfigurationError: If the parser cannot be configured
            ParseError: If the XML is malformed
            SourceError: If the source cannot be read
        """
        document = parse_document(source, enable_external_entities, namespace_aware)
        return cls(document, document.root)

    @classmethod
    def namespace_aware(cls, aware: bool = True) -> BuilderFactory:
        """Return create()/parse() bound to the given namespace handling."""
        return BuilderFactory(cls, aware)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def node(self) -> Any:
        """The node under the cursor: an element or the XmlDocument."""
        return self._node

    @property
    def node_kind(self) -> NodeKind:
        return node_kind(self._node)

    @property
    def xml_element(self) -> Optional[etree._Element]:
        """The element under the cursor, None on the document node."""
        if self._node is self._xml_document:
            return None
        return self._node

    @property
    def xml_document(self) -> XmlDocument:
        return self._xml_document

    @property
    def tree(self) -> etree._ElementTree:
        return self._xml_document.tree

    def _cursor(self, node: Any = None) -> 'XmlBuilder':
        return type(self)(self._xml_document, node)

    def _require_element(self, action: str) -> etree._Element:
        element = self.xml_element
        if element is None:
            raise UnsupportedOperationError(f"Cannot {action} on the document node")
        return element

    def _check_no_text(self, element: etree._Element) -> None:
        """Refuse to mix elements into content that already holds real text."""
        texts = [element.text] + [child.tail for child in element]
        for text in texts:
            if not is_whitespace_only(text):
                message = (f"Cannot add sub-element to element <{element.tag}> that contains "
                           f"a Text node that isn't purely whitespace: {text!r}")
                logger.error(message)
                raise StateError(message)

    def _lookup_namespace(self, context: etree._Element, name: str) -> Optional[str]:
        if not self._xml_document.namespace_aware:
            return None
        prefix, _ = split_qualified_name(name)
        return lookup_namespace_uri(context, prefix)

    def _qualify(self, name: str, namespace_uri: Optional[str]):
        """Return (lxml tag, nsmap) for an element name in a namespace."""
        if not namespace_uri or not self._xml_document.namespace_aware:
            return name, None
        prefix, local_name = split_qualified_name(name)
        return f"{{{namespace_uri}}}{local_name}", {prefix: namespace_uri}

    def _new_element(self, parent: etree._Element, name: str,
                     namespace_uri: Optional[str]) -> etree._Element:
        """Create an element as the last child of parent."""
        tag, nsmap = self._qualify(name, namespace_uri)
        with _invalid_argument(f"Invalid element name '{name}'"):
            if nsmap is None and split_qualified_name(name)[0] is not None:
                child = _unbound_element(name)
                parent.append(child)
                return child
            return etree.SubElement(parent, tag, nsmap=nsmap)

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def element(self, name: str, namespace_uri: Optional[str] = None) -> 'XmlBuilder':
        """
        Add a child element and return a cursor on it.

        Without a namespace URI the element takes the namespace bound to its
        prefix, or the default namespace when it has none, as declared at the
        current element. A prefix that is not declared is kept as part of the
        name and the element has no namespace.

        Args:
            name: Element name, optionally prefixed ("p:Child")
            namespace_uri: Explicit namespace URI

        Returns:
            XmlBuilder: Cursor on the new element

        Raises:
            StateError: If the current element already contains text
            UnsupportedOperationError: On the document node
            InvalidArgumentError: If the name is invalid
        """
        parent = self._require_element("add an element")
        self._check_no_text(parent)
        if namespace_uri is None:
            namespace_uri = self._lookup_namespace(parent, name)
        child = self._new_element(parent, name, namespace_uri)
        return self._cursor(child)

    elem = element
    e = element

    def element_before(self, name: str, namespace_uri: Optional[str] = None) -> 'XmlBuilder':
        """
        Insert an element immediately before the current element.

        Args:
            name: Element name, optionally prefixed
            namespace_uri: Explicit namespace URI

        Returns:
            XmlBuilder: Cursor on the new element

        Raises:
            StateError: If the parent element contains text
            UnsupportedOperationError: On the root element or the document node
        """
        current = self._require_element("add a sibling element")
        parent = current.getparent()
        if parent is None:
            raise UnsupportedOperationError(
                f"Cannot add a sibling element before the root element <{current.tag}>")
        self._check_no_text(parent)
        if namespace_uri is None:
            namespace_uri = self._lookup_namespace(current, name)
        sibling = self._new_element(parent, name, namespace_uri)
        current.addprevious(sibling)
        return self._cursor(sibling)

    def import_builder(self, other: 'XmlBuilder') -> 'XmlBuilder':
        """
        Copy another builder's whole document under the current element.

        Args:
            other: Builder whose root element is copied

        Returns:
            XmlBuilder: This cursor
        """
        parent = self._require_element("import a document")
        self._check_no_text(parent)
        imported = copy.deepcopy(other.xml_document.root)
        imported.tail = None
        parent.append(imported)
        return self

    # ------------------------------------------------------------------
    # Content of the current element
    # ------------------------------------------------------------------

    def attribute(self, name: str, value: str) -> 'XmlBuilder':
        """
        Set an attribute on the current element, replacing any existing value.

        Args:
            name: Attribute name, optionally prefixed ("xml:lang")
            value: Attribute value

        Returns:
            XmlBuilder: This cursor

        Raises:
            UnsupportedOperationError: On the document node
            InvalidArgumentError: If the prefix is undeclared or the value invalid
        """
        element = self._require_element("add an attribute")
        if value is None:
            raise InvalidArgumentError(f"Illegal None value for attribute '{name}'")
        prefix, local_name = split_qualified_name(name)
        if name == "xmlns" or prefix == "xmlns":
            return self.namespace(local_name if prefix else None, value)
        if prefix is not None and self._xml_document.namespace_aware:
            namespace_uri = lookup_namespace_uri(element, prefix)
            if namespace_uri is None:
                raise InvalidArgumentError(
                    f"Undeclared namespace prefix '{prefix}' in attribute name '{name}'")
            name = f"{{{namespace_uri}}}{local_name}"
        with _invalid_argument(f"Invalid attribute '{name}'"):
            element.set(name, value)
        return self

    attr = attribute
    a = attribute

    def text(self, value: str, replace: bool = False) -> 'XmlBuilder':
        """
        Add text to the current element.

        Args:
            value: Text to add
            replace: Replace all content of the element (child nodes included)
                instead of appending

        Returns:
            XmlBuilder: This cursor

        Raises:
            InvalidArgumentError: If value is None
        """
        if value is None:
            raise InvalidArgumentError("Illegal None text value")
        element = self._require_element("add text")
        with _invalid_argument("Invalid text value"):
            if replace:
                for child in list(element):
                    element.remove(child)
                element.text = value
            elif len(element) or element.text:
                _append_content(element, _text_holder(value))
            else:
                element.text = value
        return self

    t = text

    def cdata(self, data: Union[str, bytes]) -> 'XmlBuilder':
        """
        Add a CDATA section to the current element.

        Bytes are Base64 encoded. The section is appended after any existing
        content, so it can follow text or child elements.

        Args:
            data: Section content

        Returns:
            XmlBuilder: This cursor

        Raises:
            InvalidArgumentError: If data is None or contains "]]>"
            UnsupportedOperationError: On the document node
        """
        if data is None:
            raise InvalidArgumentError("Illegal None CDATA value")
        if isinstance(data, (bytes, bytearray)):
            data = base64.b64encode(bytes(data)).decode("ascii")
        element = self._require_element("add a CDATA section")
        with _invalid_argument("Invalid CDATA content"):
            if len(element) or element.text:
                _append_content(element, _cdata_holder(data))
            else:
                element.text = etree.CDATA(data)
        return self

    data = cdata
    d = cdata

    def _append_node(self, node: etree._Element, action: str) -> None:
        if self.xml_element is not None:
            self.xml_element.append(node)
            return
        if not isinstance(node, (etree._Comment, etree._ProcessingInstruction)):
            raise UnsupportedOperationError(f"Cannot {action} on the document node")
        last = self._xml_document.root
        while last.getnext() is not None:
            last = last.getnext()
        last.addnext(node)

    def comment(self, text: str) -> 'XmlBuilder':
        """Add a comment; on the document node it goes after the root element."""
        with _invalid_argument("Invalid comment"):
            node = etree.Comment(text)
        self._append_node(node, "add a comment")
        return self

    cmnt = comment
    c = comment

    def instruction(self, target: str, data: str) -> 'XmlBuilder':
        """Add a processing instruction; on the document node it goes after the root element."""
        with _invalid_argument(f"Invalid processing instruction '{target}'"):
            node = etree.ProcessingInstruction(target, data)
        self._append_node(node, "add a processing instruction")
        return self

    inst = instruction
    i = instruction

    def insert_instruction(self, target: str, data: str) -> 'XmlBuilder':
        """Insert a processing instruction immediately before the current element."""
        element = self._require_element("insert a processing instruction")
        with _invalid_argument(f"Invalid processing instruction '{target}'"):
            node = etree.ProcessingInstruction(target, data)
        element.addprevious(node)
        return self

    def reference(self, name: str) -> 'XmlBuilder':
        """Add an entity reference (&name;) to the current element."""
        element = self._require_element("add an entity reference")
        with _invalid_argument(f"Invalid entity reference '{name}'"):
            element.append(etree.Entity(name))
        return self

    ref = reference
    r = reference

    def namespace(self, prefix_or_uri: Optional[str], namespace_uri: Optional[str] = None) -> 'XmlBuilder':
        """
        Declare a namespace on the current element.

        Called with one argument, declares the default namespace.

        Args:
            prefix_or_uri: Prefix to declare, or the URI of the default namespace
            namespace_uri: URI bound to the prefix

        Returns:
            XmlBuilder: This cursor
        """
        if namespace_uri is None:
            prefix, namespace_uri = None, prefix_or_uri
        else:
            prefix = prefix_or_uri or None
        element = self._require_element("declare a namespace")

        # cleanup_namespaces drops unused declarations, keep every prefix in use.
        # keep_ns_prefixes can't name the default namespace, so a placeholder
        # child uses it until the declaration is in place.
        keep = {p for node in element.iter(etree.Element) for p in node.nsmap if p}
        if prefix is not None:
            keep.add(prefix)
        placeholder = None
        try:
            with _invalid_argument(f"Invalid namespace declaration '{prefix}'='{namespace_uri}'"):
                if prefix is None and namespace_uri and element.nsmap.get(None) != namespace_uri:
                    placeholder = etree.SubElement(element, f"{{{namespace_uri}}}content",
                                                   nsmap={None: namespace_uri})
                etree.cleanup_namespaces(element, top_nsmap={prefix: namespace_uri},
                                         keep_ns_prefixes=sorted(keep))
        finally:
            if placeholder is not None:
                element.remove(placeholder)
        if element.nsmap.get(prefix) != namespace_uri:
            logger.warning(f"Namespace declaration xmlns{':' + prefix if prefix else ''}="
                           f"\"{namespace_uri}\" is not used by <{element.tag}> and was dropped")
        return self

    ns = namespace

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def up(self, steps: int = 1) -> 'XmlBuilder':
        """
        Move to an ancestor element.

        Stops at the root element when there are fewer ancestors than steps.

        Args:
            steps: Number of levels to move up

        Returns:
            XmlBuilder: Cursor on the ancestor
        """
        current = self.xml_element
        if current is None:
            return self.root()
        for _ in range(steps):
            parent = current.getparent()
            if parent is None:
                break
            current = parent
        return self._cursor(current)

    def root(self) -> 'XmlBuilder':
        """Return a cursor on the root element."""
        return self._cursor(self._xml_document.root)

    def document(self) -> 'XmlBuilder':
        """Return a cursor on the document node."""
        return self._cursor(self._xml_document)

    def strip_whitespace_only_text_nodes(self) -> 'XmlBuilder':
        """Remove whitespace-only text from the whole document."""
        strip_whitespace_only_text_nodes(self._xml_document)
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _query_context(self) -> Any:
        return self.tree if self.xml_element is None else self.xml_element

    def find_element(self, xpath: str, namespaces: Namespaces = None) -> 'XmlBuilder':
        """
        Move to the first element matched by an XPath expression.

        Args:
            xpath: Expression evaluated relative to the current node
            namespaces: NamespaceContext or prefix mapping for the expression

        Returns:
            XmlBuilder: Cursor on the matched element

        Raises:
            QueryError: If the expression is invalid or does not match an element
        """
        return self._cursor(query.find_element(self._query_context(), xpath, namespaces))

    xpath_find = find_element

    def xpath_query(self, xpath: str, kind: ResultKind = ResultKind.NODESET,
                    namespaces: Namespaces = None) -> Any:
        """
        Evaluate an XPath expression relative to the current node.

        Returns the empty value of the result kind when nothing matches.

        Raises:
            QueryError: If the expression is invalid
        """
        return query.evaluate(self._query_context(), xpath, kind, namespaces)

    def build_document_namespace_context(self) -> NamespaceContext:
        """Return a NamespaceContext for the namespaces declared on the root element."""
        return NamespaceContext(self._xml_document.root)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _output_options(self, options: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
        if options is not None:
            return options
        return DEFAULT_OUTPUT_OPTIONS if get_setting("omit_xml_declaration") else {}

    def set_standalone(self, standalone: Optional[bool]) -> 'XmlBuilder':
        """Set the standalone flag written in the XML declaration."""
        self._xml_document.standalone = standalone
        return self

    def as_string(self, options: Optional[Mapping[str, Any]] = None) -> str:
        """
        Serialize the whole document.

        Args:
            options: Output options (see the serializer module); by default
                the XML declaration is omitted

        Returns:
            str: The serialized document

        Raises:
            RenderError: If serialization fails
        """
        return render(self.tree, self.xml_element, True, self._output_options(options),
                      self._xml_document.standalone)

    def element_as_string(self, options: Optional[Mapping[str, Any]] = None) -> str:
        """Serialize the current element and its descendants."""
        return render(self.tree, self.xml_element, False, self._output_options(options),
                      self._xml_document.standalone)

    def to_writer(self, writer: IO[str], options: Optional[Mapping[str, Any]] = None,
                  whole_document: bool = True) -> 'XmlBuilder':
        """
        Serialize to a text stream.

        Args:
            writer: Stream to write to
            options: Output options
            whole_document: Serialize the whole document, or only the current element

        Returns:
            XmlBuilder: This cursor
        """
        write_to(writer, self.tree, self.xml_element, whole_document,
                 self._output_options(options), self._xml_document.standalone)
        return self

    def write(self, path: str, options: Optional[Mapping[str, Any]] = None,
              whole_document: bool = True) -> 'XmlBuilder':
        """Serialize to a file."""
        write_file(path, self.tree, self.xml_element, whole_document,
                   self._output_options(options), self._xml_document.standalone)
        return self

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, XmlBuilder):
            return NotImplemented
        return self._xml_document is other._xml_document and self._node is other._node

    def __hash__(self) -> int:
        return hash((id(self._xml_document), id(self._node)))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} node={query.describe_node(self._query_context())}>"


class RuntimeXmlBuilder(XmlBuilder):
    """
    XmlBuilder whose operations raise XmlBuilderRuntimeError.

    Every typed error is re-raised as XmlBuilderRuntimeError with the
    original available as ``cause``.
    """


for _name, _member in list(vars(XmlBuilder).items()):
    if _name.startswith("_"):
        continue
    if isinstance(_member, classmethod):
        setattr(RuntimeXmlBuilder, _name, classmethod(wrap_runtime_errors(_member.__func__)))
    elif inspect.isfunction(_member):
        setattr(RuntimeXmlBuilder, _name, wrap_runtime_errors(_member))

del _name, _member
