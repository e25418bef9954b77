"""
Serializer adapter for xmlbuilder.

Renders a whole document or a single element subtree with lxml. Output
options are given as a string mapping. The standard output-property names
used by XML transformers are translated to lxml keywords:

- ``method``: xml, html or text
- ``encoding``: output encoding (default UTF-8)
- ``indent``: yes/no, pretty-print the output
- ``indent-amount`` (or ``{http://xml.apache.org/xslt}indent-amount``):
  number of spaces per level, re-indents the output
- ``omit-xml-declaration``: yes/no
- ``standalone``: yes/no
- ``doctype-public`` / ``doctype-system``: DOCTYPE identifiers
- ``version``: only 1.0 is supported

Any other key is passed through unchanged as a keyword argument to
``lxml.etree.tostring``.
"""

import copy
import logging
from typing import IO, Any, Dict, Mapping, Optional, Tuple

from lxml import etree

from ..exceptions import RenderError

logger = logging.getLogger("xmlbuilder")

OMIT_XML_DECLARATION = "omit-xml-declaration"
INDENT = "indent"
INDENT_AMOUNT = "indent-amount"
XALAN_INDENT_AMOUNT = "{http://xml.apache.org/xslt}indent-amount"

# Used when rendering to a string without explicit options
DEFAULT_OUTPUT_OPTIONS = {OMIT_XML_DECLARATION: "yes"}

_BOOLEAN_STRINGS = {"yes": True, "true": True, "1": True, "no": False, "false": False, "0": False}

# tostring keywords whose string values are read as yes/no flags
_BOOLEAN_KEYWORDS = {
    "pretty_print", "xml_declaration", "with_tail", "standalone",
    "exclusive", "with_comments", "strip_text",
}


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    try:
        return _BOOLEAN_STRINGS[str(value).strip().lower()]
    except KeyError:
        raise RenderError(f"Output option '{key}' expects yes or no, got '{value}'") from None


def _doctype(root_name: str, public_id: Optional[str], system_id: Optional[str]) -> str:
    if public_id:
        return f'<!DOCTYPE {root_name} PUBLIC "{public_id}" "{system_id or ""}">'
    return f'<!DOCTYPE {root_name} SYSTEM "{system_id}">'


def build_tostring_options(options: Optional[Mapping[str, Any]],
                           root_name: str,
                           standalone: Optional[bool] = None) -> Tuple[Dict[str, Any], Optional[int]]:
    """
    Translate output options into ``etree.tostring`` keyword arguments.

    Args:
        options: Output options, None for the defaults
        root_name: Name of the root element, used for DOCTYPE output
        standalone: Document-level standalone flag applied when the options
            do not set one

    Returns:
        Tuple containing (tostring keyword arguments, indent amount or None)

    Raises:
        RenderError: If an option value cannot be understood
    """
    if options is None:
        options = DEFAULT_OUTPUT_OPTIONS

    kwargs: Dict[str, Any] = {"encoding": "UTF-8"}
    omit_declaration = False
    indent_amount = None
    public_id = system_id = None

    for key, value in options.items():
        if key == "method":
            kwargs["method"] = str(value).lower()
        elif key == "encoding":
            kwargs["encoding"] = value
        elif key == INDENT:
            kwargs["pretty_print"] = _as_bool(key, value)
        elif key in (INDENT_AMOUNT, XALAN_INDENT_AMOUNT):
            try:
                indent_amount = int(value)
            except (TypeError, ValueError):
                raise RenderError(f"Output option '{key}' expects a number, got '{value}'") from None
        elif key == OMIT_XML_DECLARATION:
            omit_declaration = _as_bool(key, value)
        elif key == "standalone":
            standalone = _as_bool(key, value)
        elif key == "doctype-public":
            public_id = value
        elif key == "doctype-system":
            system_id = value
        elif key == "version":
            if str(value) != "1.0":
                raise RenderError(f"Unsupported XML version for output: {value}")
        elif key in _BOOLEAN_KEYWORDS:
            kwargs[key] = _as_bool(key, value)
        else:
            kwargs[key] = value

    if kwargs.get("method", "xml") == "xml":
        kwargs.setdefault("xml_declaration", not omit_declaration)
        if kwargs["xml_declaration"] and standalone is not None:
            kwargs["standalone"] = standalone
    if system_id or public_id:
        kwargs["doctype"] = _doctype(root_name, public_id, system_id)
    if indent_amount is not None:
        if kwargs.get("pretty_print") is False:
            indent_amount = None
        else:
            kwargs["pretty_print"] = True

    return kwargs, indent_amount


def render(tree: etree._ElementTree,
           node: Optional[etree._Element] = None,
           whole_document: bool = True,
           options: Optional[Mapping[str, Any]] = None,
           standalone: Optional[bool] = None) -> str:
    """
    Serialize a document or element to a string.

    Args:
        tree: The document tree
        node: Element to serialize when whole_document is False
        whole_document: Serialize from the document root regardless of node
        options: Output options, None to omit the XML declaration
        standalone: Document-level standalone flag

    Returns:
        The serialized XML

    Raises:
        RenderError: If serialization fails
    """
    target = tree if whole_document or node is None else node
    root = tree.getroot()
    root_name = root.tag if root is not None else ""
    if root_name.startswith("{"):
        root_name = etree.QName(root_name).localname

    kwargs, indent_amount = build_tostring_options(options, root_name, standalone)
    if not whole_document:
        kwargs.setdefault("with_tail", False)

    try:
        if indent_amount is not None:
            target = copy.deepcopy(target)
            etree.indent(target, space=" " * indent_amount)
        data = etree.tostring(target, **kwargs)
        if isinstance(data, str):
            return data
        return data.decode(kwargs["encoding"])
    except (TypeError, ValueError, LookupError, etree.LxmlError) as e:
        logger.error(f"Error serializing XML: {e}")
        raise RenderError(f"Failed to serialize XML: {e}") from e


def write_to(writer: IO[str], tree: etree._ElementTree,
             node: Optional[etree._Element] = None,
             whole_document: bool = True,
             options: Optional[Mapping[str, Any]] = None,
             standalone: Optional[bool] = None) -> None:
    """
    Serialize a document or element to a text stream.

    Raises:
        RenderError: If serialization or writing fails
    """
    text = render(tree, node, whole_document, options, standalone)
    try:
        writer.write(text)
    except OSError as e:
        raise RenderError(f"Failed to write XML: {e}") from e


def write_file(path: str, tree: etree._ElementTree,
               node: Optional[etree._Element] = None,
               whole_document: bool = True,
               options: Optional[Mapping[str, Any]] = None,
               standalone: Optional[bool] = None) -> None:
    """
    Serialize a document or element to a file in the output encoding.

    Raises:
        RenderError: If serialization or writing fails
    """
    encoding = (options or {}).get("encoding", "UTF-8")
    text = render(tree, node, whole_document, options, standalone)
    try:
        with open(path, "w", encoding=encoding) as f:
            f.write(text)
    except OSError as e:
        logger.error(f"Error writing XML to {path}: {e}")
        raise RenderError(f"Failed to write XML to {path}: {e}") from e
    logger.debug(f"Wrote XML to {path}")
