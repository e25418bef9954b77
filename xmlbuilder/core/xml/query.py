"""
XPath query adapter for xmlbuilder.

This module compiles and evaluates XPath 1.0 expressions with lxml. Two
lookups are offered with deliberately different failure behaviour:

- evaluate() never fails for "nothing found": it returns the empty value of
  the requested result kind ("" for STRING, NaN for NUMBER, None for NODE).
- find_element() insists on an Element and raises QueryError otherwise.
"""

import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from lxml import etree

from ..exceptions import QueryError
from .namespaces import NamespaceContext

# Initialize logger
logger = logging.getLogger("xmlbuilder")

Namespaces = Optional[Union[NamespaceContext, Mapping[str, str]]]


class ResultKind(Enum):
    """The type an XPath result is converted to."""
    NODE = "node"
    NODESET = "nodeset"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


# Wrapping an expression in the XPath conversion function gives the
# standard XPath 1.0 coercion rules for the scalar kinds.
_CONVERSIONS = {
    ResultKind.STRING: ("string", str),
    ResultKind.NUMBER: ("number", float),
    ResultKind.BOOLEAN: ("boolean", bool),
}


def is_element(node: Any) -> bool:
    """Return True for element nodes (not comments, PIs or entities)."""
    return isinstance(node, etree._Element) and isinstance(node.tag, str)


def describe_node(node: Any) -> str:
    """Short human readable description of a node or XPath result."""
    if node is None:
        return "None"
    if isinstance(node, etree._ElementTree):
        return "[#document]"
    if is_element(node):
        return f"[{node.tag}]"
    if isinstance(node, etree._Element):
        return f"[{type(node).__name__.lstrip('_')}: {node.text!r}]"
    if getattr(node, "is_attribute", False):
        return f"[attribute {node.attrname}=\"{node}\"]"
    if getattr(node, "is_text", False) or getattr(node, "is_tail", False):
        return f"[text: {str(node)!r}]"
    return repr(node)


def xpath_namespaces(namespaces: Namespaces) -> Optional[Dict[str, str]]:
    """
    Convert a namespace argument into the mapping lxml expects.

    Args:
        namespaces: A NamespaceContext, a plain prefix mapping, or None

    Returns:
        Dictionary of non-empty prefixes to URIs, or None
    """
    if namespaces is None:
        return None
    if isinstance(namespaces, NamespaceContext):
        return namespaces.as_xpath_namespaces()
    # lxml rejects empty prefixes outright
    return {prefix: uri for prefix, uri in namespaces.items() if prefix}


def compile_xpath(expression: str, namespaces: Namespaces = None) -> etree.XPath:
    """
    Compile an XPath expression.

    Args:
        expression: XPath expression
        namespaces: Optional namespace mappings

    Returns:
        Compiled XPath object

    Raises:
        QueryError: If the expression is not valid XPath
    """
    try:
        return etree.XPath(expression, namespaces=xpath_namespaces(namespaces))
    except etree.XPathError as e:
        logger.error(f"Invalid XPath expression '{expression}': {e}")
        raise QueryError(f"Invalid XPath expression \"{expression}\": {e}") from e


def _run(compiled: etree.XPath, context: Any, expression: str) -> Any:
    try:
        return compiled(context)
    except etree.XPathError as e:
        logger.error(f"Error evaluating XPath '{expression}': {e}")
        raise QueryError(f"Failed to evaluate XPath expression \"{expression}\": {e}") from e


def evaluate(context: Any, expression: str, kind: ResultKind = ResultKind.NODESET,
             namespaces: Namespaces = None) -> Any:
    """
    Evaluate an XPath expression relative to a node.

    Args:
        context: Element or ElementTree the expression is evaluated against
        expression: XPath expression
        kind: Result kind to convert the value to
        namespaces: Optional namespace mappings

    Returns:
        The converted result; the empty value of the kind when nothing
        matches or the value cannot be converted

    Raises:
        QueryError: If the expression is malformed or cannot be evaluated
    """
    logger.debug(f"Evaluating XPath '{expression}' as {kind.name}")
    compiled = compile_xpath(expression, namespaces)

    if kind in _CONVERSIONS:
        function, convert = _CONVERSIONS[kind]
        wrapped = compile_xpath(f"{function}({expression})", namespaces)
        return convert(_run(wrapped, context, expression))

    result = _run(compiled, context, expression)
    if not isinstance(result, list):
        return None if kind is ResultKind.NODE else []
    if kind is ResultKind.NODE:
        return result[0] if result else None
    return result


def find_element(context: Any, expression: str, namespaces: Namespaces = None) -> etree._Element:
    """
    Find the first element matching an XPath expression.

    Args:
        context: Element or ElementTree the expression is evaluated against
        expression: XPath expression that must resolve to an Element
        namespaces: Optional namespace mappings

    Returns:
        The first matching element

    Raises:
        QueryError: If the expression is invalid, matches nothing, or its
            first match is not an Element
    """
    found = evaluate(context, expression, ResultKind.NODE, namespaces)
    if not is_element(found):
        message = (f"XPath expression \"{expression}\" does not resolve to an Element "
                   f"in context {describe_node(context)}: {describe_node(found)}")
        logger.debug(message)
        raise QueryError(message)
    return found
