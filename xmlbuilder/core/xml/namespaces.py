"""
Namespace context for namespace-aware XPath queries.

A NamespaceContext maps prefixes to namespace URIs. Mappings added by the
caller take precedence; anything else is looked up in the namespace
declarations in scope at an optional anchor element.
"""

import logging
from typing import Dict, Iterator, Optional, Set

from lxml import etree

logger = logging.getLogger("xmlbuilder")

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


def lookup_namespace_uri(element: etree._Element, prefix: Optional[str]) -> Optional[str]:
    """
    Look up the namespace URI bound to a prefix at the given element.

    Args:
        element: Element whose in-scope declarations are searched
        prefix: Namespace prefix, None or "" for the default namespace

    Returns:
        The namespace URI, or None if the prefix is not declared
    """
    if prefix == "xml":
        return XML_NAMESPACE
    return element.nsmap.get(prefix or None)


def lookup_prefix(element: etree._Element, namespace_uri: str) -> Optional[str]:
    """Return a declared, non-default prefix for a namespace URI at the element."""
    for prefix, uri in element.nsmap.items():
        if prefix is not None and uri == namespace_uri:
            return prefix
    return None


def split_qualified_name(name: str):
    """
    Split a qualified name into (prefix, local name).

    The prefix is None when the name has no colon, or starts with one.
    """
    colon = name.find(":")
    if colon > 0:
        return name[:colon], name[colon + 1:]
    return None, name


class NamespaceContext:
    """
    Prefix to namespace URI lookup table.

    Prefixes registered with add_namespace override any declarations found
    on the anchor element.
    """

    def __init__(self, element: Optional[etree._Element] = None):
        """
        Initialize the context.

        Args:
            element: Optional element in which to look up declared namespaces
        """
        self.element = element
        self._prefix_to_uri: Dict[str, str] = {}
        self._uri_to_prefixes: Dict[str, Set[str]] = {}

    def add_namespace(self, prefix: Optional[str], namespace_uri: str) -> 'NamespaceContext':
        """
        Add a custom prefix mapping.

        Args:
            prefix: Namespace prefix, "" or None for the default namespace
            namespace_uri: Namespace URI to map the prefix to

        Returns:
            Self for chaining
        """
        prefix = prefix or ""
        previous = self._prefix_to_uri.get(prefix)
        if previous is not None and previous != namespace_uri:
            self._uri_to_prefixes[previous].discard(prefix)
        self._prefix_to_uri[prefix] = namespace_uri
        self._uri_to_prefixes.setdefault(namespace_uri, set()).add(prefix)
        return self

    def get_namespace_uri(self, prefix: Optional[str]) -> Optional[str]:
        """
        Resolve a prefix to a namespace URI.

        Args:
            prefix: Namespace prefix, "" and None both mean the default namespace

        Returns:
            The namespace URI, or None if the prefix is unknown
        """
        namespace_uri = self._prefix_to_uri.get(prefix or "")
        if namespace_uri is None and self.element is not None:
            namespace_uri = lookup_namespace_uri(self.element, prefix)
        return namespace_uri

    def get_prefix(self, namespace_uri: str) -> Optional[str]:
        """
        Resolve a namespace URI to one of its prefixes.

        Args:
            namespace_uri: Namespace URI

        Returns:
            A registered prefix, else a prefix declared at the anchor element,
            else None
        """
        prefixes = self._uri_to_prefixes.get(namespace_uri)
        if prefixes:
            return sorted(prefixes)[0]
        if self.element is not None:
            return lookup_prefix(self.element, namespace_uri)
        return None

    def get_prefixes(self, namespace_uri: str) -> Iterator[str]:
        """Enumerating all prefixes of a URI is not supported; always empty."""
        return iter(())

    def as_xpath_namespaces(self) -> Dict[str, str]:
        """
        Build the prefix mapping handed to lxml's XPath evaluator.

        XPath 1.0 has no syntax for an empty prefix, so the default namespace
        is left out; register an alias prefix to query default-namespace
        elements.

        Returns:
            Dictionary of prefix to namespace URI
        """
        namespaces: Dict[str, str] = {}
        if self.element is not None:
            for prefix, uri in self.element.nsmap.items():
                if prefix:
                    namespaces[prefix] = uri
        for prefix, uri in self._prefix_to_uri.items():
            if prefix:
                namespaces[prefix] = uri
        return namespaces

    def __repr__(self) -> str:
        """String representation."""
        anchor = self.element.tag if self.element is not None else None
        return f"<NamespaceContext anchor={anchor} overrides={self._prefix_to_uri}>"
