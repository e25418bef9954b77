"""
Tests for the namespace context.
"""

from lxml import etree

from xmlbuilder.core.xml.namespaces import (
    XML_NAMESPACE,
    NamespaceContext,
    lookup_namespace_uri,
    lookup_prefix,
    split_qualified_name,
)


class TestNamespaceContext:
    """Tests for the NamespaceContext class."""

    def test_add_and_lookup(self):
        """Test registering and resolving prefixes."""
        context = NamespaceContext().add_namespace("p", "urn:p").add_namespace("", "urn:d")
        assert context.get_namespace_uri("p") == "urn:p"
        assert context.get_namespace_uri("") == "urn:d"
        assert context.get_namespace_uri(None) == "urn:d"
        assert context.get_namespace_uri("missing") is None
        assert context.get_prefix("urn:p") == "p"

    def test_remap_prefix(self):
        """Test that remapping a prefix updates the reverse lookup."""
        context = NamespaceContext().add_namespace("p", "urn:a").add_namespace("p", "urn:b")
        assert context.get_namespace_uri("p") == "urn:b"
        assert context.get_prefix("urn:a") is None
        assert context.get_prefix("urn:b") == "p"

    def test_anchor_element(self):
        """Test falling back to declarations in scope at the anchor."""
        element = etree.fromstring('<r xmlns="urn:d" xmlns:x="urn:x"><c/></r>')
        context = NamespaceContext(element[0])
        assert context.get_namespace_uri("x") == "urn:x"
        assert context.get_namespace_uri(None) == "urn:d"
        assert context.get_prefix("urn:x") == "x"
        assert context.get_prefix("urn:d") is None

    def test_overrides_win(self):
        """Test that registered prefixes override tree declarations."""
        element = etree.fromstring('<r xmlns:x="urn:x"/>')
        context = NamespaceContext(element).add_namespace("x", "urn:other")
        assert context.get_namespace_uri("x") == "urn:other"
        assert context.as_xpath_namespaces() == {"x": "urn:other"}

    def test_as_xpath_namespaces(self):
        """Test the mapping handed to lxml leaves out the default namespace."""
        element = etree.fromstring('<r xmlns="urn:d" xmlns:x="urn:x"/>')
        context = NamespaceContext(element).add_namespace("d", "urn:d")
        assert context.as_xpath_namespaces() == {"x": "urn:x", "d": "urn:d"}

    def test_get_prefixes(self):
        """Test that prefix enumeration is empty."""
        assert list(NamespaceContext().add_namespace("p", "urn:p").get_prefixes("urn:p")) == []

    def test_repr(self):
        """Test string representation."""
        assert "p" in repr(NamespaceContext().add_namespace("p", "urn:p"))


class TestLookups:
    """Tests for the lookup helpers."""

    def test_xml_prefix(self):
        """Test that the xml prefix is always bound."""
        assert lookup_namespace_uri(etree.Element("r"), "xml") == XML_NAMESPACE

    def test_lookup_prefix(self):
        """Test that only non-default prefixes are returned."""
        element = etree.fromstring('<r xmlns="urn:d" xmlns:x="urn:x"/>')
        assert lookup_prefix(element, "urn:x") == "x"
        assert lookup_prefix(element, "urn:d") is None

    def test_split_qualified_name(self):
        """Test splitting names into prefix and local part."""
        assert split_qualified_name("p:Local") == ("p", "Local")
        assert split_qualified_name("Local") == (None, "Local")
        assert split_qualified_name(":Local") == (None, ":Local")
