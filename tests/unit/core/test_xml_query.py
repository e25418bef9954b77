"""
Tests for the XPath query adapter.
"""

import math

import pytest
from lxml import etree

from xmlbuilder.core.exceptions import QueryError
from xmlbuilder.core.xml.namespaces import NamespaceContext
from xmlbuilder.core.xml.query import (
    ResultKind,
    compile_xpath,
    describe_node,
    evaluate,
    find_element,
    is_element,
    xpath_namespaces,
)


@pytest.fixture
def root(example_xml):
    return etree.fromstring(example_xml)


class TestEvaluate:
    """Tests for evaluate()."""

    def test_nodeset(self, root):
        """Test that a node-set result is returned as a list."""
        result = evaluate(root, "//Location")
        assert [node.getparent().tag for node in result] == ["java-xmlbuilder", "JetS3t"]

    def test_node(self, root):
        """Test that NODE returns the first match."""
        assert evaluate(root, "JetS3t", ResultKind.NODE).tag == "JetS3t"

    def test_scalars(self, root):
        """Test XPath 1.0 conversions for the scalar kinds."""
        assert evaluate(root, "count(*)", ResultKind.NUMBER) == 2.0
        assert evaluate(root, "JetS3t/@scm", ResultKind.STRING) == "CVS"
        assert evaluate(root, "java-xmlbuilder", ResultKind.BOOLEAN) is True
        # A node-set converts to the string value of its first node
        assert evaluate(root, "//Location/@type", ResultKind.STRING) == "URL"

    def test_soft_misses(self, root):
        """Test the empty value of each kind when nothing matches."""
        assert evaluate(root, "Missing", ResultKind.NODE) is None
        assert evaluate(root, "Missing", ResultKind.NODESET) == []
        assert evaluate(root, "Missing", ResultKind.STRING) == ""
        assert math.isnan(evaluate(root, "Missing", ResultKind.NUMBER))
        assert evaluate(root, "Missing", ResultKind.BOOLEAN) is False

    def test_scalar_expression_as_nodeset(self, root):
        """Test that a non node-set result asked for as NODESET is empty."""
        assert evaluate(root, "count(*)", ResultKind.NODESET) == []
        assert evaluate(root, "count(*)", ResultKind.NODE) is None

    def test_namespaces(self):
        """Test evaluating with a namespace context and a plain mapping."""
        element = etree.fromstring('<r xmlns="urn:d"><c/></r>')
        context = NamespaceContext().add_namespace("d", "urn:d")
        assert evaluate(element, "count(d:c)", ResultKind.NUMBER, context) == 1.0
        assert evaluate(element, "count(d:c)", ResultKind.NUMBER, {"d": "urn:d"}) == 1.0

    def test_invalid_expression(self, root):
        """Test that a syntax error is reported as QueryError."""
        with pytest.raises(QueryError) as exc:
            evaluate(root, "//[")
        assert 'Invalid XPath expression "//["' in str(exc.value)

    def test_undefined_prefix(self, root):
        """Test that an undefined prefix is reported as QueryError."""
        with pytest.raises(QueryError):
            evaluate(root, "//x:Location")


class TestFindElement:
    """Tests for find_element()."""

    def test_found(self, root):
        """Test finding an element."""
        assert find_element(root, "//JetS3t/Location").text == "http://jets3t.s3.amazonaws.com/index.html"

    def test_attribute_result(self, root):
        """Test that an attribute match is rejected with a description."""
        with pytest.raises(QueryError) as exc:
            find_element(root, "//JetS3t/@scm")
        assert str(exc.value) == (
            'XPath expression "//JetS3t/@scm" does not resolve to an Element '
            'in context [Projects]: [attribute scm="CVS"]'
        )

    def test_no_match(self, root):
        """Test that no match is rejected."""
        with pytest.raises(QueryError) as exc:
            find_element(root, "//Missing")
        assert str(exc.value).endswith(": None")

    def test_comment_result(self):
        """Test that a comment match is not accepted as an element."""
        element = etree.fromstring("<r><!--c--></r>")
        with pytest.raises(QueryError):
            find_element(element, "comment()")


class TestHelpers:
    """Tests for the module helpers."""

    def test_is_element(self):
        """Test telling elements from other nodes."""
        element = etree.fromstring("<r><!--c--><?p d?></r>")
        assert is_element(element)
        assert not is_element(element[0])
        assert not is_element(element[1])
        assert not is_element("text")

    def test_describe_node(self, root):
        """Test node descriptions used in error messages."""
        assert describe_node(None) == "None"
        assert describe_node(root) == "[Projects]"
        assert describe_node(etree.ElementTree(root)) == "[#document]"
        assert describe_node(root.xpath("//Location/text()")[0]).startswith("[text: ")

    def test_xpath_namespaces(self):
        """Test that empty prefixes are dropped for lxml."""
        assert xpath_namespaces(None) is None
        assert xpath_namespaces({"": "urn:d", "p": "urn:p"}) == {"p": "urn:p"}

    def test_compile_xpath(self):
        """Test compiling a reusable expression."""
        compiled = compile_xpath("count(//a)")
        assert compiled(etree.fromstring("<r><a/><a/></r>")) == 2.0
