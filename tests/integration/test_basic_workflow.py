"""
Integration tests for basic xmlbuilder workflows.
"""

import io

import pytest

import xmlbuilder
from xmlbuilder import (
    NamespaceContext,
    ResultKind,
    RuntimeXmlBuilder,
    StateError,
    XmlBuilder,
    XmlBuilderRuntimeError,
)


def test_build_write_parse_edit(tmp_path, example_xml):
    """Test building a document, saving it, and editing the saved copy."""
    path = tmp_path / "projects.xml"
    (XmlBuilder.create("Projects")
        .e("java-xmlbuilder").a("language", "Java").a("scm", "SVN")
            .e("Location").a("type", "URL").t("http://code.google.com/p/java-xmlbuilder/")
        .up(2)
        .e("JetS3t").a("language", "Java").a("scm", "CVS")
            .e("Location").a("type", "URL").t("http://jets3t.s3.amazonaws.com/index.html")
        .write(str(path), {"omit-xml-declaration": "no", "indent": "yes", "indent-amount": "2"}))

    builder = XmlBuilder.parse(path).strip_whitespace_only_text_nodes()
    assert builder.as_string() == example_xml

    jets3t = builder.find_element("//JetS3t")
    jets3t.a("scm", "Git").e("Mirror").t("https://github.com/")
    assert builder.xpath_query("//JetS3t/@scm", ResultKind.STRING) == "Git"
    assert builder.xpath_query("count(//Mirror)", ResultKind.NUMBER) == 1.0


def test_assemble_from_parts():
    """Test composing a document from separately built parts."""
    header = XmlBuilder.create("Header").e("Title").t("Report")
    body = XmlBuilder.create("Body").c("generated").e("Row").a("id", "1")

    report = XmlBuilder.create("Report").import_builder(header).import_builder(body)
    report.document().c("end of report")

    assert report.as_string().replace("\n", "") == (
        "<Report><Header><Title>Report</Title></Header>"
        "<Body><!--generated--><Row id=\"1\"/></Body></Report><!--end of report-->"
    )


def test_namespaced_document_round_trip():
    """Test building, rendering and re-querying a namespaced document."""
    builder = (XmlBuilder.create("feed", "http://www.w3.org/2005/Atom")
               .ns("dc", "http://purl.org/dc/elements/1.1/")
               .e("entry").e("title").t("First").up()
               .e("dc:creator").t("Someone"))

    parsed = XmlBuilder.parse(builder.as_string())
    context = (parsed.build_document_namespace_context()
               .add_namespace("atom", "http://www.w3.org/2005/Atom"))

    assert parsed.xpath_query("string(//atom:entry/atom:title)", ResultKind.STRING, context) == "First"
    assert parsed.find_element("//dc:creator", context).xml_element.text == "Someone"


def test_error_conventions_side_by_side():
    """Test the same failure under both error conventions."""
    with pytest.raises(StateError):
        XmlBuilder.create("Root").t("BadBadBad").e("Child")

    with pytest.raises(XmlBuilderRuntimeError) as exc:
        RuntimeXmlBuilder.create("Root").t("BadBadBad").e("Child")
    assert isinstance(exc.value.cause, StateError)


def test_stream_output():
    """Test streaming a document with a declaration."""
    writer = io.StringIO()
    XmlBuilder.create("Root").set_standalone(True).to_writer(writer, {"omit-xml-declaration": "no"})
    assert writer.getvalue() == "<?xml version='1.0' encoding='UTF-8' standalone='yes'?>\n<Root/>"


def test_public_api():
    """Test the names exported by the package."""
    assert xmlbuilder.XmlBuilder is XmlBuilder
    assert isinstance(NamespaceContext(), NamespaceContext)
    assert xmlbuilder.__version__
