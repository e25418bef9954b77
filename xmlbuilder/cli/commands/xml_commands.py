"""
XML commands for the xmlbuilder CLI.

These commands load a document with XmlBuilder and either query it or
render it back out.
"""

import logging
import math
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from lxml import etree
from rich.console import Console
from rich.markup import escape

from xmlbuilder.core.exceptions import XmlBuilderError
from xmlbuilder.core.logging_utils import log
from xmlbuilder.core.xml.builder import XmlBuilder
from xmlbuilder.core.xml.query import ResultKind
from ..app import app
from ..common import (
    complete_result_kinds,
    file_callback,
    kind_callback,
    optional_file_callback,
    parse_namespace_options,
)

# Set up logging
logger = logging.getLogger("xmlbuilder")
console = Console()


def _fail(message: str) -> None:
    logger.error(message)
    console.print(f"[bold red]Error:[/bold red] {escape(message)}", soft_wrap=True)
    sys.exit(1)


def _emit(text: str, output_file: Optional[Path] = None) -> None:
    """Write command output to a file, or print it as-is."""
    if output_file:
        output_file.write_text(text, encoding="utf-8")
        console.print(f"[green]Wrote {escape(str(output_file))}[/green]")
    else:
        console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


def load_options_file(path: Path) -> Dict[str, Any]:
    """
    Load serializer options from a YAML file.

    The file must hold a mapping of option names to values, e.g.::

        indent: yes
        indent-amount: 4
        omit-xml-declaration: no

    Raises:
        ValueError: If the file does not hold a mapping
    """
    with open(path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Options file {path} must contain a mapping of output options")
    return {str(key): value for key, value in loaded.items()}


def format_result(value: Any) -> str:
    """Render one XPath result item for display."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, etree._Element):
        return etree.tostring(value, encoding="unicode", with_tail=False)
    return str(value)


def _namespace_context(builder: XmlBuilder, ns: Optional[List[str]]):
    context = builder.build_document_namespace_context()
    for prefix, uri in parse_namespace_options(ns).items():
        context.add_namespace(prefix, uri)
    return context


@app.command("format")
def format_document(
    xml_file: Path = typer.Argument(..., help="XML file to format", callback=file_callback),
    indent: bool = typer.Option(True, "--indent/--no-indent", help="Pretty-print the output"),
    indent_amount: int = typer.Option(2, "--indent-amount", help="Spaces per indentation level"),
    declaration: bool = typer.Option(False, "--declaration", help="Write the XML declaration"),
    options_file: Optional[Path] = typer.Option(
        None, "--options", help="YAML file with output options", callback=optional_file_callback
    ),
    output_file: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
):
    """
    Parse a document and render it again.

    Example:
        xmlbuilder format config.xml --indent-amount 4 --declaration
    """
    logger.info(f"Formatting {xml_file}")
    options: Dict[str, Any] = {
        "omit-xml-declaration": "no" if declaration else "yes",
        "indent": "yes" if indent else "no",
    }
    if indent:
        options["indent-amount"] = indent_amount

    try:
        if options_file:
            options.update(load_options_file(options_file))
        builder = XmlBuilder.parse(Path(xml_file))
        if indent:
            builder.strip_whitespace_only_text_nodes()
        text = builder.as_string(options)
        log("Formatted document", "debug", {"file": xml_file, "options": options})
    except (XmlBuilderError, ValueError, OSError, yaml.YAMLError) as e:
        _fail(f"Error formatting {xml_file}: {e}")
    else:
        _emit(text, output_file)


@app.command()
def query(
    xml_file: Path = typer.Argument(..., help="XML file to query", callback=file_callback),
    xpath: str = typer.Argument(..., help="XPath expression"),
    kind: str = typer.Option(
        "nodeset", "--kind", "-k", help="Result kind (node, nodeset, string, number, boolean)",
        callback=kind_callback, autocompletion=complete_result_kinds,
    ),
    ns: Optional[List[str]] = typer.Option(None, "--ns", help="Namespace mapping prefix=uri, repeatable"),
):
    """
    Evaluate an XPath expression and print the result.

    Example:
        xmlbuilder query config.xml "count(//Location)" --kind number
    """
    try:
        builder = XmlBuilder.parse(Path(xml_file))
        result = builder.xpath_query(xpath, ResultKind(kind), _namespace_context(builder, ns))
    except XmlBuilderError as e:
        _fail(f"Error querying {xml_file}: {e}")
    else:
        if isinstance(result, list):
            logger.debug(f"XPath matched {len(result)} nodes")
            for item in result:
                _emit(format_result(item))
        elif result is not None:
            _emit(format_result(result))


@app.command()
def find(
    xml_file: Path = typer.Argument(..., help="XML file to search", callback=file_callback),
    xpath: str = typer.Argument(..., help="XPath expression that selects an element"),
    ns: Optional[List[str]] = typer.Option(None, "--ns", help="Namespace mapping prefix=uri, repeatable"),
):
    """
    Print the first element matching an XPath expression.

    Example:
        xmlbuilder find config.xml "//Location[@type='URL']"
    """
    try:
        builder = XmlBuilder.parse(Path(xml_file))
        found = builder.find_element(xpath, _namespace_context(builder, ns))
        text = found.element_as_string()
    except XmlBuilderError as e:
        _fail(f"Error searching {xml_file}: {e}")
    else:
        _emit(text)


@app.command()
def strip(
    xml_file: Path = typer.Argument(..., help="XML file to clean", callback=file_callback),
    output_file: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
):
    """
    Remove whitespace-only text nodes, e.g. indentation from pretty-printed input.

    Example:
        xmlbuilder strip pretty.xml -o compact.xml
    """
    try:
        text = XmlBuilder.parse(Path(xml_file)).strip_whitespace_only_text_nodes().as_string()
    except XmlBuilderError as e:
        _fail(f"Error stripping {xml_file}: {e}")
    else:
        _emit(text, output_file)
