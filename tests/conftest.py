"""
Test configuration and fixtures for xmlbuilder tests.

This module provides pytest fixtures for unit and integration tests.
"""

import os
import sys
import pytest
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from xmlbuilder.core.settings import settings

EXAMPLE_XML = (
    '<Projects>'
    '<java-xmlbuilder language="Java" scm="SVN">'
    '<Location type="URL">http://code.google.com/p/java-xmlbuilder/</Location>'
    '</java-xmlbuilder>'
    '<JetS3t language="Java" scm="CVS">'
    '<Location type="URL">http://jets3t.s3.amazonaws.com/index.html</Location>'
    '</JetS3t>'
    '</Projects>'
)

EXTERNAL_ENTITY_TEXT = "Injected XXE Data"


@pytest.fixture(autouse=True)
def default_settings():
    """Run every test against the built-in defaults."""
    settings.reset()
    yield settings
    settings.reset()


@pytest.fixture
def example_xml():
    """Return the Projects example document."""
    return EXAMPLE_XML


@pytest.fixture
def example_file(tmp_path):
    """Write the Projects example document to a file and return its path."""
    path = tmp_path / "projects.xml"
    path.write_text(EXAMPLE_XML, encoding="utf-8")
    return path


@pytest.fixture
def pretty_xml():
    """Return an indented document with whitespace-only text nodes."""
    return """<Projects>
  <JetS3t language="Java">
    <Location type="URL">http://jets3t.s3.amazonaws.com/index.html</Location>
  </JetS3t>
</Projects>
"""


@pytest.fixture
def xxe_xml(tmp_path):
    """Return a document whose entity xx1 refers to a local file."""
    external = tmp_path / "external.txt"
    external.write_text(EXTERNAL_ENTITY_TEXT, encoding="utf-8")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<!DOCTYPE foo [<!ENTITY xx1 SYSTEM "{external.as_uri()}">]>\n'
        '<foo>&xx1;</foo>'
    )
