"""
Tests for the exception hierarchy and the runtime wrapper.
"""

import pytest

from xmlbuilder.core.exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    ParseError,
    QueryError,
    RenderError,
    SourceError,
    StateError,
    UnsupportedOperationError,
    XmlBuilderError,
    XmlBuilderRuntimeError,
    wrap_runtime_errors,
)


@pytest.mark.parametrize("error_class", [
    ConfigurationError, ParseError, SourceError, StateError,
    UnsupportedOperationError, InvalidArgumentError, QueryError, RenderError,
])
def test_hierarchy(error_class):
    """Test that every typed error shares the base class."""
    assert issubclass(error_class, XmlBuilderError)


def test_builtin_bases():
    """Test the built-in exception bases of selected errors."""
    assert issubclass(SourceError, OSError)
    assert issubclass(InvalidArgumentError, ValueError)
    assert not issubclass(XmlBuilderRuntimeError, XmlBuilderError)


class TestWrapRuntimeErrors:
    """Tests for the wrap_runtime_errors decorator."""

    def test_wraps_typed_error(self):
        """Test that typed errors are wrapped with their cause."""
        @wrap_runtime_errors
        def fail():
            raise QueryError("no match")

        with pytest.raises(XmlBuilderRuntimeError) as exc:
            fail()
        assert str(exc.value) == "QueryError: no match"
        assert isinstance(exc.value.cause, QueryError)
        assert exc.value.__cause__ is exc.value.cause

    def test_passes_other_errors(self):
        """Test that unrelated errors propagate unchanged."""
        @wrap_runtime_errors
        def fail():
            raise KeyError("key")

        with pytest.raises(KeyError):
            fail()

    def test_does_not_double_wrap(self):
        """Test that a wrapped error is not wrapped again."""
        inner = XmlBuilderRuntimeError(StateError("text"))

        @wrap_runtime_errors
        def fail():
            raise inner

        with pytest.raises(XmlBuilderRuntimeError) as exc:
            fail()
        assert exc.value is inner

    def test_keeps_return_value_and_name(self):
        """Test that the wrapped function behaves like the original."""
        @wrap_runtime_errors
        def add(a, b):
            """Add numbers."""
            return a + b

        assert add(1, 2) == 3
        assert add.__name__ == "add"
        assert add.__doc__ == "Add numbers."
