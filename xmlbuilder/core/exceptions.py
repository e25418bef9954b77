"""
Exception classes for xmlbuilder.

This module defines the errors raised by builder, parser, query and
serializer operations, plus the single runtime wrapper used by the
runtime-errors calling convention.
"""

from functools import wraps


class XmlBuilderError(Exception):
    """
    Base exception class for all xmlbuilder errors.

    All custom exceptions in the library should inherit from this class.
    """
    pass

class ConfigurationError(XmlBuilderError):
    """Exception raised when a parser or document factory cannot be configured."""
    pass

class ParseError(XmlBuilderError):
    """Exception raised when parsing XML fails."""
    pass

class SourceError(XmlBuilderError, OSError):
    """Exception raised when an XML source cannot be opened or read."""
    pass

class StateError(XmlBuilderError):
    """Exception raised when an operation would break the document structure."""
    pass

class UnsupportedOperationError(XmlBuilderError):
    """Exception raised when an operation is invoked on a node kind that does not support it."""
    pass

class InvalidArgumentError(XmlBuilderError, ValueError):
    """Exception raised for invalid argument values."""
    pass

class QueryError(XmlBuilderError):
    """Exception raised when an XPath query is invalid or finds no element."""
    pass

class RenderError(XmlBuilderError):
    """Exception raised when serializing a document fails."""
    pass


class XmlBuilderRuntimeError(RuntimeError):
    """
    Single wrapper for every xmlbuilder error.

    Raised by the runtime-errors builder in place of the typed errors. The
    original error is kept as the ``cause`` (and ``__cause__``) so the error
    kind and message remain available for diagnosis.
    """

    def __init__(self, cause: XmlBuilderError):
        """
        Initialize an XmlBuilderRuntimeError.

        Args:
            cause: The typed error being wrapped
        """
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.cause = cause


def wrap_runtime_errors(func):
    """
    Decorator that re-raises xmlbuilder errors as XmlBuilderRuntimeError.

    Errors that are already wrapped pass through untouched.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except XmlBuilderRuntimeError:
            raise
        except XmlBuilderError as e:
            raise XmlBuilderRuntimeError(e) from e
    return wrapper
