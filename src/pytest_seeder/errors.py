"""Core exception hierarchy.

This module defines base error types used across the library to report
malformed DSL calls, entity instantiation failures, unreadable or invalid
scripts, and configuration problems in a structured way.

Errors raised by persistence collaborators are never wrapped: they reach
the caller exactly as the collaborator raised them.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import safe_dump

from pytest_seeder.values import to_plain

if TYPE_CHECKING:
    from typing import Self

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_SEPARATOR = f' ---{linesep}'
SNIPPET_INDENT = 2

FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Location of the script where the error occurred.
    filename: str | None
    #: Namespace label of the script reference, if any.
    namespace: str | None

    #: Line number in the script (1-based).
    line_num: int | None
    #: Column number in the script (1-based).
    column_num: int | None
    #: Text of the offending script line.
    source_line: str | None

    #: Underlying exception that triggered formatting.
    error: Exception | None

    #: Input variables visible to the script at the moment of failure.
    context: dict[str, Any] | None


class ErrorFormatter:
    """Utility class for formatting seeder errors.

    This formatter produces human-readable error messages with optional
    script location and a YAML snippet describing the variables the
    failing script received.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format script location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line,
            column and namespace when available.
        """
        indent = cls._ensure_indent(indent)

        filename = context.get('filename')
        if not filename:
            filename = FORMAT_FILENAME

        message = f'{indent}in "{filename}"'
        if (line_num := context.get('line_num')) is not None:
            message += f', line {line_num}'
            if (column_num := context.get('column_num')) is not None:
                message += f', column {column_num}'
        message += linesep

        if namespace := context.get('namespace'):
            message += f'{indent}loaded as namespace "{namespace}"{linesep}'

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a snippet illustrating the error context.

        Args:
            context: Error context containing source and variables data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        source_line = context.get('source_line')
        values = context.get('context')
        if not source_line and not values:
            return ''

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'

        if values:
            snippet += cls._make_yaml({'inputs': {**values}}, indent)
            snippet += linesep
            snippet += f'{indent}{SNIPPET_SEPARATOR}'

        if source_line:
            snippet += f'{indent}> {source_line.strip()}{linesep}'

        return snippet

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to a YAML-formatted string.

        The value is first converted to plain data so that entities and
        opaque objects never leak into the message.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = safe_dump(
            to_plain(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.

        Args:
            value: Original multi-line string.
            indent: Indentation prefix.

        Returns:
            Indented string.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input.

        Args:
            indent: Indentation as string or number of spaces.

        Returns:
            A string consisting of spaces or the provided string.
        """
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class SeederError(Exception, ErrorFormatter):
    """Base exception for all pytest-seeder errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location and values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)

    def with_context(self, context: ErrorContext) -> 'Self':
        """Create a copy of this error bound to a script location.

        Subclasses carrying extra attributes override this method to keep
        them on the copy.

        Args:
            context: Error context describing the failing script.

        Returns:
            A new error of the same type with the given context.
        """
        return type(self)(self.message, context=context)


class SeederConfigError(SeederError):
    """Error raised when the seeder is misconfigured.

    For example, the pytest plugin raises it when no database session
    fixture has been provided by the test suite.
    """


class ScriptUsageError(SeederError):
    """Error raised for a malformed DSL call inside a script.

    Wrong argument count or types passed to `table`, `find` or `load`,
    a `row` call outside of a `table` block, or a row whose values do
    not match the declared attributes. These are programmer errors in
    the authored script and are never retried.
    """


class EntityInstantiationError(SeederError):
    """Error raised when an entity type cannot be default-constructed."""

    def __init__(self, message: str, *,
                 entity_type: type | None = None,
                 context: ErrorContext | None = None) -> None:
        """Initialize an instantiation error.

        Args:
            message: Human-readable error description.
            entity_type: Entity class that failed to instantiate.
            context: Error context containing optional location and values.
        """
        self.entity_type = entity_type

        super().__init__(message, context=context)

    @classmethod
    def from_type(cls, entity_type: type) -> 'Self':
        """Create an error naming the offending entity type.

        Args:
            entity_type: Entity class that failed to instantiate.

        Returns:
            An initialized instantiation error.
        """
        name = f'{entity_type.__module__}.{entity_type.__qualname__}'

        return cls(f'Can not instantiate entity {name!r}', entity_type=entity_type)

    def with_context(self, context: ErrorContext) -> 'Self':
        """Create a copy of this error bound to a script location."""
        return type(self)(self.message, entity_type=self.entity_type, context=context)


class ScriptResourceError(SeederError):
    """Error raised when a script can not be located or read."""

    def __init__(self, message: str, *,
                 location: str | None = None,
                 context: ErrorContext | None = None) -> None:
        """Initialize a resource error.

        Args:
            message: Human-readable error description.
            location: Resolved location of the script.
            context: Error context containing optional location and values.
        """
        self.location = location

        if context is None and location is not None:
            context = ErrorContext(filename=location)

        super().__init__(message, context=context)

    def with_context(self, context: ErrorContext) -> 'Self':
        """Create a copy of this error bound to a script location."""
        return type(self)(self.message, location=self.location, context=context)


class ScriptSyntaxError(SeederError):
    """Error raised when a script text can not be compiled."""

    @classmethod
    def from_syntax_error(cls, error: SyntaxError) -> 'Self':
        """Create a script error from a compilation failure.

        Args:
            error: Exception raised by the Python compiler.

        Returns:
            ScriptSyntaxError carrying the failing location.
        """
        error_context = ErrorContext(
            filename=error.filename,
            line_num=error.lineno,
            column_num=error.offset,
            source_line=error.text,
            error=error,
        )

        message = 'Invalid script syntax'
        if error.msg:
            message += f'{linesep}{' ' * FORMAT_INDENT}{error.msg}'

        return cls(message, context=error_context)
