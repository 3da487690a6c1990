"""Tests for error formatting."""

from os import linesep

import pytest

from pytest_seeder.errors import (
    EntityInstantiationError,
    ErrorContext,
    ErrorFormatter,
    ScriptResourceError,
    ScriptSyntaxError,
    ScriptUsageError,
    SeederError,
)
from tests.examples.entities import Immutable


def test_format_without_context() -> None:
    """Messages without context are returned as is."""
    assert str(ScriptUsageError('Bad call')) == 'Bad call'


def test_str_docstring() -> None:
    """The string conversion is documented."""
    assert SeederError.__str__.__doc__ == 'String representation.'


def test_format_with_location() -> None:
    """Location lines name the file, line, column and namespace."""
    message = ErrorFormatter.format('Bad call', ErrorContext(
        filename='seeds/users.py',
        namespace='people',
        line_num=3,
        column_num=7,
    ))

    assert message.splitlines() == [
        'Bad call',
        '    in "seeds/users.py", line 3, column 7',
        '    loaded as namespace "people"',
    ]


def test_format_with_snippet() -> None:
    """Snippets list the script inputs and the failing line."""
    message = ErrorFormatter.format('Bad call', ErrorContext(
        line_num=2,
        source_line='    row(name)',
        context={'env': 'test', 'User': Immutable},
    ))

    assert message.splitlines() == [
        'Bad call',
        '    in "<unicode string>", line 2',
        '         ...',
        '        inputs:',
        '          env: test',
        "          User: <runtime object>",
        '         ---',
        '        > row(name)',
    ]


def test_location_without_line() -> None:
    """Column numbers are only shown together with line numbers."""
    location = ErrorFormatter.get_location_string(ErrorContext(filename='a.py', column_num=4))

    assert location == f'in "a.py"{linesep}'


def test_snippet_empty() -> None:
    """No snippet is produced without source or inputs."""
    assert ErrorFormatter.get_snippet_string(ErrorContext(filename='a.py')) == ''


def test_with_context_copies_error() -> None:
    """Binding a location creates a new error of the same type."""
    error = ScriptUsageError('Bad call')
    located = error.with_context(ErrorContext(filename='a.py', line_num=1))

    assert type(located) is ScriptUsageError
    assert located is not error
    assert error.context is None
    assert located.message == 'Bad call'
    assert str(located).endswith('in "a.py", line 1')


def test_instantiation_error() -> None:
    """Instantiation errors name the entity and survive relocation."""
    error = EntityInstantiationError.from_type(Immutable)
    located = error.with_context(ErrorContext(filename='a.py'))

    assert error.message == "Can not instantiate entity 'tests.examples.entities.Immutable'"
    assert located.entity_type is Immutable


def test_resource_error_location() -> None:
    """Resource errors carry their location as context."""
    error = ScriptResourceError('Can not read script', location='seeds/a.py')
    located = error.with_context(ErrorContext(filename='seeds/a.py', namespace='a'))

    assert str(error) == f'Can not read script{linesep}    in "seeds/a.py"'
    assert located.location == 'seeds/a.py'
    assert 'loaded as namespace "a"' in str(located)


def test_syntax_error() -> None:
    """Syntax errors keep the compiler location and message."""
    with pytest.raises(SyntaxError) as base:
        compile('value = (1,\n', 'broken.py', 'exec')

    error = ScriptSyntaxError.from_syntax_error(base.value)

    assert error.message.startswith('Invalid script syntax')
    assert "'(' was never closed" in error.message
    assert error.context['filename'] == 'broken.py'
    assert error.context['line_num'] == 1
    assert isinstance(error, SeederError)


@pytest.mark.parametrize('indent, expected', (
    pytest.param(2, '  ', id='spaces'),
    pytest.param('\t', '\t', id='string'),
    pytest.param(None, '', id='none'),
    pytest.param(0, '', id='zero'),
))
def test_ensure_indent(indent: int | str | None, expected: str) -> None:
    """Indentation is normalized to a string."""
    assert ErrorFormatter._ensure_indent(indent) == expected  # noqa: SLF001
