"""Entity creation contexts and their explicit stack.

A `table` block opens an entity creation context describing which entity
type is being created and which attribute names the positional values of
`row` calls map to. Contexts live on an explicit last-in-first-out stack,
so blocks may nest and `row` always targets the innermost one.
"""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING

from pytest_seeder.errors import ScriptUsageError

if TYPE_CHECKING:
    from pytest_seeder.values import RuntimeValue


class EntityContext:
    """Active scope of a single `table` block.

    Attributes:
        entity_type: Class instantiated by `row` calls.
        attributes: Ordered attribute names for positional row values.
        entities: Persisted entities created while the context was active.
    """

    def __init__(self, entity_type: type, attributes: Sequence[str]) -> None:
        """Initialize an empty context.

        Args:
            entity_type: Class instantiated by `row` calls.
            attributes: Ordered attribute names.
        """
        self.entity_type = entity_type
        self.attributes = tuple(attributes)
        self.entities: list[RuntimeValue] = []

    def __repr__(self) -> str:
        """Debug representation."""
        return (
            f'{type(self).__name__}({self.entity_type.__name__}, '
            f'attributes={list(self.attributes)!r}, created={len(self.entities)})'
        )


class ContextStack:
    """Last-in-first-out stack of entity creation contexts.

    The stack is not thread-safe: one stack belongs to one executor and
    is only used from the thread running its scripts.
    """

    def __init__(self) -> None:
        """Initialize an empty stack."""
        self._contexts: list[EntityContext] = []

    def __len__(self) -> int:
        """Return the current nesting depth."""
        return len(self._contexts)

    def push(self, entity_type: type, attributes: Sequence[str]) -> EntityContext:
        """Open a new context on top of the stack.

        Args:
            entity_type: Class instantiated by `row` calls.
            attributes: Ordered attribute names.

        Returns:
            The newly pushed context.
        """
        context = EntityContext(entity_type, attributes)
        self._contexts.append(context)

        return context

    def pop(self) -> EntityContext:
        """Remove and return the innermost context.

        Raises:
            ScriptUsageError: If the stack is empty.
        """
        if not self._contexts:
            raise ScriptUsageError('No active table context to close')

        return self._contexts.pop()

    def peek(self) -> EntityContext:
        """Return the innermost context without removing it.

        Raises:
            ScriptUsageError: If the stack is empty, that is when `row`
                is called outside of a `table` block.
        """
        if not self._contexts:
            raise ScriptUsageError('The row() method must be called inside a table() block')

        return self._contexts[-1]

    @contextmanager
    def enter(self, entity_type: type, attributes: Sequence[str]) -> Iterator[EntityContext]:
        """Scope a context to a block of code.

        The context is pushed on entry and popped on every exit path,
        so the stack stays balanced when the block raises.

        Args:
            entity_type: Class instantiated by `row` calls.
            attributes: Ordered attribute names.

        Yields:
            The active context.
        """
        context = self.push(entity_type, attributes)
        try:
            yield context
        finally:
            self.pop()
