"""Persistence collaborators of the script executor.

The executor never talks to a database directly. It relies on two
collaborators described here as structural protocols:

- a `Transaction` that runs a unit of work atomically;
- a `DAORegistry` that hands out a `DAO` for an entity class or instance.

`pytest_seeder.persistence.orm` provides SQLAlchemy implementations.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

#: A unit of work executed by a transaction.
type Work[T] = Callable[[], T]


@runtime_checkable
class Transaction(Protocol):
    """Executes units of work atomically."""

    def exec[T](self, work: Work[T]) -> T:
        """Run the unit of work inside a transaction and return its result.

        Failures raised by the unit of work propagate to the caller after
        the transaction has applied its own failure policy.
        """
        ...  # pragma: no cover


@runtime_checkable
class DAO[E](Protocol):
    """Generic create and lookup capability for one entity type."""

    def create(self, entity: E) -> E:
        """Persist a new entity and return the persisted instance."""
        ...  # pragma: no cover

    def find_by_id(self, id_: Any) -> E | None:  # noqa: ANN401
        """Return the entity with the given primary key, or `None`."""
        ...  # pragma: no cover


@runtime_checkable
class DAORegistry(Protocol):
    """Lookup of a DAO by entity class or instance."""

    def get(self, entity: type | object) -> DAO[Any]:
        """Return the DAO responsible for the entity class or instance."""
        ...  # pragma: no cover


__all__ = (
    'DAO',
    'DAORegistry',
    'Transaction',
    'Work',
)
