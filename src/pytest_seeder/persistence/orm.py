"""SQLAlchemy implementations of the persistence collaborators.

This module provides:
- SessionTransaction: units of work scoped to a SQLAlchemy session
- SessionDAO: generic transactional data access for one mapped class
- SessionDAORegistry: DAO lookup by mapped class or instance

Every DAO operation runs inside the transaction and flushes, so primary
keys generated by the database are available on the returned entities.
Commit and rollback belong to the transaction: an operation executed while
the session already has an open transaction joins it.
"""

from collections.abc import Collection, Iterable
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import inspect, select
from sqlalchemy.orm import Mapper

from pytest_seeder.errors import SeederConfigError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from pytest_seeder.persistence import DAO, Work

logger = structlog.get_logger()


class SessionTransaction:
    """Transaction collaborator backed by a SQLAlchemy session.

    A unit of work joins the transaction already open on the session.
    Otherwise a new transaction is begun, committed when the unit of
    work returns and rolled back when it raises.
    """

    def __init__(self, session: 'Session') -> None:
        self.session = session

    def exec[T](self, work: 'Work[T]') -> T:
        """Run the unit of work atomically and return its result."""
        if self.session.in_transaction():
            return work()

        with self.session.begin():
            return work()


class SessionDAO[E]:
    """Generic transactional DAO for one mapped entity class."""

    def __init__(self, session: 'Session', entity_type: type[E],
                 transaction: SessionTransaction | None = None) -> None:
        self.session = session
        self.entity_type = entity_type
        self.transaction = transaction or SessionTransaction(session)

    @property
    def id_column(self) -> Any:  # noqa: ANN401
        """Return the primary key column of the entity table.

        Raises:
            SeederConfigError: If the entity has a composite primary key.
        """
        primary_key = inspect(self.entity_type).primary_key
        if len(primary_key) != 1:
            raise SeederConfigError(
                f'Entity {self.entity_type.__name__!r} has a composite primary key',
            )

        return primary_key[0]

    def create(self, entity: E) -> E:
        """Persist a new entity and return it with generated values."""
        def work() -> E:
            self.session.add(entity)
            self.session.flush()
            return entity

        return self.transaction.exec(work)

    def create_all(self, entities: Iterable[E]) -> list[E]:
        """Persist several entities in one transaction."""
        return self.transaction.exec(lambda: [self.create(entity) for entity in entities])

    def find_by_id(self, id_: Any) -> E | None:  # noqa: ANN401
        """Return the entity with the given primary key, or `None`."""
        return self.transaction.exec(lambda: self.session.get(self.entity_type, id_))

    def find_all_by_id(self, ids: Collection[Any]) -> list[E]:
        """Return entities whose primary key is one of the given values."""
        # An empty IN clause is not worth a query.
        if not ids:
            return []

        query = select(self.entity_type).where(self.id_column.in_(ids))

        return self.transaction.exec(lambda: list(self.session.scalars(query)))

    def find_all(self) -> list[E]:
        """Return every entity of the type."""
        query = select(self.entity_type)

        return self.transaction.exec(lambda: list(self.session.scalars(query)))

    def update(self, entity: E) -> E:
        """Merge a detached or modified entity and return the managed copy."""
        def work() -> E:
            merged = self.session.merge(entity)
            self.session.flush()
            return merged

        return self.transaction.exec(work)

    def delete(self, entity: E) -> E:
        """Delete an entity and return the removed managed copy."""
        def work() -> E:
            merged = self.session.merge(entity)
            self.session.delete(merged)
            self.session.flush()
            return merged

        return self.transaction.exec(work)


class SessionDAORegistry:
    """Registry handing out DAOs for mapped classes.

    Generic `SessionDAO` instances are created on first use and cached
    per class. Custom DAOs registered for a class also serve its
    subclasses.
    """

    def __init__(self, session: 'Session',
                 transaction: SessionTransaction | None = None) -> None:
        self.session = session
        self.transaction = transaction or SessionTransaction(session)

        self._daos: dict[type, 'DAO[Any]'] = {}

    def register(self, entity_type: type, dao: 'DAO[Any]') -> None:
        """Install a custom DAO for an entity class.

        Args:
            entity_type: Entity class served by the DAO.
            dao: Object providing at least `create` and `find_by_id`.
        """
        self._daos[entity_type] = dao

    def get(self, entity: type | object) -> 'DAO[Any]':
        """Return the DAO for an entity class or instance.

        Args:
            entity: Mapped class or an instance of one.

        Returns:
            Registered or generic DAO for the class.

        Raises:
            SeederConfigError: If the class is not mapped by SQLAlchemy
                and no custom DAO has been registered for it.
        """
        entity_type = entity if isinstance(entity, type) else type(entity)

        for base in entity_type.__mro__:
            if (dao := self._daos.get(base)) is not None:
                return dao

        if not isinstance(inspect(entity_type, raiseerr=False), Mapper):
            raise SeederConfigError(f'{entity_type.__qualname__!r} is not a mapped entity')

        logger.debug('dao_created', entity=entity_type.__qualname__)

        dao = SessionDAO(self.session, entity_type, self.transaction)
        self._daos[entity_type] = dao

        return dao
