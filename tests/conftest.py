"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest
import structlog
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from pytest_seeder.core import ScriptExecutor
from tests.examples.entities import Account, MemoryDAORegistry, RecordingTransaction, User
from tests.examples.models import Base

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


@pytest.fixture(autouse=True)
def reset_logging() -> 'Iterator[None]':
    """Restore the default structlog configuration after each test.

    The command-line runner configures structlog to write to the stream
    that was `sys.stderr` at the time, which the click test runner closes.
    """
    yield
    structlog.reset_defaults()


@pytest.fixture
def registry() -> MemoryDAORegistry:
    """Provide an in-memory DAO registry assigning sequential ids."""
    return MemoryDAORegistry()


@pytest.fixture
def transaction() -> RecordingTransaction:
    """Provide a transaction double counting its boundaries."""
    return RecordingTransaction()


@pytest.fixture
def executor(registry: MemoryDAORegistry, transaction: RecordingTransaction) -> ScriptExecutor:
    """Provide an executor with entity classes available as inputs."""
    return ScriptExecutor(
        registry,
        transaction,
        inputs={'User': User, 'Account': Account},
    )


@pytest.fixture
def scripts(fs: 'FakeFilesystem') -> 'Callable[..., None]':
    """Provide a factory writing seed scripts to a fake filesystem.

    Returns:
        A callable taking `name=content` pairs, or a mapping for names
        that are not valid keywords.
    """
    def create(files: dict[str, str] | None = None, **contents: str) -> None:
        for name, content in {**(files or {}), **contents}.items():
            fs.create_file(name, contents=content)

    return create


@pytest.fixture
def session() -> 'Iterator[Session]':
    """Provide a session bound to a fresh in-memory SQLite database."""
    engine = create_engine('sqlite://')
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        yield session

    engine.dispose()
