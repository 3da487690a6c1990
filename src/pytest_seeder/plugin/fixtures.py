"""Fixtures exposed by the pytest-seeder plugin.

The fixtures form a chain that a test suite can override at any level:

    seeder_session -> seeder_transaction -> seeder_dao_registry -> seeder -> seeded

Only `seeder_session` has no usable default. Suites using another
persistence layer override `seeder_transaction` and `seeder_dao_registry`
instead.
"""

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from pytest_seeder.core import ScriptExecutor
from pytest_seeder.errors import SeederConfigError
from pytest_seeder.models import Script, SeederSettings
from pytest_seeder.persistence.orm import SessionDAORegistry, SessionTransaction

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from pytest_seeder.persistence import DAORegistry, Transaction
    from pytest_seeder.values import RuntimeValue


@pytest.fixture
def seeder_settings(request: pytest.FixtureRequest) -> SeederSettings:
    """Resolve executor settings.

    The `--seeder-scripts-dir` option wins over the `seeder_scripts_dir`
    ini option, which wins over `SEEDER_*` environment variables.
    """
    config = request.config

    if directory := config.getoption('seeder_scripts_dir', default=None):
        return SeederSettings(script_directory=Path(directory))

    if directory := config.getini('seeder_scripts_dir'):
        return SeederSettings(script_directory=config.rootpath / directory)

    return SeederSettings()


@pytest.fixture
def seeder_inputs() -> dict[str, 'RuntimeValue']:
    """Input variables visible to every seed script. Empty by default."""
    return {}


@pytest.fixture
def seeder_session() -> 'Session':
    """SQLAlchemy session used to persist seeded entities.

    Raises:
        SeederConfigError: Always; test suites must override this fixture.
    """
    raise SeederConfigError(
        'Override the `seeder_session` fixture to return a SQLAlchemy session, '
        'or override `seeder_transaction` and `seeder_dao_registry`',
    )


@pytest.fixture
def seeder_transaction(seeder_session: 'Session') -> 'Transaction':
    """Transaction wrapping each seed script."""
    return SessionTransaction(seeder_session)


@pytest.fixture
def seeder_dao_registry(seeder_session: 'Session',
                        seeder_transaction: SessionTransaction) -> 'DAORegistry':
    """DAO lookup used by `row` and `find`."""
    return SessionDAORegistry(seeder_session, seeder_transaction)


@pytest.fixture
def seeder(seeder_dao_registry: 'DAORegistry', seeder_transaction: 'Transaction',
           seeder_settings: SeederSettings,
           seeder_inputs: dict[str, 'RuntimeValue']) -> ScriptExecutor:
    """Script executor bound to the test database."""
    return ScriptExecutor.from_settings(
        seeder_dao_registry,
        seeder_transaction,
        seeder_settings,
        inputs=seeder_inputs,
    )


@pytest.fixture
def seeded(request: pytest.FixtureRequest, seeder: ScriptExecutor) -> dict[str, 'RuntimeValue']:
    """Variables produced by the scripts named in the `seed` marker.

    Positional marker arguments are script names, optionally in the
    `namespace=name` form; keyword arguments map namespaces to names.

    Raises:
        SeederConfigError: If the test has no `seed` marker.
    """
    marker = request.node.get_closest_marker('seed')
    if marker is None:
        raise SeederConfigError('The `seeded` fixture requires a `seed` marker')

    scripts = [
        item if isinstance(item, Script) else Script.parse(item)
        for item in marker.args
    ]
    scripts.extend(
        Script.with_namespace(name, namespace)
        for namespace, name in marker.kwargs.items()
    )

    return seeder.load_namespaced(scripts)
