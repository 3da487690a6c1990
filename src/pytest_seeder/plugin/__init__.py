"""Pytest plugin seeding databases from scripts.

This module integrates `pytest-seeder` with pytest by:
- registering command-line and ini options for the script directory;
- registering the `seed` marker;
- exposing fixtures that build a `ScriptExecutor` from a database
  session provided by the test suite.

A suite enables the plugin by overriding the `seeder_session` fixture:

    ```python
    @pytest.fixture
    def seeder_session(db_session):
        return db_session

    @pytest.mark.seed('users.py', orders='orders.py')
    def test_orders(seeded):
        assert seeded['orders']['first_order'].user is seeded['alice']
    ```
"""

from typing import TYPE_CHECKING

from .fixtures import (
    seeded,
    seeder,
    seeder_dao_registry,
    seeder_inputs,
    seeder_session,
    seeder_settings,
    seeder_transaction,
)

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser

__all__ = (
    'pytest_addoption',
    'pytest_configure',
    'seeded',
    'seeder',
    'seeder_dao_registry',
    'seeder_inputs',
    'seeder_session',
    'seeder_settings',
    'seeder_transaction',
)


def pytest_addoption(parser: 'Parser') -> None:
    """Register pytest command-line and ini options for pytest-seeder.

    Args:
        parser: Pytest argument parser.
    """
    parser.addoption(
        '--seeder-scripts-dir',
        action='store',
        dest='seeder_scripts_dir',
        default=None,
        help=(
            'Root directory against which seed script names are resolved. '
            'Overrides the `seeder_scripts_dir` ini option and the '
            '`SEEDER_SCRIPT_DIRECTORY` environment variable.'
        ),
    )
    parser.addini(
        'seeder_scripts_dir',
        type='string',
        default='',
        help='Root directory of seed scripts, relative to the rootdir.',
    )


def pytest_configure(config: 'Config') -> None:
    """Register the `seed` marker.

    Args:
        config: Pytest configuration object.
    """
    config.addinivalue_line(
        'markers',
        'seed(*scripts, **namespaced): seed scripts loaded by the `seeded` fixture; '
        'keyword arguments nest the variables of a script under the keyword.',
    )
