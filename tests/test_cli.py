"""Tests for the command-line runner."""

from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session
from yaml import safe_load

from pytest_seeder.__main__ import cli
from pytest_seeder.values import PLACEHOLDER
from tests.examples.models import Base, Customer

if TYPE_CHECKING:
    from pathlib import Path

runner = CliRunner()

CUSTOMERS = '''\
from tests.examples.models import Customer

customers = table(Customer, ['name', 'age'], lambda: [
    row(name, age),
])
'''

ORDERS = '''\
from tests.examples.models import Order

orders = table(Order, ['item', 'customer'], lambda: [
    row('book', customers[0]),
])
'''


@pytest.fixture
def database(tmp_path: 'Path') -> str:
    """Create an SQLite database file with the test schema."""
    url = f'sqlite:///{tmp_path / "seed.db"}'

    engine = create_engine(url)
    Base.metadata.create_all(engine)
    engine.dispose()

    return url


@pytest.fixture
def seeds(tmp_path: 'Path') -> 'Path':
    """Create a directory with seed scripts."""
    directory = tmp_path / 'seeds'
    directory.mkdir()

    (directory / 'customers.py').write_text(CUSTOMERS, encoding='utf-8')
    (directory / 'orders.py').write_text(ORDERS, encoding='utf-8')
    (directory / 'broken.py').write_text("row('orphan')\n", encoding='utf-8')

    return directory


def stored_names(url: str) -> list[str]:
    """Return the names of customers stored in the database."""
    engine = create_engine(url)
    try:
        with Session(engine) as session:
            return list(session.scalars(select(Customer.name)))
    finally:
        engine.dispose()


def test_run_scripts(database: str, seeds: 'Path') -> None:
    """Run scripts, commit and print the produced variables."""
    result = runner.invoke(cli, [
        'run', 'customers.py', 'shop=orders.py',
        '--database-url', database,
        '--scripts-dir', str(seeds),
        '--input', 'name=alice',
        '--input', 'age=30',
    ])

    assert result.exit_code == 0, result.output

    output = safe_load(result.stdout)
    assert output['name'] == 'alice'
    assert output['age'] == 30
    assert output['Customer'] == PLACEHOLDER
    assert output['customers'] == [{'id': 1, 'name': 'alice', 'age': 30}]
    assert output['shop']['orders'] == [{'id': 1, 'item': 'book', 'customer_id': 1}]

    assert stored_names(database) == ['alice']


def test_run_dry_run(database: str, seeds: 'Path') -> None:
    """Dry runs roll the transaction back."""
    result = runner.invoke(cli, [
        'run', 'customers.py', '--dry-run',
        '-d', database, '-s', str(seeds), '-i', 'name=bob', '-i', 'age=null',
    ])

    assert result.exit_code == 0, result.output
    assert safe_load(result.stdout)['customers'][0]['age'] is None
    assert stored_names(database) == []


def test_run_inputs_file(database: str, seeds: 'Path', tmp_path: 'Path') -> None:
    """Inputs are read from a YAML file and overridden by pairs."""
    inputs = tmp_path / 'inputs.yaml'
    inputs.write_text('name: carol\nage: 41\n', encoding='utf-8')

    result = runner.invoke(cli, [
        'run', 'customers.py',
        '-d', database, '-s', str(seeds), '-f', str(inputs), '-i', 'name=dave',
    ])

    assert result.exit_code == 0, result.output
    assert safe_load(result.stdout)['customers'] == [{'id': 1, 'name': 'dave', 'age': 41}]


def test_run_database_url_from_environment(database: str, seeds: 'Path',
                                           monkeypatch: pytest.MonkeyPatch) -> None:
    """The database URL is read from the environment."""
    monkeypatch.setenv('SEEDER_DATABASE_URL', database)

    result = runner.invoke(cli, [
        'run', 'customers.py', '-s', str(seeds), '-i', 'name=erin', '-i', 'age=22',
    ])

    assert result.exit_code == 0, result.output
    assert stored_names(database) == ['erin']


def test_run_failure_rolls_back(database: str, seeds: 'Path') -> None:
    """A failing script reports a located error and commits nothing."""
    result = runner.invoke(cli, [
        'run', 'customers.py', 'broken.py',
        '-d', database, '-s', str(seeds), '-i', 'name=alice', '-i', 'age=30',
    ])

    assert result.exit_code == 1
    assert 'Error: The row() method must be called inside a table() block' in result.output
    assert f'in "{seeds / "broken.py"}", line 1' in result.output
    assert stored_names(database) == []


def test_run_missing_script(database: str, seeds: 'Path') -> None:
    """Missing scripts are reported as errors."""
    result = runner.invoke(cli, ['run', 'missing.py', '-d', database, '-s', str(seeds)])

    assert result.exit_code == 1
    assert "Can not read script 'missing.py'" in result.output


@pytest.mark.parametrize('args, message', (
    pytest.param(['-i', 'broken'], 'must have the KEY=VALUE form', id='no equals'),
    pytest.param(['-i', '=value'], 'must have the KEY=VALUE form', id='no key'),
))
def test_run_invalid_inputs(database: str, seeds: 'Path', args: list[str], message: str) -> None:
    """Malformed inputs are rejected before running scripts."""
    result = runner.invoke(cli, ['run', 'customers.py', '-d', database, '-s', str(seeds), *args])

    assert result.exit_code == 1
    assert message in result.output


def test_run_inputs_file_not_mapping(database: str, seeds: 'Path', tmp_path: 'Path') -> None:
    """Inputs files must contain a mapping."""
    inputs = tmp_path / 'inputs.yaml'
    inputs.write_text('- alice\n', encoding='utf-8')

    result = runner.invoke(cli, ['run', 'customers.py', '-d', database, '-s', str(seeds), '-f', str(inputs)])

    assert result.exit_code == 1
    assert 'must contain a mapping' in result.output


def test_run_json_logs(database: str, seeds: 'Path') -> None:
    """Events are logged as JSON lines at the requested level."""
    result = runner.invoke(cli, [
        'run', 'customers.py', '--dry-run', '--log-level', 'info', '--json-logs',
        '-d', database, '-s', str(seeds), '-i', 'name=alice', '-i', 'age=30',
    ])

    assert result.exit_code == 0, result.output
    assert '"event": "script_loaded"' in result.output
    assert '"script": "customers.py"' in result.output


def test_run_requires_scripts(database: str) -> None:
    """At least one script name is required."""
    result = runner.invoke(cli, ['run', '-d', database])

    assert result.exit_code == 2
    assert "Missing argument 'SCRIPTS...'" in result.output
