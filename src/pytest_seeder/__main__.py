"""Command-line runner for seed scripts.

Runs seed scripts against a database reachable through a SQLAlchemy URL
and prints the variables the scripts produced as YAML. All scripts of one
run share a single transaction, which is rolled back on failure or when
`--dry-run` is given.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any

from click import Choice, ClickException, argument, echo, group, option
from click import Path as PathParam
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from yaml import YAMLError, safe_dump, safe_load

from pytest_seeder.core import ScriptExecutor
from pytest_seeder.errors import SeederError
from pytest_seeder.logs import LEVELS, configure_logging
from pytest_seeder.models import Script, SeederSettings
from pytest_seeder.persistence.orm import SessionDAORegistry, SessionTransaction
from pytest_seeder.values import to_plain

if TYPE_CHECKING:
    from collections.abc import Iterable

DirectoryParam = PathParam(
    exists=True,
    file_okay=False,
    dir_okay=True,
    path_type=Path,
)

InputsFileParam = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


@group(help='Command-line utilities for pytest-seeder.')
def cli() -> None:
    """Root CLI group for pytest-seeder tools."""
    return None


def _parse_inputs(items: 'Iterable[str]', inputs_file: Path | None) -> dict[str, Any]:
    """Collect input variables from a YAML file and `KEY=VALUE` pairs.

    Values of pairs are parsed as YAML scalars, so `count=3` yields an
    integer. Pairs override values from the file.

    Args:
        items: `KEY=VALUE` pairs.
        inputs_file: Optional YAML file holding a mapping.

    Returns:
        Input variables.

    Raises:
        ClickException: If the file or a pair is malformed.
    """
    inputs: dict[str, Any] = {}

    if inputs_file is not None:
        try:
            content = safe_load(inputs_file.read_text(encoding='utf-8'))
        except YAMLError as base:
            raise ClickException(f'Invalid inputs file {inputs_file}: {base}') from base
        if content is not None and not isinstance(content, dict):
            raise ClickException(f'Inputs file {inputs_file} must contain a mapping')
        inputs.update(content or {})

    for item in items:
        key, sep, value = item.partition('=')
        if not sep or not key:
            raise ClickException(f'Input {item!r} must have the KEY=VALUE form')
        try:
            inputs[key] = safe_load(value)
        except YAMLError:
            inputs[key] = value

    return inputs


@cli.command(
    name='run',
    help=(
        'Run seed scripts in order and print the produced variables. '
        'Prefix a script with NAMESPACE= to nest its variables.'
    ),
)
@argument('scripts', nargs=-1, required=True)
@option(
    '-d', '--database-url',
    required=True,
    envvar='SEEDER_DATABASE_URL',
    help='SQLAlchemy database URL.',
)
@option(
    '-s', '--scripts-dir',
    type=DirectoryParam,
    default=None,
    help='Root directory for script names.',
)
@option(
    '-i', '--input', 'inputs',
    multiple=True,
    help='Input variable as KEY=VALUE, visible to every script.',
)
@option(
    '-f', '--inputs-file',
    type=InputsFileParam,
    default=None,
    help='YAML file with a mapping of input variables.',
)
@option(
    '--dry-run',
    is_flag=True,
    default=False,
    help='Roll back instead of committing.',
)
@option(
    '--log-level',
    type=Choice(LEVELS, case_sensitive=False),
    default='WARNING',
    show_default=True,
    help='Minimal level of logged events.',
)
@option(
    '--json-logs',
    is_flag=True,
    default=False,
    help='Log events as JSON lines.',
)
def run_scripts(scripts: tuple[str, ...], database_url: str,  # noqa: PLR0913
                scripts_dir: Path | None, inputs: tuple[str, ...],
                inputs_file: Path | None, dry_run: bool,
                log_level: str, json_logs: bool) -> None:
    """Run seed scripts against a database."""
    configure_logging(level=log_level, json_format=json_logs)

    overrides = {}
    if scripts_dir is not None:
        overrides['script_directory'] = scripts_dir
    settings = SeederSettings(**overrides)

    variables = _parse_inputs(inputs, inputs_file)

    engine = create_engine(database_url)
    try:
        with Session(engine) as session:
            transaction = SessionTransaction(session)
            executor = ScriptExecutor.from_settings(
                SessionDAORegistry(session, transaction),
                transaction,
                settings,
                inputs=variables,
            )

            session.begin()
            try:
                output = to_plain(executor.load(*(Script.parse(item) for item in scripts)))
            except SeederError as base:
                session.rollback()
                raise ClickException(str(base)) from base
            except Exception:
                session.rollback()
                raise

            if dry_run:
                session.rollback()
            else:
                session.commit()
    finally:
        engine.dispose()

    echo(safe_dump(output, sort_keys=False, allow_unicode=True), nl=False)


if __name__ == '__main__':
    cli()
