"""Script-driven database seeding for integration tests.

The `pytest_seeder` package executes small Python scripts that declare
graphs of persisted entities and returns the variables those scripts
define, so tests can reference the seeded rows directly.

Key features:
- a tiny DSL (`table`, `row`, `find`, `load`) installed into every script;
- one transaction per script, supplied by a pluggable collaborator;
- namespaced composition of scripts, including nested `load` calls;
- a SQLAlchemy adapter, a pytest plugin and a command-line runner.
"""

from pytest_seeder.core import ScriptExecutor
from pytest_seeder.errors import (
    EntityInstantiationError,
    ScriptResourceError,
    ScriptSyntaxError,
    ScriptUsageError,
    SeederConfigError,
    SeederError,
)
from pytest_seeder.models import Script, SeederSettings

__all__ = (
    'EntityInstantiationError',
    'Script',
    'ScriptExecutor',
    'ScriptResourceError',
    'ScriptSyntaxError',
    'ScriptUsageError',
    'SeederConfigError',
    'SeederError',
    'SeederSettings',
)
