"""Script sequencing and output capture.

This module defines the executor running seed scripts. For every script
reference, in order, the executor:

1. builds a fresh binding holding the DSL functions and the variables
   accumulated so far, and starts the capture;
2. resolves the script text;
3. evaluates the script inside one transaction;
4. captures the names the script introduced and folds them into the
   accumulated variables, either flat or nested under the namespace.

The accumulated variables are returned to the caller. The `load` DSL
function re-enters the same algorithm, so scripts compose recursively.
"""

from collections.abc import Iterable
from pathlib import Path
from traceback import extract_tb
from typing import TYPE_CHECKING, Any

import structlog

from pytest_seeder.context import NamespacedBinding
from pytest_seeder.errors import EntityInstantiationError, ErrorContext, ScriptUsageError
from pytest_seeder.models import SeederSettings

from .engine import PythonScriptEngine
from .functions import ScriptFunctions, to_scripts
from .resources import ScriptResolver, ScriptSource
from .stack import ContextStack

if TYPE_CHECKING:
    from typing import Self

if TYPE_CHECKING:
    from pytest_seeder.models import Script
    from pytest_seeder.persistence import DAORegistry, Transaction
    from pytest_seeder.values import RuntimeValue

logger = structlog.get_logger()

#: Errors raised by DSL functions that are bound to the failing script line.
LOCATED_ERRORS = (ScriptUsageError, EntityInstantiationError)


class ScriptExecutor:
    """Runs seed scripts and accumulates the variables they define.

    The executor is stateful: it owns the context stack shared by the
    DSL functions of every script it runs. It must not be used from
    several threads at once, but nested `load` calls from scripts
    running on the same thread are expected.

    Attributes:
        dao_registry: Lookup of create and find capabilities.
        transaction: Boundary wrapping each script evaluation.
        inputs: Variables visible to every script of a `load` call.
        resolver: Resolution of script names to script text.
        engine: Evaluation of script text against a binding.
        stack: Context stack shared by `table` and `row`.
    """

    def __init__(self, dao_registry: 'DAORegistry', transaction: 'Transaction', *,
                 inputs: dict[str, 'RuntimeValue'] | None = None,
                 script_directory: Path | str | None = None,
                 encoding: str = 'utf-8',
                 engine: PythonScriptEngine | None = None) -> None:
        """Initialize the executor.

        Args:
            dao_registry: Lookup of create and find capabilities.
            transaction: Boundary wrapping each script evaluation.
            inputs: Variables visible to every script of a `load` call.
            script_directory: Optional root directory for script names.
            encoding: Text encoding of script files.
            engine: Script engine, a `PythonScriptEngine` by default.
        """
        self.dao_registry = dao_registry
        self.transaction = transaction
        self.inputs = dict(inputs or {})

        self.resolver = ScriptResolver(script_directory, encoding)
        self.engine = engine or PythonScriptEngine()

        self.stack = ContextStack()
        self.functions = ScriptFunctions(self, self.stack, dao_registry)

    @classmethod
    def from_settings(cls, dao_registry: 'DAORegistry', transaction: 'Transaction',
                      settings: SeederSettings | None = None, *,
                      inputs: dict[str, 'RuntimeValue'] | None = None) -> 'Self':
        """Create an executor configured by runtime settings.

        Args:
            dao_registry: Lookup of create and find capabilities.
            transaction: Boundary wrapping each script evaluation.
            settings: Settings to use, read from the environment if omitted.
            inputs: Variables visible to every script of a `load` call.

        Returns:
            A configured executor.
        """
        if settings is None:
            settings = SeederSettings()

        return cls(
            dao_registry,
            transaction,
            inputs=inputs,
            script_directory=settings.script_directory,
            encoding=settings.encoding,
        )

    @property
    def script_directory(self) -> Path | None:
        """Return the root directory for script names."""
        return self.resolver.directory

    @script_directory.setter
    def script_directory(self, value: Path | str | None) -> None:
        """Set the root directory for script names."""
        self.resolver.directory = Path(value) if value else None

    def with_inputs(self, **inputs: 'RuntimeValue') -> 'Self':
        """Create an executor with additional input variables.

        The new executor shares the collaborators and the configuration
        of this one, but has its own context stack.

        Args:
            **inputs: Variables merged over the existing inputs.

        Returns:
            A new executor.
        """
        return type(self)(
            self.dao_registry,
            self.transaction,
            inputs={**self.inputs, **inputs},
            script_directory=self.resolver.directory,
            encoding=self.resolver.encoding,
            engine=self.engine,
        )

    def load(self, *scripts: 'Script | str | dict[str, str]') -> dict[str, 'RuntimeValue']:
        """Run scripts and return the accumulated variables.

        Args:
            *scripts: Script names, `Script` references, or mappings of
                namespace labels to script names, in any combination.

        Returns:
            Inputs merged with the variables defined by the scripts.

        Raises:
            ScriptUsageError: If no script is given or an identifier has
                an unrecognized shape.
        """
        if not scripts:
            raise ScriptUsageError('At least one script must be given to load')

        # Every identifier is checked before the first script runs.
        return self.load_namespaced([
            script
            for item in scripts
            for script in to_scripts(item)
        ])

    def load_namespaced(self, scripts: Iterable['Script']) -> dict[str, 'RuntimeValue']:
        """Run script references and return the accumulated variables.

        Variables of a script without a namespace are merged into the
        accumulated variables, overwriting existing names. Variables of
        a namespaced script are stored as one mapping under its label.

        Args:
            scripts: Script references, in execution order.

        Returns:
            Inputs merged with the variables defined by the scripts.

        Raises:
            ScriptResourceError: If a script can not be read.
            ScriptSyntaxError: If a script is not valid Python.
            ScriptUsageError: If a script misuses a DSL function.
            EntityInstantiationError: If an entity can not be created.
            Any exception raised by scripts or persistence collaborators.
        """
        variables = dict(self.inputs)

        for script in scripts:
            captured = self.run_script(script, variables)

            if script.namespace:
                variables[script.namespace] = captured
            else:
                variables.update(captured)

        return variables

    def run_script(self, script: 'Script',
                   variables: dict[str, 'RuntimeValue']) -> dict[str, 'RuntimeValue']:
        """Run one script inside a transaction and capture its outputs.

        Args:
            script: Script reference.
            variables: Variables made visible to the script.

        Returns:
            Variables introduced by the script.
        """
        binding = self.create_binding(variables)
        source = self.resolver.resolve(script.name)

        logger.debug(
            'script_loading',
            script=script.name,
            location=source.location,
            namespace=script.namespace,
        )

        try:
            self.transaction.exec(
                lambda: self.engine.evaluate(source.text, binding, source.location),
            )

        except LOCATED_ERRORS as base:
            if base.context is not None:
                raise
            raise base.with_context(
                self.error_context(script, source, base, variables),
            ) from base

        captured = binding.get_namespaced_variables()

        logger.info(
            'script_loaded',
            script=script.name,
            namespace=script.namespace,
            variables=list(captured),
        )

        return captured

    def create_binding(self, variables: dict[str, 'RuntimeValue']) -> NamespacedBinding:
        """Build the binding a script executes against.

        DSL functions are installed first, then interpreter names and
        the given variables. The capture starts once all of them are
        bound.

        Args:
            variables: Variables made visible to the script.

        Returns:
            A binding with capture started.
        """
        binding = NamespacedBinding()
        self.functions.install(binding)
        self.engine.prepare(binding)

        for name, value in variables.items():
            binding.set_variable(name, value)

        binding.start_capture()

        return binding

    @staticmethod
    def error_context(script: 'Script', source: ScriptSource, error: Exception,
                      variables: dict[str, Any]) -> ErrorContext:
        """Describe where in a script an error was raised.

        The failing line is the innermost traceback frame belonging to
        the script.

        Args:
            script: Script reference.
            source: Resolved script source.
            error: Raised exception.
            variables: Variables visible to the script.

        Returns:
            Error context for formatting.
        """
        line_num = None
        for frame in extract_tb(error.__traceback__):
            if frame.filename == source.location:
                line_num = frame.lineno

        source_line = None
        lines = source.text.splitlines()
        if line_num is not None and 0 < line_num <= len(lines):
            source_line = lines[line_num - 1]

        return ErrorContext(
            filename=source.location,
            namespace=script.namespace,
            line_num=line_num,
            source_line=source_line,
            error=error,
            context=variables or None,
        )
