"""Script evaluation boundary.

Seed scripts are plain Python source. The engine compiles a script and
executes it with a namespaced binding as its global namespace, so the
names a script assigns at top level become bindings that the executor
can capture afterwards.

Notes:
    This is not a sandbox. Scripts are trusted test code and may import
    modules and call any object reachable from their bindings.
"""

import builtins
from typing import TYPE_CHECKING

from pytest_seeder.errors import ScriptSyntaxError

if TYPE_CHECKING:
    from types import CodeType

if TYPE_CHECKING:
    from pytest_seeder.context import NamespacedBinding


class PythonScriptEngine:
    """Evaluates Python seed scripts against a binding."""

    def prepare(self, binding: 'NamespacedBinding') -> None:
        """Install interpreter-level names into a binding.

        Installed names are part of the capture baseline, so they never
        show up as script outputs.

        Args:
            binding: Binding about to receive a script.
        """
        binding.setdefault('__builtins__', builtins)

    def compile_source(self, source: str, filename: str) -> 'CodeType':
        """Compile script text.

        Args:
            source: Script text.
            filename: Location reported in tracebacks and errors.

        Returns:
            Compiled code object.

        Raises:
            ScriptSyntaxError: If the text is not valid Python.
        """
        try:
            return compile(source, filename=filename, mode='exec')
        except SyntaxError as error:
            raise ScriptSyntaxError.from_syntax_error(error) from error

    def evaluate(self, source: str, binding: 'NamespacedBinding',
                 filename: str = '<script>') -> 'NamespacedBinding':
        """Execute script text against a binding.

        Args:
            source: Script text.
            binding: Global namespace of the script.
            filename: Location reported in tracebacks and errors.

        Returns:
            The binding, updated with the names the script assigned.

        Raises:
            ScriptSyntaxError: If the text is not valid Python.
            Any exception raised by the script body.
        """
        code = self.compile_source(source, filename)
        exec(code, binding)  # noqa: S102

        return binding
