"""Namespaced binding environment for seed scripts.

This module defines the variable scope a script executes against. The
scope remembers which names existed before the script body ran, so the
names a script introduced (its outputs) can later be told apart from the
inputs and DSL functions it merely read.
"""

from types import ModuleType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pytest_seeder.values import RuntimeValue


class NamespacedBinding(dict[str, 'RuntimeValue']):
    """Variable scope with namespaced capture of script outputs.

    The binding is a plain dictionary, so it can be passed to `exec`
    as the global namespace of a script. Values are arbitrary runtime
    objects: scalars, containers, entities or callables.

    Capture works by difference: `start_capture` records the bindings
    made so far, and `get_namespaced_variables` returns the bindings
    whose names were not present at that moment. A pre-existing name
    the script rebound to another object is an output as well, so a
    script redefining a variable of an earlier script overrides it.
    """

    def __init__(self, *args: 'RuntimeValue', **kwargs: 'RuntimeValue') -> None:
        """Initialize the binding like a dictionary."""
        super().__init__(*args, **kwargs)

        self._baseline: dict[str, RuntimeValue] | None = None

    def set_variable(self, name: str, value: 'RuntimeValue') -> None:
        """Insert or overwrite a binding.

        Args:
            name: Variable name.
            value: Any runtime value.
        """
        self[name] = value

    def start_capture(self) -> None:
        """Record the current bindings as the capture baseline.

        Must be called once, after DSL functions and input variables
        have been installed and before the script body is evaluated.

        Raises:
            RuntimeError: If the capture has already been started.
        """
        if self._baseline is not None:
            raise RuntimeError('Capture has already been started')

        self._baseline = dict(self)

    def get_namespaced_variables(self) -> dict[str, 'RuntimeValue']:
        """Return bindings introduced since the capture baseline.

        Names bound before the baseline are left out unless they now
        refer to another object. Modules bound by `import` statements
        are not script outputs and are left out too.

        Returns:
            Mapping of newly introduced names to their values,
            in binding order.

        Raises:
            RuntimeError: If the capture has not been started.
        """
        if self._baseline is None:
            raise RuntimeError('Capture has not been started')

        baseline = self._baseline
        missing = object()

        return {
            name: value
            for name, value in self.items()
            if baseline.get(name, missing) is not value
            and not isinstance(value, ModuleType)
        }
