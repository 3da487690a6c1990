"""Core seeding runtime.

This package defines the machinery that runs seed scripts:
- the context stack backing nested `table` blocks;
- the DSL function set installed into every script;
- the Python script engine and the script resolver;
- the executor sequencing scripts and capturing their outputs.

The primary public entry point is `ScriptExecutor`.
"""

from .engine import PythonScriptEngine
from .executor import ScriptExecutor
from .functions import FUNCTION_NAMES, ScriptFunctions
from .resources import ScriptResolver, ScriptSource
from .stack import ContextStack, EntityContext

__all__ = (
    'FUNCTION_NAMES',
    'ContextStack',
    'EntityContext',
    'PythonScriptEngine',
    'ScriptExecutor',
    'ScriptFunctions',
    'ScriptResolver',
    'ScriptSource',
)
