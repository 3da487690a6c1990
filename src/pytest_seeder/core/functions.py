"""DSL functions available inside seed scripts.

Every script receives four callables in its global namespace:

- `table(Entity, ['attr', ...], block)` opens an entity creation context,
  runs `block` and returns the entities created inside it;
- `row(value, ...)` creates and persists one entity of the active table,
  assigning values positionally to the declared attributes;
- `find(Entity, id)` looks up a persisted entity by primary key;
- `load(...)` runs further scripts and returns their variables.

Example:
    ```python
    from myapp.models import User

    users = table(User, ['name', 'age'], lambda: [
        row('alice', 30),
        row('bob', 25),
    ])
    admin = find(User, 1)
    billing = load({'accounts': 'billing/accounts.py'})
    ```
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from pytest_seeder.errors import EntityInstantiationError, ScriptUsageError
from pytest_seeder.models import Script

if TYPE_CHECKING:
    from pytest_seeder.context import NamespacedBinding
    from pytest_seeder.persistence import DAORegistry
    from pytest_seeder.values import RuntimeValue

    from .executor import ScriptExecutor
    from .stack import ContextStack

logger = structlog.get_logger()

#: Names under which the functions are installed into a binding.
FUNCTION_NAMES = ('table', 'row', 'find', 'load')


class ScriptFunctions:
    """DSL function set bound to one script executor.

    The functions are bound methods sharing the executor's context
    stack and persistence collaborators. They are evaluated
    synchronously, in script order.
    """

    def __init__(self, executor: 'ScriptExecutor', stack: 'ContextStack',
                 dao_registry: 'DAORegistry') -> None:
        """Initialize the function set.

        Args:
            executor: Executor used by `load` to run nested scripts.
            stack: Context stack shared by `table` and `row`.
            dao_registry: Lookup of create and find capabilities.
        """
        self.executor = executor
        self.stack = stack
        self.dao_registry = dao_registry

    def install(self, binding: 'NamespacedBinding') -> None:
        """Bind all DSL functions into a script binding.

        Args:
            binding: Binding about to receive a script.
        """
        for name in FUNCTION_NAMES:
            binding.set_variable(name, getattr(self, name))

    def table(self, *args: 'RuntimeValue') -> list['RuntimeValue']:
        """Create entities of one type inside a scoped context.

        Args:
            *args: Entity class, ordered attribute names and a
                zero-argument block calling `row`.

        Returns:
            Entities created by `row` calls made directly in this context.

        Raises:
            ScriptUsageError: If the arguments have the wrong shape.
        """
        if len(args) != 3:  # noqa: PLR2004
            raise ScriptUsageError(
                'The table() method expects an entity class reference, '
                'a list of attribute names and a block',
            )

        entity_type, attributes, block = args

        if not isinstance(entity_type, type):
            raise ScriptUsageError(f'The table() entity must be a class, not {entity_type!r}')

        if isinstance(attributes, str) or not isinstance(attributes, Sequence) or not all(
            isinstance(attribute, str) for attribute in attributes
        ):
            raise ScriptUsageError(
                f'The table() attributes must be a list of names, not {attributes!r}',
            )

        if not callable(block):
            raise ScriptUsageError(f'The table() block must be callable, not {block!r}')

        logger.debug('table_started', entity=entity_type.__qualname__, attributes=list(attributes))

        with self.stack.enter(entity_type, attributes) as context:
            block()

        return context.entities

    def row(self, *values: 'RuntimeValue') -> 'RuntimeValue':
        """Create and persist one entity of the active table.

        Args:
            *values: Attribute values, in the order the attributes were
                declared by the enclosing `table` call.

        Returns:
            The persisted entity.

        Raises:
            ScriptUsageError: If there is no active table or the number of
                values does not match the number of attributes.
            EntityInstantiationError: If the entity can not be created
                without arguments.
        """
        context = self.stack.peek()

        if len(values) != len(context.attributes):
            raise ScriptUsageError(
                f'The row() method expects {len(context.attributes)} values '
                f'for {list(context.attributes)!r}, got {len(values)}',
            )

        instance = self.instantiate(context.entity_type)
        for attribute, value in zip(context.attributes, values, strict=True):
            setattr(instance, attribute, value)

        entity = self.dao_registry.get(instance).create(instance)
        context.entities.append(entity)

        logger.debug('entity_created', entity=context.entity_type.__qualname__)

        return entity

    def find(self, *args: 'RuntimeValue') -> 'RuntimeValue':
        """Look up a persisted entity by primary key.

        Args:
            *args: Entity class and primary key value.

        Returns:
            The entity, or `None` if it does not exist.

        Raises:
            ScriptUsageError: If the arguments have the wrong shape.
        """
        if len(args) != 2:  # noqa: PLR2004
            raise ScriptUsageError('The find() method expects an entity class reference and an id')

        entity_type, id_ = args
        if not isinstance(entity_type, type):
            raise ScriptUsageError(f'The find() entity must be a class, not {entity_type!r}')

        entity = self.dao_registry.get(entity_type).find_by_id(id_)
        if entity is None:
            logger.debug('entity_not_found', entity=entity_type.__qualname__, id=id_)

        return entity

    def load(self, *args: 'RuntimeValue') -> dict[str, 'RuntimeValue']:
        """Run further scripts and return their accumulated variables.

        Args:
            *args: Either a single mapping of namespace labels to script
                names, or one or more script names or `Script` references.

        Returns:
            Variables produced by the loaded scripts.

        Raises:
            ScriptUsageError: If called without arguments or with
                arguments of an unrecognized shape.
        """
        return self.executor.load_namespaced(self.parse_scripts(args))

    @staticmethod
    def instantiate(entity_type: type) -> 'RuntimeValue':
        """Default-construct an entity.

        Raises:
            EntityInstantiationError: If the constructor fails.
        """
        try:
            return entity_type()
        except Exception as base:
            raise EntityInstantiationError.from_type(entity_type) from base

    @staticmethod
    def parse_scripts(args: Sequence['RuntimeValue']) -> list[Script]:
        """Convert `load` arguments into script references.

        Args:
            args: Positional arguments of a `load` call.

        Returns:
            Script references, in order.

        Raises:
            ScriptUsageError: If the arguments have an unrecognized shape.
        """
        if not args:
            raise ScriptUsageError(
                'The load() method should be called with a map of namespace and '
                'script names or a list of one or more script names',
            )

        if isinstance(args[0], Mapping):
            if len(args) > 1:
                raise ScriptUsageError(
                    'The load() method accepts no further arguments after a map of namespaces',
                )

        elif any(isinstance(item, Mapping) for item in args):
            raise ScriptUsageError(
                'The load() method accepts a map of namespaces only as its single argument',
            )

        return [
            script
            for item in args
            for script in to_scripts(item)
        ]


def to_scripts(item: 'RuntimeValue') -> list[Script]:
    """Convert one script identifier into script references.

    Args:
        item: A script name, a `Script`, or a mapping of namespace
            labels to script names.

    Returns:
        Script references, in order.

    Raises:
        ScriptUsageError: If the item is not a recognized identifier.
    """
    try:
        if isinstance(item, Script):
            return [item]

        if isinstance(item, str):
            return [Script.script(item)]

        if isinstance(item, Mapping):
            return [
                Script.with_namespace(name, namespace)
                for namespace, name in item.items()
            ]

    except ValidationError as base:
        raise ScriptUsageError(f'Invalid script reference {item!r}') from base

    raise ScriptUsageError(f'The load() method can not load {item!r}')
