"""Value rendering utilities.

Seed scripts produce arbitrary Python objects: scalars, containers and,
most importantly, persisted entities. This module converts such values
into plain data that can be serialized for display, for example by the
command-line runner or by error snippets.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import inspect
from sqlalchemy.orm import InstanceState

#: Plain scalars are kept as is.
type Scalar = date | datetime | time | str | bytes | int | float | bool

#: A plain value contains only scalars, lists and string-keyed mappings.
type Value = Scalar | list['Value'] | dict[str, 'Value'] | None

#: A value in runtime represents any Python object bound by a script.
type RuntimeValue = Any

MAPPINGS = (dict,)
SCALARS = (date, datetime, time, str, bytes, int, float, bool)
SEQUENCES = (list, tuple, set, frozenset)
STRINGIFIED = (Decimal, UUID, timedelta)

#: Placeholder for objects that have no plain representation.
PLACEHOLDER = '<runtime object>'


def entity_state(value: RuntimeValue) -> InstanceState | None:
    """Return the ORM state of a mapped instance.

    Args:
        value: Arbitrary runtime value.

    Returns:
        The SQLAlchemy instance state, or `None` if the value is not
        an instance of a mapped class.
    """
    if isinstance(value, type):
        return None

    state = inspect(value, raiseerr=False)
    if isinstance(state, InstanceState):
        return state

    return None


def to_plain(value: RuntimeValue) -> Value:
    """Recursively convert a runtime value into plain data.

    Mapped entities are rendered as a mapping of their column attributes.
    Objects without a plain representation (classes, functions, opaque
    objects) are replaced with a placeholder.

    Args:
        value: Runtime value to convert.

    Returns:
        A plain value safe for YAML serialization.
    """
    if isinstance(value, Enum):
        return to_plain(value.value)

    if value is None or isinstance(value, SCALARS):
        return value

    if isinstance(value, STRINGIFIED):
        return str(value)

    if isinstance(value, MAPPINGS):
        return {
            str(key): to_plain(item)
            for key, item in value.items()
        }

    if isinstance(value, SEQUENCES):
        return [
            to_plain(item)
            for item in value
        ]

    if state := entity_state(value):
        return {
            attr.key: to_plain(getattr(value, attr.key))
            for attr in state.mapper.column_attrs
        }

    return PLACEHOLDER
