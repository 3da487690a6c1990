"""Script names primitive types and validation rules.

This module defines the identifier pattern shared by namespace labels and
variables produced by seed scripts, together with strongly-typed aliases
used by the script reference model.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: Base pattern for all identifiers.
#: Identifiers must start with a letter and may contain letters, digits, or underscores
_NAME_PATTERN = r'[a-zA-Z][\w]*'

#: Compiled pattern for namespace labels
NAMESPACE_PATTERN = regexp(
    rf'^(?P<name>{_NAME_PATTERN})$',
    flags=ASCII,
)

#: Prefix of script names resolved inside an importable package
PACKAGE_PREFIX = 'package:'


Namespace = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Namespace label',
        description=(
            'Name of the variable under which all values produced by '
            'a script are nested in the accumulated variables. '
            'Labels must start with a letter and may contain '
            'letters, digits, or underscores. '
            'Names are restricted to ASCII characters.'
        ),
        examples=[
            'users',
            'billing_accounts',
        ],
    ),
]

ScriptName = Annotated[
    str, Field(
        min_length=1,
        title='Script name',
        description=(
            'Location of a seed script. Either a filesystem path, '
            'relative to the configured script directory when one is set, '
            f'or `{PACKAGE_PREFIX}<package>/<path>` for scripts shipped '
            'inside an importable package.'
        ),
        examples=[
            'users.py',
            f'{PACKAGE_PREFIX}myapp.fixtures/orders.py',
        ],
    ),
]
