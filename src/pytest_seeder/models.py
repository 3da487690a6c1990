"""Base Pydantic models for seeder elements.

This module defines the foundational model classes used by the seeder:
immutable declarative models such as script references, and runtime
settings resolved from the environment.
"""

from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pytest_seeder.names import NAMESPACE_PATTERN, Namespace, ScriptName

if TYPE_CHECKING:
    from typing import Self


class SchemaModel(BaseModel):
    """Base immutable model for all declarative seeder elements.

    Design principles enforced by this model:
        - Immutability: elements cannot be modified after creation.
          A script reference stays the same for the whole loading run.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for seeder runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows the surrounding environment to contain unrelated
          variables without breaking configuration resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )


class Script(SchemaModel):
    """Reference to one loadable seed script.

    A reference couples a script name with an optional namespace label.
    Without a label, every variable the script defines is merged into
    the accumulated variables directly; with a label, the variables are
    nested under that label.
    """

    name: ScriptName = Field(
        title='Script name',
        description='Name of the script, resolved to its text by the script resolver.',
    )

    namespace: Namespace | None = Field(
        default=None,
        title='Namespace',
        description=(
            'Optional label under which the variables produced by '
            'the script are stored.'
        ),
    )

    @classmethod
    def script(cls, name: str) -> 'Self':
        """Create a reference without a namespace.

        Args:
            name: Script name.

        Returns:
            Un-namespaced script reference.
        """
        return cls(name=name)

    @classmethod
    def with_namespace(cls, name: str, namespace: str) -> 'Self':
        """Create a reference nesting its outputs under a label.

        Args:
            name: Script name.
            namespace: Namespace label.

        Returns:
            Namespaced script reference.
        """
        return cls(name=name, namespace=namespace)

    @classmethod
    def parse(cls, value: str) -> 'Self':
        """Create a reference from its `[namespace=]name` string form.

        Args:
            value: Script name, optionally prefixed with a namespace
                label and an equals sign.

        Returns:
            Script reference.
        """
        namespace, sep, name = value.partition('=')
        if sep and NAMESPACE_PATTERN.match(namespace):
            return cls.with_namespace(name, namespace)

        return cls.script(value)

    def __str__(self) -> str:
        """String representation."""
        if self.namespace:
            return f'{self.namespace}={self.name}'

        return self.name


class SeederSettings(SettingsModel):
    """Runtime settings of the script executor.

    Values are read from `SEEDER_*` environment variables, for example
    `SEEDER_SCRIPT_DIRECTORY=tests/fixtures`.
    """

    model_config = SettingsConfigDict(
        env_prefix='SEEDER_',
    )

    script_directory: Path | None = Field(
        default=None,
        title='Script directory',
        description='Root directory against which relative script names are resolved.',
    )

    encoding: str = Field(
        default='utf-8',
        title='Script encoding',
        description='Text encoding used to read script files.',
    )
