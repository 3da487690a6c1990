"""Script text resolution.

Script names are resolved to their text in one of two ways:
- `package:<package>/<path>` reads a resource shipped inside an
  importable package;
- any other name is a filesystem path, joined to the configured script
  directory when one is set.
"""

from importlib.resources import files
from pathlib import Path
from typing import NamedTuple

from pytest_seeder.errors import ScriptResourceError
from pytest_seeder.names import PACKAGE_PREFIX


class ScriptSource(NamedTuple):
    """Resolved script text together with where it was found."""

    #: Human-readable location, also used as the compiled file name.
    location: str
    #: Script text.
    text: str


class ScriptResolver:
    """Resolves script names to script text.

    Attributes:
        directory: Optional root directory for filesystem names.
        encoding: Text encoding of script files.
    """

    def __init__(self, directory: Path | str | None = None,
                 encoding: str = 'utf-8') -> None:
        """Initialize the resolver.

        Args:
            directory: Optional root directory for filesystem names.
            encoding: Text encoding of script files.
        """
        self.directory = Path(directory) if directory else None
        self.encoding = encoding

    def locate(self, name: str) -> str:
        """Return the location a script name resolves to.

        Args:
            name: Script name.

        Returns:
            A filesystem path or a `package:` location.
        """
        if name.startswith(PACKAGE_PREFIX):
            return name

        if self.directory is None:
            return name

        return str(self.directory / name)

    def resolve(self, name: str) -> ScriptSource:
        """Read the text of a script.

        Args:
            name: Script name.

        Returns:
            The resolved script source.

        Raises:
            ScriptResourceError: If the name is malformed or the script
                can not be found or read.
        """
        location = self.locate(name)

        try:
            if location.startswith(PACKAGE_PREFIX):
                text = self._read_package(location)
            else:
                text = Path(location).read_text(encoding=self.encoding)

        except ScriptResourceError:
            raise

        except (OSError, ImportError, UnicodeDecodeError) as base:
            raise ScriptResourceError(
                f'Can not read script {name!r}: {base}',
                location=location,
            ) from base

        return ScriptSource(location, text)

    def _read_package(self, location: str) -> str:
        """Read a script resource from an importable package.

        Args:
            location: Location in the `package:<package>/<path>` form.

        Returns:
            Resource text.

        Raises:
            ScriptResourceError: If the location has no resource path.
        """
        package, _, path = location.removeprefix(PACKAGE_PREFIX).partition('/')
        if not package or not path:
            raise ScriptResourceError(
                f'Invalid package script location {location!r}',
                location=location,
            )

        return files(package).joinpath(path).read_text(encoding=self.encoding)
