"""Plugin root directory resolution.

The plugin root is either the ``TERMINUS_PLUGINS_DIR`` override or
``<home>/terminus/plugins/``. Platform differences are resolved once into a
``PlatformKind`` and carried in ``PathSettings``.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional
import structlog

from tpm.core.errors import ConfigError

log = structlog.get_logger()

PLUGINS_DIR_ENV = "TERMINUS_PLUGINS_DIR"
ROOT_MODE = 0o755


def is_plugin_name(name: str) -> bool:
    """Whether ``name`` can be a single directory under the plugin root."""
    return bool(name) and name not in (".", "..") and not any(
        sep in name for sep in ("/", "\\")
    )


class PlatformKind(str, Enum):
    """How paths are spelled on the host."""

    POSIX = "posix"
    WINDOWS_NATIVE = "windows"
    WINDOWS_POSIX_EMU = "windows-posix-emu"  # MSYS / MinGW shells

    @property
    def separator(self) -> str:
        return "/" if self == PlatformKind.POSIX else "\\"

    @classmethod
    def detect(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        os_name: Optional[str] = None,
    ) -> "PlatformKind":
        """Detect the platform kind from ``os.name`` and ``MSYSTEM``."""
        environ = os.environ if environ is None else environ
        os_name = os.name if os_name is None else os_name

        if os_name != "nt":
            return cls.POSIX
        if environ.get("MSYSTEM", "")[:4].upper() == "MING":
            return cls.WINDOWS_POSIX_EMU
        return cls.WINDOWS_NATIVE


@dataclass(frozen=True)
class PathSettings:
    """Inputs for plugin root resolution.

    Attributes:
        plugins_root_override: Explicit plugin root, wins over the home default
        home_dir: User home directory
        platform: Host platform kind
    """

    plugins_root_override: Optional[str]
    home_dir: Optional[str]
    platform: PlatformKind

    @classmethod
    def from_environ(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[PlatformKind] = None,
    ) -> "PathSettings":
        """Build settings from environment variables."""
        environ = os.environ if environ is None else environ
        platform = platform or PlatformKind.detect(environ)

        if platform == PlatformKind.WINDOWS_NATIVE:
            home = environ.get("HOMEPATH")
        else:
            home = environ.get("HOME")

        return cls(
            plugins_root_override=environ.get(PLUGINS_DIR_ENV) or None,
            home_dir=home or None,
            platform=platform,
        )


class PathResolver:
    """Computes the plugin root and ensures it exists.

    Example:
        resolver = PathResolver(PathSettings.from_environ())
        resolver.resolve()            # '/home/me/terminus/plugins/'
        resolver.resolve("hello")     # '/home/me/terminus/plugins/hello'
        resolver.path("hello")        # PosixPath('/home/me/terminus/plugins/hello')
    """

    def __init__(self, settings: PathSettings):
        self.settings = settings

    @property
    def separator(self) -> str:
        return self.settings.platform.separator

    def _root(self) -> str:
        sep = self.separator
        strip_chars = "/" if sep == "/" else "/\\"

        override = self.settings.plugins_root_override
        if override:
            root = override
            if self.settings.platform == PlatformKind.POSIX:
                root = os.path.abspath(os.path.expanduser(root))
        else:
            home = self.settings.home_dir
            if not home:
                raise ConfigError(
                    "Unable to determine the home directory.",
                    suggestion=f"Set {PLUGINS_DIR_ENV} to the plugin directory.",
                )
            root = home.rstrip(strip_chars) + sep + sep.join(["terminus", "plugins"])

        stripped = root.rstrip(strip_chars)
        # Keep a filesystem root such as "/" intact
        return (stripped or root[:1]).rstrip(strip_chars) + sep

    def _ensure_dir(self, root: str) -> None:
        try:
            os.makedirs(root, mode=ROOT_MODE, exist_ok=True)
        except OSError as e:
            log.error("plugin_root_create_failed", path=root, error=str(e))
            raise ConfigError(
                f"Unable to create plugin directory {root}: {e}"
            ) from e

    def resolve(self, plugin_name: Optional[str] = None) -> str:
        """Return the plugin root, with ``plugin_name`` appended if given.

        The root always ends with exactly one separator and is created if
        missing.

        Raises:
            ConfigError: If the root cannot be determined or created
        """
        root = self._root()
        self._ensure_dir(root)
        return root + (plugin_name or "")

    def path(self, plugin_name: Optional[str] = None) -> Path:
        """Same as ``resolve`` but as a ``Path``."""
        return Path(self.resolve(plugin_name))

    def installed_names(self) -> list[str]:
        """Names of the directories one level under the plugin root."""
        root = self.path()
        return sorted(
            entry.name
            for entry in root.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )
