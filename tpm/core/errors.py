"""Error taxonomy for the plugin manager.

Per-item errors (validation, already installed, not installed, unmanaged
installs, transport failures) are raised inside the engines and caught at the
batch loop so one bad identifier never stops the rest of the batch.
Configuration and usage errors propagate to the caller.
"""

from typing import Optional
import structlog

log = structlog.get_logger()

WIKI_URL = "https://github.com/pantheon-systems/terminus/wiki/Plugins"


class TpmError(Exception):
    """Base class for all plugin manager errors.

    Attributes:
        message: Human-readable description
        suggestion: Optional remediation hint
        severity: "notice" or "error", used to pick the log level
    """

    severity = "error"

    def __init__(self, message: str, suggestion: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        parts = [self.message]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " | ".join(parts)


class UsageError(TpmError):
    """Required arguments are missing."""


class ConfigError(TpmError):
    """Configuration, plugin root or repositories.yml cannot be used."""


class ValidationError(TpmError):
    """An identifier failed the URL or content checks."""


class AlreadyInstalledError(TpmError):
    """The plugin directory already exists. Informational only."""

    severity = "notice"

    def __init__(self, name: str):
        super().__init__(f"{name} plugin already installed.")
        self.name = name


class NotInstalledError(TpmError):
    """The target plugin has no directory under the plugin root."""

    def __init__(self, name: str):
        super().__init__(f"{name} plugin is not installed.")
        self.name = name


class UnmanagedInstallError(TpmError):
    """The plugin directory exists but is not a Git checkout."""

    def __init__(self, name: str):
        super().__init__(
            f"Unable to update {name} plugin.  Git repository does not exist.",
            suggestion=(
                "The recommended way to install plugins is "
                "tpm install <URL to plugin Git repository>. "
                f"See {WIKI_URL}."
            ),
        )
        self.name = name


class TransportError(TpmError):
    """A clone, pull or fetch did not complete."""


class UnknownRepositoryError(TpmError):
    """A repository URL is not in the repository list."""

    def __init__(self, url: str):
        super().__init__(f"Unable to remove {url}.  Repository does not exist.")
        self.url = url


def log_error(error: TpmError, **context) -> None:
    """Log a per-item error at the level its severity asks for."""
    if error.severity == "notice":
        log.info("plugin_notice", message=str(error), **context)
    else:
        log.error("plugin_error", message=str(error), **context)
