"""Plugin updates.

Managed plugins (Git checkouts) are updated in place with ``git pull``.
Directories without Git metadata cannot be updated and are reported with
instructions to reinstall them from their repository URL.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable
import structlog

from tpm.core.errors import (
    NotInstalledError,
    TpmError,
    TransportError,
    UnmanagedInstallError,
    UsageError,
    log_error,
)
from tpm.marketplace.paths import PathResolver, is_plugin_name
from tpm.marketplace.vcs import VersionControlClient, is_managed, log_command_output

log = structlog.get_logger()

ALL_PLUGINS = "all"


class UpdateStatus(str, Enum):
    """Outcome of updating one plugin."""

    UPDATED = "updated"
    NOT_INSTALLED = "not_installed"
    UNMANAGED = "unmanaged"
    FAILED = "failed"


@dataclass
class UpdateResult:
    """Result of a plugin update.

    Attributes:
        name: Plugin name
        status: Outcome
        message: Human-readable summary
        suggestion: Remediation hint for unmanaged installs
        output: Lines printed by git
    """

    name: str
    status: UpdateStatus
    message: str
    suggestion: str = ""
    output: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == UpdateStatus.UPDATED


_ERROR_STATUS = {
    NotInstalledError: UpdateStatus.NOT_INSTALLED,
    UnmanagedInstallError: UpdateStatus.UNMANAGED,
    TransportError: UpdateStatus.FAILED,
}


class UpdateEngine:
    """Pulls the latest changes for installed plugins.

    Example:
        engine = UpdateEngine(resolver, GitClient())
        engine.update(["all"])
        engine.update(["terminus-hello", "terminus-seo"])
    """

    def __init__(self, resolver: PathResolver, vcs: VersionControlClient):
        self.resolver = resolver
        self.vcs = vcs

    def update(self, targets: Iterable[str]) -> list[UpdateResult]:
        """Update the named plugins, or every plugin for ``["all"]``.

        Raises:
            UsageError: If no targets are given
        """
        targets = list(targets)
        if not targets:
            raise UsageError(
                "Usage: tpm update | up all | plugin-name-1 [plugin-name-2] ..."
            )

        if targets == [ALL_PLUGINS]:
            targets = self.resolver.installed_names()
            if not targets:
                log.info("no_plugins_installed", path=self.resolver.resolve())
                return []

        return [self._update_one(name) for name in targets]

    def _update_one(self, name: str) -> UpdateResult:
        plugin_dir = self.resolver.path(name)

        try:
            if not is_plugin_name(name) or not plugin_dir.is_dir():
                raise NotInstalledError(name)

            log.info("plugin_update_started", plugin=name)
            if not is_managed(plugin_dir):
                raise UnmanagedInstallError(name)
        except TpmError as e:
            log_error(e, plugin=name)
            return UpdateResult(
                name,
                _ERROR_STATUS.get(type(e), UpdateStatus.FAILED),
                e.message,
                suggestion=e.suggestion or "",
            )

        output = self.vcs.pull(plugin_dir)
        log_command_output(output, plugin=name)

        if not output.success:
            error = TransportError(f"Unable to update {name} plugin.")
            log_error(error, plugin=name, returncode=output.returncode)
            return UpdateResult(
                name, UpdateStatus.FAILED, error.message, output=output.lines
            )

        log.info("plugin_updated", plugin=name)
        return UpdateResult(
            name, UpdateStatus.UPDATED, f"{name} plugin updated.", output=output.lines
        )
