"""Plugin installation and removal.

Identifiers are either repository URLs, validated against the repository
page before cloning, or bare names looked up in the registry. Each identifier
is handled on its own: a failure is recorded in its result and the batch
moves on.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional
import structlog

from tpm.core.errors import (
    AlreadyInstalledError,
    NotInstalledError,
    TpmError,
    TransportError,
    UsageError,
    ValidationError,
    log_error,
)
from tpm.marketplace.paths import PathResolver, is_plugin_name
from tpm.marketplace.search import RegistrySearch
from tpm.marketplace.validator import (
    PluginValidator,
    is_absolute_url,
    split_repository_url,
)
from tpm.marketplace.vcs import Filesystem, VersionControlClient, log_command_output

log = structlog.get_logger()


class InstallStatus(str, Enum):
    """Outcome of installing one plugin."""

    INSTALLED = "installed"
    ALREADY_INSTALLED = "already_installed"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class InstallResult:
    """Result of a plugin installation.

    Attributes:
        identifier: The URL or name the user asked for
        status: Outcome
        message: Human-readable summary
        name: Plugin directory name, when known
        url: Repository URL cloned (or that would have been cloned)
        output: Lines printed by git
    """

    identifier: str
    status: InstallStatus
    message: str
    name: Optional[str] = None
    url: Optional[str] = None
    output: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status in (InstallStatus.INSTALLED, InstallStatus.ALREADY_INSTALLED)


class UninstallStatus(str, Enum):
    """Outcome of removing one plugin."""

    REMOVED = "removed"
    NOT_INSTALLED = "not_installed"
    FAILED = "failed"


@dataclass
class UninstallResult:
    """Result of a plugin uninstallation.

    Attributes:
        name: Plugin name
        status: Outcome
        message: Human-readable summary
    """

    name: str
    status: UninstallStatus
    message: str

    @property
    def success(self) -> bool:
        return self.status == UninstallStatus.REMOVED


_ERROR_STATUS = {
    ValidationError: InstallStatus.INVALID,
    AlreadyInstalledError: InstallStatus.ALREADY_INSTALLED,
    TransportError: InstallStatus.FAILED,
}


class InstallEngine:
    """Installs plugins by URL or by registry name.

    Example:
        engine = InstallEngine(resolver, validator, search, GitClient())
        for result in engine.install(["https://github.com/acme/terminus-hello", "seo"]):
            print(result.message)
    """

    def __init__(
        self,
        resolver: PathResolver,
        validator: PluginValidator,
        search: RegistrySearch,
        vcs: VersionControlClient,
        allow_registry_name_install: bool = True,
    ):
        """Initialize the engine.

        Args:
            resolver: Plugin root resolver
            validator: Repository validator used for URL installs
            search: Registry search used for name installs
            vcs: Clone backend
            allow_registry_name_install: Accept bare names; when False only
                repository URLs are installable
        """
        self.resolver = resolver
        self.validator = validator
        self.search = search
        self.vcs = vcs
        self.allow_registry_name_install = allow_registry_name_install

    def install(self, identifiers: Iterable[str]) -> list[InstallResult]:
        """Install every identifier, returning one result per plugin.

        Raises:
            UsageError: If no identifiers are given
            ConfigError: If the plugin root is unusable
        """
        identifiers = list(identifiers)
        if not identifiers:
            raise UsageError(
                "Usage: tpm install plugin-name-1 [plugin-name-2] [plugin-name-3]"
            )

        self.resolver.resolve()

        results = []
        for identifier in identifiers:
            if is_absolute_url(identifier):
                results.append(self._install_url(identifier))
            else:
                results.extend(self._install_name(identifier))
        return results

    def _install_url(self, url: str) -> InstallResult:
        base, name = split_repository_url(url)
        try:
            if not is_plugin_name(name) or not self.validator.is_valid_plugin(base, name):
                raise ValidationError(f"{url} is not a valid plugin Git repository.")
            return self._clone(url, url, name)
        except TpmError as e:
            return self._error_result(url, e, name=name or None, url=url)

    def _install_name(self, name: str) -> list[InstallResult]:
        if not self.allow_registry_name_install:
            error = ValidationError(
                f"{name} is not a valid plugin Git repository.",
                suggestion="Install plugins by the URL of their Git repository.",
            )
            return [self._error_result(name, error)]

        records = self.search.search(name)
        if not records:
            message = f"No plugins found matching {name}."
            log.error("plugin_not_found", query=name)
            return [InstallResult(name, InstallStatus.NOT_FOUND, message)]

        results = []
        for record in records:
            try:
                if not is_plugin_name(record.package):
                    raise ValidationError(
                        f"{record.package} is not a valid plugin name."
                    )
                if not record.repo:
                    raise ValidationError(
                        f"{record.package} has no repository URL in the registry."
                    )
                results.append(self._clone(name, record.repo, record.package))
            except TpmError as e:
                results.append(
                    self._error_result(name, e, name=record.package, url=record.repo)
                )
        return results

    def _clone(self, identifier: str, url: str, name: str) -> InstallResult:
        dest = self.resolver.path(name)
        if dest.is_dir():
            raise AlreadyInstalledError(name)

        log.info("plugin_install_started", name=name, url=url)
        output = self.vcs.clone(url, dest)
        log_command_output(output, plugin=name)

        if not output.success:
            error = TransportError(f"Unable to install {name} plugin from {url}.")
            log_error(error, plugin=name, returncode=output.returncode)
            return InstallResult(
                identifier, InstallStatus.FAILED, error.message,
                name=name, url=url, output=output.lines,
            )

        log.info("plugin_installed", name=name, path=str(dest))
        return InstallResult(
            identifier, InstallStatus.INSTALLED, f"{name} plugin installed.",
            name=name, url=url, output=output.lines,
        )

    @staticmethod
    def _error_result(
        identifier: str,
        error: TpmError,
        name: Optional[str] = None,
        url: Optional[str] = None,
    ) -> InstallResult:
        log_error(error, identifier=identifier)
        status = _ERROR_STATUS.get(type(error), InstallStatus.FAILED)
        return InstallResult(identifier, status, str(error), name=name, url=url)


class UninstallEngine:
    """Removes installed plugin directories.

    Removal is immediate and irreversible; confirmation belongs to the CLI.
    """

    def __init__(self, resolver: PathResolver, filesystem: Filesystem):
        self.resolver = resolver
        self.filesystem = filesystem

    def uninstall(self, targets: Iterable[str]) -> list[UninstallResult]:
        """Remove every named plugin.

        Raises:
            UsageError: If no targets are given
        """
        targets = list(targets)
        if not targets:
            raise UsageError(
                "Usage: tpm uninstall | remove plugin-name-1 [plugin-name-2] ..."
            )

        return [self._uninstall_one(name) for name in targets]

    def _uninstall_one(self, name: str) -> UninstallResult:
        plugin_dir = self.resolver.path(name)

        if not is_plugin_name(name) or not plugin_dir.is_dir():
            error = NotInstalledError(name)
            log_error(error, plugin=name)
            return UninstallResult(name, UninstallStatus.NOT_INSTALLED, str(error))

        try:
            self.filesystem.remove_tree(plugin_dir)
        except OSError as e:
            log.error("plugin_remove_failed", plugin=name, error=str(e))
            return UninstallResult(
                name, UninstallStatus.FAILED, f"Unable to remove {name} plugin: {e}"
            )

        log.info("plugin_removed", plugin=name, path=str(plugin_dir))
        return UninstallResult(
            name, UninstallStatus.REMOVED, f"{name} plugin was removed successfully."
        )
