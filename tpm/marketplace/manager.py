"""Wiring of the plugin manager components."""

from pathlib import Path
from typing import Iterable, Optional
import httpx

from tpm.config import TpmConfig
from tpm.marketplace.installer import (
    InstallEngine,
    InstallResult,
    UninstallEngine,
    UninstallResult,
)
from tpm.marketplace.listing import ListEngine, ListedPlugin
from tpm.marketplace.paths import PathResolver
from tpm.marketplace.repositories import RepositoryStore
from tpm.marketplace.search import PluginRecord, RegistrySearch
from tpm.marketplace.updater import UpdateEngine, UpdateResult
from tpm.marketplace.validator import PluginValidator
from tpm.marketplace.vcs import (
    Filesystem,
    GitClient,
    LocalFilesystem,
    VersionControlClient,
)


class PluginManager:
    """Entry point tying the resolver, stores and engines together.

    Example:
        manager = PluginManager.from_config(TpmConfig.load())
        manager.install(["https://github.com/pantheon-systems/terminus-plugin-example"])
        manager.update(["all"])
        for plugin in manager.show():
            print(plugin.name, plugin.description)
    """

    def __init__(
        self,
        resolver: PathResolver,
        validator: PluginValidator,
        search: RegistrySearch,
        repositories: RepositoryStore,
        vcs: VersionControlClient,
        filesystem: Filesystem,
        allow_registry_name_install: bool = True,
    ):
        self.resolver = resolver
        self.validator = validator
        self.registry = search
        self.repositories = repositories
        self.installer = InstallEngine(
            resolver, validator, search, vcs,
            allow_registry_name_install=allow_registry_name_install,
        )
        self.updater = UpdateEngine(resolver, vcs)
        self.uninstaller = UninstallEngine(resolver, filesystem)
        self.lister = ListEngine(resolver, validator, repositories, vcs)

    @classmethod
    def from_config(
        cls,
        config: TpmConfig,
        vcs: Optional[VersionControlClient] = None,
        filesystem: Optional[Filesystem] = None,
        client: Optional[httpx.Client] = None,
    ) -> "PluginManager":
        """Build a manager from configuration.

        Args:
            config: Loaded configuration
            vcs: Clone/pull backend (defaults to ``GitClient``)
            filesystem: Delete backend (defaults to ``LocalFilesystem``)
            client: Shared httpx client for validation and search
        """
        resolver = PathResolver(config.path_settings())
        validator = PluginValidator(
            timeout=config.http_timeout,
            require_title_keywords=config.require_title_keywords,
            client=client,
        )
        search = RegistrySearch(
            resolver,
            registry_url=config.registry_url,
            timeout=config.http_timeout,
            client=client,
        )
        return cls(
            resolver=resolver,
            validator=validator,
            search=search,
            repositories=RepositoryStore(resolver),
            vcs=vcs or GitClient(),
            filesystem=filesystem or LocalFilesystem(),
            allow_registry_name_install=config.allow_registry_name_install,
        )

    @property
    def plugin_root(self) -> Path:
        return self.resolver.path()

    def install(self, identifiers: Iterable[str]) -> list[InstallResult]:
        return self.installer.install(identifiers)

    def update(self, targets: Iterable[str]) -> list[UpdateResult]:
        return self.updater.update(targets)

    def uninstall(self, targets: Iterable[str]) -> list[UninstallResult]:
        return self.uninstaller.uninstall(targets)

    def show(self) -> list[ListedPlugin]:
        return self.lister.list_plugins()

    def search(self, query: str) -> list[PluginRecord]:
        return self.registry.search(query)
