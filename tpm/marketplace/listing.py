"""Installed plugin listing.

Each directory under the plugin root is reconciled against where it came
from: the remotes of its Git checkout first, then the known repository
sources from ``repositories.yml``. SSH remotes are checked through their
https address on the same host.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import structlog

from tpm.marketplace.paths import PathResolver
from tpm.marketplace.repositories import RepositoryStore
from tpm.marketplace.validator import (
    PluginValidator,
    describe_title,
    is_absolute_url,
    remote_web_url,
    split_repository_url,
)
from tpm.marketplace.vcs import VersionControlClient, is_managed

log = structlog.get_logger()


class ListStatus(str, Enum):
    """How an installed plugin is tracked."""

    MANAGED = "managed"          # Git checkout with a valid plugin remote
    UNMANAGED = "unmanaged"      # No Git metadata, cannot be updated
    UNVERIFIED = "unverified"    # Git checkout, but no remote validated


@dataclass
class ListedPlugin:
    """An installed plugin as shown by ``tpm show``.

    Attributes:
        name: Directory name
        location: Repository URL, or the local path when unknown
        description: Description taken from the repository title
        status: Tracking status
    """

    name: str
    location: str
    description: str = ""
    status: ListStatus = ListStatus.MANAGED


class ListEngine:
    """Lists installed plugins with their origin and description.

    Example:
        engine = ListEngine(resolver, validator, RepositoryStore(resolver), GitClient())
        for plugin in engine.list_plugins():
            print(plugin.name, plugin.location, plugin.description)
    """

    def __init__(
        self,
        resolver: PathResolver,
        validator: PluginValidator,
        repositories: RepositoryStore,
        vcs: VersionControlClient,
    ):
        self.resolver = resolver
        self.validator = validator
        self.repositories = repositories
        self.vcs = vcs

    def list_plugins(self) -> list[ListedPlugin]:
        """List every installed plugin, sorted by name.

        Raises:
            ConfigError: If repositories.yml is corrupt
        """
        names = self.resolver.installed_names()
        if not names:
            log.info("no_plugins_installed", path=self.resolver.resolve())
            return []

        sources = self.repositories.list_urls()
        return [self._describe(name, sources) for name in names]

    def _describe(self, name: str, sources: list[str]) -> ListedPlugin:
        plugin_dir = self.resolver.path(name)
        managed = is_managed(plugin_dir)
        remotes = self.vcs.remotes(plugin_dir) if managed else []

        found = self._match_remotes(remotes) or self._match_sources(name, sources)

        if found:
            location, title = found
            status = ListStatus.MANAGED if managed else ListStatus.UNMANAGED
            plugin = ListedPlugin(name, location, describe_title(title), status)
        elif managed:
            location = remotes[0] if remotes else str(plugin_dir)
            plugin = ListedPlugin(name, location, status=ListStatus.UNVERIFIED)
        else:
            plugin = ListedPlugin(name, str(plugin_dir), status=ListStatus.UNMANAGED)

        if plugin.status == ListStatus.UNMANAGED:
            log.warning("plugin_unmanaged", plugin=name, path=str(plugin_dir))
        elif plugin.status == ListStatus.UNVERIFIED:
            log.warning("plugin_unverified", plugin=name, remotes=remotes)
        return plugin

    def _match_remotes(self, remotes: list[str]) -> Optional[tuple[str, str]]:
        for remote in remotes:
            url = remote_web_url(remote)
            if not is_absolute_url(url):
                continue
            base, remote_name = split_repository_url(url)
            title = self.validator.is_valid_plugin(base, remote_name)
            if title:
                return remote, title
        return None

    def _match_sources(self, name: str, sources: list[str]) -> Optional[tuple[str, str]]:
        for source in sources:
            title = self.validator.is_valid_plugin(source, name)
            if title:
                return f"{source.rstrip('/')}/{name}", title
        return None