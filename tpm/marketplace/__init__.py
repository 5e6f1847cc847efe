"""Plugin resolution and repository-state engine.

Plugins are Git repositories cloned into the plugin root, one directory per
plugin. The directory tree is the only record of what is installed.

CLI Commands:
    tpm install <url|name>...     # Install from a Git URL or the registry
    tpm show                      # List installed plugins
    tpm update all|<name>...      # git pull installed plugins
    tpm uninstall <name>...       # Remove installed plugins
    tpm search <name>             # Search the registry
    tpm repo list|add|remove      # Manage known plugin repositories
"""

from tpm.marketplace.paths import (
    PathResolver,
    PathSettings,
    PlatformKind,
)
from tpm.marketplace.repositories import (
    RepositorySource,
    RepositoryStore,
)
from tpm.marketplace.validator import (
    PluginValidator,
    describe_title,
    is_absolute_url,
    remote_web_url,
    split_repository_url,
)
from tpm.marketplace.search import (
    PluginRecord,
    RegistrySearch,
)
from tpm.marketplace.vcs import (
    CommandOutput,
    Filesystem,
    GitClient,
    LocalFilesystem,
    VersionControlClient,
)
from tpm.marketplace.installer import (
    InstallEngine,
    InstallResult,
    InstallStatus,
    UninstallEngine,
    UninstallResult,
    UninstallStatus,
)
from tpm.marketplace.updater import (
    UpdateEngine,
    UpdateResult,
    UpdateStatus,
)
from tpm.marketplace.listing import (
    ListEngine,
    ListedPlugin,
    ListStatus,
)

__all__ = [
    # Paths
    "PathResolver",
    "PathSettings",
    "PlatformKind",
    # Repositories
    "RepositorySource",
    "RepositoryStore",
    # Validation
    "PluginValidator",
    "describe_title",
    "is_absolute_url",
    "remote_web_url",
    "split_repository_url",
    # Search
    "PluginRecord",
    "RegistrySearch",
    # Git / filesystem
    "CommandOutput",
    "Filesystem",
    "GitClient",
    "LocalFilesystem",
    "VersionControlClient",
    # Engines
    "InstallEngine",
    "InstallResult",
    "InstallStatus",
    "UninstallEngine",
    "UninstallResult",
    "UninstallStatus",
    "UpdateEngine",
    "UpdateResult",
    "UpdateStatus",
    "ListEngine",
    "ListedPlugin",
    "ListStatus",
]
