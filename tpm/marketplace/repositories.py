"""Known plugin-source repositories.

The list lives in ``<plugin-root>/repositories.yml`` as a mapping from host to
a list of sub-paths under it, for example::

    https://github.com:
      - pantheon-systems
      - my-org
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable
from urllib.parse import urlparse
import structlog
import yaml

from tpm.core.errors import ConfigError, UnknownRepositoryError, ValidationError
from tpm.marketplace.paths import PathResolver

log = structlog.get_logger()

REPOSITORIES_FILE = "repositories.yml"

REPOSITORIES_HEADER = """# Terminus plugin repositories
#
# List of well-known or custom plugin Git repositories
---"""


@dataclass
class RepositorySource:
    """A host and the sub-paths (organizations, groups) known under it."""

    host: str
    paths: list[str] = field(default_factory=list)

    def urls(self) -> list[str]:
        host = self.host.rstrip("/")
        return [f"{host}/{path.strip('/')}" for path in self.paths]


def split_source_url(url: str) -> tuple[str, str]:
    """Split a repository URL into ``(scheme://host, sub-path)``.

    Raises:
        ValidationError: If the URL has no scheme, host or sub-path
    """
    parsed = urlparse(url.strip())
    path = parsed.path.strip("/")
    if not parsed.scheme or not parsed.netloc or not path:
        raise ValidationError(
            f"{url} is not a valid repository URL.",
            suggestion="Use a URL with a sub-path, e.g. https://github.com/my-org",
        )
    return f"{parsed.scheme}://{parsed.netloc}", path


class RepositoryStore:
    """Loads and saves the repository list.

    The file is created with a fixed header the first time it is read.

    Example:
        store = RepositoryStore(resolver)
        store.add("https://github.com/pantheon-systems")
        store.list_urls()   # ['https://github.com/pantheon-systems']
    """

    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    @property
    def file_path(self) -> Path:
        return self.resolver.path(REPOSITORIES_FILE)

    def load(self) -> list[RepositorySource]:
        """Load all repository sources.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        path = self.file_path

        if not path.exists():
            self._write_text(path, REPOSITORIES_HEADER)
            log.info("repositories_file_created", path=str(path))
            return []

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            log.error("repositories_file_read_failed", path=str(path), error=str(e))
            raise ConfigError(f"Unable to read {path}: {e}") from e

        if content.strip() == REPOSITORIES_HEADER:
            return []

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            log.error("repositories_file_invalid", path=str(path), error=str(e))
            raise ConfigError(
                f"Unable to parse {path}: {e}",
                suggestion="Fix or delete the file to start with an empty list.",
            ) from e

        if data is None:
            return []
        if not isinstance(data, dict):
            raise ConfigError(
                f"{path} must contain a mapping of hosts to repository paths."
            )

        sources = []
        for host, paths in data.items():
            if isinstance(paths, str):
                paths = [paths]
            elif paths is None:
                paths = []
            if not isinstance(host, str) or not isinstance(paths, list) or not all(
                isinstance(p, str) for p in paths
            ):
                raise ConfigError(
                    f"{path}: entry for {host!r} must be a list of repository paths."
                )
            sources.append(RepositorySource(host=host, paths=list(paths)))

        log.debug("repositories_loaded", count=len(sources))
        return sources

    def list_urls(self) -> list[str]:
        """Fully qualified repository URLs, one per path entry."""
        urls = []
        for source in self.load():
            urls.extend(source.urls())
        return urls

    def save(self, sources: Iterable[RepositorySource]) -> None:
        """Write the sources, replacing the file contents."""
        merged: dict[str, list[str]] = {}
        for source in sources:
            paths = merged.setdefault(source.host, [])
            paths.extend(p for p in source.paths if p not in paths)

        text = REPOSITORIES_HEADER
        if merged:
            body = yaml.safe_dump(merged, sort_keys=False, default_flow_style=False)
            text = f"{REPOSITORIES_HEADER}\n{body}"

        self._write_text(self.file_path, text)
        log.debug("repositories_saved", count=len(merged))

    def add(self, url: str) -> bool:
        """Add a repository URL.

        Returns:
            False if the URL was already listed
        """
        host, path = split_source_url(url)
        sources = self.load()

        for source in sources:
            if source.host.rstrip("/") == host:
                if path in (p.strip("/") for p in source.paths):
                    return False
                source.paths.append(path)
                break
        else:
            sources.append(RepositorySource(host=host, paths=[path]))

        self.save(sources)
        log.info("repository_added", url=url)
        return True

    def remove(self, url: str) -> None:
        """Remove a repository URL.

        Raises:
            UnknownRepositoryError: If the URL is not listed
        """
        target = url.strip().rstrip("/")
        sources = self.load()

        for source in sources:
            for path in source.paths:
                if f"{source.host.rstrip('/')}/{path.strip('/')}" == target:
                    source.paths.remove(path)
                    remaining = [s for s in sources if s.paths]
                    self.save(remaining)
                    log.info("repository_removed", url=url)
                    return

        log.error("repository_remove_failed", url=url)
        raise UnknownRepositoryError(url)

    @staticmethod
    def _write_text(path: Path, text: str) -> None:
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            log.error("repositories_file_write_failed", path=str(path), error=str(e))
            raise ConfigError(f"Unable to write {path}: {e}") from e
