"""Plugin search against the remote registry.

The registry filters by the ``package`` query parameter, but that filter is
advisory: results are matched again locally against each record's
``package`` so a registry that ignores the parameter still gives correct
results.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Union
import httpx
import structlog

from tpm.marketplace.paths import PathResolver
from tpm.marketplace.validator import DEFAULT_TIMEOUT

log = structlog.get_logger()

DEFAULT_REGISTRY_URL = "http://dev-terminus-plugins.pantheonsite.io/plugins.json"


@dataclass
class PluginRecord:
    """A plugin as described by the registry.

    Attributes:
        package: Unique package id, also the install directory name
        title: Display title
        description: Short description
        creator: Author name
        creator_email: Author email, if published
        repo: Git repository URL to clone from
        installed: Whether ``package`` exists under the plugin root
        registry_id: Key the registry returned the record under
    """

    package: str
    title: str = ""
    description: str = ""
    creator: str = ""
    creator_email: Optional[str] = None
    repo: str = ""
    installed: bool = False
    registry_id: Optional[str] = None

    @property
    def author(self) -> str:
        """Creator with the email appended when present."""
        if self.creator_email:
            return f"{self.creator} <{self.creator_email}>"
        return self.creator

    @classmethod
    def from_dict(cls, data: dict, registry_id: Optional[str] = None) -> "PluginRecord":
        """Create from a registry entry."""
        return cls(
            package=str(data["package"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            creator=str(data.get("creator") or ""),
            creator_email=data.get("creator_email") or None,
            repo=str(data.get("repo") or ""),
            registry_id=registry_id,
        )


def _compile_query(query: str) -> re.Pattern:
    try:
        return re.compile(query)
    except re.error:
        return re.compile(re.escape(query))


def _iter_entries(payload: Union[list, dict]) -> Iterator[tuple[str, Any]]:
    """Yield ``(key, entry)`` pairs from a JSON array or id-keyed object."""
    if isinstance(payload, dict):
        for key, entry in payload.items():
            yield str(key), entry
    elif isinstance(payload, list):
        for index, entry in enumerate(payload):
            yield str(index), entry


class RegistrySearch:
    """Searches the plugin registry.

    Example:
        search = RegistrySearch(resolver)
        for record in search.search("seo"):
            print(record.package, record.installed)
    """

    def __init__(
        self,
        resolver: PathResolver,
        registry_url: str = DEFAULT_REGISTRY_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self.resolver = resolver
        self.registry_url = registry_url
        self.timeout = timeout
        self._client = client

    def search(self, query: str) -> list[PluginRecord]:
        """Find plugins whose package id matches ``query``.

        Args:
            query: Name fragment (treated as a regular expression)

        Returns:
            Matching records in registry order; empty when nothing matches
            or the registry cannot be reached
        """
        payload = self._fetch(query)
        if payload is None:
            return []

        pattern = _compile_query(query)
        records = []

        for key, entry in _iter_entries(payload):
            if not isinstance(entry, dict) or not entry.get("package"):
                log.debug("registry_entry_skipped", registry_id=key)
                continue

            record = PluginRecord.from_dict(entry, registry_id=key)
            if not pattern.search(record.package):
                continue

            record.installed = self.resolver.path(record.package).is_dir()
            records.append(record)

        log.info("registry_search_complete", query=query, matches=len(records))
        return records

    def _fetch(self, query: str) -> Optional[Union[list, dict]]:
        params = {"package": query}
        try:
            if self._client is not None:
                response = self._client.get(self.registry_url, params=params)
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = client.get(self.registry_url, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.error("registry_search_failed", url=self.registry_url, error=str(e))
            return None

        if not response.is_success:
            log.error(
                "registry_search_failed",
                url=self.registry_url,
                status=response.status_code,
            )
            return None

        if not response.text.strip():
            return None

        try:
            return json.loads(response.text)
        except json.JSONDecodeError as e:
            log.error("registry_response_invalid", url=self.registry_url, error=str(e))
            return None
