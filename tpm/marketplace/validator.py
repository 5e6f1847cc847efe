"""Plugin repository validation.

A repository URL is accepted as a plugin when its page can be fetched and
carries a ``<title>``. With the keyword check enabled (the default) the title
must also mention both "terminus" and "plugin", which filters out unrelated
repositories that merely exist at the same path.
"""

import re
from typing import Optional
from urllib.parse import urlparse
import httpx
import structlog

log = structlog.get_logger()

TITLE_PATTERN = re.compile(r"<title>(.*?)</title>", re.IGNORECASE)
TITLE_KEYWORDS = ("terminus", "plugin")

# scp-like git address: [user@]host:path
SCP_REMOTE_PATTERN = re.compile(r"^(?:[^@/:]+@)?([^@/:]+):(?!//)(.+)$")

DEFAULT_TIMEOUT = 10.0


def is_absolute_url(value: str) -> bool:
    """Whether ``value`` parses as an absolute URL (scheme and host)."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def split_repository_url(url: str) -> tuple[str, str]:
    """Split a plugin URL into ``(repository_base, plugin_name)``.

    The plugin name is the last path segment, without a ``.git`` suffix.

        >>> split_repository_url("https://github.com/acme/terminus-hello.git")
        ('https://github.com/acme', 'terminus-hello')
    """
    parsed = urlparse(url.strip())
    segments = parsed.path.rstrip("/").split("/")
    name = segments.pop()
    if name.endswith(".git"):
        name = name[:-4]
    base = f"{parsed.scheme}://{parsed.netloc}" + "/".join(segments)
    return base, name


def remote_web_url(remote: str) -> str:
    """Browsable https URL for a git remote.

    SSH remotes (``git@github.com:acme/plugin.git`` or
    ``ssh://git@github.com/acme/plugin.git``) map to
    ``https://github.com/acme/plugin.git``; anything else is returned as is.
    """
    remote = remote.strip()
    try:
        parsed = urlparse(remote)
    except ValueError:
        return remote
    if parsed.scheme in ("ssh", "git+ssh") and parsed.hostname:
        return f"https://{parsed.hostname}/{parsed.path.lstrip('/')}"
    if not parsed.netloc:
        match = SCP_REMOTE_PATTERN.match(remote)
        if match:
            host, path = match.groups()
            return f"https://{host}/{path.lstrip('/')}"
    return remote


def describe_title(title: str) -> str:
    """Description part of a repository title ("name: description")."""
    _, sep, description = title.partition(":")
    return description.strip() if sep else title.strip()


class PluginValidator:
    """Decides whether a repository holds an installable plugin.

    Example:
        validator = PluginValidator()
        title = validator.is_valid_plugin(
            "https://github.com/pantheon-systems", "terminus-plugin-example"
        )
        if title:
            print(describe_title(title))
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        require_title_keywords: bool = True,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the validator.

        Args:
            timeout: HTTP timeout in seconds
            require_title_keywords: Require "terminus" and "plugin" in the title
            client: Optional shared httpx client
        """
        self.timeout = timeout
        self.require_title_keywords = require_title_keywords
        self._client = client

    def is_valid_plugin(self, repository_base: str, plugin_name: str) -> str:
        """Validate ``repository_base/plugin_name``.

        Returns:
            The page title if the plugin is valid, else an empty string
        """
        if not is_absolute_url(repository_base):
            log.debug("plugin_invalid_base_url", repository=repository_base)
            return ""

        # A bare host is not a repository base
        path = urlparse(repository_base).path
        if not path or path == "/":
            log.debug("plugin_base_without_path", repository=repository_base)
            return ""

        url = f"{repository_base.rstrip('/')}/{plugin_name}"
        body = self._fetch(url)
        if not body:
            return ""

        match = TITLE_PATTERN.search(body)
        if not match:
            log.debug("plugin_page_without_title", url=url)
            return ""
        title = match.group(1).strip()

        if self.require_title_keywords and not self._has_keywords(title):
            log.info("plugin_title_rejected", url=url, title=title)
            return ""

        return title

    @staticmethod
    def _has_keywords(title: str) -> bool:
        lowered = title.lower()
        return all(keyword in lowered for keyword in TITLE_KEYWORDS)

    def _fetch(self, url: str) -> str:
        """GET a page, returning an empty string on any failure."""
        try:
            if self._client is not None:
                response = self._client.get(url)
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning("plugin_fetch_failed", url=url, error=str(e))
            return ""

        if not response.is_success:
            log.debug("plugin_fetch_status", url=url, status=response.status_code)
            return ""

        return response.text
