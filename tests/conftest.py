"""Shared test fixtures."""

import shutil
import tempfile
from pathlib import Path

import pytest

from tpm.marketplace.paths import PathResolver, PathSettings, PlatformKind
from tpm.marketplace.vcs import (
    CommandOutput,
    Filesystem,
    GIT_METADATA_DIR,
    VersionControlClient,
)


class FakeVcs(VersionControlClient):
    """Records clone/pull calls; clones create a checkout directory."""

    def __init__(self):
        self.clones = []
        self.pulls = []
        self.remote_urls = {}
        self.clone_result = CommandOutput(0, ["Cloning into 'plugin'..."])
        self.pull_result = CommandOutput(0, ["Already up to date."])

    def clone(self, url, dest_dir):
        self.clones.append((url, dest_dir))
        if self.clone_result.success:
            (dest_dir / GIT_METADATA_DIR).mkdir(parents=True)
        return self.clone_result

    def pull(self, repo_dir):
        self.pulls.append(repo_dir)
        return self.pull_result

    def remotes(self, repo_dir):
        return self.remote_urls.get(repo_dir.name, [])


class FakeFilesystem(Filesystem):
    """Deletes for real but records each call."""

    def __init__(self):
        self.removed = []

    def remove_tree(self, path):
        self.removed.append(path)
        shutil.rmtree(path)


@pytest.fixture
def temp_dir():
    """Temporary directory for tests."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def plugin_root(temp_dir):
    """Plugin root under the temporary directory (not created yet)."""
    return temp_dir / "plugins"


@pytest.fixture
def resolver(plugin_root):
    """Resolver pointed at the temporary plugin root."""
    return PathResolver(
        PathSettings(
            plugins_root_override=str(plugin_root),
            home_dir=None,
            platform=PlatformKind.POSIX,
        )
    )


@pytest.fixture
def fake_vcs():
    return FakeVcs()


@pytest.fixture
def fake_fs():
    return FakeFilesystem()


@pytest.fixture
def make_plugin(resolver):
    """Create an installed plugin directory, managed unless told otherwise."""

    def _make(name: str, managed: bool = True) -> Path:
        plugin_dir = resolver.path(name)
        plugin_dir.mkdir(parents=True)
        if managed:
            (plugin_dir / GIT_METADATA_DIR).mkdir()
        return plugin_dir

    return _make
