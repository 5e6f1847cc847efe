"""Tests for installed plugin listing."""

from unittest.mock import MagicMock

import httpx
import pytest

from tpm.marketplace.listing import ListEngine, ListStatus
from tpm.marketplace.repositories import RepositoryStore
from tpm.marketplace.validator import PluginValidator

HELLO_TITLE = "GitHub - acme/terminus-hello: Says hello from Terminus plugin land"


@pytest.fixture
def validator():
    validator = MagicMock(spec=PluginValidator)
    validator.is_valid_plugin.return_value = ""
    return validator


@pytest.fixture
def repositories(resolver):
    return RepositoryStore(resolver)


@pytest.fixture
def lister(resolver, validator, repositories, fake_vcs):
    return ListEngine(resolver, validator, repositories, fake_vcs)


class TestListEngine:
    """Tests for ListEngine.list_plugins."""

    def test_nothing_installed(self, lister, validator):
        assert lister.list_plugins() == []
        validator.is_valid_plugin.assert_not_called()

    def test_managed_plugin_from_remote(self, lister, validator, make_plugin, fake_vcs):
        make_plugin("terminus-hello")
        fake_vcs.remote_urls["terminus-hello"] = [
            "https://github.com/acme/terminus-hello.git"
        ]
        validator.is_valid_plugin.return_value = HELLO_TITLE

        plugins = lister.list_plugins()

        assert len(plugins) == 1
        plugin = plugins[0]
        assert plugin.name == "terminus-hello"
        assert plugin.location == "https://github.com/acme/terminus-hello.git"
        assert plugin.description == "Says hello from Terminus plugin land"
        assert plugin.status == ListStatus.MANAGED
        validator.is_valid_plugin.assert_called_once_with(
            "https://github.com/acme", "terminus-hello"
        )

    def test_falls_back_to_known_repositories(
        self, lister, validator, repositories, make_plugin
    ):
        make_plugin("terminus-hello")
        repositories.add("https://github.com/other")
        repositories.add("https://github.com/acme")

        def is_valid(base, name):
            return HELLO_TITLE if base == "https://github.com/acme" else ""

        validator.is_valid_plugin.side_effect = is_valid

        plugins = lister.list_plugins()

        assert plugins[0].location == "https://github.com/acme/terminus-hello"
        assert plugins[0].status == ListStatus.MANAGED

    def test_unmanaged_plugin_found_in_repositories(
        self, lister, validator, repositories, make_plugin, fake_vcs
    ):
        make_plugin("terminus-hello", managed=False)
        repositories.add("https://github.com/acme")
        validator.is_valid_plugin.return_value = HELLO_TITLE

        plugins = lister.list_plugins()

        assert plugins[0].status == ListStatus.UNMANAGED
        assert plugins[0].location == "https://github.com/acme/terminus-hello"
        assert plugins[0].description == "Says hello from Terminus plugin land"

    def test_unmanaged_plugin_unknown(self, lister, make_plugin):
        plugin_dir = make_plugin("foo", managed=False)

        plugins = lister.list_plugins()

        assert plugins[0].name == "foo"
        assert plugins[0].status == ListStatus.UNMANAGED
        assert plugins[0].location == str(plugin_dir)
        assert plugins[0].description == ""

    def test_managed_plugin_with_unverified_remote(self, lister, make_plugin, fake_vcs):
        make_plugin("private")
        fake_vcs.remote_urls["private"] = ["git@example.com:acme/private.git"]

        plugins = lister.list_plugins()

        assert plugins[0].status == ListStatus.UNVERIFIED
        assert plugins[0].location == "git@example.com:acme/private.git"

    def test_managed_plugin_without_remotes(self, lister, make_plugin):
        plugin_dir = make_plugin("local")

        plugins = lister.list_plugins()

        assert plugins[0].status == ListStatus.UNVERIFIED
        assert plugins[0].location == str(plugin_dir)

    def test_sorted_by_name(self, lister, make_plugin):
        make_plugin("zeta", managed=False)
        make_plugin("alpha", managed=False)
        make_plugin("mid")

        assert [p.name for p in lister.list_plugins()] == ["alpha", "mid", "zeta"]

    def test_repositories_read_once(self, resolver, validator, make_plugin, fake_vcs):
        make_plugin("one", managed=False)
        make_plugin("two", managed=False)
        repositories = MagicMock(spec=RepositoryStore)
        repositories.list_urls.return_value = []

        ListEngine(resolver, validator, repositories, fake_vcs).list_plugins()

        repositories.list_urls.assert_called_once_with()

    def test_unbuildable_remote_does_not_break_listing(self, resolver, make_plugin, fake_vcs):
        def handler(request):
            return httpx.Response(200, text=f"<title>{HELLO_TITLE}</title>")

        validator = PluginValidator(
            client=httpx.Client(transport=httpx.MockTransport(handler))
        )
        make_plugin("foo")
        make_plugin("terminus-hello")
        fake_vcs.remote_urls["foo"] = ["https://github.com:abc/acme/foo"]
        fake_vcs.remote_urls["terminus-hello"] = ["https://github.com/acme/terminus-hello"]
        lister = ListEngine(resolver, validator, RepositoryStore(resolver), fake_vcs)

        plugins = lister.list_plugins()

        assert [p.status for p in plugins] == [
            ListStatus.UNVERIFIED,
            ListStatus.MANAGED,
        ]
        assert plugins[0].location == "https://github.com:abc/acme/foo"

    def test_ssh_remote_checked_over_https(self, lister, validator, make_plugin, fake_vcs):
        make_plugin("terminus-hello")
        fake_vcs.remote_urls["terminus-hello"] = ["git@github.com:acme/terminus-hello.git"]
        validator.is_valid_plugin.return_value = HELLO_TITLE

        plugins = lister.list_plugins()

        assert plugins[0].status == ListStatus.MANAGED
        assert plugins[0].location == "git@github.com:acme/terminus-hello.git"
        validator.is_valid_plugin.assert_called_once_with(
            "https://github.com/acme", "terminus-hello"
        )
