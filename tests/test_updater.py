"""Tests for plugin updates."""

import pytest

from tpm.core.errors import UsageError, WIKI_URL
from tpm.marketplace.updater import UpdateEngine, UpdateStatus
from tpm.marketplace.vcs import CommandOutput


@pytest.fixture
def updater(resolver, fake_vcs):
    return UpdateEngine(resolver, fake_vcs)


class TestUpdateEngine:
    """Tests for UpdateEngine.update."""

    def test_update_named_plugin(self, updater, make_plugin, fake_vcs):
        plugin_dir = make_plugin("terminus-hello")

        results = updater.update(["terminus-hello"])

        assert len(results) == 1
        assert results[0].status == UpdateStatus.UPDATED
        assert results[0].message == "terminus-hello plugin updated."
        assert results[0].output == ["Already up to date."]
        assert fake_vcs.pulls == [plugin_dir]

    def test_update_all(self, updater, make_plugin, fake_vcs):
        make_plugin("zeta")
        make_plugin("alpha")

        results = updater.update(["all"])

        assert [r.name for r in results] == ["alpha", "zeta"]
        assert [p.name for p in fake_vcs.pulls] == ["alpha", "zeta"]

    def test_update_all_with_nothing_installed(self, updater, fake_vcs, plugin_root):
        assert updater.update(["all"]) == []
        assert fake_vcs.pulls == []
        assert plugin_root.is_dir()

    def test_all_among_other_names_is_a_plugin_name(self, updater, make_plugin, fake_vcs):
        make_plugin("hello")

        results = updater.update(["hello", "all"])

        assert [r.status for r in results] == [
            UpdateStatus.UPDATED,
            UpdateStatus.NOT_INSTALLED,
        ]
        assert len(fake_vcs.pulls) == 1

    def test_not_installed(self, updater, fake_vcs, resolver):
        resolver.resolve()

        results = updater.update(["missing"])

        assert results[0].status == UpdateStatus.NOT_INSTALLED
        assert results[0].message == "missing plugin is not installed."
        assert fake_vcs.pulls == []

    def test_unmanaged_plugin_not_pulled(self, updater, make_plugin, fake_vcs):
        make_plugin("foo", managed=False)

        results = updater.update(["foo"])

        result = results[0]
        assert result.status == UpdateStatus.UNMANAGED
        assert result.message == (
            "Unable to update foo plugin.  Git repository does not exist."
        )
        assert "tpm install <URL to plugin Git repository>" in result.suggestion
        assert WIKI_URL in result.suggestion
        assert fake_vcs.pulls == []

    def test_pull_failure(self, updater, make_plugin, fake_vcs):
        make_plugin("hello")
        fake_vcs.pull_result = CommandOutput(1, ["error: cannot pull with rebase"])

        results = updater.update(["hello"])

        assert results[0].status == UpdateStatus.FAILED
        assert results[0].message == "Unable to update hello plugin."
        assert results[0].output == ["error: cannot pull with rebase"]
        assert not results[0].success

    def test_batch_continues_after_failure(self, updater, make_plugin, fake_vcs):
        make_plugin("legacy", managed=False)
        make_plugin("hello")

        results = updater.update(["legacy", "missing", "hello"])

        assert [r.status for r in results] == [
            UpdateStatus.UNMANAGED,
            UpdateStatus.NOT_INSTALLED,
            UpdateStatus.UPDATED,
        ]

    def test_path_like_name_rejected(self, updater, fake_vcs):
        results = updater.update([".."])

        assert results[0].status == UpdateStatus.NOT_INSTALLED
        assert fake_vcs.pulls == []

    def test_empty_input(self, updater):
        with pytest.raises(UsageError):
            updater.update([])
