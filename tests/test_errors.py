"""Tests for the error types."""

from tpm.core.errors import (
    AlreadyInstalledError,
    NotInstalledError,
    TpmError,
    UnknownRepositoryError,
    UnmanagedInstallError,
    ValidationError,
    WIKI_URL,
    log_error,
)


def test_str_without_suggestion():
    assert str(TpmError("Something broke")) == "Something broke"


def test_str_with_suggestion():
    error = ValidationError("Bad URL", suggestion="Use https")
    assert str(error) == "Bad URL | Suggestion: Use https"


def test_messages():
    assert AlreadyInstalledError("hello").message == "hello plugin already installed."
    assert NotInstalledError("hello").message == "hello plugin is not installed."
    assert UnknownRepositoryError("https://github.com/x").message == (
        "Unable to remove https://github.com/x.  Repository does not exist."
    )


def test_unmanaged_error_points_to_wiki():
    error = UnmanagedInstallError("foo")
    assert error.message == "Unable to update foo plugin.  Git repository does not exist."
    assert WIKI_URL in error.suggestion


def test_severity():
    assert AlreadyInstalledError("hello").severity == "notice"
    assert NotInstalledError("hello").severity == "error"


def test_log_error_uses_severity(mocker):
    mock_log = mocker.patch("tpm.core.errors.log")

    log_error(AlreadyInstalledError("hello"), plugin="hello")
    log_error(NotInstalledError("hello"), plugin="hello")

    mock_log.info.assert_called_once_with(
        "plugin_notice", message="hello plugin already installed.", plugin="hello"
    )
    mock_log.error.assert_called_once_with(
        "plugin_error", message="hello plugin is not installed.", plugin="hello"
    )
