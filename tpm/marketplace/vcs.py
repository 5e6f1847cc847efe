"""Version control and filesystem collaborators.

The engines only talk to ``VersionControlClient`` and ``Filesystem``;
``GitClient`` and ``LocalFilesystem`` are the real implementations. Every
call blocks until the underlying command finishes.
"""

import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
import structlog

log = structlog.get_logger()

GIT_METADATA_DIR = ".git"


@dataclass
class CommandOutput:
    """Captured output of an external command.

    Attributes:
        returncode: Process exit status
        lines: Combined stdout/stderr, one entry per non-empty line
    """

    returncode: int
    lines: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.returncode == 0


def log_command_output(output: CommandOutput, **context) -> None:
    """Log every captured line; failures at error level."""
    for line in output.lines:
        if output.success:
            log.info("git_output", line=line, **context)
        else:
            log.error("git_output", line=line, **context)


def is_managed(plugin_dir: Path) -> bool:
    """Whether a plugin directory is a Git checkout."""
    return (plugin_dir / GIT_METADATA_DIR).is_dir()


def parse_remote_urls(output: str) -> list[str]:
    """Extract URLs from ``git remote -v`` output, without duplicates.

    Lines look like ``origin\\thttps://github.com/acme/plugin.git (fetch)``.
    """
    urls = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[1] not in urls:
            urls.append(parts[1])
    return urls


class VersionControlClient(ABC):
    """Clone, pull and inspect plugin checkouts."""

    @abstractmethod
    def clone(self, url: str, dest_dir: Path) -> CommandOutput:
        """Clone ``url`` into ``dest_dir``."""

    @abstractmethod
    def pull(self, repo_dir: Path) -> CommandOutput:
        """Pull the latest changes into ``repo_dir``."""

    @abstractmethod
    def remotes(self, repo_dir: Path) -> list[str]:
        """URLs of the remotes configured in ``repo_dir``."""


class Filesystem(ABC):
    """Filesystem operations the engines need."""

    @abstractmethod
    def remove_tree(self, path: Path) -> None:
        """Recursively delete ``path``."""


class GitClient(VersionControlClient):
    """``VersionControlClient`` backed by the ``git`` executable."""

    def __init__(self, executable: str = "git"):
        self.executable = executable

    def _run(self, args: list[str], cwd: Path = None) -> CommandOutput:
        cmd = [self.executable, *args]
        log.debug("git_command", cmd=" ".join(cmd), cwd=str(cwd) if cwd else None)

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except FileNotFoundError:
            return CommandOutput(
                returncode=127,
                lines=[f"{self.executable} is not installed or not in PATH"],
            )
        except OSError as e:
            return CommandOutput(returncode=1, lines=[str(e)])

        lines = [line for line in result.stdout.splitlines() if line.strip()]
        return CommandOutput(returncode=result.returncode, lines=lines)

    def clone(self, url: str, dest_dir: Path) -> CommandOutput:
        return self._run(["clone", url, str(dest_dir)], cwd=dest_dir.parent)

    def pull(self, repo_dir: Path) -> CommandOutput:
        return self._run(["-C", str(repo_dir), "pull"])

    def remotes(self, repo_dir: Path) -> list[str]:
        output = self._run(["-C", str(repo_dir), "remote", "-v"])
        if not output.success:
            log.warning(
                "git_remote_failed", path=str(repo_dir), output=" ".join(output.lines)
            )
            return []
        return parse_remote_urls("\n".join(output.lines))


class LocalFilesystem(Filesystem):
    """``Filesystem`` for the local disk."""

    def remove_tree(self, path: Path) -> None:
        shutil.rmtree(path)
