"""Git-backed change source.

Shells out to the ``git`` binary; paths are reported relative to the
workspace root (``--relative``), so files outside the workspace directory
never show up.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from loguru import logger

from plexus.workspace.changes import ChangeSourceError


class GitError(ChangeSourceError):
    """A git command failed."""

    def __init__(self, args: list[str], stderr: str) -> None:
        super().__init__(f"git {' '.join(args)} failed: {stderr.strip()}")
        self.command = args
        self.stderr = stderr


class GitChanges:
    """Changed files according to git.

    - ``head`` set: files changed on ``head`` since it forked from ``base``
      (``base...head``); ``base`` defaults to ``HEAD``.
    - only ``base`` set: work tree against ``base``, plus untracked files.
    - neither set: work tree against ``HEAD``, plus untracked files.
    """

    def __init__(self, path: str | Path, base: str | None = None, head: str | None = None) -> None:
        self.path = Path(path)
        self.base = base
        self.head = head

    def changed_files(self) -> list[str]:
        # A rename is reported as its old path plus its new path.
        diff = ("diff", "--name-only", "--relative", "--no-renames")
        if self.head is not None:
            files = self._git(*diff, f"{self.base or 'HEAD'}...{self.head}")
        else:
            files = self._git(*diff, self.base or "HEAD")
            files += self._git("ls-files", "--others", "--exclude-standard")

        # Deduplicate, keeping git's order.
        result = list(dict.fromkeys(files))
        logger.debug("Git: {} changed files (base={}, head={})", len(result), self.base, self.head)
        return result

    def _git(self, *args: str) -> list[str]:
        argv = list(args)
        try:
            proc = subprocess.run(  # noqa: S603
                ["git", *argv],  # noqa: S607
                cwd=self.path,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise GitError(argv, str(exc)) from exc
        if proc.returncode != 0:
            raise GitError(argv, proc.stderr)
        return [line for line in proc.stdout.splitlines() if line]

    def __repr__(self) -> str:
        return f"GitChanges(path={self.path!s}, base={self.base!r}, head={self.head!r})"
