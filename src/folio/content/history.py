"""Version-control history and contributor lists."""

from __future__ import annotations

import datetime as dt
import json
import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

CONTRIBUTORS_FILENAME = "contributors.json"


class NullHistory:
    """History service for sites that are not under version control."""

    def contributors(self, path: Path) -> list[str]:
        return []

    def last_modified(self, path: Path) -> dt.date | None:
        return None


class GitHistory:
    """Reads authorship and modification dates from ``git log``.

    Failures (no git binary, not a repository, timeouts) are logged and
    treated as "no history".
    """

    def __init__(self, repo_root: Path, *, timeout: float = 5) -> None:
        self.repo_root = repo_root
        self.timeout = timeout

    def _git(self, *args: str) -> str | None:
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                check=True,
                cwd=self.repo_root,
                timeout=self.timeout,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as exc:
            logger.debug("git %s failed: %s", " ".join(args), exc)
            return None
        return result.stdout

    def contributors(self, path: Path) -> list[str]:
        """Commit author names for ``path``, oldest first, without repeats."""
        output = self._git("log", "--follow", "--format=%an", "--", str(path))
        if not output:
            return []
        names: list[str] = []
        for name in reversed(output.splitlines()):
            name = name.strip()
            if name and name not in names:
                names.append(name)
        return names

    def last_modified(self, path: Path) -> dt.date | None:
        output = self._git("log", "-1", "--format=%cI", "--", str(path))
        if not output or not output.strip():
            return None
        try:
            return dt.datetime.fromisoformat(output.strip()).date()
        except ValueError:
            logger.debug("Unexpected git date for %s: %r", path, output)
            return None


def load_contributors_file(directory: Path) -> list[str]:
    """Names listed in a ``contributors.json`` next to the document.

    The file holds a list whose entries are either display names or
    ``[username, name]`` pairs. A missing or unreadable file yields no names.
    """
    path = directory / CONTRIBUTORS_FILENAME
    if not path.is_file():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return []
    if not isinstance(data, list):
        logger.warning("Ignoring %s: expected a list", path)
        return []

    names: list[str] = []
    for entry in data:
        if isinstance(entry, str):
            names.append(entry)
        elif isinstance(entry, list) and entry and isinstance(entry[-1], str):
            names.append(entry[-1])
    return [name.strip() for name in names if name.strip()]
