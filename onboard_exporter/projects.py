from __future__ import annotations

import logging
import os
import subprocess
import tempfile

from .config import ProjectsConfig

logger = logging.getLogger(__name__)


class ProjectDirectoryCounter:
    """Counts submitted project folders in a shallow clone of the OnBoard repo."""

    def __init__(self, config: ProjectsConfig, git: str = "git") -> None:
        self._config = config
        self._git = git

    def count(self) -> int:
        with tempfile.TemporaryDirectory(prefix="onboard-projects-") as workdir:
            checkout = os.path.join(workdir, "repo")
            cmd = [
                self._git,
                "clone",
                "--depth",
                "1",
                "--branch",
                self._config.branch,
                self._config.repository_url,
                checkout,
            ]
            try:
                subprocess.run(cmd, capture_output=True, text=True, check=True)
            except subprocess.CalledProcessError as e:
                logger.error("Git command failed: %s, Error: %s", " ".join(cmd), e.stderr)
                raise
            total = count_directories(os.path.join(checkout, self._config.subdirectory))
        logger.info("Counted %d project directories", total)
        return total


def count_directories(path: str) -> int:
    with os.scandir(path) as entries:
        return sum(1 for entry in entries if entry.is_dir())
