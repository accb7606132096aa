"""
Temporary artifact registry.

Every file or directory a run creates (uploaded source, extracted audio,
frame images, frame directory) is registered here as soon as it exists, and
``release_all`` removes all of them once the run ends, whatever the outcome.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from types import TracebackType

logger = logging.getLogger(__name__)


class ArtifactRegistry:
    """
    Owns the temporary paths of a single run.

    Usage:
        with ArtifactRegistry() as artifacts:
            audio = artifacts.register(run_dir / "audio.mp3")
            ...
        # every registered path is gone here, even on error
    """

    def __init__(self) -> None:
        self._paths: list[Path] = []

    def register(self, path: Path | str) -> Path:
        """
        Register a file or directory for removal at the end of the run.

        The path does not need to exist yet; registering before creation
        ensures partial output is removed if the creating step fails.

        Returns:
            The registered path (for chaining)
        """
        path = Path(path)
        if path not in self._paths:
            self._paths.append(path)
            logger.debug(f"Registered artifact: {path}")
        return path

    @property
    def paths(self) -> list[Path]:
        """Snapshot of currently registered paths."""
        return list(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def release_all(self) -> list[Path]:
        """
        Delete every registered path.

        Files are removed before directories, and nested directories before
        their parents. Missing paths count as removed. A failure on one path
        is logged and does not stop the others.

        Returns:
            Paths that could not be removed
        """
        if not self._paths:
            return []

        paths, self._paths = self._paths, []
        files = [p for p in paths if not p.is_dir()]
        dirs = sorted(
            (p for p in paths if p.is_dir()),
            key=lambda p: len(p.parts),
            reverse=True,
        )

        failed: list[Path] = []
        for path in files + dirs:
            try:
                _remove(path)
                logger.debug(f"Removed artifact: {path}")
            except OSError as e:
                logger.warning(f"Failed to remove {path}: {e}")
                failed.append(path)

        if failed:
            logger.warning(f"Cleanup finished with {len(failed)} paths left behind")
        else:
            logger.info(f"Cleaned up {len(paths)} temporary artifacts")
        return failed

    def __enter__(self) -> ArtifactRegistry:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release_all()


def _remove(path: Path) -> None:
    """Remove a file or directory tree; a missing path is not an error."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            os.unlink(path)
    except FileNotFoundError:
        pass
