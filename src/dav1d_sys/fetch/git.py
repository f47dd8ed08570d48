"""Shallow git checkout that is cloned once and pulled afterwards."""

from __future__ import annotations

from pathlib import Path

from dav1d_sys.config import REPO
from dav1d_sys.errors import FilesystemError
from dav1d_sys.models import SourceTree
from dav1d_sys.observability import StructuredLogger
from dav1d_sys.process import CommandRunner, SubprocessRunner

CLONE_DEPTH = 1


def ensure_source_tree(
    path: str | Path,
    *,
    repo: str = REPO,
    runner: CommandRunner | None = None,
    logger: StructuredLogger | None = None,
) -> SourceTree:
    """Clone *repo* into *path* on first use, otherwise pull in place.

    Git failures propagate as ``CommandError``; nothing is retried.
    """
    runner = runner or SubprocessRunner()
    source = SourceTree.at(path)

    if source.has_vcs_metadata:
        _log(logger, f"Updating existing checkout at {source.path}.")
        runner.run(["git", "-C", str(source.path), "pull"])
    else:
        try:
            source.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(
                "Unable to create the source checkout parent directory.",
                context={"operation": "fetch_git", "path": str(source.path.parent)},
            ) from exc
        _log(logger, f"Cloning {repo} into {source.path}.")
        runner.run(["git", "clone", "--depth", str(CLONE_DEPTH), repo, str(source.path)])

    return SourceTree.at(source.path)


def _log(logger: StructuredLogger | None, message: str) -> None:
    if logger is not None:
        logger.log(operation="fetch_git", stage="source", message=message)
