"""Recursive JavaScript file discovery with .gitignore-style exclusions.

Uses ``pathlib`` for all file-system operations and ``pathspec`` for
glob-pattern matching against the configurable blacklist.
"""

from __future__ import annotations

import pathlib
from typing import Iterable, Iterator

import pathspec
import structlog

from jsdepgraph.config import settings

logger = structlog.get_logger(__name__)

# File suffixes each built-in parser handles.  ``.jsx`` and ``.mjs`` are left
# out: JSX and ES module syntax have no shape in the syntax model.
EXTENSION_LANGUAGE_MAP: dict[str, str] = {
    ".js": "javascript",
    ".cjs": "javascript",
}


class FileCrawler:
    """Walks a directory tree depth-first and yields scannable files.

    Entries are visited in sorted order so repeated scans of the same
    tree emit edges in the same order.

    Args:
        root: The root directory to scan.
        blacklist: Optional list of glob patterns to exclude.  Falls back
            to :pyattr:`jsdepgraph.config.Settings.default_blacklist`.
        max_file_size_bytes: Skip files larger than this.  Falls back to
            :pyattr:`jsdepgraph.config.Settings.max_file_size_bytes`.
        extensions: File suffixes to yield.  Defaults to every key of
            :data:`EXTENSION_LANGUAGE_MAP`.
    """

    def __init__(
        self,
        root: pathlib.Path,
        blacklist: list[str] | None = None,
        max_file_size_bytes: int | None = None,
        extensions: Iterable[str] | None = None,
    ) -> None:
        self.root = root.resolve()
        self.blacklist = blacklist if blacklist is not None else settings.default_blacklist
        self.max_file_size_bytes = max_file_size_bytes or settings.max_file_size_bytes
        self.extensions = frozenset(
            ext.lower() for ext in (extensions if extensions is not None else EXTENSION_LANGUAGE_MAP)
        )
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", self.blacklist)

    def crawl(self) -> Iterator[pathlib.Path]:
        """Yield every scannable file under :pyattr:`root`.

        Blacklisted directories are pruned, so their children are never
        visited.
        """
        logger.info("crawl_started", root=str(self.root))
        file_count = 0

        for path in self._walk(self.root):
            file_count += 1
            yield path

        logger.info("crawl_finished", root=str(self.root), files_found=file_count)

    def _walk(self, directory: pathlib.Path) -> Iterator[pathlib.Path]:
        try:
            entries = sorted(directory.iterdir())
        except PermissionError:
            logger.warning("permission_denied", path=str(directory))
            return

        for entry in entries:
            if self._is_excluded(entry):
                logger.debug("excluded", path=str(entry))
                continue

            if entry.is_dir():
                yield from self._walk(entry)
            elif entry.is_file() and entry.suffix.lower() in self.extensions:
                if self._within_size_limit(entry):
                    yield entry

    def _is_excluded(self, path: pathlib.Path) -> bool:
        try:
            relative = path.relative_to(self.root)
        except ValueError:
            return False
        # pathspec expects POSIX paths; directories need a trailing slash.
        posix = relative.as_posix()
        if path.is_dir():
            posix += "/"
        return self._spec.match_file(posix)

    def _within_size_limit(self, path: pathlib.Path) -> bool:
        try:
            size = path.stat().st_size
        except OSError:
            logger.warning("stat_failed", path=str(path))
            return False
        if size > self.max_file_size_bytes:
            logger.warning(
                "file_too_large",
                path=str(path),
                size=size,
                limit=self.max_file_size_bytes,
            )
            return False
        return True
