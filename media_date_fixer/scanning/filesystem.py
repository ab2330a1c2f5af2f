import os
import logging
from pathlib import Path
from typing import Iterator, Optional, Set

from ..models import MediaCandidate
from ..fixing.locator import make_locator
from .classifier import classify, extension_of


class DiskScanner:
    """
    Host file-access layer: enumerates a directory tree depth-first and yields
    a MediaCandidate for every file whose extension classifies.
    """

    def __init__(self, primary_root: Optional[Path] = None):
        # Files below primary_root get "primary:" locators and are eligible
        # for direct path mutation.
        self.primary_root = primary_root

    def scan(self, root: Path, skip_dirs: Optional[Set[Path]] = None) -> Iterator[MediaCandidate]:
        skip_dirs = skip_dirs or set()
        for path in self._iter_files(root, skip_dirs):
            candidate = self._build_candidate(path)
            if candidate:
                yield candidate

    def _build_candidate(self, path: Path) -> Optional[MediaCandidate]:
        kind = classify(path.name)
        if kind is None:
            return None

        try:
            mtime_ns = path.stat().st_mtime_ns
        except OSError as e:
            logging.warning(f"Cannot stat {path}: {e}")
            return None

        return MediaCandidate(
            locator=make_locator(path, self.primary_root),
            path=path,
            name=path.name,
            lower_extension=extension_of(path.name),
            current_mtime=mtime_ns // 1_000_000,
            kind=kind,
        )

    def _iter_files(self, root: Path, skip_dirs: Set[Path]) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()
            if skip_dirs and any(sd == current or sd in current.parents for sd in skip_dirs):
                continue

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except (OSError, PermissionError):
                logging.warning(f"Permission denied: {current}")
                continue

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False):
                    files.append(Path(e.path))

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f
