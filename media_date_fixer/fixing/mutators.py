import os
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Protocol

from ..exceptions import ContentIndexError, TimestampMutationError
from ..models import MediaCandidate
from .locator import resolve_primary_path


class ContentIndex(Protocol):
    """
    External content index (gallery/catalog) that mirrors file timestamps.
    Implemented by database.ops.DBOperations.
    """

    def update_last_modified(self, locator: str, epoch_millis: int) -> int: ...

    def propagate_times(self, locator: str, modified_epoch_seconds: int,
                        taken_epoch_millis: Optional[int] = None) -> int: ...

    def request_rescan(self, path: str) -> None: ...


class StorageMutator(ABC):
    """
    Capability to change the modification time of a candidate.
    """

    @abstractmethod
    def set_modified(self, candidate: MediaCandidate, epoch_millis: int) -> bool:
        """
        Returns False when the strategy is inapplicable or had no effect.
        Raises TimestampMutationError when the mutation itself failed.
        """

    def resolve_path(self, candidate: MediaCandidate) -> Optional[Path]:
        return None


class DirectPathMutator(StorageMutator):
    """Primary strategy: sets the mtime of the file on the primary volume directly."""

    def __init__(self, primary_root: Optional[Path]):
        self.primary_root = primary_root

    def resolve_path(self, candidate: MediaCandidate) -> Optional[Path]:
        return resolve_primary_path(candidate.locator, self.primary_root)

    def set_modified(self, candidate: MediaCandidate, epoch_millis: int) -> bool:
        path = self.resolve_path(candidate)
        if path is None or not path.exists():
            return False

        try:
            # Keep the access time, only the modification time is corrected
            atime_ns = path.stat().st_atime_ns
            os.utime(path, ns=(atime_ns, epoch_millis * 1_000_000))
        except OSError as e:
            raise TimestampMutationError(f"Cannot set mtime on {path}: {e}") from e
        return True


class ContentIndexMutator(StorageMutator):
    """Fallback strategy: updates the document's last-modified field in the content index."""

    def __init__(self, index: ContentIndex):
        self.index = index

    def set_modified(self, candidate: MediaCandidate, epoch_millis: int) -> bool:
        try:
            rows = self.index.update_last_modified(candidate.locator, epoch_millis)
        except ContentIndexError as e:
            raise TimestampMutationError(f"Content index update failed: {e}") from e
        logging.debug(f"Content index updated {rows} row(s) for {candidate.locator}")
        return rows > 0
