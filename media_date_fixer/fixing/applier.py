import logging
from typing import Optional

from .. import config
from ..models import ExtractedDate, FixOutcome, FixStrategy, MediaCandidate, MediaKind
from .mutators import ContentIndex, StorageMutator


class TimestampApplier:
    """
    Applies an extracted capture date to a candidate's modification time.

    Strategies:
      - Primary: direct filesystem write through the resolved path.
      - Fallback: last-modified update through the content index, used only
        when Primary is inapplicable or fails.
    """

    def __init__(self,
                 primary: StorageMutator,
                 fallback: StorageMutator,
                 index: Optional[ContentIndex] = None):
        self.primary = primary
        self.fallback = fallback
        # Receives best-effort propagation after a Primary success
        self.index = index

    def apply(self, candidate: MediaCandidate, extracted: Optional[ExtractedDate]) -> FixOutcome:
        try:
            return self._apply(candidate, extracted)
        except Exception as e:
            logging.error(f"EXCEPTION: {candidate.name} - {e}")
            return FixOutcome.failed(candidate.name, str(e))

    def _apply(self, candidate: MediaCandidate, extracted: Optional[ExtractedDate]) -> FixOutcome:
        if extracted is None or not extracted.is_valid:
            return FixOutcome.skipped(candidate.name)

        target = extracted.epoch_millis
        if abs(candidate.current_mtime - target) <= config.MTIME_TOLERANCE_MS:
            return FixOutcome.already_correct(candidate.name)

        # 1. Primary: direct path
        primary_ok = False
        try:
            primary_ok = self.primary.set_modified(candidate, target)
        except Exception as e:
            logging.debug(f"Primary strategy failed for {candidate.name}: {e}")

        if primary_ok:
            self._propagate(candidate, target)
            return FixOutcome.fixed(candidate.name, FixStrategy.PRIMARY, target)

        # 2. Fallback: content index
        try:
            if self.fallback.set_modified(candidate, target):
                return FixOutcome.fixed(candidate.name, FixStrategy.FALLBACK, target)
            return FixOutcome.failed(candidate.name, "content index reported no affected rows")
        except Exception as e:
            return FixOutcome.failed(candidate.name, str(e))

    def _propagate(self, candidate: MediaCandidate, target: int):
        """Mirrors the new time into the content index and asks for a rescan. Never fails the fix."""
        if self.index is None:
            return

        taken = target if candidate.kind is MediaKind.PHOTO else None
        try:
            self.index.propagate_times(candidate.locator, target // 1000, taken)
        except Exception as e:
            logging.warning(f"Content index propagation failed for {candidate.name}: {e}")

        path = self.primary.resolve_path(candidate) or candidate.path
        try:
            self.index.request_rescan(str(path))
        except Exception as e:
            logging.warning(f"Rescan notification failed for {candidate.name}: {e}")
