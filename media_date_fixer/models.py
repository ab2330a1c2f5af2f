from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from . import config


class MediaKind(Enum):
    PHOTO = 'photo'
    VIDEO = 'video'


class FixStrategy(Enum):
    PRIMARY = 'primary'     # direct filesystem write
    FALLBACK = 'fallback'   # content index update


class OutcomeStatus(Enum):
    ALREADY_CORRECT = 'already_correct'
    FIXED = 'fixed'
    SKIPPED = 'skipped'
    FAILED = 'failed'


class SkipReason(Enum):
    NO_METADATA = 'no_metadata'


@dataclass(frozen=True)
class MediaCandidate:
    """
    A media file selected for timestamp correction.
    """
    locator: str            # "<volume-type>:<relative-path>"
    path: Path              # where the content stream is opened from
    name: str
    lower_extension: str
    current_mtime: int      # epoch millis
    kind: MediaKind


@dataclass(frozen=True)
class ExtractedDate:
    """
    Capture timestamp read from embedded metadata.
    A non-positive value is never valid and must be treated as absent.
    """
    epoch_millis: int
    source_tag: str

    @property
    def is_valid(self) -> bool:
        return self.epoch_millis > 0


def format_millis(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000).strftime(config.DISPLAY_DATE_FORMAT)


@dataclass(frozen=True)
class FixOutcome:
    """
    Terminal result of processing one candidate.
    Exactly one is produced per candidate.
    """
    candidate_name: str
    status: OutcomeStatus
    strategy: Optional[FixStrategy] = None
    new_time: Optional[int] = None
    skip_reason: Optional[SkipReason] = None
    reason: Optional[str] = None

    @classmethod
    def already_correct(cls, name: str) -> "FixOutcome":
        return cls(name, OutcomeStatus.ALREADY_CORRECT)

    @classmethod
    def fixed(cls, name: str, strategy: FixStrategy, new_time: int) -> "FixOutcome":
        return cls(name, OutcomeStatus.FIXED, strategy=strategy, new_time=new_time)

    @classmethod
    def skipped(cls, name: str, reason: SkipReason = SkipReason.NO_METADATA) -> "FixOutcome":
        return cls(name, OutcomeStatus.SKIPPED, skip_reason=reason)

    @classmethod
    def failed(cls, name: str, reason: str) -> "FixOutcome":
        return cls(name, OutcomeStatus.FAILED, reason=reason)

    def log_line(self) -> str:
        """Human-readable line for the batch log."""
        if self.status is OutcomeStatus.FIXED:
            label = "Direct" if self.strategy is FixStrategy.PRIMARY else "Index"
            return f"FIXED ({label}): {self.candidate_name} -> {format_millis(self.new_time)}"
        if self.status is OutcomeStatus.SKIPPED:
            return f"SKIP: No metadata date for {self.candidate_name}"
        if self.status is OutcomeStatus.FAILED:
            return f"FAIL: {self.candidate_name} - {self.reason}"
        return f"OK: {self.candidate_name} already correct"


@dataclass
class BatchSummary:
    """
    Aggregate counters for one fix phase.
    Written only by the worker driving the sequential loop.
    """
    total: int = 0
    processed: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0
    already_correct: int = 0
    cancelled: bool = False

    def add(self, outcome: FixOutcome):
        self.processed += 1
        if outcome.status is OutcomeStatus.FIXED:
            self.success += 1
        elif outcome.status is OutcomeStatus.FAILED:
            self.failed += 1
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.skipped += 1
        else:
            self.already_correct += 1
