import logging
import threading
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from .database.ops import DBOperations
from .exceptions import ContentIndexError
from .fixing.applier import TimestampApplier
from .fixing.mutators import ContentIndexMutator, DirectPathMutator
from .metadata.extract import MetadataExtractor
from .models import BatchSummary, FixOutcome, MediaCandidate
from .reporting import ProgressReporter
from .scanning.filesystem import DiskScanner

# Commit the content index every N candidates
COMMIT_EVERY = 100

class DateFixer:
    """
    Per-candidate pipeline: extract the capture date, then apply it.
    Every fault is contained at the candidate boundary.
    """

    def __init__(self,
                 extractor: MetadataExtractor,
                 applier: TimestampApplier,
                 db_ops: Optional[DBOperations] = None):
        self.extractor = extractor
        self.applier = applier
        self.db_ops = db_ops

    def process(self, candidate: MediaCandidate) -> FixOutcome:
        try:
            extracted = self.extractor.extract(candidate)
            if extracted is not None:
                logging.debug(f"{candidate.name}: {extracted.source_tag} -> {extracted.epoch_millis}")
            outcome = self.applier.apply(candidate, extracted)
        except Exception as e:
            logging.error(f"EXCEPTION: {candidate.name} - {e}")
            outcome = FixOutcome.failed(candidate.name, str(e))

        if self.db_ops is not None:
            try:
                self.db_ops.record_outcome(candidate.locator, outcome)
            except Exception as e:
                logging.warning(f"Could not record outcome for {candidate.name}: {e}")
        return outcome

    def run_batch(self,
                  candidates: Sequence[MediaCandidate],
                  cancel_event: Optional[threading.Event] = None) -> Iterator[FixOutcome]:
        """
        Processes candidates sequentially, yielding one outcome each.
        Cancellation is checked before every candidate; applied changes are kept.
        """
        for i, candidate in enumerate(candidates):
            if cancel_event is not None and cancel_event.is_set():
                logging.warning(f"Batch cancelled after {i} of {len(candidates)} files.")
                return
            yield self.process(candidate)
            if (i + 1) % COMMIT_EVERY == 0:
                self._commit()

    def _commit(self):
        """Commits the content index. A failed commit is logged, the batch goes on."""
        if self.db_ops is None:
            return
        try:
            self.db_ops.commit()
        except ContentIndexError as e:
            logging.warning(f"Content index commit failed: {e}")

    def fix_all(self,
                candidates: Sequence[MediaCandidate],
                reporter: Optional[ProgressReporter] = None,
                cancel_event: Optional[threading.Event] = None,
                outcomes: Optional[List[FixOutcome]] = None) -> BatchSummary:
        """Drives run_batch, keeps the counters and feeds the reporting sink."""
        reporter = reporter or ProgressReporter()
        summary = BatchSummary(total=len(candidates))
        reporter.start(summary.total)

        for outcome in self.run_batch(candidates, cancel_event):
            summary.add(outcome)
            if outcomes is not None:
                outcomes.append(outcome)
            reporter.update(outcome, summary.processed, summary.total)

        summary.cancelled = summary.processed < summary.total
        self._commit()
        reporter.finish(summary)
        return summary


def build_fixer(db_ops: DBOperations,
                primary_root: Optional[Path],
                extractor: Optional[MetadataExtractor] = None) -> DateFixer:
    """Wires the default strategies: direct path first, content index as fallback."""
    applier = TimestampApplier(
        primary=DirectPathMutator(primary_root),
        fallback=ContentIndexMutator(db_ops),
        index=db_ops,
    )
    return DateFixer(extractor or MetadataExtractor(), applier, db_ops)


def scan_candidates(root: Path,
                    primary_root: Optional[Path],
                    db_ops: Optional[DBOperations] = None,
                    cancel_event: Optional[threading.Event] = None) -> List[MediaCandidate]:
    """Scan phase: enumerates candidates and registers them in the content index."""
    logging.info(f"Scanning {root}...")
    scanner = DiskScanner(primary_root)
    candidates = []
    for candidate in scanner.scan(root):
        if cancel_event is not None and cancel_event.is_set():
            logging.warning("Scan cancelled.")
            break
        candidates.append(candidate)
        if db_ops is not None:
            try:
                db_ops.upsert_document(candidate)
            except ContentIndexError as e:
                logging.warning(f"Could not register {candidate.name}: {e}")

    if db_ops is not None:
        try:
            db_ops.commit()
        except ContentIndexError as e:
            logging.warning(f"Content index commit failed: {e}")
    logging.info(f"Scan complete. Found {len(candidates)} candidates.")
    return candidates
