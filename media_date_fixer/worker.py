"""Background batch job runner.

Runs the scan and fix phases on a worker thread, one job at a time. Starting a
new phase cancels the one in flight. Progress is posted FIFO to a queue that
the caller drains from its own context.
"""
import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .core import DateFixer, scan_candidates
from .database.ops import DBOperations
from .models import BatchSummary, FixOutcome, MediaCandidate
from .reporting import ProgressReporter


@dataclass(frozen=True)
class ScanFinished:
    candidates: List[MediaCandidate]


@dataclass(frozen=True)
class Progress:
    processed: int
    total: int
    outcome: Optional[FixOutcome] = None


@dataclass(frozen=True)
class LogLine:
    text: str


@dataclass(frozen=True)
class JobFinished:
    summary: BatchSummary


class QueueReporter(ProgressReporter):
    """Forwards reporting events to a queue without blocking the worker."""

    def __init__(self, events: "queue.Queue"):
        super().__init__()
        self.events = events

    def start(self, total: int):
        self.events.put(Progress(0, total))

    def update(self, outcome: FixOutcome, processed: int, total: int):
        super().update(outcome, processed, total)
        self.events.put(Progress(processed, total, outcome))

    def finish(self, summary: BatchSummary):
        super().finish(summary)
        self.events.put(LogLine(f"Job Finished. Success: {summary.success}, Failed: {summary.failed}"))
        self.events.put(JobFinished(summary))


class BatchJobRunner:
    def __init__(self,
                 fixer: DateFixer,
                 primary_root: Optional[Path] = None,
                 db_ops: Optional[DBOperations] = None):
        self.fixer = fixer
        self.primary_root = primary_root
        self.db_ops = db_ops
        self.events: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._cancel: Optional[threading.Event] = None
        self._lock = threading.Lock()

    def start_scan(self, root: Path):
        def run(cancel: threading.Event):
            candidates = scan_candidates(root, self.primary_root, self.db_ops, cancel)
            self.events.put(LogLine(f"Scan complete. Found {len(candidates)} candidates."))
            self.events.put(ScanFinished(candidates))

        self._start(run, "scan")

    def start_fix(self, candidates: Sequence[MediaCandidate]):
        reporter = QueueReporter(self.events)

        def run(cancel: threading.Event):
            self.fixer.fix_all(candidates, reporter=reporter, cancel_event=cancel)

        self._start(run, "fix")

    def cancel(self):
        """Signals the active job and waits for it to stop between candidates."""
        with self._lock:
            thread, cancel = self._thread, self._cancel
        if cancel is not None:
            cancel.set()
        if thread is not None:
            thread.join()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Joins the active job. Returns True when no job is running anymore."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def drain(self) -> list:
        """Returns all pending events in FIFO order."""
        items = []
        while True:
            try:
                items.append(self.events.get_nowait())
            except queue.Empty:
                return items

    def _start(self, target: Callable[[threading.Event], None], phase: str):
        self.cancel()
        cancel = threading.Event()

        def guarded():
            try:
                target(cancel)
            except Exception as e:
                logging.exception(f"{phase} phase failed.")
                self.events.put(LogLine(f"EXCEPTION: {phase} phase - {e}"))

        thread = threading.Thread(target=guarded, name=f"date-fixer-{phase}", daemon=True)
        with self._lock:
            self._thread, self._cancel = thread, cancel
        thread.start()
