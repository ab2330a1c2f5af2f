import csv
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from tqdm import tqdm

from . import config
from .models import BatchSummary, FixOutcome, OutcomeStatus, format_millis


class OutcomeLog:
    """
    Scrollable text log, newest line first.
    Beyond the character budget the oldest text is cut off and marked with '...'.
    """

    def __init__(self, max_chars: int = config.LOG_CHAR_BUDGET):
        self.max_chars = max_chars
        self.text = ""

    def append(self, line: str):
        new_log = f"{line}\n{self.text}"
        if len(new_log) > self.max_chars:
            new_log = new_log[:self.max_chars] + "..."
        self.text = new_log

    def lines(self) -> List[str]:
        return [l for l in self.text.splitlines() if l]


class ProgressReporter:
    """
    Reporting sink for one fix phase: the total, then per-file progress and
    log lines, then the final summary. The default implementation only keeps
    the text log.
    """

    def __init__(self, log: Optional[OutcomeLog] = None):
        self.log = log or OutcomeLog()

    def start(self, total: int):
        pass

    def update(self, outcome: FixOutcome, processed: int, total: int):
        self.log.append(outcome.log_line())

    def finish(self, summary: BatchSummary):
        self.log.append(f"Job Finished. Success: {summary.success}, Failed: {summary.failed}")


class ConsoleReporter(ProgressReporter):
    """Progress bar on the console, log lines through logging."""

    def __init__(self, log: Optional[OutcomeLog] = None, disable_bar: bool = False):
        super().__init__(log)
        self.disable_bar = disable_bar
        self._bar: Optional[tqdm] = None

    def start(self, total: int):
        logging.info(f"Fixing {total} files...")
        self._bar = tqdm(total=total, desc="Fixing dates", unit="file", disable=self.disable_bar)

    def update(self, outcome: FixOutcome, processed: int, total: int):
        super().update(outcome, processed, total)
        if outcome.status is OutcomeStatus.ALREADY_CORRECT:
            logging.debug(outcome.log_line())
        else:
            logging.info(outcome.log_line())
        if self._bar is not None:
            self._bar.update(1)

    def finish(self, summary: BatchSummary):
        if self._bar is not None:
            self._bar.close()
            self._bar = None
        super().finish(summary)
        status = "Cancelled" if summary.cancelled else "Complete"
        logging.info(
            f"{status}! Fixed:{summary.success} Failed:{summary.failed} "
            f"Skipped:{summary.skipped} Already correct:{summary.already_correct}"
        )


def write_csv_report(outcomes: Iterable[FixOutcome], output_csv: Path) -> int:
    """Writes one row per outcome. Returns the number of rows written."""
    headers = ["Name", "Status", "Strategy", "New Time", "Reason"]
    count = 0
    with open(output_csv, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        for o in outcomes:
            writer.writerow([
                o.candidate_name,
                o.status.value,
                o.strategy.value if o.strategy else "",
                format_millis(o.new_time) if o.new_time is not None else "",
                o.reason or (o.skip_reason.value if o.skip_reason else ""),
            ])
            count += 1
    logging.info(f"Report complete: {count} rows -> {output_csv}")
    return count
