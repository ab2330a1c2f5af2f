import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import config
from .core import build_fixer
from .database.db import DBManager
from .database.ops import DBOperations
from .reporting import ConsoleReporter, write_csv_report
from .worker import BatchJobRunner, JobFinished, LogLine, Progress, ScanFinished

def setup_logging(log_file: Optional[Path], verbose: bool):
    """Sets up logging to the console and, when given, to a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)

def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Media Date Fixer: set file modification times from embedded capture dates"
    )

    p.add_argument("root", type=Path, help="Directory to scan for photos and videos")

    p.add_argument("--primary-root", type=Path, default=None,
                   help="Volume root whose files may be changed directly (default: ROOT)")
    p.add_argument("--db", type=Path, default=None,
                   help=f"Content index database (default: ROOT/{config.DEFAULT_DB_NAME})")
    p.add_argument("--scan-only", action="store_true", help="List candidates without changing anything")
    p.add_argument("--report-csv", type=Path, default=None, help="Write per-file outcomes to this CSV file")
    p.add_argument("--log-file", type=Path, nargs="?", default=None, const=Path(config.DEFAULT_LOG_NAME),
                   help=f"Also write the log to this file (bare flag: ./{config.DEFAULT_LOG_NAME})")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)

def run(args) -> int:
    root = args.root.resolve()
    if not root.is_dir():
        logging.error(f"Not a directory: {root}")
        return 1

    primary_root = (args.primary_root or root).resolve()
    db_path = args.db if args.db else root / config.DEFAULT_DB_NAME

    with DBManager(db_path) as conn:
        db_ops = DBOperations(conn)
        fixer = build_fixer(db_ops, primary_root)
        runner = BatchJobRunner(fixer, primary_root, db_ops)

        # --- Phase 1: Scan ---
        runner.start_scan(root)
        runner.wait()
        candidates = []
        for event in runner.drain():
            if isinstance(event, ScanFinished):
                candidates = event.candidates
            elif isinstance(event, LogLine):
                logging.info(event.text)

        if args.scan_only or not candidates:
            for c in candidates:
                logging.info(f"{c.kind.value:5s} {c.locator}")
            return 0

        # --- Phase 2: Fix ---
        reporter = ConsoleReporter()
        outcomes = []
        summary = None
        rescans_before = db_ops.count_rescan_requests()
        runner.start_fix(candidates)
        try:
            while summary is None:
                runner.wait(timeout=0.2)
                for event in runner.drain():
                    if isinstance(event, Progress):
                        if event.outcome is None:
                            reporter.start(event.total)
                        else:
                            outcomes.append(event.outcome)
                            reporter.update(event.outcome, event.processed, event.total)
                    elif isinstance(event, JobFinished):
                        summary = event.summary
                        reporter.finish(summary)
                    elif isinstance(event, LogLine):
                        logging.info(event.text)
                if summary is None and not runner.is_running() and runner.events.empty():
                    logging.error("Fix phase ended without a summary.")
                    return 1
        except KeyboardInterrupt:
            logging.warning("Cancelling... changes already applied are kept.")
            runner.cancel()
            raise

        rescans = db_ops.count_rescan_requests() - rescans_before
        if rescans:
            logging.info(f"Rescan requested for {rescans} files.")

        if args.report_csv:
            write_csv_report(outcomes, args.report_csv)
    return 0

def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    logging.info("=== Media Date Fixer Started ===")
    logging.info(f"Root: {args.root}")

    try:
        sys.exit(run(args))
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except Exception:
        logging.exception("Fatal error while fixing dates.")
        sys.exit(1)

if __name__ == "__main__":
    main()
