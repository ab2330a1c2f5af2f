import csv

from media_date_fixer.models import BatchSummary, FixOutcome, FixStrategy, format_millis
from media_date_fixer.reporting import ConsoleReporter, OutcomeLog, ProgressReporter, write_csv_report


def test_log_is_newest_first():
    log = OutcomeLog()
    log.append("first")
    log.append("second")
    assert log.lines() == ["second", "first"]


def test_log_truncates_oldest_beyond_budget():
    log = OutcomeLog(max_chars=20)
    log.append("aaaaaaaaa")   # 10 chars with newline
    log.append("bbbbbbbbb")
    log.append("ccccccccc")

    assert log.text.startswith("ccccccccc\nbbbbbbbbb\n")
    assert log.text.endswith("...")
    assert "aaaaaaaaa" not in log.text
    assert len(log.text) == 23


def test_log_lines_per_outcome():
    t = 1_692_095_400_000
    assert FixOutcome.fixed("a.jpg", FixStrategy.PRIMARY, t).log_line() == f"FIXED (Direct): a.jpg -> {format_millis(t)}"
    assert FixOutcome.fixed("a.jpg", FixStrategy.FALLBACK, t).log_line() == f"FIXED (Index): a.jpg -> {format_millis(t)}"
    assert FixOutcome.skipped("v.mp4").log_line() == "SKIP: No metadata date for v.mp4"
    assert FixOutcome.failed("b.png", "boom").log_line() == "FAIL: b.png - boom"
    assert FixOutcome.already_correct("c.png").log_line() == "OK: c.png already correct"


def test_progress_reporter_keeps_log_and_summary_line():
    reporter = ProgressReporter()
    reporter.start(1)
    reporter.update(FixOutcome.skipped("v.mp4"), 1, 1)
    reporter.finish(BatchSummary(total=1, processed=1, skipped=1))

    assert reporter.log.lines() == [
        "Job Finished. Success: 0, Failed: 0",
        "SKIP: No metadata date for v.mp4",
    ]


def test_console_reporter_logs_summary(caplog):
    caplog.set_level("INFO")
    reporter = ConsoleReporter(disable_bar=True)
    reporter.start(2)
    reporter.update(FixOutcome.fixed("a.jpg", FixStrategy.PRIMARY, 1_000_000), 1, 2)
    reporter.update(FixOutcome.failed("b.jpg", "locked"), 2, 2)
    reporter.finish(BatchSummary(total=2, processed=2, success=1, failed=1))

    assert "Fixing 2 files..." in caplog.text
    assert "Complete! Fixed:1 Failed:1" in caplog.text


def test_write_csv_report(tmp_path):
    out = tmp_path / "report.csv"
    outcomes = [
        FixOutcome.fixed("a.jpg", FixStrategy.PRIMARY, 1_692_095_400_000),
        FixOutcome.skipped("v.mp4"),
        FixOutcome.failed("b.png", "locked"),
    ]

    assert write_csv_report(outcomes, out) == 3

    with open(out, "r", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    assert [r["Status"] for r in rows] == ["fixed", "skipped", "failed"]
    assert rows[0]["Strategy"] == "primary"
    assert rows[0]["New Time"] == format_millis(1_692_095_400_000)
    assert rows[1]["Reason"] == "no_metadata"
    assert rows[2]["Reason"] == "locked"
