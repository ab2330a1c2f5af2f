import os
import threading

from media_date_fixer.core import build_fixer
from media_date_fixer.metadata.extract import MetadataExtractor
from media_date_fixer.worker import BatchJobRunner, JobFinished, LogLine, Progress, ScanFinished


def exif_from_content(stream):
    data = stream.read()
    return {"EXIF DateTimeOriginal": data.decode("ascii")} if data else {}


def make_runner(db_ops, root):
    extractor = MetadataExtractor(exif_reader=exif_from_content)
    fixer = build_fixer(db_ops, root, extractor)
    return BatchJobRunner(fixer, root, db_ops)


def test_scan_then_fix_events_in_order(tmp_path, db_ops):
    for name in ("a.jpg", "b.jpg"):
        p = tmp_path / name
        p.write_bytes(b"2023:08:15 10:30:00")
        os.utime(p, (0, 0))

    runner = make_runner(db_ops, tmp_path)

    runner.start_scan(tmp_path)
    assert runner.wait(timeout=10)
    events = runner.drain()
    scan = [e for e in events if isinstance(e, ScanFinished)]
    assert len(scan) == 1
    candidates = scan[0].candidates
    assert [c.name for c in candidates] == ["a.jpg", "b.jpg"]

    runner.start_fix(candidates)
    assert runner.wait(timeout=10)
    events = runner.drain()

    progress = [(e.processed, e.total) for e in events if isinstance(e, Progress)]
    assert progress == [(0, 2), (1, 2), (2, 2)]
    assert isinstance(events[-1], JobFinished)
    assert events[-1].summary.success == 2
    fixed = [e.outcome.log_line() for e in events if isinstance(e, Progress) and e.outcome]
    assert fixed[0].startswith("FIXED (Direct): a.jpg")
    lines = [e.text for e in events if isinstance(e, LogLine)]
    assert lines == ["Job Finished. Success: 2, Failed: 0"]


def test_starting_a_new_phase_cancels_the_running_one(tmp_path):
    started = threading.Event()
    release = threading.Event()
    seen = []

    class SlowFixer:
        def fix_all(self, candidates, reporter=None, cancel_event=None):
            for c in candidates:
                if cancel_event.is_set():
                    break
                seen.append(c)
                started.set()
                release.wait(timeout=5)

    runner = BatchJobRunner(SlowFixer(), tmp_path)
    runner.start_fix(["first", "second", "third"])
    assert started.wait(timeout=5)

    # The old job is told to stop; let it finish the candidate in flight
    threading.Timer(0.1, release.set).start()
    runner.start_fix([])
    assert runner.wait(timeout=10)

    assert seen == ["first"]


def test_cancel_without_job_is_a_no_op(tmp_path):
    runner = BatchJobRunner(fixer=None, primary_root=tmp_path)
    runner.cancel()
    assert runner.wait()
    assert not runner.is_running()


def test_phase_failure_is_reported_as_log_line(tmp_path):
    class BrokenFixer:
        def fix_all(self, candidates, reporter=None, cancel_event=None):
            raise RuntimeError("index is gone")

    runner = BatchJobRunner(BrokenFixer(), tmp_path)
    runner.start_fix([])
    assert runner.wait(timeout=10)

    assert runner.drain() == [LogLine("EXCEPTION: fix phase - index is gone")]
