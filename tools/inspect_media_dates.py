#!/usr/bin/env python3
"""
Show which capture date the fixer would use for each file, to diagnose skips.

Usage:
  python tools/inspect_media_dates.py [--db INDEX] [--primary-root DIR] <file> [<file> ...]

With --db, also prints the content index row and the fix history of each file.

Example:
  python tools/inspect_media_dates.py "DCIM/IMG_0001.jpg" "DCIM/VID_0002.mp4"
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from media_date_fixer import config
from media_date_fixer.database.db import DBManager
from media_date_fixer.database.ops import DBOperations
from media_date_fixer.fixing.locator import make_locator
from media_date_fixer.metadata.extract import MetadataExtractor, read_exif_tags
from media_date_fixer.models import MediaKind, format_millis
from media_date_fixer.scanning.classifier import classify


def inspect_file(extractor: MetadataExtractor, path: Path) -> int:
    """Print classification, raw date tags and the chosen date. Returns 0 if a date was found."""
    print(f"Inspecting: {path.name}")
    if not path.exists():
        print("  Error: file not found")
        return 1

    kind = classify(path.name)
    if kind is None:
        print("  Not a candidate (unsupported extension)")
        return 1
    print(f"  Kind: {kind.value}")

    if kind is MediaKind.PHOTO:
        try:
            with path.open('rb') as f:
                tags = read_exif_tags(f)
        except Exception as e:
            print(f"  EXIF read error: {e}")
            tags = {}
        for tag in config.EXIF_DATE_TAGS:
            print(f"  {tag}: {tags[tag] if tag in tags else '(absent)'}")
        with path.open('rb') as f:
            extracted = extractor.extract_photo_date(f)
    else:
        session = None
        try:
            session = extractor.video_reader.open(path)
            print(f"  {config.VIDEO_DATE_FIELD}: {session.creation_date() or '(absent)'}")
        except Exception as e:
            print(f"  MediaInfo error: {e}")
        finally:
            if session is not None:
                session.release()
        extracted = extractor.extract_video_date(path)

    if extracted is None:
        print("  Result: no usable date -> SKIP")
        return 1

    mtime_ms = path.stat().st_mtime_ns // 1_000_000
    delta = abs(mtime_ms - extracted.epoch_millis)
    print(f"  Result: {format_millis(extracted.epoch_millis)} (from {extracted.source_tag})")
    print(f"  Current mtime: {format_millis(mtime_ms)} (off by {delta / 1000:.1f}s)")
    return 0


def inspect_index(db_ops: DBOperations, path: Path, primary_root: Optional[Path]):
    """Print what the content index knows about the file."""
    locator = make_locator(path, primary_root)
    doc = db_ops.fetch_document(locator)
    if doc is None:
        print(f"  Index: no document for {locator}")
        return
    print(f"  Index locator: {locator}")
    for field in ("last_modified_ms", "date_modified_s", "date_taken_ms"):
        print(f"    {field}: {doc[field]}")
    for status, strategy, new_time_ms, reason in db_ops.fetch_fix_log(locator):
        when = format_millis(new_time_ms) if new_time_ms is not None else "-"
        print(f"    fix: {status} {strategy or ''} {when} {reason or ''}".rstrip())


def main():
    parser = argparse.ArgumentParser(description="Inspect capture dates of media files")
    parser.add_argument("files", nargs="+", type=Path)
    parser.add_argument("--db", type=Path, default=None, help="Content index database to consult")
    parser.add_argument("--primary-root", type=Path, default=None,
                        help="Volume root used when the index was built")
    args = parser.parse_args()

    extractor = MetadataExtractor()
    primary_root = args.primary_root.resolve() if args.primary_root else None
    manager = DBManager(args.db) if args.db else None
    db_ops = DBOperations(manager.connect()) if manager else None

    missing = 0
    try:
        for path in args.files:
            missing += inspect_file(extractor, path)
            if db_ops is not None and path.exists():
                inspect_index(db_ops, path, primary_root)
            print()
    finally:
        if manager is not None:
            manager.close()
    sys.exit(1 if missing else 0)


if __name__ == "__main__":
    main()
