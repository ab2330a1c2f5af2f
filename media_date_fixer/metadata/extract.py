import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Callable, Iterable, Mapping, Optional

import exifread
from pymediainfo import MediaInfo

from .. import config
from ..exceptions import DateParseError, MetadataExtractionError
from ..models import ExtractedDate, MediaCandidate, MediaKind

ExifReader = Callable[[BinaryIO], Mapping[str, Any]]


def read_exif_tags(stream: BinaryIO) -> Mapping[str, Any]:
    """Default EXIF reader: tag name -> exifread value (str() gives the raw string)."""
    # details=False skips MakerNotes and thumbnails
    return exifread.process_file(stream, details=False)


class MediaInfoSession:
    """
    Metadata retrieval session over one video container.
    Callers must always call release(), also on error paths.
    """

    def __init__(self, path: Path):
        try:
            self._info = MediaInfo.parse(str(path))
        except Exception as e:
            raise MetadataExtractionError(f"MediaInfo cannot open {path}: {e}") from e

    def creation_date(self) -> Optional[str]:
        if self._info is None:
            raise MetadataExtractionError("Session already released")
        for track in self._info.tracks:
            if track.track_type == "General":
                value = getattr(track, config.VIDEO_DATE_FIELD, None)
                return str(value) if value else None
        return None

    def release(self):
        self._info = None


class MediaInfoReader:
    """Default video metadata reader backed by pymediainfo."""

    def open(self, path: Path) -> MediaInfoSession:
        return MediaInfoSession(path)


def _to_millis(dt: datetime) -> int:
    return round(dt.timestamp() * 1000)


# Fixed-width fields. strptime alone is lenient about field widths and whitespace.
_FIELD_PATTERNS = {
    "%Y": r"\d{4}",
    "%m": r"\d{2}",
    "%d": r"\d{2}",
    "%H": r"\d{2}",
    "%M": r"\d{2}",
    "%S": r"\d{2}",
    "%f": r"\d{3}",
}


def strict_pattern(fmt: str) -> "re.Pattern[str]":
    """Compiles a strptime format into a regex that only matches its exact shape."""
    parts = re.split(r"(%[A-Za-z])", fmt)
    regex = "".join(_FIELD_PATTERNS.get(p, re.escape(p)) for p in parts)
    return re.compile(regex, re.ASCII)


def _parse_first(text: str, formats: Iterable[str], tz: Optional[timezone]) -> int:
    for fmt in formats:
        if not strict_pattern(fmt).fullmatch(text):
            continue
        try:
            dt = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if tz is not None:
            dt = dt.replace(tzinfo=tz)
        return _to_millis(dt)
    raise DateParseError(f"Unrecognized date string: {text!r}")


def parse_exif_date(text: str) -> Optional[int]:
    """
    Parses an EXIF "YYYY:MM:DD HH:MM:SS" string.
    EXIF carries no timezone, so the value is taken as local wall clock time
    in the current default timezone.
    """
    try:
        return _parse_first(text, [config.EXIF_DATE_FORMAT], tz=None)
    except (DateParseError, OverflowError, OSError) as e:
        logging.debug(f"EXIF date parse failed: {e}")
        return None


def parse_video_date(text: str) -> Optional[int]:
    """Tries each container date grammar in order. All are UTC."""
    try:
        return _parse_first(text, config.VIDEO_DATE_FORMATS, tz=timezone.utc)
    except (DateParseError, OverflowError) as e:
        logging.debug(f"Video date parse failed: {e}")
        return None


def _valid(millis: Optional[int], source_tag: str) -> Optional[ExtractedDate]:
    if millis is None:
        return None
    extracted = ExtractedDate(millis, source_tag)
    return extracted if extracted.is_valid else None


class MetadataExtractor:
    """
    Produces a best-effort capture timestamp for a media file.

    Strategies:
      - Photos: EXIF tags via 'exifread' (DateTimeOriginal, then DateTime).
      - Videos: container creation date via 'pymediainfo'.

    Nothing in here raises: every fault becomes "no date".
    """

    def __init__(self, exif_reader: Optional[ExifReader] = None, video_reader=None):
        self.exif_reader = exif_reader or read_exif_tags
        self.video_reader = video_reader or MediaInfoReader()

    def extract(self, candidate: MediaCandidate) -> Optional[ExtractedDate]:
        if candidate.kind is MediaKind.PHOTO:
            try:
                with candidate.path.open('rb') as f:
                    return self.extract_photo_date(f)
            except OSError as e:
                logging.warning(f"Cannot open {candidate.path}: {e}")
                return None
        return self.extract_video_date(candidate.path)

    def extract_photo_date(self, stream: BinaryIO) -> Optional[ExtractedDate]:
        try:
            tags = self.exif_reader(stream)
        except Exception as e:
            logging.debug(f"EXIF read failed: {e}")
            return None

        if not tags:
            return None

        # First present tag wins, even if it turns out to be malformed
        for tag in config.EXIF_DATE_TAGS:
            if tag in tags:
                text = str(tags[tag])
                return _valid(parse_exif_date(text), tag)
        return None

    def extract_video_date(self, path: Path) -> Optional[ExtractedDate]:
        try:
            session = self.video_reader.open(path)
        except Exception as e:
            logging.debug(f"Video metadata session failed for {path}: {e}")
            return None

        try:
            text = session.creation_date()
        except Exception as e:
            logging.debug(f"Video metadata read failed for {path}: {e}")
            return None
        finally:
            session.release()

        if not text:
            return None
        return _valid(parse_video_date(text), config.VIDEO_DATE_FIELD)
