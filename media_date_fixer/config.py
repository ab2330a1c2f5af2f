"""
Configuration constants for the media date fixer.
"""

# --- File Type Definitions ---
# Extensions are stored without the leading dot: classification works on the
# substring after the last '.' of the file name.
PHOTO_EXTS = {'jpg', 'jpeg', 'png', 'heic', 'webp'}
VIDEO_EXTS = {'mp4', 'mov', 'mkv', 'avi', '3gp'}

# Extension to Kind Mapping
EXT_TO_KIND = {}
for ext in PHOTO_EXTS: EXT_TO_KIND[ext] = 'photo'
for ext in VIDEO_EXTS: EXT_TO_KIND[ext] = 'video'

# --- Metadata Parsing ---
# Priority order. Only the first tag present is parsed.
EXIF_DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'Image DateTime',
]

# EXIF dates carry no timezone; parsed as local wall clock time.
EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

# MediaInfo General-track field holding the container creation date
VIDEO_DATE_FIELD = "encoded_date"

# Tried in order, all interpreted as UTC
VIDEO_DATE_FORMATS = [
    "%Y%m%dT%H%M%S.%fZ",       # 20230815T103000.000Z
    "%Y%m%dT%H%M%SZ",          # 20230815T103000Z
    "%Y-%m-%dT%H:%M:%S.%fZ",   # 2023-08-15T10:30:00.000Z
    "%Y-%m-%dT%H:%M:%SZ",      # 2023-08-15T10:30:00Z
    # MediaInfo renderings of the same container field
    "%Y-%m-%d %H:%M:%S UTC",   # 2023-08-15 10:30:00 UTC
    "UTC %Y-%m-%d %H:%M:%S",   # UTC 2023-08-15 10:30:00
]

# --- Fixing ---
# Differences up to this many milliseconds are sub-second jitter, not a discrepancy
MTIME_TOLERANCE_MS = 1000

# Locator volume types ("<volume-type>:<relative-path>")
PRIMARY_VOLUME = "primary"
SECONDARY_VOLUME = "secondary"

# --- Reporting ---
LOG_CHAR_BUDGET = 5000
DISPLAY_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# --- Defaults ---
DEFAULT_DB_NAME = "media_index.db"
DEFAULT_LOG_NAME = "date_fixer.log"
