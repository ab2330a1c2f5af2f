from typing import Optional

from .. import config
from ..models import MediaKind


def extension_of(name: str) -> str:
    """Lowercased substring after the last '.', or '' when there is none."""
    lowered = name.lower()
    if '.' not in lowered:
        return ''
    return lowered.rsplit('.', 1)[1]


def classify(name: str) -> Optional[MediaKind]:
    """
    Decides whether a file is a photo, a video, or neither, from its name alone.
    Files that classify as None are excluded from the candidate set.
    """
    kind = config.EXT_TO_KIND.get(extension_of(name))
    if kind is None:
        return None
    return MediaKind(kind)
