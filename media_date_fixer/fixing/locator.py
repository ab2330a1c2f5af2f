"""
Locators are opaque file identifiers of the form "<volume-type>:<relative-path>".

Only locators on the primary volume can be resolved to a direct filesystem
path; everything else must go through the content index.
"""
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple

from .. import config
from ..exceptions import LocatorError


def parse_locator(locator: str) -> Tuple[str, str]:
    """Splits a locator into (volume_type, relative_path)."""
    volume, sep, rel = locator.partition(':')
    if not sep or not volume:
        raise LocatorError(f"Malformed locator: {locator!r}")
    return volume, rel


def make_locator(path: Path, primary_root: Optional[Path]) -> str:
    """Builds the locator for a file found during traversal."""
    if primary_root is not None:
        try:
            rel = path.resolve().relative_to(primary_root.resolve())
            return f"{config.PRIMARY_VOLUME}:{rel.as_posix()}"
        except ValueError:
            pass
    return f"{config.SECONDARY_VOLUME}:{path.resolve().as_posix()}"


def resolve_primary_path(locator: str, primary_root: Optional[Path]) -> Optional[Path]:
    """
    Returns the direct path for a primary-volume locator, or None when the
    locator is on another volume, malformed, or escapes the primary root.
    """
    if primary_root is None:
        return None
    try:
        volume, rel = parse_locator(locator)
    except LocatorError:
        return None

    if volume.lower() != config.PRIMARY_VOLUME:
        return None

    rel_path = PurePosixPath(rel)
    if not rel or rel_path.is_absolute() or '..' in rel_path.parts:
        return None
    return primary_root.joinpath(*rel_path.parts)
