"""
Discovery of photo and video files in a source tree.
"""

import mimetypes
from pathlib import Path
from typing import Iterator, Optional

from .constants import IMAGE_EXTENSIONS, VIDEO_EXTENSIONS, get_logger
from .models import MediaEntry, MediaKind


logger = get_logger("photosorter.collector")


def is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def is_within(path: Path, root: Path) -> bool:
    """True if path is root itself or lies anywhere under it (both resolved)."""
    return path == root or root in path.parents


def classify(file_path: Path) -> Optional[MediaKind]:
    """Media kind from the extension allow-lists, then from the guessed MIME type."""
    ext = file_path.suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO

    mime_type, _ = mimetypes.guess_type(file_path.name)
    if mime_type:
        if mime_type.startswith("image/"):
            return MediaKind.IMAGE
        if mime_type.startswith("video/"):
            return MediaKind.VIDEO
    return None


def collect_media(source: Path, recursive: bool,
                  destination: Optional[Path] = None) -> Iterator[MediaEntry]:
    """Lazily yield the media files under source.

    Hidden entries are always skipped, subdirectories are only entered when
    recursive is set, and anything at or under destination is never yielded.
    Entries are visited in name order within each folder. Entries that cannot
    be read are left out silently.
    """
    source = source.resolve()
    dest_root = destination.resolve() if destination is not None else None

    # The source folder itself must be listable; failures below it are not fatal
    children = sorted(source.iterdir())
    yield from _collect_from(children, recursive, dest_root)


def _collect_from(children, recursive: bool, dest_root: Optional[Path]) -> Iterator[MediaEntry]:
    for child in children:
        if is_hidden(child):
            continue

        try:
            resolved = child.resolve()
            if dest_root is not None and is_within(resolved, dest_root):
                logger.debug(f"Skipping {child}: inside destination")
                continue

            if child.is_dir():
                if not recursive or child.is_symlink():
                    continue
                grandchildren = sorted(child.iterdir())
            elif child.is_file():
                grandchildren = None
            else:
                continue
        except OSError as e:
            logger.debug(f"Skipping unreadable entry {child}: {e}")
            continue

        if grandchildren is not None:
            yield from _collect_from(grandchildren, recursive, dest_root)
            continue

        kind = classify(child)
        if kind is not None:
            yield MediaEntry(path=child, kind=kind, extension=child.suffix.lower())
