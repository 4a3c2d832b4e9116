"""
Statistics tracking for a sort run.
"""

from typing import Dict

from .models import MediaEntry, MediaKind


class RunStats:
    """Counters for one run; reset at run start, only ever incremented during it."""

    def __init__(self):
        self._stats = {}
        self.reset()

    def reset(self) -> None:
        self._stats = {
            'processed': 0,
            'skipped': 0,
            'photos': 0,
            'videos': 0,
            'total_size': 0,
        }

    def record_placed(self, entry: MediaEntry, file_size: int) -> None:
        """Record a successfully placed file, updating counts and size."""
        self._stats['processed'] += 1
        if entry.kind is MediaKind.VIDEO:
            self._stats['videos'] += 1
        else:
            self._stats['photos'] += 1
        self._stats['total_size'] += file_size

    def record_skipped(self) -> None:
        self._stats['skipped'] += 1

    def snapshot(self) -> Dict[str, int]:
        """Get a copy of current statistics."""
        return self._stats.copy()

    def get_total_size_mb(self) -> float:
        return self._stats['total_size'] / (1024 * 1024)

    # Individual stat getters for reporting
    @property
    def processed(self) -> int:
        return self._stats['processed']

    @property
    def skipped(self) -> int:
        return self._stats['skipped']

    @property
    def photos(self) -> int:
        return self._stats['photos']

    @property
    def videos(self) -> int:
        return self._stats['videos']

    @property
    def total_size(self) -> int:
        return self._stats['total_size']
