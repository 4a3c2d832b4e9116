"""
Data model for a sort run: media entries, folder schemes, transfer outcomes
and the events a run emits.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union


class MediaKind(Enum):
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class MediaEntry:
    """A media file discovered in the source tree."""
    path: Path
    kind: MediaKind
    extension: str

    @property
    def name(self) -> str:
        return self.path.name


class FolderScheme(Enum):
    """Date-derived folder layouts for the destination tree."""
    YEAR = "year"
    YEAR_MONTH = "year-month"
    YEAR_MONTH_DAY = "year-month-day"
    HIERARCHICAL = "hierarchical"

    @classmethod
    def from_name(cls, name: str) -> "FolderScheme":
        """Look up a scheme by its value ("year-month") or member name ("YEAR_MONTH")."""
        key = name.strip().lower().replace("_", "-")
        for scheme in cls:
            if scheme.value == key:
                return scheme
        raise ValueError(f"Unknown folder scheme: {name}")

    @property
    def label(self) -> str:
        return {
            FolderScheme.YEAR: "YYYY",
            FolderScheme.YEAR_MONTH: "YYYY/MM",
            FolderScheme.YEAR_MONTH_DAY: "YYYY/MM/DD",
            FolderScheme.HIERARCHICAL: "YYYY/YYYY_MM/YYYY_MM_DD",
        }[self]

    @property
    def example(self) -> str:
        return f"Example: {self.path(datetime(2025, 11, 11, tzinfo=timezone.utc))}/"

    def path(self, date: datetime) -> str:
        """Relative folder path for a date, zero-padded, in UTC.

        Naive datetimes are taken to already be in UTC.
        """
        if date.tzinfo is not None:
            date = date.astimezone(timezone.utc)
        year = f"{date.year:04d}"
        month = f"{date.month:02d}"
        day = f"{date.day:02d}"

        if self is FolderScheme.YEAR:
            return year
        if self is FolderScheme.YEAR_MONTH:
            return f"{year}/{month}"
        if self is FolderScheme.YEAR_MONTH_DAY:
            return f"{year}/{month}/{day}"
        # Hierarchical: 2025/2025_11/2025_11_11
        return f"{year}/{year}_{month}/{year}_{month}_{day}"


class TransferMode(Enum):
    MOVE = "move"
    COPY = "copy"


@dataclass(frozen=True)
class Placed:
    """The file now lives at destination."""
    destination: Path


@dataclass(frozen=True)
class Skipped:
    """The file could not be placed; reason is shown to the user verbatim."""
    reason: str


TransferOutcome = Union[Placed, Skipped]


@dataclass(frozen=True)
class SkipEntry:
    filename: str
    reason: str

    def format_line(self) -> str:
        return f"{self.filename} — {self.reason}"


@dataclass
class SortOptions:
    """User-selectable options for one run."""
    include_subfolders: bool = True
    move_files: bool = False
    scheme: FolderScheme = FolderScheme.YEAR_MONTH_DAY
    write_skip_log: bool = True

    @property
    def transfer_mode(self) -> TransferMode:
        return TransferMode.MOVE if self.move_files else TransferMode.COPY


@dataclass(frozen=True)
class RunResult:
    """Final summary of a completed run."""
    processed: int
    skipped: int
    skipped_entries: Tuple[SkipEntry, ...] = ()
    skip_log_path: Optional[Path] = None
    status: str = ""


# Events emitted by a run, consumed by whatever renders progress

@dataclass(frozen=True)
class StatusChanged:
    message: str


@dataclass(frozen=True)
class ScanCompleted:
    total: int
    message: str


@dataclass(frozen=True)
class ProgressUpdated:
    completed: int
    total: int
    processed: int
    skipped: int
    message: str


@dataclass(frozen=True)
class RunFinished:
    result: RunResult


@dataclass(frozen=True)
class RunFailed:
    error: Exception


RunEvent = Union[StatusChanged, ScanCompleted, ProgressUpdated, RunFinished, RunFailed]
