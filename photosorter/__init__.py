"""
photosorter - Sort photos and videos into date-based folders.

Reads the capture date embedded in each photo or video (EXIF, TIFF and GPS
tags for images, container metadata for videos) and copies or moves the file
into a YYYY, YYYY/MM, YYYY/MM/DD or YYYY/YYYY_MM/YYYY_MM_DD folder under the
destination, never overwriting an existing file. MIT License.
"""

__version__ = "1.0.0"
__copyright__ = "Copyright (c) 2025 Mario Abramovic"


# Public API
from .cli import main
from .collector import collect_media
from .config import Config
from .core import RunHandle, SortRun
from .file_operations import FileOperations
from .models import FolderScheme, MediaEntry, MediaKind, SortOptions, TransferMode
from .skiplog import write_skip_log
from .timestamps import resolve_capture_date, resolve_date

__all__ = [ "main", "Config", "SortRun", "RunHandle", "FileOperations", "FolderScheme",
            "MediaEntry", "MediaKind", "SortOptions", "TransferMode", "collect_media",
            "resolve_capture_date", "resolve_date", "write_skip_log" ]
