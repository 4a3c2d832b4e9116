"""
File extension constants, tool detection and shared logging helpers.
"""

import logging
import subprocess
from typing import Optional

from rich.console import Console

PROGRAM = "photosorter"
TOOL_TITLE = "Photo Sorter"

# File extension constants
JPG_EXTENSIONS = (".jpg", ".jpeg", ".jpe")
RAW_EXTENSIONS = (
    ".3fr", ".arw", ".cr2", ".cr3", ".crw", ".dcr", ".dng", ".erf", ".fff",
    ".iiq", ".k25", ".kdc", ".mef", ".mos", ".mrw", ".nef", ".nrw", ".orf",
    ".pef", ".raf", ".raw", ".rw2", ".rwl", ".sr2", ".srf", ".srw", ".x3f",
)
IMAGE_EXTENSIONS = JPG_EXTENSIONS + RAW_EXTENSIONS + (
    ".png", ".tif", ".tiff", ".heic", ".heif", ".gif", ".bmp", ".webp",
)
VIDEO_EXTENSIONS = (
    ".3g2", ".3gp", ".avi", ".hevc", ".m2ts", ".m4v", ".mkv", ".mov", ".mp4",
    ".mpeg", ".mpg", ".mts", ".webm", ".wmv",
)

# Progress events are emitted after every Nth file and after the last one
PROGRESS_INTERVAL = 25

SKIP_LOG_PREFIX = "SkippedFiles-"
SKIP_LOG_TIMESTAMP = "%Y%m%d-%H%M%S"
WRITE_PROBE_PREFIX = ".__write_test_"

_console: Optional[Console] = None


def get_console() -> Console:
    """Shared rich console for progress bars, tables and log output."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def get_logger(name: str = PROGRAM) -> logging.Logger:
    """Get the program logger or one of its children."""
    return logging.getLogger(name)


def check_tool_availability(cmd: str, version_flag: str = "-h") -> bool:
    """Check whether an external command-line tool can be run."""
    try:
        subprocess.run([cmd, version_flag], capture_output=True, check=False)
        return True
    except OSError:
        return False


exiftool_available = check_tool_availability("exiftool", "-ver")
ffprobe_available = check_tool_availability("ffprobe", "-version")
