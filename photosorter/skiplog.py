"""
Skipped files log written to the destination at the end of a run.
"""

import contextlib
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .constants import SKIP_LOG_PREFIX, SKIP_LOG_TIMESTAMP, TOOL_TITLE, get_logger
from .errors import SkipLogError, describe_error
from .file_operations import FileOperations
from .models import SkipEntry


logger = get_logger("photosorter.skiplog")


def skip_log_name(now: datetime) -> str:
    return f"{SKIP_LOG_PREFIX}{now.strftime(SKIP_LOG_TIMESTAMP)}.txt"


def format_skip_log(entries: Iterable[SkipEntry], now: datetime) -> str:
    header = f"{TOOL_TITLE} — Skipped Files Log\nGenerated: {now.isoformat(sep=' ', timespec='seconds')}\n\n"
    body = "".join(f"{entry.format_line()}\n" for entry in entries)
    return header + body


def write_skip_log(folder: Path, entries: Iterable[SkipEntry],
                   now: Optional[datetime] = None) -> Path:
    """Atomically write SkippedFiles-<yyyyMMdd-HHmmss>.txt into folder.

    The text goes to a hidden temporary file in the same folder which is then
    renamed into place, so the final name never holds a partial log. An
    existing log of the same name is never replaced; the new one gets a -N
    suffix instead. Raises SkipLogError if the log cannot be written.
    """
    now = now or datetime.now()
    content = format_skip_log(entries, now)

    # Created like any other file, so the umask decides its permissions
    tmp_path = folder / f".{SKIP_LOG_PREFIX}{uuid.uuid4().hex}.tmp"
    try:
        with open(tmp_path, "x", encoding="utf-8") as f:
            f.write(content)
        log_path = FileOperations.create_unique_path(folder, Path(skip_log_name(now)))
        os.replace(tmp_path, log_path)
    except OSError as e:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise SkipLogError(describe_error(e)) from e

    logger.info(f"Wrote skipped files log: {log_path}")
    return log_path
