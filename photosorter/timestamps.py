"""Capture-date resolution from embedded photo and video metadata.

Images are read with exiftool and videos with ffprobe. Each tool's output is
turned into a flat tag dictionary, and an ordered tuple of extractor functions
is tried against it; the first extractor that yields a date wins. All dates
are timezone-aware and normalized to UTC.

Metadata problems are never errors here: a missing tool, a failing tool, an
unparseable value or an absent tag all just mean "no date from this source".
"""

import json
import re
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from . import constants
from .collector import classify
from .constants import get_logger
from .models import MediaKind


logger = get_logger("photosorter.timestamps")

Tags = Dict[str, Any]
DateExtractor = Callable[[Tags], Optional[datetime]]

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"
GPS_SUBSEC_DATE_FORMAT = "%Y:%m:%d %H:%M:%S.%f"

# exiftool tag selectors for the image precedence chain
IMAGE_TAG_ARGS = (
    "-EXIF:DateTimeOriginal",
    "-EXIF:SubSecTimeOriginal",
    "-IFD0:ModifyDate",  # TIFF DateTime
    "-GPS:GPSDateStamp",
    "-GPS:GPSTimeStamp",
)

# Container-level creation date keys, in priority order
CONTAINER_DATE_KEYS = ("com.apple.quicktime.creationdate", "creation_time")


def parse_exif_date(value: Any) -> Optional[datetime]:
    """Parse an EXIF "yyyy:MM:dd HH:mm:ss" string as UTC, falling back to ISO 8601."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return datetime.strptime(text, EXIF_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return parse_iso8601_datetime(text)


def parse_gps_datetime(value: str) -> Optional[datetime]:
    """Parse a joined "GPSDateStamp GPSTimeStamp" string, with or without fractional seconds."""
    text = value.strip()
    for fmt in (GPS_SUBSEC_DATE_FORMAT, EXIF_DATE_FORMAT):
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def parse_iso8601_datetime(timestamp_str: str) -> Optional[datetime]:
    """Parse ISO 8601 or EXIF date-time string into an aware UTC datetime.

    Handles both ISO 8601 (2025-05-06T19:41:34-0400, 2025-05-06T23:41:34.000000Z)
    and raw EXIF (2025:05:06 19:41:34.745-04:00) date formats. Strings without
    an offset are taken to be UTC.
    """
    pattern = r'(\d{4}[-:]\d{2}[-:]\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:?\d{2})?'
    match = re.match(pattern, timestamp_str.strip())

    if not match:
        return None

    # Normalize colon-separated dates (EXIF format) to dash-separated
    date_part = match.group(1).replace(':', '-')
    time_part = match.group(2)
    fractional_part = match.group(3)
    timezone_part = match.group(4)

    try:
        base_dt = datetime.strptime(f"{date_part} {time_part}", "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None

    if fractional_part:
        micros = int(fractional_part.ljust(6, '0')[:6])
        base_dt = base_dt.replace(microsecond=micros)

    if not timezone_part or timezone_part == 'Z':
        return base_dt.replace(tzinfo=timezone.utc)

    # Parse offset like "-0400" or "+05:00"
    tz_str = timezone_part.replace(':', '')
    sign = 1 if tz_str[0] == '+' else -1
    offset = timedelta(hours=int(tz_str[1:3]), minutes=int(tz_str[3:5]))
    aware_dt = base_dt.replace(tzinfo=timezone(sign * offset))
    return aware_dt.astimezone(timezone.utc)


def subsecond_offset(value: Any) -> timedelta:
    """Convert an EXIF SubSecTime field into a fractional-second offset.

    The field holds the digits that follow the seconds' decimal point, so
    "5" is 0.5s, "45" is 0.45s and "045" is 0.045s. Anything after the
    leading digits is ignored; a field without digits adds nothing.
    """
    match = re.match(r'\s*(\d+)', str(value))
    if not match:
        return timedelta(0)
    digits = match.group(1)[:6]
    return timedelta(seconds=int(digits) / 10 ** len(digits))


# Image extractors, most authoritative first

def exif_original_date(tags: Tags) -> Optional[datetime]:
    """EXIF DateTimeOriginal, refined by SubSecTimeOriginal when present."""
    date = parse_exif_date(tags.get("DateTimeOriginal"))
    if date is None:
        return None
    subsec = tags.get("SubSecTimeOriginal")
    if subsec not in (None, ""):
        date += subsecond_offset(subsec)
    return date


def tiff_date(tags: Tags) -> Optional[datetime]:
    return parse_exif_date(tags.get("ModifyDate"))


def gps_date(tags: Tags) -> Optional[datetime]:
    """GPS fix time; records when the position was taken, not the shutter."""
    date_stamp = tags.get("GPSDateStamp")
    time_stamp = tags.get("GPSTimeStamp")
    if not date_stamp or not time_stamp:
        return None
    return parse_gps_datetime(f"{date_stamp} {time_stamp}")


IMAGE_DATE_EXTRACTORS = (exif_original_date, tiff_date, gps_date)


# Video extractors, most authoritative first

def container_creation_date(tags: Tags) -> Optional[datetime]:
    for key in CONTAINER_DATE_KEYS:
        value = tags.get(key)
        if isinstance(value, str):
            date = parse_iso8601_datetime(value)
            if date:
                return date
    return None


def tagged_metadata_date(tags: Tags) -> Optional[datetime]:
    """First remaining tag whose key names a date and whose value is an ISO 8601 date."""
    for key, value in tags.items():
        if key in CONTAINER_DATE_KEYS or "date" not in key.lower():
            continue
        if isinstance(value, str):
            date = parse_iso8601_datetime(value)
            if date:
                return date
    return None


def string_metadata_date(tags: Tags) -> Optional[datetime]:
    """First string value of any tag that parses as an EXIF-style date."""
    for value in tags.values():
        date = parse_exif_date(value)
        if date:
            return date
    return None


VIDEO_DATE_EXTRACTORS = (container_creation_date, tagged_metadata_date, string_metadata_date)


def read_image_tags(image_path: Path) -> Tags:
    """Read the date-related EXIF/TIFF/GPS tags of an image with exiftool."""
    if not constants.exiftool_available:
        return {}

    try:
        result = subprocess.run(
            ["exiftool", "-q", "-json", *IMAGE_TAG_ARGS, str(image_path)],
            capture_output=True, encoding="utf-8", errors="replace", check=True
        )
        return json.loads(result.stdout)[0]
    except subprocess.CalledProcessError as e:
        logger.debug(f"exiftool failed for {image_path}: {e}")
    except (ValueError, IndexError, TypeError) as e:
        logger.debug(f"Failed to parse exiftool output for {image_path}: {e}")
    except OSError as e:
        logger.debug(f"Could not run exiftool for {image_path}: {e}")
    return {}


def read_video_tags(video_path: Path) -> Tags:
    """Read container-level metadata tags of a video with ffprobe."""
    if not constants.ffprobe_available:
        return {}

    try:
        result = subprocess.run([
            "ffprobe", "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            str(video_path)
        ], capture_output=True, encoding="utf-8", errors="replace", check=True)
        data = json.loads(result.stdout)
        return data.get("format", {}).get("tags", {}) or {}
    except subprocess.CalledProcessError as e:
        logger.debug(f"ffprobe failed for {video_path}: {e}")
    except (ValueError, AttributeError) as e:
        logger.debug(f"Failed to parse ffprobe output for {video_path}: {e}")
    except OSError as e:
        logger.debug(f"Could not run ffprobe for {video_path}: {e}")
    return {}


def first_date(tags: Tags, extractors: Sequence[DateExtractor]) -> Optional[datetime]:
    """Try each extractor in order and return the first date found."""
    if not tags:
        return None
    for extractor in extractors:
        try:
            date = extractor(tags)
        except (ValueError, TypeError, OverflowError) as e:
            logger.debug(f"{extractor.__name__} rejected metadata: {e}")
            continue
        if date is not None:
            logger.debug(f"Capture date from {extractor.__name__}: {date.isoformat()}")
            return date
    return None


def resolve_capture_date(file_path: Path, kind: Optional[MediaKind] = None) -> Optional[datetime]:
    """Best-effort capture date from embedded metadata, or None.

    kind selects the video or image chain; when not given it is derived the
    same way the collector classifies files.
    """
    if kind is None:
        kind = classify(file_path)
    if kind is MediaKind.VIDEO:
        return first_date(read_video_tags(file_path), VIDEO_DATE_EXTRACTORS)
    return first_date(read_image_tags(file_path), IMAGE_DATE_EXTRACTORS)


def filesystem_creation_date(file_path: Path) -> Optional[datetime]:
    """Earliest of the file's birth time (where recorded), ctime and mtime.

    Copies made with preserved timestamps get a fresh birth time but keep the
    original mtime, so the earliest value is the better creation estimate.
    """
    try:
        stat = file_path.stat()
    except OSError as e:
        logger.debug(f"Could not stat {file_path}: {e}")
        return None

    candidates = [stat.st_ctime, stat.st_mtime]
    birthtime = getattr(stat, "st_birthtime", None)
    if birthtime:
        candidates.append(birthtime)
    timestamp = min(candidates)
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def resolve_date(file_path: Path, fallback: Optional[datetime] = None,
                 kind: Optional[MediaKind] = None) -> datetime:
    """Capture date for a file; always returns a date.

    Order: embedded metadata, filesystem creation time, then the fallback
    (normally the time the run started), then the current time.
    """
    try:
        date = resolve_capture_date(file_path, kind)
    except Exception as e:
        logger.debug(f"Metadata lookup failed for {file_path.name}: {e}")
        date = None
    if date is not None:
        return date

    date = filesystem_creation_date(file_path)
    if date is not None:
        logger.debug(f"No metadata date for {file_path.name}, using file creation time")
        return date

    logger.debug(f"No date available for {file_path.name}, using current time")
    return fallback or datetime.now(timezone.utc)
