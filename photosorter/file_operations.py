"""
Collision-safe file placement and destination write checks.
"""

import shutil
import uuid
from pathlib import Path
from typing import Optional

from .constants import WRITE_PROBE_PREFIX, get_logger
from .errors import DestinationNotWritableError, describe_error
from .models import Placed, Skipped, TransferMode, TransferOutcome


class FileOperations:
    """Places files into destination folders without ever overwriting anything."""

    def __init__(self, mode: TransferMode = TransferMode.COPY):
        self.mode = mode
        self.logger = get_logger("photosorter.files")

    @staticmethod
    def ensure_directory(directory: Path) -> None:
        """Create directory and any missing parents."""
        directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def create_unique_path(dest_dir: Path, file_path: Path) -> Path:
        """First free name in dest_dir: name.ext, then name-1.ext, name-2.ext, ..."""
        stem = file_path.stem
        suffix = file_path.suffix
        dest_path = dest_dir / file_path.name
        counter = 1
        while dest_path.exists() or dest_path.is_symlink():
            dest_path = dest_dir / f"{stem}-{counter}{suffix}"
            counter += 1
        return dest_path

    def place(self, source: Path, dest_dir: Path,
              mode: Optional[TransferMode] = None) -> TransferOutcome:
        """Move or copy source into dest_dir under a name that is not yet taken.

        Uses the instance's mode unless one is given. Filesystem failures are
        returned as Skipped with the error's description rather than raised.
        """
        mode = mode or self.mode
        try:
            self.ensure_directory(dest_dir)
            dest = self.create_unique_path(dest_dir, source)

            if mode is TransferMode.MOVE:
                shutil.move(str(source), str(dest))
            else:
                shutil.copy2(str(source), str(dest))

            # Verify the operation
            if not dest.exists():
                raise FileNotFoundError(f"File not found after transfer: {dest}")

            if mode is TransferMode.MOVE and source.exists():
                raise FileExistsError(f"Source file still exists after move: {source}")

            self.logger.info(f"{source} -> {dest}")
            return Placed(dest)

        except Exception as e:
            reason = describe_error(e)
            self.logger.warning(f"Failed to {mode.value} {source}: {reason}")
            return Skipped(reason)

    def preflight_write_test(self, folder: Path) -> None:
        """Confirm folder is writable by creating and deleting a probe file.

        Creates folder if it does not exist yet. Raises
        DestinationNotWritableError with the underlying reason on failure.
        """
        probe = folder / f"{WRITE_PROBE_PREFIX}{uuid.uuid4().hex}"
        try:
            self.ensure_directory(folder)
            probe.write_bytes(b"test")
            probe.unlink()
        except OSError as e:
            raise DestinationNotWritableError(
                f"No write permission to destination: {describe_error(e)}"
            ) from e
        self.logger.debug(f"Destination {folder} is writable")
