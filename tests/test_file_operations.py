"""
Test collision-safe placement, transfer failures and the destination write probe.
"""

import shutil
from pathlib import Path

import pytest

from photosorter.errors import DestinationNotWritableError
from photosorter.file_operations import FileOperations
from photosorter.models import Placed, Skipped, TransferMode


class TestPlacement:
    """Test moving and copying into date folders."""

    def test_copy_creates_missing_folders(self, create_test_files, tmp_path):
        source = create_test_files([{'name': 'IMG_0001.JPG', 'content': b'photo'}])
        folder = tmp_path / "dest" / "2024" / "03" / "15"

        outcome = FileOperations(TransferMode.COPY).place(source / "IMG_0001.JPG", folder)

        assert outcome == Placed(folder / "IMG_0001.JPG")
        assert (folder / "IMG_0001.JPG").read_bytes() == b'photo'
        assert (source / "IMG_0001.JPG").exists(), "Copy must leave the source alone"

    def test_move_removes_source(self, create_test_files, tmp_path):
        source = create_test_files([{'name': 'IMG_0001.JPG', 'content': b'photo'}])
        folder = tmp_path / "dest" / "2024"

        outcome = FileOperations(TransferMode.MOVE).place(source / "IMG_0001.JPG", folder)

        assert isinstance(outcome, Placed)
        assert outcome.destination.read_bytes() == b'photo'
        assert not (source / "IMG_0001.JPG").exists()

    def test_mode_argument_overrides_default(self, create_test_files, tmp_path):
        source = create_test_files([{'name': 'a.jpg'}])
        outcome = FileOperations(TransferMode.COPY).place(source / "a.jpg", tmp_path / "d",
                                                          mode=TransferMode.MOVE)
        assert isinstance(outcome, Placed)
        assert not (source / "a.jpg").exists()

    def test_collisions_get_increasing_suffixes(self, create_test_files, tmp_path):
        source = create_test_files([{'name': 'IMG_0001.JPG', 'content': b'new'}])
        folder = tmp_path / "dest"
        folder.mkdir()
        (folder / "IMG_0001.JPG").write_bytes(b'original')
        (folder / "IMG_0001-1.JPG").write_bytes(b'first copy')

        file_ops = FileOperations(TransferMode.COPY)
        first = file_ops.place(source / "IMG_0001.JPG", folder)
        second = file_ops.place(source / "IMG_0001.JPG", folder)

        assert first == Placed(folder / "IMG_0001-2.JPG")
        assert second == Placed(folder / "IMG_0001-3.JPG")
        assert (folder / "IMG_0001.JPG").read_bytes() == b'original'
        assert (folder / "IMG_0001-1.JPG").read_bytes() == b'first copy'
        assert (folder / "IMG_0001-3.JPG").read_bytes() == b'new'

    def test_unique_path_without_extension(self, tmp_path):
        (tmp_path / "clip").write_text("x")
        assert FileOperations.create_unique_path(tmp_path, Path("/elsewhere/clip")) == tmp_path / "clip-1"

    def test_transfer_error_becomes_skip(self, create_test_files, tmp_path, monkeypatch):
        source = create_test_files([{'name': 'IMG_0001.JPG'}])

        def full_disk(src, dst):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(shutil, "copy2", full_disk)
        outcome = FileOperations(TransferMode.COPY).place(source / "IMG_0001.JPG", tmp_path / "dest")

        assert outcome == Skipped("No space left on device")
        assert (source / "IMG_0001.JPG").exists()

    def test_missing_source_becomes_skip(self, tmp_path):
        outcome = FileOperations(TransferMode.MOVE).place(tmp_path / "gone.jpg", tmp_path / "dest")
        assert isinstance(outcome, Skipped)
        assert outcome.reason == "No such file or directory"


class TestPreflight:
    """Test the write probe run before sorting."""

    def test_writable_destination_left_clean(self, tmp_path):
        dest = tmp_path / "dest"
        dest.mkdir()
        FileOperations().preflight_write_test(dest)
        assert list(dest.iterdir()) == []

    def test_missing_destination_is_created(self, tmp_path):
        dest = tmp_path / "new" / "dest"
        FileOperations().preflight_write_test(dest)
        assert dest.is_dir()
        assert list(dest.iterdir()) == []

    def test_unwritable_destination(self, tmp_path, monkeypatch):
        dest = tmp_path / "dest"
        dest.mkdir()

        def denied(self, data):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "write_bytes", denied)
        with pytest.raises(DestinationNotWritableError, match="Permission denied"):
            FileOperations().preflight_write_test(dest)

    def test_destination_is_a_file(self, tmp_path):
        dest = tmp_path / "dest"
        dest.write_text("not a folder")
        with pytest.raises(DestinationNotWritableError, match="No write permission to destination"):
            FileOperations().preflight_write_test(dest)
