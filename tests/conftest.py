"""
pytest configuration and fixtures for photosorter tests.
"""

import io
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import pytest


@dataclass
class CliResult:
    """Result from running CLI command."""
    exit_code: int
    output: str
    error: str


@dataclass
class FakeMetadata:
    """Tag dictionaries served instead of exiftool/ffprobe output, keyed by file name."""
    images: Dict[str, dict] = field(default_factory=dict)
    videos: Dict[str, dict] = field(default_factory=dict)


@pytest.fixture
def fake_metadata(monkeypatch):
    """Replace the exiftool and ffprobe readers with in-memory tag tables.

    Files without an entry get no tags, so their date falls back to the
    filesystem creation time.
    """
    metadata = FakeMetadata()
    monkeypatch.setattr("photosorter.timestamps.read_image_tags",
                        lambda path: dict(metadata.images.get(Path(path).name, {})))
    monkeypatch.setattr("photosorter.timestamps.read_video_tags",
                        lambda path: dict(metadata.videos.get(Path(path).name, {})))
    return metadata


@pytest.fixture
def test_config_path(tmp_path):
    """Test-specific config path with clean state guarantee."""
    config_dir = tmp_path / "photosorter_test_config"
    config_dir.mkdir()
    return config_dir / "config.yml"


@pytest.fixture
def cli_runner(monkeypatch, fake_metadata):
    """Create a CLI runner that captures output and uses test config."""

    def run_cli(*args, config_path=None, answer="n"):
        """Run photosorter CLI with given arguments.

        Args:
            *args: Command line arguments (source, dest, --flags, etc)
            config_path: Optional config path for test isolation
            answer: Reply given to confirmation prompts

        Returns:
            CliResult with exit_code, output, and error
        """
        from photosorter.cli import main
        from photosorter.constants import get_console

        stdout = io.StringIO()
        stderr = io.StringIO()
        monkeypatch.setattr(sys, "stdout", stdout)
        monkeypatch.setattr(sys, "stderr", stderr)
        monkeypatch.setattr(sys, "argv", ['photosorter'] + [str(a) for a in args])

        # Avoid hanging on confirmation prompts
        monkeypatch.setattr(get_console(), "input", lambda prompt="": answer)

        try:
            exit_code = main(config_path=config_path)
        except SystemExit as e:
            exit_code = e.code if e.code is not None else 0

        return CliResult(
            exit_code=exit_code,
            output=stdout.getvalue(),
            error=stderr.getvalue()
        )

    return run_cli


@pytest.fixture
def create_test_files(tmp_path):
    """Helper to create test files with specific properties."""

    def create_files(file_specs: List[dict], folder: str = "test_files") -> Path:
        """Create test files based on specifications.

        Args:
            file_specs: List of dicts with keys:
                - name: filename, may include subfolders
                - content: file content (optional)
                - mtime: modification time as datetime (optional)
            folder: Name of the directory under tmp_path to create them in

        Returns:
            Path to directory containing created files
        """
        test_dir = tmp_path / folder
        test_dir.mkdir(exist_ok=True)

        for spec in file_specs:
            file_path = test_dir / spec['name']
            file_path.parent.mkdir(parents=True, exist_ok=True)

            content = spec.get('content', b'test file content')
            if isinstance(content, str):
                file_path.write_text(content)
            else:
                file_path.write_bytes(content)

            if 'mtime' in spec:
                mtime = spec['mtime'].timestamp()
                os.utime(file_path, (mtime, mtime))

        return test_dir.resolve()

    return create_files


@pytest.fixture
def assert_file_structure():
    """Helper to assert expected file structure."""

    def check_structure(base_path: Path, expected_structure: dict):
        """Assert that directory has expected structure.

        Args:
            base_path: Root directory to check
            expected_structure: Dict describing expected structure
                e.g., {
                    "2024": {
                        "01": ["file1.jpg", "file2.jpg"],
                        "02": ["file3.jpg"]
                    }
                }
        """
        def check_level(path: Path, structure: dict):
            for name, value in structure.items():
                item_path = path / name
                assert item_path.exists(), f"Expected {item_path} to exist"

                if isinstance(value, dict):
                    assert item_path.is_dir(), f"Expected {item_path} to be a directory"
                    check_level(item_path, value)
                elif isinstance(value, list):
                    assert item_path.is_dir(), f"Expected {item_path} to be a directory"
                    actual_files = sorted([f.name for f in item_path.iterdir() if f.is_file()])
                    expected_files = sorted(value)
                    assert actual_files == expected_files, \
                        f"Expected files {expected_files} in {item_path}, got {actual_files}"

        check_level(base_path, expected_structure)

    return check_structure


@pytest.fixture
def sample_source(create_test_files):
    """A small source tree: two dated photos, a video, a nested photo and some non-media files."""
    from datetime import datetime

    return create_test_files([
        {'name': 'IMG_0001.JPG', 'content': b'photo one', 'mtime': datetime(2024, 3, 15, 12, 0)},
        {'name': 'IMG_0002.jpg', 'content': b'photo two', 'mtime': datetime(2023, 12, 24, 12, 0)},
        {'name': 'VID_0003.MOV', 'content': b'video three', 'mtime': datetime(2024, 5, 1, 12, 0)},
        {'name': 'trip/IMG_0004.heic', 'content': b'photo four', 'mtime': datetime(2022, 7, 4, 12, 0)},
        {'name': 'notes.txt', 'content': 'not media', 'mtime': datetime(2024, 1, 1, 12, 0)},
        {'name': '.DS_Store', 'content': b'finder', 'mtime': datetime(2024, 1, 1, 12, 0)},
    ], folder="source")


@pytest.fixture
def fake_tool(monkeypatch, tmp_path):
    """Put a shell script first on PATH that prints a fixed text and exits."""
    if os.name == "nt":
        pytest.skip("needs a POSIX shell script on PATH")

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")

    def install(name: str, printf_text: str) -> Path:
        """printf_text is used as the printf format, so octal escapes come out as raw bytes."""
        tool = bin_dir / name
        tool.write_text(f"#!/bin/sh\nprintf '{printf_text}\\n'\n")
        tool.chmod(0o755)
        return tool

    return install


@pytest.fixture
def latin1_exiftool(fake_tool, monkeypatch):
    """An exiftool whose JSON echoes a Latin-1 file name ("caf\\xe9.jpg") next to a capture date."""
    fake_tool("exiftool",
              r'[{"SourceFile": "caf\351.jpg", "DateTimeOriginal": "2024:03:15 10:22:00"}]')
    monkeypatch.setattr("photosorter.constants.exiftool_available", True)
