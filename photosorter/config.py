"""
Configuration management for photosorter.
"""

from pathlib import Path
from typing import Dict, Optional

import yaml

from .constants import PROGRAM, get_logger
from .models import FolderScheme, SortOptions


class Config:
    """Manages configuration file for storing user preferences."""

    def __init__(self, config_path: Optional[Path] = None):
        # Default config location: ~/.<PROGRAM>/config.yml
        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path.home() / f".{PROGRAM}" / "config.yml"
        self.program_root = self.config_path.parent
        self.logger = get_logger("photosorter.config")
        self.data = self._load_config()

    def _load_config(self) -> Dict:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            self.logger.warning(f"Could not load config: {e}")
            return {}

        if not isinstance(data, dict):
            self.logger.warning(f"Ignoring malformed config: {self.config_path}")
            return {}
        return data

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            self.program_root.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(self.data, f, default_flow_style=False)
        except OSError as e:
            self.logger.error(f"Could not save config: {e}")

    @property
    def log_path(self) -> Path:
        """Activity log kept next to the config file."""
        return self.program_root / f"{PROGRAM}.log"

    def get_last_source(self) -> Optional[str]:
        """Get the last used source directory."""
        return self.data.get('last_source')

    def get_last_dest(self) -> Optional[str]:
        """Get the last used destination directory."""
        return self.data.get('last_dest')

    def get_folder_scheme(self) -> FolderScheme:
        """Get the saved folder scheme (default: year-month-day)."""
        name = self.data.get('folder_scheme')
        if name:
            try:
                return FolderScheme.from_name(str(name))
            except ValueError:
                self.logger.warning(f"Ignoring unknown folder scheme in config: {name}")
        return FolderScheme.YEAR_MONTH_DAY

    def get_include_subfolders(self) -> bool:
        return bool(self.data.get('include_subfolders', True))

    def get_move_files(self) -> bool:
        return bool(self.data.get('move_files', False))

    def get_write_skip_log(self) -> bool:
        return bool(self.data.get('write_skip_log', True))

    def get_sort_options(self) -> SortOptions:
        """Saved options as a SortOptions, with defaults for anything unset."""
        return SortOptions(
            include_subfolders=self.get_include_subfolders(),
            move_files=self.get_move_files(),
            scheme=self.get_folder_scheme(),
            write_skip_log=self.get_write_skip_log(),
        )

    def update_paths(self, source: str, dest: str) -> None:
        """Update and save the last used paths."""
        self.data['last_source'] = source
        self.data['last_dest'] = dest
        self.save_config()

    def update_sort_options(self, options: SortOptions) -> None:
        """Update and save the sorting options."""
        self.data['folder_scheme'] = options.scheme.value
        self.data['include_subfolders'] = options.include_subfolders
        self.data['move_files'] = options.move_files
        self.data['write_skip_log'] = options.write_skip_log
        self.save_config()
