"""
Path-related settings for skyrim_alchemy.
"""

from pathlib import Path
from typing import List, Optional, Union

from PySide6.QtCore import QStandardPaths

from .types import SettingsSection

MAX_RECENT_DATA_FILES = 10

# Folder the game keeps plugins.txt in, under the user's local app data
LOCAL_GAME_DIR = "Skyrim Special Edition"


def default_local_path() -> Optional[Path]:
    """Platform default for the directory containing plugins.txt."""
    location = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.GenericDataLocation
    )
    return Path(location) / LOCAL_GAME_DIR if location else None


class PathSettings(SettingsSection):
    """Manages path-related settings."""

    @property
    def game_path(self) -> Optional[Path]:
        """Get Skyrim installation directory (the one containing Data/)."""
        path_str = self._get_str("paths/game", "")
        return Path(path_str) if path_str else None

    @game_path.setter
    def game_path(self, value: Optional[Path]) -> None:
        """Set Skyrim installation directory."""
        self.settings.setValue("paths/game", str(value) if value else "")
        self.settings.sync()

    @property
    def plugins_path(self) -> Optional[Path]:
        """Get plugins directory (derived from game_path)."""
        if self.game_path:
            return self.game_path / "Data"
        return None

    @property
    def local_path(self) -> Optional[Path]:
        """Get directory containing plugins.txt, falling back to the platform default."""
        path_str = self._get_str("paths/local", "")
        return Path(path_str) if path_str else default_local_path()

    @local_path.setter
    def local_path(self, value: Optional[Path]) -> None:
        self.settings.setValue("paths/local", str(value) if value else "")
        self.settings.sync()

    @property
    def data_file(self) -> Optional[Path]:
        """Get the game data snapshot last written or read."""
        path_str = self._get_str("paths/data_file", "")
        return Path(path_str) if path_str else None

    @data_file.setter
    def data_file(self, value: Optional[Path]) -> None:
        self.settings.setValue("paths/data_file", str(value) if value else "")
        if value:
            self.add_recent_data_file(value)
        self.settings.sync()

    @property
    def recent_data_files(self) -> List[str]:
        """Get list of recently used snapshot files, most recent first."""
        return self._get_list("paths/recent_data_files", [])

    def add_recent_data_file(self, file_path: Union[str, Path]) -> None:
        """Add file to recent data files list (max 10 items)."""
        recent = self.recent_data_files
        file_str = str(file_path)

        if file_str in recent:
            recent.remove(file_str)
        recent.insert(0, file_str)

        self.settings.setValue("paths/recent_data_files", recent[:MAX_RECENT_DATA_FILES])
        self.settings.sync()

    def set_recent_data_files(self, files: List[str]) -> None:
        self.settings.setValue("paths/recent_data_files", files[:MAX_RECENT_DATA_FILES])
        self.settings.sync()

    def clear_recent_data_files(self) -> None:
        """Clear recent data files list."""
        self.settings.setValue("paths/recent_data_files", [])
        self.settings.sync()
