"""
Settings validation for skyrim_alchemy.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List

from .types import ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates configuration settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def validate(self) -> ValidationResult:
        """Validate current configuration.

        Recent data files that no longer exist are dropped from the list.
        """
        errors: List[str] = []
        warnings: List[str] = []
        paths = self.settings.paths

        game_path = paths.game_path
        if game_path:
            if not game_path.exists():
                errors.append(f"Game path does not exist: {game_path}")
            elif not (game_path / "Data").is_dir():
                warnings.append(f"Game path might be invalid (no 'Data' directory): {game_path}")
        else:
            warnings.append("Game path not set")

        recent_files = paths.recent_data_files
        valid_recent: List[str] = []
        for file_path in recent_files:
            if Path(file_path).exists():
                valid_recent.append(file_path)
            else:
                warnings.append(f"Recent data file no longer exists: {file_path}")

        if len(valid_recent) != len(recent_files):
            paths.set_recent_data_files(valid_recent)

        for warning in warnings:
            logger.debug(f"Settings warning: {warning}")

        return ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)
