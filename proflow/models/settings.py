"""Settings model for the application."""

import json
import os
import sys
from dataclasses import dataclass, asdict
from typing import Optional

from ..logging_config import get_logger

logger = get_logger("settings")

# Application name for config directory
APP_NAME = "ProFlow"

# Environment variable that points at the ProPresenter library
LIBRARY_ENV_VAR = "PROPRESENTER_LIBRARY"

# Bundled default templates shipped inside the package
BUNDLED_TEMPLATES_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates"
)


def get_config_dir() -> str:
    """Get the appropriate config directory for the current platform.

    Windows: %APPDATA%/ProFlow
    macOS: ~/Library/Application Support/ProFlow
    Linux: ~/.config/ProFlow
    """
    if sys.platform == "win32":
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
    elif sys.platform == "darwin":
        base = os.path.expanduser("~/Library/Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))

    config_dir = os.path.join(base, APP_NAME)

    if not os.path.exists(config_dir):
        try:
            os.makedirs(config_dir, exist_ok=True)
            logger.debug(f"Created config directory: {config_dir}")
        except OSError as e:
            logger.error(f"Failed to create config directory {config_dir}: {e}")
            # Fall back to current directory
            return "."

    return config_dir


def get_settings_path() -> str:
    """Get the full path to the settings file."""
    return os.path.join(get_config_dir(), "settings.json")


@dataclass
class Settings:
    """Application settings."""

    # ProPresenter library; templates are looked up here first
    library_folder: str = ""
    # Empty means the templates bundled with the package
    templates_folder: str = ""
    output_folder: str = "."

    # Pagination
    wrap_column: int = 45
    min_wrap_column: int = 20
    max_lines_per_slide: int = 10
    superscript_verse_numbers: bool = True

    # File writes
    write_retries: int = 2
    retry_delay: float = 0.2

    playlist_name: str = "Playlist"

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Settings":
        """Load settings from JSON file.

        Args:
            path: Path to settings file. If None, uses default config location.
        """
        if path is None:
            path = get_settings_path()

        settings = cls()
        if os.path.exists(path):
            try:
                logger.debug(f"Loading settings from: {path}")
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                # Filter out unknown keys to handle version differences
                valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
                filtered_data = {k: v for k, v in data.items() if k in valid_fields}
                if len(filtered_data) != len(data):
                    ignored = set(data.keys()) - valid_fields
                    logger.debug(f"Ignored unknown settings keys: {ignored}")
                settings = cls(**filtered_data)
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON in settings file {path}: {e}")
            except (TypeError, AttributeError) as e:
                logger.error(f"Invalid settings data in {path}: {e}")
        else:
            logger.debug(f"Settings file not found, using defaults: {path}")

        env_library = os.environ.get(LIBRARY_ENV_VAR)
        if env_library:
            logger.debug(f"Library folder overridden by {LIBRARY_ENV_VAR}: {env_library}")
            settings.library_folder = env_library
        return settings

    def save(self, path: Optional[str] = None) -> None:
        """Save settings to JSON file.

        Args:
            path: Path to settings file. If None, uses default config location.
        """
        if path is None:
            path = get_settings_path()

        dir_path = os.path.dirname(path)
        if dir_path and not os.path.exists(dir_path):
            os.makedirs(dir_path, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2, ensure_ascii=False)
        logger.debug(f"Settings saved to: {path}")

    def _resolve(self, folder: str, base_path: str) -> str:
        if os.path.isabs(folder):
            return folder
        return os.path.normpath(os.path.join(base_path, folder))

    def get_library_path(self, base_path: str = ".") -> Optional[str]:
        """Get absolute path to the ProPresenter library, or None if not set."""
        if not self.library_folder:
            return None
        return self._resolve(os.path.expanduser(self.library_folder), base_path)

    def get_templates_path(self, base_path: str = ".") -> str:
        """Get absolute path to the default templates folder."""
        if not self.templates_folder:
            return BUNDLED_TEMPLATES_DIR
        return self._resolve(os.path.expanduser(self.templates_folder), base_path)

    def get_output_path(self, base_path: str = ".") -> str:
        """Get absolute path to output folder."""
        return self._resolve(os.path.expanduser(self.output_folder), base_path)

    def get_effective_wrap_column(self) -> int:
        """Wrap column, never narrower than the configured minimum."""
        return max(self.wrap_column, self.min_wrap_column)
