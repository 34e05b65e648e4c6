"""
Per-user directory resolution for annotation data and settings.
"""
import os
import sys
from pathlib import Path
from typing import Optional

APP_NAME = "Inkmark"


def get_app_data_dir(app_name: str = APP_NAME) -> Path:
    """
    Get the application data directory for storing user data.

    Args:
        app_name: Name of the application

    Returns:
        Path to the app data directory
    """
    if os.name == 'nt':  # Windows
        base_dir = os.environ.get('APPDATA', os.path.expanduser('~'))
    elif sys.platform == 'darwin':  # macOS
        base_dir = os.path.expanduser('~/Library/Application Support')
    else:  # Linux and others
        base_dir = os.environ.get('XDG_DATA_HOME', os.path.expanduser('~/.local/share'))

    app_dir = Path(base_dir) / app_name
    app_dir.mkdir(parents=True, exist_ok=True)

    return app_dir


def get_config_dir(app_name: str = APP_NAME) -> Path:
    """
    Get the configuration directory for storing settings and categories.

    Args:
        app_name: Name of the application

    Returns:
        Path to the config directory
    """
    if os.name == 'nt':  # Windows
        config_dir = get_app_data_dir(app_name) / "config"
    elif sys.platform == 'darwin':  # macOS
        config_dir = Path.home() / "Library" / "Preferences" / app_name
    else:  # Linux
        base = os.environ.get('XDG_CONFIG_HOME', str(Path.home() / ".config"))
        config_dir = Path(base) / app_name

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


class ResourceManager:
    """
    Centralized directory lookup shared by the annotation and category stores.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._initialized = True
        self.app_name = APP_NAME

        self._app_data_dir: Optional[Path] = None
        self._config_dir: Optional[Path] = None

    @property
    def app_data_dir(self) -> Path:
        """Get the app data directory, creating if needed."""
        if self._app_data_dir is None:
            self._app_data_dir = get_app_data_dir(self.app_name)
        return self._app_data_dir

    @property
    def config_dir(self) -> Path:
        """Get the config directory, creating if needed."""
        if self._config_dir is None:
            self._config_dir = get_config_dir(self.app_name)
        return self._config_dir

    @property
    def annotations_dir(self) -> Path:
        """Directory holding one JSON file per document namespace."""
        path = self.app_data_dir / "annotations"
        path.mkdir(parents=True, exist_ok=True)
        return path
