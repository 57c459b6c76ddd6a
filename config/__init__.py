"""
Configuration Module for the Delivery-Note Scanner.

Settings live in ``settings.yaml`` next to this module. A site can keep
its changes in ``settings.local.yaml`` beside it; that file is merged
over the defaults key by key. Tunables (batch limits, OCR endpoints,
parsing keywords) are read through ``get_config``. Provider credentials
are not kept here: the pipeline receives them as an explicit
``ProviderConfig``.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional


# Environment variable pointing at an alternative settings file
CONFIG_PATH_ENV = "NOTE_SCANNER_CONFIG"

DEFAULT_SETTINGS = Path(__file__).parent / "settings.yaml"
LOCAL_SETTINGS_NAME = "settings.local.yaml"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


class ConfigurationManager:
    """
    Process-wide access to the scanner settings.

    Attributes:
        config_path (Path): Main settings file.
        local_path (Path): Optional site overrides merged over it.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("ocr.backend")
        'structured'
        >>> config.get("input.max_files_per_batch")
        10
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Args:
            config_path: Settings file to use. Falls back to
                        $NOTE_SCANNER_CONFIG, then config/settings.yaml.
        """
        if self._initialized:
            return

        config_path = config_path or os.environ.get(CONFIG_PATH_ENV)
        self.config_path = Path(config_path) if config_path else DEFAULT_SETTINGS
        self.local_path = self.config_path.parent / LOCAL_SETTINGS_NAME

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Read the settings file and any local overrides.

        Raises:
            FileNotFoundError: If the settings file doesn't exist.
            yaml.YAMLError: If either file is not valid YAML.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        config = _read_yaml(self.config_path)
        if self.local_path.exists():
            config = _deep_merge(config, _read_yaml(self.local_path))
        self._config = config

        self._resolve_paths()

    def _resolve_paths(self) -> None:
        """Anchor a relative log file path at the project root."""
        log_file = self.get("logging.file.path")
        if log_file and not Path(log_file).is_absolute():
            project_root = Path(__file__).parent.parent
            self._config['logging']['file']['path'] = str(project_root / log_file)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a dotted key such as ``"ocr.google.language_hints"``.

        Example:
            >>> config.get("ocr.openai.model")
            'gpt-4o'
            >>> config.get("nonexistent.key", "fallback")
            'fallback'
        """
        node = self._config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Override a value in memory; the YAML files are left untouched."""
        *parents, leaf = key.split('.')
        node = self._config
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value

    def get_all(self) -> Dict[str, Any]:
        """Shallow copy of the merged settings."""
        return self._config.copy()

    def reload(self) -> None:
        """Re-read the files, dropping in-memory overrides."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Forget the shared instance so the next use reloads from disk."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shorthand for ``ConfigurationManager().get(key, default)``."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'CONFIG_PATH_ENV']
