"""
Configuration management for t-docker.

This module provides configuration file support with YAML format,
user preferences, and default settings.

Features:
- YAML configuration file at ~/.config/t-docker/config.yaml
- Default values with user overrides
- Keybinding customization (the help legend is generated from these)
- Color theme support
- Docker binary / shell / opener overrides
- Log location override

Architecture:
- ConfigManager: Main configuration interface, built once by the entry point
  and passed to the components that need it
- Merges user config with defaults
- Handles missing/invalid config gracefully
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class KeyBindings:
    """Customizable key bindings, Textual key names. Comma-separate alternatives."""
    up: str = "up"
    down: str = "down"
    focus: str = "escape"
    quit: str = "q,ctrl+c"
    refresh: str = "ctrl+r"
    attach: str = "e"
    stop: str = "s"
    restart: str = "r"
    delete: str = "d"
    open: str = "o"

    def keys(self, action: str) -> List[str]:
        binding = getattr(self, action, "")
        return [k.strip() for k in binding.split(",") if k.strip()]

    def action_for(self, key: str) -> Optional[str]:
        """Name of the binding `key` triggers, or None."""
        for f in fields(self):
            if key in self.keys(f.name):
                return f.name
        return None


@dataclass
class ColorTheme:
    """Color theme configuration (rich style strings)."""
    name: str = "default"
    border: str = "color(240)"
    header: str = "bold"
    muted: str = "color(8)"
    selected: str = "bold color(229) on color(57)"
    spinner: str = "color(205)"
    help: str = "color(241)"
    error: str = "red"
    message: str = "yellow"


@dataclass
class UIConfig:
    """UI-related configuration."""
    color_theme: ColorTheme = field(default_factory=ColorTheme)
    spinner_interval: int = 100  # milliseconds


@dataclass
class DockerConfig:
    """Docker-related configuration."""
    binary: str = "docker"
    default_shell: str = "bash"
    remove_volumes: bool = True
    opener: str = "xdg-open"
    url_template: str = "http://localhost:{port}"


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file_path: Optional[str] = None  # None for default
    max_size_mb: int = 10
    backup_count: int = 5


@dataclass
class AppConfig:
    """Main application configuration."""
    keybindings: KeyBindings = field(default_factory=KeyBindings)
    ui: UIConfig = field(default_factory=UIConfig)
    docker: DockerConfig = field(default_factory=DockerConfig)
    logging: LogConfig = field(default_factory=LogConfig)


def _same_kind(default: Any, value: Any) -> bool:
    """Whether a user value can replace a default without breaking its consumers."""
    if default is None:
        return value is None or isinstance(value, str)
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, (int, float)):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, type(default))


class ConfigManager:
    """Configuration manager with YAML file support."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".config" / "t-docker"
        self.config_file = self.config_dir / "config.yaml"
        self._config: AppConfig = AppConfig()
        self.load_config()

    def load_config(self) -> None:
        """Load configuration from YAML file, writing the defaults if it is missing."""
        try:
            if self.config_file.exists():
                self._config = self._merge_configs(AppConfig(), self._read_file())
                logger.debug(f"Loaded configuration from {self.config_file}")
            else:
                self.save_config()
                logger.info(f"Created default configuration at {self.config_file}")
        except ConfigError as e:
            logger.error(f"Failed to load config: {e}, using defaults")
            self._config = AppConfig()

    def _read_file(self) -> Dict[str, Any]:
        try:
            with open(self.config_file, 'r') as f:
                user_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot read {self.config_file}: {e}") from e
        if not isinstance(user_config, dict):
            raise ConfigError(f"{self.config_file} must contain a mapping")
        return user_config

    def save_config(self) -> None:
        """Save current configuration to YAML file."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w') as f:
                yaml.dump(asdict(self._config), f, default_flow_style=False, indent=2)
            logger.debug(f"Saved configuration to {self.config_file}")
        except OSError as e:
            logger.error(f"Failed to save config: {e}")

    def get_config(self) -> AppConfig:
        """Get current configuration."""
        return self._config

    def _merge_configs(self, default: AppConfig, user: Dict[str, Any]) -> AppConfig:
        """Merge user config with defaults."""
        if 'keybindings' in user:
            self._merge_dataclass(default.keybindings, user['keybindings'])
        if 'ui' in user:
            ui = user['ui'] or {}
            if not isinstance(ui, dict):
                raise ConfigError(f"expected a mapping for ui, got {ui!r}")
            self._merge_dataclass(default.ui, {k: v for k, v in ui.items() if k != 'color_theme'})
            if 'color_theme' in ui:
                self._merge_dataclass(default.ui.color_theme, ui['color_theme'])
        if 'docker' in user:
            self._merge_dataclass(default.docker, user['docker'])
        if 'logging' in user:
            self._merge_dataclass(default.logging, user['logging'])
        return default

    def _merge_dataclass(self, obj: Any, updates: Optional[Dict[str, Any]]) -> None:
        """Merge updates into dataclass object, ignoring unknown keys and mistyped values."""
        if not updates:
            return
        if not isinstance(updates, dict):
            raise ConfigError(f"expected a mapping for {type(obj).__name__}, got {updates!r}")
        known = {f.name for f in fields(obj)}
        for key, value in updates.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key {type(obj).__name__}.{key}")
            elif not _same_kind(getattr(obj, key), value):
                logger.error(
                    f"Ignoring {type(obj).__name__}.{key}={value!r}: "
                    f"expected {type(getattr(obj, key)).__name__}"
                )
            else:
                setattr(obj, key, value)

    @property
    def keybindings(self) -> KeyBindings:
        return self._config.keybindings

    @property
    def theme(self) -> ColorTheme:
        return self._config.ui.color_theme

    @property
    def docker(self) -> DockerConfig:
        return self._config.docker

    def get_log_level(self) -> str:
        """Get configured log level."""
        return self._config.logging.level.upper()

    def get_custom_log_path(self) -> Optional[str]:
        """Get custom log file path if configured."""
        return self._config.logging.file_path

    def get_spinner_interval(self) -> float:
        """Spinner tick interval in seconds."""
        return self._config.ui.spinner_interval / 1000
