"""Configuration for the mirror cache location and git behaviour"""

import configparser
import logging
import os
import platform
from pathlib import Path
from typing import Any, Optional

APP_NAME = "cachedcheckout"

logger = logging.getLogger(__name__)

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")
xdg_cache_home = os.environ.get("XDG_CACHE_HOME") or os.path.join(_home, ".cache")


default_cfg = {
    "dirs": {"mirror_cache": os.path.join(xdg_cache_home, APP_NAME, "mirrors")},
    "cache": {"enabled": "true", "lock_timeout": "600"},
    "mirror": {"filter": "blob:none"},
    "git": {"timeout": ""},
    "github": {"server_url": "https://github.com"},
}

if platform.system() == "Darwin":
    # macOS
    config_dir = Path("~/Library/Application Support/cachedcheckout").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file() -> Path:
    return config_dir / f"{APP_NAME}.cfg"


class ConfigAccessor:
    """
    A dict-like accessor for the configuration file.

    Missing sections or keys fall back to the values in ``default_cfg``, so a
    runner without any configuration file behaves sensibly.

    Usage:
        config = ConfigAccessor()
        value = config.get('mirror', 'filter')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize a ConfigAccessor with an optional config file path.

        Args:
            config_path: Path to the configuration file. If None, uses the default path.
        """
        if config_path is None:
            self.config_path = get_config_file()
        else:
            self.config_path = config_path

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Args:
            section: The configuration section
            key: The configuration key
            default: Value to return if the key is neither configured nor in
                the built-in defaults

        Returns:
            The configured value, the built-in default, or ``default``
        """
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            pass
        return default_cfg.get(section, {}).get(key, default)

    def getboolean(self, section: str, key: str, default: bool = False) -> bool:
        value = self.get(section, key)
        if value is None:
            return default
        return str(value).strip().lower() in ("1", "true", "yes", "on")

    def getfloat(self, section: str, key: str) -> Optional[float]:
        value = self.get(section, key)
        if value is None or str(value).strip() == "":
            return None
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Ignoring non-numeric value for [{section}] {key}: {value}")
            return None

    def set(self, section: str, key: str, value: str) -> None:
        """
        Set a configuration value.

        Args:
            section: The configuration section
            key: The configuration key
            value: The value to set
        """
        if not self.config.has_section(section):
            self.config.add_section(section)

        self.config[section][key] = value

    def save(self) -> None:
        """
        Save the current configuration to the config file.

        Fails gracefully if the file cannot be written (e.g., read-only filesystem).
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as configfile:
                self.config.write(configfile)
        except OSError as e:
            logger.warning(
                f"Could not save configuration to {self.config_path}: {e}. "
                "Configuration changes will not persist."
            )

    def sections(self) -> list:
        return self.config.sections()


# Create a global config accessor instance
config = ConfigAccessor()


def get_mirror_cache_dir() -> Path:
    """
    Get the configured root directory for cached mirrors.

    Returns:
        Path to the mirror cache root (defaults to ~/.cache/cachedcheckout/mirrors)
    """
    return Path(config.get("dirs", "mirror_cache")).expanduser()


def is_cache_enabled() -> bool:
    return config.getboolean("cache", "enabled", default=True)


def get_lock_timeout() -> float:
    timeout = config.getfloat("cache", "lock_timeout")
    return 600.0 if timeout is None else timeout


def get_mirror_filter() -> Optional[str]:
    """Partial clone filter for new mirrors, or None when disabled."""
    value = str(config.get("mirror", "filter") or "").strip()
    return value or None


def get_git_timeout() -> Optional[float]:
    return config.getfloat("git", "timeout")


def get_server_url() -> str:
    return str(config.get("github", "server_url")).rstrip("/")
