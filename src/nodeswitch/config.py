import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ValidationError, field_validator

from .domain.errors import ConfigError
from .host import Host, OsLabel

PRODUCT_NAME = "nodeswitch"

CONFIG_DIR = Path.home() / ".nodeswitch"
CONFIG_FILE = CONFIG_DIR / "config"

DEFAULT_MIRROR = "https://nodejs.org/dist"
DEFAULT_MAX_WORKERS = 4

CONFIG_KEYS = (
    "NODESWITCH_MIRROR",
    "NODESWITCH_DATA_DIR",
    "NODESWITCH_LINK_DIR",
    "NODESWITCH_MAX_WORKERS",
)


class Settings(BaseModel):
    mirror: str = DEFAULT_MIRROR
    data_dir: Path
    link_dir: Path
    max_workers: int = DEFAULT_MAX_WORKERS

    @field_validator("mirror")
    @classmethod
    def _strip_mirror(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("mirror must be an http(s) URL")
        return value

    @field_validator("max_workers")
    @classmethod
    def _positive_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_workers must be at least 1")
        return value


def read_config(config_file: Path = CONFIG_FILE) -> Dict[str, str]:
    """read KEY=value pairs from the config file."""
    config = {}
    if not config_file.exists():
        return config

    try:
        with open(config_file, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                config[key.strip()] = value.strip()
    except (IOError, PermissionError, OSError):
        # if we can't read the file, treat as not configured
        return {}
    return config


def get_config_value(key: str, config_file: Path = CONFIG_FILE) -> Optional[str]:
    """get a value, preferring the environment over the config file."""
    if os.environ.get(key):
        return os.environ[key]
    return read_config(config_file).get(key)


def set_config_value(key: str, value: str, config_file: Path = CONFIG_FILE):
    """set a value in the config file, preserving other config values."""
    if key not in CONFIG_KEYS:
        raise ConfigError(f"Unknown config key '{key}'. Use one of: {', '.join(CONFIG_KEYS)}")

    config_file.parent.mkdir(parents=True, exist_ok=True)
    config = read_config(config_file)
    config[key] = value

    try:
        with open(config_file, "w") as f:
            for k, v in config.items():
                f.write(f"{k}={v}\n")
    except (IOError, PermissionError, OSError) as e:
        raise ConfigError(f"failed to write config file: {e}") from e


def default_data_root(host: Host) -> Path:
    """per-user data directory for the host platform."""
    home = Path.home()
    if host.os == OsLabel.WIN:
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else home / "AppData" / "Roaming"
    if host.os == OsLabel.DARWIN:
        return home / "Library" / "Application Support"
    xdg = os.environ.get("XDG_DATA_HOME")
    return Path(xdg) if xdg else home / ".local" / "share"


def default_link_dir(host: Host, data_root: Path) -> Path:
    # on windows the copied executable lives in a dedicated directory added to PATH
    if host.is_windows:
        return data_root / PRODUCT_NAME / "bin"
    return Path.home() / ".local" / "bin"


def load_settings(host: Host, config_file: Path = CONFIG_FILE) -> Settings:
    """
    build settings from the environment, the config file and platform defaults.

    raises:
        ConfigError: if a configured value is invalid
    """
    def lookup(key: str) -> Optional[str]:
        if os.environ.get(key):
            return os.environ[key]
        return file_config.get(key)

    file_config = read_config(config_file)

    data_root = default_data_root(host)
    data_dir = lookup("NODESWITCH_DATA_DIR")
    link_dir = lookup("NODESWITCH_LINK_DIR")

    values = {
        "data_dir": Path(data_dir).expanduser() if data_dir else data_root / PRODUCT_NAME,
        "link_dir": Path(link_dir).expanduser() if link_dir else default_link_dir(host, data_root),
    }
    if lookup("NODESWITCH_MIRROR"):
        values["mirror"] = lookup("NODESWITCH_MIRROR")
    if lookup("NODESWITCH_MAX_WORKERS"):
        values["max_workers"] = lookup("NODESWITCH_MAX_WORKERS")

    try:
        return Settings(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e
