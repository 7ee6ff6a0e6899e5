"""Configuration loading and saving.

Config file location: ~/.config/bookmark-vault/config.toml

Schema:
    [api]
    base_url = "http://localhost:8080/api"
    timeout = 30.0

    [tags]
    protected = ["todo", "done"]  # task markers that cannot be renamed/deleted

    [state]
    state_dir = ".state"
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import tomli_w

from .client import DEFAULT_BASE_URL
from .tags import DEFAULT_PROTECTED_TAGS

CONFIG_DIR = Path.home() / ".config" / "bookmark-vault"
CONFIG_FILE = CONFIG_DIR / "config.toml"


@dataclass
class AppConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    protected_tags: list[str] = field(
        default_factory=lambda: sorted(DEFAULT_PROTECTED_TAGS)
    )
    state_dir: Path = Path(".state")


def load_config(config_path: Path = CONFIG_FILE) -> AppConfig:
    """Load config from TOML file, falling back to defaults when absent."""
    if not config_path.exists():
        return AppConfig()

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    api_data = data.get("api", {})
    tags_data = data.get("tags", {})
    state_data = data.get("state", {})

    protected = tags_data.get("protected", sorted(DEFAULT_PROTECTED_TAGS))
    if not isinstance(protected, list) or not all(isinstance(p, str) for p in protected):
        raise ValueError("Config tags.protected must be a list of tag names")

    timeout = float(api_data.get("timeout", 30.0))
    if timeout <= 0:
        raise ValueError("Config api.timeout must be positive")

    return AppConfig(
        base_url=api_data.get("base_url", DEFAULT_BASE_URL),
        timeout=timeout,
        protected_tags=protected,
        state_dir=Path(state_data.get("state_dir", ".state")),
    )


def save_config(config: AppConfig, config_path: Path = CONFIG_FILE) -> None:
    """Write config to TOML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "api": {
            "base_url": config.base_url,
            "timeout": config.timeout,
        },
        "tags": {
            "protected": list(config.protected_tags),
        },
        "state": {
            "state_dir": str(config.state_dir),
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()
