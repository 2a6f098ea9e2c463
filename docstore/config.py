"""
Configuration management for docstore.

Handles loading and saving user configuration from:
- XDG config directory: ~/.config/docstore/config.json
- Fallback: ~/.docstore/config.json
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """Default storage backend settings."""
    backend: str = "json"
    path: Optional[str] = None


@dataclass
class CLIConfig:
    """CLI default options."""
    verbose: bool = False
    color: bool = True
    page_size: int = 50


@dataclass
class DocStoreConfig:
    """Main docstore configuration."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    cli: CLIConfig = field(default_factory=CLIConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "storage": asdict(self.storage),
            "cli": asdict(self.cli),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DocStoreConfig':
        """Create from dictionary."""
        storage_data = data.get("storage", {})
        cli_data = data.get("cli", {})
        return cls(
            storage=StorageConfig(**storage_data),
            cli=CLIConfig(**cli_data),
        )


def get_config_path() -> Path:
    """
    Get configuration file path.

    Follows XDG Base Directory specification:
    1. ~/.config/docstore/config.json when ~/.config exists
    2. Fallback: ~/.docstore/config.json

    Returns:
        Path to config file
    """
    xdg_config_home = Path.home() / ".config"
    if xdg_config_home.exists():
        config_dir = xdg_config_home / "docstore"
    else:
        config_dir = Path.home() / ".docstore"

    return config_dir / "config.json"


def load_config() -> DocStoreConfig:
    """
    Load configuration from file.

    Returns:
        DocStoreConfig instance with loaded values or defaults
    """
    config_path = get_config_path()

    if not config_path.exists():
        return DocStoreConfig()

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
        return DocStoreConfig.from_dict(data)
    except (json.JSONDecodeError, OSError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}; using defaults")
        return DocStoreConfig()


def save_config(config: DocStoreConfig) -> Path:
    """
    Save configuration to file.

    Args:
        config: Configuration to save

    Returns:
        Path the configuration was written to
    """
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)

    logger.debug(f"Configuration saved to {config_path}")
    return config_path


def update_config(
    # Storage settings
    storage_backend: Optional[str] = None,
    storage_path: Optional[str] = None,
    # CLI settings
    cli_verbose: Optional[bool] = None,
    cli_color: Optional[bool] = None,
    cli_page_size: Optional[int] = None,
) -> DocStoreConfig:
    """
    Update configuration.

    Only updates provided values, leaving others unchanged.
    """
    config = load_config()

    if storage_backend is not None:
        config.storage.backend = storage_backend
    if storage_path is not None:
        config.storage.path = storage_path

    if cli_verbose is not None:
        config.cli.verbose = cli_verbose
    if cli_color is not None:
        config.cli.color = cli_color
    if cli_page_size is not None:
        config.cli.page_size = cli_page_size

    save_config(config)
    return config
