"""
Server configuration loaded from YAML.

Example `kuljet.yaml`:

    database: blog.db
    log_level: DEBUG
    create_tables: true
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class ServerConfig:
    """Settings for serving a program."""
    database: str = "kuljet.db"
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT
    create_tables: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown configuration keys: {', '.join(unknown)}")
        config = cls(**data)
        if not isinstance(logging.getLevelName(config.log_level.upper()), int):
            raise ValueError(f"unknown log level: {config.log_level}")
        return config


def load_config(path: Union[Path, str]) -> ServerConfig:
    """Read a YAML configuration file; an empty file gives the defaults."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"configuration not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError(f"configuration must be a mapping: {config_path}")
    return ServerConfig.from_dict(data)


def configure_logging(config: ServerConfig) -> None:
    logging.basicConfig(level=config.log_level.upper(), format=config.log_format)
