"""Client configuration and lifecycle policy constants."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger("webota.config")

DEFAULT_CONFIG_PATH = Path("./webota.json")


class ClientConfig(BaseModel):
    """Operator client settings.

    The reboot heuristics (``early_reboot_polls``, ``reboot_progress_threshold``,
    ``max_consecutive_failures``) were tuned against real devices. They are
    policy values; change them only together with the device firmware team.
    """

    base_url: str = Field(
        default="http://192.168.4.1",
        pattern=r"^https?://.+",
        description="Device base URL",
    )
    poll_interval: float = Field(default=0.5, ge=0, description="Seconds between polls")
    max_poll_attempts: int = Field(default=120, gt=0, description="Poll budget (~60s)")
    early_reboot_polls: int = Field(
        default=5, ge=0, description="Poll errors within this many polls mean reboot"
    )
    reboot_progress_threshold: int = Field(
        default=95, ge=0, le=100, description="Poll errors at/after this % mean reboot"
    )
    max_consecutive_failures: int = Field(
        default=10, ge=0, description="Transient poll failures tolerated in a row"
    )
    reload_delay: float = Field(default=3.0, ge=0, description="Seconds before reload")
    request_timeout: float = Field(default=10.0, gt=0, description="HTTP timeout")
    max_file_size: int = Field(default=10 * 1024 * 1024, gt=0, description="Upload limit")
    auth_storage_key: str = Field(default="ota_auth", min_length=1)
    log_file: str = Field(default="./logs/webota.log")
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR)$")


def load_config(path: Optional[Path] = None, **overrides) -> ClientConfig:
    """Load configuration from a JSON file, then apply keyword overrides.

    Args:
        path: JSON file (default ./webota.json). Missing file means defaults.
        **overrides: Field values that win over the file (None values ignored)

    Returns:
        Validated ClientConfig
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data = {}

    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            logger.debug(f"Loaded config from {config_path}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read config file {config_path}: {e}, using defaults")
            data = {}
    else:
        logger.debug(f"No config file at {config_path}, using defaults")

    data.update({k: v for k, v in overrides.items() if v is not None})
    return ClientConfig(**data)
