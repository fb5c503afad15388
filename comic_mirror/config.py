"""
Run configuration and settings persistence.

Settings live in an optional JSON file in the working directory. Command line
options override whatever the file provides.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

from .core.remote_client import DEFAULT_BASE_URL, DEFAULT_USER_AGENT


SETTINGS_FILE_NAME = ".comic_mirror.json"

logger = logging.getLogger(__name__)


@dataclass
class MirrorConfig:
    root: str = "data"
    base_url: str = DEFAULT_BASE_URL
    jobs: int = 4
    timeout: Optional[float] = None  # None = wait indefinitely
    max_retries: int = 0
    retry_delay: float = 1.0
    log_dir: str = "logs"
    user_agent: str = DEFAULT_USER_AGENT

    def with_overrides(self, **overrides: Any) -> "MirrorConfig":
        """Copy with every non-None override applied."""
        data = asdict(self)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return MirrorConfig(**data)


def settings_path() -> str:
    return os.path.join(os.path.abspath('.'), SETTINGS_FILE_NAME)


def load_config(path: Optional[str] = None) -> MirrorConfig:
    """
    Load settings from a JSON file.

    A missing file gives the defaults; unknown keys are ignored. A file that
    is not valid JSON is logged and ignored.
    """
    path = path or settings_path()
    if not os.path.exists(path):
        return MirrorConfig()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable settings file {path}: {e}")
        return MirrorConfig()
    if not isinstance(data, dict):
        logger.warning(f"Ignoring settings file {path}: expected a JSON object")
        return MirrorConfig()

    known = {f.name for f in fields(MirrorConfig)}
    values: Dict[str, Any] = {k: v for k, v in data.items() if k in known}
    return MirrorConfig(**values)


def save_config(config: MirrorConfig, path: Optional[str] = None) -> str:
    path = path or settings_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(asdict(config), f, ensure_ascii=False, indent=2)
    return path
