"""Load optional wind-task configuration from `~/.wind-task/config.yaml`."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .constants import (
    CONFIG_DIR_NAME,
    CONFIG_ENV_VAR,
    CONFIG_FILE,
    DEFAULT_BASE_DIR_NAME,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_CONTENT_BYTES,
    DEFAULT_MAX_LOG_MESSAGE_LENGTH,
)
from .io_utils import _load_data_with_error

_PROJECT_NAME_RE = re.compile(r"^[a-zA-Z0-9_.-]+$")


def is_valid_project_name(name: str) -> bool:
    return bool(_PROJECT_NAME_RE.match(name or ""))


def config_path() -> Path:
    """Return the config file location (`$WIND_TASK_CONFIG` wins)."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE


@dataclass
class WindTaskConfig:
    projects: dict[str, Path] = field(default_factory=dict)
    default_base_dir: Path = field(default_factory=lambda: Path(DEFAULT_BASE_DIR_NAME))
    max_log_message_length: int = DEFAULT_MAX_LOG_MESSAGE_LENGTH
    max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES
    log_level: str = DEFAULT_LOG_LEVEL


def _resolve_dir(value: Any) -> Optional[Path]:
    text = str(value or "").strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _positive_int(value: Any, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def parse_config(data: dict[str, Any]) -> WindTaskConfig:
    """Build a :class:`WindTaskConfig` from a raw mapping.

    Project entries with an invalid name or an empty directory are dropped.
    """
    projects: dict[str, Path] = {}
    raw_projects = data.get("projects")
    if isinstance(raw_projects, dict):
        for name, value in raw_projects.items():
            name = str(name)
            path = _resolve_dir(value)
            if not is_valid_project_name(name) or path is None:
                continue
            projects[name] = path

    cfg = WindTaskConfig(projects=projects)
    base_dir = _resolve_dir(data.get("default_base_dir"))
    if base_dir is not None:
        cfg.default_base_dir = base_dir
    cfg.max_log_message_length = _positive_int(data.get("max_log_message_length"), DEFAULT_MAX_LOG_MESSAGE_LENGTH)
    cfg.max_content_bytes = _positive_int(data.get("max_content_bytes"), DEFAULT_MAX_CONTENT_BYTES)
    level = data.get("log_level")
    if isinstance(level, str) and level.strip():
        cfg.log_level = level.strip().upper()
    return cfg


def load_config(path: Optional[Path] = None) -> tuple[WindTaskConfig, str | None]:
    """Load the optional config file.

    Args:
        path: Explicit config file; defaults to :func:`config_path`.

    Returns:
        A tuple of `(config, error_message)`. A missing file yields defaults and no error.
    """
    path = path or config_path()
    data, err = _load_data_with_error(path, {})
    if err:
        return WindTaskConfig(), err
    return parse_config(data), None
