"""Per-project store registry used by the HTTP and CLI adapters.

The registry is a plain object owned by whoever builds the adapter; stores
are created lazily on first use and cached by project name.  Nothing here is
module-global.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger

from .config import WindTaskConfig, is_valid_project_name
from .errors import NotFoundError, ValidationError
from .store import TaskStore

DEFAULT_PROJECT = "default"


class StoreRegistry:
    """Map project names onto :class:`TaskStore` instances.

    ``None`` or ``"default"`` resolves to ``config.default_base_dir``; any
    other name must be listed under ``projects`` in the config.
    """

    def __init__(self, config: Optional[WindTaskConfig] = None) -> None:
        self.config = config or WindTaskConfig()
        self._stores: dict[str, TaskStore] = {}

    def project_names(self) -> list[str]:
        return [DEFAULT_PROJECT] + sorted(n for n in self.config.projects if n != DEFAULT_PROJECT)

    def base_dir_for(self, project: Optional[str]) -> Path:
        name = project or DEFAULT_PROJECT
        if not is_valid_project_name(name):
            raise ValidationError(f"Invalid project name: {name}")
        if name in self.config.projects:
            return self.config.projects[name]
        if name == DEFAULT_PROJECT:
            return self.config.default_base_dir
        raise NotFoundError(f"Unknown project: {name}")

    def get(self, project: Optional[str] = None) -> TaskStore:
        name = project or DEFAULT_PROJECT
        store = self._stores.get(name)
        if store is None:
            base_dir = self.base_dir_for(name)
            store = TaskStore(
                base_dir,
                max_log_message_length=self.config.max_log_message_length,
                max_content_bytes=self.config.max_content_bytes,
            )
            store.init()
            self._stores[name] = store
            logger.debug("Opened store for project {} at {}", name, base_dir)
        return store
