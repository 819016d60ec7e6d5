DEFAULT_BASE_DIR_NAME = ".wind-task"
CONFIG_DIR_NAME = ".wind-task"
CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "WIND_TASK_CONFIG"

SNAPSHOT_FILE = "task.json"
EVENTS_FILE = "events.jsonl"
CONTENT_FILE = "content.md"

CURRENT_TASK_VERSION = 1

DEFAULT_MAX_LOG_MESSAGE_LENGTH = 2000
DEFAULT_MAX_CONTENT_BYTES = 200_000  # 200 KB
DEFAULT_LOG_LEVEL = "INFO"

BOARD_COLUMNS = ("TODO", "ACTIVE", "DONE", "ARCHIVED")

# Accepted by set_state for boards written before the TODO/ACTIVE/DONE rename.
LEGACY_STATE_ALIASES = {
    "IN_DEV": "ACTIVE",
    "FINISHED": "DONE",
}
