"""Configuration loader for the memory manager.

Loads limits from .ctxedit/memory.json if it exists, otherwise uses the
MemoryConfig defaults.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .base import MemoryConfig

logger = logging.getLogger(__name__)


# Default location for the memory config file
DEFAULT_CONFIG_PATH = ".ctxedit/memory.json"

CONFIG_ENV_VAR = "CTXEDIT_MEMORY_CONFIG"


def load_memory_config(
    config_path: Optional[str] = None,
    base_path: Optional[str] = None
) -> MemoryConfig:
    """Load memory configuration from a JSON file.

    Searches for config file in this order:
    1. Explicit config_path if provided
    2. CTXEDIT_MEMORY_CONFIG environment variable
    3. .ctxedit/memory.json in base_path (or cwd)

    If no config file is found, or it cannot be parsed, returns the default
    configuration.

    Example config file (.ctxedit/memory.json):
    ```json
    {
        "max_message_pairs": 15,
        "max_tool_result_length": 800,
        "default_max_context_tokens": 50000,
        "aggressive_threshold": 45000,
        "file_tools": ["read_file", "edit_file", "create_file", "search_in_file"]
    }
    ```
    """
    base_path = base_path or os.getcwd()

    if config_path:
        file_path = Path(config_path)
    elif os.environ.get(CONFIG_ENV_VAR):
        file_path = Path(os.environ[CONFIG_ENV_VAR])
    else:
        file_path = Path(DEFAULT_CONFIG_PATH)

    if not file_path.is_absolute():
        file_path = Path(base_path) / file_path

    if not file_path.exists():
        return MemoryConfig()

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return _parse_config(data)
    except (json.JSONDecodeError, OSError, TypeError, ValueError) as e:
        logger.warning("Failed to load memory config %s: %s", file_path, e)
        return MemoryConfig()


def _parse_config(data: Dict[str, Any]) -> MemoryConfig:
    """Build a MemoryConfig from a parsed JSON object, keeping defaults for missing keys."""
    if not isinstance(data, dict):
        raise ValueError("memory config must be a JSON object")

    defaults = MemoryConfig()
    return MemoryConfig(
        max_message_pairs=data.get("max_message_pairs", defaults.max_message_pairs),
        max_tool_result_length=data.get("max_tool_result_length", defaults.max_tool_result_length),
        default_max_context_tokens=data.get(
            "default_max_context_tokens", defaults.default_max_context_tokens
        ),
        aggressive_threshold=data.get("aggressive_threshold", defaults.aggressive_threshold),
        file_tools=tuple(data.get("file_tools", defaults.file_tools)),
    )
