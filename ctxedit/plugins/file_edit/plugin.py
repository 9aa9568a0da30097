"""File editing plugin implementation.

Provides tools for reading files and for replacing text in them through
the fuzzy patch locator.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ...patch import locate
from ...types import ToolSchema

logger = logging.getLogger(__name__)


class FileEditPlugin:
    """Plugin for file reading and editing operations.

    Tools provided:
    - read_file: Read file contents (auto-approved, low risk)
    - edit_file: Replace one occurrence of a text in a file

    Configuration options (via initialize()):
        base_dir: Directory that relative paths are resolved against
            (default: current working directory).
    """

    def __init__(self):
        self._base_dir: Optional[Path] = None
        self._initialized = False

    @property
    def name(self) -> str:
        return "file_edit"

    def initialize(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the file edit plugin.

        Args:
            config: Optional configuration dict with:
                - base_dir: Directory for resolving relative paths
        """
        config = config or {}
        base_dir = config.get("base_dir")
        self._base_dir = Path(base_dir) if base_dir else None
        self._initialized = True

    def shutdown(self) -> None:
        """Shutdown the plugin."""
        self._base_dir = None
        self._initialized = False

    def get_tool_schemas(self) -> List[ToolSchema]:
        """Return tool schemas for file editing tools."""
        return [
            ToolSchema(
                name="read_file",
                description="Read the contents of a file. Returns the file content as text.",
                parameters={
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "string",
                            "description": "Path to the file to read"
                        }
                    },
                    "required": ["path"]
                }
            ),
            ToolSchema(
                name="edit_file",
                description="Replace one occurrence of old_string with new_string in an existing "
                           "file. Small differences in whitespace, indentation, escaping or line "
                           "endings are tolerated.",
                parameters={
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "string",
                            "description": "Path to the file to edit"
                        },
                        "old_string": {
                            "type": "string",
                            "description": "Existing text to replace. Include enough surrounding "
                                           "lines to make it unique."
                        },
                        "new_string": {
                            "type": "string",
                            "description": "Text to put in its place"
                        },
                        "start_line": {
                            "type": "integer",
                            "description": "Approximate 1-based line of old_string, used when it "
                                           "occurs more than once"
                        }
                    },
                    "required": ["path", "old_string", "new_string"]
                }
            ),
        ]

    def get_executors(self) -> Dict[str, Callable[[Dict[str, Any]], Any]]:
        """Return executor functions for each tool."""
        return {
            "read_file": self._execute_read_file,
            "edit_file": self._execute_edit_file,
        }

    def get_system_instructions(self) -> Optional[str]:
        """Return system instructions for file editing tools."""
        return """You have access to file editing tools:

- `read_file(path)`: Read file contents. Safe operation, no approval needed.
- `edit_file(path, old_string, new_string, start_line?)`: Replace one occurrence of
  old_string with new_string.

Copy old_string from the most recent read_file output. If the same text occurs
more than once, pass start_line with the approximate line of the one you mean,
or include more surrounding lines. If an edit fails, the error lists the closest
matching line; read the file again before retrying."""

    def get_auto_approved_tools(self) -> List[str]:
        """Return tools that should be auto-approved.

        read_file is a low-risk operation.
        """
        return ["read_file"]

    def _resolve(self, path: str) -> Path:
        file_path = Path(path)
        if self._base_dir is not None and not file_path.is_absolute():
            file_path = self._base_dir / file_path
        return file_path

    # Tool executors

    def _execute_read_file(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Execute read_file tool."""
        path = args.get("path", "")

        if not path:
            return {"error": "path is required"}

        file_path = self._resolve(path)
        if not file_path.exists():
            return {"error": f"File not found: {path}"}

        if not file_path.is_file():
            return {"error": f"Not a file: {path}"}

        try:
            with open(file_path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
            return {
                "path": path,
                "content": content,
                "size": len(content),
                "lines": len(content.splitlines())
            }
        except (OSError, UnicodeDecodeError) as e:
            return {"error": f"Failed to read file: {e}"}

    def _execute_edit_file(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Execute edit_file tool."""
        path = args.get("path", "")
        old_string = args.get("old_string")
        new_string = args.get("new_string")
        start_line = args.get("start_line")

        if not path:
            return {"error": "path is required"}
        if not isinstance(old_string, str) or not isinstance(new_string, str):
            return {"error": "old_string and new_string are required"}
        if start_line is not None and (not isinstance(start_line, int) or start_line < 1):
            return {"error": f"start_line must be a positive integer, got {start_line!r}"}

        file_path = self._resolve(path)
        if not file_path.exists():
            return {"error": f"File not found: {path}"}

        if not file_path.is_file():
            return {"error": f"Not a file: {path}"}

        try:
            # newline="" keeps CRLF files byte-identical outside the edit
            with open(file_path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            return {"error": f"Failed to read file: {e}"}

        result = locate(content, old_string, new_string, start_line)
        if not result.found:
            logger.info("edit_file failed on %s: %s", path, result.reason)
            return {"error": result.error, **result.details}

        try:
            with open(file_path, "w", encoding="utf-8", newline="") as f:
                f.write(result.patched_content)
        except OSError as e:
            return {"error": f"Failed to write file: {e}"}

        logger.info("edit_file %s: %s match at line %d", path, result.strategy, result.match_line)
        return {
            "success": True,
            "path": path,
            "strategy": result.strategy,
            "match_line": result.match_line,
            "match_count": result.match_count,
            "lines": len(result.patched_content.splitlines())
        }


def create_plugin() -> FileEditPlugin:
    """Factory function to create the file edit plugin instance."""
    return FileEditPlugin()
