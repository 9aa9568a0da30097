"""File edit plugin.

Exposes ``read_file`` and ``edit_file`` tools to the model. ``edit_file``
applies a search-and-replace through the fuzzy patch locator, so edits
proposed against slightly stale text still land in the right place.

Example usage:

    from ctxedit.plugins.file_edit import create_plugin

    plugin = create_plugin()
    plugin.initialize({"base_dir": "/path/to/project"})

    executors = plugin.get_executors()
    result = executors["edit_file"]({
        "path": "src/app.py",
        "old_string": "return 1",
        "new_string": "return 2",
    })
"""

from .plugin import FileEditPlugin, create_plugin

__all__ = ["FileEditPlugin", "create_plugin"]
