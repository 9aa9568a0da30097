"""Tests for the memory manager primitives."""

import json

import pytest

from ctxedit.memory import (
    MemoryConfig,
    compress_tool_result,
    extract_file_path,
    is_file_content,
    prepare_messages_with_memory,
    process_messages_for_memory,
)
from ctxedit.types import Message, Role, ToolCall


PY_FILE = "import os\n\n\nclass Loader:\n    def load(self):\n        pass\n" + "# filler\n" * 150


def make_call(call_id: str, name: str, args: dict) -> ToolCall:
    """Helper to create ToolCall objects with JSON arguments."""
    return ToolCall(id=call_id, name=name, arguments=json.dumps(args))


def make_user(text: str) -> Message:
    return Message(role=Role.USER, content=text)


def make_assistant(text: str = "", tool_calls=None) -> Message:
    return Message(role=Role.ASSISTANT, content=text, tool_calls=tool_calls)


def make_tool(call_id: str, content: str, name=None) -> Message:
    return Message(role=Role.TOOL, content=content, tool_call_id=call_id, name=name)


def make_history(num_pairs: int, system: bool = True) -> list:
    """Create a conversation with N user/assistant pairs."""
    history = [Message(role=Role.SYSTEM, content="You are helpful.")] if system else []
    for i in range(num_pairs):
        history.append(make_user(f"u{i}"))
        history.append(make_assistant(f"a{i}"))
    return history


def make_read_pair(call_id: str, path: str, content: str) -> list:
    """Create a user turn in which the assistant reads one file."""
    return [
        make_user(f"look at {path}"),
        make_assistant(tool_calls=[make_call(call_id, "read_file", {"path": path})]),
        make_tool(call_id, content),
        make_assistant("done"),
    ]


class TestIsFileContent:
    def test_file_tool_always_counts(self):
        assert is_file_content("read_file", "plain words")

    def test_source_fingerprints(self):
        assert is_file_content("grep", "import os\nprint(1)")
        assert is_file_content("grep", "notes\nexport default function App() {}")
        assert is_file_content("grep", "x\ndef run(args):\n    pass")

    def test_plain_text(self):
        assert not is_file_content("grep", "hello world\nnothing to see")

    def test_custom_file_tools(self):
        config = MemoryConfig(file_tools=["cat"])
        assert is_file_content("cat", "plain", config)
        assert not is_file_content("read_file", "plain", config)


class TestExtractFilePath:
    def test_key_priority(self):
        assert extract_file_path("t", {"path": "b", "filePath": "a"}) == "a"
        assert extract_file_path("t", {"file": "d", "file_path": "c"}) == "c"

    def test_skips_empty_and_non_string(self):
        assert extract_file_path("t", {"filePath": "", "path": 3, "file": "x.py"}) == "x.py"

    def test_none_when_missing(self):
        assert extract_file_path("t", {}) is None
        assert extract_file_path("t", {"query": "foo"}) is None


class TestCompressToolResult:
    def test_short_result_unchanged(self):
        result = "x" * 800
        compressed = compress_tool_result("read_file", {"path": "a.py"}, result)
        assert compressed.compressed == result
        assert not compressed.is_skeleton
        assert compressed.file_path is None

    def test_file_read_becomes_skeleton(self):
        compressed = compress_tool_result("read_file", {"path": "src/loader.py"}, PY_FILE)
        assert compressed.is_skeleton
        assert compressed.file_path == "src/loader.py"
        assert compressed.skeleton.startswith("[src/loader.py] ")
        assert "Loader:L4{load:L5}" in compressed.skeleton
        assert compressed.compressed == f"[File read: src/loader.py]\n{compressed.skeleton}"
        assert len(compressed.compressed) < len(PY_FILE)

    def test_skeleton_failure_falls_back_to_truncation(self, monkeypatch, caplog):
        def broken_extractor(content, path):
            raise RuntimeError("boom")

        monkeypatch.setattr("ctxedit.memory.manager.extract_skeleton", broken_extractor)
        with caplog.at_level("WARNING", logger="ctxedit.memory.manager"):
            compressed = compress_tool_result("read_file", {"path": "src/loader.py"}, PY_FILE)

        omitted = len(PY_FILE) - 800
        assert compressed.compressed == PY_FILE[:800] + f"...[truncated: {omitted} characters]"
        assert not compressed.is_skeleton
        assert compressed.skeleton is None
        assert compressed.file_path is None
        assert "Skeleton extraction failed for src/loader.py" in caplog.text

    def test_code_from_unknown_tool(self):
        result = "def foo():\n" + "    pass\n" * 200
        compressed = compress_tool_result("fetch", {"file_path": "x.py"}, result)
        assert compressed.is_skeleton
        assert "fn:[foo:L1]" in compressed.compressed

    def test_non_file_result_truncated(self):
        compressed = compress_tool_result("run_command", {}, "y" * 1000)
        assert compressed.compressed == "y" * 800 + "...[truncated: 200 characters]"
        assert not compressed.is_skeleton

    def test_file_tool_without_path_truncated(self):
        compressed = compress_tool_result("read_file", {"query": "x"}, "z" * 900)
        assert compressed.compressed.endswith("...[truncated: 100 characters]")

    def test_max_length_override(self):
        compressed = compress_tool_result("run", {}, "abcdefghij", max_length=4)
        assert compressed.compressed == "abcd...[truncated: 6 characters]"

    def test_config_threshold(self):
        config = MemoryConfig(max_tool_result_length=5)
        compressed = compress_tool_result("run", {}, "abcdefg", config)
        assert compressed.compressed == "abcde...[truncated: 2 characters]"


class TestProcessMessagesForMemory:
    def test_sliding_window_keeps_last_pairs(self):
        history = make_history(20)
        state = process_messages_for_memory(history)

        assert state.system_prompt is history[0]
        assert len(state.recent_messages) == 30
        assert state.recent_messages[0].content == "u5"
        assert state.recent_messages[-1].content == "a19"

    def test_window_larger_than_history(self):
        history = make_history(3)
        state = process_messages_for_memory(history, max_pairs=10)
        assert state.recent_messages == history[1:]

    def test_without_system_prompt(self):
        history = make_history(2, system=False)
        state = process_messages_for_memory(history)
        assert state.system_prompt is None
        assert len(state.recent_messages) == 4

    def test_leading_non_user_messages_form_a_pair(self):
        history = [make_assistant("hello"), make_user("u0"), make_assistant("a0")]
        state = process_messages_for_memory(history, max_pairs=1)
        assert [m.content for m in state.recent_messages] == ["u0", "a0"]

        state = process_messages_for_memory(history, max_pairs=2)
        assert [m.content for m in state.recent_messages] == ["hello", "u0", "a0"]

    def test_empty_conversation(self):
        state = process_messages_for_memory([])
        assert state.system_prompt is None
        assert state.recent_messages == []
        assert state.tool_history == []
        assert state.file_summaries == {}

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            process_messages_for_memory(make_history(2), max_pairs=0)

    def test_tool_results_compressed_without_mutating_input(self):
        history = make_read_pair("c1", "src/loader.py", PY_FILE)
        original = history[2]

        state = process_messages_for_memory(history)

        assert history[2] is original
        assert original.content == PY_FILE
        compressed = state.recent_messages[2]
        assert compressed is not original
        assert compressed.role == Role.TOOL
        assert compressed.tool_call_id == "c1"
        assert compressed.content.startswith("[File read: src/loader.py]\n")
        assert "src/loader.py" in state.file_summaries
        assert compressed.content.endswith(state.file_summaries["src/loader.py"])

    def test_short_tool_result_keeps_content(self):
        history = make_read_pair("c1", "a.py", "tiny")
        state = process_messages_for_memory(history)
        assert state.recent_messages[2].content == "tiny"
        assert state.file_summaries == {}

    def test_tool_history_covers_whole_conversation(self):
        history = (
            make_read_pair("c1", "old.py", "x")
            + make_read_pair("c2", "new.py", "y")
        )
        state = process_messages_for_memory(history, max_pairs=1)

        assert [m.tool_call_id for m in state.recent_messages if m.role == Role.TOOL] == ["c2"]
        assert [(r.name, r.file_path) for r in state.tool_history] == [
            ("read_file", "old.py"),
            ("read_file", "new.py"),
        ]
        assert all(r.timestamp > 0 for r in state.tool_history)

    def test_latest_skeleton_per_file_wins(self):
        updated = PY_FILE.replace("def load", "def reload")
        history = (
            make_read_pair("c1", "src/loader.py", PY_FILE)
            + make_read_pair("c2", "src/loader.py", updated)
        )
        state = process_messages_for_memory(history)
        assert "reload:L5" in state.file_summaries["src/loader.py"]

    def test_malformed_arguments(self):
        history = [
            make_user("go"),
            make_assistant(tool_calls=[
                ToolCall(id="bad", name="run", arguments="{not json"),
                make_call("good", "run", {"cmd": "ls"}),
            ]),
            make_tool("bad", "q" * 1000),
            make_tool("good", "ok"),
        ]
        state = process_messages_for_memory(history)

        assert [r.args for r in state.tool_history] == [{"cmd": "ls"}]
        assert state.recent_messages[2].content.endswith("...[truncated: 200 characters]")

    def test_tool_name_from_message(self):
        history = [make_user("go"), make_tool("orphan", PY_FILE, name="read_file")]
        state = process_messages_for_memory(history)
        # No arguments are known, so there is no path to summarize under
        assert state.recent_messages[1].content.endswith(f"...[truncated: {len(PY_FILE) - 800} characters]")

    def test_assistant_messages_are_kept_as_is(self):
        history = make_history(2)
        state = process_messages_for_memory(history)
        assert all(a is b for a, b in zip(state.recent_messages, history[1:]))


class TestPrepareMessagesWithMemory:
    def test_returns_same_list(self):
        history = make_history(40)
        assert prepare_messages_with_memory(history) is history
        assert prepare_messages_with_memory(history, context_length=1000) is history

    def test_large_conversation_passes_through(self, caplog):
        history = [make_user("x" * 400000)]
        with caplog.at_level("INFO", logger="ctxedit.memory.manager"):
            result = prepare_messages_with_memory(history, context_length=128000)
        assert result is history
        assert "Pass-through" in caplog.text
        assert "compression threshold" in caplog.text
