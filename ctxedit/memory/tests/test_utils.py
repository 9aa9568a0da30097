"""Tests for memory utility functions."""

import math

from ctxedit.memory import estimate_tokens, flatten_pairs, split_into_pairs
from ctxedit.types import Message, Role, ToolCall


def make_message(role: Role, text=None, **kwargs) -> Message:
    """Helper to create Message objects."""
    return Message(role=role, content=text, **kwargs)


class TestSplitIntoPairs:
    def test_empty(self):
        assert split_into_pairs([]) == []

    def test_pairs_start_at_user_messages(self):
        messages = [
            make_message(Role.USER, "u0"),
            make_message(Role.ASSISTANT, "a0"),
            make_message(Role.TOOL, "t0", tool_call_id="1"),
            make_message(Role.USER, "u1"),
        ]
        pairs = split_into_pairs(messages)
        assert [len(p.messages) for p in pairs] == [3, 1]
        assert all(p.messages[0].role == Role.USER for p in pairs)

    def test_leading_non_user_pair(self):
        pairs = split_into_pairs([
            make_message(Role.ASSISTANT, "a"),
            make_message(Role.USER, "u"),
        ])
        assert [p.messages[0].role for p in pairs] == [Role.ASSISTANT, Role.USER]

    def test_flatten_restores_order(self):
        messages = [make_message(Role.USER, f"u{i}") for i in range(4)]
        assert flatten_pairs(split_into_pairs(messages)) == messages


class TestEstimateTokens:
    def test_empty(self):
        assert estimate_tokens([]) == 0

    def test_content_and_overhead(self):
        assert estimate_tokens([make_message(Role.USER, "abcd")]) == 6
        assert estimate_tokens([make_message(Role.USER, "a"), make_message(Role.ASSISTANT)]) == 11

    def test_tool_calls_count_as_serialized_json(self):
        serialized = '[{"id":"1","type":"function","function":{"name":"f","arguments":"{}"}}]'
        message = make_message(Role.ASSISTANT, "hi", tool_calls=[ToolCall(id="1", name="f")])
        assert estimate_tokens([message]) == math.ceil((2 + len(serialized) + 20) / 4)
