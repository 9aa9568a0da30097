"""Helpers for pair splitting and token estimation."""

import json
import math
from dataclasses import dataclass
from typing import List

from ..types import Message, Role


# Per-message overhead added by the token estimate, in characters
MESSAGE_OVERHEAD_CHARS = 20
CHARS_PER_TOKEN = 4


@dataclass
class Pair:
    """A user message and every non-user message that follows it.

    The first pair of a conversation may lack a user message when the
    history starts with assistant or tool messages.
    """

    messages: List[Message]
    """All messages in this pair, in conversation order."""


def split_into_pairs(messages: List[Message]) -> List[Pair]:
    """Split a (system-free) message list into pairs.

    A pair starts at each user message and absorbs everything up to the
    next user message. A leading run of non-user messages forms a pair of
    its own.
    """
    pairs: List[Pair] = []
    current: List[Message] = []

    for message in messages:
        if message.role == Role.USER and current:
            pairs.append(Pair(messages=current))
            current = []
        current.append(message)

    if current:
        pairs.append(Pair(messages=current))

    return pairs


def flatten_pairs(pairs: List[Pair]) -> List[Message]:
    """Flatten pairs back into a message list, preserving order."""
    result: List[Message] = []
    for pair in pairs:
        result.extend(pair.messages)
    return result


def serialize_tool_calls(message: Message) -> str:
    """Compact JSON of a message's tool calls, as sent on the wire."""
    return json.dumps(
        [tc.to_dict() for tc in message.tool_calls or []],
        separators=(",", ":"),
        ensure_ascii=False,
    )


def estimate_message_chars(message: Message) -> int:
    chars = len(message.content or "")
    if message.tool_calls is not None:
        chars += len(serialize_tool_calls(message))
    return chars + MESSAGE_OVERHEAD_CHARS


def estimate_tokens(messages: List[Message]) -> int:
    """Estimate the token count of a message list.

    ``ceil((content chars + serialized tool_calls chars + 20 per message) / 4)``.
    This is a cheap approximation, not a tokenizer.
    """
    total = sum(estimate_message_chars(message) for message in messages)
    return math.ceil(total / CHARS_PER_TOKEN)
