"""Provider-agnostic conversation types.

These mirror the OpenAI-style chat wire format that the agent loop sends to
its model provider: a flat list of messages where assistant messages may
carry tool calls and tool messages answer them by id.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(str, Enum):
    """Message role in a conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCall:
    """A tool call requested by the model.

    Attributes:
        id: Unique identifier for this call (used for result correlation).
        name: Name of the tool to call.
        arguments: Raw JSON text of the arguments, as sent by the provider.
    """
    id: str
    name: str
    arguments: str = "{}"

    def parse_arguments(self) -> Dict[str, Any]:
        """Decode the JSON argument payload.

        Raises:
            ValueError: If the payload is not valid JSON or not an object.
        """
        args = json.loads(self.arguments or "{}")
        if not isinstance(args, dict):
            raise ValueError(f"Tool call {self.id} arguments are not a JSON object")
        return args

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ToolCall':
        """Create from a wire dict (``{"id", "function": {"name", "arguments"}}``)."""
        function = data.get("function") or {}
        arguments = function.get("arguments", "{}")
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(
            id=data.get("id", ""),
            name=function.get("name") or "unknown",
            arguments=arguments,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(frozen=True)
class Message:
    """A message in a conversation.

    Messages are frozen: anything that rewrites a message builds a new one
    with ``dataclasses.replace`` so callers comparing object identity can
    trust that an unchanged object has unchanged content.

    Attributes:
        role: The role of the message sender.
        content: Text content (may be empty for tool-call-only messages).
        tool_calls: Tool calls requested by an assistant message.
        tool_call_id: For tool messages, the id of the call being answered.
        name: For tool messages, the name of the tool that produced it.
        reasoning: Optional reasoning text returned by the provider.
    """
    role: Role
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None
    tool_call_id: Optional[str] = None
    name: Optional[str] = None
    reasoning: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Message':
        """Create from an OpenAI-style wire dict."""
        tool_calls = data.get("tool_calls")
        return cls(
            role=Role(data["role"]),
            content=data.get("content"),
            tool_calls=[ToolCall.from_dict(tc) for tc in tool_calls] if tool_calls else None,
            tool_call_id=data.get("tool_call_id"),
            name=data.get("name"),
            reasoning=data.get("reasoning_content", data.get("reasoning")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to an OpenAI-style wire dict, omitting unset fields."""
        data: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            data["name"] = self.name
        if self.reasoning is not None:
            data["reasoning_content"] = self.reasoning
        return data


@dataclass
class ToolSchema:
    """Provider-agnostic tool declaration.

    Attributes:
        name: Unique tool name (e.g., 'editFile').
        description: Human-readable description of what the tool does.
        parameters: JSON Schema object describing the tool's parameters.
    """
    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=dict)
