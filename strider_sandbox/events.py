"""Wire format — the NDJSON event protocol streamed back from /prompt.

Every event is one JSON object on one line. ``type`` is always present and
is the discriminator consumers branch on:

    text_chunk  — incremental text output
    tool_start  — a named tool call began (``id`` correlates with tool_done)
    tool_done   — the tool call with the same ``id`` finished
    error       — something went wrong; does not by itself end the stream
    done        — processing finished (``result`` optional)

Anything else is a handler-defined ``CustomEvent``.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict


class TextChunkEvent(BaseModel):
    """Incremental text output."""

    type: Literal["text_chunk"] = "text_chunk"
    text: str


class ToolStartEvent(BaseModel):
    """A tool execution started."""

    type: Literal["tool_start"] = "tool_start"
    id: str
    name: str
    arguments: dict[str, Any] | None = None


class ToolDoneEvent(BaseModel):
    """A tool execution completed."""

    type: Literal["tool_done"] = "tool_done"
    id: str
    result: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


class DoneEvent(BaseModel):
    type: Literal["done"] = "done"
    result: str | None = None


class CustomEvent(BaseModel):
    """Handler-defined event: any ``type`` plus arbitrary fields."""

    model_config = ConfigDict(extra="allow")

    type: str


AgentEvent = Union[
    TextChunkEvent,
    ToolStartEvent,
    ToolDoneEvent,
    ErrorEvent,
    DoneEvent,
    CustomEvent,
]

EVENT_TYPES: dict[str, type[BaseModel]] = {
    "text_chunk": TextChunkEvent,
    "tool_start": ToolStartEvent,
    "tool_done": ToolDoneEvent,
    "error": ErrorEvent,
    "done": DoneEvent,
}


def serialize(event: AgentEvent) -> str:
    """Render an event as a single NDJSON line, newline included.

    Built-in variants drop unset optional fields instead of writing null.
    Custom events keep every field they carry.
    """
    if isinstance(event, CustomEvent):
        return event.model_dump_json() + "\n"
    return event.model_dump_json(exclude_none=True) + "\n"


def parse_event(line: str | bytes) -> AgentEvent:
    """Parse one NDJSON line back into an event model.

    Unknown ``type`` values become ``CustomEvent``. Raises ``ValueError`` if
    the line is not a JSON object with a string ``type``.
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid event line: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ValueError("Event must be a JSON object with a string 'type' field")

    model = EVENT_TYPES.get(data["type"], CustomEvent)
    return model.model_validate(data)
