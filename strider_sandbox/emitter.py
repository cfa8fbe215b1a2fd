"""Event emitter handed to the prompt handler.

Emitter calls are synchronous and fire-and-forget: each one serializes a
single event and queues the line for the response body. The queue is
drained by the streaming response in FIFO order, so lines reach the client
exactly in the order the handler emitted them.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol, runtime_checkable

from strider_sandbox.events import (
    AgentEvent,
    CustomEvent,
    DoneEvent,
    ErrorEvent,
    TextChunkEvent,
    ToolDoneEvent,
    ToolStartEvent,
    serialize,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class EventEmitter(Protocol):
    """What a prompt handler can push onto the open response stream."""

    def text_chunk(self, text: str) -> None: ...

    def tool_start(
        self, id: str, name: str, arguments: dict[str, Any] | None = None
    ) -> None: ...

    def tool_done(self, id: str, result: str) -> None: ...

    def error(self, message: str) -> None: ...

    def done(self, result: str | None = None) -> None: ...

    def custom(self, type: str, **fields: Any) -> None: ...

    def emit(self, event: AgentEvent) -> None: ...


class QueueEmitter:
    """Emitter that feeds serialized NDJSON lines into an asyncio queue.

    ``None`` on the queue marks end-of-stream. Once closed, further calls
    are dropped (logged at debug level) rather than raised into the handler.
    """

    def __init__(self, queue: asyncio.Queue[str | None] | None = None) -> None:
        self.queue: asyncio.Queue[str | None] = queue if queue is not None else asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: AgentEvent) -> None:
        if self._closed:
            logger.debug(f"Dropping '{event.type}' event: stream already closed")
            return
        self.queue.put_nowait(serialize(event))

    def text_chunk(self, text: str) -> None:
        self.emit(TextChunkEvent(text=text))

    def tool_start(
        self, id: str, name: str, arguments: dict[str, Any] | None = None
    ) -> None:
        self.emit(ToolStartEvent(id=id, name=name, arguments=arguments))

    def tool_done(self, id: str, result: str) -> None:
        self.emit(ToolDoneEvent(id=id, result=result))

    def error(self, message: str) -> None:
        self.emit(ErrorEvent(message=message))

    def done(self, result: str | None = None) -> None:
        self.emit(DoneEvent(result=result))

    def custom(self, type: str, **fields: Any) -> None:
        self.emit(CustomEvent(type=type, **fields))

    def close(self) -> None:
        """Mark end-of-stream. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.queue.put_nowait(None)
