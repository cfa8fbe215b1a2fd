"""Strider Sandbox — NDJSON streaming prompt server for agent sandboxes.

A minimal HTTP server: POST /prompt hands the prompt to an injected handler
and streams the events it emits back as newline-delimited JSON.

    from strider_sandbox import SandboxServer

    async def on_prompt(prompt, emit, options):
        emit.text_chunk("Hello ")
        emit.text_chunk("World!")
        emit.done()

    server = SandboxServer(on_prompt)
    await server.start()
"""

from strider_sandbox.emitter import EventEmitter, QueueEmitter
from strider_sandbox.events import (
    AgentEvent,
    CustomEvent,
    DoneEvent,
    ErrorEvent,
    TextChunkEvent,
    ToolDoneEvent,
    ToolStartEvent,
    parse_event,
    serialize,
)
from strider_sandbox.handlers import HealthCheckHandler, PromptHandler
from strider_sandbox.schemas import FileBlock, PromptContent, PromptRequest, TextBlock
from strider_sandbox.server import SandboxServer, create_app

__version__ = "0.1.0"

__all__ = [
    "AgentEvent",
    "CustomEvent",
    "DoneEvent",
    "ErrorEvent",
    "EventEmitter",
    "FileBlock",
    "HealthCheckHandler",
    "PromptContent",
    "PromptHandler",
    "PromptRequest",
    "QueueEmitter",
    "SandboxServer",
    "TextBlock",
    "TextChunkEvent",
    "ToolDoneEvent",
    "ToolStartEvent",
    "create_app",
    "parse_event",
    "serialize",
]
