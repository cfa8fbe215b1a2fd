from __future__ import annotations

import json

import pytest
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage

from strider_sandbox.emitter import QueueEmitter
from strider_sandbox.handlers.anthropic import AnthropicPromptHandler, _extract_text, to_message_content

from tests.utils import drain


def _fake_llm(*replies: str) -> GenericFakeChatModel:
    return GenericFakeChatModel(messages=iter([AIMessage(content=r) for r in replies]))


@pytest.mark.asyncio
async def test_streams_text_chunks_then_done() -> None:
    handler = AnthropicPromptHandler(llm=_fake_llm("Hello there world"))
    emit = QueueEmitter()

    await handler("hi", emit, {"system": "Be brief."})

    events = [json.loads(line) for line in drain(emit)]
    chunks = [e["text"] for e in events if e["type"] == "text_chunk"]
    assert len(chunks) > 1
    assert "".join(chunks) == "Hello there world"
    assert events[-1] == {"type": "done", "result": "Hello there world"}


@pytest.mark.asyncio
async def test_missing_api_key_raises() -> None:
    handler = AnthropicPromptHandler()
    with pytest.raises(RuntimeError, match="ANTHROPIC_API_KEY"):
        await handler("hi", QueueEmitter(), {})


def test_extract_text_from_blocks() -> None:
    assert _extract_text("plain") == "plain"
    assert _extract_text([{"type": "text", "text": "a", "index": 0}, {"type": "tool_use", "id": "x"}]) == "a"
    assert _extract_text(None) == ""


def test_content_blocks_map_to_anthropic_blocks() -> None:
    blocks = [
        {"type": "text", "text": "Compare these", "cache_control": {"type": "ephemeral"}},
        {"type": "file", "media_type": "image/jpeg", "data": "/9j/"},
        {"type": "file", "media_type": "application/pdf", "data": "JVBERi0="},
        {"type": "file", "media_type": "text/markdown", "text": "# Notes", "name": "notes.md"},
        {"type": "image", "source": {"type": "url", "url": "https://example.com/a.png"}},
    ]

    assert to_message_content("plain") == "plain"
    assert to_message_content(blocks) == [
        {"type": "text", "text": "Compare these", "cache_control": {"type": "ephemeral"}},
        {"type": "image", "source": {"type": "base64", "media_type": "image/jpeg", "data": "/9j/"}},
        {"type": "document", "source": {"type": "base64", "media_type": "application/pdf", "data": "JVBERi0="}},
        {"type": "text", "text": "<file notes.md>\n# Notes\n</file>"},
        {"type": "image", "source": {"type": "url", "url": "https://example.com/a.png"}},
    ]
