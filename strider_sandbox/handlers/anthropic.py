"""Reference prompt handler — streams a Claude completion as text_chunk events.

Usage::

    from strider_sandbox import SandboxServer
    from strider_sandbox.handlers.anthropic import AnthropicPromptHandler

    server = SandboxServer(AnthropicPromptHandler())
    await server.serve_forever()

Recognised options: ``system`` (system prompt) and ``model`` (overrides the
handler's default model for one request).
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage

from strider_sandbox.schemas import FileBlock, parse_block

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from strider_sandbox.emitter import EventEmitter
    from strider_sandbox.schemas import PromptContent

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


def _extract_text(content) -> str:
    """Pull the text out of a streamed chunk: a string or a list of blocks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


def to_message_content(prompt: PromptContent) -> str | list[dict[str, Any]]:
    """Convert prompt content blocks into Anthropic message content blocks.

    ``file`` blocks become Anthropic text, image or document blocks. Every
    other block (text, or a native Anthropic block) is passed through as is.
    """
    if isinstance(prompt, str):
        return prompt

    blocks: list[dict[str, Any]] = []
    for raw in prompt:
        block = parse_block(raw)
        if not isinstance(block, FileBlock):
            blocks.append(raw)
        elif block.text is not None:
            label = block.name or block.media_type
            blocks.append({"type": "text", "text": f"<file {label}>\n{block.text}\n</file>"})
        elif block.media_type.startswith("image/"):
            blocks.append({
                "type": "image",
                "source": {"type": "base64", "media_type": block.media_type, "data": block.data},
            })
        else:
            blocks.append({
                "type": "document",
                "source": {"type": "base64", "media_type": block.media_type, "data": block.data},
            })
    return blocks


class AnthropicPromptHandler:
    """Stream a single-turn Claude response through langchain-anthropic."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        system: str | None = None,
        llm: BaseChatModel | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.system = system
        self._llm = llm

    def _get_llm(self, model: str) -> BaseChatModel:
        if self._llm is not None:
            return self._llm
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise RuntimeError("ANTHROPIC_API_KEY environment variable is not set")
        return ChatAnthropic(model=model, max_tokens=self.max_tokens, api_key=api_key)

    async def __call__(
        self,
        prompt: PromptContent,
        emit: EventEmitter,
        options: dict[str, Any],
    ) -> None:
        model = options.get("model") or self.model
        llm = self._get_llm(model)

        messages = []
        system = options.get("system") or self.system
        if system:
            messages.append(SystemMessage(content=system))
        messages.append(HumanMessage(content=to_message_content(prompt)))

        logger.info(f"Streaming completion: model={model}")
        collected: list[str] = []
        async for chunk in llm.astream(messages):
            text = _extract_text(chunk.content)
            if text:
                collected.append(text)
                emit.text_chunk(text)

        emit.done("".join(collected))
