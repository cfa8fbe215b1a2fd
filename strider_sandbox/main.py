"""Default sandbox process — echoes prompts back, or streams Claude replies.

Run:
  python -m strider_sandbox
  # or: strider-sandbox

Set ``STRIDER_HANDLER=anthropic`` (and ``ANTHROPIC_API_KEY``) to answer with
Claude. Embedding applications build their own ``SandboxServer`` with their
own prompt handler instead.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from strider_sandbox.config import SandboxConfig, load_config
from strider_sandbox.emitter import EventEmitter
from strider_sandbox.handlers.anthropic import DEFAULT_MODEL, AnthropicPromptHandler
from strider_sandbox.schemas import FileBlock, PromptContent, TextBlock, parse_block
from strider_sandbox.server import SandboxServer

logger = logging.getLogger(__name__)


def prompt_text(prompt: PromptContent) -> str:
    """Flatten a prompt to text.

    File blocks become ``[file: <media_type>]``, other non-text blocks
    ``[<type>]``.
    """
    if isinstance(prompt, str):
        return prompt
    parts = []
    for raw in prompt:
        block = parse_block(raw)
        if isinstance(block, TextBlock):
            parts.append(block.text)
        elif isinstance(block, FileBlock):
            parts.append(f"[file: {block.media_type}]")
        else:
            parts.append(f"[{raw['type']}]")
    return "\n".join(parts)


async def echo_prompt(prompt: PromptContent, emit: EventEmitter, options: dict[str, Any]) -> None:
    emit.text_chunk(f"Echo: {prompt_text(prompt)}")
    emit.done()


def make_health_check(config: SandboxConfig):
    async def health_check() -> dict[str, Any]:
        return {
            "status": "ok",
            "sandbox_id": config.sandbox_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return health_check


def select_prompt_handler(config: SandboxConfig):
    """Pick the prompt handler named by ``config.handler``."""
    if config.handler == "anthropic":
        return AnthropicPromptHandler(model=config.model or DEFAULT_MODEL)
    return echo_prompt


def build_server(config: SandboxConfig) -> SandboxServer:
    logger.info(f"Prompt handler: {config.handler}")
    return SandboxServer(
        select_prompt_handler(config),
        make_health_check(config),
        port=config.port,
        host=config.host,
        debug=config.debug,
        on_ready=lambda: logger.info(
            "Endpoints: GET /health (health check), POST /prompt (NDJSON stream)"
        ),
    )


def main() -> None:
    config = load_config()
    logging.basicConfig(level=logging.DEBUG if config.debug else logging.INFO)

    logger.info(f"Starting strider-sandbox server on {config.host}:{config.port}")
    server = build_server(config)
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
