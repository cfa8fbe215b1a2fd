from __future__ import annotations

import json

from strider_sandbox.emitter import QueueEmitter


def drain(emitter: QueueEmitter) -> list[str]:
    """Return every queued NDJSON line, stopping at the end-of-stream marker."""
    lines: list[str] = []
    while not emitter.queue.empty():
        line = emitter.queue.get_nowait()
        if line is None:
            break
        lines.append(line)
    return lines


def ndjson(body: str) -> list[dict]:
    assert body == "" or body.endswith("\n")
    return [json.loads(line) for line in body.splitlines()]


async def hello_world(prompt, emit, options):
    emit.text_chunk("Hello ")
    emit.text_chunk("World!")
    emit.done()
