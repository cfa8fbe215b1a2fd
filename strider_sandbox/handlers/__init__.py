"""Handler contracts — the callbacks an embedding application plugs in.

Any async callable with the right signature satisfies them; the sandbox
never depends on a particular implementation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from strider_sandbox.emitter import EventEmitter
    from strider_sandbox.schemas import PromptContent


class PromptHandler(Protocol):
    """Consume a prompt and push events through ``emit``.

    May emit zero or more events. Returning ends the stream; raising ends it
    after a single ``error`` event carrying the exception message.
    """

    async def __call__(
        self,
        prompt: PromptContent,
        emit: EventEmitter,
        options: dict[str, Any],
    ) -> None: ...


class HealthCheckHandler(Protocol):
    """Return the JSON body for GET /health; passed through verbatim."""

    async def __call__(self) -> dict[str, Any]: ...
