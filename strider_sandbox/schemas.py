"""Request models — the contract between the orchestrator and the sandbox."""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

INVALID_PROMPT_MESSAGE = "Missing or invalid 'prompt' field"

# Content blocks reach the handler as the caller sent them: only the list
# and each block's ``type`` are checked.
PromptContent = Union[str, list[dict[str, Any]]]


class TextBlock(BaseModel):
    """Plain text part of a multi-modal prompt."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: Literal["text"] = "text"
    text: str


class FileBlock(BaseModel):
    """File part of a multi-modal prompt.

    Carries either base64 ``data`` (images, PDFs, ...) or inline ``text``
    (source files, CSV, ...), tagged with its ``media_type``.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: Literal["file"] = "file"
    media_type: str
    data: str | None = None
    text: str | None = None
    name: str | None = None

    @model_validator(mode="after")
    def must_have_payload(self) -> FileBlock:
        if self.data is None and self.text is None:
            raise ValueError("A file block needs either 'data' or 'text'")
        return self


_BLOCK_TYPES: dict[str, type[BaseModel]] = {"text": TextBlock, "file": FileBlock}


def parse_block(block: dict[str, Any]) -> TextBlock | FileBlock | None:
    """Read a raw block as a ``TextBlock``/``FileBlock``, or None if it is neither."""
    block_type = block.get("type")
    model = _BLOCK_TYPES.get(block_type) if isinstance(block_type, str) else None
    if model is None:
        return None
    try:
        return model.model_validate(block)
    except ValidationError:
        return None


class PromptRequest(BaseModel):
    """Body of POST /prompt.

    ``prompt`` is a non-empty string or a non-empty list of content blocks,
    each an object with a string ``type``. ``options`` is handed to the
    prompt handler untouched.
    """

    model_config = ConfigDict(frozen=True)

    prompt: PromptContent
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("prompt")
    @classmethod
    def must_not_be_empty(cls, v: PromptContent) -> PromptContent:
        if not v:
            raise ValueError("prompt must not be empty")
        if isinstance(v, list):
            for block in v:
                if not isinstance(block.get("type"), str):
                    raise ValueError("every content block needs a string 'type'")
        return v

    @field_validator("options", mode="before")
    @classmethod
    def null_options_means_empty(cls, v: Any) -> Any:
        return {} if v is None else v
