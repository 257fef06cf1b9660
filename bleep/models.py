"""Pydantic models for programs, blocks and completions.

A program is an ordered sequence of blocks.  Three block kinds exist:

``timer``    Count down ``seconds``, optionally preceded by a spoken
             lead-in of ``lead_seconds``.
``pause``    Hold until the user continues.  ``reps`` is informational
             (announced, not counted).
``message``  Speak ``message`` and move on.

All models are frozen.  Edits go through ``model_copy`` followed by
:func:`revalidate`, so a record that exists is always a valid record.
Persisted JSON uses camelCase keys (``leadSeconds``, ``programId``).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .errors import InvalidProgramError


def new_id() -> str:
    """Short random identifier for programs, blocks and completions."""
    return uuid.uuid4().hex[:8]


class FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ── blocks ───────────────────────────────────────────────────────────────


class _BlockBase(FrozenModel):
    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(min_length=1)
    pronunciation: str | None = None
    disabled: bool = False

    @property
    def spoken_name(self) -> str:
        return self.pronunciation or self.name


class TimerBlock(_BlockBase):
    type: Literal["timer"] = "timer"
    seconds: int = Field(ge=1)
    lead_seconds: int = Field(default=3, ge=0)


class PauseBlock(_BlockBase):
    type: Literal["pause"] = "pause"
    reps: int | None = Field(default=None, ge=0)

    @field_validator("reps")
    @classmethod
    def _zero_means_hold(cls, value: int | None) -> int | None:
        return value or None


class MessageBlock(_BlockBase):
    type: Literal["message"] = "message"
    message: str = Field(min_length=1)


Block = Annotated[
    Union[TimerBlock, PauseBlock, MessageBlock],
    Field(discriminator="type"),
]


# ── programs ─────────────────────────────────────────────────────────────


class Program(FrozenModel):
    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    category: str | None = None
    blocks: tuple[Block, ...] = ()

    @model_validator(mode="after")
    def _check_blocks(self) -> "Program":
        if self.blocks and all(block.disabled for block in self.blocks):
            raise ValueError("at least one block must be enabled")
        ids = [block.id for block in self.blocks]
        if len(ids) != len(set(ids)):
            raise ValueError("block ids must be unique within a program")
        return self

    @property
    def enabled_blocks(self) -> tuple[Block, ...]:
        return tuple(block for block in self.blocks if not block.disabled)


class Completion(FrozenModel):
    """One program played through to the end."""

    id: str = Field(default_factory=new_id)
    program_id: str
    completed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


# ── parsing helpers ──────────────────────────────────────────────────────

_BLOCK_ADAPTER: TypeAdapter[Any] = TypeAdapter(Block)
_LIBRARY_ADAPTER: TypeAdapter[tuple[Program, ...]] = TypeAdapter(
    tuple[Program, ...]
)

M = TypeVar("M", bound=BaseModel)


def _fail(what: str, exc: ValidationError) -> InvalidProgramError:
    return InvalidProgramError(f"invalid {what}: {exc}")


def parse_block(data: Any) -> TimerBlock | PauseBlock | MessageBlock:
    """Validate a block given as a model instance or a JSON-like dict."""
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    try:
        return _BLOCK_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise _fail("block", exc) from exc


def parse_program(data: Any) -> Program:
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    try:
        return Program.model_validate(data)
    except ValidationError as exc:
        raise _fail("program", exc) from exc


def parse_library(data: Any) -> tuple[Program, ...]:
    """Validate a whole program library (the ``allPrograms`` record)."""
    if isinstance(data, (list, tuple)):
        data = [
            item.model_dump(by_alias=True) if isinstance(item, BaseModel) else item
            for item in data
        ]
    try:
        programs = _LIBRARY_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise _fail("program library", exc) from exc
    ids = [program.id for program in programs]
    if len(ids) != len(set(ids)):
        raise InvalidProgramError("invalid program library: duplicate program ids")
    return programs


def dump_library(programs: tuple[Program, ...]) -> list[dict[str, Any]]:
    """JSON-ready form of a library, camelCase keys, ``None`` dropped."""
    return [
        program.model_dump(mode="json", by_alias=True, exclude_none=True)
        for program in programs
    ]


def revalidate(model: M, **changes: Any) -> M:
    """Copy *model* with *changes* applied and run full validation."""
    updated = model.model_copy(update=changes) if changes else model
    try:
        return type(updated).model_validate(updated.model_dump(by_alias=True))
    except ValidationError as exc:
        raise _fail(type(model).__name__, exc) from exc
