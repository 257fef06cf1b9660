"""Context updates run on transitions.

Every function here is pure: it takes a :class:`Context` and returns a new
one.  Library edits validate the records they produce and raise
:class:`InvalidProgramError` or :class:`InvalidCommandError` instead of
returning something the schema would reject, so a failed edit leaves the
engine's context untouched.

Effects (speech, tones, persistence) are not here; the engine performs
them around these updates.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Sequence, TypeVar

from ..defaults import (
    DEFAULT_PROGRAMS,
    copy_name,
    new_message_block,
    new_program as make_program,
)
from ..errors import InvalidCommandError
from ..models import (
    Block,
    PauseBlock,
    Program,
    TimerBlock,
    new_id,
    parse_block,
    parse_library,
    parse_program,
    revalidate,
)
from ..settings import parse_settings
from .states import Context
from .view import current_view, find_program

T = TypeVar("T")

STARTING_IN_PHRASE = "Starting in"

# (frequency Hz, duration s)
COUNTDOWN_BEEP = (440.0, 0.3)
FINAL_BEEP = (880.0, 0.8)
COUNTDOWN_BEEP_SECONDS = (3, 2, 1)


# ══════════════════════════════════════════════════════════════════════
#  PLAYBACK CURSOR
# ══════════════════════════════════════════════════════════════════════


def _counters_for(block: Block | None) -> tuple[int, int]:
    if isinstance(block, TimerBlock):
        return block.seconds, block.lead_seconds
    return 0, 0


def go_to_block(context: Context, index: int) -> Context:
    """Move the cursor to *index* and load that block's counters."""
    blocks = current_view(context).blocks
    block = blocks[index] if 0 <= index < len(blocks) else None
    seconds, lead = _counters_for(block)
    return replace(
        context,
        current_block_index=index,
        seconds_remaining=seconds,
        lead_seconds_remaining=lead,
    )


def reset_timer(context: Context) -> Context:
    return go_to_block(context, 0)


def next_block(context: Context) -> Context:
    return go_to_block(context, context.current_block_index + 1)


def previous_block(context: Context) -> Context:
    return go_to_block(context, context.current_block_index - 1)


def clamp_cursor(context: Context) -> Context:
    """Keep the cursor on an existing block after the blocks changed."""
    blocks = current_view(context).blocks
    index = min(context.current_block_index, max(len(blocks) - 1, 0))
    return go_to_block(context, index)


def decrement_timer(context: Context) -> Context:
    return replace(context, seconds_remaining=max(0, context.seconds_remaining - 1))


def decrement_lead(context: Context) -> Context:
    return replace(
        context,
        lead_seconds_remaining=max(0, context.lead_seconds_remaining - 1),
    )


# ══════════════════════════════════════════════════════════════════════
#  SPOKEN & AUDIBLE CUES
# ══════════════════════════════════════════════════════════════════════


def block_announcement(block: Block) -> str:
    """``"Plank, 30 seconds"``, ``"Squats, 25 reps"``, ``"Welcome"``."""
    if isinstance(block, TimerBlock):
        return f"{block.spoken_name}, {block.seconds} seconds"
    if isinstance(block, PauseBlock) and block.reps:
        return f"{block.spoken_name}, {block.reps} reps"
    return block.spoken_name


def beep_for(seconds_remaining: int) -> tuple[float, float] | None:
    if seconds_remaining in COUNTDOWN_BEEP_SECONDS:
        return COUNTDOWN_BEEP
    if seconds_remaining == 0:
        return FINAL_BEEP
    return None


# ══════════════════════════════════════════════════════════════════════
#  LIBRARY EDITS
# ══════════════════════════════════════════════════════════════════════


def _moved(items: Sequence[T], from_index: int, to_index: int) -> tuple[T, ...]:
    _check_index(items, from_index, "from_index")
    _check_index(items, to_index, "to_index")
    result = list(items)
    result.insert(to_index, result.pop(from_index))
    return tuple(result)


def _check_index(items: Sequence[Any], index: int, what: str) -> None:
    if not 0 <= index < len(items):
        raise InvalidCommandError(f"{what} {index} out of range (0..{len(items) - 1})")


def _selected(context: Context) -> Program:
    program = current_view(context).program
    if program is None:
        raise InvalidCommandError("no program selected")
    return program


def _with_program(context: Context, program: Program) -> Context:
    programs = tuple(
        program if existing.id == program.id else existing
        for existing in context.all_programs
    )
    return replace(context, all_programs=programs)


def _with_blocks(context: Context, blocks: Sequence[Block]) -> Context:
    program = revalidate(_selected(context), blocks=tuple(blocks))
    return clamp_cursor(_with_program(context, program))


def _unused_name(context: Context, name: str) -> str:
    taken = {program.name for program in context.all_programs}
    return copy_name(name) if name in taken else name


# ── programs ──────────────────────────────────────────────────────────


def select_program(context: Context, program_id: str) -> Context:
    if find_program(context, program_id) is None:
        raise InvalidCommandError(f"unknown program {program_id!r}")
    return replace(context, selected_program_id=program_id)


def deselect_program(context: Context) -> Context:
    return replace(context, selected_program_id=None)


def new_program(context: Context) -> Context:
    """Append an empty program and select it."""
    program = make_program()
    return replace(
        context,
        all_programs=context.all_programs + (program,),
        selected_program_id=program.id,
    )


def move_program(context: Context, from_index: int, to_index: int) -> Context:
    return replace(
        context,
        all_programs=_moved(context.all_programs, from_index, to_index),
    )


def rename_program(context: Context, name: str) -> Context:
    return _with_program(context, revalidate(_selected(context), name=name))


def update_program_description(context: Context, description: str) -> Context:
    return _with_program(
        context, revalidate(_selected(context), description=description)
    )


def update_program_category(context: Context, category: str | None) -> Context:
    return _with_program(
        context, revalidate(_selected(context), category=category or None)
    )


def duplicate_program(context: Context) -> Context:
    """Insert a copy right after the selected program.  Selection stays."""
    original = _selected(context)
    copy = revalidate(
        original,
        id=new_id(),
        name=copy_name(original.name),
        blocks=tuple(block.model_copy(update={"id": new_id()}) for block in original.blocks),
    )
    programs = list(context.all_programs)
    position = [p.id for p in programs].index(original.id)
    programs.insert(position + 1, copy)
    return replace(context, all_programs=tuple(programs))


def delete_program(context: Context) -> Context:
    program = _selected(context)
    return replace(
        context,
        all_programs=tuple(p for p in context.all_programs if p.id != program.id),
        selected_program_id=None,
    )


def import_program(context: Context, data: Any) -> Context:
    """Append a shared program under a fresh id.

    A program whose name is already in the library is renamed
    ``"Copy of <name>"``.
    """
    program = parse_program(data)
    program = revalidate(
        program, id=new_id(), name=_unused_name(context, program.name)
    )
    return replace(context, all_programs=context.all_programs + (program,))


# ── blocks ────────────────────────────────────────────────────────────


def add_block(context: Context) -> Context:
    return _with_blocks(context, _selected(context).blocks + (new_message_block(),))


def move_block(context: Context, from_index: int, to_index: int) -> Context:
    return _with_blocks(context, _moved(_selected(context).blocks, from_index, to_index))


def update_block(context: Context, index: int, data: Any) -> Context:
    blocks = list(_selected(context).blocks)
    _check_index(blocks, index, "index")
    blocks[index] = parse_block(data)
    return _with_blocks(context, blocks)


def delete_block(context: Context, index: int) -> Context:
    blocks = list(_selected(context).blocks)
    _check_index(blocks, index, "index")
    del blocks[index]
    return _with_blocks(context, blocks)


# ══════════════════════════════════════════════════════════════════════
#  SETTINGS & WHOLE-LIBRARY REPLACEMENT
# ══════════════════════════════════════════════════════════════════════


def _with_settings(context: Context, **changes: Any) -> Context:
    settings = parse_settings({**context.settings.model_dump(), **changes})
    return replace(context, settings=settings)


def set_voice(context: Context, voice_uri: str | None) -> Context:
    return _with_settings(context, voice_uri=voice_uri)


def set_sound_enabled(context: Context, sound_enabled: bool) -> Context:
    return _with_settings(context, sound_enabled=sound_enabled)


def set_voice_recognition_enabled(context: Context, enabled: bool | None) -> Context:
    return _with_settings(context, voice_recognition_enabled=enabled)


def _with_library(context: Context, programs: tuple[Program, ...]) -> Context:
    context = replace(context, all_programs=programs)
    if find_program(context, context.selected_program_id) is None:
        context = replace(context, selected_program_id=None)
    return context


def set_all_programs(context: Context, data: Any) -> Context:
    return _with_library(context, parse_library(data))


def reset_all_programs(context: Context) -> Context:
    return _with_library(context, DEFAULT_PROGRAMS)
