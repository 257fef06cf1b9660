"""The selected program and the step under the cursor.

Guards and actions never index ``context.all_programs`` themselves; they
go through :func:`current_view` so there is exactly one definition of
"the current block".
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import Block, Program
from .states import Context


@dataclass(frozen=True)
class View:
    program: Program | None
    blocks: tuple[Block, ...]
    current_block_index: int
    current_block: Block | None  # None past the last block
    seconds_remaining: int
    lead_seconds_remaining: int


def find_program(context: Context, program_id: str | None) -> Program | None:
    if program_id is None:
        return None
    for program in context.all_programs:
        if program.id == program_id:
            return program
    return None


def current_view(context: Context) -> View:
    program = find_program(context, context.selected_program_id)
    blocks = program.blocks if program is not None else ()
    index = context.current_block_index
    block = blocks[index] if 0 <= index < len(blocks) else None
    return View(
        program=program,
        blocks=blocks,
        current_block_index=index,
        current_block=block,
        seconds_remaining=context.seconds_remaining,
        lead_seconds_remaining=context.lead_seconds_remaining,
    )
