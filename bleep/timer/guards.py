"""Pure predicates deciding whether a transition may fire."""

from __future__ import annotations

from ..errors import InvalidProgramError
from ..models import MessageBlock, PauseBlock, TimerBlock, revalidate
from .states import Context
from .view import current_view


def has_program_selected(context: Context) -> bool:
    return context.selected_program_id is not None


def is_valid(context: Context) -> bool:
    """Selected program exists, passes validation and has something to play."""
    program = current_view(context).program
    if program is None:
        return False
    try:
        revalidate(program)
    except InvalidProgramError:
        return False
    return bool(program.enabled_blocks)


def timer_finished(context: Context) -> bool:
    view = current_view(context)
    return (
        view.program is not None
        and view.seconds_remaining <= 0
        and view.current_block_index >= len(view.blocks)
    )


def block_finished(context: Context) -> bool:
    view = current_view(context)
    return (
        view.program is not None
        and view.seconds_remaining <= 0
        and view.current_block_index <= len(view.blocks)
    )


def lead_countdown_finished(context: Context) -> bool:
    return current_view(context).lead_seconds_remaining <= 0


def is_timer_block_with_lead_in(context: Context) -> bool:
    block = current_view(context).current_block
    return isinstance(block, TimerBlock) and block.lead_seconds > 0


def is_timer_block(context: Context) -> bool:
    return isinstance(current_view(context).current_block, TimerBlock)


def is_pause_block(context: Context) -> bool:
    return isinstance(current_view(context).current_block, PauseBlock)


def is_message_block(context: Context) -> bool:
    return isinstance(current_view(context).current_block, MessageBlock)


def is_disabled_block(context: Context) -> bool:
    block = current_view(context).current_block
    return block is not None and block.disabled


def previous_block_available(context: Context) -> bool:
    view = current_view(context)
    return len(view.blocks) > 0 and view.current_block_index > 0


def next_block_available(context: Context) -> bool:
    view = current_view(context)
    return view.current_block_index < len(view.blocks) - 1
