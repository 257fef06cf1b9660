"""Commands accepted by :class:`~bleep.timer.engine.TimerEngine`.

Every command is offered to all three regions; a region with no matching
transition in its current state ignores it.

Program library
    SelectProgram, DeselectProgram, NewProgram, MoveProgram, RenameProgram,
    UpdateProgramDescription, UpdateProgramCategory, DuplicateProgram,
    DeleteProgram, ImportProgram
Blocks of the selected program
    AddBlock, MoveBlock, UpdateBlock, DeleteBlock
Playback
    Start, Pause, Reset, Next, Previous, Continue
Settings
    SetVoice, SetSoundEnabled, SetVoiceRecognitionEnabled,
    SetAllPrograms, ResetAllPrograms
Voice
    StartListening, StopListening
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


# ── program library ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class SelectProgram:
    id: str


@dataclass(frozen=True)
class DeselectProgram:
    pass


@dataclass(frozen=True)
class NewProgram:
    pass


@dataclass(frozen=True)
class MoveProgram:
    from_index: int
    to_index: int


@dataclass(frozen=True)
class RenameProgram:
    name: str


@dataclass(frozen=True)
class UpdateProgramDescription:
    description: str


@dataclass(frozen=True)
class UpdateProgramCategory:
    category: str | None


@dataclass(frozen=True)
class DuplicateProgram:
    pass


@dataclass(frozen=True)
class DeleteProgram:
    pass


@dataclass(frozen=True)
class ImportProgram:
    """Add a shared program (a Program or its JSON dict) to the library."""

    program: Any


# ── blocks ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AddBlock:
    pass


@dataclass(frozen=True)
class MoveBlock:
    from_index: int
    to_index: int


@dataclass(frozen=True)
class UpdateBlock:
    index: int
    block: Any  # a Block model or its JSON dict


@dataclass(frozen=True)
class DeleteBlock:
    index: int


# ── playback ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Previous:
    pass


@dataclass(frozen=True)
class Continue:
    pass


# ── settings ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SetVoice:
    voice_uri: str | None


@dataclass(frozen=True)
class SetSoundEnabled:
    sound_enabled: bool


@dataclass(frozen=True)
class SetVoiceRecognitionEnabled:
    enabled: bool | None


@dataclass(frozen=True)
class SetAllPrograms:
    all_programs: Any  # list of Program models or JSON dicts


@dataclass(frozen=True)
class ResetAllPrograms:
    pass


# ── voice ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StartListening:
    pass


@dataclass(frozen=True)
class StopListening:
    pass


Command = Union[
    SelectProgram, DeselectProgram, NewProgram, MoveProgram, RenameProgram,
    UpdateProgramDescription, UpdateProgramCategory, DuplicateProgram,
    DeleteProgram, ImportProgram,
    AddBlock, MoveBlock, UpdateBlock, DeleteBlock,
    Start, Pause, Reset, Next, Previous, Continue,
    SetVoice, SetSoundEnabled, SetVoiceRecognitionEnabled,
    SetAllPrograms, ResetAllPrograms,
    StartListening, StopListening,
]

# Commands that edit the program library from an idle state.
LIBRARY_EDITS = (
    NewProgram, MoveProgram, RenameProgram, UpdateProgramDescription,
    UpdateProgramCategory, DuplicateProgram, DeleteProgram, ImportProgram,
    AddBlock, MoveBlock, UpdateBlock, DeleteBlock,
)

# Library edits that need no selected program.
UNSELECTED_EDITS = (NewProgram, MoveProgram, ImportProgram)
