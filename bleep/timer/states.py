"""Engine context, state enumeration and snapshot.

Each region's active state is a member of its own enum.  Member values
are the fully qualified state paths, so two regions never share a name
and "is the engine in X" is an exact comparison instead of a substring
search.

Program region
--------------
::

    loading
    no_programs
    loaded
    ├── program_not_selected
    │   ├── idle
    │   └── saving
    └── program_selected
        ├── stopped
        │   ├── idle
        │   └── saving
        ├── running
        │   ├── announcing_block
        │   ├── announcing_starting_in
        │   ├── announcing_countdown
        │   ├── counting_down
        │   ├── awaiting_continue
        │   └── announcing_message
        └── paused
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..models import Program
from ..settings import Settings


# ── path helpers ─────────────────────────────────────────────────────────


def ancestors(path: str) -> list[str]:
    """``"a.b.c"`` → ``["a", "a.b", "a.b.c"]``."""
    parts = path.split(".")
    return [".".join(parts[: i + 1]) for i in range(len(parts))]


class _PathState(Enum):
    @property
    def path(self) -> str:
        return self.value

    def within(self, node: str) -> bool:
        """True when *node* is this state or one of its ancestors."""
        return node in ancestors(self.value)


# ── regions ──────────────────────────────────────────────────────────────

_SELECTED = "loaded.program_selected"
_RUNNING = f"{_SELECTED}.running"


class ProgramState(_PathState):
    LOADING = "loading"
    NO_PROGRAMS = "no_programs"
    NOT_SELECTED_IDLE = "loaded.program_not_selected.idle"
    NOT_SELECTED_SAVING = "loaded.program_not_selected.saving"
    STOPPED_IDLE = f"{_SELECTED}.stopped.idle"
    STOPPED_SAVING = f"{_SELECTED}.stopped.saving"
    ANNOUNCING_BLOCK = f"{_RUNNING}.announcing_block"
    ANNOUNCING_STARTING_IN = f"{_RUNNING}.announcing_starting_in"
    ANNOUNCING_COUNTDOWN = f"{_RUNNING}.announcing_countdown"
    COUNTING_DOWN = f"{_RUNNING}.counting_down"
    AWAITING_CONTINUE = f"{_RUNNING}.awaiting_continue"
    ANNOUNCING_MESSAGE = f"{_RUNNING}.announcing_message"
    PAUSED = f"{_SELECTED}.paused"

    @property
    def is_loaded(self) -> bool:
        return self.within("loaded")

    @property
    def is_program_selected(self) -> bool:
        return self.within(_SELECTED)

    @property
    def is_stopped(self) -> bool:
        return self.within(f"{_SELECTED}.stopped")

    @property
    def is_running(self) -> bool:
        return self.within(_RUNNING)

    @property
    def is_paused(self) -> bool:
        return self is ProgramState.PAUSED

    @property
    def is_saving(self) -> bool:
        return self in (ProgramState.STOPPED_SAVING, ProgramState.NOT_SELECTED_SAVING)


class SettingsState(_PathState):
    LOADING = "loading"
    NO_SETTINGS = "no_settings"
    LOADED = "loaded"
    SAVING_SETTINGS = "saving_settings"
    SAVING_PROGRAMS = "saving_programs"
    RESETTING_PROGRAMS = "resetting_programs"


class VoiceState(_PathState):
    NOT_LISTENING = "not_listening"
    LISTENING = "listening"


# The same save pipeline on either side of the selection boundary.
SAVING_COUNTERPART = {
    ProgramState.STOPPED_SAVING: ProgramState.NOT_SELECTED_SAVING,
    ProgramState.NOT_SELECTED_SAVING: ProgramState.STOPPED_SAVING,
}


# ── context & snapshot ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Context:
    """Everything the engine knows.  Replaced, never mutated in place."""

    all_programs: tuple[Program, ...] = ()
    settings: Settings = field(default_factory=Settings)
    selected_program_id: str | None = None
    current_block_index: int = 0
    seconds_remaining: int = 0
    lead_seconds_remaining: int = 0


@dataclass(frozen=True)
class Snapshot:
    """Read-only view handed to screens."""

    context: Context
    program: ProgramState
    settings: SettingsState
    voice: VoiceState

    def matches(self, state: ProgramState | SettingsState | VoiceState) -> bool:
        if isinstance(state, ProgramState):
            return self.program is state
        if isinstance(state, SettingsState):
            return self.settings is state
        return self.voice is state

    @property
    def value(self) -> dict[str, str]:
        return {
            "program": self.program.path,
            "settings": self.settings.path,
            "voice": self.voice.path,
        }

    # ── shortcuts over the program region ─────────────────────────────

    @property
    def is_running(self) -> bool:
        return self.program.is_running

    @property
    def is_paused(self) -> bool:
        return self.program.is_paused

    @property
    def is_stopped(self) -> bool:
        return self.program.is_stopped

    @property
    def is_saving(self) -> bool:
        return self.program.is_saving

    @property
    def is_program_selected(self) -> bool:
        return self.program.is_program_selected

    @property
    def is_loaded(self) -> bool:
        return self.program.is_loaded and self.settings not in (
            SettingsState.LOADING,
            SettingsState.NO_SETTINGS,
        )
