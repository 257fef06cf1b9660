"""Timer engine for Bleep: three state machines sharing one context.

Regions
-------
program   Loads the library, plays the selected program, and runs every
          library edit through a save before accepting the next one.
settings  Loads/saves user settings and whole-library replacements.
voice     Wraps the optional speech-to-command listener.

See :mod:`bleep.timer.states` for the full program-region tree.

Playback
--------
stopped.idle ──START──▶ running.announcing_block
announcing_block ──spoken──▶ announcing_starting_in   (timer with lead-in)
                           ▶ counting_down            (timer)
                           ▶ awaiting_continue        (pause)
                           ▶ announcing_message       (message)
announcing_starting_in ──spoken──▶ announcing_countdown ──lead 0──▶ counting_down
counting_down ──0 s──▶ announcing_block (next block)
awaiting_continue ──CONTINUE──▶ announcing_block (next block)
announcing_message ──spoken──▶ announcing_block (next block)
running ──past last block──▶ stopped   (celebration)
running ──PAUSE──▶ paused ──START──▶ the running state that was paused
running | paused ──RESET──▶ stopped

Run-to-completion
-----------------
:meth:`TimerEngine.send` queues the command and drains the queue.  Each
event is offered to all three regions, eventless transitions are settled,
and only then are the services of the states still active started.
Every service (ticker, utterance, load/save, listener) belongs to a scope
token created when its state is entered and revoked when it is left; a
completion carrying a revoked token is dropped.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from itertools import takewhile
from typing import Any, Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from ..defaults import DEFAULT_PROGRAMS, PROGRAMS_KEY
from ..errors import BleepError, InvalidProgramError, InvalidSettingsError
from ..gateways.base import (
    Persistence,
    Speech,
    Tone,
    UnavailableVoiceListener,
    VoiceListener,
)
from ..models import Completion, MessageBlock, Program, dump_library, parse_library
from ..settings import SETTINGS_KEY, default_settings, dump_settings, parse_settings
from . import actions, guards
from .commands import (
    LIBRARY_EDITS,
    UNSELECTED_EDITS,
    AddBlock,
    Command,
    Continue,
    DeleteBlock,
    DeleteProgram,
    DeselectProgram,
    DuplicateProgram,
    ImportProgram,
    MoveBlock,
    MoveProgram,
    Next,
    NewProgram,
    Pause,
    Previous,
    RenameProgram,
    Reset,
    ResetAllPrograms,
    SelectProgram,
    SetAllPrograms,
    SetSoundEnabled,
    SetVoice,
    SetVoiceRecognitionEnabled,
    Start,
    StartListening,
    StopListening,
    UpdateBlock,
    UpdateProgramCategory,
    UpdateProgramDescription,
)
from .states import (
    SAVING_COUNTERPART,
    Context,
    ProgramState,
    SettingsState,
    Snapshot,
    VoiceState,
    ancestors,
)
from .view import View, current_view

logger = logging.getLogger(__name__)

TICK_INTERVAL_MS = 1000
CONTINUE_WORDS = ("continue", "next")

_STOPPED = "loaded.program_selected.stopped"
_MAX_EVENTLESS_STEPS = 1000

# Library edits: command type → pure context update.
_EDITS: dict[type, Callable[[Context, Any], Context]] = {
    NewProgram: lambda c, e: actions.new_program(c),
    MoveProgram: lambda c, e: actions.move_program(c, e.from_index, e.to_index),
    RenameProgram: lambda c, e: actions.rename_program(c, e.name),
    UpdateProgramDescription: lambda c, e: actions.update_program_description(c, e.description),
    UpdateProgramCategory: lambda c, e: actions.update_program_category(c, e.category),
    DuplicateProgram: lambda c, e: actions.duplicate_program(c),
    DeleteProgram: lambda c, e: actions.delete_program(c),
    ImportProgram: lambda c, e: actions.import_program(c, e.program),
    AddBlock: lambda c, e: actions.add_block(c),
    MoveBlock: lambda c, e: actions.move_block(c, e.from_index, e.to_index),
    UpdateBlock: lambda c, e: actions.update_block(c, e.index, e.block),
    DeleteBlock: lambda c, e: actions.delete_block(c, e.index),
}


# ── internal events ───────────────────────────────────────────────────────


class _Scope:
    """Lifetime of the services started by one state entry."""

    __slots__ = ("alive",)

    def __init__(self) -> None:
        self.alive = True


@dataclass(frozen=True)
class _ServiceDone:
    scope: _Scope
    handler: Callable[..., None]
    args: tuple


@dataclass(frozen=True)
class _Tick:
    scope: _Scope


@dataclass(frozen=True)
class _Boot:
    pass


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine(QObject):
    """Qt-based interval timer: playback, library editing, settings, voice.

    Signals
    -------
    state_changed(snapshot: Snapshot)
        Emitted after every command that changed a state or the context.
    tick(seconds_remaining: int)
        Emitted on every second of a block's main countdown.
    celebration(program_id: str)
        Emitted once when a program has been played to the end.
    load_failed(key: str, message: str)
        Stored data under *key* was unreadable; defaults were written and
        the raw value copied to ``<key>.corrupt``.
    """

    state_changed = pyqtSignal(object)
    tick = pyqtSignal(int)
    celebration = pyqtSignal(str)
    load_failed = pyqtSignal(str, str)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        persistence: Persistence,
        speech: Speech,
        tone: Tone,
        voice_listener: VoiceListener | None = None,
    ) -> None:
        super().__init__(parent)

        # ── gateways ──────────────────────────────────────────────────
        self._persistence = persistence
        self._speech = speech
        self._tone = tone
        self._listener = voice_listener or UnavailableVoiceListener()

        # ── regions ───────────────────────────────────────────────────
        self._context = Context()
        self._program = ProgramState.LOADING
        self._settings_state = SettingsState.LOADING
        self._voice = VoiceState.NOT_LISTENING
        self._paused_from: ProgramState | None = None
        self._booted = False

        # ── service scopes ────────────────────────────────────────────
        self._program_scope = _Scope()
        self._settings_scope = _Scope()
        self._voice_scope = _Scope()
        self._ticker_scope: _Scope | None = None

        # ── dispatch ──────────────────────────────────────────────────
        self._queue: deque[Any] = deque()
        self._processing = False
        self._pending_starts: list[tuple[_Scope, Callable[[], None]]] = []

        # ── Qt timer ──────────────────────────────────────────────────
        self._ticker = QTimer(self)
        self._ticker.setInterval(TICK_INTERVAL_MS)
        self._ticker.timeout.connect(self._on_tick)

        self._program_entry: dict[str, Callable[[], None]] = {
            ProgramState.LOADING.path: self._enter_loading_programs,
            ProgramState.NO_PROGRAMS.path: self._enter_no_programs,
            ProgramState.NOT_SELECTED_SAVING.path: self._enter_saving,
            _STOPPED: self._enter_stopped,
            ProgramState.STOPPED_SAVING.path: self._enter_saving,
            ProgramState.ANNOUNCING_BLOCK.path: self._enter_announcing_block,
            ProgramState.ANNOUNCING_STARTING_IN.path: self._enter_announcing_starting_in,
            ProgramState.ANNOUNCING_COUNTDOWN.path: self._enter_announcing_countdown,
            ProgramState.COUNTING_DOWN.path: self._enter_counting_down,
            ProgramState.AWAITING_CONTINUE.path: self._enter_awaiting_continue,
            ProgramState.ANNOUNCING_MESSAGE.path: self._enter_announcing_message,
        }
        self._program_exit: dict[str, Callable[[], None]] = {
            ProgramState.ANNOUNCING_BLOCK.path: self._speech.cancel_all,
            ProgramState.ANNOUNCING_STARTING_IN.path: self._speech.cancel_all,
            ProgramState.ANNOUNCING_COUNTDOWN.path: self._stop_ticking,
            ProgramState.COUNTING_DOWN.path: self._stop_ticking,
            ProgramState.AWAITING_CONTINUE.path: self._exit_awaiting_continue,
            ProgramState.ANNOUNCING_MESSAGE.path: self._speech.cancel_all,
        }
        self._settings_entry: dict[SettingsState, Callable[[], None]] = {
            SettingsState.LOADING: self._enter_loading_settings,
            SettingsState.NO_SETTINGS: self._enter_no_settings,
            SettingsState.SAVING_SETTINGS: self._enter_saving_settings,
            SettingsState.SAVING_PROGRAMS: self._enter_saving_programs,
            SettingsState.RESETTING_PROGRAMS: self._enter_resetting_programs,
        }

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def context(self) -> Context:
        return self._context

    @property
    def view(self) -> View:
        return current_view(self._context)

    @property
    def state(self) -> ProgramState:
        """Active state of the program region."""
        return self._program

    @property
    def settings_state(self) -> SettingsState:
        return self._settings_state

    @property
    def voice_state(self) -> VoiceState:
        return self._voice

    @property
    def snapshot(self) -> Snapshot:
        return Snapshot(
            context=self._context,
            program=self._program,
            settings=self._settings_state,
            voice=self._voice,
        )

    def matches(self, state: ProgramState | SettingsState | VoiceState) -> bool:
        return self.snapshot.matches(state)

    def voices(self) -> list[str]:
        return self._speech.voices()

    def completions(self, program_id: str | None = None) -> list[Completion]:
        return self._persistence.completions(program_id)

    # ══════════════════════════════════════════════════════════════════
    #  COMMANDS
    # ══════════════════════════════════════════════════════════════════

    def boot(self) -> None:
        """Enter the initial states: start loading the library and settings."""
        if self._booted:
            return
        self._booted = True
        self._post(_Boot())

    def send(self, command: Command) -> None:
        """Apply *command* to every region, then drain anything it raised.

        Raises :class:`~bleep.errors.BleepError` when a library edit or
        import is invalid; the context is unchanged in that case.
        """
        self._post(command)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — dispatch
    # ══════════════════════════════════════════════════════════════════

    def _post(self, event: Any) -> None:
        """Queue a command or an internal event and run the queue to completion."""
        self._queue.append(event)
        if self._processing:
            return

        self._processing = True
        before = self.snapshot
        error: BleepError | None = None
        try:
            while self._queue:
                event = self._queue.popleft()
                try:
                    self._process(event)
                except BleepError as exc:
                    logger.info("rejected %s: %s", type(event).__name__, exc)
                    error = error or exc
                self._settle()
                self._start_services()
        finally:
            self._processing = False

        after = self.snapshot
        if after != before:
            self.state_changed.emit(after)
        if error is not None:
            raise error

    def _process(self, event: Any) -> None:
        if isinstance(event, _ServiceDone):
            if event.scope.alive:
                event.handler(*event.args)
            return
        if isinstance(event, _Tick):
            if event.scope.alive:
                self._tick()
            return
        if isinstance(event, _Boot):
            self._enter_program_node(ProgramState.LOADING.path)
            self._enter_settings(SettingsState.LOADING)
            return

        handled = self._program_event(event)
        handled = self._settings_event(event) or handled
        handled = self._voice_event(event) or handled
        if not handled:
            logger.debug(
                "ignored %s in %s", type(event).__name__, self.snapshot.value
            )

    def _raise(self, event: Any) -> None:
        self._queue.append(event)

    def _defer(self, scope: _Scope, start: Callable[[], None]) -> None:
        """Start *start* once the current event has settled, if still in scope."""
        self._pending_starts.append((scope, start))

    def _start_services(self) -> None:
        starts, self._pending_starts = self._pending_starts, []
        for scope, start in starts:
            if scope.alive:
                start()

    def _callback(self, scope: _Scope, handler: Callable[..., None]) -> Callable[..., None]:
        def deliver(*args: Any) -> None:
            self._post(_ServiceDone(scope, handler, args))
        return deliver

    def _settle(self) -> None:
        for _ in range(_MAX_EVENTLESS_STEPS):
            if not self._eventless_step():
                return
        raise RuntimeError("eventless transitions did not settle")

    def _eventless_step(self) -> bool:
        state, ctx = self._program, self._context

        if state.is_loaded:
            selected = guards.has_program_selected(ctx)
            if state.is_program_selected and not selected:
                self._go(SAVING_COUNTERPART.get(state, ProgramState.NOT_SELECTED_IDLE))
                return True
            if not state.is_program_selected and selected:
                self._go(SAVING_COUNTERPART.get(state, ProgramState.STOPPED_IDLE))
                return True

        if state is ProgramState.ANNOUNCING_BLOCK and guards.is_disabled_block(ctx):
            self._go(ProgramState.ANNOUNCING_BLOCK, action=actions.next_block)
            return True
        if state is ProgramState.ANNOUNCING_COUNTDOWN and guards.lead_countdown_finished(ctx):
            self._go(ProgramState.COUNTING_DOWN)
            return True
        if state is ProgramState.COUNTING_DOWN and guards.block_finished(ctx):
            self._go(ProgramState.ANNOUNCING_BLOCK, action=actions.next_block)
            return True
        if state.is_running and guards.timer_finished(ctx):
            self._go(ProgramState.STOPPED_IDLE, action=self._celebrate)
            return True

        if (
            self._voice is VoiceState.LISTENING
            and ctx.settings.voice_recognition_enabled is False
        ):
            self._go_voice(VoiceState.NOT_LISTENING)
            return True
        return False

    # ══════════════════════════════════════════════════════════════════
    #  PROGRAM REGION — transitions
    # ══════════════════════════════════════════════════════════════════

    def _go(
        self,
        target: ProgramState,
        *,
        reenter: str | None = None,
        action: Callable[[Context], Context] | None = None,
    ) -> None:
        """Exit up to the common ancestor, run *action*, enter down to *target*.

        A transition to the current leaf re-enters it.  *reenter* names an
        ancestor that is exited and entered again even though it is shared.
        """
        source = self._program
        src, dst = ancestors(source.path), ancestors(target.path)
        shared = [a for a, _ in takewhile(lambda pair: pair[0] == pair[1], zip(src, dst))]
        if source is target:
            shared = shared[:-1]
        if reenter is not None and reenter in shared:
            shared = shared[: shared.index(reenter)]

        self._program_scope.alive = False
        for node in reversed(src):
            if node not in shared:
                exit_handler = self._program_exit.get(node)
                if exit_handler is not None:
                    exit_handler()

        if action is not None:
            self._context = action(self._context)

        logger.debug("program: %s -> %s", source.path, target.path)
        self._program = target
        self._program_scope = _Scope()
        for node in dst:
            if node not in shared:
                self._enter_program_node(node)

    def _enter_program_node(self, node: str) -> None:
        handler = self._program_entry.get(node)
        if handler is not None:
            handler()

    def _program_event(self, event: Any) -> bool:
        state, ctx = self._program, self._context

        if state is ProgramState.NOT_SELECTED_IDLE:
            if isinstance(event, SelectProgram):
                self._context = actions.select_program(ctx, event.id)
                return True
            if isinstance(event, UNSELECTED_EDITS):
                self._context = _EDITS[type(event)](ctx, event)
                self._go(ProgramState.NOT_SELECTED_SAVING)
                return True
            return False

        if state is ProgramState.STOPPED_IDLE:
            return self._stopped_event(event)

        if state is ProgramState.STOPPED_SAVING and isinstance(event, (Start, Next, Previous)):
            return self._stopped_event(event)

        if state.is_saving:
            if isinstance(event, LIBRARY_EDITS + (SelectProgram, DeselectProgram)):
                logger.debug("dropped %s: save in progress", type(event).__name__)
            return False

        if state.is_running:
            return self._running_event(event)

        if state is ProgramState.PAUSED:
            return self._paused_event(event)

        return False

    def _stopped_event(self, event: Any) -> bool:
        ctx = self._context

        if isinstance(event, SelectProgram):
            if event.id != ctx.selected_program_id:
                self._context = actions.select_program(ctx, event.id)
                self._go(ProgramState.STOPPED_IDLE, reenter=_STOPPED)
            return True
        if isinstance(event, DeselectProgram):
            self._context = actions.deselect_program(ctx)
            return True
        if isinstance(event, LIBRARY_EDITS):
            updated = _EDITS[type(event)](ctx, event)
            switched = (
                updated.selected_program_id is not None
                and updated.selected_program_id != ctx.selected_program_id
            )
            self._context = updated
            self._go(
                ProgramState.STOPPED_SAVING,
                reenter=_STOPPED if switched else None,
            )
            return True
        if isinstance(event, Start):
            if not guards.is_valid(ctx):
                logger.debug("START refused: program %s is not playable", ctx.selected_program_id)
                return False
            self._go(ProgramState.ANNOUNCING_BLOCK)
            return True
        if isinstance(event, Next) and guards.next_block_available(ctx):
            self._context = actions.next_block(ctx)
            return True
        if isinstance(event, Previous) and guards.previous_block_available(ctx):
            self._context = actions.previous_block(ctx)
            return True
        return False

    def _running_event(self, event: Any) -> bool:
        state, ctx = self._program, self._context

        if isinstance(event, Pause):
            self._paused_from = state
            self._go(ProgramState.PAUSED)
            return True
        if isinstance(event, Reset):
            self._go(ProgramState.STOPPED_IDLE)
            return True
        if isinstance(event, Next) and guards.next_block_available(ctx):
            self._go(ProgramState.ANNOUNCING_BLOCK, action=actions.next_block)
            return True
        if isinstance(event, Previous) and guards.previous_block_available(ctx):
            self._go(ProgramState.ANNOUNCING_BLOCK, action=actions.previous_block)
            return True
        if isinstance(event, Continue) and state is ProgramState.AWAITING_CONTINUE:
            self._go(ProgramState.ANNOUNCING_BLOCK, action=actions.next_block)
            return True
        return False

    def _paused_event(self, event: Any) -> bool:
        ctx = self._context

        if isinstance(event, Start):
            resume_to = self._paused_from or ProgramState.ANNOUNCING_BLOCK
            self._paused_from = None
            self._go(resume_to)
            return True
        if isinstance(event, Reset):
            self._go(ProgramState.STOPPED_IDLE)
            return True
        if isinstance(event, Next) and guards.next_block_available(ctx):
            self._stop_at(ctx.current_block_index + 1)
            return True
        if isinstance(event, Previous) and guards.previous_block_available(ctx):
            self._stop_at(ctx.current_block_index - 1)
            return True
        return False

    def _stop_at(self, index: int) -> None:
        """Stop, then move the cursor (stopped's entry resets it to 0)."""
        self._go(ProgramState.STOPPED_IDLE)
        self._context = actions.go_to_block(self._context, index)

    # ══════════════════════════════════════════════════════════════════
    #  PROGRAM REGION — entry / exit
    # ══════════════════════════════════════════════════════════════════

    def _enter_loading_programs(self) -> None:
        scope = self._program_scope
        self._defer(scope, lambda: self._persistence.load(
            PROGRAMS_KEY, self._callback(scope, self._on_programs_loaded)
        ))

    def _on_programs_loaded(self, value: Any) -> None:
        if value is None:
            logger.info("no stored programs; writing the default library")
            self._go(ProgramState.NO_PROGRAMS)
            return
        try:
            programs = parse_library(value)
        except InvalidProgramError as exc:
            self._surface_corrupt(PROGRAMS_KEY, value, exc)
            self._go(ProgramState.NO_PROGRAMS)
            return
        self._context = replace(self._context, all_programs=programs)
        logger.info("loaded %d programs", len(programs))
        self._go(ProgramState.NOT_SELECTED_IDLE)

    def _enter_no_programs(self) -> None:
        scope = self._program_scope
        self._defer(scope, lambda: self._persistence.save(
            PROGRAMS_KEY,
            dump_library(DEFAULT_PROGRAMS),
            self._callback(scope, lambda: self._go(ProgramState.LOADING)),
        ))

    def _enter_saving(self) -> None:
        scope = self._program_scope
        self._defer(scope, lambda: self._persistence.save(
            PROGRAMS_KEY,
            dump_library(self._context.all_programs),
            self._callback(scope, self._after_save),
        ))

    def _after_save(self) -> None:
        if self._program is ProgramState.STOPPED_SAVING:
            self._go(ProgramState.STOPPED_IDLE)
        else:
            self._go(ProgramState.NOT_SELECTED_IDLE)

    def _enter_stopped(self) -> None:
        self._paused_from = None
        self._context = actions.reset_timer(self._context)
        self._speech.cancel_all()

    def _enter_announcing_block(self) -> None:
        scope = self._program_scope

        def start() -> None:
            block = current_view(self._context).current_block
            if block is not None:
                self._say(
                    actions.block_announcement(block),
                    self._callback(scope, self._after_block_announced),
                )

        self._defer(scope, start)

    def _after_block_announced(self) -> None:
        ctx = self._context
        if guards.is_timer_block_with_lead_in(ctx):
            self._go(ProgramState.ANNOUNCING_STARTING_IN)
        elif guards.is_pause_block(ctx):
            self._go(ProgramState.AWAITING_CONTINUE)
        elif guards.is_message_block(ctx):
            self._go(ProgramState.ANNOUNCING_MESSAGE)
        elif guards.is_timer_block(ctx):
            self._go(ProgramState.COUNTING_DOWN)

    def _enter_announcing_starting_in(self) -> None:
        scope = self._program_scope
        self._defer(scope, lambda: self._say(
            actions.STARTING_IN_PHRASE,
            self._callback(scope, lambda: self._go(ProgramState.ANNOUNCING_COUNTDOWN)),
        ))

    def _enter_announcing_countdown(self) -> None:
        scope = self._program_scope

        def start() -> None:
            lead = self._context.lead_seconds_remaining
            if lead > 0:
                self._say(str(lead))
            self._start_ticking(scope)

        self._defer(scope, start)

    def _enter_counting_down(self) -> None:
        scope = self._program_scope
        self._defer(scope, lambda: self._start_ticking(scope))

    def _enter_awaiting_continue(self) -> None:
        self._raise(StartListening())

    def _exit_awaiting_continue(self) -> None:
        self._raise(StopListening())

    def _enter_announcing_message(self) -> None:
        scope = self._program_scope

        def start() -> None:
            block = current_view(self._context).current_block
            if isinstance(block, MessageBlock):
                self._say(block.message, self._callback(scope, self._after_message))

        self._defer(scope, start)

    def _after_message(self) -> None:
        self._go(ProgramState.ANNOUNCING_BLOCK, action=actions.next_block)

    def _celebrate(self, context: Context) -> Context:
        program_id = context.selected_program_id
        if program_id is not None:
            self._persistence.record_completion(Completion(program_id=program_id))
            logger.info("program %s completed", program_id)
            self.celebration.emit(program_id)
        return context

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — ticker, speech, tones
    # ══════════════════════════════════════════════════════════════════

    def _start_ticking(self, scope: _Scope) -> None:
        self._ticker_scope = scope
        self._ticker.start()

    def _stop_ticking(self) -> None:
        self._ticker.stop()
        self._ticker_scope = None
        self._speech.cancel_all()

    def _on_tick(self) -> None:
        if self._ticker_scope is not None:
            self._post(_Tick(self._ticker_scope))

    def _tick(self) -> None:
        if self._program is ProgramState.COUNTING_DOWN:
            self._context = actions.decrement_timer(self._context)
            remaining = self._context.seconds_remaining
            self.tick.emit(remaining)
            beep = actions.beep_for(remaining)
            if beep is not None and self._context.settings.sound_enabled:
                self._tone.play(*beep)
        elif self._program is ProgramState.ANNOUNCING_COUNTDOWN:
            self._context = actions.decrement_lead(self._context)
            lead = self._context.lead_seconds_remaining
            if lead > 0:
                self._say(str(lead))

    def _say(self, text: str, callback: Callable[[], None] | None = None) -> None:
        self._speech.say(
            text,
            self._context.settings.voice_uri,
            callback or (lambda: None),
        )

    def _surface_corrupt(self, key: str, value: Any, exc: BleepError) -> None:
        logger.warning("stored %r is unreadable, keeping a copy: %s", key, exc)
        self._persistence.save(f"{key}.corrupt", value)
        self.load_failed.emit(key, str(exc))

    # ══════════════════════════════════════════════════════════════════
    #  SETTINGS REGION
    # ══════════════════════════════════════════════════════════════════

    def _enter_settings(self, target: SettingsState) -> None:
        self._settings_scope.alive = False
        logger.debug("settings: %s -> %s", self._settings_state.path, target.path)
        self._settings_state = target
        self._settings_scope = _Scope()
        handler = self._settings_entry.get(target)
        if handler is not None:
            handler()

    def _settings_event(self, event: Any) -> bool:
        if self._settings_state is not SettingsState.LOADED:
            return False
        ctx = self._context

        if isinstance(event, SetVoice):
            self._context = actions.set_voice(ctx, event.voice_uri)
        elif isinstance(event, SetSoundEnabled):
            self._context = actions.set_sound_enabled(ctx, event.sound_enabled)
        elif isinstance(event, SetVoiceRecognitionEnabled):
            self._context = actions.set_voice_recognition_enabled(ctx, event.enabled)
        elif isinstance(event, SetAllPrograms):
            self._context = actions.set_all_programs(ctx, event.all_programs)
            self._stop_if_replaced(current_view(ctx).program)
            self._enter_settings(SettingsState.SAVING_PROGRAMS)
            return True
        elif isinstance(event, ResetAllPrograms):
            self._enter_settings(SettingsState.RESETTING_PROGRAMS)
            return True
        else:
            return False
        self._enter_settings(SettingsState.SAVING_SETTINGS)
        return True

    def _enter_loading_settings(self) -> None:
        scope = self._settings_scope
        self._defer(scope, lambda: self._persistence.load(
            SETTINGS_KEY, self._callback(scope, self._on_settings_loaded)
        ))

    def _on_settings_loaded(self, value: Any) -> None:
        if value is None:
            logger.info("no stored settings; writing defaults")
            self._enter_settings(SettingsState.NO_SETTINGS)
            return
        try:
            settings = parse_settings(value)
        except InvalidSettingsError as exc:
            self._surface_corrupt(SETTINGS_KEY, value, exc)
            self._enter_settings(SettingsState.NO_SETTINGS)
            return
        self._context = replace(self._context, settings=settings)
        self._enter_settings(SettingsState.LOADED)

    def _enter_no_settings(self) -> None:
        scope = self._settings_scope
        defaults = default_settings(self._speech.default_voice())
        self._defer(scope, lambda: self._persistence.save(
            SETTINGS_KEY,
            dump_settings(defaults),
            self._callback(scope, lambda: self._enter_settings(SettingsState.LOADING)),
        ))

    def _enter_saving_settings(self) -> None:
        scope = self._settings_scope
        self._defer(scope, lambda: self._persistence.save(
            SETTINGS_KEY,
            dump_settings(self._context.settings),
            self._callback(scope, lambda: self._enter_settings(SettingsState.LOADED)),
        ))

    def _enter_saving_programs(self) -> None:
        scope = self._settings_scope
        self._defer(scope, lambda: self._persistence.save(
            PROGRAMS_KEY,
            dump_library(self._context.all_programs),
            self._callback(scope, lambda: self._enter_settings(SettingsState.LOADED)),
        ))

    def _enter_resetting_programs(self) -> None:
        playing = current_view(self._context).program
        self._context = actions.reset_all_programs(self._context)
        self._stop_if_replaced(playing)
        self._enter_saving_programs()

    def _stop_if_replaced(self, playing: Program | None) -> None:
        """Stop playback when the library swap changed the selected program.

        A missing program is left to the selection check in ``_settle``.
        """
        if not (self._program.is_running or self._program.is_paused):
            return
        program = current_view(self._context).program
        if program is None or program == playing:
            return
        logger.info("program %s replaced during playback; stopping", program.id)
        self._go(ProgramState.STOPPED_IDLE)

    # ══════════════════════════════════════════════════════════════════
    #  VOICE REGION
    # ══════════════════════════════════════════════════════════════════

    def _go_voice(self, target: VoiceState) -> None:
        self._voice_scope.alive = False
        if self._voice is VoiceState.LISTENING:
            self._listener.stop()
        logger.debug("voice: %s -> %s", self._voice.path, target.path)
        self._voice = target
        self._voice_scope = _Scope()
        if target is VoiceState.LISTENING:
            scope = self._voice_scope
            self._defer(scope, lambda: self._listener.start(
                self._callback(scope, self._on_phrase),
                self._callback(scope, lambda: self._raise(StopListening())),
            ))

    def _voice_event(self, event: Any) -> bool:
        if self._voice is VoiceState.NOT_LISTENING and isinstance(event, StartListening):
            if not self._listener.available:
                return False
            if self._context.settings.voice_recognition_enabled is False:
                return False
            self._go_voice(VoiceState.LISTENING)
            return True
        if self._voice is VoiceState.LISTENING and isinstance(event, StopListening):
            self._go_voice(VoiceState.NOT_LISTENING)
            return True
        return False

    def _on_phrase(self, phrase: str) -> None:
        words = phrase.lower()
        if any(word in words for word in CONTINUE_WORDS):
            logger.debug("heard %r", phrase)
            self._raise(Continue())
