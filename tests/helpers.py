"""Shared test helpers for Bleep."""

from bleep.models import MessageBlock, PauseBlock, Program, TimerBlock
from bleep.timer.engine import TimerEngine


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


def tick(engine: TimerEngine, times: int = 1) -> None:
    """Deliver *times* ticker timeouts without waiting for the QTimer."""
    for _ in range(times):
        engine._on_tick()


def timer(name: str, seconds: int, lead: int = 0, **kw) -> TimerBlock:
    return TimerBlock(name=name, seconds=seconds, lead_seconds=lead, **kw)


def pause(name: str, reps: int | None = None, **kw) -> PauseBlock:
    return PauseBlock(name=name, reps=reps, **kw)


def message(name: str, text: str, **kw) -> MessageBlock:
    return MessageBlock(name=name, message=text, **kw)


def program(program_id: str, *blocks, name: str | None = None, **kw) -> Program:
    return Program(id=program_id, name=name or program_id.title(), blocks=blocks, **kw)
