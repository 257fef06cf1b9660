"""Default program library and factories for new records.

The default library is written to storage the first time the engine
starts (or whenever ``allPrograms`` is missing or unreadable), and again
on ``RESET_ALL_PROGRAMS``.
"""

from __future__ import annotations

from .models import MessageBlock, Program, parse_library

PROGRAMS_KEY = "allPrograms"

NEW_PROGRAM_NAME = "New program"
NEW_BLOCK_NAME = "New step"
NEW_BLOCK_MESSAGE = "Get ready"
COPY_PREFIX = "Copy of "


def _timer(block_id: str, name: str, seconds: int, lead: int = 3) -> dict:
    return {
        "id": block_id, "type": "timer", "name": name,
        "seconds": seconds, "leadSeconds": lead,
    }


def _pause(block_id: str, name: str, reps: int | None = None) -> dict:
    block = {"id": block_id, "type": "pause", "name": name}
    if reps:
        block["reps"] = reps
    return block


def _message(block_id: str, name: str, message: str) -> dict:
    return {"id": block_id, "type": "message", "name": name, "message": message}


# ── default library ──────────────────────────────────────────────────────

_DEFAULT_LIBRARY = [
    {
        "id": "foo",
        "name": "💥 Foo",
        "description": "A simple test program",
        "blocks": [
            _message("foo-1", "Welcome", "Welcome to the test"),
            _timer("foo-2", "Warmup", 10),
            _pause("foo-3", "A pause"),
            _pause("foo-4", "A pause with reps", 25),
            _timer("foo-5", "Cool down", 5, lead=0),
            _message("foo-6", "The end", "Congratulations, you made it!"),
        ],
    },
    {
        "id": "kaz",
        "name": "🦵 Knee Ability Zero",
        "description": "Knee Ability Zero is a knee rehab program by Ben Patrick",
        "category": "Rehab",
        "blocks": [
            _pause("kaz-1", "Tibialis Raise", 25),
            _pause("kaz-2", "FHL Calf Raise", 25),
            _pause("kaz-3", "Tibialis Raise (again)", 25),
            _pause("kaz-4", "KOT Calf Raise", 25),
            _pause("kaz-5", "Patrick Step", 25),
            _pause("kaz-6", "ATG Split Squat", 25),
            _pause("kaz-7", "Elephant Walk", 30),
            _timer("kaz-8", "L-Sit", 60),
            _timer("kaz-9", "Couch Stretch", 60),
        ],
    },
    {
        "id": "yoga",
        "name": "🧘 Yoga",
        "description": "A short flow of four poses",
        "category": "Mobility",
        "blocks": [
            _timer("yoga-1", "Downward Dog", 5),
            _timer("yoga-2", "Upward Dog", 5, lead=0),
            _timer("yoga-3", "Cobra", 5, lead=0),
            _timer("yoga-4", "Child's Pose", 5, lead=0),
        ],
    },
    {
        "id": "athx",
        "name": "🏋️ AthleanX anti-slouch",
        "description": "A program to help with slouching by Jeff Cavaliere",
        "category": "Posture",
        "blocks": [
            _timer("athx-1", "Supermans", 30),
            _timer("athx-2", "Glute march", 30),
            _timer("athx-3", "Supermans", 30),
            _timer("athx-4", "Glute march", 30),
            _timer("athx-5", "Bridge reach over", 30),
            _timer("athx-6", "Chair lat stretch reps", 30),
            _timer("athx-7", "Wall DL", 30),
            _timer("athx-8", "Chair lat stretch reps", 30),
            _timer("athx-9", "Wall DL", 30),
            _timer("athx-10", "Bridge reach over", 30),
        ],
    },
]

DEFAULT_PROGRAMS: tuple[Program, ...] = parse_library(_DEFAULT_LIBRARY)


# ── factories ────────────────────────────────────────────────────────────


def new_program() -> Program:
    return Program(name=NEW_PROGRAM_NAME)


def new_message_block() -> MessageBlock:
    """The block appended by ``ADD_BLOCK``."""
    return MessageBlock(name=NEW_BLOCK_NAME, message=NEW_BLOCK_MESSAGE)


def copy_name(name: str) -> str:
    return f"{COPY_PREFIX}{name}"
