"""Play a program from the command line: python -m bleep [PROGRAM_ID].

Uses the real gateways (SQLite library, system text-to-speech, synthesized
beeps).  Pause blocks wait for Enter on stdin.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from PyQt6.QtCore import QCoreApplication, QSocketNotifier

from .audio.sounds import ToneGenerator
from .database.db import init_db
from .database.store import SqlPersistence
from .errors import BleepError
from .gateways.qt_speech import QtSpeech
from .timer.commands import Continue, SelectProgram, Start
from .timer.engine import TimerEngine
from .timer.states import ProgramState, Snapshot

logger = logging.getLogger("bleep")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="bleep", description=__doc__.splitlines()[0])
    parser.add_argument("program_id", nargs="?", help="id of the program to play")
    parser.add_argument("--list", action="store_true", help="list programs and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def _print_library(snapshot: Snapshot) -> None:
    for program in snapshot.context.all_programs:
        category = f"  [{program.category}]" if program.category else ""
        print(f"{program.id:<10} {program.name} ({len(program.blocks)} steps){category}")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName("Bleep")
    app.setOrganizationName("Bleep")

    init_db()
    engine = TimerEngine(
        app,
        persistence=SqlPersistence(),
        speech=QtSpeech(app),
        tone=ToneGenerator(app),
    )

    started = False
    exit_code = 0

    def on_state(snapshot: Snapshot) -> None:
        nonlocal started, exit_code
        if started or not snapshot.is_loaded:
            return
        started = True
        if args.list or args.program_id is None:
            _print_library(snapshot)
            app.quit()
            return
        try:
            engine.send(SelectProgram(args.program_id))
            engine.send(Start())
        except BleepError as exc:
            print(f"bleep: {exc}", file=sys.stderr)
            exit_code = 2
            app.quit()
            return
        if not engine.snapshot.is_running:
            print(f"bleep: program {args.program_id!r} has nothing to play", file=sys.stderr)
            exit_code = 2
            app.quit()

    def on_stdin() -> None:
        if not sys.stdin.readline():
            notifier.setEnabled(False)  # EOF
            return
        if engine.matches(ProgramState.AWAITING_CONTINUE):
            engine.send(Continue())

    def on_load_failed(key: str, message: str) -> None:
        print(f"bleep: stored {key} was unreadable and has been reset", file=sys.stderr)

    engine.state_changed.connect(on_state)
    engine.load_failed.connect(on_load_failed)
    engine.tick.connect(lambda seconds: logger.debug("%d s", seconds))
    engine.celebration.connect(lambda program_id: app.quit())

    notifier = QSocketNotifier(sys.stdin.fileno(), QSocketNotifier.Type.Read, app)
    notifier.activated.connect(on_stdin)

    engine.boot()
    app.exec()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
