"""Audio package."""

from .sounds import BEEPS, ToneGenerator, generate_beep

__all__ = ["BEEPS", "ToneGenerator", "generate_beep"]
