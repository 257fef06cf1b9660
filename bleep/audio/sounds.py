"""Beep synthesis and playback using numpy + QSoundEffect.

Beeps are pure sine tones with a short linear fade in and out (20 ms),
generated as WAV files and cached to disk, one file per
(frequency, duration) pair.  The two beeps of the countdown schedule are
generated up front so the first "3, 2, 1" is not delayed by synthesis.

Beep names
----------
- ``countdown``  — 440 Hz, 0.3 s, at 3, 2 and 1 seconds remaining
- ``final``      — 880 Hz, 0.8 s, when a timer block reaches zero
"""

from __future__ import annotations

import io
import logging
import wave
from pathlib import Path

import numpy as np

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QSoundEffect

from ..gateways.base import Tone

logger = logging.getLogger(__name__)


# ── paths ────────────────────────────────────────────────────────────────

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "Bleep"
SOUNDS_DIR = APP_SUPPORT_DIR / "sounds"

BEEPS: dict[str, tuple[float, float]] = {
    "countdown": (440.0, 0.3),
    "final": (880.0, 0.8),
}

SAMPLE_RATE = 44100
RAMP_SECONDS = 0.02


# ═══════════════════════════════════════════════════════════════════════════
#  WAV SYNTHESIS HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _make_envelope(length: int, ramp: int) -> np.ndarray:
    """Flat envelope with a linear fade of *ramp* samples at each end."""
    env = np.ones(length, dtype=np.float64)
    r = min(ramp, length // 2)
    if r > 0:
        env[:r] = np.linspace(0.0, 1.0, r)
        env[length - r:] = np.linspace(1.0, 0.0, r)
    return env


def _sine(freq: float, duration_s: float) -> np.ndarray:
    """Pure sine wave at *freq* Hz for *duration_s* seconds."""
    t = np.linspace(0, duration_s, int(SAMPLE_RATE * duration_s), endpoint=False)
    return np.sin(2 * np.pi * freq * t)


def _to_wav_bytes(samples: np.ndarray) -> bytes:
    """Convert a float64 numpy array (-1..1) to 16-bit PCM WAV bytes."""
    samples = np.clip(samples, -1.0, 1.0)
    int_samples = (samples * 32767).astype(np.int16)

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(int_samples.tobytes())
    return buf.getvalue()


def generate_beep(frequency: float, duration: float) -> bytes:
    """WAV bytes for one beep; the fade-out runs past *duration*."""
    ramp = int(SAMPLE_RATE * RAMP_SECONDS)
    tone = _sine(frequency, duration + RAMP_SECONDS) * 0.8
    return _to_wav_bytes(tone * _make_envelope(len(tone), ramp))


def beep_filename(frequency: float, duration: float) -> str:
    return f"beep_{round(frequency)}hz_{round(duration * 1000)}ms.wav"


# ═══════════════════════════════════════════════════════════════════════════
#  TONE GENERATOR
# ═══════════════════════════════════════════════════════════════════════════


class ToneGenerator(Tone):
    """Tone gateway: synthesizes, caches and plays beeps.

    Usage::

        tones = ToneGenerator()
        tones.set_volume(70)
        tones.play(440, 0.3)
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
    ) -> None:
        self._parent = parent
        self._volume = 0.7  # 0.0–1.0
        self._sounds_dir = sounds_dir or SOUNDS_DIR
        self._effects: dict[str, QSoundEffect] = {}

        for frequency, duration in BEEPS.values():
            self._effect_for(frequency, duration)

    # ── public API ────────────────────────────────────────────────────

    def set_volume(self, level: int) -> None:
        """Set volume (0-100).  Updates all loaded effects."""
        self._volume = max(0, min(level, 100)) / 100.0
        for effect in self._effects.values():
            effect.setVolume(self._volume)

    def play(self, frequency: float, duration: float) -> None:
        self._effect_for(frequency, duration).play()

    @property
    def volume(self) -> int:
        """Current volume as 0-100 integer."""
        return round(self._volume * 100)

    # ── internal ──────────────────────────────────────────────────────

    def _ensure_wav_file(self, frequency: float, duration: float) -> Path:
        """Generate the WAV for this beep into the cache if it is missing."""
        self._sounds_dir.mkdir(parents=True, exist_ok=True)
        path = self._sounds_dir / beep_filename(frequency, duration)
        if not path.exists():
            logger.debug("synthesizing %s", path.name)
            path.write_bytes(generate_beep(frequency, duration))
        return path

    def _effect_for(self, frequency: float, duration: float) -> QSoundEffect:
        name = beep_filename(frequency, duration)
        effect = self._effects.get(name)
        if effect is None:
            path = self._ensure_wav_file(frequency, duration)
            effect = QSoundEffect(self._parent)
            effect.setSource(QUrl.fromLocalFile(str(path)))
            effect.setVolume(self._volume)
            self._effects[name] = effect
        return effect
