"""Compiler-wide constants: pitch mapping, dynamics, limits and song defaults."""

from fractions import Fraction

# ── Pitch mapping ───────────────────────────────────────────────────────────
# Octave 4's C is MIDI note 64 here, not the usual 60. Existing songs rely on it.
REFERENCE_OCTAVE = 4
REFERENCE_PITCH = 64
SEMITONES_PER_OCTAVE = 12

# ── Dynamics ────────────────────────────────────────────────────────────────
NORMAL_VELOCITY = 63
ACCENT_VELOCITY = 75

# Sounding length of a staccato note: one 32nd note, in quarter notes.
STACCATO_LENGTH = Fraction(1, 8)

# ── Limits ──────────────────────────────────────────────────────────────────
MAX_VOICES = 16  # one MIDI channel per voice
LENGTH_EPSILON = Fraction(1, 100000)  # quarter notes

# ── Song defaults ───────────────────────────────────────────────────────────
DEFAULT_TITLE = "Untitled"
DEFAULT_AUTHOR = "Anonymous"
DEFAULT_TEMPO = 120
DEFAULT_TIME_SIGNATURE = "4/4"
DEFAULT_KEY = "C+"

# MIDI controller 7, set to full on every voice channel.
CHANNEL_VOLUME = 127
