"""cabbage: compile compact note notation into per-voice timelines and MIDI files."""

__version__ = "0.1.0"
