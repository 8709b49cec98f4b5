"""SongBuilder: the authoring API for declaring and writing songs.

    builder = SongBuilder()
    builder.title("Salad").by("Jeremy Ruten").tempo(100).time("6/4")
    builder.instrument("vi", "Violin")

    with builder.measure(1) as section:
        section.voice("vi", "+ c a bb a g e")
        section.voice("vi", "1:e f f c e", default_note=8)

    song = builder.build()
"""

from __future__ import annotations

from types import TracebackType
from typing import Optional

from cabbage.durations import TimeSignature
from cabbage.keys import resolve_key
from cabbage.song import SectionLine, Song


class SectionBuilder:
    """
    Collects the lines of one section; applies them to the song on exit.

    Lines are addressed by explicit instrument symbol. Nothing is applied if
    the ``with`` block raises.
    """

    def __init__(self, song: Song, measures: int, label: Optional[str] = None) -> None:
        self._song = song
        self.measures = measures
        self.label = label
        self.lines: list[SectionLine] = []
        self.applied = False

    def voice(
        self,
        symbol: str,
        notes: str,
        default_note: Optional[int] = None,
        staccato: bool = False,
    ) -> "SectionBuilder":
        self.lines.append(
            SectionLine(symbol=symbol, notes=notes, default_note=default_note, staccato=staccato)
        )
        return self

    def apply(self) -> None:
        if self.applied:
            raise RuntimeError("Section has already been applied.")
        self._song.apply_section(self.measures, self.lines, label=self.label)
        self.applied = True

    def __enter__(self) -> "SectionBuilder":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        if exc_type is None:
            self.apply()


class SongBuilder:
    """Mutates an owned ``Song``; every setter returns the builder for chaining."""

    def __init__(self, song: Optional[Song] = None) -> None:
        self.song = song if song is not None else Song()

    # ── Metadata ────────────────────────────────────────────────────────────

    def title(self, title: str) -> "SongBuilder":
        self.song.title = title
        return self

    def by(self, author: str) -> "SongBuilder":
        self.song.author = author
        return self

    def key(self, name: str) -> "SongBuilder":
        self.song.key = resolve_key(name)
        return self

    def tempo(self, bpm: int) -> "SongBuilder":
        if bpm <= 0:
            raise ValueError(f"Tempo must be positive, got {bpm}.")
        self.song.tempo = bpm
        return self

    def time(self, time_signature: str | TimeSignature) -> "SongBuilder":
        if isinstance(time_signature, str):
            time_signature = TimeSignature.parse(time_signature)
        self.song.time_signature = time_signature
        return self

    def instrument(self, symbol: str, name: str) -> "SongBuilder":
        self.song.add_instrument(symbol, name)
        return self

    # ── Sections ────────────────────────────────────────────────────────────

    def section(self, measures: int, label: Optional[str] = None) -> SectionBuilder:
        return SectionBuilder(self.song, measures, label=label)

    def measure(self, number: int) -> SectionBuilder:
        """A one-measure section labelled with its measure number."""
        return self.section(1, label=str(number))

    def measures(self, first: int, last: int) -> SectionBuilder:
        """A section spanning measures *first* to *last* inclusive."""
        if last < first:
            raise ValueError(f"Measure range {first}..{last} is empty.")
        return self.section(last - first + 1, label=f"{first}..{last}")

    def build(self) -> Song:
        return self.song
