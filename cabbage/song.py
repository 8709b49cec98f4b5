"""Songs, voices and section application.

A song is built by applying sections in order. Each section covers one or more
measures and holds any number of notation lines, each addressed to an
instrument. After every section all voices must have the same length; voices
that were silent in the section are padded with a whole-measure rest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Optional

from cabbage.config import (
    DEFAULT_AUTHOR,
    DEFAULT_KEY,
    DEFAULT_TEMPO,
    DEFAULT_TIME_SIGNATURE,
    DEFAULT_TITLE,
    LENGTH_EPSILON,
    MAX_VOICES,
)
from cabbage.durations import Duration, TimeSignature
from cabbage.errors import (
    DuplicateInstrument,
    SectionLengthMismatch,
    TooManyVoices,
    UnknownInstrument,
    UnparseableToken,
)
from cabbage.events import Event, MeasureRest
from cabbage.instruments import Instrument
from cabbage.keys import Key, resolve_key
from cabbage.note_parser import LineContext, parse_line

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionLine:
    """
    One notation line submitted to a section.

    Attributes:
        symbol:       Instrument symbol the line is played by.
        notes:        Whitespace-separated notation tokens.
        default_note: Duration denominator for tokens without one. Defaults to
                      the time signature's beat unit.
        staccato:     Make every note staccato unless it ends in "(".
    """

    symbol: str
    notes: str
    default_note: Optional[int] = None
    staccato: bool = False

    def __post_init__(self) -> None:
        if self.default_note is not None and self.default_note <= 0:
            raise ValueError(f"default_note must be positive, got {self.default_note}.")


class Voice:
    """One instrument's independent, append-only run of events."""

    def __init__(self, instrument: Instrument, index: int) -> None:
        self.instrument = instrument
        self.index = index
        self.events: list[Event] = []
        self.length = Fraction(0)

    @property
    def label(self) -> str:
        return f"{self.instrument.name} (voice {self.index})"

    def append(self, event: Event) -> None:
        self.events.append(event)
        self.length += event.length

    def extend(self, events: list[Event]) -> None:
        for event in events:
            self.append(event)

    def calculate_length(self) -> Fraction:
        """Sum the event lengths from scratch."""
        return sum((event.length for event in self.events), Fraction(0))

    def __iter__(self):
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def __repr__(self) -> str:
        return f"Voice({self.label!r}, events={len(self.events)}, length={self.length})"


@dataclass
class Song:
    """
    A song under construction.

    Voices are listed in the order they were first used, which is also the
    MIDI channel order.
    """

    title: str = DEFAULT_TITLE
    author: str = DEFAULT_AUTHOR
    tempo: int = DEFAULT_TEMPO
    key: Key = field(default_factory=lambda: resolve_key(DEFAULT_KEY))
    time_signature: TimeSignature = field(
        default_factory=lambda: TimeSignature.parse(DEFAULT_TIME_SIGNATURE)
    )
    instruments: list[Instrument] = field(default_factory=list)
    voices: list[Voice] = field(default_factory=list)
    length: Fraction = Fraction(0)
    measure_count: int = 0
    # (measures, time signature) for every section applied so far
    history: list[tuple[int, TimeSignature]] = field(default_factory=list)
    # (offset in quarter notes, value) wherever the meter or key changes
    meter_changes: list[tuple[Fraction, TimeSignature]] = field(default_factory=list)
    key_changes: list[tuple[Fraction, Key]] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def add_instrument(self, symbol: str, name: str) -> Instrument:
        if self.find_instrument(symbol) is not None:
            raise DuplicateInstrument(symbol)
        instrument = Instrument.declare(symbol, name)
        self.instruments.append(instrument)
        return instrument

    def find_instrument(self, symbol: str) -> Optional[Instrument]:
        for instrument in self.instruments:
            if instrument.symbol == symbol:
                return instrument
        return None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _elapsed_rests(self) -> list[Event]:
        """Measure rests covering every section applied so far."""
        rests: list[Event] = []
        for measures, time_signature in self.history:
            previous = rests[-1] if rests else None
            if isinstance(previous, MeasureRest) and previous.time_signature == time_signature:
                rests[-1] = MeasureRest(previous.measures + measures, time_signature)
            else:
                rests.append(MeasureRest(measures, time_signature))
        return rests

    def _voice_for(self, instrument: Instrument, active: list[Voice]) -> Voice:
        for voice in self.voices:
            if voice.instrument == instrument and voice not in active:
                return voice

        if len(self.voices) >= MAX_VOICES:
            raise TooManyVoices(len(self.voices) + 1, MAX_VOICES)

        voice = Voice(instrument, index=len(self.voices))
        voice.extend(self._elapsed_rests())
        self.voices.append(voice)
        logger.debug("Created %s at measure %d", voice.label, self.measure_count + 1)
        return voice

    def _mark_change(self, changes: list[tuple[Fraction, Any]], value: Any) -> None:
        if not changes or changes[-1][1] != value:
            changes.append((self.length, value))

    def _check_lengths(self, label: str, section_length: Fraction) -> None:
        if all(abs(voice.length - self.length) <= LENGTH_EPSILON for voice in self.voices):
            return

        start = self.length - section_length
        lengths = [(voice.label, voice.length - start) for voice in self.voices]
        raise SectionLengthMismatch(label, section_length, lengths)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def apply_section(
        self,
        measures: int,
        lines: list[SectionLine],
        label: Optional[str] = None,
    ) -> None:
        """
        Append one section of *measures* measures to the song.

        Args:
            measures: Number of measures the section spans.
            lines:    Notation lines; several lines for one instrument each get
                      their own voice.
            label:    How the section is named in errors. Defaults to the
                      measure numbers it covers.

        Raises:
            UnknownInstrument:     A line names an undeclared instrument.
            UnparseableToken:      A token is not valid notation.
            TooManyVoices:         The section needs a seventeenth voice.
            SectionLengthMismatch: The voices don't all fill the section.
        """
        if measures <= 0:
            raise ValueError(f"A section must span at least one measure, got {measures}.")
        if label is None:
            first = self.measure_count + 1
            last = self.measure_count + measures
            label = str(first) if first == last else f"{first}..{last}"

        time_signature = self.time_signature
        active: list[Voice] = []

        for line in lines:
            instrument = self.find_instrument(line.symbol)
            if instrument is None:
                raise UnknownInstrument(line.symbol, section=label)

            voice = self._voice_for(instrument, active)
            active.append(voice)

            default_note = line.default_note or time_signature.denominator
            context = LineContext(key=self.key, staccato=line.staccato)
            try:
                events = parse_line(line.notes, context, Duration(default_note))
            except UnparseableToken as exc:
                raise exc.locate(line.symbol, label) from None
            voice.extend(events)

        for voice in self.voices:
            if voice not in active:
                voice.append(MeasureRest(measures, time_signature))

        section_length = time_signature.measure_length * measures
        self._mark_change(self.meter_changes, time_signature)
        self._mark_change(self.key_changes, self.key)
        self.length += section_length
        self.measure_count += measures
        self.history.append((measures, time_signature))

        logger.debug(
            "Applied measure(s) %s: %d line(s), %d voice(s), song length %s",
            label,
            len(lines),
            len(self.voices),
            self.length,
        )
        self._check_lengths(label, section_length)
