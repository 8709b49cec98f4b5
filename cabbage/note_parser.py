"""Note token parser: turns one line of notation into a list of events.

A line is a whitespace-separated run of tokens:

    +  -             octave up / down for the rest of the line
    [dur]&           rest
    [dur]c#^^>-      note: letter, accidental, octave shift, accent, articulation

where ``dur`` is ``digits dots* ':'?`` such as ``4``, ``8:``, ``2.:``.

Parsing is a fold: every token is parsed against the current ``LineState`` and
yields the next state, so nothing carries over between lines.
"""

import re
from dataclasses import dataclass, replace
from typing import Final, Optional

from cabbage.config import REFERENCE_OCTAVE
from cabbage.durations import Duration
from cabbage.errors import UnparseableToken
from cabbage.events import Articulation, Event, Note, Rest
from cabbage.keys import Key

_DURATION: Final[str] = r"(?:(?P<denominator>\d+)(?P<dots>\.*):?)?"

REST_RE: Final[re.Pattern[str]] = re.compile(rf"{_DURATION}&")

NOTE_RE: Final[re.Pattern[str]] = re.compile(
    rf"""
    {_DURATION}
    (?P<letter>[a-g])
    (?P<accidental>[#bn])?
    (?P<shift>\^+|v+)?
    (?P<accent>>)?
    (?P<articulation>[(\-])?
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class LineContext:
    """Per-line settings that stay fixed while the line is parsed."""

    key: Key
    staccato: bool = False


@dataclass(frozen=True)
class LineState:
    """State threaded from token to token within one line."""

    default_duration: Duration
    octave: int = REFERENCE_OCTAVE


def _parse_duration(match: re.Match[str], default: Duration) -> Optional[Duration]:
    digits = match.group("denominator")
    if digits is None:
        return default
    denominator = int(digits)
    if denominator == 0:
        return None
    return Duration(denominator, len(match.group("dots")))


def parse_token(
    token: str,
    context: LineContext,
    state: LineState,
) -> tuple[Optional[Event], LineState]:
    """
    Parse a single token.

    Returns:
        (event, next_state). The event is None for octave shift tokens.

    Raises:
        UnparseableToken: If the token is not valid notation.
    """
    if token == "+":
        return None, replace(state, octave=state.octave + 1)
    if token == "-":
        return None, replace(state, octave=state.octave - 1)

    match = REST_RE.fullmatch(token)
    if match:
        duration = _parse_duration(match, state.default_duration)
        if duration is None:
            raise UnparseableToken(token)
        return Rest(duration), state

    match = NOTE_RE.fullmatch(token)
    if not match:
        raise UnparseableToken(token)

    duration = _parse_duration(match, state.default_duration)
    if duration is None:
        raise UnparseableToken(token)

    letter = match.group("letter")
    accidental = match.group("accidental")
    if accidental is None:
        accidental = context.key.accidental_for(letter)
    elif accidental == "n":
        accidental = ""

    octave = state.octave
    shift = match.group("shift")
    if shift:
        octave += len(shift) if shift[0] == "^" else -len(shift)

    marker = match.group("articulation")
    if marker == "-" or (context.staccato and marker != "("):
        articulation = Articulation.STACCATO
    else:
        articulation = Articulation.LEGATO

    note = Note(
        duration=duration,
        letter=letter,
        accidental=accidental,
        octave=octave,
        accented=match.group("accent") is not None,
        articulation=articulation,
    )
    return note, state


def parse_line(
    text: str,
    context: LineContext,
    default_duration: Duration,
) -> list[Event]:
    """Parse a whole line, starting from the reference octave."""
    state = LineState(default_duration=default_duration)
    events: list[Event] = []
    for token in text.split():
        event, state = parse_token(token, context, state)
        if event is not None:
            events.append(event)
    return events
