"""Load songs from JSON song files.

A song file declares the song's metadata and instruments, then lists its
sections in order:

    {
      "title": "Salad", "author": "Jeremy Ruten",
      "tempo": 100, "time": "6/4", "key": "C+",
      "instruments": [{"symbol": "vi", "name": "Violin"}],
      "sections": [
        {"measures": 1, "repeat": 4,
         "lines": [{"voice": "vi", "notes": "+ c a bb a g e"},
                   {"voice": "vi", "notes": "1:e f f c e", "default_note": 8}]},
        {"measures": [2, 3], "time": "6/4",
         "lines": [{"voice": "vi", "notes": "2.:f^ 4.:g^ 4.:f^ 1.:e^"}]}
      ]
    }

``measures`` is a count, or an inclusive [first, last] range that also names
the section in error messages.

Documents are validated with pydantic before anything is compiled. Types are
strict, so ``"staccato": "false"`` or ``"tempo": "90"`` is an error rather
than a silent conversion, and unknown keys are rejected.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from cabbage.builder import SongBuilder
from cabbage.config import (
    DEFAULT_AUTHOR,
    DEFAULT_KEY,
    DEFAULT_TEMPO,
    DEFAULT_TIME_SIGNATURE,
    DEFAULT_TITLE,
)
from cabbage.durations import TimeSignature
from cabbage.errors import SongFileError
from cabbage.song import Song

logger = logging.getLogger(__name__)

PositiveInt = Annotated[int, Field(strict=True, gt=0)]


def _check_time_signature(value: Optional[str]) -> Optional[str]:
    if value is not None:
        TimeSignature.parse(value)
    return value


class LineEntry(BaseModel):
    """One line of notation inside a section."""

    model_config = ConfigDict(extra="forbid")

    voice: StrictStr
    notes: StrictStr
    default_note: Optional[PositiveInt] = None
    staccato: StrictBool = False


class SectionEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    measures: Union[PositiveInt, tuple[StrictInt, StrictInt]] = 1
    repeat: PositiveInt = 1
    time: Optional[StrictStr] = None
    key: Optional[StrictStr] = None
    lines: list[LineEntry]

    @field_validator("measures")
    @classmethod
    def check_range(cls, value: Union[int, tuple[int, int]]) -> Union[int, tuple[int, int]]:
        if isinstance(value, tuple):
            first, last = value
            if first < 1 or first > last:
                raise ValueError("a measure range must be [first, last] with 1 <= first <= last")
        return value

    @field_validator("time")
    @classmethod
    def check_time(cls, value: Optional[str]) -> Optional[str]:
        return _check_time_signature(value)

    @property
    def span(self) -> tuple[int, Optional[str]]:
        """(measure count, label) for this section; counts get an automatic label."""
        if isinstance(self.measures, int):
            return self.measures, None
        first, last = self.measures
        label = str(first) if first == last else f"{first}..{last}"
        return last - first + 1, label


class InstrumentEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    symbol: StrictStr
    name: StrictStr


class SongDocument(BaseModel):
    """A whole song file. Keys are resolved later so bad ones report as ``InvalidKey``."""

    model_config = ConfigDict(extra="forbid")

    title: StrictStr = DEFAULT_TITLE
    author: StrictStr = DEFAULT_AUTHOR
    tempo: PositiveInt = DEFAULT_TEMPO
    time: StrictStr = DEFAULT_TIME_SIGNATURE
    key: StrictStr = DEFAULT_KEY
    instruments: list[InstrumentEntry]
    sections: list[SectionEntry]

    @field_validator("time")
    @classmethod
    def check_time(cls, value: str) -> str:
        return _check_time_signature(value)


def _format_pydantic_errors(exc: ValidationError) -> str:
    lines = []
    for error in exc.errors():
        loc_str = " -> ".join(str(loc_item) for loc_item in error["loc"]) or "document"
        lines.append(f"  {loc_str}: {error['msg']}")
    return "\n".join(lines)


def _apply_sections(builder: SongBuilder, sections: list[SectionEntry]) -> None:
    for section in sections:
        measures, label = section.span
        if section.time is not None:
            builder.time(section.time)
        if section.key is not None:
            builder.key(section.key)

        for _ in range(section.repeat):
            section_builder = builder.section(measures, label=label)
            for line in section.lines:
                section_builder.voice(
                    line.voice,
                    line.notes,
                    default_note=line.default_note,
                    staccato=line.staccato,
                )
            section_builder.apply()


def song_from_dict(data: Any, path: str = "<song>") -> Song:
    """
    Build a song from an already decoded song document.

    Raises:
        SongFileError: If the document is malformed.
        CompileError:  If the notation itself is invalid.
    """
    try:
        document = SongDocument.model_validate(data)
    except ValidationError as exc:
        details = _format_pydantic_errors(exc)
        logger.debug("Song file %s failed validation:\n%s", path, details)
        raise SongFileError(path, f"{exc.error_count()} schema error(s):\n{details}") from exc

    builder = SongBuilder().title(document.title).by(document.author).tempo(document.tempo)
    builder.time(document.time).key(document.key)
    for entry in document.instruments:
        builder.instrument(entry.symbol, entry.name)
    _apply_sections(builder, document.sections)

    song = builder.build()
    logger.debug(
        "Loaded '%s': %d measure(s), %d voice(s)", song.title, song.measure_count, len(song.voices)
    )
    return song


def load_song(path: str | Path) -> Song:
    """
    Read and compile a JSON song file.

    Raises:
        OSError:       If the file cannot be read.
        SongFileError: If the file is not a valid song document.
        CompileError:  If the notation itself is invalid.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SongFileError(str(path), f"not valid JSON ({exc.msg} at line {exc.lineno}).") from exc
    return song_from_dict(data, str(path))
