"""Tests for loading JSON song files."""

import json
from pathlib import Path
from typing import Any

import pytest

from cabbage.durations import TimeSignature
from cabbage.errors import InvalidKey, SectionLengthMismatch, SongFileError, UnknownInstrument
from cabbage.song_file import load_song, song_from_dict

SONGS_DIR = Path(__file__).resolve().parent.parent / "songs"


def _document(**overrides: Any) -> dict[str, Any]:
    document: dict[str, Any] = {
        "title": "Doc",
        "instruments": [{"symbol": "vi", "name": "Violin"}],
        "sections": [{"lines": [{"voice": "vi", "notes": "c d e f"}]}],
    }
    document.update(overrides)
    return document


def test_salad_example_compiles() -> None:
    song = load_song(SONGS_DIR / "salad.json")
    assert song.title == "Salad"
    assert song.author == "Jeremy Ruten"
    assert song.tempo == 100
    assert song.time_signature == TimeSignature(6, 4)
    assert song.measure_count == 6
    assert len(song.voices) == 4
    assert [voice.instrument.symbol for voice in song.voices] == ["vi", "vi", "vo", "ce"]
    assert all(voice.length == 36 for voice in song.voices)


def test_cabbage_example_compiles() -> None:
    song = load_song(SONGS_DIR / "cabbage.json")
    assert song.time_signature == TimeSignature(6, 8)
    assert song.measure_count == 5
    assert song.length == 15
    assert len(song.voices) == 4


def test_minimal_document_uses_defaults() -> None:
    song = song_from_dict(_document())
    assert song.author == "Anonymous"
    assert song.tempo == 120
    assert song.measure_count == 1


def test_repeat_labels_follow_measure_numbers() -> None:
    document = _document(
        sections=[
            {"repeat": 2, "lines": [{"voice": "vi", "notes": "c d e f"}]},
            {"lines": [{"voice": "vi", "notes": "c d e"}]},
        ]
    )
    with pytest.raises(SectionLengthMismatch) as info:
        song_from_dict(document)
    assert info.value.section == "3"


def test_range_label_is_kept() -> None:
    document = _document(
        sections=[{"measures": [7, 8], "lines": [{"voice": "vi", "notes": "1:c"}]}]
    )
    with pytest.raises(SectionLengthMismatch) as info:
        song_from_dict(document)
    assert info.value.section == "7..8"


def test_section_can_change_time_signature() -> None:
    document = _document(
        sections=[
            {"lines": [{"voice": "vi", "notes": "1:c"}]},
            {"time": "3/4", "lines": [{"voice": "vi", "notes": "2.:c"}]},
        ]
    )
    song = song_from_dict(document)
    assert song.length == 7
    assert song.time_signature == TimeSignature(3, 4)


def test_line_options() -> None:
    document = _document(
        sections=[
            {"lines": [{"voice": "vi", "notes": "c d e f g a b c", "default_note": 8, "staccato": True}]}
        ]
    )
    events = song_from_dict(document).voices[0].events
    assert len(events) == 8
    assert all(event.is_staccato for event in events)


def test_unknown_voice_symbol() -> None:
    document = _document(sections=[{"lines": [{"voice": "zz", "notes": "1:c"}]}])
    with pytest.raises(UnknownInstrument):
        song_from_dict(document)


@pytest.mark.parametrize(
    "document",
    [
        [],
        {"sections": []},
        {"instruments": [], "sections": "nope"},
        _document(tempo="fast"),
        _document(tempo=0),
        _document(time="6-8"),
        _document(instruments=[{"symbol": "vi"}]),
        _document(instruments=["vi"]),
        _document(sections=[{"measures": 0, "lines": []}]),
        _document(sections=[{"measures": [3, 2], "lines": []}]),
        _document(sections=[{"repeat": 0, "lines": []}]),
        _document(sections=[{"lines": [{"voice": "vi"}]}]),
        _document(sections=[{"lines": [{"voice": "vi", "notes": "c", "default_note": 0}]}]),
        _document(tempo="90"),
        _document(tempo=True),
        _document(sections=[{"measures": [0, 1], "lines": []}]),
        _document(sections=[{"lines": [{"voice": "vi", "notes": "c", "staccato": "false"}]}]),
        _document(sections=[{"lines": [{"voice": "vi", "notes": "c", "stacatto": True}]}]),
        _document(tempi=90),
    ],
)
def test_malformed_documents(document: Any) -> None:
    with pytest.raises(SongFileError):
        song_from_dict(document)


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{ not json", encoding="utf-8")
    with pytest.raises(SongFileError) as info:
        load_song(path)
    assert info.value.path == str(path)


def test_load_round_trips_through_disk(tmp_path: Path) -> None:
    path = tmp_path / "song.json"
    path.write_text(json.dumps(_document()), encoding="utf-8")
    assert load_song(path).title == "Doc"


def test_schema_errors_name_their_location() -> None:
    document = _document(
        sections=[{"lines": [{"voice": "vi", "notes": "c d e f", "staccato": "false"}]}]
    )
    with pytest.raises(SongFileError) as info:
        song_from_dict(document, "strict.json")
    message = str(info.value)
    assert info.value.path == "strict.json"
    assert "sections -> 0 -> lines -> 0 -> staccato" in message


def test_invalid_key_is_reported_as_compile_error() -> None:
    with pytest.raises(InvalidKey):
        song_from_dict(_document(key="H+"))
