"""Tests for MidiExporter (midiutil output)."""

from pathlib import Path

import pretty_midi
import pytest

from cabbage.builder import SongBuilder
from cabbage.errors import TooManyVoices
from cabbage.midi_exporter import MidiExporter
from cabbage.song import Song, Voice


def _song(
    key: str = "C+",
    time: str = "4/4",
    violin: str = "c- & e> 8:f 8:&",
    cello: str = "1:cv",
    tempo: int = 120,
) -> Song:
    builder = SongBuilder().title("Test").by("Tester").tempo(tempo).key(key).time(time)
    builder.instrument("vi", "Violin").instrument("ce", "Cello")
    with builder.measure(1) as section:
        section.voice("vi", violin)
        section.voice("ce", cello)
    return builder.build()


def _read_back(song: Song, tmp_path: Path) -> pretty_midi.PrettyMIDI:
    out = tmp_path / "song.mid"
    MidiExporter().export(song, str(out))
    return pretty_midi.PrettyMIDI(str(out))


def _instrument(midi: pretty_midi.PrettyMIDI, name: str) -> pretty_midi.Instrument:
    return next(instrument for instrument in midi.instruments if instrument.name == name)


def test_export_writes_standard_midi_file(tmp_path: Path) -> None:
    out = tmp_path / "song.mid"
    MidiExporter().export(_song(), str(out))

    data = out.read_bytes()
    assert data.startswith(b"MThd")
    assert data.count(b"MTrk") >= 3
    assert b"Test by Tester" in data
    assert b"Voice 0" in data
    assert b"Voice 1" in data


def test_export_skips_non_power_of_two_meter(tmp_path: Path) -> None:
    midi = _read_back(_song(time="3/3", violin="1:c", cello="1:c"), tmp_path)
    assert midi.time_signature_changes == []
    assert len(midi.instruments) == 2


def test_build_rejects_seventeen_voices() -> None:
    song = _song()
    instrument = song.instruments[0]
    song.voices.extend(Voice(instrument, index) for index in range(2, 17))
    assert len(song.voices) == 17
    with pytest.raises(TooManyVoices):
        MidiExporter().build(song)


def test_build_rejects_out_of_range_pitch() -> None:
    builder = SongBuilder().instrument("pc", "Piccolo")
    with builder.measure(1) as section:
        section.voice("pc", "1:c^^^^^^")
    with pytest.raises(ValueError, match="outside the MIDI range"):
        MidiExporter().build(builder.build())


def test_export_to_missing_directory_raises_oserror(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        MidiExporter().export(_song(), str(tmp_path / "missing" / "song.mid"))


# ---------------------------------------------------------------------------
# Reading the file back (tempo 120: one quarter note is 0.5 s)
# ---------------------------------------------------------------------------

def test_notes_read_back_with_timing_and_velocity(tmp_path: Path) -> None:
    midi = _read_back(_song(), tmp_path)

    violin = _instrument(midi, "Voice 0")
    assert violin.program == pretty_midi.instrument_name_to_program("Violin")
    notes = [(n.pitch, n.start, n.end, n.velocity) for n in violin.notes]
    assert [pitch for pitch, *_ in notes] == [64, 68, 69]
    # staccato c sounds for a 32nd; the rest folds into the e's onset
    assert notes[0][1:3] == (pytest.approx(0.0), pytest.approx(0.0625))
    assert notes[1][1:3] == (pytest.approx(1.0), pytest.approx(1.5))
    assert notes[2][1:3] == (pytest.approx(1.5), pytest.approx(1.75))
    assert [velocity for *_, velocity in notes] == [63, 75, 63]

    cello = _instrument(midi, "Voice 1")
    assert cello.program == pretty_midi.instrument_name_to_program("Cello")
    assert [(n.pitch, n.start, n.end) for n in cello.notes] == [
        (52, pytest.approx(0.0), pytest.approx(2.0))
    ]


def test_each_voice_gets_full_channel_volume(tmp_path: Path) -> None:
    midi = _read_back(_song(), tmp_path)
    for instrument in midi.instruments:
        volume = [cc for cc in instrument.control_changes if cc.number == 7]
        assert [(cc.value, cc.time) for cc in volume] == [(127, 0.0)]


@pytest.mark.parametrize(
    ("key", "key_number"),
    [("C+", 0), ("F+", 5), ("D+", 2), ("d-", 14), ("e-", 16), ("Eb+", 3)],
)
def test_key_signature_sign_and_mode(tmp_path: Path, key: str, key_number: int) -> None:
    midi = _read_back(_song(key=key), tmp_path)
    assert [change.key_number for change in midi.key_signature_changes] == [key_number]


def test_odd_meter_reads_back(tmp_path: Path) -> None:
    midi = _read_back(_song(time="5/8", violin="2:c 8:d", cello="2:c 8:&"), tmp_path)
    assert [(ts.numerator, ts.denominator, ts.time) for ts in midi.time_signature_changes] == [
        (5, 8, 0.0)
    ]


def test_meter_and_key_changes_are_written_where_they_happen(tmp_path: Path) -> None:
    builder = SongBuilder().tempo(120).time("4/4").key("F+").instrument("vi", "Violin")
    with builder.measures(1, 2) as section:
        section.voice("vi", "1:c 1:d")
    builder.time("3/4").key("d-")
    with builder.measure(3) as section:
        section.voice("vi", "2.:e")
    with builder.measure(4) as section:
        section.voice("vi", "2.:f")

    midi = _read_back(builder.build(), tmp_path)

    meters = [
        (midi.time_to_tick(ts.time), ts.numerator, ts.denominator)
        for ts in midi.time_signature_changes
    ]
    assert meters == [(0, 4, 4), (7680, 3, 4)]
    keys = [(change.time, change.key_number) for change in midi.key_signature_changes]
    assert keys == [(0.0, 5), (pytest.approx(4.0), 14)]
    assert [n.start for n in _instrument(midi, "Voice 0").notes] == pytest.approx(
        [0.0, 2.0, 4.0, 5.5]
    )
