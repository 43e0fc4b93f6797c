import pytest

from bmsparser.classes.chart import ChartModel, Note, TempoChange
from bmsparser.classes.enums import LnType, NoteKind, PlayMode


def test_long_note_must_end_after_start():
    with pytest.raises(ValueError):
        Note.long_note(0, 100, 100, 1, 1)
    with pytest.raises(ValueError):
        Note.normal(-1, 0, 1)
    with pytest.raises(ValueError):
        Note.normal(0, -5, 1)


def test_note_counts():
    model = ChartModel(
        notes=[
            Note.normal(0, 0, 1),
            Note.long_note(1, 0, 1000, 2, 3),
            Note.mine(2, 0, 4, 10.0),
            Note.invisible(3, 0, 5),
        ]
    )
    assert model.total_notes == 2
    assert model.total_long_notes == 1
    assert [note.lane for note in model.playable_notes()] == [0, 1]
    assert model.lane_notes(2)[0].kind is NoteKind.MINE


def test_tempo_range():
    model = ChartModel(initial_bpm=150, tempo_changes=[TempoChange(1000, 75.0), TempoChange(2000, 300.0)])
    assert model.min_bpm == 75.0
    assert model.max_bpm == 300.0
    assert ChartModel(initial_bpm=140).max_bpm == 140


def test_last_event_time_counts_long_note_end():
    model = ChartModel(notes=[Note.long_note(0, 1_000_000, 2_500_000, 1, 1), Note.normal(1, 2_000_000, 1)])
    assert model.last_event_time_ms == 2500


def test_build_judge_notes_splits_long_notes():
    long_note = Note.long_note(0, 0, 1000, 1, 7)
    model = ChartModel(notes=[long_note, Note.normal(1, 500, 2)])
    judge = model.build_judge_notes()

    assert [(note.time_us, note.lane) for note in judge] == [(0, 0), (500, 1), (1000, 0)]
    assert judge[0].pair_index == 2
    assert judge[2].pair_index == 0
    assert judge[1].pair_index == -1
    assert judge[2].is_release
    assert judge[2].sound_id == 7

    assert len(model.notes) == 2
    assert model.notes[0].pair_index == -1


def test_note_priority():
    assert NoteKind.NORMAL.priority == NoteKind.INVISIBLE.priority == 2
    assert NoteKind.HELL_CHARGE_NOTE.priority == 1
    assert NoteKind.MINE.priority == 0


def test_ln_type_from_value():
    assert LnType.from_value(2) is LnType.CHARGE_NOTE
    assert LnType.from_value(3) is LnType.HELL_CHARGE_NOTE
    assert LnType.from_value(7) is LnType.LONG_NOTE
    assert LnType.CHARGE_NOTE.note_kind is NoteKind.CHARGE_NOTE


def test_play_mode_tables():
    assert PlayMode.from_mode_hint("beat-14k") is PlayMode.BEAT_14K
    assert PlayMode.from_mode_hint("nope") is None
    assert PlayMode.BEAT_10K.channel_assign_1p == (0, 1, 2, 3, 4, 5, -1, -1, -1)
    assert PlayMode.BEAT_14K.channel_assign_2p == (8, 9, 10, 11, 12, 15, -1, 13, 14)
    assert PlayMode.POPN_9K.channel_assign_2p == (-1, 5, 6, 7, 8, -1, -1, -1, -1)
    assert PlayMode.KEYBOARD_24K.bmson_key_assign == tuple(range(26))
    assert PlayMode.BEAT_5K.bmson_key_assign == (0, 1, 2, 3, 4, -1, -1, 5)
    assert PlayMode.BEAT_14K.key_count == 16
    assert PlayMode.BEAT_14K.player_count == 2
    assert PlayMode.KEYBOARD_24K_DOUBLE.scratch_keys == (24, 25, 50, 51)
    assert PlayMode.BEAT_7K.is_scratch_key(7)
