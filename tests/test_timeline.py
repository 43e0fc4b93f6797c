from fractions import Fraction

import pytest

from bmsparser.classes.timeline import TimelineEngine, merge_timing_events


def test_origin_and_projection():
    engine = TimelineEngine(120, 960)
    assert engine.time_at(0) == 0
    assert engine.time_at(240) == 500_000
    assert engine.time_at(960) == 2_000_000


def test_time_at_does_not_create_entries():
    engine = TimelineEngine(120, 960)
    engine.time_at(100)
    engine.time_at(5000)
    assert len(engine) == 1


def test_get_or_create_inherits_tempo():
    engine = TimelineEngine(150, 4)
    entry = engine.get_or_create(Fraction(2))
    assert entry.bpm == 150
    assert entry.time == pytest.approx(800_000)
    assert entry.pause_us == 0
    assert engine.get_or_create(Fraction(2)) is entry


def test_tempo_change():
    engine = TimelineEngine(120, 960)
    assert engine.set_tempo(960, 240)
    assert engine.time_at(960) == 2_000_000
    assert engine.time_at(1440) == 2_500_000


def test_pause_uses_tempo_at_its_tick():
    engine = TimelineEngine(120, 960)
    assert engine.add_pause(480, 240)
    assert engine.time_at(480) == 1_000_000
    assert engine.time_at(960) == 2_500_000
    assert engine.end_time_us == 1_500_000


def test_pauses_at_same_tick_accumulate():
    engine = TimelineEngine(120, 960)
    engine.add_pause(480, 240)
    engine.add_pause(480, 240)
    assert engine.time_at(960) == 3_000_000


def test_invalid_timing_values_are_ignored():
    engine = TimelineEngine(120, 960)
    assert not engine.set_tempo(0, 0)
    assert not engine.set_tempo(480, -120)
    assert not engine.set_tempo(480, 1e-320)
    assert not engine.set_tempo(480, float("nan"))
    assert not engine.add_pause(480, -1)
    assert engine.time_at(240) == 500_000


def test_events_must_be_ascending():
    engine = TimelineEngine(120, 960)
    engine.set_tempo(960, 150)
    with pytest.raises(ValueError):
        engine.set_tempo(480, 100)
    with pytest.raises(ValueError):
        engine.add_pause(480, 10)


def test_invalid_construction():
    with pytest.raises(ValueError):
        TimelineEngine(0, 4)
    with pytest.raises(ValueError):
        TimelineEngine(120, 0)
    with pytest.raises(ValueError):
        TimelineEngine(1e-320, 4)
    with pytest.raises(ValueError):
        TimelineEngine(float("inf"), 4)


@pytest.mark.parametrize("bpm", [60, 120, 155.5, 333])
@pytest.mark.parametrize("beats", [0, 1, 3.5, 17])
def test_beats_round_trip(bpm, beats):
    engine = TimelineEngine(bpm, 4)
    time_us = engine.time_at(Fraction(beats))
    assert engine.tick_for_time(time_us) == pytest.approx(beats, abs=1e-4)


def test_tick_for_time_inside_pause():
    engine = TimelineEngine(120, 4)
    engine.add_pause(4, 1)
    assert engine.tick_for_time(2_000_000) == 4.0
    assert engine.tick_for_time(2_200_000) == 4.0
    assert engine.tick_for_time(2_750_000) == pytest.approx(4.5)


def test_tick_for_time_after_tempo_change():
    engine = TimelineEngine(120, 4)
    engine.set_tempo(4, 240)
    assert engine.tick_for_time(2_250_000) == pytest.approx(5.0)


def test_merge_applies_pause_before_tempo():
    engine = TimelineEngine(120, 4)
    merge_timing_events(engine, [(2, 60.0)], [(2, 1)])
    entry = engine.get_or_create(2)
    assert entry.pause_us == 500_000
    assert entry.bpm == 60.0
    assert engine.time_at(3) == 2_500_000


def test_merge_sorts_events():
    engine = TimelineEngine(120, 4)
    merge_timing_events(engine, [(8, 90.0), (4, 60.0)], [], [6])
    assert [tick for tick, _ in engine.entries()] == [0, 4, 6, 8]
    assert [entry.bpm for _, entry in engine.entries()] == [120, 60.0, 60.0, 90.0]
