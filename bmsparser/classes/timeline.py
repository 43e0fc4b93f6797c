"""
Conversion between chart positions and absolute time.
"""
import bisect
import itertools
import logging
import math

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from enum import IntEnum
from fractions import Fraction
from numbers import Real

__all__ = [
    "MIN_BPM",
    "is_valid_tempo",
    "TimelineEntry",
    "TimelineEngine",
    "merge_timing_events",
]

MICROSECONDS_PER_MEASURE = 240_000_000
"""Length of a 4-beat measure at 1 BPM, in microseconds."""
MIN_BPM = 1e-6
"""Slowest tempo accepted. Slower tempos would push chart times out of floating point range."""


class _EventOrder(IntEnum):
    """Order of application for events sharing a tick."""

    SCROLL = 0
    PAUSE = 1
    TEMPO = 2


logger = logging.getLogger(__name__)


def is_valid_tempo(bpm: float) -> bool:
    """Whether a tempo can drive the timeline: finite and no slower than :data:`MIN_BPM`."""
    return math.isfinite(bpm) and bpm >= MIN_BPM


Tick = int | Fraction


@dataclass(frozen=True)
class TimelineEntry:
    """
    State of the timeline at a tick where something happens.

    :param time: Absolute time of the tick, in microseconds.
    :param bpm: Tempo in effect from this tick onwards.
    :param pause_us: Length of the pause that starts at this tick, in microseconds.
    """

    time: float
    bpm: float
    pause_us: int = 0


class TimelineEngine:
    """
    A sparse, ordered cache of timeline entries keyed by tick.

    Ticks can be any ordered numbers, as long as ``resolution`` ticks make up a 4-beat measure. The time of a tick
    past an entry is projected from the entry's time, pause and tempo. Entries are created in ascending order, so the
    time of an existing entry is never revised.
    """

    def __init__(self, initial_bpm: float, resolution: Real):
        if not is_valid_tempo(initial_bpm):
            raise ValueError(f"initial tempo must be a finite number of at least {MIN_BPM} (got {initial_bpm})")
        if resolution <= 0:
            raise ValueError(f"resolution must be positive (got {resolution})")
        self._resolution = resolution
        self._ticks: list[Tick] = [0]
        self._entries: dict[Tick, TimelineEntry] = {0: TimelineEntry(0.0, initial_bpm)}

    def __len__(self) -> int:
        return len(self._ticks)

    @property
    def resolution(self) -> Real:
        """Number of ticks in a 4-beat measure."""
        return self._resolution

    @property
    def end_time_us(self) -> int:
        """Time at which the last entry, pause included, is over."""
        entry = self._entries[self._ticks[-1]]
        return int(entry.time + entry.pause_us)

    def entries(self) -> Iterator[tuple[Tick, TimelineEntry]]:
        """Iterate over ``(tick, entry)`` pairs in tick order."""
        for tick in self._ticks:
            yield tick, self._entries[tick]

    def _predecessor(self, tick: Tick) -> tuple[Tick, TimelineEntry]:
        index = bisect.bisect_right(self._ticks, tick) - 1
        if index < 0:
            raise ValueError(f"tick cannot be negative (got {tick})")
        prev_tick = self._ticks[index]
        return prev_tick, self._entries[prev_tick]

    def _project(self, tick: Tick) -> float:
        prev_tick, prev = self._predecessor(tick)
        if prev_tick == tick:
            return prev.time
        elapsed = MICROSECONDS_PER_MEASURE * float(tick - prev_tick) / (prev.bpm * float(self._resolution))
        return prev.time + prev.pause_us + elapsed

    def time_at(self, tick: Tick) -> int:
        """
        Get the absolute time of a tick without modifying the cache.

        :param tick: A non-negative tick.
        :returns: Time in microseconds, truncated towards zero.
        """
        return int(self._project(tick))

    def get_or_create(self, tick: Tick) -> TimelineEntry:
        """
        Get the entry at a tick, creating it from its predecessor if necessary.

        A created entry inherits the tempo of its predecessor and has no pause.
        """
        if tick in self._entries:
            return self._entries[tick]
        _, prev = self._predecessor(tick)
        entry = TimelineEntry(self._project(tick), prev.bpm)
        bisect.insort(self._ticks, tick)
        self._entries[tick] = entry
        return entry

    def _check_order(self, tick: Tick):
        if tick < self._ticks[-1]:
            raise ValueError(f"timing events must be applied in ascending order (got {tick} after {self._ticks[-1]})")

    def set_tempo(self, tick: Tick, bpm: float) -> bool:
        """
        Change the tempo from a tick onwards. Tempos rejected by :func:`is_valid_tempo` are ignored.

        :returns: Whether the change was applied.
        """
        if not is_valid_tempo(bpm):
            logger.debug(f"ignoring invalid tempo {bpm} at tick {tick}")
            return False
        self._check_order(tick)
        entry = self.get_or_create(tick)
        self._entries[tick] = replace(entry, bpm=bpm)
        return True

    def add_pause(self, tick: Tick, length: Real) -> bool:
        """
        Add a pause at a tick. Negative lengths are ignored.

        The length is given in ticks and converted using the tempo in effect at the tick. Several pauses at the same
        tick add up.

        :returns: Whether the pause was applied.
        """
        if length < 0:
            logger.debug(f"ignoring negative pause {length} at tick {tick}")
            return False
        self._check_order(tick)
        entry = self.get_or_create(tick)
        pause_us = int(MICROSECONDS_PER_MEASURE * float(length) / (entry.bpm * float(self._resolution)))
        self._entries[tick] = replace(entry, pause_us=entry.pause_us + pause_us)
        return True

    def register_scroll(self, tick: Tick) -> TimelineEntry:
        """Make sure an entry exists at the tick of a scroll change."""
        self._check_order(tick)
        return self.get_or_create(tick)

    def tick_for_time(self, time_us: float) -> float:
        """
        Get the tick at an absolute time. This is the inverse of :meth:`time_at`.

        A time that falls inside a pause maps to the tick where the pause starts.

        :param time_us: Time in microseconds.
        :returns: The tick, as a float.
        """
        found_tick, found = self._ticks[0], self._entries[self._ticks[0]]
        for tick, entry in self.entries():
            if entry.time > time_us:
                break
            found_tick, found = tick, entry
        remaining = time_us - found.time - found.pause_us
        if remaining <= 0:
            return float(found_tick)
        return float(found_tick) + remaining * found.bpm * float(self._resolution) / MICROSECONDS_PER_MEASURE


def merge_timing_events(
    engine: TimelineEngine,
    tempo_events: Iterable[tuple[Tick, float]],
    pause_events: Iterable[tuple[Tick, Real]],
    scroll_events: Iterable[Tick] = (),
) -> None:
    """
    Apply timing events to a timeline engine in ascending tick order.

    Events that share a tick are applied scroll first, then pauses, then tempo changes, so that a pause at a tempo
    change is measured with the old tempo. Events of the same kind keep their declaration order.

    :param engine: The engine to update.
    :param tempo_events: ``(tick, bpm)`` pairs.
    :param pause_events: ``(tick, length in ticks)`` pairs.
    :param scroll_events: Ticks of scroll changes.
    """
    merged = sorted(
        itertools.chain(
            ((tick, _EventOrder.SCROLL, None) for tick in scroll_events),
            ((tick, _EventOrder.PAUSE, length) for tick, length in pause_events),
            ((tick, _EventOrder.TEMPO, bpm) for tick, bpm in tempo_events),
        ),
        key=lambda event: (event[0], event[1]),
    )
    for tick, order, value in merged:
        match order:
            case _EventOrder.SCROLL:
                engine.register_scroll(tick)
            case _EventOrder.PAUSE:
                engine.add_pause(tick, value)
            case _EventOrder.TEMPO:
                engine.set_tempo(tick, value)
