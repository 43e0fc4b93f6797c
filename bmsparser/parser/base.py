"""
Abstract base classes for parsers, and post-processing shared by all of them.
"""
import bisect
import itertools
import logging
import operator

from abc import ABC, abstractmethod
from pathlib import Path

from ..classes.chart import (
    ChartModel,
    Note,
    PauseEvent,
    TempoChange,
    TimelinePoint,
)
from ..classes.timeline import TimelineEngine

__all__ = [
    "TEMPO_EPSILON",
    "Parser",
    "deduplicate_notes",
    "finalize_chart",
]

TEMPO_EPSILON = 0.001
"""Tempo differences at or below this are not reported as tempo changes."""

logger = logging.getLogger(__name__)


class Parser(ABC):
    """
    An abstract base class for parsers that read a specific format.
    """

    _file_path: Path

    @abstractmethod
    def parse(self, data: bytes, path: str | Path) -> ChartModel:
        """
        Parse the contents of a chart file.

        :param data: The raw file contents.
        :param path: Path of the chart. Resource file names are resolved against its directory.
        """
        pass

    def decode(self, path: str | Path) -> ChartModel:
        """Read and parse a chart file. I/O errors are propagated as-is."""
        path = Path(path)
        return self.parse(path.read_bytes(), path)

    @property
    def file_path(self):
        """Path to the file to parse."""
        return self._file_path


def _note_key(note: Note) -> tuple[int, int]:
    return note.time_us, note.lane


def deduplicate_notes(notes: list[Note]) -> list[Note]:
    """
    Keep a single note for each lane and time.

    Normal and invisible notes win over long notes, which win over mines. On a tie, the earliest note is kept.

    :param notes: Notes sorted by time, then lane.
    :returns: A new list with duplicates removed.
    """
    kept: list[Note] = []
    for (time_us, lane), group in itertools.groupby(notes, key=_note_key):
        group = list(group)
        winner = max(group, key=lambda n: n.kind.priority)
        if len(group) > 1:
            logger.debug(f"dropped {len(group) - 1} overlapping note(s) on lane {lane} at {time_us}us")
        kept.append(winner)
    return kept


def finalize_chart(model: ChartModel, engine: TimelineEngine) -> ChartModel:
    """
    Order and clean up the notes of a chart, and derive its timing summaries from the timeline.

    :param model: A chart whose notes and background events have been filled in.
    :param engine: The timeline engine used to place them.
    :returns: The same chart, updated in place.
    """
    model.notes.sort(key=_note_key)
    model.notes = deduplicate_notes(model.notes)
    model.background_events.sort(key=operator.attrgetter("time_us"))

    tempo_changes: list[TempoChange] = []
    pause_events: list[PauseEvent] = []
    current_bpm = model.initial_bpm
    for _, entry in engine.entries():
        if abs(entry.bpm - current_bpm) > TEMPO_EPSILON:
            tempo_changes.append(TempoChange(int(entry.time), entry.bpm))
            current_bpm = entry.bpm
        if entry.pause_us > 0:
            pause_events.append(PauseEvent(int(entry.time), entry.pause_us))
    model.tempo_changes = tempo_changes
    model.pause_events = pause_events

    change_times = [change.time_us for change in tempo_changes]
    timeline_index: list[TimelinePoint] = []
    for time_us in sorted({note.time_us for note in model.notes}):
        index = bisect.bisect_right(change_times, time_us) - 1
        bpm = tempo_changes[index].bpm if index >= 0 else model.initial_bpm
        timeline_index.append(TimelinePoint(time_us, bpm))
    model.timeline_index = timeline_index

    last_note_us = 0
    for note in model.notes:
        last_note_us = max(last_note_us, note.end_time_us if note.is_long_note else note.time_us)
    model.total_time_us = max(engine.end_time_us, last_note_us)
    return model
