"""
Classes that represent chart-related entities.
"""
import dataclasses
import operator

from dataclasses import dataclass, field
from pathlib import Path

from .base import Validateable
from .enums import (
    JudgeRankType,
    LnType,
    NoteKind,
    PlayMode,
    TotalType,
)

__all__ = [
    "Note",
    "BgEvent",
    "TempoChange",
    "PauseEvent",
    "TimelinePoint",
    "ChartModel",
]

DEFAULT_BPM = 130.0
DEFAULT_RANK = 2
DEFAULT_TOTAL = 300.0


@dataclass
class Note(Validateable):
    """
    A note placed on a lane.

    Times are absolute, in microseconds from the start of the chart. ``end_time_us`` and ``end_sound_id`` are only
    meaningful for long notes, and ``damage`` is only meaningful for mines.
    """

    lane: int
    kind: NoteKind
    time_us: int
    end_time_us: int = 0
    sound_id: int = 0
    end_sound_id: int = 0
    damage: float = 0.0
    micro_start_us: int = 0
    micro_duration_us: int = 0
    pair_index: int = -1
    """Index of the matching start/end note, only set in judge note lists."""
    is_release: bool = False
    """Whether this is the release half of a split long note, only set in judge note lists."""

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.lane < 0:
            raise ValueError(f"lane cannot be negative (got {self.lane})")
        if self.time_us < 0:
            raise ValueError(f"time cannot be negative (got {self.time_us})")
        if self.kind.is_long_note and not self.is_release and self.end_time_us <= self.time_us:
            raise ValueError(f"long note must end after it starts (got {self.time_us} -> {self.end_time_us})")

    @classmethod
    def normal(cls, lane: int, time_us: int, sound_id: int) -> "Note":
        return cls(lane, NoteKind.NORMAL, time_us, sound_id=sound_id)

    @classmethod
    def invisible(cls, lane: int, time_us: int, sound_id: int) -> "Note":
        return cls(lane, NoteKind.INVISIBLE, time_us, sound_id=sound_id)

    @classmethod
    def mine(cls, lane: int, time_us: int, sound_id: int, damage: float) -> "Note":
        return cls(lane, NoteKind.MINE, time_us, sound_id=sound_id, damage=damage)

    @classmethod
    def long_note(
        cls,
        lane: int,
        time_us: int,
        end_time_us: int,
        sound_id: int,
        end_sound_id: int,
        kind: NoteKind = NoteKind.LONG_NOTE,
    ) -> "Note":
        return cls(lane, kind, time_us, end_time_us=end_time_us, sound_id=sound_id, end_sound_id=end_sound_id)

    @property
    def is_long_note(self) -> bool:
        return self.kind.is_long_note

    @property
    def is_playable(self) -> bool:
        return self.kind.is_playable

    @property
    def duration_us(self) -> int:
        if not self.is_long_note:
            return 0
        return self.end_time_us - self.time_us


@dataclass
class BgEvent:
    """A sound played automatically, not bound to any lane."""

    sound_id: int
    time_us: int
    micro_start_us: int = 0
    micro_duration_us: int = 0


@dataclass(frozen=True)
class TempoChange:
    time_us: int
    bpm: float

    @property
    def value(self) -> float:
        return self.bpm


@dataclass(frozen=True)
class PauseEvent:
    time_us: int
    duration_us: int

    @property
    def value(self) -> int:
        return self.duration_us


@dataclass(frozen=True)
class TimelinePoint:
    """A distinct note time, annotated with the tempo in effect at that time."""

    time_us: int
    bpm: float


@dataclass(eq=False)
class ChartModel:
    """
    A fully decoded chart.

    Note lists are sorted by ``(time_us, lane)`` and hold at most one note per lane per time. Tempo changes and pauses
    are sorted by time.
    """

    # Metadata
    title: str = ""
    subtitle: str = ""
    artist: str = ""
    sub_artist: str = ""
    genre: str = ""
    banner: str = ""
    stage_file: str = ""
    back_bmp: str = ""
    preview: str = ""
    play_level: int = 0
    difficulty: int = 0
    judge_rank: int = DEFAULT_RANK
    judge_rank_type: JudgeRankType = JudgeRankType.BMS_RANK
    total: float = DEFAULT_TOTAL
    total_type: TotalType = TotalType.BMS
    ln_mode: LnType = LnType.LONG_NOTE
    play_mode: PlayMode = PlayMode.BEAT_7K
    player: int = 1
    initial_bpm: float = DEFAULT_BPM

    # Timeline
    notes: list[Note] = field(default_factory=list)
    background_events: list[BgEvent] = field(default_factory=list)
    tempo_changes: list[TempoChange] = field(default_factory=list)
    pause_events: list[PauseEvent] = field(default_factory=list)
    timeline_index: list[TimelinePoint] = field(default_factory=list)

    # Resources
    sound_table: dict[int, Path] = field(default_factory=dict)
    image_table: dict[int, Path] = field(default_factory=dict)

    # Identity and extents
    md5: str = ""
    sha256: str = ""
    total_measures: int = 0
    total_time_us: int = 0
    has_random: bool = False

    @property
    def total_notes(self) -> int:
        """Number of playable notes. Mines and invisible notes are not counted."""
        return sum(1 for note in self.notes if note.is_playable)

    @property
    def total_long_notes(self) -> int:
        return sum(1 for note in self.notes if note.is_long_note)

    @property
    def min_bpm(self) -> float:
        return min([self.initial_bpm, *(change.bpm for change in self.tempo_changes)])

    @property
    def max_bpm(self) -> float:
        return max([self.initial_bpm, *(change.bpm for change in self.tempo_changes)])

    @property
    def last_event_time_ms(self) -> int:
        """Time of the last note in milliseconds. Long notes count at their end."""
        last_us = 0
        for note in self.notes:
            last_us = max(last_us, note.end_time_us if note.is_long_note else note.time_us)
        return last_us // 1000

    def lane_notes(self, lane: int) -> list[Note]:
        """Return all notes on a lane, in time order."""
        return sorted((note for note in self.notes if note.lane == lane), key=operator.attrgetter("time_us"))

    def playable_notes(self) -> list[Note]:
        """Return all playable notes, in time order."""
        return sorted((note for note in self.notes if note.is_playable), key=operator.attrgetter("time_us"))

    def build_judge_notes(self) -> list[Note]:
        """
        Build the note list used for judgement, where each long note is split into a start and an end note.

        The returned list is stable-sorted by time then lane. The start and end notes of a long note refer to each
        other through ``pair_index``. The end note sits at the release time, has ``is_release`` set and carries the
        release sound. The chart's own note list is not modified.

        :returns: A new list of :class:`Note` objects.
        """
        split: list[Note] = []
        pairs: list[tuple[int, int]] = []
        for note in self.notes:
            split.append(dataclasses.replace(note, pair_index=-1))
            if note.is_long_note:
                pairs.append((len(split) - 1, len(split)))
                split.append(
                    Note(
                        note.lane,
                        note.kind,
                        note.end_time_us,
                        sound_id=note.end_sound_id,
                        is_release=True,
                    )
                )

        order = sorted(range(len(split)), key=lambda i: (split[i].time_us, split[i].lane))
        new_index = {old: new for new, old in enumerate(order)}
        for start, end in pairs:
            split[start].pair_index = new_index[end]
            split[end].pair_index = new_index[start]
        return [split[i] for i in order]
