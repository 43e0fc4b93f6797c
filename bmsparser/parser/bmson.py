import dataclasses
import json
import logging

from pathlib import Path

from .base import Parser, finalize_chart
from ..classes.base import ChartDecodeError
from ..classes.bmson import (
    Bmson,
    MineChannel,
    SoundChannel,
)
from ..classes.chart import (
    BgEvent,
    ChartModel,
    Note,
)
from ..classes.enums import (
    JudgeRankType,
    LnType,
    PlayMode,
    TotalType,
)
from ..classes.timeline import TimelineEngine, merge_timing_events
from ..encoding import compute_hashes, decode_text

__all__ = [
    "RELEASE_MATCH_TOLERANCE",
    "BMSONParser",
]

RELEASE_MATCH_TOLERANCE = 0.001
"""How close, in measures, a release sound must be to the end of a long note to be attached to it."""
DEFAULT_RESOLUTION = 240

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class _LongNoteRange:
    """Span of a long note in pulses, excluding its start."""

    start: int
    end: int

    def contains(self, y: int) -> bool:
        return self.start < y <= self.end


@dataclasses.dataclass(eq=False)
class BMSONParser(Parser):
    """
    Parser for the JSON chart format (``.bmson``).

    :param release_match_tolerance: Maximum distance, in measures, between a release sound and the end of the long
        note it belongs to.
    """

    release_match_tolerance: float = RELEASE_MATCH_TOLERANCE

    _file_path: Path = dataclasses.field(init=False, repr=False)
    _model: ChartModel = dataclasses.field(init=False, repr=False)
    _engine: TimelineEngine = dataclasses.field(init=False, repr=False)
    _key_assign: tuple[int, ...] = dataclasses.field(init=False, repr=False)
    _ln_ranges: dict[int, list[_LongNoteRange]] = dataclasses.field(init=False, repr=False)

    def parse(self, data: bytes, path: str | Path) -> ChartModel:
        self._file_path = Path(path)
        self._model = ChartModel()
        self._ln_ranges = {}
        self._model.md5, self._model.sha256 = compute_hashes(data)

        try:
            document = json.loads(decode_text(data))
        except json.JSONDecodeError as e:
            raise ChartDecodeError(f"invalid JSON document ({e})") from e
        bmson = Bmson.from_dict(document)

        self._read_info(bmson)
        self._build_timeline(bmson)

        sound_id = 0
        for channel in bmson.sound_channels:
            self._place_sound_channel(channel, sound_id)
            if channel.name:
                self._model.sound_table[sound_id] = self._file_path.parent / channel.name
            sound_id += 1
        for channel in bmson.key_channels:
            self._place_key_channel(channel, sound_id)
            sound_id += 1
        for channel in bmson.mine_channels:
            self._place_mine_channel(channel, sound_id)
            sound_id += 1

        return finalize_chart(self._model, self._engine)

    def _read_info(self, bmson: Bmson):
        info, model = bmson.info, self._model

        model.title = info.title
        model.subtitle = " ".join(part for part in (info.subtitle, info.chart_name and f"[{info.chart_name}]") if part)
        model.artist = info.artist
        model.sub_artist = ",".join(info.subartists)
        model.genre = info.genre
        if info.judge_rank >= 0:
            model.judge_rank = info.judge_rank
            model.judge_rank_type = JudgeRankType.BMSON_JUDGE_RANK
        if info.total > 0:
            model.total = info.total
            model.total_type = TotalType.BMSON
        model.initial_bpm = info.init_bpm
        model.play_level = info.level

        mode = PlayMode.from_mode_hint(info.mode_hint)
        if mode is None:
            logger.warning(f"unknown mode hint {info.mode_hint!r}, using {PlayMode.BEAT_7K}")
            mode = PlayMode.BEAT_7K
        model.play_mode = mode
        self._key_assign = mode.bmson_key_assign

        if 1 <= info.ln_type <= 3:
            model.ln_mode = LnType.from_value(info.ln_type)

        model.banner = info.banner_image
        model.back_bmp = info.back_image
        model.stage_file = info.eyecatch_image
        model.preview = info.preview_music
        for header in bmson.bga_header:
            if header.name:
                model.image_table[header.id] = self._file_path.parent / header.name

    def _build_timeline(self, bmson: Bmson):
        resolution = bmson.info.resolution if bmson.info.resolution > 0 else DEFAULT_RESOLUTION
        self._engine = TimelineEngine(self._model.initial_bpm, 4 * resolution)
        merge_timing_events(
            self._engine,
            [(event.y, event.bpm) for event in bmson.bpm_events],
            [(event.y, event.duration) for event in bmson.stop_events],
            [event.y for event in bmson.scroll_events],
        )

    def _lane_for(self, x: int) -> int:
        """Map a 1-based JSON lane to a lane index, or -1 if it has no lane."""
        if 0 < x <= len(self._key_assign):
            return self._key_assign[x - 1]
        return -1

    def _inside_long_note(self, lane: int, y: int) -> bool:
        return any(span.contains(y) for span in self._ln_ranges.get(lane, []))

    def _attach_release_sound(self, lane: int, y: int, sound_id: int):
        measure = y / self._engine.resolution
        for note in reversed(self._model.notes):
            if note.lane != lane or not note.is_long_note:
                continue
            end_measure = self._engine.tick_for_time(note.end_time_us) / self._engine.resolution
            if abs(end_measure - measure) < self.release_match_tolerance:
                note.end_sound_id = sound_id
                return
        logger.debug(f"dropped release sound on lane {lane} at pulse {y} with no matching long note")

    def _place_sound_channel(self, channel: SoundChannel, sound_id: int):
        model, engine = self._model, self._engine
        notes = sorted(channel.notes, key=lambda n: n.y)

        micro_start = 0
        for index, note in enumerate(notes):
            if not note.c:
                micro_start = 0

            time_us = engine.time_at(note.y)
            # A note lasts until the next continuing note of the channel, if there is one
            micro_duration = 0
            next_y = next((later.y for later in notes[index + 1 :] if later.y > note.y), None)
            if next_y is not None and any(later.y == next_y and later.c for later in notes[index + 1 :]):
                micro_duration = engine.time_at(next_y) - time_us

            lane = self._lane_for(note.x)
            if lane < 0:
                model.background_events.append(BgEvent(sound_id, time_us, micro_start, micro_duration))
            elif note.up:
                self._attach_release_sound(lane, note.y, sound_id)
            elif self._inside_long_note(lane, note.y):
                model.background_events.append(BgEvent(sound_id, time_us, micro_start, micro_duration))
            elif note.l > 0:
                kind = LnType.from_value(note.t).note_kind if 1 <= note.t <= 3 else model.ln_mode.note_kind
                end_y = note.y + note.l
                end_time_us = engine.time_at(end_y)
                if end_time_us > time_us:
                    placed = Note.long_note(lane, time_us, end_time_us, sound_id, sound_id, kind)
                    placed.micro_start_us, placed.micro_duration_us = micro_start, micro_duration
                    model.notes.append(placed)
                else:
                    logger.debug(f"dropped zero-length long note on lane {lane} at pulse {note.y}")
                self._ln_ranges.setdefault(lane, []).append(_LongNoteRange(note.y, end_y))
            else:
                placed = Note.normal(lane, time_us, sound_id)
                placed.micro_start_us, placed.micro_duration_us = micro_start, micro_duration
                model.notes.append(placed)

            micro_start += micro_duration

    def _place_key_channel(self, channel: MineChannel, sound_id: int):
        for note in sorted(channel.notes, key=lambda n: n.y):
            lane = self._lane_for(note.x)
            if lane >= 0:
                self._model.notes.append(Note.invisible(lane, self._engine.time_at(note.y), sound_id))

    def _place_mine_channel(self, channel: MineChannel, sound_id: int):
        for note in sorted(channel.notes, key=lambda n: n.y):
            lane = self._lane_for(note.x)
            if lane < 0 or self._inside_long_note(lane, note.y):
                continue
            self._model.notes.append(Note.mine(lane, self._engine.time_at(note.y), sound_id, note.damage))

