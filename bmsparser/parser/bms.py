import dataclasses
import logging
import re

from collections.abc import Callable
from enum import Enum
from fractions import Fraction
from pathlib import Path
from typing import TypeVar

from .base import Parser, finalize_chart
from .control_flow import RandomResolver
from ..classes.chart import (
    DEFAULT_BPM,
    DEFAULT_RANK,
    DEFAULT_TOTAL,
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
from ..classes.timeline import TimelineEngine, is_valid_tempo, merge_timing_events
from ..encoding import compute_hashes, decode_text
from ..utils import (
    parse_base36,
    parse_float,
    parse_fraction,
    parse_hex,
    parse_int,
    split_tokens,
)

__all__ = [
    "HeaderEvent",
    "ChannelToken",
    "ChannelEvent",
    "MeasureLengthEvent",
    "parse_line",
    "BMSParser",
]

T = TypeVar("T")

CHANNEL_REGEX = re.compile(r"^#(\d{3})([0-9A-Za-z]{2}):(.*)$")
HEADER_REGEX = re.compile(r"^#(\w+)(?:\s+(.*))?$")

BEATS_PER_MEASURE = 4
PAUSE_TICKS_PER_BEAT = 48
DEFAULT_DEFEXRANK = 100

BGM_CHANNEL = 0x01
MEASURE_LENGTH_CHANNEL = 0x02
TEMPO_CHANNEL = 0x03
EXTENDED_TEMPO_CHANNEL = 0x08
PAUSE_CHANNEL = 0x09

logger = logging.getLogger(__name__)


class _ChannelFamily(Enum):
    VISIBLE = 0
    INVISIBLE = 1
    LONG_NOTE = 2
    MINE = 3


# fmt: off
# Keyed by the high digit of the channel, mapping to the family and the player side
CHANNEL_FAMILY_MAP = {
    0x1: (_ChannelFamily.VISIBLE,   1),
    0x2: (_ChannelFamily.VISIBLE,   2),
    0x3: (_ChannelFamily.INVISIBLE, 1),
    0x4: (_ChannelFamily.INVISIBLE, 2),
    0x5: (_ChannelFamily.LONG_NOTE, 1),
    0x6: (_ChannelFamily.LONG_NOTE, 2),
    0xD: (_ChannelFamily.MINE,      1),
    0xE: (_ChannelFamily.MINE,      2),
}
# fmt: on


@dataclasses.dataclass(frozen=True)
class HeaderEvent:
    """A ``#KEY value`` line. The key is upper-cased, the value is kept as written."""

    key: str
    value: str


@dataclasses.dataclass(frozen=True)
class ChannelToken:
    """A non-zero two-character token of a channel payload, being the ``index``-th of ``count`` tokens."""

    index: int
    count: int
    value: int
    text: str

    @property
    def position(self) -> Fraction:
        """Position of the token within its measure, in [0, 1)."""
        return Fraction(self.index, self.count)


@dataclasses.dataclass(frozen=True)
class ChannelEvent:
    measure: int
    channel: int
    tokens: tuple[ChannelToken, ...]


@dataclasses.dataclass(frozen=True)
class MeasureLengthEvent:
    """A measure length override, as a multiple of a 4-beat measure."""

    measure: int
    length: Fraction


@dataclasses.dataclass
class _PendingLongNote:
    sound_id: int
    time_us: int


def parse_line(line: str) -> HeaderEvent | ChannelEvent | MeasureLengthEvent | None:
    """
    Classify a trimmed chart line.

    :returns: The parsed event, or `None` if the line is not recognized.
    """
    if match := CHANNEL_REGEX.match(line):
        measure = int(match.group(1))
        try:
            channel = parse_hex(match.group(2))
        except ValueError:
            return None
        payload = match.group(3).strip()

        if channel == MEASURE_LENGTH_CHANNEL:
            try:
                length = parse_fraction(payload)
            except ValueError:
                logger.warning(f"invalid measure length {payload!r} for measure {measure}, using 1")
                length = Fraction(1)
            if length <= 0:
                logger.warning(f"non-positive measure length {payload!r} for measure {measure}, using 1")
                length = Fraction(1)
            return MeasureLengthEvent(measure, length)

        texts = split_tokens(payload)
        tokens = tuple(
            ChannelToken(i, len(texts), value, text)
            for i, text in enumerate(texts)
            if (value := parse_base36(text)) != 0
        )
        return ChannelEvent(measure, channel, tokens)

    if match := HEADER_REGEX.match(line):
        return HeaderEvent(match.group(1).upper(), (match.group(2) or "").strip())

    return None


@dataclasses.dataclass(eq=False)
class BMSParser(Parser):
    """
    Parser for the line-oriented tagged chart format (``.bms``, ``.bme``, ``.bml``, ``.pms``).

    :param selected_randoms: Values to use for the ``#RANDOM`` blocks of the chart, in order of appearance. Blocks
        without an entry draw a random value.
    """

    selected_randoms: list[int] | None = None

    _file_path: Path = dataclasses.field(init=False, repr=False)
    _model: ChartModel = dataclasses.field(init=False, repr=False)
    _resolver: RandomResolver = dataclasses.field(init=False, repr=False)
    _extended_bpms: dict[int, float] = dataclasses.field(init=False, repr=False)
    _stop_defs: dict[int, int] = dataclasses.field(init=False, repr=False)
    _measure_lengths: dict[int, Fraction] = dataclasses.field(init=False, repr=False)
    _measure_starts: list[Fraction] = dataclasses.field(init=False, repr=False)
    _channel_events: list[ChannelEvent] = dataclasses.field(init=False, repr=False)
    _max_measure: int = dataclasses.field(init=False, repr=False)
    _max_1p_key: int = dataclasses.field(init=False, repr=False)
    _has_2p: bool = dataclasses.field(init=False, repr=False)

    def _reset(self, path: Path):
        self._file_path = path
        self._model = ChartModel()
        self._resolver = RandomResolver(self.selected_randoms)
        self._extended_bpms = {}
        self._stop_defs = {}
        self._measure_lengths = {}
        self._measure_starts = []
        self._channel_events = []
        self._max_measure = 0
        self._max_1p_key = 0
        self._has_2p = False

    def parse(self, data: bytes, path: str | Path) -> ChartModel:
        self._reset(Path(path))
        self._model.md5, self._model.sha256 = compute_hashes(data)

        for lineno, line in enumerate(decode_text(data).splitlines(), start=1):
            self._read_line(lineno, line.strip())

        self._model.has_random = self._resolver.used
        self._model.total_measures = self._max_measure + 1
        self._model.play_mode = self._detect_play_mode()

        engine = self._build_timeline()
        self._place_notes(engine)
        return finalize_chart(self._model, engine)

    def _read_line(self, lineno: int, line: str):
        if not line.startswith("#"):
            return
        if self._resolver.process(line):
            return
        if not self._resolver.is_active:
            return

        match parse_line(line):
            case MeasureLengthEvent() as event:
                self._measure_lengths[event.measure] = event.length
                self._max_measure = max(self._max_measure, event.measure)
            case ChannelEvent() as event:
                self._handle_channel(event)
            case HeaderEvent() as event:
                self._handle_header(lineno, event)

    def _parse_value(self, parse: Callable[[str], T], event: HeaderEvent, default: T, lineno: int) -> T:
        try:
            return parse(event.value)
        except ValueError:
            logger.warning(f"invalid #{event.key} value {event.value!r} at line {lineno}, using {default}")
            return default

    def _handle_header(self, lineno: int, event: HeaderEvent):
        model = self._model
        key, value = event.key, event.value
        match key:
            case "PLAYER":
                model.player = self._parse_value(parse_int, event, 1, lineno)
            case "GENRE":
                model.genre = value
            case "TITLE":
                model.title = value
            case "SUBTITLE":
                model.subtitle = value
            case "ARTIST":
                model.artist = value
            case "SUBARTIST":
                model.sub_artist = value
            case "BPM":
                bpm = self._parse_value(parse_float, event, DEFAULT_BPM, lineno)
                if not is_valid_tempo(bpm):
                    logger.warning(f"unusable initial tempo {bpm} at line {lineno}, using {DEFAULT_BPM}")
                    bpm = DEFAULT_BPM
                model.initial_bpm = bpm
            case "RANK":
                model.judge_rank = self._parse_value(parse_int, event, DEFAULT_RANK, lineno)
                model.judge_rank_type = JudgeRankType.BMS_RANK
            case "DEFEXRANK":
                model.judge_rank = self._parse_value(parse_int, event, DEFAULT_DEFEXRANK, lineno)
                model.judge_rank_type = JudgeRankType.BMS_DEFEXRANK
            case "TOTAL":
                model.total = self._parse_value(parse_float, event, DEFAULT_TOTAL, lineno)
                model.total_type = TotalType.BMS
            case "PLAYLEVEL":
                model.play_level = self._parse_value(parse_int, event, 0, lineno)
            case "DIFFICULTY":
                model.difficulty = self._parse_value(parse_int, event, 0, lineno)
            case "LNTYPE":
                model.ln_mode = LnType.from_value(self._parse_value(parse_int, event, 1, lineno))
            case "BANNER":
                model.banner = value
            case "STAGEFILE":
                model.stage_file = value
            case "BACKBMP":
                model.back_bmp = value
            case "PREVIEW":
                model.preview = value
            case _ if len(key) == 5 and key.startswith("BPM"):
                self._extended_bpms[parse_base36(key[3:])] = self._parse_value(parse_float, event, 0.0, lineno)
            case _ if len(key) == 5 and key.startswith("WAV"):
                if value:
                    model.sound_table[parse_base36(key[3:])] = self._file_path.parent / value
            case _ if len(key) == 5 and key.startswith("BMP"):
                if value:
                    model.image_table[parse_base36(key[3:])] = self._file_path.parent / value
            case _ if len(key) == 6 and key.startswith("STOP"):
                self._stop_defs[parse_base36(key[4:])] = self._parse_value(parse_int, event, 0, lineno)
            case _:
                logger.debug(f"ignoring unknown header #{key} at line {lineno}")

    def _handle_channel(self, event: ChannelEvent):
        self._max_measure = max(self._max_measure, event.measure)
        channel = event.channel
        if 0x11 <= channel <= 0x19:
            self._max_1p_key = max(self._max_1p_key, channel - 0x10)
        elif 0x51 <= channel <= 0x59:
            self._max_1p_key = max(self._max_1p_key, channel - 0x50)
        elif 0x21 <= channel <= 0x29:
            self._has_2p = True
        self._channel_events.append(event)

    def _detect_play_mode(self) -> PlayMode:
        if self._file_path.suffix.lower() == ".pms":
            return PlayMode.POPN_9K
        if self._has_2p or self._model.player == 3:
            return PlayMode.BEAT_14K if self._max_1p_key > 6 else PlayMode.BEAT_10K
        return PlayMode.BEAT_7K if self._max_1p_key > 6 else PlayMode.BEAT_5K

    def _measure_length(self, measure: int) -> Fraction:
        return self._measure_lengths.get(measure, Fraction(1))

    def _beat_position(self, measure: int, token: ChannelToken) -> Fraction:
        """Absolute position of a token, in beats from the start of the chart."""
        return self._measure_starts[measure] + BEATS_PER_MEASURE * self._measure_length(measure) * token.position

    def _build_timeline(self) -> TimelineEngine:
        start = Fraction(0)
        self._measure_starts = []
        for measure in range(self._max_measure + 2):
            self._measure_starts.append(start)
            start += BEATS_PER_MEASURE * self._measure_length(measure)

        tempo_events: list[tuple[Fraction, float]] = []
        pause_events: list[tuple[Fraction, Fraction]] = []
        for event in self._channel_events:
            if event.channel == TEMPO_CHANNEL:
                for token in event.tokens:
                    try:
                        bpm = parse_hex(token.text)
                    except ValueError:
                        logger.debug(f"ignoring non-hexadecimal tempo {token.text!r} in measure {event.measure}")
                        continue
                    tempo_events.append((self._beat_position(event.measure, token), float(bpm)))
            elif event.channel == EXTENDED_TEMPO_CHANNEL:
                for token in event.tokens:
                    if token.value not in self._extended_bpms:
                        logger.debug(f"ignoring undefined tempo {token.text} in measure {event.measure}")
                        continue
                    tempo_events.append((self._beat_position(event.measure, token), self._extended_bpms[token.value]))
            elif event.channel == PAUSE_CHANNEL:
                for token in event.tokens:
                    if token.value not in self._stop_defs:
                        logger.debug(f"ignoring undefined pause {token.text} in measure {event.measure}")
                        continue
                    length = Fraction(self._stop_defs[token.value], PAUSE_TICKS_PER_BEAT)
                    pause_events.append((self._beat_position(event.measure, token), length))

        engine = TimelineEngine(self._model.initial_bpm, BEATS_PER_MEASURE)
        merge_timing_events(engine, tempo_events, pause_events)
        engine.get_or_create(self._measure_starts[self._max_measure + 1])
        return engine

    def _place_notes(self, engine: TimelineEngine):
        model = self._model
        tokens_by_channel: dict[int, list[tuple[Fraction, ChannelToken]]] = {}
        for event in self._channel_events:
            positions = [(self._beat_position(event.measure, token), token) for token in event.tokens]
            tokens_by_channel.setdefault(event.channel, []).extend(positions)

        pending: dict[tuple[int, int], _PendingLongNote] = {}
        for channel, tokens in tokens_by_channel.items():
            tokens.sort(key=lambda item: item[0])

            if channel == BGM_CHANNEL:
                for position, token in tokens:
                    model.background_events.append(BgEvent(token.value, engine.time_at(position)))
                continue

            digit = channel & 0x0F
            if channel >> 4 not in CHANNEL_FAMILY_MAP or not 1 <= digit <= 9:
                continue
            family, player = CHANNEL_FAMILY_MAP[channel >> 4]
            assign = model.play_mode.channel_assign_1p if player == 1 else model.play_mode.channel_assign_2p
            lane = assign[digit - 1]

            for position, token in tokens:
                time_us = engine.time_at(position)
                if lane < 0:
                    if family in (_ChannelFamily.VISIBLE, _ChannelFamily.LONG_NOTE):
                        model.background_events.append(BgEvent(token.value, time_us))
                    continue

                match family:
                    case _ChannelFamily.VISIBLE:
                        model.notes.append(Note.normal(lane, time_us, token.value))
                    case _ChannelFamily.INVISIBLE:
                        model.notes.append(Note.invisible(lane, time_us, token.value))
                    case _ChannelFamily.MINE:
                        model.notes.append(Note.mine(lane, time_us, token.value, float(token.value)))
                    case _ChannelFamily.LONG_NOTE:
                        key = (digit, lane)
                        start = pending.pop(key, None)
                        if start is None:
                            pending[key] = _PendingLongNote(token.value, time_us)
                        elif time_us > start.time_us:
                            model.notes.append(
                                Note.long_note(
                                    lane,
                                    start.time_us,
                                    time_us,
                                    start.sound_id,
                                    token.value,
                                    model.ln_mode.note_kind,
                                )
                            )
                        else:
                            logger.debug(f"dropped zero-length long note on lane {lane} at {time_us}us")

        for (_, lane), start in pending.items():
            logger.debug(f"dropped unclosed long note on lane {lane} at {start.time_us}us")
