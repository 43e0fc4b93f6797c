"""
Classes that mirror the structure of a JSON-format (bmson) chart document.

Every record is built through ``from_dict``, which checks types strictly and raises :class:`ChartDecodeError` naming
the dotted path of the offending field.
"""
import math

from dataclasses import dataclass
from typing import Any

from .base import ChartDecodeError
from .timeline import MIN_BPM

__all__ = [
    "BmsonInfo",
    "SoundNote",
    "SoundChannel",
    "MineNote",
    "MineChannel",
    "BpmEvent",
    "StopEvent",
    "ScrollEvent",
    "BgaHeader",
    "Bmson",
]

_MISSING = object()


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _coerce(value: Any, kind: type, path: str) -> Any:
    # bool is a subclass of int, and must never pass as a number
    if kind is bool:
        if isinstance(value, bool):
            return value
    elif kind is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif kind is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            try:
                number = float(value)
            except OverflowError:
                number = math.inf
            if not math.isfinite(number):
                raise ChartDecodeError(f"expected a finite number, got {value}", path)
            return number
    elif isinstance(value, kind):
        return value
    raise ChartDecodeError(f"expected {kind.__name__}, got {type(value).__name__}", path)


def _get(obj: dict[str, Any], key: str, kind: type, path: str, default: Any = _MISSING) -> Any:
    """
    Read a field from a JSON object.

    :param obj: The JSON object.
    :param key: The field name.
    :param kind: The expected Python type.
    :param path: Dotted path of ``obj``, used in error messages.
    :param default: Value used when the field is absent or null. If not given, the field is required.
    :raises ChartDecodeError: if the field is required but missing, or has the wrong type.
    """
    value = obj.get(key)
    if value is None:
        if default is _MISSING:
            raise ChartDecodeError("required field is missing", _join(path, key))
        return default
    return _coerce(value, kind, _join(path, key))


def _get_pulse(obj: dict[str, Any], path: str) -> int:
    y = _get(obj, "y", int, path)
    if y < 0:
        raise ChartDecodeError(f"pulse cannot be negative (got {y})", _join(path, "y"))
    return y


def _get_records(obj: dict[str, Any], key: str, record_type: type, path: str) -> list:
    items = _get(obj, key, list, path, [])
    return [record_type.from_dict(item, f"{_join(path, key)}[{i}]") for i, item in enumerate(items)]


def _as_object(value: Any, path: str) -> dict[str, Any]:
    return _coerce(value, dict, path or "<root>")


@dataclass(frozen=True)
class BmsonInfo:
    """Chart metadata."""

    init_bpm: float
    title: str = ""
    subtitle: str = ""
    genre: str = ""
    artist: str = ""
    subartists: tuple[str, ...] = ()
    mode_hint: str = "beat-7k"
    chart_name: str = ""
    judge_rank: int = 100
    total: float = 100.0
    level: int = 0
    back_image: str = ""
    eyecatch_image: str = ""
    banner_image: str = ""
    preview_music: str = ""
    resolution: int = 240
    ln_type: int = 0

    @classmethod
    def from_dict(cls, data: Any, path: str = "info") -> "BmsonInfo":
        data = _as_object(data, path)
        init_bpm = _get(data, "init_bpm", float, path)
        if init_bpm < MIN_BPM:
            raise ChartDecodeError(f"must be at least {MIN_BPM} (got {init_bpm})", _join(path, "init_bpm"))
        subartists = _get(data, "subartists", list, path, [])
        return cls(
            init_bpm=init_bpm,
            title=_get(data, "title", str, path, ""),
            subtitle=_get(data, "subtitle", str, path, ""),
            genre=_get(data, "genre", str, path, ""),
            artist=_get(data, "artist", str, path, ""),
            subartists=tuple(_coerce(s, str, f"{_join(path, 'subartists')}[{i}]") for i, s in enumerate(subartists)),
            mode_hint=_get(data, "mode_hint", str, path, "beat-7k"),
            chart_name=_get(data, "chart_name", str, path, ""),
            judge_rank=_get(data, "judge_rank", int, path, 100),
            total=_get(data, "total", float, path, 100.0),
            level=_get(data, "level", int, path, 0),
            back_image=_get(data, "back_image", str, path, ""),
            eyecatch_image=_get(data, "eyecatch_image", str, path, ""),
            banner_image=_get(data, "banner_image", str, path, ""),
            preview_music=_get(data, "preview_music", str, path, ""),
            resolution=_get(data, "resolution", int, path, 240),
            ln_type=_get(data, "ln_type", int, path, 0),
        )


@dataclass(frozen=True)
class SoundNote:
    """
    A note of a sound channel.

    ``x`` is the 1-based lane, or 0 for background sound. ``l`` is the long note length in pulses. ``c`` continues
    the channel's sound from the previous note instead of restarting it. ``t`` overrides the long note type.
    ``up`` marks the release sound of a long note.
    """

    x: int
    y: int
    l: int = 0
    c: bool = False
    t: int = 0
    up: bool = False

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "SoundNote":
        data = _as_object(data, path)
        return cls(
            x=_get(data, "x", int, path),
            y=_get_pulse(data, path),
            l=_get(data, "l", int, path, 0),
            c=_get(data, "c", bool, path, False),
            t=_get(data, "t", int, path, 0),
            up=_get(data, "up", bool, path, False),
        )


@dataclass(frozen=True)
class SoundChannel:
    name: str = ""
    notes: tuple[SoundNote, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "SoundChannel":
        data = _as_object(data, path)
        return cls(
            name=_get(data, "name", str, path, ""),
            notes=tuple(_get_records(data, "notes", SoundNote, path)),
        )


@dataclass(frozen=True)
class MineNote:
    """A note of a key or mine channel. ``damage`` is only meaningful for mines."""

    x: int
    y: int
    damage: float = 0.0

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "MineNote":
        data = _as_object(data, path)
        return cls(
            x=_get(data, "x", int, path),
            y=_get_pulse(data, path),
            damage=_get(data, "damage", float, path, 0.0),
        )


@dataclass(frozen=True)
class MineChannel:
    name: str = ""
    notes: tuple[MineNote, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "MineChannel":
        data = _as_object(data, path)
        return cls(
            name=_get(data, "name", str, path, ""),
            notes=tuple(_get_records(data, "notes", MineNote, path)),
        )


@dataclass(frozen=True)
class BpmEvent:
    y: int
    bpm: float

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "BpmEvent":
        data = _as_object(data, path)
        return cls(y=_get_pulse(data, path), bpm=_get(data, "bpm", float, path))


@dataclass(frozen=True)
class StopEvent:
    """A pause, with ``duration`` given in pulses."""

    y: int
    duration: int

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "StopEvent":
        data = _as_object(data, path)
        return cls(y=_get_pulse(data, path), duration=_get(data, "duration", int, path))


@dataclass(frozen=True)
class ScrollEvent:
    y: int
    rate: float = 1.0

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "ScrollEvent":
        data = _as_object(data, path)
        return cls(y=_get_pulse(data, path), rate=_get(data, "rate", float, path, 1.0))


@dataclass(frozen=True)
class BgaHeader:
    id: int
    name: str = ""

    @classmethod
    def from_dict(cls, data: Any, path: str) -> "BgaHeader":
        data = _as_object(data, path)
        return cls(id=_get(data, "id", int, path), name=_get(data, "name", str, path, ""))


@dataclass(frozen=True)
class Bmson:
    """The root of a JSON-format chart document."""

    info: BmsonInfo
    version: str = ""
    bpm_events: tuple[BpmEvent, ...] = ()
    stop_events: tuple[StopEvent, ...] = ()
    scroll_events: tuple[ScrollEvent, ...] = ()
    sound_channels: tuple[SoundChannel, ...] = ()
    key_channels: tuple[MineChannel, ...] = ()
    mine_channels: tuple[MineChannel, ...] = ()
    bga_header: tuple[BgaHeader, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "Bmson":
        """
        Build a document from parsed JSON.

        :param data: The result of :func:`json.loads`.
        :raises ChartDecodeError: if the document does not match the expected structure.
        """
        data = _as_object(data, "")
        if data.get("info") is None:
            raise ChartDecodeError("required field is missing", "info")
        bga_header: list[BgaHeader] = []
        if data.get("bga") is not None:
            bga = _as_object(data["bga"], "bga")
            bga_header = _get_records(bga, "bga_header", BgaHeader, "bga")
        return cls(
            info=BmsonInfo.from_dict(data["info"]),
            version=_get(data, "version", str, "", ""),
            bpm_events=tuple(_get_records(data, "bpm_events", BpmEvent, "")),
            stop_events=tuple(_get_records(data, "stop_events", StopEvent, "")),
            scroll_events=tuple(_get_records(data, "scroll_events", ScrollEvent, "")),
            sound_channels=tuple(_get_records(data, "sound_channels", SoundChannel, "")),
            key_channels=tuple(_get_records(data, "key_channels", MineChannel, "")),
            mine_channels=tuple(_get_records(data, "mine_channels", MineChannel, "")),
            bga_header=tuple(bga_header),
        )
