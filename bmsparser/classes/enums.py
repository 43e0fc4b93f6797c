"""
General purpose enumerations.
"""
from enum import Enum, unique

__all__ = [
    "NoteKind",
    "LnType",
    "PlayMode",
    "JudgeRankType",
    "TotalType",
]

# fmt: off
_BEAT5_1P = (0, 1, 2, 3, 4, 5, -1, -1, -1)
_BEAT5_2P = (6, 7, 8, 9, 10, 11, -1, -1, -1)
_BEAT7_1P = (0, 1, 2, 3, 4, 7, -1, 5, 6)
_BEAT7_2P = (8, 9, 10, 11, 12, 15, -1, 13, 14)
_POPN_1P  = (0, 1, 2, 3, 4, -1, -1, -1, -1)
_POPN_2P  = (-1, 5, 6, 7, 8, -1, -1, -1, -1)

_BMSON_5K  = (0, 1, 2, 3, 4, -1, -1, 5)
_BMSON_10K = (0, 1, 2, 3, 4, -1, -1, 5, 6, 7, 8, 9, 10, -1, -1, 11)
# fmt: on


@unique
class NoteKind(Enum):
    """Enumeration for the kind of a lane note."""

    NORMAL = 0
    INVISIBLE = 1
    MINE = 2
    LONG_NOTE = 3
    CHARGE_NOTE = 4
    HELL_CHARGE_NOTE = 5

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()

    @property
    def is_long_note(self) -> bool:
        return self in (NoteKind.LONG_NOTE, NoteKind.CHARGE_NOTE, NoteKind.HELL_CHARGE_NOTE)

    @property
    def is_playable(self) -> bool:
        """Whether the note counts towards the note count."""
        return self not in (NoteKind.MINE, NoteKind.INVISIBLE)

    @property
    def priority(self) -> int:
        """Priority used when two notes occupy the same lane at the same time. Higher wins."""
        match self:
            case NoteKind.NORMAL | NoteKind.INVISIBLE:
                return 2
            case NoteKind.LONG_NOTE | NoteKind.CHARGE_NOTE | NoteKind.HELL_CHARGE_NOTE:
                return 1
            case NoteKind.MINE:
                return 0

        raise ValueError(f"invalid note kind (got {self})")


@unique
class LnType(Enum):
    """Enumeration for the chart-wide long note mode."""

    LONG_NOTE = 1
    CHARGE_NOTE = 2
    HELL_CHARGE_NOTE = 3

    def __str__(self) -> str:
        return f"{self.name.replace('_', ' ').title()} ({self.value})"

    @classmethod
    def from_value(cls, value: int) -> "LnType":
        """Map a numeric long note mode to a member. Unknown values map to regular long notes."""
        match value:
            case 2:
                return cls.CHARGE_NOTE
            case 3:
                return cls.HELL_CHARGE_NOTE
        return cls.LONG_NOTE

    @property
    def note_kind(self) -> NoteKind:
        match self:
            case LnType.LONG_NOTE:
                return NoteKind.LONG_NOTE
            case LnType.CHARGE_NOTE:
                return NoteKind.CHARGE_NOTE
            case LnType.HELL_CHARGE_NOTE:
                return NoteKind.HELL_CHARGE_NOTE

        raise ValueError(f"invalid long note type (got {self})")


@unique
class PlayMode(Enum):
    """
    Enumeration for the key layout of a chart.

    Values are the mode hint strings used by the JSON chart format.
    """

    BEAT_5K = "beat-5k"
    BEAT_7K = "beat-7k"
    BEAT_10K = "beat-10k"
    BEAT_14K = "beat-14k"
    POPN_5K = "popn-5k"
    POPN_9K = "popn-9k"
    KEYBOARD_24K = "keyboard-24k"
    KEYBOARD_24K_DOUBLE = "keyboard-24k-double"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_mode_hint(cls, hint: str) -> "PlayMode | None":
        """Return the mode matching a mode hint string, or `None` if the hint is unknown."""
        try:
            return cls(hint)
        except ValueError:
            return None

    @property
    def key_count(self) -> int:
        """Number of lanes, scratch lanes included."""
        match self:
            case PlayMode.BEAT_5K:
                return 6
            case PlayMode.BEAT_7K:
                return 8
            case PlayMode.BEAT_10K:
                return 12
            case PlayMode.BEAT_14K:
                return 16
            case PlayMode.POPN_5K:
                return 5
            case PlayMode.POPN_9K:
                return 9
            case PlayMode.KEYBOARD_24K:
                return 26
            case PlayMode.KEYBOARD_24K_DOUBLE:
                return 52

        raise ValueError(f"invalid play mode (got {self})")

    @property
    def player_count(self) -> int:
        if self in (PlayMode.BEAT_10K, PlayMode.BEAT_14K, PlayMode.KEYBOARD_24K_DOUBLE):
            return 2
        return 1

    @property
    def scratch_keys(self) -> tuple[int, ...]:
        """Lanes that are played with a turntable or wheel."""
        match self:
            case PlayMode.BEAT_5K:
                return (5,)
            case PlayMode.BEAT_7K:
                return (7,)
            case PlayMode.BEAT_10K:
                return (5, 11)
            case PlayMode.BEAT_14K:
                return (7, 15)
            case PlayMode.KEYBOARD_24K:
                return (24, 25)
            case PlayMode.KEYBOARD_24K_DOUBLE:
                return (24, 25, 50, 51)
        return ()

    def is_scratch_key(self, lane: int) -> bool:
        return lane in self.scratch_keys

    @property
    def channel_assign_1p(self) -> tuple[int, ...]:
        """Lane table for the 1P key channels, indexed by the channel's low digit minus one."""
        match self:
            case PlayMode.BEAT_5K | PlayMode.BEAT_10K:
                return _BEAT5_1P
            case PlayMode.POPN_5K | PlayMode.POPN_9K:
                return _POPN_1P
        return _BEAT7_1P

    @property
    def channel_assign_2p(self) -> tuple[int, ...]:
        """Lane table for the 2P key channels, indexed by the channel's low digit minus one."""
        match self:
            case PlayMode.BEAT_5K | PlayMode.BEAT_10K:
                return _BEAT5_2P
            case PlayMode.POPN_5K | PlayMode.POPN_9K:
                return _POPN_2P
        return _BEAT7_2P

    @property
    def bmson_key_assign(self) -> tuple[int, ...]:
        """Lane table for JSON-format notes, indexed by the note's ``x`` minus one."""
        match self:
            case PlayMode.BEAT_5K:
                return _BMSON_5K
            case PlayMode.BEAT_10K:
                return _BMSON_10K
        return tuple(range(self.key_count))


class JudgeRankType(Enum):
    """Enumeration for where the judge rank value of a chart came from."""

    BMS_RANK = 0
    """``#RANK``, an index from 0 (very hard) to 4 (very easy)."""
    BMS_DEFEXRANK = 1
    """``#DEFEXRANK``, a percentage of the normal judge window."""
    BMSON_JUDGE_RANK = 2
    """``info.judge_rank`` of a JSON chart, a percentage."""


class TotalType(Enum):
    """Enumeration for where the gauge total of a chart came from."""

    BMS = 0
    BMSON = 1
