"""
Decoder for BMS-family rhythm game charts, in the tagged text format and the JSON format.
"""
from .classes import (
    BgEvent,
    ChartDecodeError,
    ChartModel,
    JudgeRankType,
    LnType,
    Note,
    NoteKind,
    PauseEvent,
    PlayMode,
    TempoChange,
    TimelinePoint,
    TotalType,
)
from .parser import (
    BMSONParser,
    BMSParser,
    decode_chart,
    get_parser,
)

__version__ = "0.1.0"
