from .base import (
    ChartDecodeError,
    Validateable,
)

from .chart import (
    BgEvent,
    ChartModel,
    Note,
    PauseEvent,
    TempoChange,
    TimelinePoint,
)

from .enums import (
    JudgeRankType,
    LnType,
    NoteKind,
    PlayMode,
    TotalType,
)

from .timeline import (
    TimelineEngine,
    TimelineEntry,
    merge_timing_events,
)
