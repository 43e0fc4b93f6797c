"""
Resolution of the ``#RANDOM`` / ``#IF`` branching directives of the tagged chart format.
"""
import dataclasses
import logging
import random
import re

from ..utils import parse_int

__all__ = [
    "RandomState",
    "RandomResolver",
]

CONTROL_REGEX = re.compile(r"^#(RANDOM|IF|ENDIF|ENDRANDOM)(?:\s+(.*))?$", re.IGNORECASE)

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class RandomState:
    """A ``#RANDOM`` block: its bound, the chosen value and whether the current ``#IF`` branch matches it."""

    bound: int
    value: int
    active: bool = True


@dataclasses.dataclass(eq=False)
class RandomResolver:
    """
    Tracks nested ``#RANDOM`` blocks while a chart is read line by line.

    Each ``#RANDOM`` takes its value from ``selected`` if the list holds an entry for it, in order of appearance.
    Otherwise a value is drawn uniformly from ``[1, bound]``.

    Directives are evaluated even inside inactive branches, so that nested blocks keep consuming their entries of
    ``selected`` consistently.
    """

    selected: list[int] | None = None

    _stack: list[RandomState] = dataclasses.field(init=False, repr=False, default_factory=list)
    _count: int = dataclasses.field(init=False, repr=False, default=0)

    @property
    def used(self) -> bool:
        """Whether any ``#RANDOM`` block has been seen."""
        return self._count > 0

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def is_active(self) -> bool:
        """Whether lines at the current position should be read."""
        return all(state.active for state in self._stack)

    def process(self, line: str) -> bool:
        """
        Handle a line if it is a branching directive.

        :param line: A trimmed chart line.
        :returns: `True` if the line was a directive and has been consumed, `False` otherwise.
        """
        match = CONTROL_REGEX.match(line)
        if match is None:
            return False

        directive, argument = match.group(1).upper(), (match.group(2) or "").strip()
        match directive:
            case "RANDOM":
                try:
                    bound = parse_int(argument.split()[0] if argument else "")
                except ValueError:
                    logger.warning(f"invalid random bound {argument!r}, using 1")
                    bound = 1
                self.begin_random(bound)
            case "IF":
                try:
                    value = parse_int(argument.split()[0] if argument else "")
                except ValueError:
                    logger.warning(f"invalid branch value {argument!r}, using 0")
                    value = 0
                self.begin_if(value)
            case "ENDIF":
                self.end_if()
            case "ENDRANDOM":
                self.end_random()
        return True

    def _next_value(self, bound: int) -> int:
        if self.selected is not None and self._count < len(self.selected):
            return self.selected[self._count]
        if bound <= 1:
            return 1
        return random.randint(1, bound)

    def begin_random(self, bound: int):
        value = self._next_value(bound)
        self._count += 1
        self._stack.append(RandomState(bound, value))

    def begin_if(self, value: int):
        if not self._stack:
            logger.debug(f"#IF {value} outside of a #RANDOM block ignored")
            return
        state = self._stack[-1]
        state.active = state.value == value

    def end_if(self):
        if self._stack:
            self._stack[-1].active = True

    def end_random(self):
        if self._stack:
            self._stack.pop()
        else:
            logger.debug("unmatched #ENDRANDOM ignored")
