"""
Turn bookkeeping: the open turn of the active player and closed turn records.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import logging

from dartscore.core import CorrectionError, TurnNotCompleteError

logger = logging.getLogger(__name__)

MAX_THROWS = 3


@dataclass
class Turn:
    """A closed turn: up to three point values plus how it ended."""
    values: List[int] = field(default_factory=list)
    busted: bool = False
    finished: bool = False

    @property
    def total(self) -> int:
        return sum(self.values)

    def replace(self, throw_index: int, value: int) -> int:
        """Replace a stored value, returning the old one."""
        if not 0 <= throw_index < len(self.values):
            raise CorrectionError(f"no throw {throw_index} in turn of {len(self.values)}")
        old = self.values[throw_index]
        self.values[throw_index] = value
        return old


class TurnAccumulator:
    """
    Holds the in-progress throws (0-3) of the active player.

    A full accumulator refuses further throws until it is closed.
    """

    def __init__(self, max_throws: int = MAX_THROWS):
        self.max_throws = max_throws
        self._values: List[int] = []

    @property
    def values(self) -> Tuple[int, ...]:
        return tuple(self._values)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def throw_number(self) -> int:
        """1-based number of the next throw (stays at max once full)."""
        return min(len(self._values) + 1, self.max_throws)

    def record(self, points: int) -> bool:
        """
        Append a throw.

        Returns:
            True if recorded, False if the turn is already full
        """
        if self.is_complete():
            logger.warning(f"Turn already full, ignoring {points} points")
            return False
        self._values.append(points)
        return True

    def is_complete(self) -> bool:
        return len(self._values) >= self.max_throws

    def total(self) -> int:
        return sum(self._values)

    def close(self, busted: bool = False, finished: bool = False) -> Turn:
        """
        Return the accumulated turn and start a fresh one.

        Raises:
            TurnNotCompleteError: If fewer than three throws and neither bust nor finish
        """
        if not (self.is_complete() or busted or finished):
            raise TurnNotCompleteError(
                f"turn has {len(self._values)} of {self.max_throws} throws"
            )
        turn = Turn(values=list(self._values), busted=busted, finished=finished)
        self._values.clear()
        return turn

    def reset(self) -> None:
        """Discard the in-progress throws without recording a turn."""
        self._values.clear()

    def undo_last(self) -> Optional[int]:
        """Remove and return the last throw, None if empty."""
        if not self._values:
            return None
        return self._values.pop()

    def replace(self, throw_index: int, value: int) -> int:
        """Replace an in-progress value, returning the old one."""
        if not 0 <= throw_index < len(self._values):
            raise CorrectionError(
                f"no throw {throw_index} in current turn of {len(self._values)}"
            )
        old = self._values[throw_index]
        self._values[throw_index] = value
        return old
