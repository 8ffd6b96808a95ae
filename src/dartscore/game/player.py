"""
Player data structure and statistics.
"""
from dataclasses import dataclass, field
from typing import List, Tuple

from .turn import Turn, TurnAccumulator


@dataclass
class Player:
    """
    Represents a player in the game.

    Scores are derived from the turn history on every read, so a corrected
    value shows up immediately.
    """
    name: str
    starting_score: int = 501
    player_id: str = ""
    counts_down: bool = True

    # Turn history
    turns: List[Turn] = field(default_factory=list)
    current_turn: TurnAccumulator = field(default_factory=TurnAccumulator)

    # Flags
    is_active: bool = False
    is_finished: bool = False
    busts: int = 0

    @property
    def points_scored(self) -> int:
        """Sum of all closed turns plus the open turn."""
        return sum(turn.total for turn in self.turns) + self.current_turn.total()

    @property
    def current_score(self) -> int:
        """Remaining score (countdown) or running total (count-up)."""
        if self.counts_down:
            return self.starting_score - self.points_scored
        return self.starting_score + self.points_scored

    @property
    def rounds_completed(self) -> int:
        return len(self.turns)

    @property
    def darts_thrown(self) -> int:
        return sum(len(turn.values) for turn in self.turns) + len(self.current_turn)

    @property
    def highest_turn(self) -> int:
        return max((turn.total for turn in self.turns), default=0)

    def turn_history(self) -> List[Tuple[int, ...]]:
        return [tuple(turn.values) for turn in self.turns]

    def reset(self) -> None:
        """Reset player to starting state."""
        self.turns.clear()
        self.current_turn.reset()
        self.is_active = False
        self.is_finished = False
        self.busts = 0

    @property
    def average_per_dart(self) -> float:
        """Calculate average score per dart."""
        if self.darts_thrown == 0:
            return 0.0
        return self.points_scored / self.darts_thrown

    @property
    def average_per_turn(self) -> float:
        """Calculate average score per closed turn."""
        if not self.turns:
            return 0.0

        total = sum(turn.total for turn in self.turns)
        return total / len(self.turns)
