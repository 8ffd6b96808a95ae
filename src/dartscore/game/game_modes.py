"""
Game modes (501/301 countdown, count-up) with rule implementations.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional
import logging

from dartscore.core import Config, Hit
from .player import Player

logger = logging.getLogger(__name__)


class ThrowOutcome(Enum):
    """Rule verdict for a single throw."""
    SCORE = "score"  # Recorded, turn continues
    BUST = "bust"  # Turn closes, busting throw discarded
    FINISH = "finish"  # Exactly zero, player finished


class ClosePolicy(Enum):
    """How a 3-throw turn is closed."""
    EXPLICIT = "explicit"  # Wait for close_turn() (Enter key)
    AUTO = "auto"  # Close as soon as the third throw lands


class GameMode(ABC):
    """Abstract base class for game modes."""

    @abstractmethod
    def get_name(self) -> str:
        """Get game mode name."""
        pass

    @abstractmethod
    def get_starting_score(self) -> int:
        """Get starting score (0 for count-up games)."""
        pass

    @property
    @abstractmethod
    def counts_down(self) -> bool:
        pass

    @abstractmethod
    def evaluate(self, player: Player, hit: Hit) -> ThrowOutcome:
        """
        Judge a throw before it is recorded.

        Args:
            player: Player throwing
            hit: Decoded hit

        Returns:
            Outcome of the throw
        """
        pass

    @abstractmethod
    def is_player_done(self, player: Player) -> bool:
        """Whether the player takes no further turns."""
        pass

    @abstractmethod
    def is_game_complete(self, players: List[Player]) -> bool:
        """Check if the game is over after a turn closed."""
        pass

    @abstractmethod
    def pick_winner(self, players: List[Player]) -> Optional[Player]:
        """Winner once the game is complete (None if undecided)."""
        pass


class CountdownMode(GameMode):
    """
    Countdown game (501, 301, ...).

    Rules:
    - Subtract each hit from the remaining score
    - Finish on exactly 0 (any segment)
    - Bust if the score would go below 0 or land on 1
    - First player to finish wins; with several players the game ends
      once at most one player is left unfinished
    """

    def __init__(self, starting_score: int = 501):
        """
        Initialize countdown mode.

        Args:
            starting_score: Starting score (501, 301, etc.)
        """
        if starting_score <= 1:
            raise ValueError("starting_score must be greater than 1")
        self.starting_score = starting_score

    def get_name(self) -> str:
        return str(self.starting_score)

    def get_starting_score(self) -> int:
        return self.starting_score

    @property
    def counts_down(self) -> bool:
        return True

    def evaluate(self, player: Player, hit: Hit) -> ThrowOutcome:
        remaining = player.current_score - hit.points

        if remaining < 0 or remaining == 1:
            return ThrowOutcome.BUST
        if remaining == 0:
            return ThrowOutcome.FINISH
        return ThrowOutcome.SCORE

    def is_player_done(self, player: Player) -> bool:
        return player.is_finished

    def is_game_complete(self, players: List[Player]) -> bool:
        unfinished = [p for p in players if not p.is_finished]
        if not unfinished:
            return True
        return len(players) >= 2 and len(unfinished) <= 1

    def pick_winner(self, players: List[Player]) -> Optional[Player]:
        # Engine records the first finisher; nothing to compute here
        return None


class CountUpMode(GameMode):
    """
    Count-up game.

    Rules:
    - Every hit adds to the running total, no bust
    - Each player throws a fixed number of rounds
    - Highest total wins, ties go to the earlier player
    """

    def __init__(self, rounds: int = 8):
        if rounds <= 0:
            raise ValueError("rounds must be positive")
        self.rounds = rounds

    def get_name(self) -> str:
        return f"Count-Up ({self.rounds} rounds)"

    def get_starting_score(self) -> int:
        return 0

    @property
    def counts_down(self) -> bool:
        return False

    def evaluate(self, player: Player, hit: Hit) -> ThrowOutcome:
        return ThrowOutcome.SCORE

    def is_player_done(self, player: Player) -> bool:
        return player.rounds_completed >= self.rounds

    def is_game_complete(self, players: List[Player]) -> bool:
        return bool(players) and all(self.is_player_done(p) for p in players)

    def pick_winner(self, players: List[Player]) -> Optional[Player]:
        winner = None
        for player in players:
            # Strict comparison keeps the first player on ties
            if winner is None or player.current_score > winner.current_score:
                winner = player
        return winner


def create_mode(name: str, starting_score: Optional[int] = None, rounds: int = 8) -> GameMode:
    """
    Build a game mode from its name.

    Args:
        name: "501", "301", "countdown" or "countup"
        starting_score: Overrides the score implied by the name
        rounds: Count-up rounds per player

    Raises:
        ValueError: If the name is unknown
    """
    key = str(name).strip().lower().replace("-", "").replace("_", "")

    if key in ("countup", "count"):
        return CountUpMode(rounds=rounds)
    if key == "countdown":
        return CountdownMode(starting_score or 501)
    if key.isdigit():
        return CountdownMode(starting_score or int(key))

    raise ValueError(f"Unknown game mode: {name}")


def mode_from_config(config: Optional[Config] = None) -> GameMode:
    """Build the configured game mode."""
    config = config or Config()
    return create_mode(
        config.get("game", "mode", "501"),
        starting_score=config.get("game", "starting_score"),
        rounds=int(config.get("game", "rounds", 8)),
    )


def policy_from_config(config: Optional[Config] = None) -> ClosePolicy:
    """Read the turn-close policy, falling back to EXPLICIT."""
    config = config or Config()
    value = str(config.get("game", "close_policy", "explicit")).lower()
    try:
        return ClosePolicy(value)
    except ValueError:
        logger.warning(f"Unknown close_policy {value!r}, using explicit")
        return ClosePolicy.EXPLICIT
