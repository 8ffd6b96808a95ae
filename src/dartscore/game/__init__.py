"""
Game module - turn bookkeeping, players, game modes, and the scoring engine.
"""
from .turn import Turn, TurnAccumulator, MAX_THROWS
from .player import Player
from .game_modes import (
    GameMode,
    CountdownMode,
    CountUpMode,
    ThrowOutcome,
    ClosePolicy,
    create_mode,
    mode_from_config,
    policy_from_config,
)
from .engine import (
    ScoringEngine,
    HitStatus,
    HitResult,
    GameSnapshot,
    PlayerSnapshot,
    CURRENT_TURN,
)

__all__ = [
    "Turn",
    "TurnAccumulator",
    "MAX_THROWS",
    "Player",
    "GameMode",
    "CountdownMode",
    "CountUpMode",
    "ThrowOutcome",
    "ClosePolicy",
    "create_mode",
    "mode_from_config",
    "policy_from_config",
    "ScoringEngine",
    "HitStatus",
    "HitResult",
    "GameSnapshot",
    "PlayerSnapshot",
    "CURRENT_TURN",
]
