"""
Exception types shared by codecs, turn bookkeeping and the scoring engine.
"""


class DartScoreError(Exception):
    """Base class for all dartscore errors."""


class DecodeError(DartScoreError, ValueError):
    """Raw device data (or manual input) could not be turned into a Hit."""


class TurnNotCompleteError(DartScoreError):
    """A turn was closed before it reached three darts without a bust/finish."""


class GameCompletedError(DartScoreError):
    """Operation is not allowed once the game is complete."""

    def __init__(self, message: str = "game already completed"):
        super().__init__(message)


class CorrectionError(DartScoreError, ValueError):
    """A historical correction addressed a throw that does not exist."""


class RotationInvariantError(DartScoreError):
    """
    Turn rotation found no eligible player.

    Raised when the finish/round-completion path failed to mark the game
    complete. The engine halts until reset.
    """
