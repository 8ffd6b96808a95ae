"""
Scoring engine: players, turn rotation, bust/finish rules and corrections.

Every mutation goes through one lock, so hits arriving from a device feed
and from manual input are applied strictly one after another.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple
import logging
import threading

from dartscore.core import (
    Config,
    CodedEvent,
    CoordinateEvent,
    CorrectionError,
    DecodeError,
    GameCompletedError,
    Hit,
    HitEvent,
    ManualEvent,
    MAX_DART_POINTS,
    RotationInvariantError,
    build_board_geometry,
)
from dartscore.board import CoordinateCodec, SectorCodec
from .game_modes import (
    ClosePolicy,
    CountdownMode,
    GameMode,
    ThrowOutcome,
    mode_from_config,
    policy_from_config,
)
from .player import Player

logger = logging.getLogger(__name__)

# Turn index addressing the open turn in correct()
CURRENT_TURN = -1


class HitStatus(Enum):
    """What happened to a submitted event."""
    ACCEPTED = "accepted"  # Recorded, turn still open
    TURN_CLOSED = "turn_closed"  # Third throw closed the turn (auto policy)
    BUST = "bust"
    FINISH = "finish"  # Player finished, game goes on
    GAME_COMPLETE = "game_complete"

    # Rejections, state untouched
    TURN_FULL = "turn_full"
    DECODE_ERROR = "decode_error"
    GAME_OVER = "game_over"
    NOT_STARTED = "not_started"
    HALTED = "halted"
    FEED_STOPPED = "feed_stopped"


_APPLIED = frozenset({
    HitStatus.ACCEPTED,
    HitStatus.TURN_CLOSED,
    HitStatus.BUST,
    HitStatus.FINISH,
    HitStatus.GAME_COMPLETE,
})


@dataclass(frozen=True)
class HitResult:
    """Outcome of ScoringEngine.submit()."""
    status: HitStatus
    hit: Optional[Hit] = None
    player_index: Optional[int] = None
    message: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status in _APPLIED


@dataclass(frozen=True)
class PlayerSnapshot:
    """Read-only view of one player."""
    index: int
    player_id: str
    name: str
    score: int
    turn_history: Tuple[Tuple[int, ...], ...]
    current_turn: Tuple[int, ...]
    throw_number: int
    is_active: bool
    is_finished: bool
    busts: int
    darts_thrown: int
    average_per_dart: float
    average_per_turn: float
    highest_turn: int


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of the whole game, rebuilt on every call."""
    mode_name: str
    players: Tuple[PlayerSnapshot, ...] = ()
    active_index: Optional[int] = None
    game_started: bool = False
    game_complete: bool = False
    winner_index: Optional[int] = None
    finish_order: Tuple[int, ...] = ()
    last_hit_label: Optional[str] = None
    last_status: Optional[HitStatus] = None
    awaiting_close: bool = False
    halted: bool = False
    feed_stopped: bool = False

    @property
    def winner_name(self) -> Optional[str]:
        if self.winner_index is None:
            return None
        return self.players[self.winner_index].name

    @property
    def scores(self) -> List[int]:
        return [p.score for p in self.players]


@dataclass
class _GameData:
    """Mutable engine state, replaced wholesale on reset."""
    players: List[Player] = field(default_factory=list)
    current_player_idx: int = 0
    game_started: bool = False
    game_finished: bool = False
    winner: Optional[Player] = None
    finish_order: List[int] = field(default_factory=list)
    last_hit: Optional[Hit] = None
    last_status: Optional[HitStatus] = None
    halted: bool = False
    feed_stopped: bool = False


class ScoringEngine:
    """
    Turn/throw state machine for one game.

    States per turn: awaiting throw → throws 1..3 → turn complete →
    next player or game complete. A bust jumps straight to turn complete.

    Example:
        engine = ScoringEngine(CountdownMode(301))
        engine.start_game(["Alice", "Bob"])
        engine.submit(CodedEvent("T20"))
        engine.close_turn()
    """

    def __init__(
            self,
            game_mode: Optional[GameMode] = None,
            close_policy: ClosePolicy = ClosePolicy.EXPLICIT,
            sector_codec: Optional[SectorCodec] = None,
            coordinate_codec: Optional[CoordinateCodec] = None
    ):
        """
        Initialize scoring engine.

        Args:
            game_mode: Rules to apply (default: CountdownMode(501))
            close_policy: How a 3-throw turn is closed
            sector_codec: Decoder for coded device events
            coordinate_codec: Decoder for coordinate device events
        """
        self.game_mode = game_mode or CountdownMode()
        self.close_policy = close_policy
        self.sector_codec = sector_codec or SectorCodec()
        self.coordinate_codec = coordinate_codec or CoordinateCodec()

        self._lock = threading.RLock()
        self._data = _GameData()

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "ScoringEngine":
        """Build an engine from the game and board config sections."""
        config = config or Config()
        return cls(
            game_mode=mode_from_config(config),
            close_policy=policy_from_config(config),
            coordinate_codec=CoordinateCodec(build_board_geometry(config)),
        )

    # --- Properties -------------------------------------------------------

    @property
    def players(self) -> List[Player]:
        return self._data.players

    @property
    def current_player_idx(self) -> int:
        return self._data.current_player_idx

    @property
    def game_started(self) -> bool:
        return self._data.game_started

    @property
    def game_finished(self) -> bool:
        return self._data.game_finished

    @property
    def winner(self) -> Optional[Player]:
        return self._data.winner

    @property
    def halted(self) -> bool:
        return self._data.halted

    @property
    def feed_stopped(self) -> bool:
        return self._data.feed_stopped

    @property
    def last_hit(self) -> Optional[Hit]:
        return self._data.last_hit

    def get_current_player(self) -> Optional[Player]:
        """Get the current player."""
        data = self._data
        if not data.players or not data.game_started:
            return None
        return data.players[data.current_player_idx]

    # --- Control commands -------------------------------------------------

    def start_game(self, names: Sequence[str], game_mode: Optional[GameMode] = None) -> bool:
        """
        Start a new game, discarding any previous state.

        Args:
            names: Player names in throwing order (blank = "Player N")
            game_mode: Replaces the engine's game mode if given

        Returns:
            True if started successfully, False otherwise
        """
        with self._lock:
            if not names:
                logger.error("Cannot start game: No players")
                return False

            if game_mode is not None:
                self.game_mode = game_mode

            starting_score = self.game_mode.get_starting_score()
            players = []
            for i, name in enumerate(names):
                players.append(Player(
                    name=(name or "").strip() or f"Player {i + 1}",
                    starting_score=starting_score,
                    player_id=f"player-{i + 1}",
                    counts_down=self.game_mode.counts_down,
                ))

            self._data = _GameData(players=players, game_started=True)
            self._activate(0)

            logger.info(
                f"Game started: {self.game_mode.get_name()} with {len(players)} players "
                f"({self.close_policy.value} turn close)"
            )
            return True

    def reset(self) -> None:
        """Discard all players, turns and in-flight throws."""
        with self._lock:
            for player in self._data.players:
                player.reset()
            self._data = _GameData()
            logger.info("Game reset")

    def stop_feed(self, reason: Optional[str] = None) -> None:
        """Stop consuming device events (disconnect or device error)."""
        with self._lock:
            if not self._data.feed_stopped:
                self._data.feed_stopped = True
                logger.warning(f"Device feed stopped{': ' + reason if reason else ''}")

    def resume_feed(self) -> None:
        with self._lock:
            if self._data.feed_stopped:
                self._data.feed_stopped = False
                logger.info("Device feed resumed")

    # --- Hit processing ---------------------------------------------------

    def submit(self, event: HitEvent) -> HitResult:
        """
        Apply a coded, coordinate or manual event.

        The single entry point for throws. Rejections leave the game
        untouched and come back as a non-accepted status.

        Args:
            event: CodedEvent, CoordinateEvent or ManualEvent

        Returns:
            HitResult describing what happened
        """
        with self._lock:
            result = self._submit(event)
            self._data.last_status = result.status
            return result

    def submit_manual(self, sector: int, multiplier: int = 1) -> HitResult:
        """Shortcut for submit(ManualEvent(sector, multiplier))."""
        return self.submit(ManualEvent(sector, multiplier))

    def _submit(self, event: HitEvent) -> HitResult:
        data = self._data

        if not data.game_started:
            logger.warning("Hit ignored: game not started")
            return HitResult(HitStatus.NOT_STARTED, message="game not started")
        if data.halted:
            logger.warning("Hit ignored: engine halted, reset required")
            return HitResult(HitStatus.HALTED, message="engine halted")
        if data.game_finished:
            logger.info("Hit ignored: game already completed")
            return HitResult(HitStatus.GAME_OVER, message="game already completed")
        if data.feed_stopped and not isinstance(event, ManualEvent):
            logger.warning(f"Device event ignored after feed stop: {event}")
            return HitResult(HitStatus.FEED_STOPPED, message="device feed stopped")

        try:
            hit = self._decode(event)
        except DecodeError as e:
            logger.warning(f"Dropped event: {e}")
            return HitResult(HitStatus.DECODE_ERROR, message=str(e))

        return self._apply_hit(hit)

    def _decode(self, event: HitEvent) -> Hit:
        if isinstance(event, CodedEvent):
            return self.sector_codec.decode(event.value)
        if isinstance(event, CoordinateEvent):
            return self.coordinate_codec.decode(event.x, event.y)
        if isinstance(event, ManualEvent):
            return Hit.create(event.sector, event.multiplier)
        raise DecodeError(f"unsupported event: {event!r}")

    def _apply_hit(self, hit: Hit) -> HitResult:
        data = self._data
        idx = data.current_player_idx
        player = data.players[idx]
        turn = player.current_turn

        if turn.is_complete():
            logger.warning(
                f"{player.name}: 4th throw ignored, close the turn first"
            )
            return HitResult(HitStatus.TURN_FULL, hit, idx, "turn full")

        data.last_hit = hit
        outcome = self.game_mode.evaluate(player, hit)

        if outcome is ThrowOutcome.BUST:
            # Earlier throws of the turn stay in the history, the busting one does not
            busted_turn = turn.close(busted=True)
            if busted_turn.values:
                player.turns.append(busted_turn)
            player.busts += 1
            logger.info(
                f"{player.name} busted with {hit.label} "
                f"(remaining {player.current_score})"
            )
            self._advance()
            status = HitStatus.GAME_COMPLETE if data.game_finished else HitStatus.BUST
            return HitResult(status, hit, idx, "BUST!")

        turn.record(hit.points)
        logger.debug(
            f"{player.name} hit: {hit.label} = {hit.points} points "
            f"(Turn: {turn.total()}, Score: {player.current_score})"
        )

        if outcome is ThrowOutcome.FINISH:
            player.turns.append(turn.close(finished=True))
            player.is_finished = True
            data.finish_order.append(idx)
            if data.winner is None:
                data.winner = player
            logger.info(f"{player.name} checked out with {hit.label}")
            self._advance()
            status = HitStatus.GAME_COMPLETE if data.game_finished else HitStatus.FINISH
            return HitResult(status, hit, idx, "CHECKOUT!")

        if turn.is_complete():
            if self.close_policy is ClosePolicy.AUTO:
                self._close_current_turn()
                status = HitStatus.GAME_COMPLETE if data.game_finished else HitStatus.TURN_CLOSED
                return HitResult(status, hit, idx)
            logger.debug(f"{player.name}: third dart thrown, waiting for turn close")

        return HitResult(HitStatus.ACCEPTED, hit, idx)

    # --- Turn closing and rotation ----------------------------------------

    def close_turn(self) -> bool:
        """
        Close the active player's turn (Enter key).

        Only a 3-throw turn can be closed this way; bust and finish close
        turns on their own.

        Returns:
            True if the turn was closed, False otherwise
        """
        with self._lock:
            data = self._data
            if not data.game_started or data.game_finished or data.halted:
                return False

            player = data.players[data.current_player_idx]
            if not player.current_turn.is_complete():
                logger.info(
                    f"{player.name}: turn has {len(player.current_turn)} throws, "
                    f"3 needed to close"
                )
                return False

            self._close_current_turn()
            return True

    def _close_current_turn(self) -> None:
        player = self._data.players[self._data.current_player_idx]
        turn = player.current_turn.close()
        player.turns.append(turn)
        logger.info(
            f"{player.name} turn closed: {turn.values} = {turn.total} "
            f"(Score: {player.current_score})"
        )
        self._advance()

    def _advance(self) -> None:
        """Finish the game or hand over to the next eligible player."""
        if self.game_mode.is_game_complete(self._data.players):
            self._complete_game()
        else:
            self._next_player()

    def _complete_game(self) -> None:
        data = self._data
        data.game_finished = True
        if data.winner is None:
            data.winner = self.game_mode.pick_winner(data.players)
        for player in data.players:
            player.is_active = False
        if data.winner is not None:
            logger.info(
                f"Game finished! Winner: {data.winner.name} "
                f"({data.winner.current_score})"
            )
        else:
            logger.info("Game finished")

    def _activate(self, index: int) -> None:
        data = self._data
        data.current_player_idx = index
        for i, player in enumerate(data.players):
            player.is_active = i == index
        data.players[index].current_turn.reset()

    def _next_player(self) -> None:
        """
        Advance to the next player who still has turns to take.

        Only reached through _advance, after the outgoing turn was closed.

        Raises:
            RotationInvariantError: If no eligible player exists; the engine
                halts until reset
        """
        data = self._data
        count = len(data.players)
        for step in range(1, count + 1):
            candidate = (data.current_player_idx + step) % count
            if not self.game_mode.is_player_done(data.players[candidate]):
                self._activate(candidate)
                logger.debug(f"Next player: {data.players[candidate].name}")
                return

        data.halted = True
        logger.error(
            "Turn rotation found no eligible player but the game is not complete"
        )
        raise RotationInvariantError("no eligible player to rotate to")

    # --- Corrections ------------------------------------------------------

    def correct(
            self,
            player_index: int,
            turn_index: int,
            throw_index: int,
            value: int
    ) -> int:
        """
        Replace a recorded throw value.

        Bust/finish rules are not re-run; scores are recomputed from the
        history on the next read.

        Args:
            player_index: Index into players
            turn_index: Index of a closed turn, or CURRENT_TURN for the open one
            throw_index: Index of the throw within the turn
            value: New point value

        Returns:
            The replaced value

        Raises:
            GameCompletedError: If the game is already complete
            CorrectionError: If the addressed throw does not exist or the value is invalid
        """
        with self._lock:
            data = self._data
            if data.game_finished:
                raise GameCompletedError()
            if not 0 <= player_index < len(data.players):
                raise CorrectionError(f"no player {player_index}")
            if isinstance(value, bool) or not isinstance(value, int) \
                    or not 0 <= value <= MAX_DART_POINTS:
                raise CorrectionError(f"invalid throw value: {value!r}")

            player = data.players[player_index]
            if turn_index == CURRENT_TURN:
                old = player.current_turn.replace(throw_index, value)
                where = "current turn"
            else:
                if not 0 <= turn_index < len(player.turns):
                    raise CorrectionError(f"no turn {turn_index} for {player.name}")
                old = player.turns[turn_index].replace(throw_index, value)
                where = f"turn {turn_index + 1}"

            logger.info(
                f"{player.name} {where} throw {throw_index + 1}: "
                f"corrected {old} → {value}"
            )
            return old

    def undo_last_throw(self) -> Optional[int]:
        """
        Remove the last throw of the open turn.

        Returns:
            The removed value, or None if the open turn is empty
        """
        with self._lock:
            data = self._data
            if not data.game_started or data.game_finished or data.halted:
                return None

            player = data.players[data.current_player_idx]
            value = player.current_turn.undo_last()
            if value is not None:
                logger.info(f"Undone: {value} points ({player.name})")
            return value

    # --- Outbound projection ----------------------------------------------

    def snapshot(self) -> GameSnapshot:
        """Build a read-only view of the current state."""
        with self._lock:
            data = self._data
            players = tuple(
                PlayerSnapshot(
                    index=i,
                    player_id=p.player_id,
                    name=p.name,
                    score=p.current_score,
                    turn_history=tuple(p.turn_history()),
                    current_turn=p.current_turn.values,
                    throw_number=p.current_turn.throw_number,
                    is_active=p.is_active,
                    is_finished=p.is_finished,
                    busts=p.busts,
                    darts_thrown=p.darts_thrown,
                    average_per_dart=p.average_per_dart,
                    average_per_turn=p.average_per_turn,
                    highest_turn=p.highest_turn,
                )
                for i, p in enumerate(data.players)
            )

            active = None
            awaiting_close = False
            if data.game_started and not data.game_finished and data.players:
                active = data.current_player_idx
                awaiting_close = data.players[active].current_turn.is_complete()

            winner_index = next(
                (i for i, p in enumerate(data.players) if p is data.winner), None
            )

            return GameSnapshot(
                mode_name=self.game_mode.get_name(),
                players=players,
                active_index=active,
                game_started=data.game_started,
                game_complete=data.game_finished,
                winner_index=winner_index,
                finish_order=tuple(data.finish_order),
                last_hit_label=data.last_hit.label if data.last_hit else None,
                last_status=data.last_status,
                awaiting_close=awaiting_close,
                halted=data.halted,
                feed_stopped=data.feed_stopped,
            )
