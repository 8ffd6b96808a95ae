"""
Console scoring session.

Reads one command per line and prints the scoreboard after each change.

Commands:
    T20, D16, B50, S00     Device-style hit code
    {"x": 10, "y": 80}     JSON payload as sent by a serial device
    10.5,80                Impact coordinate (board units)
    m 20 3                 Manual hit: sector and multiplier
    mock                   Throw a random device code
    <empty line> / enter   Close the turn
    undo                   Remove last throw of the open turn
    fix P T I V            Correct throw I of turn T of player P (1-based, T=c for open turn)
    score                  Print scoreboard
    board                  Print the ring radii in use
    reset                  Discard the game and start again with the same players
    quit

Usage:
    dartscore --mode 301 -p Alice -p Bob
    dartscore --mode countup --rounds 8 -p Alice
    dartscore --config config/game.yaml --auto-close
    dartscore --mode 301 --save-config config/game.yaml
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO, Tuple
import logging

import numpy as np

from dartscore.core import (
    CodedEvent,
    Config,
    CoordinateEvent,
    DartScoreError,
    DecodeError,
    ManualEvent,
    RotationInvariantError,
)
from dartscore.board import random_code
from dartscore.feed import parse_feed_line
from dartscore.game import (
    CURRENT_TURN,
    ClosePolicy,
    GameSnapshot,
    HitResult,
    ScoringEngine,
)

logger = logging.getLogger(__name__)

CLI_DEVICE_ID = "console"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dartscore",
        description="Score a darts game from the console"
    )
    parser.add_argument("--config", type=Path, help="YAML config file")
    parser.add_argument("--mode", help="501, 301, countdown or countup")
    parser.add_argument("--start", type=int, help="Starting score for countdown games")
    parser.add_argument("--rounds", type=int, help="Rounds for count-up games")
    parser.add_argument(
        "-p", "--player", action="append", default=[],
        help="Player name (repeat for more players)"
    )
    parser.add_argument(
        "--auto-close", action="store_true",
        help="Close a turn as soon as the third dart lands"
    )
    parser.add_argument("--seed", type=int, help="Seed for the mock device codes")
    parser.add_argument(
        "--save-config", type=Path, metavar="PATH",
        help="Write the effective settings to a YAML file"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _parse_coordinate(line: str) -> Optional[Tuple[float, float]]:
    parts = line.replace(",", " ").split()
    if len(parts) != 2:
        return None
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        return None


def format_scoreboard(snapshot: GameSnapshot) -> str:
    """Render a snapshot as plain text lines."""
    lines = [f"== {snapshot.mode_name} =="]
    for p in snapshot.players:
        marker = ">" if p.is_active else " "
        done = " (finished)" if p.is_finished else ""
        turn = " ".join(str(v) for v in p.current_turn) or "-"
        lines.append(
            f"{marker} {p.index + 1}. {p.name:<12} {p.score:>4}{done}  "
            f"turn: {turn}  avg: {p.average_per_turn:.1f}  best: {p.highest_turn}"
        )
    if snapshot.game_complete:
        lines.append(f"Game over. Winner: {snapshot.winner_name or '-'}")
    elif snapshot.awaiting_close:
        lines.append("Press Enter to close the turn")
    return "\n".join(lines)


def format_result(result: HitResult) -> str:
    label = result.hit.label if result.hit else ""
    text = f"[{result.status.value}] {label}".rstrip()
    if result.message:
        text += f" - {result.message}"
    return text


class ConsoleSession:
    """Applies console commands to a ScoringEngine."""

    def __init__(
            self,
            engine: ScoringEngine,
            names: List[str],
            out: TextIO,
            rng: Optional[np.random.Generator] = None
    ):
        self.engine = engine
        self.names = names
        self.out = out
        self.rng = rng or np.random.default_rng()

    def print(self, text: str) -> None:
        self.out.write(text + "\n")

    def handle(self, line: str) -> bool:
        """
        Execute one command.

        Returns:
            False when the session should end
        """
        command = line.strip()
        lowered = command.lower()

        if lowered in ("quit", "exit", "q"):
            return False

        if lowered in ("", "enter"):
            if not self.engine.close_turn():
                self.print("Turn cannot be closed yet (3 darts needed)")
        elif lowered == "undo":
            value = self.engine.undo_last_throw()
            self.print("Nothing to undo" if value is None else f"Removed {value}")
        elif lowered == "score":
            pass
        elif lowered == "board":
            self._board()
        elif lowered == "mock":
            event = CodedEvent(random_code(self.rng), device_id=CLI_DEVICE_ID)
            self.print(format_result(self.engine.submit(event)))
        elif lowered == "reset":
            self.engine.reset()
            self.engine.start_game(self.names)
        elif lowered.startswith("fix"):
            self._fix(command.split()[1:])
        elif lowered.startswith("m "):
            self._manual(command.split()[1:])
        else:
            self._device(command)

        self.print(format_scoreboard(self.engine.snapshot()))
        return True

    def _board(self) -> None:
        rings = self.engine.coordinate_codec.get_ring_boundaries()
        for name, radius in rings.items():
            self.print(f"{name:<13} {radius:>7.2f}")

    def _fix(self, args: List[str]) -> None:
        if len(args) != 4:
            self.print("Usage: fix PLAYER TURN THROW VALUE")
            return
        try:
            player = int(args[0]) - 1
            turn = CURRENT_TURN if args[1].lower() == "c" else int(args[1]) - 1
            throw = int(args[2]) - 1
            value = int(args[3])
        except ValueError:
            self.print("Usage: fix PLAYER TURN THROW VALUE")
            return
        try:
            old = self.engine.correct(player, turn, throw, value)
        except DartScoreError as e:
            self.print(f"Correction rejected: {e}")
            return
        self.print(f"Corrected {old} -> {value}")

    def _manual(self, args: List[str]) -> None:
        try:
            sector = int(args[0])
            multiplier = int(args[1]) if len(args) > 1 else 1
        except (IndexError, ValueError):
            self.print("Usage: m SECTOR [MULTIPLIER]")
            return
        self.print(format_result(self.engine.submit(ManualEvent(sector, multiplier))))

    def _device(self, command: str) -> None:
        coordinate = _parse_coordinate(command)
        if coordinate is not None:
            event = CoordinateEvent(*coordinate, device_id=CLI_DEVICE_ID)
        else:
            try:
                event = parse_feed_line(CLI_DEVICE_ID, command)
            except DecodeError as e:
                self.print(f"Ignored: {e}")
                return
        self.print(format_result(self.engine.submit(event)))


def main(
        argv: Optional[List[str]] = None,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None
) -> int:
    """Entry point of the dartscore console script."""
    args = build_parser().parse_args(argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = Config(args.config)
    if args.mode:
        config.data["game"]["mode"] = args.mode
    if args.start:
        config.data["game"]["starting_score"] = args.start
    if args.rounds:
        config.data["game"]["rounds"] = args.rounds
    if args.auto_close:
        config.data["game"]["close_policy"] = ClosePolicy.AUTO.value

    try:
        engine = ScoringEngine.from_config(config)
    except ValueError as e:
        stdout.write(f"Invalid game settings: {e}\n")
        return 2

    if args.save_config:
        config.save(args.save_config)
        stdout.write(f"Settings saved to {args.save_config}\n")

    names = args.player or ["Player 1"]
    engine.start_game(names)

    session = ConsoleSession(engine, names, stdout, np.random.default_rng(args.seed))
    session.print(format_scoreboard(engine.snapshot()))

    for line in stdin:
        try:
            if not session.handle(line):
                break
        except RotationInvariantError as e:
            session.print(f"Engine halted: {e}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
