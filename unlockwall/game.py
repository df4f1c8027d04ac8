# unlockwall/game.py
from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from .board import Board, SYMBOLS, new_deck
from .scheduler import Scheduler, TimerHandle

log = logging.getLogger(__name__)

PAIRS = len(SYMBOLS)
TICK_SECONDS = 1.0

# at equal due times the countdown runs before a mismatch hide, so a
# timeout always pre-empts an in-flight resolution
TICK_PRIORITY = 0
HIDE_PRIORITY = 1


class Phase(str, Enum):
    IDLE = "idle"
    AWAITING_FIRST = "awaiting_first"
    AWAITING_SECOND = "awaiting_second"
    WON = "won"
    LOST = "lost"
    ABANDONED = "abandoned"


TERMINAL = (Phase.WON, Phase.LOST, Phase.ABANDONED)


@dataclass
class GameSession:
    session_id: int
    target_cell: Optional[int] = None
    board: Optional[Board] = None
    first_selection: Optional[int] = None
    second_selection: Optional[int] = None
    matched_pair_count: int = 0
    input_locked: bool = False
    remaining_seconds: int = 0
    mismatch_delay: float = 0.5
    phase: Phase = Phase.IDLE
    timer_handle: Optional[TimerHandle] = field(default=None, repr=False)
    hide_handle: Optional[TimerHandle] = field(default=None, repr=False)
    scheduler: Optional[Scheduler] = field(default=None, repr=False)
    # called once with (session, won) when the game reaches WON or LOST
    on_finish: Optional[Callable[["GameSession", bool], None]] = field(default=None, repr=False)

    @property
    def terminal(self) -> bool:
        return self.phase in TERMINAL

    @property
    def active(self) -> bool:
        return self.phase in (Phase.AWAITING_FIRST, Phase.AWAITING_SECOND)


def deal(
    session: GameSession,
    scheduler: Scheduler,
    seconds: int = 10,
    rng: Optional[random.Random] = None,
    symbols: Optional[List[str]] = None,
) -> Dict:
    """Lay out a fresh shuffled deck face-down and start the countdown."""
    if session.phase is not Phase.IDLE:
        raise ValueError(f"cannot deal a session in phase {session.phase.value}")
    if seconds <= 0:
        raise ValueError("countdown must be positive")

    session.board = Board(list(symbols) if symbols is not None else new_deck(rng))
    session.scheduler = scheduler
    session.first_selection = None
    session.second_selection = None
    session.matched_pair_count = 0
    session.input_locked = False
    session.remaining_seconds = seconds
    session.timer_handle = scheduler.call_every(TICK_SECONDS, lambda: tick(session), priority=TICK_PRIORITY)
    session.phase = Phase.AWAITING_FIRST
    return {"status": "ok", "cards": len(session.board), "remaining": seconds}


def select(session: GameSession, index: int) -> Dict:
    """
    Reveal a card and apply the matching rules.
    Returns a JSON-serializable outcome; ignored clicks change nothing.
    """
    if not session.active or session.board is None:
        return {"status": "ignored", "card": index, "reason": "not playing"}

    card = session.board.peek(index)
    if session.input_locked:
        return {"status": "ignored", "card": index, "reason": "resolving"}
    if card.matched:
        return {"status": "ignored", "card": index, "reason": "matched"}
    if index in (session.first_selection, session.second_selection):
        return {"status": "ignored", "card": index, "reason": "already selected"}

    symbol = session.board.flip_up(index)

    if session.first_selection is None:
        session.first_selection = index
        return {"status": "ok", "card": index, "symbol": symbol, "match": None}

    session.input_locked = True
    session.second_selection = index
    session.phase = Phase.AWAITING_SECOND
    first = session.first_selection

    if session.board.peek(first).symbol == symbol:
        session.board.mark_matched(first, index)
        session.matched_pair_count += 1
        session.first_selection = None
        session.second_selection = None
        session.input_locked = False
        session.phase = Phase.AWAITING_FIRST
        if session.matched_pair_count == PAIRS and session.board.all_matched():
            _finish(session, won=True)
        return {"status": "ok", "card": index, "symbol": symbol, "match": True,
                "pairs": session.matched_pair_count, "phase": session.phase.value}

    # mismatch: both stay face-up and input stays locked until the hide fires
    session.hide_handle = session.scheduler.call_later(
        session.mismatch_delay, lambda: resolve_mismatch(session), priority=HIDE_PRIORITY
    )
    return {"status": "ok", "card": index, "symbol": symbol, "match": False,
            "pending_hide": [first, index]}


def resolve_mismatch(session: GameSession) -> Dict:
    """Turn a mismatched pair back face-down and accept input again."""
    session.hide_handle = None
    if session.terminal or session.first_selection is None or session.second_selection is None:
        return {"status": "ok", "resolved": False}

    p1, p2 = session.first_selection, session.second_selection
    session.board.flip_down(p1)
    session.board.flip_down(p2)
    session.first_selection = None
    session.second_selection = None
    session.input_locked = False
    session.phase = Phase.AWAITING_FIRST
    return {"status": "ok", "resolved": True, "hidden": [p1, p2]}


def tick(session: GameSession) -> None:
    if session.terminal:
        return
    session.remaining_seconds = max(0, session.remaining_seconds - 1)
    if session.remaining_seconds == 0:
        _finish(session, won=False)


def stop_timers(session: GameSession) -> None:
    """Release the countdown and any pending hide. Safe to call repeatedly."""
    for handle in (session.timer_handle, session.hide_handle):
        if handle is not None:
            handle.cancel()
    session.timer_handle = None
    session.hide_handle = None


def abandon(session: GameSession) -> None:
    """Tear a session down without declaring an outcome."""
    if session.terminal:
        stop_timers(session)
        return
    stop_timers(session)
    session.input_locked = True
    session.phase = Phase.ABANDONED


def _finish(session: GameSession, won: bool) -> None:
    if session.terminal:
        return
    session.phase = Phase.WON if won else Phase.LOST
    session.input_locked = True
    stop_timers(session)
    log.info("session %s for cell %s %s", session.session_id, session.target_cell,
             "won" if won else "lost")
    if session.on_finish is not None:
        session.on_finish(session, won)
