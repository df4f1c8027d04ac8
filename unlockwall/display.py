# unlockwall/display.py
"""Pure projections from game/grid state to what the page shows."""
from __future__ import annotations
from typing import Dict, List

from .board import Card
from .game import GameSession
from .grid import Cell, Grid


def format_countdown(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def card_view(index: int, card: Card) -> Dict:
    # face-down cards never leak their symbol
    return {
        "index": index,
        "face_up": card.revealed,
        "matched": card.matched,
        "text": card.symbol if card.revealed else "",
    }


def cell_view(cell: Cell) -> Dict:
    return {"index": cell.index, "locked": cell.locked, "image": cell.image_data}


def grid_view(grid: Grid) -> Dict:
    return {
        "size": len(grid),
        "cells": {str(i): data for i, data in sorted(grid.unlocked().items())},
    }


def overlay_view(session: GameSession) -> Dict:
    visible = session.active
    cards: List[Dict] = []
    if session.board is not None:
        cards = [card_view(i, c) for i, c in enumerate(session.board.cards())]
    return {
        "session_id": session.session_id,
        "cell": session.target_cell,
        "visible": visible,
        "phase": session.phase.value,
        "timer": format_countdown(session.remaining_seconds),
        "pairs": session.matched_pair_count,
        "input_locked": session.input_locked,
        "cards": cards if visible else [],
    }
