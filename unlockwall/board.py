# unlockwall/board.py
from __future__ import annotations
import random
from collections import Counter
from dataclasses import dataclass
from threading import RLock
from typing import List, MutableSequence, Optional, TypeVar

SYMBOLS = ("A", "B", "C", "D")
DECK_SIZE = len(SYMBOLS) * 2

T = TypeVar("T")


@dataclass(frozen=True)
class Card:
    symbol: str
    revealed: bool = False
    matched: bool = False


def shuffle(items: MutableSequence[T], rng: Optional[random.Random] = None) -> None:
    """In-place Fisher-Yates: for i from the last index down to 1, swap with j in [0, i]."""
    rng = rng or random.Random()
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def new_deck(rng: Optional[random.Random] = None) -> List[str]:
    deck = [s for s in SYMBOLS for _ in range(2)]
    shuffle(deck, rng)
    return deck


class Board:
    """
    Mutable deck of face-down cards for one play-through.

    Rep:
      - exactly two cards of each symbol in SYMBOLS
      - matched => revealed
    Safety:
      - guarded by an internal lock; callers may still read from other threads
    """

    def __init__(self, symbols: List[str]):
        if len(symbols) != DECK_SIZE:
            raise ValueError(f"a deck holds exactly {DECK_SIZE} cards")

        self._lock = RLock()
        self._cards: List[Card] = [Card(symbol=s) for s in symbols]
        self._check_rep()

    def _check_rep(self) -> None:
        counts = Counter(card.symbol for card in self._cards)
        assert counts == Counter({s: 2 for s in SYMBOLS})
        for card in self._cards:
            if card.matched:
                assert card.revealed is True

    def __len__(self) -> int:
        return len(self._cards)

    def cards(self) -> List[Card]:
        with self._lock:
            return list(self._cards)

    def peek(self, index: int) -> Card:
        with self._lock:
            self._validate_index(index)
            return self._cards[index]

    def flip_up(self, index: int) -> str:
        """Turn a card face-up and return its symbol."""
        with self._lock:
            self._validate_index(index)
            card = self._cards[index]
            if card.matched:
                raise ValueError("cannot flip a matched card")
            if card.revealed:
                raise ValueError("already face up")

            self._cards[index] = Card(symbol=card.symbol, revealed=True)
            self._check_rep()
            return card.symbol

    def flip_down(self, index: int) -> None:
        with self._lock:
            self._validate_index(index)
            card = self._cards[index]
            if card.matched:
                raise ValueError("cannot flip down a matched card")
            if not card.revealed:
                return
            self._cards[index] = Card(symbol=card.symbol)
            self._check_rep()

    def mark_matched(self, first: int, second: int) -> None:
        """Mark two face-up cards as permanently matched."""
        with self._lock:
            self._validate_index(first)
            self._validate_index(second)
            if first == second:
                raise ValueError("a card cannot match itself")
            c1 = self._cards[first]
            c2 = self._cards[second]
            if not c1.revealed or not c2.revealed:
                raise ValueError("both must be face up to match")
            if c1.symbol != c2.symbol:
                raise ValueError("symbols do not match")

            self._cards[first] = Card(symbol=c1.symbol, revealed=True, matched=True)
            self._cards[second] = Card(symbol=c2.symbol, revealed=True, matched=True)
            self._check_rep()

    def all_matched(self) -> bool:
        with self._lock:
            return all(card.matched for card in self._cards)

    def _validate_index(self, index: int) -> None:
        if not (0 <= index < len(self._cards)):
            raise ValueError("invalid card index")
