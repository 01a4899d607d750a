# common.py - cards, decks and piles shared by the engine and the table scene
from __future__ import annotations

import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

# Suits are indices into SUIT_NAMES / SUITS
CLUBS, DIAMONDS, HEARTS, SPADES = range(4)
SUIT_NAMES = ["Clubs", "Diamonds", "Hearts", "Spades"]
SUITS = [chr(0x2663), chr(0x2666), chr(0x2665), chr(0x2660)]  # ♣ ♦ ♥ ♠

ACE, JACK, QUEEN, KING = 1, 11, 12, 13
RANKS = range(ACE, KING + 1)
RANK_TO_TEXT = {1: "A", 11: "J", 12: "Q", 13: "K"}
for _r in range(2, 11):
    RANK_TO_TEXT[_r] = str(_r)

DECK_SIZE = len(SUITS) * len(RANKS)
FOUNDATION_COUNT = 4
TABLEAU_COUNT = 7


def is_red(suit: int) -> bool:
    return suit in (DIAMONDS, HEARTS)


@dataclass(frozen=True)
class Card:
    """A single playing card. Never mutated; flips produce a new value."""

    suit: int   # 0..3
    rank: int   # 1..13
    face_up: bool = False

    @property
    def is_red(self) -> bool:
        return is_red(self.suit)

    @property
    def key(self) -> Tuple[int, int]:
        return (self.suit, self.rank)

    def with_face(self, face_up: bool) -> "Card":
        if self.face_up == face_up:
            return self
        return replace(self, face_up=face_up)

    def flipped(self) -> "Card":
        return replace(self, face_up=not self.face_up)

    def label(self) -> str:
        return f"{RANK_TO_TEXT[self.rank]}{SUITS[self.suit]}"

    def __str__(self) -> str:
        return self.label()

    def __repr__(self) -> str:
        return f"{self.label()}{'↑' if self.face_up else '↓'}"


def make_deck() -> List[Card]:
    """One face-down card of every (suit, rank), suit-major order."""
    return [Card(suit, rank, False) for suit in range(len(SUITS)) for rank in RANKS]


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """In-place Fisher-Yates shuffle driven by ``rng``; returns ``deck``."""
    rng = rng or random.Random()
    for i in range(len(deck) - 1, 0, -1):
        j = rng.randint(0, i)
        deck[i], deck[j] = deck[j], deck[i]
    return deck


# ---------- Piles ----------
class PileKind(Enum):
    STOCK = "stock"
    WASTE = "waste"
    FOUNDATION = "foundation"
    TABLEAU = "tableau"

    def __str__(self) -> str:
        return self.value.title()


class Pile:
    """Ordered card storage. Index 0 is the bottom, the last card is the top.

    Piles do not judge legality; the only rule that lives here is the
    tableau auto-flip of a newly exposed top card.
    """

    __slots__ = ("kind", "index", "_cards")

    def __init__(self, kind: PileKind, index: int = 0, cards: Sequence[Card] = ()):
        self.kind = kind
        self.index = index
        self._cards: List[Card] = list(cards)

    @property
    def cards(self) -> Tuple[Card, ...]:
        return tuple(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(tuple(self._cards))

    def __getitem__(self, idx: int) -> Card:
        return self._cards[idx]

    def __repr__(self) -> str:
        return f"Pile({self.kind}, {self.index}, {self._cards!r})"

    def top(self) -> Optional[Card]:
        return self._cards[-1] if self._cards else None

    def top_index(self) -> int:
        return len(self._cards) - 1

    def top_face_up_index(self) -> int:
        for i in range(len(self._cards) - 1, -1, -1):
            if self._cards[i].face_up:
                return i
        return -1

    def has_face_up_at(self, idx: int) -> bool:
        return 0 <= idx < len(self._cards) and self._cards[idx].face_up

    def push(self, card: Card):
        self._cards.append(card)

    def extend(self, cards: Sequence[Card]):
        self._cards.extend(cards)

    def pop(self) -> Card:
        return self._cards.pop()

    def detach_from(self, idx: int) -> List[Card]:
        run = self._cards[idx:]
        del self._cards[idx:]
        return run

    def clear(self):
        self._cards = []

    def replace(self, cards: Sequence[Card]):
        self._cards = list(cards)

    def flip_top_face_up(self) -> bool:
        if not self._cards or self._cards[-1].face_up:
            return False
        self._cards[-1] = self._cards[-1].flipped()
        return True
