"""Klondike move legality and win detection.

Everything here is a pure predicate over pile contents. Piles may be passed
as :class:`klondike.common.Pile` objects or as plain card sequences.
"""

from __future__ import annotations

from typing import Optional, Sequence

from klondike.common import ACE, KING, Card

CardSeq = Sequence[Card]


def _top(pile: CardSeq) -> Optional[Card]:
    return pile[len(pile) - 1] if len(pile) else None


def can_place_on_foundation(card: Card, foundation: CardSeq) -> bool:
    top = _top(foundation)
    if top is None:
        return card.rank == ACE
    return card.suit == top.suit and card.rank == top.rank + 1


def can_place_on_tableau(card: Card, column: CardSeq) -> bool:
    top = _top(column)
    if top is None:
        return card.rank == KING
    if not top.face_up:
        return False
    return card.is_red != top.is_red and card.rank == top.rank - 1


def is_valid_run(cards: CardSeq) -> bool:
    """Adjacent pairs must be face-up, alternate colour and descend by one."""
    for i in range(len(cards) - 1):
        upper, lower = cards[i], cards[i + 1]
        if not lower.face_up:
            return False
        if upper.is_red == lower.is_red or upper.rank != lower.rank + 1:
            return False
    return True


def find_foundation_index_for(card: Card, foundations: Sequence[CardSeq]) -> Optional[int]:
    # A foundation already building this suit wins over an empty one
    for fi, pile in enumerate(foundations):
        top = _top(pile)
        if top is not None and top.suit == card.suit and can_place_on_foundation(card, pile):
            return fi
    for fi, pile in enumerate(foundations):
        if can_place_on_foundation(card, pile):
            return fi
    return None


def is_won(foundations: Sequence[CardSeq]) -> bool:
    return bool(foundations) and all(len(f) == KING for f in foundations)
