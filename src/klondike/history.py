from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from klondike.common import FOUNDATION_COUNT, TABLEAU_COUNT, Card

CardTuple = Tuple[Card, ...]


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of every pile plus the move and redeal counters."""

    stock: CardTuple = ()
    waste: CardTuple = ()
    foundations: Tuple[CardTuple, ...] = field(default_factory=lambda: ((),) * FOUNDATION_COUNT)
    tableau: Tuple[CardTuple, ...] = field(default_factory=lambda: ((),) * TABLEAU_COUNT)
    moves: int = 0
    redeals: int = 0

    @classmethod
    def of(
        cls,
        stock: Sequence[Card] = (),
        waste: Sequence[Card] = (),
        foundations: Optional[Sequence[Sequence[Card]]] = None,
        tableau: Optional[Sequence[Sequence[Card]]] = None,
        moves: int = 0,
        redeals: int = 0,
    ) -> "Snapshot":
        """Build a snapshot from lists, padding missing piles with empties."""
        foundations = list(foundations or [])
        tableau = list(tableau or [])
        if len(foundations) > FOUNDATION_COUNT or len(tableau) > TABLEAU_COUNT:
            raise ValueError(
                f"expected at most {FOUNDATION_COUNT} foundations and {TABLEAU_COUNT} tableau columns"
            )
        foundations += [()] * (FOUNDATION_COUNT - len(foundations))
        tableau += [()] * (TABLEAU_COUNT - len(tableau))
        return cls(
            stock=tuple(stock),
            waste=tuple(waste),
            foundations=tuple(tuple(f) for f in foundations),
            tableau=tuple(tuple(t) for t in tableau),
            moves=moves,
            redeals=redeals,
        )

    def all_cards(self) -> List[Card]:
        cards = list(self.stock) + list(self.waste)
        for pile in self.foundations:
            cards.extend(pile)
        for pile in self.tableau:
            cards.extend(pile)
        return cards


class UndoManager:
    """
    LIFO of snapshots. The game pushes the pre-move state before every
    mutation and restores the popped snapshot on undo.
    """

    def __init__(self):
        self._stack: List[Snapshot] = []

    def __len__(self) -> int:
        return len(self._stack)

    def push(self, snap: Snapshot):
        self._stack.append(snap)

    def can_undo(self) -> bool:
        return len(self._stack) > 0

    def pop(self) -> Optional[Snapshot]:
        if self._stack:
            return self._stack.pop()
        return None

    def clear(self):
        self._stack.clear()
