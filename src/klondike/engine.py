"""Klondike game engine.

:class:`KlondikeGame` owns every pile, the counters, the pending selection
and the undo history. Its public command methods are the only way state
changes; everything else on it is a read-only view for the table scene.

Commands never raise for bad input: an illegal move, an empty undo history
or a click on an empty pile simply leaves the game untouched and the command
returns ``False``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from klondike import rules as R
from klondike.common import (
    DECK_SIZE,
    FOUNDATION_COUNT,
    TABLEAU_COUNT,
    Card,
    Pile,
    PileKind,
    make_deck,
    shuffle_deck,
)
from klondike.history import Snapshot, UndoManager

logger = logging.getLogger(__name__)


class SourceKind(Enum):
    TABLEAU = "tableau"
    WASTE = "waste"
    FOUNDATION = "foundation"


@dataclass(frozen=True)
class Selection:
    """A picked-up card (or tableau run starting at ``start_index``)."""

    source: SourceKind
    pile_index: int
    start_index: int


@dataclass(frozen=True)
class MoveAttempt:
    """Diagnostic record of one attempted drop onto a foundation or column."""

    card: Card
    target_kind: PileKind
    target_index: int
    target_top: Optional[Card]
    legal: bool

    def describe(self) -> str:
        target = "empty" if self.target_top is None else self.target_top.label()
        return f"Attempt: {self.card.label()} -> {target}: {'Legal' if self.legal else 'Illegal'}"


AttemptListener = Callable[[MoveAttempt], None]


class KlondikeGame:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        on_attempt: Optional[AttemptListener] = None,
        *,
        deal: bool = True,
    ):
        self._rng = rng or random.Random()
        self._on_attempt = on_attempt
        self._stock = Pile(PileKind.STOCK)
        self._waste = Pile(PileKind.WASTE)
        self._foundations = [Pile(PileKind.FOUNDATION, i) for i in range(FOUNDATION_COUNT)]
        self._tableau = [Pile(PileKind.TABLEAU, i) for i in range(TABLEAU_COUNT)]
        self._moves = 0
        self._redeals = 0
        self._won = False
        self._selection: Optional[Selection] = None
        self._history = UndoManager()
        if deal:
            self.new_game()

    @classmethod
    def from_snapshot(
        cls,
        snap: Snapshot,
        rng: Optional[random.Random] = None,
        on_attempt: Optional[AttemptListener] = None,
    ) -> "KlondikeGame":
        """Start a game from an arbitrary layout with an empty undo history."""
        if len(snap.foundations) != FOUNDATION_COUNT or len(snap.tableau) != TABLEAU_COUNT:
            raise ValueError("snapshot must hold 4 foundations and 7 tableau columns")
        keys = [c.key for c in snap.all_cards()]
        if len(keys) != len(set(keys)):
            raise ValueError("snapshot contains duplicate cards")
        game = cls(rng=rng, on_attempt=on_attempt, deal=False)
        game._restore(snap)
        game._moves = snap.moves
        game._redeals = snap.redeals
        game._won = R.is_won(game._foundations)
        return game

    # ---------- Read-only views ----------
    @property
    def stock(self) -> Tuple[Card, ...]:
        return self._stock.cards

    @property
    def waste(self) -> Tuple[Card, ...]:
        return self._waste.cards

    @property
    def foundations(self) -> Tuple[Tuple[Card, ...], ...]:
        return tuple(f.cards for f in self._foundations)

    @property
    def tableau(self) -> Tuple[Tuple[Card, ...], ...]:
        return tuple(t.cards for t in self._tableau)

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    @property
    def moves(self) -> int:
        return self._moves

    @property
    def redeals(self) -> int:
        return self._redeals

    @property
    def is_won(self) -> bool:
        return self._won

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo()

    def is_selected(self, source: SourceKind, pile_index: int, card_index: int) -> bool:
        s = self._selection
        return s is not None and s.source is source and s.pile_index == pile_index and s.start_index == card_index

    def all_cards(self) -> List[Card]:
        return self.snapshot().all_cards()

    def snapshot(self) -> Snapshot:
        return Snapshot(
            stock=self._stock.cards,
            waste=self._waste.cards,
            foundations=tuple(f.cards for f in self._foundations),
            tableau=tuple(t.cards for t in self._tableau),
            moves=self._moves,
            redeals=self._redeals,
        )

    def can_place_on_foundation(self, card: Card, foundation_index: int) -> bool:
        return R.can_place_on_foundation(card, self._foundations[foundation_index])

    def can_place_on_tableau(self, card: Card, tableau_index: int) -> bool:
        return R.can_place_on_tableau(card, self._tableau[tableau_index])

    def find_foundation_index_for(self, card: Card) -> Optional[int]:
        return R.find_foundation_index_for(card, self._foundations)

    # ---------- Commands ----------
    def new_game(self, deck: Optional[Sequence[Card]] = None) -> bool:
        """Deal a fresh game. ``deck`` bypasses the shuffle when given."""
        if deck is None:
            cards = shuffle_deck(make_deck(), self._rng)
        else:
            cards = list(deck)
            if len(cards) != DECK_SIZE or len({c.key for c in cards}) != DECK_SIZE:
                raise ValueError(f"deck must hold {DECK_SIZE} distinct cards")

        self._moves = 0
        self._redeals = 0
        self._won = False
        self._selection = None
        self._history.clear()
        self._waste.clear()
        for f in self._foundations:
            f.clear()
        for t in self._tableau:
            t.clear()

        cursor = 0
        for col in range(TABLEAU_COUNT):
            for i in range(col + 1):
                self._tableau[col].push(cards[cursor].with_face(i == col))
                cursor += 1
        self._stock.replace([c.with_face(False) for c in cards[cursor:]])
        logger.debug("New game dealt, %d cards in stock", len(self._stock))
        return True

    def draw(self) -> bool:
        """Turn the stock top onto the waste, or redeal the waste when the stock is out."""
        had_selection = self._selection is not None
        self._selection = None
        if self._stock:
            self._push_undo()
            card = self._stock.pop()
            self._waste.push(card.with_face(True))
            self._moves += 1
            return True
        if self._waste:
            self._push_undo()
            self._stock.replace([c.with_face(False) for c in reversed(self._waste.cards)])
            self._waste.clear()
            self._redeals += 1
            self._moves += 1
            logger.debug("Redeal #%d, %d cards back in stock", self._redeals, len(self._stock))
            return True
        return had_selection

    def undo(self) -> bool:
        snap = self._history.pop()
        if snap is None:
            return False
        self._restore(snap)
        # The undo itself counts as a move
        self._moves = snap.moves + 1
        self._redeals = snap.redeals
        self._won = False
        self._selection = None
        return True

    def click_waste(self) -> bool:
        if not self._waste:
            return False
        top = self._waste.top_index()
        if self.is_selected(SourceKind.WASTE, 0, top):
            self._selection = None
        else:
            self._selection = Selection(SourceKind.WASTE, 0, top)
        return True

    def click_foundation(self, foundation_index: int) -> bool:
        if not 0 <= foundation_index < FOUNDATION_COUNT:
            return False
        sel = self._selection
        if sel is not None:
            if sel.source is SourceKind.FOUNDATION and sel.pile_index == foundation_index:
                self._selection = None
                return True
            self._move_selection_to_foundation(sel, foundation_index)
            self._selection = None
            return True
        pile = self._foundations[foundation_index]
        if not pile:
            return False
        self._selection = Selection(SourceKind.FOUNDATION, foundation_index, pile.top_index())
        return True

    def click_tableau(self, tableau_index: int) -> bool:
        if not 0 <= tableau_index < TABLEAU_COUNT:
            return False
        sel = self._selection
        if sel is not None:
            if sel.source is SourceKind.TABLEAU and sel.pile_index == tableau_index:
                self._selection = None
                return True
            self._move_selection_to_tableau(sel, tableau_index)
            self._selection = None
            return True
        idx = self._tableau[tableau_index].top_face_up_index()
        if idx < 0:
            return False
        self._selection = Selection(SourceKind.TABLEAU, tableau_index, idx)
        return True

    def click_tableau_card(self, tableau_index: int, card_index: int) -> bool:
        if not 0 <= tableau_index < TABLEAU_COUNT:
            return False
        sel = self._selection
        if sel is not None and (sel.source is not SourceKind.TABLEAU or sel.pile_index != tableau_index):
            # A pending selection elsewhere turns this click into a drop on the column
            return self.click_tableau(tableau_index)
        if not self._tableau[tableau_index].has_face_up_at(card_index):
            return False
        if sel is not None and sel.start_index == card_index:
            self._selection = None
        else:
            self._selection = Selection(SourceKind.TABLEAU, tableau_index, card_index)
        return True

    def double_click_waste(self) -> bool:
        card = self._waste.top()
        if card is None:
            return False
        fi = self.find_foundation_index_for(card)
        if fi is None:
            return False
        moved = self._single_to_foundation(self._waste, fi)
        self._selection = None
        return moved

    def double_click_tableau_card(self, tableau_index: int, card_index: int) -> bool:
        if not 0 <= tableau_index < TABLEAU_COUNT:
            return False
        column = self._tableau[tableau_index]
        if not column or card_index != column.top_index():
            return False
        card = column.top()
        if not card.face_up:
            return False
        fi = self.find_foundation_index_for(card)
        if fi is None:
            return False
        moved = self._single_to_foundation(column, fi)
        self._selection = None
        return moved

    # ---------- Move execution ----------
    def _source_pile(self, sel: Selection) -> Pile:
        if sel.source is SourceKind.WASTE:
            return self._waste
        if sel.source is SourceKind.FOUNDATION:
            return self._foundations[sel.pile_index]
        return self._tableau[sel.pile_index]

    def _move_selection_to_foundation(self, sel: Selection, foundation_index: int) -> bool:
        src = self._source_pile(sel)
        if not src:
            return False
        if sel.source is SourceKind.TABLEAU and sel.start_index != src.top_index():
            # Runs of more than one card never go to a foundation
            if src.has_face_up_at(sel.start_index):
                self._report(src[sel.start_index], self._foundations[foundation_index], False)
            return False
        return self._single_to_foundation(src, foundation_index)

    def _single_to_foundation(self, src: Pile, foundation_index: int) -> bool:
        dest = self._foundations[foundation_index]
        card = src.top()
        legal = R.can_place_on_foundation(card, dest)
        self._report(card, dest, legal)
        if not legal:
            return False
        self._push_undo()
        src.pop()
        dest.push(card)
        if src.kind is PileKind.TABLEAU:
            src.flip_top_face_up()
        self._moves += 1
        self._check_win()
        return True

    def _move_selection_to_tableau(self, sel: Selection, tableau_index: int) -> bool:
        src = self._source_pile(sel)
        dest = self._tableau[tableau_index]
        if sel.source is not SourceKind.TABLEAU:
            card = src.top()
            if card is None:
                return False
            legal = R.can_place_on_tableau(card, dest)
            self._report(card, dest, legal)
            if not legal:
                return False
            self._push_undo()
            src.pop()
            dest.push(card)
            self._moves += 1
            return True

        run = src.cards[sel.start_index:]
        if not run or not run[0].face_up:
            return False
        legal = R.can_place_on_tableau(run[0], dest) and R.is_valid_run(run)
        self._report(run[0], dest, legal)
        if not legal:
            return False
        self._push_undo()
        dest.extend(src.detach_from(sel.start_index))
        src.flip_top_face_up()
        self._moves += 1
        return True

    def _check_win(self):
        if R.is_won(self._foundations):
            self._won = True
            logger.debug("All foundations complete after %d moves", self._moves)

    # ---------- Internals ----------
    def _push_undo(self):
        self._history.push(self.snapshot())

    def _restore(self, snap: Snapshot):
        self._stock.replace(snap.stock)
        self._waste.replace(snap.waste)
        for pile, cards in zip(self._foundations, snap.foundations):
            pile.replace(cards)
        for pile, cards in zip(self._tableau, snap.tableau):
            pile.replace(cards)

    def _report(self, card: Card, target: Pile, legal: bool):
        attempt = MoveAttempt(card, target.kind, target.index, target.top(), legal)
        logger.debug(attempt.describe())
        if self._on_attempt is not None:
            self._on_attempt(attempt)
