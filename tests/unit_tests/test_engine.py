import logging
import random

import pytest

from klondike import rules as R
from klondike.common import CLUBS, DIAMONDS, HEARTS, SPADES, Card, PileKind, make_deck
from klondike.engine import KlondikeGame, MoveAttempt, Selection, SourceKind
from klondike.history import Snapshot

_SUITS = {"C": CLUBS, "D": DIAMONDS, "H": HEARTS, "S": SPADES}
_RANKS = {"A": 1, "J": 11, "Q": 12, "K": 13}


def c(code: str, up: bool = True) -> Card:
    rank, suit = code[:-1], code[-1]
    return Card(_SUITS[suit], _RANKS.get(rank) or int(rank), up)


def sorted_game(**kwargs) -> KlondikeGame:
    """Unshuffled deal.

    Columns: [A♣] [2♣ 3♣] [4♣ 5♣ 6♣] [7♣..10♣] [J♣ Q♣ K♣ A♦ 2♦] [3♦..8♦] [9♦..K♦ A♥ 2♥];
    stock holds 3♥..K♥ then A♠..K♠ with K♠ on top.
    """
    game = KlondikeGame(**kwargs)
    game.new_game(deck=make_deck())
    return game


def layout(**piles) -> KlondikeGame:
    return KlondikeGame.from_snapshot(Snapshot.of(**piles))


def assert_invariants(game: KlondikeGame):
    cards = game.all_cards()
    assert len(cards) == 52
    assert len({x.key for x in cards}) == 52
    for f in game.foundations:
        for i, card in enumerate(f):
            assert card.face_up and card.suit == f[0].suit and card.rank == i + 1
    for col in game.tableau:
        first_up = next((i for i, x in enumerate(col) if x.face_up), len(col))
        assert all(x.face_up for x in col[first_up:])
        assert R.is_valid_run(col[first_up:])
    assert not any(x.face_up for x in game.stock)
    assert all(x.face_up for x in game.waste)
    sel = game.selection
    if sel is not None:
        if sel.source is SourceKind.WASTE:
            pile = game.waste
        elif sel.source is SourceKind.FOUNDATION:
            pile = game.foundations[sel.pile_index]
        else:
            pile = game.tableau[sel.pile_index]
        assert 0 <= sel.start_index < len(pile)
        assert pile[sel.start_index].face_up


def random_command(game: KlondikeGame, rng: random.Random):
    t = rng.randrange(7)
    column = game.tableau[t]
    choice = rng.randrange(20)
    if choice < 4:
        return "draw", game.draw()
    if choice == 4:
        return "undo", game.undo()
    if choice < 7:
        return "click", game.click_waste()
    if choice < 9:
        return "click", game.click_foundation(rng.randrange(4))
    if choice < 12:
        return "click", game.click_tableau(t)
    if choice < 16:
        return "click", game.click_tableau_card(t, rng.randrange(len(column) + 1))
    if choice < 18:
        return "double", game.double_click_waste()
    return "double", game.double_click_tableau_card(t, len(column) - 1)


# ---------- Dealing ----------
@pytest.mark.parametrize("seed", [0, 1, 7, 1234])
def test_new_game_deal_shape(seed):
    game = KlondikeGame(rng=random.Random(seed))
    for col, pile in enumerate(game.tableau):
        assert len(pile) == col + 1
        assert [x.face_up for x in pile] == [False] * col + [True]
    assert len(game.stock) == 24
    assert not any(x.face_up for x in game.stock)
    assert game.waste == ()
    assert all(f == () for f in game.foundations)
    assert (game.moves, game.redeals, game.is_won, game.can_undo) == (0, 0, False, False)
    assert game.selection is None
    assert_invariants(game)


def test_same_seed_deals_same_game():
    a = KlondikeGame(rng=random.Random(99))
    b = KlondikeGame(rng=random.Random(99))
    assert a.snapshot() == b.snapshot()


def test_supplied_deck_is_dealt_in_order():
    game = sorted_game()
    assert game.tableau[0] == (c("AC"),)
    assert game.tableau[1] == (c("2C", False), c("3C"))
    assert game.tableau[6][-1] == c("2H")
    assert game.stock[0] == c("3H", False)
    assert game.stock[-1] == c("KS", False)


@pytest.mark.parametrize("deck", [make_deck()[:51], make_deck()[:51] + [Card(CLUBS, 1)]])
def test_new_game_rejects_bad_decks(deck):
    with pytest.raises(ValueError):
        KlondikeGame().new_game(deck=deck)


def test_new_game_resets_everything():
    game = sorted_game()
    game.double_click_tableau_card(0, 0)
    game.draw()
    game.click_waste()
    game.new_game()
    assert (game.moves, game.redeals, game.is_won, game.can_undo) == (0, 0, False, False)
    assert game.selection is None
    assert_invariants(game)


# ---------- Selection ----------
def test_click_on_empty_or_face_down_is_ignored():
    game = sorted_game()
    assert not game.click_waste()
    assert not game.click_foundation(0)
    assert not game.click_tableau_card(1, 0)
    assert not game.click_tableau_card(1, 5)
    assert not game.click_tableau(9)
    assert game.selection is None


def test_clicking_the_selected_card_deselects_without_mutation():
    game = sorted_game()
    before = game.snapshot()
    assert game.click_tableau_card(3, 3)
    assert game.selection == Selection(SourceKind.TABLEAU, 3, 3)
    assert game.click_tableau_card(3, 3)
    assert game.selection is None
    game.draw()
    game.click_waste()
    assert game.is_selected(SourceKind.WASTE, 0, 0)
    game.click_waste()
    assert game.selection is None
    assert game.snapshot().tableau == before.tableau


def test_click_tableau_selects_top_face_up_card():
    game = sorted_game()
    game.click_tableau(4)
    assert game.selection == Selection(SourceKind.TABLEAU, 4, 4)
    # Clicking the column itself again drops the selection
    game.click_tableau(4)
    assert game.selection is None


def test_reselect_within_same_column_changes_run_start():
    game = layout(tableau=[[c("2C", False), c("QH"), c("JS"), c("10H")], [c("KC")]])
    game.click_tableau_card(0, 1)
    game.click_tableau_card(0, 2)
    assert game.selection == Selection(SourceKind.TABLEAU, 0, 2)
    game.click_tableau_card(0, 1)
    assert game.selection == Selection(SourceKind.TABLEAU, 0, 1)
    # Face-down card in the same column keeps the selection
    assert not game.click_tableau_card(0, 0)
    assert game.selection == Selection(SourceKind.TABLEAU, 0, 1)


def test_failed_move_returns_to_idle():
    game = sorted_game()
    before = game.snapshot()
    game.click_tableau(1)
    game.click_tableau(2)
    assert game.selection is None
    assert game.snapshot() == before
    assert not game.can_undo


def test_clicking_waste_replaces_other_selection():
    game = sorted_game()
    game.draw()
    game.click_tableau(3)
    game.click_waste()
    assert game.selection == Selection(SourceKind.WASTE, 0, 0)


def test_draw_clears_selection():
    game = sorted_game()
    game.click_tableau(0)
    game.draw()
    assert game.selection is None


# ---------- Moves ----------
def test_waste_king_to_empty_column():
    game = sorted_game()
    assert game.double_click_tableau_card(0, 0)
    game.draw()
    game.click_waste()
    game.click_tableau(0)
    assert game.tableau[0] == (c("KS"),)
    assert game.waste == ()
    assert game.moves == 3
    assert game.selection is None


def test_waste_to_tableau_illegal_keeps_card():
    game = sorted_game()
    game.draw()
    game.click_waste()
    game.click_tableau_card(3, 3)
    assert game.waste == (c("KS"),)
    assert game.tableau[3][-1] == c("10C")
    assert game.moves == 1


def test_tableau_run_moves_intact_and_flips_source():
    game = layout(tableau=[[c("2C", False), c("QH"), c("JS"), c("10H")], [c("KC")]])
    game.click_tableau_card(0, 1)
    game.click_tableau_card(1, 0)
    assert game.tableau[1] == (c("KC"), c("QH"), c("JS"), c("10H"))
    assert game.tableau[0] == (c("2C"),)
    assert game.moves == 1
    assert game.selection is None


def test_invalid_run_is_rejected():
    game = layout(tableau=[[c("QH"), c("JH")], [c("KC")]])
    before = game.snapshot()
    game.click_tableau_card(0, 0)
    game.click_tableau(1)
    assert game.snapshot() == before
    assert game.selection is None


def test_tableau_to_same_column_is_a_deselect():
    game = layout(tableau=[[c("QH"), c("JS")]])
    game.click_tableau_card(0, 0)
    game.click_tableau(0)
    assert game.selection is None
    assert game.moves == 0


def test_only_top_tableau_card_reaches_foundation():
    game = layout(tableau=[[c("9D", False), c("3S"), c("2H")]], foundations=[[c("AH")]])
    game.click_tableau_card(0, 1)
    game.click_foundation(0)
    assert game.foundations[0] == (c("AH"),)
    assert game.moves == 0
    game.click_tableau(0)
    game.click_foundation(0)
    assert game.foundations[0] == (c("AH"), c("2H"))
    assert game.tableau[0] == (c("9D", False), c("3S"))


def test_tableau_to_foundation_flips_new_top():
    game = layout(tableau=[[c("9D", False), c("AH")]])
    game.click_tableau(0)
    game.click_foundation(2)
    assert game.foundations[2] == (c("AH"),)
    assert game.tableau[0] == (c("9D"),)


def test_foundation_card_back_to_tableau():
    game = layout(tableau=[[c("3S")]], foundations=[[c("AH"), c("2H")]])
    before = game.snapshot()
    game.click_foundation(0)
    assert game.selection == Selection(SourceKind.FOUNDATION, 0, 1)
    game.click_tableau(0)
    assert game.tableau[0] == (c("3S"), c("2H"))
    assert game.foundations[0] == (c("AH"),)
    game.undo()
    assert game.snapshot().tableau == before.tableau
    assert game.snapshot().foundations == before.foundations


def test_foundation_reclick_deselects_and_ace_can_change_foundation():
    game = layout(foundations=[[c("AH")]])
    game.click_foundation(0)
    game.click_foundation(0)
    assert game.selection is None
    game.click_foundation(0)
    game.click_foundation(3)
    assert game.foundations[0] == () and game.foundations[3] == (c("AH"),)


def test_double_click_only_moves_top_card():
    game = layout(tableau=[[c("AS"), c("2H")]], foundations=[[c("AH")]])
    assert not game.double_click_tableau_card(0, 0)
    assert game.double_click_tableau_card(0, 1)
    assert game.foundations[0] == (c("AH"), c("2H"))
    assert game.double_click_tableau_card(0, 0)
    assert game.foundations[1] == (c("AS"),)


def test_double_click_waste_prefers_suit_foundation_and_clears_selection():
    game = layout(stock=[c("2C", False)], foundations=[[], [c("AC")]], tableau=[[c("KH")]])
    game.draw()
    game.click_tableau(0)
    assert game.double_click_waste()
    assert game.foundations[1] == (c("AC"), c("2C"))
    assert game.selection is None


def test_double_click_without_destination_is_ignored():
    game = sorted_game()
    game.click_tableau(1)
    assert not game.double_click_tableau_card(1, 1)
    assert not game.double_click_waste()
    assert game.selection == Selection(SourceKind.TABLEAU, 1, 1)
    assert game.moves == 0


def test_failed_double_click_keeps_waste_selection_and_history():
    game = sorted_game()
    game.draw()
    game.click_waste()
    before = game.snapshot()
    assert not game.double_click_waste()
    assert game.selection == Selection(SourceKind.WASTE, 0, 0)
    assert game.snapshot() == before
    game.undo()
    assert game.waste == () and not game.can_undo


# ---------- Draw / redeal ----------
def test_draw_and_unlimited_redeal():
    game = sorted_game()
    original_stock = game.stock
    first_pass = None
    for cycle in range(1, 6):
        for _ in range(24):
            assert game.draw()
        assert game.stock == ()
        if first_pass is None:
            first_pass = game.waste
        assert game.waste == first_pass
        assert game.draw()
        assert game.waste == ()
        assert game.stock == original_stock
        assert game.redeals == cycle
    assert game.moves == 5 * 25
    assert_invariants(game)


def test_draw_with_nothing_left_is_a_no_op():
    game = layout(tableau=[[c("KS")]])
    assert not game.draw()
    assert game.moves == 0
    assert not game.can_undo
    game.click_tableau(0)
    assert game.draw()
    assert game.selection is None
    assert not game.can_undo


# ---------- Undo ----------
def test_undo_without_history_is_ignored():
    game = sorted_game()
    assert not game.undo()
    assert game.moves == 0


def test_undo_restores_redeal_and_counts_as_move():
    game = layout(waste=[c("3H"), c("4H")])
    before = game.snapshot()
    game.draw()
    assert game.stock == (c("4H", False), c("3H", False))
    assert game.redeals == 1
    assert game.undo()
    after = game.snapshot()
    assert (after.stock, after.waste) == (before.stock, before.waste)
    assert game.moves == before.moves + 1
    assert game.redeals == 0
    assert not game.can_undo


@pytest.mark.parametrize("seed", range(6))
def test_random_play_keeps_invariants_and_undo_is_exact(seed):
    rng = random.Random(seed)
    game = KlondikeGame(rng=random.Random(seed))
    for step in range(600):
        before = game.snapshot()
        kind, _ = random_command(game, rng)
        assert_invariants(game)
        after = game.snapshot()
        if kind != "undo" and after != before and step % 3 == 0:
            assert game.undo()
            restored = game.snapshot()
            assert restored.stock == before.stock
            assert restored.waste == before.waste
            assert restored.foundations == before.foundations
            assert restored.tableau == before.tableau
            assert restored.redeals == before.redeals
            assert restored.moves == before.moves + 1
            assert not game.is_won
            assert_invariants(game)


# ---------- Win ----------
def _nearly_won_layout() -> KlondikeGame:
    full = [[Card(s, r, True) for r in range(1, 14)] for s in (CLUBS, DIAMONDS, HEARTS)]
    spades = [Card(SPADES, r, True) for r in range(1, 13)]
    return layout(foundations=full + [spades], tableau=[[c("KS")]], moves=200)


def test_winning_move_sets_flag_and_undo_clears_it():
    game = _nearly_won_layout()
    assert not game.is_won
    game.click_tableau(0)
    game.click_foundation(3)
    assert game.is_won
    assert all(len(f) == 13 for f in game.foundations)
    game.undo()
    assert not game.is_won
    assert len(game.foundations[3]) == 12
    assert game.tableau[0] == (c("KS"),)
    assert game.moves == 201


def test_double_click_can_win():
    game = _nearly_won_layout()
    assert game.double_click_tableau_card(0, 0)
    assert game.is_won
    game.new_game()
    assert not game.is_won


# ---------- Diagnostics ----------
def test_attempts_are_reported_to_listener():
    seen = []
    game = sorted_game(on_attempt=seen.append)
    game.click_tableau(1)
    game.click_tableau(2)
    assert seen == [MoveAttempt(c("3C"), PileKind.TABLEAU, 2, c("6C"), False)]
    assert seen[0].describe() == "Attempt: 3♣ -> 6♣: Illegal"


def test_attempts_are_logged(caplog):
    game = sorted_game()
    with caplog.at_level(logging.DEBUG, logger="klondike.engine"):
        game.double_click_tableau_card(0, 0)
    assert "Attempt: A♣ -> empty: Legal" in caplog.text


def test_from_snapshot_rejects_duplicates():
    with pytest.raises(ValueError):
        layout(tableau=[[c("KS")], [c("KS")]])
