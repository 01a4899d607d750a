# table.py - Klondike table: maps pointer and key input onto engine commands
import random
from typing import List, Optional, Tuple

import pygame

from klondike import settings as S
from klondike import ui as U
from klondike.common import FOUNDATION_COUNT, TABLEAU_COUNT
from klondike.engine import KlondikeGame, SourceKind

DOUBLE_CLICK_MS = 350
DOUBLE_CLICK_SLOP_PX = 6
WASTE_FAN_CARDS = 3


class KlondikeTableScene(U.Scene):
    """
    Klondike table
    - Stock and waste top-left, four foundations top-right, seven tableau columns below.
    - Click a card to pick it up, click a destination to drop it there.
      Click the picked card again to put it back.
    - Double-click the waste top or a column's top card to send it to a foundation.
    - The stock redeals the waste without limit.
    """

    def __init__(self, app, game: Optional[KlondikeGame] = None, size_mode: Optional[str] = None):
        super().__init__(app)
        if game is None:
            seed = S.get_current_settings().get("seed")
            game = KlondikeGame(rng=random.Random(seed) if seed is not None else None)
        self.game = game
        self.size_mode = S.normalize_size_mode(size_mode) or S.get_current_settings()["size_mode"]
        self.quit_requested = False

        self.stock_rect = pygame.Rect(0, 0, 0, 0)
        self.waste_origin = (0, 0)
        self.foundation_rects: List[pygame.Rect] = []
        self.tableau_origins: List[Tuple[int, int]] = []

        self._last_click_time = -DOUBLE_CLICK_MS - 1
        self._last_click_pos = (0, 0)

        self.toolbar = U.make_toolbar(
            {
                "New": {"on_click": self.new_game},
                "Undo": {"on_click": self.game.undo, "enabled": lambda: self.game.can_undo},
                "Size": {"on_click": self.cycle_size},
            }
        )
        self.compute_layout()

    # ----- Layout -----
    @property
    def profile(self) -> S.SizeProfile:
        return S.size_profile(self.size_mode)

    @property
    def card_size(self) -> Tuple[int, int]:
        return self.profile.card_w, self.profile.card_h

    def compute_layout(self):
        p = self.profile
        gap_x = max(14, p.card_w // 6)
        gap_y = max(20, p.card_h // 5)
        block_w = TABLEAU_COUNT * p.card_w + (TABLEAU_COUNT - 1) * gap_x
        left = max(10, (U.SCREEN_W - block_w) // 2)
        top_y = U.TOP_BAR_H + 30

        def col_x(i):
            return left + i * (p.card_w + gap_x)

        self.stock_rect = pygame.Rect(col_x(0), top_y, p.card_w, p.card_h)
        self.waste_origin = (col_x(1), top_y)
        self.foundation_rects = [
            pygame.Rect(col_x(TABLEAU_COUNT - FOUNDATION_COUNT + i), top_y, p.card_w, p.card_h)
            for i in range(FOUNDATION_COUNT)
        ]
        tableau_y = top_y + p.card_h + gap_y
        self.tableau_origins = [(col_x(i), tableau_y) for i in range(TABLEAU_COUNT)]

    def waste_card_rects(self) -> List[Tuple[int, pygame.Rect]]:
        """(waste index, rect) for the fanned, visible part of the waste."""
        p = self.profile
        waste = self.game.waste
        first = max(0, len(waste) - WASTE_FAN_CARDS)
        x0, y0 = self.waste_origin
        return [
            (i, pygame.Rect(x0 + (i - first) * p.waste_fan_step, y0, p.card_w, p.card_h))
            for i in range(first, len(waste))
        ]

    def tableau_card_rects(self, ti: int) -> List[pygame.Rect]:
        p = self.profile
        x, y = self.tableau_origins[ti]
        rects = []
        for card in self.game.tableau[ti]:
            rects.append(pygame.Rect(x, y, p.card_w, p.card_h))
            y += p.face_up_offset if card.face_up else p.face_down_offset
        return rects

    def tableau_slot_rect(self, ti: int) -> pygame.Rect:
        x, y = self.tableau_origins[ti]
        return pygame.Rect(x, y, self.profile.card_w, self.profile.card_h)

    # ----- Commands -----
    def new_game(self):
        self.game.new_game()

    def cycle_size(self):
        self.size_mode = S.next_size_mode(self.size_mode)
        S.apply_settings(size_mode=self.size_mode)
        self.compute_layout()

    # ----- Hit testing -----
    def hit_test(self, pos) -> Optional[Tuple[str, int, int]]:
        """Return (area, pile index, card index) under ``pos``; card index -1 for empty slots."""
        if self.stock_rect.collidepoint(pos):
            return ("stock", 0, -1)
        for i, r in reversed(self.waste_card_rects()):
            if r.collidepoint(pos):
                return ("waste", 0, i)
        for fi, r in enumerate(self.foundation_rects):
            if r.collidepoint(pos):
                return ("foundation", fi, len(self.game.foundations[fi]) - 1)
        for ti in range(TABLEAU_COUNT):
            rects = self.tableau_card_rects(ti)
            if not rects:
                if self.tableau_slot_rect(ti).collidepoint(pos):
                    return ("tableau", ti, -1)
                continue
            for ci in reversed(range(len(rects))):
                if rects[ci].collidepoint(pos):
                    return ("tableau", ti, ci)
        return None

    def _is_double_click(self, pos) -> bool:
        now = pygame.time.get_ticks()
        double = (
            now - self._last_click_time <= DOUBLE_CLICK_MS
            and abs(pos[0] - self._last_click_pos[0]) <= DOUBLE_CLICK_SLOP_PX
            and abs(pos[1] - self._last_click_pos[1]) <= DOUBLE_CLICK_SLOP_PX
        )
        if double:
            # A third click starts a fresh pair
            self._last_click_time = -DOUBLE_CLICK_MS - 1
        else:
            self._last_click_time = now
            self._last_click_pos = pos
        return double

    def on_click(self, pos):
        hit = self.hit_test(pos)
        double = self._is_double_click(pos)
        if hit is None:
            return
        area, pi, ci = hit
        g = self.game
        if area == "stock":
            g.draw()
        elif area == "waste":
            g.click_waste()
            if double and ci == len(g.waste) - 1:
                g.double_click_waste()
        elif area == "foundation":
            g.click_foundation(pi)
        elif area == "tableau":
            if ci < 0:
                g.click_tableau(pi)
                return
            g.click_tableau_card(pi, ci)
            if double:
                g.double_click_tableau_card(pi, ci)

    # ----- Events -----
    def handle_event(self, e):
        if self.toolbar.handle_event(e):
            return
        if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            self.on_click(e.pos)
        elif e.type == pygame.KEYDOWN:
            if e.key == pygame.K_n:
                self.new_game()
            elif e.key == pygame.K_u:
                self.game.undo()
            elif e.key in (pygame.K_d, pygame.K_SPACE):
                self.game.draw()
            elif e.key == pygame.K_s:
                self.cycle_size()
            elif e.key == pygame.K_ESCAPE:
                self.quit_requested = True

    # ----- Drawing -----
    def draw(self, screen):
        screen.fill(U.TABLE_BG)
        g = self.game
        size = self.card_size

        pygame.draw.rect(screen, (0, 0, 0), (0, 0, U.SCREEN_W, U.TOP_BAR_H))
        self.toolbar.draw(screen)
        hud = U.FONT_UI.render(f"Moves: {g.moves}   Redeals: {g.redeals}", True, U.WHITE)
        screen.blit(hud, (U.SCREEN_W - hud.get_width() - 20, (U.TOP_BAR_H - hud.get_height()) // 2))

        # Stock
        if g.stock:
            screen.blit(U.get_back_surface(size), self.stock_rect.topleft)
        else:
            U.draw_empty_slot(screen, self.stock_rect, "Redeal" if g.waste else "")

        # Waste
        rects = self.waste_card_rects()
        if not rects:
            U.draw_empty_slot(screen, pygame.Rect(self.waste_origin, size))
        for i, r in rects:
            screen.blit(U.get_card_surface(g.waste[i], size), r.topleft)
            if g.is_selected(SourceKind.WASTE, 0, i):
                U.draw_highlight(screen, r)

        # Foundations
        for fi, r in enumerate(self.foundation_rects):
            pile = g.foundations[fi]
            if not pile:
                U.draw_empty_slot(screen, r, "A")
                continue
            screen.blit(U.get_card_surface(pile[-1], size), r.topleft)
            if g.is_selected(SourceKind.FOUNDATION, fi, len(pile) - 1):
                U.draw_highlight(screen, r)

        # Tableau
        sel = g.selection
        for ti in range(TABLEAU_COUNT):
            rects = self.tableau_card_rects(ti)
            if not rects:
                U.draw_empty_slot(screen, self.tableau_slot_rect(ti), "K")
            for ci, r in enumerate(rects):
                screen.blit(U.get_card_surface(g.tableau[ti][ci], size), r.topleft)
            if sel is not None and sel.source is SourceKind.TABLEAU and sel.pile_index == ti:
                run = rects[sel.start_index:]
                if run:
                    U.draw_highlight(screen, run[0].union(run[-1]))

        if g.is_won:
            msg = U.FONT_TITLE.render("You won! Press N for a new game.", True, (255, 255, 180))
            screen.blit(msg, (U.SCREEN_W // 2 - msg.get_width() // 2, U.SCREEN_H - msg.get_height() - 30))
