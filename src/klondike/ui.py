# ui.py - pygame drawing helpers, buttons and toolbar for the table scene
import pygame
from typing import Callable, Dict, List, Optional, Tuple

from klondike import common as C

# ---------- Configuration ----------
SCREEN_W, SCREEN_H = 1280, 800
TABLE_BG = (2, 100, 40)
TOP_BAR_H = 60
CARD_RADIUS = 10

BLACK = (20, 20, 20)
WHITE = (245, 245, 245)
RED = (200, 20, 20)
GOLD = (230, 190, 80)
LIGHT = (220, 220, 220)
BACK_BLUE = (34, 96, 200)

DEFAULT_BUTTON_HEIGHT = 36
DEFAULT_BUTTON_PADDING_X = 12
DEFAULT_BUTTON_GAP = 8
DEFAULT_TOOLBAR_MARGIN = (12, 12)

BTN_BG = (230, 230, 235)
BTN_BG_HOVER = (215, 215, 225)
BTN_BG_DISABLED = (200, 200, 205)
BTN_BORDER = (160, 160, 170)
BTN_TEXT = (30, 30, 35)
BTN_TEXT_DISABLED = (120, 120, 130)

# Fonts are initialized via setup_fonts() AFTER pygame.init() in __main__
FONT_UI = None
FONT_SMALL = None
FONT_TITLE = None
FONT_CORNER_RANK = None
FONT_CORNER_SUIT = None


def setup_fonts():
    global FONT_UI, FONT_SMALL, FONT_TITLE, FONT_CORNER_RANK, FONT_CORNER_SUIT
    name = pygame.font.get_default_font()
    FONT_UI = pygame.font.SysFont(name, 26, bold=True)
    FONT_SMALL = pygame.font.SysFont(name, 20, bold=True)
    FONT_TITLE = pygame.font.SysFont(name, 44, bold=True)
    FONT_CORNER_RANK = pygame.font.SysFont(name, 24, bold=True)
    # Suit glyphs need a Unicode-capable font
    try:
        FONT_CORNER_SUIT = pygame.font.SysFont("Segoe UI Symbol", 24, bold=True)
    except Exception:
        FONT_CORNER_SUIT = pygame.font.SysFont(name, 24, bold=True)


# ---------- Card surfaces ----------
_card_face_cache: Dict[Tuple[int, int, int, int], pygame.Surface] = {}
_card_back_cache: Dict[Tuple[int, int], pygame.Surface] = {}


def invalidate_card_caches():
    _card_face_cache.clear()
    _card_back_cache.clear()


def draw_suit_shape(surface, center, suit, color, size=42):
    x, y = center
    if suit == C.DIAMONDS:
        half = size // 2
        points = [(x, y - half), (x + half, y), (x, y + half), (x - half, y)]
        pygame.draw.polygon(surface, color, points)
    elif suit == C.HEARTS:
        r = size // 3
        pygame.draw.circle(surface, color, (x - r, y - r), r)
        pygame.draw.circle(surface, color, (x + r, y - r), r)
        pygame.draw.polygon(surface, color, [(x - 2 * r, y - r), (x + 2 * r, y - r), (x, y + 2 * r)])
    elif suit == C.SPADES:
        r = size // 3
        pygame.draw.circle(surface, color, (x - r, y), r)
        pygame.draw.circle(surface, color, (x + r, y), r)
        pygame.draw.polygon(surface, color, [(x - 2 * r, y), (x + 2 * r, y), (x, y - 2 * r)])
        stem_w = max(6, size // 6)
        pygame.draw.rect(surface, color, (x - stem_w // 2, y + r, stem_w, size // 2))
    else:
        r = size // 3
        pygame.draw.circle(surface, color, (x, y - r), r)
        pygame.draw.circle(surface, color, (x - r, y + r // 3), r)
        pygame.draw.circle(surface, color, (x + r, y + r // 3), r)
        stem_w = max(6, size // 6)
        pygame.draw.rect(surface, color, (x - stem_w // 2, y + r, stem_w, size // 2))


def get_back_surface(size: Tuple[int, int]) -> pygame.Surface:
    if size in _card_back_cache:
        return _card_back_cache[size]
    w, h = size
    surf = pygame.Surface((w, h), pygame.SRCALPHA)
    pygame.draw.rect(surf, WHITE, (0, 0, w, h), border_radius=CARD_RADIUS)
    pygame.draw.rect(surf, BLACK, (0, 0, w, h), width=3, border_radius=CARD_RADIUS)
    inset = 8
    pygame.draw.rect(surf, BACK_BLUE, pygame.Rect(inset, inset, w - 2 * inset, h - 2 * inset), border_radius=8)
    for i in range(-h, w, 12):
        pygame.draw.line(surf, LIGHT, (i, 8), (i + h, h - 8), 1)
    _card_back_cache[size] = surf
    return surf


def get_card_surface(card: C.Card, size: Tuple[int, int]) -> pygame.Surface:
    if not card.face_up:
        return get_back_surface(size)
    key = (card.suit, card.rank) + tuple(size)
    if key in _card_face_cache:
        return _card_face_cache[key]
    w, h = size
    surf = pygame.Surface((w, h), pygame.SRCALPHA)
    pygame.draw.rect(surf, WHITE, (0, 0, w, h), border_radius=CARD_RADIUS)
    pygame.draw.rect(surf, BLACK, (0, 0, w, h), width=3, border_radius=CARD_RADIUS)
    color = RED if card.is_red else BLACK
    margin = 8
    rtxt = FONT_CORNER_RANK.render(C.RANK_TO_TEXT[card.rank], True, color)
    stxt = FONT_CORNER_SUIT.render(C.SUITS[card.suit], True, color)
    surf.blit(rtxt, (margin, margin))
    surf.blit(stxt, (margin + rtxt.get_width() + 2, margin))
    draw_suit_shape(surf, (w // 2, h // 2 + 8), card.suit, color, size=max(24, w // 2))
    _card_face_cache[key] = surf
    return surf


def draw_empty_slot(surface, rect: pygame.Rect, label: str = ""):
    pygame.draw.rect(surface, (255, 255, 255), rect, width=2, border_radius=CARD_RADIUS)
    if label and FONT_SMALL is not None:
        t = FONT_SMALL.render(label, True, LIGHT)
        surface.blit(t, (rect.centerx - t.get_width() // 2, rect.centery - t.get_height() // 2))


def draw_highlight(surface, rect: pygame.Rect):
    pygame.draw.rect(surface, GOLD, rect.inflate(6, 6), width=4, border_radius=CARD_RADIUS + 2)


# ---------- Buttons ----------
class Button:
    def __init__(
        self,
        label: str,
        on_click: Callable[[], None],
        enabled_fn: Optional[Callable[[], bool]] = None,
        height: int = DEFAULT_BUTTON_HEIGHT,
        min_width: int = 0,
    ):
        self.label = label
        self.on_click = on_click
        self.enabled_fn = enabled_fn
        self.height = height
        self.rect = pygame.Rect(0, 0, 0, 0)
        self._hover = False

        text_w = FONT_UI.render(self.label, True, BTN_TEXT).get_width()
        self.rect.size = (max(min_width, text_w + DEFAULT_BUTTON_PADDING_X * 2), self.height)

    def is_enabled(self) -> bool:
        return True if self.enabled_fn is None else bool(self.enabled_fn())

    def set_position(self, x: int, y: int):
        self.rect.topleft = (x, y)

    def handle_event(self, event: pygame.event.Event) -> bool:
        if event.type == pygame.MOUSEMOTION:
            self._hover = self.rect.collidepoint(event.pos)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos) and self.is_enabled():
                self.on_click()
                return True
        return False

    def draw(self, surface: pygame.Surface):
        enabled = self.is_enabled()
        bg = BTN_BG_DISABLED if not enabled else (BTN_BG_HOVER if self._hover else BTN_BG)
        pygame.draw.rect(surface, bg, self.rect, border_radius=8)
        pygame.draw.rect(surface, BTN_BORDER, self.rect, width=1, border_radius=8)
        label_surf = FONT_UI.render(self.label, True, BTN_TEXT if enabled else BTN_TEXT_DISABLED)
        surface.blit(
            label_surf,
            (self.rect.centerx - label_surf.get_width() // 2,
             self.rect.centery - label_surf.get_height() // 2),
        )


class Toolbar:
    """Upper toolbar; buttons run left to right from the margin."""

    def __init__(
        self,
        buttons: List[Button],
        margin: Tuple[int, int] = DEFAULT_TOOLBAR_MARGIN,
        gap: int = DEFAULT_BUTTON_GAP,
    ):
        self.buttons = buttons
        self.margin = margin
        self.gap = gap
        self._layout()

    def _layout(self):
        x, y = self.margin
        for b in self.buttons:
            b.set_position(x, y)
            x += b.rect.width + self.gap

    def button(self, label: str) -> Optional[Button]:
        for b in self.buttons:
            if b.label == label:
                return b
        return None

    def handle_event(self, event: pygame.event.Event) -> bool:
        for b in self.buttons:
            if b.handle_event(event):
                return True
        return False

    def draw(self, surface: pygame.Surface):
        for b in self.buttons:
            b.draw(surface)


def make_toolbar(actions: Dict[str, Dict], **kwargs) -> Toolbar:
    """Build a toolbar from ``{label: {"on_click": fn, "enabled": fn}}`` in insertion order."""
    buttons = [
        Button(label, spec["on_click"], enabled_fn=spec.get("enabled"))
        for label, spec in actions.items()
    ]
    return Toolbar(buttons, **kwargs)


class Scene:
    def __init__(self, app):
        self.app = app

    def handle_event(self, e):
        pass

    def update(self, dt):
        pass

    def draw(self, screen):
        pass
