import importlib

import pytest


class DummyFont:
    def __init__(self, size):
        self._size = max(1, int(size) if size else 1)

    def render(self, text, *_, **__):
        pygame = importlib.import_module("pygame")
        width = max(1, len(str(text)) * max(self._size // 2, 1))
        return pygame.Surface((width, max(1, self._size)), pygame.SRCALPHA)

    def size(self, text):
        return max(1, len(str(text)) * max(self._size // 2, 1)), max(1, self._size)

    def get_height(self):
        return max(1, self._size)


def _make_font(*args, size=None, **kwargs):
    if size is None and len(args) > 1:
        size = args[1]
    return DummyFont(size or 24)


@pytest.fixture
def headless_pygame(monkeypatch):
    """pygame on the dummy SDL drivers with fonts stubbed and settings reset."""
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    for name in ("KLONDIKE_SIZE", "KLONDIKE_SEED", "KLONDIKE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    pygame = importlib.import_module("pygame")
    monkeypatch.setattr(pygame.font, "SysFont", _make_font, raising=False)
    monkeypatch.setattr(pygame.font, "Font", _make_font, raising=False)
    monkeypatch.setattr(pygame.font, "get_default_font", lambda: "dummy", raising=False)

    settings = importlib.import_module("klondike.settings")
    ui = importlib.import_module("klondike.ui")
    settings.reset_settings()
    ui.invalidate_card_caches()
    ui.setup_fonts()
    yield pygame
    settings.reset_settings()
    ui.invalidate_card_caches()
