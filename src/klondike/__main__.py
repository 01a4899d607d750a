# __main__.py - entry point
import logging
import os

import pygame

from klondike import settings as S
from klondike import ui as U
from klondike.scenes.table import KlondikeTableScene

logger = logging.getLogger("klondike")


def _initial_window_size():
    info = pygame.display.Info()
    # Keep a safety margin so the window never hides under taskbar
    margin_w, margin_h = 120, 140
    w = min(U.SCREEN_W, max(640, info.current_w - margin_w))
    h = min(U.SCREEN_H, max(480, info.current_h - margin_h))
    return w, h


def _allowed_keys_set():
    keys = ["K_ESCAPE", "K_SPACE", "K_n", "K_u", "K_d", "K_s"]
    out = set()
    for n in keys:
        v = getattr(pygame, n, None)
        if isinstance(v, int):
            out.add(v)
    return out


def _configure_logging(level_name: str):
    level = getattr(logging, str(level_name).upper(), None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")


def main():
    current = S.load_env_overrides()
    _configure_logging(current["log_level"])

    os.environ.setdefault("SDL_VIDEO_CENTERED", "1")
    pygame.init()

    w, h = _initial_window_size()
    U.SCREEN_W, U.SCREEN_H = w, h
    screen = pygame.display.set_mode((w, h), pygame.RESIZABLE)
    pygame.display.set_caption("Klondike")
    U.setup_fonts()
    clock = pygame.time.Clock()

    scene = KlondikeTableScene(app=None)
    logger.info("Started Klondike (size=%s, seed=%s)", current["size_mode"], current["seed"])

    allowed_keys = _allowed_keys_set()
    running = True
    while running:
        dt = clock.tick(60) / 1000.0
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                running = False
                continue
            if e.type == pygame.VIDEORESIZE:
                U.SCREEN_W, U.SCREEN_H = e.size
                screen = pygame.display.set_mode((U.SCREEN_W, U.SCREEN_H), pygame.RESIZABLE)
                scene.compute_layout()
                continue
            # Enforce key allowlist
            if e.type == pygame.KEYDOWN and getattr(e, "key", None) not in allowed_keys:
                continue
            scene.handle_event(e)
        if scene.quit_requested:
            running = False
        scene.update(dt)
        scene.draw(screen)
        pygame.display.flip()
    pygame.quit()


if __name__ == "__main__":
    main()
