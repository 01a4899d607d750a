# settings.py - display density and start-up overrides for the table scene
import os
from dataclasses import dataclass
from typing import Dict, Optional

SIZE_MODES = ("Small", "Comfortable", "Large")


@dataclass(frozen=True)
class SizeProfile:
    card_w: int
    card_h: int
    face_up_offset: int
    face_down_offset: int
    waste_fan_step: int


_SIZE_PROFILES: Dict[str, SizeProfile] = {
    "Small": SizeProfile(75, 105, 28, 12, 14),
    "Comfortable": SizeProfile(90, 126, 34, 14, 16),
    "Large": SizeProfile(100, 140, 42, 16, 20),
}

# Defaults; never written to disk
_DEFAULT_SETTINGS = {
    "size_mode": "Large",
    "seed": None,
    "log_level": "WARNING",
}

_CURRENT_SETTINGS = dict(_DEFAULT_SETTINGS)


def normalize_size_mode(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    name = name.strip().capitalize()
    return name if name in SIZE_MODES else None


def size_profile(name: Optional[str] = None) -> SizeProfile:
    name = normalize_size_mode(name) or _CURRENT_SETTINGS["size_mode"]
    return _SIZE_PROFILES[name]


def next_size_mode(name: str) -> str:
    name = normalize_size_mode(name) or _DEFAULT_SETTINGS["size_mode"]
    return SIZE_MODES[(SIZE_MODES.index(name) + 1) % len(SIZE_MODES)]


def get_current_settings() -> dict:
    return dict(_CURRENT_SETTINGS)


def apply_settings(size_mode: str = None, seed: int = None, log_level: str = None):
    if size_mode is not None:
        mode = normalize_size_mode(size_mode)
        if mode is None:
            raise ValueError(f"Unknown size mode: {size_mode!r}")
        _CURRENT_SETTINGS["size_mode"] = mode
    if seed is not None:
        _CURRENT_SETTINGS["seed"] = int(seed)
    if log_level is not None:
        _CURRENT_SETTINGS["log_level"] = str(log_level).upper()


def reset_settings():
    _CURRENT_SETTINGS.clear()
    _CURRENT_SETTINGS.update(_DEFAULT_SETTINGS)


def load_env_overrides(environ=None) -> dict:
    """Apply KLONDIKE_SIZE / KLONDIKE_SEED / KLONDIKE_LOG_LEVEL; bad values are ignored."""
    env = os.environ if environ is None else environ
    size = normalize_size_mode(env.get("KLONDIKE_SIZE", ""))
    if size:
        apply_settings(size_mode=size)
    seed = env.get("KLONDIKE_SEED", "").strip()
    if seed:
        try:
            apply_settings(seed=int(seed))
        except ValueError:
            pass
    level = env.get("KLONDIKE_LOG_LEVEL", "").strip()
    if level:
        apply_settings(log_level=level)
    return get_current_settings()
