# unlockwall/config.py
from __future__ import annotations
import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    grid_size: int = 1000
    game_seconds: int = 10
    mismatch_delay_ms: int = 500
    thumbnail_size: int = 60
    store_url: str = "http://localhost:5001"
    namespace: str = "logos"
    poll_seconds: float = 1.0
    allow_overwrite: bool = False

    def __post_init__(self):
        if self.grid_size <= 0:
            raise ValueError("grid_size must be positive")
        if self.game_seconds <= 0:
            raise ValueError("game_seconds must be positive")
        if self.mismatch_delay_ms < 0 or self.thumbnail_size <= 0:
            raise ValueError("mismatch delay / thumbnail size out of range")
        if not self.namespace or "/" in self.namespace:
            raise ValueError("namespace must be a single path segment")

    @property
    def mismatch_delay(self) -> float:
        return self.mismatch_delay_ms / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ.get
        return cls(
            grid_size=int(env("UNLOCKWALL_GRID_SIZE", "1000")),
            game_seconds=int(env("UNLOCKWALL_GAME_SECONDS", "10")),
            mismatch_delay_ms=int(env("UNLOCKWALL_MISMATCH_DELAY_MS", "500")),
            thumbnail_size=int(env("UNLOCKWALL_THUMBNAIL_SIZE", "60")),
            store_url=env("UNLOCKWALL_STORE_URL", "http://localhost:5001"),
            namespace=env("UNLOCKWALL_NAMESPACE", "logos"),
            poll_seconds=float(env("UNLOCKWALL_POLL_SECONDS", "1.0")),
            allow_overwrite=_env_bool("UNLOCKWALL_ALLOW_OVERWRITE", False),
        )
