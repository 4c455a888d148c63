"""
Per-user, per-command cooldowns.
Entries expire on their own; the scheduled cleanup only keeps the dict small.
"""

import asyncio
import time
from typing import Callable, Optional


def cooldown_message(minutes: int, seconds: int) -> str:
    return (
        f"This command is on cooldown. Please try again in "
        f"{minutes} minutes and {seconds} seconds."
    )


class CooldownGate:
    def __init__(self, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._expires: dict[tuple[str, str], float] = {}

    def is_on_cooldown(self, user_id, command_type: str) -> bool:
        expires_at = self._expires.get((str(user_id), command_type))
        return expires_at is not None and self._clock() < expires_at

    def set_cooldown(self, user_id, command_type: str) -> None:
        key = (str(user_id), command_type)
        expires_at = self._clock() + self.window_seconds
        self._expires[key] = expires_at

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.call_later(self.window_seconds, self._expire, key, expires_at)

    def _expire(self, key: tuple[str, str], expires_at: float) -> None:
        # A newer set_cooldown may have replaced this entry
        if self._expires.get(key) == expires_at:
            del self._expires[key]

    def remaining(self, user_id, command_type: str) -> Optional[tuple[int, int]]:
        """(minutes, seconds) left, or None when not on cooldown."""
        expires_at = self._expires.get((str(user_id), command_type))
        if expires_at is None:
            return None

        left = expires_at - self._clock()
        if left <= 0:
            return None
        minutes, seconds = divmod(int(left), 60)
        return minutes, seconds

    def __len__(self) -> int:
        return len(self._expires)
