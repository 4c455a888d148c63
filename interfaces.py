"""
Capabilities the reconcilers depend on.

The Mongo repositories, the httpx leaderboard client and the discord.py role
gateway satisfy these structurally; tests pass in-memory fakes.
"""

from typing import Iterable, Optional, Protocol

from models import LeaderboardEntry, WalletVerification, WhaleRecord


class WalletDirectory(Protocol):
    async def find_by_address(self, address: str) -> Optional[WalletVerification]: ...

    async def find_by_user_id(self, user_id: str) -> Optional[WalletVerification]: ...

    async def find_by_addresses(self, addresses: Iterable[str]) -> dict[str, WalletVerification]: ...


class RoleGateway(Protocol):
    """One Discord role in one guild."""

    role_id: int

    def ensure_available(self) -> None:
        """Raise GuildUnavailableError when the guild cannot be resolved."""

    async def has_role(self, user_id: str) -> bool: ...

    async def grant(self, user_id: str, reason: str = "") -> bool:
        """Add the role. Returns False when the member already had it."""

    async def revoke(self, user_id: str, reason: str = "") -> bool:
        """Remove the role. Returns False when the member did not have it."""

    async def list_holders(self) -> list[str]: ...


class LeaderboardSource(Protocol):
    async def fetch_top(self, limit: int = 30) -> list[LeaderboardEntry]: ...


class SnapshotStore(Protocol):
    async def all(self) -> list[LeaderboardEntry]: ...

    async def find_by_address(self, address: str) -> Optional[LeaderboardEntry]: ...

    async def replace(self, entries: list[LeaderboardEntry]) -> int: ...


class WhaleRecordStore(Protocol):
    async def upsert(self, record: WhaleRecord) -> None: ...

    async def delete(self, user_id: str) -> bool: ...

    async def all(self) -> list[WhaleRecord]: ...


class AddressList(Protocol):
    name: str

    async def addresses(self) -> list[str]: ...
