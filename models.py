"""
Mongo document models.

Field aliases follow the camelCase names the wallet verification flow already
writes, so documents round-trip without a migration.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def normalize_address(address: str) -> str:
    return address.strip().lower()


class WalletVerification(BaseModel):
    """A wallet a Discord user has proven they own (read-only here)."""

    user_id: str = Field(..., alias="userId")
    wallet_address: str = Field(..., alias="walletAddress")
    username: Optional[str] = None
    verified_at: Optional[datetime] = Field(None, alias="verifiedAt")

    @field_validator("user_id", mode="before")
    @classmethod
    def _stringify_user_id(cls, value):
        return value if value is None else str(value)

    @property
    def normalized_address(self) -> str:
        return normalize_address(self.wallet_address)

    @property
    def display_name(self) -> str:
        return self.username or self.user_id

    class Config:
        populate_by_name = True


class LeaderboardEntry(BaseModel):
    """One row of the whale leaderboard snapshot."""

    address: str
    nickname: str = ""
    point: float = 0

    @field_validator("address")
    @classmethod
    def _lowercase_address(cls, value: str) -> str:
        return normalize_address(value)

    @field_validator("nickname", mode="before")
    @classmethod
    def _nickname_or_blank(cls, value):
        return value if value is not None else ""

    class Config:
        populate_by_name = True


class WhaleRecord(BaseModel):
    """Why a user currently holds the whale role. Cache, not source of truth."""

    user_id: str = Field(..., alias="userId")
    wallet_address: str = Field(..., alias="walletAddress")
    username: Optional[str] = None
    nickname: str = ""
    point: float = 0
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("user_id", mode="before")
    @classmethod
    def _stringify_user_id(cls, value):
        return value if value is None else str(value)

    @classmethod
    def from_match(
        cls, verification: WalletVerification, entry: Optional[LeaderboardEntry] = None,
    ) -> "WhaleRecord":
        """Build the record for a verified user, zero-valued when off the leaderboard."""
        return cls(
            user_id=verification.user_id,
            wallet_address=verification.normalized_address,
            username=verification.username,
            nickname=entry.nickname if entry else "",
            point=entry.point if entry else 0,
        )

    class Config:
        populate_by_name = True
