"""
MongoDB access for the four kinds of collections the bot touches.

Every driver failure surfaces as StorageError so callers never need to know
about pymongo.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, ValidationError
from pymongo.errors import PyMongoError

from database import CASE_INSENSITIVE, LEADERBOARD, VERIFIED_WALLETS, WHALE_ADDRESSES
from errors import StorageError
from models import LeaderboardEntry, WalletVerification, WhaleRecord, normalize_address

logger = logging.getLogger(__name__)

ADDRESS_BATCH_SIZE = 100

# Most recently verified first; documents without verifiedAt fall back to insertion order
NEWEST_FIRST = [("verifiedAt", -1), ("_id", -1)]


@contextmanager
def storage_errors(action: str):
    try:
        yield
    except PyMongoError as e:
        raise StorageError(f"Failed to {action}: {e}") from e


def parse_documents(model: type[BaseModel], docs: list[dict], source: str) -> list:
    """Validate documents one by one, skipping any the model rejects."""
    parsed = []
    for doc in docs:
        try:
            parsed.append(model(**doc))
        except ValidationError as e:
            logger.warning(f"Skipping invalid {source} document {doc.get('_id')}: {e}")
    return parsed


def _user_id_query(user_id: str) -> dict:
    # The verification flow may have stored snowflakes as strings or numbers
    candidates = [str(user_id)]
    if str(user_id).isdigit():
        candidates.append(int(user_id))
    return {"userId": {"$in": candidates}}


class WalletRepository:
    """Read-only view of verified_wallets."""

    def __init__(self, db: AsyncIOMotorDatabase, batch_size: int = ADDRESS_BATCH_SIZE):
        self.collection = db[VERIFIED_WALLETS]
        self.batch_size = batch_size

    async def find_by_address(self, address: str) -> Optional[WalletVerification]:
        """Case-insensitive exact match on walletAddress."""
        with storage_errors(f"look up wallet {address}"):
            docs = await (
                self.collection.find({"walletAddress": normalize_address(address)})
                .collation(CASE_INSENSITIVE)
                .sort(NEWEST_FIRST)
                .to_list(length=None)
            )
        valid = parse_documents(WalletVerification, docs, VERIFIED_WALLETS)
        return valid[0] if valid else None

    async def find_by_user_id(self, user_id: str) -> Optional[WalletVerification]:
        with storage_errors(f"look up wallet for user {user_id}"):
            docs = await (
                self.collection.find(_user_id_query(user_id))
                .sort(NEWEST_FIRST)
                .to_list(length=None)
            )
        valid = parse_documents(WalletVerification, docs, VERIFIED_WALLETS)
        return valid[0] if valid else None

    async def find_by_addresses(self, addresses: Iterable[str]) -> dict[str, WalletVerification]:
        """
        Build a lowercased address -> verification index.

        Queries run in batches so a long address list never becomes one huge
        $in. When several users verified the same wallet, the newest wins.
        """
        unique = list(dict.fromkeys(normalize_address(a) for a in addresses))
        index: dict[str, WalletVerification] = {}

        for start in range(0, len(unique), self.batch_size):
            batch = unique[start:start + self.batch_size]
            with storage_errors("match verified wallets"):
                docs = await (
                    self.collection.find({"walletAddress": {"$in": batch}})
                    .collation(CASE_INSENSITIVE)
                    .sort(NEWEST_FIRST)
                    .to_list(length=None)
                )
            for verification in parse_documents(WalletVerification, docs, VERIFIED_WALLETS):
                index.setdefault(verification.normalized_address, verification)

        return index


class LeaderboardRepository:
    """The latest leaderboard snapshot. Replaced wholesale, never merged."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[LEADERBOARD]

    async def all(self) -> list[LeaderboardEntry]:
        with storage_errors("read leaderboard snapshot"):
            docs = await self.collection.find({}).to_list(length=None)
        return parse_documents(LeaderboardEntry, docs, LEADERBOARD)

    async def find_by_address(self, address: str) -> Optional[LeaderboardEntry]:
        with storage_errors(f"look up leaderboard entry {address}"):
            doc = await self.collection.find_one({"address": normalize_address(address)})
        valid = parse_documents(LeaderboardEntry, [doc] if doc else [], LEADERBOARD)
        return valid[0] if valid else None

    async def replace(self, entries: list[LeaderboardEntry]) -> int:
        """Drop every prior entry and insert the new snapshot."""
        docs = [entry.model_dump(by_alias=True) for entry in entries]
        with storage_errors("replace leaderboard snapshot"):
            deleted = await self.collection.delete_many({})
            logger.info(f"Cleared {deleted.deleted_count} old leaderboard entries")
            if docs:
                await self.collection.insert_many(docs)
        return len(docs)


class WhaleRecordRepository:
    """whale_addresses: one row per user currently holding the whale role."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[WHALE_ADDRESSES]

    async def upsert(self, record: WhaleRecord) -> None:
        now = datetime.now(timezone.utc)
        fields = record.model_dump(by_alias=True, exclude={"created_at", "updated_at"})
        fields["updatedAt"] = now

        with storage_errors(f"upsert whale record for {record.user_id}"):
            await self.collection.update_one(
                {"userId": record.user_id},
                {"$set": fields, "$setOnInsert": {"createdAt": now}},
                upsert=True,
            )

    async def delete(self, user_id: str) -> bool:
        with storage_errors(f"delete whale record for {user_id}"):
            result = await self.collection.delete_one({"userId": str(user_id)})
        return result.deleted_count > 0

    async def all(self) -> list[WhaleRecord]:
        with storage_errors("list whale records"):
            docs = await self.collection.find({}).sort("point", -1).to_list(length=None)
        return parse_documents(WhaleRecord, docs, WHALE_ADDRESSES)


class CommunityAddressRepository:
    """A static list of addresses belonging to one community."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str):
        self.name = collection_name
        self.collection = db[collection_name]

    async def addresses(self) -> list[str]:
        with storage_errors(f"read {self.name} addresses"):
            docs = await self.collection.find({}, {"address": 1}).to_list(length=None)
        return [
            normalize_address(doc["address"]) for doc in docs
            if isinstance(doc.get("address"), str) and doc["address"].strip()
        ]
