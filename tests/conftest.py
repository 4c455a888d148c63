"""
Pytest fixtures and in-memory stand-ins for the bot's collaborators.
"""

from types import SimpleNamespace
from typing import Iterable, Optional

import pytest

from errors import GuildUnavailableError, MemberNotFoundError, RoleGatewayError, StorageError
from models import LeaderboardEntry, WalletVerification, WhaleRecord, normalize_address

WHALE_ROLE_ID = 1111


class FakeWalletDirectory:
    """Later verifications count as more recent."""

    def __init__(self, verifications: Iterable[WalletVerification] = ()):
        self.verifications = list(verifications)
        self.batch_calls = 0

    def add(self, user_id: str, address: str, username: Optional[str] = None):
        self.verifications.append(
            WalletVerification(user_id=user_id, wallet_address=address, username=username)
        )

    async def find_by_address(self, address):
        for v in reversed(self.verifications):
            if v.normalized_address == normalize_address(address):
                return v
        return None

    async def find_by_user_id(self, user_id):
        for v in reversed(self.verifications):
            if v.user_id == str(user_id):
                return v
        return None

    async def find_by_addresses(self, addresses):
        self.batch_calls += 1
        wanted = {normalize_address(a) for a in addresses}
        index = {}
        for v in reversed(self.verifications):
            if v.normalized_address in wanted:
                index.setdefault(v.normalized_address, v)
        return index


class FakeRoleGateway:
    def __init__(self, role_id: int = WHALE_ROLE_ID, members: Iterable[str] = ()):
        self.role_id = role_id
        self.members = set(members)
        self.holders: set[str] = set()
        self.available = True
        self.broken: set[str] = set()
        self.grants: list[str] = []
        self.revokes: list[str] = []

    def ensure_available(self):
        if not self.available:
            raise GuildUnavailableError(42)

    def _check(self, user_id):
        self.ensure_available()
        if user_id in self.broken:
            raise RoleGatewayError(f"boom for {user_id}")
        if user_id not in self.members:
            raise MemberNotFoundError(user_id)

    async def has_role(self, user_id):
        self._check(user_id)
        return user_id in self.holders

    async def grant(self, user_id, reason=""):
        self._check(user_id)
        if user_id in self.holders:
            return False
        self.holders.add(user_id)
        self.grants.append(user_id)
        return True

    async def revoke(self, user_id, reason=""):
        self._check(user_id)
        if user_id not in self.holders:
            return False
        self.holders.discard(user_id)
        self.revokes.append(user_id)
        return True

    async def list_holders(self):
        self.ensure_available()
        return sorted(self.holders)


class FakeLeaderboardSource:
    def __init__(self, entries: Iterable[LeaderboardEntry] = (), error: Optional[Exception] = None):
        self.entries = list(entries)
        self.error = error
        self.calls = 0

    async def fetch_top(self, limit=30):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.entries[:limit])


class FakeSnapshotStore:
    def __init__(self, entries: Iterable[LeaderboardEntry] = ()):
        self.entries = list(entries)
        self.fail_replace = False

    async def all(self):
        return list(self.entries)

    async def find_by_address(self, address):
        for entry in self.entries:
            if entry.address == normalize_address(address):
                return entry
        return None

    async def replace(self, entries):
        if self.fail_replace:
            raise StorageError("replace failed")
        self.entries = list(entries)
        return len(self.entries)


class FakeWhaleRecordStore:
    def __init__(self):
        self.records: dict[str, WhaleRecord] = {}
        self.writes = 0

    async def upsert(self, record):
        self.writes += 1
        self.records[record.user_id] = record

    async def delete(self, user_id):
        return self.records.pop(str(user_id), None) is not None

    async def all(self):
        return list(self.records.values())


class FakeAddressList:
    def __init__(self, name: str, addresses: Iterable[str] = ()):
        self.name = name
        self.items = list(addresses)

    async def addresses(self):
        return [normalize_address(a) for a in self.items]


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs
        self.collation_used = None
        self.sort_used = None

    def collation(self, collation):
        self.collation_used = collation
        return self

    def sort(self, key_or_list, direction=None):
        self.sort_used = key_or_list if direction is None else [(key_or_list, direction)]
        return self

    async def to_list(self, length=None):
        return self.docs if length is None else self.docs[:length]


class FakeCollection:
    """Answers find() through `responder(query)` and records every call."""

    def __init__(self, responder=lambda query: [], error=None):
        self.responder = responder
        self.error = error
        self.calls = []
        self.cursors = []

    def _record(self, name, *args, **kwargs):
        if self.error:
            raise self.error
        self.calls.append((name, args, kwargs))

    def find(self, query, projection=None):
        self._record("find", query)
        cursor = FakeCursor(self.responder(query))
        self.cursors.append(cursor)
        return cursor

    async def find_one(self, query):
        self._record("find_one", query)
        docs = self.responder(query)
        return docs[0] if docs else None

    async def delete_many(self, query):
        self._record("delete_many", query)
        return SimpleNamespace(deleted_count=2)

    async def insert_many(self, docs):
        self._record("insert_many", docs)

    async def update_one(self, query, update, upsert=False):
        self._record("update_one", query, update, upsert=upsert)

    async def delete_one(self, query):
        self._record("delete_one", query)
        return SimpleNamespace(deleted_count=1)

    async def create_index(self, keys, **kwargs):
        self._record("create_index", keys, **kwargs)


class FakeDatabase(dict):
    def __missing__(self, name):
        self[name] = FakeCollection()
        return self[name]


def entry(address: str, nickname: str = "", point: float = 0) -> LeaderboardEntry:
    return LeaderboardEntry(address=address, nickname=nickname, point=point)


@pytest.fixture
def wallets():
    return FakeWalletDirectory()


@pytest.fixture
def roles():
    return FakeRoleGateway()


@pytest.fixture
def snapshot():
    return FakeSnapshotStore()


@pytest.fixture
def whale_records():
    return FakeWhaleRecordStore()


@pytest.fixture
def source():
    return FakeLeaderboardSource()


@pytest.fixture
def sample_leaderboard_payload():
    """Sample response body from the ranking API."""
    return {
        "points": [
            {"account_info": {"account_id": "0xAbC0000000000000000000000000000000000001", "nickname": "alpha"}, "point": 1500},
            {"account_info": {"account_id": "0xdef0000000000000000000000000000000000002", "nickname": "beta"}, "point": 900.5},
            {"account_info": {"account_id": "0x9990000000000000000000000000000000000003", "nickname": None}, "point": 10},
        ]
    }
