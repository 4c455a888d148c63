"""
Whale role reconciliation.

Keeps one Discord role in line with "verified wallet is on the leaderboard"
and keeps whale_addresses mirroring who holds the role and why.

A refresh is a full clear-then-recompute: holders matched against the
outgoing snapshot lose the role first, the snapshot is replaced, then
everyone matched against the new snapshot gets it back.
"""

import asyncio
import logging
from typing import Iterable

from errors import (
    GuildUnavailableError, LeaderboardFetchError, MemberNotFoundError,
    RoleGatewayError, StorageError,
)
from interfaces import (
    LeaderboardSource, RoleGateway, SnapshotStore, WalletDirectory, WhaleRecordStore,
)
from models import WhaleRecord

logger = logging.getLogger(__name__)


class WhaleRoleReconciler:
    def __init__(
        self,
        wallets: WalletDirectory,
        snapshot: SnapshotStore,
        whale_records: WhaleRecordStore,
        roles: RoleGateway,
        source: LeaderboardSource,
        leaderboard_limit: int = 30,
    ):
        self.wallets = wallets
        self.snapshot = snapshot
        self.whale_records = whale_records
        self.roles = roles
        self.source = source
        self.leaderboard_limit = leaderboard_limit
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    # ─── Full Refresh ──────────────────────────────────────

    async def refresh_leaderboard(self) -> bool:
        """
        Revoke roles earned under the outgoing snapshot, replace the snapshot
        with a fresh fetch, then grant roles for the new one.

        Returns True only when the fetch produced entries and they were stored.
        Revocations are not rolled back if a later step fails.
        """
        async with self._lock:
            try:
                return await self._refresh_leaderboard()
            except Exception:
                logger.exception("Error during leaderboard update")
                return False

    async def _refresh_leaderboard(self) -> bool:
        logger.info("Starting leaderboard update...")
        try:
            self.roles.ensure_available()
        except GuildUnavailableError as e:
            logger.error(str(e))
            return False

        removed = await self._revoke_leaderboard_roles()
        logger.info(f"Removed whale role from {removed} leaderboard users")

        try:
            entries = await self.source.fetch_top(self.leaderboard_limit)
        except LeaderboardFetchError as e:
            logger.error(f"Error fetching top wallets: {e}")
            entries = []

        if not entries:
            logger.warning("No wallets fetched from API, keeping the previous snapshot")
            return False

        try:
            stored = await self.snapshot.replace(entries)
        except StorageError as e:
            logger.error(f"Error storing leaderboard snapshot: {e}")
            return False
        logger.info(f"Updated leaderboard with {stored} wallets")

        await self._assign_eligible_roles()
        logger.info("Leaderboard update completed successfully")
        return True

    async def _revoke_leaderboard_roles(self) -> int:
        try:
            entries = await self.snapshot.all()
            matches = await self.wallets.find_by_addresses(e.address for e in entries)
        except StorageError as e:
            logger.error(f"Error getting verified leaderboard wallets: {e}")
            return 0

        if not matches:
            logger.info("No verified wallets found in the leaderboard")
            return 0
        logger.info(f"Found {len(matches)} verified wallets in the leaderboard")

        removed = 0
        for user_id in _unique_user_ids(v.user_id for v in matches.values()):
            try:
                if await self.roles.revoke(user_id, reason="Leaderboard refresh"):
                    removed += 1
                    await self.whale_records.delete(user_id)
                    logger.info(f"Removed whale role from {user_id}")
            except GuildUnavailableError as e:
                logger.error(f"Stopping role removal: {e}")
                break
            except (MemberNotFoundError, RoleGatewayError, StorageError) as e:
                logger.error(f"Failed to remove role from user {user_id}: {e}")

        return removed

    # ─── Grant Pass ────────────────────────────────────────

    async def assign_eligible_roles(self) -> int:
        """Grant the role to every verified leaderboard wallet. Returns new grants."""
        async with self._lock:
            return await self._assign_eligible_roles()

    async def _assign_eligible_roles(self) -> int:
        try:
            self.roles.ensure_available()
        except GuildUnavailableError as e:
            logger.error(str(e))
            return 0

        try:
            entries = await self.snapshot.all()
            matches = await self.wallets.find_by_addresses(e.address for e in entries)
        except StorageError as e:
            logger.error(f"Error assigning whale roles: {e}")
            return 0
        logger.info(f"Processing {len(entries)} wallets from leaderboard")

        assigned = 0
        for entry in entries:
            verification = matches.get(entry.address)
            if not verification:
                continue

            name = verification.display_name
            try:
                if await self.roles.grant(verification.user_id, reason="Whale leaderboard"):
                    assigned += 1
                    logger.info(f"Assigned whale role to {name}")
                else:
                    logger.debug(f"{name} already has whale role, refreshing record")
                await self.whale_records.upsert(WhaleRecord.from_match(verification, entry))
            except GuildUnavailableError as e:
                logger.error(f"Stopping whale role assignment: {e}")
                break
            except (MemberNotFoundError, RoleGatewayError) as e:
                logger.error(f"Error fetching member {name}: {e}")
            except StorageError as e:
                logger.error(f"Error saving whale record for {name}: {e}")

        logger.info(f"Finished assigning whale roles. New roles assigned: {assigned}")
        return assigned

    # ─── Periodic Repair ───────────────────────────────────

    async def sync_all_whale_roles(self) -> int:
        """
        Repair whale_addresses from the current role holders.

        Holders without a verified wallet are only logged; the role stays.
        Records for users who no longer hold the role are pruned.
        Returns the number of records written.
        """
        async with self._lock:
            try:
                holders = await self.roles.list_holders()
                entries = {e.address: e for e in await self.snapshot.all()}
            except (GuildUnavailableError, RoleGatewayError, StorageError) as e:
                logger.error(f"Error syncing whale roles: {e}")
                return 0

            logger.info(f"Syncing whale records for {len(holders)} role holders")
            synced = 0
            for user_id in holders:
                try:
                    verification = await self.wallets.find_by_user_id(user_id)
                    if not verification:
                        logger.warning(f"User {user_id} has the whale role but no verified wallet")
                        continue
                    entry = entries.get(verification.normalized_address)
                    await self.whale_records.upsert(WhaleRecord.from_match(verification, entry))
                    synced += 1
                except StorageError as e:
                    logger.error(f"Error syncing whale record for {user_id}: {e}")

            await self._prune_records(set(holders))
            logger.info(f"Whale sync complete. Records updated: {synced}")
            return synced

    async def _prune_records(self, holders: set[str]) -> None:
        try:
            records = await self.whale_records.all()
            for record in records:
                if record.user_id not in holders:
                    await self.whale_records.delete(record.user_id)
                    logger.info(f"Deleted stale whale record for {record.user_id}")
        except StorageError as e:
            logger.error(f"Error pruning whale records: {e}")

    # ─── Role Change Events ────────────────────────────────

    async def handle_role_change(
        self, user_id: str, old_role_ids: Iterable[int], new_role_ids: Iterable[int],
    ) -> None:
        """Keep whale_addresses in step with manual or external role edits."""
        had_role = self.roles.role_id in set(old_role_ids)
        has_role = self.roles.role_id in set(new_role_ids)
        if had_role == has_role:
            return

        user_id = str(user_id)
        try:
            if not has_role:
                await self.whale_records.delete(user_id)
                logger.info(f"Whale role removed from {user_id}, record deleted")
                return

            verification = await self.wallets.find_by_user_id(user_id)
            if not verification:
                logger.info(f"Whale role added to {user_id} but no verified wallet found")
                return

            entry = await self.snapshot.find_by_address(verification.normalized_address)
            await self.whale_records.upsert(WhaleRecord.from_match(verification, entry))
            logger.info(f"Whale role added to {verification.display_name}, record created")
        except StorageError as e:
            logger.error(f"Error handling whale role change for {user_id}: {e}")

    async def list_whale_records(self) -> list[WhaleRecord]:
        return await self.whale_records.all()


def _unique_user_ids(user_ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(user_ids))
