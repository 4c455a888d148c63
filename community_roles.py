"""
Community role assignment.
Each community collection holds a static list of addresses mapped to one role.
Grant-only: nothing here ever removes a community role.
"""

import asyncio
import logging
from dataclasses import dataclass

from errors import GuildUnavailableError, MemberNotFoundError, RoleGatewayError, StorageError
from interfaces import AddressList, RoleGateway, WalletDirectory

logger = logging.getLogger(__name__)


@dataclass
class CommunityMapping:
    addresses: AddressList
    roles: RoleGateway

    @property
    def name(self) -> str:
        return self.addresses.name


class CommunityRoleReconciler:
    def __init__(self, wallets: WalletDirectory, mappings: list[CommunityMapping]):
        self.wallets = wallets
        self.mappings = mappings
        self._lock = asyncio.Lock()

        if not mappings:
            logger.warning("No community mappings defined. Community roles will not be assigned.")

    async def assign_community_roles(self) -> int:
        """Grant each mapped role to verified holders of its addresses. Returns new grants."""
        async with self._lock:
            try:
                return await self._assign_all()
            except Exception:
                logger.exception("Error during community role assignment")
                return 0

    async def _assign_all(self) -> int:
        if not self.mappings:
            return 0

        try:
            for mapping in self.mappings:
                mapping.roles.ensure_available()
        except GuildUnavailableError as e:
            logger.error(str(e))
            return 0

        total = 0
        for mapping in self.mappings:
            total += await self._assign_mapping(mapping)

        logger.info(f"Community role assignment completed. Total roles assigned: {total}")
        return total

    async def _assign_mapping(self, mapping: CommunityMapping) -> int:
        role_id = mapping.roles.role_id
        logger.info(f"Processing {mapping.name} collection with role ID {role_id}")

        try:
            addresses = await mapping.addresses.addresses()
            logger.info(f"Found {len(addresses)} addresses in {mapping.name}")
            if not addresses:
                return 0
            matches = await self.wallets.find_by_addresses(addresses)
        except StorageError as e:
            logger.error(f"Error reading {mapping.name}: {e}")
            return 0
        logger.info(f"Found {len(matches)} verified wallets for {mapping.name}")

        assigned = 0
        seen = set()
        for verification in matches.values():
            if verification.user_id in seen:
                continue
            seen.add(verification.user_id)

            try:
                if await mapping.roles.grant(verification.user_id, reason=f"{mapping.name} holder"):
                    assigned += 1
                    logger.info(f"Assigned {mapping.name} role to {verification.display_name}")
            except GuildUnavailableError as e:
                logger.error(f"Stopping {mapping.name} role assignment: {e}")
                break
            except MemberNotFoundError:
                logger.warning(f"User {verification.user_id} is no longer in the server")
            except RoleGatewayError as e:
                logger.error(f"Failed to assign role to user {verification.user_id}: {e}")

        logger.info(f"Assigned {assigned} {mapping.name} roles")
        return assigned
