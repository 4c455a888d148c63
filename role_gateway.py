"""
discord.py implementation of RoleGateway.
Members are resolved from the gateway cache first, then fetched over HTTP.
"""

import logging

import discord

from errors import GuildUnavailableError, MemberNotFoundError, RoleGatewayError

logger = logging.getLogger(__name__)


class DiscordRoleGateway:
    def __init__(self, client: discord.Client, guild_id: int, role_id: int):
        self.client = client
        self.guild_id = guild_id
        self.role_id = role_id

    # ─── Helpers ───────────────────────────────────────────

    def get_guild(self) -> discord.Guild:
        guild = self.client.get_guild(self.guild_id)
        if not guild:
            raise GuildUnavailableError(self.guild_id)
        return guild

    def ensure_available(self) -> None:
        self.get_guild()

    async def get_member(self, user_id: str) -> discord.Member:
        guild = self.get_guild()
        try:
            member_id = int(user_id)
        except (TypeError, ValueError) as e:
            raise MemberNotFoundError(user_id) from e

        member = guild.get_member(member_id)
        if member:
            return member

        try:
            return await guild.fetch_member(member_id)
        except discord.NotFound as e:
            raise MemberNotFoundError(member_id) from e
        except discord.HTTPException as e:
            raise RoleGatewayError(f"Discord API error fetching {user_id}: {e}") from e

    def _holds(self, member: discord.Member) -> bool:
        return any(role.id == self.role_id for role in member.roles)

    # ─── RoleGateway ───────────────────────────────────────

    async def has_role(self, user_id: str) -> bool:
        member = await self.get_member(user_id)
        return self._holds(member)

    async def grant(self, user_id: str, reason: str = "") -> bool:
        member = await self.get_member(user_id)
        if self._holds(member):
            return False

        try:
            await member.add_roles(discord.Object(id=self.role_id), reason=reason or None)
        except discord.HTTPException as e:
            raise RoleGatewayError(f"Could not add role {self.role_id} to {member}: {e}") from e
        logger.info(f"Added role {self.role_id} to {member}")
        return True

    async def revoke(self, user_id: str, reason: str = "") -> bool:
        member = await self.get_member(user_id)
        if not self._holds(member):
            return False

        try:
            await member.remove_roles(discord.Object(id=self.role_id), reason=reason or None)
        except discord.HTTPException as e:
            raise RoleGatewayError(f"Could not remove role {self.role_id} from {member}: {e}") from e
        logger.info(f"Removed role {self.role_id} from {member}")
        return True

    async def list_holders(self) -> list[str]:
        guild = self.get_guild()
        role = guild.get_role(self.role_id)
        if not role:
            raise RoleGatewayError(f"Role {self.role_id} not found in {guild.name}")
        return [str(member.id) for member in role.members]
