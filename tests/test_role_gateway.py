"""
Tests for DiscordRoleGateway against mocked discord.py objects
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from errors import GuildUnavailableError, MemberNotFoundError, RoleGatewayError
from role_gateway import DiscordRoleGateway

GUILD_ID, ROLE_ID = 10, 20


def make_member(user_id, role_ids=()):
    member = MagicMock()
    member.id = user_id
    member.roles = [SimpleNamespace(id=r) for r in role_ids]
    member.add_roles = AsyncMock()
    member.remove_roles = AsyncMock()
    return member


def make_gateway(guild):
    client = MagicMock()
    client.get_guild.return_value = guild
    return DiscordRoleGateway(client, GUILD_ID, ROLE_ID)


def http_error(cls, status):
    return cls(MagicMock(status=status, reason="error"), "error")


@pytest.fixture
def guild():
    guild = MagicMock()
    guild.name = "Test Guild"
    guild.get_member.return_value = None
    guild.fetch_member = AsyncMock()
    return guild


class TestDiscordRoleGateway:

    def test_missing_guild(self):
        gateway = make_gateway(None)

        with pytest.raises(GuildUnavailableError):
            gateway.ensure_available()

    @pytest.mark.asyncio
    async def test_cached_member_skips_fetch(self, guild):
        guild.get_member.return_value = make_member(1, [ROLE_ID])

        assert await make_gateway(guild).has_role("1") is True
        guild.fetch_member.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_grant_adds_role_once(self, guild):
        member = make_member(1)
        guild.fetch_member.return_value = member
        gateway = make_gateway(guild)

        assert await gateway.grant("1") is True
        member.add_roles.assert_awaited_once()
        assert member.add_roles.await_args.args[0].id == ROLE_ID

        member.roles = [SimpleNamespace(id=ROLE_ID)]
        assert await gateway.grant("1") is False
        assert member.add_roles.await_count == 1

    @pytest.mark.asyncio
    async def test_revoke_only_when_held(self, guild):
        member = make_member(1)
        guild.fetch_member.return_value = member
        gateway = make_gateway(guild)

        assert await gateway.revoke("1") is False

        member.roles = [SimpleNamespace(id=ROLE_ID)]
        assert await gateway.revoke("1") is True
        member.remove_roles.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_departed_member(self, guild):
        guild.fetch_member.side_effect = http_error(discord.NotFound, 404)

        with pytest.raises(MemberNotFoundError):
            await make_gateway(guild).grant("1")

    @pytest.mark.asyncio
    async def test_non_numeric_user_id_is_treated_as_departed(self, guild):
        with pytest.raises(MemberNotFoundError) as excinfo:
            await make_gateway(guild).grant("not-a-snowflake")

        assert excinfo.value.user_id == "not-a-snowflake"
        guild.get_member.assert_not_called()
        guild.fetch_member.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_discord_errors_are_wrapped(self, guild):
        member = make_member(1)
        member.add_roles.side_effect = http_error(discord.Forbidden, 403)
        guild.fetch_member.return_value = member

        with pytest.raises(RoleGatewayError):
            await make_gateway(guild).grant("1")

    @pytest.mark.asyncio
    async def test_list_holders(self, guild):
        guild.get_role.return_value = SimpleNamespace(members=[make_member(1), make_member(2)])

        assert await make_gateway(guild).list_holders() == ["1", "2"]
        guild.get_role.assert_called_once_with(ROLE_ID)

    @pytest.mark.asyncio
    async def test_list_holders_unknown_role(self, guild):
        guild.get_role.return_value = None

        with pytest.raises(RoleGatewayError):
            await make_gateway(guild).list_holders()
