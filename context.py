"""
Everything the bot needs at runtime, built once after the database connects.
"""

from dataclasses import dataclass

import discord
from motor.motor_asyncio import AsyncIOMotorDatabase

import config
from community_roles import CommunityMapping, CommunityRoleReconciler
from cooldowns import CooldownGate
from leaderboard_client import LeaderboardClient
from repositories import (
    CommunityAddressRepository, LeaderboardRepository, WalletRepository, WhaleRecordRepository,
)
from role_gateway import DiscordRoleGateway
from whale_roles import WhaleRoleReconciler


@dataclass
class BotContext:
    whales: WhaleRoleReconciler
    communities: CommunityRoleReconciler
    whale_cooldowns: CooldownGate
    community_cooldowns: CooldownGate


def build_context(client: discord.Client, db: AsyncIOMotorDatabase) -> BotContext:
    wallets = WalletRepository(db)

    whales = WhaleRoleReconciler(
        wallets=wallets,
        snapshot=LeaderboardRepository(db),
        whale_records=WhaleRecordRepository(db),
        roles=DiscordRoleGateway(client, config.DISCORD_GUILD_ID, config.WHALE_ROLE_ID),
        source=LeaderboardClient(
            config.LEADERBOARD_API_ENDPOINT, timeout=config.LEADERBOARD_TIMEOUT_SECONDS,
        ),
        leaderboard_limit=config.LEADERBOARD_LIMIT,
    )

    mappings = [
        CommunityMapping(
            addresses=CommunityAddressRepository(db, collection),
            roles=DiscordRoleGateway(client, config.DISCORD_GUILD_ID, role_id),
        )
        for collection, role_id in config.COMMUNITY_ROLE_MAP
    ]

    return BotContext(
        whales=whales,
        communities=CommunityRoleReconciler(wallets, mappings),
        whale_cooldowns=CooldownGate(config.COOLDOWN_SECONDS),
        community_cooldowns=CooldownGate(config.COOLDOWN_SECONDS),
    )
