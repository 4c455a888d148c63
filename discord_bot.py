"""
Whale Role Bot.
Wires the reconcilers to Discord:
- scheduled loops for the whale grant pass, whale record sync and community roles
- chat commands for manual refreshes and the admin whale list
- role change events that keep whale_addresses current between cycles
"""

import logging

import discord
from discord.ext import commands, tasks

import config
from context import BotContext, build_context
from cooldowns import cooldown_message
from database import Database, create_indexes
from errors import StorageError
from models import WhaleRecord

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 2000

intents = discord.Intents.default()
intents.members = True
intents.message_content = True


class WhaleBot(commands.Bot):
    context: BotContext | None = None


bot = WhaleBot(command_prefix="!", intents=intents, help_command=None)


# ─── Helpers ───────────────────────────────────────────────

def format_whale_records(records: list[WhaleRecord]) -> list[str]:
    """Render whale records as messages that each fit Discord's length limit."""
    if not records:
        return ["No whale addresses recorded."]

    lines = [f"🐋 **Whale Addresses ({len(records)}):**"]
    for record in records:
        label = record.username or record.user_id
        nickname = f" ({record.nickname})" if record.nickname else ""
        lines.append(f"• `{record.wallet_address}` — {label}{nickname}: {record.point:g} points")

    messages, current = [], ""
    for line in lines:
        if current and len(current) + len(line) + 1 > MESSAGE_LIMIT:
            messages.append(current)
            current = ""
        current = f"{current}\n{line}" if current else line
    messages.append(current)
    return messages


async def check_cooldown(ctx: commands.Context, gate, command_type: str) -> bool:
    """Reply and return True when the author is still cooling down."""
    if gate.is_on_cooldown(ctx.author.id, command_type):
        remaining = gate.remaining(ctx.author.id, command_type)
        if remaining:
            await ctx.reply(cooldown_message(*remaining))
            return True
    return False


# ─── Scheduled Tasks ──────────────────────────────────────

@tasks.loop(minutes=config.WHALE_ROLE_INTERVAL_MINUTES)
async def whale_role_check():
    logger.info("Running scheduled role check...")
    try:
        await bot.context.whales.assign_eligible_roles()
    except Exception:
        logger.exception("Scheduled role check failed")


@tasks.loop(minutes=config.WHALE_SYNC_INTERVAL_MINUTES)
async def whale_record_sync():
    logger.info("Running scheduled whale record sync...")
    try:
        await bot.context.whales.sync_all_whale_roles()
    except Exception:
        logger.exception("Scheduled whale record sync failed")


@tasks.loop(minutes=config.COMMUNITY_ROLE_INTERVAL_MINUTES)
async def community_role_check():
    logger.info("Running scheduled community role check...")
    try:
        await bot.context.communities.assign_community_roles()
    except Exception:
        logger.exception("Scheduled community role check failed")


def start_loops():
    schedules = [
        (whale_role_check, config.WHALE_ROLE_INTERVAL_MINUTES),
        (whale_record_sync, config.WHALE_SYNC_INTERVAL_MINUTES),
    ]
    if config.COMMUNITY_ROLE_MAP:
        schedules.append((community_role_check, config.COMMUNITY_ROLE_INTERVAL_MINUTES))

    for loop, minutes in schedules:
        if not loop.is_running():
            loop.start()
            logger.info(f"Scheduled {loop.coro.__name__} every {minutes} minutes")


# ─── Bot Ready ────────────────────────────────────────────

@bot.event
async def on_ready():
    logger.info(f"Logged in as {bot.user} (ID: {bot.user.id})")

    if bot.context is None:
        try:
            db = await Database.connect(config.MONGODB_URI, config.MONGODB_DB_NAME)
        except (StorageError, ValueError) as e:
            logger.error(f"Error connecting to MongoDB: {e}")
            return

        await create_indexes(db, (name for name, _ in config.COMMUNITY_ROLE_MAP))
        bot.context = build_context(bot, db)

    start_loops()
    logger.info("Bot is ready! Anyone can use !updateleaderboard to update the leaderboard")


# ─── Event: Role Changes ──────────────────────────────────

@bot.event
async def on_member_update(before: discord.Member, after: discord.Member):
    if bot.context is None or before.roles == after.roles:
        return
    await bot.context.whales.handle_role_change(
        str(after.id),
        [role.id for role in before.roles],
        [role.id for role in after.roles],
    )


# ─── Commands ─────────────────────────────────────────────

@bot.command(name="updateleaderboard", ignore_extra=False)
async def cmd_update_leaderboard(ctx: commands.Context):
    if bot.context is None:
        await ctx.reply("The bot is still starting up. Please try again shortly.")
        return

    gate = bot.context.whale_cooldowns
    if await check_cooldown(ctx, gate, "leaderboard"):
        return

    await ctx.reply("Starting leaderboard update. This may take a moment...")
    gate.set_cooldown(ctx.author.id, "leaderboard")

    if await bot.context.whales.refresh_leaderboard():
        await ctx.reply("Leaderboard update completed successfully! Whale roles have been reassigned.")
    else:
        await ctx.reply(
            "There was an issue updating the leaderboard. "
            "Please try again later or contact an administrator."
        )


@bot.command(name="whaleaddresses", ignore_extra=False)
@commands.has_permissions(administrator=True)
async def cmd_whale_addresses(ctx: commands.Context):
    if bot.context is None:
        await ctx.reply("The bot is still starting up. Please try again shortly.")
        return

    try:
        records = await bot.context.whales.list_whale_records()
    except StorageError as e:
        logger.error(f"Error listing whale addresses: {e}")
        await ctx.reply("Could not load whale addresses. Please try again later.")
        return

    for message in format_whale_records(records):
        await ctx.send(message)


@bot.command(name="updatecommunityroles", ignore_extra=False)
async def cmd_update_community_roles(ctx: commands.Context):
    if bot.context is None:
        await ctx.reply("The bot is still starting up. Please try again shortly.")
        return

    gate = bot.context.community_cooldowns
    if await check_cooldown(ctx, gate, "communityroles"):
        return

    await ctx.reply("Starting community role updates. This may take a moment...")
    gate.set_cooldown(ctx.author.id, "communityroles")

    assigned = await bot.context.communities.assign_community_roles()
    await ctx.reply(f"Community role update completed! Assigned {assigned} roles.")


@bot.event
async def on_command_error(ctx: commands.Context, error: commands.CommandError):
    if isinstance(error, (commands.CommandNotFound, commands.TooManyArguments)):
        return
    if isinstance(error, commands.MissingPermissions):
        logger.info(f"{ctx.author} tried !{ctx.invoked_with} without permission")
        return
    logger.error(f"Command !{ctx.invoked_with} failed: {error}", exc_info=error)


@bot.event
async def on_error(event: str, *args, **kwargs):
    logger.exception(f"Discord client error in {event}")
