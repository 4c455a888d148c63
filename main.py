"""
Whale Role Bot: Main Entry Point.
Runs the Discord bot + health server together.
"""

import asyncio
import logging
import threading
import uvicorn

from config import DISCORD_BOT_TOKEN, HEALTH_HOST, HEALTH_PORT
from database import Database
import discord_bot
from health_server import app, set_discord_bot

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def run_health_server():
    uvicorn.run(app, host=HEALTH_HOST, port=HEALTH_PORT, log_level="info")


async def main():
    if not DISCORD_BOT_TOKEN:
        raise SystemExit("DISCORD_BOT_TOKEN is not set")

    set_discord_bot(discord_bot.bot)

    health_thread = threading.Thread(target=run_health_server, daemon=True)
    health_thread.start()
    logger.info(f"Health server on {HEALTH_HOST}:{HEALTH_PORT}")

    logger.info("Starting Whale Role bot...")
    try:
        async with discord_bot.bot:
            await discord_bot.bot.start(DISCORD_BOT_TOKEN)
    finally:
        await Database.disconnect()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
