"""
Health Server.
Keeps hosting platforms happy with a plain liveness route.
"""

import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

app = FastAPI(title="Whale Role Bot")

# Discord bot reference, injected by main.py
discord_bot_ref = None


def set_discord_bot(bot):
    global discord_bot_ref
    discord_bot_ref = bot


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Discord Bot is running!"


@app.get("/health")
async def health():
    connected = discord_bot_ref is not None and discord_bot_ref.is_ready()
    return {
        "status": "ok",
        "bot_connected": connected,
    }
