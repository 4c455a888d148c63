"""
Configuration for the Whale Role Bot.
Leaderboard whales get the whale role, community holders get community roles.
The wallet verification flow lives elsewhere and only writes verified_wallets.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ─── Discord ───────────────────────────────────────────────
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")
DISCORD_GUILD_ID = int(os.getenv("DISCORD_GUILD_ID", "0"))
WHALE_ROLE_ID = int(os.getenv("WHALE_ROLE_ID", "0"))

# ─── MongoDB ───────────────────────────────────────────────
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "wallet_verification")

# ─── Leaderboard API ──────────────────────────────────────
LEADERBOARD_API_ENDPOINT = os.getenv(
    "LEADERBOARD_API_ENDPOINT", "https://testnet-api-server.nad.fun/reward/top",
)
LEADERBOARD_LIMIT = int(os.getenv("LEADERBOARD_LIMIT", "30"))
LEADERBOARD_TIMEOUT_SECONDS = float(os.getenv("LEADERBOARD_TIMEOUT_SECONDS", "30"))

# ─── Schedules & Cooldowns ────────────────────────────────
WHALE_ROLE_INTERVAL_MINUTES = int(os.getenv("WHALE_ROLE_INTERVAL_MINUTES", "5"))
WHALE_SYNC_INTERVAL_MINUTES = int(os.getenv("WHALE_SYNC_INTERVAL_MINUTES", "10"))
COMMUNITY_ROLE_INTERVAL_MINUTES = int(os.getenv("COMMUNITY_ROLE_INTERVAL_MINUTES", "5"))
COOLDOWN_SECONDS = int(os.getenv("COOLDOWN_SECONDS", str(5 * 60)))

# ─── Health Server ────────────────────────────────────────
HEALTH_HOST = os.getenv("HEALTH_HOST", "0.0.0.0")
HEALTH_PORT = int(os.getenv("HEALTH_PORT", "4000"))


# ─── Community Collection → Role Mapping ──────────────────

def parse_community_role_map(raw: str) -> list[tuple[str, int]]:
    """
    Parse "collection:role_id,collection:role_id" into ordered pairs.
    Blank entries are ignored; malformed ones raise ValueError.
    """
    mappings = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        collection, sep, role_id = chunk.partition(":")
        if not sep or not collection.strip() or not role_id.strip():
            raise ValueError(f"Invalid community mapping: {chunk!r}")
        mappings.append((collection.strip(), int(role_id.strip())))
    return mappings


COMMUNITY_ROLE_MAP = parse_community_role_map(os.getenv("COMMUNITY_ROLE_MAP", ""))
