"""
Leaderboard API client.
Pulls the top wallets from the ranking API and maps them to LeaderboardEntry.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from errors import LeaderboardFetchError
from models import LeaderboardEntry

logger = logging.getLogger(__name__)


def parse_leaderboard(payload: dict) -> list[LeaderboardEntry]:
    """Map {points: [{account_info: {account_id, nickname}, point}]} to entries."""
    if not isinstance(payload, dict):
        return []

    entries = []
    for item in payload.get("points") or []:
        try:
            account = item["account_info"]
            entries.append(LeaderboardEntry(
                address=account["account_id"],
                nickname=account.get("nickname"),
                point=item.get("point", 0),
            ))
        except (KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Skipping malformed leaderboard item {item!r}: {e}")
    return entries


class LeaderboardClient:
    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport

    async def fetch_top(self, limit: int = 30) -> list[LeaderboardEntry]:
        """Fetch the first page of the leaderboard. Raises LeaderboardFetchError."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.endpoint, params={"page": 1, "limit": limit})
        except httpx.HTTPError as e:
            raise LeaderboardFetchError(f"Leaderboard request failed: {e}") from e

        if response.status_code != 200:
            raise LeaderboardFetchError(
                f"Leaderboard API error: {response.status_code} {response.text[:200]}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise LeaderboardFetchError("Leaderboard API returned invalid JSON") from e

        entries = parse_leaderboard(payload)
        logger.info(f"Fetched {len(entries)} wallets from leaderboard API")
        return entries
