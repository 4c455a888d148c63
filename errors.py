"""Exceptions raised at the seams between the reconcilers and their collaborators."""


class WhaleBotError(Exception):
    """Base class for all bot errors."""


class LeaderboardFetchError(WhaleBotError):
    """The ranking API could not be reached or answered badly."""


class StorageError(WhaleBotError):
    """A MongoDB operation failed."""


class GuildUnavailableError(WhaleBotError):
    """The configured guild is not visible to the bot."""

    def __init__(self, guild_id: int):
        super().__init__(f"Guild {guild_id} not found, check DISCORD_GUILD_ID")
        self.guild_id = guild_id


class MemberNotFoundError(WhaleBotError):
    """The user is no longer a member of the guild."""

    def __init__(self, user_id):
        super().__init__(f"User {user_id} is no longer in the server")
        self.user_id = user_id


class RoleGatewayError(WhaleBotError):
    """Any other Discord API failure while reading or changing roles."""
