from .discord_platform import DiscordPlatform, to_discord_embed, to_discord_view

__all__ = ["DiscordPlatform", "to_discord_embed", "to_discord_view"]
