"""discord.py implementation of the platform port."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

import discord

from ..core.errors import CannotSendDirectMessageError, OpeningDirectMessagesTooFastError
from ..core.payloads import Button, Embed, StoryMessage

# https://discord.com/developers/docs/topics/opcodes-and-status-codes#json
API_ERROR_CODE_OPENING_DMS_TOO_FAST = 40003
API_ERROR_CODE_CANNOT_SEND_DMS_TO_USER = 50007

logger = logging.getLogger(__name__)


@contextmanager
def _platform_errors() -> Iterator[None]:
    try:
        yield
    except discord.HTTPException as exc:
        if exc.code == API_ERROR_CODE_CANNOT_SEND_DMS_TO_USER:
            raise CannotSendDirectMessageError(str(exc)) from exc
        if exc.code == API_ERROR_CODE_OPENING_DMS_TOO_FAST:
            raise OpeningDirectMessagesTooFastError(str(exc)) from exc
        raise


def to_discord_embed(embed: Embed) -> discord.Embed:
    result = discord.Embed(description=embed.description, title=embed.title, colour=embed.colour)
    if embed.author_name:
        result.set_author(name=embed.author_name, icon_url=embed.author_icon_url)
    if embed.thumbnail_url:
        result.set_thumbnail(url=embed.thumbnail_url)
    if embed.image_url:
        result.set_image(url=embed.image_url)
    return result


def to_discord_view(rows: Sequence[Sequence[Button]]) -> Optional[discord.ui.View]:
    """Build a persistent view; button clicks are routed by custom id elsewhere."""
    if not rows:
        return None
    view = discord.ui.View(timeout=None)
    for row_index, row in enumerate(rows):
        for button in row:
            view.add_item(
                discord.ui.Button(
                    label=button.label,
                    custom_id=button.custom_id,
                    style=discord.ButtonStyle(int(button.style)),
                    row=row_index,
                )
            )
    return view


class DiscordDirectMessageChannel:
    def __init__(self, channel: discord.abc.Messageable):
        self._channel = channel

    async def send(self, message: StoryMessage) -> None:
        kwargs = {}
        if message.content:
            kwargs["content"] = message.content
        if message.embeds:
            kwargs["embeds"] = [to_discord_embed(embed) for embed in message.embeds]
        view = to_discord_view(message.components)
        if view is not None:
            kwargs["view"] = view
        with _platform_errors():
            await self._channel.send(allowed_mentions=discord.AllowedMentions.none(), **kwargs)

    async def trigger_typing(self) -> None:
        with _platform_errors():
            await self._channel.typing()


class DiscordMember:
    def __init__(self, member: discord.Member):
        self._member = member

    async def create_dm(self) -> DiscordDirectMessageChannel:
        with _platform_errors():
            channel = await self._member.create_dm()
        return DiscordDirectMessageChannel(channel)


class DiscordGuild:
    def __init__(self, guild: discord.Guild):
        self._guild = guild
        self.id = str(guild.id)
        self.name = guild.name
        self.preferred_locale = str(guild.preferred_locale) if guild.preferred_locale else None

    async def fetch_member(self, user_id: str) -> Optional[DiscordMember]:
        try:
            member = self._guild.get_member(int(user_id)) or await self._guild.fetch_member(int(user_id))
        except discord.NotFound:
            # The user left the guild.
            return None
        return DiscordMember(member)


class DiscordPlatform:
    def __init__(self, client: discord.Client):
        self._client = client

    async def fetch_guild(self, guild_id: str) -> Optional[DiscordGuild]:
        guild = self._client.get_guild(int(guild_id))
        if guild is None:
            try:
                guild = await self._client.fetch_guild(int(guild_id))
            except (discord.NotFound, discord.Forbidden):
                logger.info("Guild %s is not available to the bot anymore", guild_id)
                return None
        return DiscordGuild(guild)
