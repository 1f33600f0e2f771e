from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Sequence

from .config import StoryEngineConfig
from .errors import CannotSendDirectMessageError, OpeningDirectMessagesTooFastError
from .limits import COLOUR_DISCORD_YELLOW, EMBED_DESCRIPTION_CHARACTER_LIMIT, MAX_CHOICES_PER_MESSAGE
from .payloads import Button, ButtonStyle, Embed, StoryMessage
from .ports import GuildPort, PlatformPort, TranslatePort
from .text import split_text_at_whitespace
from .types import OwnerReportType, ReportEvent, StoryLine

DEFAULT_LOCALE = "en"

StartButtonIdFactory = Callable[[str, str], str]


def quote(text: str) -> str:
    return "> " + text


def _guild_locale(guild: GuildPort) -> str:
    # Member locales are only known inside interactions, so reports use the guild's.
    return guild.preferred_locale or DEFAULT_LOCALE


class OwnerNotifier:
    """Sends one-time issue reports to story owners and tells players about stopped stories.

    Every report kind is claimed in storage before anything is sent, so a
    report that fails to deliver is not retried.
    """

    def __init__(
        self,
        uow_factory,
        platform: PlatformPort,
        translate: TranslatePort,
        config: StoryEngineConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self._uow_factory = uow_factory
        self._platform = platform
        self._translate = translate
        self._config = config or StoryEngineConfig()
        self._logger = logger or logging.getLogger(__name__)
        self._tasks: set[asyncio.Task] = set()

    def report(self, story: Any, event: ReportEvent) -> bool:
        """Claim the report flag for ``event`` and schedule delivery.

        Returns whether delivery was scheduled. Never raises.
        """
        if story.has_issue_been_reported(event.report_type):
            return False
        try:
            with self._uow_factory() as uow:
                claimed = uow.stories.mark_issue_as_reported(story.id, event.report_type)
                uow.commit()
        except Exception:
            self._logger.exception(
                "Could not mark %s as reported for story %s", event.report_type.value, story.id
            )
            return False
        if not claimed:
            return False

        task = asyncio.get_running_loop().create_task(self._deliver(story, event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _deliver(self, story: Any, event: ReportEvent) -> None:
        try:
            guild = await self._platform.fetch_guild(story.guild_id)
            if guild is None:
                return
            member = await guild.fetch_member(story.owner_id)
            if member is None:
                return
            text = self._build_report_text(story, guild, event)
            channel = await member.create_dm()
            # A quoted line can end up split across two embeds.
            for part in split_text_at_whitespace(text, EMBED_DESCRIPTION_CHARACTER_LIMIT):
                await channel.send(StoryMessage(embeds=[Embed(description=part, colour=COLOUR_DISCORD_YELLOW)]))
        except CannotSendDirectMessageError:
            self._logger.debug("Owner %s of story %s does not accept DMs", story.owner_id, story.id)
        except Exception:
            self._logger.exception(
                "Error while informing story owner %s about story issues. Story id: %s",
                story.owner_id,
                story.id,
            )

    def _build_report_text(self, story: Any, guild: GuildPort, event: ReportEvent) -> str:
        locale = _guild_locale(guild)
        t = self._translate
        text = t("commands.story.owner-report.intro", story_title=story.title, server_name=guild.name, lng=locale)
        text += "\n" + t(
            "commands.story.owner-report.type-" + event.report_type.value,
            choice_limit=MAX_CHOICES_PER_MESSAGE,
            lng=locale,
        )
        if event.details:
            text += "\n" + "\n".join(quote(line) for line in event.details.split("\n"))
        last_lines = event.last_lines[-self._config.max_last_lines_to_report:] if event.last_lines else []
        if last_lines:
            text += "\n" + t("commands.story.owner-report.last-lines", lng=locale)
            text += "\n" + "\n".join(quote(line.text) for line in last_lines)
        text += "\n" + t("commands.story.owner-report.no-repeat", lng=locale)
        return text

    async def stop_story_play_and_inform_players(self, story: Any, start_button_id: StartButtonIdFactory) -> int:
        """Clear every play of ``story`` and tell the players, returning how many plays were cleared."""
        guild: GuildPort | None = None
        try:
            guild = await self._platform.fetch_guild(story.guild_id)
        except Exception:
            self._logger.exception("Could not fetch guild %s to inform players of story %s", story.guild_id, story.id)

        try:
            with self._uow_factory() as uow:
                players = uow.plays.current_players(story.id)
        except Exception:
            self._logger.exception("Error while loading current players of story %s", story.id)
            return 0

        inform_players = guild is not None
        cleared = 0
        for user_id in players:
            try:
                with self._uow_factory() as uow:
                    if uow.plays.clear(user_id):
                        cleared += 1
                    uow.commit()
                if inform_players:
                    await self._inform_player(user_id, story, guild, start_button_id)
            except CannotSendDirectMessageError:
                pass
            except OpeningDirectMessagesTooFastError:
                # Plays of the remaining players are still cleared, just without a DM.
                self._logger.warning(
                    "Opening DMs too fast, not informing the remaining players of story %s", story.id
                )
                inform_players = False
            except Exception:
                self._logger.exception(
                    "Error while stopping story play of player %s. Story id: %s", user_id, story.id
                )
        return cleared

    async def _inform_player(
        self,
        user_id: str,
        story: Any,
        guild: GuildPort,
        start_button_id: StartButtonIdFactory,
    ) -> None:
        member = await guild.fetch_member(user_id)
        if member is None:
            return
        locale = _guild_locale(guild)
        description = self._translate(
            "commands.manage-stories.story-updated-and-stopped-notification",
            story_title=story.title,
            server_name=guild.name,
            lng=locale,
        )
        restart_button = Button(
            label=self._translate("commands.manage-stories.restart-button-label", lng=locale),
            custom_id=start_button_id(story.id, guild.id),
            style=ButtonStyle.SUCCESS,
        )
        channel = await member.create_dm()
        await channel.send(
            StoryMessage(
                embeds=[Embed(description=description, colour=COLOUR_DISCORD_YELLOW)],
                components=[[restart_button]],
            )
        )


class LoopDetector:
    def __init__(
        self,
        uow_factory,
        notifier: OwnerNotifier,
        threshold: int = 10,
        logger: logging.Logger | None = None,
    ):
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._threshold = threshold
        self._logger = logger or logging.getLogger(__name__)

    def detect(self, story: Any, lines: Sequence[StoryLine]) -> bool:
        """Count a budget overrun for ``story``; True once the count is above the threshold."""
        try:
            with self._uow_factory() as uow:
                count = uow.stories.increase_time_budget_exceeded_counter(story.id)
                uow.commit()
        except Exception:
            self._logger.exception("Error while trying to detect potential loop in story %s", story.id)
            return False

        if count is None or count <= self._threshold:
            return False

        self._logger.info("Story %s exceeded the time budget %s times", story.id, count)
        # The claimed report flag is what blocks the story from being started again.
        self._notifier.report(
            story,
            ReportEvent(OwnerReportType.POTENTIAL_LOOP_DETECTED, details="", last_lines=list(lines)),
        )
        return True
