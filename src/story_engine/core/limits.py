from __future__ import annotations

# Discord API limits, see https://discord.com/developers/docs/resources/channel#embed-limits
MESSAGE_CONTENT_CHARACTER_LIMIT = 2000
EMBED_DESCRIPTION_CHARACTER_LIMIT = 4096
EMBED_TITLE_CHARACTER_LIMIT = 256
EMBED_AUTHOR_NAME_CHARACTER_LIMIT = 256
EMBED_TOTAL_CHARACTER_LIMIT = 6000
EMBEDS_PER_MESSAGE_LIMIT = 10
BUTTON_LABEL_CHARACTER_LIMIT = 80
ACTION_ROW_BUTTON_LIMIT = 5
MESSAGE_ACTION_ROW_LIMIT = 5

MAX_CHOICES_PER_MESSAGE = ACTION_ROW_BUTTON_LIMIT * MESSAGE_ACTION_ROW_LIMIT

COLOUR_DISCORD_YELLOW = 0xFEE75C
