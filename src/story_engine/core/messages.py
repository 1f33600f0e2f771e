"""Turns the result of a story step into the messages a player receives."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from .config import StoryEngineConfig
from .extract import parse_choice_action, parse_choice_button_style, parse_line_speech
from .limits import (
    ACTION_ROW_BUTTON_LIMIT,
    BUTTON_LABEL_CHARACTER_LIMIT,
    EMBED_AUTHOR_NAME_CHARACTER_LIMIT,
    EMBED_DESCRIPTION_CHARACTER_LIMIT,
    EMBED_TITLE_CHARACTER_LIMIT,
    EMBED_TOTAL_CHARACTER_LIMIT,
    EMBEDS_PER_MESSAGE_LIMIT,
    MAX_CHOICES_PER_MESSAGE,
    MESSAGE_ACTION_ROW_LIMIT,
    MESSAGE_CONTENT_CHARACTER_LIMIT,
)
from .payloads import (
    Button,
    ButtonStyle,
    Embed,
    OutgoingMessage,
    SpecialHandling,
    SpecialHandlingMessage,
    StoryMessage,
    is_special_handling_message,
)
from .ports import MessageChannelPort, TranslatePort
from .random_messages import END_MESSAGES, SUGGESTION_MESSAGES, RandomMessageProvider
from .text import chunk, code_point_length, split_text_at_whitespace, trim_text
from .types import (
    CharacterImageSize,
    ChoiceAction,
    EnhancedStepData,
    StoryCharacter,
    StoryChoice,
    StoryLine,
    SuggestionData,
)

LEGACY_STYLE_PREFIX = "style-"

BUTTON_STYLES = {
    "primary": ButtonStyle.PRIMARY,
    "secondary": ButtonStyle.SECONDARY,
    "success": ButtonStyle.SUCCESS,
    "danger": ButtonStyle.DANGER,
}


def build_story_embed(story: Any) -> Embed:
    return Embed(
        title=trim_text(story.title or "", EMBED_TITLE_CHARACTER_LIMIT) or None,
        author_name=trim_text(story.author or "", EMBED_AUTHOR_NAME_CHARACTER_LIMIT) or None,
        description=trim_text(story.teaser or "", EMBED_DESCRIPTION_CHARACTER_LIMIT) or None,
    )


@dataclass
class MessageContext:
    translate: TranslatePort
    choice_button_id: Callable[[int], str]
    input_button_id: Callable[[int], str]
    start_button_id: Callable[[str], str]
    story_embed: Callable[[Any], Embed] = build_story_embed
    end_messages: RandomMessageProvider = field(default=END_MESSAGES)
    suggestion_messages: RandomMessageProvider = field(default=SUGGESTION_MESSAGES)


@dataclass
class _ButtonChoice:
    index: int
    text: str
    style: ButtonStyle
    action: ChoiceAction


def get_messages_to_send(step_data: EnhancedStepData, context: MessageContext) -> list[OutgoingMessage]:
    """Build the ordered messages for one step. Order is the delivery order."""
    messages: list[OutgoingMessage] = []

    if step_data.lines:
        _append_text_messages(messages, step_data.lines, step_data.characters)

    if step_data.choices:
        _append_choice_buttons(messages, step_data.choices, context, step_data.default_button_style)

    if step_data.is_end:
        _append_end_message(messages, context, context.start_button_id(step_data.story_record.id))
        if step_data.suggestions:
            _append_story_suggestions(messages, step_data.suggestions, context)

    return messages


def _is_tagged(line: StoryLine, tag_name: str) -> bool:
    return any(tag.strip().lower() == tag_name for tag in line.tags or [])


def _append_text_messages(
    messages: list[OutgoingMessage],
    lines: Sequence[StoryLine],
    characters: dict[str, StoryCharacter],
) -> None:
    buffer = ""
    previous_character: StoryCharacter | None = None
    previous_image_size: CharacterImageSize = "small"
    previous_line_was_standalone = False

    def append_message(text: str, character: StoryCharacter | None, image_size: CharacterImageSize) -> None:
        if character is not None:
            messages.append(_character_message(text, character, image_size))
        else:
            messages.append(StoryMessage(content=text))

    def flush() -> None:
        nonlocal buffer
        # Empty messages are rejected by the platform.
        if buffer.strip():
            append_message(buffer, previous_character, previous_image_size)
        buffer = ""

    for line in lines:
        text = line.text
        character: StoryCharacter | None = None
        image_size: CharacterImageSize = "small"
        limit = MESSAGE_CONTENT_CHARACTER_LIMIT

        speech = parse_line_speech(line, characters)
        if speech is not None:
            text = speech.text
            character = speech.character
            image_size = speech.character_image_size
            limit = EMBED_DESCRIPTION_CHARACTER_LIMIT

        if character != previous_character or image_size != previous_image_size:
            flush()
            previous_character = character
            previous_image_size = image_size

        if _is_tagged(line, "pause"):
            flush()
            messages.append(SpecialHandlingMessage(SpecialHandling.DELAY))

        if previous_line_was_standalone:
            flush()
            previous_line_was_standalone = False

        # Lines with links go out on their own so link previews show up where the line is.
        if "http://" in text or "https://" in text or _is_tagged(line, "standalone"):
            flush()
            previous_line_was_standalone = True

        if code_point_length(text) > limit:
            flush()
            parts = split_text_at_whitespace(text, limit)
            for part in parts[:-1]:
                append_message(part, character, image_size)
            buffer = parts[-1] if parts else ""
        elif code_point_length(buffer + "\n" + text) > limit:
            flush()
            buffer = text
        else:
            if buffer and not buffer.endswith("\n"):
                buffer += "\n"
            # Empty lines are kept as long as the message has some text in the end.
            buffer += text

    flush()


def _character_message(text: str, character: StoryCharacter, image_size: CharacterImageSize) -> StoryMessage:
    embed = Embed(description=text)
    name = trim_text(character.name, EMBED_AUTHOR_NAME_CHARACTER_LIMIT)
    if character.image_url and image_size == "medium":
        embed.title = name
        embed.thumbnail_url = character.image_url
    elif character.image_url and image_size == "large":
        embed.title = name
        embed.image_url = character.image_url
    else:
        embed.author_name = name
        embed.author_icon_url = character.image_url
    if character.colour is not None:
        embed.colour = character.colour
    return StoryMessage(embeds=[embed])


def _map_button_style(raw_style: str, default_style: ButtonStyle) -> ButtonStyle:
    return BUTTON_STYLES.get((raw_style or "").lower(), default_style)


def _parse_button_choices(choices: Sequence[StoryChoice], default_style: ButtonStyle) -> list[_ButtonChoice]:
    parsed = []
    for choice in choices:
        text = choice.text
        style = default_style

        style_from_tags = parse_choice_button_style(choice)
        if style_from_tags:
            style = _map_button_style(style_from_tags, style)
        else:
            # Legacy syntax: "style-primary:choice text".
            separator_index = text.find(":")
            if text.lower().startswith(LEGACY_STYLE_PREFIX) and separator_index > 0:
                style = _map_button_style(text[len(LEGACY_STYLE_PREFIX):separator_index], style)
                text = text[separator_index + 1:]

        parsed.append(_ButtonChoice(index=choice.index, text=text, style=style, action=parse_choice_action(choice)))
    return parsed


def _append_choice_buttons(
    messages: list[OutgoingMessage],
    choices: Sequence[StoryChoice],
    context: MessageContext,
    default_button_style: str,
) -> None:
    t = context.translate
    button_choices = _parse_button_choices(choices, _map_button_style(default_button_style, ButtonStyle.SECONDARY))

    def indexed_label(choice: _ButtonChoice) -> str:
        return t("choice-button-indexed-label", choice_index=choice.index + 1, choice_text=choice.text)

    # Choices that don't fit on a button are listed in full above the numbered buttons.
    choice_too_long = any(code_point_length(choice.text) > BUTTON_LABEL_CHARACTER_LIMIT for choice in button_choices)
    if choice_too_long:
        content = "\n".join(indexed_label(choice) for choice in button_choices)
        if code_point_length(content) > MESSAGE_CONTENT_CHARACTER_LIMIT:
            parts = split_text_at_whitespace(content, MESSAGE_CONTENT_CHARACTER_LIMIT)
            for part in parts[:-1]:
                messages.append(StoryMessage(content=part))
            content = parts[-1]
        button_message = StoryMessage(content=content)
    else:
        button_message = StoryMessage()
    messages.append(button_message)

    buttons = []
    for choice in button_choices:
        label = trim_text(indexed_label(choice), BUTTON_LABEL_CHARACTER_LIMIT) if choice_too_long else choice.text
        if choice.action.is_input:
            custom_id = context.input_button_id(choice.index)
        else:
            custom_id = context.choice_button_id(choice.index)
        buttons.append(Button(label=label, custom_id=custom_id, style=choice.style))

    rows = chunk(buttons, ACTION_ROW_BUTTON_LIMIT)
    if len(rows) > MESSAGE_ACTION_ROW_LIMIT:
        # Buttons spread over several messages could not be disabled together, so the rest is cut off.
        rows = rows[:MESSAGE_ACTION_ROW_LIMIT]
        messages.append(StoryMessage(content=t("reply.too-many-choices", choice_limit=MAX_CHOICES_PER_MESSAGE)))
    button_message.components = rows


def _append_end_message(messages: list[OutgoingMessage], context: MessageContext, start_button_id: str) -> None:
    t = context.translate
    replay_button = Button(label=t("replay-button-label"), custom_id=start_button_id)
    messages.append(
        StoryMessage(
            embeds=[Embed(description=context.end_messages.any(t))],
            components=[[replay_button]],
        )
    )


def _append_story_suggestions(
    messages: list[OutgoingMessage],
    suggestions: Sequence[SuggestionData],
    context: MessageContext,
) -> None:
    t = context.translate
    for suggestion in suggestions:
        text = suggestion.message or context.suggestion_messages.any(t)
        start_button = Button(
            label=t("start-button-label"),
            custom_id=context.start_button_id(suggestion.suggested_story.id),
        )
        messages.append(
            StoryMessage(
                embeds=[Embed(description=text), context.story_embed(suggestion.suggested_story)],
                components=[[start_button]],
            )
        )


async def send_story_step_data(
    channel: MessageChannelPort,
    messages: Sequence[OutgoingMessage],
    delay_seconds: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    config: StoryEngineConfig | None = None,
) -> None:
    if delay_seconds is None:
        delay_seconds = (config or StoryEngineConfig()).message_delay_seconds
    for message in messages:
        if is_special_handling_message(message):
            if message.special_handling == SpecialHandling.DELAY:
                await channel.trigger_typing()
                await sleep(delay_seconds)
        else:
            await channel.send(message)


def get_list_reply_messages(items: Sequence[str], title: str) -> list[StoryMessage]:
    """Lay out a list reply as embeds, several per message where the embed limits allow."""
    texts: list[str] = []
    buffer = ""
    for item in items:
        for part in split_text_at_whitespace(item, EMBED_DESCRIPTION_CHARACTER_LIMIT) or [""]:
            if buffer and code_point_length(buffer + "\n" + part) > EMBED_DESCRIPTION_CHARACTER_LIMIT:
                texts.append(buffer)
                buffer = part
            elif buffer:
                buffer += "\n" + part
            else:
                buffer = part
    if buffer or not texts:
        texts.append(buffer)

    embeds = [Embed(description=text or None) for text in texts]
    embeds[0].title = trim_text(title, EMBED_TITLE_CHARACTER_LIMIT)

    messages: list[StoryMessage] = []
    current: list[Embed] = []
    current_length = 0
    for embed in embeds:
        length = embed.total_length()
        if current and (
            len(current) == EMBEDS_PER_MESSAGE_LIMIT or current_length + length > EMBED_TOTAL_CHARACTER_LIMIT
        ):
            messages.append(StoryMessage(embeds=current))
            current = []
            current_length = 0
        current.append(embed)
        current_length += length
    messages.append(StoryMessage(embeds=current))
    return messages
