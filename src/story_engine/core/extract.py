"""Reads story information from Ink global tags, line tags and choice tags."""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from .types import (
    ChoiceAction,
    ChoiceButtonStyle,
    LineSpeech,
    StoryCharacter,
    StoryLine,
    StoryMetadata,
)

# character: id, Name[, https://image][, #rrggbb]
CHARACTER_TAG_RE = re.compile(
    r"^character:\s*([^,]+)\s*,\s*([^,]+)"
    r"(?:\s*,\s*(?P<url>http[^\s,]+))?"
    r"(?:\s*,\s*(?P<colour>#?[0-9a-fA-F]{6}))?$",
    re.IGNORECASE,
)

# Legacy syntax: character: Name or character: "Long Name", separated by spaces.
CHARACTER_TAG_LEGACY_RE = re.compile(
    r'^character:\s*(?:([^\s"]+)|(?:"([^"]+)"))'
    r"(?:\s+(?P<url>http[^\s]+))?"
    r"(?:\s+(?P<colour>#?[0-9a-fA-F]{6}))?$",
    re.IGNORECASE,
)

TITLE_TAG_RE = re.compile(r"^title:(.+)$", re.IGNORECASE)
AUTHOR_TAG_RE = re.compile(r"^author:(.+)$", re.IGNORECASE)
TEASER_TAG_RE = re.compile(r"^teaser:(.+)$", re.IGNORECASE)

DEFAULT_BUTTON_STYLE_TAG_RE = re.compile(
    r"^default-button-style:\s*(primary|secondary|success|danger)$", re.IGNORECASE
)
BUTTON_STYLE_TAG_RE = re.compile(r"^button-style:\s*(primary|secondary|success|danger)$", re.IGNORECASE)

INPUT_ACTION_TAG_RE = re.compile(r"^input:\s*(text)\s*,\s*(?P<variable>\w+)$")
DIGITS_RE = re.compile(r"^[0-9]+$")

SPEECH_TAG_RE = re.compile(r"^speech:\s*([^,]+)(?:\s*,\s*(?P<size>small|medium|large))?$", re.IGNORECASE)


def _tags(source: Any, attribute: str) -> Iterable[str]:
    return getattr(source, attribute, None) or []


def _parse_colour(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    return int(raw.lstrip("#"), 16)


def parse_characters(ink_story: Any) -> dict[str, StoryCharacter]:
    """Map character id to character from ``character:`` global tags."""
    characters: dict[str, StoryCharacter] = {}
    for tag in _tags(ink_story, "global_tags"):
        match = CHARACTER_TAG_RE.match(tag)
        if match:
            character = StoryCharacter(id=match.group(1).strip(), name=match.group(2).strip())
        else:
            match = CHARACTER_TAG_LEGACY_RE.match(tag)
            if not match:
                continue
            name = (match.group(1) or match.group(2)).strip()
            character = StoryCharacter(id=name, name=name)
        character.image_url = match.group("url")
        character.colour = _parse_colour(match.group("colour"))
        characters[character.id] = character
    return characters


def parse_line_speech(line: StoryLine, characters: dict[str, StoryCharacter]) -> Optional[LineSpeech]:
    text = line.text
    character: Optional[StoryCharacter] = None
    image_size = "small"

    for tag in line.tags or []:
        match = SPEECH_TAG_RE.match(tag)
        if match:
            character = characters.get(match.group(1).strip())
            if character is not None and match.group("size"):
                image_size = match.group("size").lower()

    if character is None:
        separator_index = text.find(":")
        if separator_index > 0:
            character = characters.get(text[:separator_index].strip())
            if character is not None:
                text = text[separator_index + 1:].strip()

    if character is None:
        return None
    return LineSpeech(text=text, character=character, character_image_size=image_size)


def parse_default_button_style(ink_story: Any) -> ChoiceButtonStyle:
    for tag in _tags(ink_story, "global_tags"):
        match = DEFAULT_BUTTON_STYLE_TAG_RE.match(tag)
        if match:
            return match.group(1).lower()
    return ""


def parse_choice_button_style(choice: Any) -> ChoiceButtonStyle:
    for tag in _tags(choice, "tags"):
        match = BUTTON_STYLE_TAG_RE.match(tag)
        if match:
            return match.group(1).lower()
    return ""


def parse_choice_action(choice: Any) -> ChoiceAction:
    for tag in _tags(choice, "tags"):
        match = INPUT_ACTION_TAG_RE.match(tag)
        if match:
            variable_name = match.group("variable")
            # Ink identifiers cannot consist of digits only.
            if not DIGITS_RE.match(variable_name):
                return ChoiceAction(input_type=match.group(1), variable_name=variable_name)
    return ChoiceAction()


def parse_metadata(ink_story: Any) -> StoryMetadata:
    metadata = StoryMetadata()
    for tag in _tags(ink_story, "global_tags"):
        title_match = TITLE_TAG_RE.match(tag)
        if title_match:
            metadata.title = title_match.group(1).strip()
            continue
        author_match = AUTHOR_TAG_RE.match(tag)
        if author_match:
            metadata.author = author_match.group(1).strip()
            continue
        teaser_match = TEASER_TAG_RE.match(tag)
        if teaser_match:
            metadata.teaser = teaser_match.group(1).strip()
    return metadata
