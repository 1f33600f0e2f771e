from __future__ import annotations

from types import SimpleNamespace

from story_engine.core.extract import (
    parse_characters,
    parse_choice_action,
    parse_choice_button_style,
    parse_default_button_style,
    parse_line_speech,
    parse_metadata,
)
from story_engine.core.types import StoryChoice, StoryLine


def _story(*global_tags):
    return SimpleNamespace(global_tags=list(global_tags))


def test_parse_characters_with_image_and_colour():
    characters = parse_characters(
        _story("character: anna, Anna Smith, https://example.com/anna.png, #ff0000", "title: Unrelated")
    )

    anna = characters["anna"]
    assert anna.name == "Anna Smith"
    assert anna.image_url == "https://example.com/anna.png"
    assert anna.colour == 0xFF0000


def test_parse_characters_colour_without_image():
    bob = parse_characters(_story("character: bob, Bob, #00ff00"))["bob"]
    assert bob.image_url is None
    assert bob.colour == 0x00FF00


def test_parse_characters_legacy_syntax():
    characters = parse_characters(
        _story('character: "Long Name" https://example.com/long.png', "character: Anna")
    )

    assert characters["Long Name"].name == "Long Name"
    assert characters["Long Name"].image_url == "https://example.com/long.png"
    assert characters["Anna"].colour is None


def test_parse_characters_without_global_tags():
    assert parse_characters(SimpleNamespace(global_tags=None)) == {}


def test_line_speech_by_prefix():
    characters = parse_characters(_story("character: anna, Anna"))

    speech = parse_line_speech(StoryLine("anna: Hello there", []), characters)

    assert speech.character.name == "Anna"
    assert speech.text == "Hello there"
    assert speech.character_image_size == "small"


def test_line_speech_by_tag_with_size():
    characters = parse_characters(_story("character: anna, Anna"))

    speech = parse_line_speech(StoryLine("Hello there", ["speech: anna, large"]), characters)

    assert speech.character.id == "anna"
    assert speech.text == "Hello there"
    assert speech.character_image_size == "large"


def test_line_with_unknown_prefix_is_not_speech():
    characters = parse_characters(_story("character: anna, Anna"))
    assert parse_line_speech(StoryLine("Note: the door is locked", []), characters) is None


def test_button_styles():
    assert parse_default_button_style(_story("default-button-style: Primary")) == "primary"
    assert parse_default_button_style(_story()) == ""
    assert parse_choice_button_style(StoryChoice(0, "Run", ["button-style: danger"])) == "danger"
    assert parse_choice_button_style(StoryChoice(0, "Run", ["button-style: purple"])) == ""


def test_choice_input_action():
    action = parse_choice_action(StoryChoice(0, "Say your name", ["input: text, player_name"]))
    assert action.is_input
    assert action.variable_name == "player_name"

    assert not parse_choice_action(StoryChoice(0, "Bad", ["input: text, 123"])).is_input
    assert not parse_choice_action(StoryChoice(0, "Plain", [])).is_input


def test_parse_metadata():
    metadata = parse_metadata(_story("title: The Cave", "author: Someone ", "teaser: Dark and deep."))
    assert (metadata.title, metadata.author, metadata.teaser) == ("The Cave", "Someone", "Dark and deep.")
