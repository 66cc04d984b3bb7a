import json

import pytest

from helpers import DESIGN_JSON, DESIGN_REPLY
from postcraft.errors import ParseError
from postcraft.extractor import extract_design_fields, find_json_object
from postcraft.models import (
    DEFAULT_COLOR_SCHEME,
    DEFAULT_HASHTAGS,
    DEFAULT_IMAGE_DESCRIPTION,
    DEFAULT_QUOTE,
    DEFAULT_TITLE,
    DesignFields,
)
from postcraft.prompts import MAX_ARTICLE_CHARS, build_design_prompt

pytestmark = pytest.mark.unit


def test_fields_copied_verbatim_from_fenced_reply():
    fields = extract_design_fields(DESIGN_REPLY)
    assert fields.title == "AI Rising"
    assert fields.quote == "AI changes everything"
    assert fields.image_description == "neural network lights"
    assert fields.hashtags == "#AI #Future #Tech"
    assert fields.color_scheme == "#111111,#222222,#333333"


def test_missing_and_empty_fields_get_defaults():
    fields = extract_design_fields('{"title": "Only a title", "quote": ""}')
    assert fields.title == "Only a title"
    assert fields.quote == DEFAULT_QUOTE
    assert fields.image_description == DEFAULT_IMAGE_DESCRIPTION
    assert fields.hashtags == DEFAULT_HASHTAGS
    assert fields.color_scheme == DEFAULT_COLOR_SCHEME


def test_wrong_types_get_defaults():
    fields = extract_design_fields('{"title": 42, "hashtags": ["#a", "#b"], "colorScheme": null}')
    assert fields.title == DEFAULT_TITLE
    assert fields.hashtags == DEFAULT_HASHTAGS
    assert fields.color_scheme == DEFAULT_COLOR_SCHEME


def test_no_braces_is_parse_error():
    with pytest.raises(ParseError):
        extract_design_fields("I could not produce a design for this article.")


def test_broken_json_is_parse_error():
    with pytest.raises(ParseError):
        extract_design_fields('{"title": "Unclosed')


def test_only_first_object_is_taken():
    text = '{"title": "First"} and also {"title": "Second"}'
    assert find_json_object(text) == {"title": "First"}


def test_top_level_array_is_not_an_object():
    with pytest.raises(ParseError):
        find_json_object('[{"title": "inside a list"}]')


@pytest.mark.parametrize(
    "raw",
    [
        {},
        DESIGN_JSON,
        {"title": "", "quote": None, "hashtags": 7},
        {"title": "   ", "colorScheme": "#000"},
    ],
)
def test_default_normalization_is_idempotent(raw):
    once = DesignFields.parse_with_defaults(raw)
    twice = DesignFields.parse_with_defaults(once)
    assert once == twice
    assert DesignFields.parse_with_defaults(once.model_dump(by_alias=True)) == once


def test_non_object_input_yields_all_defaults():
    assert DesignFields.parse_with_defaults(None) == DesignFields()


def test_prompt_clips_article_and_names_fields():
    article = "x" * (MAX_ARTICLE_CHARS + 500)
    prompt = build_design_prompt(article)
    assert "x" * MAX_ARTICLE_CHARS in prompt
    assert "x" * (MAX_ARTICLE_CHARS + 1) not in prompt
    for name in DESIGN_JSON:
        assert f'"{name}"' in prompt
    assert "5-8 words" in prompt and "10-15 words" in prompt


def test_prompt_passes_delimiters_through():
    article = 'He said "stop" and wrote {"title": "injected"} in the margin.'
    assert article in build_design_prompt(article)


def test_round_trip_through_wire_names():
    fields = DesignFields.parse_with_defaults(DESIGN_JSON)
    assert json.loads(fields.model_dump_json(by_alias=True)) == DESIGN_JSON


def test_whitespace_only_field_is_kept_verbatim():
    fields = DesignFields.parse_with_defaults({"title": "   ", "quote": "\n"})
    assert fields.title == "   "
    assert fields.quote == "\n"
    assert fields.hashtags == DEFAULT_HASHTAGS
