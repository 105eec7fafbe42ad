from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from livewatch.exceptions import TemplateError
from livewatch.template import (
    LiteralNode,
    MappingNode,
    SequenceNode,
    TemplateRenderer,
    TextNode,
    load_template,
    parse_template,
    render,
    render_payload,
    render_text,
)

_TEMPLATE = {"a": "{{x}}", "b": {"c": "{{#if y}}yes{{/if}}"}}


def test_everything_pruned_is_a_render_failure() -> None:
    assert render(parse_template(_TEMPLATE), {"x": "", "y": False}) is None
    with pytest.raises(TemplateError):
        render_payload(_TEMPLATE, {"x": "", "y": False})


def test_populated_context_renders_full_tree() -> None:
    assert render_payload(_TEMPLATE, {"x": "hi", "y": True}) == {"a": "hi", "b": {"c": "yes"}}


def test_parse_builds_tagged_nodes() -> None:
    node = parse_template({"s": "t", "l": [1, None], "m": {}})

    assert node == MappingNode(
        (
            ("s", TextNode("t")),
            ("l", SequenceNode((LiteralNode(1), LiteralNode(None)))),
            ("m", MappingNode(())),
        )
    )


def test_parse_rejects_non_json_values() -> None:
    with pytest.raises(TemplateError):
        parse_template({"when": object()})


@pytest.mark.parametrize(
    ("text", "context", "expected"),
    [
        ("{{#if game}}Playing {{game}}{{/if}}", {"game": "Chess"}, "Playing Chess"),
        ("{{#if game}}Playing {{game}}{{/if}}", {"game": ""}, None),
        ("a{{#if x}}1{{/if}}b{{#if y}}2{{/if}}c", {"x": "on"}, "a1bc"),
        ("{{ name }} / {{name}}", {"name": "Zed"}, "Zed / Zed"),
        ("hello {{missing}}", {}, "hello "),
        ("{{value}}", {"value": None}, None),
        ("{{flag}}", {"flag": True}, "true"),
        ("{{#if note}}line1\nline2{{/if}}", {"note": "x"}, "line1\nline2"),
    ],
)
def test_render_text(text: str, context: dict[str, object], expected: str | None) -> None:
    assert render_text(text, context) == expected


def test_empty_nested_object_is_removed_from_parent() -> None:
    template = {
        "embeds": [
            {
                "title": "{{title}}",
                "image": {"url": "{{thumbnail_url}}"},
                "fields": [{"name": "Game", "value": "{{game_name}}"}],
            }
        ]
    }

    payload = render_payload(template, {"title": "Hi", "thumbnail_url": "", "game_name": ""})

    assert payload == {"embeds": [{"title": "Hi", "fields": [{"name": "Game"}]}]}


def test_sequences_drop_pruned_items_and_vanish_when_empty() -> None:
    template = {"keep": ["{{a}}", "{{b}}", "static"], "gone": ["{{b}}"]}

    assert render_payload(template, {"a": "A"}) == {"keep": ["A", "static"]}


def test_literals_pass_through_and_null_is_pruned() -> None:
    template = {"color": 123, "tts": False, "ratio": 0.5, "nothing": None}

    assert render_payload(template, {}) == {"color": 123, "tts": False, "ratio": 0.5}


def test_top_level_sequence_is_not_a_payload() -> None:
    with pytest.raises(TemplateError):
        render_payload(["{{a}}"], {"a": "x"})


def test_load_template_falls_back_when_file_missing(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="livewatch.template"):
        node = load_template(tmp_path / "missing.json")

    assert render_payload(node, {"display_name": "Alpha", "url": "https://twitch.tv/alpha"}) == {
        "content": "Alpha just went live: https://twitch.tv/alpha"
    }
    assert "Failed to read template file" in caplog.text


def test_load_template_falls_back_on_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    node = load_template(path)

    assert node == parse_template({"content": "{{display_name}} just went live: {{url}}"})


def test_renderer_falls_back_on_non_utf8_template(tmp_path: Path) -> None:
    path = tmp_path / "template.json"
    path.write_bytes(b"{\"content\": \"\xff\"}")

    rendered = TemplateRenderer(path).render({"display_name": "Alpha", "url": "https://twitch.tv/alpha"})

    assert rendered == {"content": "Alpha just went live: https://twitch.tv/alpha"}


def test_renderer_rereads_file_on_every_render(tmp_path: Path) -> None:
    path = tmp_path / "template.json"
    renderer = TemplateRenderer(path)

    path.write_text(json.dumps({"content": "v1 {{login}}"}), encoding="utf-8")
    assert renderer.render({"login": "a"}) == {"content": "v1 a"}

    path.write_text(json.dumps({"content": "v2 {{login}}"}), encoding="utf-8")
    assert renderer.render({"login": "a"}) == {"content": "v2 a"}


def test_shipped_template_renders_without_optional_fields() -> None:
    shipped = Path(__file__).resolve().parent.parent / "templates" / "message_template.json"
    context = {
        "mention_prefix": "",
        "login": "alpha",
        "display_name": "Alpha",
        "url": "https://twitch.tv/alpha",
        "title": "Live",
        "game_name": "",
        "started_at": "",
        "thumbnail_url": "",
        "profile_image_url": "",
        "now_iso": "2026-01-01T00:00:00.000Z",
    }

    payload = TemplateRenderer(shipped).render(context)

    assert payload["content"] == "**Alpha** is live on Twitch!"
    embed = payload["embeds"][0]
    assert "image" not in embed
    assert "thumbnail" not in embed
    assert "footer" not in embed
    assert "description" not in embed
    assert embed["author"] == {"name": "Alpha", "url": "https://twitch.tv/alpha"}
