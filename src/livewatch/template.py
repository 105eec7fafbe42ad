"""Message template rendering.

A template is any JSON tree. It is parsed into an explicit node variant
(:class:`TextNode`, :class:`SequenceNode`, :class:`MappingNode`,
:class:`LiteralNode`) and rendered against a flat string context:

* ``{{#if field}}...{{/if}}`` keeps its inner text only when ``field`` is
  truthy in the context (blocks do not nest).
* ``{{field}}`` is replaced by the context value, or ``""`` when missing.
* A string that renders empty, a sequence whose items all pruned and a
  mapping whose values all pruned render to ``None`` and are dropped from
  their parent. JSON ``null`` is pruned the same way.

This lets an optional field such as ``"image": {"url": "{{thumbnail_url}}"}``
disappear entirely when there is no thumbnail.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from livewatch._constants import FALLBACK_TEMPLATE
from livewatch.exceptions import TemplateError

_logger = logging.getLogger(__name__)

_IF_BLOCK_RE = re.compile(r"{{#if\s+([\w.]+)}}(.*?){{/if}}", re.DOTALL)
_PLACEHOLDER_RE = re.compile(r"{{\s*([\w.]+)\s*}}")


@dataclass(frozen=True, slots=True)
class TextNode:
    text: str


@dataclass(frozen=True, slots=True)
class SequenceNode:
    items: tuple[Node, ...]


@dataclass(frozen=True, slots=True)
class MappingNode:
    entries: tuple[tuple[str, Node], ...]


@dataclass(frozen=True, slots=True)
class LiteralNode:
    """Numbers, booleans and ``null``."""

    value: int | float | bool | None


Node = Union[TextNode, SequenceNode, MappingNode, LiteralNode]
_NODE_TYPES = (TextNode, SequenceNode, MappingNode, LiteralNode)


def parse_template(raw: Any) -> Node:
    """Convert a decoded JSON value into a template node tree.

    Raises
    ------
    TemplateError
        If *raw* contains a value JSON cannot represent.
    """
    if isinstance(raw, str):
        return TextNode(raw)
    if isinstance(raw, Mapping):
        return MappingNode(tuple((str(key), parse_template(value)) for key, value in raw.items()))
    if isinstance(raw, (list, tuple)):
        return SequenceNode(tuple(parse_template(item) for item in raw))
    if raw is None or isinstance(raw, (bool, int, float)):
        return LiteralNode(raw)
    raise TemplateError(f"Unsupported template value of type {type(raw).__name__}")


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_text(text: str, context: Mapping[str, Any]) -> str | None:
    """Expand conditionals, then placeholders; ``None`` if nothing is left."""
    expanded = _IF_BLOCK_RE.sub(lambda m: m.group(2) if context.get(m.group(1)) else "", text)
    result = _PLACEHOLDER_RE.sub(lambda m: _stringify(context.get(m.group(1))), expanded)
    return result or None


def render(node: Node, context: Mapping[str, Any]) -> Any:
    """Render *node*, returning ``None`` when it pruned away entirely."""
    if isinstance(node, TextNode):
        return render_text(node.text, context)

    if isinstance(node, SequenceNode):
        items = [rendered for item in node.items if (rendered := render(item, context)) is not None]
        return items or None

    if isinstance(node, MappingNode):
        out: dict[str, Any] = {}
        for key, child in node.entries:
            rendered = render(child, context)
            if rendered is not None:
                out[key] = rendered
        return out or None

    if isinstance(node, LiteralNode):
        return node.value

    raise TemplateError(f"Unknown template node {node!r}")


def render_payload(template: Node | Any, context: Mapping[str, Any]) -> dict[str, Any]:
    """Render a template that must produce a non-empty JSON object.

    Raises
    ------
    TemplateError
        If the result is not a mapping (including when everything pruned).
    """
    node = template if isinstance(template, _NODE_TYPES) else parse_template(template)
    rendered = render(node, context)
    if not isinstance(rendered, dict):
        raise TemplateError(f"Template rendered to {type(rendered).__name__}, expected a non-empty object")
    return rendered


def load_template(path: str | Path) -> Node:
    """Read and parse the template file, falling back to a plain message.

    The file is read on every call so edits apply without a restart.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        return parse_template(raw)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, TemplateError) as exc:
        _logger.error("Failed to read template file %s: %s", path, exc)
        return parse_template(FALLBACK_TEMPLATE)


class TemplateRenderer:
    """Renders the template file at *path* into a webhook payload."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def render(self, context: Mapping[str, Any]) -> dict[str, Any]:
        return render_payload(load_template(self.path), context)
