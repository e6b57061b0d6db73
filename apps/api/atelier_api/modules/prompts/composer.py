"""
Prompt composition.

Pure: no I/O, no clock, no randomness. Identical parts always compose to
byte-identical text, which keeps a (prompt, seed) pair reproducible.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from atelier_api.core.errors import GenerationFailed
from atelier_api.modules.attributes.codec import render_lines

if TYPE_CHECKING:
    from atelier_api.modules.entities.kinds import EntityKind

PROMPT_HEADING = "# Image Specification"


@dataclass(frozen=True)
class PromptPart:
    """One resolved entity version as the composer sees it."""

    kind: "EntityKind"
    name: str
    description: Optional[str] = None
    fields: Dict[str, Optional[str]] = field(default_factory=dict)
    attributes: Dict[str, Any] = field(default_factory=dict)
    base_prompt: Optional[str] = None
    negative_prompt: Optional[str] = None


@dataclass(frozen=True)
class ComposedPrompt:
    prompt: str
    negative_prompt: Optional[str]


def _non_empty(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def part_lines(part: PromptPart) -> List[str]:
    kind = part.kind
    lines: List[str] = []

    for f in kind.text_fields:
        value = _non_empty(part.fields.get(f.key))
        if value:
            lines.append(f"{f.label}: {value}")

    if kind.schema is not None and part.attributes:
        lines.extend(render_lines(kind.schema, part.attributes, kind.relevant_categories))

    if part.base_prompt and part.base_prompt.strip():
        lines.append(part.base_prompt)

    return lines


def _section(title: str, lines: List[str]) -> List[str]:
    out = [f"## {title}"]
    for line in lines:
        out.append(line if line.startswith("- ") else f"- {line}")
    return out


def _fallback_line(part: Optional[PromptPart]) -> Optional[str]:
    if part is None:
        return None
    name = _non_empty(part.name)
    if not name:
        return None
    description = _non_empty(part.description)
    if description:
        return f"{part.kind.fallback_label}: {name} — {description}"
    return f"{part.kind.fallback_label}: {name}"


def compose(
    character: PromptPart,
    style: PromptPart,
    scene: Optional[PromptPart] = None,
) -> ComposedPrompt:
    parts = [p for p in (character, style, scene) if p is not None]

    body: List[str] = []
    for p in parts:
        lines = part_lines(p)
        if lines:
            body.extend(_section(p.kind.section_title, lines))

    prompt = "\n".join([PROMPT_HEADING] + body) if body else ""

    if not prompt:
        # name/description only; scene is not part of the fallback
        fallback = [line for line in (_fallback_line(character), _fallback_line(style)) if line]
        prompt = "\n".join(fallback)

    if not prompt.strip():
        raise GenerationFailed("PROMPT_EMPTY", "nothing to compose a prompt from")

    negatives = [p.negative_prompt for p in parts if p.negative_prompt and p.negative_prompt.strip()]
    negative_prompt = "\n".join(negatives) if negatives else None

    return ComposedPrompt(prompt=prompt, negative_prompt=negative_prompt)
