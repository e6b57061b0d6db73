from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

PropertyType = Literal["string", "enum", "tags"]

AttributeValue = Union[str, List[str]]
# category key -> property key -> value
AttributeValues = Dict[str, Dict[str, AttributeValue]]


@dataclass(frozen=True)
class AttributeOption:
    value: str
    label: str


@dataclass(frozen=True)
class AttributeProperty:
    key: str
    label: str
    type: PropertyType
    description: Optional[str] = None
    options: Tuple[AttributeOption, ...] = ()
    allow_custom: bool = False

    def option_label(self, value: str) -> str:
        for opt in self.options:
            if opt.value == value:
                return opt.label
        return value


@dataclass(frozen=True)
class AttributeCategory:
    key: str
    label: str
    order: int
    properties: Tuple[AttributeProperty, ...]
    description: Optional[str] = None


@dataclass(frozen=True)
class AttributeSchema:
    """
    Static category/property definitions.

    `categories` keeps insertion order; anything that displays or renders
    goes through sorted_categories().
    """
    name: str
    categories: Tuple[AttributeCategory, ...] = field(default_factory=tuple)

    def sorted_categories(self) -> List[AttributeCategory]:
        return sorted(self.categories, key=lambda c: c.order)

    def category(self, key: str) -> Optional[AttributeCategory]:
        for c in self.categories:
            if c.key == key:
                return c
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": [
                {
                    "key": c.key,
                    "label": c.label,
                    "order": c.order,
                    "description": c.description,
                    "properties": [
                        {
                            "key": p.key,
                            "label": p.label,
                            "type": p.type,
                            "description": p.description,
                            "options": [{"value": o.value, "label": o.label} for o in p.options] or None,
                            "allow_custom": p.allow_custom,
                        }
                        for p in c.properties
                    ],
                }
                for c in self.sorted_categories()
            ]
        }


def options(*pairs: Tuple[str, str]) -> Tuple[AttributeOption, ...]:
    return tuple(AttributeOption(value=v, label=l) for v, l in pairs)
