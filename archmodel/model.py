# archmodel/model.py
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Mapping, Optional, Sequence, Union

from .constants import METADATA_TAGS_KEY

MetaValue = Union[str, tuple[str, ...]]


class ElementKind(Enum):
    """Closed set of element kinds; each kind doubles as an implicit tag."""

    PERSON = "person"
    SYSTEM = "system"
    CONTAINER = "container"
    COMPONENT = "component"
    DATASTORE = "datastore"
    QUEUE = "queue"

    @property
    def tag(self) -> str:
        return _KIND_TAGS[self]

    @classmethod
    def parse(cls, value: str) -> ElementKind:
        key = str(value).strip().lower()
        key = _KIND_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            known = ", ".join(k.value for k in cls)
            raise ValueError(
                f"unknown element kind {value!r} (expected one of: {known})"
            ) from None


_KIND_TAGS: dict[ElementKind, str] = {
    ElementKind.PERSON: "Person",
    ElementKind.SYSTEM: "System",
    ElementKind.CONTAINER: "Container",
    ElementKind.COMPONENT: "Component",
    ElementKind.DATASTORE: "DataStore",
    ElementKind.QUEUE: "Queue",
}

_KIND_ALIASES: dict[str, str] = {
    "actor": "person",
    "database": "datastore",
    "data_store": "datastore",
    "db": "datastore",
}


@dataclass(frozen=True)
class QualifiedName:
    """Ordered, non-empty list of name segments (`a.b.c`)."""

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("qualified name needs at least one segment")

    @classmethod
    def parse(cls, text: str) -> QualifiedName:
        return cls(tuple(s.strip() for s in str(text).split(".")))

    @classmethod
    def of(cls, *segments: str) -> QualifiedName:
        return cls(tuple(segments))

    @property
    def leaf(self) -> str:
        return self.segments[-1]

    @property
    def parent(self) -> Optional[QualifiedName]:
        if len(self.segments) == 1:
            return None
        return QualifiedName(self.segments[:-1])

    def child(self, segment: str) -> QualifiedName:
        return QualifiedName(self.segments + (segment,))

    def __iter__(self) -> Iterator[str]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return ".".join(self.segments)


def normalize_tags(value: object) -> tuple[str, ...]:
    """Return an ordered, de-duplicated tuple of interned tag strings."""
    if value is None:
        return ()
    if isinstance(value, str):
        items: Sequence[object] = (value,)
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return ()

    out: list[str] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, str):
            continue
        tag = item.strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        out.append(sys.intern(tag))
    return tuple(out)


@dataclass(frozen=True)
class Relation:
    """A directed edge as written; endpoints are not resolved yet."""

    source: QualifiedName
    target: QualifiedName
    label: Optional[str] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Element:
    id: str
    kind: ElementKind
    title: str = ""
    description: Optional[str] = None
    technology: Optional[str] = None
    metadata: Mapping[str, MetaValue] = field(default_factory=dict)
    children: tuple[Element, ...] = ()
    relations: tuple[Relation, ...] = ()

    @property
    def display_title(self) -> str:
        return self.title or self.id

    @property
    def explicit_tags(self) -> tuple[str, ...]:
        # Read from this element's own metadata only; never inherited.
        return normalize_tags(self.metadata.get(METADATA_TAGS_KEY))


class ViewAction(Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"


class SelectorKind(Enum):
    WILDCARD = "wildcard"
    RECURSIVE = "recursive"
    ELEMENTS = "elements"
    PATTERN = "pattern"


@dataclass(frozen=True)
class ViewExpression:
    """One include/exclude step of a view; carries exactly one selector."""

    action: ViewAction
    selector: SelectorKind
    elements: tuple[QualifiedName, ...] = ()
    pattern: Optional[str] = None

    def __post_init__(self) -> None:
        if self.selector is SelectorKind.PATTERN:
            if self.pattern is None or self.elements:
                raise ValueError("pattern expression needs a pattern and no elements")
        elif self.selector is SelectorKind.ELEMENTS:
            if self.pattern is not None:
                raise ValueError("element list expression cannot carry a pattern")
        elif self.elements or self.pattern is not None:
            raise ValueError(f"{self.selector.value} expression takes no payload")

    @classmethod
    def wildcard(cls, action: ViewAction = ViewAction.INCLUDE) -> ViewExpression:
        return cls(action, SelectorKind.WILDCARD)

    @classmethod
    def recursive(cls, action: ViewAction = ViewAction.INCLUDE) -> ViewExpression:
        return cls(action, SelectorKind.RECURSIVE)

    @classmethod
    def of_elements(
        cls,
        refs: Sequence[Union[str, QualifiedName]],
        action: ViewAction = ViewAction.INCLUDE,
    ) -> ViewExpression:
        names = tuple(
            r if isinstance(r, QualifiedName) else QualifiedName.parse(r) for r in refs
        )
        return cls(action, SelectorKind.ELEMENTS, elements=names)

    @classmethod
    def of_pattern(
        cls, pattern: str, action: ViewAction = ViewAction.INCLUDE
    ) -> ViewExpression:
        return cls(action, SelectorKind.PATTERN, pattern=pattern)


@dataclass(frozen=True)
class ViewDefinition:
    name: str
    scope: Optional[QualifiedName] = None
    expressions: tuple[ViewExpression, ...] = ()
    title: Optional[str] = None
    autolayout: Optional[str] = None


@dataclass(frozen=True)
class StyleRule:
    tag: str
    properties: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Model:
    """Parsed architecture: root elements, root relations, views, styles."""

    elements: tuple[Element, ...] = ()
    relations: tuple[Relation, ...] = ()
    views: tuple[ViewDefinition, ...] = ()
    styles: tuple[StyleRule, ...] = ()
    name: Optional[str] = None
