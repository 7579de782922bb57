# archmodel/patterns.py
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional

from .constants import RECURSIVE_MARKER, WILDCARD_KINDS, WILDCARD_MARKER
from .model import Element
from .model_view import iter_descendants
from .resolve import ResolvedRelation

ElementIndex = Mapping[str, Element]


class PatternKind(Enum):
    WILDCARD = "wildcard"
    RECURSIVE = "recursive"
    ELEMENT = "element"
    CHILDREN = "children"
    DESCENDANTS = "descendants"
    OUTGOING = "outgoing"
    INCOMING = "incoming"
    IN_OUT = "in_out"
    RELATION = "relation"


@dataclass(frozen=True)
class Pattern:
    kind: PatternKind
    subject: str = ""
    other: str = ""


_NAME = r"[A-Za-z_][\w-]*(?:\.[A-Za-z_][\w-]*)*"

# Order matters: `X.**` must be tried before `X.*`.
_PATTERNS: tuple[tuple[re.Pattern[str], PatternKind], ...] = (
    (re.compile(rf"^->\s*({_NAME})\s*->$"), PatternKind.IN_OUT),
    (re.compile(rf"^->\s*({_NAME})$"), PatternKind.INCOMING),
    (re.compile(rf"^({_NAME})\s*->\s*({_NAME})$"), PatternKind.RELATION),
    (re.compile(rf"^({_NAME})\s*->$"), PatternKind.OUTGOING),
    (re.compile(rf"^({_NAME})\.\*\*$"), PatternKind.DESCENDANTS),
    (re.compile(rf"^({_NAME})\.\*$"), PatternKind.CHILDREN),
    (re.compile(rf"^({_NAME})$"), PatternKind.ELEMENT),
)


def parse_pattern(text: str) -> Optional[Pattern]:
    """Parse a view pattern string; None if the syntax is not recognized."""
    raw = re.sub(r"\s+", " ", str(text)).strip()
    if raw == WILDCARD_MARKER:
        return Pattern(PatternKind.WILDCARD)
    if raw == RECURSIVE_MARKER:
        return Pattern(PatternKind.RECURSIVE)

    for regex, kind in _PATTERNS:
        m = regex.match(raw)
        if not m:
            continue
        if kind is PatternKind.RELATION:
            return Pattern(kind, subject=m.group(1), other=m.group(2))
        return Pattern(kind, subject=m.group(1))
    return None


def select_wildcard(index: ElementIndex, scope: str) -> set[str]:
    """Scope element plus every container/datastore/queue/component under it.

    At the root ("" scope) this is the set of top-level elements.
    """
    if not scope:
        return {fqn for fqn in index if "." not in fqn}

    element = index.get(scope)
    if element is None:
        return set()

    out = {scope}
    for fqn, child in iter_descendants(element, scope):
        if child.kind.value in WILDCARD_KINDS:
            out.add(fqn)
    return out


def select_recursive(index: ElementIndex, scope: str) -> set[str]:
    """Scope element plus all of its descendants, whatever their kind."""
    if not scope:
        return set(index)

    element = index.get(scope)
    if element is None:
        return set()

    out = {scope}
    out.update(fqn for fqn, _ in iter_descendants(element, scope))
    return out


def _within(fqn: str, ancestor: str) -> bool:
    return fqn == ancestor or fqn.startswith(ancestor + ".")


def match_pattern(
    pattern: Pattern,
    index: ElementIndex,
    relations: Iterable[ResolvedRelation],
    scope: str = "",
) -> set[str]:
    """Return the element FQNs a parsed pattern selects."""
    kind = pattern.kind
    subject = pattern.subject

    if kind is PatternKind.WILDCARD:
        return select_wildcard(index, scope)
    if kind is PatternKind.RECURSIVE:
        return select_recursive(index, scope)

    if kind is PatternKind.ELEMENT:
        return {subject} if subject in index else set()

    if kind in (PatternKind.CHILDREN, PatternKind.DESCENDANTS):
        element = index.get(subject)
        if element is None:
            return set()
        if kind is PatternKind.CHILDREN:
            return {f"{subject}.{child.id}" for child in element.children}
        return {fqn for fqn, _ in iter_descendants(element, subject)}

    out: set[str] = set()
    if kind is PatternKind.RELATION:
        for rel in relations:
            if _within(rel.source, subject) and _within(rel.target, pattern.other):
                out.add(rel.source)
                out.add(rel.target)
        return out

    outgoing = kind in (PatternKind.OUTGOING, PatternKind.IN_OUT)
    incoming = kind in (PatternKind.INCOMING, PatternKind.IN_OUT)
    for rel in relations:
        if outgoing and rel.source == subject:
            out.add(rel.target)
        if incoming and rel.target == subject:
            out.add(rel.source)

    if out or subject in index:
        out.add(subject)
    return out
