# archmodel/resolve.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .model import Model, QualifiedName
from .model_view import build_element_index, iter_relations, join_fqn, leaf_segment, parent_fqn

Reference = Union[QualifiedName, Iterable[str]]


@dataclass(frozen=True)
class ResolvedRelation:
    source: str
    target: str
    label: str = ""
    tags: tuple[str, ...] = ()


def resolve_reference(reference: Reference, context: str) -> str:
    """Turn a relation endpoint, as written inside `context`, into an FQN.

    Root-level references (empty context) are absolute. Inside an element body
    a multi-segment reference whose first segment is the context leaf, or an
    ancestor of the context, is taken as absolute; anything else is relative to
    the context. Never fails: dangling names still produce an FQN.
    """
    parts = list(reference)
    written = ".".join(parts)
    if not context:
        return written

    if len(parts) > 1:
        first = parts[0]
        if first == leaf_segment(context) or context.startswith(first + "."):
            return written

    return context + "." + written


class SymbolTable:
    """Scope-aware lookup of element names.

    Built once per model. `resolve()` walks from the lexical context outward to
    the root and returns the first scope in which the reference names a known
    element; with no match it falls back to `resolve_reference()`.
    """

    def __init__(self, fqns: Iterable[str]) -> None:
        self._known: frozenset[str] = frozenset(fqns)

    @classmethod
    def from_model(cls, model: Model) -> SymbolTable:
        return cls(build_element_index(model))

    def __contains__(self, fqn: object) -> bool:
        return fqn in self._known

    def __len__(self) -> int:
        return len(self._known)

    def lookup(self, reference: Reference, context: str) -> Optional[str]:
        """Innermost-scope-first match, or None if no scope knows the name."""
        written = ".".join(reference)
        scope = context
        while True:
            candidate = join_fqn(scope, written)
            if candidate in self._known:
                return candidate
            if not scope:
                return None
            scope = parent_fqn(scope)

    def resolve(self, reference: Reference, context: str) -> str:
        parts = list(reference)
        found = self.lookup(parts, context)
        if found is not None:
            return found
        return resolve_reference(parts, context)

    def is_ambiguous(self, reference: Reference, context: str) -> bool:
        """True when lexical lookup and the textual rule disagree."""
        parts = list(reference)
        found = self.lookup(parts, context)
        return found is not None and found != resolve_reference(parts, context)


def resolve_all_relations(
    model: Model, symbols: Optional[SymbolTable] = None
) -> list[ResolvedRelation]:
    """Flatten every relation in the model to (source FQN, target FQN, label)."""
    symbols = symbols if symbols is not None else SymbolTable.from_model(model)

    out: list[ResolvedRelation] = []
    for context, rel in iter_relations(model):
        if context:
            source = symbols.resolve(rel.source, context)
            target = symbols.resolve(rel.target, context)
        else:
            # Root relations are always absolute.
            source = resolve_reference(rel.source, "")
            target = resolve_reference(rel.target, "")
        out.append(
            ResolvedRelation(
                source=source,
                target=target,
                label=rel.label or "",
                tags=rel.tags,
            )
        )
    return out
