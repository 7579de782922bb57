# archmodel/model_view.py
from __future__ import annotations

from typing import Iterable, Iterator

from .model import Element, Model, Relation


def join_fqn(*parts: str) -> str:
    """Join non-empty name segments with '.'."""
    return ".".join(p for p in parts if p)


def leaf_segment(fqn: str) -> str:
    return fqn.rsplit(".", 1)[-1]


def parent_fqn(fqn: str) -> str:
    """Return the FQN of the owning element, or "" for root-level names."""
    if "." not in fqn:
        return ""
    return fqn.rsplit(".", 1)[0]


def iter_elements(
    elements: Iterable[Element], parent: str = ""
) -> Iterator[tuple[str, Element]]:
    """Depth-first, pre-order walk yielding (fqn, element)."""
    for element in elements:
        fqn = join_fqn(parent, element.id)
        yield fqn, element
        yield from iter_elements(element.children, fqn)


def iter_relations(model: Model) -> Iterator[tuple[str, Relation]]:
    """Yield (lexical_context, relation) pairs in resolution order.

    Root relations come first (context ""), then each element's own relations
    before those of its children.
    """
    for rel in model.relations:
        yield "", rel
    for fqn, element in iter_elements(model.elements):
        for rel in element.relations:
            yield fqn, rel


def build_element_index(model: Model) -> dict[str, Element]:
    """Index elements by FQN. On a collision the first element wins."""
    index: dict[str, Element] = {}
    for fqn, element in iter_elements(model.elements):
        index.setdefault(fqn, element)
    return index


def iter_descendants(element: Element, fqn: str) -> Iterator[tuple[str, Element]]:
    yield from iter_elements(element.children, fqn)
