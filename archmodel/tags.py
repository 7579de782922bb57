# archmodel/tags.py
from __future__ import annotations

from .constants import UNIVERSAL_TAG
from .model import Element, Model
from .model_view import iter_elements

TagIndex = dict[str, set[str]]


def element_tags(element: Element) -> tuple[str, ...]:
    """All tags an element carries: universal, kind, then explicit tags."""
    tags = [UNIVERSAL_TAG, element.kind.tag]
    for tag in element.explicit_tags:
        if tag not in tags:
            tags.append(tag)
    return tuple(tags)


def build_tag_index(model: Model) -> TagIndex:
    """Map every tag to the set of element FQNs carrying it."""
    index: TagIndex = {}
    for fqn, element in iter_elements(model.elements):
        for tag in element_tags(element):
            index.setdefault(tag, set()).add(fqn)
    return index
