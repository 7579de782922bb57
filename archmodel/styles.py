# archmodel/styles.py
from __future__ import annotations

from typing import Iterable

from .model import Model, StyleRule
from .tags import TagIndex, build_tag_index

StyleMap = dict[str, dict[str, str]]


def compute_styles_from_index(tag_index: TagIndex, rules: Iterable[StyleRule]) -> StyleMap:
    """Merge tag-keyed style rules into per-element property maps.

    Rules apply strictly in declaration order and overwrite earlier values for
    the same key, so the last matching rule wins. Rules whose tag matches no
    element are skipped.
    """
    styles: StyleMap = {}
    for rule in rules:
        fqns = tag_index.get(rule.tag.strip('"'))
        if not fqns:
            continue

        props = {str(k): str(v).strip('"') for k, v in rule.properties.items()}
        for fqn in sorted(fqns):
            styles.setdefault(fqn, {}).update(props)

    return styles


def compute_styles(model: Model, rules: Iterable[StyleRule] | None = None) -> StyleMap:
    """Resolve style rules (the model's own unless given) against its tags."""
    if rules is None:
        rules = model.styles
    return compute_styles_from_index(build_tag_index(model), rules)
