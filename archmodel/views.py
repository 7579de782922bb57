# archmodel/views.py
from __future__ import annotations

from typing import Optional, Sequence

from .constants import AUTOLAYOUT_DIRECTIONS, INDEX_VIEW_NAME
from .model import (
    ElementKind,
    Model,
    QualifiedName,
    SelectorKind,
    ViewAction,
    ViewDefinition,
    ViewExpression,
)
from .model_view import build_element_index, iter_elements
from .patterns import (
    ElementIndex,
    match_pattern,
    parse_pattern,
    select_recursive,
    select_wildcard,
)
from .resolve import ResolvedRelation, resolve_all_relations


class _RelationCache:
    """Resolves the model's relations on first use only."""

    def __init__(self, model: Model, relations: Optional[Sequence[ResolvedRelation]]) -> None:
        self._model = model
        self._relations = relations

    def get(self) -> Sequence[ResolvedRelation]:
        if self._relations is None:
            self._relations = resolve_all_relations(self._model)
        return self._relations


def _select(
    expr: ViewExpression,
    index: ElementIndex,
    scope: str,
    relations: _RelationCache,
) -> set[str]:
    if expr.selector is SelectorKind.WILDCARD:
        return select_wildcard(index, scope)

    if expr.selector is SelectorKind.RECURSIVE:
        return select_recursive(index, scope)

    if expr.selector is SelectorKind.ELEMENTS:
        # Taken as written; no relative resolution against the scope.
        return {str(ref) for ref in expr.elements}

    pattern = parse_pattern(expr.pattern or "")
    if pattern is None:
        # Unsupported syntax selects nothing; validation reports it.
        return set()
    return match_pattern(pattern, index, relations.get(), scope)


def compute_view(
    model: Model,
    view: ViewDefinition,
    *,
    relations: Optional[Sequence[ResolvedRelation]] = None,
) -> set[str]:
    """Evaluate a view's include/exclude expressions into a set of FQNs.

    Expressions are processed in order, accumulating `included` and `excluded`
    separately. Exclusions are subtracted once, after every expression, so an
    exclude also removes elements included by a later expression. Exclusion is
    exact-match: excluding `S.C` leaves `S.C.X` in place.
    """
    index = build_element_index(model)
    scope = str(view.scope) if view.scope is not None else ""
    cache = _RelationCache(model, relations)

    included: set[str] = set()
    excluded: set[str] = set()

    for expr in view.expressions:
        selected = _select(expr, index, scope, cache)
        if expr.action is ViewAction.INCLUDE:
            included |= selected
        else:
            excluded |= selected

    return included - excluded


def compute_all_views(model: Model) -> dict[str, set[str]]:
    """Compute every declared view; the first view wins on a repeated name."""
    relations = resolve_all_relations(model)
    out: dict[str, set[str]] = {}
    for view in model.views:
        if view.name not in out:
            out[view.name] = compute_view(model, view, relations=relations)
    return out


def find_view_by_name(model: Model, name: str) -> Optional[ViewDefinition]:
    for view in model.views:
        if view.name.strip('"') == name:
            return view
    return None


def autolayout_direction(view: Optional[ViewDefinition], default: str) -> str:
    """Return the view's LR/TB autolayout direction, or `default`."""
    if view is None or view.autolayout is None:
        return default
    direction = view.autolayout.strip().upper()
    if direction in AUTOLAYOUT_DIRECTIONS:
        return direction
    return default


def default_views(model: Model) -> tuple[ViewDefinition, ...]:
    """Precomputed C4 views: landscape, one per system, one per container."""
    everything = (ViewExpression.wildcard(),)
    views: list[ViewDefinition] = [
        ViewDefinition(
            name=INDEX_VIEW_NAME,
            expressions=everything,
            title="Landscape",
        )
    ]

    for fqn, element in iter_elements(model.elements):
        if element.kind is ElementKind.SYSTEM:
            title = f"{element.display_title} - Containers"
        elif element.kind is ElementKind.CONTAINER:
            title = f"{element.display_title} - Components"
        else:
            continue
        views.append(
            ViewDefinition(
                name=fqn,
                scope=QualifiedName.parse(fqn),
                expressions=everything,
                title=title,
            )
        )

    return tuple(views)
