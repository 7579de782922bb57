# archmodel/report.py
from __future__ import annotations

from typing import Any, Optional, Sequence

from .constants import AUTOLAYOUT_DEFAULT
from .model import Model, ViewDefinition
from .resolve import resolve_all_relations
from .styles import compute_styles
from .views import autolayout_direction, compute_view, default_views


def _select_views(
    model: Model, view_names: Optional[Sequence[str]]
) -> list[ViewDefinition]:
    available = list(model.views) or list(default_views(model))
    if not view_names:
        return available

    by_name: dict[str, ViewDefinition] = {}
    for view in available:
        by_name.setdefault(view.name.strip('"'), view)

    selected: list[ViewDefinition] = []
    for name in view_names:
        if name not in by_name:
            raise KeyError(f"No view named {name!r} (available: {', '.join(sorted(by_name))})")
        selected.append(by_name[name])
    return selected


def build_report(
    model: Model, view_names: Optional[Sequence[str]] = None
) -> dict[str, Any]:
    """Resolve relations, views and styles into a plain, YAML-safe mapping.

    Models that declare no views get the default C4 views. Lists and maps are
    sorted so repeated runs produce identical output.
    """
    relations = resolve_all_relations(model)

    views: dict[str, Any] = {}
    for view in _select_views(model, view_names):
        if view.name in views:
            continue
        members = compute_view(model, view, relations=relations)
        views[view.name] = {
            "title": view.title or view.name,
            "scope": str(view.scope) if view.scope is not None else "",
            "autolayout": autolayout_direction(view, AUTOLAYOUT_DEFAULT),
            "elements": sorted(members),
        }

    styles = compute_styles(model)

    return {
        "model": model.name or "",
        "relations": [
            {
                "from": rel.source,
                "to": rel.target,
                "label": rel.label,
                "tags": list(rel.tags),
            }
            for rel in relations
        ],
        "views": views,
        "styles": {fqn: dict(sorted(props.items())) for fqn, props in sorted(styles.items())},
    }
