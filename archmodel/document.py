# archmodel/document.py
"""Build the typed model from a loaded YAML document (plain dicts/lists).

Structural problems raise TypeError (wrong container type) or ValueError (bad
value), with the document path of the offending node in the message.
Semantic checks such as duplicate IDs or dangling references belong to
`validate.py`.
"""
from __future__ import annotations

from typing import Any, Optional

from .constants import RECURSIVE_MARKER, WILDCARD_MARKER
from .model import (
    Element,
    ElementKind,
    MetaValue,
    Model,
    QualifiedName,
    Relation,
    StyleRule,
    ViewAction,
    ViewDefinition,
    ViewExpression,
    normalize_tags,
)


def _require_mapping(val: object, *, path: str) -> dict[str, Any]:
    if not isinstance(val, dict):
        raise TypeError(f"Expected mapping at {path}, got: {type(val).__name__}")
    return val


def _require_str(val: object, *, path: str) -> str:
    if not isinstance(val, str) or not val:
        raise TypeError(f"Expected non-empty string at {path}, got: {val!r}")
    return val


def _optional_str(val: object, *, path: str) -> Optional[str]:
    if val is None:
        return None
    if isinstance(val, (int, float, bool)):
        return str(val)
    if not isinstance(val, str):
        raise TypeError(f"Expected string at {path}, got: {type(val).__name__}")
    return val


def _as_list(val: object, *, path: str) -> list[Any]:
    if val is None:
        return []
    if not isinstance(val, list):
        raise TypeError(f"Expected list at {path}, got: {type(val).__name__}")
    return val


def _parse_reference(val: object, *, path: str) -> QualifiedName:
    if isinstance(val, str):
        segments = tuple(s.strip() for s in val.split("."))
    elif isinstance(val, list) and all(isinstance(s, str) for s in val):
        segments = tuple(s.strip() for s in val)
    else:
        raise TypeError(
            f"Expected reference (dotted string or list of strings) at {path}, got: {val!r}"
        )

    if not segments or any(not s for s in segments):
        raise ValueError(f"Empty name segment in reference {val!r} at {path}")
    return QualifiedName(segments)


def _parse_metadata(val: object, *, path: str) -> dict[str, MetaValue]:
    if val is None:
        return {}
    raw = _require_mapping(val, path=path)

    out: dict[str, MetaValue] = {}
    for key, value in raw.items():
        if isinstance(value, list):
            out[str(key)] = tuple(str(v) for v in value if v is not None)
        elif value is None:
            continue
        else:
            out[str(key)] = str(value)
    return out


def _build_relation(item: object, *, path: str) -> Relation:
    rel = _require_mapping(item, path=path)
    return Relation(
        source=_parse_reference(rel.get("from"), path=f"{path}.from"),
        target=_parse_reference(rel.get("to"), path=f"{path}.to"),
        label=_optional_str(rel.get("label"), path=f"{path}.label"),
        tags=normalize_tags(rel.get("tags")),
    )


def _build_element(item: object, *, path: str) -> Element:
    raw = _require_mapping(item, path=path)
    element_id = _require_str(raw.get("id"), path=f"{path}.id")
    kind = _require_str(raw.get("kind"), path=f"{path}.kind")
    try:
        element_kind = ElementKind.parse(kind)
    except ValueError as e:
        raise ValueError(f"{e} at {path}.kind") from e

    children = tuple(
        _build_element(child, path=f"{path}.children[{i}]")
        for i, child in enumerate(_as_list(raw.get("children"), path=f"{path}.children"))
    )
    relations = tuple(
        _build_relation(rel, path=f"{path}.relations[{i}]")
        for i, rel in enumerate(_as_list(raw.get("relations"), path=f"{path}.relations"))
    )

    return Element(
        id=element_id,
        kind=element_kind,
        title=_optional_str(raw.get("title"), path=f"{path}.title") or element_id,
        description=_optional_str(raw.get("description"), path=f"{path}.description"),
        technology=_optional_str(raw.get("technology"), path=f"{path}.technology"),
        metadata=_parse_metadata(raw.get("metadata"), path=f"{path}.metadata"),
        children=children,
        relations=relations,
    )


def _build_selector(val: object, action: ViewAction, *, path: str) -> ViewExpression:
    if isinstance(val, str):
        text = val.strip()
        if text == WILDCARD_MARKER:
            return ViewExpression.wildcard(action)
        if text == RECURSIVE_MARKER:
            return ViewExpression.recursive(action)
        return ViewExpression.of_pattern(text, action)

    if isinstance(val, list):
        refs = [_parse_reference(ref, path=f"{path}[{i}]") for i, ref in enumerate(val)]
        return ViewExpression.of_elements(refs, action)

    if isinstance(val, dict):
        if "pattern" in val:
            pattern = _require_str(val.get("pattern"), path=f"{path}.pattern")
            return ViewExpression.of_pattern(pattern, action)
        if "elements" in val:
            return _build_selector(
                _as_list(val.get("elements"), path=f"{path}.elements"),
                action,
                path=f"{path}.elements",
            )

    raise ValueError(
        f"Unsupported view selector at {path}: expected '*', '**', a pattern "
        f"string, a list of references, or {{pattern: ...}}; got {val!r}"
    )


def _build_expression(item: object, *, path: str) -> ViewExpression:
    raw = _require_mapping(item, path=path)
    actions = [a for a in ViewAction if a.value in raw]
    if len(actions) != 1:
        raise ValueError(
            f"View expression at {path} must have exactly one of 'include' or 'exclude'"
        )
    action = actions[0]
    return _build_selector(raw[action.value], action, path=f"{path}.{action.value}")


def _build_view(item: object, *, path: str) -> ViewDefinition:
    raw = _require_mapping(item, path=path)
    scope_raw = raw.get("scope")
    scope = (
        _parse_reference(scope_raw, path=f"{path}.scope") if scope_raw is not None else None
    )
    expressions = tuple(
        _build_expression(expr, path=f"{path}.expressions[{i}]")
        for i, expr in enumerate(_as_list(raw.get("expressions"), path=f"{path}.expressions"))
    )
    return ViewDefinition(
        name=_require_str(raw.get("name"), path=f"{path}.name"),
        scope=scope,
        expressions=expressions,
        title=_optional_str(raw.get("title"), path=f"{path}.title"),
        autolayout=_optional_str(raw.get("autolayout"), path=f"{path}.autolayout"),
    )


def _build_style(item: object, *, path: str) -> StyleRule:
    raw = _require_mapping(item, path=path)
    props_raw = raw.get("properties")
    props = _require_mapping(props_raw, path=f"{path}.properties") if props_raw is not None else {}
    return StyleRule(
        tag=_require_str(raw.get("tag"), path=f"{path}.tag"),
        properties={str(k): str(v) for k, v in props.items() if v is not None},
    )


def build_model(document: dict[str, Any]) -> Model:
    """Convert a loaded model document into a `Model`."""
    doc = _require_mapping(document, path="model")

    def items(key: str) -> list[Any]:
        return _as_list(doc.get(key), path=key)

    return Model(
        elements=tuple(
            _build_element(e, path=f"elements[{i}]") for i, e in enumerate(items("elements"))
        ),
        relations=tuple(
            _build_relation(r, path=f"relations[{i}]") for i, r in enumerate(items("relations"))
        ),
        views=tuple(_build_view(v, path=f"views[{i}]") for i, v in enumerate(items("views"))),
        styles=tuple(
            _build_style(s, path=f"styles[{i}]") for i, s in enumerate(items("styles"))
        ),
        name=_optional_str(doc.get("name"), path="name"),
    )
