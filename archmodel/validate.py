# archmodel/validate.py
from __future__ import annotations

import difflib
import re
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence, Tuple

from .model import Element, Model, SelectorKind
from .model_view import iter_elements, iter_relations, join_fqn
from .patterns import parse_pattern
from .resolve import SymbolTable
from .tags import build_tag_index

Severity = Literal["error", "warning"]

_INVALID_ID_RE = re.compile(r"[.\s]")


@dataclass(frozen=True)
class ValidationIssue:
    """Structured validation issue for callers that want more than strings."""

    severity: Severity
    code: str
    message: str
    path: str = ""
    hint: Optional[str] = None


@dataclass(frozen=True)
class ValidateConfig:
    """Validation configuration.

    `ignore` drops issues by code; `escalate` turns the listed warning codes
    into errors (e.g. to make dangling references fatal in CI).
    """

    ignore: set[str] = field(default_factory=set)
    escalate: set[str] = field(default_factory=set)

    check_orphans: bool = True


def _suggest(name: str, known: Sequence[str]) -> Optional[str]:
    close = difflib.get_close_matches(name, known, n=3, cutoff=0.6)
    if not close:
        return None
    return "Did you mean: " + ", ".join(repr(c) for c in close)


def validate_model_issues(
    model: Model, cfg: Optional[ValidateConfig] = None
) -> list[ValidationIssue]:
    """Return structured validation issues.

    This is the prerequisite pass for the resolution core, which never raises:
    duplicate sibling IDs, dangling references and unmatched view selectors
    are reported here instead.
    """

    cfg = cfg or ValidateConfig()
    issues: list[ValidationIssue] = []

    def emit(
        severity: Severity,
        code: str,
        message: str,
        path: str = "",
        hint: Optional[str] = None,
    ) -> None:
        if code in cfg.ignore:
            return
        final_severity: Severity = (
            "error" if (severity == "warning" and code in cfg.escalate) else severity
        )
        issues.append(
            ValidationIssue(
                severity=final_severity,
                code=code,
                message=message,
                path=path,
                hint=hint,
            )
        )

    def check_siblings(elements: Sequence[Element], parent: str) -> None:
        seen: set[str] = set()
        for element in elements:
            fqn = join_fqn(parent, element.id)
            if not element.id or _INVALID_ID_RE.search(element.id):
                emit(
                    "error",
                    "E_ELEMENT_ID_INVALID",
                    f"element id {element.id!r} must be non-empty and contain no "
                    "'.' or whitespace",
                    path=fqn,
                )
            if element.id in seen:
                emit(
                    "error",
                    "E_ELEMENT_DUPLICATE_ID",
                    f"duplicate element id {element.id!r} under "
                    f"{parent or 'the model root'} (FQN {fqn!r} is not unique)",
                    path=fqn,
                )
            seen.add(element.id)
            check_siblings(element.children, fqn)

    check_siblings(model.elements, "")

    symbols = SymbolTable.from_model(model)
    known = sorted({fqn for fqn, _ in iter_elements(model.elements)})

    # Relations: dangling endpoints and textual/lexical disagreements.
    used: set[str] = set()
    per_context: dict[str, int] = {}
    for context, rel in iter_relations(model):
        i = per_context.get(context, 0)
        per_context[context] = i + 1
        where = context or "<root>"
        for end, ref in (("from", rel.source), ("to", rel.target)):
            resolved = symbols.resolve(ref, context)
            used.add(resolved)
            if resolved not in symbols:
                emit(
                    "warning",
                    f"W_REL_{end.upper()}_UNKNOWN_ELEMENT",
                    f"relation.{end} {str(ref)!r} in {where} resolves to unknown "
                    f"element {resolved!r}",
                    path=f"{where}/relations/{i}/{end}",
                    hint=_suggest(resolved, known),
                )
            elif context and symbols.is_ambiguous(ref, context):
                emit(
                    "warning",
                    "W_REL_REF_AMBIGUOUS",
                    f"relation.{end} {str(ref)!r} in {where} resolves to {resolved!r} "
                    "by lexical scope but reads as a different name textually",
                    path=f"{where}/relations/{i}/{end}",
                    hint="Write the fully-qualified name to make the target explicit",
                )

    view_names: set[str] = set()
    for vi, view in enumerate(model.views):
        if view.name in view_names:
            emit(
                "warning",
                "W_VIEW_DUPLICATE_NAME",
                f"duplicate view name {view.name!r}; only the first is found by name",
                path=f"/views/{vi}/name",
            )
        view_names.add(view.name)

        if view.scope is not None and str(view.scope) not in symbols:
            emit(
                "warning",
                "W_VIEW_SCOPE_UNKNOWN",
                f"view {view.name!r} scope {str(view.scope)!r} matches no element; "
                "scope-relative selectors will be empty",
                path=f"/views/{vi}/scope",
                hint=_suggest(str(view.scope), known),
            )

        for ei, expr in enumerate(view.expressions):
            if expr.selector is SelectorKind.ELEMENTS:
                for ref in expr.elements:
                    if str(ref) not in symbols:
                        emit(
                            "warning",
                            "W_VIEW_ELEMENT_UNKNOWN",
                            f"view {view.name!r} {expr.action.value} references "
                            f"unknown element {str(ref)!r}",
                            path=f"/views/{vi}/expressions/{ei}",
                            hint=_suggest(str(ref), known),
                        )
            elif expr.selector is SelectorKind.PATTERN:
                if parse_pattern(expr.pattern or "") is None:
                    emit(
                        "warning",
                        "W_VIEW_PATTERN_UNSUPPORTED",
                        f"view {view.name!r} pattern {expr.pattern!r} is not "
                        "supported and selects nothing",
                        path=f"/views/{vi}/expressions/{ei}",
                        hint="Supported: X, X.*, X.**, X ->, -> X, -> X ->, X -> Y",
                    )

    tag_index = build_tag_index(model)
    for si, rule in enumerate(model.styles):
        if not tag_index.get(rule.tag.strip('"')):
            emit(
                "warning",
                "W_STYLE_TAG_UNKNOWN",
                f"style tag {rule.tag!r} matches no element",
                path=f"/styles/{si}/tag",
            )

    if cfg.check_orphans:
        # A relation touching a descendant also counts for its ancestors.
        touched: set[str] = set()
        for fqn in used:
            parts = fqn.split(".")
            for n in range(1, len(parts) + 1):
                touched.add(".".join(parts[:n]))

        for fqn, element in iter_elements(model.elements):
            if element.children or fqn in touched:
                continue
            emit(
                "warning",
                "W_ELEMENT_ORPHAN",
                f"element {fqn!r} is not connected by any relation",
                path=fqn,
            )

    return issues


def validate_model(model: Model) -> Tuple[list[str], list[str]]:
    """Run validation and split messages into (errors, warnings)."""
    issues = validate_model_issues(model)
    errors = [iss.message for iss in issues if iss.severity == "error"]
    warnings = [iss.message for iss in issues if iss.severity == "warning"]
    return errors, warnings
