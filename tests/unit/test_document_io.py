from pathlib import Path

import pytest

from archmodel.document import build_model
from archmodel.io import _sanitize_yaml_for_pyyaml, load_document, load_model
from archmodel.model import ElementKind, QualifiedName, SelectorKind, ViewAction


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_build_model_elements_and_defaults():
    model = build_model(
        {
            "name": "Demo",
            "elements": [
                {
                    "id": "shop",
                    "kind": "System",
                    "description": "Web shop",
                    "metadata": {"tags": ["a", "b"], "tier": 1, "empty": None},
                    "children": [{"id": "db", "kind": "database", "technology": "Postgres"}],
                }
            ],
        }
    )
    (shop,) = model.elements
    assert model.name == "Demo"
    assert shop.kind is ElementKind.SYSTEM
    assert shop.title == "shop"
    assert shop.metadata == {"tags": ("a", "b"), "tier": "1"}
    assert shop.explicit_tags == ("a", "b")
    assert shop.children[0].kind is ElementKind.DATASTORE
    assert shop.children[0].technology == "Postgres"


def test_build_model_references_accept_dotted_or_list():
    model = build_model({"relations": [{"from": "a.b", "to": ["c", "d"], "label": "x"}]})
    (rel,) = model.relations
    assert rel.source == QualifiedName.of("a", "b")
    assert rel.target == QualifiedName.of("c", "d")


def test_build_model_view_expressions():
    model = build_model(
        {
            "views": [
                {
                    "name": "v",
                    "scope": "shop",
                    "autolayout": "LR",
                    "expressions": [
                        {"include": "*"},
                        {"include": "**"},
                        {"include": ["shop.api", "shop.db"]},
                        {"include": {"pattern": "-> shop ->"}},
                        {"include": "shop.api ->"},
                        {"exclude": {"elements": ["shop.db"]}},
                    ],
                }
            ]
        }
    )
    (view,) = model.views
    assert view.scope == QualifiedName.of("shop")
    kinds = [(e.action, e.selector) for e in view.expressions]
    assert kinds == [
        (ViewAction.INCLUDE, SelectorKind.WILDCARD),
        (ViewAction.INCLUDE, SelectorKind.RECURSIVE),
        (ViewAction.INCLUDE, SelectorKind.ELEMENTS),
        (ViewAction.INCLUDE, SelectorKind.PATTERN),
        (ViewAction.INCLUDE, SelectorKind.PATTERN),
        (ViewAction.EXCLUDE, SelectorKind.ELEMENTS),
    ]
    assert view.expressions[3].pattern == "-> shop ->"
    assert [str(r) for r in view.expressions[5].elements] == ["shop.db"]


@pytest.mark.parametrize(
    "doc, exc, where",
    [
        ({"elements": [{"id": "x", "kind": "spaceship"}]}, ValueError, "elements[0].kind"),
        ({"elements": [{"kind": "system"}]}, TypeError, "elements[0].id"),
        ({"elements": {"id": "x"}}, TypeError, "elements"),
        ({"relations": [{"from": "a..b", "to": "c"}]}, ValueError, "relations[0].from"),
        ({"views": [{"name": "v", "expressions": [{"include": 3}]}]}, ValueError, "include"),
        (
            {"views": [{"name": "v", "expressions": [{"include": "*", "exclude": ["a"]}]}]},
            ValueError,
            "views[0].expressions[0]",
        ),
        ({"styles": [{"tag": "t", "properties": ["x"]}]}, TypeError, "styles[0].properties"),
    ],
)
def test_build_model_reports_document_path(doc, exc, where):
    with pytest.raises(exc) as err:
        build_model(doc)
    assert where in str(err.value)


def test_load_split_directory_merges_in_order(tmp_path):
    write(tmp_path / "00_model.yaml", "name: Split\n")
    write(
        tmp_path / "10_elements.yaml",
        "elements:\n  - {id: a, kind: system}\n  - {id: b, kind: system}\n",
    )
    write(tmp_path / "20_relations.yaml", "relations:\n  - {from: a, to: b, label: uses}\n")
    write(tmp_path / "30_views.yaml", "views:\n  - {name: first, expressions: []}\n")
    write(tmp_path / "views" / "b.yaml", "views:\n  - {name: third, expressions: []}\n")
    write(tmp_path / "views" / "a.yaml", "views:\n  - {name: second, expressions: []}\n")

    doc = load_document(tmp_path)
    assert doc["name"] == "Split"
    assert [v["name"] for v in doc["views"]] == ["first", "second", "third"]

    model = load_model(tmp_path / "10_elements.yaml")
    assert [e.id for e in model.elements] == ["a", "b"]
    assert len(model.relations) == 1


def test_load_single_file(tmp_path):
    path = write(
        tmp_path / "model.yaml",
        "elements:\n  - id: a\n    kind: person\n    title: Alice\n",
    )
    model = load_model(path)
    assert model.elements[0].title == "Alice"


def test_load_empty_file_gives_empty_model(tmp_path):
    model = load_model(write(tmp_path / "empty.yaml", ""))
    assert model.elements == ()


def test_merge_conflict_is_an_error(tmp_path):
    write(tmp_path / "00_model.yaml", "name: One\n")
    write(tmp_path / "40_styles.yaml", "name: Two\n")
    with pytest.raises(ValueError, match="merge conflict"):
        load_document(tmp_path)


def test_top_level_must_be_mapping(tmp_path):
    with pytest.raises(TypeError, match="must be a mapping"):
        load_document(write(tmp_path / "list.yaml", "- a\n- b\n"))


def test_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_document(tmp_path / "nope.yaml")


def test_unquoted_colon_values_are_sanitized(tmp_path, capsys):
    path = write(
        tmp_path / "model.yaml",
        "elements:\n"
        "  - id: api\n"
        "    kind: container\n"
        "    description: Edge: public API  # note\n",
    )
    model = load_model(path)
    assert model.elements[0].description == "Edge: public API"
    err = capsys.readouterr().err
    assert "warning: parsed" in err
    assert ":4:" in err


def test_sanitize_leaves_quoted_and_plain_lines():
    raw = 'title: "A: b"\ndescription: plain text\nkind: system\n'
    sanitized, changes = _sanitize_yaml_for_pyyaml(raw)
    assert sanitized == raw
    assert changes == []
