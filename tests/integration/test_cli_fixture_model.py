from pathlib import Path

import pytest
import yaml

from archmodel.cli import main

FIXTURE_DIR = Path(__file__).resolve().parents[1] / "fixtures" / "models" / "shop"


def run_cli(*argv: str) -> None:
    main([str(a) for a in argv])


@pytest.mark.integration
def test_shop_model_report(tmp_path, capsys):
    out = tmp_path / "report" / "shop.yaml"
    run_cli("--model", FIXTURE_DIR, "--out", out, "--strict")

    assert capsys.readouterr().err == ""
    report = yaml.safe_load(out.read_text(encoding="utf-8"))

    assert report["model"] == "Shop"
    assert report["relations"] == [
        {"from": "customer", "to": "shop.api", "label": "places orders", "tags": []},
        {"from": "shop.api", "to": "payments", "label": "charges", "tags": []},
        {"from": "shop.api", "to": "shop.db", "label": "reads and writes", "tags": []},
        {
            "from": "shop.api.orders",
            "to": "shop.events",
            "label": "publishes",
            "tags": ["async"],
        },
    ]

    assert list(report["views"]) == ["containers", "api-neighbours", "landscape"]
    assert report["views"]["containers"] == {
        "title": "Shop containers",
        "scope": "shop",
        "autolayout": "LR",
        "elements": ["shop", "shop.api", "shop.api.orders", "shop.db"],
    }
    assert report["views"]["api-neighbours"]["elements"] == [
        "customer",
        "payments",
        "shop.api",
        "shop.db",
    ]
    assert report["views"]["landscape"] == {
        "title": "System landscape",
        "scope": "",
        "autolayout": "TB",
        "elements": ["customer", "payments", "shop"],
    }

    styles = report["styles"]
    assert styles["shop"] == {"border": "thick", "color": "red", "shape": "rectangle"}
    assert styles["payments"] == {"color": "blue", "shape": "rectangle"}
    assert styles["shop.db"] == {"color": "grey", "shape": "cylinder"}
    assert styles["shop.api.orders"] == {"color": "grey", "shape": "rectangle"}
    assert len(styles) == 7


@pytest.mark.integration
def test_view_filter_to_stdout(capsys):
    run_cli("--model", FIXTURE_DIR, "--view", "landscape")

    report = yaml.safe_load(capsys.readouterr().out)
    assert list(report["views"]) == ["landscape"]


@pytest.mark.integration
def test_unknown_view_fails(capsys):
    with pytest.raises(SystemExit) as exc:
        run_cli("--model", FIXTURE_DIR, "--view", "nope")
    assert exc.value.code == 2
    assert "No view named 'nope'" in capsys.readouterr().err


@pytest.mark.integration
def test_model_without_views_gets_default_views(tmp_path, capsys):
    model = tmp_path / "model.yaml"
    model.write_text(
        "elements:\n"
        "  - id: s\n"
        "    kind: system\n"
        "    children:\n"
        "      - {id: web, kind: container}\n",
        encoding="utf-8",
    )
    run_cli("--model", model)

    captured = capsys.readouterr()
    report = yaml.safe_load(captured.out)
    assert list(report["views"]) == ["index", "s", "s.web"]
    assert report["views"]["s"]["elements"] == ["s", "s.web"]
    # s.web is not connected to anything.
    assert "warning: element 's.web' is not connected by any relation" in captured.err


@pytest.mark.integration
def test_strict_fails_on_warnings(tmp_path, capsys):
    model = tmp_path / "model.yaml"
    model.write_text("relations:\n  - {from: a, to: b}\n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        run_cli("--model", model, "--strict")
    assert exc.value.code == 2
    err = capsys.readouterr().err
    assert "warning: relation.from 'a'" in err


@pytest.mark.integration
def test_duplicate_ids_fail_even_without_strict(tmp_path, capsys):
    model = tmp_path / "model.yaml"
    model.write_text(
        "elements:\n  - {id: a, kind: system}\n  - {id: a, kind: system}\n",
        encoding="utf-8",
    )
    with pytest.raises(SystemExit):
        run_cli("--model", model)
    assert "error: duplicate element id 'a'" in capsys.readouterr().err


@pytest.mark.integration
def test_bad_document_is_reported(tmp_path, capsys):
    model = tmp_path / "model.yaml"
    model.write_text("elements:\n  - {id: a, kind: spaceship}\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        run_cli("--model", model)
    assert exc.value.code == 2
    assert "unknown element kind 'spaceship'" in capsys.readouterr().err
