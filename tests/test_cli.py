import json
from pathlib import Path

import pytest

import main

EXAMPLE_TEMPLATE = str(Path(__file__).resolve().parent.parent / "examples" / "basic_rpg.json")


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(main, "setup_logging", lambda: None)
    monkeypatch.setattr(main, "load_dotenv", lambda: None)


def test_parse_stat_overrides():
    assert main.parse_stat_overrides(["strength=14", "cursed=true", "title=Sir"]) == {
        "strength": 14,
        "cursed": True,
        "title": "Sir",
    }
    with pytest.raises(ValueError):
        main.parse_stat_overrides(["strength"])


def test_validate_command(capsys):
    assert main.main(["validate", EXAMPLE_TEMPLATE]) == 0
    assert json.loads(capsys.readouterr().out)["valid"] is True


def test_validate_command_reports_errors(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"version": "one", "stats": [], "checks": [], "formulas": []}))

    assert main.main(["validate", str(path)]) == 1
    output = json.loads(capsys.readouterr().out)
    assert output["errors"][0]["code"] == "INVALID_VERSION"


def test_check_command(capsys):
    assert main.main(["check", EXAMPLE_TEMPLATE, "attack"]) == 0

    result = json.loads(capsys.readouterr().out)
    assert result["roll"] == 13
    assert result["total"] == 15
    assert result["success"] is True
    assert [m["applied"] for m in result["modifiers"]] == [True, False]


def test_check_command_with_overrides(capsys):
    assert main.main(["check", EXAMPLE_TEMPLATE, "attack", "--stat", "cursed=true"]) == 0

    result = json.loads(capsys.readouterr().out)
    assert result["total"] == 7.5
    assert result["success"] is False


def test_formula_command(capsys):
    assert main.main(["formula", EXAMPLE_TEMPLATE, "damage", "--stat", "strength=7"]) == 0

    result = json.loads(capsys.readouterr().out)
    assert result["result"] == 14
    assert result["formulaId"] == "damage"


def test_unknown_check_exits_with_error():
    assert main.main(["check", EXAMPLE_TEMPLATE, "fly"]) == 1


def test_evaluation_failure_exit_code(capsys):
    assert main.main(["formula", EXAMPLE_TEMPLATE, "damage", "--stat", "strength=\"weak\""]) == 2
    assert "Failed to evaluate formula damage" in capsys.readouterr().err
