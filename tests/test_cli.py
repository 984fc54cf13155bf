import json
from pathlib import Path

from click.testing import CliRunner

from catan_game.cli import cli


def test_board_prints_default_layout() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["board"])
    assert result.exit_code == 0, result.output
    assert "19 tiles, 54 settlement spots" in result.output
    assert "default board" in result.output


def test_board_with_seed() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["board", "--seed", "7"])
    assert result.exit_code == 0, result.output
    assert "seed=7" in result.output


def test_board_rejects_out_of_range_seed() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["board", "--seed", "-3"])
    assert result.exit_code == 2


def test_demo_saves_snapshot_and_show_reads_it(tmp_path: Path) -> None:
    runner = CliRunner()
    target = tmp_path / "game.json"
    result = runner.invoke(
        cli,
        ["demo", "--players", "Alice,Bob,Carol", "--seed", "5", "--rolls", "4", "--save", str(target)],
    )
    assert result.exit_code == 0, result.output
    assert "Saved." in result.output

    snapshot = json.loads(target.read_text(encoding="utf-8"))
    assert snapshot["phase"] == "awaiting_roll"
    assert snapshot["turn"] == 5
    assert [player["name"] for player in snapshot["players"]] == ["Alice", "Bob", "Carol"]

    shown = runner.invoke(cli, ["show", str(target)])
    assert shown.exit_code == 0, shown.output
    assert "Bank" in shown.output


def test_demo_is_reproducible(tmp_path: Path) -> None:
    runner = CliRunner()
    first = tmp_path / "first.json"
    second = tmp_path / "second.json"
    for target in (first, second):
        result = runner.invoke(cli, ["demo", "--seed", "9", "--rolls", "6", "--save", str(target)])
        assert result.exit_code == 0, result.output
    assert first.read_text(encoding="utf-8") == second.read_text(encoding="utf-8")


def test_demo_needs_two_players() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["demo", "--players", "Solo"])
    assert result.exit_code == 2
    assert "At least two players" in result.output


def test_demo_quick_variant() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["demo", "--variant", "quick", "--rolls", "3", "--dice-seed", "1"])
    assert result.exit_code == 0, result.output
