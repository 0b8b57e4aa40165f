"""End-to-end tests of the command line interface."""

from pathlib import Path

import pytest

from conftest import PluginBuilder
from skyrim_alchemy.__main__ import build_parser, main
from skyrim_alchemy.game_data import load_game_data

pytestmark = pytest.mark.usefixtures("isolated_logging")


@pytest.fixture
def installation(data_dir: Path, tmp_path: Path):
    """A game directory with Skyrim.esm and an active mod; returns (game, local)."""
    PluginBuilder(flags=0x1).add_magic_effect(
        0x100, "AlchRestoreHealth", "Restore Health", base_cost=0.5,
        description="Restore <mag> points of Health.",
    ).add_magic_effect(
        0x101, "AlchDamageHealth", "Damage Health", flags=0x1, base_cost=3.0,
        description="Causes <mag> points of poison damage.",
    ).add_ingredient(
        0x1, "Wheat", "Wheat", [(0x100, 1.0, 0)],
    ).add_ingredient(
        0x2, "MountainFlower01Blue", "Blue Mountain Flower", [(0x100, 1.0, 0)],
    ).add_ingredient(
        0x3, "Nightshade", "Nightshade", [(0x101, 1.0, 0), (0x100, 1.0, 0)],
    ).add_ingredient(
        0x4, "ChaurusEggs", "Chaurus Eggs", [(0x101, 1.0, 0)],
    ).write(data_dir / "Skyrim.esm")

    PluginBuilder(masters=["Skyrim.esm"]).add_ingredient(
        # References a magic effect nobody defines
        0x01000800, "StrangeHerb", "Strange Herb", [(0x00000999, 1.0, 0)],
    ).write(data_dir / "Strange.esp")

    local = tmp_path / "local"
    local.mkdir()
    (local / "plugins.txt").write_text("*Strange.esp\n", encoding="utf-8")
    return data_dir.parent, local


@pytest.fixture
def snapshot(installation, settings_file, tmp_path) -> Path:
    game, local = installation
    path = tmp_path / "out" / "game_data.json"
    code = main([
        "--settings-file", str(settings_file),
        "export-game-data", "--game-path", str(game), "--local-path", str(local), str(path),
    ])
    assert code == 0
    return path


class TestExportGameData:
    """Test the export-game-data command."""

    def test_export(self, snapshot, settings_file, installation) -> None:
        """Test that the snapshot holds the merged, purged game data."""
        game_data = load_game_data(snapshot)
        # Strange Herb is purged, so Strange.esp no longer contributes anything
        assert game_data.load_order.names() == ["Skyrim.esm"]
        assert sorted(ing.display_name for ing in game_data.ingredients.values()) == [
            "Blue Mountain Flower", "Chaurus Eggs", "Nightshade", "Wheat",
        ]
        assert len(game_data.magic_effects) == 2

    def test_remembers_paths(self, snapshot, settings_file, installation) -> None:
        """Test remembers paths."""
        from skyrim_alchemy.settings import AppSettings

        settings = AppSettings(settings_file=settings_file)
        assert settings.paths.game_path == installation[0]
        assert settings.paths.data_file == snapshot.resolve()

    def test_missing_plugins_txt(self, installation, settings_file, tmp_path) -> None:
        """Test missing plugins txt."""
        game, _ = installation
        code = main([
            "--settings-file", str(settings_file),
            "export-game-data", "--game-path", str(game), "--local-path", str(tmp_path / "empty"),
            str(tmp_path / "out.json"),
        ])
        assert code == 1
        assert not (tmp_path / "out.json").exists()


class TestSuggestPotions:
    """Test the suggest-potions command."""

    def test_top_potions(self, snapshot, settings_file, capsys) -> None:
        """Test top potions."""
        code = main([
            "--settings-file", str(settings_file), "suggest-potions", "--limit", "2", str(snapshot),
        ])
        assert code == 0
        assert capsys.readouterr().out == (
            "#1\n"
            "Poison of Damage Health\n"
            "Causes 1 points of poison damage.\n"
            "Value: 3 gold\n"
            "Ingredients:\n"
            "- Chaurus Eggs\n"
            "- Nightshade\n"
            "\n"
            "#2\n"
            "Poison of Damage Health\n"
            "Causes 1 points of poison damage. Restore 1 points of Health.\n"
            "Value: 3 gold\n"
            "Ingredients:\n"
            "- Blue Mountain Flower\n"
            "- Chaurus Eggs\n"
            "- Nightshade\n"
            "\n"
        )

    def test_same_output_with_workers_and_no_cache(self, snapshot, settings_file, capsys) -> None:
        """Test same output with workers and no cache."""
        base = ["--settings-file", str(settings_file), "suggest-potions", "--limit", "10"]
        main(base + ["--workers", "1", "--no-cache", str(snapshot)])
        sequential = capsys.readouterr().out
        main(base + ["--workers", "3", str(snapshot)])
        assert capsys.readouterr().out == sequential

    def test_denylist(self, snapshot, settings_file, tmp_path, capsys) -> None:
        """Test that denied ingredients never appear in the output."""
        denylist = tmp_path / "deny.txt"
        denylist.write_text("# poisons\nChaurus Eggs\n", encoding="utf-8")
        code = main([
            "--settings-file", str(settings_file), "suggest-potions",
            "--ingredients-denylist-path", str(denylist), "--limit", "1", str(snapshot),
        ])
        assert code == 0
        out = capsys.readouterr().out
        assert out.startswith("#1\nPotion of Restore Health\n")
        assert "Chaurus Eggs" not in out

    def test_allowlist(self, snapshot, settings_file, tmp_path, capsys) -> None:
        """Test that only allowed ingredients are combined."""
        allowlist = tmp_path / "allow.txt"
        allowlist.write_text("wheat\nblue mountain flower\n", encoding="utf-8")
        main([
            "--settings-file", str(settings_file), "suggest-potions",
            "--ingredients-allowlist-path", str(allowlist), str(snapshot),
        ])
        out = capsys.readouterr().out
        assert out.count("#") == 1
        assert "- Blue Mountain Flower\n- Wheat\n" in out

    def test_missing_snapshot(self, settings_file, tmp_path, capsys) -> None:
        """Test missing snapshot."""
        code = main([
            "--settings-file", str(settings_file), "suggest-potions", str(tmp_path / "none.json"),
        ])
        assert code == 1
        assert capsys.readouterr().out == ""

    def test_corrupt_snapshot(self, settings_file, tmp_path) -> None:
        """Test corrupt snapshot."""
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        code = main(["--settings-file", str(settings_file), "suggest-potions", str(path)])
        assert code == 1


class TestArguments:
    """Test argument validation."""

    def test_lists_are_mutually_exclusive(self) -> None:
        """Test lists are mutually exclusive."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([
                "suggest-potions", "--ingredients-allowlist-path", "a.txt",
                "--ingredients-denylist-path", "b.txt", "data.json",
            ])
        assert exc_info.value.code == 2

    @pytest.mark.parametrize("value", ["0", "-3", "many"])
    def test_limit_must_be_positive(self, value) -> None:
        """Test limit must be positive."""
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["suggest-potions", "--limit", value, "data.json"])
        assert exc_info.value.code == 2

    def test_command_is_required(self) -> None:
        """Test command is required."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
