"""Tests for reading and writing game data snapshots."""

import orjson
import pytest

from skyrim_alchemy.errors import SnapshotError
from skyrim_alchemy.game_data import load_game_data, save_game_data


class TestSnapshotFiles:
    """Test snapshot file I/O."""

    def test_save_and_load(self, tmp_path, sample_game_data) -> None:
        """Test save and load."""
        path = save_game_data(sample_game_data, tmp_path / "out" / "game_data.json")
        assert path.exists()

        restored = load_game_data(path)
        assert restored.load_order == sample_game_data.load_order
        assert set(restored.ingredients) == set(sample_game_data.ingredients)
        assert set(restored.magic_effects) == set(sample_game_data.magic_effects)

    def test_written_document_layout(self, tmp_path, sample_game_data) -> None:
        """Test written document layout."""
        path = save_game_data(sample_game_data, tmp_path / "game_data.json")
        document = orjson.loads(path.read_bytes())
        assert document["load_order"] == ["Skyrim.esm"]
        ids = {ing["global_id"] for ing in document["ingredients"]}
        assert "0000:000001" in ids

    def test_invalid_json(self, tmp_path) -> None:
        """Test invalid json."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotError):
            load_game_data(path)

    def test_missing_fields(self, tmp_path) -> None:
        """Test missing fields."""
        path = tmp_path / "partial.json"
        path.write_bytes(orjson.dumps({"load_order": [], "ingredients": []}))
        with pytest.raises(SnapshotError, match="magic_effects"):
            load_game_data(path)

    def test_missing_file(self, tmp_path) -> None:
        """Test missing file."""
        with pytest.raises(FileNotFoundError):
            load_game_data(tmp_path / "nope.json")
