"""Tests for resolving plugin-local form ids."""

import pytest

from skyrim_alchemy.errors import SourceNotInLoadOrder, UnresolvedMasterReference
from skyrim_alchemy.game_data import GlobalFormId, LoadOrder
from skyrim_alchemy.plugins.form_ids import FormIdResolver, split_form_id


@pytest.fixture
def load_order() -> LoadOrder:
    return LoadOrder(["Skyrim.esm", "Update.esm", "Dawnguard.esm", "MyMod.esp"])


class TestFormIdResolver:
    """Test the master slot -> load order index translation."""

    def test_split(self) -> None:
        """Test splitting a form id into master slot and local id."""
        assert split_form_id(0x02ABCDEF) == (0x02, 0xABCDEF)

    def test_master_slots_are_local_to_the_plugin(self, load_order) -> None:
        """Test master slots are local to the plugin."""
        # MyMod.esp lists Skyrim.esm and Dawnguard.esm, skipping Update.esm
        resolver = FormIdResolver("MyMod.esp", ["Skyrim.esm", "Dawnguard.esm"], load_order)
        assert resolver(0x00012345) == GlobalFormId(0, 0x12345)
        assert resolver(0x01000ABC) == GlobalFormId(2, 0xABC)

    def test_slot_equal_to_master_count_is_the_plugin_itself(self, load_order) -> None:
        """Test slot equal to master count is the plugin itself."""
        resolver = FormIdResolver("MyMod.esp", ["Skyrim.esm", "Dawnguard.esm"], load_order)
        assert resolver.owner_of(0x02000800) == "MyMod.esp"
        assert resolver(0x02000800) == GlobalFormId(3, 0x800)

    def test_master_name_case_does_not_matter(self, load_order) -> None:
        """Test master name case does not matter."""
        resolver = FormIdResolver("MyMod.esp", ["SKYRIM.ESM"], load_order)
        assert resolver(0x00000007) == GlobalFormId(0, 7)

    def test_slot_past_masters(self, load_order) -> None:
        """Test slot past masters."""
        resolver = FormIdResolver("MyMod.esp", ["Skyrim.esm"], load_order)
        with pytest.raises(UnresolvedMasterReference) as exc_info:
            resolver(0x05000001)
        assert exc_info.value.master_slot == 5
        assert exc_info.value.num_masters == 1

    def test_owner_not_in_load_order(self, load_order) -> None:
        """Test owner not in load order."""
        resolver = FormIdResolver("MyMod.esp", ["Missing.esm"], load_order)
        with pytest.raises(SourceNotInLoadOrder) as exc_info:
            resolver(0x00000001)
        assert exc_info.value.source_name == "Missing.esm"

    def test_master_plugin_without_masters(self, load_order) -> None:
        """Test master plugin without masters."""
        resolver = FormIdResolver("Skyrim.esm", [], load_order)
        assert resolver(0x00000F00) == GlobalFormId(0, 0xF00)
