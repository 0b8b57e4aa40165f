"""
Resolution of plugin-local form ids into GlobalFormIds.

The top byte of a raw form id is a slot in the plugin's own master list
(slot == number of masters means the plugin itself); the low 24 bits are
the record id within the owning plugin. Each plugin numbers its masters
from zero, so the owner's name is resolved first and then looked up in
the global load order.
"""

from typing import Sequence

from ..errors import SourceNotInLoadOrder, UnresolvedMasterReference
from ..game_data.load_order import LoadOrder
from ..game_data.models import GlobalFormId

MASTER_SLOT_SHIFT = 24
LOCAL_ID_MASK = 0x00FFFFFF


def split_form_id(raw_form_id: int) -> tuple[int, int]:
    """Split a raw form id into (master slot, local record id)."""
    return raw_form_id >> MASTER_SLOT_SHIFT, raw_form_id & LOCAL_ID_MASK


class FormIdResolver:
    """Callable turning raw form ids of one plugin into GlobalFormIds."""

    def __init__(self, plugin_name: str, masters: Sequence[str], load_order: LoadOrder):
        self.plugin_name = plugin_name
        self.masters = list(masters)
        self.load_order = load_order

    def owner_of(self, raw_form_id: int) -> str:
        """Return the name of the plugin that defines `raw_form_id`.

        Raises:
            UnresolvedMasterReference: if the master slot is past the
                plugin's declared masters
        """
        master_slot, _ = split_form_id(raw_form_id)
        num_masters = len(self.masters)
        if master_slot == num_masters:
            return self.plugin_name
        if master_slot < num_masters:
            return self.masters[master_slot]
        raise UnresolvedMasterReference(self.plugin_name, master_slot, num_masters)

    def __call__(self, raw_form_id: int) -> GlobalFormId:
        """Globalize `raw_form_id`.

        Raises:
            UnresolvedMasterReference: see `owner_of`
            SourceNotInLoadOrder: if the owning plugin is not loaded
        """
        owner = self.owner_of(raw_form_id)
        index = self.load_order.find_index(owner)
        if index is None:
            raise SourceNotInLoadOrder(owner)
        return GlobalFormId(index, raw_form_id & LOCAL_ID_MASK)
