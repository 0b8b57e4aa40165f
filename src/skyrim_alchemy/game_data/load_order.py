"""
Load order registry.

The load order assigns every plugin a small integer index. That index is
the `source_index` half of every GlobalFormId, so the order is fixed once
and only ever changes through `drain_unused`, which hands back the
old -> new index table callers must apply to ids they already minted.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)


def _fold(name: str) -> str:
    """ASCII-only case fold used for plugin name comparisons."""
    return "".join(c.lower() if c.isascii() else c for c in name)


class LoadOrder:
    """Ordered, deduplicated list of plugin names.

    Lookups ignore ASCII case; stored names keep the case they were
    given with. Duplicate names (ignoring case) keep their first position.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: List[str] = []
        self._index: Dict[str, int] = {}
        for name in names:
            key = _fold(name)
            if key in self._index:
                logger.debug(f"Ignoring duplicate load order entry: {name}")
                continue
            self._index[key] = len(self._names)
            self._names.append(name)

    def find_index(self, name: str) -> Optional[int]:
        """Return the index of `name` (case-insensitive), or None."""
        return self._index.get(_fold(name))

    def get(self, index: int) -> Optional[str]:
        """Return the plugin name at `index`, or None if out of range."""
        if 0 <= index < len(self._names):
            return self._names[index]
        return None

    def is_empty(self) -> bool:
        return not self._names

    def names(self) -> List[str]:
        """Return a copy of the plugin names in order."""
        return self._names.copy()

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.copy())

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find_index(name) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LoadOrder):
            return NotImplemented
        return self._names == other._names

    def __repr__(self) -> str:
        return f"LoadOrder({self._names!r})"

    def __str__(self) -> str:
        return "\n".join(f"{index:04}: {name}" for index, name in enumerate(self._names))

    def drain_unused(self, used_indices: Iterable[int]) -> Optional[Dict[int, int]]:
        """Remove every entry whose index is not in `used_indices`.

        Args:
            used_indices: Indices referenced by live data (any order, may repeat)

        Returns:
            None if nothing was removed. Otherwise a mapping from every
            surviving old index to its new index; removed indices are absent.

        Raises:
            IndexError: if a used index does not exist in the load order
        """
        used = sorted(set(used_indices))
        for index in used:
            if self.get(index) is None:
                raise IndexError(f"load order index {index} is out of range")

        if len(used) == len(self._names):
            return None

        survivors = [self._names[index] for index in used]
        num_removed = len(self._names) - len(survivors)

        self._names = survivors
        self._index = {_fold(name): index for index, name in enumerate(survivors)}

        logger.debug(f"Removed {num_removed} unused entries from load order")
        return {
            old_index: self._index[_fold(name)]
            for old_index, name in zip(used, survivors)
        }
