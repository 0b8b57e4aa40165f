"""
Loading game data from the plugins of a Skyrim installation.

`read_load_order` works out which plugins are active and in which order;
`PluginLoader` reads those plugins in parallel using ThreadPoolExecutor
and assembles a GameData from the decoded ingredients and magic effects.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import FormIdResolutionError, LoadOrderError, PluginFormatError, RecordDecodeError
from ..plugins.decoders import DECODED_TYPES, DecodeContext, decode_record
from ..plugins.form_ids import FormIdResolver
from ..plugins.records import Record, iter_records, parse_zstring, read_plugin_header
from ..plugins.strings_table import StringsLookup
from .load_order import LoadOrder
from .models import GlobalFormId, Ingredient, MagicEffect
from .service import GameData

# Always loaded first, in this order, when present in Data/
IMPLICIT_MASTERS = (
    "Skyrim.esm",
    "Update.esm",
    "Dawnguard.esm",
    "HearthFires.esm",
    "Dragonborn.esm",
)
CREATION_CLUB_FILE = "Skyrim.ccc"
PLUGINS_FILE = "plugins.txt"
DATA_DIR = "Data"

logger = logging.getLogger(__name__)


def _list_data_dir(plugins_path: Path) -> Dict[str, Path]:
    """Map lower-cased file names in Data/ to their paths."""
    if not plugins_path.is_dir():
        return {}
    return {entry.name.lower(): entry for entry in plugins_path.iterdir() if entry.is_file()}


def _read_lines(path: Path) -> List[str]:
    with path.open("r", encoding="utf-8", errors="replace") as f:
        return [line.strip() for line in f]


def read_load_order(game_path: str | Path, local_path: str | Path) -> LoadOrder:
    """Determine the active plugins of the installation at `game_path`.

    Order is: the implicit base masters, Creation Club plugins listed in
    Skyrim.ccc, then active (``*``-prefixed) entries of plugins.txt in
    `local_path`. Only plugins present in Data/ are included and
    duplicates are dropped case-insensitively.

    Raises:
        LoadOrderError: if plugins.txt cannot be read or no plugin is found
    """
    game_path = Path(game_path)
    data_files = _list_data_dir(game_path / DATA_DIR)

    names: List[str] = [name for name in IMPLICIT_MASTERS if name.lower() in data_files]

    ccc_file = game_path / CREATION_CLUB_FILE
    if ccc_file.is_file():
        for line in _read_lines(ccc_file):
            if line and line.lower() in data_files:
                names.append(line)
    else:
        logger.debug(f"No {CREATION_CLUB_FILE} found in {game_path}")

    plugins_file = Path(local_path) / PLUGINS_FILE
    try:
        lines = _read_lines(plugins_file)
    except OSError as e:
        raise LoadOrderError(f"cannot read {plugins_file}: {e}") from e

    for line in lines:
        if not line or line.startswith("#"):
            continue
        if not line.startswith("*"):
            # Installed but disabled
            continue
        name = line[1:].strip()
        if name.lower() in data_files:
            names.append(name)
        else:
            logger.warning(f"Active plugin {name} not found in {game_path / DATA_DIR}")

    load_order = LoadOrder(names)
    if load_order.is_empty():
        raise LoadOrderError(f"no active plugins found for {game_path}")
    logger.info(f"Load order has {len(load_order)} plugins")
    logger.debug(f"Load order:\n{load_order}")
    return load_order


@dataclass
class PluginContents:
    """Records decoded from a single plugin."""
    plugin_name: str
    ingredients: List[Ingredient] = field(default_factory=list)
    magic_effects: List[MagicEffect] = field(default_factory=list)
    failures: List[Tuple[Record, Exception]] = field(default_factory=list)


class PluginLoader:
    """Reads the plugins of a load order into a GameData."""

    def __init__(
        self,
        plugins_path: str | Path,
        language: str = "english",
        workers: int = 4,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.plugins_path = Path(plugins_path)
        self.language = language
        self.workers = workers
        self._files: Optional[Dict[str, Path]] = None
        self.logger.debug(f"PluginLoader initialized for {self.plugins_path}")

    def find_plugin(self, plugin_name: str) -> Optional[Path]:
        """Locate a plugin file in the data directory, ignoring case."""
        if self._files is None:
            self._files = _list_data_dir(self.plugins_path)
        return self._files.get(plugin_name.lower())

    def read_plugin(self, plugin_name: str, load_order: LoadOrder) -> PluginContents:
        """Decode the ingredients and magic effects of one plugin.

        Records that fail to decode are collected in `failures` rather
        than aborting the plugin.

        Raises:
            PluginFormatError: if the file is not a readable plugin
        """
        contents = PluginContents(plugin_name)
        path = self.find_plugin(plugin_name)
        if path is None:
            self.logger.warning(f"Plugin {plugin_name} not found in {self.plugins_path}")
            return contents

        try:
            buffer = path.read_bytes()
        except OSError as e:
            self.logger.warning(f"Could not read plugin {plugin_name}: {e}")
            return contents
        header, offset = read_plugin_header(buffer)

        resolve_lstring = parse_zstring
        if header.is_localized:
            strings = StringsLookup.for_plugin(plugin_name, self.plugins_path, self.language)
            resolve_lstring = strings.resolve
        context = DecodeContext(
            globalize=FormIdResolver(plugin_name, header.masters, load_order),
            resolve_lstring=resolve_lstring,
        )

        for record in iter_records(buffer, DECODED_TYPES, offset):
            try:
                decoded = decode_record(record, context)
            except (RecordDecodeError, FormIdResolutionError) as e:
                contents.failures.append((record, e))
                continue
            if isinstance(decoded, Ingredient):
                contents.ingredients.append(decoded)
            elif isinstance(decoded, MagicEffect):
                contents.magic_effects.append(decoded)
        return contents

    def _read_plugin_logged(self, plugin_name: str, load_order: LoadOrder) -> PluginContents:
        try:
            contents = self.read_plugin(plugin_name, load_order)
        except PluginFormatError as e:
            self.logger.error(f"Error reading plugin {plugin_name}: {e}")
            return PluginContents(plugin_name)

        self.logger.debug(
            f"{plugin_name}: {len(contents.ingredients)} ingredients, "
            f"{len(contents.magic_effects)} magic effects"
        )
        if contents.failures:
            self.logger.warning(
                f"{plugin_name}: failed to decode {len(contents.failures)} records"
            )
            for record, error in contents.failures:
                self.logger.debug(f"  {record.type} {record.form_id:08x}: {error}")
        return contents

    def read_all(self, load_order: LoadOrder) -> List[PluginContents]:
        """Read every plugin of `load_order`, returned in load order."""
        names: Iterable[str] = load_order.names()
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            # map() yields results in submission order
            return list(
                executor.map(lambda name: self._read_plugin_logged(name, load_order), names)
            )

    def load(self, load_order: LoadOrder) -> GameData:
        """Load all plugins and build GameData.

        Plugins later in the load order override records of earlier ones
        with the same GlobalFormId. The returned GameData is compacted but
        not yet purged.
        """
        ingredients: Dict[GlobalFormId, Ingredient] = {}
        magic_effects: Dict[GlobalFormId, MagicEffect] = {}

        for contents in self.read_all(load_order):
            for ingredient in contents.ingredients:
                ingredients[ingredient.global_id] = ingredient
            for magic_effect in contents.magic_effects:
                magic_effects[magic_effect.global_id] = magic_effect

        self.logger.info(
            f"Loaded {len(ingredients)} ingredients and {len(magic_effects)} magic effects "
            f"from {len(load_order)} plugins"
        )
        return GameData.from_decoded(load_order, ingredients, magic_effects)
