"""
Exception types shared across skyrim_alchemy.

Errors raised while reading data files, resolving form ids or loading a
snapshot all derive from `SkyrimAlchemyError` so the CLI can report
them uniformly. Validation findings and crafting failures are not here:
they live next to the code that produces them.
"""


class SkyrimAlchemyError(Exception):
    """Base class for all errors raised by skyrim_alchemy."""
    pass


class FormIdParseError(SkyrimAlchemyError, ValueError):
    """Raised when a textual GlobalFormId cannot be parsed."""

    def __init__(self, text: str, reason: str):
        super().__init__(f"invalid global form id {text!r}: {reason}")
        self.text = text
        self.reason = reason


class FormIdResolutionError(SkyrimAlchemyError):
    """Raised when a plugin-local form id cannot be made global."""
    pass


class UnresolvedMasterReference(FormIdResolutionError):
    """The form id points at a master slot the plugin does not declare."""

    def __init__(self, plugin_name: str, master_slot: int, num_masters: int):
        super().__init__(
            f"plugin {plugin_name!r} references master slot {master_slot:#04x} "
            f"but only declares {num_masters} masters"
        )
        self.plugin_name = plugin_name
        self.master_slot = master_slot
        self.num_masters = num_masters


class SourceNotInLoadOrder(FormIdResolutionError):
    """The owning plugin of a form id is not part of the load order."""

    def __init__(self, source_name: str):
        super().__init__(f"plugin {source_name!r} is not in the load order")
        self.source_name = source_name


class PluginFormatError(SkyrimAlchemyError):
    """Raised when a plugin file does not have the expected layout."""
    pass


class RecordDecodeError(SkyrimAlchemyError):
    """Raised when a single record cannot be decoded."""
    pass


class LoadOrderError(SkyrimAlchemyError):
    """Raised when the load order cannot be determined or is empty."""
    pass


class SnapshotError(SkyrimAlchemyError):
    """Raised when a game data snapshot is missing fields or malformed."""
    pass
