"""Command verbs and high-level command builders.

Every command is a single text line: a verb, then space-separated argument
tokens, terminated by CR-LF.  Free-text arguments go through
:func:`~.tokens.encode_token` so names with spaces or quotes survive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .tokens import encode_token

LINE_END = "\r\n"


class Verb(str, Enum):
    """Command verbs understood by the device."""

    DUMP_CONFIG = "Dump Config"
    DUMP_PROGRAM = "Dump Program"
    LIST_PRESETS = "List Presets"
    SET_PARAM = "SetParam"
    SET_CHAIN = "SetChain"
    RELEASE_PLUGIN = "ReleasePlugin"
    LOAD_PRESET = "LoadPreset"
    SAVE_PRESET = "SavePreset"
    DELETE_PRESET = "DeletePreset"


@dataclass
class Command:
    """A verb plus its ordered, already-encoded argument tokens."""

    verb: str
    args: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.verb, Verb):
            self.verb = self.verb.value

    def to_line(self) -> str:
        """Serialize to one CR-LF terminated line."""
        return " ".join([self.verb, *self.args]) + LINE_END


def normalize_line(text: str) -> str:
    """Trim a raw command and make sure it ends in exactly one CR-LF."""
    return text.strip() + LINE_END


def build_command(verb: Verb | str, *args: str) -> str:
    """Build a command line from a verb and pre-encoded tokens."""
    return Command(verb, list(args)).to_line()


def build_dump_config() -> str:
    """Build the ``Dump Config`` request."""
    return build_command(Verb.DUMP_CONFIG)


def build_dump_program() -> str:
    """Build the ``Dump Program`` request."""
    return build_command(Verb.DUMP_PROGRAM)


def build_list_presets() -> str:
    return build_command(Verb.LIST_PRESETS)


def build_set_param(plugin: str, param: str, value: str) -> str:
    """Build a SetParam command.

    Only the value is quoted; plugin and parameter names are identifiers
    and are sent as-is.

    Args:
        plugin: Plugin instance name, e.g. ``NoiseGate_2``.
        param: Parameter name, e.g. ``Threshold``.
        value: New value.  Quoted if it contains spaces, tabs or quotes.
    """
    if not plugin or not param:
        raise ValueError("plugin and param are required")
    return build_command(Verb.SET_PARAM, plugin, param, encode_token(value))


def build_set_chain(chain: str, plugins: list[str]) -> str:
    """Build a SetChain command assigning an ordered plugin list to a chain."""
    if not chain:
        raise ValueError("chain name is required")
    return build_command(Verb.SET_CHAIN, chain, *plugins)


def build_release_plugin(plugin: str) -> str:
    if not plugin:
        raise ValueError("plugin name is required")
    return build_command(Verb.RELEASE_PLUGIN, plugin)


def build_load_preset(name: str) -> str:
    """Build a LoadPreset command for a named preset."""
    return build_command(Verb.LOAD_PRESET, encode_token(name))


def build_save_preset(name: str) -> str:
    """Build a SavePreset command; the current program is stored as *name*."""
    return build_command(Verb.SAVE_PRESET, encode_token(name))


def build_delete_preset(name: str) -> str:
    return build_command(Verb.DELETE_PRESET, encode_token(name))
