"""Parser for ``Dump Config`` responses.

The dump is line oriented and tokenized with :func:`~.tokens.decode_line`::

    PluginConfig Boost BackgroundColor #ff0000 IsUserSelectable 1 Description "Clean boost"
    ParameterConfig Boost Gain Type Knob MinValue 0 MaxValue 10 DefaultValue 5
    ParameterFileTree NAM Model NAM "Fender Twin.nam" "Plexi.nam"
    EndConfig
    Ok

Device output is not always consistent: some ``ParameterConfig`` lines omit
the plugin name.  Those are attached to the plugin most recently named by a
``PluginConfig`` or ``ParameterFileTree`` line.  Malformed lines are skipped;
:func:`parse_config` never fails on a single bad line.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from ..models.catalog import ConfigCatalog, FileTreeDef, ParamDef, PluginDef
from .framing import OK
from .tokens import decode_line

logger = logging.getLogger(__name__)

PLUGIN_CONFIG = "PluginConfig"
PARAMETER_CONFIG = "ParameterConfig"
PARAMETER_FILE_TREE = "ParameterFileTree"

# Keyword that opens the key/value section of a ParameterConfig line
PARAM_KV_START = "Type"

TRUE_TOKENS = frozenset({"1", "true", "TRUE", "True"})


@dataclass
class PluginConfigDirective:
    plugin: str
    kv: list[str] = field(default_factory=list)


@dataclass
class ParameterConfigDirective:
    """A parameter definition; ``plugin`` is None when the line omitted it."""

    plugin: str | None
    param: str
    kv: list[str] = field(default_factory=list)


@dataclass
class FileTreeDirective:
    plugin: str
    param: str
    category: str
    items: list[str] = field(default_factory=list)


Directive = Union[PluginConfigDirective, ParameterConfigDirective, FileTreeDirective]


@dataclass
class ConfigParseState:
    """Recovery context threaded through the directive handlers."""

    catalog: ConfigCatalog = field(default_factory=ConfigCatalog)
    current_plugin: str = ""


def parse_bool(value: str) -> bool:
    return value in TRUE_TOKENS


def parse_float(value: str) -> float | None:
    try:
        return float(value)
    except ValueError:
        return None


def iter_pairs(kv: list[str]):
    """Yield ``(key, value)`` pairs; a trailing key without value is dropped."""
    for i in range(0, len(kv) - 1, 2):
        yield kv[i], kv[i + 1]


def decode_directive(tokens: list[str]) -> Directive | None:
    """Turn a tokenized line into a directive, or None if it is not one.

    Lines shorter than the minimum for their directive decode to None.
    """
    if not tokens:
        return None
    verb = tokens[0]

    if verb == PLUGIN_CONFIG:
        if len(tokens) < 2:
            return None
        return PluginConfigDirective(plugin=tokens[1], kv=tokens[2:])

    if verb == PARAMETER_CONFIG:
        if len(tokens) < 3:
            return None
        # The plugin token was omitted when the key/value section starts
        # one token early: "ParameterConfig Type ..." (the keyword sits in
        # the plugin position) or "ParameterConfig Gain Type ...".
        if tokens[1] == PARAM_KV_START:
            return ParameterConfigDirective(plugin=None, param=tokens[1], kv=tokens[2:])
        if tokens[2] == PARAM_KV_START:
            return ParameterConfigDirective(plugin=None, param=tokens[1], kv=tokens[2:])
        return ParameterConfigDirective(plugin=tokens[1], param=tokens[2], kv=tokens[3:])

    if verb == PARAMETER_FILE_TREE:
        if len(tokens) < 4:
            return None
        return FileTreeDirective(
            plugin=tokens[1], param=tokens[2], category=tokens[3], items=tokens[4:]
        )

    return None


def apply_plugin_kv(plugin: PluginDef, kv: list[str]) -> None:
    for key, value in iter_pairs(kv):
        if key == "BackgroundColor":
            plugin.background_color = value
        elif key == "ForegroundColor":
            plugin.foreground_color = value
        elif key == "IsUserSelectable":
            plugin.is_user_selectable = parse_bool(value)
        elif key == "Description":
            plugin.description = value


def apply_param_kv(param: ParamDef, kv: list[str]) -> None:
    """Populate typed fields; unknown keys land in ``raw_kv``."""
    for key, value in iter_pairs(kv):
        if key == "Type":
            param.type = value
        elif key == "MinValue":
            param.min_value = parse_float(value)
        elif key == "MaxValue":
            param.max_value = parse_float(value)
        elif key == "DefaultValue":
            param.default_value = parse_float(value)
        elif key == "RangePower":
            param.range_power = parse_float(value)
        elif key == "ValueFormat":
            param.value_format = value
        elif key == "CanSyncToHostBPM":
            param.can_sync_to_host_bpm = parse_bool(value)
        elif key == "IsAdvanced":
            param.is_advanced = parse_bool(value)
        elif key == "IsOutput":
            param.is_output = parse_bool(value)
        elif key == "Description":
            param.description = value
        else:
            param.raw_kv[key] = value


def _handle_plugin(state: ConfigParseState, d: PluginConfigDirective) -> None:
    state.current_plugin = d.plugin
    apply_plugin_kv(state.catalog.ensure_plugin(d.plugin), d.kv)


def _handle_param(state: ConfigParseState, d: ParameterConfigDirective) -> None:
    owner = d.plugin
    if owner is None:
        owner = state.current_plugin
        if not owner:
            logger.debug("ParameterConfig %s has no plugin to attach to", d.param)
            return
        logger.debug("ParameterConfig %s attached to current plugin %s", d.param, owner)

    param = ParamDef(plugin=owner, name=d.param)
    apply_param_kv(param, d.kv)
    state.catalog.ensure_plugin(owner).params[d.param] = param


def _handle_file_tree(state: ConfigParseState, d: FileTreeDirective) -> None:
    state.current_plugin = d.plugin
    plugin = state.catalog.ensure_plugin(d.plugin)
    plugin.file_trees[d.param] = FileTreeDef.from_items(
        d.plugin, d.param, d.category, d.items
    )


_HANDLERS = {
    PluginConfigDirective: _handle_plugin,
    ParameterConfigDirective: _handle_param,
    FileTreeDirective: _handle_file_tree,
}


def parse_config(raw: str) -> ConfigCatalog:
    """Parse a configuration dump into a :class:`ConfigCatalog`.

    Parsing stops at the first bare ``Ok`` line.  Unknown or truncated
    lines are ignored.
    """
    if not isinstance(raw, str):
        raise TypeError(f"config dump must be str, got {type(raw).__name__}")

    state = ConfigParseState()
    for line in raw.split("\n"):
        line = line.strip()
        if not line:
            continue
        if line == OK:
            break

        directive = decode_directive(decode_line(line))
        if directive is None:
            continue
        _HANDLERS[type(directive)](state, directive)

    return state.catalog
