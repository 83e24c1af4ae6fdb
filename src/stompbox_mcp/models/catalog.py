"""Plugin catalog built from a ``Dump Config`` response.

A catalog maps plugin type names to their display metadata, parameter
definitions and file-valued parameter choices.  Optional fields stay
``None`` when the device never sent them, and ``to_dict()`` leaves them
out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class FileOption:
    """One selectable entry of a file tree."""

    label: str
    value: str

    def to_dict(self) -> dict:
        return {"label": self.label, "value": self.value}


@dataclass
class FileTreeDef:
    """Choices for a file-valued parameter (models, impulse responses...)."""

    plugin: str
    param: str
    category: str = ""
    items: list[str] = field(default_factory=list)
    options: list[FileOption] = field(default_factory=list)

    @classmethod
    def from_items(
        cls, plugin: str, param: str, category: str, items: list[str]
    ) -> FileTreeDef:
        """Build a tree whose options are a direct projection of *items*."""
        items = list(items)
        return cls(
            plugin=plugin,
            param=param,
            category=category,
            items=items,
            options=[FileOption(label=it, value=it) for it in items],
        )

    def contains(self, value: str) -> bool:
        """Return True if *value* is one of the tree's items."""
        return value in self.items or any(o.value == value for o in self.options)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"plugin": self.plugin, "param": self.param}
        if self.category:
            d["category"] = self.category
        if self.items:
            d["items"] = list(self.items)
            d["options"] = [o.to_dict() for o in self.options]
        return d


@dataclass
class ParamDef:
    """Definition of one plugin parameter.

    Keys the parser does not recognize are kept in ``raw_kv`` so no
    device-provided information is lost.
    """

    plugin: str
    name: str
    type: str = ""
    min_value: float | None = None
    max_value: float | None = None
    default_value: float | None = None
    range_power: float | None = None
    value_format: str = ""
    can_sync_to_host_bpm: bool | None = None
    is_advanced: bool | None = None
    is_output: bool | None = None
    description: str = ""
    raw_kv: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"plugin": self.plugin, "name": self.name}
        optional = {
            "type": self.type,
            "minValue": self.min_value,
            "maxValue": self.max_value,
            "defaultValue": self.default_value,
            "rangePower": self.range_power,
            "valueFormat": self.value_format,
            "canSyncToHostBPM": self.can_sync_to_host_bpm,
            "isAdvanced": self.is_advanced,
            "isOutput": self.is_output,
            "description": self.description,
        }
        for key, value in optional.items():
            if value is not None and value != "":
                d[key] = value
        if self.raw_kv:
            d["rawKV"] = dict(self.raw_kv)
        return d


@dataclass
class PluginDef:
    """A plugin type with its metadata, parameters and file trees."""

    name: str
    background_color: str = ""
    foreground_color: str = ""
    is_user_selectable: bool | None = None
    description: str = ""
    params: dict[str, ParamDef] = field(default_factory=dict)
    file_trees: dict[str, FileTreeDef] = field(default_factory=dict)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"name": self.name}
        if self.background_color:
            d["backgroundColor"] = self.background_color
        if self.foreground_color:
            d["foregroundColor"] = self.foreground_color
        if self.is_user_selectable is not None:
            d["isUserSelectable"] = self.is_user_selectable
        if self.description:
            d["description"] = self.description
        if self.params:
            d["params"] = {k: p.to_dict() for k, p in self.params.items()}
        if self.file_trees:
            d["fileTrees"] = {k: t.to_dict() for k, t in self.file_trees.items()}
        return d


@dataclass
class ConfigCatalog:
    """All plugins described by one configuration dump."""

    plugins: dict[str, PluginDef] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)

    def ensure_plugin(self, name: str) -> PluginDef:
        """Return the plugin called *name*, creating it on first sight."""
        plugin = self.plugins.get(name)
        if plugin is None:
            plugin = PluginDef(name=name)
            self.plugins[name] = plugin
            self.order.append(name)
        return plugin

    def get_param(self, plugin: str, param: str) -> ParamDef | None:
        p = self.plugins.get(plugin)
        if p is None:
            return None
        return p.params.get(param)

    def get_file_tree(self, plugin: str, param: str) -> FileTreeDef | None:
        """File choices for *plugin*.*param*, or None if the dump had none."""
        p = self.plugins.get(plugin)
        if p is None:
            return None
        return p.file_trees.get(param)

    def to_dict(self) -> dict:
        return {
            "plugins": {k: p.to_dict() for k, p in self.plugins.items()},
            "order": list(self.order),
        }

    def __repr__(self) -> str:
        return f"ConfigCatalog(plugins={len(self.plugins)})"
