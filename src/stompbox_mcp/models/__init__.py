"""Data models for the plugin catalog and live program state."""

from .catalog import ConfigCatalog, PluginDef, ParamDef, FileTreeDef, FileOption
from .program import ProgramState
