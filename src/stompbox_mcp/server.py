"""MCP server entry point for the Stompbox audio-effects engine.

Exposes the device client as tools and resources via the Model Context
Protocol using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
import math
import sys
from decimal import Decimal
from typing import Any

from mcp.server.fastmcp import FastMCP

from .client import StompboxClient
from .config import Settings
from .errors import StompboxError

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "stompbox",
    instructions="MCP server for the Stompbox audio-effects engine control port",
)

_client: StompboxClient | None = None


def _get_client() -> StompboxClient:
    """Get the device client, building it from the environment on first use."""
    global _client
    if _client is None:
        _client = StompboxClient.from_settings(Settings.from_env())
        logger.info("Using Stompbox at %s:%d", *_client.address)
    return _client


def _error(e: Exception) -> dict[str, Any]:
    logger.warning("Device call failed: %s", e)
    return {"error": str(e)}


# ─── DUMP TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def get_config(raw: bool = False) -> dict[str, Any]:
    """Describe every plugin type, its parameters and file choices.

    Args:
        raw: If True, return the unparsed dump text instead.
    """
    client = _get_client()
    try:
        if raw:
            return {"raw": client.dump_config()}
        return client.dump_config_parsed().to_dict()
    except StompboxError as e:
        return _error(e)


@mcp.tool()
def get_program(raw: bool = False) -> dict[str, Any]:
    """Describe the live program: active preset, chains, slots and values.

    Args:
        raw: If True, return the unparsed dump text instead.
    """
    client = _get_client()
    try:
        if raw:
            return {"raw": client.dump_program()}
        return client.dump_program_parsed().to_dict()
    except StompboxError as e:
        return _error(e)


# ─── PRESET TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def list_presets() -> dict[str, Any]:
    """List the names of all saved presets."""
    try:
        return {"presets": _get_client().list_presets_parsed()}
    except StompboxError as e:
        return _error(e)


@mcp.tool()
def get_current_preset() -> dict[str, Any]:
    """Return the name of the active preset (empty if none)."""
    try:
        return {"current_preset": _get_client().current_preset()}
    except StompboxError as e:
        return _error(e)


@mcp.tool()
def load_preset(name: str) -> dict[str, Any]:
    """Load a saved preset by name.

    Args:
        name: Preset name as shown by list_presets.
    """
    if not name.strip() or name == "---":
        return {"error": "missing preset name"}
    try:
        _get_client().load_preset(name)
    except StompboxError as e:
        return _error(e)
    except ValueError as e:
        return {"error": f"invalid preset name: {e}"}
    return {"ok": True, "name": name}


@mcp.tool()
def save_preset(name: str | None = None) -> dict[str, Any]:
    """Save the current program as a preset.

    Args:
        name: Preset name.  If omitted, the active preset is overwritten.
    """
    client = _get_client()
    try:
        if not name or not name.strip():
            name = client.current_preset()
            if not name:
                return {"error": "no active preset to save"}
        client.save_preset(name)
    except StompboxError as e:
        return _error(e)
    except ValueError as e:
        return {"error": f"invalid preset name: {e}"}
    return {"ok": True, "preset": name.strip()}


@mcp.tool()
def delete_preset(name: str) -> dict[str, Any]:
    """Delete a saved preset.

    Args:
        name: Preset name.
    """
    try:
        _get_client().delete_preset(name)
    except StompboxError as e:
        return _error(e)
    except ValueError as e:
        return {"error": f"invalid preset name: {e}"}
    return {"ok": True, "deleted": name.strip()}


# ─── PROGRAM TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def set_param(plugin: str, param: str, value: str | float | bool) -> dict[str, Any]:
    """Set a parameter on a running plugin instance.

    Args:
        plugin: Plugin instance name, e.g. "NoiseGate_2".
        param: Parameter name, e.g. "Threshold".
        value: New value.  Booleans are sent as 1/0.
    """
    plugin, param = plugin.strip(), param.strip()
    if not plugin or not param:
        return {"error": "plugin and param are required"}
    try:
        token = to_device_value(value)
    except ValueError as e:
        return {"error": f"invalid value: {e}"}
    try:
        _get_client().set_param(plugin, param, token)
    except StompboxError as e:
        return _error(e)
    except ValueError as e:
        return {"error": f"invalid value: {e}"}
    return {"ok": True, "plugin": plugin, "param": param, "value": token}


@mcp.tool()
def set_file_param(plugin: str, param: str, value: str) -> dict[str, Any]:
    """Pick a file (model, impulse response...) for a File-type parameter.

    The choice is checked against the device's configuration dump first.

    Args:
        plugin: Plugin instance name, e.g. "ConvoReverb_2".
        param: File parameter name, e.g. "Impulse".
        value: File name as listed in the parameter's file tree.
    """
    plugin, param = plugin.strip(), param.strip()
    if not plugin or not param or not value:
        return {"error": "plugin, param and value are required"}
    try:
        _get_client().set_file_param(plugin, param, value)
    except StompboxError as e:
        return _error(e)
    except ValueError as e:
        return {"error": str(e)}
    return {"ok": True, "plugin": plugin, "param": param, "value": value}


@mcp.tool()
def set_plugin_enabled(plugin: str, enabled: bool) -> dict[str, Any]:
    """Turn a plugin instance on or off."""
    plugin = plugin.strip()
    if not plugin:
        return {"error": "missing plugin"}
    try:
        _get_client().set_plugin_enabled(plugin, enabled)
    except StompboxError as e:
        return _error(e)
    return {"ok": True, "plugin": plugin, "enabled": enabled}


@mcp.tool()
def set_chain(chain: str, plugins: list[str]) -> dict[str, Any]:
    """Replace the ordered list of plugin instances in a chain.

    Args:
        chain: Chain name, e.g. "Lead".
        plugins: Plugin instance names in signal order.
    """
    chain = chain.strip()
    if not chain:
        return {"error": "missing chain"}
    clean = [p.strip() for p in plugins if p.strip()]
    try:
        _get_client().set_chain(chain, clean)
    except StompboxError as e:
        return _error(e)
    return {"ok": True, "chain": chain, "plugins": clean}


@mcp.tool()
def release_plugin(plugin: str) -> dict[str, Any]:
    """Release a plugin instance on the device."""
    plugin = plugin.strip()
    if not plugin:
        return {"error": "missing plugin"}
    try:
        _get_client().release_plugin(plugin)
    except StompboxError as e:
        return _error(e)
    return {"ok": True, "plugin": plugin}


@mcp.tool()
def send_command(command: str) -> dict[str, Any]:
    """Send a raw protocol command line and return the device's response.

    Args:
        command: Full command, e.g. "SetParam Boost Gain 5".
    """
    if not command.strip():
        return {"error": "empty command"}
    try:
        return {"response": _get_client().send_command(command)}
    except StompboxError as e:
        return _error(e)


def to_device_value(value: str | float | bool) -> str:
    """Render a tool argument as a device value token (before quoting).

    Booleans become ``1``/``0``.  Numbers, and strings that parse as
    numbers (a comma is accepted as the decimal mark), are written as the
    shortest plain decimal that reads back to the same float.  Other
    strings are trimmed and passed through.

    Raises:
        ValueError: For NaN/infinity, an empty string or an unsupported type.
    """
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_number(value)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError("empty string")
        if "_" in s:
            # float() would accept digit grouping like "1_000"
            return s
        try:
            number = float(s.replace(",", "."))
        except ValueError:
            return s
        return _format_number(number)
    raise ValueError(f"unsupported type {type(value).__name__} (use number, bool or string)")


def _format_number(number: float) -> str:
    if math.isnan(number) or math.isinf(number):
        raise ValueError("invalid number (nan/inf)")
    # Plain decimal, never scientific notation
    text = format(Decimal(repr(number)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("stompbox://config")
def resource_config() -> str:
    """Plugin catalog as JSON."""
    return json.dumps(get_config(), indent=2)


@mcp.resource("stompbox://program")
def resource_program() -> str:
    """Live program state as JSON."""
    return json.dumps(get_program(), indent=2)


@mcp.resource("stompbox://presets")
def resource_presets() -> str:
    return json.dumps(list_presets(), indent=2)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        stream=sys.stderr,
    )
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
