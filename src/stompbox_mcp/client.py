"""High-level client for the Stompbox control port.

This is the only entry point other layers (the MCP server, scripts) use.
Every method sends exactly one command over a fresh connection and checks
the whole response for an ``Error`` line before returning.

Usage::

    client = StompboxClient("127.0.0.1", 24639)
    program = client.dump_program_parsed()
    client.set_param("NoiseGate_2", "Threshold", "-40")
"""

from __future__ import annotations

import logging
import re

from .config import Settings
from .models.catalog import ConfigCatalog
from .models.program import ProgramState
from .protocol.commands import (
    build_delete_preset,
    build_dump_config,
    build_dump_program,
    build_list_presets,
    build_load_preset,
    build_release_plugin,
    build_save_preset,
    build_set_chain,
    build_set_param,
    normalize_line,
)
from .protocol.config_parser import parse_config
from .protocol.framing import StopPredicate, until_end_config, until_end_program, until_ok
from .protocol.parser import check_response, parse_preset_list
from .protocol.program_parser import parse_program
from .transport.tcp_connection import (
    DIAL_TIMEOUT,
    MAX_BYTES,
    READ_TIMEOUT,
    CommandChannel,
)

logger = logging.getLogger(__name__)

MAX_PRESET_NAME = 200
ENABLED_PARAM = "Enabled"

# Runtime instances carry a numeric suffix: ConvoReverb_2 is a ConvoReverb
_INSTANCE_SUFFIX = re.compile(r"_\d+$")


def validate_preset_name(name: str) -> str:
    """Check that *name* is safe to use as a preset file name.

    Returns:
        The trimmed name.

    Raises:
        ValueError: If the name is empty, contains path separators, ``..``
            or control characters, or is longer than 200 characters.
    """
    n = name.strip()
    if not n:
        raise ValueError("preset name is empty")
    if "/" in n or "\\" in n or ".." in n:
        raise ValueError("path separators not allowed in preset name")
    if any(ord(ch) < 0x20 for ch in n):
        raise ValueError("control characters not allowed in preset name")
    if len(n) > MAX_PRESET_NAME:
        raise ValueError(f"preset name longer than {MAX_PRESET_NAME} characters")
    return n


def base_plugin_type(instance: str) -> str:
    """Return the plugin type name of a running instance (``Delay_3`` -> ``Delay``)."""
    return _INSTANCE_SUFFIX.sub("", instance)


class StompboxClient:
    """Blocking facade over :class:`CommandChannel` and the dump parsers.

    A call may block for up to ``dial_timeout + read_timeout`` (longer for
    a streaming dump).  Calls from several threads are allowed but are not
    serialized; callers that need ordering must serialize themselves.
    """

    def __init__(
        self,
        host: str,
        port: int,
        dial_timeout: float = DIAL_TIMEOUT,
        read_timeout: float = READ_TIMEOUT,
        max_bytes: int = MAX_BYTES,
    ) -> None:
        self._channel = CommandChannel(
            host,
            port,
            dial_timeout=dial_timeout,
            read_timeout=read_timeout,
            max_bytes=max_bytes,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> StompboxClient:
        return cls(
            settings.host,
            settings.port,
            dial_timeout=settings.dial_timeout,
            read_timeout=settings.read_timeout,
            max_bytes=settings.max_bytes,
        )

    @property
    def address(self) -> tuple[str, int]:
        return self._channel.address

    def _send(self, command: str, stop: StopPredicate = until_ok) -> str:
        logger.debug("-> %s", command.rstrip())
        raw = self._channel.exchange(command, stop)
        return check_response(raw)

    # ─── DUMPS ───────────────────────────────────────────────────────

    def dump_config(self) -> str:
        """Return the raw ``Dump Config`` response (through ``EndConfig``/``Ok``)."""
        return self._send(build_dump_config(), until_end_config)

    def dump_config_parsed(self) -> ConfigCatalog:
        return parse_config(self.dump_config())

    def dump_program(self) -> str:
        """Return the raw ``Dump Program`` response (through ``EndProgram``/``Ok``)."""
        return self._send(build_dump_program(), until_end_program)

    def dump_program_parsed(self) -> ProgramState:
        """Dump and parse the live program.

        Raises:
            MalformedDirective: If the dump contains a broken directive.
        """
        return parse_program(self.dump_program())

    def current_preset(self) -> str:
        """Name of the active preset, or an empty string if none is set."""
        return self.dump_program_parsed().active_preset

    # ─── PRESETS ─────────────────────────────────────────────────────

    def list_presets(self) -> str:
        return self._send(build_list_presets())

    def list_presets_parsed(self) -> list[str]:
        return parse_preset_list(self.list_presets())

    def load_preset(self, name: str) -> None:
        self._send(build_load_preset(validate_preset_name(name)))

    def save_preset(self, name: str) -> None:
        """Save the current program under *name* (validated first)."""
        self._send(build_save_preset(validate_preset_name(name)))

    def delete_preset(self, name: str) -> None:
        self._send(build_delete_preset(validate_preset_name(name)))

    # ─── PROGRAM EDITS ───────────────────────────────────────────────

    def set_param(self, plugin: str, param: str, value: str) -> None:
        """Set one parameter on a plugin instance.

        The value is quoted when needed, so values with spaces, tabs or
        quotes (file names, descriptions) arrive intact.
        """
        self._send(build_set_param(plugin, param, value))

    def set_file_param(self, plugin: str, param: str, value: str) -> None:
        """Set a file-valued parameter after checking it against the config dump.

        The configuration is keyed by plugin type, so an instance such as
        ``ConvoReverb_2`` is looked up as ``ConvoReverb``; the command itself
        still goes to the instance.  When the dump lists files for the
        parameter, *value* must be one of them.

        Raises:
            ValueError: If the plugin or parameter is unknown, the parameter
                is not of type ``File``, or the file is not in its tree.
        """
        if not plugin or not param or not value:
            raise ValueError("plugin, param and value are required")
        catalog = self.dump_config_parsed()
        base = base_plugin_type(plugin)
        if base not in catalog.plugins:
            raise ValueError(f"unknown plugin: {plugin}")
        param_def = catalog.get_param(base, param)
        if param_def is None:
            raise ValueError(f"unknown param for plugin: {plugin}.{param}")
        if param_def.type != "File":
            raise ValueError(f"param is not a File type: {plugin}.{param}")
        tree = catalog.get_file_tree(base, param)
        if tree is not None and not tree.contains(value):
            raise ValueError(f"value not present in file tree: {value}")
        self.set_param(plugin, param, value)

    def set_plugin_enabled(self, plugin: str, enabled: bool) -> None:
        """Switch a plugin instance on or off."""
        self.set_param(plugin, ENABLED_PARAM, "1" if enabled else "0")

    def set_chain(self, chain: str, plugins: list[str]) -> None:
        """Replace the ordered plugin list of *chain*; blank names are dropped."""
        clean = [p.strip() for p in plugins if p.strip()]
        self._send(build_set_chain(chain, clean))

    def release_plugin(self, plugin: str) -> None:
        self._send(build_release_plugin(plugin))

    def send_command(self, text: str) -> str:
        """Send an arbitrary command line and return the raw response.

        CR-LF is appended if missing.  The response must end in ``Ok``.
        """
        return self._send(normalize_line(text))

    def __repr__(self) -> str:
        host, port = self.address
        return f"StompboxClient(host={host!r}, port={port})"
