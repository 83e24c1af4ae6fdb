"""Parser for ``Dump Program`` responses.

Example dump::

    SetPreset Clean Lead
    SetChain Lead NoiseGate_2 Delay
    SetPluginSlot Amp NAM_1
    SetParam NoiseGate_2 Threshold -40
    EndProgram
    Ok

Unlike the configuration parser, a structurally broken ``SetChain``,
``SetPluginSlot`` or ``SetParam`` line raises :class:`MalformedDirective`
instead of being skipped, so corrupted live state is never silently lost.
"""

from __future__ import annotations

from ..errors import MalformedDirective
from ..models.program import ProgramState
from .framing import END_PROGRAM, OK

SET_PRESET = "SetPreset"
SET_CHAIN = "SetChain"
SET_PLUGIN_SLOT = "SetPluginSlot"
SET_PARAM = "SetParam"


def parse_program(raw: str) -> ProgramState:
    """Parse a program dump into a :class:`ProgramState`.

    ``EndProgram`` and ``Ok`` lines are skipped rather than treated as the
    end of input.  Lines are split on whitespace; quotes are not special.

    Raises:
        MalformedDirective: If a SetChain line has no chain name, or a
            SetPluginSlot / SetParam line has fewer than three fields.
    """
    state = ProgramState()

    for line in raw.split("\n"):
        line = line.strip()
        if not line or line in (END_PROGRAM, OK):
            continue

        fields = line.split()
        verb = fields[0]

        if verb == SET_PRESET:
            # A bare "SetPreset" keeps whatever preset was already set.
            if len(fields) > 1:
                state.active_preset = " ".join(fields[1:])

        elif verb == SET_CHAIN:
            if len(fields) < 2:
                raise MalformedDirective(SET_CHAIN, line)
            # A chain with no plugins is kept as an empty list.
            state.chains[fields[1]] = fields[2:]

        elif verb == SET_PLUGIN_SLOT:
            if len(fields) < 3:
                raise MalformedDirective(SET_PLUGIN_SLOT, line)
            state.slots[fields[1]] = fields[2]

        elif verb == SET_PARAM:
            if len(fields) < 3:
                raise MalformedDirective(SET_PARAM, line)
            state.set_param(fields[1], fields[2], " ".join(fields[3:]))

    return state
