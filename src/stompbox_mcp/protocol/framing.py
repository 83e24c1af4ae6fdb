"""Response framing: deciding where a multi-line device response ends.

The device sends no length prefix.  A response is a run of newline-delimited
lines that ends in one of two ways::

    <payload lines...>          <payload lines...>
    Ok                          EndConfig | EndProgram
                                Ok

Dumps use the second form.  A bare ``Ok`` may legitimately appear inside a
dump payload, so for dumps ``Ok`` only counts once the phase-end marker has
been seen.  Any line starting with ``Error`` marks a failure wherever it
appears.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

OK = "Ok"
END_CONFIG = "EndConfig"
END_PROGRAM = "EndProgram"
ERROR_PREFIX = "Error"


@dataclass
class TerminationState:
    """Mutable per-exchange state handed to a stop predicate."""

    seen_phase_marker: bool = False
    last_line: str = ""


StopPredicate = Callable[[str, TerminationState], bool]


def until_ok(line: str, state: TerminationState) -> bool:
    """Stop at the first bare ``Ok`` line."""
    return line == OK


def until_marker_then_ok(marker: str) -> StopPredicate:
    """Return a predicate that stops at the first ``Ok`` after *marker*."""

    def stop(line: str, state: TerminationState) -> bool:
        if line == marker:
            state.seen_phase_marker = True
            return False
        return state.seen_phase_marker and line == OK

    stop.__name__ = f"until_{marker}_then_ok"
    return stop


until_end_config = until_marker_then_ok(END_CONFIG)
until_end_program = until_marker_then_ok(END_PROGRAM)


def is_error_line(line: str) -> bool:
    return line.startswith(ERROR_PREFIX)


def first_protocol_error(raw: str) -> str | None:
    """Return the first trimmed ``Error ...`` line in *raw*, if any.

    A trailing ``Ok`` does not cancel an earlier error line.
    """
    for line in raw.splitlines():
        line = line.strip()
        if is_error_line(line):
            return line
    return None
