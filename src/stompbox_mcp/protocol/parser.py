"""Response parsing helpers shared by the client and the dump parsers."""

from __future__ import annotations

from ..errors import ProtocolError
from .framing import OK, first_protocol_error
from .tokens import decode_line

PRESETS_HEADER = "Presets"


def check_response(raw: str) -> str:
    """Return *raw* unchanged, or raise if it carries an ``Error`` line.

    Raises:
        ProtocolError: With the first error line found, even when the
            response ends in ``Ok``.
    """
    error = first_protocol_error(raw)
    if error is not None:
        raise ProtocolError(error)
    return raw


def parse_preset_list(raw: str) -> list[str]:
    """Extract preset names from a ``List Presets`` response.

    The device answers with a ``Presets`` header and a closing ``Ok``.
    Names may follow on the header line itself, separated by whitespace
    (quoted names keep their spaces), or one per line below a bare
    header, in which case a name with spaces needs no quoting.
    """
    names: list[str] = []
    for line in raw.splitlines():
        tokens = decode_line(line)
        if not tokens or tokens == [OK] or tokens == [PRESETS_HEADER]:
            continue
        if tokens[0] == PRESETS_HEADER:
            names.extend(t for t in tokens[1:] if t != OK)
        else:
            names.append(" ".join(tokens))
    return names
