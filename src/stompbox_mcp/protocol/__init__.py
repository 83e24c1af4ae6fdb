"""Protocol layer: token codec, command builders, response framing and dump parsers."""

from .tokens import encode_token, decode_line
from .commands import Verb, Command, build_command
from .framing import TerminationState, until_ok, until_marker_then_ok
from .config_parser import parse_config
from .program_parser import parse_program
from .parser import check_response, parse_preset_list
