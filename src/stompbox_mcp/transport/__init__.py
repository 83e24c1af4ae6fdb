"""Transport layer: one TCP connection per command exchange."""

from .tcp_connection import CommandChannel
