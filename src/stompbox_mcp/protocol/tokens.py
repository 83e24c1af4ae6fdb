"""Token quoting for outgoing commands and quote-aware line splitting.

The device reads arguments the way C++ ``std::quoted`` does: a token that
starts with ``"`` runs to the next unescaped ``"``, and a backslash inside
the quotes makes the following character literal.  Example::

    >>> decode_line('Description "Clean boost effect"')
    ['Description', 'Clean boost effect']
"""

from __future__ import annotations

QUOTE = '"'
ESCAPE = "\\"


def needs_quoting(token: str) -> bool:
    """Return True if *token* contains whitespace or a double quote.

    Uses the same notion of whitespace as :func:`decode_line`, so anything
    the decoder would split on is sent inside quotes.
    """
    return any(ch.isspace() or ch == QUOTE for ch in token)


def encode_token(token: str) -> str:
    """Quote a single argument token for the wire, only when required.

    Backslashes and double quotes are escaped inside the quotes.  Tabs
    stay verbatim: the device takes the character after a backslash
    literally, so ``\\t`` would arrive as a plain ``t``.

    Raises:
        ValueError: If the token contains CR or LF, which would end the
            command line early.
    """
    if "\r" in token or "\n" in token:
        raise ValueError(f"Token must not contain line breaks: {token!r}")
    if not needs_quoting(token):
        return token
    escaped = token.replace(ESCAPE, ESCAPE * 2).replace(QUOTE, ESCAPE + QUOTE)
    return QUOTE + escaped + QUOTE


def decode_line(line: str) -> list[str]:
    """Split a response line into tokens, honoring double-quoted strings.

    Quotes are removed from the returned tokens.  Empty tokens (such as
    ``""``) are dropped; whitespace inside quotes is kept as-is.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quote = False
    escaped = False

    def flush() -> None:
        if current:
            tokens.append("".join(current))
            current.clear()

    for ch in line:
        if escaped:
            current.append(ch)
            escaped = False
            continue

        if ch == ESCAPE and in_quote:
            escaped = True
            continue

        if ch == QUOTE:
            # Opening quote ends any bare token in progress; closing quote
            # ends the quoted one.
            flush()
            in_quote = not in_quote
            continue

        if not in_quote and ch.isspace():
            flush()
            continue

        current.append(ch)
    flush()

    return tokens


def encode_tokens(tokens) -> str:
    """Encode and space-join a sequence of tokens."""
    return " ".join(encode_token(t) for t in tokens)
