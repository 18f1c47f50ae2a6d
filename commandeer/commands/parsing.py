"""Quote-aware splitting of free-form argument strings."""

from __future__ import annotations

import re

_SMART_QUOTES = str.maketrans({
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
})

_TOKEN = re.compile(r"""\s*(?:(["'])(.*?)\1|(\S+))\s*""", re.DOTALL)
_TOKEN_DOUBLE_ONLY = re.compile(r"""\s*(?:(")(.*?)"|(\S+))\s*""", re.DOTALL)
_WRAPPED = re.compile(r"""(["'])(.*)\1""", re.DOTALL)
_WRAPPED_DOUBLE_ONLY = re.compile(r'(")(.*)"', re.DOTALL)


def normalize_quotes(text: str) -> str:
    """Replace typographic quotes with their ASCII counterparts."""
    return text.translate(_SMART_QUOTES)


def strip_wrapping_quotes(text: str, allow_single_quote: bool = True) -> str:
    """Remove a single pair of quotes wrapping the whole string, if present."""
    pattern = _WRAPPED if allow_single_quote else _WRAPPED_DOUBLE_ONLY
    match = pattern.fullmatch(text)
    return match.group(2) if match else text


def split_args(arg_string: str, count: int = 0, allow_single_quote: bool = True) -> list[str]:
    """
    Split an argument string into whitespace separated tokens.

    Quoted runs become a single token without their quotes. When ``count`` is
    given, at most ``count - 1`` tokens are extracted and whatever is left of
    the string is appended verbatim as the last token.

    Args:
        arg_string: The raw argument string
        count: Maximum number of tokens to return, ``0`` for no limit
        allow_single_quote: Whether single quotes group tokens as well as double quotes

    Returns:
        The list of tokens
    """
    arg_string = normalize_quotes(arg_string)
    pattern = _TOKEN if allow_single_quote else _TOKEN_DOUBLE_ONLY

    tokens: list[str] = []
    remaining = count or len(arg_string)
    position = 0
    exhausted = False

    while True:
        remaining -= 1
        if remaining <= 0:
            break
        match = pattern.search(arg_string, position)
        if match is None:
            exhausted = True
            break
        quoted, bare = match.group(2), match.group(3)
        tokens.append(quoted if quoted is not None else bare)
        position = match.end()

    if not exhausted and position < len(arg_string):
        tokens.append(strip_wrapping_quotes(arg_string[position:], allow_single_quote))

    return tokens
