"""
Argosy token helpers: verb extraction, help detection and prompt tokenizing.

Overview
- locate(tokens): index of the first token that does not start with a dash.
- extract(tokens): (verb | None, remaining) where remaining is the input with
  exactly that one token removed. The verb is removed by position, never by
  value, so a later token equal to the verb is kept.
- wants_help(tokens): whether -h/--help appears anywhere.
- tokenize(prompt): normalize Unset / str / Iterable[str] into a token list.

Notes
- Extraction is purely positional: in `--sudo-service-user root start` the
  first non-dash token is "root", even though the user meant it as the flag's
  value. The dispatcher detects that shape and records an AmbiguousVerbWarning.
"""
import shlex
import sys
from collections.abc import Iterable

from .options import HELP
from .utils import *


def _tokens(tokens, caller):
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError(f"{caller}() argument must be an iterable of strings")
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError(f"{caller}() argument must be an iterable of strings")
    return tokens


def locate(tokens, /):
    """
    Return the index of the first token not starting with "-", or None.
    """
    for index, token in enumerate(_tokens(tokens, "locate")):
        if not token.startswith("-"):
            return index
    return None


def extract(tokens, /):
    """
    Split the verb candidate out of a token list.

    Returns
    - (None, []) for an empty list.
    - (None, tokens) when every token starts with a dash.
    - (tokens[i], tokens[:i] + tokens[i + 1:]) for the first non-dash token i.
    """
    tokens = _tokens(tokens, "extract")
    if (index := locate(tokens)) is None:
        return None, tokens
    return tokens[index], tokens[:index] + tokens[index + 1:]


def wants_help(tokens, /):
    """
    True when --help or -h appears anywhere in tokens.
    """
    return any(token in HELP for token in _tokens(tokens, "wants_help"))


def tokenize(prompt=Unset, /):
    """
    Normalize a prompt into a list of tokens.

    - Unset: sys.argv[1:].
    - str: shell-like string split with shlex.split.
    - Iterable[str]: used as is (every element must be a string).

    Raises
    - TypeError for any other shape.
    """
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        return _tokens(prompt, "tokenize")
    raise TypeError("tokenize() argument must be a string or an iterable of strings")


__all__ = (
    "locate",
    "extract",
    "wants_help",
    "tokenize",
)
