"""Expand command patterns into argument vectors.

Patterns are trusted templates such as ``"fetch --prune -- %s"``. They are
tokenized once with :mod:`shlex`; arguments are substituted per token and
never tokenized themselves, so an argument can never turn into a flag or
a second argument.

Placeholders:

``%s``
    One string argument. May sit inside a larger token (``ui.ssh=%s``).
``%P``
    One :class:`OpaqueEnvelope`. Must be a whole token; the envelope stays
    wrapped in the resulting argv.
``%Ls``
    A whole token replaced by every item of a list argument.
``%%``
    A literal percent sign.
"""

from __future__ import annotations

import re
import shlex
from collections.abc import Sequence
from typing import Any, Union

from vcs_core.envelope import OpaqueEnvelope
from vcs_core.errors import CommandFormatError

ArgvItem = Union[str, OpaqueEnvelope]

_PLACEHOLDER = re.compile(r"%(%|Ls|s|P)")


def _tokenize(pattern: str) -> list[str]:
    try:
        return shlex.split(pattern)
    except ValueError as exc:
        raise CommandFormatError(f"Unable to tokenize command pattern {pattern!r}: {exc}") from exc


def _string_argument(value: Any, *, pattern: str) -> str:
    if isinstance(value, OpaqueEnvelope):
        raise CommandFormatError(f"Opaque values must use %P, not %s, in pattern {pattern!r}.")
    if isinstance(value, (list, tuple)):
        raise CommandFormatError(f"List values must use %Ls in pattern {pattern!r}.")
    return str(value)


def format_argv(pattern: str, args: Sequence[Any] = ()) -> list[ArgvItem]:
    remaining = list(args)
    argv: list[ArgvItem] = []

    def take() -> Any:
        if not remaining:
            raise CommandFormatError(f"Too few arguments for command pattern {pattern!r}.")
        return remaining.pop(0)

    for token in _tokenize(pattern):
        if token == "%Ls":
            values = take()
            if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
                raise CommandFormatError(f"%Ls expects a list argument in pattern {pattern!r}.")
            argv.extend(_string_argument(value, pattern=pattern) for value in values)
            continue
        if token == "%P":
            value = take()
            if not isinstance(value, OpaqueEnvelope):
                raise CommandFormatError(f"%P expects an OpaqueEnvelope in pattern {pattern!r}.")
            argv.append(value)
            continue

        pieces: list[str] = []
        cursor = 0
        for match in _PLACEHOLDER.finditer(token):
            pieces.append(token[cursor : match.start()])
            cursor = match.end()
            kind = match.group(1)
            if kind == "%":
                pieces.append("%")
            elif kind == "s":
                pieces.append(_string_argument(take(), pattern=pattern))
            else:
                raise CommandFormatError(f"%{kind} must be a standalone token in pattern {pattern!r}.")
        pieces.append(token[cursor:])
        argv.append("".join(pieces))

    if remaining:
        raise CommandFormatError(
            f"Too many arguments for command pattern {pattern!r}: {len(remaining)} unused."
        )
    return argv


def prefix_pattern(prefix: str, pattern: str) -> str:
    return f"{prefix} {pattern}".strip()
